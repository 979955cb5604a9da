"""
Shared pytest fixtures.

Every fixture builds fresh, isolated state: a new store, a context whose
snapshot lives under `tmp_path`, and an HTTP client bound to that context.
The remote generator is disabled unless a test injects its own pipeline.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from aicore.api.http_api import create_app
from aicore.core.config import Settings
from aicore.core.context import AppContext
from aicore.llm.provider_config import ProviderConfig
from aicore.memory.experience_store import ExperienceStore


WEATHER_EXPERIENCES = [
    ("Cuaca hari ini cerah", "system"),
    ("User senang dengan cuaca", "user"),
    ("Cuaca besok akan hujan", "system"),
]


@pytest.fixture
def store():
    """Empty experience store."""
    return ExperienceStore()


@pytest.fixture
def weather_store(store):
    """Store holding the three weather experiences, in insertion order."""
    for content, source in WEATHER_EXPERIENCES:
        store.insert(content, source)
    return store


@pytest.fixture
def settings(tmp_path):
    return Settings(
        snapshot_path=str(tmp_path / "data" / "memory.json"),
        snapshot_interval_seconds=3600,
        provider=ProviderConfig(enabled=False),
    )


@pytest.fixture
def context(settings):
    """Application context with the heuristic generator only."""
    return AppContext.create(settings)


@pytest.fixture
def client(context):
    """HTTP client over `context`; lifecycle hooks are left to the test."""
    app = create_app(context, manage_lifecycle=False)
    with TestClient(app) as test_client:
        yield test_client
