"""
Tests for aicore/llm/client.py, provider_config.py, prompt_builder.py and
aicore/core/config.py.

The HTTP session is a MagicMock; no network access happens.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from aicore.core.config import load_settings
from aicore.core.errors import GeneratorError
from aicore.llm.client import OllamaClient
from aicore.llm.generators import RemoteGenerator
from aicore.llm.provider_config import ProviderConfig, load_provider_config
from aicore.memory.chat_sessions import ROLE_ASSISTANT, ROLE_USER, ChatMessage
from aicore.prompting.prompt_builder import NO_CONTEXT_TEXT, build_context_prompt
from aicore.retrieval.context_builder import build_context


# ── Helpers ───────────────────────────────────────────────────────────

def make_response(status_code=200, json_data=None, text="", json_error=None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def config():
    return ProviderConfig(enabled=True, url="http://ollama.test:11434", model="llama2", timeout_seconds=7)


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def client(config, session):
    return OllamaClient(config, session=session)


# ── generate ──────────────────────────────────────────────────────────

class TestGenerate:
    def test_posts_non_streaming_request(self, client, session):
        session.post.return_value = make_response(json_data={"response": "  Halo!  "})
        assert client.generate("prompt text") == "Halo!"
        session.post.assert_called_once_with(
            "http://ollama.test:11434/api/generate",
            json={"model": "llama2", "prompt": "prompt text", "stream": False},
            timeout=7,
        )

    def test_disabled_never_calls_server(self, session):
        disabled = OllamaClient(ProviderConfig(enabled=False), session=session)
        with pytest.raises(GeneratorError):
            disabled.generate("x")
        session.post.assert_not_called()

    @pytest.mark.parametrize("exc", [
        requests.exceptions.ConnectionError("refused"),
        requests.exceptions.Timeout("slow"),
    ])
    def test_transport_errors(self, client, session, exc):
        session.post.side_effect = exc
        with pytest.raises(GeneratorError):
            client.generate("x")

    def test_non_2xx_status(self, client, session):
        session.post.return_value = make_response(status_code=500, text="model not loaded")
        with pytest.raises(GeneratorError, match="500"):
            client.generate("x")

    def test_invalid_json(self, client, session):
        session.post.return_value = make_response(json_error=ValueError("bad json"))
        with pytest.raises(GeneratorError):
            client.generate("x")

    @pytest.mark.parametrize("payload", [
        ["not", "a", "dict"],
        {"error": "model 'llama2' not found"},
        {"response": "   "},
        {},
    ])
    def test_unusable_payloads(self, client, session, payload):
        session.post.return_value = make_response(json_data=payload)
        with pytest.raises(GeneratorError):
            client.generate("x")


# ── health / models ───────────────────────────────────────────────────

class TestHealthAndModels:
    def test_health_ok(self, client, session):
        session.get.return_value = make_response(status_code=200)
        assert client.health_check() is True
        assert session.get.call_args[0][0] == "http://ollama.test:11434/api/tags"

    def test_health_unreachable(self, client, session):
        session.get.side_effect = requests.exceptions.ConnectionError("down")
        assert client.health_check() is False

    def test_health_disabled(self, session):
        assert OllamaClient(ProviderConfig(enabled=False), session=session).health_check() is False
        session.get.assert_not_called()

    def test_list_models(self, client, session):
        session.get.return_value = make_response(json_data={"models": [{"name": "llama2"}, {"size": 1}]})
        assert client.list_models() == ["llama2"]


# ── provider config ───────────────────────────────────────────────────

class TestProviderConfig:
    def test_defaults_disabled(self, monkeypatch):
        for name in ("OLLAMA_ENABLED", "OLLAMA_URL", "OLLAMA_MODEL", "OLLAMA_TIMEOUT_SECONDS"):
            monkeypatch.delenv(name, raising=False)
        config = load_provider_config()
        assert config.enabled is False
        assert config.generate_endpoint == "http://localhost:11434/api/generate"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("OLLAMA_ENABLED", "true")
        monkeypatch.setenv("OLLAMA_URL", "http://gpu-box:11434/")
        monkeypatch.setenv("OLLAMA_TIMEOUT_SECONDS", "not-a-number")
        config = load_provider_config()
        assert config.enabled is True
        assert config.url == "http://gpu-box:11434"
        assert config.timeout_seconds == 30.0

    def test_malformed_numbers_use_defaults(self, monkeypatch, tmp_path):
        monkeypatch.setenv("API_PORT", "abc")
        monkeypatch.setenv("CONTEXT_LIMIT", "x")
        monkeypatch.setenv("SNAPSHOT_INTERVAL_SECONDS", "bad")
        monkeypatch.setenv("SNAPSHOT_PATH", str(tmp_path / "memory.json"))
        settings = load_settings()
        assert settings.api_port == 3000
        assert settings.context_limit == 5
        assert settings.snapshot_interval_seconds == 60.0


# ── prompt + remote generator ─────────────────────────────────────────

class TestPrompt:
    def test_prompt_includes_context_lines(self, weather_store):
        prompt = build_context_prompt(build_context(weather_store, "hujan"))
        assert "Context from memory:\n- Cuaca besok akan hujan (from system)" in prompt
        assert "User question: hujan" in prompt

    def test_prompt_without_context(self, store):
        prompt = build_context_prompt(build_context(store, "quantum"))
        assert NO_CONTEXT_TEXT in prompt

    def test_prompt_includes_recent_conversation(self, weather_store):
        history = [ChatMessage.create(ROLE_USER, "halo"), ChatMessage.create(ROLE_ASSISTANT, "Halo juga")]
        prompt = build_context_prompt(build_context(weather_store, "hujan", history=history))
        assert "Recent conversation:\nuser: halo\nassistant: Halo juga\n\nUser question: hujan" in prompt

    def test_prompt_without_history_has_no_conversation_block(self, weather_store):
        assert "Recent conversation:" not in build_context_prompt(build_context(weather_store, "hujan"))

    def test_remote_generator_uses_prompt(self, client, session, weather_store):
        session.post.return_value = make_response(json_data={"response": "jawaban"})
        remote = RemoteGenerator(client)
        assert remote.available
        assert remote.timeout_seconds == 7.0
        assert remote.generate(build_context(weather_store, "hujan")) == "jawaban"
        sent_prompt = session.post.call_args.kwargs["json"]["prompt"]
        assert "Cuaca besok akan hujan" in sent_prompt
