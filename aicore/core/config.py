"""Application settings loaded from environment variables.

Architectural role:
    Single place where process configuration is read. `load_settings()` is
    called once by the entrypoints and the result is handed to
    `AppContext`; nothing below the adapters reads the environment.

Relevant environment variables:
    - `API_HOST`, `API_PORT`: HTTP bind address.
    - `SNAPSHOT_PATH`: JSON snapshot location.
    - `SNAPSHOT_INTERVAL_SECONDS`: period of the background snapshot timer.
    - `CONTEXT_LIMIT`: maximum experiences retrieved per chat turn.
    - `LOG_LEVEL`: root log level.
    - `DEBUG`: opt-in verbose request logging in the HTTP adapter.

Malformed numeric values fall back to their defaults instead of failing
startup.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from aicore.llm.provider_config import ProviderConfig, env_flag, env_float, env_int, load_provider_config

load_dotenv()


@dataclass(frozen=True)
class Settings:
    """Main application configuration."""

    api_host: str = "127.0.0.1"
    api_port: int = 3000
    snapshot_path: str = os.path.join("data", "memory.json")
    snapshot_interval_seconds: float = 60.0
    context_limit: int = 5
    log_level: str = "INFO"
    debug: bool = False
    provider: ProviderConfig = field(default_factory=ProviderConfig)

    @property
    def address(self) -> str:
        return f"{self.api_host}:{self.api_port}"


def load_settings() -> Settings:
    """Load configuration from environment variables with defaults."""
    return Settings(
        api_host=os.getenv("API_HOST", "127.0.0.1"),
        api_port=env_int("API_PORT", 3000),
        snapshot_path=os.getenv("SNAPSHOT_PATH", os.path.join("data", "memory.json")),
        snapshot_interval_seconds=env_float("SNAPSHOT_INTERVAL_SECONDS", 60.0),
        context_limit=env_int("CONTEXT_LIMIT", 5),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        debug=env_flag("DEBUG", False),
        provider=load_provider_config(),
    )
