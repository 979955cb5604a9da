"""Provider/runtime configuration for the generator layer.

Architectural role:
    Centralizes remote generator selection and endpoint settings consumed by
    `aicore.llm.client` and `aicore.llm.generators`.

Relevant environment variables:
    - `OLLAMA_ENABLED`: `true` turns on the remote generator.
    - `OLLAMA_URL`: base URL of the Ollama-compatible server.
    - `OLLAMA_MODEL`: model name forwarded with each request.
    - `OLLAMA_TIMEOUT_SECONDS`: bound on one generation call.

Failure behavior:
    Unparseable numeric values fall back to defaults instead of failing
    startup; a disabled provider simply means every chat turn uses the
    heuristic generator.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


DEFAULT_OLLAMA_URL = "http://localhost:11434"
DEFAULT_OLLAMA_MODEL = "llama2"
DEFAULT_TIMEOUT_SECONDS = 30.0

# Endpoint paths relative to `OLLAMA_URL`.
GENERATE_PATH = "/api/generate"
TAGS_PATH = "/api/tags"
HEALTH_TIMEOUT_SECONDS = 5.0


# Shared instruction placed ahead of every remote prompt.
SYSTEM_MESSAGE = (
    "You are AI Core, an assistant that answers from its own recorded experiences.\n"
    "Use the provided memory context when it is relevant and say so when it is not.\n"
    "Answer clearly, briefly, and without repetition.\n"
)


def env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class ProviderConfig:
    """Remote generator settings.

    Attributes:
        enabled: Whether the remote generator is tried at all.
        url: Base URL without trailing slash.
        model: Model name sent in the request payload.
        timeout_seconds: Upper bound for one generation request.
    """

    enabled: bool = False
    url: str = DEFAULT_OLLAMA_URL
    model: str = DEFAULT_OLLAMA_MODEL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @property
    def generate_endpoint(self) -> str:
        return f"{self.url}{GENERATE_PATH}"

    @property
    def tags_endpoint(self) -> str:
        return f"{self.url}{TAGS_PATH}"


def load_provider_config() -> ProviderConfig:
    """Build a `ProviderConfig` from the current process environment."""
    return ProviderConfig(
        enabled=env_flag("OLLAMA_ENABLED", False),
        url=os.getenv("OLLAMA_URL", DEFAULT_OLLAMA_URL).rstrip("/"),
        model=os.getenv("OLLAMA_MODEL", DEFAULT_OLLAMA_MODEL),
        timeout_seconds=env_float("OLLAMA_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
    )
