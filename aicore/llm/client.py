"""HTTP transport for an Ollama-compatible text-generation server.

Architectural role:
    Executes requests against the configured server and normalizes the
    non-streaming `/api/generate` response into plain text.

Model invocation flow:
    `RemoteGenerator.generate` -> `OllamaClient.generate(prompt)` ->
    `POST {url}/api/generate` -> `response` field of the JSON body.

Retry behavior:
    No retry loop. Each call is attempted once with the configured timeout;
    the chat engine falls back to the heuristic generator on any failure.

Failure handling model:
    Every transport, status, decoding, or content failure raises
    `GeneratorError` with a short, sanitized description. Raw response
    bodies are never included beyond a bounded excerpt.
"""

import logging
from typing import List

import requests

from aicore.core.errors import GeneratorError
from aicore.llm.provider_config import HEALTH_TIMEOUT_SECONDS, ProviderConfig


logger = logging.getLogger(__name__)

ERROR_EXCERPT_CHARS = 200


def describe_http_error(err: requests.exceptions.RequestException) -> str:
    """Build a status-labelled error text without exposing raw internals."""
    status_code = None
    if getattr(err, "response", None) is not None:
        status_code = getattr(err.response, "status_code", None)
    if isinstance(err, requests.exceptions.Timeout):
        return "request timed out"
    if status_code:
        return f"HTTP error ({status_code})"
    return f"connection failed ({type(err).__name__})"


class OllamaClient:
    def __init__(self, config: ProviderConfig, session: requests.Session = None):
        self.config = config
        self.session = session or requests.Session()

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def generate(self, prompt: str) -> str:
        """Run one non-streaming generation.

        Returns:
            Generated text, stripped.

        Raises:
            GeneratorError: When disabled, unreachable, timed out, non-2xx,
                undecodable, reporting an error, or returning empty text.
        """
        if not self.config.enabled:
            raise GeneratorError("remote generator is disabled (set OLLAMA_ENABLED=true)")

        payload = {
            "model": self.config.model,
            "prompt": prompt,
            "stream": False,
        }

        logger.debug("Sending request to %s (model=%s, prompt=%d chars)",
                     self.config.generate_endpoint, self.config.model, len(prompt))

        try:
            response = self.session.post(
                self.config.generate_endpoint,
                json=payload,
                timeout=self.config.timeout_seconds,
            )
        except requests.exceptions.RequestException as err:
            raise GeneratorError(f"Failed to reach generator at {self.config.url}: "
                                 f"{describe_http_error(err)}") from err

        if not 200 <= response.status_code < 300:
            excerpt = (response.text or "")[:ERROR_EXCERPT_CHARS]
            raise GeneratorError(f"Generator API error ({response.status_code}): {excerpt}")

        try:
            data = response.json()
        except ValueError as err:
            raise GeneratorError("Failed to parse generator response") from err

        if not isinstance(data, dict):
            raise GeneratorError("Generator response is not a JSON object")
        if data.get("error"):
            raise GeneratorError(f"Generator error: {data['error']}")

        text = str(data.get("response") or "").strip()
        if not text:
            raise GeneratorError("Generator returned empty response")

        logger.debug("Generator response length: %d chars", len(text))
        return text

    def health_check(self) -> bool:
        """Return True when the server answers `GET /api/tags` with 2xx."""
        if not self.config.enabled:
            return False
        try:
            response = self.session.get(self.config.tags_endpoint, timeout=HEALTH_TIMEOUT_SECONDS)
        except requests.exceptions.RequestException as err:
            logger.warning("Generator health check failed: %s", describe_http_error(err))
            return False
        ok = 200 <= response.status_code < 300
        logger.info("Generator health check: %s", "OK" if ok else "FAILED")
        return ok

    def list_models(self) -> List[str]:
        """Return model names advertised by the server.

        Raises:
            GeneratorError: When disabled, unreachable, or malformed.
        """
        if not self.config.enabled:
            raise GeneratorError("remote generator is disabled")
        try:
            response = self.session.get(self.config.tags_endpoint, timeout=HEALTH_TIMEOUT_SECONDS * 2)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as err:
            raise GeneratorError(f"Failed to fetch models: {describe_http_error(err)}") from err
        except ValueError as err:
            raise GeneratorError("Failed to parse models list") from err

        models = data.get("models", []) if isinstance(data, dict) else []
        return [str(item.get("name")) for item in models if isinstance(item, dict) and item.get("name")]
