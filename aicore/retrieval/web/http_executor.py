"""Outbound HTTP execution for the API-learning flow.

Architectural role:
    Performs one caller-described HTTP request and returns its status and
    body as text. Recording the call is left to
    `aicore.core.api_learning.ApiLearningService`.

Validation:
    - Method must be one of `ALLOWED_METHODS`.
    - URL must be absolute `http://` or `https://` with a host.
    Violations raise `ValidationError` before any network access.

Failure handling model:
    Transport failures (DNS, refused connection, timeout) raise
    `UpstreamError` with a sanitized description. Any HTTP status, including
    4xx/5xx, is a completed call and is returned, not raised.

Limits:
    Response bodies are truncated to `MAX_RESPONSE_CHARS` characters.
"""

import logging
from dataclasses import dataclass
from typing import Mapping, Optional
from urllib.parse import urlparse

import requests

from aicore.core.errors import UpstreamError, ValidationError
from aicore.llm.client import describe_http_error


logger = logging.getLogger(__name__)

ALLOWED_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE")
DEFAULT_TIMEOUT_SECONDS = 15.0
MAX_RESPONSE_CHARS = 20000


@dataclass(frozen=True)
class HttpResult:
    status_code: int
    body: str

    @property
    def success(self) -> bool:
        return 200 <= self.status_code < 300


def validate_request(method: str, url: str) -> str:
    """Return the normalized method, or raise `ValidationError`."""
    verb = str(method or "").strip().upper()
    if verb not in ALLOWED_METHODS:
        raise ValidationError(f"Unsupported method: {method}. Use one of {', '.join(ALLOWED_METHODS)}")
    parsed = urlparse(str(url or "").strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError("URL must start with http:// or https://")
    return verb


class HttpExecutor:
    def __init__(self, session: requests.Session = None, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        self.session = session or requests.Session()
        self.timeout_seconds = timeout_seconds

    def execute(self, method: str, url: str, body: Optional[str] = None,
                headers: Optional[Mapping[str, str]] = None) -> HttpResult:
        """Send one request.

        Raises:
            ValidationError: Bad method or URL.
            UpstreamError: The request could not be completed.
        """
        verb = validate_request(method, url)
        target = str(url).strip()

        logger.debug("Executing %s %s", verb, target)
        try:
            response = self.session.request(
                verb,
                target,
                data=body.encode("utf-8") if body is not None else None,
                headers=dict(headers or {}),
                timeout=self.timeout_seconds,
            )
        except requests.exceptions.RequestException as err:
            raise UpstreamError(f"{verb} {target} failed: {describe_http_error(err)}") from err

        text = (response.text or "")[:MAX_RESPONSE_CHARS]
        logger.info("%s %s -> %d (%d chars)", verb, target, response.status_code, len(text))
        return HttpResult(status_code=response.status_code, body=text)
