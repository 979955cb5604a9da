"""Error taxonomy shared by every core component.

- `ValidationError`: empty or malformed input, raised before any mutation.
- `NotFound`: unknown experience id, keyword, session or learning record.
  Distinct from an empty result set.
- `PersistenceError`: snapshot read/write failure. Caught and logged by the
  persistence manager, never surfaced to request callers.
- `GeneratorError`: remote generation failure, timeout or malformed
  response. Caught by the chat engine, which falls back to the heuristic
  generator.
- `UpstreamError`: an API-learning call could not reach its target. Surfaced
  to the caller (HTTP 502); nothing is recorded.
"""


class CoreError(Exception):
    """Base class for all aicore errors."""


class ValidationError(CoreError):
    pass


class NotFound(CoreError):
    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} not found: {key}")


class PersistenceError(CoreError):
    pass


class GeneratorError(CoreError):
    pass


class UpstreamError(CoreError):
    """An outbound HTTP call made on a caller's behalf could not be completed."""
