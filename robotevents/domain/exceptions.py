"""Error taxonomy for the RobotEvents client.

Every failure that crosses the client boundary is a RobotEventsError, so
callers can catch a single base class. Throttling and decode problems are
absorbed by the resilience layer up to the retry budget; whatever escapes
is one of the types below.
"""

from typing import Optional


class RobotEventsError(Exception):
    """Base class for all client errors."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        if path:
            message = f"{message} (path: {path})"
        super().__init__(message)


class ConfigurationError(RobotEventsError):
    """Raised when the client cannot be built from the loaded settings."""


class TransportFailure(RobotEventsError):
    """Connectivity, DNS or timeout failure for a single attempt."""

    def __init__(self, reason: str, path: Optional[str] = None):
        self.reason = reason
        super().__init__(f"Transport failure: {reason}", path=path)


class NonRetryableStatus(RobotEventsError):
    """The server answered with a failure status other than 429."""

    def __init__(self, status_code: int, path: Optional[str] = None, body: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Request failed with status {status_code}", path=path)


class MissingRetryHint(RobotEventsError):
    """429 received on the final attempt without a usable Retry-After header."""

    def __init__(self, attempts: int, path: Optional[str] = None):
        self.attempts = attempts
        super().__init__(
            f"Throttled on attempt {attempts} and no usable Retry-After header was sent",
            path=path,
        )


class RetryBudgetExhausted(RobotEventsError):
    """All attempts were used up without a successful response."""

    def __init__(self, attempts: int, last_error: Optional[Exception] = None, path: Optional[str] = None):
        self.attempts = attempts
        self.last_error = last_error
        detail = f" Last error: {last_error}" if last_error else ""
        super().__init__(f"Retry budget of {attempts} attempts exhausted.{detail}", path=path)


class DecodeFailure(RobotEventsError):
    """The response body did not match the paginated envelope."""

    def __init__(self, reason: str, path: Optional[str] = None, attempts: int = 1):
        self.reason = reason
        self.attempts = attempts
        super().__init__(f"Could not decode page envelope: {reason}", path=path)
