"""
Service layer exceptions.

Every error raised by the transport carries a human-readable ``message``
and the HTTP ``status`` when the server answered (``None`` otherwise).
"""

from typing import Any


class ApiError(Exception):
    """Base exception for API call failures."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        data: Any = None,
    ):
        self.message = message
        self.status = status
        self.data = data
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the ``{status, message}`` shape surfaced to the UI."""
        return {"status": self.status, "message": self.message}


class RateLimitError(ApiError):
    """Rate limit exceeded (HTTP 429)."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: float | None = None,
        data: Any = None,
    ):
        self.retry_after = retry_after
        super().__init__(message, status=429, data=data)


class UnauthorizedError(ApiError):
    """Session is not (or no longer) authorized (HTTP 401)."""

    def __init__(self, message: str = "Unauthorized", data: Any = None):
        super().__init__(message, status=401, data=data)


class ClientRequestError(ApiError):
    """Request rejected by the server (HTTP 4xx other than 401/429)."""

    pass


class ServerError(ApiError):
    """Server failed to handle the request (HTTP 5xx)."""

    pass


class NetworkError(ApiError):
    """No response was received from the server."""

    def __init__(self, message: str):
        super().__init__(message, status=None)


class RequestTimeoutError(NetworkError):
    """Request timed out."""

    def __init__(self, url: str, timeout: float | None):
        self.timeout = timeout
        super().__init__(f"Request to '{url}' timed out after {timeout}s")


class MissingResponseDataError(ApiError):
    """Server answered successfully but the envelope lacks a required field."""

    pass


def is_rate_limited(error: BaseException) -> bool:
    """Check whether an error belongs to the retryable rate-limit class."""
    return isinstance(error, ApiError) and error.status == 429
