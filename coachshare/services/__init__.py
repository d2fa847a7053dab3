"""
Service layer infrastructure - request orchestration for API calls.

Provides:
- SessionStore: Persisted bearer token with a single live value
- Transport: HTTP client with token attach / 401 / token capture stages
- RequestCache: Short-lived TTL cache keyed by logical endpoint
- RequestCoordinator: Coalesces concurrent identical requests
- with_retry: Exponential backoff for rate-limited calls
- ApiClient: Composition root combining all of the above
"""

from coachshare.services.errors import (
    ApiError,
    ClientRequestError,
    MissingResponseDataError,
    NetworkError,
    RateLimitError,
    RequestTimeoutError,
    ServerError,
    UnauthorizedError,
    is_rate_limited,
)
from coachshare.services.token_store import (
    FileTokenStorage,
    MemoryTokenStorage,
    SessionStore,
    TokenStorage,
)
from coachshare.services.cache import CacheEntry, RequestCache
from coachshare.services.deduplicator import RequestCoordinator
from coachshare.services.retry import with_retry
from coachshare.services.transport import ResponseEnvelope, Transport
from coachshare.services.client import ApiClient, request_key

__all__ = [
    # Errors
    "ApiError",
    "ClientRequestError",
    "MissingResponseDataError",
    "NetworkError",
    "RateLimitError",
    "RequestTimeoutError",
    "ServerError",
    "UnauthorizedError",
    "is_rate_limited",
    # Token
    "FileTokenStorage",
    "MemoryTokenStorage",
    "SessionStore",
    "TokenStorage",
    # Cache / Dedup
    "CacheEntry",
    "RequestCache",
    "RequestCoordinator",
    # Retry
    "with_retry",
    # Transport / Client
    "ResponseEnvelope",
    "Transport",
    "ApiClient",
    "request_key",
]
