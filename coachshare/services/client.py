"""
ApiClient - Composition root for the request orchestration layer.

Combines:
- SessionStore for the persisted bearer token
- Transport for stage-chained HTTP calls
- RequestCoordinator instances for dedup + short-lived caching
- with_retry for call sites marked retryable
"""

import asyncio
import copy
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable

import httpx
from loguru import logger

from coachshare.services.cache import Clock
from coachshare.services.deduplicator import RequestCoordinator
from coachshare.services.retry import with_retry
from coachshare.services.token_store import FileTokenStorage, SessionStore
from coachshare.services.transport import Transport
from coachshare.settings import Settings

Navigator = Callable[[str], None]


def _log_navigation(route: str) -> None:
    logger.warning(f"Navigation requested: {route}")


def request_key(path: str, params: dict[str, Any] | None = None) -> str:
    """Cache/dedup key: the endpoint path plus its sorted query parameters."""
    if not params:
        return path
    query = "&".join(f"{k}={v}" for k, v in sorted(params.items()))
    separator = "&" if "?" in path else "?"
    return f"{path}{separator}{query}"


class ApiClient:
    """
    Shared HTTP layer used by every API group.

    Usage:
        client = ApiClient("http://localhost:8000/api")

        # Coalesced, cached read
        body = await client.get("/regimens/coach")

        # Mutation, purging cached reads under /regimens afterwards
        await client.mutate("PATCH", "/regimens/42", {"name": "Base"},
                            invalidate=["/regimens"])
    """

    def __init__(
        self,
        base_url: str,
        store: SessionStore | None = None,
        timeout: float = 30.0,
        response_ttl: timedelta = timedelta(seconds=5),
        stats_ttl: timedelta = timedelta(seconds=60),
        retry_max_attempts: int = 2,
        retry_initial_delay: float = 0.5,
        login_route: str = "/auth/login",
        navigator: Navigator | None = None,
        http_client: httpx.AsyncClient | None = None,
        clock: Clock = datetime.now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        debug: bool = False,
    ):
        self.store = store or SessionStore()
        self.login_route = login_route
        self._navigator = navigator or _log_navigation
        self._retry_max_attempts = retry_max_attempts
        self._retry_initial_delay = retry_initial_delay
        self._sleep = sleep

        self.transport = Transport(
            base_url,
            self.store,
            timeout=timeout,
            on_unauthorized=self._on_unauthorized,
            http_client=http_client,
        )
        self.responses = RequestCoordinator(
            name="responses", ttl=response_ttl, clock=clock, debug=debug
        )
        self.stats = RequestCoordinator(
            name="workout_log_stats", ttl=stats_ttl, clock=clock, debug=debug
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        navigator: Navigator | None = None,
    ) -> "ApiClient":
        """Build a client whose token persists to ``settings.token_path``."""
        storage = FileTokenStorage(
            settings.token_path, key=settings.token_storage_key
        )
        return cls(
            settings.api_base_url,
            store=SessionStore(storage),
            timeout=settings.request_timeout,
            response_ttl=timedelta(milliseconds=settings.response_cache_ttl_ms),
            stats_ttl=timedelta(milliseconds=settings.stats_cache_ttl_ms),
            retry_max_attempts=settings.retry_max_attempts,
            retry_initial_delay=settings.retry_initial_delay_ms / 1000,
            login_route=settings.login_route,
            navigator=navigator,
            debug=settings.debug,
        )

    def _on_unauthorized(self) -> None:
        self.responses.invalidate()
        self.stats.invalidate()
        self.navigate(self.login_route)

    def navigate(self, route: str) -> None:
        """Hand a route change to the UI layer."""
        self._navigator(route)

    async def get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        retryable: bool = False,
        coordinator: RequestCoordinator | None = None,
    ) -> Any:
        """
        Coalesced GET, served from the response cache while fresh.

        Each caller receives its own deep copy, so mutating a result never
        changes what later callers are served.

        Args:
            path: Endpoint path relative to the base URL
            params: Query parameters (part of the cache key)
            retryable: Retry on rate limiting with exponential backoff
            coordinator: Named cache to use instead of the general one
        """
        coordinator = coordinator or self.responses

        async def do_request() -> Any:
            if retryable:
                return await self.retry(lambda: self.transport.get(path, params))
            return await self.transport.get(path, params=params)

        result = await coordinator.coalesce(request_key(path, params), do_request)
        return copy.deepcopy(result)

    async def retry(self, op: Callable[[], Awaitable[Any]]) -> Any:
        """Run ``op`` under the configured rate-limit retry policy."""
        return await with_retry(
            op,
            max_attempts=self._retry_max_attempts,
            initial_delay=self._retry_initial_delay,
            sleep=self._sleep,
        )

    async def mutate(
        self,
        method: str,
        path: str,
        json_data: Any = None,
        invalidate: list[str] | None = None,
        invalidate_all: bool = False,
    ) -> Any:
        """
        Uncached write; purges cached reads only after the call succeeds.

        Args:
            invalidate: Key prefixes to purge from the general response cache
            invalidate_all: Purge the whole general response cache instead
        """
        body = await self.transport.request(method, path, json_data=json_data)
        if invalidate_all:
            self.responses.invalidate()
        else:
            for prefix in invalidate or []:
                self.responses.invalidate(prefix)
        return body

    def invalidate(self, key_or_prefix: str | None = None) -> int:
        """Purge the general response cache (all entries when ``None``)."""
        return self.responses.invalidate(key_or_prefix)

    def get_health_status(self) -> dict[str, Any]:
        """Get cache and dedup statistics."""
        return {
            "authenticated": self.store.has_token(),
            "responses": self.responses.get_stats().to_dict(),
            "response_cache": self.responses.cache.get_stats().to_dict(),
            "workout_log_stats": self.stats.get_stats().to_dict(),
        }

    async def close(self) -> None:
        """Close the HTTP client and cleanup resources."""
        await self.transport.close()
        logger.debug("ApiClient closed")

    async def __aenter__(self) -> "ApiClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()
