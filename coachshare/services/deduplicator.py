"""
RequestCoordinator - Coalesces concurrent requests and serves recent results.

When multiple callers request the same logical key simultaneously,
only one actual request is made and the result is shared. Successful
results are kept in a RequestCache so callers arriving shortly after
are served without a new request.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, TypeVar

from loguru import logger

from coachshare.services.cache import Clock, RequestCache

T = TypeVar("T")


@dataclass
class PendingRequest:
    """An in-flight operation shared by every caller of the same key."""

    task: asyncio.Task[Any]
    started_at: datetime


class RequestCoordinator:
    """
    Deduplicates concurrent async requests and caches their results.

    The check-cache, check-pending and register steps of ``coalesce`` run
    without suspending, so a second caller in the same event-loop turn
    always sees the first caller's pending entry.

    Usage:
        coordinator = RequestCoordinator(ttl=timedelta(seconds=5))

        async def current_user():
            return await coordinator.coalesce(
                "/auth/me",
                lambda: transport.get("/auth/me"),
            )

        # after a mutation
        coordinator.invalidate("/auth/")
    """

    def __init__(
        self,
        name: str = "responses",
        ttl: timedelta = timedelta(seconds=5),
        clock: Clock = datetime.now,
        debug: bool = False,
    ):
        self.name = name
        self.cache = RequestCache(name=name, ttl=ttl, clock=clock, debug=debug)
        self._clock = clock
        self._pending: dict[str, PendingRequest] = {}
        self._debug = debug
        self._stats = CoordinatorStats()

    async def coalesce(
        self,
        key: str,
        op: Callable[[], Awaitable[T]],
    ) -> T:
        """
        Execute ``op`` at most once per key among concurrent callers.

        Args:
            key: Logical endpoint identifier (path including meaningful query)
            op: Async function to execute on a cache and pending miss

        Returns:
            Cached data, the shared in-flight result, or a fresh result

        Raises:
            ValueError: if ``key`` is empty
            Exception: whatever ``op`` raised, identically for every waiter
        """
        if not key:
            raise ValueError("coalesce() requires a non-empty request key")

        entry = self.cache.get(key)
        if entry is not None:
            self._stats.cached += 1
            return entry.data

        pending = self._pending.get(key)
        if pending is not None:
            self._stats.deduplicated += 1
            self._log(f"DEDUPE: Waiting for in-flight request: {key[:50]}")
            task = pending.task
        else:
            self._stats.total += 1
            self._log(f"NEW: Starting request: {key[:50]}")
            task = asyncio.ensure_future(self._execute_and_cleanup(key, op))
            self._pending[key] = PendingRequest(task=task, started_at=self._clock())

        # One waiter going away must not cancel the request for the others
        return await asyncio.shield(task)

    async def _execute_and_cleanup(
        self,
        key: str,
        op: Callable[[], Awaitable[T]],
    ) -> T:
        """Execute request, cache a success, and drop the pending entry."""
        try:
            result = await op()
            if self._owns_pending(key):
                self.cache.set(key, result)
            else:
                self._log(f"SKIP CACHE: invalidated while in flight: {key[:50]}")
            return result
        finally:
            if self._owns_pending(key):
                del self._pending[key]
            self._log(f"DONE: Request completed: {key[:50]}")

    def _owns_pending(self, key: str) -> bool:
        pending = self._pending.get(key)
        return pending is not None and pending.task is asyncio.current_task()

    def invalidate(self, key_or_prefix: str | None = None) -> int:
        """
        Purge cached results matching ``key_or_prefix`` (all when ``None``).

        Requests already in flight keep serving their current waiters but
        neither populate the cache nor absorb callers arriving afterwards.
        """
        if key_or_prefix is None:
            stale = list(self._pending)
        else:
            stale = [k for k in self._pending if k.startswith(key_or_prefix)]
        for key in stale:
            del self._pending[key]

        count = self.cache.invalidate(key_or_prefix)
        logger.debug(
            f"[{self.name}] invalidated {count} cached, {len(stale)} pending "
            f"for '{key_or_prefix or '*'}'"
        )
        return count

    def get_in_flight_count(self) -> int:
        """Get number of in-flight requests."""
        return len(self._pending)

    def get_in_flight_keys(self) -> list[str]:
        """Get keys of all in-flight requests."""
        return list(self._pending.keys())

    def get_stats(self) -> "CoordinatorStats":
        """Get deduplication statistics."""
        self._stats.in_flight = len(self._pending)
        return self._stats

    def _log(self, message: str) -> None:
        """Log debug message if debug mode is enabled."""
        if self._debug:
            logger.debug(f"[RequestCoordinator:{self.name}] {message}")


class CoordinatorStats:
    """Statistics for request coalescing."""

    def __init__(self):
        self.total: int = 0  # Requests actually executed
        self.deduplicated: int = 0  # Callers that joined an in-flight request
        self.cached: int = 0  # Callers served from cache
        self.in_flight: int = 0  # Current in-flight requests

    @property
    def dedup_rate(self) -> float:
        """Calculate share of callers that did not trigger a request."""
        total = self.total + self.deduplicated + self.cached
        if total == 0:
            return 0.0
        return (self.deduplicated + self.cached) / total

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total_requests": self.total,
            "deduplicated": self.deduplicated,
            "cached": self.cached,
            "in_flight": self.in_flight,
            "dedup_rate": f"{self.dedup_rate:.2%}",
        }
