"""
RequestCache - Short-lived response cache keyed by logical endpoint.

Features:
- TTL per cache instance (entries are valid while ``now - timestamp < ttl``)
- Stale entries are ignored and silently overwritten, never evicted by size
- Prefix invalidation for post-mutation purges
- Synchronous operations, safe to call between two awaits
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Generic, TypeVar

from loguru import logger

T = TypeVar("T")

Clock = Callable[[], datetime]


@dataclass
class CacheEntry(Generic[T]):
    """A single cache entry with metadata."""

    data: T
    timestamp: datetime

    def age(self, now: datetime) -> timedelta:
        return now - self.timestamp

    def is_fresh(self, now: datetime, ttl: timedelta) -> bool:
        """Check if entry is still within its TTL."""
        return self.age(now) < ttl


class RequestCache:
    """
    In-memory TTL cache for API responses.

    Usage:
        cache = RequestCache(name="responses", ttl=timedelta(seconds=5))

        entry = cache.get("/auth/me")
        if entry:
            return entry.data

        data = await fetch_data()
        cache.set("/auth/me", data)
    """

    def __init__(
        self,
        name: str = "responses",
        ttl: timedelta = timedelta(seconds=5),
        clock: Clock = datetime.now,
        debug: bool = False,
    ):
        self._entries: dict[str, CacheEntry[Any]] = {}
        self.name = name
        self.ttl = ttl
        self._clock = clock
        self._debug = debug
        self._stats = CacheStats()

    def get(self, key: str) -> CacheEntry[Any] | None:
        """Return the entry for ``key`` if it is still fresh."""
        entry = self._entries.get(key)
        if entry is None:
            self._stats.misses += 1
            self._log(f"MISS: {key[:50]}")
            return None

        now = self._clock()
        if not entry.is_fresh(now, self.ttl):
            self._stats.misses += 1
            self._log(
                f"STALE: {key[:50]} ({entry.age(now).total_seconds():.1f}s old)"
            )
            return None

        self._stats.hits += 1
        self._log(f"HIT: {key[:50]} ({entry.age(now).total_seconds():.1f}s old)")
        return entry

    def set(self, key: str, data: Any) -> None:
        """Store ``data`` under ``key`` stamped with the current time."""
        self._entries[key] = CacheEntry(data=data, timestamp=self._clock())
        self._log(f"SET: {key[:50]} (TTL: {self.ttl.total_seconds()}s)")

    def invalidate(self, prefix: str | None = None) -> int:
        """
        Purge entries whose key starts with ``prefix``.

        Args:
            prefix: Key or key prefix to purge; ``None`` purges everything

        Returns:
            Number of entries removed
        """
        if prefix is None:
            count = len(self._entries)
            self._entries.clear()
        else:
            keys = [k for k in self._entries if k.startswith(prefix)]
            for key in keys:
                del self._entries[key]
            count = len(keys)

        if count:
            self._stats.invalidations += count
            self._log(f"INVALIDATE: {count} entries matching '{prefix or '*'}'")
        return count

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.is_fresh(self._clock(), self.ttl)

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> "CacheStats":
        """Get cache statistics."""
        self._stats.size = len(self._entries)
        return self._stats

    def _log(self, message: str) -> None:
        """Log debug message if debug mode is enabled."""
        if self._debug:
            logger.debug(f"[RequestCache:{self.name}] {message}")


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    invalidations: int = 0
    size: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "invalidations": self.invalidations,
            "size": self.size,
            "hit_rate": f"{self.hit_rate:.2%}",
        }
