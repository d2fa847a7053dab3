"""
Retry policy for rate-limited calls.

Only the transient rate-limit class (HTTP 429) is retried; every other
failure propagates on the first attempt.
"""

import asyncio
from typing import Awaitable, Callable, TypeVar

from loguru import logger

from coachshare.services.errors import is_rate_limited

T = TypeVar("T")


async def with_retry(
    op: Callable[[], Awaitable[T]],
    max_attempts: int = 2,
    initial_delay: float = 0.5,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Run ``op`` with bounded exponential backoff on rate limiting.

    Args:
        op: Async function to invoke
        max_attempts: Total number of invocations allowed (>= 1)
        initial_delay: Seconds to wait before the second attempt; doubles after
        sleep: Awaitable delay function

    Returns:
        Result of the first successful invocation

    Raises:
        The last error from ``op``, unchanged, once it is not a rate limit
        or the attempt budget is spent
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    delay = initial_delay
    attempt = 1
    while True:
        try:
            return await op()
        except Exception as e:
            if not is_rate_limited(e) or attempt >= max_attempts:
                raise
            logger.info(
                f"Rate limited (attempt {attempt}/{max_attempts}), "
                f"retrying in {delay * 1000:.0f}ms"
            )
        await sleep(delay)
        delay *= 2
        attempt += 1
