"""Minimum-spacing rate limiter for outbound submissions"""

import asyncio
from typing import Awaitable, Callable, Optional

import structlog

from ..utils.time import monotonic

logger = structlog.get_logger(__name__)


class RateLimiter:
    """
    Enforce a minimum interval between successive calls.

    ``wait()`` returns once at least ``min_interval`` seconds have elapsed
    since the previous caller was released. Concurrent callers are released
    one at a time, in arrival order.
    """

    def __init__(self, min_interval: float,
                 clock: Callable[[], float] = monotonic,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_call: Optional[float] = None
        self._lock = asyncio.Lock()

    async def wait(self) -> float:
        """Wait for the spacing to be satisfied; returns the time spent waiting."""
        async with self._lock:
            waited = 0.0
            if self._last_call is not None:
                remaining = self.min_interval - (self._clock() - self._last_call)
                if remaining > 0:
                    logger.debug("Rate limit wait", wait_seconds=round(remaining, 3))
                    await self._sleep(remaining)
                    waited = remaining
            self._last_call = self._clock()
            return waited
