"""Bounded poll-until-predicate combinator"""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

import structlog

logger = structlog.get_logger(__name__)

T = TypeVar("T")


async def poll_until(
    probe: Callable[[], Awaitable[T]],
    predicate: Callable[[T], bool],
    max_attempts: int,
    interval: float,
    final_check: bool = True,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    operation: Optional[str] = None,
) -> Optional[T]:
    """
    Poll ``probe`` until its value satisfies ``predicate``.

    The probe is called up to ``max_attempts`` times, sleeping ``interval``
    seconds before each call. When every attempt misses and ``final_check``
    is set, one more probe is made after a last sleep. Probe errors count as
    a miss.

    Returns:
        The first satisfying value, or None when polling gave up
    """
    checks = max_attempts + (1 if final_check else 0)

    for attempt in range(checks):
        await sleep(interval)
        try:
            value = await probe()
        except Exception as e:
            logger.debug("Poll probe failed", operation=operation,
                         attempt=attempt + 1, error=str(e))
            continue

        if predicate(value):
            logger.debug("Poll satisfied", operation=operation, attempt=attempt + 1)
            return value

    logger.info("Poll gave up", operation=operation, checks=checks)
    return None
