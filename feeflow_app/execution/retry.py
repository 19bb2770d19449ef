"""Retry policy and the generic async retry executor"""

import asyncio
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TypeVar

import aiohttp
import structlog

from ..config.defaults import RetryParams
from ..errors import RecoverableError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def is_transient(exc: BaseException) -> bool:
    """Network failures and timeouts are retryable; everything else is not."""
    if isinstance(exc, RecoverableError):
        return True
    return isinstance(exc, (aiohttp.ClientConnectionError, asyncio.TimeoutError))


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded exponential backoff with random jitter.

    Attempt ``n`` (0-based) that fails with a retryable error waits
    ``base_delay * 2**n + uniform(0, jitter)`` before the next attempt.
    """
    max_attempts: int = 4
    base_delay: float = 2.0
    jitter: float = 2.0
    retry_predicate: Callable[[BaseException], bool] = field(default=is_transient, compare=False)

    @classmethod
    def from_params(cls, params: RetryParams) -> "RetryPolicy":
        return cls(
            max_attempts=params.max_attempts,
            base_delay=params.base_delay,
            jitter=params.jitter,
        )

    def delay_for(self, attempt: int, rng: Callable[[], float] = random.random) -> float:
        return self.base_delay * (2 ** attempt) + rng() * self.jitter


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    operation: Optional[str] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    rng: Callable[[], float] = random.random,
) -> T:
    """
    Run ``fn`` until it succeeds, a non-retryable error is raised, or the
    policy's attempts are exhausted.

    Args:
        fn: Zero-argument coroutine factory; called once per attempt
        policy: Retry policy
        operation: Name used in log events
        sleep: Awaitable sleep, injectable for tests
        rng: Uniform [0, 1) source for jitter

    Returns:
        The first successful result

    Raises:
        The last error raised by ``fn``; a RecoverableError that exhausted
        the policy carries the retries spent in ``retry_count``
    """
    attempts = max(1, policy.max_attempts)

    for attempt in range(attempts):
        try:
            return await fn()
        except Exception as e:
            retryable = policy.retry_predicate(e)
            if not retryable or attempt + 1 >= attempts:
                if retryable:
                    if isinstance(e, RecoverableError):
                        e.retry_count = attempt
                        e.max_retries = attempts - 1
                    logger.error(
                        "Retries exhausted",
                        operation=operation,
                        attempts=attempts,
                        error=str(e),
                    )
                raise

            delay = policy.delay_for(attempt, rng)
            logger.warning(
                "Retryable failure",
                operation=operation,
                attempt=attempt + 1,
                max_attempts=attempts,
                retry_in=round(delay, 2),
                error=str(e),
            )
            await sleep(delay)

    # Unreachable: the loop either returns or raises
    raise RuntimeError("retry_async exited without a result")
