"""
Recovery strategy classifications for error handling.

These mixins categorize errors by how the distribution cycle reacts to
them: retry, stop and surface, or continue with reduced effect.
"""

from typing import Optional


class RecoverableError(Exception):
    """
    Mixin for errors that can be recovered from by retrying.

    ``retry_async`` fills in ``retry_count`` and ``max_retries`` when it
    gives up, so callers can tell a first-try failure from an exhausted one.
    """

    def __init__(self, message: str, retry_count: int = 0,
                 max_retries: int = 3, **kwargs):
        super().__init__(message)
        self.retry_count = retry_count
        self.max_retries = max_retries
        self.recoverable = True

    @property
    def retries_exhausted(self) -> bool:
        return self.retry_count >= self.max_retries


class UnrecoverableError(Exception):
    """Mixin for errors that must be surfaced to the caller."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message)
        self.recoverable = False


class GracefulDegradationError(Exception):
    """Mixin for errors that let the cycle continue with zero effect."""

    def __init__(self, message: str, degraded_functionality: Optional[str] = None,
                 fallback_strategy: str = "zero_effect", **kwargs):
        super().__init__(message)
        self.degraded_functionality = degraded_functionality
        self.fallback_strategy = fallback_strategy
        self.allows_degradation = True
