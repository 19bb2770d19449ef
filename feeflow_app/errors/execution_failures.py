"""
Execution error classifications for trade, claim and settlement calls.

The retry executor and the distribution channels dispatch on these types:
transient failures are retried, business rejections are treated as a
zero-effect success, and everything else marks the channel as failed.
"""

from typing import Any, Dict, Optional

from .recovery import GracefulDegradationError, RecoverableError, UnrecoverableError


class ExecutionError(Exception):
    """Base class for failures talking to the trade API or settlement network."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.operation = operation
        self.context = context or {}
        self.recoverable = False


class TransientNetworkError(ExecutionError, RecoverableError):
    """Network failure or timeout that is safe to retry."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 status_code: Optional[int] = None, **kwargs):
        ExecutionError.__init__(self, message, operation=operation,
                                context=kwargs.get("context"))
        self.status_code = status_code
        self.retry_count = kwargs.get("retry_count", 0)
        self.max_retries = kwargs.get("max_retries", 3)
        self.recoverable = True


class BusinessRejection(ExecutionError, GracefulDegradationError):
    """Non-retryable rejection such as a duplicate or already-processed request."""

    def __init__(self, message: str, reason: str = "rejected",
                 operation: Optional[str] = None, **kwargs):
        ExecutionError.__init__(self, message, operation=operation,
                                context=kwargs.get("context"))
        self.reason = reason
        self.degraded_functionality = operation
        self.fallback_strategy = "zero_effect"
        self.allows_degradation = True


class SettlementFailure(ExecutionError, UnrecoverableError):
    """The settlement network rejected or never confirmed a transaction."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 signature: Optional[str] = None, **kwargs):
        ExecutionError.__init__(self, message, operation=operation,
                                context=kwargs.get("context"))
        self.signature = signature


class TradeRequestError(ExecutionError, UnrecoverableError):
    """The trade API refused the request (client error, malformed parameters)."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 status_code: Optional[int] = None, **kwargs):
        ExecutionError.__init__(self, message, operation=operation,
                                context=kwargs.get("context"))
        self.status_code = status_code
