"""
Error classification system for the fee distribution engine.

This module provides the structured exception hierarchy for validation,
configuration and execution failures encountered while claiming and
distributing fees.
"""

from .validation import (
    ValidationIssue,
    ValidationError,
    UnknownChannelError,
    RedistributionError,
    ConfigurationError,
)
from .execution_failures import (
    ExecutionError,
    TransientNetworkError,
    BusinessRejection,
    SettlementFailure,
    TradeRequestError,
)
from .recovery import (
    RecoverableError,
    UnrecoverableError,
    GracefulDegradationError,
)

__all__ = [
    # Validation / configuration
    "ValidationIssue",
    "ValidationError",
    "UnknownChannelError",
    "RedistributionError",
    "ConfigurationError",
    # Execution failures
    "ExecutionError",
    "TransientNetworkError",
    "BusinessRejection",
    "SettlementFailure",
    "TradeRequestError",
    # Recovery categories
    "RecoverableError",
    "UnrecoverableError",
    "GracefulDegradationError",
]
