"""
Input validation and configuration error classifications.

These are the only errors the engine raises to its callers: malformed
allocation input (rejected before any state is mutated) and missing
configuration.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ValidationIssue:
    """Represents a single validation problem."""
    field: str
    message: str
    value: Any


class ValidationError(ValueError):
    """Malformed allocation or toggle input."""

    def __init__(self, message: str, issues: Optional[List[ValidationIssue]] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.issues = issues or []
        self.context = context or {}
        self.recoverable = False


class UnknownChannelError(ValidationError):
    """Channel name is not one of the four distribution channels."""

    def __init__(self, channel: Any, **kwargs):
        super().__init__(f"Unknown channel: {channel}", **kwargs)
        self.channel = channel


class RedistributionError(ValidationError):
    """Redistribution postcondition violated (deltas do not sum to the amount)."""

    def __init__(self, message: str, amount: Optional[int] = None,
                 deltas: Optional[Dict[str, int]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.amount = amount
        self.deltas = deltas or {}


class ConfigurationError(Exception):
    """Required collaborator or setting is missing."""

    def __init__(self, message: str, setting: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.setting = setting
        self.context = context or {}
        self.recoverable = False
