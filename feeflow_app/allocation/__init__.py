"""
Allocation module.

Channel percentage map, feature toggles and the redistribution rule applied
when a channel is switched off.
"""

from .manager import AllocationManager, redistribute

__all__ = ["AllocationManager", "redistribute"]
