"""
Distribution module.

Channel actions, constant-product pool math and the executor that runs one
distribution cycle.
"""

from .channels import ChannelActions
from .executor import DistributionExecutor, plan_distribution
from .pool import Bonded, PoolClient, PoolSnapshot, PoolState, PreBond

__all__ = [
    "ChannelActions",
    "DistributionExecutor",
    "plan_distribution",
    "Bonded",
    "PoolClient",
    "PoolSnapshot",
    "PoolState",
    "PreBond",
]
