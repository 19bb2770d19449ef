"""
Persistence module.

Stats store interface consumed by the engine.
"""

from .stats_store import InMemoryStatsStore, StatsStore

__all__ = ["InMemoryStatsStore", "StatsStore"]
