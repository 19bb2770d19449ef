"""Cumulative statistics persistence interface and in-memory store."""

import copy
from abc import ABC, abstractmethod
from typing import Optional

import structlog

from ..models.distribution import CumulativeStats

logger = structlog.get_logger(__name__)


class StatsStore(ABC):
    """Persists CumulativeStats per token mint."""

    @abstractmethod
    async def load(self, mint: str) -> Optional[CumulativeStats]:
        """Stored stats for ``mint``, or None if nothing was saved yet."""

    @abstractmethod
    async def save(self, mint: str, stats: CumulativeStats) -> None:
        """Replace the stored stats for ``mint``."""


class InMemoryStatsStore(StatsStore):
    """Process-local store; stats are copied in and out."""

    def __init__(self):
        self._stats: dict[str, CumulativeStats] = {}

    async def load(self, mint: str) -> Optional[CumulativeStats]:
        stats = self._stats.get(mint)
        return copy.deepcopy(stats) if stats is not None else None

    async def save(self, mint: str, stats: CumulativeStats) -> None:
        self._stats[mint] = copy.deepcopy(stats)
        logger.debug("Stats saved", mint=mint, total_claimed=stats.total_claimed,
                     total_distributed=stats.total_distributed,
                     pending_retry=stats.pending_retry)

    def __contains__(self, mint: str) -> bool:
        return mint in self._stats
