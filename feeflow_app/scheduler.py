"""Periodic claim-and-distribute loop for one engine."""

import asyncio
from typing import Optional

import structlog

from .config.defaults import SchedulerParams
from .engine import FeeEngine
from .errors import ConfigurationError
from .models.distribution import CycleResult

logger = structlog.get_logger(__name__)


class AutoClaimLoop:
    """
    Runs ``update_price`` and ``claim_and_distribute`` every ``claim_interval``.

    ``stop()`` prevents the next cycle; a cycle already running finishes.
    Loops for different engines are independent and may run concurrently.
    """

    def __init__(self, engine: FeeEngine, params: Optional[SchedulerParams] = None):
        self.engine = engine
        self.params = params or engine.config.scheduler
        self.cycles = 0
        self.last_result: Optional[CycleResult] = None
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        if self.running:
            return self._task
        self._stop_event.clear()
        self._task = asyncio.create_task(self.run(), name=f"auto-claim:{self.engine.token_mint}")
        logger.info("Auto-claim started", token_mint=self.engine.token_mint,
                    interval=self.params.claim_interval)
        return self._task

    def stop(self) -> None:
        self._stop_event.set()
        logger.info("Auto-claim stopping", token_mint=self.engine.token_mint)

    async def wait_stopped(self) -> None:
        if self._task is not None:
            await self._task

    async def run_once(self) -> CycleResult:
        if self.params.update_price_first:
            await self.engine.update_price()
        result = await self.engine.claim_and_distribute()
        self.cycles += 1
        self.last_result = result
        logger.info("Auto-claim cycle", token_mint=self.engine.token_mint, cycle=self.cycles,
                    claimed=result.claimed, distributed=result.distributed,
                    failed=result.failed, error=result.error)
        return result

    async def run(self) -> None:
        while not self._stop_event.is_set():
            try:
                await self.run_once()
            except ConfigurationError:
                logger.error("Auto-claim stopped: engine is not configured",
                             token_mint=self.engine.token_mint)
                raise
            except Exception as e:
                logger.error("Auto-claim cycle failed", token_mint=self.engine.token_mint,
                             error=str(e), exc_info=True)

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.params.claim_interval)
            except asyncio.TimeoutError:
                continue

        logger.info("Auto-claim stopped", token_mint=self.engine.token_mint, cycles=self.cycles)
