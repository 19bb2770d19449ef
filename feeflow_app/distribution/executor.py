"""Fee distribution executor coordinating channel actions"""

from typing import Optional

from ..allocation.manager import AllocationManager
from ..config.defaults import DistributionParams
from ..logging.config import get_distribution_logger, log_channel_result
from ..models.distribution import (
    CHANNEL_ORDER,
    Channel,
    ChannelResult,
    CumulativeStats,
    DistributionResult,
)
from ..utils.time import format_units
from .channels import ChannelActions

logger = get_distribution_logger(__name__)


def plan_distribution(distributable: int, allocations: dict[Channel, int]) -> dict[Channel, int]:
    """Per-channel amounts: floor(distributable * pct / 100)."""
    return {c: distributable * allocations.get(c, 0) // 100 for c in CHANNEL_ORDER}


class DistributionExecutor:
    """
    Turns a lump sum into per-channel actions.

    Channels run one after another in fixed order. A channel that raises or
    reports failure is recorded as failed and the unspent part of its planned
    amount is added to ``pending_retry``; sibling channels still run.
    """

    def __init__(self, allocations: AllocationManager, actions: ChannelActions,
                 stats: CumulativeStats, params: Optional[DistributionParams] = None):
        self.allocations = allocations
        self.actions = actions
        self.stats = stats
        self.params = params or DistributionParams()

    async def distribute_fees(self, total: int) -> DistributionResult:
        """
        Distribute ``total`` (smallest units) across enabled channels.

        Args:
            total: Amount available for distribution, snapshotted by the caller

        Returns:
            DistributionResult; a no-op result when nothing is left after the
            fee reserve
        """
        distributable = total - self.params.min_fee_reserve
        if distributable <= 0:
            logger.info("Amount below fee reserve, skipping distribution",
                        total=total, reserve=self.params.min_fee_reserve)
            return DistributionResult.noop(total, "below_fee_reserve")

        allocations = self.allocations.get_allocations()
        enabled = self.allocations.enabled_channels()
        plan = plan_distribution(distributable, allocations)

        logger.info(
            "Distribution started",
            total=total,
            distributable=distributable,
            distributable_quote=format_units(distributable),
            plan={c.value: a for c, a in plan.items()},
            enabled=[c.value for c in enabled],
        )

        result = DistributionResult(total=total, distributable=distributable, plan=plan)

        for channel in enabled:
            planned = plan[channel]
            if planned <= 0:
                continue

            channel_result = await self._run_channel(channel, planned)
            result.results[channel] = channel_result

            result.total_distributed += channel_result.amount
            if not channel_result.success:
                result.total_failed += planned - channel_result.amount

            log_channel_result(
                logger,
                channel.value,
                planned,
                channel_result.success,
                action=channel_result.action,
                error=channel_result.error,
                context={"amount": channel_result.amount, "burned": channel_result.burned}
            )

        self.stats.fold_distribution(result)

        logger.info(
            "Distribution finished",
            distributed=result.total_distributed,
            failed=result.total_failed,
            failed_channels=[c.value for c in result.failed_channels],
            pending_retry=self.stats.pending_retry,
        )
        return result

    async def _run_channel(self, channel: Channel, planned: int) -> ChannelResult:
        action = self.actions.for_channel(channel)
        try:
            return await action(planned)
        except Exception as e:
            logger.error("Channel raised", channel=channel.value, planned_amount=planned,
                         error=str(e), error_type=type(e).__name__, exc_info=True)
            return ChannelResult.failed(channel, str(e) or type(e).__name__)
