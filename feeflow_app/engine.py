"""
Fee distribution engine coordinator.

Owns one token's market analyzer, allocation manager, distribution executor
and clients, and exposes the operations used by a session or dashboard
layer: allocation changes, price ticks, and claim-and-distribute cycles.
"""

import asyncio
from collections import deque
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import structlog

from .allocation.manager import AllocationManager
from .config.defaults import DefaultConfig, get_default_config
from .config.loader import ConfigLoader
from .data.models import PriceQuote
from .distribution.channels import ChannelActions
from .distribution.executor import DistributionExecutor
from .distribution.pool import PoolClient, PoolStateLookup
from .errors import ConfigurationError, ValidationError, ValidationIssue
from .execution.price_feed import PriceFeed
from .execution.retry import RetryPolicy
from .execution.settlement import SettlementClient
from .execution.trade_client import TradeClient
from .logging.config import get_distribution_logger
from .metrics.analyzer import MarketAnalyzer
from .models.distribution import (
    CumulativeStats,
    CycleResult,
    DistributionResult,
    OperatorFeeResult,
)
from .persistence.stats_store import InMemoryStatsStore, StatsStore

logger = structlog.get_logger(__name__)
audit_logger = get_distribution_logger(__name__)


class FeeEngine:
    """
    Market-adaptive fee distribution engine for one token and wallet.

    Cycles on one instance are serialized by an asyncio lock; separate
    instances run independently.
    """

    def __init__(
        self,
        token_mint: str,
        settlement: Optional[SettlementClient] = None,
        config: Optional[DefaultConfig] = None,
        trade_client: Optional[TradeClient] = None,
        price_feed: Optional[PriceFeed] = None,
        pool_client: Optional[PoolClient] = None,
        stats_store: Optional[StatsStore] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if not token_mint:
            raise ConfigurationError("Token mint is required", setting="token_mint")

        self.token_mint = token_mint
        self.config = config or get_default_config()
        self.settlement = settlement
        self._sleep = sleep

        if trade_client is None and settlement is not None:
            trade_client = TradeClient(
                settlement,
                params=self.config.trade,
                retry_policy=RetryPolicy.from_params(self.config.retry),
                sleep=sleep,
            )
        self.trade_client = trade_client
        self.price_feed = price_feed or PriceFeed(self.config.price_feed)
        self.pools = (PoolStateLookup(pool_client, ttl_seconds=self.config.pool.state_cache_ttl)
                      if pool_client is not None else None)
        self.stats_store = stats_store or InMemoryStatsStore()

        self.analyzer = MarketAnalyzer(self.config.analyzer)
        self.allocations = AllocationManager(self.config.allocation)
        self.stats = CumulativeStats(
            transactions=deque(maxlen=self.config.distribution.transaction_log_size)
        )
        self.creator_wallet = self.config.distribution.creator_wallet

        self._actions: Optional[ChannelActions] = None
        self._executor: Optional[DistributionExecutor] = None
        self._stats_loaded = False
        self._last_quote: Optional[PriceQuote] = None
        self._lock = asyncio.Lock()

        logger.info("Fee engine initialized", token_mint=token_mint,
                    has_settlement=settlement is not None,
                    has_pool_client=pool_client is not None)

    @classmethod
    def from_config_dir(
        cls,
        token_mint: str,
        settlement: Optional[SettlementClient] = None,
        config_dir: Optional[Path] = None,
        overrides: Optional[dict[str, Any]] = None,
        **kwargs: Any,
    ) -> "FeeEngine":
        """Build an engine with configuration merged from YAML files."""
        loader = ConfigLoader.create(config_dir)
        config = loader.load_config(token_mint, overrides)
        return cls(token_mint, settlement=settlement, config=config, **kwargs)

    # Collaborator wiring

    def _require_executor(self) -> DistributionExecutor:
        if self.settlement is None:
            raise ConfigurationError("No settlement client configured", setting="settlement")
        if self.trade_client is None:
            raise ConfigurationError("No trade client configured", setting="trade_client")

        if self._executor is None:
            self._actions = ChannelActions(
                self.token_mint,
                trade_client=self.trade_client,
                settlement=self.settlement,
                analyzer=self.analyzer,
                stats=self.stats,
                params=self.config.distribution,
                burn_poll=self.config.burn_poll,
                pools=self.pools,
                sleep=self._sleep,
            )
            self._actions.creator_wallet = self.creator_wallet
            self._executor = DistributionExecutor(
                self.allocations, self._actions, self.stats, self.config.distribution
            )
        return self._executor

    async def _ensure_stats_loaded(self) -> None:
        if self._stats_loaded:
            return
        stored = await self.stats_store.load(self.token_mint)
        if stored is not None:
            self.stats = stored
            if self._actions is not None:
                self._actions.stats = stored
            if self._executor is not None:
                self._executor.stats = stored
            logger.info("Stats restored", token_mint=self.token_mint,
                        total_claimed=stored.total_claimed)
        self._stats_loaded = True

    # Allocation and settings

    def set_allocations(self, allocations: dict[Any, Any]) -> dict[str, int]:
        """
        Replace the channel split.

        Raises:
            ValidationError: The split is malformed or does not sum to 100
        """
        updated = self.allocations.set_allocations(allocations)
        return {c.value: pct for c, pct in updated.items()}

    def set_feature_enabled(self, channel: Any, enabled: bool) -> None:
        self.allocations.set_feature_enabled(channel, enabled)

    def set_creator_wallet(self, address: str) -> None:
        """Set the payout wallet for the creator revenue channel."""
        if not isinstance(address, str) or not address.strip():
            raise ValidationError(
                "Creator wallet must be a non-empty address",
                issues=[ValidationIssue(field="creator_wallet", message="Empty address", value=address)]
            )
        self.creator_wallet = address.strip()
        if self._actions is not None:
            self._actions.creator_wallet = self.creator_wallet
        logger.info("Creator wallet updated", token_mint=self.token_mint,
                    creator_wallet=self.creator_wallet)

    # Market data

    async def update_price(self) -> Optional[PriceQuote]:
        """
        Fetch a quote and ingest it as one tick.

        Returns:
            The quote, or None when every price source failed (the previous
            price is kept)
        """
        quote = await self.price_feed.get_price(self.token_mint)
        if quote is None:
            logger.warning("Price update failed, keeping previous price",
                           token_mint=self.token_mint, current_price=self.current_price)
            return None

        # A cached quote was already ingested
        if quote is not self._last_quote:
            self.analyzer.add_data_point(price=quote.price, volume=quote.volume)
            self._last_quote = quote
        return quote

    def record_trade(self, is_buy: bool, amount: float) -> None:
        self.analyzer.record_trade(is_buy, amount)

    @property
    def current_price(self) -> Optional[float]:
        return self.analyzer.current_price

    # Cycles

    async def distribute_fees(self, total: int) -> DistributionResult:
        """Distribute ``total`` smallest units without claiming first."""
        async with self._lock:
            executor = self._require_executor()
            await self._ensure_stats_loaded()
            result = await executor.distribute_fees(total)
            await self.stats_store.save(self.token_mint, self.stats)
            return result

    async def _forward_operator_fee(self, claimed: int) -> tuple[int, OperatorFeeResult]:
        """
        Split the operator fee off a claim and try to forward it.

        Returns:
            (amount left for distribution, fee result); a failed transfer
            leaves the fee in the wallet without blocking distribution
        """
        params = self.config.distribution
        if not params.operator_wallet or params.operator_fee_bps <= 0:
            return claimed, OperatorFeeResult()

        fee = claimed * params.operator_fee_bps // 10_000
        if fee <= 0:
            return claimed, OperatorFeeResult()

        try:
            signature = await self.settlement.transfer(params.operator_wallet, fee)
        except Exception as e:
            audit_logger.warning("Operator fee transfer failed", fee=fee, error=str(e),
                                 error_type=type(e).__name__, exc_info=True)
            return claimed - fee, OperatorFeeResult(amount=0, success=False, error=str(e))

        self.stats.operator_fees += fee
        self.stats.log_transaction("operator_fee", fee, signature)
        audit_logger.info("Operator fee forwarded", fee=fee, signature=signature)
        return claimed - fee, OperatorFeeResult(amount=fee, success=True, signature=signature)

    async def claim_and_distribute(self) -> CycleResult:
        """
        Claim pending fees, take the operator fee and distribute the rest.

        Always returns a CycleResult; inspect ``error`` and ``failed`` rather
        than relying on the absence of an exception.

        Raises:
            ConfigurationError: No settlement or trade client configured
        """
        async with self._lock:
            executor = self._require_executor()
            await self._ensure_stats_loaded()

            claim = await self.trade_client.claim_fees(self.token_mint)
            if not claim.success:
                return CycleResult(error=claim.error)

            if claim.claimed <= 0:
                logger.info("Nothing claimed", token_mint=self.token_mint, reason=claim.reason)
                return CycleResult(claim_signature=claim.signature,
                                   reason=claim.reason or "nothing_to_claim")

            self.stats.total_claimed += claim.claimed
            self.stats.log_transaction("claim", claim.claimed, claim.signature)

            remainder, operator_fee = await self._forward_operator_fee(claim.claimed)
            distribution = await executor.distribute_fees(remainder)
            await self.stats_store.save(self.token_mint, self.stats)

            audit_logger.info(
                "Cycle completed",
                token_mint=self.token_mint,
                claimed=claim.claimed,
                operator_fee=operator_fee.amount,
                distributed=distribution.total_distributed,
                failed=distribution.total_failed,
            )

            return CycleResult(
                claimed=claim.claimed,
                operator_fee=operator_fee.amount,
                distributed=distribution.total_distributed,
                failed=distribution.total_failed,
                pending_retry=self.stats.pending_retry,
                results=distribution.results,
                claim_signature=claim.signature,
                reason=distribution.skipped_reason,
            )

    # Status

    def get_status(self) -> dict[str, Any]:
        return {
            "token_mint": self.token_mint,
            "allocations": {c.value: pct for c, pct in self.allocations.get_allocations().items()},
            "features": {c.value: on for c, on in self.allocations.get_features().items()},
            "stats": self.stats.to_dict(),
            "analysis": self.analyzer.get_analysis().to_dict(),
            "current_price": self.current_price,
            "price_source": self._last_quote.source if self._last_quote else None,
            "creator_wallet": self.creator_wallet or None,
        }

    async def close(self) -> None:
        if self.trade_client is not None:
            await self.trade_client.close()
        await self.price_feed.close()
