"""
Channel actions for fee distribution.

Each action spends one channel's planned amount and reports a
ChannelResult. Actions may raise; the executor isolates them.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from ..config.defaults import BurnPollParams, DistributionParams
from ..errors import ExecutionError, SettlementFailure
from ..execution.polling import poll_until
from ..execution.settlement import SettlementClient
from ..execution.trade_client import TradeClient
from ..logging.config import get_distribution_logger
from ..metrics.analyzer import MarketAnalyzer
from ..models.distribution import Channel, ChannelResult, CumulativeStats
from .pool import (
    Bonded,
    PoolSnapshot,
    PoolState,
    PoolStateLookup,
    PreBond,
    quote_deposit_from_base,
    quote_deposit_from_quote,
)

logger = get_distribution_logger(__name__)


class ChannelActions:
    """Trade, burn, deposit and transfer actions for one token and wallet."""

    def __init__(
        self,
        mint: str,
        trade_client: TradeClient,
        settlement: SettlementClient,
        analyzer: MarketAnalyzer,
        stats: CumulativeStats,
        params: Optional[DistributionParams] = None,
        burn_poll: Optional[BurnPollParams] = None,
        pools: Optional[PoolStateLookup] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.mint = mint
        self.trade_client = trade_client
        self.settlement = settlement
        self.analyzer = analyzer
        self.stats = stats
        self.params = params or DistributionParams()
        self.burn_poll = burn_poll or BurnPollParams()
        self.pools = pools
        self.creator_wallet = self.params.creator_wallet
        self._sleep = sleep

    def for_channel(self, channel: Channel) -> Callable[[int], Awaitable[ChannelResult]]:
        return {
            Channel.MARKET_MAKING: self.market_making,
            Channel.BUYBACK_BURN: self.buyback_burn,
            Channel.LIQUIDITY: self.liquidity,
            Channel.CREATOR_REVENUE: self.creator_revenue,
        }[channel]

    @staticmethod
    def _rejected(channel: Channel, action: str) -> ChannelResult:
        return ChannelResult(channel=channel, amount=0, success=True,
                             action=f"{action}_rejected")

    # Market making

    async def market_making(self, amount: int) -> ChannelResult:
        """
        Sell a slice of held tokens when overbought, otherwise buy.

        A sell leaves the allocation in the wallet, so it reports amount 0.
        """
        channel = Channel.MARKET_MAKING
        rsi = self.analyzer.indicators.rsi

        if rsi > self.params.sell_rsi_threshold:
            balance = await self.settlement.get_token_account_balance(self.mint)
            if balance <= 0:
                logger.info("No tokens to sell", channel=channel.value, rsi=round(rsi, 1))
                return ChannelResult.skipped(channel, "skip_no_tokens")

            tokens = balance * self.params.sell_fraction_pct // 100
            if tokens <= 0:
                return ChannelResult.skipped(channel, "skip_low_balance")

            trade = await self.trade_client.sell(self.mint, tokens)
            if not trade.success:
                return ChannelResult.failed(channel, trade.error or "sell failed")
            if not trade.executed:
                return self._rejected(channel, "sell")

            self.stats.log_transaction("market_make_sell", tokens, trade.signature)
            return ChannelResult(channel=channel, amount=0, success=True,
                                 action="sell", signature=trade.signature)

        trade = await self.trade_client.buy(self.mint, amount)
        if not trade.success:
            return ChannelResult.failed(channel, trade.error or "buy failed")
        if not trade.executed:
            return self._rejected(channel, "buy")

        self.stats.log_transaction("market_make_buy", amount, trade.signature)
        return ChannelResult(channel=channel, amount=amount, success=True,
                             action="buy", signature=trade.signature)

    # Buyback & burn

    async def _burn(self, tokens: int) -> int:
        """Burn ``tokens``; returns the amount burned, 0 on failure."""
        try:
            signature = await self.settlement.burn(self.mint, tokens)
        except ExecutionError as e:
            logger.warning("Burn failed", tokens=tokens, error=str(e))
            return 0

        self.stats.log_transaction("burn", tokens, signature)
        return tokens

    async def wait_and_burn(self) -> int:
        """Poll for settled tokens and burn them; 0 if they never arrive."""
        balance = await poll_until(
            lambda: self.settlement.get_token_account_balance(self.mint),
            lambda value: value > 0,
            max_attempts=self.burn_poll.max_attempts,
            interval=self.burn_poll.interval,
            final_check=self.burn_poll.final_check,
            sleep=self._sleep,
            operation="burn_wait",
        )
        if not balance:
            logger.info("Purchased tokens did not arrive in time", mint=self.mint)
            return 0
        return await self._burn(balance)

    async def buyback_burn(self, amount: int) -> ChannelResult:
        """Burn held tokens, buy more, then burn the purchase once it settles."""
        channel = Channel.BUYBACK_BURN
        burned = 0

        held = await self.settlement.get_token_account_balance(self.mint)
        if held > 0:
            burned += await self._burn(held)

        if amount <= self.params.min_buyback_amount:
            return ChannelResult(channel=channel, amount=0, success=True,
                                 action="burn_only", burned=burned)

        trade = await self.trade_client.buy(self.mint, amount)
        if not trade.success:
            result = ChannelResult.failed(channel, trade.error or "buy failed")
            result.burned = burned
            return result
        if not trade.executed:
            result = self._rejected(channel, "buy")
            result.burned = burned
            return result

        self.stats.log_transaction("buyback", amount, trade.signature)
        burned += await self.wait_and_burn()

        return ChannelResult(channel=channel, amount=amount, success=True,
                             action="buyback_burn", signature=trade.signature, burned=burned)

    # Liquidity

    async def _pool_state(self) -> PoolState:
        """Current pool state; a failed lookup is treated as pre-bond."""
        if self.pools is None:
            return PreBond()
        try:
            return await self.pools.get(self.mint)
        except Exception as e:
            logger.warning("Pool state lookup failed, assuming pre-bond",
                           mint=self.mint, error=str(e), exc_info=True)
            return PreBond()

    async def _prebuy(self, amount: int, have: int, need: int) -> int:
        """Buy part of the allocation as the token side; returns the quote spent."""
        prebuy = int(amount * self.params.liquidity_prebuy_fraction)
        logger.info("Buying token side before deposit", have=have, need=need, prebuy=prebuy)

        trade = await self.trade_client.buy(self.mint, prebuy)
        if not trade.executed:
            raise SettlementFailure(f"Pre-buy failed: {trade.error or trade.reason}",
                                    operation="liquidity_prebuy")
        return prebuy

    async def _await_prebuy_tokens(self, before: int) -> tuple[int, PoolSnapshot]:
        """Wait for pre-bought tokens, then re-read the pool they will join."""
        arrived = await poll_until(
            lambda: self.settlement.get_token_account_balance(self.mint),
            lambda value: value > before,
            max_attempts=self.burn_poll.max_attempts,
            interval=self.burn_poll.interval,
            final_check=self.burn_poll.final_check,
            sleep=self._sleep,
            operation="liquidity_prebuy_wait",
        )
        if arrived is None:
            raise SettlementFailure("No tokens after pre-buy", operation="liquidity_prebuy")

        refreshed = await self.pools.get(self.mint, force_refresh=True)
        if not isinstance(refreshed, Bonded):
            raise SettlementFailure("Pool disappeared after pre-buy", operation="liquidity")
        return arrived, refreshed.snapshot

    async def _pool_deposit(self, snapshot: PoolSnapshot, balance: int, available: int) -> str:
        """Proportional two-sided deposit of held tokens, spending at most ``available``."""
        slippage = self.params.liquidity_slippage
        base_amount = balance * self.params.liquidity_token_buffer_pct // 100
        deposit = quote_deposit_from_base(snapshot, base_amount, slippage)

        if deposit.max_quote > available:
            deposit = quote_deposit_from_quote(snapshot, int(available / (1 + slippage)), slippage)

        if deposit.lp_tokens <= 0 or deposit.base <= 0:
            raise ValueError("Deposit too small for the pool")

        return await self.pools.client.deposit(
            snapshot,
            base_amount=deposit.base,
            max_quote_amount=deposit.max_quote,
            lp_amount=deposit.lp_tokens,
        )

    async def liquidity(self, amount: int) -> ChannelResult:
        """
        Deposit into the open pool when bonded; buy tokens otherwise.

        Any failure on the pool path falls back to a plain buy of whatever
        part of ``amount`` the pre-buy did not already spend.
        """
        channel = Channel.LIQUIDITY
        state = await self._pool_state()
        spent = 0

        if isinstance(state, Bonded):
            snapshot = state.snapshot
            try:
                balance = await self.settlement.get_token_account_balance(self.mint)
                needed = quote_deposit_from_quote(snapshot, amount, self.params.liquidity_slippage)
                if balance < needed.base:
                    spent = await self._prebuy(amount, balance, needed.base)
                    self.stats.log_transaction("lp_prebuy", spent)
                    balance, snapshot = await self._await_prebuy_tokens(balance)
                signature = await self._pool_deposit(snapshot, balance, amount - spent)
            except Exception as e:
                logger.warning("Pool deposit failed, falling back to buy",
                               pool=snapshot.pool_address, spent=spent, error=str(e),
                               exc_info=True)
            else:
                self.stats.log_transaction("lp_add_pool", amount - spent, signature)
                return ChannelResult(channel=channel, amount=amount, success=True,
                                     action="lp_add_pool", signature=signature)

        remaining = amount - spent
        if remaining <= 0:
            return ChannelResult(channel=channel, amount=spent, success=True, action="lp_prebuy")

        trade = await self.trade_client.buy(self.mint, remaining)
        if not trade.success:
            result = ChannelResult.failed(channel, trade.error or "buy failed")
            result.amount = spent
            return result
        if not trade.executed:
            result = self._rejected(channel, "lp_add")
            result.amount = spent
            return result

        self.stats.log_transaction("lp_add", remaining, trade.signature)
        return ChannelResult(channel=channel, amount=amount, success=True,
                             action="lp_add", signature=trade.signature)

    # Creator revenue

    async def creator_revenue(self, amount: int) -> ChannelResult:
        """Retain in the operating wallet, or transfer to the payout wallet."""
        channel = Channel.CREATOR_REVENUE
        destination = self.creator_wallet

        if not destination or destination == self.settlement.wallet_address:
            self.stats.log_transaction("creator_revenue", amount, "retained")
            return ChannelResult(channel=channel, amount=amount, success=True, action="retained")

        signature = await self.settlement.transfer(destination, amount)
        if not await self.settlement.confirm_transaction(signature):
            return ChannelResult.failed(channel, f"Transfer {signature} not confirmed")

        self.stats.log_transaction("creator_revenue", amount, signature)
        return ChannelResult(channel=channel, amount=amount, success=True,
                             action="transferred", signature=signature)
