"""Default configuration parameters for the fee distribution engine."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class AnalyzerParams:
    """Market analyzer window sizes and recommendation thresholds."""
    max_history: int = 100                # Ring size per series
    rsi_period: int = 14
    short_ma_period: int = 5
    long_ma_period: int = 20
    velocity_lookback: int = 5
    volatility_window: int = 20
    trade_window: int = 50
    trend_window: int = 20

    # Recommendation thresholds
    min_confidence: float = 30.0          # Below this -> WAIT
    strong_signal: float = 70.0
    signal: float = 60.0
    decision_confidence: float = 40.0     # should_buy / should_sell gate


@dataclass(frozen=True)
class AllocationParams:
    """Initial channel split (percent, must sum to 100)."""
    market_making: int = 25
    buyback_burn: int = 25
    liquidity: int = 25
    creator_revenue: int = 25


@dataclass(frozen=True)
class DistributionParams:
    """Distribution cycle parameters. Amounts are in smallest units (lamports)."""
    min_fee_reserve: int = 1_000_000          # 0.001 SOL kept back for network fees
    operator_fee_bps: int = 100               # 1% of every claim
    operator_wallet: str = ""                 # Empty disables the operator fee
    creator_wallet: str = ""                  # Empty means the operating wallet

    # Market making
    sell_rsi_threshold: float = 70.0
    sell_fraction_pct: int = 10               # Share of held tokens sold when overbought

    # Buyback & burn
    min_buyback_amount: int = 1_000_000       # Below this the channel only burns

    # Liquidity
    liquidity_slippage: float = 0.05
    liquidity_prebuy_fraction: float = 0.5    # Share of the allocation spent on a token shortfall
    liquidity_token_buffer_pct: int = 90      # Deposit this share of held tokens

    transaction_log_size: int = 100


@dataclass(frozen=True)
class TradeParams:
    """Trade-execution API parameters."""
    api_url: str = "https://pumpportal.fun/api"
    min_call_interval: float = 1.5            # Seconds between submissions
    slippage_pct: int = 5
    priority_fee: float = 0.0005
    claim_priority_fee: float = 0.000005
    pool: str = "auto"
    request_timeout: float = 30.0
    settle_delay: float = 3.0                 # Pause after sending a trade
    claim_settle_delay: float = 5.0           # Pause before reading the post-claim balance
    claim_tx_fee: int = 5000                  # Estimated network fee added back to a claim
    quote_decimals: int = 9
    token_decimals: int = 6


@dataclass(frozen=True)
class RetryParams:
    """Retry policy for trade and claim submissions."""
    max_attempts: int = 4
    base_delay: float = 2.0
    jitter: float = 2.0


@dataclass(frozen=True)
class BurnPollParams:
    """Settlement-latency polling before burning freshly bought tokens."""
    max_attempts: int = 6
    interval: float = 5.0
    final_check: bool = True


@dataclass(frozen=True)
class PriceFeedParams:
    """Price source endpoints and caching."""
    aggregator_url: str = "https://api.dexscreener.com/latest/dex/tokens"
    bonding_curve_url: str = "https://frontend-api.pump.fun"
    spot_oracle_url: str = "https://api.jup.ag/price/v2"
    request_timeout: float = 5.0
    cache_ttl: float = 10.0


@dataclass(frozen=True)
class PoolParams:
    """Pool state lookup parameters."""
    state_cache_ttl: float = 30.0


@dataclass(frozen=True)
class SchedulerParams:
    """Auto-claim loop parameters."""
    claim_interval: float = 300.0
    update_price_first: bool = True


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    analyzer: AnalyzerParams = field(default_factory=AnalyzerParams)
    allocation: AllocationParams = field(default_factory=AllocationParams)
    distribution: DistributionParams = field(default_factory=DistributionParams)
    trade: TradeParams = field(default_factory=TradeParams)
    retry: RetryParams = field(default_factory=RetryParams)
    burn_poll: BurnPollParams = field(default_factory=BurnPollParams)
    price_feed: PriceFeedParams = field(default_factory=PriceFeedParams)
    pool: PoolParams = field(default_factory=PoolParams)
    scheduler: SchedulerParams = field(default_factory=SchedulerParams)


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        analyzer=AnalyzerParams(),
        allocation=AllocationParams(),
        distribution=DistributionParams(),
        trade=TradeParams(),
        retry=RetryParams(),
        burn_poll=BurnPollParams(),
        price_feed=PriceFeedParams(),
        pool=PoolParams(),
        scheduler=SchedulerParams(),
    )
