"""Market analyzer coordinating tick ingestion and indicator recomputation"""

import math
from datetime import datetime
from typing import Optional

import structlog

from ..config.defaults import AnalyzerParams
from ..data.models import MarketDataStore, TradeSample
from ..models.metrics import (
    CompositeScore,
    IndicatorSet,
    MarketAnalysis,
    Recommendation,
)
from ..utils.time import utc_now
from .composite import calculate_composite, recommend
from .indicators import (
    calculate_buy_pressure,
    calculate_market_phase,
    calculate_momentum,
    calculate_price_velocity,
    calculate_rsi,
    calculate_support_resistance,
    calculate_trend_strength,
    calculate_volatility,
    calculate_volume_trend,
)

logger = structlog.get_logger(__name__)


def _is_valid_amount(value: Optional[float], allow_zero: bool = False) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    if not math.isfinite(number):
        return False
    return number >= 0 if allow_zero else number > 0


class MarketAnalyzer:
    """
    Rolling-window analyzer producing ten indicators and a composite score.

    Indicators and score are recomputed wholesale on every ingestion once at
    least two prices are known. Bad ticks are dropped with a warning.
    """

    def __init__(self, params: Optional[AnalyzerParams] = None):
        self.params = params or AnalyzerParams()
        self.store = MarketDataStore(config=self.params)

        self._indicators = IndicatorSet()
        self._score = CompositeScore()

    @property
    def indicators(self) -> IndicatorSet:
        return self._indicators

    @property
    def score(self) -> CompositeScore:
        return self._score

    @property
    def data_points(self) -> int:
        return len(self.store.prices)

    @property
    def current_price(self) -> Optional[float]:
        return self.store.last_price

    def add_data_point(self, price: Optional[float] = None, volume: Optional[float] = None,
                       trade: Optional[TradeSample] = None,
                       timestamp: Optional[datetime] = None) -> None:
        """
        Ingest one tick into the bounded series and recompute.

        Args:
            price: Observed price, ignored unless finite and positive
            volume: Observed volume, ignored unless finite and non-negative
            trade: Buy or sell print
            timestamp: Tick time, defaults to now (UTC)
        """
        ts = timestamp or utc_now()

        if price is not None:
            if _is_valid_amount(price):
                self.store.add_price(float(price), ts)
            else:
                logger.warning("Dropping invalid price tick", price=price)

        if volume is not None:
            if _is_valid_amount(volume, allow_zero=True):
                self.store.add_volume(float(volume), ts)
            else:
                logger.warning("Dropping invalid volume tick", volume=volume)

        if trade is not None:
            if _is_valid_amount(trade.amount, allow_zero=True):
                self.store.add_trade(trade)
            else:
                logger.warning("Dropping invalid trade tick", amount=trade.amount)

        if len(self.store.prices) >= 2:
            self._recompute()

    def record_trade(self, is_buy: bool, amount: float,
                     timestamp: Optional[datetime] = None) -> None:
        ts = timestamp or utc_now()
        self.add_data_point(trade=TradeSample(is_buy=bool(is_buy), amount=amount, timestamp=ts),
                            timestamp=ts)

    def _recompute(self) -> None:
        p = self.params
        prices = self.store.price_values()
        volumes = self.store.volume_values()
        trades = self.store.trade_list()

        support, resistance = calculate_support_resistance(prices)

        self._indicators = IndicatorSet(
            rsi=calculate_rsi(prices, p.rsi_period),
            momentum=calculate_momentum(prices, p.short_ma_period, p.long_ma_period),
            volume_trend=calculate_volume_trend(volumes),
            price_velocity=calculate_price_velocity(prices, p.velocity_lookback),
            volatility=calculate_volatility(prices, p.volatility_window),
            buy_pressure=calculate_buy_pressure(trades, p.trade_window),
            support=support,
            resistance=resistance,
            trend_strength=calculate_trend_strength(prices, p.trend_window),
            market_phase=calculate_market_phase(prices),
        )
        self._score = calculate_composite(self._indicators, len(prices))

        logger.debug(
            "Indicators recomputed",
            data_points=len(prices),
            rsi=round(self._indicators.rsi, 2),
            buy_score=round(self._score.buy_score, 2),
            confidence=round(self._score.confidence, 2),
        )

    def get_recommendation(self) -> Recommendation:
        return recommend(self._score, self.params)

    def get_analysis(self) -> MarketAnalysis:
        """Snapshot of indicators, score and recommendation."""
        return MarketAnalysis(
            indicators=self._indicators,
            score=self._score,
            recommendation=self.get_recommendation(),
            data_points=self.data_points,
            last_update=self.store.last_update,
        )

    def should_buy(self, threshold: Optional[float] = None) -> bool:
        threshold = self.params.signal if threshold is None else threshold
        return (self._score.buy_score >= threshold
                and self._score.confidence >= self.params.decision_confidence)

    def should_sell(self, threshold: Optional[float] = None) -> bool:
        threshold = self.params.signal if threshold is None else threshold
        return (self._score.sell_score >= threshold
                and self._score.confidence >= self.params.decision_confidence)

    def is_overbought(self, rsi_threshold: float) -> bool:
        return self._indicators.rsi > rsi_threshold

    def reset(self) -> None:
        """Drop all history and return every indicator to neutral."""
        self.store.clear()
        self._indicators = IndicatorSet()
        self._score = CompositeScore()
