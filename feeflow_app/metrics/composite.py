"""Composite buy/sell scoring and recommendations"""

import math

from ..config.defaults import AnalyzerParams
from ..models.metrics import (
    Action,
    CompositeScore,
    IndicatorSet,
    Recommendation,
)

WEIGHTS: dict[str, float] = {
    "rsi": 0.15,
    "momentum": 0.12,
    "volume_trend": 0.08,
    "price_velocity": 0.10,
    "volatility": 0.08,
    "buy_pressure": 0.15,
    "support": 0.08,
    "resistance": 0.04,
    "trend_strength": 0.12,
    "market_phase": 0.08,
}

# Low RSI and distance from resistance favour buying
INVERTED = frozenset({"rsi", "resistance"})


def buy_factors(indicators: IndicatorSet) -> dict[str, float]:
    """Transform indicators into buy-oriented factors."""
    factors = indicators.to_dict()
    for name in INVERTED:
        factors[name] = 100.0 - factors[name]
    return factors


def calculate_confidence(indicators: IndicatorSet, sample_count: int) -> float:
    """
    Confidence from data availability and indicator agreement.

    confidence = 0.4 x min(100, 2 x samples) + 0.6 x (100 - stddev(indicators))
    """
    data_confidence = min(100.0, sample_count * 2.0)

    values = indicators.values()
    avg = sum(values) / len(values)
    variance = sum((v - avg) ** 2 for v in values) / len(values)
    consistency = max(0.0, 100.0 - math.sqrt(variance))

    return data_confidence * 0.4 + consistency * 0.6


def calculate_composite(indicators: IndicatorSet, sample_count: int) -> CompositeScore:
    """Weighted composite score over the ten indicators."""
    factors = buy_factors(indicators)
    buy_score = sum(factors[name] * weight for name, weight in WEIGHTS.items())
    buy_score = max(0.0, min(100.0, buy_score))

    return CompositeScore.from_buy_score(
        buy_score,
        calculate_confidence(indicators, sample_count),
    )


def recommend(score: CompositeScore, params: AnalyzerParams = AnalyzerParams()) -> Recommendation:
    """Map a composite score to an action. Pure; keeps no state."""
    if score.confidence < params.min_confidence:
        return Recommendation(Action.WAIT, "Insufficient data", score.confidence)

    if score.buy_score >= params.strong_signal:
        return Recommendation(Action.STRONG_BUY, "Multiple bullish signals", score.confidence)
    if score.buy_score >= params.signal:
        return Recommendation(Action.BUY, "Favorable conditions", score.confidence)
    if score.sell_score >= params.strong_signal:
        return Recommendation(Action.STRONG_SELL, "Multiple bearish signals", score.confidence)
    if score.sell_score >= params.signal:
        return Recommendation(Action.SELL, "Unfavorable conditions", score.confidence)

    return Recommendation(Action.HOLD, "Neutral market", score.confidence)
