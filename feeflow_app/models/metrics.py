"""Data models for market analysis results"""

from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

NEUTRAL = 50.0


class Action(str, Enum):
    """Trading recommendation derived from the composite score."""
    WAIT = "WAIT"
    STRONG_BUY = "STRONG_BUY"
    BUY = "BUY"
    STRONG_SELL = "STRONG_SELL"
    SELL = "SELL"
    HOLD = "HOLD"


@dataclass(frozen=True)
class IndicatorSet:
    """The ten market indicators, each on a 0-100 scale (higher = more bullish)"""
    rsi: float = NEUTRAL
    momentum: float = NEUTRAL
    volume_trend: float = NEUTRAL
    price_velocity: float = NEUTRAL
    volatility: float = NEUTRAL
    buy_pressure: float = NEUTRAL
    support: float = NEUTRAL
    resistance: float = NEUTRAL
    trend_strength: float = NEUTRAL
    market_phase: float = NEUTRAL

    def values(self) -> list[float]:
        return list(asdict(self).values())

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class CompositeScore:
    """Weighted buy/sell score; sell_score is always 100 - buy_score"""
    buy_score: float = NEUTRAL
    sell_score: float = NEUTRAL
    confidence: float = 0.0

    @classmethod
    def from_buy_score(cls, buy_score: float, confidence: float) -> "CompositeScore":
        return cls(buy_score=buy_score, sell_score=100.0 - buy_score, confidence=confidence)


@dataclass(frozen=True)
class Recommendation:
    """Action recommendation with its reason"""
    action: Action
    reason: str
    confidence: float


@dataclass(frozen=True)
class MarketAnalysis:
    """Full analysis report for status endpoints"""
    indicators: IndicatorSet
    score: CompositeScore
    recommendation: Recommendation
    data_points: int
    last_update: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "metrics": self.indicators.to_dict(),
            "buy_score": round(self.score.buy_score, 1),
            "sell_score": round(self.score.sell_score, 1),
            "confidence": round(self.score.confidence),
            "recommendation": {
                "action": self.recommendation.action.value,
                "reason": self.recommendation.reason,
                "confidence": self.recommendation.confidence,
            },
            "data_points": self.data_points,
            "last_update": self.last_update.isoformat() if self.last_update else None,
        }
