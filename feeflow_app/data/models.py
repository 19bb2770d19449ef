"""
Canonical data models for market ticks.

This module defines the immutable tick records ingested by the market
analyzer and the bounded store that holds their rolling history.
"""

from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..config.defaults import AnalyzerParams


@dataclass(frozen=True)
class PricePoint:
    """Observed price with its UTC timestamp."""
    price: float
    timestamp: datetime


@dataclass(frozen=True)
class VolumeSample:
    """Observed traded volume with its UTC timestamp."""
    volume: float
    timestamp: datetime


@dataclass(frozen=True)
class TradeSample:
    """Single buy or sell print."""
    is_buy: bool
    amount: float
    timestamp: datetime


@dataclass(frozen=True)
class PriceQuote:
    """Price observation returned by a price source."""
    price: float
    source: str
    volume: Optional[float] = None
    price_change: Optional[float] = None     # Percent over the source's short window
    buy_pressure: Optional[float] = None     # 0-100 when the source reports buys/sells


@dataclass
class MarketDataStore:
    """Rolling price, volume and trade history (one ring per series)."""

    config: AnalyzerParams = field(default_factory=AnalyzerParams)
    prices: deque = None    # deque[PricePoint]
    volumes: deque = None   # deque[VolumeSample]
    trades: deque = None    # deque[TradeSample]
    last_update: Optional[datetime] = None

    def __post_init__(self):
        """Initialize rings if not provided."""
        size = self.config.max_history
        if self.prices is None:
            self.prices = deque(maxlen=size)
        if self.volumes is None:
            self.volumes = deque(maxlen=size)
        if self.trades is None:
            self.trades = deque(maxlen=size)

    def add_price(self, price: float, timestamp: datetime) -> None:
        self.prices.append(PricePoint(price=price, timestamp=timestamp))
        self.last_update = timestamp

    def add_volume(self, volume: float, timestamp: datetime) -> None:
        self.volumes.append(VolumeSample(volume=volume, timestamp=timestamp))
        self.last_update = timestamp

    def add_trade(self, trade: TradeSample) -> None:
        self.trades.append(trade)
        self.last_update = trade.timestamp

    def price_values(self) -> list[float]:
        return [p.price for p in self.prices]

    def volume_values(self) -> list[float]:
        return [v.volume for v in self.volumes]

    def trade_list(self) -> list[TradeSample]:
        return list(self.trades)

    @property
    def last_price(self) -> Optional[float]:
        return self.prices[-1].price if self.prices else None

    def clear(self) -> None:
        self.prices.clear()
        self.volumes.clear()
        self.trades.clear()
        self.last_update = None
