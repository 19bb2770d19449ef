"""Ten-factor indicator calculations.

Every function takes plain lists (oldest first) and returns a score on a
0-100 scale where higher is more bullish. Missing or insufficient data
returns the neutral value instead of raising.
"""

import math
from typing import Sequence

from ..data.models import TradeSample
from ..models.metrics import NEUTRAL


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    """Clamp value into [low, high]; NaN collapses to the neutral score."""
    if math.isnan(value):
        return NEUTRAL
    return max(low, min(high, value))


def mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def std_dev(values: Sequence[float]) -> float:
    """Population standard deviation, 0 for an empty sequence."""
    if not values:
        return 0.0
    avg = mean(values)
    variance = sum((v - avg) ** 2 for v in values) / len(values)
    return math.sqrt(variance)


def calculate_rsi(prices: Sequence[float], period: int = 14) -> float:
    """
    Calculate RSI over the last ``period`` price changes.

    RSI = 100 - 100 / (1 + avg_gain / avg_loss)

    Args:
        prices: Price history, oldest first
        period: Number of changes to look back over (default 14)

    Returns:
        RSI value, 100 when there were no losses, neutral if fewer than 2 prices
    """
    window = list(prices[-(period + 1):])
    if len(window) < 2:
        return NEUTRAL

    gains = 0.0
    losses = 0.0
    for prev, curr in zip(window, window[1:]):
        diff = curr - prev
        if diff > 0:
            gains += diff
        else:
            losses -= diff

    changes = len(window) - 1
    avg_gain = gains / changes
    avg_loss = losses / changes

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return clamp(100.0 - 100.0 / (1.0 + rs))


def calculate_momentum(prices: Sequence[float], short_period: int = 5,
                       long_period: int = 20, min_points: int = 10) -> float:
    """
    Short moving average relative to the long moving average.

    Ratio 0.9 maps to 0, 1.0 to 50 and 1.1 to 100.
    """
    if len(prices) < min_points:
        return NEUTRAL

    short_ma = mean(prices[-short_period:])
    long_ma = mean(prices[-long_period:])
    if long_ma <= 0:
        return NEUTRAL

    return clamp((short_ma / long_ma - 0.9) * 500)


def calculate_volume_trend(volumes: Sequence[float], recent_period: int = 5,
                           baseline_period: int = 15) -> float:
    """
    Recent average volume against the preceding baseline, times 50.

    Returns neutral when the baseline is absent or zero.
    """
    if len(volumes) < recent_period:
        return NEUTRAL

    recent = mean(volumes[-recent_period:])
    baseline_window = volumes[-(recent_period + baseline_period):-recent_period]
    baseline = mean(baseline_window)

    if baseline <= 0:
        return NEUTRAL

    return clamp(recent / baseline * 50)


def calculate_price_velocity(prices: Sequence[float], lookback: int = 5) -> float:
    """
    Percent change over the last ``lookback`` points.

    -10% maps to 0, 0% to 50 and +10% to 100.
    """
    if len(prices) < lookback:
        return NEUTRAL

    reference = prices[-lookback]
    if reference <= 0:
        return NEUTRAL

    change_pct = (prices[-1] - reference) / reference * 100
    return clamp(50 + change_pct * 5)


def calculate_volatility(prices: Sequence[float], window: int = 20,
                         min_points: int = 5) -> float:
    """
    Inverted volatility: 100 - 5 x coefficient of variation (percent).

    A flat series scores 100, a 20% coefficient of variation scores 0.
    """
    sample = list(prices[-window:])
    if len(sample) < min_points:
        return NEUTRAL

    avg = mean(sample)
    if avg <= 0:
        return NEUTRAL

    coeff_of_var = std_dev(sample) / avg * 100
    return clamp(100 - coeff_of_var * 5)


def calculate_buy_pressure(trades: Sequence[TradeSample], window: int = 50) -> float:
    """Share of buy amount in the last ``window`` trades, as a percentage."""
    recent = list(trades[-window:])
    if not recent:
        return NEUTRAL

    buy_volume = sum(t.amount for t in recent if t.is_buy)
    sell_volume = sum(t.amount for t in recent if not t.is_buy)
    total = buy_volume + sell_volume

    if total <= 0:
        return NEUTRAL

    return clamp(buy_volume / total * 100)


def calculate_support_resistance(prices: Sequence[float],
                                 min_points: int = 10) -> tuple[float, float]:
    """
    Position of the current price inside the window's [min, max] range.

    Returns:
        (support, resistance); support grows with the distance above the low,
        resistance is the inverted distance below the high
    """
    if len(prices) < min_points:
        return NEUTRAL, NEUTRAL

    current = prices[-1]
    low = min(prices)
    high = max(prices)
    price_range = high - low

    if price_range == 0:
        return NEUTRAL, NEUTRAL

    support = (current - low) / price_range * 100
    resistance = 100 - (high - current) / price_range * 100
    return clamp(support), clamp(resistance)


def calculate_trend_strength(prices: Sequence[float], window: int = 20,
                             min_points: int = 5) -> float:
    """
    One-sidedness of recent moves.

    50 means no trend, 100 a pure uptrend and 0 a pure downtrend.
    """
    sample = list(prices[-window:])
    if len(sample) < min_points:
        return NEUTRAL

    up_moves = 0
    down_moves = 0
    for prev, curr in zip(sample, sample[1:]):
        if curr > prev:
            up_moves += 1
        elif curr < prev:
            down_moves += 1

    total = up_moves + down_moves
    if total == 0:
        return NEUTRAL

    dominance = max(up_moves, down_moves) / total
    direction = 1 if up_moves > down_moves else -1

    return clamp(50 + direction * (dominance - 0.5) * 100)


def calculate_market_phase(prices: Sequence[float], recent_period: int = 10,
                           older_period: int = 20, min_points: int = 20) -> float:
    """
    Classify the market cycle phase from average price and dispersion.

    Markup scores 60-100, markdown 0-40, accumulation/distribution ~50.
    """
    if len(prices) < min_points:
        return NEUTRAL

    recent = list(prices[-recent_period:])
    older = list(prices[-(recent_period + older_period):-recent_period])
    if not older:
        return NEUTRAL

    older_avg = mean(older)
    if older_avg <= 0:
        return NEUTRAL

    price_change = (mean(recent) - older_avg) / older_avg
    older_vol = std_dev(older)
    vol_change = std_dev(recent) / older_vol if older_vol > 0 else 1.0

    if price_change > 0.05 and vol_change > 0.8:
        phase = 60 + min(40.0, price_change * 400)
    elif price_change < -0.05:
        phase = 40 + max(-40.0, price_change * 400)
    else:
        phase = 50 + price_change * 100

    return clamp(phase)
