"""Pure indicator functions over price and volume sequences.

None of these raise on short input. Early bars in any series have partial
history, so each function degrades to a fixed default instead:

* RSI with fewer than ``period + 1`` closes is 50 (neutral).
* EMA with fewer than ``period`` values is the last value.
* SMA with fewer than ``period`` values averages what is there.
* ATR with fewer than ``period + 1`` bars is 0.
* Volume trend and price pattern report ``insufficient_data`` below 20 points.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence


class VolumeTrend(str, Enum):
    SURGING = "surging"
    INCREASING = "increasing"
    DECREASING = "decreasing"
    NORMAL = "normal"
    INSUFFICIENT_DATA = "insufficient_data"


class PricePattern(str, Enum):
    BULLISH_TREND = "bullish_trend"
    BEARISH_TREND = "bearish_trend"
    BREAKOUT = "breakout"
    CONSOLIDATION = "consolidation"
    NEUTRAL = "neutral"
    INSUFFICIENT_DATA = "insufficient_data"


@dataclass(frozen=True)
class MacdValue:
    macd: float
    signal: float
    histogram: float


@dataclass(frozen=True)
class BollingerBands:
    upper: float
    middle: float
    lower: float


def compute_sma(values: Sequence[float], period: int) -> float:
    if not values:
        return 0.0
    slice_ = values[-period:]
    return sum(slice_) / len(slice_)


def compute_ema(values: Sequence[float], period: int) -> float:
    if not values:
        return 0.0
    if len(values) < period:
        return values[-1]
    alpha = 2.0 / (period + 1.0)
    ema = sum(values[:period]) / period
    for value in values[period:]:
        ema = alpha * value + (1.0 - alpha) * ema
    return ema


def compute_rsi(closes: Sequence[float], period: int = 14) -> float:
    if len(closes) < period + 1:
        return 50.0
    deltas = [closes[i] - closes[i - 1] for i in range(len(closes) - period, len(closes))]
    avg_gain = sum(delta for delta in deltas if delta > 0) / period
    avg_loss = -sum(delta for delta in deltas if delta < 0) / period
    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def compute_macd(closes: Sequence[float], history: Optional[Sequence[float]] = None) -> MacdValue:
    """MACD line, signal and histogram.

    Without ``history`` the signal line is the 9-period EMA of the current MACD
    value alone, which is that value, so the histogram is 0. Passing the MACD
    values of earlier bars as ``history`` gives the smoothed signal line.
    """
    macd = compute_ema(closes, 12) - compute_ema(closes, 26)
    macd_line = list(history or []) + [macd]
    signal = compute_ema(macd_line, 9)
    return MacdValue(macd=macd, signal=signal, histogram=macd - signal)


def compute_atr(
    highs: Sequence[float],
    lows: Sequence[float],
    closes: Sequence[float],
    period: int = 14,
) -> float:
    if len(closes) < period + 1:
        return 0.0
    true_ranges = []
    for index in range(len(closes) - period, len(closes)):
        high = highs[index]
        low = lows[index]
        prev_close = closes[index - 1]
        true_ranges.append(max(high - low, abs(high - prev_close), abs(low - prev_close)))
    return sum(true_ranges) / period


def compute_stddev(values: Sequence[float], period: int) -> float:
    if not values:
        return 0.0
    slice_ = values[-period:]
    mean = sum(slice_) / len(slice_)
    variance = sum((value - mean) ** 2 for value in slice_) / len(slice_)
    return variance**0.5


def compute_bollinger_bands(closes: Sequence[float], period: int = 20, num_std: float = 2.0) -> BollingerBands:
    middle = compute_sma(closes, period)
    deviation = compute_stddev(closes, period)
    return BollingerBands(
        upper=middle + num_std * deviation,
        middle=middle,
        lower=middle - num_std * deviation,
    )


def classify_volume_trend(volumes: Sequence[float]) -> VolumeTrend:
    if len(volumes) < 20:
        return VolumeTrend.INSUFFICIENT_DATA
    recent = sum(volumes[-5:]) / 5
    average = sum(volumes[-20:]) / 20
    if average == 0:
        return VolumeTrend.NORMAL
    ratio = recent / average
    if ratio > 1.5:
        return VolumeTrend.SURGING
    if ratio > 1.2:
        return VolumeTrend.INCREASING
    if ratio < 0.8:
        return VolumeTrend.DECREASING
    return VolumeTrend.NORMAL


def classify_pattern(closes: Sequence[float]) -> PricePattern:
    if len(closes) < 20:
        return PricePattern.INSUFFICIENT_DATA
    sma20 = compute_sma(closes, 20)
    sma50 = compute_sma(closes, 50)
    current = closes[-1]
    base = closes[-20]
    change = (current - base) / base * 100 if base else 0.0

    if sma20 > sma50 and current > sma20:
        return PricePattern.BULLISH_TREND
    if sma20 < sma50 and current < sma20:
        return PricePattern.BEARISH_TREND
    if change > 5:
        return PricePattern.BREAKOUT
    if abs(change) < 2:
        return PricePattern.CONSOLIDATION
    return PricePattern.NEUTRAL
