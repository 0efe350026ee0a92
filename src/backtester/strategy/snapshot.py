"""Per-bar indicator snapshots consumed by the signal strategies."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from backtester.config.models import IndicatorConfig, MacdMode
from backtester.market.models import Bar
from backtester.strategy.indicators import (
    BollingerBands,
    MacdValue,
    PricePattern,
    VolumeTrend,
    classify_pattern,
    classify_volume_trend,
    compute_atr,
    compute_bollinger_bands,
    compute_rsi,
    compute_sma,
)

RECENT_CLOSES = 60
# classify_pattern reads a 50-bar SMA
PATTERN_LOOKBACK = 50


@dataclass(frozen=True)
class IndicatorSnapshot:
    index: int
    close: float
    prev_close: Optional[float]
    high: float
    low: float
    volume: float
    rsi: float
    ema_fast: float
    ema_slow: float
    sma_fast: float
    sma_slow: float
    prev_sma_fast: Optional[float]
    prev_sma_slow: Optional[float]
    macd: MacdValue
    atr: float
    bands: BollingerBands
    volume_trend: VolumeTrend
    relative_volume: float
    pattern: PricePattern
    recent_closes: tuple[float, ...]

    @property
    def bar_range(self) -> float:
        return self.high - self.low

    @property
    def change_pct(self) -> float:
        if not self.prev_close:
            return 0.0
        return (self.close - self.prev_close) / self.prev_close * 100

    def change_over(self, bars_back: int) -> Optional[float]:
        """Percent change from ``bars_back`` bars ago, None when history is too short."""
        if bars_back < 1 or bars_back >= len(self.recent_closes):
            return None
        base = self.recent_closes[-1 - bars_back]
        if base == 0:
            return None
        return (self.close - base) / base * 100


def _relative_volume(volumes: Sequence[float], window: int) -> float:
    previous = volumes[-window - 1 : -1]
    if not previous:
        return 1.0
    average = sum(previous) / len(previous)
    if average <= 0:
        return 1.0
    return volumes[-1] / average


class _RunningEma:
    """Incremental form of ``compute_ema`` over a growing series."""

    def __init__(self, period: int) -> None:
        self.period = period
        self.count = 0
        self._seed = 0
        self.value = 0.0

    def update(self, value: float) -> float:
        self.count += 1
        if self.count <= self.period:
            self._seed += value
            self.value = value if self.count < self.period else self._seed / self.period
        else:
            alpha = 2.0 / (self.period + 1.0)
            self.value = alpha * value + (1.0 - alpha) * self.value
        return self.value


class SnapshotBuilder:
    """Builds snapshots bar by bar for one simulation.

    EMA and MACD state is carried forward between calls. Every other indicator
    only reads a bounded tail of the series, so a snapshot costs the same on
    bar 10 and on bar 10,000.
    """

    def __init__(self, config: Optional[IndicatorConfig] = None) -> None:
        self.config = config or IndicatorConfig()
        cfg = self.config
        self.lookback = max(
            cfg.rsi_period + 1,
            cfg.sma_fast + 1,
            cfg.sma_slow + 1,
            cfg.bollinger_window,
            cfg.atr_period + 1,
            cfg.volume_window + 1,
            PATTERN_LOOKBACK,
            RECENT_CLOSES,
        )
        self._reset()

    def _reset(self) -> None:
        cfg = self.config
        self._next_index = 0
        self._ema_fast = _RunningEma(cfg.ema_fast)
        self._ema_slow = _RunningEma(cfg.ema_slow)
        self._ema_12 = _RunningEma(12)
        self._ema_26 = _RunningEma(26)
        self._macd_signal = _RunningEma(9)

    def _advance(self, close: float) -> MacdValue:
        self._ema_fast.update(close)
        self._ema_slow.update(close)
        macd = self._ema_12.update(close) - self._ema_26.update(close)
        self._next_index += 1
        if self.config.macd_mode == MacdMode.ROLLING:
            signal = self._macd_signal.update(macd)
            return MacdValue(macd=macd, signal=signal, histogram=macd - signal)
        # signal line of a single MACD point is that point
        return MacdValue(macd=macd, signal=macd, histogram=0.0)

    def build(self, bars: Sequence[Bar], index: int) -> IndicatorSnapshot:
        cfg = self.config
        if index != self._next_index:
            self._reset()
            for earlier in bars[:index]:
                self._advance(earlier.close)
        macd = self._advance(bars[index].close)

        window = bars[max(0, index + 1 - self.lookback) : index + 1]
        closes = [bar.close for bar in window]
        highs = [bar.high for bar in window]
        lows = [bar.low for bar in window]
        volumes = [bar.volume for bar in window]
        previous = closes[:-1]

        bar = window[-1]
        return IndicatorSnapshot(
            index=index,
            close=bar.close,
            prev_close=previous[-1] if previous else None,
            high=bar.high,
            low=bar.low,
            volume=bar.volume,
            rsi=compute_rsi(closes, cfg.rsi_period),
            ema_fast=self._ema_fast.value,
            ema_slow=self._ema_slow.value,
            sma_fast=compute_sma(closes, cfg.sma_fast),
            sma_slow=compute_sma(closes, cfg.sma_slow),
            prev_sma_fast=compute_sma(previous, cfg.sma_fast) if previous else None,
            prev_sma_slow=compute_sma(previous, cfg.sma_slow) if previous else None,
            macd=macd,
            atr=compute_atr(highs, lows, closes, cfg.atr_period),
            bands=compute_bollinger_bands(closes, cfg.bollinger_window, cfg.bollinger_stddev),
            volume_trend=classify_volume_trend(volumes),
            relative_volume=_relative_volume(volumes, cfg.volume_window),
            pattern=classify_pattern(closes),
            recent_closes=tuple(closes[-RECENT_CLOSES:]),
        )
