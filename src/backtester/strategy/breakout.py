"""Volatility breakout strategy (range expansion confirmed by volume)."""

from __future__ import annotations

from dataclasses import dataclass

from backtester.strategy.base import Signal, SignalStrategy, StrategyName
from backtester.strategy.indicators import VolumeTrend
from backtester.strategy.snapshot import IndicatorSnapshot


@dataclass(frozen=True)
class BreakoutParams:
    range_multiplier: float = 1.5
    volume_ratio: float = 1.5
    min_change_pct: float = 0.0

    @staticmethod
    def from_dict(data: dict) -> "BreakoutParams":
        return BreakoutParams(
            range_multiplier=float(data.get("range_multiplier", 1.5)),
            volume_ratio=float(data.get("volume_ratio", 1.5)),
            min_change_pct=float(data.get("min_change_pct", 0.0)),
        )


class VolatilityBreakoutStrategy(SignalStrategy):
    name = StrategyName.VOLATILITY_BREAKOUT

    def __init__(self, params: BreakoutParams | None = None) -> None:
        self.params = params or BreakoutParams()

    def evaluate(self, index: int, snapshot: IndicatorSnapshot) -> Signal:
        params = self.params
        # ATR is 0 until there is enough history
        expanded = snapshot.atr > 0 and snapshot.bar_range > snapshot.atr * params.range_multiplier
        change = snapshot.change_pct

        if expanded and change < 0:
            return Signal.EXIT_LONG

        volume_surge = (
            snapshot.relative_volume > params.volume_ratio or snapshot.volume_trend == VolumeTrend.SURGING
        )
        if expanded and change > params.min_change_pct and volume_surge:
            return Signal.ENTER_LONG

        if snapshot.close < snapshot.ema_slow:
            return Signal.EXIT_LONG
        return Signal.HOLD
