"""Trend following via fast/slow moving-average crossover."""

from __future__ import annotations

from dataclasses import dataclass

from backtester.strategy.base import Signal, SignalStrategy, StrategyName
from backtester.strategy.snapshot import IndicatorSnapshot


@dataclass(frozen=True)
class TrendFollowingParams:
    exit_buffer_pct: float = 0.0

    @staticmethod
    def from_dict(data: dict) -> "TrendFollowingParams":
        return TrendFollowingParams(
            exit_buffer_pct=float(data.get("exit_buffer_pct", 0.0)),
        )


class TrendFollowingStrategy(SignalStrategy):
    name = StrategyName.TREND_FOLLOWING

    def __init__(self, params: TrendFollowingParams | None = None) -> None:
        self.params = params or TrendFollowingParams()

    def evaluate(self, index: int, snapshot: IndicatorSnapshot) -> Signal:
        fast = snapshot.sma_fast
        slow = snapshot.sma_slow
        prev_fast = snapshot.prev_sma_fast
        prev_slow = snapshot.prev_sma_slow

        if prev_fast is not None and prev_slow is not None:
            golden_cross = prev_fast <= prev_slow and fast > slow
            if golden_cross and snapshot.close > fast:
                return Signal.ENTER_LONG

        if fast < slow:
            return Signal.EXIT_LONG
        if snapshot.close < slow * (1.0 - self.params.exit_buffer_pct / 100.0):
            return Signal.EXIT_LONG
        return Signal.HOLD
