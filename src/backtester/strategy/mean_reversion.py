"""Mean reversion strategy with Bollinger + RSI filters."""

from __future__ import annotations

from dataclasses import dataclass

from backtester.strategy.base import Signal, SignalStrategy, StrategyName
from backtester.strategy.snapshot import IndicatorSnapshot


@dataclass(frozen=True)
class MeanReversionParams:
    rsi_extreme_low: float = 25.0
    rsi_extreme_high: float = 75.0
    sma_distance_pct: float = 3.0

    @staticmethod
    def from_dict(data: dict) -> "MeanReversionParams":
        return MeanReversionParams(
            rsi_extreme_low=float(data.get("rsi_extreme_low", 25.0)),
            rsi_extreme_high=float(data.get("rsi_extreme_high", 75.0)),
            sma_distance_pct=float(data.get("sma_distance_pct", 3.0)),
        )


class MeanReversionStrategy(SignalStrategy):
    name = StrategyName.MEAN_REVERSION

    def __init__(self, params: MeanReversionParams | None = None) -> None:
        self.params = params or MeanReversionParams()

    def evaluate(self, index: int, snapshot: IndicatorSnapshot) -> Signal:
        params = self.params
        close = snapshot.close
        bands = snapshot.bands

        if close < bands.lower:
            return Signal.ENTER_LONG
        if snapshot.sma_fast > 0:
            distance = (close - snapshot.sma_fast) / snapshot.sma_fast * 100
            if snapshot.rsi < params.rsi_extreme_low and distance < -params.sma_distance_pct:
                return Signal.ENTER_LONG

        if close >= bands.middle or snapshot.rsi > params.rsi_extreme_high:
            return Signal.EXIT_LONG
        return Signal.HOLD
