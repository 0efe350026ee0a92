"""Momentum strategy: buy oversold dips, sell overbought or rolling-over momentum."""

from __future__ import annotations

from dataclasses import dataclass

from backtester.strategy.base import Signal, SignalStrategy, StrategyName
from backtester.strategy.snapshot import IndicatorSnapshot


@dataclass(frozen=True)
class MomentumParams:
    rsi_oversold: float = 30.0
    rsi_overbought: float = 70.0
    dip_lookback: int = 2
    dip_pct: float = 5.0

    @staticmethod
    def from_dict(data: dict) -> "MomentumParams":
        return MomentumParams(
            rsi_oversold=float(data.get("rsi_oversold", 30.0)),
            rsi_overbought=float(data.get("rsi_overbought", 70.0)),
            dip_lookback=int(data.get("dip_lookback", 2)),
            dip_pct=float(data.get("dip_pct", 5.0)),
        )


class MomentumStrategy(SignalStrategy):
    name = StrategyName.MOMENTUM

    def __init__(self, params: MomentumParams | None = None) -> None:
        self.params = params or MomentumParams()

    def evaluate(self, index: int, snapshot: IndicatorSnapshot) -> Signal:
        params = self.params
        if snapshot.rsi > params.rsi_overbought:
            return Signal.EXIT_LONG

        if snapshot.rsi < params.rsi_oversold:
            return Signal.ENTER_LONG
        dip = snapshot.change_over(params.dip_lookback)
        if dip is not None and dip <= -params.dip_pct:
            return Signal.ENTER_LONG

        # EMA ribbon turned down and MACD below its signal line
        if snapshot.ema_fast < snapshot.ema_slow and snapshot.macd.histogram < 0:
            return Signal.EXIT_LONG
        return Signal.HOLD
