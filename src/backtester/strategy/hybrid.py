"""Hybrid strategy: acts when enough of the other strategies agree."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from backtester.strategy.base import Signal, SignalStrategy, StrategyName
from backtester.strategy.snapshot import IndicatorSnapshot


@dataclass(frozen=True)
class HybridParams:
    min_agreement: int = 2

    @staticmethod
    def from_dict(data: dict) -> "HybridParams":
        return HybridParams(min_agreement=int(data.get("min_agreement", 2)))


class HybridStrategy(SignalStrategy):
    name = StrategyName.HYBRID

    def __init__(self, members: Sequence[SignalStrategy], params: HybridParams | None = None) -> None:
        self.members = list(members)
        self.params = params or HybridParams()

    def votes(self, index: int, snapshot: IndicatorSnapshot) -> dict[StrategyName, Signal]:
        return {member.name: member.evaluate(index, snapshot) for member in self.members}

    def evaluate(self, index: int, snapshot: IndicatorSnapshot) -> Signal:
        votes = list(self.votes(index, snapshot).values())
        enters = votes.count(Signal.ENTER_LONG)
        exits = votes.count(Signal.EXIT_LONG)
        enter = enters >= self.params.min_agreement
        exit_ = exits >= self.params.min_agreement
        if enter and exit_:
            return Signal.HOLD
        if enter:
            return Signal.ENTER_LONG
        if exit_:
            return Signal.EXIT_LONG
        return Signal.HOLD
