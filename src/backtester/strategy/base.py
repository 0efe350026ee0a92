"""Signal strategy interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

from backtester.strategy.snapshot import IndicatorSnapshot


class Signal(str, Enum):
    ENTER_LONG = "enter_long"
    EXIT_LONG = "exit_long"
    HOLD = "hold"


class StrategyName(str, Enum):
    MOMENTUM = "momentum"
    MEAN_REVERSION = "mean_reversion"
    TREND_FOLLOWING = "trend_following"
    VOLATILITY_BREAKOUT = "volatility_breakout"
    HYBRID = "hybrid"

    @classmethod
    def _missing_(cls, value):
        if not isinstance(value, str):
            return None
        normalized = value.strip().lower()
        aliases = {
            "momentum_rsi": cls.MOMENTUM,
            "hybrid_ai": cls.HYBRID,
            "breakout": cls.VOLATILITY_BREAKOUT,
        }
        if normalized in aliases:
            return aliases[normalized]
        for member in cls:
            if member.value == normalized:
                return member
        return None


class SignalStrategy(ABC):
    """Advisory only: maps an indicator snapshot to an intent, never sees capital."""

    name: StrategyName

    @abstractmethod
    def evaluate(self, index: int, snapshot: IndicatorSnapshot) -> Signal:
        raise NotImplementedError
