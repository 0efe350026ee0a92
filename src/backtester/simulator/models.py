"""Simulation data structures."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from backtester.errors import InvalidConfigError
from backtester.market.models import BarInterval
from backtester.strategy.base import StrategyName


class TradeAction(str, Enum):
    BUY = "buy"
    SELL = "sell"


class ReasonCode(str, Enum):
    SIGNAL = "signal"
    STOP_LOSS = "stop_loss"
    TAKE_PROFIT = "take_profit"
    TRAILING_STOP = "trailing_stop"
    END_OF_PERIOD = "end_of_period"


@dataclass(frozen=True)
class StrategyConfig:
    name: StrategyName
    initial_capital: float
    position_size_pct: float
    stop_loss_pct: Optional[float] = None
    take_profit_pct: Optional[float] = None
    trailing_stop_pct: Optional[float] = None
    parameters: dict[str, Any] = field(default_factory=dict)

    def validate(self) -> None:
        if not isinstance(self.name, StrategyName):
            raise InvalidConfigError(f"Unknown strategy: {self.name}")
        if not _finite(self.initial_capital) or self.initial_capital <= 0:
            raise InvalidConfigError(f"initial_capital must be positive, got {self.initial_capital}")
        if not _finite(self.position_size_pct) or not 0 < self.position_size_pct <= 1:
            raise InvalidConfigError(f"position_size_pct must be in (0, 1], got {self.position_size_pct}")
        for key in ("stop_loss_pct", "take_profit_pct", "trailing_stop_pct"):
            value = getattr(self, key)
            if value is None:
                continue
            if not _finite(value) or value <= 0:
                raise InvalidConfigError(f"{key} must be a positive decimal, got {value}")
        if self.stop_loss_pct is not None and self.stop_loss_pct >= 1:
            raise InvalidConfigError(f"stop_loss_pct must be below 1, got {self.stop_loss_pct}")
        if self.trailing_stop_pct is not None and self.trailing_stop_pct >= 1:
            raise InvalidConfigError(f"trailing_stop_pct must be below 1, got {self.trailing_stop_pct}")


def _finite(value: Any) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value)


@dataclass
class Position:
    entry_price: float
    entry_time: datetime
    quantity: int
    peak_price: float


@dataclass(frozen=True)
class Trade:
    action: TradeAction
    price: float
    quantity: int
    timestamp: datetime
    reason_code: ReasonCode
    profit_loss: Optional[float] = None
    return_pct: Optional[float] = None


@dataclass(frozen=True)
class EquityPoint:
    timestamp: datetime
    value: float


@dataclass(frozen=True)
class SimulationRun:
    trades: list[Trade]
    equity_curve: list[EquityPoint]
    final_cash: float


@dataclass(frozen=True)
class PerformanceMetrics:
    final_value: float
    total_return_pct: float
    total_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float
    max_drawdown_pct: float
    sharpe_ratio: float
    profit_factor: float
    avg_win: float
    avg_loss: float


@dataclass(frozen=True)
class BacktestResult:
    strategy: StrategyName
    symbol: str
    start: Optional[datetime]
    end: Optional[datetime]
    interval: BarInterval
    initial_capital: float
    final_value: float
    total_return_pct: float
    trades: list[Trade]
    equity_curve: list[EquityPoint]
    total_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float
    max_drawdown_pct: float
    sharpe_ratio: float
    profit_factor: float
    avg_win: float
    avg_loss: float
    warnings: list[str] = field(default_factory=list)

    @property
    def key(self) -> str:
        return f"{self.symbol}_{self.strategy.value}"


@dataclass(frozen=True)
class MonteCarloResult:
    percentile5: float
    percentile25: float
    median: float
    percentile75: float
    percentile95: float
    mean: float
    worst_case: float
    best_case: float
    probability_of_profit: float
    probability_of_gain_above_threshold: float
    probability_of_loss_below_threshold: float
    simulated_returns: list[float]
    simulations: int
    source_trades: int
