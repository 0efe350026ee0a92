"""Trade simulation, metrics and Monte Carlo resampling."""

from backtester.simulator.backtest import run_backtest
from backtester.simulator.engine import TradeSimulator
from backtester.simulator.metrics import PROFIT_FACTOR_CAP, compute_metrics
from backtester.simulator.models import (
    BacktestResult,
    EquityPoint,
    MonteCarloResult,
    PerformanceMetrics,
    Position,
    ReasonCode,
    SimulationRun,
    StrategyConfig,
    Trade,
    TradeAction,
)
from backtester.simulator.monte_carlo import MonteCarloResampler, trade_returns

__all__ = [
    "BacktestResult",
    "EquityPoint",
    "MonteCarloResampler",
    "MonteCarloResult",
    "PROFIT_FACTOR_CAP",
    "PerformanceMetrics",
    "Position",
    "ReasonCode",
    "SimulationRun",
    "StrategyConfig",
    "Trade",
    "TradeAction",
    "TradeSimulator",
    "compute_metrics",
    "run_backtest",
    "trade_returns",
]
