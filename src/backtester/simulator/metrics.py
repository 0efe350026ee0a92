"""Performance metrics over a trade ledger and equity curve."""

from __future__ import annotations

import math
from typing import Sequence

from backtester.errors import ComputationError
from backtester.market.models import BarInterval
from backtester.simulator.models import EquityPoint, PerformanceMetrics, Trade, TradeAction

PROFIT_FACTOR_CAP = 999.0


def max_drawdown_pct(values: Sequence[float]) -> float:
    peak = None
    worst = 0.0
    for value in values:
        if peak is None or value > peak:
            peak = value
        if peak > 0:
            worst = max(worst, (peak - value) / peak)
    return worst * 100


def sharpe_ratio(values: Sequence[float], interval: BarInterval) -> float:
    returns = []
    for previous, current in zip(values, values[1:]):
        if previous <= 0:
            continue
        returns.append((current - previous) / previous)
    if len(returns) < 2:
        return 0.0
    mean = sum(returns) / len(returns)
    variance = sum((value - mean) ** 2 for value in returns) / len(returns)
    std = math.sqrt(variance)
    if std == 0:
        return 0.0
    return mean / std * math.sqrt(interval.periods_per_year)


def profit_factor(gross_wins: float, gross_losses: float) -> float:
    if gross_losses == 0:
        return PROFIT_FACTOR_CAP if gross_wins > 0 else 0.0
    return min(gross_wins / gross_losses, PROFIT_FACTOR_CAP)


def compute_metrics(
    trades: Sequence[Trade],
    equity_curve: Sequence[EquityPoint],
    initial_capital: float,
    interval: BarInterval = BarInterval.DAILY,
) -> PerformanceMetrics:
    final_value = equity_curve[-1].value if equity_curve else initial_capital
    total_return_pct = (final_value - initial_capital) / initial_capital * 100

    exits = [trade for trade in trades if trade.action == TradeAction.SELL]
    wins = [trade.profit_loss or 0.0 for trade in exits if (trade.profit_loss or 0.0) > 0]
    losses = [abs(trade.profit_loss or 0.0) for trade in exits if (trade.profit_loss or 0.0) <= 0]
    win_rate = len(wins) / len(exits) * 100 if exits else 0.0

    values = [initial_capital] + [point.value for point in equity_curve]
    metrics = PerformanceMetrics(
        final_value=final_value,
        total_return_pct=total_return_pct,
        total_trades=len(exits),
        winning_trades=len(wins),
        losing_trades=len(losses),
        win_rate=win_rate,
        max_drawdown_pct=max_drawdown_pct(values),
        sharpe_ratio=sharpe_ratio(values, interval),
        profit_factor=profit_factor(sum(wins), sum(losses)),
        avg_win=sum(wins) / len(wins) if wins else 0.0,
        avg_loss=sum(losses) / len(losses) if losses else 0.0,
    )
    for name, value in vars(metrics).items():
        if isinstance(value, float) and not math.isfinite(value):
            raise ComputationError(f"{name} is not finite: {value}")
    return metrics
