"""Run one strategy over one symbol's bars and assemble the result."""

from __future__ import annotations

from dataclasses import asdict
from typing import Optional, Sequence

from backtester.config.models import IndicatorConfig, SimulatorConfig
from backtester.market.models import Bar, BarInterval
from backtester.simulator.engine import TradeSimulator
from backtester.simulator.metrics import compute_metrics
from backtester.simulator.models import BacktestResult, StrategyConfig


def run_backtest(
    symbol: str,
    bars: Sequence[Bar],
    config: StrategyConfig,
    interval: Optional[BarInterval] = None,
    settings: Optional[SimulatorConfig] = None,
    indicators: Optional[IndicatorConfig] = None,
) -> BacktestResult:
    settings = settings or SimulatorConfig()
    interval = interval or settings.interval
    simulator = TradeSimulator(
        config,
        indicators=indicators,
        intrabar_policy=settings.intrabar_policy,
        trailing_activation_pct=settings.trailing_activation_pct,
    )
    run = simulator.run(bars, symbol)
    metrics = compute_metrics(run.trades, run.equity_curve, config.initial_capital, interval)

    warnings: list[str] = []
    if len(bars) < settings.min_history_bars:
        warnings.append(
            f"insufficient_history: {len(bars)} bars, {settings.min_history_bars} recommended"
        )

    return BacktestResult(
        strategy=config.name,
        symbol=symbol,
        start=bars[0].timestamp if bars else None,
        end=bars[-1].timestamp if bars else None,
        interval=interval,
        initial_capital=config.initial_capital,
        trades=run.trades,
        equity_curve=run.equity_curve,
        warnings=warnings,
        **asdict(metrics),
    )
