"""Bootstrap resampling of per-trade returns."""

from __future__ import annotations

import math
import random
from typing import Iterable, Optional, Sequence

from backtester.config.models import MonteCarloConfig
from backtester.errors import InvalidConfigError
from backtester.simulator.models import MonteCarloResult, Trade, TradeAction


def trade_returns(trades: Iterable[Trade]) -> list[float]:
    return [
        trade.return_pct
        for trade in trades
        if trade.action == TradeAction.SELL and trade.return_pct is not None
    ]


def percentile(ordered: Sequence[float], pct: float) -> float:
    """Nearest-rank percentile of an already sorted sequence."""
    if not ordered:
        raise ValueError("percentile of empty sequence")
    rank = max(1, math.ceil(pct * len(ordered) / 100))
    return ordered[min(rank, len(ordered)) - 1]


class MonteCarloResampler:
    def __init__(
        self,
        simulations: int = 1000,
        seed: Optional[int] = None,
        gain_threshold_pct: float = 10.0,
        loss_threshold_pct: float = -10.0,
        min_trades: int = 1,
    ) -> None:
        if simulations < 1:
            raise InvalidConfigError(f"simulations must be at least 1, got {simulations}")
        self.simulations = simulations
        self.seed = seed
        self.gain_threshold_pct = gain_threshold_pct
        self.loss_threshold_pct = loss_threshold_pct
        self.min_trades = max(1, min_trades)

    @staticmethod
    def from_config(config: MonteCarloConfig, simulations: Optional[int] = None) -> "MonteCarloResampler":
        return MonteCarloResampler(
            simulations=simulations if simulations is not None else config.simulations,
            seed=config.seed,
            gain_threshold_pct=config.gain_threshold_pct,
            loss_threshold_pct=config.loss_threshold_pct,
            min_trades=config.min_trades,
        )

    def resample_trades(self, trades: Iterable[Trade]) -> Optional[MonteCarloResult]:
        return self.resample(trade_returns(trades))

    def resample(self, returns: Sequence[float]) -> Optional[MonteCarloResult]:
        returns = list(returns)
        if len(returns) < self.min_trades:
            return None

        master = random.Random(self.seed)
        outcomes: list[float] = []
        for _ in range(self.simulations):
            rng = random.Random(master.getrandbits(64))
            value = 1.0
            for _ in range(len(returns)):
                value *= 1 + rng.choice(returns) / 100
            outcomes.append((value - 1) * 100)

        ordered = sorted(outcomes)
        count = len(ordered)
        return MonteCarloResult(
            percentile5=percentile(ordered, 5),
            percentile25=percentile(ordered, 25),
            median=percentile(ordered, 50),
            percentile75=percentile(ordered, 75),
            percentile95=percentile(ordered, 95),
            mean=sum(ordered) / count,
            worst_case=ordered[0],
            best_case=ordered[-1],
            probability_of_profit=sum(1 for value in ordered if value > 0) / count * 100,
            probability_of_gain_above_threshold=(
                sum(1 for value in ordered if value > self.gain_threshold_pct) / count * 100
            ),
            probability_of_loss_below_threshold=(
                sum(1 for value in ordered if value < self.loss_threshold_pct) / count * 100
            ),
            simulated_returns=outcomes,
            simulations=count,
            source_trades=len(returns),
        )
