"""Indicators and signal strategies."""

from backtester.strategy.base import Signal, SignalStrategy, StrategyName
from backtester.strategy.breakout import BreakoutParams, VolatilityBreakoutStrategy
from backtester.strategy.factory import build_strategy, parse_strategy_name
from backtester.strategy.hybrid import HybridParams, HybridStrategy
from backtester.strategy.mean_reversion import MeanReversionParams, MeanReversionStrategy
from backtester.strategy.momentum import MomentumParams, MomentumStrategy
from backtester.strategy.snapshot import IndicatorSnapshot, SnapshotBuilder
from backtester.strategy.trend_following import TrendFollowingParams, TrendFollowingStrategy

__all__ = [
    "BreakoutParams",
    "HybridParams",
    "HybridStrategy",
    "IndicatorSnapshot",
    "MeanReversionParams",
    "MeanReversionStrategy",
    "MomentumParams",
    "MomentumStrategy",
    "Signal",
    "SignalStrategy",
    "SnapshotBuilder",
    "StrategyName",
    "TrendFollowingParams",
    "TrendFollowingStrategy",
    "VolatilityBreakoutStrategy",
    "build_strategy",
    "parse_strategy_name",
]
