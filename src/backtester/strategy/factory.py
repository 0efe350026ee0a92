"""Build signal strategies by name."""

from __future__ import annotations

from typing import Any

from backtester.errors import InvalidConfigError
from backtester.strategy.base import SignalStrategy, StrategyName
from backtester.strategy.breakout import BreakoutParams, VolatilityBreakoutStrategy
from backtester.strategy.hybrid import HybridParams, HybridStrategy
from backtester.strategy.mean_reversion import MeanReversionParams, MeanReversionStrategy
from backtester.strategy.momentum import MomentumParams, MomentumStrategy
from backtester.strategy.trend_following import TrendFollowingParams, TrendFollowingStrategy

HYBRID_MEMBERS = (
    StrategyName.MOMENTUM,
    StrategyName.MEAN_REVERSION,
    StrategyName.TREND_FOLLOWING,
    StrategyName.VOLATILITY_BREAKOUT,
)


def parse_strategy_name(name: str | StrategyName) -> StrategyName:
    try:
        return StrategyName(name)
    except ValueError as exc:
        raise InvalidConfigError(f"Unknown strategy: {name}") from exc


def build_strategy(name: str | StrategyName, parameters: dict[str, Any] | None = None) -> SignalStrategy:
    strategy_name = parse_strategy_name(name)
    params = parameters or {}
    try:
        if strategy_name == StrategyName.MOMENTUM:
            return MomentumStrategy(MomentumParams.from_dict(params))
        if strategy_name == StrategyName.MEAN_REVERSION:
            return MeanReversionStrategy(MeanReversionParams.from_dict(params))
        if strategy_name == StrategyName.TREND_FOLLOWING:
            return TrendFollowingStrategy(TrendFollowingParams.from_dict(params))
        if strategy_name == StrategyName.VOLATILITY_BREAKOUT:
            return VolatilityBreakoutStrategy(BreakoutParams.from_dict(params))
        member_params = params.get("members", {}) or {}
        members = [build_strategy(member, member_params.get(member.value, {})) for member in HYBRID_MEMBERS]
        hybrid_params = HybridParams.from_dict(params)
    except (TypeError, ValueError) as exc:
        raise InvalidConfigError(f"Invalid parameters for {strategy_name.value}: {exc}") from exc
    if hybrid_params.min_agreement < 1:
        raise InvalidConfigError("min_agreement must be at least 1")
    return HybridStrategy(members, hybrid_params)
