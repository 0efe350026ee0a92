from dataclasses import replace

import pytest

from backtester.errors import InvalidConfigError
from backtester.strategy import (
    HybridParams,
    HybridStrategy,
    IndicatorSnapshot,
    MeanReversionStrategy,
    MomentumStrategy,
    Signal,
    SignalStrategy,
    StrategyName,
    TrendFollowingStrategy,
    VolatilityBreakoutStrategy,
    build_strategy,
    parse_strategy_name,
)
from backtester.strategy.indicators import BollingerBands, MacdValue, PricePattern, VolumeTrend


def _snapshot(**overrides) -> IndicatorSnapshot:
    base = IndicatorSnapshot(
        index=30,
        close=100.0,
        prev_close=100.0,
        high=101.0,
        low=99.0,
        volume=1000.0,
        rsi=50.0,
        ema_fast=100.0,
        ema_slow=100.0,
        sma_fast=100.0,
        sma_slow=100.0,
        prev_sma_fast=100.0,
        prev_sma_slow=100.0,
        macd=MacdValue(macd=0.0, signal=0.0, histogram=0.0),
        atr=2.0,
        bands=BollingerBands(upper=104.0, middle=100.0, lower=96.0),
        volume_trend=VolumeTrend.NORMAL,
        relative_volume=1.0,
        pattern=PricePattern.NEUTRAL,
        recent_closes=(100.0, 100.0, 100.0),
    )
    return replace(base, **overrides)


class _Fixed(SignalStrategy):
    def __init__(self, name: StrategyName, signal: Signal) -> None:
        self.name = name
        self.signal = signal

    def evaluate(self, index, snapshot):
        return self.signal


def test_momentum_rules():
    strategy = MomentumStrategy()
    assert strategy.evaluate(0, _snapshot()) == Signal.HOLD
    assert strategy.evaluate(0, _snapshot(rsi=75.0)) == Signal.EXIT_LONG
    assert strategy.evaluate(0, _snapshot(rsi=25.0)) == Signal.ENTER_LONG
    dip = _snapshot(close=90.0, recent_closes=(100.0, 95.0, 90.0))
    assert strategy.evaluate(0, dip) == Signal.ENTER_LONG
    rolling_over = _snapshot(ema_fast=99.0, ema_slow=100.0, macd=MacdValue(-0.5, -0.2, -0.3))
    assert strategy.evaluate(0, rolling_over) == Signal.EXIT_LONG


def test_momentum_dip_needs_enough_history():
    strategy = MomentumStrategy()
    short = _snapshot(close=90.0, recent_closes=(100.0, 90.0))
    assert strategy.evaluate(0, short) == Signal.HOLD


def test_mean_reversion_rules():
    strategy = MeanReversionStrategy()
    assert strategy.evaluate(0, _snapshot(close=95.0)) == Signal.ENTER_LONG
    oversold = _snapshot(close=96.5, rsi=20.0, bands=BollingerBands(110.0, 100.0, 90.0))
    assert strategy.evaluate(0, oversold) == Signal.ENTER_LONG
    assert strategy.evaluate(0, _snapshot(close=100.5)) == Signal.EXIT_LONG
    assert strategy.evaluate(0, _snapshot(close=98.0, rsi=80.0)) == Signal.EXIT_LONG
    assert strategy.evaluate(0, _snapshot(close=98.0)) == Signal.HOLD


def test_trend_following_golden_cross():
    strategy = TrendFollowingStrategy()
    cross = _snapshot(close=103.0, sma_fast=101.0, sma_slow=100.0, prev_sma_fast=99.5, prev_sma_slow=100.0)
    assert strategy.evaluate(0, cross) == Signal.ENTER_LONG
    already_above = replace(cross, prev_sma_fast=100.5)
    assert strategy.evaluate(0, already_above) == Signal.HOLD
    death = _snapshot(sma_fast=99.0, sma_slow=100.0)
    assert strategy.evaluate(0, death) == Signal.EXIT_LONG
    below_slow = _snapshot(close=98.0, sma_fast=101.0, sma_slow=100.0)
    assert strategy.evaluate(0, below_slow) == Signal.EXIT_LONG


def test_breakout_rules():
    strategy = VolatilityBreakoutStrategy()
    surge = _snapshot(close=106.0, prev_close=100.0, high=107.0, low=100.0, relative_volume=2.0, ema_slow=100.0)
    assert strategy.evaluate(0, surge) == Signal.ENTER_LONG
    no_volume = replace(surge, relative_volume=1.0)
    assert strategy.evaluate(0, no_volume) == Signal.HOLD
    trend_volume = replace(no_volume, volume_trend=VolumeTrend.SURGING)
    assert strategy.evaluate(0, trend_volume) == Signal.ENTER_LONG
    collapse = _snapshot(close=94.0, prev_close=100.0, high=100.0, low=93.0, ema_slow=90.0)
    assert strategy.evaluate(0, collapse) == Signal.EXIT_LONG
    no_atr = replace(surge, atr=0.0)
    assert strategy.evaluate(0, no_atr) == Signal.HOLD


def test_hybrid_requires_agreement():
    members = [
        _Fixed(StrategyName.MOMENTUM, Signal.ENTER_LONG),
        _Fixed(StrategyName.MEAN_REVERSION, Signal.ENTER_LONG),
        _Fixed(StrategyName.TREND_FOLLOWING, Signal.HOLD),
        _Fixed(StrategyName.VOLATILITY_BREAKOUT, Signal.EXIT_LONG),
    ]
    hybrid = HybridStrategy(members)
    assert hybrid.evaluate(0, _snapshot()) == Signal.ENTER_LONG
    assert HybridStrategy(members, HybridParams(min_agreement=3)).evaluate(0, _snapshot()) == Signal.HOLD
    votes = hybrid.votes(0, _snapshot())
    assert votes[StrategyName.VOLATILITY_BREAKOUT] == Signal.EXIT_LONG


def test_hybrid_conflict_holds():
    members = [
        _Fixed(StrategyName.MOMENTUM, Signal.ENTER_LONG),
        _Fixed(StrategyName.MEAN_REVERSION, Signal.ENTER_LONG),
        _Fixed(StrategyName.TREND_FOLLOWING, Signal.EXIT_LONG),
        _Fixed(StrategyName.VOLATILITY_BREAKOUT, Signal.EXIT_LONG),
    ]
    assert HybridStrategy(members).evaluate(0, _snapshot()) == Signal.HOLD


def test_build_strategy_by_name_and_alias():
    assert isinstance(build_strategy("momentum"), MomentumStrategy)
    assert isinstance(build_strategy("MOMENTUM_RSI"), MomentumStrategy)
    assert isinstance(build_strategy("breakout"), VolatilityBreakoutStrategy)
    hybrid = build_strategy("HYBRID_AI", {"min_agreement": 3, "members": {"momentum": {"rsi_oversold": 20}}})
    assert isinstance(hybrid, HybridStrategy)
    assert hybrid.params.min_agreement == 3
    assert [member.name for member in hybrid.members] == [
        StrategyName.MOMENTUM,
        StrategyName.MEAN_REVERSION,
        StrategyName.TREND_FOLLOWING,
        StrategyName.VOLATILITY_BREAKOUT,
    ]
    assert hybrid.members[0].params.rsi_oversold == 20.0


def test_build_strategy_rejects_bad_input():
    with pytest.raises(InvalidConfigError):
        parse_strategy_name("martingale")
    with pytest.raises(InvalidConfigError):
        build_strategy("momentum", {"rsi_oversold": "low"})
    with pytest.raises(InvalidConfigError):
        build_strategy("hybrid", {"min_agreement": 0})
