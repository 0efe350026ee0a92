import math
from datetime import datetime, timedelta

import pytest

from backtester.config import IndicatorConfig, MacdMode
from backtester.market import Bar
from backtester.strategy.indicators import (
    PricePattern,
    VolumeTrend,
    classify_pattern,
    classify_volume_trend,
    compute_atr,
    compute_bollinger_bands,
    compute_ema,
    compute_macd,
    compute_rsi,
    compute_sma,
)
from backtester.strategy.snapshot import SnapshotBuilder


def test_rsi_is_neutral_with_short_history():
    assert compute_rsi([100, 101, 102], period=14) == 50.0


def test_rsi_is_100_without_losses():
    closes = [100 + i for i in range(20)]
    assert compute_rsi(closes, period=14) == 100.0


def test_rsi_balanced_moves():
    closes = [100.0]
    for i in range(14):
        closes.append(closes[-1] + (1.0 if i % 2 == 0 else -1.0))
    assert compute_rsi(closes, period=14) == pytest.approx(50.0)


def test_ema_short_input_returns_last_value():
    assert compute_ema([1.0, 2.0, 3.0], period=5) == 3.0
    assert compute_ema([], period=5) == 0.0


def test_ema_seeds_with_simple_average():
    values = [1.0, 2.0, 3.0, 4.0]
    # seed = 2.0, then 4 * 0.5 + 2.0 * 0.5
    assert compute_ema(values, period=3) == pytest.approx(3.0)


def test_sma_uses_available_values():
    assert compute_sma([2.0, 4.0], period=20) == pytest.approx(3.0)
    assert compute_sma([1.0, 2.0, 3.0, 4.0], period=2) == pytest.approx(3.5)
    assert compute_sma([], period=5) == 0.0


def test_macd_single_point_has_zero_histogram():
    closes = [100 + i * 0.5 for i in range(40)]
    value = compute_macd(closes)
    assert value.macd > 0
    assert value.signal == pytest.approx(value.macd)
    assert value.histogram == pytest.approx(0.0)


def test_macd_with_history_smooths_signal():
    closes = [100 + i * 0.5 for i in range(40)]
    history = [0.1 * i for i in range(12)]
    value = compute_macd(closes, history)
    assert value.signal != pytest.approx(value.macd)
    assert value.histogram == pytest.approx(value.macd - value.signal)


def test_atr_short_history_is_zero():
    assert compute_atr([1.0, 2.0], [0.5, 1.5], [0.8, 1.8], period=14) == 0.0


def test_atr_constant_range():
    highs = [11.0] * 16
    lows = [9.0] * 16
    closes = [10.0] * 16
    assert compute_atr(highs, lows, closes, period=14) == pytest.approx(2.0)


def test_bollinger_bands_flat_series_collapse():
    bands = compute_bollinger_bands([50.0] * 25)
    assert bands.upper == bands.middle == bands.lower == pytest.approx(50.0)


def test_bollinger_bands_are_ordered():
    closes = [100 + (i % 5) for i in range(30)]
    bands = compute_bollinger_bands(closes)
    assert bands.lower < bands.middle < bands.upper


def test_volume_trend_classification():
    assert classify_volume_trend([100.0] * 10) == VolumeTrend.INSUFFICIENT_DATA
    assert classify_volume_trend([100.0] * 20) == VolumeTrend.NORMAL
    assert classify_volume_trend([100.0] * 15 + [400.0] * 5) == VolumeTrend.SURGING
    assert classify_volume_trend([100.0] * 15 + [20.0] * 5) == VolumeTrend.DECREASING
    assert classify_volume_trend([0.0] * 20) == VolumeTrend.NORMAL


def test_pattern_classification():
    assert classify_pattern([100.0] * 5) == PricePattern.INSUFFICIENT_DATA
    assert classify_pattern([100.0] * 30) == PricePattern.CONSOLIDATION
    rising = [100 + i for i in range(60)]
    assert classify_pattern(rising) == PricePattern.BULLISH_TREND
    falling = [200 - i for i in range(60)]
    assert classify_pattern(falling) == PricePattern.BEARISH_TREND


def _bars(count: int = 150):
    bars = []
    for day in range(count):
        close = 100 + 8 * math.sin(day / 6) + day * 0.2
        bars.append(
            Bar(
                timestamp=datetime(2024, 1, 1) + timedelta(days=day),
                open=close - 0.4,
                high=close + 1.2,
                low=close - 1.3,
                close=close,
                volume=900 + (day % 7) * 120,
            )
        )
    return bars


@pytest.mark.parametrize("mode", list(MacdMode))
def test_snapshot_builder_matches_full_history(mode):
    bars = _bars()
    builder = SnapshotBuilder(IndicatorConfig(macd_mode=mode))
    closes = []
    macd_history = []
    for index, bar in enumerate(bars):
        snapshot = builder.build(bars, index)
        closes.append(bar.close)
        expected = compute_macd(closes, macd_history if mode == MacdMode.ROLLING else None)
        macd_history.append(expected.macd)

        assert snapshot.ema_fast == pytest.approx(compute_ema(closes, 9))
        assert snapshot.ema_slow == pytest.approx(compute_ema(closes, 21))
        assert snapshot.macd.macd == pytest.approx(expected.macd)
        assert snapshot.macd.signal == pytest.approx(expected.signal)
        assert snapshot.macd.histogram == pytest.approx(expected.histogram, abs=1e-9)
        assert snapshot.rsi == pytest.approx(compute_rsi(closes, 14))
        assert snapshot.sma_slow == pytest.approx(compute_sma(closes, 50))
        assert snapshot.pattern == classify_pattern(closes)
        assert snapshot.recent_closes == tuple(closes[-60:])


def test_snapshot_builder_catches_up_when_called_out_of_order():
    bars = _bars()
    sequential = SnapshotBuilder(IndicatorConfig(macd_mode=MacdMode.ROLLING))
    for index in range(121):
        expected = sequential.build(bars, index)
    jumped = SnapshotBuilder(IndicatorConfig(macd_mode=MacdMode.ROLLING)).build(bars, 120)
    assert jumped.macd.signal == pytest.approx(expected.macd.signal)
    assert jumped.ema_slow == pytest.approx(expected.ema_slow)
    assert jumped.index == 120
