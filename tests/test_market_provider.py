from datetime import date, datetime, timedelta

import pytest

from backtester.errors import DataIntegrityError, MarketDataError
from backtester.market import (
    Bar,
    BarInterval,
    CsvBarProvider,
    InMemoryBarProvider,
    aggregate_bars,
    read_bars_csv,
    validate_bars,
)


def _daily(start: datetime, count: int):
    bars = []
    for day in range(count):
        close = 100.0 + day
        bars.append(
            Bar(
                timestamp=start + timedelta(days=day),
                open=close - 0.5,
                high=close + 1.0,
                low=close - 1.0,
                close=close,
                volume=100.0,
            )
        )
    return bars


def test_weekly_aggregation():
    # 2024-01-01 is a Monday
    bars = _daily(datetime(2024, 1, 1), 14)
    weekly = aggregate_bars(bars, BarInterval.WEEKLY)
    assert len(weekly) == 2
    first = weekly[0]
    assert first.timestamp == datetime(2024, 1, 1)
    assert first.open == 99.5
    assert first.close == 106.0
    assert first.high == 107.0
    assert first.low == 99.0
    assert first.volume == 700.0


def test_monthly_aggregation_and_daily_passthrough():
    bars = _daily(datetime(2024, 1, 20), 30)
    monthly = aggregate_bars(bars, BarInterval.MONTHLY)
    assert [bar.timestamp.month for bar in monthly] == [1, 2]
    assert aggregate_bars(list(reversed(bars)), BarInterval.DAILY) == bars


def test_interval_aliases():
    assert BarInterval("weekly") == BarInterval.WEEKLY
    assert BarInterval("1mo").periods_per_year == 12
    with pytest.raises(ValueError):
        BarInterval("hourly")


def test_in_memory_provider_filters_range():
    provider = InMemoryBarProvider({"AAA": _daily(datetime(2024, 1, 1), 31)})
    bars = provider.get_bars("AAA", date(2024, 1, 10), date(2024, 1, 12), BarInterval.DAILY)
    assert [bar.timestamp.day for bar in bars] == [10, 11, 12]
    weekly = provider.get_bars("AAA", None, None, BarInterval.WEEKLY)
    assert len(weekly) == 5
    with pytest.raises(MarketDataError):
        provider.get_bars("ZZZ", None, None, BarInterval.DAILY)
    with pytest.raises(MarketDataError):
        provider.get_bars("AAA", date(2025, 1, 1), None, BarInterval.DAILY)


def test_csv_provider(tmp_path):
    (tmp_path / "AAA.csv").write_text(
        "date,open,high,low,close,volume\n"
        "2024-01-03,101,103,100,102,1500\n"
        "2024-01-02,100,102,99,101,1200\n"
        "2024-01-04,103,105,102,104,\n",
        encoding="utf-8",
    )
    provider = CsvBarProvider(tmp_path)
    bars = provider.get_bars("AAA", None, None, BarInterval.DAILY)
    assert [bar.close for bar in bars] == [101.0, 102.0, 104.0]
    assert bars[-1].open == 103.0
    assert bars[-1].volume == 0.0
    with pytest.raises(MarketDataError):
        provider.get_bars("BBB", None, None, BarInterval.DAILY)


def test_csv_with_unparseable_value_is_market_data_error(tmp_path):
    (tmp_path / "BAD.csv").write_text("date,close\n2024-01-02,abc\n", encoding="utf-8")
    with pytest.raises(MarketDataError):
        CsvBarProvider(tmp_path).get_bars("BAD", None, None, BarInterval.DAILY)


def test_csv_missing_close_is_kept_for_validation(tmp_path):
    path = tmp_path / "GAP.csv"
    path.write_text(
        "timestamp,open,high,low,close\n2024-01-02,100,101,99,100\n2024-01-03,100,101,99,\n",
        encoding="utf-8",
    )
    bars = read_bars_csv(path)
    assert bars[1].close is None
    with pytest.raises(DataIntegrityError):
        validate_bars(bars, "GAP")


def test_csv_blank_high_and_low_are_not_filled_from_close(tmp_path):
    (tmp_path / "HOLE.csv").write_text(
        "date,open,high,low,close,volume\n2024-01-02,100,,,101,10\n",
        encoding="utf-8",
    )
    bars = CsvBarProvider(tmp_path).get_bars("HOLE", None, None, BarInterval.DAILY)
    assert bars[0].high is None
    assert bars[0].low is None
    with pytest.raises(DataIntegrityError, match="high"):
        validate_bars(bars, "HOLE")


def test_csv_close_only_file_is_rejected(tmp_path):
    path = tmp_path / "THIN.csv"
    path.write_text("date,close\n2024-01-02,100\n", encoding="utf-8")
    bars = read_bars_csv(path)
    assert bars[0].open is None
    with pytest.raises(DataIntegrityError):
        validate_bars(bars)


def test_validate_rejects_inverted_range():
    bar = Bar(timestamp=datetime(2024, 1, 2), open=100, high=99, low=101, close=100)
    with pytest.raises(DataIntegrityError):
        validate_bars([bar])
