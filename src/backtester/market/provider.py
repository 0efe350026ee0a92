"""Price-series providers feeding the engine."""

from __future__ import annotations

import csv
from datetime import date, datetime
from pathlib import Path
from typing import Iterable, Optional

from backtester.errors import MarketDataError
from backtester.market.models import Bar, BarInterval, validate_bars


class PriceSeriesProvider:
    def get_bars(
        self,
        symbol: str,
        start: Optional[date],
        end: Optional[date],
        interval: BarInterval,
    ) -> list[Bar]:  # pragma: no cover - interface
        raise NotImplementedError


def _in_range(bar: Bar, start: Optional[date], end: Optional[date]) -> bool:
    day = bar.timestamp.date()
    if start is not None and day < start:
        return False
    if end is not None and day > end:
        return False
    return True


def _period_key(timestamp: datetime, interval: BarInterval) -> tuple[int, int]:
    if interval == BarInterval.WEEKLY:
        iso = timestamp.isocalendar()
        return iso[0], iso[1]
    return timestamp.year, timestamp.month


def aggregate_bars(bars: Iterable[Bar], interval: BarInterval) -> list[Bar]:
    """Roll daily bars up into weekly or monthly bars stamped at the period's first bar."""
    ordered = sorted(bars, key=lambda bar: bar.timestamp)
    if interval == BarInterval.DAILY:
        return ordered
    validate_bars(ordered)

    grouped: dict[tuple[int, int], list[Bar]] = {}
    for bar in ordered:
        grouped.setdefault(_period_key(bar.timestamp, interval), []).append(bar)

    aggregated: list[Bar] = []
    for group in grouped.values():
        aggregated.append(
            Bar(
                timestamp=group[0].timestamp,
                open=group[0].open,
                high=max(bar.high for bar in group),
                low=min(bar.low for bar in group),
                close=group[-1].close,
                volume=sum(bar.volume for bar in group),
            )
        )
    return aggregated


class InMemoryBarProvider(PriceSeriesProvider):
    def __init__(self, series: dict[str, list[Bar]], source_interval: BarInterval = BarInterval.DAILY) -> None:
        self.series = series
        self.source_interval = source_interval

    def get_bars(
        self,
        symbol: str,
        start: Optional[date],
        end: Optional[date],
        interval: BarInterval,
    ) -> list[Bar]:
        if symbol not in self.series:
            raise MarketDataError(f"No data for {symbol}")
        bars = [bar for bar in self.series[symbol] if _in_range(bar, start, end)]
        if not bars:
            raise MarketDataError(f"No bars for {symbol} between {start} and {end}")
        if interval != self.source_interval:
            bars = aggregate_bars(bars, interval)
        return bars


def _optional_float(value: Optional[str]) -> Optional[float]:
    if value is None or value.strip() == "":
        return None
    return float(value)


def _parse_row(row: dict) -> Bar | None:
    time_raw = row.get("timestamp") or row.get("time") or row.get("date")
    if not time_raw:
        return None
    close = _optional_float(row.get("close"))
    return Bar(
        timestamp=datetime.fromisoformat(time_raw),
        open=_optional_float(row.get("open")),
        high=_optional_float(row.get("high")),
        low=_optional_float(row.get("low")),
        close=close,
        volume=_optional_float(row.get("volume")) or 0.0,
    )


def read_bars_csv(path: str | Path) -> list[Bar]:
    path = Path(path)
    bars: list[Bar] = []
    with path.open("r", encoding="utf-8", newline="") as handle:
        reader = csv.DictReader(handle)
        for row in reader:
            bar = _parse_row(row)
            if bar:
                bars.append(bar)
    bars.sort(key=lambda b: b.timestamp)
    return bars


class CsvBarProvider(PriceSeriesProvider):
    """Reads daily bars from ``<directory>/<SYMBOL>.csv``."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def get_bars(
        self,
        symbol: str,
        start: Optional[date],
        end: Optional[date],
        interval: BarInterval,
    ) -> list[Bar]:
        path = self.directory / f"{symbol}.csv"
        if not path.exists():
            raise MarketDataError(f"No data file for {symbol}: {path}")
        try:
            bars = read_bars_csv(path)
        except ValueError as exc:
            raise MarketDataError(f"Unreadable data file for {symbol}: {exc}") from exc
        bars = [bar for bar in bars if _in_range(bar, start, end)]
        if not bars:
            raise MarketDataError(f"No bars for {symbol} between {start} and {end}")
        return aggregate_bars(bars, interval)
