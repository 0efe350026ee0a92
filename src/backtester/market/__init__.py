"""Bar data models and price-series providers."""

from backtester.market.models import Bar, BarInterval, validate_bars
from backtester.market.provider import (
    CsvBarProvider,
    InMemoryBarProvider,
    PriceSeriesProvider,
    aggregate_bars,
    read_bars_csv,
)

__all__ = [
    "Bar",
    "BarInterval",
    "CsvBarProvider",
    "InMemoryBarProvider",
    "PriceSeriesProvider",
    "aggregate_bars",
    "read_bars_csv",
    "validate_bars",
]
