"""Error taxonomy for the backtesting engine."""

from __future__ import annotations


class BacktestError(Exception):
    code = "backtest_error"


class DataIntegrityError(BacktestError):
    """A bar is malformed: missing or NaN prices, bad ordering."""

    code = "data_integrity"


class InvalidConfigError(BacktestError):
    """Rejected before any simulation runs."""

    code = "invalid_config"


class ComputationError(BacktestError):
    """A metric came out NaN or infinite."""

    code = "computation"


class MarketDataError(BacktestError):
    """The price-series provider could not supply bars for a symbol."""

    code = "market_data"
