"""Backtest request and response shapes."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional

from backtester.config.models import RiskDefaults
from backtester.errors import InvalidConfigError
from backtester.market.models import BarInterval
from backtester.simulator.models import BacktestResult, MonteCarloResult, StrategyConfig
from backtester.strategy.base import StrategyName
from backtester.strategy.factory import parse_strategy_name

DEFAULT_STRATEGY = StrategyName.HYBRID
_MISSING = object()


class BacktestMode(str, Enum):
    SINGLE = "single"
    COMPARE_STRATEGIES = "compare_strategies"
    COMPARE_SYMBOLS = "compare_symbols"


def _pick(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return _MISSING


def _risk_value(data: dict[str, Any], snake: str, camel: str, percent: str, default: Optional[float]) -> Optional[float]:
    value = _pick(data, snake, camel)
    if value is not _MISSING:
        return None if value is None else float(value)
    # whole-number percent form, e.g. stopLossPercent: 3
    value = _pick(data, percent)
    if value is not _MISSING:
        return None if value is None else float(value) / 100
    return default


def _parse_date(value: Any, key: str) -> Optional[date]:
    if value is _MISSING or value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as exc:
        raise InvalidConfigError(f"Invalid {key}: {value}") from exc


@dataclass(frozen=True)
class BacktestRequest:
    mode: BacktestMode
    symbols: list[str]
    strategies: list[StrategyName]
    start: Optional[date] = None
    end: Optional[date] = None
    initial_capital: float = 100000.0
    stop_loss_pct: Optional[float] = 0.03
    take_profit_pct: Optional[float] = 0.12
    trailing_stop_pct: Optional[float] = 0.08
    position_size_pct: float = 0.25
    run_monte_carlo: bool = False
    monte_carlo_simulations: Optional[int] = None
    interval: Optional[BarInterval] = None

    @staticmethod
    def from_dict(data: dict[str, Any], defaults: Optional[RiskDefaults] = None) -> "BacktestRequest":
        defaults = defaults or RiskDefaults()
        try:
            mode = BacktestMode(data.get("mode") or BacktestMode.SINGLE.value)
        except ValueError as exc:
            raise InvalidConfigError(f"Unknown mode: {data.get('mode')}") from exc

        symbols = data.get("symbols") or []
        if isinstance(symbols, str):
            symbols = [symbols]
        if not symbols and data.get("symbol"):
            symbols = [data["symbol"]]
        strategies = data.get("strategies") or []
        if isinstance(strategies, str):
            strategies = [strategies]
        if not strategies and data.get("strategy"):
            strategies = [data["strategy"]]
        if not strategies:
            strategies = [DEFAULT_STRATEGY]

        interval = _pick(data, "interval")
        simulations = _pick(data, "monte_carlo_simulations", "monteCarloSimulations")
        try:
            return BacktestRequest(
                mode=mode,
                symbols=[str(symbol).strip() for symbol in symbols],
                strategies=[parse_strategy_name(name) for name in strategies],
                start=_parse_date(_pick(data, "start_date", "startDate", "start"), "start_date"),
                end=_parse_date(_pick(data, "end_date", "endDate", "end"), "end_date"),
                initial_capital=float(
                    data.get("initial_capital", data.get("initialCapital", defaults.initial_capital))
                ),
                stop_loss_pct=_risk_value(
                    data, "stop_loss_pct", "stopLossPct", "stopLossPercent", defaults.stop_loss_pct
                ),
                take_profit_pct=_risk_value(
                    data, "take_profit_pct", "takeProfitPct", "takeProfitPercent", defaults.take_profit_pct
                ),
                trailing_stop_pct=_risk_value(
                    data, "trailing_stop_pct", "trailingStopPct", "trailingStopPercent", defaults.trailing_stop_pct
                ),
                position_size_pct=float(
                    _risk_value(
                        data,
                        "position_size_pct",
                        "positionSizePct",
                        "positionSizePercent",
                        defaults.position_size_pct,
                    )
                ),
                run_monte_carlo=bool(data.get("run_monte_carlo", data.get("runMonteCarlo", False))),
                monte_carlo_simulations=None if simulations in (_MISSING, None) else int(simulations),
                interval=None if interval in (_MISSING, None) else BarInterval(interval),
            )
        except (TypeError, ValueError) as exc:
            raise InvalidConfigError(f"Invalid backtest request: {exc}") from exc

    def pairs(self) -> list[tuple[str, StrategyName]]:
        if self.mode == BacktestMode.COMPARE_STRATEGIES:
            return [(self.symbols[0], strategy) for strategy in self.strategies]
        if self.mode == BacktestMode.COMPARE_SYMBOLS:
            return [(symbol, self.strategies[0]) for symbol in self.symbols]
        return [(self.symbols[0], self.strategies[0])]

    def strategy_config(self, strategy: StrategyName, parameters: Optional[dict[str, Any]] = None) -> StrategyConfig:
        return StrategyConfig(
            name=strategy,
            initial_capital=self.initial_capital,
            position_size_pct=self.position_size_pct,
            stop_loss_pct=self.stop_loss_pct,
            take_profit_pct=self.take_profit_pct,
            trailing_stop_pct=self.trailing_stop_pct,
            parameters=dict(parameters or {}),
        )

    def validate(self) -> None:
        if not self.symbols or any(not symbol for symbol in self.symbols):
            raise InvalidConfigError("At least one symbol is required")
        if not self.strategies:
            raise InvalidConfigError("At least one strategy is required")
        if self.start is not None and self.end is not None and self.start > self.end:
            raise InvalidConfigError(f"start_date {self.start} is after end_date {self.end}")
        if self.monte_carlo_simulations is not None and self.monte_carlo_simulations < 1:
            raise InvalidConfigError("monte_carlo_simulations must be at least 1")
        for strategy in self.strategies:
            self.strategy_config(strategy).validate()


@dataclass(frozen=True)
class PairFailure:
    symbol: str
    strategy: StrategyName
    code: str
    message: str

    @property
    def key(self) -> str:
        return f"{self.symbol}_{self.strategy.value}"


def to_plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(to_plain(key)): to_plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(item) for item in value]
    return value


@dataclass(frozen=True)
class BacktestResponse:
    mode: BacktestMode
    results: list[BacktestResult]
    failures: list[PairFailure] = field(default_factory=list)
    best: Optional[str] = None
    best_key: Optional[str] = None
    monte_carlo: dict[str, Optional[MonteCarloResult]] = field(default_factory=dict)
    timed_out: bool = False

    @property
    def summary(self) -> dict[str, Any]:
        returns = [result.total_return_pct for result in self.results]
        return {
            "total_backtests": len(self.results),
            "failed_backtests": len(self.failures),
            "best_return": max(returns) if returns else None,
            "best_win_rate": max((result.win_rate for result in self.results), default=None),
            "lowest_drawdown": min((result.max_drawdown_pct for result in self.results), default=None),
        }

    def result_for(self, key: str) -> Optional[BacktestResult]:
        for result in self.results:
            if result.key == key:
                return result
        return None

    def to_dict(self) -> dict[str, Any]:
        results = []
        for result in self.results:
            payload = to_plain(asdict(result))
            payload["key"] = result.key
            results.append(payload)
        return {
            "mode": self.mode.value,
            "results": results,
            "failures": [dict(to_plain(asdict(failure)), key=failure.key) for failure in self.failures],
            "best": self.best,
            "best_key": self.best_key,
            "monte_carlo": {
                key: None if value is None else to_plain(asdict(value)) for key, value in self.monte_carlo.items()
            },
            "timed_out": self.timed_out,
            "summary": self.summary,
        }
