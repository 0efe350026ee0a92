"""Configuration models for reproducible backtests."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from backtester.market.models import BarInterval


class MacdMode(str, Enum):
    SINGLE_POINT = "single_point"
    ROLLING = "rolling"


class IntrabarPolicy(str, Enum):
    STOP_FIRST = "stop_first"
    OPEN_DIRECTION = "open_direction"


@dataclass(frozen=True)
class RiskDefaults:
    initial_capital: float = 100000.0
    stop_loss_pct: Optional[float] = 0.03
    take_profit_pct: Optional[float] = 0.12
    trailing_stop_pct: Optional[float] = 0.08
    position_size_pct: float = 0.25


@dataclass(frozen=True)
class IndicatorConfig:
    rsi_period: int = 14
    ema_fast: int = 9
    ema_slow: int = 21
    sma_fast: int = 20
    sma_slow: int = 50
    bollinger_window: int = 20
    bollinger_stddev: float = 2.0
    atr_period: int = 14
    volume_window: int = 20
    macd_mode: MacdMode = MacdMode.SINGLE_POINT


@dataclass(frozen=True)
class SimulatorConfig:
    interval: BarInterval = BarInterval.DAILY
    intrabar_policy: IntrabarPolicy = IntrabarPolicy.STOP_FIRST
    min_history_bars: int = 50
    trailing_activation_pct: Optional[float] = None


@dataclass(frozen=True)
class MonteCarloConfig:
    simulations: int = 1000
    seed: Optional[int] = None
    gain_threshold_pct: float = 10.0
    loss_threshold_pct: float = -10.0
    min_trades: int = 1


@dataclass(frozen=True)
class OrchestratorConfig:
    max_workers: int = 4
    timeout_seconds: Optional[float] = None


@dataclass(frozen=True)
class MonitoringConfig:
    audit_log_path: Optional[str] = "runtime/audit.log"


@dataclass(frozen=True)
class EngineConfig:
    name: str = "backtester"
    version: str = "1"
    run_id_prefix: str = "bt"
    risk: RiskDefaults = RiskDefaults()
    indicators: IndicatorConfig = IndicatorConfig()
    simulator: SimulatorConfig = SimulatorConfig()
    strategies: dict[str, dict[str, Any]] = field(default_factory=dict)
    monte_carlo: MonteCarloConfig = MonteCarloConfig()
    orchestrator: OrchestratorConfig = OrchestratorConfig()
    monitoring: MonitoringConfig = MonitoringConfig()

    def strategy_parameters(self, name: str) -> dict[str, Any]:
        return dict(self.strategies.get(name, {}) or {})
