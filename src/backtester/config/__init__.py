"""Config loading and freezing."""

from backtester.config.loader import (
    compute_config_hash,
    freeze_config,
    load_config,
    serialize_config,
    verify_config_lock,
)
from backtester.config.models import (
    EngineConfig,
    IndicatorConfig,
    IntrabarPolicy,
    MacdMode,
    MonitoringConfig,
    MonteCarloConfig,
    OrchestratorConfig,
    RiskDefaults,
    SimulatorConfig,
)

__all__ = [
    "EngineConfig",
    "IndicatorConfig",
    "IntrabarPolicy",
    "MacdMode",
    "MonitoringConfig",
    "MonteCarloConfig",
    "OrchestratorConfig",
    "RiskDefaults",
    "SimulatorConfig",
    "compute_config_hash",
    "freeze_config",
    "load_config",
    "serialize_config",
    "verify_config_lock",
]
