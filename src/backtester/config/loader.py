"""Load and freeze configuration files."""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import yaml

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
from backtester.market.models import BarInterval


def load_config(path: str | Path) -> EngineConfig:
    path = Path(path)
    data = _load_yaml(path)

    name = str(_require(data, "name"))
    version = str(_require(data, "version"))
    run_id_prefix = str(data.get("run_id_prefix", name))

    strategies = data.get("strategies") or {}
    if not isinstance(strategies, dict):
        raise ValueError("strategies must be a mapping of strategy name to parameters")

    return EngineConfig(
        name=name,
        version=version,
        run_id_prefix=run_id_prefix,
        risk=_parse_risk(data.get("risk") or {}),
        indicators=_parse_indicators(data.get("indicators") or {}),
        simulator=_parse_simulator(data.get("simulator") or {}),
        strategies={str(key): dict(value or {}) for key, value in strategies.items()},
        monte_carlo=_parse_monte_carlo(data.get("monte_carlo") or {}),
        orchestrator=_parse_orchestrator(data.get("orchestrator") or {}),
        monitoring=_parse_monitoring(data.get("monitoring") or {}),
    )


def compute_config_hash(path: str | Path) -> str:
    path = Path(path)
    content = path.read_bytes()
    return hashlib.sha256(content).hexdigest()


def _lock_path_for(path: Path, lock_path: Optional[str | Path]) -> Path:
    if lock_path is None:
        return path.with_suffix(path.suffix + ".lock.json")
    return Path(lock_path)


def freeze_config(path: str | Path, lock_path: Optional[str | Path] = None) -> Path:
    path = Path(path)
    lock_path = _lock_path_for(path, lock_path)
    payload = {
        "config_path": str(path),
        "config_hash": compute_config_hash(path),
        "frozen_at_utc": datetime.now(timezone.utc).isoformat(),
    }
    lock_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return lock_path


def verify_config_lock(path: str | Path, lock_path: Optional[str | Path] = None) -> bool:
    path = Path(path)
    lock_path = _lock_path_for(path, lock_path)
    if not lock_path.exists():
        return False
    payload = json.loads(lock_path.read_text(encoding="utf-8"))
    return payload.get("config_hash") == compute_config_hash(path)


def _load_yaml(path: Path) -> dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Config must be a mapping")
    return data


def _require(data: dict[str, Any], key: str) -> Any:
    if key not in data:
        raise ValueError(f"Missing required config key: {key}")
    return data[key]


def _parse_enum(enum_cls, value: Any, key: str):
    try:
        return enum_cls(value)
    except Exception as exc:
        raise ValueError(f"Invalid {key}: {value}") from exc


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    return float(value)


def _positive(value: float, key: str) -> float:
    if value <= 0:
        raise ValueError(f"{key} must be positive, got {value}")
    return value


def _parse_risk(data: dict[str, Any]) -> RiskDefaults:
    defaults = RiskDefaults()
    return RiskDefaults(
        initial_capital=_positive(float(data.get("initial_capital", defaults.initial_capital)), "initial_capital"),
        stop_loss_pct=_optional_float(data.get("stop_loss_pct", defaults.stop_loss_pct)),
        take_profit_pct=_optional_float(data.get("take_profit_pct", defaults.take_profit_pct)),
        trailing_stop_pct=_optional_float(data.get("trailing_stop_pct", defaults.trailing_stop_pct)),
        position_size_pct=_positive(
            float(data.get("position_size_pct", defaults.position_size_pct)), "position_size_pct"
        ),
    )


def _parse_indicators(data: dict[str, Any]) -> IndicatorConfig:
    return IndicatorConfig(
        rsi_period=int(data.get("rsi_period", 14)),
        ema_fast=int(data.get("ema_fast", 9)),
        ema_slow=int(data.get("ema_slow", 21)),
        sma_fast=int(data.get("sma_fast", 20)),
        sma_slow=int(data.get("sma_slow", 50)),
        bollinger_window=int(data.get("bollinger_window", 20)),
        bollinger_stddev=float(data.get("bollinger_stddev", 2.0)),
        atr_period=int(data.get("atr_period", 14)),
        volume_window=int(data.get("volume_window", 20)),
        macd_mode=_parse_enum(MacdMode, data.get("macd_mode", "single_point"), "macd_mode"),
    )


def _parse_simulator(data: dict[str, Any]) -> SimulatorConfig:
    return SimulatorConfig(
        interval=_parse_enum(BarInterval, data.get("interval", "1d"), "interval"),
        intrabar_policy=_parse_enum(
            IntrabarPolicy, data.get("intrabar_policy", "stop_first"), "intrabar_policy"
        ),
        min_history_bars=int(data.get("min_history_bars", 50)),
        trailing_activation_pct=_optional_float(data.get("trailing_activation_pct")),
    )


def _parse_monte_carlo(data: dict[str, Any]) -> MonteCarloConfig:
    seed = data.get("seed")
    return MonteCarloConfig(
        simulations=int(_positive(int(data.get("simulations", 1000)), "simulations")),
        seed=int(seed) if seed is not None else None,
        gain_threshold_pct=float(data.get("gain_threshold_pct", 10.0)),
        loss_threshold_pct=float(data.get("loss_threshold_pct", -10.0)),
        min_trades=int(data.get("min_trades", 1)),
    )


def _parse_orchestrator(data: dict[str, Any]) -> OrchestratorConfig:
    return OrchestratorConfig(
        max_workers=int(_positive(int(data.get("max_workers", 4)), "max_workers")),
        timeout_seconds=_optional_float(data.get("timeout_seconds")),
    )


def _parse_monitoring(data: dict[str, Any]) -> MonitoringConfig:
    path = data.get("audit_log_path", "runtime/audit.log")
    return MonitoringConfig(audit_log_path=str(path) if path else None)


def serialize_config(config: EngineConfig) -> dict[str, Any]:
    payload = asdict(config)
    payload["indicators"]["macd_mode"] = config.indicators.macd_mode.value
    payload["simulator"]["interval"] = config.simulator.interval.value
    payload["simulator"]["intrabar_policy"] = config.simulator.intrabar_policy.value
    return payload
