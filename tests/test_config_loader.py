import runpy
from pathlib import Path

import pytest

yaml = pytest.importorskip("yaml")

from backtester.config import (
    IntrabarPolicy,
    MacdMode,
    compute_config_hash,
    freeze_config,
    load_config,
    serialize_config,
    verify_config_lock,
)
from backtester.market import BarInterval
from backtester.runtime import create_run_context

SAMPLE = Path(__file__).resolve().parent.parent / "configs" / "backtest_v1.yaml"


def test_load_config_sample():
    config = load_config(SAMPLE)
    assert config.name == "backtester"
    assert config.version == "1"
    assert config.risk.stop_loss_pct == 0.03
    assert config.risk.take_profit_pct == 0.12
    assert config.risk.trailing_stop_pct == 0.08
    assert config.simulator.interval == BarInterval.DAILY
    assert config.simulator.intrabar_policy == IntrabarPolicy.STOP_FIRST
    assert config.simulator.trailing_activation_pct is None
    assert config.indicators.macd_mode == MacdMode.SINGLE_POINT
    assert config.monte_carlo.seed is None
    assert config.strategy_parameters("hybrid") == {"min_agreement": 2}
    assert config.strategy_parameters("unknown") == {}


def test_minimal_config_uses_defaults(tmp_path):
    path = tmp_path / "minimal.yaml"
    path.write_text(
        "name: quick\nversion: 2\nsimulator:\n  intrabar_policy: open_direction\n  interval: weekly\n"
        "  trailing_activation_pct: 0.08\n"
        "indicators:\n  macd_mode: rolling\n",
        encoding="utf-8",
    )
    config = load_config(path)
    assert config.run_id_prefix == "quick"
    assert config.risk.initial_capital == 100000.0
    assert config.simulator.intrabar_policy == IntrabarPolicy.OPEN_DIRECTION
    assert config.simulator.interval == BarInterval.WEEKLY
    assert config.simulator.trailing_activation_pct == 0.08
    assert config.indicators.macd_mode == MacdMode.ROLLING
    assert config.orchestrator.timeout_seconds is None


@pytest.mark.parametrize(
    "body",
    [
        "- not\n- a mapping\n",
        "version: 1\n",
        "name: x\nversion: 1\nsimulator:\n  intrabar_policy: sideways\n",
        "name: x\nversion: 1\nrisk:\n  position_size_pct: 0\n",
        "name: x\nversion: 1\nmonte_carlo:\n  simulations: 0\n",
        "name: x\nversion: 1\nstrategies: [momentum]\n",
    ],
)
def test_malformed_config_raises(tmp_path, body):
    path = tmp_path / "bad.yaml"
    path.write_text(body, encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path)


def test_serialize_config_uses_plain_values():
    payload = serialize_config(load_config(SAMPLE))
    assert payload["simulator"]["interval"] == "1d"
    assert payload["simulator"]["intrabar_policy"] == "stop_first"
    assert payload["indicators"]["macd_mode"] == "single_point"
    yaml.safe_dump(payload)


def test_freeze_and_verify(tmp_path):
    target = tmp_path / "backtest_v1.yaml"
    target.write_text(SAMPLE.read_text(encoding="utf-8"), encoding="utf-8")

    lock_path = freeze_config(target)
    assert verify_config_lock(target, lock_path)

    target.write_text(SAMPLE.read_text(encoding="utf-8") + "\n# edited\n", encoding="utf-8")
    assert not verify_config_lock(target, lock_path)
    assert not verify_config_lock(target, tmp_path / "missing.lock.json")


def test_run_context_embeds_config_hash():
    context = create_run_context(SAMPLE, "bt")
    config_hash = compute_config_hash(SAMPLE)
    assert context.config_hash == config_hash
    assert context.run_id.startswith("bt-")
    assert context.run_id.endswith(config_hash[:8])
    assert create_run_context(SAMPLE, "bt", run_id="fixed").run_id == "fixed"


FREEZE_SCRIPT = SAMPLE.parent.parent / "scripts" / "freeze_config.py"


def test_freeze_script_locks_backtest_config(tmp_path, monkeypatch, capsys):
    target = tmp_path / "backtest_v1.yaml"
    target.write_text(SAMPLE.read_text(encoding="utf-8"), encoding="utf-8")
    lock_path = tmp_path / "pinned.lock.json"
    monkeypatch.setattr("sys.argv", ["freeze_config.py", str(target), "--lock", str(lock_path)])

    runpy.run_path(str(FREEZE_SCRIPT), run_name="__main__")

    assert verify_config_lock(target, lock_path)
    assert "Frozen backtester v1" in capsys.readouterr().out


def test_freeze_script_refuses_unloadable_config(tmp_path, monkeypatch):
    target = tmp_path / "broken.yaml"
    target.write_text("name: x\nversion: 1\nsimulator:\n  intrabar_policy: sideways\n", encoding="utf-8")
    monkeypatch.setattr("sys.argv", ["freeze_config.py", str(target)])

    with pytest.raises(ValueError):
        runpy.run_path(str(FREEZE_SCRIPT), run_name="__main__")
    assert not (tmp_path / "broken.yaml.lock.json").exists()
