from __future__ import annotations

import argparse
import json
from datetime import datetime, timezone
from pathlib import Path

from backtester.config import load_config
from backtester.market import CsvBarProvider
from backtester.monitoring import LogNotifier
from backtester.runtime import BacktestOrchestrator, create_run_context


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--config", default="configs/backtest_v1.yaml")
    parser.add_argument("--data-dir", required=True, help="Directory of <SYMBOL>.csv files")
    parser.add_argument("--mode", default="single", choices=["single", "compare_strategies", "compare_symbols"])
    parser.add_argument("--symbols", nargs="+", required=True)
    parser.add_argument("--strategies", nargs="+", default=["hybrid"])
    parser.add_argument("--start")
    parser.add_argument("--end")
    parser.add_argument("--interval")
    parser.add_argument("--monte-carlo", action="store_true")
    parser.add_argument("--simulations", type=int)
    parser.add_argument("--output", default="reports/backtest.json")
    args = parser.parse_args()

    config_path = Path(args.config)
    config = load_config(config_path)
    context = create_run_context(config_path, config.run_id_prefix)
    audit_log = None
    if config.monitoring.audit_log_path:
        audit_log = context.audit_log(config.monitoring.audit_log_path)

    orchestrator = BacktestOrchestrator(
        CsvBarProvider(args.data_dir),
        config,
        audit_log=audit_log,
        notifier=LogNotifier(),
    )
    request = {
        "mode": args.mode,
        "symbols": args.symbols,
        "strategies": args.strategies,
        "start_date": args.start,
        "end_date": args.end,
        "run_monte_carlo": args.monte_carlo,
        "monte_carlo_simulations": args.simulations,
    }
    if args.interval:
        request["interval"] = args.interval
    response = orchestrator.run(request)

    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    report = {
        "generated_at_utc": datetime.now(timezone.utc).isoformat(),
        "run_id": context.run_id,
        "config_path": str(config_path),
        "config_hash": context.config_hash,
        **response.to_dict(),
    }
    output_path.write_text(json.dumps(report, indent=2, default=str), encoding="utf-8")
    print(f"Best: {response.best} ({response.best_key})")
    print(f"Wrote {output_path}")


if __name__ == "__main__":
    main()
