import argparse
from pathlib import Path

from backtester.config import compute_config_hash, freeze_config, load_config, verify_config_lock

DEFAULT_CONFIG = Path("configs/backtest_v1.yaml")


def main() -> None:
    parser = argparse.ArgumentParser(description="Write a hash lock file next to a backtest engine config")
    parser.add_argument("config", nargs="?", default=str(DEFAULT_CONFIG), help="Backtest YAML config")
    parser.add_argument("--lock", default=None, help="Lock file path (default: <config>.lock.json)")
    args = parser.parse_args()

    path = Path(args.config)
    # refuse to lock a config the engine cannot load
    config = load_config(path)
    lock_path = freeze_config(path, args.lock)
    if not verify_config_lock(path, lock_path):
        raise SystemExit(f"Lock mismatch for {path} -> {lock_path}")
    print(f"Frozen {config.name} v{config.version} ({path}) -> {lock_path} [{compute_config_hash(path)[:12]}]")


if __name__ == "__main__":
    main()
