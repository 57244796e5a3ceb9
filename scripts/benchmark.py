#!/usr/bin/env python3
"""Benchmark entry point: build, grow and query an index on a synthetic workload."""

from __future__ import annotations

import argparse

from tsindex.bench.runner import run_benchmark, summarize
from tsindex.utils.config import load_config


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Benchmark the interval aggregate index on a synthetic workload",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
examples:
  python scripts/benchmark.py
  python scripts/benchmark.py --workload sine
  python scripts/benchmark.py --set workload.n_buckets=1000000 --set mlflow.enabled=false
""",
    )
    parser.add_argument(
        "--config",
        default="configs/default.yaml",
        help="Path to base config (default: configs/default.yaml)",
    )
    parser.add_argument(
        "--workload",
        default=None,
        help="Workload name (e.g. sine) or path to a workload config",
    )
    parser.add_argument(
        "--set",
        action="append",
        default=[],
        dest="overrides",
        metavar="KEY=VALUE",
        help="Override config values (e.g. --set bench.n_queries=500)",
    )
    parser.add_argument("--no-progress", action="store_true", help="Hide progress bars")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    config = load_config(
        default_path=args.config,
        workload=args.workload,
        overrides=args.overrides,
    )

    wl = config["workload"]
    print(f"Workload: {wl['kind']}")
    print(f"Buckets: {wl['n_buckets']} built + {wl.get('append_buckets', 0)} appended")

    metrics = run_benchmark(config, progress=not args.no_progress)
    print(summarize(metrics))

    if metrics.get("verify/mismatches", 0):
        raise SystemExit(f"{metrics['verify/mismatches']:.0f} query answers disagree with a linear scan")


if __name__ == "__main__":
    main()
