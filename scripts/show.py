#!/usr/bin/env python3
"""Print a small index as a sideways tree and optionally answer one query."""

from __future__ import annotations

import argparse

from tsindex.bench.workload import make_buckets_from_config
from tsindex.index.segment import Span
from tsindex.index.tree import SegmentIndex
from tsindex.utils.config import load_config
from tsindex.utils.seeding import seed_everything


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Render an index built from a workload")
    parser.add_argument("--config", default="configs/default.yaml")
    parser.add_argument(
        "--workload",
        default=None,
        help="Workload name (e.g. sine) or path to a workload config",
    )
    parser.add_argument("--buckets", type=int, default=6, help="Number of buckets to index")
    parser.add_argument("--append", type=int, default=0, help="Buckets appended after build")
    parser.add_argument(
        "--span",
        nargs=2,
        type=int,
        metavar=("START", "END"),
        default=None,
        help="Query span [START, END)",
    )
    parser.add_argument("--strategy", default=None, help="Query strategy (default: from config)")
    parser.add_argument("--set", action="append", default=[], dest="overrides", metavar="KEY=VALUE")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    config = load_config(
        default_path=args.config,
        workload=args.workload,
        overrides=[
            *args.overrides,
            f"workload.n_buckets={args.buckets}",
            f"workload.append_buckets={args.append}",
        ],
    )

    rng = seed_everything(config.get("seed", 42))
    buckets = make_buckets_from_config(config, rng)
    index = SegmentIndex.from_batch(buckets[: args.buckets])
    for bucket in buckets[args.buckets :]:
        index.append(bucket)

    print(index.render())

    if args.span is not None:
        strategy = args.strategy or config.get("index", {}).get("strategy", "dfs")
        result = index.query(Span(*args.span), strategy)
        print(f"\nquery {Span(*args.span)} ({strategy}): {result}")


if __name__ == "__main__":
    main()
