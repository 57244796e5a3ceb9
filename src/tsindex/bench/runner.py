"""Benchmark loop: build, append, update and query an index on a synthetic workload."""

from __future__ import annotations

import math
import time

from tqdm import tqdm

from tsindex.bench.workload import make_buckets, make_buckets_from_config, random_spans
from tsindex.index.segment import Segment, Span, fold
from tsindex.index.tree import SegmentIndex
from tsindex.queries import available_strategies
from tsindex.utils.logging import ExperimentLogger
from tsindex.utils.seeding import seed_everything


def same_aggregate(a: Segment | None, b: Segment | None, rel_tol: float = 1e-9) -> bool:
    """Compare two query answers; sums may differ by summation order."""
    if a is None or b is None:
        return a is b
    return (
        a.count == b.count
        and a.min == b.min
        and a.max == b.max
        and math.isclose(a.sum, b.sum, rel_tol=rel_tol, abs_tol=1e-9)
    )


def reference_query(leaves: list[Segment], span: Span) -> Segment | None:
    """Linear scan over the leaves touching *span*."""
    return fold(leaf for leaf in leaves if leaf.span.overlaps(span))


def run_benchmark(
    config: dict,
    logger: ExperimentLogger | None = None,
    progress: bool = True,
) -> dict[str, float]:
    """Run one benchmark pass and return its metrics.

    Steps: generate buckets → build → append → update → query (+ verify).
    If no *logger* is given one is created from the ``mlflow`` section
    unless it is disabled; that run is ended here, as ``FAILED`` if the
    pass raised.  A caller-supplied logger is left open.
    """
    if logger is not None:
        return _run(config, logger, progress)
    owned = ExperimentLogger.from_config(config)
    if owned is None:
        return _run(config, None, progress)
    with owned:
        return _run(config, owned, progress)


def _run(config: dict, logger: ExperimentLogger | None, progress: bool) -> dict[str, float]:
    wl_cfg = config["workload"]
    bench_cfg = config.get("bench", {})
    verify = bench_cfg.get("verify", True)

    rng = seed_everything(config.get("seed", 42))
    if logger is not None:
        logger.log_params(config)
        logger.set_tags(
            {
                "workload": wl_cfg.get("kind", "random_walk"),
                "strategies": ",".join(available_strategies()),
            }
        )

    # ── build ─────────────────────────────────────────────────────────────
    buckets = make_buckets_from_config(config, rng)
    n_initial = wl_cfg["n_buckets"]
    t0 = time.perf_counter()
    index = SegmentIndex.from_batch(buckets[:n_initial])
    build_seconds = time.perf_counter() - t0

    # ── append ────────────────────────────────────────────────────────────
    t0 = time.perf_counter()
    for bucket in tqdm(buckets[n_initial:], desc="Append", disable=not progress):
        resizes = index.grow_count
        index.append(bucket)
        if logger is not None and index.grow_count != resizes:
            logger.log_metric("index/capacity_growth", float(index.capacity), step=len(index))
    append_seconds = time.perf_counter() - t0

    # ── update ────────────────────────────────────────────────────────────
    n_updates = bench_cfg.get("n_updates", 0) if len(index) else 0
    targets = rng.integers(0, len(index), size=n_updates) if n_updates else []
    t0 = time.perf_counter()
    for i in targets:
        old = buckets[int(i)]
        new = make_buckets(
            rng,
            1,
            kind=wl_cfg.get("kind", "random_walk"),
            bucket_width=old.span.width,
            samples_per_bucket=wl_cfg.get("samples_per_bucket", 8),
            start=old.span.start,
        )[0]
        index.update(old.span.start, new)
        buckets[int(i)] = new
    update_seconds = time.perf_counter() - t0

    metrics: dict[str, float] = {
        "build/seconds": build_seconds,
        "append/seconds": append_seconds,
        "update/seconds": update_seconds,
        "index/leaves": float(len(index)),
        "index/capacity": float(index.capacity),
        "index/nodes": float(index.node_count),
        "index/resizes": float(index.grow_count),
    }

    # ── query ─────────────────────────────────────────────────────────────
    spans = random_spans(rng, index.span, bench_cfg.get("n_queries", 100)) if len(index) else []
    answers: dict[str, list[Segment | None]] = {}
    for name in available_strategies():
        t0 = time.perf_counter()
        answers[name] = [
            index.query(span, name)
            for span in tqdm(spans, desc=f"Query ({name})", disable=not progress)
        ]
        elapsed = time.perf_counter() - t0
        metrics[f"query/{name}/seconds"] = elapsed
        metrics[f"query/{name}/per_query_us"] = 1e6 * elapsed / max(len(spans), 1)

    # ── verify ────────────────────────────────────────────────────────────
    if verify:
        mismatches = 0
        index.check()
        for j, span in enumerate(spans):
            expected = reference_query(buckets, span)
            for name in answers:
                if not same_aggregate(answers[name][j], expected):
                    mismatches += 1
        metrics["verify/mismatches"] = float(mismatches)

    if logger is not None:
        logger.log_metrics(metrics)
    return metrics


def summarize(metrics: dict[str, float]) -> str:
    """Format *metrics* as aligned ``key: value`` lines."""
    width = max((len(k) for k in metrics), default=0)
    lines = []
    for key in sorted(metrics):
        value = metrics[key]
        shown = f"{value:.0f}" if float(value).is_integer() else f"{value:.6f}"
        lines.append(f"{key:<{width}}  {shown}")
    return "\n".join(lines)

