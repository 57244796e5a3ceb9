"""Tests for the depth-first and breadth-first range queries."""

from __future__ import annotations

import numpy as np
import pytest

from tsindex.bench.runner import reference_query, same_aggregate
from tsindex.bench.workload import make_buckets
from tsindex.index.segment import Segment, Span
from tsindex.index.tree import SegmentIndex
from tsindex.queries import available_strategies, get_strategy
from tsindex.queries.bfs import query_bfs
from tsindex.queries.dfs import query_dfs

STRATEGIES = ["dfs", "bfs"]


# ── registry ──────────────────────────────────────────────────────────────


def test_strategies_registered() -> None:
    assert available_strategies() == ["bfs", "dfs"]
    assert get_strategy("dfs") is query_dfs
    assert get_strategy("bfs") is query_bfs


def test_unknown_strategy_raises(six_buckets: list[Segment]) -> None:
    index = SegmentIndex.from_batch(six_buckets)
    with pytest.raises(ValueError, match="Available: bfs, dfs"):
        index.query(Span(0, 1), "nope")


# ── six-bucket scenario ───────────────────────────────────────────────────


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_sum_scenario(six_buckets: list[Segment], strategy: str) -> None:
    index = SegmentIndex.from_batch(six_buckets)

    seg = index.query(Span(1, 6), strategy)
    assert seg is not None
    assert (seg.sum, seg.count, seg.max, seg.min) == (15.0, 5, 5.0, 1.0)

    seg = index.query(Span(1, 3), strategy)
    assert seg is not None
    assert (seg.sum, seg.count, seg.max, seg.min) == (3.0, 2, 2.0, 1.0)

    seg = index.query(Span(0, 6), strategy)
    assert seg is not None
    assert (seg.sum, seg.count, seg.max, seg.min) == (15.0, 6, 5.0, 0.0)


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_max_min_count_scenario(six_buckets: list[Segment], strategy: str) -> None:
    index = SegmentIndex.from_batch(six_buckets)

    seg = index.query(Span(2, 6), strategy)
    assert seg is not None
    assert (seg.max, seg.min, seg.count) == (5.0, 2.0, 4)

    seg = index.query(Span(4, 6), strategy)
    assert seg is not None
    assert seg.count == 2

    # past the end of the data
    seg = index.query(Span(1, 7), strategy)
    assert seg is not None
    assert (seg.max, seg.min, seg.count) == (5.0, 1.0, 5)


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_full_span_returns_root(six_buckets: list[Segment], strategy: str) -> None:
    index = SegmentIndex.from_batch(six_buckets)
    assert index.query(Span(0, 6), strategy) == index.root
    assert index.query(Span(0, 100), strategy) == index.root


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_no_overlap_is_none(six_buckets: list[Segment], strategy: str) -> None:
    index = SegmentIndex.from_batch(six_buckets)
    assert index.query(Span(6, 10), strategy) is None
    assert index.query(Span(3, 3), strategy) is None


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_partially_touched_bucket_counts_whole(strategy: str) -> None:
    buckets = [Segment.from_samples(Span(i * 10, (i + 1) * 10), [float(i)] * 3) for i in range(4)]
    index = SegmentIndex.from_batch(buckets)
    seg = index.query(Span(15, 25), strategy)
    assert seg is not None
    assert seg.count == 6
    assert seg.sum == 9.0
    assert seg.span == Span(10, 30)


def _wide_index() -> SegmentIndex:
    """Buckets ``[10i, 10i+10)`` holding three samples of value ``i``, i = 0..3."""
    return SegmentIndex.from_batch(
        [Segment.from_samples(Span(i * 10, (i + 1) * 10), [float(i)] * 3) for i in range(4)]
    )


@pytest.mark.parametrize("strategy", STRATEGIES)
@pytest.mark.parametrize("point", [0, 10, 15, 20, 39, 40])
def test_empty_span_inside_wide_bucket_is_none(strategy: str, point: int) -> None:
    index = _wide_index()
    assert index.query(Span(point, point), strategy) is None


@pytest.mark.parametrize("strategy", STRATEGIES)
@pytest.mark.parametrize(
    ("lo", "hi", "expected"),
    [
        # (span, (count, sum, covered span)) worked out by hand
        (0, 10, (3, 0.0, Span(0, 10))),
        (5, 10, (3, 0.0, Span(0, 10))),
        (0, 11, (6, 3.0, Span(0, 20))),
        (9, 10, (3, 0.0, Span(0, 10))),
        (10, 20, (3, 3.0, Span(10, 20))),
        (19, 21, (6, 9.0, Span(10, 30))),
        (20, 40, (6, 15.0, Span(20, 40))),
        (39, 45, (3, 9.0, Span(30, 40))),
    ],
)
def test_wide_bucket_edges(
    strategy: str, lo: int, hi: int, expected: tuple[int, float, Span]
) -> None:
    seg = _wide_index().query(Span(lo, hi), strategy)
    assert seg is not None
    assert (seg.count, seg.sum, seg.span) == expected


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_span_ending_at_bucket_start_excludes_it(strategy: str) -> None:
    index = _wide_index()
    # [0, 20) stops exactly where bucket [20, 30) begins
    seg = index.query(Span(0, 20), strategy)
    assert seg is not None
    assert seg.max == 1.0
    assert seg.count == 6
    # starts exactly where the data ends
    assert index.query(Span(40, 50), strategy) is None


@pytest.mark.parametrize("strategy", STRATEGIES)
def test_query_after_update(six_buckets: list[Segment], strategy: str) -> None:
    index = SegmentIndex.from_batch(six_buckets)
    index.update(2, Segment(span=Span(2, 3), count=1, sum=-10.0, min=-10.0, max=-10.0))
    seg = index.query(Span(1, 4), strategy)
    assert seg is not None
    assert (seg.sum, seg.min, seg.max) == (-6.0, -10.0, 3.0)


# ── randomized consistency ────────────────────────────────────────────────


def test_queries_match_linear_scan() -> None:
    rng = np.random.default_rng(7)
    buckets = make_buckets(rng, 53, kind="random_walk", bucket_width=3, start=30)
    index = SegmentIndex.from_batch(buckets[:20])
    for bucket in buckets[20:]:
        index.append(bucket)

    covered = index.span
    assert covered == Span(30, 30 + 53 * 3)
    for _ in range(300):
        lo, hi = sorted(rng.integers(0, covered.end + 10, size=2))
        span = Span(int(lo), int(hi))
        expected = reference_query(buckets, span)
        dfs = index.query_dfs(span)
        bfs = index.query_bfs(span)
        assert same_aggregate(dfs, expected)
        assert same_aggregate(bfs, expected)
        assert same_aggregate(dfs, bfs)
        if dfs is not None and bfs is not None:
            assert dfs.span == bfs.span


def test_integer_valued_strategies_agree_exactly() -> None:
    values = [3.0, -1.0, 4.0, 1.0, -5.0, 9.0, 2.0, 6.0, -5.0, 3.0, 5.0]
    buckets = [
        Segment(span=Span(i, i + 1), count=1, sum=v, min=v, max=v) for i, v in enumerate(values)
    ]
    index = SegmentIndex.from_batch(buckets)
    for lo in range(len(values)):
        for hi in range(lo + 1, len(values) + 1):
            span = Span(lo, hi)
            assert index.query_dfs(span) == index.query_bfs(span)
