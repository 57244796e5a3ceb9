"""Synthetic time-series workloads: raw samples condensed into buckets."""

from __future__ import annotations

from typing import Callable

import numpy as np

from tsindex.index.segment import Segment, Span

SampleFn = Callable[[np.random.Generator, int], np.ndarray]

_GENERATORS: dict[str, SampleFn] = {}


def register(name: str) -> Callable[[SampleFn], SampleFn]:
    """Decorator to register a sample generator under *name*."""

    def wrapper(fn: SampleFn) -> SampleFn:
        if name in _GENERATORS:
            raise ValueError(f"Generator '{name}' is already registered")
        _GENERATORS[name] = fn
        return fn

    return wrapper


def available_generators() -> list[str]:
    return sorted(_GENERATORS)


@register("uniform")
def uniform_samples(rng: np.random.Generator, n: int) -> np.ndarray:
    return rng.uniform(-1.0, 1.0, size=n)


@register("random_walk")
def random_walk_samples(rng: np.random.Generator, n: int) -> np.ndarray:
    return np.cumsum(rng.normal(0.0, 1.0, size=n))


@register("sine")
def sine_samples(rng: np.random.Generator, n: int) -> np.ndarray:
    """Slow sine wave with a little Gaussian noise."""
    t = np.arange(n, dtype=np.float64)
    return np.sin(2 * np.pi * t / 512.0) + rng.normal(0.0, 0.05, size=n)


def make_buckets(
    rng: np.random.Generator,
    n_buckets: int,
    kind: str = "random_walk",
    bucket_width: int = 1,
    samples_per_bucket: int = 8,
    start: int = 0,
) -> list[Segment]:
    """Generate raw samples and condense them into contiguous buckets.

    Bucket *i* covers ``[start + i*w, start + (i+1)*w)`` and aggregates
    *samples_per_bucket* consecutive samples of the generated series.
    """
    if kind not in _GENERATORS:
        available = ", ".join(available_generators())
        raise ValueError(f"Unknown generator '{kind}'. Available: {available}")
    if bucket_width < 1 or samples_per_bucket < 1:
        raise ValueError("bucket_width and samples_per_bucket must be positive")

    samples = _GENERATORS[kind](rng, n_buckets * samples_per_bucket)
    samples = samples.reshape(n_buckets, samples_per_bucket)
    return [
        Segment.from_samples(
            Span(start + i * bucket_width, start + (i + 1) * bucket_width), samples[i]
        )
        for i in range(n_buckets)
    ]


def random_spans(rng: np.random.Generator, covered: Span, n: int) -> list[Span]:
    """Draw *n* non-empty query spans inside *covered*."""
    if covered.width == 0:
        return []
    bounds = rng.integers(covered.start, covered.end + 1, size=(n, 2))
    spans = []
    for lo, hi in np.sort(bounds, axis=1):
        if lo == hi:
            hi = min(hi + 1, covered.end)
            lo = hi - 1
        spans.append(Span(int(lo), int(hi)))
    return spans


def make_buckets_from_config(config: dict, rng: np.random.Generator) -> list[Segment]:
    """Generate the initial batch plus the buckets to append, as one list."""
    wl = config["workload"]
    return make_buckets(
        rng,
        n_buckets=wl["n_buckets"] + wl.get("append_buckets", 0),
        kind=wl.get("kind", "random_walk"),
        bucket_width=wl.get("bucket_width", 1),
        samples_per_bucket=wl.get("samples_per_bucket", 8),
        start=wl.get("start", 0),
    )
