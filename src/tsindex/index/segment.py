"""Span and Segment value types plus the merge rules shared by the index."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import reduce
from typing import Iterable, Sequence

import numpy as np


@dataclass(frozen=True)
class Span:
    """Half-open interval ``[start, end)`` over time-unit indices."""

    start: int = 0
    end: int = 0

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError(f"Span start must be non-negative, got {self.start}")
        if self.start > self.end:
            raise ValueError(f"Span start {self.start} is after end {self.end}")

    @property
    def width(self) -> int:
        return self.end - self.start

    def contains(self, t: int) -> bool:
        return self.start <= t < self.end

    def overlaps(self, other: Span) -> bool:
        """True when the two half-open intervals share at least one unit.

        An empty-width span overlaps nothing, not even a span around it.
        """
        if self.width == 0 or other.width == 0:
            return False
        return self.start < other.end and other.start < self.end

    def covers(self, other: Span) -> bool:
        """True when *other* lies entirely inside this span."""
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return f"[{self.start}, {self.end})"


@dataclass(frozen=True)
class Segment:
    """Aggregate of a time span: one raw bucket or a merged range.

    A segment with ``count == 0`` is a placeholder (tree padding) rather than
    an aggregate of zeros; it never contributes bounds to a merge.
    """

    span: Span = field(default_factory=Span)
    count: int = 0
    sum: float = 0.0
    min: float = 0.0
    max: float = 0.0

    @classmethod
    def from_samples(cls, span: Span, samples: Sequence[float] | np.ndarray) -> Segment:
        """Aggregate the raw *samples* that fall in one bucket."""
        values = np.asarray(samples, dtype=np.float64)
        if values.size == 0:
            raise ValueError(f"Bucket {span} has no samples")
        return cls(
            span=span,
            count=int(values.size),
            sum=float(values.sum()),
            min=float(values.min()),
            max=float(values.max()),
        )

    @property
    def is_empty(self) -> bool:
        return self.count == 0

    @property
    def mean(self) -> float | None:
        return self.sum / self.count if self.count else None


def combine(left: Segment, right: Segment) -> Segment:
    """Merge two chronologically adjacent segments, *left* first.

    Placeholders are absorbing: ``combine(x, empty) == combine(empty, x) == x``.
    """
    if right.is_empty:
        return left
    if left.is_empty:
        return right
    return Segment(
        span=Span(left.span.start, right.span.end),
        count=left.count + right.count,
        sum=left.sum + right.sum,
        min=min(left.min, right.min),
        max=max(left.max, right.max),
    )


def merge(a: Segment, b: Segment) -> Segment:
    """Order-independent variant of :func:`combine`.

    Used to accumulate disjoint nodes visited out of chronological order; the
    resulting span is ``[min(starts), max(ends))``.
    """
    if b.is_empty:
        return a
    if a.is_empty:
        return b
    return Segment(
        span=Span(min(a.span.start, b.span.start), max(a.span.end, b.span.end)),
        count=a.count + b.count,
        sum=a.sum + b.sum,
        min=min(a.min, b.min),
        max=max(a.max, b.max),
    )


def fold(segments: Iterable[Segment]) -> Segment | None:
    """Linearly combine *segments* in order; ``None`` when there are none."""
    present = [s for s in segments if not s.is_empty]
    if not present:
        return None
    return reduce(combine, present)
