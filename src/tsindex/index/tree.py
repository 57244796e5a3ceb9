"""Array-backed segment tree answering range aggregations in O(log n)."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from tsindex.index.segment import Segment, Span, combine
from tsindex.queries import get_strategy

# One record per tree node. All-zero records are padding.
SEGMENT_DTYPE = np.dtype(
    [
        ("start", np.uint64),
        ("end", np.uint64),
        ("count", np.uint64),
        ("sum", np.float64),
        ("min", np.float64),
        ("max", np.float64),
    ]
)


def _capacity_for(n: int) -> int:
    """Smallest power of two holding *n* leaves (1 for an empty batch)."""
    if n <= 1:
        return 1
    return 1 << (n - 1).bit_length()


class SegmentIndex:
    """A complete binary tree of :class:`Segment` aggregates in a flat array.

    Node *i* has children ``2i + 1`` and ``2i + 2``; leaf *j* is stored at
    tree index ``j + capacity - 1``.  Leaves must arrive in ascending,
    contiguous time order.  Slots past the last leaf hold zeroed records,
    which read back as empty segments and are skipped by every merge.

    Not thread-safe: mutations must not overlap any other call.
    """

    def __init__(self, leaves: Sequence[Segment] = ()) -> None:
        self.grow_count = 0
        self.build(leaves)

    @classmethod
    def from_batch(cls, leaves: Sequence[Segment]) -> SegmentIndex:
        return cls(leaves)

    # ── mutators ──────────────────────────────────────────────────────────

    def build(self, leaves: Sequence[Segment]) -> None:
        """(Re)build the tree bottom-up from an ordered batch of buckets."""
        assert _is_contiguous(leaves), "leaves must be ascending, contiguous and hold data"
        n = len(leaves)
        capacity = _capacity_for(n)
        self._tree = np.zeros(2 * capacity - 1, dtype=SEGMENT_DTYPE)
        self._size = n
        if n:
            self._build(leaves, 0, 0, capacity - 1)

    def append(self, value: Segment) -> None:
        """Add one bucket after the current last leaf."""
        assert not value.is_empty, "cannot append an empty segment"
        if self._size:
            last = self.leaf(self._size - 1)
            assert value.span.start == last.span.end, (
                f"appended span {value.span} does not follow {last.span}"
            )

        slot = self.capacity - 1 + self._size
        if slot >= len(self._tree):
            self._grow()
            slot = self.capacity - 1 + self._size
        self._write(slot, value)
        self._size += 1
        self._pull_path(slot)

    def update(self, target_start: int, value: Segment) -> None:
        """Replace the bucket whose span contains *target_start*.

        Raises ``KeyError`` when no bucket contains the key.
        """
        slot = self._find_leaf(target_start)
        old = self._read(slot)
        assert value.span == old.span, f"replacement span {value.span} != {old.span}"
        assert not value.is_empty, "cannot replace a bucket with an empty segment"
        self._write(slot, value)
        self._pull_path(slot)

    # ── queries ───────────────────────────────────────────────────────────

    def query(self, span: Span, strategy: str = "dfs") -> Segment | None:
        """Aggregate every bucket touching *span*, or ``None`` if none do."""
        return get_strategy(strategy)(self, span)

    def query_dfs(self, span: Span) -> Segment | None:
        return self.query(span, "dfs")

    def query_bfs(self, span: Span) -> Segment | None:
        return self.query(span, "bfs")

    # ── inspection ────────────────────────────────────────────────────────

    def __len__(self) -> int:
        """Number of leaves (buckets) indexed."""
        return self._size

    @property
    def capacity(self) -> int:
        """Number of leaf slots, including padding."""
        return (len(self._tree) + 1) // 2

    @property
    def node_count(self) -> int:
        return len(self._tree)

    @property
    def root(self) -> Segment | None:
        return self._read(0) if self._size else None

    @property
    def span(self) -> Span | None:
        root = self.root
        return root.span if root is not None else None

    def node(self, index: int) -> Segment | None:
        """Segment stored at tree *index*, or ``None`` past the array."""
        if index >= len(self._tree):
            return None
        return self._read(index)

    def is_leaf(self, index: int) -> bool:
        return 2 * index + 1 >= len(self._tree)

    def leaf(self, i: int) -> Segment:
        if not 0 <= i < self._size:
            raise IndexError(f"leaf {i} out of range for {self._size} leaves")
        return self._read(self.capacity - 1 + i)

    def leaves(self) -> list[Segment]:
        base = self.capacity - 1
        return [self._read(base + i) for i in range(self._size)]

    def check(self) -> None:
        """Assert every internal node equals the combine of its children."""
        for i in range(self.capacity - 2, -1, -1):
            expected = combine(self._read(2 * i + 1), self._read(2 * i + 2))
            actual = self._read(i)
            if actual != expected:
                raise AssertionError(f"node {i}: stored {actual}, children give {expected}")
        for i in range(self._size, self.capacity):
            if not self._read(self.capacity - 1 + i).is_empty:
                raise AssertionError(f"padding leaf {i} holds data")

    def render(self) -> str:
        """Draw the tree sideways: right subtree above, left subtree below."""
        lines: list[str] = []
        self._render(0, 0, True, lines)
        return "\n".join(lines)

    # ── internals ─────────────────────────────────────────────────────────

    def _read(self, index: int) -> Segment:
        rec = self._tree[index]
        return Segment(
            span=Span(int(rec["start"]), int(rec["end"])),
            count=int(rec["count"]),
            sum=float(rec["sum"]),
            min=float(rec["min"]),
            max=float(rec["max"]),
        )

    def _write(self, index: int, seg: Segment) -> None:
        self._tree[index] = (seg.span.start, seg.span.end, seg.count, seg.sum, seg.min, seg.max)

    def _pull(self, index: int) -> None:
        """Recompute node *index* from its two children."""
        self._write(index, combine(self._read(2 * index + 1), self._read(2 * index + 2)))

    def _pull_path(self, index: int) -> None:
        while index > 0:
            index = (index - 1) // 2
            self._pull(index)

    def _build(self, leaves: Sequence[Segment], index: int, left: int, right: int) -> None:
        if left >= len(leaves):
            return  # padding only
        if left == right:
            self._write(index, leaves[left])
            return
        mid = left + (right - left) // 2
        self._build(leaves, 2 * index + 1, left, mid)
        self._build(leaves, 2 * index + 2, mid + 1, right)
        self._pull(index)

    def _grow(self) -> None:
        """Double the leaf capacity; the old tree becomes the new left subtree."""
        old = self._tree
        tree = np.zeros(2 * len(old) + 1, dtype=SEGMENT_DTYPE)
        # level d of the old tree moves to the left half of level d + 1
        width = 1
        while width - 1 < len(old):
            src = width - 1
            dst = 2 * width - 1
            tree[dst : dst + width] = old[src : src + width]
            width *= 2
        self._tree = tree
        self._pull(0)
        self.grow_count += 1

    def _find_leaf(self, target_start: int) -> int:
        if not self._size or not self._read(0).span.contains(target_start):
            raise KeyError(target_start)
        index = 0
        while not self.is_leaf(index):
            left = self._read(2 * index + 1)
            if not left.is_empty and target_start < left.span.end:
                index = 2 * index + 1
            else:
                index = 2 * index + 2
        if not self._read(index).span.contains(target_start):
            raise KeyError(target_start)
        return index

    def _render(self, index: int, depth: int, is_right: bool, lines: list[str]) -> None:
        seg = self.node(index)
        if seg is None or seg.is_empty:
            return
        self._render(2 * index + 2, depth + 1, True, lines)
        branch = " /" if is_right else " \\"
        lines.append(
            f"{'      ' * depth}{branch}----<{index} {seg.span} "
            f"n={seg.count} sum={seg.sum:g} mean={seg.mean:g} "
            f"min={seg.min:g} max={seg.max:g}>"
        )
        self._render(2 * index + 1, depth + 1, False, lines)


def _is_contiguous(leaves: Sequence[Segment]) -> bool:
    if any(leaf.is_empty for leaf in leaves):
        return False
    return all(a.span.end == b.span.start for a, b in zip(leaves, leaves[1:]))
