"""Depth-first recursive range query."""

from __future__ import annotations

from typing import TYPE_CHECKING

from tsindex.index.segment import Segment, Span, combine
from tsindex.queries import register

if TYPE_CHECKING:
    from tsindex.index.tree import SegmentIndex


@register("dfs")
def query_dfs(index: SegmentIndex, span: Span) -> Segment | None:
    """Combine the aggregates of every bucket touching *span*.

    Covered nodes are returned whole without descending; a ``None`` result
    from one subtree leaves the other subtree's result unchanged.
    """
    return _descend(index, 0, span)


def _descend(index: SegmentIndex, node: int, span: Span) -> Segment | None:
    seg = index.node(node)
    if seg is None or seg.is_empty or not seg.span.overlaps(span):
        return None
    # a leaf that merely touches the span still counts as a whole bucket
    if span.covers(seg.span) or index.is_leaf(node):
        return seg

    left = _descend(index, 2 * node + 1, span)
    right = _descend(index, 2 * node + 2, span)
    if left is None:
        return right
    if right is None:
        return left
    return combine(left, right)
