"""Breadth-first iterative range query."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

from tsindex.index.segment import Segment, Span, merge
from tsindex.queries import register

if TYPE_CHECKING:
    from tsindex.index.tree import SegmentIndex


@register("bfs")
def query_bfs(index: SegmentIndex, span: Span) -> Segment | None:
    """Accumulate covered nodes level by level using a FIFO work queue.

    Nodes are folded into the running result in visiting order, which is not
    chronological, so the accumulator uses :func:`merge` rather than
    :func:`combine`.
    """
    result: Segment | None = None
    queue: deque[int] = deque([0])

    while queue:
        node = queue.popleft()
        seg = index.node(node)
        if seg is None or seg.is_empty or not seg.span.overlaps(span):
            continue
        if span.covers(seg.span) or index.is_leaf(node):
            result = seg if result is None else merge(result, seg)
            continue
        queue.append(2 * node + 1)
        queue.append(2 * node + 2)

    return result
