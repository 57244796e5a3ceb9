"""Query strategy registry: register and look up range queries by name."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional

from tsindex.index.segment import Segment, Span

if TYPE_CHECKING:
    from tsindex.index.tree import SegmentIndex

QueryFn = Callable[["SegmentIndex", Span], Optional[Segment]]

_REGISTRY: dict[str, QueryFn] = {}


def register(name: str) -> Callable[[QueryFn], QueryFn]:
    """Decorator to register a query strategy under *name*."""

    def wrapper(fn: QueryFn) -> QueryFn:
        if name in _REGISTRY:
            raise ValueError(f"Query strategy '{name}' is already registered")
        _REGISTRY[name] = fn
        return fn

    return wrapper


def get_strategy(name: str) -> QueryFn:
    """Return the query function registered as *name*."""
    if name not in _REGISTRY:
        available = ", ".join(sorted(_REGISTRY)) or "(none)"
        raise ValueError(f"Unknown query strategy '{name}'. Available: {available}")
    return _REGISTRY[name]


def available_strategies() -> list[str]:
    """Return sorted list of registered strategy names."""
    return sorted(_REGISTRY)


# Strategies register themselves on import.
from tsindex.queries import bfs, dfs  # noqa: E402,F401
