"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from tsindex.index.segment import Segment, Span


@pytest.fixture
def configs_dir() -> Path:
    """Path to the configs/ directory."""
    return Path(__file__).resolve().parent.parent / "configs"


@pytest.fixture
def default_config(configs_dir: Path) -> dict:
    """Load the default config dict."""
    from tsindex.utils.config import load_yaml

    return load_yaml(configs_dir / "default.yaml")


@pytest.fixture
def six_buckets() -> list[Segment]:
    """Buckets ``[i, i+1)`` holding the single value ``i`` for i = 0..5."""
    return [
        Segment(span=Span(i, i + 1), count=1, sum=float(i), min=float(i), max=float(i))
        for i in range(6)
    ]
