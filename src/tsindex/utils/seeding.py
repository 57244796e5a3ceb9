"""Reproducible random state."""

from __future__ import annotations

import random

import numpy as np


def seed_everything(seed: int) -> np.random.Generator:
    """Seed the global ``random`` and NumPy states and return a fresh Generator."""
    random.seed(seed)
    np.random.seed(seed)
    return np.random.default_rng(seed)
