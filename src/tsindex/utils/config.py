"""Benchmark configuration: a default YAML file, an optional workload layer
and dot-notation CLI overrides.

Workloads live in ``workloads/`` next to the default config and can be
named (``sine``) instead of given as a path.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

# Workload keys that must be positive integers once all layers are merged.
_POSITIVE_WORKLOAD_KEYS = ("bucket_width", "samples_per_bucket")


def load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML file and return its contents as a dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (returns a new dict)."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def apply_overrides(config: dict, overrides: list[str]) -> dict:
    """Apply dot-notation CLI overrides like ``workload.n_buckets=1024``.

    Values are parsed as YAML scalars so ``"true"`` becomes ``True``,
    ``"42"`` becomes ``42``, etc.
    """
    for override in overrides:
        if "=" not in override:
            raise ValueError(f"Override must be key=value, got: {override!r}")
        key_path, raw_value = override.split("=", 1)
        if not key_path:
            raise ValueError(f"Override has an empty key: {override!r}")
        value = yaml.safe_load(raw_value)
        keys = key_path.split(".")
        node = config
        for k in keys[:-1]:
            node = node.setdefault(k, {})
            if not isinstance(node, dict):
                raise ValueError(f"Cannot set {key_path!r}: {k!r} is not a mapping")
        node[keys[-1]] = value
    return config


def resolve_workload(workload: str | Path, default_path: str | Path) -> Path:
    """Turn a workload name or path into a file path.

    A bare name such as ``sine`` maps to ``<default dir>/workloads/sine.yaml``.
    """
    path = Path(workload)
    if path.suffix in (".yaml", ".yml") or path.exists():
        return path
    candidate = Path(default_path).parent / "workloads" / f"{workload}.yaml"
    if not candidate.exists():
        raise ValueError(f"Unknown workload {str(workload)!r}: no file at {candidate}")
    return candidate


def check_workload(config: dict) -> None:
    """Reject a merged config whose workload section cannot produce buckets."""
    wl = config.get("workload")
    if not isinstance(wl, dict):
        raise ValueError("Config has no 'workload' section")
    n_buckets = wl.get("n_buckets")
    if not isinstance(n_buckets, int) or n_buckets < 0:
        raise ValueError(f"workload.n_buckets must be a non-negative int, got {n_buckets!r}")
    append_buckets = wl.get("append_buckets", 0)
    if not isinstance(append_buckets, int) or append_buckets < 0:
        raise ValueError(
            f"workload.append_buckets must be a non-negative int, got {append_buckets!r}"
        )
    for key in _POSITIVE_WORKLOAD_KEYS:
        value = wl.get(key, 1)
        if not isinstance(value, int) or value < 1:
            raise ValueError(f"workload.{key} must be a positive int, got {value!r}")


def load_config(
    default_path: str | Path = "configs/default.yaml",
    workload: str | Path | None = None,
    overrides: list[str] | None = None,
) -> dict[str, Any]:
    """Build a config by merging: default → workload → CLI overrides.

    The merged workload section is checked before returning.
    """
    config = load_yaml(default_path)
    if workload:
        config = deep_merge(config, load_yaml(resolve_workload(workload, default_path)))
    if overrides:
        config = apply_overrides(config, overrides)
    check_workload(config)
    return config
