from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import numpy as np


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def save_json(path: Path, payload: dict[str, Any]) -> None:
    """Write run summaries as sorted, indented JSON."""

    ensure_dir(path.parent)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, sort_keys=True, default=_json_default)


def save_samples(path: Path, samples: np.ndarray, values: np.ndarray, **extra: np.ndarray) -> None:
    """Store recorded samples and log-values for post-analysis."""

    ensure_dir(path.parent)
    arrays: dict[str, object] = {"samples": np.asarray(samples), "values": np.asarray(values)}
    arrays.update({name: np.asarray(value) for name, value in extra.items()})
    np.savez(path, **arrays)  # type: ignore[arg-type]


def _json_default(obj: object) -> object:
    if isinstance(obj, np.generic):
        return obj.item()
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    raise TypeError(f"object of type {type(obj).__name__} is not JSON serializable")
