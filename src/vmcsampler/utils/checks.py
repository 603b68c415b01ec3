from __future__ import annotations

import numpy as np

from vmcsampler.errors import DimensionMismatchError


def require_shape(name: str, array: np.ndarray, expected: tuple[int, ...]) -> None:
    """Raise a clear error if an array shape differs from expectations."""

    if array.shape != expected:
        raise DimensionMismatchError(
            f"{name} shape mismatch: expected {expected}, received {array.shape}"
        )


def require_finite(name: str, array: np.ndarray) -> None:
    """Guard against NaN/Inf propagation during optimization."""

    if not np.all(np.isfinite(array)):
        raise ValueError(f"{name} contains NaN or Inf values")


def require_positive_int(name: str, value: int) -> None:
    if value < 1:
        raise ValueError(f"{name} must be >= 1, received {value}")
