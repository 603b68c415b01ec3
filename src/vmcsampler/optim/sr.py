from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from vmcsampler.errors import DimensionMismatchError


@dataclass(frozen=True)
class SrStatistics:
    """Sample estimates entering the stochastic-reconfiguration update."""

    mean_operators: np.ndarray
    centered_operators: np.ndarray
    force: np.ndarray
    mean_energy: complex | float


def compute_sr_statistics(operators: np.ndarray, local_energies: np.ndarray) -> SrStatistics:
    """Force ``F_k = <O_k^* E_loc> - <O_k^*><E_loc>`` and centered ``O``.

    ``operators`` are log-derivatives with shape ``(n_samples, n_params)``;
    leading sample axes of recorded batches must be flattened first.
    """

    if operators.ndim != 2:
        raise DimensionMismatchError("operators must have shape (n_samples, n_params)")
    if local_energies.ndim != 1:
        raise DimensionMismatchError("local_energies must be rank-1")
    if operators.shape[0] != local_energies.shape[0]:
        raise DimensionMismatchError(
            "sample axis mismatch between operators and local_energies: "
            f"{operators.shape[0]} != {local_energies.shape[0]}"
        )

    mean_o = np.mean(operators, axis=0)
    centered = operators - mean_o[None, :]
    mean_energy = np.mean(local_energies)
    force = np.mean(np.conj(centered) * (local_energies - mean_energy)[:, None], axis=0)

    if not (np.iscomplexobj(operators) or np.iscomplexobj(local_energies)):
        mean_energy = float(mean_energy)
    return SrStatistics(
        mean_operators=mean_o,
        centered_operators=centered,
        force=force,
        mean_energy=mean_energy,
    )


def build_sr_matvec(
    centered_operators: np.ndarray,
    diagonal_shift: float,
) -> Callable[[np.ndarray], np.ndarray]:
    """Matrix-free action of ``S + lambda I`` with ``S = <O^* O> - <O^*><O>``."""

    if centered_operators.ndim != 2:
        raise DimensionMismatchError("centered_operators must have shape (n_samples, n_params)")
    if diagonal_shift <= 0.0:
        raise ValueError("diagonal_shift must be positive")

    n_samples = float(centered_operators.shape[0])

    def matvec(vector: np.ndarray) -> np.ndarray:
        if vector.ndim != 1:
            raise ValueError("vector must be rank-1")
        projected = centered_operators @ vector
        return (np.conj(centered_operators).T @ projected) / n_samples + diagonal_shift * vector

    return matvec


def explicit_sr_matrix(centered_operators: np.ndarray) -> np.ndarray:
    """Dense ``S`` for tests and debugging only."""

    n_samples = float(centered_operators.shape[0])
    return (np.conj(centered_operators).T @ centered_operators) / n_samples


def diagonal_shift_schedule(step: int, initial: float, decay: float, minimum: float) -> float:
    """Geometric decay ``initial * decay**step`` floored at ``minimum``."""

    if step < 0:
        raise ValueError("step must be non-negative")
    return max(initial * decay**step, minimum)
