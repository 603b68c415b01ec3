from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from vmcsampler.types import FloatArray


@dataclass(frozen=True)
class CgResult:
    """Conjugate-gradient solution diagnostics."""

    solution: np.ndarray
    converged: bool
    iterations: int
    residual_norm: float
    residual_history: FloatArray


def solve_cg(
    matvec: Callable[[np.ndarray], np.ndarray],
    rhs: np.ndarray,
    rtol: float,
    max_iterations: int,
    x0: np.ndarray | None = None,
) -> CgResult:
    """Matrix-free conjugate gradient for Hermitian positive-definite systems.

    Stops once ``||r|| <= rtol * max(||rhs||, 1)``.
    """

    if rhs.ndim != 1:
        raise ValueError("rhs must be rank-1")
    if rtol <= 0.0:
        raise ValueError("rtol must be positive")
    if max_iterations < 1:
        raise ValueError("max_iterations must be >= 1")

    x = np.zeros_like(rhs) if x0 is None else np.array(x0, copy=True, dtype=rhs.dtype)
    r = rhs - matvec(x)
    p = r.copy()

    target = rtol * max(float(np.linalg.norm(rhs)), 1.0)
    rs_old = float(np.real(np.vdot(r, r)))
    history = [np.sqrt(rs_old)]

    converged = history[-1] <= target
    iterations = 0
    while not converged and iterations < max_iterations:
        ap = matvec(p)
        curvature = float(np.real(np.vdot(p, ap)))
        if abs(curvature) < 1.0e-20:
            break

        alpha = rs_old / curvature
        x = x + alpha * p
        r = r - alpha * ap
        iterations += 1

        rs_new = float(np.real(np.vdot(r, r)))
        history.append(np.sqrt(rs_new))
        converged = history[-1] <= target

        p = r + (rs_new / rs_old) * p
        rs_old = rs_new

    return CgResult(
        solution=x,
        converged=converged,
        iterations=iterations,
        residual_norm=float(history[-1]),
        residual_history=np.asarray(history, dtype=np.float64),
    )
