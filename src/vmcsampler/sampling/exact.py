from __future__ import annotations

import numpy as np

from vmcsampler.errors import PreconditionViolationError
from vmcsampler.nqs.base import Machine
from vmcsampler.physics.hilbert import MAX_ENUMERATED_STATES
from vmcsampler.sampling.backend import AbstractSampler
from vmcsampler.types import ConfigBatch, FloatArray


class ExactSampler(AbstractSampler):
    """Rejection-free sampler drawing directly from ``P(v) ∝ F(Psi(v))``.

    The whole Hilbert space is enumerated, so this is only usable for small
    systems. Probabilities are rebuilt on every ``reset`` to pick up parameter
    changes of the machine.
    """

    def __init__(
        self, machine: Machine, seed: int = 0, max_states: int = MAX_ENUMERATED_STATES
    ) -> None:
        super().__init__(machine, seed=seed)
        self._states: ConfigBatch = self._hilbert.all_states(max_states=max_states)
        self._probabilities: FloatArray | None = None

    def reset(self, init_random: bool = False) -> None:
        self._probabilities = None
        super().reset(init_random=init_random)
        self._probabilities = self._compute_probabilities()

    def _compute_probabilities(self) -> FloatArray:
        log_values = np.asarray(self._machine.log_val(self._states))
        shifted = log_values - np.max(np.real(log_values))
        weights = np.real(np.asarray(self._machine_func(np.exp(shifted)), dtype=np.complex128))
        if np.any(weights < 0.0) or not np.all(np.isfinite(weights)):
            raise ValueError("machine_func must map amplitudes to finite non-negative weights")
        total = float(np.sum(weights))
        if total <= 0.0:
            raise PreconditionViolationError("all configurations have zero weight")
        return np.asarray(weights / total, dtype=np.float64)

    @property
    def probabilities(self) -> FloatArray:
        """Normalized weights of ``all_states()`` in enumeration order."""

        if self._probabilities is None:
            self._probabilities = self._compute_probabilities()
        return self._probabilities.copy()

    def _sweep(self) -> None:
        if self._probabilities is None:
            self._probabilities = self._compute_probabilities()
        idx = self._rng.numpy.choice(self._states.shape[0], p=self._probabilities)
        self._visible = self._states[idx].copy()

    @property
    def acceptance(self) -> float:
        return 1.0

    def _machine_func_changed(self) -> None:
        self._probabilities = None
