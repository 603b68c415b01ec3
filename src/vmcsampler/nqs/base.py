from __future__ import annotations

from typing import Protocol

import numpy as np

from vmcsampler.physics.hilbert import LocalHilbert
from vmcsampler.types import ConfigBatch


class Machine(Protocol):
    """Variational-state evaluator consumed by samplers and estimators.

    Both evaluation methods are batched over all leading axes of their input so
    a single call covers every chain of a sampler.
    """

    @property
    def hilbert(self) -> LocalHilbert:
        """Hilbert space of the visible configurations."""

    @property
    def n_params(self) -> int:
        """Number of variational parameters."""

    @property
    def parameters(self) -> np.ndarray:
        """Flat parameter vector."""

    @parameters.setter
    def parameters(self, value: np.ndarray) -> None: ...

    def log_val(self, configs: ConfigBatch) -> np.ndarray:
        """``log Psi`` for configurations of shape ``(..., N)``; returns shape ``(...)``."""

    def der_log(self, configs: ConfigBatch) -> np.ndarray:
        """``d log Psi / d theta`` with shape ``(..., n_params)``."""
