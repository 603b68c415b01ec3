from __future__ import annotations

from abc import abstractmethod
from typing import Protocol

import numpy as np

from vmcsampler.errors import PreconditionViolationError
from vmcsampler.nqs.base import Machine
from vmcsampler.physics.hilbert import LocalHilbert
from vmcsampler.types import ConfigBatch, WeightingFunction
from vmcsampler.utils.checks import require_shape
from vmcsampler.utils.rng import RngStreams, process_rank


def squared_modulus(x: np.ndarray) -> np.ndarray:
    """Default weighting ``F(x) = |x|^2``."""

    return np.square(np.abs(x))


class Sampler(Protocol):
    """Markov-chain sampler of visible configurations.

    A sampler generates configurations ``v`` distributed according to
    ``P(v) ∝ F(Psi(v))``, where ``Psi`` is the machine amplitude and ``F`` the
    weighting function (``|x|^2`` by default). Samplers differ in their
    transition kernel ``T(v -> v')``.
    """

    def seed(self, base_seed: int) -> None:
        """Re-seed the random streams; each process gets a distinct stream."""

    def reset(self, init_random: bool = False) -> None:
        """Clear acceptance statistics and optionally redraw the configuration."""

    def sweep(self) -> None:
        """Advance every chain by one sampler-defined sweep."""

    @property
    def visible(self) -> ConfigBatch:
        """Copy of the current configuration(s)."""

    @visible.setter
    def visible(self, value: ConfigBatch) -> None: ...

    @property
    def acceptance(self) -> float:
        """Fraction of accepted proposals since the last reset."""

    @property
    def hilbert(self) -> LocalHilbert: ...

    @property
    def machine(self) -> Machine: ...

    @property
    def machine_func(self) -> WeightingFunction: ...

    @machine_func.setter
    def machine_func(self, func: WeightingFunction) -> None: ...

    @property
    def n_chains(self) -> int:
        """Number of chains advanced together by ``sweep``."""


class AbstractSampler(Sampler):
    """State and bookkeeping shared by the concrete samplers.

    Subclasses implement ``_sweep`` and may override ``_refresh`` to rebuild
    cached machine evaluations whenever the configuration is replaced.
    """

    def __init__(self, machine: Machine, seed: int = 0) -> None:
        self._machine = machine
        self._hilbert = machine.hilbert
        self._machine_func: WeightingFunction = squared_modulus
        self._rank = process_rank()
        self._rng = RngStreams(seed=seed, rank=self._rank)
        self._visible: ConfigBatch | None = None
        self._n_accepted = 0
        self._n_proposed = 0

    @property
    def n_chains(self) -> int:
        return 1

    def _visible_shape(self) -> tuple[int, ...]:
        return (self._hilbert.size,)

    def seed(self, base_seed: int) -> None:
        self._rng = RngStreams(seed=base_seed, rank=self._rank)

    def reset(self, init_random: bool = False) -> None:
        self._n_accepted = 0
        self._n_proposed = 0
        if init_random or self._visible is None:
            batch_shape = self._visible_shape()[:-1]
            self._visible = self._hilbert.random_state(self._rng.numpy, batch_shape)
        self._refresh()

    def sweep(self) -> None:
        if self._visible is None:
            raise PreconditionViolationError(
                f"{type(self).__name__}.sweep called before the configuration was "
                "initialized; call reset() or assign visible first"
            )
        self._sweep()

    @abstractmethod
    def _sweep(self) -> None:
        """Advance the chains; ``self._visible`` is guaranteed to be set."""

    def _refresh(self) -> None:
        """Hook run after the configuration has been replaced."""

    def _machine_func_changed(self) -> None:
        """Hook run after a new weighting function has been assigned."""

    @property
    def visible(self) -> ConfigBatch:
        if self._visible is None:
            raise PreconditionViolationError(
                "visible configuration is not initialized; call reset() first"
            )
        return self._visible.copy()

    @visible.setter
    def visible(self, value: ConfigBatch) -> None:
        arr = np.asarray(value)
        require_shape("visible", arr, self._visible_shape())
        self._hilbert.validate("visible", arr)
        self._visible = arr.astype(np.int8)
        self._refresh()

    @property
    def acceptance(self) -> float:
        if self._n_proposed == 0:
            return 0.0
        return self._n_accepted / self._n_proposed

    @property
    def hilbert(self) -> LocalHilbert:
        return self._hilbert

    @property
    def machine(self) -> Machine:
        return self._machine

    @property
    def machine_func(self) -> WeightingFunction:
        return self._machine_func

    @machine_func.setter
    def machine_func(self, func: WeightingFunction) -> None:
        if not callable(func):
            raise TypeError("machine_func must be callable")
        self._machine_func = func
        self._machine_func_changed()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(hilbert={self._hilbert!r}, n_chains={self.n_chains})"
