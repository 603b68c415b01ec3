from __future__ import annotations

from typing import cast

import numpy as np

from vmcsampler.nqs.base import Machine
from vmcsampler.physics.hilbert import LocalHilbert
from vmcsampler.sampling.backend import AbstractSampler
from vmcsampler.types import BoolArray, ConfigBatch


def propose_local_moves(
    hilbert: LocalHilbert, configs: ConfigBatch, rng: np.random.Generator
) -> ConfigBatch:
    """Change one random site per configuration to a different local value.

    The new value is uniform over the ``local_size - 1`` other local states,
    which keeps the proposal kernel symmetric.
    """

    proposed = np.array(configs, copy=True)
    flat = proposed.reshape(-1, hilbert.size)
    n_rows = flat.shape[0]
    local_states = hilbert.local_states

    rows = np.arange(n_rows)
    sites = rng.integers(0, hilbert.size, size=n_rows)
    current = np.searchsorted(local_states, flat[rows, sites])
    shift = rng.integers(0, hilbert.local_size - 1, size=n_rows)
    new_idx = np.where(shift >= current, shift + 1, shift)
    flat[rows, sites] = local_states[new_idx]
    return proposed


def _accept(weights: np.ndarray, rng: np.random.Generator) -> BoolArray:
    """Metropolis test ``U < min(1, w)``."""

    u = rng.random(size=np.shape(weights))
    return np.asarray(u < np.real(weights), dtype=np.bool_)


class MetropolisLocal(AbstractSampler):
    """Single-chain Metropolis sampler with local moves.

    A sweep performs ``N`` proposals, each changing the value of one random
    site, accepted with probability ``min(1, F(Psi(v') / Psi(v)))``.
    """

    def __init__(self, machine: Machine, sweep_size: int | None = None, seed: int = 0) -> None:
        super().__init__(machine, seed=seed)
        if sweep_size is not None and sweep_size < 1:
            raise ValueError("sweep_size must be >= 1")
        self.sweep_size = machine.hilbert.size if sweep_size is None else int(sweep_size)
        self._log_value: complex | float | None = None

    def _refresh(self) -> None:
        visible = cast(ConfigBatch, self._visible)
        self._log_value = self._machine.log_val(visible[None, :])[0]

    def _sweep(self) -> None:
        if self._log_value is None:
            self._refresh()
        rng = self._rng.numpy
        for _ in range(self.sweep_size):
            proposal = propose_local_moves(self._hilbert, cast(ConfigBatch, self._visible), rng)
            log_new = self._machine.log_val(proposal[None, :])[0]
            weight = self._machine_func(np.exp(log_new - self._log_value))

            self._n_proposed += 1
            if _accept(np.asarray(weight), rng):
                self._visible = proposal
                self._log_value = log_new
                self._n_accepted += 1


class MetropolisLocalV2(AbstractSampler):
    """Batched Metropolis local sampler.

    Runs ``batch_size`` independent chains on one process. A sweep proposes one
    local move per chain, so generating ``batch_size`` new configurations
    costs a single batched ``Machine.log_val`` call.
    """

    def __init__(self, machine: Machine, batch_size: int = 128, seed: int = 0) -> None:
        super().__init__(machine, seed=seed)
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._batch_size = int(batch_size)
        self._log_values: np.ndarray | None = None

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def n_chains(self) -> int:
        return self._batch_size

    def _visible_shape(self) -> tuple[int, ...]:
        return (self._batch_size, self._hilbert.size)

    def _refresh(self) -> None:
        self._log_values = np.asarray(self._machine.log_val(cast(ConfigBatch, self._visible)))

    def _sweep(self) -> None:
        if self._log_values is None:
            self._refresh()
        rng = self._rng.numpy
        visible = cast(ConfigBatch, self._visible)

        proposal = propose_local_moves(self._hilbert, visible, rng)
        log_new = np.asarray(self._machine.log_val(proposal))
        weights = self._machine_func(np.exp(log_new - self._log_values))
        accepted = _accept(np.asarray(weights), rng)

        self._visible = np.where(accepted[:, None], proposal, visible)
        self._log_values = np.where(accepted, log_new, self._log_values)
        self._n_proposed += self._batch_size
        self._n_accepted += int(np.count_nonzero(accepted))
