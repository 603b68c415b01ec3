from __future__ import annotations

import numpy as np
import pytest

from vmcsampler.errors import DimensionMismatchError, InvalidConfigurationError
from vmcsampler.nqs.rbm import RbmSpin
from vmcsampler.physics.hilbert import LocalHilbert, Spin
from vmcsampler.physics.lattice import Chain
from vmcsampler.physics.operators import Heisenberg, Ising, to_dense
from vmcsampler.vmc.estimators import (
    blocking_error_bars,
    exact_expectation,
    expectation,
    local_values,
    local_values_v2,
)


def _machine(n_sites: int, seed: int) -> RbmSpin:
    machine = RbmSpin(Spin(n_sites), alpha=1.0)
    machine.init_random_parameters(np.random.default_rng(seed), init_std=0.3)
    return machine


def test_weighted_local_energies_reproduce_exact_expectation() -> None:
    chain = Chain(4)
    machine = _machine(4, seed=1)
    for op in (Ising(machine.hilbert, chain.bonds, h=0.8), Heisenberg(machine.hilbert, chain.bonds)):
        states = machine.hilbert.all_states()
        values = machine.log_val(states)
        local = local_values_v2(states, values, machine, op, batch_size=5)

        probs = np.exp(2.0 * (values - np.max(values)))
        probs /= np.sum(probs)
        estimate = float(np.sum(probs * local))

        assert estimate == pytest.approx(exact_expectation(machine, op, to_dense(op)), rel=1.0e-10)


def test_local_values_do_not_depend_on_chunk_size() -> None:
    chain = Chain(5)
    machine = _machine(5, seed=2)
    op = Ising(machine.hilbert, chain.bonds, h=1.1)
    samples = machine.hilbert.random_state(np.random.default_rng(0), batch_shape=(3, 4))
    values = machine.log_val(samples)

    reference = local_values_v2(samples, values, machine, op, batch_size=1)
    assert reference.shape == (3, 4)
    for batch_size in (2, 5, 12, 100):
        np.testing.assert_allclose(
            local_values_v2(samples, values, machine, op, batch_size=batch_size),
            reference,
            rtol=1.0e-12,
        )
    np.testing.assert_allclose(local_values(samples, machine, op, batch_size=7), reference)


def test_eigenstate_has_constant_local_energy() -> None:
    chain = Chain(6)
    machine = RbmSpin(Spin(6), alpha=1.0)
    op = Ising(machine.hilbert, chain.bonds, h=0.5, J=0.0)
    samples = machine.hilbert.random_state(np.random.default_rng(4), batch_shape=(10,))

    local = local_values(samples, machine, op)

    np.testing.assert_allclose(local, np.full(10, -3.0))


def test_misaligned_inputs_are_rejected() -> None:
    chain = Chain(4)
    machine = _machine(4, seed=3)
    op = Ising(machine.hilbert, chain.bonds, h=1.0)
    samples = machine.hilbert.random_state(np.random.default_rng(0), batch_shape=(5,))

    with pytest.raises(DimensionMismatchError):
        local_values_v2(samples, np.zeros(4), machine, op, batch_size=2)
    with pytest.raises(DimensionMismatchError):
        local_values_v2(samples[:, :3], np.zeros(5), machine, op, batch_size=2)
    with pytest.raises(ValueError):
        local_values_v2(samples, machine.log_val(samples), machine, op, batch_size=0)


class _ShiftOperator:
    """Moves site 0 up by one; leaves the space at the top occupation."""

    def __init__(self, hilbert: LocalHilbert) -> None:
        self.hilbert = hilbert

    def get_conn(self, v: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        conn = np.array(v, dtype=np.int8, copy=True)
        conn[0] += 1
        return np.array([1.0]), conn[None, :]


def test_connections_outside_hilbert_space_are_rejected() -> None:
    machine = _machine(3, seed=5)
    op = _ShiftOperator(machine.hilbert)
    samples = np.array([[1, -1, 1]], dtype=np.int8)

    with pytest.raises(InvalidConfigurationError):
        local_values_v2(samples, machine.log_val(samples), machine, op, batch_size=1)


def test_blocking_error_bars() -> None:
    constant = blocking_error_bars(np.full(40, 2.5), n_bins=4)
    assert constant.mean == pytest.approx(2.5)
    assert constant.stderr == 0.0

    rng = np.random.default_rng(0)
    series = rng.normal(loc=1.0, scale=0.5, size=4_000)
    summary = expectation(series.reshape(100, 40), n_bins=20)
    assert summary.mean == pytest.approx(1.0, abs=0.05)
    assert 0.0 < summary.stderr < 0.05

    with pytest.raises(ValueError):
        blocking_error_bars(np.ones(3), n_bins=4)
