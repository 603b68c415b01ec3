from __future__ import annotations

import numpy as np
import pytest

from vmcsampler.errors import InvalidConfigurationError
from vmcsampler.physics.hilbert import Boson, LocalHilbert, Spin
from vmcsampler.physics.lattice import Chain
from vmcsampler.physics.operators import Heisenberg, Ising, to_dense


def test_ising_rows_hold_diagonal_then_single_flips() -> None:
    chain = Chain(4)
    op = Ising(Spin(4), chain.bonds, h=0.7, J=1.3)
    v = np.array([1, 1, -1, 1], dtype=np.int8)

    mels, conns = op.get_conn(v)

    assert mels.shape == (5,)
    assert conns.shape == (5, 4)
    # bonds (0,1) (1,2) (2,3) (3,0): +1 -1 -1 +1
    assert mels[0] == pytest.approx(0.0)
    np.testing.assert_array_equal(conns[0], v)
    np.testing.assert_allclose(mels[1:], -0.7)
    for site in range(4):
        diff = np.nonzero(conns[site + 1] != v)[0]
        np.testing.assert_array_equal(diff, [site])


def test_ising_without_field_is_diagonal() -> None:
    chain = Chain(3)
    op = Ising(Spin(3), chain.bonds, h=0.0, J=2.0)

    mels, conns = op.get_conn(np.ones(3, dtype=np.int8))

    np.testing.assert_allclose(mels, [-6.0])
    assert conns.shape == (1, 3)


def test_dense_hamiltonians_are_hermitian() -> None:
    chain = Chain(4)
    for op in (
        Ising(Spin(4), chain.bonds, h=0.9),
        Heisenberg(Spin(4), chain.bonds, J=0.5),
    ):
        dense = to_dense(op)
        np.testing.assert_allclose(dense, dense.conj().T, atol=1.0e-12)


def test_heisenberg_dimer_spectrum_is_singlet_and_triplet() -> None:
    op = Heisenberg(Spin(2), Chain(2).bonds, J=1.0)

    energies = np.linalg.eigvalsh(to_dense(op))

    np.testing.assert_allclose(energies, [-3.0, 1.0, 1.0, 1.0], atol=1.0e-12)


def test_ising_chain_ground_energy_at_zero_field() -> None:
    chain = Chain(6)
    op = Ising(Spin(6), chain.bonds, h=0.0, J=1.0)

    energies = np.linalg.eigvalsh(to_dense(op))

    assert energies[0] == pytest.approx(-6.0)


def test_spin_models_require_spin_half_sites() -> None:
    with pytest.raises(ValueError):
        Ising(Boson(3, n_max=2), Chain(3).bonds, h=1.0)
    with pytest.raises(ValueError):
        Heisenberg(Spin(3, s=1.0), Chain(3).bonds)


class _LeakyOperator:
    def __init__(self, hilbert: LocalHilbert) -> None:
        self.hilbert = hilbert

    def get_conn(self, v: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        conn = np.array(v, dtype=np.int8, copy=True)
        conn[0] = 0
        return np.array([1.0]), conn[None, :]


def test_to_dense_rejects_connections_outside_hilbert_space() -> None:
    with pytest.raises(InvalidConfigurationError):
        to_dense(_LeakyOperator(Spin(2)))
