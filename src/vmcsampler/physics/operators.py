from __future__ import annotations

from typing import Protocol

import numpy as np

from vmcsampler.errors import InvalidConfigurationError
from vmcsampler.physics.hilbert import MAX_ENUMERATED_STATES, LocalHilbert
from vmcsampler.types import ConfigArray, ConfigBatch, FloatArray, IntArray


class LocalOperator(Protocol):
    """Operator with a sparse row structure in the configuration basis.

    ``get_conn(v)`` enumerates the nonzero elements ``<v|O|v'>`` of row ``v``
    as ``(mels, conns)`` with ``conns`` of shape ``(n_conn, N)``.
    """

    @property
    def hilbert(self) -> LocalHilbert:
        """Hilbert space the operator acts on."""

    def get_conn(self, v: ConfigArray) -> tuple[np.ndarray, ConfigBatch]:
        """Return matrix elements and connected configurations of row ``v``."""


def _check_bonds(bonds: IntArray, n_sites: int) -> IntArray:
    arr = np.asarray(bonds, dtype=np.int64)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f"bonds must have shape (n_bonds, 2), received {arr.shape}")
    if arr.size and (arr.min() < 0 or arr.max() >= n_sites):
        raise ValueError("bond indices out of range for the Hilbert space")
    return arr


def _require_spin_half(hilbert: LocalHilbert) -> None:
    if hilbert.local_states.tolist() != [-1, 1]:
        raise ValueError("operator requires spin-1/2 sites with local states {-1, +1}")


class Ising:
    """Transverse-field Ising model ``H = -J sum_<ij> s_i s_j - h sum_i sigma^x_i``."""

    def __init__(self, hilbert: LocalHilbert, bonds: IntArray, h: float, J: float = 1.0) -> None:
        _require_spin_half(hilbert)
        self._hilbert = hilbert
        self.bonds = _check_bonds(bonds, hilbert.size)
        self.h = float(h)
        self.J = float(J)

    @property
    def hilbert(self) -> LocalHilbert:
        return self._hilbert

    def diagonal(self, configs: ConfigBatch) -> FloatArray:
        """Diagonal ``-J sum_<ij> s_i s_j`` for any batch shape."""

        arr = np.asarray(configs, dtype=np.float64)
        products = arr[..., self.bonds[:, 0]] * arr[..., self.bonds[:, 1]]
        return np.asarray(-self.J * np.sum(products, axis=-1), dtype=np.float64)

    def get_conn(self, v: ConfigArray) -> tuple[FloatArray, ConfigBatch]:
        n = self._hilbert.size
        conns = np.repeat(np.asarray(v, dtype=np.int8)[None, :], n + 1, axis=0)
        sites = np.arange(n)
        conns[sites + 1, sites] *= np.int8(-1)

        mels = np.full(n + 1, -self.h, dtype=np.float64)
        mels[0] = float(self.diagonal(v))
        if self.h == 0.0:
            return mels[:1], conns[:1]
        return mels, conns


class Heisenberg:
    """Spin-1/2 Heisenberg model ``H = J sum_<ij> (s^x s^x + s^y s^y + s^z s^z)``.

    In Pauli units the off-diagonal part swaps antiparallel neighbours with
    matrix element ``2J``.
    """

    def __init__(self, hilbert: LocalHilbert, bonds: IntArray, J: float = 1.0) -> None:
        _require_spin_half(hilbert)
        self._hilbert = hilbert
        self.bonds = _check_bonds(bonds, hilbert.size)
        self.J = float(J)

    @property
    def hilbert(self) -> LocalHilbert:
        return self._hilbert

    def get_conn(self, v: ConfigArray) -> tuple[FloatArray, ConfigBatch]:
        arr = np.asarray(v, dtype=np.int8)
        si = arr[self.bonds[:, 0]]
        sj = arr[self.bonds[:, 1]]
        diag = self.J * float(np.sum(si.astype(np.float64) * sj))

        flippable = self.bonds[si != sj]
        conns = np.repeat(arr[None, :], flippable.shape[0] + 1, axis=0)
        rows = np.arange(1, flippable.shape[0] + 1)
        conns[rows, flippable[:, 0]] *= np.int8(-1)
        conns[rows, flippable[:, 1]] *= np.int8(-1)

        mels = np.full(flippable.shape[0] + 1, 2.0 * self.J, dtype=np.float64)
        mels[0] = diag
        return mels, conns


def to_dense(op: LocalOperator, max_states: int = MAX_ENUMERATED_STATES) -> np.ndarray:
    """Materialize ``op`` over the full Hilbert space for tests and exact checks."""

    states = op.hilbert.all_states(max_states=max_states)
    index = {row.tobytes(): i for i, row in enumerate(states)}

    first_mels, _ = op.get_conn(states[0])
    dense = np.zeros((states.shape[0], states.shape[0]), dtype=np.result_type(first_mels, np.float64))
    for i, row in enumerate(states):
        mels, conns = op.get_conn(row)
        for mel, conn in zip(mels, conns):
            key = np.asarray(conn, dtype=np.int8).tobytes()
            if key not in index:
                raise InvalidConfigurationError(
                    f"operator connects {row.tolist()} to {conn.tolist()}, "
                    "which is outside the Hilbert space"
                )
            dense[i, index[key]] += mel
    return dense
