from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from vmcsampler.types import IntArray


@dataclass(frozen=True)
class Chain:
    """Periodic one-dimensional chain of ``L`` sites."""

    L: int

    def __post_init__(self) -> None:
        if self.L < 2:
            raise ValueError("L must be >= 2 for periodic chains")

    @property
    def n_sites(self) -> int:
        return self.L

    @property
    def bonds(self) -> IntArray:
        """Nearest-neighbour bonds ``(i, i + 1)``; a 2-site ring has one bond."""

        if self.L == 2:
            return np.asarray([(0, 1)], dtype=np.int64)
        return np.asarray([(i, (i + 1) % self.L) for i in range(self.L)], dtype=np.int64)

    def coordinate(self, idx: int) -> tuple[int, ...]:
        if idx < 0 or idx >= self.n_sites:
            raise ValueError(f"index out of bounds: {idx}")
        return (idx,)


@dataclass(frozen=True)
class SquareLattice:
    """Periodic LxL square lattice in row-major index order."""

    L: int

    def __post_init__(self) -> None:
        if self.L < 2:
            raise ValueError("L must be >= 2 for periodic square lattices")

    @property
    def n_sites(self) -> int:
        return self.L * self.L

    def index(self, row: int, col: int) -> int:
        return (row % self.L) * self.L + (col % self.L)

    def coordinate(self, idx: int) -> tuple[int, ...]:
        if idx < 0 or idx >= self.n_sites:
            raise ValueError(f"index out of bounds: {idx}")
        return divmod(idx, self.L)

    @property
    def bonds(self) -> IntArray:
        """Unique nearest-neighbour bonds.

        Right and down neighbours of every site cover each undirected bond
        once for ``L > 2``; on the 2x2 torus the wrapped duplicates are dropped.
        """

        seen: set[tuple[int, int]] = set()
        bonds: list[tuple[int, int]] = []
        for r in range(self.L):
            for c in range(self.L):
                i = self.index(r, c)
                for j in (self.index(r, c + 1), self.index(r + 1, c)):
                    key = (min(i, j), max(i, j))
                    if key in seen:
                        continue
                    seen.add(key)
                    bonds.append((i, j))
        return np.asarray(bonds, dtype=np.int64)


Lattice = Chain | SquareLattice


def periodic_euclidean_distance(lattice: Lattice, idx_a: int, idx_b: int) -> float:
    """Minimum-image distance between two sites."""

    total = 0.0
    for a, b in zip(lattice.coordinate(idx_a), lattice.coordinate(idx_b)):
        d = abs(a - b)
        d = min(d, lattice.L - d)
        total += d * d
    return float(np.sqrt(total))
