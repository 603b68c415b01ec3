from __future__ import annotations

from itertools import product

import numpy as np

from vmcsampler.errors import DimensionMismatchError, InvalidConfigurationError
from vmcsampler.types import BoolArray, ConfigBatch

MAX_ENUMERATED_STATES: int = 2**20


class LocalHilbert:
    """Product Hilbert space of ``n_sites`` identical sites.

    Every site takes one of ``local_states``; configurations are stored as
    ``int8`` arrays whose last axis runs over the sites.
    """

    def __init__(self, local_states: tuple[int, ...] | list[int], n_sites: int) -> None:
        if n_sites < 1:
            raise ValueError("n_sites must be >= 1")
        states = tuple(sorted({int(s) for s in local_states}))
        if len(states) < 2:
            raise ValueError("a local Hilbert space needs at least two local states")
        if states[0] < np.iinfo(np.int8).min or states[-1] > np.iinfo(np.int8).max:
            raise ValueError("local states must fit in int8")
        self._local_states = np.asarray(states, dtype=np.int8)
        self._n_sites = int(n_sites)

    @property
    def size(self) -> int:
        return self._n_sites

    @property
    def local_states(self) -> np.ndarray:
        return self._local_states.copy()

    @property
    def local_size(self) -> int:
        return int(self._local_states.shape[0])

    @property
    def n_states(self) -> int:
        return self.local_size**self.size

    def contains(self, configs: np.ndarray) -> BoolArray:
        """Per-configuration membership test over the last axis."""

        arr = np.asarray(configs)
        if arr.ndim == 0 or arr.shape[-1] != self.size:
            raise DimensionMismatchError(
                f"configurations must have {self.size} sites on the last axis, "
                f"received shape {arr.shape}"
            )
        return np.all(np.isin(arr, self._local_states), axis=-1)

    def validate(self, name: str, configs: np.ndarray) -> None:
        """Raise ``InvalidConfigurationError`` if any entry is outside the local domain."""

        inside = self.contains(configs)
        if not np.all(inside):
            bad = np.setdiff1d(np.unique(np.asarray(configs)), self._local_states)
            raise InvalidConfigurationError(
                f"{name} contains values {bad.tolist()} outside the local states "
                f"{self._local_states.tolist()}"
            )

    def random_state(
        self, rng: np.random.Generator, batch_shape: tuple[int, ...] = ()
    ) -> ConfigBatch:
        """Draw configurations uniformly from the Hilbert space."""

        idx = rng.integers(0, self.local_size, size=(*batch_shape, self.size))
        return self._local_states[idx]

    def all_states(self, max_states: int = MAX_ENUMERATED_STATES) -> ConfigBatch:
        """Enumerate every configuration, first site varying slowest."""

        if self.n_states > max_states:
            raise ValueError(
                f"Hilbert space has {self.n_states} states, more than the "
                f"enumeration limit {max_states}"
            )
        rows = list(product(self._local_states.tolist(), repeat=self.size))
        return np.asarray(rows, dtype=np.int8)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(local_states={self._local_states.tolist()}, "
            f"n_sites={self.size})"
        )


class Spin(LocalHilbert):
    """Spin-``s`` sites with local values ``2m`` for ``m = -s, ..., s``.

    Spin-1/2 therefore uses ``{-1, +1}``.
    """

    def __init__(self, n_sites: int, s: float = 0.5) -> None:
        if s <= 0 or not float(2 * s).is_integer():
            raise ValueError(f"s must be a positive half-integer, received {s}")
        two_s = int(2 * s)
        super().__init__(tuple(range(-two_s, two_s + 1, 2)), n_sites)
        self.s = float(s)

    def __repr__(self) -> str:
        return f"Spin(n_sites={self.size}, s={self.s})"


class Boson(LocalHilbert):
    """Bosonic modes with occupations ``0..n_max``."""

    def __init__(self, n_sites: int, n_max: int) -> None:
        if n_max < 1:
            raise ValueError("n_max must be >= 1")
        super().__init__(tuple(range(n_max + 1)), n_sites)
        self.n_max = int(n_max)

    def __repr__(self) -> str:
        return f"Boson(n_sites={self.size}, n_max={self.n_max})"
