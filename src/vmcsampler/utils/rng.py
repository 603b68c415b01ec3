from __future__ import annotations

from dataclasses import dataclass, field
from typing import cast

import jax
import numpy as np
from jax import Array


def process_rank() -> int:
    """Index of this process among the distributed JAX processes."""

    return int(jax.process_index())


@dataclass
class RngStreams:
    """Deterministic random streams for numpy and JAX/THRML callers.

    Streams are derived from ``(seed, rank)`` so that every distributed process
    started with the same ``seed`` draws an independent sequence.
    """

    seed: int
    rank: int = field(default_factory=process_rank)

    def __post_init__(self) -> None:
        if self.seed < 0:
            raise ValueError("seed must be non-negative")
        if self.rank < 0:
            raise ValueError("rank must be non-negative")
        sequence = np.random.SeedSequence(entropy=self.seed, spawn_key=(self.rank,))
        self._np_rng = np.random.default_rng(sequence)
        self._jax_key = jax.random.fold_in(jax.random.PRNGKey(self.seed), self.rank)

    @property
    def numpy(self) -> np.random.Generator:
        return self._np_rng

    def split_jax(self) -> Array:
        self._jax_key, subkey = jax.random.split(self._jax_key)
        return cast(Array, subkey)
