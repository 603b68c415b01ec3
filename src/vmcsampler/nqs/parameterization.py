from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

import numpy as np

from vmcsampler.errors import DimensionMismatchError
from vmcsampler.types import FloatArray


@dataclass(frozen=True)
class ParameterSlice:
    name: str
    start: int
    stop: int
    shape: tuple[int, ...]


@dataclass(frozen=True)
class ParameterLayout:
    """Mapping between named parameter tensors and one flat vector.

    Tensors are laid out in sorted-name order, so the layout only depends on
    the names and shapes involved.
    """

    slices: tuple[ParameterSlice, ...]

    @classmethod
    def from_arrays(cls, named_arrays: Mapping[str, np.ndarray]) -> ParameterLayout:
        slices: list[ParameterSlice] = []
        cursor = 0
        for name in sorted(named_arrays):
            shape = tuple(np.shape(named_arrays[name]))
            length = int(np.prod(shape, dtype=np.int64))
            slices.append(ParameterSlice(name=name, start=cursor, stop=cursor + length, shape=shape))
            cursor += length
        return cls(tuple(slices))

    @property
    def size(self) -> int:
        return self.slices[-1].stop if self.slices else 0

    def flatten(self, named_arrays: Mapping[str, np.ndarray], batch_ndim: int = 0) -> np.ndarray:
        """Pack tensors into a vector; ``batch_ndim`` leading axes are kept as batch axes."""

        pieces = []
        for sl in self.slices:
            arr = np.asarray(named_arrays[sl.name])
            batch_shape = arr.shape[:batch_ndim]
            if arr.shape[batch_ndim:] != sl.shape:
                raise DimensionMismatchError(
                    f"parameter {sl.name!r} expected shape {sl.shape}, "
                    f"received {arr.shape[batch_ndim:]}"
                )
            pieces.append(arr.reshape(*batch_shape, sl.stop - sl.start))
        return np.concatenate(pieces, axis=-1)

    def unflatten(self, vector: FloatArray) -> dict[str, np.ndarray]:
        if vector.ndim != 1:
            raise ValueError("vector must be rank-1")
        if vector.shape[0] != self.size:
            raise DimensionMismatchError(
                f"vector length {vector.shape[0]} does not match layout size {self.size}"
            )
        return {sl.name: np.array(vector[sl.start : sl.stop]).reshape(sl.shape) for sl in self.slices}
