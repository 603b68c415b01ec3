from __future__ import annotations

from collections.abc import Callable
from typing import TypeAlias

import numpy as np
import numpy.typing as npt

ConfigArray: TypeAlias = npt.NDArray[np.int8]
ConfigBatch: TypeAlias = npt.NDArray[np.int8]
FloatArray: TypeAlias = npt.NDArray[np.float64]
IntArray: TypeAlias = npt.NDArray[np.int64]
BoolArray: TypeAlias = npt.NDArray[np.bool_]
WeightingFunction: TypeAlias = Callable[[np.ndarray], np.ndarray]
