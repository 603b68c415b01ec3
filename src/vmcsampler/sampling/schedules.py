from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class StepsRange:
    """Sweep schedule with ``range(start, stop, step)`` semantics.

    ``start`` sweeps are discarded for thermalization; afterwards one record is
    taken every ``step`` sweeps for each index of ``range(start, stop, step)``.
    """

    start: int
    stop: int
    step: int = 1

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError("start must be >= 0")
        if self.stop < self.start:
            raise ValueError("stop must be >= start")
        if self.step < 1:
            raise ValueError("step must be >= 1")

    def __len__(self) -> int:
        return math.ceil((self.stop - self.start) / self.step)

    def indices(self) -> range:
        return range(self.start, self.stop, self.step)

    @classmethod
    def coerce(cls, steps: StepsRange | tuple[int, int, int] | tuple[int, int]) -> StepsRange:
        if isinstance(steps, StepsRange):
            return steps
        if len(steps) not in (2, 3):
            raise ValueError(f"steps must be (start, stop[, step]), received {steps!r}")
        return cls(*(int(s) for s in steps))

    @classmethod
    def for_samples(
        cls,
        n_samples: int,
        n_discard: int,
        n_sites: int,
        batch_size: int = 1,
        sweep_size: int | None = None,
    ) -> StepsRange:
        """Schedule producing at least ``n_samples`` configurations over ``batch_size`` chains.

        Mirrors the conventional ``(T, T + N * n // B, n)`` layout with ``n``
        the sweep size (system size by default), rounding the record count up
        so small requests still produce one record.
        """

        if n_samples < 1:
            raise ValueError("n_samples must be >= 1")
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        stride = n_sites if sweep_size is None else sweep_size
        n_records = math.ceil(n_samples / batch_size)
        return cls(start=n_discard, stop=n_discard + n_records * stride, step=stride)
