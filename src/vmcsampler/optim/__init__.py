from vmcsampler.optim.cg import CgResult, solve_cg
from vmcsampler.optim.sr import (
    SrStatistics,
    build_sr_matvec,
    compute_sr_statistics,
    diagonal_shift_schedule,
    explicit_sr_matrix,
)

__all__ = [
    "CgResult",
    "SrStatistics",
    "build_sr_matvec",
    "compute_sr_statistics",
    "diagonal_shift_schedule",
    "explicit_sr_matrix",
    "solve_cg",
]
