from vmcsampler.vmc.estimators import (
    MeanWithError,
    blocking_error_bars,
    exact_expectation,
    expectation,
    local_values,
    local_values_v2,
)
from vmcsampler.vmc.training import (
    IsingProblem,
    IterationMetrics,
    VmcResult,
    build_problem,
    evaluate_energy,
    run_vmc,
    sampling_steps,
)

__all__ = [
    "IsingProblem",
    "IterationMetrics",
    "MeanWithError",
    "VmcResult",
    "blocking_error_bars",
    "build_problem",
    "evaluate_energy",
    "exact_expectation",
    "expectation",
    "local_values",
    "local_values_v2",
    "run_vmc",
    "sampling_steps",
]
