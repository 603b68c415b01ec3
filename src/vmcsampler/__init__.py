"""Markov-chain Monte Carlo sampling for variational quantum states."""

from vmcsampler.config.schemas import VmcConfig
from vmcsampler.errors import (
    DimensionMismatchError,
    InvalidConfigurationError,
    PreconditionViolationError,
)
from vmcsampler.sampling import (
    ExactSampler,
    MetropolisLocal,
    MetropolisLocalV2,
    Sampler,
    StepsRange,
    ThrmlGibbsSampler,
    compute_samples,
    compute_samples_v2,
)
from vmcsampler.vmc.estimators import local_values_v2
from vmcsampler.vmc.training import run_vmc

__all__ = [
    "DimensionMismatchError",
    "ExactSampler",
    "InvalidConfigurationError",
    "MetropolisLocal",
    "MetropolisLocalV2",
    "PreconditionViolationError",
    "Sampler",
    "StepsRange",
    "ThrmlGibbsSampler",
    "VmcConfig",
    "compute_samples",
    "compute_samples_v2",
    "local_values_v2",
    "run_vmc",
]
