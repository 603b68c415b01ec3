from vmcsampler.sampling.backend import AbstractSampler, Sampler, squared_modulus
from vmcsampler.sampling.driver import compute_samples, compute_samples_v2
from vmcsampler.sampling.exact import ExactSampler
from vmcsampler.sampling.factory import build_sampler
from vmcsampler.sampling.metropolis import MetropolisLocal, MetropolisLocalV2, propose_local_moves
from vmcsampler.sampling.schedules import StepsRange
from vmcsampler.sampling.thrml_backend import ThrmlGibbsSampler, build_rbm_program, build_sweep_fn

__all__ = [
    "AbstractSampler",
    "ExactSampler",
    "MetropolisLocal",
    "MetropolisLocalV2",
    "Sampler",
    "StepsRange",
    "ThrmlGibbsSampler",
    "build_rbm_program",
    "build_sampler",
    "build_sweep_fn",
    "compute_samples",
    "compute_samples_v2",
    "propose_local_moves",
    "squared_modulus",
]
