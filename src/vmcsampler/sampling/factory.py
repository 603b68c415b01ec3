from __future__ import annotations

from vmcsampler.config.schemas import SamplerConfig
from vmcsampler.nqs.base import Machine
from vmcsampler.nqs.rbm import RbmSpin
from vmcsampler.sampling.backend import AbstractSampler
from vmcsampler.sampling.exact import ExactSampler
from vmcsampler.sampling.metropolis import MetropolisLocal, MetropolisLocalV2
from vmcsampler.sampling.thrml_backend import ThrmlGibbsSampler


def build_sampler(config: SamplerConfig, machine: Machine) -> AbstractSampler:
    """Instantiate and seed the sampler described by ``config``."""

    if config.kind == "metropolis_local":
        sampler: AbstractSampler = MetropolisLocal(
            machine, sweep_size=config.sweep_size, seed=config.seed
        )
    elif config.kind == "metropolis_local_v2":
        sampler = MetropolisLocalV2(machine, batch_size=config.batch_size, seed=config.seed)
    elif config.kind == "exact":
        sampler = ExactSampler(machine, seed=config.seed)
    elif config.kind == "thrml_gibbs":
        if not isinstance(machine, RbmSpin):
            raise TypeError("the thrml_gibbs sampler requires an RbmSpin machine")
        sampler = ThrmlGibbsSampler(machine, steps_per_sweep=config.sweep_size or 1, seed=config.seed)
    else:
        raise ValueError(f"unknown sampler kind: {config.kind!r}")
    return sampler
