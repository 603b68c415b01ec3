from vmcsampler.config.presets import ising_chain_small_config, ising_square_config
from vmcsampler.config.schemas import (
    IsingConfig,
    LatticeConfig,
    RbmConfig,
    SamplerConfig,
    SamplingConfig,
    SrConfig,
    VmcConfig,
)

__all__ = [
    "IsingConfig",
    "LatticeConfig",
    "RbmConfig",
    "SamplerConfig",
    "SamplingConfig",
    "SrConfig",
    "VmcConfig",
    "ising_chain_small_config",
    "ising_square_config",
]
