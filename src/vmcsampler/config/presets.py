from __future__ import annotations

from vmcsampler.config.schemas import (
    IsingConfig,
    LatticeConfig,
    RbmConfig,
    SamplerConfig,
    SamplingConfig,
    SrConfig,
    VmcConfig,
)


def ising_chain_small_config(seed: int = 7) -> VmcConfig:
    """Short periodic chain at the critical field, sized for CI and laptops."""

    return VmcConfig(
        lattice=LatticeConfig(kind="chain", L=8),
        ising=IsingConfig(J=1.0, h=1.0),
        model=RbmConfig(alpha=1.0, init_std=0.02),
        sampler=SamplerConfig(kind="metropolis_local_v2", batch_size=16, seed=seed),
        sampling=SamplingConfig(n_samples=256, n_discard=40),
        sr=SrConfig(diagonal_shift_init=0.1, diagonal_shift_decay=0.9, cg_max_iterations=100),
        learning_rate=0.05,
        n_iterations=30,
        local_batch_size=64,
        eval_samples=1_024,
        blocking_bins=16,
        seed=seed,
    )


def ising_square_config(seed: int = 11) -> VmcConfig:
    """2D TFIM on a 6x6 torus close to its critical field."""

    return VmcConfig(
        lattice=LatticeConfig(kind="square", L=6),
        ising=IsingConfig(J=1.0, h=3.044),
        model=RbmConfig(alpha=1.0, connectivity_radius=2, init_std=0.01),
        sampler=SamplerConfig(kind="metropolis_local_v2", batch_size=128, seed=seed),
        sampling=SamplingConfig(n_samples=2_048, n_discard=200),
        sr=SrConfig(
            diagonal_shift_init=0.1,
            diagonal_shift_decay=0.95,
            cg_tolerance=1.0e-4,
            cg_max_iterations=500,
        ),
        learning_rate=0.02,
        n_iterations=300,
        local_batch_size=256,
        eval_samples=16_384,
        blocking_bins=50,
        seed=seed,
    )
