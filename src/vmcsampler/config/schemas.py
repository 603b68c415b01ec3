from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from vmcsampler.physics.lattice import Chain, Lattice, SquareLattice


class LatticeConfig(BaseModel):
    """Periodic lattice geometry."""

    model_config = ConfigDict(extra="forbid")

    kind: Literal["chain", "square"] = "chain"
    L: int = Field(ge=2)

    @property
    def n_sites(self) -> int:
        return self.L if self.kind == "chain" else self.L * self.L

    def build(self) -> Lattice:
        return Chain(self.L) if self.kind == "chain" else SquareLattice(self.L)


class IsingConfig(BaseModel):
    """Transverse-field Ising couplings in the sigma^z basis."""

    model_config = ConfigDict(extra="forbid")

    J: float = 1.0
    h: float = Field(gt=0.0)


class RbmConfig(BaseModel):
    """RBM ansatz structure; ``connectivity_radius=None`` means dense weights."""

    model_config = ConfigDict(extra="forbid")

    alpha: float = Field(default=1.0, gt=0.0)
    connectivity_radius: int | None = Field(default=None, ge=1)
    init_std: float = Field(default=0.01, gt=0.0)


class SamplerConfig(BaseModel):
    """Which sampler to build and how to seed it."""

    model_config = ConfigDict(extra="forbid")

    kind: Literal["metropolis_local", "metropolis_local_v2", "exact", "thrml_gibbs"] = (
        "metropolis_local_v2"
    )
    batch_size: int = Field(default=16, ge=1)
    sweep_size: int | None = Field(default=None, ge=1)
    seed: int = Field(default=0, ge=0)


class SamplingConfig(BaseModel):
    """Sample budget per estimate.

    ``sweeps_per_sample=None`` spaces records by one system-size worth of
    local moves: ``n_sites`` sweeps for the batched sampler, one otherwise.
    """

    model_config = ConfigDict(extra="forbid")

    n_samples: int = Field(ge=1)
    n_discard: int = Field(default=0, ge=0)
    sweeps_per_sample: int | None = Field(default=None, ge=1)


class SrConfig(BaseModel):
    """Stochastic reconfiguration + CG hyperparameters."""

    model_config = ConfigDict(extra="forbid")

    diagonal_shift_init: float = Field(default=0.1, gt=0.0)
    diagonal_shift_decay: float = Field(default=0.9, gt=0.0, le=1.0)
    diagonal_shift_min: float = Field(default=1.0e-4, gt=0.0)
    cg_tolerance: float = Field(default=1.0e-5, gt=0.0)
    cg_max_iterations: int = Field(default=200, ge=1)

    @model_validator(mode="after")
    def _check_shift_bounds(self) -> SrConfig:
        if self.diagonal_shift_min > self.diagonal_shift_init:
            raise ValueError("diagonal_shift_min must be <= diagonal_shift_init")
        return self


class VmcConfig(BaseModel):
    """Complete Ising VMC run configuration."""

    model_config = ConfigDict(extra="forbid")

    lattice: LatticeConfig
    ising: IsingConfig
    model: RbmConfig = Field(default_factory=RbmConfig)
    sampler: SamplerConfig = Field(default_factory=SamplerConfig)
    sampling: SamplingConfig
    sr: SrConfig = Field(default_factory=SrConfig)
    learning_rate: float = Field(default=0.05, gt=0.0)
    n_iterations: int = Field(ge=1)
    local_batch_size: int = Field(default=64, ge=1)
    eval_samples: int = Field(default=1_000, ge=1)
    blocking_bins: int = Field(default=10, ge=1)
    seed: int = Field(default=0, ge=0)
