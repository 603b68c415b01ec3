from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from vmcsampler.config.schemas import VmcConfig
from vmcsampler.nqs.rbm import RbmParams, RbmSpin, build_local_mask
from vmcsampler.optim.cg import CgResult, solve_cg
from vmcsampler.optim.sr import build_sr_matvec, compute_sr_statistics, diagonal_shift_schedule
from vmcsampler.physics.hilbert import Spin
from vmcsampler.physics.operators import Ising
from vmcsampler.sampling.backend import AbstractSampler
from vmcsampler.sampling.driver import compute_samples
from vmcsampler.sampling.factory import build_sampler
from vmcsampler.sampling.metropolis import MetropolisLocalV2
from vmcsampler.sampling.schedules import StepsRange
from vmcsampler.utils.checks import require_finite
from vmcsampler.utils.logging import log_event
from vmcsampler.utils.rng import RngStreams
from vmcsampler.vmc.estimators import MeanWithError, expectation, local_values_v2

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IterationMetrics:
    """Per-iteration diagnostics for SR-CG VMC optimization."""

    iteration: int
    energy_mean: float
    energy_stderr: float
    acceptance: float
    diagonal_shift: float
    cg_iterations: int
    cg_residual_norm: float


@dataclass(frozen=True)
class VmcResult:
    """VMC run output bundle."""

    params: RbmParams
    history: list[IterationMetrics]
    final_eval: MeanWithError


@dataclass(frozen=True)
class IsingProblem:
    """Everything a VMC run samples and measures."""

    hamiltonian: Ising
    machine: RbmSpin
    sampler: AbstractSampler


def build_problem(config: VmcConfig) -> IsingProblem:
    """Hamiltonian, machine and sampler for one run.

    Parameter initialisation uses the rank-0 stream so every process starts
    from the same variational state; only the sampler streams differ per rank.
    """

    rngs = RngStreams(seed=config.seed, rank=0)
    lattice = config.lattice.build()
    hilbert = Spin(lattice.n_sites)
    hamiltonian = Ising(hilbert, lattice.bonds, h=config.ising.h, J=config.ising.J)

    n_hidden = max(1, int(round(config.model.alpha * lattice.n_sites)))
    mask = None
    if config.model.connectivity_radius is not None:
        mask = build_local_mask(lattice, n_hidden=n_hidden, radius=config.model.connectivity_radius)
    machine = RbmSpin(hilbert, n_hidden=n_hidden, mask=mask)
    machine.init_random_parameters(rngs.numpy, init_std=config.model.init_std)

    sampler = build_sampler(config.sampler, machine)
    return IsingProblem(hamiltonian=hamiltonian, machine=machine, sampler=sampler)


def sampling_steps(config: VmcConfig, sampler: AbstractSampler, n_samples: int) -> StepsRange:
    """Record spacing defaults to ``N`` sweeps for the batched sampler, one otherwise."""

    stride = config.sampling.sweeps_per_sample
    if stride is None:
        stride = sampler.hilbert.size if isinstance(sampler, MetropolisLocalV2) else 1
    return StepsRange.for_samples(
        n_samples=n_samples,
        n_discard=config.sampling.n_discard,
        n_sites=sampler.hilbert.size,
        batch_size=sampler.n_chains,
        sweep_size=stride,
    )


def _solve_sr_cg(
    operators: np.ndarray,
    local_energies: np.ndarray,
    diagonal_shift: float,
    tolerance: float,
    max_iterations: int,
) -> CgResult:
    sr_stats = compute_sr_statistics(operators=operators, local_energies=local_energies)
    matvec = build_sr_matvec(sr_stats.centered_operators, diagonal_shift=diagonal_shift)
    return solve_cg(
        matvec=matvec,
        rhs=sr_stats.force,
        rtol=tolerance,
        max_iterations=max_iterations,
    )


def run_vmc(config: VmcConfig) -> VmcResult:
    """Minimize the Ising energy of an RBM with stochastic reconfiguration."""

    problem = build_problem(config)
    machine, sampler, hamiltonian = problem.machine, problem.sampler, problem.hamiltonian
    steps = sampling_steps(config, sampler, config.sampling.n_samples)

    log_event(
        logger,
        "vmc_start",
        sampler=type(sampler).__name__,
        n_sites=hamiltonian.hilbert.size,
        n_params=machine.n_params,
        steps=[steps.start, steps.stop, steps.step],
    )

    history: list[IterationMetrics] = []
    for step in range(config.n_iterations):
        samples, values, gradients = compute_samples(sampler, steps, compute_gradients=True)
        local = local_values_v2(samples, values, machine, hamiltonian, config.local_batch_size)

        operators = gradients.reshape(-1, machine.n_params)
        local_energies = local.reshape(-1)
        require_finite("local energies", local_energies)

        diagonal_shift = diagonal_shift_schedule(
            step=step,
            initial=config.sr.diagonal_shift_init,
            decay=config.sr.diagonal_shift_decay,
            minimum=config.sr.diagonal_shift_min,
        )
        cg = _solve_sr_cg(
            operators=operators,
            local_energies=local_energies,
            diagonal_shift=diagonal_shift,
            tolerance=config.sr.cg_tolerance,
            max_iterations=config.sr.cg_max_iterations,
        )
        machine.parameters = machine.parameters - config.learning_rate * np.real(cg.solution)

        energy = expectation(local, n_bins=config.blocking_bins)
        metrics = IterationMetrics(
            iteration=step,
            energy_mean=energy.mean,
            energy_stderr=energy.stderr,
            acceptance=sampler.acceptance,
            diagonal_shift=diagonal_shift,
            cg_iterations=cg.iterations,
            cg_residual_norm=cg.residual_norm,
        )
        history.append(metrics)
        log_event(logger, "vmc_iteration", **metrics.__dict__)

    final_eval = evaluate_energy(config, machine, sampler, hamiltonian)
    log_event(logger, "vmc_done", energy_mean=final_eval.mean, energy_stderr=final_eval.stderr)
    return VmcResult(params=machine.params, history=history, final_eval=final_eval)


def evaluate_energy(
    config: VmcConfig,
    machine: RbmSpin,
    sampler: AbstractSampler,
    hamiltonian: Ising,
) -> MeanWithError:
    """Final energy estimate with blocking error bars."""

    steps = sampling_steps(config, sampler, config.eval_samples)
    samples, values = compute_samples(sampler, steps)
    local = local_values_v2(samples, values, machine, hamiltonian, config.local_batch_size)
    return expectation(local, n_bins=config.blocking_bins)
