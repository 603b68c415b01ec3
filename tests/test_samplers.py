from __future__ import annotations

import numpy as np
import pytest

from vmcsampler.errors import (
    DimensionMismatchError,
    InvalidConfigurationError,
    PreconditionViolationError,
)
from vmcsampler.nqs.rbm import RbmSpin
from vmcsampler.physics.hilbert import Boson, Spin
from vmcsampler.sampling.backend import squared_modulus
from vmcsampler.sampling.driver import compute_samples
from vmcsampler.sampling.exact import ExactSampler
from vmcsampler.sampling.metropolis import MetropolisLocal, MetropolisLocalV2, propose_local_moves
from vmcsampler.utils.rng import RngStreams


def _machine(n_sites: int = 3, seed: int = 0, init_std: float = 0.5) -> RbmSpin:
    machine = RbmSpin(Spin(n_sites), n_hidden=2)
    machine.init_random_parameters(np.random.default_rng(seed), init_std=init_std)
    return machine


def _exact_probs(machine: RbmSpin) -> np.ndarray:
    log_values = machine.log_val(machine.hilbert.all_states())
    weights = np.exp(2.0 * (log_values - np.max(log_values)))
    return weights / np.sum(weights)


def _histogram(samples: np.ndarray) -> np.ndarray:
    flat = samples.reshape(-1, samples.shape[-1])
    bits = (flat > 0).astype(np.int64)
    n_sites = flat.shape[1]
    idx = bits @ (2 ** np.arange(n_sites - 1, -1, -1))
    return np.bincount(idx, minlength=2**n_sites) / flat.shape[0]


def test_sweep_before_initialization_is_rejected() -> None:
    for sampler in (
        MetropolisLocal(_machine()),
        MetropolisLocalV2(_machine(), batch_size=4),
        ExactSampler(_machine()),
    ):
        with pytest.raises(PreconditionViolationError):
            sampler.sweep()
        with pytest.raises(PreconditionViolationError):
            _ = sampler.visible


def test_assigning_visible_enables_sweeps_without_reset() -> None:
    sampler = MetropolisLocal(_machine())

    sampler.visible = np.array([1, -1, 1], dtype=np.int8)
    sampler.sweep()

    assert sampler.visible.shape == (3,)


def test_reset_keeps_configuration_unless_asked() -> None:
    sampler = MetropolisLocalV2(_machine(n_sites=6), batch_size=8, seed=2)
    sampler.reset()
    for _ in range(5):
        sampler.sweep()
    before = sampler.visible

    sampler.reset()
    np.testing.assert_array_equal(sampler.visible, before)
    assert sampler.acceptance == 0.0

    sampler.reset(init_random=True)
    assert not np.array_equal(sampler.visible, before)


def test_visible_returns_a_copy() -> None:
    sampler = MetropolisLocal(_machine())
    sampler.reset()

    snapshot = sampler.visible
    snapshot[:] = 0

    assert np.all(sampler.hilbert.contains(sampler.visible))


def test_invalid_visible_is_rejected_and_state_kept() -> None:
    sampler = MetropolisLocal(_machine())
    sampler.reset()
    before = sampler.visible

    with pytest.raises(InvalidConfigurationError):
        sampler.visible = np.array([1, 0, 1], dtype=np.int8)
    with pytest.raises(DimensionMismatchError):
        sampler.visible = np.ones(4, dtype=np.int8)

    np.testing.assert_array_equal(sampler.visible, before)


def test_batched_visible_requires_one_row_per_chain() -> None:
    sampler = MetropolisLocalV2(_machine(), batch_size=5)

    with pytest.raises(DimensionMismatchError):
        sampler.visible = np.ones(3, dtype=np.int8)
    with pytest.raises(DimensionMismatchError):
        sampler.visible = np.ones((4, 3), dtype=np.int8)

    sampler.visible = np.ones((5, 3), dtype=np.int8)
    assert sampler.visible.shape == (5, 3)


def test_visible_round_trip_leaves_acceptance_unchanged() -> None:
    sampler = MetropolisLocal(_machine(n_sites=4), seed=1)
    sampler.reset()
    for _ in range(20):
        sampler.sweep()
    acceptance = sampler.acceptance

    sampler.visible = sampler.visible

    assert sampler.acceptance == acceptance


def test_acceptance_is_a_fraction() -> None:
    sampler = MetropolisLocalV2(_machine(n_sites=5, init_std=1.0), batch_size=16, seed=4)
    sampler.reset()
    assert sampler.acceptance == 0.0

    for _ in range(30):
        sampler.sweep()

    assert 0.0 < sampler.acceptance <= 1.0


def test_flat_amplitude_accepts_every_proposal() -> None:
    machine = RbmSpin(Spin(6), n_hidden=3)
    sampler = MetropolisLocalV2(machine, batch_size=8)
    sampler.reset()

    for _ in range(10):
        sampler.sweep()

    assert sampler.acceptance == 1.0


def test_same_seed_gives_identical_chains() -> None:
    machine = _machine(n_sites=5)
    first = MetropolisLocalV2(machine, batch_size=4, seed=9)
    second = MetropolisLocalV2(machine, batch_size=4, seed=9)
    third = MetropolisLocalV2(machine, batch_size=4, seed=10)

    s1, _ = compute_samples(first, (5, 25, 5))
    s2, _ = compute_samples(second, (5, 25, 5))
    s3, _ = compute_samples(third, (5, 25, 5))

    np.testing.assert_array_equal(s1, s2)
    assert not np.array_equal(s1, s3)


def test_reseeding_restarts_the_stream() -> None:
    machine = _machine(n_sites=5)
    fresh = MetropolisLocal(machine, seed=3)
    reseeded = MetropolisLocal(machine, seed=0)
    reseeded.reset()
    reseeded.sweep()

    reseeded.seed(3)
    reseeded.reset(init_random=True)
    fresh.reset()
    for _ in range(4):
        reseeded.sweep()
        fresh.sweep()

    np.testing.assert_array_equal(reseeded.visible, fresh.visible)
    with pytest.raises(ValueError):
        reseeded.seed(-1)


def test_streams_differ_between_processes() -> None:
    rank0 = RngStreams(seed=5, rank=0)
    rank1 = RngStreams(seed=5, rank=1)

    assert not np.array_equal(rank0.numpy.random(8), rank1.numpy.random(8))
    assert not np.array_equal(np.asarray(rank0.split_jax()), np.asarray(rank1.split_jax()))


def test_machine_func_must_be_callable() -> None:
    sampler = MetropolisLocal(_machine())

    assert sampler.machine_func is squared_modulus
    with pytest.raises(TypeError):
        sampler.machine_func = 2.0  # type: ignore[assignment]
    assert sampler.machine_func is squared_modulus


def test_local_moves_change_exactly_one_site() -> None:
    hilbert = Boson(5, n_max=3)
    rng = np.random.default_rng(11)
    configs = hilbert.random_state(rng, batch_shape=(200,))

    proposed = propose_local_moves(hilbert, configs, rng)

    np.testing.assert_array_equal(np.sum(proposed != configs, axis=-1), np.ones(200))
    assert np.all(hilbert.contains(proposed))


def test_exact_sampler_matches_squared_amplitudes() -> None:
    machine = _machine(n_sites=3, seed=5)
    sampler = ExactSampler(machine, seed=1)

    samples, _ = compute_samples(sampler, (0, 6_000, 1))

    expected = _exact_probs(machine)
    np.testing.assert_allclose(sampler.probabilities, expected, rtol=1.0e-12)
    np.testing.assert_allclose(_histogram(samples), expected, atol=0.03)
    assert sampler.acceptance == 1.0


def test_exact_sampler_uses_the_weighting_function() -> None:
    machine = _machine(n_sites=3, seed=6)
    sampler = ExactSampler(machine)
    sampler.reset()

    sampler.machine_func = np.abs

    amplitudes = np.exp(machine.log_val(machine.hilbert.all_states()))
    np.testing.assert_allclose(sampler.probabilities, amplitudes / np.sum(amplitudes))


def test_metropolis_local_matches_squared_amplitudes() -> None:
    machine = _machine(n_sites=3, seed=7)
    sampler = MetropolisLocal(machine, seed=2)

    samples, _ = compute_samples(sampler, (50, 4_050, 1))

    np.testing.assert_allclose(_histogram(samples), _exact_probs(machine), atol=0.04)
    assert 0.0 < sampler.acceptance < 1.0


def test_batched_metropolis_matches_squared_amplitudes() -> None:
    machine = _machine(n_sites=3, seed=8)
    sampler = MetropolisLocalV2(machine, batch_size=64, seed=3)

    samples, _ = compute_samples(sampler, (30, 30 + 200 * 3, 3))

    assert samples.shape == (200, 64, 3)
    np.testing.assert_allclose(_histogram(samples), _exact_probs(machine), atol=0.03)


def test_batched_metropolis_applies_weighting_to_amplitude_ratio() -> None:
    machine = RbmSpin(Spin(3), n_hidden=2)
    a = np.array([1.0, -0.6, 0.3])
    b = np.array([0.1, -0.2])
    w = np.array([[0.4, 0.0], [0.0, -0.3], [0.2, 0.2]])
    machine.parameters = np.concatenate([a, b, w.ravel()])
    sampler = MetropolisLocalV2(machine, batch_size=64, seed=5)
    sampler.machine_func = np.abs

    samples, _ = compute_samples(sampler, (30, 30 + 200 * 3, 3))

    amplitudes = np.exp(machine.log_val(machine.hilbert.all_states()))
    expected = amplitudes / np.sum(amplitudes)
    np.testing.assert_allclose(_histogram(samples), expected, atol=0.03)
    assert np.max(np.abs(expected - _exact_probs(machine))) > 0.03


def test_exact_sampler_rejects_negative_or_non_finite_weights() -> None:
    sampler = ExactSampler(_machine(n_sites=3, seed=13))

    sampler.machine_func = lambda x: -np.abs(x)
    with pytest.raises(ValueError):
        sampler.reset()

    sampler.machine_func = lambda x: np.full(np.shape(x), np.nan)
    with pytest.raises(ValueError):
        sampler.reset()


def test_exact_sampler_rejects_all_zero_weights() -> None:
    sampler = ExactSampler(_machine(n_sites=3, seed=14))
    sampler.machine_func = np.zeros_like

    with pytest.raises(PreconditionViolationError):
        sampler.reset()
