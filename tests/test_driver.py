from __future__ import annotations

import numpy as np
import pytest

from vmcsampler.nqs.rbm import RbmSpin
from vmcsampler.physics.hilbert import Spin
from vmcsampler.sampling.driver import compute_samples, compute_samples_v2
from vmcsampler.sampling.metropolis import MetropolisLocal, MetropolisLocalV2
from vmcsampler.sampling.schedules import StepsRange


class _CountingSampler(MetropolisLocalV2):
    def __init__(self, *args: object, **kwargs: object) -> None:
        super().__init__(*args, **kwargs)  # type: ignore[arg-type]
        self.n_sweeps = 0

    def _sweep(self) -> None:
        self.n_sweeps += 1
        super()._sweep()


def _machine(n_sites: int = 4) -> RbmSpin:
    machine = RbmSpin(Spin(n_sites), alpha=1.0)
    machine.init_random_parameters(np.random.default_rng(0), init_std=0.3)
    return machine


def test_records_follow_range_semantics() -> None:
    sampler = _CountingSampler(_machine(), batch_size=3, seed=1)

    samples, values = compute_samples(sampler, (0, 10, 2))

    assert samples.shape == (5, 3, 4)
    assert values.shape == (5, 3)
    assert sampler.n_sweeps == 10


def test_thermalization_sweeps_are_discarded() -> None:
    sampler = _CountingSampler(_machine(), batch_size=2, seed=1)

    samples, _ = compute_samples(sampler, (7, 13, 3))

    assert samples.shape[0] == len(range(7, 13, 3)) == 2
    assert sampler.n_sweeps == 7 + 2 * 3


def test_values_and_gradients_belong_to_recorded_samples() -> None:
    machine = _machine(n_sites=5)
    sampler = MetropolisLocalV2(machine, batch_size=6, seed=2)

    samples, values, gradients = compute_samples_v2(sampler, (5, 45, 5), compute_logderivs=True)

    assert gradients.shape == (8, 6, machine.n_params)
    np.testing.assert_allclose(values, machine.log_val(samples))
    np.testing.assert_allclose(gradients, machine.der_log(samples))
    assert samples.dtype == np.int8


def test_single_chain_sampler_records_one_chain_axis() -> None:
    machine = _machine()
    sampler = MetropolisLocal(machine, seed=0)

    samples, values, gradients = compute_samples(sampler, StepsRange(2, 8), compute_gradients=True)

    assert samples.shape == (6, 1, 4)
    assert values.shape == (6, 1)
    assert gradients.shape == (6, 1, machine.n_params)


def test_empty_range_still_thermalizes() -> None:
    machine = _machine()
    sampler = _CountingSampler(machine, batch_size=2, seed=0)

    samples, values, gradients = compute_samples(sampler, (4, 4, 1), compute_gradients=True)

    assert samples.shape == (0, 2, 4)
    assert values.shape == (0, 2)
    assert gradients.shape == (0, 2, machine.n_params)
    assert sampler.n_sweeps == 4


def test_driver_resets_acceptance_statistics() -> None:
    sampler = MetropolisLocalV2(_machine(), batch_size=4, seed=0)
    sampler.reset()
    for _ in range(10):
        sampler.sweep()

    compute_samples(sampler, (0, 0, 1))

    assert sampler.acceptance == 0.0


def test_batched_entry_point_requires_batched_sampler() -> None:
    with pytest.raises(TypeError):
        compute_samples_v2(MetropolisLocal(_machine()), (0, 4, 1), compute_logderivs=False)  # type: ignore[arg-type]


def test_steps_range_validation() -> None:
    with pytest.raises(ValueError):
        StepsRange(-1, 4)
    with pytest.raises(ValueError):
        StepsRange(5, 4)
    with pytest.raises(ValueError):
        StepsRange(0, 4, 0)
    with pytest.raises(ValueError):
        StepsRange.coerce((1,))  # type: ignore[arg-type]

    for start, stop, step in [(0, 10, 3), (2, 2, 1), (1, 9, 4), (0, 1, 5)]:
        assert len(StepsRange(start, stop, step)) == len(range(start, stop, step))
    assert StepsRange.coerce((3, 9)) == StepsRange(3, 9, 1)


def test_for_samples_covers_requested_sample_count() -> None:
    steps = StepsRange.for_samples(n_samples=100, n_discard=10, n_sites=8, batch_size=16)

    assert steps == StepsRange(10, 10 + 7 * 8, 8)
    assert len(steps) * 16 >= 100

    single = StepsRange.for_samples(n_samples=5, n_discard=0, n_sites=8, sweep_size=1)
    assert single == StepsRange(0, 5, 1)
