from __future__ import annotations

import logging

import numpy as np

from vmcsampler.sampling.backend import Sampler
from vmcsampler.sampling.metropolis import MetropolisLocalV2
from vmcsampler.sampling.schedules import StepsRange
from vmcsampler.utils.checks import require_shape

logger = logging.getLogger(__name__)

Steps = StepsRange | tuple[int, int, int]


def compute_samples(
    sampler: Sampler,
    steps: Steps,
    compute_gradients: bool = False,
) -> tuple[np.ndarray, np.ndarray] | tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Run ``sampler`` through ``steps`` and record configurations and log-values.

    Args:
        sampler: any sampler; all of its chains are recorded together.
        steps: ``(start, stop, step)`` with the meaning of ``range``. ``start``
            sweeps are discarded, then ``step`` sweeps separate consecutive
            records, giving ``len(range(start, stop, step))`` records.
        compute_gradients: also record ``d log Psi / d theta``.

    Returns:
        ``(samples, values)`` or ``(samples, values, gradients)`` with shapes
        ``(n_records, n_chains, N)``, ``(n_records, n_chains)`` and
        ``(n_records, n_chains, n_params)``.
    """

    schedule = StepsRange.coerce(steps)
    machine = sampler.machine
    n_chains = sampler.n_chains
    n_sites = sampler.hilbert.size

    logger.debug(
        "compute_samples: %s with %d chain(s), steps=%s, gradients=%s",
        type(sampler).__name__,
        n_chains,
        (schedule.start, schedule.stop, schedule.step),
        compute_gradients,
    )

    sampler.reset()
    for _ in range(schedule.start):
        sampler.sweep()

    samples: list[np.ndarray] = []
    values: list[np.ndarray] = []
    gradients: list[np.ndarray] = []
    for _ in schedule.indices():
        for _ in range(schedule.step):
            sampler.sweep()

        batch = sampler.visible.reshape(n_chains, n_sites)
        log_values = np.asarray(machine.log_val(batch))
        require_shape("log_val output", log_values, (n_chains,))
        samples.append(batch)
        values.append(log_values)

        if compute_gradients:
            der = np.asarray(machine.der_log(batch))
            require_shape("der_log output", der, (n_chains, machine.n_params))
            gradients.append(der)

    samples_arr = _stack(samples, (n_chains, n_sites), np.int8)
    values_arr = _stack(values, (n_chains,), np.float64)
    if not compute_gradients:
        return samples_arr, values_arr
    return samples_arr, values_arr, _stack(gradients, (n_chains, machine.n_params), np.float64)


def compute_samples_v2(
    sampler: MetropolisLocalV2,
    steps: Steps,
    compute_logderivs: bool,
) -> tuple[np.ndarray, np.ndarray] | tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Same as ``compute_samples`` restricted to the batched ``MetropolisLocalV2``.

    Typical usage is ``steps = (T, T + N * n // B, n)`` with ``T`` discarded
    sweeps, ``n`` the system size, ``N`` the number of samples and ``B`` the
    sampler batch size.
    """

    if not isinstance(sampler, MetropolisLocalV2):
        raise TypeError(
            f"compute_samples_v2 requires a MetropolisLocalV2 sampler, got {type(sampler).__name__}"
        )
    return compute_samples(sampler, steps, compute_gradients=compute_logderivs)


def _stack(rows: list[np.ndarray], shape: tuple[int, ...], dtype: type) -> np.ndarray:
    if not rows:
        return np.zeros((0, *shape), dtype=dtype)
    return np.stack(rows, axis=0)
