from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from vmcsampler.errors import DimensionMismatchError
from vmcsampler.nqs.base import Machine
from vmcsampler.physics.operators import LocalOperator
from vmcsampler.types import ConfigBatch
from vmcsampler.utils.checks import require_positive_int


@dataclass(frozen=True)
class MeanWithError:
    """Mean estimate with standard error from block statistics."""

    mean: float
    stderr: float


def blocking_error_bars(values: np.ndarray, n_bins: int) -> MeanWithError:
    """Mean and standard error over ``n_bins`` consecutive blocks.

    Complex series are summarized by their real part.
    """

    values = np.real(np.asarray(values)).astype(np.float64)
    if values.ndim != 1:
        raise ValueError("values must be rank-1")
    if n_bins < 1:
        raise ValueError("n_bins must be >= 1")
    if values.shape[0] < n_bins:
        raise ValueError("need at least n_bins samples for blocking")

    block_size = values.shape[0] // n_bins
    blocks = values[: n_bins * block_size].reshape(n_bins, block_size)
    block_means = np.mean(blocks, axis=1)

    mean = float(np.mean(block_means))
    if n_bins == 1:
        return MeanWithError(mean=mean, stderr=0.0)

    stderr = float(np.std(block_means, ddof=1) / np.sqrt(n_bins))
    return MeanWithError(mean=mean, stderr=stderr)


def local_values_v2(
    samples: ConfigBatch,
    values: np.ndarray,
    machine: Machine,
    op: LocalOperator,
    batch_size: int,
) -> np.ndarray:
    """Local values ``O_loc(v) = sum_v' <v|O|v'> Psi(v') / Psi(v)`` for all samples.

    Args:
        samples: visible configurations of shape ``(..., N)``.
        values: ``log Psi`` of ``samples``, shape ``(...)``.
        machine: wavefunction.
        op: Hermitian operator.
        batch_size: number of samples whose connected configurations share
            one ``machine.log_val`` call.

    Returns:
        Array of local values with the shape of ``values``.
    """

    require_positive_int("batch_size", batch_size)
    samples = np.asarray(samples)
    values = np.asarray(values)
    n_sites = op.hilbert.size
    if samples.ndim == 0 or samples.shape[-1] != n_sites:
        raise DimensionMismatchError(
            f"samples must have {n_sites} sites on the last axis, received shape {samples.shape}"
        )
    if samples.shape[:-1] != values.shape:
        raise DimensionMismatchError(
            f"samples {samples.shape[:-1]} and values {values.shape} are not aligned"
        )

    flat_samples = samples.reshape(-1, n_sites)
    flat_values = values.reshape(-1)
    n_total = flat_samples.shape[0]

    chunks: list[np.ndarray] = []
    for start in range(0, n_total, batch_size):
        stop = min(start + batch_size, n_total)
        chunks.append(
            _local_values_chunk(flat_samples[start:stop], flat_values[start:stop], machine, op)
        )

    if not chunks:
        return np.zeros(values.shape, dtype=np.result_type(values, np.float64))
    return np.concatenate(chunks).reshape(values.shape)


def _local_values_chunk(
    samples: ConfigBatch,
    values: np.ndarray,
    machine: Machine,
    op: LocalOperator,
) -> np.ndarray:
    mels_list: list[np.ndarray] = []
    conns_list: list[np.ndarray] = []
    for v in samples:
        mels, conns = op.get_conn(v)
        mels_list.append(np.asarray(mels))
        conns_list.append(np.asarray(conns))

    sections = np.cumsum([m.shape[0] for m in mels_list])[:-1]
    all_conns = np.concatenate(conns_list, axis=0)
    op.hilbert.validate("connected configurations", all_conns)

    log_conn = np.asarray(machine.log_val(all_conns))
    out = []
    for mels, log_c, log_v in zip(mels_list, np.split(log_conn, sections), values):
        out.append(np.sum(mels * np.exp(log_c - log_v)))
    return np.asarray(out)


def local_values(
    samples: ConfigBatch,
    machine: Machine,
    op: LocalOperator,
    batch_size: int = 64,
) -> np.ndarray:
    """``local_values_v2`` with ``log Psi`` of the samples evaluated here."""

    samples = np.asarray(samples)
    values = np.asarray(machine.log_val(samples))
    return local_values_v2(samples, values, machine, op, batch_size)


def expectation(local: np.ndarray, n_bins: int = 1) -> MeanWithError:
    """Blocked mean of a local-value array of any shape, record axis first."""

    flat = np.real(np.asarray(local)).reshape(-1)
    return blocking_error_bars(flat, n_bins=max(1, min(n_bins, flat.shape[0])))


def exact_expectation(machine: Machine, op: LocalOperator, dense: np.ndarray) -> float:
    """``<Psi|O|Psi> / <Psi|Psi>`` by enumeration for small systems."""

    states = op.hilbert.all_states()
    log_values = np.asarray(machine.log_val(states))
    psi = np.exp(log_values - np.max(np.real(log_values)))
    norm = float(np.real(np.vdot(psi, psi)))
    return float(np.real(np.vdot(psi, dense @ psi)) / norm)

