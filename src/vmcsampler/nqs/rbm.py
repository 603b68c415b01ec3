from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from vmcsampler.errors import DimensionMismatchError
from vmcsampler.nqs.parameterization import ParameterLayout
from vmcsampler.physics.hilbert import LocalHilbert
from vmcsampler.physics.lattice import Lattice, periodic_euclidean_distance
from vmcsampler.types import ConfigBatch, FloatArray


@dataclass(frozen=True)
class RbmParams:
    """RBM parameters for ``E(v,h) = -a·v - b·h - v^T W h``.

    ``mask`` fixes the sparsity pattern of ``w``; masked entries stay zero.
    """

    a: FloatArray
    b: FloatArray
    w: FloatArray
    mask: FloatArray

    def named_arrays(self) -> dict[str, FloatArray]:
        return {"a": self.a, "b": self.b, "w": self.w}


def build_local_mask(lattice: Lattice, n_hidden: int, radius: int) -> FloatArray:
    """Periodic local visible-hidden connectivity.

    Hidden unit ``j`` is anchored on site ``j % n_sites`` and couples to the
    visible sites within ``radius`` of its anchor.
    """

    if radius < 1:
        raise ValueError("radius must be >= 1")

    n_visible = lattice.n_sites
    mask = np.zeros((n_visible, n_hidden), dtype=np.float64)
    for i in range(n_visible):
        for j in range(n_hidden):
            if periodic_euclidean_distance(lattice, i, j % n_visible) <= float(radius):
                mask[i, j] = 1.0
    return mask


def init_rbm_params(
    rng: np.random.Generator,
    n_visible: int,
    n_hidden: int,
    init_std: float,
    mask: FloatArray | None = None,
) -> RbmParams:
    """Gaussian initialization of all parameters."""

    if mask is None:
        mask = np.ones((n_visible, n_hidden), dtype=np.float64)
    if mask.shape != (n_visible, n_hidden):
        raise DimensionMismatchError(
            f"mask shape {mask.shape} incompatible with {(n_visible, n_hidden)}"
        )

    a = rng.normal(loc=0.0, scale=init_std, size=n_visible).astype(np.float64)
    b = rng.normal(loc=0.0, scale=init_std, size=n_hidden).astype(np.float64)
    w = rng.normal(loc=0.0, scale=init_std, size=(n_visible, n_hidden)).astype(np.float64)
    w *= mask
    return RbmParams(a=a, b=b, w=w, mask=mask.astype(np.float64))


def log_2cosh(x: np.ndarray) -> np.ndarray:
    """Overflow-free ``log(2 cosh x)``."""

    ax = np.abs(x)
    return ax + np.log1p(np.exp(-2.0 * ax))


def hidden_fields(configs: ConfigBatch, params: RbmParams) -> FloatArray:
    """Hidden pre-activations ``theta_j(v) = b_j + sum_i W_ij v_i`` for any batch shape."""

    return params.b + np.asarray(configs, dtype=np.float64) @ params.w


class RbmSpin:
    """Restricted Boltzmann machine amplitude ``log Psi(v) = ½ log p~(v)``.

    ``p~(v) = exp(a·v) prod_j 2 cosh(theta_j(v))`` is the visible marginal of
    the RBM energy, so ``|Psi|^2`` is exactly the distribution a Gibbs sampler
    on the joint ``(v, h)`` model produces.
    """

    def __init__(
        self,
        hilbert: LocalHilbert,
        n_hidden: int | None = None,
        alpha: float = 1.0,
        mask: FloatArray | None = None,
        params: RbmParams | None = None,
    ) -> None:
        n_visible = hilbert.size
        if params is None:
            if n_hidden is None:
                if alpha <= 0.0:
                    raise ValueError("alpha must be > 0")
                n_hidden = max(1, int(round(alpha * n_visible)))
            if mask is None:
                mask = np.ones((n_visible, n_hidden), dtype=np.float64)
            params = RbmParams(
                a=np.zeros(n_visible, dtype=np.float64),
                b=np.zeros(n_hidden, dtype=np.float64),
                w=np.zeros((n_visible, n_hidden), dtype=np.float64),
                mask=np.asarray(mask, dtype=np.float64),
            )
        if params.w.shape != (n_visible, params.b.shape[0]) or params.a.shape != (n_visible,):
            raise DimensionMismatchError(
                f"RBM parameters do not match {n_visible} visible units: "
                f"a{params.a.shape}, b{params.b.shape}, w{params.w.shape}"
            )
        if params.mask.shape != params.w.shape:
            raise DimensionMismatchError("mask shape must equal weight shape")

        self._hilbert = hilbert
        self._params = params
        self._layout = ParameterLayout.from_arrays(params.named_arrays())

    @property
    def hilbert(self) -> LocalHilbert:
        return self._hilbert

    @property
    def params(self) -> RbmParams:
        return self._params

    @params.setter
    def params(self, value: RbmParams) -> None:
        if ParameterLayout.from_arrays(value.named_arrays()) != self._layout:
            raise DimensionMismatchError("new parameters must keep the existing shapes")
        self._params = value

    @property
    def n_visible(self) -> int:
        return int(self._params.a.shape[0])

    @property
    def n_hidden(self) -> int:
        return int(self._params.b.shape[0])

    @property
    def n_params(self) -> int:
        return self._layout.size

    @property
    def layout(self) -> ParameterLayout:
        return self._layout

    @property
    def parameters(self) -> FloatArray:
        return self._layout.flatten(self._params.named_arrays())

    @parameters.setter
    def parameters(self, value: FloatArray) -> None:
        unpacked = self._layout.unflatten(np.asarray(value, dtype=np.float64))
        mask = self._params.mask
        self._params = RbmParams(a=unpacked["a"], b=unpacked["b"], w=unpacked["w"] * mask, mask=mask)

    def init_random_parameters(self, rng: np.random.Generator, init_std: float = 0.01) -> None:
        self._params = init_rbm_params(
            rng=rng,
            n_visible=self.n_visible,
            n_hidden=self.n_hidden,
            init_std=init_std,
            mask=self._params.mask,
        )

    def _check_configs(self, configs: ConfigBatch) -> np.ndarray:
        arr = np.asarray(configs)
        if arr.ndim == 0 or arr.shape[-1] != self.n_visible:
            raise DimensionMismatchError(
                f"configurations must have {self.n_visible} sites on the last axis, "
                f"received shape {arr.shape}"
            )
        return arr

    def log_val(self, configs: ConfigBatch) -> FloatArray:
        arr = self._check_configs(configs)
        theta = hidden_fields(arr, self._params)
        linear = arr.astype(np.float64) @ self._params.a
        return np.asarray(0.5 * (linear + np.sum(log_2cosh(theta), axis=-1)), dtype=np.float64)

    def der_log(self, configs: ConfigBatch) -> FloatArray:
        arr = self._check_configs(configs)
        v = arr.astype(np.float64)
        tanh_theta = np.tanh(hidden_fields(arr, self._params))

        o_a = 0.5 * v
        o_b = 0.5 * tanh_theta
        o_w = 0.5 * v[..., :, None] * tanh_theta[..., None, :] * self._params.mask
        return self._layout.flatten({"a": o_a, "b": o_b, "w": o_w}, batch_ndim=arr.ndim - 1)
