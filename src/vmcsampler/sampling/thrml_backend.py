from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeAlias, cast

import jax
import numpy as np
from jax import Array
from jax import numpy as jnp
from thrml import Block, SamplingSchedule, SpinNode, sample_states
from thrml.models import IsingEBM, IsingSamplingProgram, hinton_init
from thrml.pgm import AbstractNode

from vmcsampler.errors import PreconditionViolationError
from vmcsampler.nqs.rbm import RbmParams, RbmSpin
from vmcsampler.sampling.backend import AbstractSampler, squared_modulus
from vmcsampler.types import ConfigArray, ConfigBatch

FreeSuperBlocks: TypeAlias = list[tuple[Block[AbstractNode], ...] | Block[AbstractNode]]
SweepFn: TypeAlias = Callable[[Array, Array, Array], tuple[Array, Array]]


@dataclass(frozen=True)
class _RbmProgram:
    ebm: IsingEBM
    program: IsingSamplingProgram
    visible_block: Block[AbstractNode]
    hidden_block: Block[AbstractNode]
    free_blocks: list[Block[AbstractNode]]


def _new_spin_node() -> AbstractNode:
    return cast(AbstractNode, SpinNode())  # type: ignore[no-untyped-call]


def _spins_to_bool(spins: ConfigBatch | ConfigArray) -> np.ndarray:
    """Convert {-1, +1} spins to THRML bool state representation."""

    return (np.asarray(spins) > 0).astype(np.bool_)


def _bool_to_spins(state: np.ndarray) -> ConfigBatch:
    """Convert THRML bool states back to {-1, +1} spins."""

    return (state.astype(np.int8) * np.int8(2) - np.int8(1)).astype(np.int8)


def _empty_batch_shape() -> tuple[int]:
    return cast(tuple[int], ())


def build_rbm_program(params: RbmParams, beta: float = 1.0) -> _RbmProgram:
    """Ising model over visible and hidden spins whose visible marginal is ``p~(v)``."""

    n_visible = params.a.shape[0]
    n_hidden = params.b.shape[0]

    visible_nodes = [_new_spin_node() for _ in range(n_visible)]
    hidden_nodes = [_new_spin_node() for _ in range(n_hidden)]

    edges: list[tuple[AbstractNode, AbstractNode]] = []
    weights: list[float] = []
    for i, j in zip(*np.nonzero(params.mask)):
        edges.append((visible_nodes[int(i)], hidden_nodes[int(j)]))
        weights.append(float(params.w[i, j]))

    biases = np.concatenate((params.a, params.b)).astype(np.float64)
    ebm = IsingEBM(
        nodes=[*visible_nodes, *hidden_nodes],
        edges=edges,
        biases=jnp.asarray(biases),
        weights=jnp.asarray(np.asarray(weights, dtype=np.float64)),
        beta=jnp.asarray(float(beta)),
    )

    visible_block = Block(visible_nodes)
    hidden_block = Block(hidden_nodes)
    free_super_blocks: FreeSuperBlocks = [visible_block, hidden_block]
    program = IsingSamplingProgram(ebm=ebm, free_blocks=free_super_blocks, clamped_blocks=[])

    return _RbmProgram(
        ebm=ebm,
        program=program,
        visible_block=visible_block,
        hidden_block=hidden_block,
        free_blocks=[visible_block, hidden_block],
    )


def build_sweep_fn(compiled: _RbmProgram, steps_per_sweep: int) -> SweepFn:
    """Jitted ``(key, visible, hidden) -> (visible, hidden)`` block-Gibbs sweep.

    States are THRML bool arrays. The program and schedule are closed over,
    so the scan is traced once per compiled program.
    """

    schedule = SamplingSchedule(n_warmup=steps_per_sweep, n_samples=1, steps_per_sample=1)

    @jax.jit
    def sweep_fn(key: Array, visible: Array, hidden: Array) -> tuple[Array, Array]:
        sampled = sample_states(
            key,
            compiled.program,
            schedule,
            init_state_free=[visible, hidden],
            state_clamp=[],
            nodes_to_sample=[compiled.visible_block, compiled.hidden_block],
        )
        return sampled[0][-1], sampled[1][-1]

    return cast(SweepFn, sweep_fn)


class ThrmlGibbsSampler(AbstractSampler):
    """Block-Gibbs sampler for ``RbmSpin`` machines backed by THRML.

    The chain lives on the joint ``(v, h)`` Ising model; alternating block
    updates leave ``|Psi(v)|^2`` invariant without any rejection step. The
    Ising program and its jitted sweep are built from the machine parameters
    at ``reset``, so the sampler must be reset after the parameters change.
    Only the first sweep after a reset pays the tracing cost.
    """

    def __init__(self, machine: RbmSpin, steps_per_sweep: int = 1, seed: int = 0) -> None:
        if not isinstance(machine, RbmSpin):
            raise TypeError("ThrmlGibbsSampler requires an RbmSpin machine")
        if machine.hilbert.local_states.tolist() != [-1, 1]:
            raise ValueError("ThrmlGibbsSampler requires spin-1/2 sites with local states {-1, +1}")
        if steps_per_sweep < 1:
            raise ValueError("steps_per_sweep must be >= 1")
        super().__init__(machine, seed=seed)
        self.steps_per_sweep = int(steps_per_sweep)
        self._sweep_fn: SweepFn | None = None
        self._hidden: ConfigArray | None = None

    def reset(self, init_random: bool = False) -> None:
        self._sweep_fn = None
        super().reset(init_random=init_random)
        self._compile()

    def _compile(self) -> SweepFn:
        machine = cast(RbmSpin, self._machine)
        compiled = build_rbm_program(machine.params)
        init_state = hinton_init(
            self._rng.split_jax(),
            compiled.ebm,
            compiled.free_blocks,
            batch_shape=_empty_batch_shape(),
        )
        self._hidden = _bool_to_spins(np.asarray(init_state[1], dtype=np.bool_))
        self._sweep_fn = build_sweep_fn(compiled, self.steps_per_sweep)
        return self._sweep_fn

    def _sweep(self) -> None:
        if self._machine_func is not squared_modulus:
            raise PreconditionViolationError(
                "ThrmlGibbsSampler only samples |Psi|^2; reset machine_func to squared_modulus"
            )
        sweep_fn = self._sweep_fn if self._sweep_fn is not None else self._compile()
        visible, hidden = sweep_fn(
            self._rng.split_jax(),
            jnp.asarray(_spins_to_bool(cast(ConfigArray, self._visible))),
            jnp.asarray(_spins_to_bool(cast(ConfigArray, self._hidden))),
        )
        self._visible = _bool_to_spins(np.asarray(visible, dtype=np.bool_).reshape(-1))
        self._hidden = _bool_to_spins(np.asarray(hidden, dtype=np.bool_).reshape(-1))

    @property
    def acceptance(self) -> float:
        return 1.0
