from __future__ import annotations

import argparse
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from vmcsampler.config.presets import ising_chain_small_config, ising_square_config
from vmcsampler.physics.hilbert import Spin
from vmcsampler.physics.lattice import Chain
from vmcsampler.physics.operators import Ising, to_dense
from vmcsampler.utils.io import save_json
from vmcsampler.utils.logging import configure_logging
from vmcsampler.vmc.training import run_vmc

EXACT_DIAGONALIZATION_MAX_SITES = 12


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ising VMC convergence with batched sampling")
    parser.add_argument("--mode", choices=("chain", "square"), default="chain")
    parser.add_argument("--output-dir", type=Path, default=Path("results/ising_vmc"))
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--sampler", default=None, help="override the configured sampler kind")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args()


def exact_ground_energy(L: int, h: float, J: float) -> float:
    lattice = Chain(L)
    hamiltonian = Ising(Spin(lattice.n_sites), lattice.bonds, h=h, J=J)
    return float(np.linalg.eigvalsh(to_dense(hamiltonian))[0])


def main() -> None:
    args = parse_args()
    configure_logging(args.log_level)

    if args.mode == "chain":
        config = ising_chain_small_config(seed=7 if args.seed is None else args.seed)
    else:
        config = ising_square_config(seed=11 if args.seed is None else args.seed)
    if args.sampler is not None:
        config = config.model_copy(
            update={"sampler": config.sampler.model_copy(update={"kind": args.sampler})}
        )

    result = run_vmc(config)

    output_dir: Path = args.output_dir
    output_dir.mkdir(parents=True, exist_ok=True)

    exact = None
    if config.lattice.kind == "chain" and config.lattice.L <= EXACT_DIAGONALIZATION_MAX_SITES:
        exact = exact_ground_energy(config.lattice.L, h=config.ising.h, J=config.ising.J)

    energies = [m.energy_mean for m in result.history]
    errors = [m.energy_stderr for m in result.history]
    iterations = [m.iteration for m in result.history]

    fig, (ax_e, ax_a) = plt.subplots(2, 1, figsize=(6.0, 6.0), sharex=True)
    ax_e.errorbar(iterations, energies, yerr=errors, fmt="o-", ms=3, lw=1.0, capsize=2)
    if exact is not None:
        ax_e.axhline(exact, color="k", ls="--", lw=1.0, label="exact")
        ax_e.legend()
    ax_e.set_ylabel("Local energy")
    ax_e.set_title(f"Ising VMC ({args.mode}, {config.sampler.kind})")
    ax_e.grid(alpha=0.3)

    ax_a.plot(iterations, [m.acceptance for m in result.history], "s-", ms=3, lw=1.0)
    ax_a.set_xlabel("Iteration")
    ax_a.set_ylabel("Acceptance")
    ax_a.set_ylim(0.0, 1.05)
    ax_a.grid(alpha=0.3)
    fig.tight_layout()
    fig.savefig(output_dir / "ising_vmc_convergence.png", dpi=150)
    plt.close(fig)

    payload = {
        "mode": args.mode,
        "config": config.model_dump(),
        "history": [m.__dict__ for m in result.history],
        "final_eval": {
            "mean": result.final_eval.mean,
            "stderr": result.final_eval.stderr,
        },
        "exact_ground_energy": exact,
    }
    save_json(output_dir / "ising_vmc_metrics.json", payload)


if __name__ == "__main__":
    main()
