from __future__ import annotations

import argparse
import time
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from vmcsampler.nqs.rbm import RbmSpin
from vmcsampler.physics.hilbert import Spin
from vmcsampler.sampling.driver import compute_samples, compute_samples_v2
from vmcsampler.sampling.metropolis import MetropolisLocal, MetropolisLocalV2
from vmcsampler.sampling.schedules import StepsRange
from vmcsampler.utils.io import save_json, save_samples
from vmcsampler.utils.logging import configure_logging


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Samples per second of MetropolisLocal vs batched MetropolisLocalV2"
    )
    parser.add_argument("--output-dir", type=Path, default=Path("results/throughput"))
    parser.add_argument("--n-sites", type=int, default=32)
    parser.add_argument("--n-samples", type=int, default=1_024)
    parser.add_argument("--batch-sizes", type=int, nargs="+", default=[1, 8, 32, 128])
    parser.add_argument("--seed", type=int, default=0)
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    configure_logging()
    output_dir: Path = args.output_dir
    output_dir.mkdir(parents=True, exist_ok=True)

    hilbert = Spin(args.n_sites)
    machine = RbmSpin(hilbert, alpha=1.0)
    machine.init_random_parameters(np.random.default_rng(args.seed), init_std=0.05)

    rows: list[dict[str, float | int | str]] = []

    single = MetropolisLocal(machine, seed=args.seed)
    t0 = time.perf_counter()
    compute_samples(single, StepsRange.for_samples(args.n_samples, 0, args.n_sites, sweep_size=1))
    dt = time.perf_counter() - t0
    rows.append({"sampler": "MetropolisLocal", "batch_size": 1, "samples_per_second": args.n_samples / dt})

    for batch_size in args.batch_sizes:
        sampler = MetropolisLocalV2(machine, batch_size=batch_size, seed=args.seed)
        steps = StepsRange.for_samples(args.n_samples, 0, args.n_sites, batch_size=batch_size)
        t1 = time.perf_counter()
        samples, values = compute_samples_v2(sampler, steps, compute_logderivs=False)
        dt = time.perf_counter() - t1
        n_drawn = samples.shape[0] * samples.shape[1]
        rows.append(
            {
                "sampler": "MetropolisLocalV2",
                "batch_size": batch_size,
                "samples_per_second": n_drawn / dt,
                "acceptance": sampler.acceptance,
            }
        )

    save_json(output_dir / "throughput_metrics.json", {"rows": rows})
    save_samples(output_dir / "samples_last_batch.npz", samples, values)

    batched = [r for r in rows if r["sampler"] == "MetropolisLocalV2"]
    fig, ax = plt.subplots(figsize=(6.0, 4.0))
    ax.plot(
        [int(r["batch_size"]) for r in batched],
        [float(r["samples_per_second"]) for r in batched],
        marker="o",
        label="MetropolisLocalV2",
    )
    ax.axhline(float(rows[0]["samples_per_second"]), color="k", ls="--", label="MetropolisLocal")
    ax.set_xscale("log", base=2)
    ax.set_xlabel("Batch size")
    ax.set_ylabel("Samples per second")
    ax.set_title(f"Sampling throughput, N={args.n_sites}")
    ax.grid(alpha=0.3)
    ax.legend()
    fig.tight_layout()
    fig.savefig(output_dir / "throughput_plot.png", dpi=150)
    plt.close(fig)


if __name__ == "__main__":
    main()
