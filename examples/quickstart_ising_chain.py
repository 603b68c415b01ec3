from __future__ import annotations

from vmcsampler.config.presets import ising_chain_small_config
from vmcsampler.utils.logging import configure_logging
from vmcsampler.vmc.training import run_vmc

if __name__ == "__main__":
    configure_logging()
    config = ising_chain_small_config(seed=0)
    result = run_vmc(config)

    print("Ising chain VMC run complete")
    print(f"Iterations: {len(result.history)}")
    print(f"Final acceptance: {result.history[-1].acceptance:.3f}")
    print(f"Final energy: {result.final_eval.mean:.6f} ± {result.final_eval.stderr:.6f}")
