from __future__ import annotations

import numpy as np

from vmcsampler.nqs.rbm import RbmSpin
from vmcsampler.physics.hilbert import Spin
from vmcsampler.physics.lattice import Chain
from vmcsampler.physics.operators import Ising
from vmcsampler.sampling.driver import compute_samples_v2
from vmcsampler.sampling.metropolis import MetropolisLocalV2
from vmcsampler.vmc.estimators import expectation, local_values_v2

if __name__ == "__main__":
    chain = Chain(12)
    hilbert = Spin(chain.n_sites)
    machine = RbmSpin(hilbert, alpha=1.0)
    machine.init_random_parameters(np.random.default_rng(0), init_std=0.05)
    hamiltonian = Ising(hilbert, chain.bonds, h=1.0)

    sampler = MetropolisLocalV2(machine, batch_size=32, seed=0)
    n, n_samples, n_discard = hilbert.size, 1_024, 100
    steps = (n_discard, n_discard + n * n_samples // sampler.batch_size, n)

    samples, values, logderivs = compute_samples_v2(sampler, steps, compute_logderivs=True)
    local = local_values_v2(samples, values, machine, hamiltonian, batch_size=128)
    energy = expectation(local, n_bins=8)

    print(f"samples {samples.shape}, values {values.shape}, logderivs {logderivs.shape}")
    print(f"acceptance: {sampler.acceptance:.3f}")
    print(f"energy: {energy.mean:.6f} ± {energy.stderr:.6f}")
