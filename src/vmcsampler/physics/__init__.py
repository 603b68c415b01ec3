from vmcsampler.physics.hilbert import Boson, LocalHilbert, Spin
from vmcsampler.physics.lattice import Chain, Lattice, SquareLattice, periodic_euclidean_distance
from vmcsampler.physics.operators import Heisenberg, Ising, LocalOperator, to_dense

__all__ = [
    "Boson",
    "Chain",
    "Heisenberg",
    "Ising",
    "Lattice",
    "LocalHilbert",
    "LocalOperator",
    "Spin",
    "SquareLattice",
    "periodic_euclidean_distance",
    "to_dense",
]
