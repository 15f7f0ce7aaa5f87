"""Core Hamiltonian functionality."""

from .geometry import Geometry
from .neighbors import NeighborFinder, PairList
from .hamiltonian import Hamiltonian, HamiltonianKind
from .heisenberg import HeisenbergHamiltonian, ExchangeShells, ExchangePairs, DMIShells, DMIPairs
from .gaussian import GaussianHamiltonian
from .spin_system import SpinSystem

__all__ = [
    "Geometry", "NeighborFinder", "PairList", "Hamiltonian", "HamiltonianKind",
    "HeisenbergHamiltonian", "ExchangeShells", "ExchangePairs", "DMIShells", "DMIPairs",
    "GaussianHamiltonian", "SpinSystem",
]
