"""
SpinHam: energy, effective field and Hessian of classical spin lattices.

Interchangeable Hamiltonians (a multi-term Heisenberg model and a Gaussian
test landscape) evaluated on ASE-built geometries, with Numba kernels for
the pair and site sums.
"""

__version__ = "0.1.0"

from . import core
from . import utils
from . import interface

from .core import (
    Geometry, SpinSystem, Hamiltonian, HamiltonianKind,
    HeisenbergHamiltonian, GaussianHamiltonian,
    ExchangeShells, ExchangePairs, DMIShells, DMIPairs,
    NeighborFinder, PairList,
)
from .core.fast_ops import check_numba_availability
from .interface import UnsupportedOperationWarning

__all__ = [
    "Geometry",
    "SpinSystem",
    "Hamiltonian",
    "HamiltonianKind",
    "HeisenbergHamiltonian",
    "GaussianHamiltonian",
    "ExchangeShells",
    "ExchangePairs",
    "DMIShells",
    "DMIPairs",
    "NeighborFinder",
    "PairList",
    "UnsupportedOperationWarning",
    "check_numba_availability",
    "core",
    "utils",
    "interface",
]
