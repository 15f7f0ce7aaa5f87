"""
Common interface of all spin Hamiltonians.
"""

import numpy as np
from enum import Enum
from typing import List, Optional, Sequence, Tuple
from abc import ABC, abstractmethod

from ..utils.vectormath import as_boundary_conditions, as_spin_array


class HamiltonianKind(Enum):
    """Closed set of Hamiltonian variants; the value is the public name."""

    HEISENBERG = "Heisenberg"
    GAUSSIAN = "Gaussian"


class Hamiltonian(ABC):
    """
    Abstract base class for Hamiltonians.

    A Hamiltonian maps a spin configuration (an (nos, 3) array of unit
    vectors) to an energy, its negative gradient and its Hessian. The
    evaluation methods only read their arguments and the Hamiltonian's
    parameters; parameters change only through setters, which rebuild any
    cached interaction data before returning.
    """

    kind: HamiltonianKind

    def __init__(self, boundary_conditions: Sequence[bool] = (True, True, True)):
        """
        Initialize the Hamiltonian.

        Args:
            boundary_conditions: Periodicity flag per lattice axis
        """
        self.boundary_conditions = as_boundary_conditions(boundary_conditions)

    @property
    def name(self) -> str:
        """Stable identity string of the variant."""
        return self.kind.value

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    @property
    @abstractmethod
    def contribution_names(self) -> List[str]:
        """Names of the active energy contributions, in energy_array order."""
        pass

    @abstractmethod
    def energy_array(self, spins: np.ndarray) -> np.ndarray:
        """Energy of every active contribution."""
        pass

    @abstractmethod
    def energy_contributions_per_spin(self, spins: np.ndarray) -> List[Tuple[str, np.ndarray]]:
        """Site-resolved energy of every active contribution."""
        pass

    @abstractmethod
    def _accumulate_field(self, spins: np.ndarray, field: np.ndarray):
        """Add the effective field of all contributions to ``field``."""
        pass

    @abstractmethod
    def _accumulate_hessian(self, spins: np.ndarray, hessian: np.ndarray):
        """Add the Hessian of all contributions to ``hessian``."""
        pass

    def energy(self, spins: np.ndarray) -> float:
        """Total energy, the sum of energy_array in order."""
        return float(sum(self.energy_array(spins)))

    def energy_contributions(self, spins: np.ndarray) -> List[Tuple[str, float]]:
        """Pairs of (contribution name, energy)."""
        return [(name, float(e)) for name, e in zip(self.contribution_names, self.energy_array(spins))]

    def effective_field(self, spins: np.ndarray, field: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Negative energy gradient with respect to every spin.

        The raw Cartesian gradient is returned; projecting onto the tangent
        space of the unit sphere is left to the caller.

        Args:
            spins: (nos, 3) spin configuration
            field: Optional (nos, 3) output array, overwritten

        Returns:
            The effective field
        """
        spins = as_spin_array(spins)
        if field is None:
            field = np.zeros_like(spins)
        elif field.shape != spins.shape:
            raise ValueError(f"Field must have shape {spins.shape}, got {field.shape}")
        else:
            field[:] = 0.0

        self._accumulate_field(spins, field)
        return field

    def hessian(self, spins: np.ndarray, hessian: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Second derivatives of the energy with respect to all spin components.

        Args:
            spins: (nos, 3) spin configuration
            hessian: Optional (3 nos, 3 nos) output array, overwritten

        Returns:
            The symmetric Hessian matrix
        """
        spins = as_spin_array(spins)
        dim = 3 * len(spins)
        if hessian is None:
            hessian = np.zeros((dim, dim))
        elif hessian.shape != (dim, dim):
            raise ValueError(f"Hessian must have shape {(dim, dim)}, got {hessian.shape}")
        else:
            hessian[:] = 0.0

        self._accumulate_hessian(spins, hessian)
        return hessian

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------

    def set_boundary_conditions(self, periodical: Sequence[bool]):
        """Set periodicity per axis and rebuild the interactions."""
        self.boundary_conditions = as_boundary_conditions(periodical)
        self.update_interactions()

    def update_interactions(self):
        """Regenerate derived interaction data after a parameter change."""
        self.update_energy_contributions()

    def update_energy_contributions(self):
        """Rebuild the list of active contributions."""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(boundary_conditions={self.boundary_conditions})"
