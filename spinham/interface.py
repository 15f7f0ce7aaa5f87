"""
Parameter access for the Hamiltonian of a spin system.

Every setter takes the image lock, applies the change, lets the Hamiltonian
rebuild its caches and logs what was set. Operations that only make sense
for the Heisenberg model warn with ``UnsupportedOperationWarning`` on other
variants and leave them untouched.
"""

import logging
import warnings
import numpy as np
from typing import Optional, Sequence, Tuple

from .core.hamiltonian import HamiltonianKind
from .core.spin_system import SpinSystem
from .utils.vectormath import as_boundary_conditions

logger = logging.getLogger(__name__)


class UnsupportedOperationWarning(UserWarning):
    """An operation was requested that the active Hamiltonian does not support."""


def _heisenberg(system: SpinSystem, refusal: str):
    """The Heisenberg Hamiltonian of the system, or None after warning."""
    hamiltonian = system.hamiltonian
    if hamiltonian.kind is HamiltonianKind.HEISENBERG:
        return hamiltonian
    warnings.warn(f"{refusal} {hamiltonian.name}", UnsupportedOperationWarning, stacklevel=3)
    return None


# =============================================================================
# SETTERS
# =============================================================================

def set_boundary_conditions(system: SpinSystem, periodical: Sequence[bool]):
    """Set periodicity along each lattice axis."""
    periodical = as_boundary_conditions(periodical)
    with system.locked():
        system.hamiltonian.set_boundary_conditions(periodical)
    logger.info("Set boundary conditions to %s %s %s", *periodical)


def set_mu_s(system: SpinSystem, mu_s: float):
    """Set the magnetic moment of every basis atom (mu_B)."""
    with system.locked():
        hamiltonian = _heisenberg(system, "mu_s cannot be set on")
        if hamiltonian is not None:
            hamiltonian.set_mu_s(mu_s)
            logger.info("Set mu_s to %s", mu_s)


def set_field(system: SpinSystem, magnitude: float, normal: Sequence[float]):
    """Set the external field (Tesla) and its direction."""
    with system.locked():
        hamiltonian = _heisenberg(system, "External field cannot be set on")
        if hamiltonian is not None:
            hamiltonian.set_field(magnitude, normal)
            logger.info("Set external field to %s, direction (%s, %s, %s)", magnitude, *normal)


def set_anisotropy(system: SpinSystem, magnitude: float, normal: Sequence[float]):
    """Set the same uniaxial anisotropy (eV) on every basis atom."""
    with system.locked():
        hamiltonian = _heisenberg(system, "Anisotropy cannot be set on")
        if hamiltonian is not None:
            hamiltonian.set_anisotropy(magnitude, normal)
            logger.info("Set anisotropy to %s, direction (%s, %s, %s)", magnitude, *normal)


def set_exchange(system: SpinSystem, shell_magnitudes: Sequence[float]):
    """Set exchange per neighbor shell (eV), replacing any explicit pairs."""
    with system.locked():
        hamiltonian = _heisenberg(system, "Exchange cannot be set on")
        if hamiltonian is not None:
            hamiltonian.set_exchange_shells(shell_magnitudes)
            message = f"Set exchange to {len(shell_magnitudes)} shells"
            if len(shell_magnitudes) > 0:
                message += f" Jij[0] = {shell_magnitudes[0]}"
            logger.info(message)


def set_dmi(system: SpinSystem, shell_magnitudes: Sequence[float], chirality: int = 1):
    """Set DMI per neighbor shell (eV), replacing any explicit pairs."""
    with system.locked():
        hamiltonian = _heisenberg(system, "DMI cannot be set on")
        if hamiltonian is not None:
            hamiltonian.set_dmi_shells(shell_magnitudes, chirality)
            message = f"Set dmi to {len(shell_magnitudes)} shells"
            if len(shell_magnitudes) > 0:
                message += f" Dij[0] = {shell_magnitudes[0]}"
            logger.info(message)


def set_ddi(system: SpinSystem, radius: float):
    """Set the dipolar cutoff radius (Angstrom) and regenerate the dipolar pairs."""
    with system.locked():
        hamiltonian = _heisenberg(system, "DDI cannot be set on")
        if hamiltonian is not None:
            hamiltonian.set_ddi(radius)
            logger.info("Set ddi radius to %s", radius)


# =============================================================================
# GETTERS
# =============================================================================

def get_name(system: SpinSystem) -> str:
    return system.hamiltonian.name


def get_kind(system: SpinSystem) -> HamiltonianKind:
    return system.hamiltonian.kind


def get_boundary_conditions(system: SpinSystem) -> Tuple[bool, bool, bool]:
    with system.locked():
        return system.hamiltonian.boundary_conditions


def get_mu_s(system: SpinSystem) -> Optional[np.ndarray]:
    """Moment of each basis atom."""
    with system.locked():
        hamiltonian = _heisenberg(system, "mu_s cannot be read from")
        return None if hamiltonian is None else hamiltonian.get_mu_s()


def get_field(system: SpinSystem) -> Optional[Tuple[float, np.ndarray]]:
    """External field in Tesla and its direction."""
    with system.locked():
        hamiltonian = _heisenberg(system, "External field cannot be read from")
        return None if hamiltonian is None else hamiltonian.get_field()


def get_anisotropy(system: SpinSystem) -> Optional[Tuple[float, np.ndarray]]:
    """Anisotropy of the first listed basis atom."""
    with system.locked():
        hamiltonian = _heisenberg(system, "Anisotropy cannot be read from")
        return None if hamiltonian is None else hamiltonian.get_anisotropy()


def get_exchange_shells(system: SpinSystem) -> Optional[np.ndarray]:
    with system.locked():
        hamiltonian = _heisenberg(system, "Exchange shells cannot be read from")
        return None if hamiltonian is None else hamiltonian.get_exchange_shells()


def get_exchange_n_pairs(system: SpinSystem) -> int:
    warnings.warn(f"{system.hamiltonian.name} Hamiltonian: fetching exchange pairs is not yet implemented...",
                  UnsupportedOperationWarning, stacklevel=2)
    return 0


def get_exchange_pairs(system: SpinSystem) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Indices, translations and magnitudes of explicit exchange pairs (always empty)."""
    warnings.warn(f"{system.hamiltonian.name} Hamiltonian: fetching exchange pairs is not yet implemented...",
                  UnsupportedOperationWarning, stacklevel=2)
    return np.zeros((0, 2), dtype=np.int64), np.zeros((0, 3), dtype=np.int64), np.zeros(0)


def get_dmi_shells(system: SpinSystem) -> Optional[Tuple[np.ndarray, int]]:
    """DMI shell magnitudes and chirality."""
    with system.locked():
        hamiltonian = _heisenberg(system, "DMI shells cannot be read from")
        return None if hamiltonian is None else hamiltonian.get_dmi_shells()


def get_dmi_n_pairs(system: SpinSystem) -> int:
    warnings.warn(f"{system.hamiltonian.name} Hamiltonian: fetching DMI pairs is not yet implemented...",
                  UnsupportedOperationWarning, stacklevel=2)
    return 0


def get_ddi(system: SpinSystem) -> Optional[float]:
    """Dipolar cutoff radius."""
    with system.locked():
        hamiltonian = _heisenberg(system, "DDI radius cannot be read from")
        return None if hamiltonian is None else hamiltonian.get_ddi_radius()
