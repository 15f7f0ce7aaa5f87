"""Physical constants and unit conversions."""

import numpy as np

# Physical constants
PHYSICAL_CONSTANTS = {
    # Boltzmann constant
    'kB': 8.617333e-5,  # eV/K

    # Bohr magneton
    'mu_B': 5.78838e-5,  # eV/T
    'mu_B_SI': 9.274010e-24,  # J/T

    # Elementary charge
    'e': 1.602176e-19,  # C

    # Vacuum permeability
    'mu_0': 4*np.pi*1e-7,  # H/m
}

# Unit conversion factors
UNIT_CONVERSIONS = {
    'eV_to_J': 1.602176e-19,
    'meV_to_eV': 1e-3,
    'Angstrom_to_m': 1e-10,
}

# Dipole-dipole energy of two 1 mu_B moments 1 Angstrom apart, in eV:
# mu_0 * mu_B^2 / (4 pi r^3)
DIPOLE_DIPOLE_PREFACTOR = (
    PHYSICAL_CONSTANTS['mu_0'] * PHYSICAL_CONSTANTS['mu_B_SI']**2
    / (4*np.pi * UNIT_CONVERSIONS['Angstrom_to_m']**3)
    / UNIT_CONVERSIONS['eV_to_J']
)


def magnetic_field_to_energy(B_field: float) -> float:
    """
    Convert a magnetic field to the Zeeman energy of a 1 mu_B moment.

    Args:
        B_field: Magnetic field in Tesla

    Returns:
        Energy in eV
    """
    return B_field * PHYSICAL_CONSTANTS['mu_B']


def energy_to_magnetic_field(energy: float) -> float:
    """
    Inverse of magnetic_field_to_energy.

    Args:
        energy: Zeeman energy per mu_B in eV

    Returns:
        Magnetic field in Tesla
    """
    return energy / PHYSICAL_CONSTANTS['mu_B']
