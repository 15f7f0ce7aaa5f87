"""Utility functions and helpers."""

from .vectormath import generate_random_unit_vectors
from .constants import PHYSICAL_CONSTANTS, DIPOLE_DIPOLE_PREFACTOR, magnetic_field_to_energy

__all__ = [
    "generate_random_unit_vectors",
    "PHYSICAL_CONSTANTS",
    "DIPOLE_DIPOLE_PREFACTOR",
    "magnetic_field_to_energy",
]
