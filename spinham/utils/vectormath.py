"""Small vector helpers shared by the Hamiltonians and the neighbour search."""

import numpy as np
from typing import Optional, Sequence, Tuple


def normalize_vector(vector: Sequence[float]) -> np.ndarray:
    """Return a unit-length copy of a 3-vector."""
    vector = np.asarray(vector, dtype=np.float64).reshape(3)
    norm = np.linalg.norm(vector)
    if not np.isfinite(norm) or norm < 1e-12:
        raise ValueError(f"Direction vector must be finite and non-zero, got {vector}")
    return vector / norm


def normalize_vectors(vectors) -> np.ndarray:
    """Normalize an (n, 3) array row by row; zero rows raise ValueError."""
    vectors = np.asarray(vectors, dtype=np.float64).reshape(-1, 3)
    norms = np.linalg.norm(vectors, axis=1)
    if not np.all(np.isfinite(norms)) or np.any(norms < 1e-12):
        raise ValueError("Direction vectors must be finite and non-zero")
    return vectors / norms[:, np.newaxis]


def as_finite_array(values, name: str) -> np.ndarray:
    """Flat float64 copy of ``values``; NaN or infinite entries raise ValueError."""
    values = np.array(values, dtype=np.float64).reshape(-1)
    if not np.all(np.isfinite(values)):
        raise ValueError(f"{name} must be finite, got {values.tolist()}")
    return values


def as_spin_array(spins) -> np.ndarray:
    """
    View a spin configuration as a contiguous (n, 3) float64 array.

    No copy is made when the input already has that layout.
    """
    spins = np.ascontiguousarray(spins, dtype=np.float64)
    if spins.ndim != 2 or spins.shape[1] != 3:
        raise ValueError(f"Spins must have shape (n, 3), got {spins.shape}")
    return spins


def as_boundary_conditions(periodical) -> Tuple[bool, bool, bool]:
    """Validate three periodicity flags."""
    flags = tuple(bool(p) for p in periodical)
    if len(flags) != 3:
        raise ValueError(f"Need 3 boundary condition flags, got {len(flags)}")
    return flags


def spherical_to_cartesian(theta: np.ndarray, phi: np.ndarray) -> np.ndarray:
    """Convert polar/azimuthal angles in degrees to unit vectors."""
    theta = np.radians(theta)
    phi = np.radians(phi)

    x = np.sin(theta) * np.cos(phi)
    y = np.sin(theta) * np.sin(phi)
    z = np.cos(theta)

    return np.column_stack((x, y, z))


def generate_random_unit_vectors(n: int, seed: Optional[int] = None) -> np.ndarray:
    """
    Random unit vectors, uniform on the sphere.

    Isotropic normal samples are normalized row by row.
    """
    rng = np.random.default_rng(seed)
    vectors = rng.standard_normal((n, 3))
    return vectors / np.linalg.norm(vectors, axis=1)[:, np.newaxis]
