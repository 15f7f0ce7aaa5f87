"""
SpinSystem: one image of a spin configuration together with its Hamiltonian.
"""

import threading
import numpy as np
from contextlib import contextmanager
from typing import List, Optional, Tuple

from .geometry import Geometry
from .hamiltonian import Hamiltonian
from .fast_ops import calculate_magnetization
from ..utils.vectormath import as_spin_array, generate_random_unit_vectors, spherical_to_cartesian


class SpinSystem:
    """
    A spin configuration on a geometry, evaluated by one Hamiltonian.

    The Hamiltonian belongs to this image alone. All parameter changes and
    evaluations go through ``locked()``, which serializes them: a setter
    never runs while an energy, field or Hessian is being computed.
    """

    def __init__(self, geometry: Geometry, hamiltonian: Hamiltonian):
        """
        Initialize a spin system.

        Args:
            geometry: Lattice the spins live on
            hamiltonian: Hamiltonian evaluating this image
        """
        self.geometry = geometry
        self.hamiltonian = hamiltonian
        self.nos = geometry.nos

        self._lock = threading.RLock()
        self._spin_config = np.tile([0.0, 0.0, 1.0], (self.nos, 1))

    @contextmanager
    def locked(self):
        """Hold the image lock for the duration of the block."""
        self._lock.acquire()
        try:
            yield self
        finally:
            self._lock.release()

    @property
    def spin_config(self) -> np.ndarray:
        """Current spin configuration."""
        return self._spin_config

    @spin_config.setter
    def spin_config(self, config: np.ndarray):
        """Set spin configuration with validation."""
        config = as_spin_array(config)
        if config.shape[0] != self.nos:
            raise ValueError(f"Spin config must have {self.nos} spins, "
                             f"got {config.shape[0]}")
        norms = np.linalg.norm(config, axis=1)
        if np.any(norms < 1e-12):
            raise ValueError("Spins must be non-zero vectors")

        with self.locked():
            self._spin_config = config / norms[:, np.newaxis]

    def random_configuration(self, seed: Optional[int] = None) -> np.ndarray:
        """
        Generate a random spin configuration.

        Args:
            seed: Random seed for reproducibility

        Returns:
            Random unit spins
        """
        self.spin_config = generate_random_unit_vectors(self.nos, seed)
        return self._spin_config

    def ferromagnetic_configuration(self, theta: float = 0.0, phi: float = 0.0) -> np.ndarray:
        """
        Generate a ferromagnetic configuration.

        Args:
            theta: Polar angle in degrees
            phi: Azimuthal angle in degrees

        Returns:
            Ferromagnetic spin configuration
        """
        direction = spherical_to_cartesian(theta, phi)
        self.spin_config = np.tile(direction, (self.nos, 1))
        return self._spin_config

    def calculate_magnetization(self) -> np.ndarray:
        """Average spin vector."""
        return calculate_magnetization(self._spin_config)

    def calculate_energy(self) -> float:
        """Total energy of the current configuration."""
        with self.locked():
            return self.hamiltonian.energy(self._spin_config)

    def calculate_energy_contributions(self) -> List[Tuple[str, float]]:
        """Energy of each active contribution."""
        with self.locked():
            return self.hamiltonian.energy_contributions(self._spin_config)

    def calculate_effective_field(self) -> np.ndarray:
        with self.locked():
            return self.hamiltonian.effective_field(self._spin_config)

    def calculate_hessian(self) -> np.ndarray:
        with self.locked():
            return self.hamiltonian.hessian(self._spin_config)

    def __repr__(self) -> str:
        return (f"SpinSystem(nos={self.nos}, "
                f"hamiltonian={self.hamiltonian.name})")
