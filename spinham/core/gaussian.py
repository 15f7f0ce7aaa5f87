"""
Gaussian test-landscape Hamiltonian.
"""

import numpy as np
from typing import List, Sequence, Tuple

from .hamiltonian import Hamiltonian, HamiltonianKind
from .fast_ops import gaussian_energy, gaussian_field, gaussian_hessian, gaussian_site_energy
from ..utils.vectormath import as_finite_array, as_spin_array, normalize_vectors


class GaussianHamiltonian(Hamiltonian):
    """
    Sum of Gaussians on the unit sphere, meant for testing and demonstrations.

    Spins do not interact; every spin sees the same landscape

        E = sum_k sum_i a_k exp(-l_ki^2 / (2 sigma_k^2)),   l_ki = 1 - c_k . S_i

    where a_k is the amplitude, sigma_k the width and c_k the center of
    Gaussian k.
    """

    kind = HamiltonianKind.GAUSSIAN

    def __init__(
        self,
        amplitude: Sequence[float],
        width: Sequence[float],
        center: Sequence[Sequence[float]],
        boundary_conditions: Sequence[bool] = (True, True, True)
    ):
        """
        Initialize the Gaussian Hamiltonian.

        Args:
            amplitude: Amplitude a_k of each Gaussian
            width: Width sigma_k of each Gaussian, non-zero
            center: Center direction c_k of each Gaussian, normalized on input
            boundary_conditions: Periodicity flags (unused by the energy)
        """
        super().__init__(boundary_conditions)
        self.set_gaussians(amplitude, width, center)

    def set_gaussians(self, amplitude, width, center):
        """Replace all Gaussians at once."""
        amplitude = as_finite_array(amplitude, "Gaussian amplitudes")
        width = as_finite_array(width, "Gaussian widths")
        center = np.asarray(center, dtype=np.float64).reshape(-1, 3)

        if not len(amplitude) == len(width) == len(center):
            raise ValueError(f"Got {len(amplitude)} amplitudes, {len(width)} widths "
                             f"and {len(center)} centers")
        if np.any(width == 0):
            raise ValueError("Gaussian widths must be non-zero")

        self.amplitude = amplitude
        self.width = width
        self.center = normalize_vectors(center) if len(center) else np.zeros((0, 3))
        self.update_energy_contributions()

    @property
    def n_gaussians(self) -> int:
        return len(self.amplitude)

    @property
    def contribution_names(self) -> List[str]:
        return [f"Gaussian {k}" for k in range(self.n_gaussians)]

    def energy_array(self, spins: np.ndarray) -> np.ndarray:
        """Energy of each Gaussian summed over all spins."""
        spins = as_spin_array(spins)
        energies = np.zeros(self.n_gaussians)
        gaussian_energy(spins, self.amplitude, self.width, self.center, energies)
        return energies

    def energy_contributions_per_spin(self, spins: np.ndarray) -> List[Tuple[str, np.ndarray]]:
        spins = as_spin_array(spins)
        contributions = []
        for k, name in enumerate(self.contribution_names):
            energies = np.zeros(len(spins))
            gaussian_site_energy(spins, self.amplitude[k:k + 1], self.width[k:k + 1],
                                 self.center[k:k + 1], energies)
            contributions.append((name, energies))
        return contributions

    def _accumulate_field(self, spins: np.ndarray, field: np.ndarray):
        gaussian_field(spins, self.amplitude, self.width, self.center, field)

    def _accumulate_hessian(self, spins: np.ndarray, hessian: np.ndarray):
        gaussian_hessian(spins, self.amplitude, self.width, self.center, hessian)

    def __repr__(self) -> str:
        return f"GaussianHamiltonian(n_gaussians={self.n_gaussians})"
