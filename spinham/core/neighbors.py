"""
Neighbor and pair generation for lattice Hamiltonians.
"""

import warnings
import numpy as np
from typing import Optional, Sequence, Tuple
from ase.neighborlist import neighbor_list

from .geometry import Geometry
from ..utils.constants import DIPOLE_DIPOLE_PREFACTOR
from ..utils.vectormath import as_boundary_conditions

# Distances closer than this (Angstrom) belong to the same shell
SHELL_TOLERANCE = 1e-4

CHIRALITIES = {
    1: "Bloch",
    -1: "inverse Bloch",
    2: "Neel",
    -2: "inverse Neel",
}


class PairList:
    """
    Interaction pairs ``(i, j, T)`` between two sites, possibly in different
    periodic images.

    ``T`` is the integer shift of site j relative to site i in units of the
    whole-lattice translation vectors, so the bond vector is
    ``r_j + T . supercell - r_i``.
    """

    def __init__(self, indices, translations=None):
        """
        Initialize a pair list.

        Args:
            indices: (n_pairs, 2) site indices
            translations: (n_pairs, 3) periodic image shifts (default: zero)
        """
        self.indices = np.array(indices, dtype=np.int64).reshape(-1, 2)
        if translations is None:
            translations = np.zeros((len(self.indices), 3))
        self.translations = np.array(translations, dtype=np.int64).reshape(-1, 3)

        if len(self.indices) != len(self.translations):
            raise ValueError(f"Got {len(self.indices)} index pairs but "
                             f"{len(self.translations)} translations")

    @classmethod
    def empty(cls) -> 'PairList':
        return cls(np.zeros((0, 2)), np.zeros((0, 3)))

    def __len__(self) -> int:
        return len(self.indices)

    def __iter__(self):
        for (i, j), translation in zip(self.indices, self.translations):
            yield int(i), int(j), tuple(int(t) for t in translation)

    def validate(self, nos: int):
        """Reject pairs that reference a site outside ``[0, nos)``."""
        if len(self) and (self.indices.min() < 0 or self.indices.max() >= nos):
            raise ValueError(f"Pair references a site outside the lattice of {nos} sites")

    def periodic_mask(self, boundary_conditions) -> np.ndarray:
        """True for pairs that do not cross a non-periodic boundary."""
        mask = np.ones(len(self), dtype=bool)
        for axis, periodic in enumerate(as_boundary_conditions(boundary_conditions)):
            if not periodic:
                mask &= self.translations[:, axis] == 0
        return mask

    def subset(self, mask_or_order) -> 'PairList':
        return PairList(self.indices[mask_or_order], self.translations[mask_or_order])

    def canonical_order(self) -> np.ndarray:
        """
        Indices of the canonical, sorted pairs.

        Of ``(i, j, T)`` and ``(j, i, -T)`` only the one with ``i < j`` (or
        ``i == j`` and ``T`` lexicographically positive) is kept; ``(i, i, 0)``
        is dropped. The result is sorted by ``(i, j, T)``.
        """
        i, j = self.indices[:, 0], self.indices[:, 1]
        T = self.translations
        positive = ((T[:, 0] > 0) |
                    ((T[:, 0] == 0) & (T[:, 1] > 0)) |
                    ((T[:, 0] == 0) & (T[:, 1] == 0) & (T[:, 2] > 0)))
        keep = np.flatnonzero((i < j) | ((i == j) & positive))
        order = np.lexsort((T[keep, 2], T[keep, 1], T[keep, 0], j[keep], i[keep]))
        return keep[order]

    def __repr__(self) -> str:
        return f"PairList(n_pairs={len(self)})"


class NeighborFinder:
    """
    Pair enumeration for a geometry under given boundary conditions.

    Periodic images are found with ASE's ``neighbor_list``; pairs crossing
    a non-periodic axis never appear in the output.
    """

    def __init__(self, geometry: Geometry, boundary_conditions: Sequence[bool] = (True, True, True)):
        """
        Initialize neighbor finder.

        Args:
            geometry: Lattice to search
            boundary_conditions: Periodicity flag per lattice axis
        """
        self.geometry = geometry
        self.boundary_conditions = as_boundary_conditions(boundary_conditions)
        self.structure = geometry.structure_with_pbc(self.boundary_conditions)

    def pair_vectors(self, pairs: PairList) -> np.ndarray:
        """Bond vectors r_j + T . supercell - r_i."""
        positions = self.geometry.positions
        return (positions[pairs.indices[:, 1]] - positions[pairs.indices[:, 0]]
                + pairs.translations @ self.geometry.supercell_vectors)

    def _find_pairs(self, cutoff: float) -> Tuple[PairList, np.ndarray]:
        """Canonical pairs with 0 < distance <= cutoff (up to SHELL_TOLERANCE), and their distances."""
        if cutoff <= 0 or self.geometry.nos == 0:
            return PairList.empty(), np.zeros(0)

        # neighbor_list excludes the cutoff itself
        i_indices, j_indices, distances, shifts = neighbor_list(
            'ijdS', self.structure, cutoff + SHELL_TOLERANCE, self_interaction=False
        )
        # Coincident atoms never interact
        valid = distances > 1e-8
        pairs = PairList(np.column_stack((i_indices[valid], j_indices[valid])), shifts[valid])
        order = pairs.canonical_order()

        return pairs.subset(order), distances[valid][order]

    def get_pairs_in_radius(self, radius: float) -> PairList:
        """
        All canonical pairs whose separation is at most ``radius``.

        Args:
            radius: Cutoff radius in Angstrom

        Returns:
            PairList sorted by (i, j, T)
        """
        if radius < 0:
            raise ValueError(f"Cutoff radius must be non-negative, got {radius}")

        pairs, _ = self._find_pairs(radius)
        return pairs

    def get_shell_radii(self, n_shells: int) -> np.ndarray:
        """
        Distances of the first ``n_shells`` neighbor shells of the bulk lattice.

        Shells are taken from the periodic unit cell, so they do not depend on
        the size of the lattice or on its boundary conditions.
        """
        if n_shells <= 0:
            return np.zeros(0)

        unit_cell = self.geometry.unit_cell.copy()
        unit_cell.set_pbc(True)

        cutoff = 1.01 * np.min(np.linalg.norm(self.geometry.lattice_vectors, axis=1))
        while True:
            distances = neighbor_list('d', unit_cell, cutoff, self_interaction=False)
            radii = _unique_distances(distances[distances > 1e-8])
            # The outermost shell may be cut in half by the cutoff, so ask for one more
            if len(radii) > n_shells:
                return radii[:n_shells]
            cutoff *= 1.5

    def get_pairs_in_shells(self, n_shells: int) -> Tuple[PairList, np.ndarray]:
        """
        Canonical pairs belonging to the first ``n_shells`` shells.

        Returns:
            Tuple of (pairs, shell_index) where shell_index[p] is the
            zero-based shell of pair p
        """
        radii = self.get_shell_radii(n_shells)
        if len(radii) == 0:
            return PairList.empty(), np.zeros(0, dtype=np.int64)

        pairs, distances = self._find_pairs(radii[-1])

        shell_index = np.argmin(np.abs(distances[:, np.newaxis] - radii[np.newaxis, :]), axis=1)
        in_shell = np.abs(distances - radii[shell_index]) < SHELL_TOLERANCE

        shell_index = shell_index[in_shell]
        pairs = pairs.subset(in_shell)

        counts = np.bincount(shell_index, minlength=len(radii))
        for shell, count in enumerate(counts):
            if count == 0:
                warnings.warn(f"Shell {shell + 1} (r = {radii[shell]:.4f}) has no pairs "
                              f"under boundary conditions {self.boundary_conditions}")

        return pairs, shell_index.astype(np.int64)

    def get_coordination_number(self, pairs: PairList) -> np.ndarray:
        """Number of pairs each site takes part in."""
        return np.bincount(pairs.indices.ravel(), minlength=self.geometry.nos)


def _unique_distances(distances: np.ndarray, tolerance: float = SHELL_TOLERANCE) -> np.ndarray:
    """Sorted distinct distances, merging values closer than ``tolerance``."""
    distances = np.sort(distances)
    unique_distances = []

    for dist in distances:
        if len(unique_distances) == 0 or dist - unique_distances[-1] > tolerance:
            unique_distances.append(dist)

    return np.array(unique_distances)


def dmi_normals_from_pairs(vectors: np.ndarray, chirality: int = 1) -> np.ndarray:
    """
    DM vector directions derived from bond geometry.

    Args:
        vectors: (n_pairs, 3) bond vectors
        chirality: 1 Bloch (along the bond), -1 inverse Bloch,
            2 Neel (z x bond), -2 inverse Neel

    Returns:
        (n_pairs, 3) unit normals; Neel bonds parallel to z get a zero normal
    """
    if chirality not in CHIRALITIES:
        raise ValueError(f"Unknown DMI chirality {chirality}, must be one of {sorted(CHIRALITIES)}")

    vectors = np.asarray(vectors, dtype=np.float64).reshape(-1, 3)
    if abs(chirality) == 1:
        normals = vectors.copy()
    else:
        normals = np.column_stack((-vectors[:, 1], vectors[:, 0], np.zeros(len(vectors))))

    norms = np.linalg.norm(normals, axis=1)
    nonzero = norms > 1e-10
    normals[nonzero] /= norms[nonzero, np.newaxis]
    normals[~nonzero] = 0.0

    return np.sign(chirality) * normals


def ddi_from_pairs(
    vectors: np.ndarray,
    mu_s_i: np.ndarray,
    mu_s_j: np.ndarray,
    prefactor: Optional[float] = None
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Dipole-dipole coupling strength and direction per pair.

    Args:
        vectors: (n_pairs, 3) bond vectors in Angstrom
        mu_s_i: Moment of the first site of each pair (mu_B)
        mu_s_j: Moment of the second site of each pair (mu_B)
        prefactor: mu_0 mu_B^2 / (4 pi A^3) in eV unless given

    Returns:
        Tuple of (magnitudes, normals) with magnitude = C mu_i mu_j / r^3
    """
    if prefactor is None:
        prefactor = DIPOLE_DIPOLE_PREFACTOR

    vectors = np.asarray(vectors, dtype=np.float64).reshape(-1, 3)
    distances = np.linalg.norm(vectors, axis=1)
    if np.any(distances < 1e-8):
        raise ValueError("Dipolar pairs must have a non-zero separation")

    magnitudes = prefactor * np.asarray(mu_s_i) * np.asarray(mu_s_j) / distances**3
    normals = vectors / distances[:, np.newaxis]

    return magnitudes, normals
