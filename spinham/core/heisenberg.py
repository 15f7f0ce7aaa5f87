"""
Heisenberg Hamiltonian: exchange, DMI, anisotropy, Zeeman and dipolar terms
on a lattice.
"""

import logging
import numpy as np
from typing import List, Optional, Sequence, Tuple, Union

from .hamiltonian import Hamiltonian, HamiltonianKind
from .geometry import Geometry
from .neighbors import CHIRALITIES, NeighborFinder, PairList, ddi_from_pairs, dmi_normals_from_pairs
from .fast_ops import (
    anisotropy_energy, anisotropy_field, anisotropy_hessian,
    ddi_energy, ddi_field, ddi_hessian,
    dmi_energy, dmi_field, dmi_hessian,
    exchange_energy, exchange_field, exchange_hessian,
    zeeman_energy, zeeman_field,
)
from ..utils.constants import energy_to_magnetic_field, magnetic_field_to_energy
from ..utils.vectormath import as_finite_array, as_spin_array, normalize_vector, normalize_vectors

logger = logging.getLogger(__name__)


class ExchangeShells:
    """Exchange given as one constant per neighbor shell."""

    def __init__(self, magnitudes: Sequence[float]):
        self.magnitudes = as_finite_array(magnitudes, "Exchange magnitudes")

    def __repr__(self) -> str:
        return f"ExchangeShells({self.magnitudes.tolist()})"


class ExchangePairs:
    """Exchange given as an explicit list of pairs."""

    def __init__(self, pairs: PairList, magnitudes: Sequence[float]):
        self.pairs = pairs
        self.magnitudes = as_finite_array(magnitudes, "Exchange magnitudes")
        if len(self.magnitudes) != len(pairs):
            raise ValueError(f"Got {len(pairs)} exchange pairs but {len(self.magnitudes)} magnitudes")

    def __repr__(self) -> str:
        return f"ExchangePairs(n_pairs={len(self.pairs)})"


class DMIShells:
    """DMI given as one strength per neighbor shell plus a chirality."""

    def __init__(self, magnitudes: Sequence[float], chirality: int = 1):
        self.magnitudes = as_finite_array(magnitudes, "DMI magnitudes")
        if chirality not in CHIRALITIES:
            raise ValueError(f"Unknown DMI chirality {chirality}, must be one of {sorted(CHIRALITIES)}")
        self.chirality = int(chirality)

    def __repr__(self) -> str:
        return f"DMIShells({self.magnitudes.tolist()}, chirality={self.chirality})"


class DMIPairs:
    """DMI given as explicit pairs, each with a strength and a DM vector direction."""

    def __init__(self, pairs: PairList, magnitudes: Sequence[float], normals):
        self.pairs = pairs
        self.magnitudes = as_finite_array(magnitudes, "DMI magnitudes")
        self.normals = normalize_vectors(normals) if len(pairs) else np.zeros((0, 3))
        if not len(self.magnitudes) == len(self.normals) == len(pairs):
            raise ValueError(f"Got {len(pairs)} DMI pairs, {len(self.magnitudes)} magnitudes "
                             f"and {len(self.normals)} normals")

    def __repr__(self) -> str:
        return f"DMIPairs(n_pairs={len(self.pairs)})"


Exchange = Union[ExchangeShells, ExchangePairs]
DMI = Union[DMIShells, DMIPairs]


class HeisenbergHamiltonian(Hamiltonian):
    """
    Classical Heisenberg model on a lattice.

    E = - sum_<ij> J_ij Si.Sj + sum_<ij> D_ij.(Si x Sj) - sum_i K_i (Si.n_i)^2
        - sum_i mu_i B (Si.n_B) - sum_<ij> M_ij (3 (Si.r_ij)(Sj.r_ij) - Si.Sj)

    Each pair <ij> is stored once. Exchange and DMI are given either per
    neighbor shell or as explicit pair lists; the dipolar pairs are always
    generated from a cutoff radius. Pairs crossing a non-periodic boundary
    are dropped when the interactions are built, so changing the boundary
    conditions regenerates them.
    """

    kind = HamiltonianKind.HEISENBERG

    def __init__(
        self,
        geometry: Geometry,
        mu_s: Union[float, Sequence[float]] = 1.0,
        boundary_conditions: Sequence[bool] = (True, True, True),
        field_magnitude: float = 0.0,
        field_normal: Sequence[float] = (0.0, 0.0, 1.0),
        anisotropy_indices: Sequence[int] = (),
        anisotropy_magnitudes: Sequence[float] = (),
        anisotropy_normals: Sequence[Sequence[float]] = (),
        exchange: Optional[Exchange] = None,
        dmi: Optional[DMI] = None,
        ddi_radius: float = 0.0
    ):
        """
        Initialize the Heisenberg Hamiltonian.

        Args:
            geometry: Lattice the spins live on
            mu_s: Magnetic moment (mu_B), scalar or one per basis atom
            boundary_conditions: Periodicity flag per lattice axis
            field_magnitude: External field (Tesla)
            field_normal: External field direction
            anisotropy_indices: Basis atoms carrying uniaxial anisotropy
            anisotropy_magnitudes: Anisotropy constant K (eV) per listed atom
            anisotropy_normals: Easy axis per listed atom
            exchange: ExchangeShells or ExchangePairs (eV)
            dmi: DMIShells or DMIPairs (eV)
            ddi_radius: Cutoff radius for dipolar pairs (Angstrom), 0 disables
        """
        super().__init__(boundary_conditions)
        self.geometry = geometry

        self.mu_s = self._check_mu_s(mu_s)
        self.external_field_magnitude = magnetic_field_to_energy(self._check_field(field_magnitude))
        self.external_field_normal = normalize_vector(field_normal)
        self._set_anisotropy_lists(anisotropy_indices, anisotropy_magnitudes, anisotropy_normals)
        self.exchange = self._check_exchange(exchange)
        self.dmi = self._check_dmi(dmi)
        self.ddi_cutoff_radius = self._check_radius(ddi_radius)

        self.update_interactions()

    @property
    def nos(self) -> int:
        return self.geometry.nos

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _check_mu_s(self, mu_s) -> np.ndarray:
        mu_s = as_finite_array(mu_s, "mu_s")
        if len(mu_s) == 1:
            mu_s = np.full(self.geometry.n_cell_atoms, mu_s[0])
        if len(mu_s) != self.geometry.n_cell_atoms:
            raise ValueError(f"Need one mu_s per basis atom ({self.geometry.n_cell_atoms}), "
                             f"got {len(mu_s)}")
        return mu_s

    def _check_pairs(self, pairs: PairList):
        pairs.validate(self.nos)
        same_image = ((pairs.indices[:, 0] == pairs.indices[:, 1])
                      & np.all(pairs.translations == 0, axis=1))
        if np.any(same_image):
            raise ValueError("A site cannot be paired with itself in the same image")

    def _check_exchange(self, exchange: Optional[Exchange]) -> Optional[Exchange]:
        if isinstance(exchange, ExchangePairs):
            self._check_pairs(exchange.pairs)
        elif exchange is not None and not isinstance(exchange, ExchangeShells):
            raise ValueError(f"Exchange must be ExchangeShells or ExchangePairs, got {type(exchange).__name__}")
        return exchange

    def _check_dmi(self, dmi: Optional[DMI]) -> Optional[DMI]:
        if isinstance(dmi, DMIPairs):
            self._check_pairs(dmi.pairs)
        elif dmi is not None and not isinstance(dmi, DMIShells):
            raise ValueError(f"DMI must be DMIShells or DMIPairs, got {type(dmi).__name__}")
        return dmi

    @staticmethod
    def _check_field(magnitude: float) -> float:
        if not np.isfinite(magnitude):
            raise ValueError(f"External field must be finite, got {magnitude}")
        return float(magnitude)

    @staticmethod
    def _check_radius(radius: float) -> float:
        if not np.isfinite(radius) or radius < 0:
            raise ValueError(f"DDI cutoff radius must be finite and non-negative, got {radius}")
        return float(radius)

    def _set_anisotropy_lists(self, indices, magnitudes, normals):
        """Store per-basis anisotropy and expand it onto every cell."""
        indices = np.array(indices, dtype=np.int64).reshape(-1)
        magnitudes = as_finite_array(magnitudes, "Anisotropy magnitudes")
        normals = normalize_vectors(normals) if len(indices) else np.zeros((0, 3))

        if not len(indices) == len(magnitudes) == len(normals):
            raise ValueError(f"Got {len(indices)} anisotropy indices, {len(magnitudes)} magnitudes "
                             f"and {len(normals)} normals")
        n_cell_atoms = self.geometry.n_cell_atoms
        if len(indices) and (indices.min() < 0 or indices.max() >= n_cell_atoms):
            raise ValueError(f"Anisotropy indices must refer to basis atoms 0..{n_cell_atoms - 1}")

        self.anisotropy_indices = indices
        self.anisotropy_magnitudes = magnitudes
        self.anisotropy_normals = normals

        n_cells = self.geometry.n_cells_total
        cell_offsets = np.arange(n_cells, dtype=np.int64)[:, np.newaxis] * n_cell_atoms
        self._anisotropy_sites = (cell_offsets + indices[np.newaxis, :]).ravel()
        self._anisotropy_site_magnitudes = np.tile(magnitudes, n_cells)
        self._anisotropy_site_normals = np.ascontiguousarray(np.tile(normals, (n_cells, 1)))

    # ------------------------------------------------------------------
    # Interaction caches
    # ------------------------------------------------------------------

    def update_interactions(self):
        """Regenerate every pair list from the current parameters and boundary conditions."""
        finder = NeighborFinder(self.geometry, self.boundary_conditions)
        self.mu_s_sites = self.geometry.broadcast_to_sites(self.mu_s)

        self.exchange_pairs, self.exchange_magnitudes = self._build_exchange(finder)
        self.dmi_pairs, self.dmi_magnitudes, self.dmi_normals = self._build_dmi(finder)
        self.ddi_pairs, self.ddi_magnitudes, self.ddi_normals = self._build_ddi(finder)

        logger.debug("Rebuilt interactions: %d exchange, %d DMI, %d DDI pairs",
                     len(self.exchange_pairs), len(self.dmi_pairs), len(self.ddi_pairs))

        self.update_energy_contributions()

    def _build_exchange(self, finder: NeighborFinder) -> Tuple[PairList, np.ndarray]:
        if isinstance(self.exchange, ExchangeShells):
            shell_magnitudes = self.exchange.magnitudes
            n_shells = _last_nonzero(shell_magnitudes)
            pairs, shell_index = finder.get_pairs_in_shells(n_shells)
            magnitudes = shell_magnitudes[shell_index]
            nonzero = magnitudes != 0
            return pairs.subset(nonzero), magnitudes[nonzero]

        if isinstance(self.exchange, ExchangePairs):
            mask = self.exchange.pairs.periodic_mask(self.boundary_conditions)
            return self.exchange.pairs.subset(mask), self.exchange.magnitudes[mask]

        return PairList.empty(), np.zeros(0)

    def _build_dmi(self, finder: NeighborFinder) -> Tuple[PairList, np.ndarray, np.ndarray]:
        if isinstance(self.dmi, DMIShells):
            shell_magnitudes = self.dmi.magnitudes
            n_shells = _last_nonzero(shell_magnitudes)
            pairs, shell_index = finder.get_pairs_in_shells(n_shells)
            normals = dmi_normals_from_pairs(finder.pair_vectors(pairs), self.dmi.chirality)
            magnitudes = shell_magnitudes[shell_index]
            keep = (magnitudes != 0) & np.any(normals != 0, axis=1)
            return pairs.subset(keep), magnitudes[keep], np.ascontiguousarray(normals[keep])

        if isinstance(self.dmi, DMIPairs):
            mask = self.dmi.pairs.periodic_mask(self.boundary_conditions)
            return (self.dmi.pairs.subset(mask), self.dmi.magnitudes[mask],
                    np.ascontiguousarray(self.dmi.normals[mask]))

        return PairList.empty(), np.zeros(0), np.zeros((0, 3))

    def _build_ddi(self, finder: NeighborFinder) -> Tuple[PairList, np.ndarray, np.ndarray]:
        pairs = finder.get_pairs_in_radius(self.ddi_cutoff_radius)
        if len(pairs) == 0:
            return pairs, np.zeros(0), np.zeros((0, 3))

        magnitudes, normals = ddi_from_pairs(
            finder.pair_vectors(pairs),
            self.mu_s_sites[pairs.indices[:, 0]],
            self.mu_s_sites[pairs.indices[:, 1]]
        )
        return pairs, magnitudes, np.ascontiguousarray(normals)

    def update_energy_contributions(self):
        """Record which terms have anything to contribute."""
        active = []
        if self.external_field_magnitude != 0:
            active.append("Zeeman")
        if len(self._anisotropy_sites) > 0:
            active.append("Anisotropy")
        if len(self.exchange_pairs) > 0:
            active.append("Exchange")
        if len(self.dmi_pairs) > 0:
            active.append("DMI")
        if len(self.ddi_pairs) > 0:
            active.append("DDI")
        self._active_contributions = active

    @property
    def contribution_names(self) -> List[str]:
        return list(self._active_contributions)

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def _check_spins(self, spins) -> np.ndarray:
        spins = as_spin_array(spins)
        if len(spins) != self.nos:
            raise ValueError(f"Expected {self.nos} spins, got {len(spins)}")
        return spins

    def _add_energy(self, name: str, spins: np.ndarray, energies: np.ndarray):
        if name == "Zeeman":
            zeeman_energy(spins, self.mu_s_sites, self.external_field_magnitude,
                          self.external_field_normal, energies)
        elif name == "Anisotropy":
            anisotropy_energy(spins, self._anisotropy_sites, self._anisotropy_site_magnitudes,
                              self._anisotropy_site_normals, energies)
        elif name == "Exchange":
            exchange_energy(spins, self.exchange_pairs.indices, self.exchange_magnitudes, energies)
        elif name == "DMI":
            dmi_energy(spins, self.dmi_pairs.indices, self.dmi_magnitudes, self.dmi_normals, energies)
        elif name == "DDI":
            ddi_energy(spins, self.ddi_pairs.indices, self.ddi_magnitudes, self.ddi_normals, energies)

    def energy_contributions_per_spin(self, spins: np.ndarray) -> List[Tuple[str, np.ndarray]]:
        """Site-resolved energies; pair energies are split evenly between both sites."""
        spins = self._check_spins(spins)
        contributions = []
        for name in self._active_contributions:
            energies = np.zeros(self.nos)
            self._add_energy(name, spins, energies)
            contributions.append((name, energies))
        return contributions

    def energy_array(self, spins: np.ndarray) -> np.ndarray:
        """Total energy of each active contribution, in contribution_names order."""
        return np.array([np.sum(energies) for _, energies in self.energy_contributions_per_spin(spins)],
                        dtype=np.float64)

    def _accumulate_field(self, spins: np.ndarray, field: np.ndarray):
        spins = self._check_spins(spins)
        for name in self._active_contributions:
            if name == "Zeeman":
                zeeman_field(self.mu_s_sites, self.external_field_magnitude,
                             self.external_field_normal, field)
            elif name == "Anisotropy":
                anisotropy_field(spins, self._anisotropy_sites, self._anisotropy_site_magnitudes,
                                 self._anisotropy_site_normals, field)
            elif name == "Exchange":
                exchange_field(spins, self.exchange_pairs.indices, self.exchange_magnitudes, field)
            elif name == "DMI":
                dmi_field(spins, self.dmi_pairs.indices, self.dmi_magnitudes, self.dmi_normals, field)
            elif name == "DDI":
                ddi_field(spins, self.ddi_pairs.indices, self.ddi_magnitudes, self.ddi_normals, field)

    def _accumulate_hessian(self, spins: np.ndarray, hessian: np.ndarray):
        self._check_spins(spins)
        # Zeeman is linear in the spins
        for name in self._active_contributions:
            if name == "Anisotropy":
                anisotropy_hessian(self._anisotropy_sites, self._anisotropy_site_magnitudes,
                                   self._anisotropy_site_normals, hessian)
            elif name == "Exchange":
                exchange_hessian(self.exchange_pairs.indices, self.exchange_magnitudes, hessian)
            elif name == "DMI":
                dmi_hessian(self.dmi_pairs.indices, self.dmi_magnitudes, self.dmi_normals, hessian)
            elif name == "DDI":
                ddi_hessian(self.ddi_pairs.indices, self.ddi_magnitudes, self.ddi_normals, hessian)

    # ------------------------------------------------------------------
    # Setters
    # ------------------------------------------------------------------

    def set_mu_s(self, mu_s: Union[float, Sequence[float]]):
        """Set the moment of every basis atom; dipolar strengths follow."""
        self.mu_s = self._check_mu_s(mu_s)
        self.update_interactions()

    def set_field(self, magnitude: float, normal: Sequence[float]):
        """Set the external field (Tesla) and its direction."""
        magnitude = magnetic_field_to_energy(self._check_field(magnitude))
        normal = normalize_vector(normal)
        self.external_field_magnitude, self.external_field_normal = magnitude, normal
        self.update_energy_contributions()

    def set_anisotropy(self, magnitude: float, normal: Sequence[float]):
        """Give every basis atom the same uniaxial anisotropy."""
        n_cell_atoms = self.geometry.n_cell_atoms
        self._set_anisotropy_lists(
            np.arange(n_cell_atoms),
            np.full(n_cell_atoms, magnitude, dtype=np.float64),
            np.tile(normalize_vector(normal), (n_cell_atoms, 1))
        )
        self.update_energy_contributions()

    def set_anisotropy_lists(self, indices, magnitudes, normals):
        """Set anisotropy per basis atom from explicit lists."""
        self._set_anisotropy_lists(indices, magnitudes, normals)
        self.update_energy_contributions()

    def set_exchange_shells(self, magnitudes: Sequence[float]):
        """Exchange per neighbor shell; replaces any explicit exchange pairs."""
        self.exchange = ExchangeShells(magnitudes)
        self.update_interactions()

    def set_exchange_pairs(self, pairs: PairList, magnitudes: Sequence[float]):
        """Explicit exchange pairs; replaces any exchange shells."""
        self.exchange = self._check_exchange(ExchangePairs(pairs, magnitudes))
        self.update_interactions()

    def set_dmi_shells(self, magnitudes: Sequence[float], chirality: int = 1):
        """DMI per neighbor shell; replaces any explicit DMI pairs."""
        self.dmi = DMIShells(magnitudes, chirality)
        self.update_interactions()

    def set_dmi_pairs(self, pairs: PairList, magnitudes: Sequence[float], normals):
        """Explicit DMI pairs; replaces any DMI shells."""
        self.dmi = self._check_dmi(DMIPairs(pairs, magnitudes, normals))
        self.update_interactions()

    def set_ddi(self, radius: float):
        """Set the dipolar cutoff radius and regenerate the dipolar pairs."""
        self.ddi_cutoff_radius = self._check_radius(radius)
        self.update_interactions()

    # ------------------------------------------------------------------
    # Getters
    # ------------------------------------------------------------------

    def get_mu_s(self) -> np.ndarray:
        return self.mu_s.copy()

    def get_field(self) -> Tuple[float, np.ndarray]:
        """External field in Tesla and its direction."""
        if self.external_field_magnitude != 0:
            return (energy_to_magnetic_field(self.external_field_magnitude),
                    self.external_field_normal.copy())
        return 0.0, np.array([0.0, 0.0, 1.0])

    def get_anisotropy(self) -> Tuple[float, np.ndarray]:
        """Anisotropy of the first listed basis atom."""
        if len(self.anisotropy_indices) > 0:
            return float(self.anisotropy_magnitudes[0]), self.anisotropy_normals[0].copy()
        return 0.0, np.array([0.0, 0.0, 1.0])

    def get_exchange_shells(self) -> np.ndarray:
        if isinstance(self.exchange, ExchangeShells):
            return self.exchange.magnitudes.copy()
        return np.zeros(0)

    def get_dmi_shells(self) -> Tuple[np.ndarray, int]:
        if isinstance(self.dmi, DMIShells):
            return self.dmi.magnitudes.copy(), self.dmi.chirality
        return np.zeros(0), 1

    def get_ddi_radius(self) -> float:
        return self.ddi_cutoff_radius

    def __repr__(self) -> str:
        return (f"HeisenbergHamiltonian(nos={self.nos}, "
                f"contributions={self._active_contributions}, "
                f"boundary_conditions={self.boundary_conditions})")


def _last_nonzero(magnitudes: np.ndarray) -> int:
    """Number of shells up to and including the last non-zero one."""
    nonzero = np.flatnonzero(magnitudes)
    return int(nonzero[-1]) + 1 if len(nonzero) else 0
