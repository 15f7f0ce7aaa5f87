"""
Lattice geometry consumed by the Hamiltonians.
"""

import numpy as np
from typing import Optional, Sequence, Tuple
from ase import Atoms
from ase.build import bulk


class Geometry:
    """
    A Bravais lattice with a basis, repeated a finite number of times.

    Sites are ordered the way ``Atoms.repeat`` orders them: whole copies of
    the unit cell one after another, so site ``k`` belongs to basis atom
    ``k % n_cell_atoms``.
    """

    def __init__(self, unit_cell: Atoms, n_cells: Sequence[int] = (1, 1, 1)):
        """
        Initialize a geometry.

        Args:
            unit_cell: ASE Atoms holding the basis atoms and lattice vectors
            n_cells: Number of unit cells along each lattice vector
        """
        n_cells = tuple(int(n) for n in n_cells)
        if len(n_cells) != 3 or min(n_cells) < 1:
            raise ValueError(f"n_cells must be three positive integers, got {n_cells}")
        if len(unit_cell) == 0:
            raise ValueError("Unit cell must contain at least one atom")

        lattice_vectors = unit_cell.get_cell().array
        if abs(np.linalg.det(lattice_vectors)) < 1e-10:
            raise ValueError("Lattice vectors must span three dimensions")

        self.unit_cell = unit_cell.copy()
        self.n_cells = n_cells
        self.lattice_vectors = np.array(lattice_vectors, dtype=np.float64)
        self.n_cell_atoms = len(unit_cell)

        self.structure = self.unit_cell.repeat(n_cells)
        self.positions = self.structure.get_positions()

    @classmethod
    def from_bulk(
        cls,
        name: str,
        crystalstructure: Optional[str] = None,
        a: Optional[float] = None,
        n_cells: Sequence[int] = (1, 1, 1),
        cubic: bool = False
    ) -> 'Geometry':
        """Build the unit cell with ``ase.build.bulk``."""
        return cls(bulk(name, crystalstructure, a=a, cubic=cubic), n_cells)

    @classmethod
    def chain(cls, n_sites: int, spacing: float = 1.0, vacuum: float = 10.0) -> 'Geometry':
        """One site per cell along x; y and z lattice vectors are ``vacuum`` long."""
        unit_cell = Atoms('Fe', positions=[[0.0, 0.0, 0.0]],
                          cell=np.diag([spacing, vacuum, vacuum]))
        return cls(unit_cell, (n_sites, 1, 1))

    @property
    def nos(self) -> int:
        """Number of sites."""
        return len(self.positions)

    @property
    def n_cells_total(self) -> int:
        return self.n_cells[0] * self.n_cells[1] * self.n_cells[2]

    @property
    def supercell_vectors(self) -> np.ndarray:
        """Translation vectors of the whole lattice, used for periodic images."""
        return self.structure.get_cell().array

    def basis_indices(self) -> np.ndarray:
        """Basis atom index of every site."""
        return np.arange(self.nos) % self.n_cell_atoms

    def broadcast_to_sites(self, per_basis_values) -> np.ndarray:
        """Repeat one value per basis atom onto every site."""
        values = np.asarray(per_basis_values, dtype=np.float64)
        if values.shape[0] != self.n_cell_atoms:
            raise ValueError(f"Need {self.n_cell_atoms} values (one per basis atom), "
                             f"got {values.shape[0]}")
        reps = (self.n_cells_total,) + (1,) * (values.ndim - 1)
        return np.tile(values, reps)

    def structure_with_pbc(self, boundary_conditions: Tuple[bool, bool, bool]) -> Atoms:
        """Copy of the full lattice with ``pbc`` set to the boundary conditions."""
        structure = self.structure.copy()
        structure.set_pbc(boundary_conditions)
        return structure

    def __repr__(self) -> str:
        return (f"Geometry(nos={self.nos}, n_cell_atoms={self.n_cell_atoms}, "
                f"n_cells={self.n_cells})")
