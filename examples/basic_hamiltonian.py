#!/usr/bin/env python3
"""
Basic Hamiltonian example using SpinHam.

This example sets up a bcc iron lattice with exchange, DMI, anisotropy,
Zeeman and dipolar terms, evaluates a few spin configurations, and then
swaps in the Gaussian test landscape.
"""

import warnings
import numpy as np

from spinham import (
    Geometry, SpinSystem, HeisenbergHamiltonian, GaussianHamiltonian,
    ExchangeShells, DMIShells, UnsupportedOperationWarning, interface,
)


def main():
    """Evaluate both Hamiltonian variants."""

    print("SpinHam: Basic Hamiltonian Example")
    print("=" * 40)

    # bcc Fe, 4x4x4 primitive cells
    geometry = Geometry.from_bulk('Fe', 'bcc', a=2.87, n_cells=(4, 4, 4))
    print(f"Created geometry with {geometry.nos} sites")

    hamiltonian = HeisenbergHamiltonian(
        geometry,
        mu_s=2.2,
        field_magnitude=2.0,
        field_normal=(0.0, 0.0, 1.0),
        anisotropy_indices=[0],
        anisotropy_magnitudes=[0.0001],
        anisotropy_normals=[[0.0, 0.0, 1.0]],
        exchange=ExchangeShells([0.02, 0.01]),
        dmi=DMIShells([0.001], chirality=2),
        ddi_radius=5.0
    )
    spin_system = SpinSystem(geometry, hamiltonian)

    print(f"Exchange pairs: {len(hamiltonian.exchange_pairs)}")
    print(f"DMI pairs: {len(hamiltonian.dmi_pairs)}")
    print(f"DDI pairs: {len(hamiltonian.ddi_pairs)}")

    for label, setup in [("ferromagnetic", lambda: spin_system.ferromagnetic_configuration()),
                         ("random", lambda: spin_system.random_configuration(seed=42))]:
        setup()
        print(f"\n{label} configuration:")
        for name, energy in spin_system.calculate_energy_contributions():
            print(f"  {name:<12s} {energy: .6f} eV")
        print(f"  {'Total':<12s} {spin_system.calculate_energy(): .6f} eV")

    # Open the boundaries along z: pairs across the z boundary disappear
    interface.set_boundary_conditions(spin_system, (True, True, False))
    print(f"\nExchange pairs with open z: {len(hamiltonian.exchange_pairs)}")

    hessian = spin_system.calculate_hessian()
    print(f"Hessian shape: {hessian.shape}, "
          f"symmetric: {np.allclose(hessian, hessian.T)}")

    # Gaussian landscape on a few independent spins
    print("\nGaussian landscape")
    gaussian = GaussianHamiltonian(amplitude=[1.0, -0.5], width=[0.3, 0.5],
                                   center=[[0.0, 0.0, 1.0], [1.0, 0.0, 0.0]])
    gaussian_system = SpinSystem(Geometry.chain(3), gaussian)
    gaussian_system.random_configuration(seed=1)
    print(f"Energy: {gaussian_system.calculate_energy():.6f}")

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", UnsupportedOperationWarning)
        interface.set_field(gaussian_system, 1.0, (0.0, 0.0, 1.0))
    for warning in caught:
        print(f"Warning: {warning.message}")


if __name__ == "__main__":
    main()
