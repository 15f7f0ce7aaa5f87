"""
Command-line interface for SpinHam.
"""

import argparse
import logging
import sys
import numpy as np

from . import Geometry, SpinSystem, HeisenbergHamiltonian, GaussianHamiltonian
from .core.heisenberg import ExchangeShells, DMIShells


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="SpinHam: evaluate classical spin Hamiltonians",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Log parameter changes and interaction rebuilds')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Heisenberg model on a bulk lattice
    heis_parser = subparsers.add_parser('heisenberg', help='Evaluate a Heisenberg Hamiltonian')
    heis_parser.add_argument('--element', default='Fe',
                             help='Chemical symbol for ase.build.bulk (default: Fe)')
    heis_parser.add_argument('--crystal', default='bcc',
                             help='Crystal structure (default: bcc)')
    heis_parser.add_argument('-a', '--lattice-constant', type=float, default=2.87,
                             help='Lattice constant in Angstrom (default: 2.87)')
    heis_parser.add_argument('--cells', nargs=3, type=int, default=[4, 4, 4],
                             help='Unit cells along each axis (default: 4 4 4)')
    heis_parser.add_argument('--mu-s', type=float, default=2.2,
                             help='Magnetic moment in mu_B (default: 2.2)')
    heis_parser.add_argument('-J', '--exchange', nargs='*', type=float, default=[0.01],
                             help='Exchange per shell in eV (default: 0.01)')
    heis_parser.add_argument('-D', '--dmi', nargs='*', type=float, default=[],
                             help='DMI per shell in eV')
    heis_parser.add_argument('--chirality', type=int, default=1, choices=[1, -1, 2, -2],
                             help='DMI chirality (default: 1, Bloch)')
    heis_parser.add_argument('-K', '--anisotropy', type=float, default=0.0,
                             help='Uniaxial anisotropy in eV (default: 0)')
    heis_parser.add_argument('--axis', nargs=3, type=float, default=[0.0, 0.0, 1.0],
                             help='Anisotropy axis (default: 0 0 1)')
    heis_parser.add_argument('-B', '--field', type=float, default=0.0,
                             help='External field in Tesla (default: 0)')
    heis_parser.add_argument('--field-normal', nargs=3, type=float, default=[0.0, 0.0, 1.0],
                             help='External field direction (default: 0 0 1)')
    heis_parser.add_argument('--ddi-radius', type=float, default=0.0,
                             help='Dipolar cutoff radius in Angstrom (default: 0, off)')
    heis_parser.add_argument('--open', nargs='*', default=[], choices=['x', 'y', 'z'],
                             help='Lattice axes with open boundaries')
    _add_configuration_arguments(heis_parser)

    # Gaussian landscape
    gauss_parser = subparsers.add_parser('gaussian', help='Evaluate a Gaussian test landscape')
    gauss_parser.add_argument('--amplitude', nargs='+', type=float, default=[1.0],
                              help='Amplitude of each Gaussian (default: 1)')
    gauss_parser.add_argument('--width', nargs='+', type=float, default=[0.5],
                              help='Width of each Gaussian (default: 0.5)')
    gauss_parser.add_argument('--center', nargs='+', type=float, default=[0.0, 0.0, 1.0],
                              help='Center of each Gaussian, 3 values per Gaussian (default: 0 0 1)')
    gauss_parser.add_argument('--nos', type=int, default=1,
                              help='Number of spins (default: 1)')
    _add_configuration_arguments(gauss_parser)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        if args.command == 'heisenberg':
            spin_system = build_heisenberg(args)
        elif args.command == 'gaussian':
            spin_system = build_gaussian(args)
        evaluate(spin_system, args)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)


def _add_configuration_arguments(subparser):
    subparser.add_argument('--config', default='ferromagnetic', choices=['ferromagnetic', 'random'],
                           help='Spin configuration to evaluate (default: ferromagnetic)')
    subparser.add_argument('--theta', type=float, default=0.0,
                           help='Polar angle of the ferromagnetic state in degrees (default: 0)')
    subparser.add_argument('--phi', type=float, default=0.0,
                           help='Azimuthal angle of the ferromagnetic state in degrees (default: 0)')
    subparser.add_argument('--seed', type=int, default=None,
                           help='Random seed for the random configuration')


def build_heisenberg(args) -> SpinSystem:
    """Spin system for the heisenberg subcommand."""
    geometry = Geometry.from_bulk(args.element, args.crystal, a=args.lattice_constant,
                                  n_cells=args.cells)
    boundary_conditions = [axis not in args.open for axis in 'xyz']

    anisotropy = {}
    if args.anisotropy != 0:
        indices = np.arange(geometry.n_cell_atoms)
        anisotropy = dict(
            anisotropy_indices=indices,
            anisotropy_magnitudes=np.full(len(indices), args.anisotropy),
            anisotropy_normals=np.tile(args.axis, (len(indices), 1)),
        )

    hamiltonian = HeisenbergHamiltonian(
        geometry,
        mu_s=args.mu_s,
        boundary_conditions=boundary_conditions,
        field_magnitude=args.field,
        field_normal=args.field_normal,
        exchange=ExchangeShells(args.exchange) if args.exchange else None,
        dmi=DMIShells(args.dmi, args.chirality) if args.dmi else None,
        ddi_radius=args.ddi_radius,
        **anisotropy
    )
    return SpinSystem(geometry, hamiltonian)


def build_gaussian(args) -> SpinSystem:
    """Spin system for the gaussian subcommand."""
    if len(args.center) % 3 != 0:
        raise ValueError("--center needs 3 values per Gaussian")
    hamiltonian = GaussianHamiltonian(args.amplitude, args.width, np.reshape(args.center, (-1, 3)))
    return SpinSystem(Geometry.chain(args.nos), hamiltonian)


def evaluate(spin_system: SpinSystem, args):
    """Print energy contributions and the largest effective field."""
    if args.config == 'random':
        spin_system.random_configuration(seed=args.seed)
    else:
        spin_system.ferromagnetic_configuration(args.theta, args.phi)

    print(f"Hamiltonian: {spin_system.hamiltonian.name}")
    print(f"Spins: {spin_system.nos}")
    print(f"Configuration: {args.config}")

    for name, energy in spin_system.calculate_energy_contributions():
        print(f"  {name:<12s} {energy: .8f} eV")

    total = spin_system.calculate_energy()
    field = spin_system.calculate_effective_field()

    print(f"\nTotal energy: {total:.8f} eV")
    print(f"Energy per spin: {total / spin_system.nos:.8f} eV")
    print(f"Max effective field: {np.max(np.linalg.norm(field, axis=1)):.8f} eV")


if __name__ == "__main__":
    main()
