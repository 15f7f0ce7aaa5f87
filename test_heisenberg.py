"""
Tests for the Heisenberg Hamiltonian.

Fields and Hessians are checked against central differences of the energy.
"""

import numpy as np
import pytest

from spinham import (
    Geometry, HeisenbergHamiltonian, ExchangeShells, ExchangePairs,
    DMIShells, DMIPairs, PairList,
)
from spinham.utils import generate_random_unit_vectors, magnetic_field_to_energy


J = 0.01
EPS = 1e-5


def numerical_field(hamiltonian, spins, eps=EPS):
    """Central-difference estimate of -dE/dS."""
    field = np.zeros_like(spins)
    for i in range(spins.shape[0]):
        for k in range(3):
            plus = spins.copy()
            minus = spins.copy()
            plus[i, k] += eps
            minus[i, k] -= eps
            field[i, k] = -(hamiltonian.energy(plus) - hamiltonian.energy(minus)) / (2 * eps)
    return field


def numerical_hessian(hamiltonian, spins, eps=EPS):
    """Central-difference estimate of the Hessian from the effective field."""
    dim = spins.size
    hessian = np.zeros((dim, dim))
    for n in range(dim):
        plus = spins.copy().reshape(-1)
        minus = spins.copy().reshape(-1)
        plus[n] += eps
        minus[n] -= eps
        field_plus = hamiltonian.effective_field(plus.reshape(-1, 3))
        field_minus = hamiltonian.effective_field(minus.reshape(-1, 3))
        hessian[:, n] = -(field_plus - field_minus).reshape(-1) / (2 * eps)
    return hessian


@pytest.fixture
def bcc():
    return Geometry.from_bulk('Fe', 'bcc', a=2.87, n_cells=(2, 2, 2), cubic=True)


def full_hamiltonian(geometry, **kwargs):
    """Every contribution switched on."""
    n_cell_atoms = geometry.n_cell_atoms
    params = dict(
        mu_s=2.2,
        field_magnitude=5.0,
        field_normal=(1.0, 1.0, 0.0),
        anisotropy_indices=np.arange(n_cell_atoms),
        anisotropy_magnitudes=np.full(n_cell_atoms, 0.001),
        anisotropy_normals=np.tile([0.0, 0.0, 1.0], (n_cell_atoms, 1)),
        exchange=ExchangeShells([J, 0.5 * J]),
        dmi=DMIShells([0.002], chirality=2),
        ddi_radius=3.0,
    )
    params.update(kwargs)
    return HeisenbergHamiltonian(geometry, **params)


@pytest.fixture
def hamiltonian(bcc):
    return full_hamiltonian(bcc)


@pytest.fixture
def spins(bcc):
    return generate_random_unit_vectors(bcc.nos, seed=42)


def test_name(hamiltonian):
    assert hamiltonian.name == "Heisenberg"


def test_contribution_order(hamiltonian):
    assert hamiltonian.contribution_names == ["Zeeman", "Anisotropy", "Exchange", "DMI", "DDI"]


def test_inactive_terms_are_skipped(bcc):
    hamiltonian = HeisenbergHamiltonian(bcc, exchange=ExchangeShells([J]))
    assert hamiltonian.contribution_names == ["Exchange"]

    empty = HeisenbergHamiltonian(bcc)
    assert empty.contribution_names == []
    assert empty.energy(np.tile([0.0, 0.0, 1.0], (bcc.nos, 1))) == 0.0


def test_energy_decomposition(hamiltonian, spins):
    contributions = hamiltonian.energy_contributions(spins)
    assert [name for name, _ in contributions] == hamiltonian.contribution_names
    assert sum(e for _, e in contributions) == hamiltonian.energy(spins)

    per_spin = hamiltonian.energy_contributions_per_spin(spins)
    for (name, energies), (_, total) in zip(per_spin, contributions):
        assert energies.shape == (hamiltonian.nos,)
        assert np.sum(energies) == pytest.approx(total, rel=1e-12, abs=1e-15)


def test_deterministic(hamiltonian, spins):
    assert hamiltonian.energy(spins) == hamiltonian.energy(spins)
    assert np.array_equal(hamiltonian.effective_field(spins), hamiltonian.effective_field(spins))
    assert np.array_equal(hamiltonian.hessian(spins), hamiltonian.hessian(spins))


def test_evaluation_does_not_modify_spins(hamiltonian, spins):
    before = spins.copy()
    hamiltonian.energy(spins)
    hamiltonian.effective_field(spins)
    hamiltonian.hessian(spins)
    assert np.array_equal(spins, before)


@pytest.mark.parametrize("kwargs", [
    dict(exchange=None, dmi=None, ddi_radius=0.0, anisotropy_indices=(),
         anisotropy_magnitudes=(), anisotropy_normals=()),
    dict(dmi=None, ddi_radius=0.0, field_magnitude=0.0, anisotropy_indices=(),
         anisotropy_magnitudes=(), anisotropy_normals=()),
    dict(exchange=None, ddi_radius=0.0, field_magnitude=0.0, anisotropy_indices=(),
         anisotropy_magnitudes=(), anisotropy_normals=()),
    dict(exchange=None, dmi=None, field_magnitude=0.0, anisotropy_indices=(),
         anisotropy_magnitudes=(), anisotropy_normals=()),
    dict(exchange=None, dmi=None, ddi_radius=0.0, field_magnitude=0.0),
    dict(),
], ids=["zeeman", "exchange", "dmi", "ddi", "anisotropy", "all"])
def test_field_matches_energy_gradient(bcc, spins, kwargs):
    hamiltonian = full_hamiltonian(bcc, **kwargs)
    assert len(hamiltonian.contribution_names) >= 1
    np.testing.assert_allclose(hamiltonian.effective_field(spins),
                               numerical_field(hamiltonian, spins), rtol=1e-6, atol=1e-10)


def test_hessian_matches_field_derivative(hamiltonian, spins):
    np.testing.assert_allclose(hamiltonian.hessian(spins),
                               numerical_hessian(hamiltonian, spins), rtol=1e-6, atol=1e-10)


def test_hessian_symmetric(hamiltonian, spins):
    hessian = hamiltonian.hessian(spins)
    assert hessian.shape == (3 * hamiltonian.nos, 3 * hamiltonian.nos)
    np.testing.assert_allclose(hessian, hessian.T, rtol=0, atol=1e-15)


def test_output_arrays_are_overwritten(hamiltonian, spins):
    field = np.full(spins.shape, 99.0)
    hamiltonian.effective_field(spins, field)
    np.testing.assert_allclose(field, hamiltonian.effective_field(spins))

    hessian = np.full((spins.size, spins.size), 99.0)
    hamiltonian.hessian(spins, hessian)
    np.testing.assert_allclose(hessian, hamiltonian.hessian(spins))

    with pytest.raises(ValueError):
        hamiltonian.effective_field(spins, np.zeros((2, 3)))
    with pytest.raises(ValueError):
        hamiltonian.hessian(spins, np.zeros((3, 3)))


def test_wrong_number_of_spins(hamiltonian):
    with pytest.raises(ValueError):
        hamiltonian.energy(np.tile([0.0, 0.0, 1.0], (3, 1)))


# ----------------------------------------------------------------------
# Small systems with known energies
# ----------------------------------------------------------------------

def test_two_site_chain_boundary_conditions():
    geometry = Geometry.chain(2)
    hamiltonian = HeisenbergHamiltonian(geometry, exchange=ExchangeShells([J]))
    up = np.tile([0.0, 0.0, 1.0], (2, 1))

    assert len(hamiltonian.exchange_pairs) == 2
    assert hamiltonian.energy(up) == pytest.approx(-2 * J)

    hamiltonian.set_boundary_conditions((False, True, True))
    assert len(hamiltonian.exchange_pairs) == 1
    assert hamiltonian.energy(up) == pytest.approx(-J)

    hamiltonian.set_boundary_conditions((True, True, True))
    assert hamiltonian.energy(up) == pytest.approx(-2 * J)


def test_single_site_interacts_with_its_image():
    hamiltonian = HeisenbergHamiltonian(Geometry.chain(1), exchange=ExchangeShells([J]))
    assert hamiltonian.energy(np.array([[0.0, 0.0, 1.0]])) == pytest.approx(-J)


def test_zeeman_energy():
    geometry = Geometry.chain(3)
    hamiltonian = HeisenbergHamiltonian(geometry, mu_s=2.0, field_magnitude=10.0)
    up = np.tile([0.0, 0.0, 1.0], (3, 1))
    assert hamiltonian.energy(up) == pytest.approx(-3 * 2.0 * magnetic_field_to_energy(10.0))
    np.testing.assert_allclose(hamiltonian.hessian(up), 0.0)


def test_anisotropy_energy():
    geometry = Geometry.chain(2)
    hamiltonian = HeisenbergHamiltonian(geometry, anisotropy_indices=[0], anisotropy_magnitudes=[0.1],
                                        anisotropy_normals=[[0.0, 0.0, 2.0]])
    assert hamiltonian.energy(np.tile([0.0, 0.0, 1.0], (2, 1))) == pytest.approx(-0.2)
    assert hamiltonian.energy(np.tile([1.0, 0.0, 0.0], (2, 1))) == pytest.approx(0.0)


def test_dmi_energy_of_spiral():
    geometry = Geometry.chain(4)
    hamiltonian = HeisenbergHamiltonian(geometry, dmi=DMIShells([0.002], chirality=1))
    # rotating about the bond (x) by 90 degrees per site
    spins = np.array([[0.0, 1.0, 0.0], [0.0, 0.0, 1.0], [0.0, -1.0, 0.0], [0.0, 0.0, -1.0]])
    assert hamiltonian.energy(spins) == pytest.approx(4 * 0.002)

    hamiltonian.set_dmi_shells([0.002], chirality=-1)
    assert hamiltonian.energy(spins) == pytest.approx(-4 * 0.002)


def test_dipolar_pair():
    geometry = Geometry.chain(2, spacing=2.0)
    hamiltonian = HeisenbergHamiltonian(geometry, boundary_conditions=(False, True, True),
                                        mu_s=1.0, ddi_radius=2.5)
    assert len(hamiltonian.ddi_pairs) == 1
    M = hamiltonian.ddi_magnitudes[0]

    along_bond = np.tile([1.0, 0.0, 0.0], (2, 1))
    across_bond = np.tile([0.0, 0.0, 1.0], (2, 1))
    assert hamiltonian.energy(along_bond) == pytest.approx(-2 * M)
    assert hamiltonian.energy(across_bond) == pytest.approx(M)


# ----------------------------------------------------------------------
# Parameter handling
# ----------------------------------------------------------------------

def test_explicit_exchange_pairs():
    geometry = Geometry.chain(2)
    pairs = PairList([[0, 1], [0, 1]], [[0, 0, 0], [-1, 0, 0]])
    hamiltonian = HeisenbergHamiltonian(geometry, exchange=ExchangePairs(pairs, [J, 2 * J]))
    up = np.tile([0.0, 0.0, 1.0], (2, 1))
    assert hamiltonian.energy(up) == pytest.approx(-3 * J)

    hamiltonian.set_boundary_conditions((False, True, True))
    assert hamiltonian.energy(up) == pytest.approx(-J)


def test_explicit_dmi_pairs(spins, bcc):
    pairs = PairList([[0, 1], [2, 5]])
    hamiltonian = HeisenbergHamiltonian(bcc, dmi=DMIPairs(pairs, [0.001, 0.002], [[0, 0, 1], [1, 0, 0]]))
    assert len(hamiltonian.dmi_pairs) == 2
    np.testing.assert_allclose(hamiltonian.effective_field(spins),
                               numerical_field(hamiltonian, spins), rtol=1e-6, atol=1e-10)


def test_shells_and_pairs_are_exclusive():
    geometry = Geometry.chain(3)
    up = np.tile([0.0, 0.0, 1.0], (3, 1))
    hamiltonian = HeisenbergHamiltonian(geometry, exchange=ExchangePairs(PairList([[0, 1]]), [5.0]))
    assert len(hamiltonian.get_exchange_shells()) == 0
    assert hamiltonian.energy(up) == pytest.approx(-5.0)

    # shells replace the explicit pair: three ring bonds, no J = 5 left
    hamiltonian.set_exchange_shells([J])
    assert isinstance(hamiltonian.exchange, ExchangeShells)
    assert len(hamiltonian.exchange_pairs) == 3
    assert hamiltonian.energy(up) == pytest.approx(-3 * J)

    hamiltonian.set_exchange_pairs(PairList([[0, 1]]), [J])
    assert isinstance(hamiltonian.exchange, ExchangePairs)
    assert len(hamiltonian.exchange_pairs) == 1
    assert hamiltonian.energy(up) == pytest.approx(-J)

    # a spiral in the xy plane sees only the explicit z-oriented DM pair
    spiral = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [-1.0, 0.0, 0.0]])
    hamiltonian.set_exchange_shells([])
    hamiltonian.set_dmi_shells([0.001], chirality=2)
    hamiltonian.set_dmi_pairs(PairList([[1, 2]]), [0.001], [[0, 0, 1]])
    assert isinstance(hamiltonian.dmi, DMIPairs)
    assert hamiltonian.get_dmi_shells()[0].size == 0
    assert hamiltonian.energy(spiral) == pytest.approx(0.001)


def test_zero_shells_are_dropped():
    hamiltonian = HeisenbergHamiltonian(Geometry.chain(4), exchange=ExchangeShells([0.0, J]))
    # only second-neighbor pairs remain
    assert len(hamiltonian.exchange_pairs) == 4
    assert np.all(hamiltonian.exchange_magnitudes == J)


def test_set_mu_s_rescales_dipolar(bcc):
    hamiltonian = HeisenbergHamiltonian(bcc, mu_s=1.0, ddi_radius=2.6)
    before = hamiltonian.ddi_magnitudes.copy()
    hamiltonian.set_mu_s(2.0)
    np.testing.assert_allclose(hamiltonian.ddi_magnitudes, 4.0 * before)
    assert np.array_equal(hamiltonian.get_mu_s(), [2.0, 2.0])


def test_getters(hamiltonian):
    B, normal = hamiltonian.get_field()
    assert B == pytest.approx(5.0)
    np.testing.assert_allclose(normal, [np.sqrt(0.5), np.sqrt(0.5), 0.0])

    K, axis = hamiltonian.get_anisotropy()
    assert K == pytest.approx(0.001)
    np.testing.assert_allclose(axis, [0.0, 0.0, 1.0])

    np.testing.assert_allclose(hamiltonian.get_exchange_shells(), [J, 0.5 * J])
    magnitudes, chirality = hamiltonian.get_dmi_shells()
    np.testing.assert_allclose(magnitudes, [0.002])
    assert chirality == 2
    assert hamiltonian.get_ddi_radius() == 3.0


def test_zero_field_getter(bcc):
    hamiltonian = HeisenbergHamiltonian(bcc, field_normal=(1.0, 0.0, 0.0))
    B, normal = hamiltonian.get_field()
    assert B == 0.0
    np.testing.assert_allclose(normal, [0.0, 0.0, 1.0])


def test_set_field_and_anisotropy(bcc):
    hamiltonian = HeisenbergHamiltonian(bcc)
    hamiltonian.set_field(2.0, (0.0, 0.0, 3.0))
    hamiltonian.set_anisotropy(0.01, (1.0, 0.0, 0.0))
    assert hamiltonian.contribution_names == ["Zeeman", "Anisotropy"]
    assert len(hamiltonian.anisotropy_indices) == bcc.n_cell_atoms

    hamiltonian.set_field(0.0, (0.0, 0.0, 1.0))
    assert hamiltonian.contribution_names == ["Anisotropy"]


@pytest.mark.parametrize("kwargs", [
    dict(mu_s=[1.0, 2.0, 3.0]),
    dict(ddi_radius=-1.0),
    dict(field_normal=(0.0, 0.0, 0.0)),
    dict(anisotropy_indices=[5], anisotropy_magnitudes=[0.1], anisotropy_normals=[[0, 0, 1]]),
    dict(anisotropy_indices=[0], anisotropy_magnitudes=[0.1, 0.2], anisotropy_normals=[[0, 0, 1]]),
    dict(exchange=ExchangePairs(PairList([[0, 99]]), [J])),
    dict(exchange=ExchangePairs(PairList([[3, 3]]), [J])),
    dict(exchange=[J]),
    dict(dmi=DMIPairs(PairList([[-1, 0]]), [0.001], [[0, 0, 1]])),
    dict(mu_s=np.nan),
    dict(ddi_radius=np.nan),
    dict(ddi_radius=np.inf),
    dict(field_magnitude=np.nan),
    dict(field_normal=(0.0, np.inf, 1.0)),
    dict(anisotropy_indices=[0], anisotropy_magnitudes=[np.nan], anisotropy_normals=[[0, 0, 1]]),
    dict(anisotropy_indices=[0], anisotropy_magnitudes=[0.1], anisotropy_normals=[[0, 0, np.nan]]),
], ids=["mu_s", "radius", "field", "aniso_index", "aniso_length",
        "pair_range", "self_pair", "exchange_type", "dmi_range",
        "mu_s_nan", "radius_nan", "radius_inf", "field_nan", "field_normal_inf",
        "aniso_nan", "aniso_normal_nan"])
def test_invalid_parameters(bcc, kwargs):
    with pytest.raises(ValueError):
        HeisenbergHamiltonian(bcc, **kwargs)


def test_invalid_parameter_objects():
    with pytest.raises(ValueError):
        DMIShells([0.001], chirality=0)
    with pytest.raises(ValueError):
        ExchangePairs(PairList([[0, 1]]), [J, J])
    with pytest.raises(ValueError):
        DMIPairs(PairList([[0, 1]]), [0.001], [[0.0, 0.0, 0.0]])
    with pytest.raises(ValueError):
        ExchangeShells([J, np.nan])
    with pytest.raises(ValueError):
        ExchangePairs(PairList([[0, 1]]), [np.inf])
    with pytest.raises(ValueError):
        DMIShells([np.nan])
    with pytest.raises(ValueError):
        DMIPairs(PairList([[0, 1]]), [np.nan], [[0.0, 0.0, 1.0]])


def test_non_finite_setters_leave_parameters_unchanged():
    geometry = Geometry.chain(2)
    hamiltonian = HeisenbergHamiltonian(geometry, field_magnitude=1.0,
                                        exchange=ExchangeShells([J]), ddi_radius=1.5)
    up = np.tile([0.0, 0.0, 1.0], (2, 1))
    before = hamiltonian.energy(up)

    with pytest.raises(ValueError):
        hamiltonian.set_ddi(np.nan)
    with pytest.raises(ValueError):
        hamiltonian.set_field(np.nan, (0.0, 0.0, 1.0))
    with pytest.raises(ValueError):
        hamiltonian.set_field(1.0, (np.nan, 0.0, 1.0))
    with pytest.raises(ValueError):
        hamiltonian.set_mu_s(np.inf)
    with pytest.raises(ValueError):
        hamiltonian.set_anisotropy(np.nan, (0.0, 0.0, 1.0))
    with pytest.raises(ValueError):
        hamiltonian.set_exchange_shells([np.nan])
    with pytest.raises(ValueError):
        hamiltonian.set_dmi_shells([np.inf])

    assert hamiltonian.get_ddi_radius() == 1.5
    assert hamiltonian.get_field()[0] == pytest.approx(1.0)
    assert hamiltonian.contribution_names == ["Zeeman", "Exchange", "DDI"]
    assert hamiltonian.energy(up) == before
