"""
Tests for SpinSystem and the parameter access functions.
"""

import logging
import threading
import numpy as np
import pytest

from spinham import (
    Geometry, SpinSystem, HeisenbergHamiltonian, GaussianHamiltonian,
    HamiltonianKind, ExchangeShells, UnsupportedOperationWarning, interface,
)


J = 0.01


@pytest.fixture
def heisenberg_system():
    geometry = Geometry.chain(4)
    return SpinSystem(geometry, HeisenbergHamiltonian(geometry, exchange=ExchangeShells([J])))


@pytest.fixture
def gaussian_system():
    hamiltonian = GaussianHamiltonian([1.0], [0.5], [[0.0, 0.0, 1.0]])
    return SpinSystem(Geometry.chain(2), hamiltonian)


# ----------------------------------------------------------------------
# SpinSystem
# ----------------------------------------------------------------------

def test_default_configuration(heisenberg_system):
    assert heisenberg_system.spin_config.shape == (4, 3)
    np.testing.assert_allclose(heisenberg_system.calculate_magnetization(), [0.0, 0.0, 1.0])
    assert heisenberg_system.calculate_energy() == pytest.approx(-4 * J)


def test_spin_config_is_normalized(heisenberg_system):
    heisenberg_system.spin_config = np.tile([0.0, 3.0, 0.0], (4, 1))
    np.testing.assert_allclose(heisenberg_system.spin_config, np.tile([0.0, 1.0, 0.0], (4, 1)))

    with pytest.raises(ValueError):
        heisenberg_system.spin_config = np.zeros((4, 3))
    with pytest.raises(ValueError):
        heisenberg_system.spin_config = np.ones((3, 3))


def test_configurations(heisenberg_system):
    config = heisenberg_system.random_configuration(seed=1)
    np.testing.assert_allclose(np.linalg.norm(config, axis=1), 1.0)
    assert np.array_equal(config, heisenberg_system.random_configuration(seed=1))

    config = heisenberg_system.ferromagnetic_configuration(theta=90.0, phi=0.0)
    np.testing.assert_allclose(config, np.tile([1.0, 0.0, 0.0], (4, 1)), atol=1e-15)


def test_calculations(heisenberg_system):
    heisenberg_system.random_configuration(seed=2)
    assert heisenberg_system.calculate_effective_field().shape == (4, 3)
    assert heisenberg_system.calculate_hessian().shape == (12, 12)
    contributions = heisenberg_system.calculate_energy_contributions()
    assert [name for name, _ in contributions] == ["Exchange"]


def test_concurrent_updates_and_evaluations(heisenberg_system):
    errors = []

    def evaluate():
        try:
            for _ in range(50):
                energy = heisenberg_system.calculate_energy()
                assert np.isfinite(energy)
        except Exception as e:
            errors.append(e)

    def update():
        try:
            for n in range(50):
                interface.set_field(heisenberg_system, float(n), (0.0, 0.0, 1.0))
                interface.set_boundary_conditions(heisenberg_system, (n % 2 == 0, True, True))
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=evaluate), threading.Thread(target=update)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []


# ----------------------------------------------------------------------
# Setters and getters on the Heisenberg model
# ----------------------------------------------------------------------

def test_identity(heisenberg_system, gaussian_system):
    assert interface.get_name(heisenberg_system) == "Heisenberg"
    assert interface.get_kind(heisenberg_system) is HamiltonianKind.HEISENBERG
    assert interface.get_name(gaussian_system) == "Gaussian"
    assert interface.get_kind(gaussian_system) is HamiltonianKind.GAUSSIAN


def test_boundary_conditions(heisenberg_system):
    interface.set_boundary_conditions(heisenberg_system, (False, True, True))
    assert interface.get_boundary_conditions(heisenberg_system) == (False, True, True)
    assert heisenberg_system.calculate_energy() == pytest.approx(-3 * J)


def test_heisenberg_setters(heisenberg_system):
    interface.set_mu_s(heisenberg_system, 2.0)
    interface.set_field(heisenberg_system, 1.5, (0.0, 0.0, 1.0))
    interface.set_anisotropy(heisenberg_system, 0.002, (0.0, 1.0, 0.0))
    interface.set_exchange(heisenberg_system, [J, 0.5 * J])
    interface.set_dmi(heisenberg_system, [0.001], chirality=-1)
    interface.set_ddi(heisenberg_system, 1.5)

    np.testing.assert_allclose(interface.get_mu_s(heisenberg_system), [2.0])
    B, normal = interface.get_field(heisenberg_system)
    assert B == pytest.approx(1.5)
    K, axis = interface.get_anisotropy(heisenberg_system)
    assert K == pytest.approx(0.002)
    np.testing.assert_allclose(axis, [0.0, 1.0, 0.0])
    np.testing.assert_allclose(interface.get_exchange_shells(heisenberg_system), [J, 0.5 * J])
    magnitudes, chirality = interface.get_dmi_shells(heisenberg_system)
    np.testing.assert_allclose(magnitudes, [0.001])
    assert chirality == -1
    assert interface.get_ddi(heisenberg_system) == 1.5

    assert heisenberg_system.hamiltonian.contribution_names == [
        "Zeeman", "Anisotropy", "Exchange", "DMI", "DDI"
    ]


def test_setters_log(heisenberg_system, caplog):
    with caplog.at_level(logging.INFO, logger="spinham.interface"):
        interface.set_exchange(heisenberg_system, [J])
    assert "Set exchange to 1 shells Jij[0] = 0.01" in caplog.text


def test_pair_fetching_not_implemented(heisenberg_system):
    with pytest.warns(UnsupportedOperationWarning, match="not yet implemented"):
        assert interface.get_exchange_n_pairs(heisenberg_system) == 0
    with pytest.warns(UnsupportedOperationWarning):
        indices, translations, magnitudes = interface.get_exchange_pairs(heisenberg_system)
    assert indices.shape == (0, 2)
    assert translations.shape == (0, 3)
    assert magnitudes.shape == (0,)
    with pytest.warns(UnsupportedOperationWarning):
        assert interface.get_dmi_n_pairs(heisenberg_system) == 0


# ----------------------------------------------------------------------
# Unsupported operations on the Gaussian model
# ----------------------------------------------------------------------

@pytest.mark.parametrize("setter, args, message", [
    (interface.set_mu_s, (2.0,), "mu_s cannot be set on Gaussian"),
    (interface.set_field, (1.0, (0, 0, 1)), "External field cannot be set on Gaussian"),
    (interface.set_anisotropy, (0.1, (0, 0, 1)), "Anisotropy cannot be set on Gaussian"),
    (interface.set_exchange, ([J],), "Exchange cannot be set on Gaussian"),
    (interface.set_dmi, ([J],), "DMI cannot be set on Gaussian"),
    (interface.set_ddi, (2.0,), "DDI cannot be set on Gaussian"),
])
def test_gaussian_refuses_heisenberg_setters(gaussian_system, setter, args, message):
    spins = np.array([[0.0, 0.0, 1.0], [1.0, 0.0, 0.0]])
    before = gaussian_system.hamiltonian.energy(spins)

    with pytest.warns(UnsupportedOperationWarning, match=message):
        setter(gaussian_system, *args)

    hamiltonian = gaussian_system.hamiltonian
    assert hamiltonian.energy(spins) == before
    np.testing.assert_allclose(hamiltonian.amplitude, [1.0])
    np.testing.assert_allclose(hamiltonian.width, [0.5])


@pytest.mark.parametrize("getter", [
    interface.get_mu_s, interface.get_field, interface.get_anisotropy,
    interface.get_exchange_shells, interface.get_dmi_shells, interface.get_ddi,
])
def test_gaussian_heisenberg_getters(gaussian_system, getter):
    with pytest.warns(UnsupportedOperationWarning):
        assert getter(gaussian_system) is None


def test_gaussian_boundary_conditions(gaussian_system):
    interface.set_boundary_conditions(gaussian_system, (False, False, True))
    assert interface.get_boundary_conditions(gaussian_system) == (False, False, True)


def test_getters_wait_for_the_image_lock(heisenberg_system):
    interface.set_field(heisenberg_system, 1.0, (0.0, 0.0, 1.0))
    results = []
    reader = threading.Thread(target=lambda: results.append(interface.get_field(heisenberg_system)))

    with heisenberg_system.locked():
        reader.start()
        reader.join(timeout=0.2)
        assert reader.is_alive()
        heisenberg_system.hamiltonian.set_field(2.0, (1.0, 0.0, 0.0))

    reader.join(timeout=5.0)
    assert not reader.is_alive()
    B, normal = results[0]
    assert B == pytest.approx(2.0)
    np.testing.assert_allclose(normal, [1.0, 0.0, 0.0])
