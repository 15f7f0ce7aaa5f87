"""
Tests for the command-line interface.
"""

import pytest

from spinham.cli import main


def test_heisenberg(capsys):
    main(['heisenberg', '--cells', '2', '2', '2', '-J', '0.01', '-D', '0.001',
          '-K', '0.0005', '-B', '1.0', '--ddi-radius', '3.0'])
    out = capsys.readouterr().out
    assert "Hamiltonian: Heisenberg" in out
    assert "Spins: 8" in out
    for name in ["Zeeman", "Anisotropy", "Exchange", "DMI", "DDI"]:
        assert name in out
    assert "Total energy:" in out


def test_heisenberg_random_open(capsys):
    main(['heisenberg', '--cells', '2', '2', '1', '--open', 'z', '--config', 'random', '--seed', '3'])
    out = capsys.readouterr().out
    assert "Configuration: random" in out
    assert "Max effective field:" in out


def test_gaussian(capsys):
    main(['gaussian', '--amplitude', '1', '2', '--width', '0.5', '1',
          '--center', '0', '0', '1', '1', '0', '0', '--nos', '3'])
    out = capsys.readouterr().out
    assert "Hamiltonian: Gaussian" in out
    assert "Gaussian 0" in out
    assert "Gaussian 1" in out


@pytest.mark.parametrize("argv", [
    ['gaussian', '--width', '0'],
    ['gaussian', '--center', '1', '0'],
    ['heisenberg', '--ddi-radius', '-1'],
])
def test_invalid_input_exits(capsys, argv):
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    assert excinfo.value.code == 1
    assert "Error:" in capsys.readouterr().out


def test_no_command(capsys):
    main([])
    assert "heisenberg" in capsys.readouterr().out
