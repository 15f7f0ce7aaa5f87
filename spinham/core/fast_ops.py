"""
Numba-accelerated kernels for the spin Hamiltonians.

Every kernel accumulates into an output array supplied by the caller and
visits pairs/sites in list order, so repeated evaluations are bit-identical.
Pair kernels take ``pairs`` as an (n_pairs, 2) int64 array of site indices.
"""

import numpy as np
from numba import njit


# =============================================================================
# EXCHANGE:  E = -sum_ij J_ij Si . Sj
# =============================================================================

@njit
def exchange_energy(spins, pairs, magnitudes, energies):
    """
    Exchange energy, split half/half onto the two sites of each pair.

    Args:
        spins: (n_spins, 3) array of spin vectors
        pairs: (n_pairs, 2) array of site indices
        magnitudes: (n_pairs,) exchange constants J_ij
        energies: (n_spins,) output, accumulated
    """
    for p in range(pairs.shape[0]):
        i = pairs[p, 0]
        j = pairs[p, 1]
        dot_product = (spins[i, 0] * spins[j, 0] +
                       spins[i, 1] * spins[j, 1] +
                       spins[i, 2] * spins[j, 2])
        energy = -magnitudes[p] * dot_product
        energies[i] += 0.5 * energy
        energies[j] += 0.5 * energy


@njit
def exchange_field(spins, pairs, magnitudes, field):
    """Effective field from exchange: H_i = sum_j J_ij Sj."""
    for p in range(pairs.shape[0]):
        i = pairs[p, 0]
        j = pairs[p, 1]
        J = magnitudes[p]
        for k in range(3):
            field[i, k] += J * spins[j, k]
            field[j, k] += J * spins[i, k]


@njit
def exchange_hessian(pairs, magnitudes, hessian):
    """Exchange Hessian: -J_ij on the diagonal of the (i, j) and (j, i) blocks."""
    for p in range(pairs.shape[0]):
        i = pairs[p, 0]
        j = pairs[p, 1]
        J = magnitudes[p]
        for k in range(3):
            hessian[3*i + k, 3*j + k] -= J
            hessian[3*j + k, 3*i + k] -= J


# =============================================================================
# DZYALOSHINSKII-MORIYA:  E = sum_ij D_ij . (Si x Sj)
# =============================================================================

@njit
def dmi_energy(spins, pairs, magnitudes, normals, energies):
    """
    DMI energy with D_ij = magnitude * normal.

    Args:
        spins: (n_spins, 3) array of spin vectors
        pairs: (n_pairs, 2) array of site indices
        magnitudes: (n_pairs,) DMI strengths
        normals: (n_pairs, 3) unit DM vectors
        energies: (n_spins,) output, accumulated
    """
    for p in range(pairs.shape[0]):
        i = pairs[p, 0]
        j = pairs[p, 1]
        # Cross product Si x Sj
        cross_x = spins[i, 1] * spins[j, 2] - spins[i, 2] * spins[j, 1]
        cross_y = spins[i, 2] * spins[j, 0] - spins[i, 0] * spins[j, 2]
        cross_z = spins[i, 0] * spins[j, 1] - spins[i, 1] * spins[j, 0]

        energy = magnitudes[p] * (normals[p, 0] * cross_x +
                                  normals[p, 1] * cross_y +
                                  normals[p, 2] * cross_z)
        energies[i] += 0.5 * energy
        energies[j] += 0.5 * energy


@njit
def dmi_field(spins, pairs, magnitudes, normals, field):
    """Effective field from DMI: D x Sj on site i, Si x D on site j."""
    for p in range(pairs.shape[0]):
        i = pairs[p, 0]
        j = pairs[p, 1]
        dx = magnitudes[p] * normals[p, 0]
        dy = magnitudes[p] * normals[p, 1]
        dz = magnitudes[p] * normals[p, 2]

        field[i, 0] += dy * spins[j, 2] - dz * spins[j, 1]
        field[i, 1] += dz * spins[j, 0] - dx * spins[j, 2]
        field[i, 2] += dx * spins[j, 1] - dy * spins[j, 0]

        field[j, 0] += spins[i, 1] * dz - spins[i, 2] * dy
        field[j, 1] += spins[i, 2] * dx - spins[i, 0] * dz
        field[j, 2] += spins[i, 0] * dy - spins[i, 1] * dx


@njit
def dmi_hessian(pairs, magnitudes, normals, hessian):
    """DMI Hessian: block [eps_abc D_c] at (i, j) and its transpose at (j, i)."""
    block = np.zeros((3, 3))
    for p in range(pairs.shape[0]):
        i = pairs[p, 0]
        j = pairs[p, 1]
        dx = magnitudes[p] * normals[p, 0]
        dy = magnitudes[p] * normals[p, 1]
        dz = magnitudes[p] * normals[p, 2]

        block[0, 0] = 0.0
        block[0, 1] = dz
        block[0, 2] = -dy
        block[1, 0] = -dz
        block[1, 1] = 0.0
        block[1, 2] = dx
        block[2, 0] = dy
        block[2, 1] = -dx
        block[2, 2] = 0.0

        for a in range(3):
            for b in range(3):
                hessian[3*i + a, 3*j + b] += block[a, b]
                hessian[3*j + b, 3*i + a] += block[a, b]


# =============================================================================
# DIPOLE-DIPOLE:  E = -sum_ij M_ij (3 (Si.n)(Sj.n) - Si.Sj)
# =============================================================================

@njit
def ddi_energy(spins, pairs, magnitudes, normals, energies):
    """
    Dipole-dipole energy from cached pair magnitudes and bond normals.

    Args:
        spins: (n_spins, 3) array of spin vectors
        pairs: (n_pairs, 2) array of site indices
        magnitudes: (n_pairs,) prefactors mu_i mu_j C / r^3
        normals: (n_pairs, 3) unit bond vectors
        energies: (n_spins,) output, accumulated
    """
    for p in range(pairs.shape[0]):
        i = pairs[p, 0]
        j = pairs[p, 1]
        si_n = (spins[i, 0] * normals[p, 0] +
                spins[i, 1] * normals[p, 1] +
                spins[i, 2] * normals[p, 2])
        sj_n = (spins[j, 0] * normals[p, 0] +
                spins[j, 1] * normals[p, 1] +
                spins[j, 2] * normals[p, 2])
        si_sj = (spins[i, 0] * spins[j, 0] +
                 spins[i, 1] * spins[j, 1] +
                 spins[i, 2] * spins[j, 2])
        energy = -magnitudes[p] * (3.0 * si_n * sj_n - si_sj)
        energies[i] += 0.5 * energy
        energies[j] += 0.5 * energy


@njit
def ddi_field(spins, pairs, magnitudes, normals, field):
    """Effective field from dipolar coupling: M (3 (Sj.n) n - Sj) on site i."""
    for p in range(pairs.shape[0]):
        i = pairs[p, 0]
        j = pairs[p, 1]
        M = magnitudes[p]
        si_n = (spins[i, 0] * normals[p, 0] +
                spins[i, 1] * normals[p, 1] +
                spins[i, 2] * normals[p, 2])
        sj_n = (spins[j, 0] * normals[p, 0] +
                spins[j, 1] * normals[p, 1] +
                spins[j, 2] * normals[p, 2])
        for k in range(3):
            field[i, k] += M * (3.0 * sj_n * normals[p, k] - spins[j, k])
            field[j, k] += M * (3.0 * si_n * normals[p, k] - spins[i, k])


@njit
def ddi_hessian(pairs, magnitudes, normals, hessian):
    """Dipolar Hessian: -M (3 n n^T - 1) on the (i, j) and (j, i) blocks."""
    for p in range(pairs.shape[0]):
        i = pairs[p, 0]
        j = pairs[p, 1]
        M = magnitudes[p]
        for a in range(3):
            for b in range(3):
                value = 3.0 * (normals[p, a] * normals[p, b])
                if a == b:
                    value -= 1.0
                hessian[3*i + a, 3*j + b] -= M * value
                hessian[3*j + b, 3*i + a] -= M * value


# =============================================================================
# SINGLE-SITE TERMS
# =============================================================================

@njit
def anisotropy_energy(spins, indices, magnitudes, normals, energies):
    """Uniaxial anisotropy energy: -K (Si . n)^2 on each listed site."""
    for s in range(indices.shape[0]):
        i = indices[s]
        si_n = (spins[i, 0] * normals[s, 0] +
                spins[i, 1] * normals[s, 1] +
                spins[i, 2] * normals[s, 2])
        energies[i] -= magnitudes[s] * si_n * si_n


@njit
def anisotropy_field(spins, indices, magnitudes, normals, field):
    """Field from uniaxial anisotropy: 2 K (Si . n) n."""
    for s in range(indices.shape[0]):
        i = indices[s]
        si_n = (spins[i, 0] * normals[s, 0] +
                spins[i, 1] * normals[s, 1] +
                spins[i, 2] * normals[s, 2])
        for k in range(3):
            field[i, k] += 2.0 * magnitudes[s] * si_n * normals[s, k]


@njit
def anisotropy_hessian(indices, magnitudes, normals, hessian):
    """Rank-1 anisotropy Hessian: -2 K n n^T on the diagonal block."""
    for s in range(indices.shape[0]):
        i = indices[s]
        for a in range(3):
            for b in range(3):
                hessian[3*i + a, 3*i + b] -= 2.0 * magnitudes[s] * (normals[s, a] * normals[s, b])


@njit
def zeeman_energy(spins, mu_s, magnitude, normal, energies):
    """Zeeman energy: -mu_i B (Si . n)."""
    for i in range(spins.shape[0]):
        si_n = (spins[i, 0] * normal[0] +
                spins[i, 1] * normal[1] +
                spins[i, 2] * normal[2])
        energies[i] -= mu_s[i] * magnitude * si_n


@njit
def zeeman_field(mu_s, magnitude, normal, field):
    """Zeeman field: mu_i B n."""
    for i in range(field.shape[0]):
        for k in range(3):
            field[i, k] += mu_s[i] * magnitude * normal[k]


# =============================================================================
# GAUSSIAN LANDSCAPE:  E = sum_k sum_i a_k exp(-l^2 / (2 sigma_k^2)),  l = 1 - c_k . Si
# =============================================================================

@njit
def gaussian_energy(spins, amplitude, width, center, energies):
    """
    Energy per Gaussian, summed over spins.

    Args:
        spins: (n_spins, 3) array of spin vectors
        amplitude: (n_gaussians,) amplitudes a_k
        width: (n_gaussians,) widths sigma_k
        center: (n_gaussians, 3) unit centers c_k
        energies: (n_gaussians,) output, accumulated
    """
    for g in range(amplitude.shape[0]):
        inv_two_var = 1.0 / (2.0 * width[g] * width[g])
        for i in range(spins.shape[0]):
            l = 1.0 - (center[g, 0] * spins[i, 0] +
                       center[g, 1] * spins[i, 1] +
                       center[g, 2] * spins[i, 2])
            energies[g] += amplitude[g] * np.exp(-l * l * inv_two_var)


@njit
def gaussian_site_energy(spins, amplitude, width, center, energies):
    """Energy per spin, summed over Gaussians."""
    for i in range(spins.shape[0]):
        for g in range(amplitude.shape[0]):
            l = 1.0 - (center[g, 0] * spins[i, 0] +
                       center[g, 1] * spins[i, 1] +
                       center[g, 2] * spins[i, 2])
            energies[i] += amplitude[g] * np.exp(-l * l / (2.0 * width[g] * width[g]))


@njit
def gaussian_field(spins, amplitude, width, center, field):
    """Negative gradient: -a e(l) l / sigma^2 c per Gaussian."""
    for i in range(spins.shape[0]):
        for g in range(amplitude.shape[0]):
            var = width[g] * width[g]
            l = 1.0 - (center[g, 0] * spins[i, 0] +
                       center[g, 1] * spins[i, 1] +
                       center[g, 2] * spins[i, 2])
            prefactor = -amplitude[g] * np.exp(-l * l / (2.0 * var)) * l / var
            for k in range(3):
                field[i, k] += prefactor * center[g, k]


@njit
def gaussian_hessian(spins, amplitude, width, center, hessian):
    """Diagonal blocks a e(l) / sigma^2 (l^2 / sigma^2 - 1) c c^T."""
    for i in range(spins.shape[0]):
        for g in range(amplitude.shape[0]):
            var = width[g] * width[g]
            l = 1.0 - (center[g, 0] * spins[i, 0] +
                       center[g, 1] * spins[i, 1] +
                       center[g, 2] * spins[i, 2])
            prefactor = amplitude[g] * np.exp(-l * l / (2.0 * var)) / var * (l * l / var - 1.0)
            for a in range(3):
                for b in range(3):
                    hessian[3*i + a, 3*i + b] += prefactor * (center[g, a] * center[g, b])


# =============================================================================
# ANALYSIS
# =============================================================================

@njit
def calculate_magnetization(spins):
    """Average spin vector."""
    n_spins = spins.shape[0]
    mag = np.zeros(3)
    for i in range(n_spins):
        for k in range(3):
            mag[k] += spins[i, k]
    if n_spins > 0:
        for k in range(3):
            mag[k] /= n_spins
    return mag


def check_numba_availability():
    """Check that the kernels compile and run."""
    try:
        energies = np.zeros(2)
        exchange_energy(np.ones((2, 3)), np.array([[0, 1]], dtype=np.int64),
                        np.ones(1), energies)
        return True, "Numba available and working"
    except Exception as e:
        return False, f"Numba installation issue: {e}"
