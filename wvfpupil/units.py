"""Unit conversions used across the pupil and PSF computations.

Lengths in the pupil plane are in mm, wavefront coefficients and the
phase in microns, wavelengths in nm.
"""

from __future__ import annotations
import numpy as np
from typing import Union

ArrayLike = Union[float, np.ndarray]

# Coefficient slot holding defocus (OSA j=4).
DEFOCUS_INDEX = 3


def nm_to_um(value_nm: ArrayLike) -> ArrayLike:
    return value_nm / 1000.0


def um_to_nm(value_um: ArrayLike) -> ArrayLike:
    return value_um * 1000.0


def mm_to_um(value_mm: ArrayLike) -> ArrayLike:
    return value_mm * 1000.0


def um_to_mm(value_um: ArrayLike) -> ArrayLike:
    return value_um / 1000.0


def nm_to_mm(value_nm: ArrayLike) -> ArrayLike:
    return value_nm / 1.0e6


def defocus_diopters_to_microns(diopters: float, pupil_diameter_mm: float) -> float:
    """Convert defocus in diopters to the OSA defocus coefficient in microns.

    c4 = D * d^2 / (16 * sqrt(3)), with d the pupil diameter in mm.
    """
    return diopters * pupil_diameter_mm**2 / (16.0 * np.sqrt(3.0))


def apply_defocus(
    coeffs: np.ndarray,
    diopters: float,
    pupil_diameter_mm: float,
) -> np.ndarray:
    """Return a copy of coeffs with defocus (diopters) added to the defocus slot."""
    out = np.array(coeffs, dtype=float, copy=True)
    if len(out) <= DEFOCUS_INDEX:
        out = np.concatenate([out, np.zeros(DEFOCUS_INDEX + 1 - len(out))])
    out[DEFOCUS_INDEX] += defocus_diopters_to_microns(diopters, pupil_diameter_mm)
    return out


# Chromatic eye model (Thibos et al. 1992): refractive error
# R(lambda) = p - q / (lambda - c), lambda in microns.
LCA_Q = 0.63346
LCA_C = 0.21410


def lca_defocus_diopters(measured_wavelength_nm: float, wavelength_nm: float) -> float:
    """Defocus (diopters) at wavelength_nm for an eye in focus at measured_wavelength_nm.

    Positive for wavelengths shorter than the measured one, where the eye
    is relatively myopic. Same sign convention as defocus_diopters_to_microns.
    """
    r_measured = -LCA_Q / (nm_to_um(measured_wavelength_nm) - LCA_C)
    r_calc = -LCA_Q / (nm_to_um(wavelength_nm) - LCA_C)
    return float(r_measured - r_calc)
