"""Monochromatic pupil function from Zernike coefficients.

The pupil function at one wavelength is

    P(x, y) = A(x, y) * exp(-i * 2*pi * W(x, y) / wavelength_um)

where A is the Stiles-Crawford amplitude and W the Zernike wavefront
(microns). P is zero outside the calculated pupil. All grids are square,
indexed [nx, ny] with the first axis along x.

Dividing a PSF computed from P by illuminated_pixel_count**2 normalizes
its peak to the Strehl ratio (see wvfpupil.optics.psf).
"""

from __future__ import annotations
import logging
import warnings
import numpy as np
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

from wvfpupil.exceptions import ConfigurationError, PrecisionWarning
from wvfpupil.optics.sce import SCEParams, sample_positions, sce_amplitude
from wvfpupil.optics.zernike import (
    N_COEFFS,
    TERM_TABLE,
    ZernikeTerm,
    normalize_coefficients,
    zernike_phase,
)
from wvfpupil.units import nm_to_um

logger = logging.getLogger(__name__)

# Value the reference implementation used in place of pi.
LEGACY_PI = 3.1416


@dataclass
class WavefrontParameters:
    """Inputs and outputs of one pupil function computation.

    Lengths in mm, wavelength in nm, coefficients in microns. The output
    fields are filled in place by PupilFunctionEngine.compute.
    """

    zernike_coefficients: Sequence[float]
    measured_pupil_diameter_mm: float
    calculated_pupil_diameter_mm: float
    wavelength_nm: Union[float, Sequence[float]]
    field_sample_pixels: int
    field_size_mm: float
    sce_params: Optional[SCEParams] = None

    pupil_function: Optional[np.ndarray] = None
    illuminated_pixel_count: int = 0
    apodized_area_sum: float = 0.0

    @property
    def pupil_ratio(self) -> float:
        """Aperture threshold on the measured-pupil-normalized radius."""
        return self.calculated_pupil_diameter_mm / self.measured_pupil_diameter_mm


def first_wavelength(wavelength_nm: Union[float, Sequence[float]]) -> Tuple[float, int]:
    """Return (first wavelength, number of wavelengths supplied)."""
    wls = np.atleast_1d(np.asarray(wavelength_nm, dtype=float)).ravel()
    if wls.size == 0:
        raise ConfigurationError("No wavelength supplied")
    return float(wls[0]), int(wls.size)


def _positive_finite(value) -> bool:
    # NaN fails every comparison, so test for the positive case.
    return bool(np.isfinite(value) and value > 0)


class PupilFunctionEngine:
    """Evaluates SCE amplitude and Zernike phase and combines them.

    Stateless apart from the read-only term table, so one engine can be
    shared by any number of callers.
    """

    def __init__(
        self,
        terms: Sequence[ZernikeTerm] = TERM_TABLE,
        legacy_pi: bool = False,
    ):
        self.terms = tuple(terms)
        # legacy_pi reproduces the reference output exactly: 3.1416 in the
        # piecewise angle and in the phase exponent.
        self.legacy_pi = legacy_pi

    def validate(self, params: WavefrontParameters) -> float:
        """Check the bundle and return the wavelength to compute, in nm."""
        if not (
            _positive_finite(params.measured_pupil_diameter_mm)
            and _positive_finite(params.calculated_pupil_diameter_mm)
        ):
            raise ConfigurationError(
                "Pupil diameters must be positive, got measured="
                f"{params.measured_pupil_diameter_mm}, "
                f"calculated={params.calculated_pupil_diameter_mm}"
            )
        if params.calculated_pupil_diameter_mm > params.measured_pupil_diameter_mm:
            raise ConfigurationError(
                "Requested size for calculation cannot exceed size over which "
                f"measurements were made ({params.calculated_pupil_diameter_mm} mm > "
                f"{params.measured_pupil_diameter_mm} mm)"
            )
        if (
            not _positive_finite(params.field_sample_pixels)
            or int(params.field_sample_pixels) != params.field_sample_pixels
        ):
            raise ConfigurationError(
                f"field_sample_pixels must be a positive integer, got {params.field_sample_pixels}"
            )
        if not _positive_finite(params.field_size_mm):
            raise ConfigurationError(f"field_size_mm must be positive, got {params.field_size_mm}")

        n_coeffs = len(np.atleast_1d(np.asarray(params.zernike_coefficients, dtype=float)))
        if n_coeffs > N_COEFFS:
            raise ConfigurationError(
                f"At most {N_COEFFS} Zernike coefficients are supported, got {n_coeffs}"
            )

        wavelength, n_wls = first_wavelength(params.wavelength_nm)
        if n_wls != 1:
            msg = f"Only handles one wavelength at a time. Using first one: {wavelength} nm"
            logger.warning(msg)
            warnings.warn(msg, PrecisionWarning, stacklevel=3)
        if not _positive_finite(wavelength):
            raise ConfigurationError(f"Wavelength must be positive, got {wavelength} nm")

        if params.sce_params is not None and params.sce_params.is_active:
            # Raises if the wavelength is not in the table.
            params.sce_params.rho_at(wavelength)
        return wavelength

    def polar_grid(self, params: WavefrontParameters) -> Tuple[np.ndarray, np.ndarray]:
        """Normalized radius and polar angle over the sample grid."""
        pos = sample_positions(int(params.field_sample_pixels), params.field_size_mm)
        X, Y = np.meshgrid(pos, pos, indexing="ij")
        norm_radius = np.sqrt(X**2 + Y**2) / (params.measured_pupil_diameter_mm / 2)

        if not self.legacy_pi:
            return norm_radius, np.arctan2(Y, X)

        with np.errstate(divide="ignore", invalid="ignore"):
            atan = np.arctan(Y / X)
        angle = np.where(X > 0, atan, LEGACY_PI + atan)
        angle = np.where(X == 0, np.sign(Y) * (LEGACY_PI / 2), angle)
        return norm_radius, angle

    def compute(
        self, params: WavefrontParameters
    ) -> Tuple[WavefrontParameters, np.ndarray, np.ndarray]:
        """Compute the pupil function and store it in params.

        Args:
            params: Parameter bundle, updated in place.

        Returns:
            (params, phase, amplitude): phase is the wavefront in microns
            (zero outside the aperture), amplitude the SCE apodization over
            the whole grid.

        Raises:
            ConfigurationError: Invalid bundle, before any grid work.
        """
        wavelength_nm = self.validate(params)
        wave_um = nm_to_um(wavelength_nm)
        n_pix = int(params.field_sample_pixels)
        coeffs = normalize_coefficients(params.zernike_coefficients)

        amplitude = sce_amplitude(
            params.sce_params, wavelength_nm, n_pix, params.field_size_mm
        )

        norm_radius, angle = self.polar_grid(params)
        inside = ~(norm_radius > params.pupil_ratio)

        phase = np.zeros((n_pix, n_pix), dtype=float)
        phase[inside] = zernike_phase(
            coeffs, norm_radius[inside], angle[inside], terms=self.terms
        )

        two_pi = 2 * LEGACY_PI if self.legacy_pi else 2 * np.pi
        pupil = np.zeros((n_pix, n_pix), dtype=complex)
        pupil[inside] = amplitude[inside] * np.exp(-1j * two_pi * phase[inside] / wave_um)

        params.pupil_function = pupil
        params.illuminated_pixel_count = int(np.count_nonzero(inside))
        params.apodized_area_sum = float(np.sum(np.abs(pupil)))
        logger.debug(
            "Pupil function %dx%d at %.1f nm: %d pixels in aperture, apodized sum %.3f",
            n_pix, n_pix, wavelength_nm,
            params.illuminated_pixel_count, params.apodized_area_sum,
        )
        return params, phase, amplitude


_default_engine = PupilFunctionEngine()


def compute_pupil_function(
    params: WavefrontParameters,
) -> Tuple[WavefrontParameters, np.ndarray, np.ndarray]:
    """Compute the pupil function with the default engine."""
    return _default_engine.compute(params)
