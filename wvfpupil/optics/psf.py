"""Point spread function from a computed pupil function.

psf = fftshift(|FFT2(pupil)|^2) / illuminated_pixel_count^2

With no SCE, the diffraction-limited pupil gives a PSF peak of exactly 1,
so the peak of an aberrated PSF is its Strehl ratio.
"""

from __future__ import annotations
import numpy as np
from scipy import fft

from wvfpupil.exceptions import ConfigurationError
from wvfpupil.optics.pupil import WavefrontParameters, first_wavelength
from wvfpupil.units import nm_to_mm


def compute_psf(params: WavefrontParameters) -> np.ndarray:
    """Strehl-normalized PSF, centered at [N // 2, N // 2]."""
    if params.pupil_function is None or params.illuminated_pixel_count == 0:
        raise ConfigurationError("Pupil function has not been computed (or has an empty aperture)")
    amp = fft.fft2(params.pupil_function)
    inten = np.real(amp * np.conj(amp))
    return fft.fftshift(inten) / float(params.illuminated_pixel_count) ** 2


def psf_middle_row(psf: np.ndarray) -> np.ndarray:
    """Cross-section along the second axis through the PSF center."""
    return psf[psf.shape[0] // 2, :].copy()


def psf_centered_line(psf: np.ndarray) -> np.ndarray:
    """Cross-section through the PSF maximum, circularly shifted to the center."""
    row, col = np.unravel_index(np.argmax(psf), psf.shape)
    line = psf[row, :]
    return np.roll(line, psf.shape[1] // 2 - col)


def psf_arcmin_per_sample(params: WavefrontParameters) -> float:
    """Angular spacing of PSF samples, in arcminutes.

    One sample subtends wavelength / field_size radians.
    """
    wavelength_nm, _ = first_wavelength(params.wavelength_nm)
    radians = nm_to_mm(wavelength_nm) / params.field_size_mm
    return float(np.degrees(radians) * 60.0)


def psf_sample_angles_arcmin(params: WavefrontParameters) -> np.ndarray:
    """Angle of each PSF sample along one axis, zero at index N // 2."""
    n = int(params.field_sample_pixels)
    return (np.arange(n) - n // 2) * psf_arcmin_per_sample(params)


def strehl_ratio(params: WavefrontParameters) -> float:
    return float(np.max(compute_psf(params)))
