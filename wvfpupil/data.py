"""Loading Zernike coefficient tables and reference PSF data."""

from __future__ import annotations
import numpy as np
from typing import Dict

from wvfpupil.exceptions import ConfigurationError


def load_zernike_coefficients(path: str) -> np.ndarray:
    """Load a flat-text coefficient table.

    One subject per column, one Zernike slot per row (see
    wvfpupil.optics.zernike for the slot convention). A single column file
    gives a (n_coeffs, 1) array.
    """
    table = np.loadtxt(path, dtype=float, ndmin=2)
    if table.shape[0] == 1 and table.shape[1] > 1:
        # A single subject written as one row.
        table = table.T
    return table


def subject_coefficients(table: np.ndarray, subject: int) -> np.ndarray:
    """Coefficients of one subject; subjects are numbered from 1."""
    n_subjects = table.shape[1]
    if subject < 1 or subject > n_subjects:
        raise ConfigurationError(f"Subject {subject} out of range 1..{n_subjects}")
    return table[:, subject - 1].copy()


def load_reference_psf(path: str) -> Dict[str, np.ndarray]:
    """Load a reference PSF archive (.npz) with at least a 'psf_line' array."""
    with np.load(path) as archive:
        data = {key: archive[key] for key in archive.files}
    if "psf_line" not in data:
        raise ConfigurationError(f"Reference file {path} has no 'psf_line' array")
    return data
