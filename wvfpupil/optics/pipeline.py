"""Complete pupil function -> PSF pipeline driven by a config dict."""

from __future__ import annotations
import logging
import numpy as np
from typing import Dict, Any, Optional

from wvfpupil.config import params_from_config
from wvfpupil.data import load_zernike_coefficients, subject_coefficients
from wvfpupil.exceptions import ConfigurationError
from wvfpupil.optics.pupil import PupilFunctionEngine, first_wavelength
from wvfpupil.optics.psf import (
    compute_psf,
    psf_centered_line,
    psf_middle_row,
    psf_sample_angles_arcmin,
)
from wvfpupil.units import apply_defocus, lca_defocus_diopters

logger = logging.getLogger(__name__)


def resolve_coefficients(cfg: Dict[str, Any]) -> np.ndarray:
    """Coefficients of the configured subject, or zeros without a file."""
    zer = cfg.get("zernike") or {}
    path = zer.get("coefficients_file")
    if not path:
        return np.zeros(0)
    table = load_zernike_coefficients(path)
    subject = int(zer.get("subject", 1))
    logger.info("Loaded %d subjects from %s, using subject %d", table.shape[1], path, subject)
    return subject_coefficients(table, subject)


def pupil_pipeline(
    cfg: Dict[str, Any],
    coeffs: Optional[np.ndarray] = None,
    engine: Optional[PupilFunctionEngine] = None,
) -> Dict[str, Any]:
    """Run the pupil function and PSF computation for one configuration.

    Args:
        cfg: Configuration dict with pupil/wavelength_nm/measured_wavelength_nm/
            defocus_diopters/sce/zernike sections.
        coeffs: Optional pre-specified Zernike coefficients (microns).
        engine: Engine to use; a default one when omitted.

    Returns:
        Dict with keys: params, coeffs, phase, amplitude, psf, psf_line,
        psf_line_centered, arcmin, strehl.
    """
    if engine is None:
        engine = PupilFunctionEngine()

    # 1. Coefficients, with requested and chromatic defocus folded into the defocus slot
    if coeffs is None:
        coeffs = resolve_coefficients(cfg)
    defocus = float(cfg.get("defocus_diopters", 0.0) or 0.0)
    measured_wl = cfg.get("measured_wavelength_nm")
    if measured_wl is not None:
        measured_wl = float(measured_wl)
        if not (np.isfinite(measured_wl) and measured_wl > 0):
            raise ConfigurationError(f"measured_wavelength_nm must be positive, got {measured_wl}")
        first_wl, _ = first_wavelength(cfg["wavelength_nm"])
        lca = lca_defocus_diopters(measured_wl, first_wl)
        if lca != 0.0:
            logger.info(
                "LCA defocus %.4f D (in focus at %.1f nm, computing %.1f nm)",
                lca, measured_wl, first_wl,
            )
        defocus += lca
    if defocus != 0.0:
        coeffs = apply_defocus(coeffs, defocus, cfg["pupil"]["measured_pupil_mm"])

    # 2. Pupil function
    params = params_from_config(cfg, coeffs)
    params, phase, amplitude = engine.compute(params)

    # 3. PSF and its cross-sections
    psf = compute_psf(params)

    return {
        "params": params,
        "coeffs": np.asarray(params.zernike_coefficients, dtype=float),
        "phase": phase,
        "amplitude": amplitude,
        "psf": psf,
        "psf_line": psf_middle_row(psf),
        "psf_line_centered": psf_centered_line(psf),
        "arcmin": psf_sample_angles_arcmin(params),
        "strehl": float(np.max(psf)),
    }
