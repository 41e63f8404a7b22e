"""Configuration loading, merging, and construction of parameter bundles."""

from __future__ import annotations

import yaml
import copy
import numpy as np
from typing import Dict, Any, Optional, Sequence

from wvfpupil.exceptions import ConfigurationError
from wvfpupil.optics.pupil import WavefrontParameters
from wvfpupil.optics.sce import SCEParams, sce_create, sce_from_table

DEFAULT_CONFIG: Dict[str, Any] = {
    "pupil": {
        "measured_pupil_mm": 6.0,
        "calculated_pupil_mm": 3.0,
        "field_sample_pixels": 201,
        "field_size_mm": 16.212,
    },
    "wavelength_nm": 550.0,
    "measured_wavelength_nm": 550.0,
    "defocus_diopters": 0.0,
    "sce": {"preset": "none"},
    "zernike": {"coefficients_file": None, "subject": 1},
    "output": {"dir": "outputs"},
}


def load_config(path: str) -> Dict[str, Any]:
    """Load YAML configuration file."""
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def merge_configs(base: Dict, override: Dict) -> Dict:
    """Deep merge override into base config."""
    result = copy.deepcopy(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = merge_configs(result[key], val)
        else:
            result[key] = copy.deepcopy(val)
    return result


def load_experiment_config(path: str) -> Dict[str, Any]:
    """Load a config over the defaults, merging with base config if specified."""
    cfg = load_config(path)
    base_path = cfg.get("base_config")
    if base_path:
        cfg = merge_configs(load_config(base_path), cfg)
    return merge_configs(DEFAULT_CONFIG, cfg)


def sce_from_config(section: Optional[Dict[str, Any]], wavelength_nm: float) -> Optional[SCEParams]:
    """Build SCE parameters from the 'sce' config section.

    Either {"preset": name} or an explicit table
    {"x0": .., "y0": .., "wavelengths_nm": [..], "rho": [..]}.
    Returns None when the section is missing or empty.
    """
    if not section:
        return None
    if "preset" in section:
        return sce_create(wavelength_nm, section["preset"])
    try:
        return sce_from_table(
            section.get("x0", 0.0),
            section.get("y0", 0.0),
            section["wavelengths_nm"],
            section["rho"],
            name=section.get("name", "custom"),
        )
    except KeyError as e:
        raise ConfigurationError(f"SCE section missing key: {e}") from e


def params_from_config(
    cfg: Dict[str, Any],
    coeffs: Optional[Sequence[float]] = None,
) -> WavefrontParameters:
    """Build a WavefrontParameters bundle from a config dict.

    Args:
        cfg: Configuration dict with pupil/wavelength_nm/sce sections.
        coeffs: Zernike coefficients (microns); zeros when omitted.

    Returns:
        A fresh bundle, ready for PupilFunctionEngine.compute.
    """
    pup = cfg["pupil"]
    wavelength_nm = cfg["wavelength_nm"]
    first_wl = float(np.atleast_1d(wavelength_nm)[0])
    return WavefrontParameters(
        zernike_coefficients=np.zeros(0) if coeffs is None else np.asarray(coeffs, dtype=float),
        measured_pupil_diameter_mm=float(pup["measured_pupil_mm"]),
        calculated_pupil_diameter_mm=float(pup["calculated_pupil_mm"]),
        wavelength_nm=wavelength_nm,
        field_sample_pixels=int(pup["field_sample_pixels"]),
        field_size_mm=float(pup["field_size_mm"]),
        sce_params=sce_from_config(cfg.get("sce"), first_wl),
    )
