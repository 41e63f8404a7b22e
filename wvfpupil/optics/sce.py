"""Stiles-Crawford effect (SCE) apodization of the pupil.

The SCE amplitude at pupil position (x, y), in mm, is

    A(x, y) = 10 ** (-rho * ((x - x0)**2 + (y - y0)**2))

with the peak at (x0, y0), which need not be the pupil center. rho depends
on wavelength and is looked up by exact wavelength match.
"""

from __future__ import annotations
import logging
import numpy as np
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Sequence, Union

from wvfpupil.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Approximation of the Berendschot et al. population-average SCE, not the
# tabulated data: peak location (mm) and a smooth rho curve (per mm^2,
# base-10 decay) on a 400-700 nm support. Values outside the support are
# clamped. Supply a measured table through sce_from_table for exact work.
BERENDSCHOT_X0_MM = 0.47
BERENDSCHOT_Y0_MM = 0.20
BERENDSCHOT_WAVELENGTHS_NM = np.arange(400.0, 701.0, 50.0)
BERENDSCHOT_RHO = np.array([0.0680, 0.0580, 0.0500, 0.0460, 0.0450, 0.0470, 0.0510])


@dataclass(frozen=True)
class SCEParams:
    """Immutable SCE table: peak position and wavelength -> rho mapping."""

    x0: float = 0.0
    y0: float = 0.0
    rho: Mapping[float, float] = field(default_factory=dict)
    name: str = "custom"

    def __post_init__(self):
        table = {}
        for wl, r in dict(self.rho).items():
            if r < 0:
                raise ConfigurationError(f"SCE rho must be non-negative, got {r} at {wl} nm")
            table[float(wl)] = float(r)
        object.__setattr__(self, "rho", MappingProxyType(table))

    @property
    def wavelengths(self) -> np.ndarray:
        return np.array(sorted(self.rho.keys()), dtype=float)

    @property
    def is_active(self) -> bool:
        """False when there is no table or every rho is zero."""
        return any(r != 0.0 for r in self.rho.values())

    def rho_at(self, wavelength_nm: float) -> float:
        """rho for exactly wavelength_nm; no interpolation."""
        key = float(wavelength_nm)
        if key not in self.rho:
            raise ConfigurationError(
                f"Wavelength {key} nm not contained in SCE parameters "
                f"(available: {sorted(self.rho.keys())})"
            )
        return self.rho[key]


def sce_create(
    wavelengths_nm: Union[float, Sequence[float]],
    preset: str = "none",
) -> SCEParams:
    """Build SCE parameters for the given wavelengths from a named preset.

    Args:
        wavelengths_nm: Wavelength(s) the table must cover.
        preset: "none" (no apodization) or "berendschot" (approximate
            population average; "berendshot" is accepted as an alias).

    Returns:
        SCEParams with one rho entry per requested wavelength.
    """
    wls = np.atleast_1d(np.asarray(wavelengths_nm, dtype=float))
    key = preset.lower()
    if key == "none":
        return SCEParams(0.0, 0.0, {wl: 0.0 for wl in wls}, name="none")
    if key in ("berendschot", "berendschot_data", "berendshot"):
        rho = np.interp(wls, BERENDSCHOT_WAVELENGTHS_NM, BERENDSCHOT_RHO)
        return SCEParams(
            BERENDSCHOT_X0_MM,
            BERENDSCHOT_Y0_MM,
            dict(zip(wls, rho)),
            name="berendschot",
        )
    raise ConfigurationError(f"Unknown SCE preset: {preset}")


def sce_from_table(
    x0: float,
    y0: float,
    wavelengths_nm: Sequence[float],
    rho: Sequence[float],
    name: str = "custom",
) -> SCEParams:
    """Build SCE parameters from parallel wavelength/rho sequences."""
    if len(wavelengths_nm) != len(rho):
        raise ConfigurationError(
            f"SCE table length mismatch: {len(wavelengths_nm)} wavelengths, {len(rho)} rho"
        )
    return SCEParams(float(x0), float(y0), dict(zip(wavelengths_nm, rho)), name=name)


def sample_positions(field_sample_pixels: int, field_size_mm: float) -> np.ndarray:
    """Pupil-plane sample positions (mm) along one axis of the square grid."""
    n = np.arange(field_sample_pixels, dtype=float)
    return n * (field_size_mm / field_sample_pixels) - field_size_mm / 2


def sce_amplitude(
    sce: Optional[SCEParams],
    wavelength_nm: float,
    field_sample_pixels: int,
    field_size_mm: float,
) -> np.ndarray:
    """Amplitude apodization over the full sample grid, indexed [nx, ny].

    Uniformly 1 when sce is None or inactive.
    """
    if sce is None or not sce.is_active:
        return np.ones((field_sample_pixels, field_sample_pixels))

    rho = sce.rho_at(wavelength_nm)
    pos = sample_positions(field_sample_pixels, field_size_mm)
    X, Y = np.meshgrid(pos, pos, indexing="ij")
    logger.debug(
        "SCE %s at %.1f nm: rho=%.4f, peak=(%.3f, %.3f) mm",
        sce.name, wavelength_nm, rho, sce.x0, sce.y0,
    )
    return 10.0 ** (-rho * ((X - sce.x0) ** 2 + (Y - sce.y0) ** 2))


def sce_as_dict(sce: SCEParams) -> Dict[str, object]:
    """Plain-dict form of an SCE table, suitable for YAML/npz output."""
    wls = sce.wavelengths
    return {
        "name": sce.name,
        "x0": sce.x0,
        "y0": sce.y0,
        "wavelengths_nm": wls.tolist(),
        "rho": [sce.rho[wl] for wl in wls],
    }
