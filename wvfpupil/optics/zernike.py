"""OSA/ANSI Zernike polynomials and the wavefront phase expansion.

Conventions:
- OSA/ANSI single index j = (n(n+2) + m) / 2, piston is j=0.
- Coefficient vectors do NOT store piston: slot i holds mode j = i + 1,
  so slots 0 and 1 are tip/tilt and slot 64 is j=65 (n=10, m=10).
- m > 0 pairs with cos(m*theta), m < 0 with sin(|m|*theta).
- Normalization is sqrt(n+1) for m=0 and sqrt(2(n+1)) otherwise.
- Coefficients and the resulting phase are in microns.
"""

from __future__ import annotations
import math
import numpy as np
from dataclasses import dataclass
from typing import Sequence, Tuple

from wvfpupil.exceptions import ConfigurationError

# Slots in a full coefficient vector (OSA j=1..65, radial orders 1..10).
N_COEFFS = 65
MAX_RADIAL_ORDER = 10


def osa_to_nm(j: int) -> Tuple[int, int]:
    """Convert OSA/ANSI index j (0-based) to radial degree n and azimuthal order m.

    j=0:(0,0), j=1:(1,-1), j=2:(1,1), j=3:(2,-2), j=4:(2,0), j=5:(2,2), ...
    """
    if j < 0:
        raise ValueError(f"OSA index must be >= 0, got {j}")

    n = 0
    while (n + 1) * (n + 2) // 2 <= j:
        n += 1
    m = 2 * j - n * (n + 2)
    return (n, m)


def nm_to_osa(n: int, m: int) -> int:
    """Convert (n, m) to the OSA/ANSI index j."""
    if n < 0 or abs(m) > n or (n - m) % 2 != 0:
        raise ValueError(f"Invalid Zernike mode (n={n}, m={m})")
    return (n * (n + 2) + m) // 2


def num_zernike_terms(max_order: int) -> int:
    """Number of Zernike modes up to and including radial order max_order.

    = (max_order + 1) * (max_order + 2) // 2
    """
    return (max_order + 1) * (max_order + 2) // 2


def radial_coefficients(n: int, m_abs: int) -> Tuple[Tuple[int, int], ...]:
    """Integer (coefficient, power) pairs of R_n^|m|, highest power first."""
    if (n - m_abs) % 2 != 0 or m_abs > n:
        return ()

    pairs = []
    for s in range((n - m_abs) // 2 + 1):
        num = (-1) ** s * math.factorial(n - s)
        den = (
            math.factorial(s)
            * math.factorial((n + m_abs) // 2 - s)
            * math.factorial((n - m_abs) // 2 - s)
        )
        pairs.append((num // den, n - 2 * s))
    return tuple(pairs)


def zernike_radial(n: int, m_abs: int, r: np.ndarray) -> np.ndarray:
    """Compute radial polynomial R_n^|m|(r).

    Args:
        n: Radial degree.
        m_abs: Absolute value of azimuthal order.
        r: Radial coordinate array.

    Returns:
        R_n^|m| evaluated at r.
    """
    r = np.asarray(r, dtype=float)
    result = np.zeros_like(r)
    for coef, power in radial_coefficients(n, m_abs):
        result = result + coef * r**power
    return result


def zernike_normalization(n: int, m: int) -> float:
    if m == 0:
        return math.sqrt(n + 1)
    return math.sqrt(2.0 * (n + 1))


@dataclass(frozen=True)
class ZernikeTerm:
    """One mode of the phase expansion."""

    index: int
    osa_j: int
    n: int
    m: int
    normalization: float
    radial: Tuple[Tuple[int, int], ...]

    def evaluate(self, r: np.ndarray, theta: np.ndarray) -> np.ndarray:
        """Normalized polynomial value at polar coordinates (r, theta)."""
        R = np.zeros_like(r, dtype=float)
        for coef, power in self.radial:
            R = R + coef * r**power
        if self.m > 0:
            return self.normalization * R * np.cos(self.m * theta)
        if self.m < 0:
            return self.normalization * R * np.sin(-self.m * theta)
        return self.normalization * R


def build_term_table(
    max_order: int = MAX_RADIAL_ORDER,
    first_order: int = 2,
) -> Tuple[ZernikeTerm, ...]:
    """Generate the expansion terms for radial orders first_order..max_order.

    The default skips piston and tip/tilt, which never enter the phase.
    """
    terms = []
    for j in range(num_zernike_terms(first_order - 1), num_zernike_terms(max_order)):
        n, m = osa_to_nm(j)
        terms.append(
            ZernikeTerm(
                index=j - 1,
                osa_j=j,
                n=n,
                m=m,
                normalization=zernike_normalization(n, m),
                radial=radial_coefficients(n, abs(m)),
            )
        )
    return tuple(terms)


TERM_TABLE = build_term_table()


def normalize_coefficients(coeffs: Sequence[float], n_coeffs: int = N_COEFFS) -> np.ndarray:
    """Return a float vector of length n_coeffs, zero-padded at the end."""
    c = np.asarray(coeffs if coeffs is not None else [], dtype=float).ravel()
    if len(c) > n_coeffs:
        raise ConfigurationError(
            f"At most {n_coeffs} Zernike coefficients are supported, got {len(c)}"
        )
    out = np.zeros(n_coeffs, dtype=float)
    out[: len(c)] = c
    return out


def zernike_phase(
    coeffs: np.ndarray,
    norm_radius: np.ndarray,
    angle: np.ndarray,
    terms: Sequence[ZernikeTerm] = TERM_TABLE,
) -> np.ndarray:
    """Sum the Zernike expansion at (norm_radius, angle).

    Args:
        coeffs: Coefficient vector in the slot convention above (microns).
        norm_radius: Radius normalized by the measured pupil radius.
        angle: Polar angle in radians.
        terms: Expansion terms; slots not covered are ignored.

    Returns:
        Phase (wavefront) in microns, same shape as norm_radius.
    """
    r = np.asarray(norm_radius, dtype=float)
    theta = np.asarray(angle, dtype=float)
    phase = np.zeros(np.broadcast(r, theta).shape, dtype=float)
    for term in terms:
        if term.index < 0 or term.index >= len(coeffs):
            continue
        c = coeffs[term.index]
        if c == 0.0:
            continue
        phase += c * term.evaluate(r, theta)
    return phase
