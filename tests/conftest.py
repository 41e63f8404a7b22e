"""Shared fixtures: the closed-form 10th-order Zernike expansion, written out term by term."""

import numpy as np
import pytest
from numpy import sqrt, sin, cos


def _closed_form(coeffs, r, a):
    # c[k] is the coefficient of OSA mode j=k; c[0] (piston) is unused.
    c = np.concatenate([[0.0], np.asarray(coeffs, dtype=float)])
    return (
        c[5] * sqrt(6) * r**2 * cos(2 * a)
        + c[3] * sqrt(6) * r**2 * sin(2 * a)
        + c[4] * sqrt(3) * (2 * r**2 - 1)
        + c[9] * sqrt(8) * r**3 * cos(3 * a)
        + c[6] * sqrt(8) * r**3 * sin(3 * a)
        + c[8] * sqrt(8) * (3 * r**3 - 2 * r) * cos(a)
        + c[7] * sqrt(8) * (3 * r**3 - 2 * r) * sin(a)
        + c[14] * sqrt(10) * r**4 * cos(4 * a)
        + c[10] * sqrt(10) * r**4 * sin(4 * a)
        + c[13] * sqrt(10) * (4 * r**4 - 3 * r**2) * cos(2 * a)
        + c[11] * sqrt(10) * (4 * r**4 - 3 * r**2) * sin(2 * a)
        + c[12] * sqrt(5) * (6 * r**4 - 6 * r**2 + 1)
        + c[20] * 2 * sqrt(3) * r**5 * cos(5 * a)
        + c[15] * 2 * sqrt(3) * r**5 * sin(5 * a)
        + c[19] * 2 * sqrt(3) * (5 * r**5 - 4 * r**3) * cos(3 * a)
        + c[16] * 2 * sqrt(3) * (5 * r**5 - 4 * r**3) * sin(3 * a)
        + c[18] * 2 * sqrt(3) * (10 * r**5 - 12 * r**3 + 3 * r) * cos(a)
        + c[17] * 2 * sqrt(3) * (10 * r**5 - 12 * r**3 + 3 * r) * sin(a)
        + c[27] * sqrt(14) * r**6 * cos(6 * a)
        + c[21] * sqrt(14) * r**6 * sin(6 * a)
        + c[26] * sqrt(14) * (6 * r**6 - 5 * r**4) * cos(4 * a)
        + c[22] * sqrt(14) * (6 * r**6 - 5 * r**4) * sin(4 * a)
        + c[25] * sqrt(14) * (15 * r**6 - 20 * r**4 + 6 * r**2) * cos(2 * a)
        + c[23] * sqrt(14) * (15 * r**6 - 20 * r**4 + 6 * r**2) * sin(2 * a)
        + c[24] * sqrt(7) * (20 * r**6 - 30 * r**4 + 12 * r**2 - 1)
        + c[35] * 4 * r**7 * cos(7 * a)
        + c[28] * 4 * r**7 * sin(7 * a)
        + c[34] * 4 * (7 * r**7 - 6 * r**5) * cos(5 * a)
        + c[29] * 4 * (7 * r**7 - 6 * r**5) * sin(5 * a)
        + c[33] * 4 * (21 * r**7 - 30 * r**5 + 10 * r**3) * cos(3 * a)
        + c[30] * 4 * (21 * r**7 - 30 * r**5 + 10 * r**3) * sin(3 * a)
        + c[32] * 4 * (35 * r**7 - 60 * r**5 + 30 * r**3 - 4 * r) * cos(a)
        + c[31] * 4 * (35 * r**7 - 60 * r**5 + 30 * r**3 - 4 * r) * sin(a)
        + c[44] * sqrt(18) * r**8 * cos(8 * a)
        + c[36] * sqrt(18) * r**8 * sin(8 * a)
        + c[43] * sqrt(18) * (8 * r**8 - 7 * r**6) * cos(6 * a)
        + c[37] * sqrt(18) * (8 * r**8 - 7 * r**6) * sin(6 * a)
        + c[42] * sqrt(18) * (28 * r**8 - 42 * r**6 + 15 * r**4) * cos(4 * a)
        + c[38] * sqrt(18) * (28 * r**8 - 42 * r**6 + 15 * r**4) * sin(4 * a)
        + c[41] * sqrt(18) * (56 * r**8 - 105 * r**6 + 60 * r**4 - 10 * r**2) * cos(2 * a)
        + c[39] * sqrt(18) * (56 * r**8 - 105 * r**6 + 60 * r**4 - 10 * r**2) * sin(2 * a)
        + c[40] * 3 * (70 * r**8 - 140 * r**6 + 90 * r**4 - 20 * r**2 + 1)
        + c[54] * sqrt(20) * r**9 * cos(9 * a)
        + c[45] * sqrt(20) * r**9 * sin(9 * a)
        + c[53] * sqrt(20) * (9 * r**9 - 8 * r**7) * cos(7 * a)
        + c[46] * sqrt(20) * (9 * r**9 - 8 * r**7) * sin(7 * a)
        + c[52] * sqrt(20) * (36 * r**9 - 56 * r**7 + 21 * r**5) * cos(5 * a)
        + c[47] * sqrt(20) * (36 * r**9 - 56 * r**7 + 21 * r**5) * sin(5 * a)
        + c[51] * sqrt(20) * (84 * r**9 - 168 * r**7 + 105 * r**5 - 20 * r**3) * cos(3 * a)
        + c[48] * sqrt(20) * (84 * r**9 - 168 * r**7 + 105 * r**5 - 20 * r**3) * sin(3 * a)
        + c[50] * sqrt(20) * (126 * r**9 - 280 * r**7 + 210 * r**5 - 60 * r**3 + 5 * r) * cos(a)
        + c[49] * sqrt(20) * (126 * r**9 - 280 * r**7 + 210 * r**5 - 60 * r**3 + 5 * r) * sin(a)
        + c[65] * sqrt(22) * r**10 * cos(10 * a)
        + c[55] * sqrt(22) * r**10 * sin(10 * a)
        + c[64] * sqrt(22) * (10 * r**10 - 9 * r**8) * cos(8 * a)
        + c[56] * sqrt(22) * (10 * r**10 - 9 * r**8) * sin(8 * a)
        + c[63] * sqrt(22) * (45 * r**10 - 72 * r**8 + 28 * r**6) * cos(6 * a)
        + c[57] * sqrt(22) * (45 * r**10 - 72 * r**8 + 28 * r**6) * sin(6 * a)
        + c[62] * sqrt(22) * (120 * r**10 - 252 * r**8 + 168 * r**6 - 35 * r**4) * cos(4 * a)
        + c[58] * sqrt(22) * (120 * r**10 - 252 * r**8 + 168 * r**6 - 35 * r**4) * sin(4 * a)
        + c[61] * sqrt(22) * (210 * r**10 - 504 * r**8 + 420 * r**6 - 140 * r**4 + 15 * r**2) * cos(2 * a)
        + c[59] * sqrt(22) * (210 * r**10 - 504 * r**8 + 420 * r**6 - 140 * r**4 + 15 * r**2) * sin(2 * a)
        + c[60] * sqrt(11) * (252 * r**10 - 630 * r**8 + 560 * r**6 - 210 * r**4 + 30 * r**2 - 1)
    )


@pytest.fixture
def closed_form_phase():
    return _closed_form


@pytest.fixture
def subject_coeffs():
    """A fixed, fully populated 65-coefficient vector (microns)."""
    rng = np.random.RandomState(1)
    c = rng.uniform(-0.1, 0.1, size=65) / np.repeat(np.arange(1, 11), np.arange(2, 12))[:65]
    return c


def _reference_loop(p):
    """Pixel-by-pixel pupil function with the reference constants (3.1416)."""
    n = p.field_sample_pixels
    c = np.zeros(65)
    c[: len(p.zernike_coefficients)] = p.zernike_coefficients
    wave = p.wavelength_nm / 1000
    pupil = np.zeros((n, n), dtype=complex)
    for ny in range(n):
        for nx in range(n):
            xpos = nx * (p.field_size_mm / n) - p.field_size_mm / 2
            ypos = ny * (p.field_size_mm / n) - p.field_size_mm / 2
            norm_radius = np.sqrt(xpos**2 + ypos**2) / (p.measured_pupil_diameter_mm / 2)
            if xpos == 0 and ypos > 0:
                angle = 3.1416 / 2
            elif xpos == 0 and ypos < 0:
                angle = -3.1416 / 2
            elif xpos == 0 and ypos == 0:
                angle = 0.0
            elif xpos > 0:
                angle = np.arctan(ypos / xpos)
            else:
                angle = 3.1416 + np.arctan(ypos / xpos)
            if norm_radius > p.calculated_pupil_diameter_mm / p.measured_pupil_diameter_mm:
                continue
            phase = _closed_form(c, norm_radius, angle)
            pupil[nx, ny] = np.exp(-1j * 2 * 3.1416 * phase / wave)
    return pupil


@pytest.fixture
def reference_pupil():
    return _reference_loop
