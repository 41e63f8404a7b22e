"""Regression metrics for comparing computed PSFs against reference data."""

from __future__ import annotations
import numpy as np
from typing import List, Dict, Any


def relative_error(actual: np.ndarray, reference: np.ndarray) -> np.ndarray:
    """Per-sample |actual - reference| / |reference|.

    Where the reference is exactly zero the absolute error is returned.
    """
    actual = np.asarray(actual, dtype=float)
    reference = np.asarray(reference, dtype=float)
    if actual.shape != reference.shape:
        raise ValueError(f"Shape mismatch: {actual.shape} vs {reference.shape}")
    diff = np.abs(actual - reference)
    denom = np.abs(reference)
    return np.where(denom > 0, diff / np.where(denom > 0, denom, 1.0), diff)


def rmse_lines(actual: np.ndarray, reference: np.ndarray) -> float:
    """RMSE between two PSF cross-sections."""
    diff = np.asarray(actual, dtype=float) - np.asarray(reference, dtype=float)
    if diff.size == 0:
        return 0.0
    return float(np.sqrt(np.mean(diff**2)))


def compare_psf_line(
    actual: np.ndarray,
    reference: np.ndarray,
    rtol: float = 1e-6,
    atol: float = 0.0,
) -> Dict[str, Any]:
    """Compare a computed PSF line with a reference line.

    A sample passes when its relative error is below rtol or its absolute
    error is at most atol.
    """
    actual = np.asarray(actual, dtype=float)
    reference = np.asarray(reference, dtype=float)
    rel = relative_error(actual, reference)
    abs_err = np.abs(actual - reference)
    ok = (rel < rtol) | (abs_err <= atol)
    return {
        "success": bool(np.all(ok)),
        "max_rel_error": float(np.max(rel)) if rel.size else 0.0,
        "max_abs_error": float(np.max(abs_err)) if abs_err.size else 0.0,
        "rmse": rmse_lines(actual, reference),
        "n_failed": int(np.count_nonzero(~ok)),
    }


def success_rate(results: List[Dict[str, Any]]) -> float:
    """Compute success rate from a list of result dicts."""
    if not results:
        return 0.0
    n_success = sum(1 for r in results if r.get("success", False))
    return n_success / len(results)
