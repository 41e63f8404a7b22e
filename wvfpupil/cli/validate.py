"""CLI: Regression check of PSF cross-sections against historical reference data.

Each reference archive (.npz) holds the parameters it was computed with and
the reference cross-section:

    measured_pupil_mm, calculated_pupil_mm, field_sample_pixels,
    field_size_mm, wavelength_nm, defocus_diopters, sce (0/1), zcoeffs,
    psf_line [, measured_wavelength_nm, arcmin]

measured_wavelength_nm is the wavelength the eye was focused at when the
coefficients were measured; archives without it use NOMINAL_FOCUS_WAVELENGTH_NM.
"""

from __future__ import annotations
import argparse
import logging
import os
import sys
import numpy as np
import pandas as pd
from typing import Dict, Any, List

from wvfpupil.config import DEFAULT_CONFIG, merge_configs
from wvfpupil.data import load_reference_psf
from wvfpupil.eval.metrics import compare_psf_line, success_rate
from wvfpupil.exceptions import WavefrontError
from wvfpupil.optics.pipeline import pupil_pipeline
from wvfpupil.optics.pupil import PupilFunctionEngine

logger = logging.getLogger(__name__)

REFERENCE_CASES = (
    "SVNVer121_subj1_calcpupil3_defocus0_wavelength550_sce0",
    "SVNVer121_subj4_calcpupil3_defocus0_wavelength550_sce0",
    "SVNVer121_subj1_calcpupil3_defocus0_wavelength450_sce0",
    "SVNVer121_subj1_calcpupil5_defocus0_wavelength550_sce0",
    "SVNVer121_subj1_calcpupil3_defocus2_wavelength550_sce0",
    "SVNVer121_subj1_calcpupil3_defocus0_wavelength550_sce1",
    "SVNVer121_subj1_calcpupil3_defocus1_wavelength550_sce1",
)

NOMINAL_FOCUS_WAVELENGTH_NM = 550.0


def config_from_reference(ref: Dict[str, np.ndarray]) -> Dict[str, Any]:
    """Config dict reproducing the parameters stored with a reference case."""
    return merge_configs(
        DEFAULT_CONFIG,
        {
            "pupil": {
                "measured_pupil_mm": float(ref["measured_pupil_mm"]),
                "calculated_pupil_mm": float(ref["calculated_pupil_mm"]),
                "field_sample_pixels": int(ref["field_sample_pixels"]),
                "field_size_mm": float(ref["field_size_mm"]),
            },
            "wavelength_nm": float(ref["wavelength_nm"]),
            "measured_wavelength_nm": float(
                ref.get("measured_wavelength_nm", NOMINAL_FOCUS_WAVELENGTH_NM)
            ),
            "defocus_diopters": float(ref["defocus_diopters"]),
            "sce": {"preset": "berendschot" if int(ref["sce"]) == 1 else "none"},
            "zernike": {"coefficients_file": None},
        },
    )


def validate_case(
    path: str,
    engine: PupilFunctionEngine,
    rtol: float = 1e-6,
    atol: float = 0.0,
) -> Dict[str, Any]:
    """Recompute one reference case and compare the middle-row PSF."""
    ref = load_reference_psf(path)
    cfg = config_from_reference(ref)
    result = pupil_pipeline(cfg, coeffs=np.asarray(ref["zcoeffs"], dtype=float).ravel(), engine=engine)
    out = compare_psf_line(result["psf_line"], np.asarray(ref["psf_line"]).ravel(), rtol=rtol, atol=atol)
    out["case"] = os.path.splitext(os.path.basename(path))[0]
    out["strehl"] = result["strehl"]
    return out


def run_validation(
    reference_dir: str,
    cases=REFERENCE_CASES,
    rtol: float = 1e-6,
    atol: float = 0.0,
    legacy_pi: bool = True,
) -> List[Dict[str, Any]]:
    """Validate every case present in reference_dir; missing files are skipped."""
    engine = PupilFunctionEngine(legacy_pi=legacy_pi)
    records = []
    for case in cases:
        path = os.path.join(reference_dir, case + ".npz")
        if not os.path.exists(path):
            logger.warning("Reference file missing, skipped: %s", path)
            continue
        try:
            records.append(validate_case(path, engine, rtol=rtol, atol=atol))
        except WavefrontError as e:
            logger.error("Case %s failed to compute: %s", case, e)
            records.append({"case": case, "success": False, "error": str(e)})
    return records


def main(argv=None):
    parser = argparse.ArgumentParser(description="Validate PSFs against reference data")
    parser.add_argument("--reference-dir", required=True, help="Directory of reference .npz files")
    parser.add_argument("--rtol", type=float, default=1e-6)
    parser.add_argument("--atol", type=float, default=0.0)
    parser.add_argument("--exact-pi", action="store_true", help="Use numpy pi instead of 3.1416")
    parser.add_argument("--output", default=None, help="Results CSV path")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    records = run_validation(
        args.reference_dir, rtol=args.rtol, atol=args.atol, legacy_pi=not args.exact_pi
    )

    print("=" * 60)
    print("PSF REGRESSION VALIDATION")
    print("=" * 60)
    print(f"{'case':<56} {'max_rel':>10} {'result':>6}")
    print("-" * 74)
    for r in records:
        rel = r.get("max_rel_error", float("nan"))
        print(f"{r['case']:<56} {rel:10.2e} {'PASS' if r['success'] else 'FAIL':>6}")
    print("-" * 74)
    print(f"{len(records)} of {len(REFERENCE_CASES)} cases run, success rate {success_rate(records):.2f}")

    if args.output and records:
        os.makedirs(os.path.dirname(args.output) or ".", exist_ok=True)
        pd.DataFrame(records).to_csv(args.output, index=False)
        print(f"Results saved to {args.output}")

    if not records:
        logger.error("No reference cases found in %s", args.reference_dir)
        return 1
    failed = [r for r in records if not r["success"]]
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
