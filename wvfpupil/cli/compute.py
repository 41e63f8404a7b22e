"""CLI: Compute the pupil function and PSF for one subject and save to disk."""

from __future__ import annotations
import argparse
import logging
import os
import numpy as np

from wvfpupil.config import DEFAULT_CONFIG, load_experiment_config, merge_configs
from wvfpupil.optics.pipeline import pupil_pipeline
from wvfpupil.optics.pupil import PupilFunctionEngine
from wvfpupil.optics.sce import sce_as_dict

logger = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Compute pupil function and PSF")
    parser.add_argument("--config", default=None, help="Config YAML path")
    parser.add_argument("--coeffs", default=None, help="Zernike coefficient table (overrides config)")
    parser.add_argument("--subject", type=int, default=None, help="Subject column, from 1")
    parser.add_argument("--wavelength", type=float, default=None, help="Wavelength in nm")
    parser.add_argument(
        "--measured-wavelength", type=float, default=None, help="In-focus wavelength of the measurement, nm"
    )
    parser.add_argument("--defocus", type=float, default=None, help="Defocus in diopters")
    parser.add_argument("--output", default=None, help="Output .npz path")
    parser.add_argument("--legacy-pi", action="store_true", help="Use the 3.1416 reference constant")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    cfg = load_experiment_config(args.config) if args.config else merge_configs(DEFAULT_CONFIG, {})
    if args.coeffs is not None:
        cfg["zernike"] = dict(cfg.get("zernike") or {}, coefficients_file=args.coeffs)
    if args.subject is not None:
        cfg["zernike"] = dict(cfg.get("zernike") or {}, subject=args.subject)
    if args.wavelength is not None:
        cfg["wavelength_nm"] = args.wavelength
    if args.measured_wavelength is not None:
        cfg["measured_wavelength_nm"] = args.measured_wavelength
    if args.defocus is not None:
        cfg["defocus_diopters"] = args.defocus

    result = pupil_pipeline(cfg, engine=PupilFunctionEngine(legacy_pi=args.legacy_pi))
    params = result["params"]

    out_path = args.output
    if out_path is None:
        out_dir = cfg["output"]["dir"]
        subject = cfg["zernike"].get("subject", 1)
        out_path = os.path.join(
            out_dir,
            f"pupil_subj{subject}_calcpupil{params.calculated_pupil_diameter_mm:g}"
            f"_wavelength{np.atleast_1d(params.wavelength_nm)[0]:g}.npz",
        )
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)

    extra = {}
    if params.sce_params is not None:
        sce = sce_as_dict(params.sce_params)
        extra = {f"sce_{k}": np.asarray(v) for k, v in sce.items()}
    np.savez(
        out_path,
        coeffs=result["coeffs"],
        pupil_function=params.pupil_function,
        phase=result["phase"],
        amplitude=result["amplitude"],
        psf=result["psf"],
        psf_line=result["psf_line"],
        psf_line_centered=result["psf_line_centered"],
        arcmin=result["arcmin"],
        illuminated_pixel_count=params.illuminated_pixel_count,
        apodized_area_sum=params.apodized_area_sum,
        **extra,
    )
    logger.info(
        "Strehl %.4f, %d pixels in aperture; saved %s",
        result["strehl"], params.illuminated_pixel_count, out_path,
    )
    return out_path


if __name__ == "__main__":
    main()
