"""Command-line interface for fitting spherical-harmonic coefficients."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

import numpy as np

from sphfit import config
from sphfit.analysis import (
    FitConfig,
    FitMethod,
    LeastSquaresFit,
    fit,
    pack_coefficients,
    parse_fit_method,
    rms_residual,
)
from sphfit.errors import ConvergenceError


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments for a single fit."""
    parser = argparse.ArgumentParser(
        prog="python -m sphfit",
        description="Fit spherical harmonic coefficients to scattered samples",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--input",
        type=Path,
        required=True,
        help="NPZ file holding the basis matrix and the sample vector",
    )
    parser.add_argument(
        "--basis-key",
        default=config.BASIS_KEY,
        help="NPZ key of the (B, N) basis matrix",
    )
    parser.add_argument(
        "--samples-key",
        default=config.SAMPLES_KEY,
        help="NPZ key of the (N,) sample vector",
    )
    parser.add_argument(
        "--method",
        choices=[method.value for method in FitMethod],
        default=FitMethod.REGULARIZED.value,
        help="Fitting method",
    )
    parser.add_argument(
        "--tol",
        type=float,
        default=None,
        help="Convergence tolerance (default: 1e-6 per basis row)",
    )
    parser.add_argument(
        "--alpha",
        type=float,
        default=config.DEFAULT_ALPHA,
        help="Backtracking factor for lambda, in (0, 1)",
    )
    parser.add_argument(
        "--max-iterations",
        type=int,
        default=config.DEFAULT_MAX_ITERATIONS,
        help="Budget of proposal evaluations for the regularized fit",
    )
    parser.add_argument(
        "--rcond",
        type=float,
        default=None,
        help="Relative singular value cutoff for lstsq (default: machine precision)",
    )
    parser.add_argument(
        "--device",
        default=None,
        help="Torch device for the regularized fit (cuda, mps, cpu); numpy when omitted",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable DEBUG-level logging",
    )
    return parser.parse_args(argv)


def _load_problem(
    path: Path, basis_key: str, samples_key: str
) -> tuple[np.ndarray, np.ndarray]:
    if not path.exists():
        raise FileNotFoundError(f"Input file {path} not found")
    data = np.load(path)
    if not isinstance(data, np.lib.npyio.NpzFile):
        raise ValueError(f"{path} is not an NPZ archive")
    with data:
        missing = [key for key in (basis_key, samples_key) if key not in data]
        if missing:
            raise KeyError(f"{path} is missing arrays: {', '.join(missing)}")
        return data[basis_key], data[samples_key]


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for a single spherical-harmonic fit."""
    args = parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    try:
        basis, samples = _load_problem(args.input, args.basis_key, args.samples_key)
    except (OSError, KeyError, ValueError) as exc:
        logging.error("Failed to load %s: %s", args.input, exc)
        return 1

    method = parse_fit_method(args.method)
    try:
        fit_config = None
        if method is FitMethod.REGULARIZED:
            fit_config = FitConfig(
                tol=args.tol,
                alpha=args.alpha,
                max_iterations=args.max_iterations,
            )
        result = fit(
            basis,
            samples,
            method=method,
            fit_config=fit_config,
            rcond=args.rcond,
            device=args.device,
        )
    except (ValueError, ConvergenceError, ImportError) as exc:
        logging.error("Fit failed: %s", exc)
        return 1

    if isinstance(result, LeastSquaresFit) and not result.ok:
        logging.error("Least-squares solver returned status %d", result.status)
        return 1

    a, b = pack_coefficients(result.coefficients)
    rms = rms_residual(basis, result.coefficients, samples)
    shown = min(result.lmax, 2)

    print("\n" + "=" * 60)
    print("Spherical Harmonic Fit Summary")
    print("=" * 60)
    print(f"Input           : {args.input}")
    print(f"Method          : {args.method}")
    print(f"Samples         : {np.asarray(samples).size}")
    print(f"Max degree      : lmax = {result.lmax}")
    print(f"Sample mean     : {result.mean:.6g}")
    if isinstance(result, LeastSquaresFit):
        print(f"Rank            : {result.rank} of {result.harmonics.size}")
        print(f"Singular values : {result.singular_values.max():.3e} - "
              f"{result.singular_values.min():.3e}")
    else:
        print(f"Lambda          : {result.lam:.6e} (start {result.initial_lam:.6e})")
        print(f"Steps           : {result.n_iterations} "
              f"({result.n_backtracks} backtracks)")
        if result.collapsed:
            print("Outcome         : collapsed to the constant-mean fit")
    print(f"RMS residual    : {rms:.6g}")
    for l in range(shown + 1):  # noqa: E741
        cos_terms = " ".join(f"{value:+.4e}" for value in a[: l + 1, l])
        sin_terms = " ".join(f"{value:+.4e}" for value in b[1 : l + 1, l])
        print(f"  l={l} a: {cos_terms}" + (f" | b: {sin_terms}" if sin_terms else ""))
    print("=" * 60)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
