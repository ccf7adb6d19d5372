"""Spherical-harmonic fitting: regularized engine and reference solver."""

from __future__ import annotations

import numpy as np

from sphfit.analysis.coefficients import pack_coefficients, reconstruct, rms_residual
from sphfit.analysis.lstsq import fit_lstsq
from sphfit.analysis.regularized import damp_basis, fit_regularized
from sphfit.analysis.regularized_torch import HAS_TORCH, fit_regularized_torch
from sphfit.analysis.scaling import scale_samples
from sphfit.analysis.types import (
    FitConfig,
    FitMethod,
    LeastSquaresFit,
    RegularizedFit,
    ScaleRecord,
    parse_fit_method,
)


def fit(
    basis: np.ndarray,
    samples: np.ndarray,
    method: FitMethod | str | None = None,
    fit_config: FitConfig | None = None,
    rcond: float | None = None,
    device: str | None = None,
) -> RegularizedFit | LeastSquaresFit:
    """
    Fit with the requested method (regularized by default).

    A ``device`` runs the regularized fit on the torch backend; the
    least-squares solver always runs through LAPACK on the CPU.
    """
    method = parse_fit_method(method)
    if method is FitMethod.LSTSQ:
        return fit_lstsq(basis, samples, rcond=rcond)
    if device is not None:
        return fit_regularized_torch(basis, samples, fit_config, device=device)
    return fit_regularized(basis, samples, fit_config)


__all__ = [
    "HAS_TORCH",
    "FitConfig",
    "FitMethod",
    "LeastSquaresFit",
    "RegularizedFit",
    "ScaleRecord",
    "damp_basis",
    "fit",
    "fit_lstsq",
    "fit_regularized",
    "fit_regularized_torch",
    "pack_coefficients",
    "parse_fit_method",
    "reconstruct",
    "rms_residual",
    "scale_samples",
]
