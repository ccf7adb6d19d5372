"""Regularized spherical-harmonic fitting of scattered samples on a sphere."""

from sphfit.analysis import (
    FitConfig,
    FitMethod,
    LeastSquaresFit,
    RegularizedFit,
    ScaleRecord,
    fit,
    fit_lstsq,
    fit_regularized,
    fit_regularized_torch,
    pack_coefficients,
    reconstruct,
    rms_residual,
    scale_samples,
)
from sphfit.errors import ConvergenceError, DegenerateSamplesError, InvalidShapeError
from sphfit.indexing import (
    DegreeBlock,
    coefficient_index,
    degree_blocks,
    harmonic_count,
    index_to_ml,
    ml_to_index,
)

__all__ = [
    "ConvergenceError",
    "DegenerateSamplesError",
    "DegreeBlock",
    "FitConfig",
    "FitMethod",
    "InvalidShapeError",
    "LeastSquaresFit",
    "RegularizedFit",
    "ScaleRecord",
    "coefficient_index",
    "degree_blocks",
    "fit",
    "fit_lstsq",
    "fit_regularized",
    "fit_regularized_torch",
    "harmonic_count",
    "index_to_ml",
    "ml_to_index",
    "pack_coefficients",
    "reconstruct",
    "rms_residual",
    "scale_samples",
]
