"""
Conversions between flat coefficient vectors and degree/order matrices.

A coefficient vector holds the sample mean in slot 0 followed by one
coefficient per basis row. Harmonic synthesis libraries expect the
cosine-family (a) and sine-family (b) coefficients as matrices indexed
[order, degree].
"""

from __future__ import annotations

import math

import numpy as np

from sphfit import config
from sphfit.errors import InvalidShapeError
from sphfit.indexing import coefficient_index


def _lmax_from_vector(coefficients: np.ndarray) -> int:
    n_harmonics = coefficients.size - 1
    root = math.isqrt(n_harmonics) if n_harmonics > 0 else 0
    if n_harmonics <= 0 or root * root != n_harmonics:
        raise InvalidShapeError(
            f"coefficient vector of length {coefficients.size} is not "
            "(lmax + 1)^2 + 1 for any lmax"
        )
    return root - 1


def pack_coefficients(coefficients: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """
    Split a coefficient vector into (a, b) matrices of shape (lmax+1, lmax+1).

    ``a[m, l]`` is the coefficient of (m, l); ``b[m, l]`` is the coefficient
    of (-m, l) for m > 0 and zero for m = 0. Entries with m > l are zero.
    """
    coefficients = np.asarray(coefficients, dtype=np.float64)
    if coefficients.ndim != 1:
        raise InvalidShapeError(
            f"coefficient vector must be 1D, got shape {coefficients.shape}"
        )
    lmax = _lmax_from_vector(coefficients)

    a = np.zeros((lmax + 1, lmax + 1), dtype=np.float64)
    b = np.zeros((lmax + 1, lmax + 1), dtype=np.float64)
    for l in range(lmax + 1):  # noqa: E741
        for m in range(l + 1):
            a[m, l] = coefficients[coefficient_index(m, l)]
            if m > 0:
                b[m, l] = coefficients[coefficient_index(-m, l)]
    return a, b


def reconstruct(basis: np.ndarray, coefficients: np.ndarray) -> np.ndarray:
    """Evaluate the fitted field at the basis sample locations."""
    basis = np.asarray(basis, dtype=np.float64)
    coefficients = np.asarray(coefficients, dtype=np.float64)
    harmonics = coefficients[config.MEAN_SLOT + 1 :]
    if harmonics.size != basis.shape[0]:
        raise InvalidShapeError(
            f"{harmonics.size} harmonic coefficients for a basis with "
            f"{basis.shape[0]} rows"
        )
    return basis.T @ harmonics


def rms_residual(
    basis: np.ndarray, coefficients: np.ndarray, samples: np.ndarray
) -> float:
    """RMS difference between samples and the reconstructed field."""
    residuals = np.asarray(samples, dtype=np.float64) - reconstruct(
        basis, coefficients
    )
    return float(np.sqrt(np.mean(residuals**2)))
