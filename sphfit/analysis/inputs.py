"""Shape checks shared by the fitting routines."""

from __future__ import annotations

import numpy as np

from sphfit.errors import InvalidShapeError
from sphfit.indexing import lmax_from_count


def validate_fit_inputs(
    basis: np.ndarray, samples: np.ndarray
) -> tuple[np.ndarray, np.ndarray, int]:
    """
    Check a (B, N) basis matrix against an (N,) sample vector.

    Returns float64 copies of both arrays and the maximum degree implied
    by B. Raises InvalidShapeError before any numerical work is done.
    """
    basis = np.array(basis, dtype=np.float64)
    samples = np.array(samples, dtype=np.float64)

    if basis.ndim != 2:
        raise InvalidShapeError(f"basis must be 2D, got shape {basis.shape}")
    if samples.ndim != 1:
        raise InvalidShapeError(f"samples must be 1D, got shape {samples.shape}")

    n_basis, n_locations = basis.shape
    if n_locations != samples.size:
        raise InvalidShapeError(
            f"basis has {n_locations} columns but samples has {samples.size} entries"
        )
    try:
        lmax = lmax_from_count(n_basis)
    except ValueError as exc:
        raise InvalidShapeError(f"basis row count: {exc}") from None

    return basis, samples, lmax
