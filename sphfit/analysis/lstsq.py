"""
Unregularized reference fit via LAPACK's SVD least-squares driver (gelss).

Used to validate the regularized fit and to handle ill-conditioned inputs
where the adaptive iteration is undesirable.
"""

from __future__ import annotations

import logging

import numpy as np
from scipy.linalg import get_lapack_funcs

from sphfit import config
from sphfit.analysis.inputs import validate_fit_inputs
from sphfit.analysis.scaling import scale_samples
from sphfit.analysis.types import LeastSquaresFit

logger = logging.getLogger(__name__)


def fit_lstsq(
    basis: np.ndarray,
    samples: np.ndarray,
    rcond: float | None = None,
) -> LeastSquaresFit:
    """
    Least-squares spherical-harmonic fit with a truncated SVD.

    Args:
        basis: (B, N) basis matrix
        samples: (N,) function values
        rcond: Relative singular value cutoff; singular values at or below
            ``rcond * s_max`` are treated as zero. None uses machine precision.

    Returns:
        LeastSquaresFit with coefficients in physical units, the singular
        values of the basis, its numerical rank and the LAPACK status
        (0 success, -i illegal argument i, +i no convergence).
    """
    basis, samples, _ = validate_fit_inputs(basis, samples)
    scale = scale_samples(samples)

    n_basis, n_locations = basis.shape
    cond = config.MACHINE_PRECISION_RCOND if rcond is None else float(rcond)

    design = np.asfortranarray(basis.T)  # (N, B)
    # gelss overwrites the right-hand side with a solution of length B
    rhs = np.zeros(max(n_locations, n_basis), dtype=np.float64)
    rhs[:n_locations] = samples

    gelss, gelss_lwork = get_lapack_funcs(("gelss", "gelss_lwork"), (design, rhs))

    coefficients = np.empty(n_basis + 1, dtype=np.float64)
    coefficients[config.MEAN_SLOT] = scale.mean

    work, info = gelss_lwork(n_locations, n_basis, 1, cond)
    if info != 0:
        logger.warning("gelss workspace query failed with status %d", info)
        coefficients[config.MEAN_SLOT + 1 :] = np.nan
        return LeastSquaresFit(
            coefficients=coefficients,
            singular_values=np.full(min(n_basis, n_locations), np.nan),
            rank=0,
            status=int(info),
            rcond=cond,
            scale=scale,
        )
    lwork = max(int(np.real(work)), 1)

    _, solution, singular_values, rank, _, info = gelss(
        design, rhs, cond=cond, lwork=lwork
    )
    if info < 0:
        logger.warning("gelss rejected argument %d", -info)
    elif info > 0:
        logger.warning("gelss SVD failed to converge (%d superdiagonals)", info)

    coefficients[config.MEAN_SLOT + 1 :] = scale.restore(solution[:n_basis])
    logger.info(
        "Least-squares fit: rank %d of %d, status %d",
        rank,
        n_basis,
        info,
    )
    return LeastSquaresFit(
        coefficients=coefficients,
        singular_values=np.asarray(singular_values, dtype=np.float64),
        rank=int(rank),
        status=int(info),
        rcond=cond,
        scale=scale,
    )
