"""
Adaptive regularized spherical-harmonic fit.

Jointly estimates the coefficients c and a regularization strength lambda
by the fixed-point iteration

    c_{k+1} = 2 lambda (D M f - D M M^T c_k)

where M is the (B, N) basis matrix, f the normalized samples and D the
degree penalty l(l+1) applied block-wise to the rows of M. Lambda starts at
the Rayleigh quotient |f|^2 / |M f|^2 and is divided by 1/alpha whenever a
proposed step is not shorter than the previous one, so lambda never grows
and accepted step lengths strictly decrease.

Edge values of lambda:
    0    -- representation is the constant mean
    inf  -- representation is the least squares fit
"""

from __future__ import annotations

import logging
from typing import Callable, Sequence, TypeVar

import numpy as np

from sphfit import config
from sphfit.analysis.inputs import validate_fit_inputs
from sphfit.analysis.scaling import scale_samples
from sphfit.analysis.types import FitConfig, RegularizedFit, ScaleRecord
from sphfit.errors import ConvergenceError, DegenerateSamplesError
from sphfit.indexing import DegreeBlock, degree_blocks, validate_degree_blocks

logger = logging.getLogger(__name__)

ArrayT = TypeVar("ArrayT")


def damp_basis(basis: np.ndarray, blocks: Sequence[DegreeBlock]) -> np.ndarray:
    """Copy of ``basis`` with each degree block scaled by l(l+1)."""
    damped = np.array(basis, dtype=np.float64)
    for block in blocks:
        damped[block.start : block.stop] *= block.penalty
    return damped


class _Problem:
    """Normalized inputs shared by the numpy and torch engines."""

    __slots__ = ("basis", "samples", "damped", "scale", "lam", "tol")

    def __init__(
        self,
        basis: np.ndarray,
        samples: np.ndarray,
        fit_config: FitConfig,
        blocks: Sequence[DegreeBlock] | None,
    ):
        basis, samples, lmax = validate_fit_inputs(basis, samples)
        n_basis = basis.shape[0]
        if blocks is None:
            blocks = degree_blocks(lmax)
        else:
            blocks = validate_degree_blocks(blocks, n_basis)

        self.scale: ScaleRecord = scale_samples(samples)

        projection = basis @ samples
        projection_energy = float(projection @ projection)
        if projection_energy == 0.0:
            raise DegenerateSamplesError(
                "samples are orthogonal to every basis function"
            )

        self.basis = basis
        self.samples = samples
        self.damped = damp_basis(basis, blocks)
        self.lam = float(samples @ samples) / projection_energy
        self.tol = fit_config.resolve_tolerance(n_basis)


def _iterate(
    propose: Callable[[ArrayT, float], ArrayT],
    distance: Callable[[ArrayT, ArrayT], float],
    coeffs: ArrayT,
    lam: float,
    tol: float,
    fit_config: FitConfig,
) -> tuple[ArrayT | None, float, dict]:
    """
    Run the backtracking fixed-point loop.

    Returns the accepted coefficients (None once lambda has collapsed to
    zero), the final lambda and the iteration bookkeeping. Lambda may only
    collapse before the first accepted step; reaching the floor later
    raises ConvergenceError.
    """
    lam_floor = fit_config.lambda_floor * lam
    contraction = fit_config.contraction

    proposal = propose(coeffs, lam)
    delta = distance(proposal, coeffs)
    coeffs = proposal
    n_evaluations = 1
    n_iterations = 0
    n_backtracks = 0
    deltas = [delta]
    lambdas = [lam]

    def bookkeeping(collapsed: bool) -> dict:
        return {
            "delta": delta,
            "n_iterations": n_iterations,
            "n_backtracks": n_backtracks,
            "collapsed": collapsed,
            "deltas": np.asarray(deltas, dtype=np.float64),
            "lambdas": np.asarray(lambdas, dtype=np.float64),
        }

    while delta >= tol:
        previous = delta
        while True:
            if n_evaluations >= fit_config.max_iterations:
                raise ConvergenceError(
                    f"no convergence after {n_evaluations} evaluations "
                    f"(delta={delta:.3e}, tol={tol:.3e}, lambda={lam:.3e})",
                    lam=lam,
                    delta=delta,
                    tol=tol,
                    n_evaluations=n_evaluations,
                )
            proposal = propose(coeffs, lam)
            delta = distance(proposal, coeffs)
            n_evaluations += 1
            if delta < previous:
                break
            lam /= contraction
            n_backtracks += 1
            if lam <= lam_floor and n_iterations > 0:
                raise ConvergenceError(
                    f"lambda fell below {lam_floor:.3e} after {n_iterations} "
                    f"accepted steps (delta={previous:.3e}, tol={tol:.3e})",
                    lam=lam,
                    delta=previous,
                    tol=tol,
                    n_evaluations=n_evaluations,
                )
            if lam <= lam_floor:
                logger.warning(
                    "Lambda collapsed below %.3e after %d backtracks; "
                    "returning the constant-mean fit",
                    lam_floor,
                    n_backtracks,
                )
                delta = previous
                return None, 0.0, bookkeeping(collapsed=True)

        coeffs = proposal
        n_iterations += 1
        deltas.append(delta)
        lambdas.append(lam)
        logger.debug(
            "Step %d: delta=%.3e lambda=%.3e (%d backtracks so far)",
            n_iterations,
            delta,
            lam,
            n_backtracks,
        )

    return coeffs, lam, bookkeeping(collapsed=False)


def _assemble(
    problem: _Problem,
    harmonics: np.ndarray | None,
    lam: float,
    stats: dict,
) -> RegularizedFit:
    n_basis = problem.basis.shape[0]
    coefficients = np.zeros(n_basis + 1, dtype=np.float64)
    coefficients[config.MEAN_SLOT] = problem.scale.mean
    if harmonics is not None:
        coefficients[config.MEAN_SLOT + 1 :] = problem.scale.restore(harmonics)

    result = RegularizedFit(
        coefficients=coefficients,
        lam=lam,
        initial_lam=problem.lam,
        tol=problem.tol,
        scale=problem.scale,
        **stats,
    )
    logger.info(
        "Regularized fit: %d steps, %d backtracks, lambda=%.3e, delta=%.3e%s",
        result.n_iterations,
        result.n_backtracks,
        result.lam,
        result.delta,
        " (collapsed)" if result.collapsed else "",
    )
    return result


def fit_regularized(
    basis: np.ndarray,
    samples: np.ndarray,
    fit_config: FitConfig | None = None,
    blocks: Sequence[DegreeBlock] | None = None,
) -> RegularizedFit:
    """
    Fit spherical-harmonic coefficients with adaptive smoothing.

    Args:
        basis: (B, N) basis matrix, one row per harmonic in
            :func:`sphfit.indexing.ml_to_index` order, B = (lmax+1)^2
        samples: (N,) function values at the basis sample locations
        fit_config: Tolerance, backtracking and budget settings
        blocks: Degree-block row bounds used for damping. Defaults to
            degrees 1..lmax of the standard ordering.

    Returns:
        RegularizedFit with the mean in slot 0 of the coefficients.

    Raises:
        InvalidShapeError: basis and samples are incompatible
        DegenerateSamplesError: samples are empty, zero, non-finite, or
            orthogonal to the basis
        ConvergenceError: the evaluation budget ran out, or lambda reached
            its floor after accepted steps
    """
    fit_config = fit_config or FitConfig()
    problem = _Problem(basis, samples, fit_config, blocks)

    damped = problem.damped
    basis_t = problem.basis.T
    damped_samples = damped @ problem.samples

    def propose(coeffs: np.ndarray, lam: float) -> np.ndarray:
        return 2.0 * lam * (damped_samples - damped @ (basis_t @ coeffs))

    def distance(new: np.ndarray, old: np.ndarray) -> float:
        return float(np.linalg.norm(new - old))

    harmonics, lam, stats = _iterate(
        propose,
        distance,
        np.zeros(problem.basis.shape[0], dtype=np.float64),
        problem.lam,
        problem.tol,
        fit_config,
    )
    return _assemble(problem, harmonics, lam, stats)
