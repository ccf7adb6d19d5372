from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

import numpy as np

from sphfit import config
from sphfit.indexing import lmax_from_count

logger = logging.getLogger(__name__)


class FitMethod(str, Enum):
    """Coefficient fitting method."""

    REGULARIZED = "regularized"
    LSTSQ = "lstsq"


def parse_fit_method(value: FitMethod | str | None) -> FitMethod:
    if value is None:
        return FitMethod.REGULARIZED
    if isinstance(value, FitMethod):
        return value
    try:
        return FitMethod(str(value))
    except ValueError:
        raise ValueError(f"Unknown fit_method: {value}") from None


@dataclass(slots=True)
class FitConfig:
    """
    Numeric settings for the regularized fit.

    Attributes:
        tol: Convergence tolerance on the step length. None means
            ``DEFAULT_TOLERANCE_PER_COEFFICIENT`` times the basis row count.
        alpha: Backtracking factor in (0, 1); lambda is multiplied by alpha
            each time a proposed step fails to shrink. Values outside the
            interval fall back to ``DEFAULT_ALPHA`` with a warning.
        max_iterations: Budget of proposal evaluations, counting accepted
            steps and backtracks together.
        lambda_floor: Relative floor on lambda. Once backtracking pushes
            lambda to ``lambda_floor * initial_lambda`` the fit collapses to
            lambda = 0, or raises ConvergenceError if a step was accepted.
    """

    tol: float | None = None
    alpha: float = config.DEFAULT_ALPHA
    max_iterations: int = config.DEFAULT_MAX_ITERATIONS
    lambda_floor: float = config.LAMBDA_FLOOR

    def __post_init__(self) -> None:
        if self.tol is not None and not self.tol > 0.0:
            raise ValueError(f"tol must be positive, got {self.tol}")
        if not 0.0 < self.alpha < 1.0:
            logger.warning(
                "alpha=%s outside (0, 1); using default %s",
                self.alpha,
                config.DEFAULT_ALPHA,
            )
            self.alpha = config.DEFAULT_ALPHA
        if self.max_iterations < 1:
            raise ValueError(
                f"max_iterations must be at least 1, got {self.max_iterations}"
            )
        if not 0.0 < self.lambda_floor < 1.0:
            raise ValueError(
                f"lambda_floor must lie in (0, 1), got {self.lambda_floor}"
            )

    @property
    def contraction(self) -> float:
        """Divisor applied to lambda on each backtrack."""
        return 1.0 / self.alpha

    def resolve_tolerance(self, n_basis: int) -> float:
        if self.tol is not None:
            return self.tol
        return config.DEFAULT_TOLERANCE_PER_COEFFICIENT * n_basis


@dataclass(frozen=True, slots=True)
class ScaleRecord:
    """Normalization applied to a sample vector."""

    mean: float
    scale: float

    def restore(self, values: np.ndarray) -> np.ndarray:
        """Map normalized values back to physical units."""
        return np.asarray(values, dtype=np.float64) * self.scale


@dataclass(slots=True)
class RegularizedFit:
    """Result of the adaptive regularized fit."""

    coefficients: np.ndarray  # (B + 1,), mean in slot 0
    lam: float
    initial_lam: float
    tol: float
    delta: float
    n_iterations: int
    n_backtracks: int
    collapsed: bool
    scale: ScaleRecord
    deltas: np.ndarray = field(repr=False)  # accepted step lengths
    lambdas: np.ndarray = field(repr=False)  # lambda of each accepted step

    @property
    def mean(self) -> float:
        return float(self.coefficients[config.MEAN_SLOT])

    @property
    def harmonics(self) -> np.ndarray:
        return self.coefficients[config.MEAN_SLOT + 1 :]

    @property
    def lmax(self) -> int:
        return lmax_from_count(self.harmonics.size)


@dataclass(slots=True)
class LeastSquaresFit:
    """Result of the truncated-SVD reference solve."""

    coefficients: np.ndarray  # (B + 1,), mean in slot 0
    singular_values: np.ndarray  # (min(B, N),), descending
    rank: int
    status: int  # 0 ok, <0 illegal argument at -status, >0 no convergence
    rcond: float
    scale: ScaleRecord

    @property
    def ok(self) -> bool:
        return self.status == 0

    @property
    def mean(self) -> float:
        return float(self.coefficients[config.MEAN_SLOT])

    @property
    def harmonics(self) -> np.ndarray:
        return self.coefficients[config.MEAN_SLOT + 1 :]

    @property
    def lmax(self) -> int:
        return lmax_from_count(self.harmonics.size)
