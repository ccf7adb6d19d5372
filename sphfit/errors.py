"""Exceptions raised by the fitting routines."""

from __future__ import annotations


class InvalidShapeError(ValueError):
    """Basis matrix and sample vector do not have compatible shapes."""


class DegenerateSamplesError(ValueError):
    """Sample vector cannot be normalized or fitted (empty, zero, non-finite)."""


class ConvergenceError(RuntimeError):
    """The regularized iteration cannot reach its tolerance within budget."""

    def __init__(
        self,
        message: str,
        *,
        lam: float,
        delta: float,
        tol: float,
        n_evaluations: int,
    ):
        super().__init__(message)
        self.lam = lam
        self.delta = delta
        self.tol = tol
        self.n_evaluations = n_evaluations
