import numpy as np
import pytest
from scipy.special import sph_harm_y

from sphfit.indexing import DegreeBlock, harmonic_count, ml_to_index


def _real_sph_harm(m: int, l: int, theta: np.ndarray, phi: np.ndarray) -> np.ndarray:  # noqa: E741
    """Orthonormal real spherical harmonic (theta=colat, phi=azimuth)."""
    y = sph_harm_y(l, abs(m), theta, phi)
    if m == 0:
        return y.real
    if m > 0:
        return np.sqrt(2.0) * (-1) ** m * y.real
    return np.sqrt(2.0) * (-1) ** m * y.imag


def fibonacci_sphere(n_points: int) -> tuple[np.ndarray, np.ndarray]:
    """Nearly uniform (colatitude, azimuth) samples on the unit sphere."""
    i = np.arange(n_points, dtype=np.float64) + 0.5
    colatitudes = np.arccos(1.0 - 2.0 * i / n_points)
    azimuths = np.mod(np.pi * (1.0 + np.sqrt(5.0)) * i, 2.0 * np.pi)
    return colatitudes, azimuths


def build_sh_basis(lmax: int, colatitudes: np.ndarray, azimuths: np.ndarray) -> np.ndarray:
    basis = np.empty((harmonic_count(lmax), colatitudes.size), dtype=np.float64)
    for l in range(lmax + 1):  # noqa: E741
        for m in range(-l, l + 1):
            basis[ml_to_index(m, l)] = _real_sph_harm(m, l, colatitudes, azimuths)
    return basis


@pytest.fixture
def sh_basis():
    """Real spherical-harmonic basis up to degree 2 on 400 Fibonacci points."""
    colatitudes, azimuths = fibonacci_sphere(400)
    return build_sh_basis(2, colatitudes, azimuths)


@pytest.fixture
def orthonormal_basis():
    """(4, 6) basis matrix with orthonormal rows."""
    rng = np.random.default_rng(7)
    q, _ = np.linalg.qr(rng.standard_normal((6, 4)))
    return q.T


@pytest.fixture
def pinned_problem():
    """
    Basis whose monopole row dominates and is excluded from damping.

    The degree-1 rows are small, so the first step does not overshoot and
    the iteration converges to its fixed point in a few steps.
    """
    basis = np.array(
        [
            [1.0, 1.0, 1.0, 1.0],
            [0.1, 0.0, 0.0, 0.0],
            [0.0, 0.1, 0.0, 0.0],
            [0.0, 0.0, 0.1, 0.0],
        ]
    )
    samples = np.ones(4)
    blocks = [DegreeBlock(0, 0, 1), DegreeBlock(1, 1, 4)]
    return basis, samples, blocks


_HADAMARD = np.array(
    [
        [1.0, 1.0, 1.0, 1.0],
        [1.0, -1.0, 1.0, -1.0],
        [1.0, 1.0, -1.0, -1.0],
        [1.0, -1.0, -1.0, 1.0],
    ]
)


@pytest.fixture
def backtracking_problem():
    """
    Orthogonal rows where the row 2 mode starts with gain 2*lambda*D*|m|^2 ~ 3.1.

    The first step at the initial lambda overshoots, so lambda is halved
    twice before the iteration settles into a contraction of ~0.78 per step.
    """
    basis = np.diag([1.6, 0.1, 1.0, 0.1]) @ _HADAMARD
    samples = np.array([1.0, 1.0, 0.04, 0.0]) @ _HADAMARD
    blocks = [DegreeBlock(0, 0, 1), DegreeBlock(1, 1, 4)]
    return basis, samples, blocks


@pytest.fixture
def stalled_problem():
    """
    Orthogonal rows where one step is accepted and the next overshoots.

    Any smaller lambda moves the fixed point of row 1 further than the
    last accepted step, so backtracking cannot recover.
    """
    basis = np.diag([2.0, 0.1, 1.0, 0.1]) @ _HADAMARD
    samples = np.array([1.0, 1.0, 0.01, 0.0]) @ _HADAMARD
    blocks = [DegreeBlock(0, 0, 1), DegreeBlock(1, 1, 4)]
    return basis, samples, blocks
