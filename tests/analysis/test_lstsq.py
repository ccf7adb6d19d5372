"""Tests for the truncated-SVD reference solver."""

import numpy as np
import pytest

from sphfit.analysis.coefficients import pack_coefficients, reconstruct
from sphfit.analysis.lstsq import fit_lstsq
from sphfit.errors import DegenerateSamplesError, InvalidShapeError
from sphfit.indexing import coefficient_index


def test_recovers_single_basis_row(orthonormal_basis):
    samples = orthonormal_basis[2].copy()

    result = fit_lstsq(orthonormal_basis, samples)

    expected = np.zeros(4)
    expected[2] = 1.0
    np.testing.assert_allclose(result.harmonics, expected, atol=1e-12)
    assert result.mean == pytest.approx(samples.mean())
    assert result.rank == 4
    assert result.status == 0
    assert result.ok
    np.testing.assert_allclose(result.singular_values, 1.0, rtol=1e-12)


def test_matches_numpy_lstsq():
    rng = np.random.default_rng(11)
    basis = rng.standard_normal((9, 40))
    samples = rng.standard_normal(40)

    result = fit_lstsq(basis, samples)

    expected, *_ = np.linalg.lstsq(basis.T, samples, rcond=None)
    np.testing.assert_allclose(result.harmonics, expected, rtol=1e-10, atol=1e-12)
    np.testing.assert_allclose(
        result.singular_values,
        np.linalg.svd(basis, compute_uv=False),
        rtol=1e-10,
    )
    assert result.lmax == 2
    assert result.rcond == -1.0


def test_rank_deficient_basis():
    rng = np.random.default_rng(5)
    basis = rng.standard_normal((4, 8))
    basis[1] = basis[0]
    samples = rng.standard_normal(8)

    result = fit_lstsq(basis, samples, rcond=1e-10)

    assert result.rank == 3
    assert result.singular_values.shape == (4,)
    assert result.singular_values[-1] < 1e-10 * result.singular_values[0]
    assert result.status == 0
    # Minimum-norm solution splits weight evenly between duplicate rows
    assert result.harmonics[0] == pytest.approx(result.harmonics[1])


def test_underdetermined_system_interpolates():
    rng = np.random.default_rng(2)
    basis = rng.standard_normal((4, 3))
    samples = np.array([1.0, -2.0, 0.5])

    result = fit_lstsq(basis, samples)

    assert result.singular_values.shape == (3,)
    assert result.rank == 3
    np.testing.assert_allclose(reconstruct(basis, result.coefficients), samples, atol=1e-10)


def test_spherical_harmonic_field_round_trip(sh_basis):
    rng = np.random.default_rng(17)
    true = rng.standard_normal(sh_basis.shape[0])
    samples = sh_basis.T @ true

    result = fit_lstsq(sh_basis, samples)

    np.testing.assert_allclose(result.harmonics, true, rtol=1e-8, atol=1e-10)
    a, b = pack_coefficients(result.coefficients)
    assert a[1, 2] == pytest.approx(true[coefficient_index(1, 2) - 1])
    assert b[1, 2] == pytest.approx(true[coefficient_index(-1, 2) - 1])


def test_caller_samples_are_not_modified(orthonormal_basis):
    samples = 5.0 * orthonormal_basis[0]
    before = samples.copy()

    fit_lstsq(orthonormal_basis, samples)

    np.testing.assert_array_equal(samples, before)


def test_shape_mismatch_fails_before_solving():
    with pytest.raises(InvalidShapeError):
        fit_lstsq(np.ones((4, 3)), np.ones(4))


def test_zero_samples_rejected():
    with pytest.raises(DegenerateSamplesError):
        fit_lstsq(np.eye(4), np.zeros(4))
