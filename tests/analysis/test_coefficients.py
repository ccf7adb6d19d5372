import numpy as np
import pytest

from sphfit.analysis.coefficients import pack_coefficients, reconstruct, rms_residual
from sphfit.errors import InvalidShapeError
from sphfit.indexing import coefficient_index, harmonic_count


def test_pack_coefficients_recovers_assigned_values():
    lmax = 3
    coefficients = np.zeros(harmonic_count(lmax) + 1)
    coefficients[0] = -99.0  # mean, never packed
    for l in range(lmax + 1):  # noqa: E741
        for m in range(-l, l + 1):
            coefficients[coefficient_index(m, l)] = 100.0 * l + m

    a, b = pack_coefficients(coefficients)

    assert a.shape == b.shape == (lmax + 1, lmax + 1)
    for l in range(lmax + 1):  # noqa: E741
        for m in range(l + 1):
            assert a[m, l] == 100.0 * l + m
            expected_b = 100.0 * l - m if m > 0 else 0.0
            assert b[m, l] == expected_b


def test_pack_coefficients_leaves_order_above_degree_empty():
    coefficients = np.arange(1.0, 11.0)  # lmax = 2

    a, b = pack_coefficients(coefficients)

    lower = np.tril_indices(3, k=-1)
    assert np.all(a[lower] == 0.0)
    assert np.all(b[lower] == 0.0)
    assert np.all(b[0] == 0.0)


def test_pack_coefficients_lmax_zero():
    a, b = pack_coefficients(np.array([5.0, 2.0]))
    np.testing.assert_array_equal(a, [[2.0]])
    np.testing.assert_array_equal(b, [[0.0]])


@pytest.mark.parametrize(
    "coefficients",
    [np.zeros(9), np.zeros(1), np.zeros(0), np.zeros((2, 5))],
)
def test_pack_coefficients_rejects_bad_length(coefficients):
    with pytest.raises(InvalidShapeError):
        pack_coefficients(coefficients)


def test_reconstruct_uses_harmonics_only():
    basis = np.eye(4)
    coefficients = np.array([7.0, 1.0, 2.0, 3.0, 4.0])

    np.testing.assert_allclose(reconstruct(basis, coefficients), [1.0, 2.0, 3.0, 4.0])


def test_reconstruct_rejects_mismatched_vector():
    with pytest.raises(InvalidShapeError):
        reconstruct(np.eye(4), np.zeros(4))


def test_rms_residual():
    basis = np.eye(4)
    coefficients = np.array([0.0, 1.0, 2.0, 3.0, 4.0])

    assert rms_residual(basis, coefficients, [1.0, 2.0, 3.0, 4.0]) == 0.0
    assert rms_residual(basis, coefficients, [2.0, 3.0, 4.0, 5.0]) == pytest.approx(1.0)
