import nurbsfit as nfit
import numpy as np
import pytest


def test_scalar_times_scalar():
    A = np.array([[1.0, 2.0], [3.0, 4.0]])
    B = np.array([[5.0, 6.0], [7.0, 8.0]])
    C = nfit.matrix_multiply(A, B)
    assert C.shape == (2, 2)
    assert np.allclose(C, [[19.0, 22.0], [43.0, 50.0]])


def test_scalar_times_points():
    rng = np.random.default_rng(1)
    A = rng.random((3, 2))
    B = rng.random((2, 4, 3))
    C = nfit.matrix_multiply(A, B)
    assert C.shape == (3, 4, 3)
    for k in range(3):
        assert np.allclose(C[..., k], A @ B[..., k])


def test_points_times_scalar():
    rng = np.random.default_rng(2)
    A = rng.random((3, 2, 3))
    B = rng.random((2, 5))
    C = nfit.matrix_multiply(A, B)
    assert C.shape == (3, 5, 3)
    for k in range(3):
        assert np.allclose(C[..., k], A[..., k] @ B)


def test_points_times_points_is_componentwise():
    rng = np.random.default_rng(3)
    A = rng.random((2, 3, 3))
    B = rng.random((3, 2, 3))
    C = nfit.matrix_multiply(A, B)
    assert C.shape == (2, 2, 3)
    for k in range(3):
        assert np.allclose(C[..., k], A[..., k] @ B[..., k])


def test_multiply_dimension_mismatch():
    with pytest.raises(nfit.DimensionMismatch):
        nfit.matrix_multiply(np.ones((2, 3)), np.ones((2, 2)))
    with pytest.raises(nfit.DimensionMismatch):
        nfit.matrix_multiply(np.ones((2, 2, 2)), np.ones((2, 2)))


def test_matrix_vector_multiply():
    M = np.array([[1.0, 0.0, 2.0], [0.0, 1.0, 0.0]])
    v = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0], [7.0, 8.0, 9.0]])
    w = nfit.matrix_vector_multiply(M, v)
    assert w.shape == (2, 3)
    assert np.allclose(w, [[15.0, 18.0, 21.0], [4.0, 5.0, 6.0]])
    assert np.allclose(nfit.matrix_vector_multiply(M, np.array([1.0, 1.0, 1.0])), [3.0, 1.0])


def test_transpose_keeps_components_last():
    M = np.arange(18, dtype=float).reshape(2, 3, 3)
    T = nfit.matrix_transpose(M)
    assert T.shape == (3, 2, 3)
    for i in range(2):
        for j in range(3):
            assert np.allclose(T[j, i], M[i, j])


def test_inverse_round_trip():
    rng = np.random.default_rng(0)
    M = rng.random((6, 6)) + 6.0 * np.eye(6)
    M_inv = nfit.invert_matrix(M)
    assert np.allclose(M @ np.asarray(M_inv), np.eye(6), atol=1e-9)


def test_inverse_needs_pivoting():
    M = np.array([[0.0, 1.0], [1.0, 0.0]])
    assert np.allclose(nfit.invert_matrix(M), M)


def test_singular_matrix_with_zero_row():
    M = np.array([[1.0, 2.0, 3.0], [0.0, 0.0, 0.0], [4.0, 5.0, 6.0]])
    with pytest.raises(nfit.SingularSystem) as exc_info:
        nfit.invert_matrix(M)
    assert exc_info.value.code is nfit.ErrorCode.SINGULAR_SYSTEM


def test_singular_matrix_with_dependent_rows():
    with pytest.raises(nfit.SingularSystem):
        nfit.invert_matrix(np.array([[1.0, 2.0], [2.0, 4.0]]))


def test_invert_non_square():
    with pytest.raises(nfit.DimensionMismatch):
        nfit.invert_matrix(np.ones((2, 3)))


def test_grid_flattening_order():
    grid = np.arange(24, dtype=float).reshape(4, 2, 3)
    points = nfit.grid_to_points(grid)
    assert points.shape == (8, 3)
    for i in range(4):
        for j in range(2):
            assert np.allclose(points[i + j * 4], grid[i, j])
    assert np.allclose(nfit.points_to_grid(points, 4, 2), grid)


def test_get_and_set_matrix_lines():
    M = np.arange(18, dtype=float).reshape(3, 2, 3)
    assert np.allclose(nfit.get_matrix_line(M, 1, axis=0), M[:, 1])
    assert np.allclose(nfit.get_matrix_line(M, 2, axis=1), M[2, :])

    M_new = nfit.set_matrix_line(M, np.zeros((3, 3)), 0, axis=0)
    assert np.allclose(M_new[:, 0], 0.0)
    assert np.allclose(M_new[:, 1], M[:, 1])

    with pytest.raises(nfit.DimensionMismatch):
        nfit.set_matrix_line(M, np.zeros((2, 3)), 0, axis=0)
