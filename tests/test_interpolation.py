import nurbsfit as nfit
import numpy as np
import pytest

POINTS = np.array([
    [0.0, 0.0, 0.0],
    [1.0, 2.0, 0.0],
    [3.0, 3.0, 1.0],
    [4.0, 1.0, 2.0],
    [6.0, 0.0, 0.0],
    [7.0, 2.0, 1.0],
])


def _dense_evaluate(P, p, U, u):
    N = nfit.basis_matrix(p, U, u)
    return np.asarray(nfit.matrix_vector_multiply(N, P))


def test_curve_interpolation_is_exact():
    u = nfit.compute_parameter_values(POINTS, "chord")
    U = nfit.compute_knot_vector(u, 3, "average")
    P = nfit.solve_curve_control_points(POINTS, u, U, 3)
    assert P.shape == POINTS.shape
    assert np.allclose(_dense_evaluate(P, 3, U, u), POINTS, atol=1e-6)


def test_curve_interpolation_with_end_derivatives():
    points = POINTS[:5]
    D0 = np.array([3.0, 1.0, 0.0])
    DN = np.array([2.0, -1.0, 1.0])
    u = nfit.compute_parameter_values(points, "equal")
    U = nfit.compute_knot_vector(u, 3, "derivative")
    P = nfit.solve_curve_control_points(points, u, U, 3, D0, DN)
    assert P.shape == (7, 3)
    assert np.allclose(_dense_evaluate(P, 3, U, u), points, atol=1e-6)

    # First and last legs of the control polygon carry the end derivatives
    d0, dN = nfit.end_derivative_scales(3, U)
    assert np.allclose((P[1] - P[0]) / d0, D0, atol=1e-9)
    assert np.allclose((P[-1] - P[-2]) / dN, DN, atol=1e-9)


def test_derivative_rows_layout():
    N = np.arange(12, dtype=float).reshape(2, 6) + np.eye(2, 6)
    N = np.concatenate((N, np.ones((1, 6))), axis=0)[:, :5]
    system = nfit.add_derivative_rows(N)
    assert system.shape == (5, 5)
    assert np.allclose(system[0], N[0])
    assert np.allclose(system[1], [-1.0, 1.0, 0.0, 0.0, 0.0])
    assert np.allclose(system[2], N[1])
    assert np.allclose(system[3], [0.0, 0.0, 0.0, -1.0, 1.0])
    assert np.allclose(system[4], N[2])


def test_derivative_mode_requires_derivatives():
    u = nfit.compute_parameter_values(POINTS, "chord")
    U_plain = nfit.compute_knot_vector(u, 3, "average")
    U_derivative = nfit.compute_knot_vector(u, 3, "derivative")
    with pytest.raises(nfit.DimensionMismatch):
        nfit.solve_curve_control_points(POINTS, u, U_derivative, 3)
    with pytest.raises(nfit.DimensionMismatch):
        nfit.solve_curve_control_points(POINTS, u, U_plain, 3, D0=np.ones(3), DN=np.ones(3))
    with pytest.raises(nfit.DimensionMismatch):
        nfit.solve_curve_control_points(POINTS, u, U_derivative, 3, D0=np.ones(2), DN=np.ones(3))


def test_knot_length_mismatch():
    u = nfit.compute_parameter_values(POINTS, "chord")
    U = nfit.compute_knot_vector(u, 3, "average")
    with pytest.raises(nfit.DimensionMismatch):
        nfit.solve_curve_control_points(POINTS, u, U[1:], 3)
    with pytest.raises(nfit.DimensionMismatch):
        nfit.solve_curve_control_points(POINTS, u[1:], U, 3)


def test_surface_interpolation_is_exact():
    x, y = np.meshgrid(np.linspace(0.0, 2.0, 5), np.linspace(0.0, 1.0, 4), indexing="ij")
    grid = np.stack((x, y, np.sin(x) * np.cos(2.0 * y)), axis=-1)
    u = nfit.compute_grid_parameter_values(grid, "chord", axis=0)
    v = nfit.compute_grid_parameter_values(grid, "chord", axis=1)
    U = nfit.compute_knot_vector(u, 3, "average")
    V = nfit.compute_knot_vector(v, 2, "average")

    P = nfit.solve_surface_control_points(grid, u, v, U, V, 3, 2)
    assert P.shape == (5, 4, 3)

    NU = nfit.basis_matrix(3, U, u)
    NV = nfit.basis_matrix(2, V, v)
    S = nfit.matrix_multiply(nfit.matrix_multiply(NU, P), nfit.matrix_transpose(NV))
    assert np.allclose(S, grid, atol=1e-6)


def test_surface_right_hand_side_with_corner_twists():
    grid = np.arange(27, dtype=float).reshape(3, 3, 3)
    u = np.array([0.0, 0.5, 1.0])
    U = nfit.compute_knot_vector(u, 2, "derivative")
    V = nfit.compute_knot_vector(u, 2, "derivative")
    DU0 = np.full((3, 3), 1.0)
    DUN = np.full((3, 3), 2.0)
    DV0 = np.full((3, 3), 3.0)
    DVN = np.full((3, 3), 4.0)

    rhs = nfit.augment_surface_points(grid, 2, 2, U, V, DU0, DUN, DV0, DVN)
    assert rhs.shape == (5, 5, 3)

    d0, dN = nfit.end_derivative_scales(2, U)
    assert np.allclose(rhs[0, 0], grid[0, 0])
    assert np.allclose(rhs[1, 0], d0 * DU0[0])
    assert np.allclose(rhs[3, 4], dN * DUN[2])
    assert np.allclose(rhs[0, 1], d0 * DV0[0])
    assert np.allclose(rhs[4, 3], dN * DVN[2])

    # Rows inserted by the u-pass get zero v-derivatives
    for i in (1, 3):
        for j in (1, 3):
            assert np.allclose(rhs[i, j], 0.0)


def test_surface_derivatives_outside_derivative_mode():
    grid = np.arange(27, dtype=float).reshape(3, 3, 3)
    U = nfit.compute_knot_vector(3, 2, "equal")
    with pytest.raises(nfit.DimensionMismatch):
        nfit.augment_surface_points(grid, 2, 2, U, U, DU0=np.ones((3, 3)), DUN=np.ones((3, 3)))
