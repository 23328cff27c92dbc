import jax.numpy as jnp
from loguru import logger

from .dense_matrix import (
    POINT_ARITY,
    get_matrix_line,
    invert_matrix,
    matrix_multiply,
    matrix_transpose,
    matrix_vector_multiply,
    set_matrix_line,
)
from .errors import DimensionMismatch, InvalidDegree
from .nurbs_basis_functions import basis_matrix


# -------------------------------------------------------------------------------------------------------------------- #
# End derivative constraints
# -------------------------------------------------------------------------------------------------------------------- #
def uses_derivative_knots(U, n_points, p):
    """Return True if `U` is a derivative knot vector for `n_points` samples and False if it is a plain one

    Raises
    ------
    DimensionMismatch
        If the length of `U` matches neither `n_points+p+1` nor `n_points+p+3`

    """
    n_knots = jnp.shape(U)[0]
    if n_knots == n_points + p + 1:
        return False
    if n_knots == n_points + p + 3:
        if p < 1:
            raise InvalidDegree("End derivative constraints require a degree of at least 1")
        return True
    raise DimensionMismatch(
        f"Knot vector length {n_knots} does not match {n_points} points of degree {p} "
        f"(expected {n_points + p + 1}, or {n_points + p + 3} with end derivatives)"
    )


def end_derivative_scales(p, U):
    """Scale factors relating the first and last control polygon legs to the end derivatives

    For a clamped curve C'(0) = (P1 - P0) / d0 and C'(1) = (Pn - Pn-1) / dN with

        d0 = (U[p+1] - U[0]) / p
        dN = (U[-1] - U[-p-2]) / p

    """
    U = jnp.asarray(U, dtype=float)
    d0 = (U[p + 1] - U[0]) / p
    dN = (U[-1] - U[-p - 2]) / p
    return d0, dN


def add_derivative_rows(N):
    """Insert the two end derivative equations into an (n, n+2) basis matrix

    The first and last sample rows are kept at the ends of the new (n+2, n+2) system,
    row 1 becomes the finite difference P1 - P0 and row n becomes Pn+1 - Pn, and the
    interior sample rows fill the rest in their original order

    """
    N = jnp.asarray(N, dtype=float)
    n_rows, m = N.shape
    if m != n_rows + 2:
        raise DimensionMismatch(f"Expected an (n, n+2) basis matrix to add derivative rows, got {N.shape}")

    start_row = jnp.zeros(m).at[0].set(-1.0).at[1].set(1.0)
    end_row = jnp.zeros(m).at[m - 2].set(-1.0).at[m - 1].set(1.0)
    return jnp.concatenate((N[:1], start_row[None], N[1:-1], end_row[None], N[-1:]), axis=0)


def add_derivative_points(points, p, U, D0, DN):
    """Insert the scaled end derivatives into the right-hand side of the interpolation system

    Parameters
    ----------
    points : ndarray with shape (n, 3)
    p : int
    U : ndarray with shape (n+p+3,)
        Derivative knot vector
    D0, DN : ndarray with shape (3,)
        First derivative of the curve at u=0 and u=1

    Returns
    -------
    rhs : ndarray with shape (n+2, 3)

    """
    points = jnp.asarray(points, dtype=float)
    D0 = jnp.asarray(D0, dtype=float)
    DN = jnp.asarray(DN, dtype=float)
    if D0.shape != (POINT_ARITY,) or DN.shape != (POINT_ARITY,):
        raise DimensionMismatch(f"End derivatives must have shape ({POINT_ARITY},), got {D0.shape} and {DN.shape}")

    d0, dN = end_derivative_scales(p, U)
    return jnp.concatenate(
        (points[:1], (d0 * D0)[None], points[1:-1], (dN * DN)[None], points[-1:]), axis=0
    )


def interpolation_system(u, U, p):
    """Assemble the square interpolation matrix for samples at `u` and knot vector `U`

    The derivative rows are included when `U` is a derivative knot vector

    """
    u = jnp.asarray(u, dtype=float)
    derivative = uses_derivative_knots(U, u.shape[0], p)
    N = basis_matrix(p, jnp.asarray(U, dtype=float), u)
    if derivative:
        N = add_derivative_rows(N)
    return N


# -------------------------------------------------------------------------------------------------------------------- #
# Curve interpolation
# -------------------------------------------------------------------------------------------------------------------- #
def solve_curve_control_points(points, u, U, p, D0=None, DN=None):
    """Compute the control points of the curve of degree `p` that interpolates `points`

    Parameters
    ----------
    points : ndarray with shape (n, 3)
        Sample points

    u : ndarray with shape (n,)
        Parameter value of each sample point

    U : ndarray with shape (n+p+1,) or (n+p+3,)
        Knot vector, the longer form adds end derivative constraints

    p : int
        Degree of the curve

    D0, DN : ndarray with shape (3,), optional
        First derivatives at the start and end of the curve
        Required with a derivative knot vector and forbidden otherwise

    Returns
    -------
    P : ndarray with shape (n, 3), or (n+2, 3) with end derivatives
        Control points

    """
    points = jnp.asarray(points, dtype=float)
    u = jnp.asarray(u, dtype=float)
    if points.ndim != 2 or points.shape[1] != POINT_ARITY:
        raise DimensionMismatch(f"Expected points with shape (n, {POINT_ARITY}), got {points.shape}")
    if u.shape != (points.shape[0],):
        raise DimensionMismatch(f"Got {u.shape[0]} parameter values for {points.shape[0]} points")

    derivative = uses_derivative_knots(U, points.shape[0], p)
    if derivative and (D0 is None or DN is None):
        raise DimensionMismatch("A derivative knot vector requires both end derivatives D0 and DN")
    if not derivative and (D0 is not None or DN is not None):
        raise DimensionMismatch("End derivatives require a derivative knot vector with two extra knots")

    N = interpolation_system(u, U, p)
    rhs = add_derivative_points(points, p, U, D0, DN) if derivative else points
    logger.debug("Solving a {} by {} curve interpolation system", N.shape[0], N.shape[1])

    N_inv = invert_matrix(N)
    return matrix_vector_multiply(N_inv, rhs)


# -------------------------------------------------------------------------------------------------------------------- #
# Surface interpolation
# -------------------------------------------------------------------------------------------------------------------- #
def _check_line_derivatives(D, n, name):
    if D is None:
        raise DimensionMismatch(f"{name} is required by a derivative knot vector")
    D = jnp.asarray(D, dtype=float)
    if D.shape != (n, POINT_ARITY):
        raise DimensionMismatch(f"{name} must have shape ({n}, {POINT_ARITY}), got {D.shape}")
    return D


def augment_surface_points(grid, p, q, U, V, DU0=None, DUN=None, DV0=None, DVN=None):
    """Build the right-hand side of the surface interpolation system

    The u-direction is processed first: when `U` is a derivative knot vector every column
    of the grid (a line of constant v) receives the scaled derivatives DU0[j] and DUN[j].
    The v-direction is processed next: when `V` is a derivative knot vector every row
    receives DV0[i] and DVN[i]. The two rows inserted by the u-pass hold derivatives
    rather than positions, so their v-derivatives (the twist at the corners) are zero.

    Parameters
    ----------
    grid : ndarray with shape (nu, nv, 3)
    DU0, DUN : ndarray with shape (nv, 3), optional
        Derivatives with respect to u along the edges u=0 and u=1
    DV0, DVN : ndarray with shape (nu, 3), optional
        Derivatives with respect to v along the edges v=0 and v=1

    Returns
    -------
    rhs : ndarray with shape (mu, mv, 3)
        mu = nu (+2 with u-derivatives) and mv = nv (+2 with v-derivatives)

    """
    grid = jnp.asarray(grid, dtype=float)
    nu, nv = grid.shape[0], grid.shape[1]
    derivative_u = uses_derivative_knots(U, nu, p)
    derivative_v = uses_derivative_knots(V, nv, q)

    rhs = grid
    if derivative_u:
        DU0 = _check_line_derivatives(DU0, nv, "DU0")
        DUN = _check_line_derivatives(DUN, nv, "DUN")
        rhs = jnp.zeros((nu + 2, nv, POINT_ARITY))
        for j in range(nv):
            column = add_derivative_points(get_matrix_line(grid, j, axis=0), p, U, DU0[j], DUN[j])
            rhs = set_matrix_line(rhs, column, j, axis=0)
    elif DU0 is not None or DUN is not None:
        raise DimensionMismatch("Derivatives along u require a derivative knot vector U")

    if derivative_v:
        DV0 = _check_line_derivatives(DV0, nu, "DV0")
        DVN = _check_line_derivatives(DVN, nu, "DVN")
        mu = rhs.shape[0]
        twist_rows = (1, mu - 2) if derivative_u else ()
        rows = []
        count = 0
        for i in range(mu):
            if i in twist_rows:
                dv0 = dvN = jnp.zeros(POINT_ARITY)
            else:
                dv0, dvN = DV0[count], DVN[count]
                count += 1
            rows.append(add_derivative_points(get_matrix_line(rhs, i, axis=1), q, V, dv0, dvN))
        rhs = jnp.stack(rows, axis=0)
    elif DV0 is not None or DVN is not None:
        raise DimensionMismatch("Derivatives along v require a derivative knot vector V")

    return rhs


def solve_surface_control_points(grid, u, v, U, V, p, q, DU0=None, DUN=None, DV0=None, DVN=None):
    """Compute the control point grid of the surface that interpolates `grid`

    The tensor product structure allows solving the two directions independently:

        P = NU^-1 . Q . NV^-T

    which is evaluated as two chained products with transposes in between

    Parameters
    ----------
    grid : ndarray with shape (nu, nv, 3)
        Sample points, the first index runs along u and the second along v
    u : ndarray with shape (nu,)
    v : ndarray with shape (nv,)
    U, V : ndarray
        Knot vectors in the u and v directions
    p, q : int
        Degrees in the u and v directions
    DU0, DUN, DV0, DVN : ndarray, optional
        Edge derivatives, see `augment_surface_points`

    Returns
    -------
    P : ndarray with shape (mu, mv, 3)
        Control point grid

    """
    grid = jnp.asarray(grid, dtype=float)
    u = jnp.asarray(u, dtype=float)
    v = jnp.asarray(v, dtype=float)
    if grid.ndim != 3 or grid.shape[2] != POINT_ARITY:
        raise DimensionMismatch(f"Expected a grid with shape (nu, nv, {POINT_ARITY}), got {grid.shape}")
    if u.shape != (grid.shape[0],) or v.shape != (grid.shape[1],):
        raise DimensionMismatch(
            f"Got {u.shape[0]} u-parameters and {v.shape[0]} v-parameters for a {grid.shape[0]} by {grid.shape[1]} grid"
        )

    NU = interpolation_system(u, U, p)
    NV = interpolation_system(v, V, q)
    rhs = augment_surface_points(grid, p, q, U, V, DU0, DUN, DV0, DVN)
    logger.debug("Solving {} by {} surface interpolation systems", NU.shape[0], NV.shape[0])

    NU_inv = invert_matrix(NU)
    NV_inv = invert_matrix(NV)

    # Contract the u-direction, then the v-direction
    tmp_u = matrix_multiply(NU_inv, rhs)
    tmp_v = matrix_multiply(NV_inv, matrix_transpose(tmp_u))
    return matrix_transpose(tmp_v)
