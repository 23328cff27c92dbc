import jax.numpy as jnp
from loguru import logger

from .dense_matrix import POINT_ARITY
from .errors import DimensionMismatch
from .interpolation import solve_curve_control_points, solve_surface_control_points
from .knot_vectors import compute_knot_vector
from .nurbs_curve import NurbsCurve
from .nurbs_surface import NurbsSurface
from .parameterization import compute_grid_parameter_values, compute_parameter_values


def _pair(value, name):
    """Split a per-direction argument into its (u, v) entries"""
    if value is None or isinstance(value, str) or jnp.ndim(value) == 0:
        return value, value
    if len(value) != 2:
        raise DimensionMismatch(f"{name} must hold one entry per direction, got {value}")
    return value[0], value[1]


def fit_curve(points, degree=3, parameterization="chord", knot_placement="average", D0=None, DN=None):
    """Fit a B-spline curve that interpolates an ordered sequence of points

    Parameters
    ----------
    points : ndarray with shape (n, 3)
        Sample points, interpolated in the order given

    degree : int
        Degree of the curve, 0 <= degree < n

    parameterization : {'equal', 'chord', 'centripetal'}
        Strategy used to assign a parameter value to each point

    knot_placement : {'equal', 'average', 'derivative'}
        Strategy used to place the interior knots
        The derivative placement adds two control points to satisfy the end derivatives

    D0, DN : ndarray with shape (3,), optional
        First derivative of the curve at the start and at the end
        Both are required with the derivative placement and forbidden otherwise

    Returns
    -------
    curve : NurbsCurve
        Curve with unit weights that passes through every sample point

    """
    points = jnp.asarray(points, dtype=float)
    u = compute_parameter_values(points, parameterization)
    U = compute_knot_vector(u, degree, knot_placement)
    P = solve_curve_control_points(points, u, U, degree, D0, DN)

    logger.debug("Fitted a degree {} curve with {} control points", degree, P.shape[0])
    return NurbsCurve(control_points=P, weights=jnp.ones((P.shape[0],)), degree=degree, knots=U)


def fit_surface(
    points,
    degrees=(3, 3),
    parameterization=("chord", "chord"),
    knot_placement=("average", "average"),
    weights=(None, None),
    DU0=None,
    DUN=None,
    DV0=None,
    DVN=None,
):
    """Fit a tensor product B-spline surface that interpolates a grid of points

    Parameters
    ----------
    points : ndarray with shape (nu, nv, 3)
        Grid of sample points, the first index runs along u and the second along v

    degrees : tuple (p, q) or int
        Degrees in the u and v directions

    parameterization : tuple of str or str
        Parameter spacing strategy in each direction, see `compute_grid_parameter_values`

    knot_placement : tuple of str or str
        Knot placement strategy in each direction, see `compute_knot_vector`

    weights : tuple (WU, WV)
        Per-direction weights of the control points, either entry may be None for unit weights
        Their length must match the number of control points in that direction

    DU0, DUN : ndarray with shape (nv, 3), optional
        Derivatives with respect to u along the edges u=0 and u=1 (derivative placement along u)

    DV0, DVN : ndarray with shape (nu, 3), optional
        Derivatives with respect to v along the edges v=0 and v=1 (derivative placement along v)

    Returns
    -------
    surface : NurbsSurface

    """
    points = jnp.asarray(points, dtype=float)
    if points.ndim != 3 or points.shape[2] != POINT_ARITY:
        raise DimensionMismatch(f"Expected a grid with shape (nu, nv, {POINT_ARITY}), got {points.shape}")

    p, q = _pair(degrees, "degrees")
    spacing_u, spacing_v = _pair(parameterization, "parameterization")
    placement_u, placement_v = _pair(knot_placement, "knot_placement")
    WU, WV = _pair(weights, "weights")

    # Parameters and knots of each direction
    u = compute_grid_parameter_values(points, spacing_u, axis=0)
    v = compute_grid_parameter_values(points, spacing_v, axis=1)
    U = compute_knot_vector(u, p, placement_u)
    V = compute_knot_vector(v, q, placement_v)

    P = solve_surface_control_points(points, u, v, U, V, p, q, DU0, DUN, DV0, DVN)

    logger.debug("Fitted a degree ({}, {}) surface with {} by {} control points", p, q, P.shape[0], P.shape[1])
    return NurbsSurface(control_points=P, weights=(WU, WV), degrees=(p, q), knots=(U, V))
