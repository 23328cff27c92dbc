import enum

import jax.numpy as jnp
from loguru import logger

from .errors import DegenerateInput, DimensionMismatch, InvalidDegree, UnknownStrategy


class KnotPlacement(str, enum.Enum):
    """Strategies used to place the interior knots of a clamped knot vector"""

    EQUAL = "equal"
    AVERAGE = "average"
    DERIVATIVE = "derivative"

    @classmethod
    def parse(cls, value):
        """Convert a string or enum member into a `KnotPlacement`"""
        try:
            return cls(value)
        except ValueError:
            raise UnknownStrategy(
                f"Knot placement '{value}' is not recognized, use one of {[s.value for s in cls]}"
            ) from None


def _clamped(interior, p):
    """Append p+1 zeros before and p+1 ones after the interior knots"""
    return jnp.concatenate((jnp.zeros(p + 1), jnp.asarray(interior, dtype=float), jnp.ones(p + 1)))


def _moving_average(u, p, count):
    """Average of `p` consecutive parameters for `count` consecutive starting indices"""
    return sum(u[i:i + count] for i in range(p)) / p


def compute_knot_vector(u, p, placement="equal"):
    """Compute a clamped knot vector for the interpolation of `n` points

    Parameters
    ----------
    u : ndarray with shape (n,) or int
        Parameter values of the sample points
        An integer number of points is enough for the equal placement

    p : int
        Degree of the basis polynomials

    placement : {'equal', 'average', 'derivative'}
        Strategy used to place the interior knots
            - equal: uniformly spaced interior knots
            - average: each interior knot is the average of `p` consecutive parameters (de Boor)
            - derivative: averaged knots with two extra entries to accommodate end derivative constraints

    Returns
    -------
    U : ndarray with shape (n+p+1,), or (n+p+3,) for the derivative placement
        Non-decreasing knot vector whose first and last values repeat p+1 times

    """
    placement = KnotPlacement.parse(placement)
    if jnp.ndim(u) == 0:
        if placement is not KnotPlacement.EQUAL:
            raise DimensionMismatch(f"The {placement.value} knot placement needs the parameter values, not a count")
        n = int(u)
    else:
        u = jnp.asarray(u, dtype=float)
        if u.ndim != 1:
            raise DimensionMismatch(f"Parameter values must be one-dimensional, got shape {u.shape}")
        n = u.shape[0]

    if n < 2:
        raise DegenerateInput(f"At least 2 points are needed to build a knot vector, got {n}")
    if p < 0 or p >= n:
        raise InvalidDegree(f"Degree {p} is not supported by {n} points (0 <= p < n is required)")
    if p == 0 and placement is not KnotPlacement.EQUAL:
        raise InvalidDegree(f"The {placement.value} knot placement requires a degree of at least 1")

    if placement is KnotPlacement.EQUAL:
        n_interior = n - p - 1
        interior = jnp.arange(1, n_interior + 1) / (n_interior + 1)
        U = _clamped(interior, p)

    elif placement is KnotPlacement.AVERAGE:
        interior = _moving_average(u[1:], p, n - p - 1)
        U = _clamped(interior, p)

    else:
        interior = _moving_average(u, p, n - p + 1)
        U = _clamped(interior, p)

        # Knots beyond the derivative span are clamped to the end of the domain
        U = U.at[U.shape[0] - (p + 1):].set(1.0)

    logger.debug("Length of knots: {} ({} placement, degree {})", U.shape[0], placement.value, p)
    return U


def validate_knot_vector(U, n_control, p):
    """Check that `U` is a valid knot vector for `n_control` control points of degree `p`

    Raises
    ------
    DimensionMismatch
        If the length of the knot vector is not `n_control + p + 1`
    DegenerateInput
        If the knot vector is empty, decreasing somewhere or spans an empty domain

    """
    U = jnp.asarray(U, dtype=float)
    if U.ndim != 1 or U.shape[0] == 0:
        raise DegenerateInput(f"Knot vector must be a non-empty 1D array, got shape {U.shape}")
    if U.shape[0] != n_control + p + 1:
        raise DimensionMismatch(
            f"Knot vector length {U.shape[0]} does not match n+p+1={n_control + p + 1}"
        )
    if bool(jnp.any(jnp.diff(U) < 0.0)):
        raise DegenerateInput("Knot vector must be non-decreasing")
    if not float(U[p]) < float(U[n_control]):
        raise DegenerateInput(f"Knot vector spans an empty domain [{float(U[p])}, {float(U[n_control])}]")
    return U


def knot_multiplicity(U):
    """Return the distinct knot values and the number of times each one is repeated"""
    return jnp.unique(jnp.asarray(U), return_counts=True)
