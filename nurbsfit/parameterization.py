import enum

import jax.numpy as jnp
from loguru import logger

from .dense_matrix import POINT_ARITY
from .errors import DegenerateInput, DimensionMismatch, UnknownStrategy


class ParameterSpacing(str, enum.Enum):
    """Strategies used to assign a parameter value to each sample point"""

    EQUAL = "equal"
    CHORD = "chord"
    CENTRIPETAL = "centripetal"

    @classmethod
    def parse(cls, value):
        """Convert a string or enum member into a `ParameterSpacing`"""
        try:
            return cls(value)
        except ValueError:
            raise UnknownStrategy(
                f"Parameter spacing '{value}' is not recognized, use one of {[s.value for s in cls]}"
            ) from None


def _segment_lengths(points, spacing):
    """Length of the consecutive segments along the second to last axis

    The square root of the lengths is returned for the centripetal strategy

    """
    lengths = jnp.linalg.norm(jnp.diff(points, axis=-2), axis=-1)
    if spacing is ParameterSpacing.CENTRIPETAL:
        lengths = jnp.sqrt(lengths)
    return lengths


def _normalized_cumulative(lengths):
    """Cumulative sum of the segment lengths scaled to [0, 1], with the endpoints pinned"""
    total = jnp.sum(lengths, axis=-1, keepdims=True)
    total = jnp.where(total == 0.0, 1.0, total)
    u = jnp.cumsum(lengths, axis=-1) / total
    u = jnp.concatenate((jnp.zeros(u.shape[:-1] + (1,)), u), axis=-1)
    return u.at[..., -1].set(1.0)


def compute_parameter_values(points, spacing="chord"):
    """Compute the parameter values of an ordered sequence of points

    Parameters
    ----------
    points : ndarray with shape (n, 3)
        Sample points in the order they should be interpolated

    spacing : {'equal', 'chord', 'centripetal'}
        Strategy used to distribute the parameters
            - equal: uniform spacing
            - chord: proportional to the distance between consecutive points
            - centripetal: proportional to the square root of that distance

    Returns
    -------
    u : ndarray with shape (n,)
        Strictly increasing parameters, starting at 0 and ending at 1

    """
    spacing = ParameterSpacing.parse(spacing)
    points = jnp.asarray(points, dtype=float)
    if points.ndim != 2 or points.shape[1] != POINT_ARITY:
        raise DimensionMismatch(f"Expected points with shape (n, {POINT_ARITY}), got {points.shape}")
    n = points.shape[0]
    if n < 2:
        raise DegenerateInput(f"At least 2 points are needed to compute parameters, got {n}")

    if spacing is ParameterSpacing.EQUAL:
        u = jnp.linspace(0.0, 1.0, n)
    else:
        lengths = _segment_lengths(points, spacing)
        if float(jnp.sum(lengths)) == 0.0:
            raise DegenerateInput("All points coincide, the total chord length is zero")
        if bool(jnp.any(lengths == 0.0)):
            raise DegenerateInput("Consecutive points coincide, the parameters would not be strictly increasing")
        u = _normalized_cumulative(lengths)

    logger.debug("Computed {} parameter values with {} spacing", n, spacing.value)
    return u


def compute_grid_parameter_values(grid, spacing="chord", axis=0):
    """Compute the parameters of a grid of points along one of its directions

    The parameters of every grid line running along `axis` are computed independently and
    then averaged. Lines containing coincident consecutive points (for example a row
    collapsed into a pole) are left out of the average

    Parameters
    ----------
    grid : ndarray with shape (nu, nv, 3)
        Grid of sample points

    spacing : {'equal', 'chord', 'centripetal'}
        Strategy used to distribute the parameters of each line

    axis : {0, 1}
        Use 0 for the u-parameters (lines of constant v) and 1 for the v-parameters

    Returns
    -------
    u : ndarray with shape (grid.shape[axis],)

    """
    spacing = ParameterSpacing.parse(spacing)
    grid = jnp.asarray(grid, dtype=float)
    if grid.ndim != 3 or grid.shape[2] != POINT_ARITY:
        raise DimensionMismatch(f"Expected a grid with shape (nu, nv, {POINT_ARITY}), got {grid.shape}")
    if axis not in (0, 1):
        raise DimensionMismatch(f"Grid axis must be 0 or 1, got {axis}")
    n = grid.shape[axis]
    if n < 2:
        raise DegenerateInput(f"At least 2 points are needed along axis {axis}, got {n}")

    if spacing is ParameterSpacing.EQUAL:
        return jnp.linspace(0.0, 1.0, n)

    # Arrange the lines as (n_lines, n, 3)
    lines = grid if axis == 1 else jnp.swapaxes(grid, 0, 1)
    lengths = _segment_lengths(lines, spacing)
    valid = jnp.all(lengths > 0.0, axis=-1)
    n_valid = int(jnp.sum(valid))
    if n_valid == 0:
        raise DegenerateInput(f"Every grid line along axis {axis} contains coincident points")
    if n_valid < lines.shape[0]:
        logger.warning("Skipped {} degenerate grid lines along axis {}", lines.shape[0] - n_valid, axis)

    u_lines = _normalized_cumulative(lengths)
    u = jnp.sum(jnp.where(valid[:, None], u_lines, 0.0), axis=0) / n_valid
    u = u.at[0].set(0.0).at[-1].set(1.0)

    logger.debug("Computed {} grid parameter values along axis {} with {} spacing", n, axis, spacing.value)
    return u
