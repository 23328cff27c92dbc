import math

import equinox as eqx
import jax.numpy as jnp
from loguru import logger

from .dense_matrix import (
    grid_to_points,
    matrix_multiply,
    matrix_transpose,
    matrix_vector_multiply,
)
from .errors import DegenerateInput
from .nurbs_basis_functions import basis_matrix


class PolyData(eqx.Module):
    """Tessellated representation of a curve or a surface

    Parameters
    ----------
    points : ndarray with shape (n_points, 3)
        Vertex coordinates

    cells : ndarray with shape (n_cells, k)
        Vertex indices of each cell
        Curves are represented by line segments (k=2) and surfaces by quads (k=4)

    shape : tuple of int
        Number of samples along each parametric direction

    """

    points: jnp.ndarray
    cells: jnp.ndarray
    shape: tuple

    @property
    def n_points(self):
        return self.points.shape[0]

    @property
    def n_cells(self):
        return self.cells.shape[0]


# -------------------------------------------------------------------------------------------------------------------- #
# Connectivity
# -------------------------------------------------------------------------------------------------------------------- #
def polyline_connectivity(n_points):
    """Line segments (i, i+1) joining consecutive samples of a curve"""
    ids = jnp.arange(n_points - 1)
    return jnp.stack((ids, ids + 1), axis=1)


def structured_grid_connectivity(n_u, n_v):
    """Quads over an n_u by n_v grid of samples whose vertex (i, j) has index i + j*n_u

    Cells are ordered with the v-index running fastest, vertices keep the u-index fastest

    The corners of the quad of cell (i, j) are (i, j), (i+1, j), (i+1, j+1) and (i, j+1)

    """
    i, j = jnp.meshgrid(jnp.arange(n_u - 1), jnp.arange(n_v - 1), indexing="ij")
    ids = (i + j * n_u).reshape(-1)
    return jnp.stack((ids, ids + 1, ids + n_u + 1, ids + n_u), axis=1)


# -------------------------------------------------------------------------------------------------------------------- #
# Rational evaluation basis
# -------------------------------------------------------------------------------------------------------------------- #
def number_of_samples(spacing):
    """Number of uniform samples, ceil(1/spacing), used to tessellate the unit domain"""
    if not spacing > 0.0:
        raise DegenerateInput(f"Sampling spacing must be positive, got {spacing}")
    n_samples = math.ceil(1.0 / spacing)
    if n_samples < 2:
        raise DegenerateInput(f"Sampling spacing {spacing} yields fewer than 2 samples")
    return n_samples


def rational_basis(N, W):
    """Normalize the rows of a basis matrix with the weights of the control points

    R[i, j] = N[i, j] * W[j] / sum_k N[i, k] * W[k]

    """
    weighted = N * W[None, :]
    return weighted / jnp.sum(weighted, axis=1, keepdims=True)


def evaluation_basis(p, U, W, n_samples):
    """Rational basis matrix (n_samples, n+1) over a uniform grid spanning the knot domain"""
    U = jnp.asarray(U, dtype=float)
    n_control = U.shape[0] - p - 1
    u = jnp.linspace(U[p], U[n_control], n_samples)
    return rational_basis(basis_matrix(p, U, u), jnp.asarray(W, dtype=float))


# -------------------------------------------------------------------------------------------------------------------- #
# Tessellation
# -------------------------------------------------------------------------------------------------------------------- #
def tessellate_curve(P, W, p, U, spacing):
    """Sample a NURBS curve uniformly and join the samples with line segments

    Parameters
    ----------
    P : ndarray with shape (n+1, 3)
    W : ndarray with shape (n+1,)
    p : int
    U : ndarray with shape (n+p+2,)
    spacing : float
        Parametric spacing, the curve is sampled at ceil(1/spacing) values

    Returns
    -------
    polydata : PolyData

    """
    n_samples = number_of_samples(spacing)
    N = evaluation_basis(p, U, W, n_samples)
    points = matrix_vector_multiply(N, P)

    logger.debug("Tessellated curve with {} points", n_samples)
    return PolyData(points=points, cells=polyline_connectivity(n_samples), shape=(n_samples,))


def tessellate_surface(P, WU, WV, p, q, U, V, u_spacing, v_spacing):
    """Sample a NURBS surface over a uniform (u, v) grid and mesh it with quads

    The surface points are obtained with two matrix products

        S = NU . P . NV^T

    where NU and NV are the rational basis matrices of each direction

    Parameters
    ----------
    P : ndarray with shape (nu, nv, 3)
    WU : ndarray with shape (nu,)
    WV : ndarray with shape (nv,)
    p, q : int
    U, V : ndarray
    u_spacing, v_spacing : float

    Returns
    -------
    polydata : PolyData

    """
    n_u = number_of_samples(u_spacing)
    n_v = number_of_samples(v_spacing)
    NU = evaluation_basis(p, U, WU, n_u)
    NV = evaluation_basis(q, V, WV, n_v)

    tmp_u = matrix_multiply(NU, P)
    grid = matrix_multiply(tmp_u, matrix_transpose(NV))

    logger.debug("Tessellated surface with {} by {} points", n_u, n_v)
    return PolyData(
        points=grid_to_points(grid),
        cells=structured_grid_connectivity(n_u, n_v),
        shape=(n_u, n_v),
    )
