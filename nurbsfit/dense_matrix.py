import jax
import jax.lax as lax
import jax.numpy as jnp

from . import config
from .errors import DegenerateInput, DimensionMismatch, SingularSystem

# Number of components of a point-valued matrix entry
POINT_ARITY = 3


# -------------------------------------------------------------------------------------------------------------------- #
# Shape helpers
# -------------------------------------------------------------------------------------------------------------------- #
def matrix_arity(M):
    """Return the number of components of each entry of a matrix

    Scalar matrices have shape (nr, nc) and arity 1
    Point-valued matrices have shape (nr, nc, 3) and arity 3

    """
    if M.ndim == 2:
        return 1
    if M.ndim == 3 and M.shape[2] == POINT_ARITY:
        return POINT_ARITY
    raise DimensionMismatch(
        f"Expected a matrix with shape (nr, nc) or (nr, nc, {POINT_ARITY}), got {M.shape}"
    )


def vector_arity(v):
    """Return the number of components of each entry of a vector, (n,) or (n, 3)"""
    if v.ndim == 1:
        return 1
    if v.ndim == 2 and v.shape[1] == POINT_ARITY:
        return POINT_ARITY
    raise DimensionMismatch(
        f"Expected a vector with shape (n,) or (n, {POINT_ARITY}), got {v.shape}"
    )


def _to_components(M, arity):
    """Move the component axis to the front: (nr, nc[, 3]) -> (arity, nr, nc)"""
    if arity == 1:
        return M[None, :, :]
    return jnp.moveaxis(M, -1, 0)


def _from_components(M, arity):
    """Inverse of `_to_components`"""
    if arity == 1:
        return M[0]
    return jnp.moveaxis(M, 0, -1)


# -------------------------------------------------------------------------------------------------------------------- #
# Products
# -------------------------------------------------------------------------------------------------------------------- #
def matrix_multiply(A, B):
    """Multiply two matrices whose entries are scalars or 3-vectors

    The four combinations of operand arity are handled by a single contraction over
    the component axis:

        scalar x scalar  -> scalar   (nr, nc)
        scalar x points  -> points   (nr, nc, 3)
        points x scalar  -> points   (nr, nc, 3)
        points x points  -> points   (nr, nc, 3), computed component by component

    Parameters
    ----------
    A : ndarray with shape (nrA, ncA) or (nrA, ncA, 3)
    B : ndarray with shape (nrB, ncB) or (nrB, ncB, 3)

    Returns
    -------
    C : ndarray with shape (nrA, ncB) or (nrA, ncB, 3)

    Raises
    ------
    DimensionMismatch
        If an operand is not a matrix or if `ncA != nrB`

    """
    A = jnp.asarray(A, dtype=float)
    B = jnp.asarray(B, dtype=float)
    arity_A, arity_B = matrix_arity(A), matrix_arity(B)
    if A.shape[1] != B.shape[0]:
        raise DimensionMismatch(
            f"Matrix dimensions do not match: {A.shape[0]} by {A.shape[1]} times {B.shape[0]} by {B.shape[1]}"
        )
    arity = max(arity_A, arity_B)

    # Batched matmul broadcasts the component axis of scalar operands
    C = jnp.matmul(_to_components(A, arity_A), _to_components(B, arity_B))
    return _from_components(C, arity)


def matrix_vector_multiply(M, v):
    """Multiply a matrix by a vector, any of them possibly point-valued

    Parameters
    ----------
    M : ndarray with shape (nr, nc) or (nr, nc, 3)
    v : ndarray with shape (nc,) or (nc, 3)

    Returns
    -------
    w : ndarray with shape (nr,) or (nr, 3)

    """
    M = jnp.asarray(M, dtype=float)
    v = jnp.asarray(v, dtype=float)
    arity_v = vector_arity(v)
    matrix_arity(M)
    if M.shape[1] != v.shape[0]:
        raise DimensionMismatch(
            f"Matrix vector dimensions do not match: {M.shape[0]} by {M.shape[1]} times {v.shape[0]}"
        )

    # Treat the vector as a single-column matrix
    v_column = v[:, None] if arity_v == 1 else v[:, None, :]
    w = matrix_multiply(M, v_column)
    return w[:, 0]


def matrix_transpose(M):
    """Transpose a scalar or point-valued matrix, keeping the component axis last"""
    M = jnp.asarray(M)
    matrix_arity(M)
    return jnp.swapaxes(M, 0, 1)


# -------------------------------------------------------------------------------------------------------------------- #
# Inversion
# -------------------------------------------------------------------------------------------------------------------- #
def _gauss_jordan(A, tolerance):
    """Gauss-Jordan elimination with partial pivoting on the augmented matrix [A | I]

    Returns the inverse and a flag that is True when a pivot at or below `tolerance`
    was found (the inverse is meaningless in that case)

    """
    n = A.shape[0]
    rows = jnp.arange(n)
    augmented = jnp.concatenate((A, jnp.eye(n, dtype=A.dtype)), axis=1)

    def eliminate_column(k, state):
        augmented, singular = state

        # Select the largest candidate pivot among rows k..n-1
        candidates = jnp.where(rows >= k, jnp.abs(augmented[:, k]), -1.0)
        pivot_row = jnp.argmax(candidates)
        pivot = augmented[pivot_row, k]
        is_zero = jnp.abs(pivot) <= tolerance
        singular = singular | is_zero

        # Swap rows k and pivot_row
        row_k = augmented[k]
        row_pivot = augmented[pivot_row]
        augmented = augmented.at[k].set(row_pivot).at[pivot_row].set(row_k)

        # Normalize the pivot row and eliminate the column from every other row
        augmented = augmented.at[k].set(augmented[k] / jnp.where(is_zero, 1.0, pivot))
        factors = augmented[:, k].at[k].set(0.0)
        augmented = augmented - factors[:, None] * augmented[k][None, :]
        return augmented, singular

    augmented, singular = lax.fori_loop(0, n, eliminate_column, (augmented, jnp.array(False)))
    return augmented[:, n:], singular

_gauss_jordan = jax.jit(_gauss_jordan)


def invert_matrix(M):
    """Invert a square scalar matrix

    Parameters
    ----------
    M : ndarray with shape (n, n)

    Returns
    -------
    M_inv : ndarray with shape (n, n)

    Raises
    ------
    DimensionMismatch
        If `M` is not a square scalar matrix
    DegenerateInput
        If `M` is empty
    SingularSystem
        If a pivot vanishes during elimination

    """
    M = jnp.asarray(M, dtype=float)
    if M.ndim != 2 or M.shape[0] != M.shape[1]:
        raise DimensionMismatch(f"Matrix is not square, can't invert a matrix with shape {M.shape}")
    if M.shape[0] == 0:
        raise DegenerateInput("Can't invert an empty matrix")

    tolerance = config.PIVOT_TOLERANCE * jnp.max(jnp.abs(M))
    M_inv, singular = _gauss_jordan(M, tolerance)
    if bool(singular):
        raise SingularSystem(f"The {M.shape[0]} by {M.shape[0]} system could not be inverted")
    return M_inv


# -------------------------------------------------------------------------------------------------------------------- #
# Reshape helpers
# -------------------------------------------------------------------------------------------------------------------- #
def grid_to_points(grid):
    """Flatten a (nu, nv, 3) grid into a (nu*nv, 3) list with the u-index running fastest

    The point (i, j) of the grid is stored at position `i + j*nu`

    """
    grid = jnp.asarray(grid)
    matrix_arity(grid)
    return jnp.swapaxes(grid, 0, 1).reshape(-1, POINT_ARITY)


def points_to_grid(points, nu, nv):
    """Inverse of `grid_to_points`"""
    points = jnp.asarray(points)
    if points.shape != (nu * nv, POINT_ARITY):
        raise DimensionMismatch(f"Can't reshape {points.shape} points into a {nu} by {nv} grid")
    return jnp.swapaxes(points.reshape(nv, nu, POINT_ARITY), 0, 1)


def get_matrix_line(M, index, axis):
    """Extract column `index` (axis=0, runs along the rows) or row `index` (axis=1) of a matrix"""
    M = jnp.asarray(M)
    matrix_arity(M)
    return M[:, index] if axis == 0 else M[index, :]


def set_matrix_line(M, line, index, axis):
    """Return a copy of `M` with column (axis=0) or row (axis=1) `index` replaced by `line`"""
    M = jnp.asarray(M)
    line = jnp.asarray(line, dtype=M.dtype)
    matrix_arity(M)
    if line.shape[0] != M.shape[axis] or line.shape[1:] != M.shape[2:]:
        raise DimensionMismatch(
            f"Line with shape {line.shape} does not fit axis {axis} of a matrix with shape {M.shape}"
        )
    return M.at[:, index].set(line) if axis == 0 else M.at[index, :].set(line)
