import jax
import jax.lax as lax
import jax.numpy as jnp


def _safe_denominator(denom):
    """Replace zero-width knot intervals by 1 so that the guarded quotient stays finite"""
    return jnp.where(denom == 0.0, 1.0, denom)


# -------------------------------------------------------------------------------------------------------------------- #
# Knot span search
# -------------------------------------------------------------------------------------------------------------------- #
def find_span(p, U, u):
    """
    Locate the knot span that contains each parameter value `u`.

    The span index satisfies U[span] <= u < U[span+1] and is found by binary search
    (Algorithm A2.1 in The NURBS Book). The parameters are clamped to the knot domain
    [U[p], U[n+1]] and the right end of the domain is assigned to the last non-empty
    span, so the result is always a valid index in the range [p, n].

    Parameters
    ----------
    p : int
        Degree of the basis polynomials.
    U : array_like
        Knot vector of length n+p+2.
    u : float or array_like
        Scalar or array of parameter values.

    Returns
    -------
    span : ndarray of shape (Nu,)
        Integer span index for each parameter value.
    """

    # Convert to JAX arrays
    U = jnp.asarray(U)
    u = jnp.atleast_1d(u)

    # Vectorize the scalar search over all u-values
    return jax.vmap(lambda uu: _find_span_single(p, U, uu))(u)

# Apply JIT compilation
find_span = jax.jit(find_span, static_argnames=('p',))

def _find_span_single(p, U, u):
    """Binary search of the knot span for a single scalar u."""

    # Number of control points (n+1)
    n_control = U.shape[0] - p - 1

    # The right end of the domain belongs to the last span, the search would not terminate on it
    u = jnp.clip(u, U[p], U[n_control])
    at_end = u >= U[n_control]
    u_search = jnp.where(at_end, U[p], u)

    def outside(state):
        low, high, mid = state
        return (u_search < U[mid]) | (u_search >= U[mid + 1])

    def bisect(state):
        low, high, mid = state
        below = u_search < U[mid]
        high = jnp.where(below, mid, high)
        low = jnp.where(below, low, mid)
        return low, high, (low + high) // 2

    low = jnp.asarray(p, dtype=jnp.int32)
    high = jnp.asarray(n_control, dtype=jnp.int32)
    _, _, mid = lax.while_loop(outside, bisect, (low, high, (low + high) // 2))

    return jnp.where(at_end, n_control - 1, mid)


# -------------------------------------------------------------------------------------------------------------------- #
# Non-zero basis functions at a point
# -------------------------------------------------------------------------------------------------------------------- #
def basis_evaluation(p, U, span, u):
    """
    Evaluate the p+1 basis functions of degree `p` that do not vanish at `u`.

    The values are computed with the triangular Cox-de Boor recurrence based on the
    `left` and `right` parameter differences (Algorithm A2.2 in The NURBS Book).
    Zero-width knot intervals contribute zero instead of producing a division by zero.

    Parameters
    ----------
    p : int
        Degree of the basis polynomials.
    U : array_like
        Knot vector.
    span : int
        Knot span containing `u`, as returned by `find_span`.
    u : float
        Parameter value.

    Returns
    -------
    N : ndarray of shape (p+1,)
        Values of N_{span-p,p}(u), ..., N_{span,p}(u).
    """
    U = jnp.asarray(U)
    N = jnp.zeros(p + 1).at[0].set(1.0)
    left = jnp.zeros(p + 1)
    right = jnp.zeros(p + 1)

    for j in range(1, p + 1):
        left = left.at[j].set(u - U[span + 1 - j])
        right = right.at[j].set(U[span + j] - u)
        saved = 0.0
        for r in range(j):
            denom = right[r + 1] + left[j - r]
            temp = jnp.where(denom == 0.0, 0.0, N[r] / _safe_denominator(denom))
            N = N.at[r].set(saved + right[r + 1] * temp)
            saved = left[j - r] * temp
        N = N.at[j].set(saved)

    return N

# Apply JIT compilation
basis_evaluation = jax.jit(basis_evaluation, static_argnames=('p',))


def compute_nonzero_basis(p, U, u):
    """Return the spans (Nu,) and the non-zero basis values (Nu, p+1) for an array of parameters"""
    U = jnp.asarray(U)
    u = jnp.atleast_1d(u)
    spans = find_span(p, U, lax.stop_gradient(u))
    N = jax.vmap(lambda s, uu: basis_evaluation(p, U, s, uu))(spans, u)
    return spans, N


# -------------------------------------------------------------------------------------------------------------------- #
# Single basis function at many points
# -------------------------------------------------------------------------------------------------------------------- #
def basis_evaluation_vec(p, U, k, u):
    """
    Evaluate the basis function N_{k,p} at every parameter value of `u`.

    The computation follows Algorithm A2.4 of The NURBS Book, vectorized over the
    parameter samples. A workspace with one column per knot interval in the support
    [U[k], U[k+p+1]) is initialized with the degree-zero functions and elevated one
    degree at a time; level `i` only updates its first `p-i+1` columns, and the first
    column holds N_{k,p} when the recursion ends.

    Parameters
    ----------
    p : int
        Degree of the basis polynomials.
    U : array_like
        Knot vector of length n+p+2.
    k : int
        Index of the basis function (control point index), 0 <= k <= n.
    u : array_like
        Parameter values.

    Returns
    -------
    N_k : ndarray of shape (Nu,)
        Values of N_{k,p}(u), finite and within [0, 1].
        The half-open intervals make N_{n,p} vanish at the right end of the domain,
        see `basis_matrix` for the boundary correction.
    """
    U = jnp.asarray(U)
    u = jnp.atleast_1d(u)

    # Degree-zero workspace (Nu, p+1)
    offsets = jnp.arange(p + 1)
    lower = U[k + offsets]
    upper = U[k + offsets + 1]
    N = jnp.where((u[:, None] >= lower[None, :]) & (u[:, None] < upper[None, :]), 1.0, 0.0)

    for i in range(1, p + 1):
        denom = U[k + i] - U[k]
        saved = jnp.where(N[:, 0] != 0.0, (u - U[k]) * N[:, 0] / _safe_denominator(denom), 0.0)

        for j in range(p - i + 1):
            u_left = U[k + j + 1]
            u_right = U[k + i + j + 1]
            nonzero = N[:, j + 1] != 0.0
            temp = N[:, j + 1] / _safe_denominator(u_right - u_left)
            N = N.at[:, j].set(jnp.where(nonzero, saved + (u_right - u) * temp, saved))
            saved = jnp.where(nonzero, (u - u_left) * temp, 0.0)

    return N[:, 0]

# Apply JIT compilation
basis_evaluation_vec = jax.jit(basis_evaluation_vec, static_argnames=('p',))


def basis_matrix(p, U, u):
    """
    Assemble the matrix of all the basis functions evaluated at the parameters `u`.

    Each column is computed by `basis_evaluation_vec` for one control point index.
    When the last parameter coincides with the right end of the knot vector, the last
    entry of the matrix is set to one, since the basis function of the last control
    point is the only one that does not vanish there.

    Parameters
    ----------
    p : int
        Degree of the basis polynomials.
    U : array_like
        Knot vector of length n+p+2.
    u : array_like
        Parameter values, sorted in increasing order.

    Returns
    -------
    N : ndarray of shape (Nu, n+1)
        N[i, k] = N_{k,p}(u[i]).
    """
    U = jnp.asarray(U)
    u = jnp.atleast_1d(u)
    n_control = U.shape[0] - p - 1

    # Evaluate one basis function per control point index
    columns = jax.vmap(lambda k: basis_evaluation_vec(p, U, k, u))(jnp.arange(n_control))
    N = jnp.transpose(columns)

    # Boundary correction at the end of the domain
    return N.at[-1, -1].set(jnp.where(u[-1] >= U[-1], 1.0, N[-1, -1]))

# Apply JIT compilation
basis_matrix = jax.jit(basis_matrix, static_argnames=('p',))
