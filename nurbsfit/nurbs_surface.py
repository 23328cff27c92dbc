import jax
import jax.numpy as jnp
import equinox as eqx
import numpy as np

import matplotlib.pyplot as plt

from . import config
from .dense_matrix import POINT_ARITY, points_to_grid
from .errors import DegenerateInput, DimensionMismatch, InvalidDegree
from .knot_vectors import compute_knot_vector, knot_multiplicity, validate_knot_vector
from .nurbs_basis_functions import compute_nonzero_basis
from .nurbs_curve import rescale_plot
from .tessellation import tessellate_surface


# ----------------------------------------------------------- #
# Standalone functions to compute values
# ----------------------------------------------------------- #
def compute_nurbs_surface_coordinates(P, W, p, q, U, V, u, v):
    """
    Evaluate the coordinates of a NURBS surface at the parameter pairs `(u, v)`.

    For each pair only the (p+1) x (q+1) patch of control points whose basis functions
    do not vanish is gathered, and the tensor product is contracted in homogeneous space
    (Algorithm A4.3 in The NURBS Book).

    Parameters
    ----------
    P : ndarray (n+1, m+1, 3)
        Control point grid, the first index runs along u and the second along v.

    W : ndarray (n+1, m+1)
        Weight of each control point.

    p, q : int
        Degrees in the u and v directions.

    U, V : ndarray
        Knot vectors in the u and v directions.

    u, v : scalar or ndarray (N,)
        Parametric coordinates, broadcast against each other.

    Returns
    -------
    S : ndarray (N, 3)
        Coordinates of the evaluated surface points.
    """
    u, v = jnp.broadcast_arrays(
        jnp.atleast_1d(jnp.asarray(u, dtype=float)),
        jnp.atleast_1d(jnp.asarray(v, dtype=float)),
    )

    spans_u, N_u = compute_nonzero_basis(p, U, u)  # (N,), (N, p+1)
    spans_v, N_v = compute_nonzero_basis(q, V, v)  # (N,), (N, q+1)
    indices_u = spans_u[:, None] - p + jnp.arange(p + 1)[None, :]
    indices_v = spans_v[:, None] - q + jnp.arange(q + 1)[None, :]

    # Homogeneous control points (n+1, m+1, 4)
    P_w = jnp.concatenate((P * W[..., None], W[..., None]), axis=-1)

    # Gather the non-zero patch of each sample (N, p+1, q+1, 4) and contract it
    patch = P_w[indices_u[:, :, None], indices_v[:, None, :]]
    S_w = jnp.einsum("na,nb,nabk->nk", N_u, N_v, patch)

    return S_w[:, :-1] / S_w[:, -1:]


def compute_nurbs_surface_derivatives(P, W, p, q, U, V, u, v, order_u, order_v):
    """Evaluate the mixed partial derivative of order (order_u, order_v) by nested `jax.jacfwd`"""
    u, v = jnp.broadcast_arrays(
        jnp.atleast_1d(jnp.asarray(u, dtype=float)),
        jnp.atleast_1d(jnp.asarray(v, dtype=float)),
    )

    def point(uu, vv):
        return compute_nurbs_surface_coordinates(P, W, p, q, U, V, uu, vv)[0]

    f = point
    for _ in range(order_u):
        f = jax.jacfwd(f, argnums=0)
    for _ in range(order_v):
        f = jax.jacfwd(f, argnums=1)

    return jax.vmap(f)(u, v)


# ----------------------------------------------------------- #
# Main NURBS surface class
# ----------------------------------------------------------- #
class NurbsSurface(eqx.Module):
    """Create a tensor product NURBS surface object

    Parameters
    ----------
    control_points : ndarray with shape (n+1, m+1, 3)
        Array containing the coordinates of the control points
        The first dimension spans the u-direction control points (0,1,...,n)
        The second dimension spans the v-direction control points (0,1,...,m)
        The third dimension spans the `(x,y,z)` coordinates

    weights : tuple (WU, WV) of ndarrays with shapes (n+1,) and (m+1,)
        Weights of the control points along each direction, either entry may be None
        The weight of control point (i, j) is WU[i] * WV[j]

    degrees : tuple (p, q) of int
        Degrees of the basis polynomials in the u and v directions
        Bézier degrees (n, m) are used when not provided

    knots : tuple (U, V) of ndarrays with shapes (n+p+2,) and (m+q+2,)
        Knot vectors in the u and v directions, either entry may be None
        Uniform clamped knot vectors are generated for the missing entries

    """

    P: jnp.ndarray  # (n+1, m+1, 3)
    WU: jnp.ndarray  # (n+1,)
    WV: jnp.ndarray  # (m+1,)
    p: int
    q: int
    U: jnp.ndarray
    V: jnp.ndarray

    def __init__(self, control_points, weights=(None, None), degrees=None, knots=(None, None)):

        P = jnp.asarray(control_points, dtype=float)
        if P.ndim != 3 or P.shape[2] != POINT_ARITY:
            raise DimensionMismatch(f"control_points must have shape (n+1, m+1, {POINT_ARITY}), got {P.shape}")
        n_u, n_v = P.shape[0], P.shape[1]
        if n_u < 2 or n_v < 2:
            raise DegenerateInput(f"A surface needs at least 2 by 2 control points, got {n_u} by {n_v}")

        p, q = (n_u - 1, n_v - 1) if degrees is None else (int(degrees[0]), int(degrees[1]))
        for degree, count, name in ((p, n_u, "u"), (q, n_v, "v")):
            if degree < 0 or degree >= count:
                raise InvalidDegree(f"Degree {degree} is not supported by {count} control points along {name}")

        self.P = P
        self.p = p
        self.q = q
        self.WU = _axis_weights(weights[0], n_u, "u")
        self.WV = _axis_weights(weights[1], n_v, "v")
        self.U = compute_knot_vector(n_u, p, "equal") if knots[0] is None else validate_knot_vector(knots[0], n_u, p)
        self.V = compute_knot_vector(n_v, q, "equal") if knots[1] is None else validate_knot_vector(knots[1], n_v, q)

    @property
    def control_points(self):
        return self.P

    @property
    def weights(self):
        """Weight of each control point, an (n+1, m+1) array"""
        return jnp.outer(self.WU, self.WV)

    @property
    def degrees(self):
        return self.p, self.q

    @property
    def knots(self):
        return self.U, self.V

    def knot_multiplicity(self):
        """Return the distinct knot values and their multiplicities along u and along v"""
        return knot_multiplicity(self.U), knot_multiplicity(self.V)

    # ---------------------------------------------------------------------------------------------------------------- #
    # Define functions to compute NURBS properties
    # ---------------------------------------------------------------------------------------------------------------- #
    @eqx.filter_jit
    def get_value(self, u, v):
        """Evaluate the coordinates of the surface at the parameter pairs `(u, v)`

        Returns
        -------
        S : ndarray with shape (N, 3)
            The first dimension spans the sample pairs and the second the `(x,y,z)` coordinates

        """
        return compute_nurbs_surface_coordinates(self.P, self.weights, self.p, self.q, self.U, self.V, u, v)

    @eqx.filter_jit
    def get_derivative(self, u, v, order_u, order_v):
        """Evaluate the partial derivative of order `(order_u, order_v)` at the pairs `(u, v)`"""
        return compute_nurbs_surface_derivatives(
            self.P, self.weights, self.p, self.q, self.U, self.V, u, v, order_u, order_v
        )

    def generate_polydata_representation(self, u_spacing=config.DEFAULT_SPACING, v_spacing=None):
        """Sample the surface over a uniform grid and return a quad mesh

        Parameters
        ----------
        u_spacing : float
            Parametric spacing along u, the surface is sampled at ceil(1/u_spacing) values
        v_spacing : float, optional
            Parametric spacing along v, equal to `u_spacing` when not provided

        Returns
        -------
        polydata : PolyData
            Points ordered with the u-index running fastest and one quad per grid cell

        """
        if v_spacing is None:
            v_spacing = u_spacing
        return tessellate_surface(self.P, self.WU, self.WV, self.p, self.q, self.U, self.V, u_spacing, v_spacing)

    # ---------------------------------------------------------------------------------------------------------------- #
    # Define functions for plotting
    # ---------------------------------------------------------------------------------------------------------------- #
    def plot(self, fig=None, ax=None, surface=True, control_points=True, spacing=config.DEFAULT_SPACING):
        """Create a plot and return the figure and axes handles"""

        if fig is None:
            fig = plt.figure(figsize=(6, 5))
            ax = fig.add_subplot(111, projection="3d")
            ax.set_xlabel("$x$ axis", fontsize=12, color="k", labelpad=12)
            ax.set_ylabel("$y$ axis", fontsize=12, color="k", labelpad=12)
            ax.set_zlabel("$z$ axis", fontsize=12, color="k", labelpad=12)

        if surface:
            self.plot_surface(fig, ax, spacing=spacing)
        if control_points:
            self.plot_control_points(fig, ax)

        rescale_plot(fig, ax)

        return fig, ax

    def plot_surface(self, fig, ax, color="blue", alpha=0.30, spacing=config.DEFAULT_SPACING):
        """Plot the tessellated NURBS surface"""
        polydata = self.generate_polydata_representation(spacing)
        grid = np.asarray(points_to_grid(polydata.points, *polydata.shape))
        X, Y, Z = grid[..., 0], grid[..., 1], grid[..., 2]
        ax.plot_surface(X, Y, Z, color=color, edgecolor="k", linewidth=0.25, alpha=alpha, shade=False)
        return fig, ax

    def plot_control_points(self, fig, ax, linewidth=1.0, linestyle="-.", color="red", markersize=4):
        """Plot the control net of the NURBS surface"""
        P = np.asarray(self.P)
        Px, Py, Pz = P[..., 0], P[..., 1], P[..., 2]
        ax.plot_wireframe(Px, Py, Pz, color=color, linewidth=linewidth, linestyle=linestyle)
        ax.plot(
            Px.reshape(-1),
            Py.reshape(-1),
            Pz.reshape(-1),
            linestyle=" ",
            marker="o",
            markersize=markersize,
            markeredgecolor=color,
            markerfacecolor="w",
        )
        return fig, ax


def _axis_weights(weights, count, name):
    if weights is None:
        return jnp.ones((count,))
    weights = jnp.asarray(weights, dtype=float)
    if weights.shape != (count,):
        raise DimensionMismatch(f"Weights along {name} must have shape ({count},), got {weights.shape}")
    if bool(jnp.any(weights <= 0.0)):
        raise DegenerateInput(f"Weights along {name} must be strictly positive")
    return weights
