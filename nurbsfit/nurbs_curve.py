import jax
import jax.numpy as jnp
import equinox as eqx
import optimistix as optx
import quadax

import matplotlib.pyplot as plt

from . import config
from .dense_matrix import POINT_ARITY
from .errors import DegenerateInput, DimensionMismatch, InvalidDegree
from .knot_vectors import compute_knot_vector, knot_multiplicity, validate_knot_vector
from .nurbs_basis_functions import compute_nonzero_basis, find_span
from .tessellation import tessellate_curve


# ----------------------------------------------------------- #
# Standalone functions to compute values
# ----------------------------------------------------------- #
def compute_nurbs_coordinates(P, W, p, U, u):
    """
    Evaluate the coordinates of a NURBS curve at the parameter values `u`.

    The curve is evaluated in *homogeneous space* using only the p+1 basis functions that
    do not vanish in the knot span of each parameter (Algorithm A4.1 in The NURBS Book),
    and the result is mapped back to ordinary space by the perspective division.

    Parameters
    ----------
    P : ndarray (n+1, 3)
        Array of control point coordinates.
        The first dimension spans the control points along the curve `(0, 1, ..., n)`,
        and the second spans the spatial coordinates `(x, y, z)`.

    W : ndarray (n+1,)
        Weights associated with each control point.

    p : int
        Degree of the B-spline basis functions.

    U : ndarray (r+1 = n + p + 2,)
        Knot vector.

    u : scalar or ndarray (N,)
        Parametric coordinate(s) at which to evaluate the curve.

    Returns
    -------
    C : ndarray (N, 3)
        Coordinates of the evaluated curve points.
    """
    P = jnp.asarray(P)
    W = jnp.asarray(W)
    U = jnp.asarray(U)
    u = jnp.atleast_1d(jnp.asarray(u, dtype=float))

    # Non-zero basis functions and the indices of the control points they multiply
    spans, N = compute_nonzero_basis(p, U, u)
    indices = spans[:, None] - p + jnp.arange(p + 1)[None, :]

    # Map control points to homogeneous space: P_w = (x*w, y*w, z*w, w)
    P_w = jnp.concatenate((P * W[:, None], W[:, None]), axis=1)

    # Evaluate the curve in homogeneous space: C_w = Σ_i N_i,p(u) * P_w[i]
    C_w = jnp.einsum("ij,ijk->ik", N, P_w[indices])

    # Project back to Euclidean space: (x, y, z) = (x*w, y*w, z*w) / w
    return C_w[:, :-1] / C_w[:, -1:]


def compute_nurbs_derivatives(P, W, p, U, u, order):
    """
    Evaluate the derivative of a NURBS curve by forward-mode automatic differentiation.

    The scalar point evaluation is differentiated `order` times with nested applications
    of `jax.jacfwd` and then vectorized over the parameter values. The knot span search is
    excluded from differentiation, so the derivative inside each span is exact within
    floating-point precision (one-sided at the knots).

    Returns
    -------
    dC : ndarray (N, 3)
        Derivative of the requested order at each parameter value.
    """
    u = jnp.atleast_1d(jnp.asarray(u, dtype=float))

    def point(uu):
        return compute_nurbs_coordinates(P, W, p, U, uu)[0]

    f = point
    for _ in range(order):
        f = jax.jacfwd(f)

    return jax.vmap(f)(u)


# ----------------------------------------------------------- #
# Main NURBS curve class
# ----------------------------------------------------------- #
class NurbsCurve(eqx.Module):
    """Create a NURBS (Non-Uniform Rational Basis Spline) curve object

    Parameters
    ----------
    control_points : ndarray with shape (n+1, 3)
        Array containing the coordinates of the control points
        The first dimension of `P` spans the u-direction control points (0,1,...,n)
        The second dimension of `P` spans the `(x,y,z)` coordinates

    weights : ndarray with shape (n+1,)
        Array containing the weight of the control points

    degree : int
        Degree of the basis polynomials

    knots : ndarray with shape (r+1=n+p+2,)
        The knot vector in the u-direction
        Set the multiplicity of the first and last entries equal to `p+1` to obtain a clamped NURBS

    Notes
    -----
    The type of curve depends on the initialization arguments

        - Polynomial Bézier: Provide the array of control points
        - Rational Bézier:   Provide the arrays of control points and weights
        - B-Spline:          Provide the array of control points, degree and (optionally) knot vector
        - NURBS:             Provide the arrays of control points and weights, degree and (optionally) knot vector

    A uniform clamped knot vector is generated when the knots are not provided

    Curves are immutable, operations such as knot insertion return a new curve

    References
    ----------
    The NURBS Book. See references to equations and algorithms throughout the code
    L. Piegl and W. Tiller
    Springer, second edition

    """

    P: jnp.ndarray  # (n+1, 3)
    W: jnp.ndarray  # (n+1,)
    p: int
    U: jnp.ndarray  # (r+1,)
    curve_type: str

    def __init__(self, control_points, weights=None, degree=None, knots=None):

        # Convert inputs to JAX arrays
        P = jnp.asarray(control_points, dtype=float)
        if P.ndim != 2 or P.shape[1] != POINT_ARITY:
            raise DimensionMismatch(f"control_points must have shape (n+1, {POINT_ARITY}), got {P.shape}")
        n_control = P.shape[0]
        if n_control < 2:
            raise DegenerateInput(f"A curve needs at least 2 control points, got {n_control}")

        # Automatic curve type deduction from arguments
        if degree is None and knots is None:
            self.curve_type = "Bezier" if weights is None else "R-Bezier"
            p = n_control - 1
        elif weights is None:
            self.curve_type = "B-Spline"
            p = degree
        else:
            self.curve_type = "NURBS"
            p = degree
        if p is None:
            raise InvalidDegree("The degree must be given together with the knot vector")
        p = int(p)
        if p < 0 or p >= n_control:
            raise InvalidDegree(f"Degree {p} is not supported by {n_control} control points")

        if weights is None:
            W = jnp.ones((n_control,))
        else:
            W = jnp.asarray(weights, dtype=float)
        if W.shape != (n_control,):
            raise DimensionMismatch(f"Mismatch between {n_control} control points and weights with shape {W.shape}")
        if bool(jnp.any(W <= 0.0)):
            raise DegenerateInput("Weights must be strictly positive")

        if knots is None:
            U = compute_knot_vector(n_control, p, "equal")
        else:
            U = validate_knot_vector(knots, n_control, p)

        # Assign class attributes
        self.P = P
        self.W = W
        self.p = p
        self.U = U

    @property
    def control_points(self):
        return self.P

    @property
    def weights(self):
        return self.W

    @property
    def degree(self):
        return self.p

    @property
    def knots(self):
        return self.U

    def knot_multiplicity(self):
        """Return the distinct knot values and their multiplicities"""
        return knot_multiplicity(self.U)

    # ---------------------------------------------------------------------------------------------------------------- #
    # Define functions to compute NURBS properties
    # ---------------------------------------------------------------------------------------------------------------- #
    @eqx.filter_jit
    def get_value(self, u):
        """Evaluate the coordinates of the curve for the input `u` parametrization

        Parameters
        ----------
        u : scalar or ndarray with shape (N,)
            Parameter used to evaluate the curve

        Returns
        -------
        C : ndarray with shape (N, 3)
            Array containing the coordinates of the curve
            The first dimension of `C` spans the `u` parametrization sample points
            The second dimension of `C` spans the `(x,y,z)` coordinates

        """
        return compute_nurbs_coordinates(self.P, self.W, self.p, self.U, u)

    @eqx.filter_jit
    def get_derivative(self, u, order):
        """Evaluate the derivative of the curve for the input u-parametrization

        Parameters
        ----------
        u : scalar or ndarray with shape (N,)
            Scalar or array containing the u-parameter used to evaluate the curve

        order : integer
            Order of the derivative

        Returns
        -------
        dC : ndarray with shape (N, 3)
            Array containing the derivative of the desired order

        """
        return compute_nurbs_derivatives(self.P, self.W, self.p, self.U, u, order)

    @eqx.filter_jit
    def get_arclength(self, u1=0.0, u2=1.0, n_points=40):
        """Compute the arc length of the curve in the interval [u1,u2] using numerical quadrature

        Parameters
        ----------
        u1 : scalar
            Lower limit of integration for the arc length computation

        u2 : scalar
            Upper limit of integration for the arc length computation

        n_points : int
            Order of the Clenshaw-Curtis rule, must be a multiple of 4

        Returns
        -------
        L : scalar
            Arc length of NURBS curve in the interval [u1, u2]

        """

        # Define the integrand
        def integrand(u, *args):
            dC = self.get_derivative(u, 1)  # (len(u), 3)
            return jnp.linalg.norm(dC, axis=-1)  # ||C'(u)||

        # Perform fixed quadrature over [u1, u2]
        rule = quadax.ClenshawCurtisRule(n_points)
        arclength, err, *_ = rule.integrate(integrand, u1, u2, args=())
        return jnp.asarray(arclength).squeeze()

    # ---------------------------------------------------------------------------------------------------------------- #
    # Define functions to solve point projection problem
    # ---------------------------------------------------------------------------------------------------------------- #
    @eqx.filter_jit
    def project_points_to_curve(self, Q_all):
        """
        Vectorized projection of multiple points onto the NURBS curve.

        Parameters
        ----------
        Q_all : array_like, shape (n_points, 3)
            Points to project onto the curve.

        Returns
        -------
        u_all : ndarray, shape (n_points,)
            Parameter values of the orthogonal projections.
        """
        return jax.vmap(self.project_point_to_curve, in_axes=0)(jnp.asarray(Q_all, dtype=float))

    @eqx.filter_jit
    def project_point_to_curve(self, Q, max_iters=32):
        """
        Project a point onto the NURBS curve by solving the orthogonality condition.

        The projection point `C(u*)` is a stationary point of the squared distance
        f(u) = ||C(u) - Q||², that is, a root of

            (C(u) - Q) · C'(u) = 0

        The equation is solved with a bounded Newton method (`optimistix.Newton`)
        that keeps `u` within [0, 1], starting from the closest of a set of uniform samples.

        Parameters
        ----------
        Q : array_like, shape (3,)
            Coordinates of the point to be projected onto the curve.
        max_iters : int, optional
            Maximum number of Newton iterations used by the solver. Default is 32.

        Returns
        -------
        u_star : float
            Parameter value in [0, 1] of the orthogonal projection of `Q` onto the curve.
        """
        Q = jnp.asarray(Q, dtype=float).reshape(POINT_ARITY)

        # Function whose root defines orthogonality condition
        def residual(u, args):
            C = self.get_value(u)[0]
            dC = self.get_derivative(u, 1)[0]
            return jnp.atleast_1d(jnp.sum((C - Q) * dC))

        u0 = jnp.atleast_1d(self._projection_initial_guess(Q))

        # Run bounded Newton solver
        solver = optx.Newton(rtol=1e-8, atol=1e-10)
        result = optx.root_find(
            residual,
            solver=solver,
            y0=u0,
            options={"lower": 0.0, "upper": 1.0},
            throw=False,
            max_steps=max_iters,
        )
        return result.value.squeeze()

    def _projection_initial_guess(self, Q):
        """Closest of `config.PROJECTION_SAMPLES` uniform samples of the curve to the point `Q`"""
        u_candidates = jnp.linspace(self.U[0], self.U[-1], config.PROJECTION_SAMPLES)
        C_candidates = self.get_value(u_candidates)  # (n_samples, 3)
        dist2 = jnp.sum((C_candidates - Q[None, :]) ** 2, axis=1)
        return u_candidates[jnp.argmin(dist2)]

    # ---------------------------------------------------------------------------------------------------------------- #
    # Tessellation and knot refinement
    # ---------------------------------------------------------------------------------------------------------------- #
    def generate_polydata_representation(self, spacing=config.DEFAULT_SPACING):
        """Sample the curve with a uniform parametric `spacing` and return a polyline

        Returns
        -------
        polydata : PolyData
            `ceil(1/spacing)` points joined by line segments

        """
        return tessellate_curve(self.P, self.W, self.p, self.U, spacing)

    def insert_knot(self, u, times=1):
        """Insert the knot `u` the given number of times without changing the curve geometry

        Knot insertion is carried out on the homogeneous control points (Algorithm A5.1 in
        The NURBS Book) and a new curve with `times` additional control points is returned

        """
        u = float(u)
        p, U = self.p, self.U
        n_control = self.P.shape[0]
        if not float(U[p]) < u < float(U[n_control]):
            raise DegenerateInput(f"Knot {u} must lie inside the domain ({float(U[p])}, {float(U[n_control])})")
        if times < 1:
            raise DegenerateInput(f"A knot must be inserted at least once, got times={times}")

        k = int(find_span(p, U, u)[0])
        s = int(jnp.sum(U == u))
        if s + times > p:
            raise DegenerateInput(f"Inserting {u} {times} times would raise its multiplicity {s} above the degree {p}")

        P_w = jnp.concatenate((self.P * self.W[:, None], self.W[:, None]), axis=1)

        # Control points that are not affected by the insertion
        Q_w = jnp.zeros((n_control + times, POINT_ARITY + 1))
        Q_w = Q_w.at[:k - p + 1].set(P_w[:k - p + 1])
        Q_w = Q_w.at[k - s + times:].set(P_w[k - s:])

        # Affected control points, updated once per insertion
        R_w = P_w[k - p:k - s + 1]
        for j in range(1, times + 1):
            L = k - p + j
            for i in range(p - j - s + 1):
                alpha = (u - U[L + i]) / (U[i + k + 1] - U[L + i])
                R_w = R_w.at[i].set(alpha * R_w[i + 1] + (1.0 - alpha) * R_w[i])
            Q_w = Q_w.at[L].set(R_w[0])
            Q_w = Q_w.at[k + times - j - s].set(R_w[p - j - s])
        L = k - p + times
        for i in range(L + 1, k - s):
            Q_w = Q_w.at[i].set(R_w[i - L])

        U_new = jnp.concatenate((U[:k + 1], jnp.full((times,), u), U[k + 1:]))
        return NurbsCurve(
            control_points=Q_w[:, :-1] / Q_w[:, -1:],
            weights=Q_w[:, -1],
            degree=p,
            knots=U_new,
        )

    def insert_knots(self, values):
        """Insert each knot of `values` once, returning the refined curve"""
        curve = self
        for u in jnp.atleast_1d(jnp.asarray(values, dtype=float)):
            curve = curve.insert_knot(u)
        return curve

    # ---------------------------------------------------------------------------------------------------------------- #
    # Define functions for plotting
    # ---------------------------------------------------------------------------------------------------------------- #
    def plot(self, fig=None, ax=None, curve=True, control_points=True, axis_off=False, ticks_off=False):
        """Create a plot and return the figure and axes handles"""

        if fig is None:
            fig = plt.figure(figsize=(6, 5))
            ax = fig.add_subplot(111, projection="3d")
            ax.set_xlabel("$x$ axis", fontsize=12, color="k", labelpad=12)
            ax.set_ylabel("$y$ axis", fontsize=12, color="k", labelpad=12)
            ax.set_zlabel("$z$ axis", fontsize=12, color="k", labelpad=12)
            if ticks_off:
                ax.set_xticks([])
                ax.set_yticks([])
                ax.set_zticks([])
            if axis_off:
                ax.axis("off")

        # Add objects to the plot
        if curve:
            self.plot_curve(fig, ax)
        if control_points:
            self.plot_control_points(fig, ax)

        # Set the scaling of the axes
        rescale_plot(fig, ax)

        return fig, ax

    def plot_curve(self, fig, ax, linewidth=1.5, linestyle="-", color="black", u1=0.00, u2=1.00):
        """Plot the coordinates of the NURBS curve"""
        u = jnp.linspace(u1, u2, 501)
        X, Y, Z = self.get_value(u).T
        (line,) = ax.plot(X, Y, Z)
        line.set_linewidth(linewidth)
        line.set_linestyle(linestyle)
        line.set_color(color)
        line.set_marker(" ")
        return fig, ax

    def plot_control_points(
        self,
        fig,
        ax,
        linewidth=1.25,
        linestyle="-.",
        color="red",
        markersize=5,
        markerstyle="o",
    ):
        """Plot the control points of the NURBS curve"""
        Px, Py, Pz = self.P.T
        (line,) = ax.plot(Px, Py, Pz)
        line.set_linewidth(linewidth)
        line.set_linestyle(linestyle)
        line.set_color(color)
        line.set_marker(markerstyle)
        line.set_markersize(markersize)
        line.set_markeredgewidth(linewidth)
        line.set_markeredgecolor(color)
        line.set_markerfacecolor("w")
        line.set_zorder(4)
        return fig, ax


# ---------------------------------------------------------------------------------------------------------------- #
# Miscellaneous functions
# ---------------------------------------------------------------------------------------------------------------- #
def rescale_plot(fig, ax):
    """Give the three axes of a 3D plot the same scale"""
    ax.autoscale(enable=True)
    x_min, x_max = ax.get_xlim()
    y_min, y_max = ax.get_ylim()
    z_min, z_max = ax.get_zlim()
    x_mid = (x_min + x_max) / 2
    y_mid = (y_min + y_max) / 2
    z_mid = (z_min + z_max) / 2
    L = max(x_max - x_min, y_max - y_min, z_max - z_min) / 2

    ax.set_xlim3d(x_mid - 1.0 * L, x_mid + 1.0 * L)
    ax.set_ylim3d(y_mid - 1.0 * L, y_mid + 1.0 * L)
    ax.set_zlim3d(z_mid - 1.0 * L, z_mid + 1.0 * L)

    # Adjust pad
    plt.tight_layout(pad=1.0)
