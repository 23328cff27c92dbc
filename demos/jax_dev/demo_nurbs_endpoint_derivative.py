"""
Verify the end derivative constraints of an interpolating curve using automatic differentiation.
"""

# -------------------------------------------------------------------------------------------------------------------- #
# Imports
# -------------------------------------------------------------------------------------------------------------------- #
import nurbsfit as nfit
import jax.numpy as jnp
import matplotlib.pyplot as plt


# -------------------------------------------------------------------------------------------------------------------- #
# Define sample points and fit the curve
# -------------------------------------------------------------------------------------------------------------------- #
# Sample points (n, 3)
Q = jnp.array([
    [0.20, 0.50, 0.00],
    [0.40, 0.70, 0.10],
    [0.80, 0.60, 0.20],
    [0.60, 0.20, 0.10],
    [0.40, 0.25, 0.00],
])

# Prescribed end derivatives
D0 = jnp.array([1.0, 1.0, 0.0])
DN = jnp.array([-1.0, 0.5, -0.5])

# Fit a cubic with two additional control points for the derivatives
curve = nfit.fit_curve(Q, degree=3, parameterization="centripetal", knot_placement="derivative", D0=D0, DN=DN)


# -------------------------------------------------------------------------------------------------------------------- #
# Compute derivatives at the endpoints
# -------------------------------------------------------------------------------------------------------------------- #
dC_start = curve.get_derivative(0.0, 1)[0]
dC_end = curve.get_derivative(1.0, 1)[0]

abs_err_start = jnp.linalg.norm(dC_start - D0)
abs_err_end = jnp.linalg.norm(dC_end - DN)

print("\n--- End derivative verification ---")
print(f"Number of control points:  {curve.control_points.shape[0]}")
print(f"Start derivative computed: {dC_start}")
print(f"Start derivative expected: {D0}")
print(f"Start absolute error:      {abs_err_start:.3e}")
print(f"End derivative computed:   {dC_end}")
print(f"End derivative expected:   {DN}")
print(f"End absolute error:        {abs_err_end:.3e}")


# -------------------------------------------------------------------------------------------------------------------- #
# Plot the curve and tangents
# -------------------------------------------------------------------------------------------------------------------- #
fig, ax = curve.plot()
ax.plot(*Q.T, linestyle=" ", marker="s", color="b", label="Sample points")

# Plot tangents at endpoints
scale = 0.2
ax.quiver(*Q[0], *(scale * dC_start), color="r", label="Tangent at start")
ax.quiver(*Q[-1], *(scale * dC_end), color="b", label="Tangent at end")

ax.legend()
ax.set_title("End derivative verification")
plt.show()
