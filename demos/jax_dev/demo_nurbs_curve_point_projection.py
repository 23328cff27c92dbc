# -------------------------------------------------------------------------------------------------------------------- #
# Importing packages
# -------------------------------------------------------------------------------------------------------------------- #
import nurbsfit as nfit
import jax.numpy as jnp
import matplotlib.pyplot as plt


# -------------------------------------------------------------------------------------------------------------------- #
# Planar NURBS curve example
# -------------------------------------------------------------------------------------------------------------------- #
# Define the array of control points (shape: 5 × 3)
P = jnp.array([
    [0.20, 0.50, 0.00],
    [0.40, 0.70, 0.00],
    [0.80, 0.60, 0.00],
    [0.60, 0.20, 0.00],
    [0.40, 0.20, 0.00],
])

# Create the NURBS curve
curve = nfit.NurbsCurve(control_points=P, degree=3)

# Define multiple points to project (each row is one point)
Q_all = jnp.array([
    [0.50, 0.50, 0.00],
    [0.70, 0.50, 0.00],
    [0.30, 0.40, 0.00],
    [0.50, 0.30, 0.00],
    [0.10, 0.10, 0.00],
])

# Compute projected parameters for all points (vectorized)
u_all = curve.project_points_to_curve(Q_all)

# Evaluate the projected coordinates on the curve
C_all = curve.get_value(u_all)

# Plot the NURBS curve and projection results
fig, ax = curve.plot()

for Q, C in zip(Q_all, C_all):
    ax.plot(
        [Q[0], C[0]],
        [Q[1], C[1]],
        [Q[2], C[2]],
        linestyle='--',
        color='b',
        marker='o',
        markeredgecolor='b',
        markerfacecolor='w'
    )

plt.show()
