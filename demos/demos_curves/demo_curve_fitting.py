""" Example showing how to fit interpolating curves with different parameterizations """


# -------------------------------------------------------------------------------------------------------------------- #
# Importing packages
# -------------------------------------------------------------------------------------------------------------------- #
import nurbsfit as nfit
import numpy as np
import matplotlib.pyplot as plt


# -------------------------------------------------------------------------------------------------------------------- #
# Curve fitting example
# -------------------------------------------------------------------------------------------------------------------- #
# Unevenly spaced samples of a helix
t = np.array([0.0, 0.15, 0.2, 0.6, 1.1, 1.3, 2.0, 2.4, 3.0])
Q = np.stack((np.cos(2 * t), np.sin(2 * t), 0.25 * t), axis=1)

# Print the knots and control points of the stages
nfit.enable_logging("DEBUG")

# Fit one curve per parameterization strategy
fig, ax = None, None
colors = {"equal": "green", "chord": "black", "centripetal": "blue"}
for spacing, color in colors.items():
    curve = nfit.fit_curve(Q, degree=3, parameterization=spacing, knot_placement="average")
    print(f"{spacing:>12s}: arc length {float(curve.get_arclength()):.6f}")
    if fig is None:
        fig, ax = curve.plot(curve=False, control_points=False)
    curve.plot_curve(fig, ax, color=color)

# Tessellate the last curve
polydata = curve.generate_polydata_representation(spacing=0.05)
print(f"Polyline with {polydata.n_points} points and {polydata.n_cells} segments")

# Plot the sample points
ax.plot(*Q.T, linestyle=" ", marker="o", markersize=5, markeredgecolor="r", markerfacecolor="w")

# Show the figure
plt.show()
