""" Example showing how to fit and tessellate an interpolating surface """


# -------------------------------------------------------------------------------------------------------------------- #
# Importing packages
# -------------------------------------------------------------------------------------------------------------------- #
import nurbsfit as nfit
import numpy as np
import matplotlib.pyplot as plt


# -------------------------------------------------------------------------------------------------------------------- #
# Surface fitting example
# -------------------------------------------------------------------------------------------------------------------- #
# Grid of samples (nu, nv, 3) of a saddle
n_u, n_v = 7, 5
x, y = np.meshgrid(np.linspace(-1.0, 1.0, n_u), np.linspace(-1.0, 1.0, n_v), indexing="ij")
Q = np.stack((x, y, 0.5 * (x**2 - y**2)), axis=-1)

# Prescribe the slope of the surface across the edges v=0 and v=1
DV0 = np.stack((np.zeros(n_u), 2.0 * np.ones(n_u), 2.0 * np.ones(n_u)), axis=1)
DVN = np.stack((np.zeros(n_u), 2.0 * np.ones(n_u), -2.0 * np.ones(n_u)), axis=1)

# Fit the surface
surface = nfit.fit_surface(
    Q,
    degrees=(3, 3),
    parameterization=("chord", "chord"),
    knot_placement=("average", "derivative"),
    DV0=DV0,
    DVN=DVN,
)
print(f"Control point grid: {surface.control_points.shape[0]} by {surface.control_points.shape[1]}")

# Tessellate the surface
polydata = surface.generate_polydata_representation(u_spacing=0.05, v_spacing=0.10)
print(f"Quad mesh with {polydata.n_points} points and {polydata.n_cells} cells")

# Plot the surface and the sample points
fig, ax = surface.plot()
ax.plot(*Q.reshape(-1, 3).T, linestyle=" ", marker="o", markersize=4, markeredgecolor="k", markerfacecolor="w")

# Show the figure
plt.show()
