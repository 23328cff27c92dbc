""" Example showing how to compute a family of basis polynomials """


# -------------------------------------------------------------------------------------------------------------------- #
# Importing packages
# -------------------------------------------------------------------------------------------------------------------- #
import nurbsfit as nfit
import numpy as np
import matplotlib.pyplot as plt


# -------------------------------------------------------------------------------------------------------------------- #
# Basis polynomials and rational basis example
# -------------------------------------------------------------------------------------------------------------------- #
# Number of basis polynomials (one per control point)
n_control = 5

# Define the order of the basis polynomials
p = 3

# Define the knot vector (clamped spline)
# p+1 zeros, n-p-1 equispaced interior knots and p+1 ones. In total n+p+1 knots
U = nfit.compute_knot_vector(n_control, p, "equal")

# Define the weights used for the rational basis
W = np.array([1.0, 0.5, 2.0, 0.5, 1.0])

# Define a u-parametrization that includes both ends of the domain
u = np.linspace(0.00, 1.00, 1001)

# Compute the basis polynomials and the rational basis
N_basis = nfit.basis_matrix(p, U, u)
R_basis = nfit.rational_basis(N_basis, W)


# -------------------------------------------------------------------------------------------------------------------- #
# Plot the basis polynomials
# -------------------------------------------------------------------------------------------------------------------- #
# Create the figure
fig = plt.figure(figsize=(10, 4.5))

# Plot the polynomial basis
ax1 = fig.add_subplot(121)
ax1.set_title('B-spline basis', fontsize=12, color='k', pad=12)
ax1.set_xlabel('$u$ parameter', fontsize=12, color='k', labelpad=12)
ax1.set_ylabel('Function value', fontsize=12, color='k', labelpad=12)
for i in range(n_control):
    line, = ax1.plot(u, N_basis[:, i])
    line.set_linewidth(1.25)
    line.set_linestyle("-")
    line.set_marker(" ")
    line.set_label('index ' + str(i))

# Plot the rational basis
ax2 = fig.add_subplot(122)
ax2.set_title('Rational basis', fontsize=12, color='k', pad=12)
ax2.set_xlabel('$u$ parameter', fontsize=12, color='k', labelpad=12)
ax2.set_ylabel('Function value', fontsize=12, color='k', labelpad=12)
for i in range(n_control):
    line, = ax2.plot(u, R_basis[:, i])
    line.set_linewidth(1.25)
    line.set_linestyle("-")
    line.set_marker(" ")
    line.set_label('index ' + str(i))

# Create legend
ax2.legend(ncol=1, loc='right', bbox_to_anchor=(1.40, 0.50), fontsize=10, edgecolor='k', framealpha=1.0)

# Adjust pad
plt.tight_layout(pad=1.)

# Show the figure
plt.show()
