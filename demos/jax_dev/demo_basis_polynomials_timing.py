""" Compare the timing of the dense and the sparse basis evaluation """


# -------------------------------------------------------------------------------------------------------------------- #
# Importing packages
# -------------------------------------------------------------------------------------------------------------------- #
import time
import nurbsfit as nfit
import jax.numpy as jnp


# -------------------------------------------------------------------------------------------------------------------- #
# Basis polynomials example
# -------------------------------------------------------------------------------------------------------------------- #
# Number of basis polynomials
n_control = 12

# Define the order of the basis polynomials
p = 3

# Define the knot vector (clamped spline)
U = nfit.compute_knot_vector(n_control, p, "equal")

# Define a u-parametrization
Nu = 1000
u = jnp.linspace(0.00, 1.00, Nu)

# --------------------------------------------------------------------------------
# Timing: 20 steady-state runs with per-iteration errors
# --------------------------------------------------------------------------------

# --- Header ---
print("Timing 20 steady-state runs (in milliseconds):")
print(" idx | basis_matrix | nonzero basis | max difference ")
print("-----|--------------|---------------|----------------")

# --- Timing loop ---
for k in range(20):
    t0 = time.perf_counter()
    N_dense = nfit.basis_matrix(p, U, u).block_until_ready()
    t1 = time.perf_counter()
    spans, N_nonzero = nfit.compute_nonzero_basis(p, U, u)
    N_nonzero.block_until_ready()
    t2 = time.perf_counter()

    # Scatter the non-zero values into a dense matrix to compare both forms
    indices = spans[:, None] - p + jnp.arange(p + 1)[None, :]
    N_scattered = jnp.zeros((Nu, n_control)).at[jnp.arange(Nu)[:, None], indices].set(N_nonzero)
    max_error = float(jnp.max(jnp.abs(N_dense - N_scattered)))

    print(f"{k:4d} | {(t1 - t0) * 1e3:12.3f} | {(t2 - t1) * 1e3:13.3f} | {max_error:14.3e}")
