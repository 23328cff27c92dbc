#!/usr/bin/env python3
import pytest

# Define the list of tests
tests_list = [
    "test_dense_matrix.py",
    "test_parameterization.py",
    "test_knot_vectors.py",
    "test_nurbs_basis_functions.py",
    "test_interpolation.py",
    "test_tessellation.py",
    "test_nurbs_curve.py",
    "test_nurbs_surface.py",
    "test_fitting.py",
]

# Run pytest with increased verbosity
pytest.main(["-vv"] + tests_list)
# pytest.main(["-vv", "-ra", "-Wdefault"] + tests_list)
