import nurbsfit as nfit
import numpy as np
import pytest


@pytest.mark.parametrize("spacing, expected", [(0.5, 2), (0.25, 4), (0.2, 5), (0.3, 4)])
def test_number_of_samples(spacing, expected):
    assert nfit.number_of_samples(spacing) == expected


@pytest.mark.parametrize("spacing", [0.0, -0.1, 1.0, 2.0])
def test_invalid_spacing(spacing):
    with pytest.raises(nfit.DegenerateInput):
        nfit.number_of_samples(spacing)


def test_rational_basis_rows_sum_to_one():
    U = nfit.compute_knot_vector(5, 2, "equal")
    N = nfit.basis_matrix(2, U, np.linspace(0.0, 1.0, 11))
    W = np.array([1.0, 0.5, 2.0, 1.0, 3.0])
    R = np.asarray(nfit.rational_basis(N, W))
    assert np.allclose(np.sum(R, axis=1), 1.0, atol=1e-12)
    assert np.allclose(R[:, 2] * np.sum(np.asarray(N) * W, axis=1), np.asarray(N)[:, 2] * 2.0)


def test_polyline_connectivity():
    assert np.array_equal(nfit.polyline_connectivity(3), [[0, 1], [1, 2]])


def test_structured_grid_connectivity_covers_every_cell():
    cells = np.asarray(nfit.structured_grid_connectivity(4, 3))
    assert cells.shape == (6, 4)
    assert cells.min() == 0 and cells.max() == 11
    # Quads of cell (i, j) start at vertex i + j*n_u
    assert np.array_equal(cells[:, 0], [0, 4, 1, 5, 2, 6])
