import nurbsfit as nfit
import numpy as np
import pytest


def test_equal_spacing():
    points = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [5.0, 0.0, 0.0], [6.0, 1.0, 0.0]])
    u = nfit.compute_parameter_values(points, "equal")
    assert np.allclose(u, [0.0, 1.0 / 3.0, 2.0 / 3.0, 1.0])


def test_chord_spacing():
    points = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [3.0, 0.0, 0.0]])
    u = nfit.compute_parameter_values(points, "chord")
    assert np.allclose(u, [0.0, 1.0 / 3.0, 1.0])
    assert u[-1] == 1.0


def test_centripetal_spacing():
    points = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [5.0, 0.0, 0.0]])
    u = nfit.compute_parameter_values(points, nfit.ParameterSpacing.CENTRIPETAL)
    assert np.allclose(u, [0.0, 1.0 / 3.0, 1.0])


def test_parameters_strictly_increasing():
    rng = np.random.default_rng(4)
    points = rng.random((12, 3))
    for spacing in ("equal", "chord", "centripetal"):
        u = nfit.compute_parameter_values(points, spacing)
        assert u[0] == 0.0 and u[-1] == 1.0
        assert np.all(np.diff(u) > 0.0)


@pytest.mark.parametrize("points", [np.zeros((0, 3)), np.zeros((1, 3))])
def test_too_few_points(points):
    with pytest.raises(nfit.DegenerateInput):
        nfit.compute_parameter_values(points)


def test_coincident_points():
    with pytest.raises(nfit.DegenerateInput):
        nfit.compute_parameter_values(np.ones((4, 3)), "chord")
    points = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.0, 0.0]])
    with pytest.raises(nfit.DegenerateInput):
        nfit.compute_parameter_values(points, "centripetal")


def test_unknown_spacing():
    with pytest.raises(nfit.UnknownStrategy) as exc_info:
        nfit.compute_parameter_values(np.eye(3), "uniform")
    assert exc_info.value.code is nfit.ErrorCode.UNKNOWN_STRATEGY
    assert "[UnknownStrategy]" in str(exc_info.value)


def test_wrong_point_shape():
    with pytest.raises(nfit.DimensionMismatch):
        nfit.compute_parameter_values(np.ones((4, 2)))


def test_grid_parameters_skip_collapsed_lines():
    grid = np.zeros((3, 2, 3))
    grid[:, 0] = [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [3.0, 0.0, 0.0]]
    grid[:, 1] = [0.0, 1.0, 0.0]  # pole
    u = nfit.compute_grid_parameter_values(grid, "chord", axis=0)
    assert np.allclose(u, [0.0, 1.0 / 3.0, 1.0])


def test_grid_parameters_are_averaged():
    grid = np.zeros((3, 2, 3))
    grid[:, 0] = [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [2.0, 0.0, 0.0]]
    grid[:, 1] = [[0.0, 1.0, 0.0], [3.0, 1.0, 0.0], [4.0, 1.0, 0.0]]
    u = nfit.compute_grid_parameter_values(grid, "chord", axis=0)
    assert np.allclose(u, [0.0, (0.5 + 0.75) / 2.0, 1.0])

    v = nfit.compute_grid_parameter_values(grid, "chord", axis=1)
    assert np.allclose(v, [0.0, 1.0])


def test_grid_parameters_all_lines_collapsed():
    grid = np.zeros((3, 2, 3))
    grid[:, 1] = 1.0
    with pytest.raises(nfit.DegenerateInput):
        nfit.compute_grid_parameter_values(grid, "chord", axis=0)
