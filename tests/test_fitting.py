import nurbsfit as nfit
import numpy as np
import pytest


POINTS = np.array([
    [0.0, 0.0, 0.0],
    [1.0, 2.0, 0.0],
    [3.0, 3.0, 1.0],
    [4.0, 1.0, 2.0],
    [6.0, 0.0, 0.0],
    [7.0, 2.0, 1.0],
])


def wavy_grid(n_u, n_v):
    x, y = np.meshgrid(np.linspace(0.0, 1.0, n_u), np.linspace(0.0, 2.0, n_v), indexing="ij")
    return np.stack((x, y, 0.5 * np.sin(2.0 * x) * np.cos(y)), axis=-1)


@pytest.mark.parametrize("spacing", ["equal", "chord", "centripetal"])
@pytest.mark.parametrize("degree", [1, 2, 3])
def test_fit_curve_interpolates_points(spacing, degree):
    curve = nfit.fit_curve(POINTS, degree=degree, parameterization=spacing)
    u = nfit.compute_parameter_values(POINTS, spacing)
    assert curve.control_points.shape == POINTS.shape
    assert np.allclose(curve.weights, 1.0)
    assert curve.knots.shape == (POINTS.shape[0] + degree + 1,)
    assert np.allclose(curve.get_value(u), POINTS, atol=1e-6)


def test_fit_curve_errors():
    with pytest.raises(nfit.UnknownStrategy):
        nfit.fit_curve(POINTS, parameterization="arc")
    with pytest.raises(nfit.UnknownStrategy):
        nfit.fit_curve(POINTS, knot_placement="chord")
    with pytest.raises(nfit.InvalidDegree):
        nfit.fit_curve(POINTS, degree=6)
    with pytest.raises(nfit.DegenerateInput):
        nfit.fit_curve(POINTS[:1])
    with pytest.raises(nfit.DegenerateInput):
        nfit.fit_curve(np.concatenate((POINTS[:2], POINTS[1:])))
    with pytest.raises(nfit.DimensionMismatch):
        nfit.fit_curve(POINTS, knot_placement="derivative")


def test_errors_share_a_base_class():
    with pytest.raises(nfit.NurbsError) as exc_info:
        nfit.fit_curve(POINTS, degree=-1)
    assert isinstance(exc_info.value, ValueError)
    assert exc_info.value.code is nfit.ErrorCode.INVALID_DEGREE


def test_error_message_formatting():
    assert str(nfit.NurbsError("plain message")) == "plain message"
    assert str(nfit.InvalidDegree("bad degree")) == "[InvalidDegree] bad degree"


def test_fit_surface_interpolates_grid():
    grid = wavy_grid(6, 5)
    surface = nfit.fit_surface(grid, degrees=(3, 2), parameterization=("chord", "centripetal"))
    u = nfit.compute_grid_parameter_values(grid, "chord", axis=0)
    v = nfit.compute_grid_parameter_values(grid, "centripetal", axis=1)
    assert surface.control_points.shape == (6, 5, 3)

    uu, vv = np.meshgrid(u, v, indexing="ij")
    S = surface.get_value(uu.reshape(-1), vv.reshape(-1)).reshape(6, 5, 3)
    assert np.allclose(S, grid, atol=1e-6)


def test_fit_surface_numpy_integer_degree():
    grid = wavy_grid(4, 3)
    surface = nfit.fit_surface(grid, degrees=np.int64(2))
    assert surface.degrees == (2, 2)
    assert surface.control_points.shape == (4, 3, 3)


def test_fit_surface_with_edge_derivatives():
    grid = wavy_grid(4, 4)
    DU0 = np.tile([1.0, 0.0, 0.5], (4, 1))
    DUN = np.tile([1.0, 0.0, -0.5], (4, 1))
    DV0 = np.tile([0.0, 2.0, 0.25], (4, 1))
    DVN = np.tile([0.0, 2.0, -0.25], (4, 1))
    surface = nfit.fit_surface(
        grid,
        degrees=(2, 2),
        parameterization="equal",
        knot_placement="derivative",
        DU0=DU0,
        DUN=DUN,
        DV0=DV0,
        DVN=DVN,
    )
    assert surface.control_points.shape == (6, 6, 3)

    s = np.linspace(0.0, 1.0, 4)
    uu, vv = np.meshgrid(s, s, indexing="ij")
    S = surface.get_value(uu.reshape(-1), vv.reshape(-1)).reshape(4, 4, 3)
    assert np.allclose(S, grid, atol=1e-6)

    # Edge derivatives along u are met at every v sample, the corner twist vanishes
    assert np.allclose(surface.get_derivative(0.0, s, 1, 0), DU0, atol=1e-6)
    assert np.allclose(surface.get_derivative(1.0, s, 1, 0), DUN, atol=1e-6)
    assert np.allclose(surface.get_derivative(s, 0.0, 0, 1), DV0, atol=1e-6)
    assert np.allclose(surface.get_derivative(0.0, 0.0, 1, 1), 0.0, atol=1e-6)


def test_fit_surface_weights():
    grid = wavy_grid(4, 3)
    WU = np.array([1.0, 2.0, 2.0, 1.0])
    surface = nfit.fit_surface(grid, degrees=(2, 1), weights=(WU, None))
    assert np.allclose(surface.weights, np.outer(WU, np.ones(3)))
    with pytest.raises(nfit.DimensionMismatch):
        nfit.fit_surface(grid, degrees=(2, 1), weights=(np.ones(3), None))


def test_fit_surface_errors():
    with pytest.raises(nfit.DimensionMismatch):
        nfit.fit_surface(np.zeros((4, 3)))
    with pytest.raises(nfit.InvalidDegree):
        nfit.fit_surface(wavy_grid(4, 3), degrees=(3, 3))
    with pytest.raises(nfit.DimensionMismatch):
        nfit.fit_surface(wavy_grid(4, 4), degrees=(2, 2), knot_placement=("derivative", "average"))


def test_pipeline_logging():
    messages = []
    handler_id = nfit.enable_logging("DEBUG", sink=messages.append)
    try:
        nfit.fit_curve(POINTS, degree=3)
    finally:
        nfit.disable_logging(handler_id)

    assert any("Length of knots" in message for message in messages)
    assert any("Fitted a degree 3 curve" in message for message in messages)

    messages.clear()
    nfit.fit_curve(POINTS, degree=3)
    assert messages == []
