"""
Lens thickness tests.

Expected values are recomputed from r = 1000(n-1)/F and
sag = r - sqrt(r^2 - s^2) so each case documents the formula it checks.
"""

import math

import numpy as np
import pytest

from opticalc.services.errors import GeometryError, ValidationError
from opticalc.services.thickness import (
    CENTER,
    EDGE,
    LensThickness,
    lens_thickness,
    meridian_power,
    sagitta,
    surface_radius,
    toric_edge_thickness,
    toric_lens_thickness,
)


def expected_sag(power, index, diameter):
    r = abs(1000 * (index - 1) / power)
    s = diameter / 2
    return r - math.sqrt(r * r - s * s)


class TestSphericalThickness:

    def test_plano_returns_min_thickness_exactly(self):
        assert lens_thickness(0, 1.5, 60, 2.0) == LensThickness(thickness=2.0, kind=CENTER)

    def test_plus_lens_reports_center_thickness(self):
        result = lens_thickness(4.0, 1.5, 60, 1.0)
        assert result.kind == CENTER
        assert result.thickness == pytest.approx(expected_sag(4.0, 1.5, 60) + 1.0)
        assert result.thickness == pytest.approx(4.65, abs=0.01)

    def test_minus_lens_reports_edge_thickness(self):
        result = lens_thickness(-4.0, 1.5, 60, 2.0)
        assert result.kind == EDGE
        assert result.thickness == pytest.approx(expected_sag(-4.0, 1.5, 60) + 2.0)

    def test_higher_index_is_thinner(self):
        cr39 = lens_thickness(-6.0, 1.498, 70, 2.0)
        hi = lens_thickness(-6.0, 1.74, 70, 2.0)
        assert hi.thickness < cr39.thickness

    def test_power_too_strong_for_diameter(self):
        # r = 1000 * 0.498 / 20 = 24.9mm < 35mm semi-diameter
        with pytest.raises(GeometryError) as exc_info:
            lens_thickness(20, 1.498, 70, 1.0)
        assert exc_info.value.power == 20
        assert exc_info.value.kind == "geometry"
        assert "too high" in exc_info.value.message

    def test_radius_equal_to_semi_diameter_is_rejected(self):
        # r = 1000 * 0.5 / 10 = 50mm == 100mm / 2
        with pytest.raises(GeometryError):
            sagitta(10, 1.5, 100)

    def test_index_must_exceed_one(self):
        with pytest.raises(ValidationError):
            lens_thickness(-2.0, 1.0, 60, 2.0)
        with pytest.raises(ValidationError):
            surface_radius(2.0, 0.9)

    def test_negative_thickness_rejected(self):
        with pytest.raises(ValidationError):
            lens_thickness(-2.0, 1.5, 60, -1.0)

    def test_surface_radius(self):
        assert surface_radius(-4.0, 1.5) == pytest.approx(125.0)
        assert sagitta(0, 1.5, 60) == 0.0


class TestToricEdgeThickness:

    @pytest.mark.parametrize("sphere", [-6.0, -2.5, 0.0, 1.75, 4.0])
    def test_zero_cylinder_matches_spherical(self, sphere):
        spherical = lens_thickness(sphere, 1.586, 65, 1.5)
        toric = toric_edge_thickness(sphere, 0.0, 90, 1.586, 65, 1.5)
        if spherical.kind == CENTER:
            assert toric.center == pytest.approx(spherical.thickness)
            assert toric.min_edge == toric.max_edge == 1.5
        else:
            assert toric.max_edge == pytest.approx(spherical.thickness)
            assert toric.min_edge == pytest.approx(spherical.thickness)
            assert toric.center == 1.5

    def test_minus_form(self):
        result = toric_edge_thickness(-2.0, -1.0, 90, 1.5, 60, 2.0)
        assert result.center == 2.0
        assert result.min_edge == pytest.approx(2.0 + expected_sag(-2.0, 1.5, 60))
        assert result.max_edge == pytest.approx(2.0 + expected_sag(-3.0, 1.5, 60))
        # thickest edge lies along the stronger (sphere + cyl) meridian
        assert result.min_edge_axis == 90
        assert result.max_edge_axis == 180

    def test_plus_form(self):
        result = toric_edge_thickness(3.0, -1.0, 180, 1.5, 60, 1.0)
        max_sag = expected_sag(3.0, 1.5, 60)
        min_sag = expected_sag(2.0, 1.5, 60)
        assert result.min_edge == 1.0
        assert result.center == pytest.approx(max_sag + 1.0)
        assert result.max_edge == pytest.approx(max_sag + 1.0 - min_sag)
        assert result.min_edge_axis == 180
        assert result.max_edge_axis == 90

    @pytest.mark.parametrize("sphere,cylinder", [(-4.0, -2.0), (2.0, -4.0), (5.0, -0.5), (-0.25, -0.25)])
    def test_all_thicknesses_non_negative(self, sphere, cylinder):
        result = toric_edge_thickness(sphere, cylinder, 45, 1.6, 60, 0.5)
        assert result.min_edge >= 0
        assert result.max_edge >= result.min_edge
        assert result.center >= 0

    def test_geometry_failure_names_meridian(self):
        # sphere meridian (-10 D, r=50mm) is fine; -20 D at 90 degrees is not
        with pytest.raises(GeometryError) as exc_info:
            toric_edge_thickness(-10.0, -10.0, 180, 1.5, 70, 1.0)
        assert exc_info.value.meridian == 90
        assert exc_info.value.power == -20.0

    def test_axis_out_of_range(self):
        with pytest.raises(ValidationError):
            toric_edge_thickness(-2.0, -1.0, 0, 1.5, 60, 2.0)


class TestToricLensThickness:

    def test_meridian_power(self):
        assert meridian_power(-2.0, -1.0, 90, 90) == pytest.approx(-2.0)
        assert meridian_power(-2.0, -1.0, 90, 0) == pytest.approx(-3.0)
        assert meridian_power(-2.0, -1.0, 90, 45) == pytest.approx(-2.5)
        powers = meridian_power(1.0, 2.0, 180, np.array([0.0, 90.0]))
        assert powers == pytest.approx([1.0, 3.0])

    def test_sphere_only_matches_spherical(self):
        spherical = lens_thickness(-4.0, 1.6, 70, 2.0)
        sweep = toric_lens_thickness(-4.0, 0.0, 90, 1.6, 70, 2.0)
        assert sweep.max_thickness == pytest.approx(spherical.thickness)
        assert sweep.min_thickness == 2.0

    def test_thickest_meridian_is_perpendicular_to_axis(self):
        sweep = toric_lens_thickness(-2.0, -1.0, 90, 1.5, 60, 2.0)
        assert sweep.thickest_meridian == 0
        assert sweep.kind == EDGE
        assert sweep.max_thickness == pytest.approx(expected_sag(-3.0, 1.5, 60) + 2.0)

    def test_plus_toric_is_center(self):
        sweep = toric_lens_thickness(2.0, 1.0, 180, 1.5, 60, 1.0)
        assert sweep.kind == CENTER
        assert sweep.thickest_meridian == 90

    def test_sweep_geometry_failure(self):
        with pytest.raises(GeometryError) as exc_info:
            toric_lens_thickness(-10.0, -10.0, 180, 1.5, 70, 1.0)
        assert exc_info.value.meridian is not None
        assert 0 < exc_info.value.meridian < 90


NAN = float("nan")
INF = float("inf")


@pytest.mark.parametrize("call", [
    lambda: surface_radius(NAN, 1.5),
    lambda: sagitta(INF, 1.5, 60),
    lambda: sagitta(-4.0, 1.5, NAN),
    lambda: lens_thickness(NAN, 1.5, 60, 2.0),
    lambda: lens_thickness(-4.0, INF, 60, 2.0),
    lambda: lens_thickness(-4.0, 1.5, 60, NAN),
    lambda: toric_edge_thickness(-2.0, NAN, 90, 1.5, 60, 2.0),
    lambda: toric_edge_thickness(-2.0, -1.0, INF, 1.5, 60, 2.0),
    lambda: toric_lens_thickness(NAN, -1.0, 90, 1.5, 60, 2.0),
    lambda: toric_lens_thickness(-2.0, -1.0, 90, 1.5, -INF, 2.0),
])
def test_non_finite_inputs_rejected(call):
    with pytest.raises(ValidationError):
        call()
