"""Tests for millpath/utils modules."""
import pytest
import math

from millpath.errors import GeometryDegenerateError
from millpath.models import Point
from millpath.utils.units import inches_to_mm, mm_to_inches, to_mm, from_mm
from millpath.utils.multipass import _round_tenth, calculate_num_passes, compute_depth_levels
from millpath.utils.geometry import (
    CIRCLE_TOLERANCE_MM,
    close_contour,
    contour_min_size,
    ellipse_points,
    is_closed,
    nesting_depths,
    open_points,
    point_in_polygon,
    polylines_intersect,
    rotate_points,
    segments_for_radius,
    signed_area2,
)
from millpath.utils.contour_offset import clean_contour, offset_contour
from millpath.utils.tabs import build_tab_config, tab_boundaries_in_segment, z_for_tab_profile
from millpath.utils.lead_in import (
    calculate_lead_in_distance,
    curved_lead_in,
    helix_points,
    helix_sweep,
    outside_entry_point,
    small_helix_radius,
)


def square(half, closed=True):
    points = [Point(-half, -half), Point(half, -half), Point(half, half), Point(-half, half)]
    return close_contour(points) if closed else points


class TestUnits:
    """Tests for unit conversion utilities."""

    def test_inches_to_mm(self):
        """Test inches to millimeters conversion."""
        assert inches_to_mm(1.0) == 25.4
        assert inches_to_mm(0.5) == 12.7

    def test_mm_to_inches(self):
        """Test millimeters to inches conversion."""
        assert mm_to_inches(25.4) == pytest.approx(1.0)

    def test_unit_dispatch(self):
        """mm passes through, inch converts."""
        assert to_mm(2.0, 'mm') == 2.0
        assert to_mm(2.0, 'inch') == pytest.approx(50.8)
        assert from_mm(50.8, 'inch') == pytest.approx(2.0)
        assert from_mm(3.0, 'mm') == 3.0


class TestDepthLevels:
    """Tests for multi-pass depth levels."""

    def test_num_passes(self):
        assert calculate_num_passes(5.0, 2.5) == 2
        assert calculate_num_passes(5.0, 2.0) == 3
        assert calculate_num_passes(1.0, 5.0) == 1
        assert calculate_num_passes(1.0, 0) == 1

    def test_even_split(self):
        """Test that an exact multiple splits evenly."""
        assert compute_depth_levels(5.0, 2.5) == [-2.5, -5.0]

    def test_rounded_to_tenths(self):
        """Intermediate levels are rounded to 0.1 mm, the last is exact."""
        assert compute_depth_levels(5.0, 2.0) == [-1.7, -3.3, -5.0]

    def test_ties_round_away_from_surface(self):
        """Half-way depths round by magnitude, deeper rather than shallower."""
        assert _round_tenth(-0.25) == -0.3
        assert _round_tenth(-0.24) == -0.2
        assert _round_tenth(0.25) == 0.3
        assert compute_depth_levels(0.5, 0.25) == [-0.3, -0.5]

    def test_single_pass(self):
        """Test a stepdown deeper than the cut gives one level."""
        assert compute_depth_levels(1.0, 5.0) == [-1.0]

    def test_last_level_is_exact_total(self):
        levels = compute_depth_levels(7.3, 1.1)
        assert levels[-1] == -7.3
        assert all(a > b for a, b in zip(levels, levels[1:]))
        assert all(abs(a - b) <= 1.1 + 0.05 for a, b in zip([0.0] + levels, levels))

    def test_rounding_falls_back_to_exact(self):
        """Rounding that would put a level at the surface keeps the exact values."""
        levels = compute_depth_levels(0.08, 0.05)
        assert levels == pytest.approx([-0.04, -0.08])


class TestGeometry:
    """Tests for contour math."""

    def test_signed_area_winding(self):
        """Counter-clockwise is positive, clockwise negative."""
        ccw = square(1, closed=False)
        assert signed_area2(ccw) == pytest.approx(8.0)
        assert signed_area2(list(reversed(ccw))) == pytest.approx(-8.0)

    def test_closing_vertex_does_not_change_area(self):
        assert signed_area2(square(1)) == pytest.approx(signed_area2(square(1, closed=False)))

    def test_open_and_close(self):
        closed = square(1)
        assert is_closed(closed)
        assert not is_closed(open_points(closed))
        assert close_contour(open_points(closed)) == closed

    def test_contour_min_size(self):
        rect = [Point(0, 0), Point(10, 0), Point(10, 4), Point(0, 4)]
        assert contour_min_size(rect) == 4

    def test_segments_keep_sagitta_within_tolerance(self):
        """Test circle discretisation stays within the chord tolerance."""
        for radius in (0.5, 5.0, 25.0, 200.0):
            n = segments_for_radius(radius)
            sagitta = radius * (1 - math.cos(math.pi / n))
            assert sagitta <= CIRCLE_TOLERANCE_MM + 1e-9 or n == 360

    def test_ellipse_points_closed_ccw(self):
        pts = ellipse_points(10, 5, 64)
        assert len(pts) == 65
        assert is_closed(pts)
        assert signed_area2(pts) > 0

    def test_rotate_clockwise(self):
        """Positive angles turn clockwise."""
        rotated = rotate_points([Point(1, 0)], 90)[0]
        assert rotated.x == pytest.approx(0.0, abs=1e-12)
        assert rotated.y == pytest.approx(-1.0)

    def test_point_in_polygon(self):
        poly = square(5, closed=False)
        assert point_in_polygon(Point(0, 0), poly)
        assert not point_in_polygon(Point(6, 0), poly)

    def test_nesting_depths(self):
        """Holes sit at odd depth whatever their winding."""
        outer = square(10, closed=False)
        hole = square(4, closed=False)
        island = square(1, closed=False)
        assert nesting_depths([outer, hole, island]) == [0, 1, 2]
        assert nesting_depths([hole, outer]) == [1, 0]

    def test_polylines_intersect(self):
        a = [Point(-1, 0), Point(1, 0)]
        b = [Point(0, -1), Point(0, 1)]
        c = [Point(2, -1), Point(2, 1)]
        assert polylines_intersect(a, b)
        assert not polylines_intersect(a, c)


class TestContourOffset:
    """Tests for miter offsetting."""

    def test_inward_offset(self):
        """Test positive distance shrinks a square by the distance on each side."""
        result = offset_contour(square(5), 1.0)
        assert is_closed(result)
        xs = sorted({round(p.x, 9) for p in result})
        ys = sorted({round(p.y, 9) for p in result})
        assert xs == [-4.0, 4.0]
        assert ys == [-4.0, 4.0]

    def test_outward_offset(self):
        result = offset_contour(square(5), -1.0)
        assert max(p.x for p in result) == pytest.approx(6.0)
        assert min(p.y for p in result) == pytest.approx(-6.0)

    def test_winding_is_kept(self):
        """Test a clockwise input stays clockwise and still shrinks inward."""
        cw = list(reversed(square(5)))
        result = offset_contour(cw, 1.0)
        assert signed_area2(result) < 0
        assert max(p.x for p in result) == pytest.approx(4.0)

    def test_inward_then_outward_restores_convex_polygon(self):
        """Test offsetting a hexagon in by d then out by d gives its corners back."""
        hexagon = close_contour([
            Point(10 * math.cos(math.radians(a)), 10 * math.sin(math.radians(a)))
            for a in range(0, 360, 60)
        ])
        stepover = 2.0
        restored = open_points(offset_contour(offset_contour(hexagon, stepover), -stepover))

        assert len(restored) == 6
        for corner in open_points(hexagon):
            nearest = min(math.hypot(p.x - corner.x, p.y - corner.y) for p in restored)
            assert nearest <= stepover / 10

    def test_zero_distance_returns_closed_copy(self):
        result = offset_contour(square(5, closed=False), 0)
        assert is_closed(result)

    def test_collapse_raises(self):
        """Test offsetting past the centre fails instead of inverting."""
        with pytest.raises(GeometryDegenerateError):
            offset_contour(square(5), 5.0)
        with pytest.raises(GeometryDegenerateError):
            offset_contour(square(5), 6.0)

    def test_too_few_points(self):
        with pytest.raises(GeometryDegenerateError):
            offset_contour([Point(0, 0), Point(1, 0)], 0.1)

    def test_clean_removes_duplicates(self):
        pts = [Point(0, 0), Point(0, 0), Point(4, 0), Point(4, 4), Point(0, 4), Point(0, 0)]
        cleaned = clean_contour(pts)
        assert len(cleaned) == 4

    def test_clean_degenerate(self):
        with pytest.raises(GeometryDegenerateError):
            clean_contour([Point(0, 0), Point(0, 0), Point(1, 1)])


class TestTabs:
    """Tests for holding tab placement and profile."""

    @pytest.fixture
    def config(self):
        # 80 mm closed square: two tabs centred at 20 and 60 mm
        return build_tab_config(square(10), interval=40, width=8, total_depth=5, height=1)

    def test_tab_placement(self, config):
        assert config.closed_length == pytest.approx(80.0)
        assert config.ranges == [(16.0, 24.0), (56.0, 64.0)]
        assert config.tab_z == pytest.approx(-4.0)

    def test_profile(self, config):
        """Test ramps over the outer quarters and a flat top in the middle."""
        assert z_for_tab_profile(10.0, -5.0, config) == -5.0
        assert z_for_tab_profile(16.0, -5.0, config) == pytest.approx(-5.0)
        assert z_for_tab_profile(17.0, -5.0, config) == pytest.approx(-4.5)
        assert z_for_tab_profile(20.0, -5.0, config) == pytest.approx(-4.0)
        assert z_for_tab_profile(23.0, -5.0, config) == pytest.approx(-4.5)

    def test_shallow_layers_unaffected(self, config):
        """Layers above the tab top cut straight through."""
        assert z_for_tab_profile(20.0, -2.5, config) == -2.5

    def test_boundaries(self, config):
        assert tab_boundaries_in_segment(0.0, 40.0, config) == [0.0, 16.0, 18.0, 22.0, 24.0, 40.0]
        assert tab_boundaries_in_segment(0.0, 10.0, config) == [0.0, 10.0]

    def test_no_tabs_for_bad_input(self):
        assert build_tab_config(square(10), 0, 8, 5, 1) is None
        assert build_tab_config(square(10), 40, 8, 5, 0) is None
        assert build_tab_config([Point(0, 0)], 40, 8, 5, 1) is None


class TestLeadIn:
    """Tests for entry geometry."""

    def test_lead_in_distance(self):
        assert calculate_lead_in_distance(3.0, 1.0) == pytest.approx(19.081, abs=1e-3)
        assert calculate_lead_in_distance(0, 1.0) == 0.0
        assert calculate_lead_in_distance(3.0, 0) == 0.0

    def test_helix_sweep_respects_ramp_angle(self):
        """Test the sweep is long enough for the slope and ends on the target angle."""
        sweep = helix_sweep(3.0, 2.0, 3.0, math.pi / 2)
        assert sweep * 3.0 >= calculate_lead_in_distance(3.0, 2.0)
        assert math.cos(sweep) == pytest.approx(0.0, abs=1e-9)
        assert math.sin(sweep) == pytest.approx(1.0)

    def test_helix_points_end_on_target(self):
        pts = helix_points(0.0, 0.0, 2.0, 2.0, -3.0, math.pi, 5.0)
        last = pts[-1]
        assert last.z == pytest.approx(-3.0)
        assert last.x == pytest.approx(-2.0)
        assert last.y == pytest.approx(0.0, abs=1e-9)
        zs = [p.z for p in pts]
        assert all(a > b for a, b in zip(zs, zs[1:]))

    def test_outside_entry_point(self):
        path = ellipse_points(10, 10, 64)
        outside = outside_entry_point(path, 2.0)
        inside = outside_entry_point(path, 2.0, toward_inside=True)
        assert outside.x == pytest.approx(13.0)
        assert inside.x == pytest.approx(7.0)

    def test_small_helix_radius_clamped(self):
        assert small_helix_radius(0.5) == 0.5
        assert small_helix_radius(2.0) == 1.0
        assert small_helix_radius(10.0) == 1.5

    def test_curved_lead_in_meets_start(self):
        start, nxt = Point(10, 0), Point(10, 5)
        pts = curved_lead_in(Point(13, 0), start, nxt)
        assert pts[-1].x == pytest.approx(10.0)
        assert pts[-1].y == pytest.approx(0.0)
        # Final approach runs along the first segment (+Y)
        before = pts[-2]
        assert before.x == pytest.approx(10.0, abs=0.5)
        assert before.y < 0
