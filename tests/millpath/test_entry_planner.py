"""Tests for the per-layer entry state machine."""
import pytest
import math
from dataclasses import replace

from millpath.entry_planner import (
    EntryPhase,
    EntryPlanner,
    MoveRecorder,
    PathEntry,
    entry_phase,
)
from millpath.models import EntryMethod, MoveKind, Point, ToolpathMove
from millpath.utils.geometry import close_contour, ellipse_points
from millpath.utils.tabs import build_tab_config

TAN_3 = math.tan(math.radians(3.0))


def square(half):
    return close_contour([Point(half, -half), Point(half, half), Point(-half, half), Point(-half, -half)])


def xyz(move):
    return (move.x, move.y, move.z)


@pytest.fixture
def recorder():
    return MoveRecorder()


@pytest.fixture
def planner(cut_params, recorder):
    return EntryPlanner(cut_params, recorder)


@pytest.fixture
def ramp_planner(cut_params, recorder):
    cut = replace(cut_params, entry_method=EntryMethod.RAMP, ramp_angle_max=3.0)
    return EntryPlanner(cut, recorder)


class TestEntryPhase:
    """Tests for entry phase selection."""

    def test_fresh_without_history(self):
        assert entry_phase(None, -2.0, True) == EntryPhase.FRESH

    def test_continue_when_deeper(self):
        last = ToolpathMove(0, 0, -2.0)
        assert entry_phase(last, -4.0, True) == EntryPhase.CONTINUE_LAYER

    def test_fresh_when_tool_is_up(self):
        """A tool at or above the stock top starts fresh."""
        assert entry_phase(ToolpathMove(0, 0, 10.0, MoveKind.RAPID), -2.0, True) == EntryPhase.FRESH
        assert entry_phase(ToolpathMove(0, 0, -2.0), -2.0, True) == EntryPhase.FRESH

    def test_next_path(self):
        assert entry_phase(ToolpathMove(0, 0, -2.0), -4.0, False) == EntryPhase.NEXT_PATH


class TestMoveRecorder:
    """Tests for move recording."""

    def test_duplicates_suppressed(self, recorder):
        recorder.cut(1, 2, 3)
        recorder.cut(1, 2, 3)
        assert len(recorder.moves) == 1

    def test_retract(self, recorder):
        recorder.retract(10.0)
        assert recorder.moves == []
        recorder.cut(1, 2, -3)
        recorder.retract(10.0)
        assert xyz(recorder.last) == (1, 2, 10.0)
        assert recorder.last.kind == MoveKind.RAPID
        recorder.retract(10.0)
        assert len(recorder.moves) == 2


class TestPlungeEntry:
    """Tests for plunge entries and layer continuation."""

    def test_fresh_plunge(self, planner, recorder):
        """Test rapid to clearance, rapid to lead-in height, feed down, cut."""
        planner.add_layer([Point(0, 0), Point(10, 0)], -2.0)
        assert [(m.kind, xyz(m)) for m in recorder.moves] == [
            (MoveKind.RAPID, (0, 0, 10.0)),
            (MoveKind.RAPID, (0, 0, 2.0)),
            (MoveKind.CUT, (0, 0, 0.0)),
            (MoveKind.CUT, (0, 0, -2.0)),
            (MoveKind.CUT, (10, 0, -2.0)),
        ]

    def test_continue_layer_stays_down(self, planner, recorder):
        """Test the next layer starts from the current depth without a rapid."""
        path = square(10)
        planner.add_layer(path, -2.0)
        count = len(recorder.moves)
        planner.add_layer(path, -4.0)
        later = recorder.moves[count:]
        assert all(m.kind == MoveKind.CUT for m in later)
        assert xyz(later[0]) == (10, -10, -4.0)

    def test_next_path_retracts(self, planner, recorder):
        planner.add_layer([Point(0, 0), Point(10, 0)], -2.0)
        count = len(recorder.moves)
        planner.add_layer([Point(0, 5), Point(10, 5)], -2.0, first_at_depth=False)
        later = recorder.moves[count:]
        assert later[0].kind == MoveKind.RAPID
        assert xyz(later[0]) == (10, 0, 10.0)
        assert xyz(later[1]) == (0, 5, 10.0)

    def test_single_point_drilled(self, planner, recorder):
        planner.add_layer([Point(5, 5)], -3.0)
        assert [xyz(m) for m in recorder.moves] == [
            (5, 5, 10.0), (5, 5, 2.0), (5, 5, 0.0), (5, 5, -3.0)
        ]

    def test_plunge_outside_with_lead_in(self, planner, recorder):
        """Test an outside plunge enters beside the path and curves onto it."""
        path = ellipse_points(10, 10, 64)
        planner.add_layer(path, -2.0, entry=PathEntry(plunge_outside=True))
        first = recorder.moves[0]
        assert first.x == pytest.approx(19.0)
        plunge = [m for m in recorder.moves if m.kind == MoveKind.CUT][:2]
        assert all(m.x == pytest.approx(19.0) for m in plunge)
        # The curve lands on the path start at depth
        starts = [m for m in recorder.moves if m.x == pytest.approx(10.0) and abs(m.y) < 1e-9]
        assert starts and starts[0].z == -2.0


class TestRampEntry:
    """Tests for helical and along-contour ramp entries."""

    def test_helix_entry(self, ramp_planner, recorder):
        """Test a helix descends no steeper than the ramp angle and ends on the path start."""
        path = ellipse_points(3, 3, 32)
        entry = PathEntry(use_helix=True, helix_center=(0.0, 0.0), max_helix_radius=10.0)
        ramp_planner.add_layer(path, -2.0, entry=entry)

        cuts = [m for m in recorder.moves if m.kind == MoveKind.CUT]
        assert xyz(recorder.moves[1]) == (3.0, 0.0, 2.0)
        previous = recorder.moves[1]
        for move in cuts:
            horizontal = math.hypot(move.x - previous.x, move.y - previous.y)
            drop = previous.z - move.z
            if drop > 1e-9:
                assert drop <= horizontal * TAN_3 * 1.01
            previous = move
        assert min(m.z for m in recorder.moves) == pytest.approx(-2.0)

    def test_helix_too_small_plunges(self, ramp_planner, recorder):
        entry = PathEntry(use_helix=True, helix_center=(0.0, 0.0), max_helix_radius=0.01)
        ramp_planner.add_layer([Point(0, 0), Point(1, 0)], -2.0, entry=entry)
        descent = [m for m in recorder.moves if m.kind == MoveKind.CUT and m.z < 0][0]
        assert (descent.x, descent.y) == (0, 0)

    def test_contour_ramp_last_layer(self, ramp_planner, recorder):
        """Test the ramp wraps along the contour and the last layer re-cuts it at depth."""
        path = square(10)
        ramp_planner.add_layer(path, -2.0, is_last_layer=True)

        cuts = [m for m in recorder.moves if m.kind == MoveKind.CUT]
        zs = [m.z for m in cuts]
        assert all(a >= b - 1e-9 for a, b in zip(zs, zs[1:]))
        assert zs[-1] == -2.0
        previous = recorder.moves[1]
        for move in cuts:
            horizontal = math.hypot(move.x - previous.x, move.y - previous.y)
            drop = previous.z - move.z
            if drop > 1e-9:
                assert drop <= horizontal * TAN_3 + 1e-9
            previous = move

        # The ramp covers 4 mm / tan(3 deg) along the 80 mm lap; the walk stops there on lap two
        run = 4.0 / TAN_3
        assert cuts[-1].x == pytest.approx(-10.0 + (run - 60.0))
        assert cuts[-1].y == pytest.approx(-10.0)

    def test_contour_ramp_inner_layer_ends_at_start(self, ramp_planner, recorder):
        path = square(10)
        ramp_planner.add_layer(path, -2.0, is_last_layer=False)
        last = recorder.last
        assert (last.x, last.y, last.z) == pytest.approx((10.0, -10.0, -2.0))

    def test_contour_ramp_respects_tabs(self, ramp_planner, recorder):
        """Test the ramp never cuts below a tab top."""
        path = square(10)
        tabs = build_tab_config(path, 40, 8, 5.0, 1.0)
        ramp_planner.add_layer(path, -5.0, entry=PathEntry(tabs=tabs))
        raised = [m for m in recorder.moves if m.kind == MoveKind.CUT and m.z == pytest.approx(-4.0)]
        assert raised
        assert min(m.z for m in recorder.moves) == pytest.approx(-5.0)


class TestFollowPath:
    """Tests for following a path at depth."""

    def test_tabs_raise_z(self, planner, recorder):
        path = square(10)
        tabs = build_tab_config(path, 40, 8, 5.0, 1.0)
        planner.follow_path(path, -5.0, tabs)
        zs = {round(m.z, 9) for m in recorder.moves}
        assert zs >= {-5.0, -4.0}

    def test_tabs_on_intermediate_layer_below_tab_top(self, planner, recorder):
        """Test a layer that is not the last still steps over tall tabs."""
        path = square(10)
        tabs = build_tab_config(path, 40, 8, 5.0, 3.0)
        planner.follow_path(path, -2.5, tabs)
        zs = {round(m.z, 9) for m in recorder.moves}
        assert zs >= {-2.5, -2.0}
        assert min(zs) == -2.5

    def test_no_tabs_above_tab_top(self, planner, recorder):
        path = square(10)
        tabs = build_tab_config(path, 40, 8, 5.0, 1.0)
        planner.follow_path(path, -2.5, tabs)
        assert all(m.z == -2.5 for m in recorder.moves)
        assert len(recorder.moves) == len(path)
