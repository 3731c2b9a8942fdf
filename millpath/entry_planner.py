"""Per-layer entry, path following and retract planning.

Every (path, depth layer) pair goes through the same small state machine:
rapid to the clearance plane, descend (plunge, ramp along the path or
helix), follow the path, then either retract or stay down for the next
layer. Which transitions apply is decided by the entry phase:

- FRESH: first path at this depth, tool comes from the clearance plane
- CONTINUE_LAYER: the tool is still in the cut from the layer above and
  descends from there without retracting
- NEXT_PATH: another independent path at the same depth; always retracts
  and re-enters
"""
import bisect
import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from .models import CutParams, EntryMethod, MoveKind, Point, ToolpathMove
from .utils.geometry import distance, is_closed
from .utils.lead_in import (
    MIN_HELIX_RADIUS,
    calculate_lead_in_distance,
    curved_lead_in,
    helix_points,
    outside_entry_point,
    small_helix_radius,
)
from .utils.tabs import TabConfig, tab_boundaries_in_segment, z_for_tab_profile

Z_EPS = 1e-6
POINT_EPS = 1e-9


class EntryPhase(Enum):
    FRESH = 'fresh'
    CONTINUE_LAYER = 'continue_layer'
    NEXT_PATH = 'next_path'


class EntryStyle(Enum):
    PLUNGE = 'plunge'
    HELIX = 'helix'
    OUTSIDE_HELIX = 'outside_helix'
    CONTOUR_RAMP = 'contour_ramp'


@dataclass
class PathEntry:
    """How a path is entered and followed."""
    use_helix: bool = False
    helix_center: Optional[Tuple[float, float]] = None
    max_helix_radius: Optional[float] = None
    plunge_outside: bool = False
    entry_inside: bool = False  # outside entry offset toward the path centre
    tabs: Optional[TabConfig] = None


def entry_phase(last: Optional[ToolpathMove], depth_z: float, first_at_depth: bool) -> EntryPhase:
    """
    Decide how the tool reaches a path at a new depth.

    Args:
        last: Last recorded move, if any
        depth_z: Target depth of this layer (negative)
        first_at_depth: True for the first path cut at this depth

    Returns:
        The entry phase for this path
    """
    if not first_at_depth:
        return EntryPhase.NEXT_PATH
    if last is not None and last.z < -Z_EPS and depth_z < last.z - Z_EPS:
        return EntryPhase.CONTINUE_LAYER
    return EntryPhase.FRESH


class MoveRecorder:
    """Append-only move list with duplicate suppression."""

    def __init__(self):
        self.moves: List[ToolpathMove] = []

    @property
    def last(self) -> Optional[ToolpathMove]:
        return self.moves[-1] if self.moves else None

    def rapid(self, x: float, y: float, z: float) -> None:
        self._add(x, y, z, MoveKind.RAPID)

    def cut(self, x: float, y: float, z: float) -> None:
        self._add(x, y, z, MoveKind.CUT)

    def retract(self, safe_z: float) -> None:
        """Rapid straight up to the clearance plane if below it."""
        last = self.last
        if last is not None and last.z < safe_z - Z_EPS:
            self.rapid(last.x, last.y, safe_z)

    def _add(self, x: float, y: float, z: float, kind: MoveKind) -> None:
        last = self.last
        if (last is not None and abs(last.x - x) < POINT_EPS
                and abs(last.y - y) < POINT_EPS and abs(last.z - z) < POINT_EPS):
            return
        self.moves.append(ToolpathMove(x, y, z, kind))


class EntryPlanner:
    """Emits the moves for one path at one depth layer."""

    def __init__(self, cut: CutParams, recorder: MoveRecorder):
        self.cut = cut
        self.out = recorder

    @property
    def safe_z(self) -> float:
        return self.cut.safe_height

    @property
    def lead_in_z(self) -> float:
        return max(0.0, self.cut.lead_in_above)

    def add_layer(
        self,
        path: Sequence[Point],
        depth_z: float,
        first_at_depth: bool = True,
        entry: Optional[PathEntry] = None,
        is_last_layer: bool = True
    ) -> None:
        """
        Add the moves that cut one path at one depth.

        Args:
            path: Path at Z = 0; a single point is drilled
            depth_z: Layer depth (negative)
            first_at_depth: False for later paths at the same depth
            entry: Entry options for this path
            is_last_layer: True on the deepest layer; a ramped contour then
                closes back over its ramp
        """
        if not path:
            return
        entry = entry or PathEntry()
        if len(path) == 1:
            self._drill(path[0], depth_z)
            return

        phase = entry_phase(self.out.last, depth_z, first_at_depth)
        if phase is EntryPhase.NEXT_PATH:
            self.out.retract(self.safe_z)
        style = self._entry_style(path, entry, phase)
        start = path[0]

        if style is EntryStyle.CONTOUR_RAMP:
            ramp_start_z = self._approach(Point(start.x, start.y), phase)
            self._ramp_along_contour(path, ramp_start_z, depth_z, entry.tabs, is_last_layer)
            return

        if style is EntryStyle.HELIX:
            center = entry.helix_center or (start.x, start.y)
            radius = self._helix_radius(entry)
            self._helix_to(center, radius, phase, depth_z, start)
        elif style is EntryStyle.OUTSIDE_HELIX:
            entry_point = outside_entry_point(path, self.cut.tool_diameter, entry.entry_inside)
            radius = small_helix_radius(self.cut.tool_diameter)
            self._helix_to((entry_point.x, entry_point.y), radius, phase, depth_z, entry_point)
            self.out.cut(start.x, start.y, depth_z)
        else:
            entry_point = start
            if entry.plunge_outside and phase is not EntryPhase.NEXT_PATH:
                entry_point = outside_entry_point(path, self.cut.tool_diameter, entry.entry_inside)
            self._plunge_at(entry_point, phase, depth_z)
            if entry_point != start:
                next_point = path[1] if len(path) > 1 else None
                for p in curved_lead_in(entry_point, start, next_point):
                    self.out.cut(p.x, p.y, depth_z)

        self.follow_path(path, depth_z, entry.tabs)

    def follow_path(self, path: Sequence[Point], depth_z: float, tabs: Optional[TabConfig] = None) -> None:
        """Cut along a path at depth, raising Z over any tabs."""
        if tabs is None or depth_z >= tabs.tab_z - Z_EPS:
            for p in path:
                self.out.cut(p.x, p.y, depth_z)
            return
        cumulative = tabs.cumulative
        self.out.cut(path[0].x, path[0].y, z_for_tab_profile(0.0, depth_z, tabs))
        for i in range(len(path) - 1):
            for s in tab_boundaries_in_segment(cumulative[i], cumulative[i + 1], tabs)[1:]:
                p = _point_at(path, cumulative, s)
                self.out.cut(p.x, p.y, z_for_tab_profile(s, depth_z, tabs))

    def _entry_style(self, path: Sequence[Point], entry: PathEntry, phase: EntryPhase) -> EntryStyle:
        if self.cut.entry_method != EntryMethod.RAMP:
            return EntryStyle.PLUNGE
        if entry.use_helix:
            if self._helix_radius(entry) >= MIN_HELIX_RADIUS:
                return EntryStyle.HELIX
            return EntryStyle.PLUNGE
        if entry.plunge_outside and phase is not EntryPhase.NEXT_PATH:
            return EntryStyle.OUTSIDE_HELIX
        if len(path) >= 3 and is_closed(path):
            return EntryStyle.CONTOUR_RAMP
        return EntryStyle.PLUNGE

    def _helix_radius(self, entry: PathEntry) -> float:
        radius = self.cut.tool_radius
        if entry.max_helix_radius is not None:
            radius = min(radius, entry.max_helix_radius)
        return radius

    def _approach(self, point: Point, phase: EntryPhase) -> float:
        """
        Bring the tool over a point ready to descend.

        From the clearance plane the tool rapids down to the lead-in
        height; when continuing a layer it moves across at its current
        depth instead.

        Returns:
            Z the descent starts from
        """
        if phase is EntryPhase.CONTINUE_LAYER:
            z = self.out.last.z
            self.out.cut(point.x, point.y, z)
            return z
        self.out.retract(self.safe_z)
        self.out.rapid(point.x, point.y, self.safe_z)
        if self.safe_z > self.lead_in_z:
            self.out.rapid(point.x, point.y, self.lead_in_z)
        return min(self.safe_z, self.lead_in_z)

    def _drill(self, point: Point, depth_z: float) -> None:
        self._approach(point, EntryPhase.FRESH)
        self.out.cut(point.x, point.y, 0.0)
        self.out.cut(point.x, point.y, depth_z)

    def _plunge_at(self, point: Point, phase: EntryPhase, depth_z: float) -> None:
        start_z = self._approach(point, phase)
        if start_z > 0:
            self.out.cut(point.x, point.y, 0.0)
        self.out.cut(point.x, point.y, depth_z)

    def _helix_to(
        self,
        center: Tuple[float, float],
        radius: float,
        phase: EntryPhase,
        depth_z: float,
        target: Point
    ) -> None:
        """Helix down around a centre, ending on the angle of target."""
        cx, cy = center
        start_z = self._approach(Point(cx + radius, cy), phase)
        target_angle = math.atan2(target.y - cy, target.x - cx)
        points = helix_points(cx, cy, radius, start_z, depth_z, target_angle, self.cut.ramp_angle_max)
        for p in points:
            self.out.cut(p.x, p.y, p.z)
        self.out.cut(target.x, target.y, depth_z)

    def _ramp_along_contour(
        self,
        path: Sequence[Point],
        start_z: float,
        depth_z: float,
        tabs: Optional[TabConfig],
        is_last_layer: bool
    ) -> None:
        """
        Ramp down while walking a closed path, then finish the lap at depth.

        The ramp wraps around the path as many times as the ramp angle
        requires. On the last layer the walk continues past the path start
        up to the ramp end so the ramped section is also cut at full depth.
        """
        cumulative = tabs.cumulative if tabs is not None else _cumulative(path)
        lap = cumulative[-1]
        run = calculate_lead_in_distance(self.cut.ramp_angle_max, abs(start_z - depth_z))
        if lap <= POINT_EPS or run <= Z_EPS:
            self.out.cut(path[0].x, path[0].y, depth_z)
            self.follow_path(path, depth_z, tabs)
            return

        laps_on_ramp = math.floor(run / lap)
        ramp_end_s = run - laps_on_ramp * lap
        walk_end = (laps_on_ramp + 1) * lap + (ramp_end_s if is_last_layer else 0.0)

        stations = [run, walk_end]
        lap_index = 0
        while lap_index * lap < walk_end:
            offset = lap_index * lap
            for i in range(len(path) - 1):
                for s in tab_boundaries_in_segment(cumulative[i], cumulative[i + 1], tabs):
                    t = offset + s
                    if 0 < t <= walk_end:
                        stations.append(t)
            lap_index += 1

        previous = 0.0
        for t in sorted(stations):
            if t - previous <= POINT_EPS:
                continue
            previous = t
            s = t % lap
            p = _point_at(path, cumulative, s)
            ramp_z = start_z + (depth_z - start_z) * min(1.0, t / run)
            self.out.cut(p.x, p.y, max(ramp_z, z_for_tab_profile(s, depth_z, tabs)))


def _cumulative(path: Sequence[Point]) -> List[float]:
    cumulative = [0.0]
    for i in range(1, len(path)):
        cumulative.append(cumulative[-1] + distance(path[i - 1], path[i]))
    return cumulative


def _point_at(path: Sequence[Point], cumulative: Sequence[float], s: float) -> Point:
    """Point at distance s along a polyline."""
    i = bisect.bisect_right(cumulative, s) - 1
    i = max(0, min(i, len(path) - 2))
    seg = cumulative[i + 1] - cumulative[i]
    a, b = path[i], path[i + 1]
    if seg <= POINT_EPS:
        return Point(b.x, b.y)
    t = min(1.0, max(0.0, (s - cumulative[i]) / seg))
    return Point(a.x + t * (b.x - a.x), a.y + t * (b.y - a.y))
