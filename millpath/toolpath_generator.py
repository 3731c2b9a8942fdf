"""Toolpath generation for parametric machining requests.

This module turns a GenerationRequest into a move list, supporting:
- Pockets (spiral fill for circles, ellipses, squares and rectangles;
  ring fill for letters)
- Inside and outside contours with optional holding tabs
- Facing of square and rectangular areas
- Countersunk bolt holes and patterned hole grids
- Plunge, ramp and helix entries with layer-to-layer continuation
- Optional arc fitting and the final origin transform
"""
import logging
import math
from typing import List, Optional, Sequence, Tuple

from .entry_planner import EntryPlanner, MoveRecorder, PathEntry
from .errors import GeometryDegenerateError, ToolpathError, ToolTooLargeError
from .models import (
    Circle,
    Contour,
    ContourSide,
    CountersunkBolt,
    Ellipse,
    GenerationRequest,
    LetterMode,
    Letters,
    MoveKind,
    Operation,
    PatternedHoles,
    Point,
    Rectangle,
    Square,
    Toolpath,
    ToolpathMove,
)
from .pattern_expander import hole_centers, replicate_path
from .pocket_planner import (
    facing_strips,
    pocket_rings,
    spiral_pocket_circle,
    spiral_pocket_ellipse,
    spiral_pocket_rectangle,
)
from .shape_generator import compensated_contour, rect_half_extents
from .utils.arc_utils import fit_arcs
from .utils.contour_offset import offset_contour
from .utils.geometry import contour_min_size, nesting_depths, open_points
from .utils.multipass import compute_depth_levels
from .utils.origin import Placement, apply_origin_transform
from .utils.tabs import build_tab_config

logger = logging.getLogger(__name__)

SIZE_EPS = 1e-6
Z_EPS = 1e-6
POCKET_PULLBACK_MM = 1.5
LETTER_MIN_SIZE_FACTOR = 1.2
LETTER_OFFSET_RETRY = 0.98


def near_tool_size_path(shape, tool_diameter: float) -> Optional[Contour]:
    """
    Path for a feature whose clearance equals the tool diameter.

    Returns:
        A single drill point, a two-point slot, or None when the feature
        is larger than the tool

    Raises:
        ToolTooLargeError: The feature is smaller than the tool
    """
    r = tool_diameter / 2

    def close(value):
        return abs(value - tool_diameter) <= SIZE_EPS

    if isinstance(shape, (Circle, PatternedHoles)):
        size = shape.diameter
    elif isinstance(shape, Square):
        size = shape.size
    elif isinstance(shape, Rectangle):
        size = min(shape.width, shape.height)
    elif isinstance(shape, Ellipse):
        size = min(shape.major, shape.minor)
    else:
        return None

    if size < tool_diameter - SIZE_EPS:
        raise ToolTooLargeError("Tool too large for this feature")
    if not close(size):
        return None

    if isinstance(shape, Ellipse):
        if close(shape.major) and close(shape.minor):
            return [Point(0.0, 0.0)]
        half = max(shape.major, shape.minor) / 2 - r
        if shape.major >= shape.minor:
            return [Point(-half, 0.0), Point(half, 0.0)]
        return [Point(0.0, -half), Point(0.0, half)]
    if isinstance(shape, Rectangle):
        if close(shape.width) and close(shape.height):
            return [Point(0.0, 0.0)]
        if close(shape.width):
            half = max(shape.height / 2 - r, 0.0)
            return [Point(0.0, -half), Point(0.0, half)]
        half = max(shape.width / 2 - r, 0.0)
        return [Point(-half, 0.0), Point(half, 0.0)]
    return [Point(0.0, 0.0)]


def max_helix_radius(shape, tool_radius: float) -> float:
    """Largest helix radius that keeps the tool inside the feature."""
    if isinstance(shape, (Circle, PatternedHoles)):
        return max(0.0, shape.diameter / 2 - tool_radius)
    if isinstance(shape, Ellipse):
        return max(0.0, min(shape.major, shape.minor) / 2 - tool_radius)
    if isinstance(shape, (Square, Rectangle)):
        hw, hh = rect_half_extents(shape)
        return max(0.0, min(hw, hh) - tool_radius)
    return 0.0


class ToolpathGenerator:
    """Generates the move list for one request."""

    def __init__(self, request: GenerationRequest, glyph_outlines: Optional[Sequence[Contour]] = None):
        """
        Initialize the generator.

        Args:
            request: Validated request (millimeters)
            glyph_outlines: Laid-out glyph contours, required for text
        """
        self.request = request
        self.cut = request.cut
        self.glyph_outlines = glyph_outlines
        self.recorder = MoveRecorder()
        self.planner = EntryPlanner(self.cut, self.recorder)
        self.warnings: List[str] = []
        self.layer_count = 0
        # Where pockets pull back toward before the final retract
        self.feature_center: Tuple[float, float] = (0.0, 0.0)

    @property
    def moves(self) -> List[ToolpathMove]:
        return self.recorder.moves

    def _retract(self) -> None:
        self.recorder.retract(self.cut.safe_height)

    def generate(self) -> Toolpath:
        """
        Generate the complete toolpath.

        Returns:
            Toolpath with moves, warnings and layer count

        Raises:
            ToolTooLargeError: No feature leaves room for the tool
            GeometryDegenerateError: The result holds a non-finite coordinate
            ToolpathError: The shape and operation do not combine
        """
        request = self.request
        shape = request.shape

        if isinstance(shape, Letters):
            self._generate_letters(shape)
            total_depth = self.cut.total_depth
            radius, placement, bounds = 0.0, Placement.INSIDE, None
        elif isinstance(shape, CountersunkBolt):
            self._generate_countersunk(shape)
            total_depth = self.cut.total_depth
            radius, placement, bounds = 0.0, Placement.INSIDE, None
        elif request.operation == Operation.FACING:
            bounds = self._generate_facing(shape)
            total_depth = self.cut.total_depth
            radius, placement = self.cut.tool_radius, Placement.FACING
        elif request.operation == Operation.CONTOUR:
            self._generate_contour(shape)
            total_depth = self.cut.total_depth
            radius, bounds = self.cut.tool_radius, None
            outside = request.contour_side == ContourSide.OUTSIDE
            placement = Placement.OUTSIDE if outside else Placement.INSIDE
        else:
            self._generate_pocket(shape)
            total_depth = self.cut.total_depth
            radius, placement, bounds = self.cut.tool_radius, Placement.INSIDE, None

        self._finish()
        moves = list(self.moves)
        check_finite(moves)
        if request.fit_arcs:
            moves = fit_arcs(moves)
        moves = apply_origin_transform(moves, request.origin, total_depth, radius, placement, bounds)

        logger.debug("Generated %s moves in %s layers", len(moves), self.layer_count)
        return Toolpath(moves=moves, warnings=self.warnings, layer_count=self.layer_count)

    def _generate_pocket(self, shape) -> None:
        cut = self.cut
        r = cut.tool_radius
        stepover = cut.effective_stepover
        depths = compute_depth_levels(cut.total_depth, cut.stepdown)
        self.layer_count = len(depths)

        special = near_tool_size_path(shape, cut.tool_diameter)
        if isinstance(shape, PatternedHoles):
            centers = hole_centers(shape)
            single = special if special is not None else spiral_pocket_circle(shape.diameter, stepover, r)
            paths = replicate_path(single, centers)
        elif special is not None:
            centers = [(0.0, 0.0)]
            paths = [special]
        else:
            centers = [(0.0, 0.0)]
            if isinstance(shape, Circle):
                paths = [spiral_pocket_circle(shape.diameter, stepover, r)]
            elif isinstance(shape, Ellipse):
                paths = [spiral_pocket_ellipse(shape.major, shape.minor, stepover, r)]
            elif isinstance(shape, (Square, Rectangle)):
                hw, hh = rect_half_extents(shape)
                paths = [spiral_pocket_rectangle(2 * hw, 2 * hh, stepover, r)]
            else:
                raise ToolpathError(f"Pocket is not supported for {type(shape).__name__}")

        if not any(paths):
            raise ToolTooLargeError("Tool too large for this pocket")

        helix_limit = max_helix_radius(shape, r)
        for depth_index, depth_z in enumerate(depths):
            for idx, (path, center) in enumerate(zip(paths, centers)):
                entry = PathEntry(use_helix=True, helix_center=center, max_helix_radius=helix_limit)
                self.planner.add_layer(path, depth_z, idx == 0, entry, depth_index == len(depths) - 1)
            if len(paths) > 1 and depth_index < len(depths) - 1:
                self._retract()
        self.feature_center = centers[-1]

    def _generate_contour(self, shape) -> None:
        request = self.request
        cut = self.cut
        inside = request.contour_side == ContourSide.INSIDE

        if isinstance(shape, PatternedHoles):
            single = None
            if inside:
                single = near_tool_size_path(shape, cut.tool_diameter)
            if single is None:
                single = compensated_contour(Circle(shape.diameter), cut.tool_radius, request.contour_side)
            paths = replicate_path(single, hole_centers(shape))
        elif isinstance(shape, (Circle, Ellipse, Square, Rectangle)):
            special = near_tool_size_path(shape, cut.tool_diameter) if inside else None
            paths = [special if special is not None else
                     compensated_contour(shape, cut.tool_radius, request.contour_side)]
        else:
            raise ToolpathError(f"Contour is not supported for {type(shape).__name__}")

        tabs = None
        if request.tabs.enabled and len(paths) == 1 and len(paths[0]) >= 3:
            tabs = build_tab_config(paths[0], request.tabs.interval, request.tabs.width,
                                    cut.total_depth, request.tabs.height)

        depths = compute_depth_levels(cut.total_depth, cut.stepdown)
        self.layer_count = len(depths)
        for depth_index, depth_z in enumerate(depths):
            last_layer = depth_index == len(depths) - 1
            for idx, path in enumerate(paths):
                entry = PathEntry(
                    plunge_outside=request.plunge_outside and idx == 0,
                    entry_inside=inside,
                    tabs=tabs,
                )
                self.planner.add_layer(path, depth_z, idx == 0, entry, last_layer)
            if len(paths) > 1 and not last_layer:
                self._retract()

    def _generate_facing(self, shape) -> Tuple[float, float]:
        if not isinstance(shape, (Square, Rectangle)):
            raise ToolpathError("Facing needs a square or rectangle")
        cut = self.cut
        hw, hh = rect_half_extents(shape)
        strips = facing_strips(2 * hw, 2 * hh, cut.effective_stepover, cut.tool_radius,
                               self.request.facing_mode)
        if not strips:
            raise ToolTooLargeError("Tool too large for this facing area")

        depths = compute_depth_levels(cut.total_depth, cut.stepdown)
        self.layer_count = len(depths)
        entry = PathEntry(use_helix=True, helix_center=(0.0, 0.0),
                          max_helix_radius=max(0.0, min(hw, hh) - cut.tool_radius))
        for depth_index, depth_z in enumerate(depths):
            last_layer = depth_index == len(depths) - 1
            for idx, strip in enumerate(strips):
                self.planner.add_layer(strip, depth_z, idx == 0, entry, last_layer)
            if len(strips) > 1 and not last_layer:
                self._retract()
        return hw, hh

    def _generate_countersunk(self, shape: CountersunkBolt) -> None:
        """Head pocket down to the countersink depth, then the bolt hole below it."""
        cut = self.cut
        r = cut.tool_radius
        stepover = cut.effective_stepover
        bolt_depth = cut.total_depth - shape.countersink_depth
        if bolt_depth <= 0:
            raise ToolpathError("Total depth must be larger than the countersink depth")

        head_path = near_tool_size_path(Circle(shape.head_diameter), cut.tool_diameter)
        if head_path is None:
            head_path = spiral_pocket_circle(shape.head_diameter, stepover, r)
        bolt_path = near_tool_size_path(Circle(shape.bolt_diameter), cut.tool_diameter)
        if bolt_path is None:
            bolt_path = spiral_pocket_circle(shape.bolt_diameter, stepover, r)

        head_depths = compute_depth_levels(shape.countersink_depth, cut.stepdown)
        head_entry = PathEntry(use_helix=True, helix_center=(0.0, 0.0),
                               max_helix_radius=max(0.0, shape.head_diameter / 2 - r))
        for depth_z in head_depths:
            self.planner.add_layer(head_path, depth_z, True, head_entry)

        floor_z = -shape.countersink_depth
        self.recorder.cut(0.0, 0.0, floor_z)

        bolt_depths = [floor_z + level for level in compute_depth_levels(bolt_depth, cut.stepdown)]
        bolt_entry = PathEntry(use_helix=True, helix_center=(0.0, 0.0),
                               max_helix_radius=max(0.0, shape.bolt_diameter / 2 - r))
        for depth_z in bolt_depths:
            self.planner.add_layer(bolt_path, depth_z, True, bolt_entry)
        self.layer_count = len(head_depths) + len(bolt_depths)
        self.feature_center = None

    def _generate_letters(self, shape: Letters) -> None:
        if self.glyph_outlines is None:
            raise ToolpathError("Glyph outlines are required for text")
        contours = [c for c in self.glyph_outlines if len(c) >= 2]
        if not contours:
            raise ToolpathError("Text produced no outlines")

        depths = compute_depth_levels(self.cut.total_depth, self.cut.stepdown)
        self.layer_count = len(depths)
        if shape.mode == LetterMode.POCKET:
            self._letter_pockets(contours, depths)
        else:
            self._letter_outlines(contours, depths)
        self.feature_center = None

    def _letter_outlines(self, contours: Sequence[Contour], depths: Sequence[float]) -> None:
        """Follow every glyph contour on the line, retracting between contours."""
        for depth_index, depth_z in enumerate(depths):
            last_layer = depth_index == len(depths) - 1
            for idx, contour in enumerate(contours):
                entry = PathEntry(plunge_outside=self.request.plunge_outside and idx == 0)
                self.planner.add_layer(contour, depth_z, idx == 0, entry, last_layer)
            if len(contours) > 1:
                self._retract()

    def _letter_boundaries(self, contours: Sequence[Contour]) -> Tuple[List[Tuple[Contour, bool]], List[Contour]]:
        """
        Clearance boundaries for glyph pockets.

        Outer contours are inset and holes grown by the tool radius.

        Returns:
            (pocketable, fences): boundaries to clear with a hole flag, and
            every clearance boundary for fencing ring growth
        """
        r = self.cut.tool_radius
        min_size = LETTER_MIN_SIZE_FACTOR * self.cut.tool_diameter
        depths = nesting_depths([open_points(c) for c in contours])

        pocketable = []
        fences = []
        last_reason = None
        for contour, depth in zip(contours, depths):
            pts = open_points(contour)
            if len(pts) < 3:
                continue
            is_hole = depth % 2 == 1
            offset = -r if is_hole else r
            try:
                boundary = offset_contour(contour, offset)
            except GeometryDegenerateError:
                try:
                    boundary = offset_contour(contour, offset * LETTER_OFFSET_RETRY)
                except GeometryDegenerateError as e:
                    last_reason = e.reason
                    self._skip_contour(e.reason)
                    continue
            fences.append(boundary)
            if contour_min_size(pts) < min_size:
                self._skip_contour("contour smaller than 1.2 x tool diameter")
                if not is_hole:
                    last_reason = "contour smaller than 1.2 x tool diameter"
                continue
            pocketable.append((boundary, is_hole))

        if not any(not is_hole for _, is_hole in pocketable):
            raise ToolTooLargeError("Tool too large for any letter", last_reason)
        return pocketable, fences

    def _letter_pockets(self, contours: Sequence[Contour], depths: Sequence[float]) -> None:
        """Clear each glyph with fenced rings, finishing each family on its wall."""
        stepover = self.cut.effective_stepover
        pocketable, fences = self._letter_boundaries(contours)

        ring_sets = []
        for boundary, is_hole in pocketable:
            others = [f for f in fences if f is not boundary]
            rings = pocket_rings(boundary, -stepover if is_hole else stepover, others)
            if not rings:
                # The wall itself crosses a neighbour; cut it anyway
                rings = [boundary]
            ring_sets.append(list(reversed(rings)))

        for depth_z in depths:
            for rings in ring_sets:
                for ring in rings:
                    self._retract()
                    self.planner.add_layer(ring, depth_z, True, PathEntry())
                    self._retract()

    def _skip_contour(self, reason: str) -> None:
        message = f"Skipped a letter contour: {reason}"
        logger.warning("Skipped a letter contour: %s", reason)
        if message not in self.warnings:
            self.warnings.append(message)

    def _finish(self) -> None:
        """Lift off at the end: pockets pull back toward the feature centre first."""
        last = self.recorder.last
        if last is None or last.z >= self.cut.safe_height - Z_EPS:
            return
        pull_back = (
            self.feature_center is not None
            and self.request.operation in (Operation.POCKET, Operation.FACING)
            and not isinstance(self.request.shape, (Letters, CountersunkBolt))
        )
        if pull_back:
            cx, cy = self.feature_center
            dx, dy = cx - last.x, cy - last.y
            dist = math.hypot(dx, dy)
            if dist > Z_EPS:
                step = min(POCKET_PULLBACK_MM, dist)
                self.recorder.cut(last.x + dx / dist * step, last.y + dy / dist * step, last.z)
        self._retract()


def check_finite(moves: Sequence[ToolpathMove]) -> None:
    """Raise when any move carries a NaN or infinite value."""
    for move in moves:
        values = [move.x, move.y, move.z]
        if move.kind == MoveKind.ARC:
            values.extend([move.i, move.j])
        if not all(v is not None and math.isfinite(v) for v in values):
            raise GeometryDegenerateError("non-finite coordinate in toolpath")


def generate_toolpath(request: GenerationRequest, glyph_outlines: Optional[Sequence[Contour]] = None) -> Toolpath:
    """
    Generate the toolpath for a request.

    Args:
        request: Validated request (millimeters)
        glyph_outlines: Laid-out glyph contours for text shapes

    Returns:
        Toolpath ready for emission and preview
    """
    return ToolpathGenerator(request, glyph_outlines).generate()
