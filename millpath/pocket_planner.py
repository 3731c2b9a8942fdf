"""Pocket fill strategies.

Two strategies are provided:

- Ring fill: concentric rings produced by repeatedly insetting a boundary
  contour. Used for arbitrary boundaries such as letter pockets.
- Spiral fill: one continuous path per pocket for circles, ellipses and
  rectangles, so the tool never retracts mid-pocket. Circle and ellipse
  spirals start on a ring at the tool radius, spiral outward and finish
  with a closing ring on the boundary. Rectangle spirals are built from the
  outside in and reversed so the plunge is central.

Facing strips live here as well since they share the stepover logic.
"""
import math
from typing import List, Optional, Sequence

from .errors import GeometryDegenerateError
from .models import Contour, FacingMode, Point
from .utils.contour_offset import offset_contour
from .utils.geometry import ellipse_points, point_in_polygon, polylines_intersect, segments_for_radius

MAX_POCKET_RINGS = 300
SPAN_EPS = 1e-9


def pocket_rings(
    inner_boundary: Sequence[Point],
    stepover: float,
    fence: Optional[Sequence[Sequence[Point]]] = None
) -> List[Contour]:
    """
    Fill a boundary with concentric offset rings.

    Args:
        inner_boundary: Closed contour the tool centre may follow (already
            offset by the tool radius)
        stepover: Offset between consecutive rings (mm); positive rings
            shrink inward, negative rings grow outward
        fence: Optional contours the rings must not cross; the ring
            sequence stops at the first ring that does, at the first
            shrinking ring that falls inside an island (a fence within the
            boundary), or at the first growing ring that swallows a fence

    Returns:
        Rings starting with the boundary; stops when offsetting fails or
        after MAX_POCKET_RINGS rings
    """
    fence = [f for f in (fence or []) if len(f) >= 3]
    islands = []
    if stepover > 0:
        islands = [f for f in fence if point_in_polygon(f[0], inner_boundary)]

    rings: List[Contour] = []
    current: Optional[Contour] = list(inner_boundary)
    while current is not None and len(current) >= 3 and len(rings) < MAX_POCKET_RINGS:
        if any(polylines_intersect(current, f) for f in fence):
            break
        if any(point_in_polygon(current[0], f) for f in islands):
            break
        if stepover < 0 and any(point_in_polygon(f[0], current) for f in fence):
            break
        rings.append(current)
        try:
            current = offset_contour(current, stepover)
        except GeometryDegenerateError:
            current = None
    return rings


def spiral_pocket_circle(
    diameter: float,
    stepover: float,
    tool_radius: float,
    center: Sequence[float] = (0.0, 0.0)
) -> Contour:
    """
    Continuous spiral path clearing a round pocket.

    The outer ring sits at diameter/2 - tool_radius so the cutting edge
    lands exactly on the pocket boundary.

    Args:
        diameter: Pocket diameter (mm)
        stepover: Radial step between spiral turns (mm)
        tool_radius: Tool radius (mm)
        center: Pocket centre

    Returns:
        Path points, or an empty list if the tool does not fit
    """
    cx, cy = center
    outer_r = diameter / 2 - tool_radius
    if outer_r <= 0:
        return []
    segments = segments_for_radius(diameter / 2)

    if outer_r < tool_radius:
        # Pocket under twice the tool size: spiral out from the centre in
        # one turn, then close with a ring. No straight radial cut.
        points = [Point(cx, cy)]
        for i in range(1, segments + 1):
            t = i / segments
            angle = 2 * math.pi * t
            r = outer_r * t
            points.append(Point(cx + r * math.cos(angle), cy + r * math.sin(angle)))
        points.extend(ellipse_points(outer_r, outer_r, segments, (cx, cy), include_start=False))
        return points

    inner_r = tool_radius
    span = outer_r - inner_r
    if span <= SPAN_EPS:
        return ellipse_points(outer_r, outer_r, segments, (cx, cy))

    points = ellipse_points(inner_r, inner_r, segments, (cx, cy))
    turns = max(1, math.ceil(span / stepover))
    steps = segments * turns
    for i in range(1, steps + 1):
        angle = 2 * math.pi * turns * i / steps
        r = inner_r + span * i / steps
        points.append(Point(cx + r * math.cos(angle), cy + r * math.sin(angle)))
    points.extend(ellipse_points(outer_r, outer_r, segments, (cx, cy), include_start=False))
    return points


def spiral_pocket_ellipse(major: float, minor: float, stepover: float, tool_radius: float) -> Contour:
    """Continuous spiral path clearing an elliptical pocket centred on the origin."""
    rx = major / 2 - tool_radius
    ry = minor / 2 - tool_radius
    if rx <= 0 or ry <= 0:
        return []
    segments = segments_for_radius(max(rx, ry))
    min_r = min(rx, ry)
    # Scale factors relative to the boundary ellipse
    start_scale = tool_radius / min_r
    span = 1 - start_scale

    if span <= SPAN_EPS:
        return ellipse_points(rx, ry, segments)

    points = ellipse_points(rx * start_scale, ry * start_scale, segments)
    turns = max(1, math.ceil(span * min_r / stepover))
    steps = segments * turns
    for i in range(1, steps + 1):
        angle = 2 * math.pi * turns * i / steps
        scale = start_scale + span * i / steps
        points.append(Point(scale * rx * math.cos(angle), scale * ry * math.sin(angle)))
    points.extend(ellipse_points(rx, ry, segments, include_start=False))
    return points


def spiral_pocket_rectangle(width: float, height: float, stepover: float, tool_radius: float) -> Contour:
    """
    Rectangular spiral clearing a rectangle centred on the origin.

    The spiral is traced from the outside in, then reversed so cutting
    starts at the innermost winding and works outward, finishing along the
    bottom and left sides of the boundary.
    """
    hw = width / 2 - tool_radius
    hh = height / 2 - tool_radius
    if hw <= 0 or hh <= 0:
        return []

    left, right, bottom, top = -hw, hw, -hh, hh
    spiral = []
    while left < right - SPAN_EPS and bottom < top - SPAN_EPS:
        spiral.append(Point(right, bottom))
        spiral.append(Point(right, top))
        spiral.append(Point(left, top))
        if left + stepover < right - SPAN_EPS and bottom + stepover < top - SPAN_EPS:
            spiral.append(Point(left, bottom + stepover))
            spiral.append(Point(left + stepover, bottom + stepover))
        left += stepover
        right -= stepover
        bottom += stepover
        top -= stepover

    spiral.reverse()
    spiral.append(Point(-hw, -hh))
    spiral.append(Point(-hw, hh))
    return spiral


def facing_strips(
    width: float,
    height: float,
    stepover: float,
    tool_radius: float,
    mode: FacingMode = FacingMode.FULL
) -> List[Contour]:
    """
    Parallel facing strips over a rectangle centred on the origin.

    Strips run along X, alternating direction, from the bottom edge up.

    Args:
        width: Area width (mm)
        height: Area height (mm)
        stepover: Distance between strips (mm)
        tool_radius: Tool radius (mm)
        mode: FULL lets the tool centre reach the edges, WITHIN keeps the
            whole tool inside the area

    Returns:
        List of two-point strips
    """
    hw, hh = width / 2, height / 2
    if mode == FacingMode.WITHIN:
        hw -= tool_radius
        hh -= tool_radius
    if hw <= 0 or hh <= 0:
        return []

    strips = []
    y = -hh
    reverse = False
    while y <= hh + SPAN_EPS:
        if reverse:
            strips.append([Point(hw, y), Point(-hw, y)])
        else:
            strips.append([Point(-hw, y), Point(hw, y)])
        reverse = not reverse
        y += stepover
    return strips
