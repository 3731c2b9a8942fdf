"""Lead-in geometry for tool entry.

Ramped and helical entries spread the descent over horizontal travel
instead of plunging straight down, which reduces the load on end mills.

Entry geometry:
- helix: descent along a circle at one constant slope, ending on the
  angle of the path's start point
- outside entry point: a plunge point set off from the path so the tool
  enters beside the part rather than on it
- curved lead-in: quadratic Bezier from the outside entry point that
  meets the first path segment tangentially

Angle convention: math angles, 0 = +X, counter-clockwise positive.
"""
import math
from typing import List, Optional, Sequence

from ..models import Point
from .geometry import bounding_box, sample_quadratic

# Helix radius below which a helical entry degenerates to a plunge (mm)
MIN_HELIX_RADIUS = 0.05
MAX_HELIX_STEP_DEGREES = 8.0

OUTSIDE_ENTRY_FACTOR = 1.5   # entry offset as a multiple of the tool diameter
CURVED_LEAD_IN_STEPS = 12
CURVE_FACTOR = 1.5
SMALL_HELIX_MIN_RADIUS = 0.5
SMALL_HELIX_MAX_RADIUS = 1.5


def calculate_lead_in_distance(ramp_angle: float, depth: float) -> float:
    """
    Horizontal travel needed to descend a depth at a ramp angle.

    A shallower angle (smaller degrees) = longer distance = gentler entry.

    Args:
        ramp_angle: Entry angle in degrees
        depth: Vertical distance to descend (mm)

    Returns:
        Horizontal distance in mm (0 for a non-positive angle or depth)

    Example:
        >>> round(calculate_lead_in_distance(3.0, 1.0), 2)
        19.08
    """
    if ramp_angle <= 0 or depth <= 0:
        return 0.0
    return depth / math.tan(math.radians(ramp_angle))


def helix_sweep(radius: float, depth: float, ramp_angle: float, angle_to_target: float) -> float:
    """
    Total helix sweep in radians.

    The sweep ends on the target angle and includes as many extra full
    turns as needed to keep the slope at or under the ramp angle.
    """
    if angle_to_target < 1e-6:
        angle_to_target = 2 * math.pi
    if radius <= 0:
        return angle_to_target
    min_sweep = calculate_lead_in_distance(ramp_angle, depth) / radius
    extra_turns = math.ceil(max(0.0, min_sweep - angle_to_target) / (2 * math.pi))
    return angle_to_target + 2 * math.pi * extra_turns


def helix_points(
    center_x: float,
    center_y: float,
    radius: float,
    start_z: float,
    target_z: float,
    target_angle: float,
    ramp_angle: float
) -> List[Point]:
    """
    Points along a helical descent.

    The helix starts at angle 0 (center_x + radius, center_y) and turns
    counter-clockwise, descending linearly with angle.

    Args:
        center_x: Helix centre X
        center_y: Helix centre Y
        radius: Helix radius (mm)
        start_z: Z at the helix start
        target_z: Z at the helix end
        target_angle: Angle (radians) the helix must end on
        ramp_angle: Maximum ramp angle in degrees

    Returns:
        Points after the start point, ending at target_z
    """
    two_pi = 2 * math.pi
    angle_to_target = target_angle % two_pi
    sweep = helix_sweep(radius, abs(start_z - target_z), ramp_angle, angle_to_target)
    steps = max(1, math.ceil(sweep / math.radians(MAX_HELIX_STEP_DEGREES)))
    points = []
    for step in range(1, steps + 1):
        t = step / steps
        angle = sweep * t
        points.append(Point(
            center_x + radius * math.cos(angle),
            center_y + radius * math.sin(angle),
            start_z + (target_z - start_z) * t,
        ))
    return points


def outside_entry_point(
    path: Sequence[Point],
    tool_diameter: float,
    toward_inside: bool = False
) -> Point:
    """
    Plunge point beside a path, 1.5 tool diameters from its start.

    The offset runs radially from the centre of the path's bounding box:
    outward by default, inward for inside contours. A path starting at the
    centre is entered in place.
    """
    start = path[0]
    if abs(start.x) <= 1e-9 and abs(start.y) <= 1e-9:
        return Point(start.x, start.y)
    min_x, min_y, max_x, max_y = bounding_box(path)
    cx, cy = (min_x + max_x) / 2, (min_y + max_y) / 2
    vx, vy = start.x - cx, start.y - cy
    if toward_inside:
        vx, vy = -vx, -vy
    length = math.hypot(vx, vy)
    dist = tool_diameter * OUTSIDE_ENTRY_FACTOR
    if length <= 1e-9:
        if toward_inside:
            return Point(start.x, start.y)
        return Point(start.x + dist, start.y)
    return Point(start.x + vx / length * dist, start.y + vy / length * dist)


def small_helix_radius(tool_diameter: float) -> float:
    """Radius of the helix used when ramping at an outside entry point."""
    return max(SMALL_HELIX_MIN_RADIUS, min(SMALL_HELIX_MAX_RADIUS, tool_diameter / 2))


def curved_lead_in(from_point: Point, start: Point, next_point: Optional[Point]) -> List[Point]:
    """
    Curved approach from an entry point onto a path.

    Follows a quadratic Bezier whose end tangent runs along the first path
    segment (start -> next_point). Horizontal and vertical first segments
    get a control point on the segment's own line so the curve meets the
    side squarely.

    Returns:
        XY points after from_point, ending at start
    """
    if next_point is None:
        return [Point(start.x, start.y)]
    vx, vy = next_point.x - start.x, next_point.y - start.y
    if math.hypot(vx, vy) < 1e-9:
        return [Point(start.x, start.y)]

    eps = 1e-9
    if abs(vx) < eps:
        direction = math.copysign(1.0, vy)
        span = abs(from_point.x - start.x) or math.hypot(vx, vy) * 0.5
        control = Point(start.x, start.y - direction * span)
    elif abs(vy) < eps:
        direction = math.copysign(1.0, vx)
        span = abs(from_point.y - start.y) or math.hypot(vx, vy) * 0.5
        control = Point(start.x - direction * span, start.y)
    else:
        control = Point(start.x - CURVE_FACTOR * vx, start.y - CURVE_FACTOR * vy)
    return sample_quadratic(from_point, control, start, CURVED_LEAD_IN_STEPS)
