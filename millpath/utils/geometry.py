"""Point and contour math shared by the toolpath modules."""
import math
from typing import List, Optional, Sequence, Tuple

from ..models import Point

# Chord sagitta allowed when discretising circles and ellipses (mm)
CIRCLE_TOLERANCE_MM = 0.01
MIN_CIRCLE_SEGMENTS = 4
MAX_CIRCLE_SEGMENTS = 360

BEZIER_SEGMENTS = 16
CLOSED_TOLERANCE = 1e-9


def distance(a: Point, b: Point) -> float:
    """Euclidean XY distance between two points."""
    return math.hypot(a.x - b.x, a.y - b.y)


def signed_area2(points: Sequence[Point]) -> float:
    """
    Twice the signed area of a polygon (shoelace formula).

    The polygon is implicitly closed. Positive for counter-clockwise
    winding, negative for clockwise.

    Args:
        points: Polygon vertices (a repeated closing vertex contributes nothing)

    Returns:
        Signed area * 2, or 0 for fewer than 3 points
    """
    if len(points) < 3:
        return 0.0
    total = 0.0
    n = len(points)
    for i in range(n):
        a = points[i]
        b = points[(i + 1) % n]
        total += a.x * b.y - b.x * a.y
    return total


def is_closed(contour: Sequence[Point], tolerance: float = CLOSED_TOLERANCE) -> bool:
    """True when the last point repeats the first."""
    if len(contour) < 2:
        return False
    first, last = contour[0], contour[-1]
    return abs(first.x - last.x) < tolerance and abs(first.y - last.y) < tolerance


def open_points(contour: Sequence[Point]) -> List[Point]:
    """Return the contour without its closing duplicate vertex."""
    if is_closed(contour):
        return list(contour[:-1])
    return list(contour)


def close_contour(points: Sequence[Point]) -> List[Point]:
    """Return the points with the first vertex repeated at the end."""
    pts = list(points)
    if pts and not is_closed(pts):
        pts.append(pts[0])
    return pts


def polyline_length(points: Sequence[Point]) -> float:
    return sum(distance(points[i - 1], points[i]) for i in range(1, len(points)))


def bounding_box(points: Sequence[Point]) -> Tuple[float, float, float, float]:
    """Return (min_x, min_y, max_x, max_y) of the points."""
    xs = [p.x for p in points]
    ys = [p.y for p in points]
    return min(xs), min(ys), max(xs), max(ys)


def contour_min_size(points: Sequence[Point]) -> float:
    """Smaller side of the contour's bounding box."""
    if len(points) < 2:
        return 0.0
    min_x, min_y, max_x, max_y = bounding_box(points)
    return min(max_x - min_x, max_y - min_y)


def circle_from_three_points(
    p1: Point,
    p2: Point,
    p3: Point
) -> Optional[Tuple[float, float, float]]:
    """
    Circumcircle of three points.

    Returns:
        (center_x, center_y, radius), or None when the points are collinear
    """
    x1, y1 = p1.x, p1.y
    x2, y2 = p2.x, p2.y
    x3, y3 = p3.x, p3.y
    d = 2 * (x1 * (y2 - y3) + x2 * (y3 - y1) + x3 * (y1 - y2))
    if abs(d) < 1e-10:
        return None
    s1 = x1 * x1 + y1 * y1
    s2 = x2 * x2 + y2 * y2
    s3 = x3 * x3 + y3 * y3
    cx = (s1 * (y2 - y3) + s2 * (y3 - y1) + s3 * (y1 - y2)) / d
    cy = (s1 * (x3 - x2) + s2 * (x1 - x3) + s3 * (x2 - x1)) / d
    return cx, cy, math.hypot(x1 - cx, y1 - cy)


def radial_deviation(point: Point, cx: float, cy: float, radius: float) -> float:
    """Distance of a point from a circle, measured radially."""
    return abs(math.hypot(point.x - cx, point.y - cy) - radius)


def segments_for_radius(radius: float) -> int:
    """
    Number of segments for a full circle so the chord sagitta stays
    within CIRCLE_TOLERANCE_MM.

    Args:
        radius: Circle radius (mm)

    Returns:
        Segment count clamped to [MIN_CIRCLE_SEGMENTS, MAX_CIRCLE_SEGMENTS]
    """
    if radius <= CIRCLE_TOLERANCE_MM:
        return MIN_CIRCLE_SEGMENTS
    half_angle = math.acos(max(-1.0, 1 - CIRCLE_TOLERANCE_MM / radius))
    segments = math.ceil(math.pi / half_angle)
    return max(MIN_CIRCLE_SEGMENTS, min(MAX_CIRCLE_SEGMENTS, segments))


def ellipse_points(
    rx: float,
    ry: float,
    segments: int,
    center: Tuple[float, float] = (0.0, 0.0),
    start_angle: float = 0.0,
    include_start: bool = True
) -> List[Point]:
    """
    Points around a full ellipse (a circle when rx == ry), counter-clockwise.

    The last point repeats the start angle so the ring is closed.
    """
    cx, cy = center
    first = 0 if include_start else 1
    return [
        Point(cx + rx * math.cos(start_angle + 2 * math.pi * i / segments),
              cy + ry * math.sin(start_angle + 2 * math.pi * i / segments))
        for i in range(first, segments + 1)
    ]


def sample_quadratic(start: Point, control: Point, end: Point,
                     segments: int = BEZIER_SEGMENTS) -> List[Point]:
    """Sample a quadratic Bezier curve, excluding its start point."""
    points = []
    for i in range(1, segments + 1):
        t = i / segments
        u = 1 - t
        points.append(Point(
            u * u * start.x + 2 * u * t * control.x + t * t * end.x,
            u * u * start.y + 2 * u * t * control.y + t * t * end.y,
        ))
    return points


def sample_cubic(start: Point, control1: Point, control2: Point, end: Point,
                 segments: int = BEZIER_SEGMENTS) -> List[Point]:
    """Sample a cubic Bezier curve, excluding its start point."""
    points = []
    for i in range(1, segments + 1):
        t = i / segments
        u = 1 - t
        a, b, c, d = u * u * u, 3 * u * u * t, 3 * u * t * t, t * t * t
        points.append(Point(
            a * start.x + b * control1.x + c * control2.x + d * end.x,
            a * start.y + b * control1.y + c * control2.y + d * end.y,
        ))
    return points


def rotate_points(points: Sequence[Point], angle_deg: float) -> List[Point]:
    """Rotate points about the origin; positive angles turn clockwise."""
    rad = math.radians(-angle_deg)
    cos_a, sin_a = math.cos(rad), math.sin(rad)
    return [Point(p.x * cos_a - p.y * sin_a, p.x * sin_a + p.y * cos_a, p.z) for p in points]


def translate_points(points: Sequence[Point], dx: float, dy: float) -> List[Point]:
    return [Point(p.x + dx, p.y + dy, p.z) for p in points]


def point_in_polygon(point: Point, polygon: Sequence[Point]) -> bool:
    """Even-odd ray casting test."""
    inside = False
    n = len(polygon)
    j = n - 1
    for i in range(n):
        pi, pj = polygon[i], polygon[j]
        if (pi.y > point.y) != (pj.y > point.y):
            x_cross = pj.x + (point.y - pj.y) * (pi.x - pj.x) / (pi.y - pj.y)
            if point.x < x_cross:
                inside = not inside
        j = i
    return inside


def nesting_depths(contours: Sequence[Sequence[Point]]) -> List[int]:
    """
    How many other contours enclose each contour.

    Even depths are outer boundaries and odd depths are holes, whatever
    the winding the contours came with.
    """
    depths = []
    for i, contour in enumerate(contours):
        if not contour:
            depths.append(0)
            continue
        probe = contour[0]
        depths.append(sum(
            1 for j, other in enumerate(contours)
            if j != i and len(other) >= 3 and point_in_polygon(probe, other)
        ))
    return depths


def polylines_intersect(a: Sequence[Point], b: Sequence[Point]) -> bool:
    """True when any segment of polyline a crosses any segment of polyline b."""
    boxes_b = [
        (min(b[k].x, b[k + 1].x), min(b[k].y, b[k + 1].y),
         max(b[k].x, b[k + 1].x), max(b[k].y, b[k + 1].y))
        for k in range(len(b) - 1)
    ]
    for i in range(len(a) - 1):
        p1, p2 = a[i], a[i + 1]
        ax0, ax1 = min(p1.x, p2.x), max(p1.x, p2.x)
        ay0, ay1 = min(p1.y, p2.y), max(p1.y, p2.y)
        for k, (bx0, by0, bx1, by1) in enumerate(boxes_b):
            if ax1 < bx0 or bx1 < ax0 or ay1 < by0 or by1 < ay0:
                continue
            if _segments_cross(p1, p2, b[k], b[k + 1]):
                return True
    return False


def _orientation(a: Point, b: Point, c: Point) -> float:
    return (b.x - a.x) * (c.y - a.y) - (b.y - a.y) * (c.x - a.x)


def _segments_cross(p1: Point, p2: Point, q1: Point, q2: Point) -> bool:
    d1 = _orientation(q1, q2, p1)
    d2 = _orientation(q1, q2, p2)
    d3 = _orientation(p1, p2, q1)
    d4 = _orientation(p1, p2, q2)
    return (d1 * d2 < 0) and (d3 * d4 < 0)
