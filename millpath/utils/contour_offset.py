"""Miter offset of closed contours.

Each edge is shifted along its normal by the offset distance and every
vertex is rebuilt as the intersection of its two neighbouring shifted
edges. This is a bounded offset, not a general polygon boolean: when the
result would self-collapse the offset fails with a reason instead of
returning an invalid polygon.

Sign convention: a positive distance moves the contour inward, a negative
distance outward, regardless of the input winding.
"""
import math
from typing import List, Sequence

from ..errors import GeometryDegenerateError
from ..models import Point
from .geometry import close_contour, open_points, signed_area2

DEDUPE_TOLERANCE = 1e-6
MIN_EDGE_LENGTH = 1e-6
MIN_AREA2 = 1e-6
CLEANUP_PASSES = 3


def clean_contour(contour: Sequence[Point]) -> List[Point]:
    """
    Normalise a closed contour before offsetting.

    Drops the closing duplicate and consecutive near-duplicate vertices,
    then runs up to CLEANUP_PASSES passes over short edges: a vertex with
    two short neighbouring edges is removed, a vertex with one short edge
    is merged into the midpoint of that edge.

    Args:
        contour: Closed or implicitly closed contour

    Returns:
        Open vertex list (no closing duplicate)

    Raises:
        GeometryDegenerateError: Fewer than 3 usable points remain
    """
    pts: List[Point] = []
    for p in open_points(contour):
        if not pts or abs(p.x - pts[-1].x) > DEDUPE_TOLERANCE or abs(p.y - pts[-1].y) > DEDUPE_TOLERANCE:
            pts.append(p)
    if len(pts) < 3:
        raise GeometryDegenerateError("too few points after removing duplicates")

    for _ in range(CLEANUP_PASSES):
        changed = False
        cleaned = []
        n = len(pts)
        for i in range(n):
            prev, curr, nxt = pts[i - 1], pts[i], pts[(i + 1) % n]
            len_in = math.hypot(curr.x - prev.x, curr.y - prev.y)
            len_out = math.hypot(nxt.x - curr.x, nxt.y - curr.y)
            if len_in < MIN_EDGE_LENGTH and len_out < MIN_EDGE_LENGTH:
                changed = True
            elif len_in < MIN_EDGE_LENGTH:
                cleaned.append(Point((prev.x + curr.x) / 2, (prev.y + curr.y) / 2, curr.z))
                changed = True
            elif len_out < MIN_EDGE_LENGTH:
                cleaned.append(Point((curr.x + nxt.x) / 2, (curr.y + nxt.y) / 2, curr.z))
                changed = True
            else:
                cleaned.append(curr)
        if len(cleaned) < 3:
            raise GeometryDegenerateError("too few points after removing short edges")
        pts = cleaned
        if not changed:
            break
    return pts


def offset_contour(contour: Sequence[Point], distance: float) -> List[Point]:
    """
    Offset a closed contour by a signed distance.

    Args:
        contour: Closed contour (first point repeated at the end, or implied)
        distance: Offset in mm, positive = inward, negative = outward

    Returns:
        Closed offset contour with the same winding as the input

    Raises:
        GeometryDegenerateError: The contour has too few points, keeps a
            zero-length edge, collapses to (near) zero area, or inverts
    """
    if len(contour) < 3:
        raise GeometryDegenerateError("contour too short")
    if distance == 0:
        return close_contour(contour)

    pts = clean_contour(contour)
    area2 = signed_area2(pts)
    if abs(area2) < MIN_AREA2:
        raise GeometryDegenerateError("contour has no area")
    # Left normal points inward on a counter-clockwise contour
    sign = 1.0 if area2 > 0 else -1.0
    z0 = pts[0].z

    result = []
    n = len(pts)
    for i in range(n):
        prev, curr, nxt = pts[i - 1], pts[i], pts[(i + 1) % n]
        dx1, dy1 = curr.x - prev.x, curr.y - prev.y
        dx2, dy2 = nxt.x - curr.x, nxt.y - curr.y
        len1 = math.hypot(dx1, dy1)
        len2 = math.hypot(dx2, dy2)
        if len1 < MIN_EDGE_LENGTH or len2 < MIN_EDGE_LENGTH:
            raise GeometryDegenerateError("zero-length edge in contour")
        n1x, n1y = -sign * dy1 / len1, sign * dx1 / len1
        n2x, n2y = -sign * dy2 / len2, sign * dx2 / len2

        # Shifted edge lines: a1 + t * d1 and a2 + u * d2
        a1x, a1y = prev.x + distance * n1x, prev.y + distance * n1y
        a2x, a2y = curr.x + distance * n2x, curr.y + distance * n2y
        cross = dx1 * dy2 - dy1 * dx2
        if abs(cross) < 1e-14:
            # Parallel neighbours: the shifted vertex lies on the common line
            result.append(Point(a2x, a2y, z0))
            continue
        t = ((a2x - a1x) * dy2 - (a2y - a1y) * dx2) / cross
        result.append(Point(a1x + t * dx1, a1y + t * dy1, z0))

    out_area2 = signed_area2(result)
    if abs(out_area2) < MIN_AREA2:
        raise GeometryDegenerateError("offset collapsed the contour")
    if out_area2 * area2 < 0:
        raise GeometryDegenerateError("offset inverted the contour winding")
    if _is_flipped(pts, result):
        raise GeometryDegenerateError("offset turned the contour inside out")
    shrinking = distance > 0
    if shrinking and abs(out_area2) >= abs(area2):
        raise GeometryDegenerateError("inward offset did not shrink the contour")
    if not shrinking and abs(out_area2) <= abs(area2):
        raise GeometryDegenerateError("outward offset did not grow the contour")
    return close_contour(result)


def _is_flipped(original: Sequence[Point], offset: Sequence[Point]) -> bool:
    """True when most offset edges run against their source edges.

    An over-collapsed convex polygon keeps its winding but comes back
    rotated by 180 degrees, which only shows up as reversed edges.
    """
    n = len(original)
    reversed_count = 0
    for i in range(n):
        j = (i + 1) % n
        ox, oy = original[j].x - original[i].x, original[j].y - original[i].y
        rx, ry = offset[j].x - offset[i].x, offset[j].y - offset[i].y
        if ox * rx + oy * ry < 0:
            reversed_count += 1
    return reversed_count * 2 > n
