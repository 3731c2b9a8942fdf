"""Arc direction, offset and fitting utilities."""
import math
from typing import List, Optional, Sequence, Tuple

from ..models import MoveKind, Point, ToolpathMove
from .geometry import circle_from_three_points, radial_deviation

ARC_TOLERANCE_MM = 0.03
# Circles this large are treated as straight lines
MAX_ARC_RADIUS_MM = 5000.0
Z_MATCH_EPS = 1e-9


def calculate_arc_direction(
    start: Tuple[float, float],
    mid: Tuple[float, float],
    end: Tuple[float, float]
) -> str:
    """
    Arc word for three points on an arc.

    The chords start->mid and mid->end turn left on a counter-clockwise
    arc and right on a clockwise one.

    Args:
        start: Arc start (x, y)
        mid: Any point on the arc between start and end
        end: Arc end (x, y)

    Returns:
        "G02" or "G03"
    """
    turn = (mid[0] - start[0]) * (end[1] - mid[1]) - (mid[1] - start[1]) * (end[0] - mid[0])
    return "G02" if turn < 0 else "G03"


def calculate_ij_offsets(
    start: Tuple[float, float],
    center: Tuple[float, float]
) -> Tuple[float, float]:
    """Incremental I, J centre words: the centre measured from the arc start."""
    return (center[0] - start[0], center[1] - start[1])


def arc_sweep(start: Point, end: Point, center: Tuple[float, float], clockwise: bool) -> float:
    """Swept angle (radians, positive) from start to end around center."""
    cx, cy = center
    a0 = math.atan2(start.y - cy, start.x - cx)
    a1 = math.atan2(end.y - cy, end.x - cx)
    sweep = (a0 - a1) if clockwise else (a1 - a0)
    sweep %= 2 * math.pi
    if sweep < 1e-12:
        sweep = 2 * math.pi
    return sweep


def _fit_circle(points: Sequence[Point], i: int, j: int) -> Optional[Tuple[float, float, float, bool]]:
    """
    Circle through points[i..j] within tolerance.

    Returns:
        (cx, cy, r, clockwise), or None when the points do not form an arc
    """
    mid = (i + j) // 2
    p_i, p_mid, p_j = points[i], points[mid], points[j]
    circle = circle_from_three_points(p_i, p_mid, p_j)
    if circle is None:
        return None
    cx, cy, r = circle
    if r > MAX_ARC_RADIUS_MM:
        return None

    for k in range(i + 1, j):
        if radial_deviation(points[k], cx, cy, r) > ARC_TOLERANCE_MM:
            return None

    # Chord sagitta must stay within tolerance or long chords would bulge
    for k in range(i, j):
        half = math.hypot(points[k + 1].x - points[k].x, points[k + 1].y - points[k].y) / 2
        if half > r:
            return None
        if r - math.sqrt(r * r - half * half) > ARC_TOLERANCE_MM:
            return None

    clockwise = calculate_arc_direction((p_i.x, p_i.y), (p_mid.x, p_mid.y), (p_j.x, p_j.y)) == "G02"

    # Angles must progress one way and cover less than a full turn
    total = 0.0
    prev = math.atan2(p_i.y - cy, p_i.x - cx)
    for k in range(i + 1, j + 1):
        angle = math.atan2(points[k].y - cy, points[k].x - cx)
        delta = (angle - prev + math.pi) % (2 * math.pi) - math.pi
        if (delta > 0) == clockwise or abs(delta) < 1e-12:
            return None
        total += abs(delta)
        prev = angle
    if total >= 2 * math.pi:
        return None
    return cx, cy, r, clockwise


def _fit_run(points: Sequence[Point], z: float) -> List[ToolpathMove]:
    """Replace a same-Z run (points[0] is the run's start) with arcs and lines."""
    result = []
    i = 0
    last = len(points) - 1
    while i < last:
        best = None
        j = i + 2
        while j <= last:
            fit = _fit_circle(points, i, j)
            if fit is None:
                break
            best = (j, fit)
            j += 1
        if best is not None:
            j, (cx, cy, _r, clockwise) = best
            ij = calculate_ij_offsets((points[i].x, points[i].y), (cx, cy))
            result.append(ToolpathMove(points[j].x, points[j].y, z, MoveKind.ARC,
                                       i=ij[0], j=ij[1], clockwise=clockwise))
            i = j
            continue
        p = points[i + 1]
        result.append(ToolpathMove(p.x, p.y, z, MoveKind.CUT))
        i += 1
    return result


def fit_arcs(moves: Sequence[ToolpathMove]) -> List[ToolpathMove]:
    """
    Compress runs of same-Z cut moves into circular arcs.

    A run starts at the end of the move before it and takes every following
    cut move at the same Z. Within a run the longest prefix that fits one
    circle within ARC_TOLERANCE_MM becomes a single arc move; everything
    else stays a line. Rapids and Z-changing cuts pass through unchanged.

    Args:
        moves: Move list, typically straight from generation

    Returns:
        New move list
    """
    result: List[ToolpathMove] = []
    idx = 0
    while idx < len(moves):
        move = moves[idx]
        if move.kind != MoveKind.CUT or idx == 0:
            result.append(move)
            idx += 1
            continue

        anchor = moves[idx - 1]
        z = move.z
        if abs(anchor.z - z) > Z_MATCH_EPS:
            result.append(move)
            idx += 1
            continue

        run = [Point(anchor.x, anchor.y, z)]
        while idx < len(moves) and moves[idx].kind == MoveKind.CUT and abs(moves[idx].z - z) <= Z_MATCH_EPS:
            run.append(Point(moves[idx].x, moves[idx].y, z))
            idx += 1
        if len(run) < 3:
            result.extend(ToolpathMove(p.x, p.y, z, MoveKind.CUT) for p in run[1:])
        else:
            result.extend(_fit_run(run, z))
    return result
