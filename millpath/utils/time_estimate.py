"""Machining time estimation from a move list."""
import math
from dataclasses import dataclass
from typing import Sequence

from ..models import MoveKind, Point, ToolpathMove
from .arc_utils import arc_sweep

DEFAULT_RAPID_FEEDRATE_MM_MIN = 10000.0


@dataclass
class TimeEstimate:
    total_minutes: float
    cut_minutes: float
    rapid_minutes: float
    cut_distance_mm: float
    rapid_distance_mm: float


def move_length(previous: ToolpathMove, move: ToolpathMove) -> float:
    """Distance travelled by a move, measured along the arc for arc moves."""
    dz = move.z - previous.z
    if move.kind == MoveKind.ARC and move.i is not None and move.j is not None:
        center = (previous.x + move.i, previous.y + move.j)
        radius = math.hypot(move.i, move.j)
        sweep = arc_sweep(Point(previous.x, previous.y), Point(move.x, move.y), center, bool(move.clockwise))
        return math.hypot(radius * sweep, dz)
    return math.sqrt((move.x - previous.x) ** 2 + (move.y - previous.y) ** 2 + dz ** 2)


def estimate_milling_time(
    moves: Sequence[ToolpathMove],
    feedrate: float,
    rapid_feedrate: float = DEFAULT_RAPID_FEEDRATE_MM_MIN
) -> TimeEstimate:
    """
    Estimate how long a toolpath takes to run.

    Cuts and arcs run at the feed rate, rapids at the rapid rate. The
    first move only positions the tool and is not counted.

    Args:
        moves: Move list (mm)
        feedrate: Cutting feed rate (mm/min); non-positive counts as 1
        rapid_feedrate: Rapid traverse rate (mm/min)

    Returns:
        TimeEstimate with minutes and distances
    """
    feed = feedrate if feedrate and feedrate > 0 else 1.0
    cut_distance = 0.0
    rapid_distance = 0.0
    for previous, move in zip(moves, moves[1:]):
        length = move_length(previous, move)
        if move.kind == MoveKind.RAPID:
            rapid_distance += length
        else:
            cut_distance += length

    cut_minutes = cut_distance / feed
    rapid_minutes = rapid_distance / rapid_feedrate
    return TimeEstimate(
        total_minutes=cut_minutes + rapid_minutes,
        cut_minutes=cut_minutes,
        rapid_minutes=rapid_minutes,
        cut_distance_mm=cut_distance,
        rapid_distance_mm=rapid_distance,
    )


def format_estimated_time(total_minutes: float) -> str:
    """
    Format minutes as a short readable duration.

    Example:
        >>> format_estimated_time(75)
        '1 h 15 min'
    """
    if total_minutes is None or not math.isfinite(total_minutes) or total_minutes < 0:
        return "-"
    if total_minutes < 1:
        seconds = round(total_minutes * 60)
        return "under 1 min" if seconds <= 0 else f"{seconds} s"
    whole = round(total_minutes)
    if whole < 60:
        return f"{whole} min"
    hours, minutes = divmod(whole, 60)
    return f"{hours} h {minutes} min"
