"""Hole grid layout.

A patterned-holes shape is one hole path drawn around the origin, stamped
at every grid position.
"""
from typing import List, Sequence, Tuple

from .models import Contour, PatternedHoles, Point


def expand_grid_pattern(
    start_x: float,
    start_y: float,
    x_spacing: float,
    y_spacing: float,
    x_count: int,
    y_count: int
) -> List[Tuple[float, float]]:
    """
    Lay out grid positions, finishing one row before stepping in Y.

    Args:
        start_x: X of the first position
        start_y: Y of the first position
        x_spacing: Column pitch
        y_spacing: Row pitch
        x_count: Columns
        y_count: Rows

    Returns:
        (x, y) positions, row by row
    """
    return [
        (start_x + col * x_spacing, start_y + row * y_spacing)
        for row in range(y_count)
        for col in range(x_count)
    ]


def hole_centers(holes: PatternedHoles) -> List[Tuple[float, float]]:
    """Centres of every hole in the grid, first hole at the origin."""
    return expand_grid_pattern(
        0.0, 0.0,
        holes.spacing_x, holes.spacing_y,
        max(1, holes.count_x), max(1, holes.count_y)
    )


def replicate_path(path: Sequence[Point], centers: Sequence[Tuple[float, float]]) -> List[Contour]:
    """Copy a path drawn around the origin to each centre."""
    return [[Point(p.x + cx, p.y + cy, p.z) for p in path] for cx, cy in centers]
