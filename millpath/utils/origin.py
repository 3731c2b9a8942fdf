"""Rebase a finished move list onto the requested work origin."""
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from ..models import OriginSpec, ToolpathMove, XYOrigin, ZOrigin


class Placement(Enum):
    """Where the tool runs relative to the nominal shape boundary."""
    OUTSIDE = 'outside'   # path lies tool_radius outside the boundary
    INSIDE = 'inside'     # path lies tool_radius inside the boundary
    FACING = 'facing'     # corners come from the facing area, not the path


def xy_shift(
    moves: Sequence[ToolpathMove],
    xy_origin: XYOrigin,
    tool_radius: float,
    placement: Placement,
    bounds: Optional[Tuple[float, float]] = None
) -> Tuple[float, float]:
    """
    XY shift that puts the requested origin at (0, 0).

    CENTER moves the centre of the path's bounding box to the origin. A
    corner moves the matching corner of the nominal shape (the path's
    bounding box corrected by the tool radius) to the origin. Facing uses
    the half extents in bounds instead.

    Args:
        moves: Moves to measure
        xy_origin: Requested origin
        tool_radius: Radius the path is offset from the boundary by
        placement: Side of the boundary the path runs on
        bounds: (half_width, half_height) of the facing area

    Returns:
        (shift_x, shift_y)
    """
    if placement is Placement.FACING and bounds is not None:
        hw, hh = bounds
        min_x, min_y, max_x, max_y = -hw, -hh, hw, hh
    else:
        if not moves:
            return 0.0, 0.0
        min_x = min(m.x for m in moves)
        min_y = min(m.y for m in moves)
        max_x = max(m.x for m in moves)
        max_y = max(m.y for m in moves)
        if xy_origin == XYOrigin.CENTER:
            return -(min_x + max_x) / 2, -(min_y + max_y) / 2
        grow = tool_radius if placement is Placement.INSIDE else -tool_radius
        min_x, min_y, max_x, max_y = min_x - grow, min_y - grow, max_x + grow, max_y + grow

    if xy_origin == XYOrigin.CENTER:
        return -(min_x + max_x) / 2, -(min_y + max_y) / 2
    corner_x = max_x if xy_origin in (XYOrigin.BOTTOM_RIGHT, XYOrigin.TOP_RIGHT) else min_x
    corner_y = max_y if xy_origin in (XYOrigin.TOP_LEFT, XYOrigin.TOP_RIGHT) else min_y
    return -corner_x, -corner_y


def apply_origin_transform(
    moves: Sequence[ToolpathMove],
    origin: OriginSpec,
    total_depth: float,
    tool_radius: float,
    placement: Placement,
    bounds: Optional[Tuple[float, float]] = None
) -> List[ToolpathMove]:
    """
    Shift moves to the requested XY origin and Z reference.

    Z = 0 is the stock top while generating; with STOCK_BOTTOM the stock
    bottom becomes zero instead (z + total_depth). The Z offset is added
    last. Arc centre offsets are relative and do not change.

    Returns:
        New list of moves
    """
    dx, dy = xy_shift(moves, origin.xy_origin, tool_radius, placement, bounds)
    dz = origin.z_offset or 0.0
    if origin.z_origin == ZOrigin.STOCK_BOTTOM:
        dz += total_depth
    return [
        ToolpathMove(m.x + dx, m.y + dy, m.z + dz, m.kind, m.i, m.j, m.clockwise)
        for m in moves
    ]
