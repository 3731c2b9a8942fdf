"""Base and tool-compensated outlines for the parametric shapes.

All outlines are centred on the origin, run counter-clockwise and are
closed (the first point is repeated at the end). Rectangle and square
contours start at the middle of the right edge so a lead-in meets a
straight side.
"""
import math
from typing import List

from .errors import ToolTooLargeError
from .models import Circle, ContourSide, Contour, Ellipse, Point, Rectangle, ShapeSpec, Square
from .utils.geometry import ellipse_points, segments_for_radius

CORNER_STEPS = 10
CORNER_RADIUS_FACTOR = 0.8


def rect_half_extents(shape: ShapeSpec):
    """Return (half_width, half_height) of a square or rectangle."""
    if isinstance(shape, Square):
        return shape.size / 2, shape.size / 2
    if isinstance(shape, Rectangle):
        return shape.width / 2, shape.height / 2
    raise TypeError(f"{type(shape).__name__} has no rectangular extents")


def base_outline(shape: ShapeSpec) -> Contour:
    """
    Uncompensated outline of a shape.

    Args:
        shape: Circle, Ellipse, Square or Rectangle

    Returns:
        Closed contour on the nominal boundary
    """
    if isinstance(shape, Circle):
        r = shape.diameter / 2
        return ellipse_points(r, r, segments_for_radius(r))
    if isinstance(shape, Ellipse):
        rx, ry = shape.major / 2, shape.minor / 2
        return ellipse_points(rx, ry, segments_for_radius(max(rx, ry)))
    if isinstance(shape, (Square, Rectangle)):
        hw, hh = rect_half_extents(shape)
        return _sharp_rectangle(hw, hh)
    raise TypeError(f"No outline for {type(shape).__name__}")


def compensated_contour(shape: ShapeSpec, tool_radius: float, side: ContourSide) -> Contour:
    """
    Contour the tool centre follows to cut along a shape's boundary.

    Outside contours are pushed out by the tool radius and get rounded
    corners on squares and rectangles; inside contours are pulled in by the
    tool radius and keep sharp corners.

    Args:
        shape: Circle, Ellipse, Square or Rectangle
        tool_radius: Tool radius (mm)
        side: Which side of the boundary the tool runs on

    Returns:
        Closed tool-centre contour

    Raises:
        ToolTooLargeError: An inside contour leaves no room for the tool
    """
    offset = tool_radius if side == ContourSide.OUTSIDE else -tool_radius

    if isinstance(shape, Circle):
        r = shape.diameter / 2 + offset
        _check_fits(r)
        return ellipse_points(r, r, segments_for_radius(r))

    if isinstance(shape, Ellipse):
        rx, ry = shape.major / 2 + offset, shape.minor / 2 + offset
        _check_fits(min(rx, ry))
        return ellipse_points(rx, ry, segments_for_radius(max(rx, ry)))

    if isinstance(shape, (Square, Rectangle)):
        hw, hh = rect_half_extents(shape)
        hw, hh = hw + offset, hh + offset
        _check_fits(min(hw, hh))
        if side == ContourSide.OUTSIDE:
            corner = max(0.0, min(tool_radius * CORNER_RADIUS_FACTOR, hw / 2, hh / 2))
            return _rounded_rectangle(hw, hh, corner)
        return _sharp_rectangle(hw, hh)

    raise TypeError(f"No contour for {type(shape).__name__}")


def _check_fits(size: float) -> None:
    if size <= 0:
        raise ToolTooLargeError("Tool too large for this contour")


def _sharp_rectangle(hw: float, hh: float) -> Contour:
    return [
        Point(hw, 0.0),
        Point(hw, hh),
        Point(-hw, hh),
        Point(-hw, -hh),
        Point(hw, -hh),
        Point(hw, 0.0),
    ]


def _rounded_rectangle(hw: float, hh: float, corner: float) -> Contour:
    """Rectangle with quarter-circle corners, starting mid right edge."""
    if corner <= 0:
        return _sharp_rectangle(hw, hh)
    # Corner centres in counter-clockwise order from top right
    centres = [
        (hw - corner, hh - corner, 0.0),
        (-hw + corner, hh - corner, math.pi / 2),
        (-hw + corner, -hh + corner, math.pi),
        (hw - corner, -hh + corner, 3 * math.pi / 2),
    ]
    points: List[Point] = [Point(hw, 0.0)]
    for cx, cy, start in centres:
        for i in range(CORNER_STEPS + 1):
            angle = start + (math.pi / 2) * i / CORNER_STEPS
            points.append(Point(cx + corner * math.cos(angle), cy + corner * math.sin(angle)))
    points.append(Point(hw, 0.0))
    return points
