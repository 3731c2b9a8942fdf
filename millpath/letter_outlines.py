"""Glyph outlines for text shapes, using matplotlib's font machinery.

Text is converted with matplotlib.textpath.TextPath. Quadratic and cubic
curve segments are sampled into straight segments so every glyph becomes a
list of closed point contours in millimeters, ready for the generator.
"""
import logging
import os
from typing import List, Optional, Sequence

from matplotlib.font_manager import FontProperties, findfont
from matplotlib.path import Path
from matplotlib.textpath import TextPath

from .errors import FontUnavailableError
from .models import Contour, Point
from .utils.geometry import (
    BEZIER_SEGMENTS,
    bounding_box,
    close_contour,
    rotate_points,
    sample_cubic,
    sample_quadratic,
    translate_points,
)

logger = logging.getLogger(__name__)

LINE_HEIGHT_FACTOR = 1.25
FALLBACK_FAMILY = 'DejaVu Sans'


def load_font(font_path: Optional[str] = None) -> FontProperties:
    """
    Resolve the font used for text, trying each source in order.

    1. The configured TrueType file, when it exists
    2. matplotlib's bundled DejaVu Sans

    Raises:
        FontUnavailableError: No font could be found
    """
    if font_path:
        if os.path.isfile(font_path):
            return FontProperties(fname=font_path)
        logger.warning("Letter font %s not found, falling back to %s", font_path, FALLBACK_FAMILY)
    prop = FontProperties(family=FALLBACK_FAMILY)
    try:
        findfont(prop, fallback_to_default=False)
    except ValueError as e:
        raise FontUnavailableError(f"No font available for text: {e}")
    return prop


def path_to_contours(path: Path, segments: int = BEZIER_SEGMENTS) -> List[Contour]:
    """
    Convert a matplotlib path into closed point contours.

    Args:
        path: Path with MOVETO, LINETO, CURVE3, CURVE4 and CLOSEPOLY codes
        segments: Line segments per curve segment

    Returns:
        Contours with at least three points, each closed
    """
    contours: List[Contour] = []
    current: Contour = []

    def flush():
        if len(current) >= 3:
            contours.append(close_contour(current))

    for vertices, code in path.iter_segments(curves=True, simplify=False):
        if code == Path.MOVETO:
            flush()
            current = [Point(float(vertices[0]), float(vertices[1]))]
        elif code == Path.LINETO:
            current.append(Point(float(vertices[0]), float(vertices[1])))
        elif code == Path.CURVE3:
            control = Point(float(vertices[0]), float(vertices[1]))
            end = Point(float(vertices[2]), float(vertices[3]))
            current.extend(sample_quadratic(current[-1], control, end, segments))
        elif code == Path.CURVE4:
            c1 = Point(float(vertices[0]), float(vertices[1]))
            c2 = Point(float(vertices[2]), float(vertices[3]))
            end = Point(float(vertices[4]), float(vertices[5]))
            current.extend(sample_cubic(current[-1], c1, c2, end, segments))
        elif code == Path.CLOSEPOLY:
            flush()
            current = []
    flush()
    return contours


class MatplotlibGlyphProvider:
    """Lays out text and returns its glyph outlines in millimeters."""

    def __init__(self, font_path: Optional[str] = None):
        self.font_path = font_path
        self._font: Optional[FontProperties] = None

    @property
    def font(self) -> FontProperties:
        if self._font is None:
            self._font = load_font(self.font_path)
        return self._font

    def outlines(self, text: str, font_size: float, orientation: float = 0.0) -> List[Contour]:
        """
        Glyph contours for a block of text.

        Lines are stacked 1.25 font sizes apart, the block is centred on
        the origin and then rotated (positive degrees turn clockwise).

        Args:
            text: Text, one line per newline
            font_size: Letter height in mm
            orientation: Rotation in degrees

        Returns:
            Closed contours; empty for blank text

        Raises:
            FontUnavailableError: No font could be loaded
        """
        lines = [line for line in text.strip().splitlines() if line.strip()]
        contours: List[Contour] = []
        for index, line in enumerate(lines):
            y_offset = -index * font_size * LINE_HEIGHT_FACTOR
            text_path = TextPath((0, y_offset), line, size=font_size, prop=self.font)
            contours.extend(path_to_contours(text_path))
        if not contours:
            return []
        return center_and_rotate(contours, orientation)


def center_and_rotate(contours: Sequence[Contour], orientation: float) -> List[Contour]:
    """Centre contours on their joint bounding box, then rotate about the origin."""
    all_points = [p for contour in contours for p in contour]
    min_x, min_y, max_x, max_y = bounding_box(all_points)
    dx, dy = -(min_x + max_x) / 2, -(min_y + max_y) / 2
    placed = [translate_points(contour, dx, dy) for contour in contours]
    if orientation % 360 != 0:
        placed = [rotate_points(contour, orientation) for contour in placed]
    return placed
