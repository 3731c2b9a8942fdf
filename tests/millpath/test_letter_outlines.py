"""Tests for glyph outline extraction."""
import pytest
import logging

from matplotlib.path import Path

from millpath.letter_outlines import (
    MatplotlibGlyphProvider,
    center_and_rotate,
    load_font,
    path_to_contours,
)
from millpath.models import Point
from millpath.utils.geometry import bounding_box, is_closed, nesting_depths, open_points


def extents(contours):
    min_x, min_y, max_x, max_y = bounding_box([p for c in contours for p in c])
    return max_x - min_x, max_y - min_y


class TestPathToContours:
    """Tests for converting matplotlib paths."""

    def test_line_path(self):
        path = Path([(0, 0), (1, 0), (1, 1), (0, 1), (0, 0)],
                    [Path.MOVETO, Path.LINETO, Path.LINETO, Path.LINETO, Path.CLOSEPOLY])
        contours = path_to_contours(path)
        assert len(contours) == 1
        assert contours[0][:4] == [Point(0.0, 0.0), Point(1.0, 0.0), Point(1.0, 1.0), Point(0.0, 1.0)]
        assert is_closed(contours[0])

    def test_curves_are_sampled(self):
        """Test a quadratic segment becomes one point per sample."""
        path = Path([(0, 0), (1, 1), (2, 0), (0, 0)],
                    [Path.MOVETO, Path.CURVE3, Path.CURVE3, Path.CLOSEPOLY])
        contour = path_to_contours(path, segments=8)[0]
        assert len(contour) == 1 + 8 + 1
        assert contour[8] == Point(2.0, 0.0)
        assert all(0 <= p.y <= 0.5 for p in contour)

    def test_short_runs_dropped(self):
        path = Path([(0, 0), (1, 0), (5, 5), (6, 5), (6, 6), (5, 6)],
                    [Path.MOVETO, Path.LINETO, Path.MOVETO, Path.LINETO, Path.LINETO, Path.LINETO])
        contours = path_to_contours(path)
        assert len(contours) == 1
        assert contours[0][0] == Point(5.0, 5.0)


class TestCenterAndRotate:
    """Tests for text block placement."""

    def test_centred(self):
        contours = [[Point(10, 10), Point(20, 10), Point(20, 14)]]
        placed = center_and_rotate(contours, 0)
        assert placed[0][0] == Point(-5.0, -2.0)

    def test_rotation_is_clockwise(self):
        contours = [[Point(-1, 0), Point(1, 0), Point(1, 2)]]
        placed = center_and_rotate(contours, 90)
        # After centring (1, 0) sits at (1, -1); a quarter turn clockwise takes it to (-1, -1)
        assert placed[0][1].x == pytest.approx(-1.0)
        assert placed[0][1].y == pytest.approx(-1.0)


class TestGlyphProvider:
    """Tests using matplotlib's bundled DejaVu Sans."""

    @pytest.fixture
    def provider(self):
        return MatplotlibGlyphProvider()

    def test_letter_size(self, provider):
        contours = provider.outlines("I", 20)
        assert contours
        width, height = extents(contours)
        assert 10 < height < 20
        assert width < height

    def test_counter_is_a_hole(self, provider):
        """Test an O yields an outer contour and a nested counter."""
        contours = provider.outlines("O", 20)
        depths = nesting_depths([open_points(c) for c in contours])
        assert sorted(depths) == [0, 1]

    def test_block_is_centred(self, provider):
        contours = provider.outlines("HI", 10)
        min_x, min_y, max_x, max_y = bounding_box([p for c in contours for p in c])
        assert min_x == pytest.approx(-max_x)
        assert min_y == pytest.approx(-max_y)

    def test_lines_stack(self, provider):
        _, one_line = extents(provider.outlines("H", 10))
        _, two_lines = extents(provider.outlines("H\nH", 10))
        assert two_lines == pytest.approx(one_line + 12.5, abs=0.01)

    def test_orientation(self, provider):
        width, height = extents(provider.outlines("I", 20, orientation=90))
        assert width > height

    def test_blank_text(self, provider):
        assert provider.outlines("  \n ", 10) == []


class TestLoadFont:
    """Tests for font resolution."""

    def test_default_font(self):
        assert load_font().get_family() == ['DejaVu Sans']

    def test_missing_file_falls_back(self, caplog):
        with caplog.at_level(logging.WARNING, logger='millpath.letter_outlines'):
            prop = load_font('/nonexistent/font.ttf')
        assert prop.get_family() == ['DejaVu Sans']
        assert "not found" in caplog.text
