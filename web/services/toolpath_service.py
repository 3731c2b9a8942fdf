"""Toolpath generation service."""
import logging
from typing import Any, Dict, List, Optional, Tuple

from flask import current_app

from millpath.errors import InvalidInputError, ToolpathError
from millpath.letter_outlines import MatplotlibGlyphProvider
from millpath.models import Contour, GenerationRequest, Letters, Toolpath, ToolpathMove
from millpath.request_parser import parse_request
from millpath.toolpath_generator import generate_toolpath
from millpath.utils.gcode_format import toolpath_to_gcode
from millpath.utils.time_estimate import estimate_milling_time, format_estimated_time
from millpath.utils.validators import validate_request
from millpath.visualizer import render_preview

logger = logging.getLogger(__name__)


def serialize_move(move: ToolpathMove) -> Dict[str, Any]:
    """Convert a move to a JSON-ready dict."""
    data = {'x': move.x, 'y': move.y, 'z': move.z, 'kind': move.kind.value}
    if move.i is not None:
        data.update({'i': move.i, 'j': move.j, 'clockwise': move.clockwise})
    return data


class ToolpathService:
    """Service for toolpath generation, validation and export."""

    @staticmethod
    def build_request(data: Dict) -> GenerationRequest:
        """
        Parse and validate a request payload.

        Raises:
            InvalidInputError: The payload is malformed or fails validation
        """
        config = current_app.config
        request = parse_request(
            data,
            safe_height=config.get('DEFAULT_SAFE_HEIGHT_MM', 10.0),
            lead_in_above=config.get('DEFAULT_LEAD_IN_ABOVE_MM', 2.0),
            fit_arcs=config.get('FIT_ARCS', False),
        )
        errors = validate_request(request)
        if errors:
            raise InvalidInputError(errors)
        return request

    @staticmethod
    def validate(data: Dict) -> List[str]:
        """Return validation errors for a payload (empty if valid)."""
        try:
            ToolpathService.build_request(data)
        except InvalidInputError as e:
            return e.errors
        return []

    @staticmethod
    def glyph_outlines(request: GenerationRequest) -> Optional[List[Contour]]:
        """Fetch glyph outlines for text shapes; None for everything else."""
        shape = request.shape
        if not isinstance(shape, Letters):
            return None
        provider = MatplotlibGlyphProvider(current_app.config.get('LETTER_FONT_PATH'))
        return provider.outlines(shape.text, shape.font_size, shape.orientation)

    @staticmethod
    def generate_toolpath(data: Dict) -> Tuple[GenerationRequest, Toolpath]:
        """Parse, validate and generate."""
        request = ToolpathService.build_request(data)
        try:
            toolpath = generate_toolpath(request, ToolpathService.glyph_outlines(request))
        except ToolpathError as e:
            logger.info("Toolpath generation failed: %s", e)
            raise
        return request, toolpath

    @staticmethod
    def output_unit(data: Dict) -> str:
        unit = str(data.get('unit') or 'mm').lower()
        return unit if unit in ('mm', 'inch') else 'mm'

    @staticmethod
    def generate(data: Dict) -> Dict[str, Any]:
        """
        Generate a toolpath with its G-code and time estimate.

        Returns:
            Dict with moves (mm), gcode, estimate, warnings and layer_count
        """
        request, toolpath = ToolpathService.generate_toolpath(data)
        cut = request.cut
        gcode = toolpath_to_gcode(toolpath.moves, cut.feedrate, cut.safe_height,
                                  ToolpathService.output_unit(data))
        estimate = estimate_milling_time(
            toolpath.moves, cut.feedrate,
            current_app.config.get('RAPID_FEEDRATE_MM_MIN', 10000.0)
        )
        return {
            'moves': [serialize_move(m) for m in toolpath.moves],
            'gcode': gcode,
            'layer_count': toolpath.layer_count,
            'warnings': toolpath.warnings,
            'estimate': {
                'total_minutes': estimate.total_minutes,
                'cut_distance_mm': estimate.cut_distance_mm,
                'rapid_distance_mm': estimate.rapid_distance_mm,
                'display': format_estimated_time(estimate.total_minutes),
            },
        }

    @staticmethod
    def generate_gcode(data: Dict) -> Tuple[str, str]:
        """
        Generate a G-code program for download.

        Returns:
            Tuple of (gcode_text, filename)
        """
        request, toolpath = ToolpathService.generate_toolpath(data)
        cut = request.cut
        gcode = toolpath_to_gcode(toolpath.moves, cut.feedrate, cut.safe_height,
                                  ToolpathService.output_unit(data))
        shape_name = type(request.shape).__name__.lower()
        return gcode, f"{shape_name}_{request.operation.value}.nc"

    @staticmethod
    def preview_png(data: Dict) -> bytes:
        """Render a PNG preview of the toolpath."""
        request, toolpath = ToolpathService.generate_toolpath(data)
        title = f"{type(request.shape).__name__} {request.operation.value}"
        return render_preview(toolpath.moves, title=title)
