"""API routes - JSON endpoints for toolpath generation."""
from flask import Blueprint, request

from millpath.errors import ToolpathError
from web.services.toolpath_service import ToolpathService
from web.utils.responses import (
    error_response,
    gcode_file_response,
    png_response,
    success_response,
    toolpath_error_response,
    validation_response,
)

api_bp = Blueprint('api', __name__)


@api_bp.route('/toolpath', methods=['POST'])
def generate_toolpath():
    """Generate moves, G-code and a time estimate for a request."""
    data = request.get_json(silent=True)
    if not data:
        return error_response('No data provided')

    try:
        result = ToolpathService.generate(data)
    except ToolpathError as e:
        return toolpath_error_response(e)
    return success_response(data=result)


@api_bp.route('/validate', methods=['POST'])
def validate_toolpath():
    """Validate a request without generating it."""
    data = request.get_json(silent=True)
    if not data:
        return error_response('No data provided')

    return validation_response(ToolpathService.validate(data))


@api_bp.route('/gcode', methods=['POST'])
def download_gcode():
    """Download the generated G-code program."""
    data = request.get_json(silent=True)
    if not data:
        return error_response('No data provided')

    try:
        gcode, filename = ToolpathService.generate_gcode(data)
    except ToolpathError as e:
        return toolpath_error_response(e)
    return gcode_file_response(gcode, filename)


@api_bp.route('/preview', methods=['POST'])
def preview_toolpath():
    """Render a PNG preview of the toolpath."""
    data = request.get_json(silent=True)
    if not data:
        return error_response('No data provided')

    try:
        png = ToolpathService.preview_png(data)
    except ToolpathError as e:
        return toolpath_error_response(e)
    return png_response(png)
