"""API response helper functions."""
import io

from flask import jsonify, send_file

from millpath.errors import InvalidInputError


def success_response(data=None, message=None):
    """Return a successful API response."""
    response = {"status": "ok"}
    if data is not None:
        response["data"] = data
    if message is not None:
        response["message"] = message
    return jsonify(response), 200


def error_response(message, status_code=400):
    return jsonify({"status": "error", "message": message}), status_code


def validation_response(errors):
    """Validation result; an empty error list means the request is valid."""
    return jsonify({"valid": not errors, "errors": list(errors)}), 200


def toolpath_error_response(error):
    """
    Map a generation failure to a response.

    Input errors come back as a validation result so the form can show
    every field message; geometric failures are plain errors.
    """
    if isinstance(error, InvalidInputError):
        return validation_response(error.errors)
    return error_response(str(error))


def gcode_file_response(gcode, filename):
    """Send a G-code program as a text attachment."""
    return send_file(
        io.BytesIO(gcode.encode('utf-8')),
        mimetype='text/plain',
        as_attachment=True,
        download_name=filename
    )


def png_response(data):
    return send_file(io.BytesIO(data), mimetype='image/png')
