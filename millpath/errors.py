"""Exceptions raised by toolpath generation."""
from typing import List, Optional


class ToolpathError(Exception):
    """Base class for toolpath generation errors."""
    pass


class GeometryDegenerateError(ToolpathError):
    """An offset or ring computation could not produce a valid polygon."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class ToolTooLargeError(ToolpathError):
    """No feature leaves room for the tool."""

    def __init__(self, message: str, reason: Optional[str] = None):
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.reason = reason


class InvalidInputError(ToolpathError):
    """The request failed validation before generation."""

    def __init__(self, errors: List[str]):
        super().__init__('; '.join(errors))
        self.errors = errors


class FontUnavailableError(ToolpathError):
    """No font could be loaded for text outlines."""
    pass
