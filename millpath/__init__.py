"""Toolpath generation for parametric 2D milling jobs."""

from .errors import (
    ToolpathError,
    GeometryDegenerateError,
    ToolTooLargeError,
    InvalidInputError,
    FontUnavailableError
)
from .models import (
    MoveKind,
    Operation,
    EntryMethod,
    XYOrigin,
    ZOrigin,
    ContourSide,
    LetterMode,
    FacingMode,
    Point,
    Circle,
    Square,
    Rectangle,
    Ellipse,
    Letters,
    CountersunkBolt,
    PatternedHoles,
    CutParams,
    OriginSpec,
    TabSpec,
    ToolpathMove,
    GenerationRequest,
    Toolpath
)
from .request_parser import parse_request
from .toolpath_generator import ToolpathGenerator, generate_toolpath

__all__ = [
    # Errors
    'ToolpathError',
    'GeometryDegenerateError',
    'ToolTooLargeError',
    'InvalidInputError',
    'FontUnavailableError',
    # Request model
    'MoveKind',
    'Operation',
    'EntryMethod',
    'XYOrigin',
    'ZOrigin',
    'ContourSide',
    'LetterMode',
    'FacingMode',
    'Point',
    'Circle',
    'Square',
    'Rectangle',
    'Ellipse',
    'Letters',
    'CountersunkBolt',
    'PatternedHoles',
    'CutParams',
    'OriginSpec',
    'TabSpec',
    'ToolpathMove',
    'GenerationRequest',
    'Toolpath',
    # Generation
    'parse_request',
    'ToolpathGenerator',
    'generate_toolpath',
]
