"""Build a GenerationRequest from a JSON-style dictionary.

Lengths in the payload are in the payload's `unit` ('mm' or 'inch') and
are converted to millimeters here. Missing optional fields get the same
defaults the web form starts with.

Example payload:

    {
        "unit": "mm",
        "operation": "pocket",
        "shape": {"type": "circle", "diameter": 50},
        "cut": {"tool_diameter": 6, "total_depth": 5, "stepdown": 2.5,
                "stepover": 3, "feedrate": 800, "entry_method": "plunge"},
        "origin": {"xy": "center", "z": "stock_top", "z_offset": 0},
        "tabs": {"enabled": false}
    }
"""
import math
from typing import Any, Dict, List, Optional

from .errors import InvalidInputError
from .models import (
    Circle,
    ContourSide,
    CountersunkBolt,
    CutParams,
    Ellipse,
    EntryMethod,
    FacingMode,
    GenerationRequest,
    LetterMode,
    Letters,
    Operation,
    OriginSpec,
    PatternedHoles,
    Rectangle,
    Square,
    TabSpec,
    XYOrigin,
    ZOrigin,
)
from .utils.units import UNITS, to_mm

OUTLINE_LETTER_TOOL_MM = 0.5
DEFAULT_RAMP_ANGLE = 3.0
DEFAULT_TAB_INTERVAL_MM = 40.0
DEFAULT_TAB_WIDTH_MM = 8.0
DEFAULT_TAB_HEIGHT_MM = 1.0
TRUE_STRINGS = ('1', 'true', 'yes', 'on')
FALSE_STRINGS = ('0', 'false', 'no', 'off')


class _Reader:
    """Collects field errors instead of stopping at the first one."""

    def __init__(self, unit: str):
        self.unit = unit
        self.errors: List[str] = []

    def number(self, data: Dict[str, Any], key: str, label: str, default=None) -> Optional[float]:
        value = data.get(key, default)
        if value is None or value == '':
            if default is None:
                self.errors.append(f"{label} is required")
                return math.nan
            return default
        if isinstance(value, bool):
            self.errors.append(f"{label} must be a number")
            return math.nan
        try:
            number = float(value)
        except (TypeError, ValueError):
            self.errors.append(f"{label} must be a number")
            return math.nan
        if not math.isfinite(number):
            self.errors.append(f"{label} must be a finite number")
            return math.nan
        return number

    def length(self, data: Dict[str, Any], key: str, label: str, default=None) -> float:
        """Read a length and convert it to millimeters; defaults are in mm."""
        if data.get(key) in (None, '') and default is not None:
            return default
        value = self.number(data, key, label)
        return to_mm(value, self.unit)

    def integer(self, data: Dict[str, Any], key: str, label: str, default: int) -> int:
        value = self.number(data, key, label, default)
        if math.isnan(value):
            return 0
        if value != int(value):
            self.errors.append(f"{label} must be a whole number")
        return int(value)

    def flag(self, data: Dict[str, Any], key: str, label: str, default: bool = False) -> bool:
        value = data.get(key)
        if value is None or value == '':
            return default
        if isinstance(value, bool):
            return value
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        text = str(value).strip().lower()
        if text in TRUE_STRINGS:
            return True
        if text in FALSE_STRINGS:
            return False
        self.errors.append(f"{label} must be true or false")
        return default

    def choice(self, data: Dict[str, Any], key: str, enum_cls, default):
        value = data.get(key)
        if value is None or value == '':
            return default
        try:
            return enum_cls(str(value).strip().lower())
        except ValueError:
            allowed = ', '.join(e.value for e in enum_cls)
            self.errors.append(f"Invalid {key.replace('_', ' ')} '{value}'. Expected one of: {allowed}")
            return default


def _section(data: Dict[str, Any], key: str, errors: List[str]) -> Dict[str, Any]:
    section = data.get(key) or {}
    if not isinstance(section, dict):
        errors.append(f"'{key}' must be an object")
        return {}
    return section


def _parse_shape(shape_data: Dict[str, Any], reader: _Reader):
    shape_type = str(shape_data.get('type', '')).strip().lower()
    if shape_type == 'circle':
        return Circle(reader.length(shape_data, 'diameter', 'Diameter'))
    if shape_type == 'square':
        return Square(reader.length(shape_data, 'size', 'Side'))
    if shape_type == 'rectangle':
        return Rectangle(
            reader.length(shape_data, 'width', 'Width'),
            reader.length(shape_data, 'height', 'Height'),
        )
    if shape_type == 'ellipse':
        return Ellipse(
            reader.length(shape_data, 'major', 'Major axis'),
            reader.length(shape_data, 'minor', 'Minor axis'),
        )
    if shape_type == 'letters':
        return Letters(
            text=str(shape_data.get('text') or ''),
            font_size=reader.length(shape_data, 'font_size', 'Letter size'),
            orientation=reader.number(shape_data, 'orientation', 'Orientation', 0.0),
            mode=reader.choice(shape_data, 'mode', LetterMode, LetterMode.OUTLINE),
        )
    if shape_type == 'countersunk_bolt':
        return CountersunkBolt(
            head_diameter=reader.length(shape_data, 'head_diameter', 'Head diameter'),
            bolt_diameter=reader.length(shape_data, 'bolt_diameter', 'Bolt diameter'),
            countersink_depth=reader.length(shape_data, 'countersink_depth', 'Countersink depth'),
        )
    if shape_type == 'patterned_holes':
        return PatternedHoles(
            diameter=reader.length(shape_data, 'diameter', 'Hole diameter'),
            spacing_x=reader.length(shape_data, 'spacing_x', 'Spacing X'),
            spacing_y=reader.length(shape_data, 'spacing_y', 'Spacing Y'),
            count_x=reader.integer(shape_data, 'count_x', 'Count X', 1),
            count_y=reader.integer(shape_data, 'count_y', 'Count Y', 1),
        )
    reader.errors.append(
        f"Unknown shape type: '{shape_data.get('type')}'. Expected: circle, square, rectangle, "
        "ellipse, letters, countersunk_bolt or patterned_holes"
    )
    return None


def _parse_cut(cut_data: Dict[str, Any], shape, reader: _Reader,
               safe_height: float, lead_in_above: float) -> CutParams:
    outline_letters = isinstance(shape, Letters) and shape.mode == LetterMode.OUTLINE
    if outline_letters and cut_data.get('tool_diameter') in (None, ''):
        tool = OUTLINE_LETTER_TOOL_MM
    else:
        tool = reader.length(cut_data, 'tool_diameter', 'Tool diameter')

    total_depth = reader.length(cut_data, 'total_depth', 'Total depth')
    stepdown = reader.length(cut_data, 'stepdown', 'Stepdown', total_depth)

    # Stepover may be given in mm or as a percentage of the tool diameter
    stepover = math.nan
    if cut_data.get('stepover') not in (None, ''):
        if str(cut_data.get('stepover_unit', 'mm')).lower() == 'percent':
            stepover = reader.number(cut_data, 'stepover', 'Stepover') / 100 * tool
        else:
            stepover = reader.length(cut_data, 'stepover', 'Stepover')
    if not math.isfinite(stepover) or stepover <= 0:
        stepover = 0.5 * tool if math.isfinite(tool) and tool > 0 else 3.0
    if math.isfinite(tool):
        stepover = min(stepover, tool)

    return CutParams(
        tool_diameter=tool,
        total_depth=total_depth,
        stepdown=stepdown,
        stepover=stepover,
        feedrate=reader.length(cut_data, 'feedrate', 'Feedrate'),
        safe_height=reader.length(cut_data, 'safe_height', 'Safe height', safe_height),
        lead_in_above=reader.length(cut_data, 'lead_in_above', 'Lead-in height', lead_in_above),
        entry_method=reader.choice(cut_data, 'entry_method', EntryMethod, EntryMethod.PLUNGE),
        ramp_angle_max=reader.number(cut_data, 'ramp_angle', 'Ramp angle', DEFAULT_RAMP_ANGLE),
    )


def parse_request(
    data: Dict[str, Any],
    safe_height: float = 10.0,
    lead_in_above: float = 2.0,
    fit_arcs: bool = False
) -> GenerationRequest:
    """
    Parse a request payload into a GenerationRequest.

    Args:
        data: Decoded JSON payload
        safe_height: Default clearance height (mm) when the payload has none
        lead_in_above: Default lead-in height (mm) when the payload has none
        fit_arcs: Default for arc fitting when the payload does not say

    Returns:
        GenerationRequest in millimeters

    Raises:
        InvalidInputError: A field is missing, malformed or unknown
    """
    if not isinstance(data, dict):
        raise InvalidInputError(["Request body must be a JSON object"])

    unit = str(data.get('unit') or 'mm').lower()
    reader = _Reader(unit if unit in UNITS else 'mm')
    if unit not in UNITS:
        reader.errors.append(f"Unknown unit '{data.get('unit')}'. Expected: mm or inch")

    shape = _parse_shape(_section(data, 'shape', reader.errors), reader)
    operation = reader.choice(data, 'operation', Operation, Operation.POCKET)
    cut = _parse_cut(_section(data, 'cut', reader.errors), shape, reader, safe_height, lead_in_above)

    origin_data = _section(data, 'origin', reader.errors)
    origin = OriginSpec(
        xy_origin=reader.choice(origin_data, 'xy', XYOrigin, XYOrigin.CENTER),
        z_origin=reader.choice(origin_data, 'z', ZOrigin, ZOrigin.STOCK_TOP),
        z_offset=reader.length(origin_data, 'z_offset', 'Z offset', 0.0),
    )

    tab_data = _section(data, 'tabs', reader.errors)
    tabs = TabSpec(
        enabled=reader.flag(tab_data, 'enabled', 'Tabs enabled'),
        interval=reader.length(tab_data, 'interval', 'Tab interval', DEFAULT_TAB_INTERVAL_MM),
        width=reader.length(tab_data, 'width', 'Tab width', DEFAULT_TAB_WIDTH_MM),
        height=reader.length(tab_data, 'height', 'Tab height', DEFAULT_TAB_HEIGHT_MM),
    )

    contour_side = reader.choice(data, 'contour_side', ContourSide, ContourSide.OUTSIDE)
    facing_mode = reader.choice(data, 'facing_mode', FacingMode, FacingMode.FULL)
    plunge_outside = reader.flag(data, 'plunge_outside', 'Plunge outside')
    fit_arcs = reader.flag(data, 'fit_arcs', 'Fit arcs', fit_arcs)

    if reader.errors or shape is None:
        raise InvalidInputError(reader.errors)

    if operation in (Operation.POCKET, Operation.FACING):
        plunge_outside = False

    return GenerationRequest(
        shape=shape,
        cut=cut,
        operation=operation,
        origin=origin,
        tabs=tabs,
        contour_side=contour_side,
        plunge_outside=plunge_outside,
        facing_mode=facing_mode,
        fit_arcs=fit_arcs,
    )
