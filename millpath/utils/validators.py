"""Request validation utilities."""
import math
from typing import List

from ..models import (
    Circle,
    ContourSide,
    CountersunkBolt,
    Ellipse,
    EntryMethod,
    FacingMode,
    GenerationRequest,
    LetterMode,
    Letters,
    Operation,
    PatternedHoles,
    Rectangle,
    ShapeSpec,
    Square,
)

SIZE_EPS = 1e-6


def _is_positive(value) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value) and value > 0


def shape_min_size(shape: ShapeSpec) -> float:
    """
    Smallest dimension the tool has to fit inside.

    Returns:
        The size, or NaN for shapes without one (letters, countersunk bolts)
    """
    if isinstance(shape, Circle):
        return shape.diameter
    if isinstance(shape, Square):
        return shape.size
    if isinstance(shape, Rectangle):
        return min(shape.width, shape.height)
    if isinstance(shape, Ellipse):
        return min(shape.major, shape.minor)
    if isinstance(shape, PatternedHoles):
        return shape.diameter
    return math.nan


def is_letters_outline(request: GenerationRequest) -> bool:
    shape = request.shape
    return isinstance(shape, Letters) and shape.mode == LetterMode.OUTLINE


def validate_shape(shape: ShapeSpec) -> List[str]:
    """Check the dimension fields of a shape."""
    errors = []

    def positive(value, label):
        if not _is_positive(value):
            errors.append(f"{label} must be greater than 0")

    if isinstance(shape, Circle):
        positive(shape.diameter, "Diameter")
    elif isinstance(shape, Square):
        positive(shape.size, "Side")
    elif isinstance(shape, Rectangle):
        positive(shape.width, "Width")
        positive(shape.height, "Height")
    elif isinstance(shape, Ellipse):
        positive(shape.major, "Major axis")
        positive(shape.minor, "Minor axis")
    elif isinstance(shape, Letters):
        if not shape.text or not shape.text.strip():
            errors.append("Enter text to engrave")
        positive(shape.font_size, "Letter size")
        if not math.isfinite(shape.orientation):
            errors.append("Orientation must be a number")
    elif isinstance(shape, CountersunkBolt):
        positive(shape.head_diameter, "Head diameter")
        positive(shape.countersink_depth, "Countersink depth")
        positive(shape.bolt_diameter, "Bolt diameter")
        if (_is_positive(shape.head_diameter) and _is_positive(shape.bolt_diameter)
                and shape.head_diameter < shape.bolt_diameter):
            errors.append("Head diameter must not be smaller than the bolt diameter")
    elif isinstance(shape, PatternedHoles):
        positive(shape.diameter, "Hole diameter")
        positive(shape.spacing_x, "Spacing X")
        positive(shape.spacing_y, "Spacing Y")
        if not isinstance(shape.count_x, int) or shape.count_x < 1:
            errors.append("Count X must be at least 1")
        if not isinstance(shape.count_y, int) or shape.count_y < 1:
            errors.append("Count Y must be at least 1")
    else:
        errors.append("Unknown shape")
    return errors


def validate_request(request: GenerationRequest) -> List[str]:
    """
    Validate a generation request before it reaches the engine.

    Field checks run first; tool-fit checks only run when every field is
    valid.

    Args:
        request: Parsed request (millimeters)

    Returns:
        List of error messages (empty if valid)
    """
    errors = []
    cut = request.cut
    outline_letters = is_letters_outline(request)

    def positive(value, label):
        if not _is_positive(value):
            errors.append(f"{label} must be greater than 0")

    if not outline_letters:
        positive(cut.tool_diameter, "Tool diameter")
        positive(cut.stepover, "Stepover")
    positive(cut.total_depth, "Total depth")
    positive(cut.stepdown, "Stepdown")
    positive(cut.feedrate, "Feedrate")
    positive(cut.safe_height, "Safe height")
    if math.isfinite(cut.lead_in_above) and cut.lead_in_above < 0:
        errors.append("Lead-in height must not be negative")
    if _is_positive(cut.stepdown) and _is_positive(cut.total_depth) and cut.stepdown > cut.total_depth:
        errors.append("Stepdown must not be larger than the total depth")
    if (not outline_letters and _is_positive(cut.tool_diameter)
            and _is_positive(cut.stepover) and cut.stepover > cut.tool_diameter):
        errors.append("Stepover must not be larger than the tool diameter")
    if cut.entry_method == EntryMethod.RAMP:
        positive(cut.ramp_angle_max, "Ramp angle")
        if _is_positive(cut.ramp_angle_max) and cut.ramp_angle_max >= 90:
            errors.append("Ramp angle must be less than 90 degrees")

    if request.operation == Operation.CONTOUR and request.tabs.enabled:
        positive(request.tabs.interval, "Tab interval")
        positive(request.tabs.width, "Tab width")
        positive(request.tabs.height, "Tab height")

    if request.operation == Operation.FACING and not isinstance(request.shape, (Square, Rectangle)):
        errors.append("Facing needs a square or rectangle")

    if isinstance(request.shape, CountersunkBolt) and _is_positive(cut.total_depth):
        if _is_positive(request.shape.countersink_depth) and cut.total_depth - request.shape.countersink_depth <= 0:
            errors.append("Total depth must be larger than the countersink depth")

    errors.extend(validate_shape(request.shape))
    if errors:
        return errors

    errors.extend(validate_tool_fit(request))
    return errors


def validate_tool_fit(request: GenerationRequest) -> List[str]:
    """Check the tool fits inside pocket and inside-contour features."""
    errors = []
    tool = request.cut.tool_diameter
    shape = request.shape
    message = "Pocket is smaller than the tool"

    pocket_or_inside = (
        request.operation == Operation.POCKET
        or (request.operation == Operation.CONTOUR and request.contour_side == ContourSide.INSIDE)
    )
    if pocket_or_inside and not isinstance(shape, (Letters, CountersunkBolt)):
        if shape_min_size(shape) + SIZE_EPS < tool:
            errors.append(message)

    if isinstance(shape, CountersunkBolt):
        if shape.head_diameter + SIZE_EPS < tool or shape.bolt_diameter + SIZE_EPS < tool:
            errors.append(message)

    if request.operation == Operation.FACING and request.facing_mode == FacingMode.WITHIN:
        if shape_min_size(shape) + SIZE_EPS <= tool:
            errors.append("Facing area is smaller than the tool")
    return errors
