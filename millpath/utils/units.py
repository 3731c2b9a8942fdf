"""Unit conversion utilities."""

MM_PER_INCH = 25.4
UNITS = ('mm', 'inch')


def inches_to_mm(value: float) -> float:
    """Convert inches to millimeters."""
    return value * MM_PER_INCH


def mm_to_inches(value: float) -> float:
    """Convert millimeters to inches."""
    return value / MM_PER_INCH


def to_mm(value: float, unit: str) -> float:
    """Convert a length in the given display unit to millimeters."""
    if unit == 'inch':
        return inches_to_mm(value)
    return value


def from_mm(value: float, unit: str) -> float:
    """Convert a length in millimeters to the given display unit."""
    if unit == 'inch':
        return mm_to_inches(value)
    return value
