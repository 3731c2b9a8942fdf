"""G-code block builders.

Blocks carry no comments. Moves arrive in millimeters; conversion to the
output unit happens here and nowhere else.
"""
from typing import List, Optional, Sequence

from ..models import MoveKind, ToolpathMove
from .units import from_mm

UNIT_PRECISION = {'mm': 3, 'inch': 4}
FEED_PRECISION = {'mm': 0, 'inch': 2}


def format_coordinate(value: float, precision: int = 3) -> str:
    """Fixed-point text for a word value; negative zero prints as zero."""
    text = f"{value:.{precision}f}"
    if text.startswith('-') and float(text) == 0:
        text = text[1:]
    return text


def _axis_words(precision: int, **axes: Optional[float]) -> List[str]:
    return [
        f"{letter.upper()}{format_coordinate(value, precision)}"
        for letter, value in axes.items()
        if value is not None
    ]


def generate_header(safety_height: float, unit: str = 'mm') -> List[str]:
    """
    Program preamble: unit and absolute mode, retract, spindle on.

    Args:
        safety_height: Retract height, already in the output unit
        unit: 'mm' or 'inch'
    """
    return [
        "G20 G90" if unit == 'inch' else "G21 G90",
        f"G00 Z{format_coordinate(safety_height, UNIT_PRECISION[unit])}",
        "M03",
    ]


def generate_footer(safety_height: float, unit: str = 'mm') -> List[str]:
    """Retract, spindle off, end of program."""
    return [
        f"G00 Z{format_coordinate(safety_height, UNIT_PRECISION[unit])}",
        "M05",
        "M30",
    ]


def generate_rapid_move(
    x: Optional[float] = None,
    y: Optional[float] = None,
    z: Optional[float] = None,
    precision: int = 3
) -> str:
    """G00 block; axes left as None are omitted."""
    return " ".join(["G00"] + _axis_words(precision, x=x, y=y, z=z))


def generate_linear_move(
    x: Optional[float] = None,
    y: Optional[float] = None,
    z: Optional[float] = None,
    feed: Optional[str] = None,
    precision: int = 3
) -> str:
    """G01 block. ``feed`` is already formatted and only written when given."""
    words = ["G01"] + _axis_words(precision, x=x, y=y, z=z)
    if feed is not None:
        words.append(f"F{feed}")
    return " ".join(words)


def generate_arc_move(
    direction: str,
    x: float,
    y: float,
    i: float,
    j: float,
    feed: Optional[str] = None,
    z: Optional[float] = None,
    precision: int = 3
) -> str:
    """
    G02/G03 block with incremental centre words.

    Args:
        direction: "G02" clockwise or "G03" counter-clockwise
        x, y: End point
        i, j: Centre relative to the start point
        feed: Pre-formatted feed word value
        z: End Z for a helical arc
        precision: Decimal places
    """
    words = [direction] + _axis_words(precision, x=x, y=y, z=z, i=i, j=j)
    if feed is not None:
        words.append(f"F{feed}")
    return " ".join(words)


def toolpath_to_gcode(
    moves: Sequence[ToolpathMove],
    feedrate: float,
    safety_height: float,
    unit: str = 'mm'
) -> str:
    """
    Render a move list as a G-code program.

    The feed rate is written on the first cutting move and whenever it
    changes.

    Args:
        moves: Moves in millimeters
        feedrate: Cutting feed rate (mm/min)
        safety_height: Clearance height (mm)
        unit: Output unit, 'mm' or 'inch'

    Returns:
        Program text, one block per line
    """
    if unit not in UNIT_PRECISION:
        raise ValueError(f"Unsupported unit: {unit}")
    precision = UNIT_PRECISION[unit]
    safe = from_mm(safety_height, unit)
    feed_value = from_mm(feedrate, unit) if feedrate and feedrate > 0 else 0.0

    lines = generate_header(safe, unit)
    current_feed = None
    for move in moves:
        x, y, z = (from_mm(v, unit) for v in (move.x, move.y, move.z))
        if move.kind == MoveKind.RAPID:
            lines.append(generate_rapid_move(x, y, z, precision))
            continue

        feed = None
        if feed_value and feed_value != current_feed:
            feed = format_coordinate(feed_value, FEED_PRECISION[unit])
            current_feed = feed_value

        if move.kind == MoveKind.ARC:
            direction = "G02" if move.clockwise else "G03"
            lines.append(generate_arc_move(
                direction, x, y,
                from_mm(move.i, unit), from_mm(move.j, unit),
                feed=feed, z=z, precision=precision
            ))
        else:
            lines.append(generate_linear_move(x, y, z, feed=feed, precision=precision))

    lines.extend(generate_footer(safe, unit))
    return "\n".join(lines) + "\n"
