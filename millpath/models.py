"""Shared dataclasses for toolpath generation.

All lengths are millimetres. Display units are converted at the boundary
(request parsing and G-code emission), never inside the engine.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union


class MoveKind(str, Enum):
    RAPID = 'rapid'
    CUT = 'cut'
    ARC = 'arc'


class Operation(str, Enum):
    POCKET = 'pocket'
    CONTOUR = 'contour'
    FACING = 'facing'


class EntryMethod(str, Enum):
    PLUNGE = 'plunge'
    RAMP = 'ramp'


class XYOrigin(str, Enum):
    CENTER = 'center'
    BOTTOM_LEFT = 'bottom_left'
    BOTTOM_RIGHT = 'bottom_right'
    TOP_LEFT = 'top_left'
    TOP_RIGHT = 'top_right'


class ZOrigin(str, Enum):
    STOCK_TOP = 'stock_top'
    STOCK_BOTTOM = 'stock_bottom'


class ContourSide(str, Enum):
    OUTSIDE = 'outside'
    INSIDE = 'inside'


class LetterMode(str, Enum):
    OUTLINE = 'outline'
    POCKET = 'pocket'


class FacingMode(str, Enum):
    FULL = 'full'        # tool centre reaches the edges of the area
    WITHIN = 'within'    # tool stays inside the area


@dataclass(frozen=True)
class Point:
    """A 3D coordinate point (Z = 0 is the stock top)."""
    x: float
    y: float
    z: float = 0.0


Contour = List[Point]


# Shape variants. Dispatch is done with isinstance over ShapeSpec.

@dataclass(frozen=True)
class Circle:
    diameter: float


@dataclass(frozen=True)
class Square:
    size: float


@dataclass(frozen=True)
class Rectangle:
    width: float
    height: float


@dataclass(frozen=True)
class Ellipse:
    major: float
    minor: float


@dataclass(frozen=True)
class Letters:
    """Engraved text, laid out line by line and centred on the origin."""
    text: str
    font_size: float
    orientation: float = 0.0  # degrees, positive = clockwise
    mode: LetterMode = LetterMode.OUTLINE


@dataclass(frozen=True)
class CountersunkBolt:
    head_diameter: float
    bolt_diameter: float
    countersink_depth: float


@dataclass(frozen=True)
class PatternedHoles:
    """A count_x by count_y grid of round holes, first hole at the origin."""
    diameter: float
    spacing_x: float
    spacing_y: float
    count_x: int = 1
    count_y: int = 1


ShapeSpec = Union[Circle, Square, Rectangle, Ellipse, Letters, CountersunkBolt, PatternedHoles]


@dataclass(frozen=True)
class CutParams:
    """Cutting parameters for one tool."""
    tool_diameter: float
    total_depth: float
    stepdown: float
    stepover: float
    feedrate: float
    safe_height: float = 10.0
    lead_in_above: float = 2.0  # below this height the vertical approach is a cut
    entry_method: EntryMethod = EntryMethod.PLUNGE
    ramp_angle_max: float = 3.0  # degrees

    @property
    def tool_radius(self) -> float:
        return self.tool_diameter / 2

    @property
    def effective_stepover(self) -> float:
        """Stepover clamped to the tool diameter (50% of it when unset)."""
        if self.stepover <= 0:
            return self.tool_diameter * 0.5
        return min(self.stepover, self.tool_diameter)


@dataclass(frozen=True)
class OriginSpec:
    xy_origin: XYOrigin = XYOrigin.CENTER
    z_origin: ZOrigin = ZOrigin.STOCK_TOP
    z_offset: float = 0.0


@dataclass(frozen=True)
class TabSpec:
    """Material bridges left standing on a contour cut."""
    enabled: bool = False
    interval: float = 40.0  # mm along the closed path
    width: float = 8.0
    height: float = 1.0     # material left above the bottom of the cut


@dataclass(frozen=True)
class ToolpathMove:
    """A single commanded move.

    Arc moves carry the centre offset (i, j) relative to the move's start
    point and the rotation direction.
    """
    x: float
    y: float
    z: float
    kind: MoveKind = MoveKind.CUT
    i: Optional[float] = None
    j: Optional[float] = None
    clockwise: Optional[bool] = None


@dataclass(frozen=True)
class GenerationRequest:
    """Everything needed to generate one toolpath."""
    shape: ShapeSpec
    cut: CutParams
    operation: Operation = Operation.POCKET
    origin: OriginSpec = field(default_factory=OriginSpec)
    tabs: TabSpec = field(default_factory=TabSpec)
    contour_side: ContourSide = ContourSide.OUTSIDE
    plunge_outside: bool = False
    facing_mode: FacingMode = FacingMode.FULL
    fit_arcs: bool = False


@dataclass
class Toolpath:
    """Result of toolpath generation."""
    moves: List[ToolpathMove]
    warnings: List[str] = field(default_factory=list)
    layer_count: int = 0
