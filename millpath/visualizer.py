"""Top-view PNG preview of a move list."""
import io
import math
from typing import List, Optional, Sequence, Tuple

import numpy as np
from matplotlib.figure import Figure

from .models import MoveKind, Point, ToolpathMove
from .utils.arc_utils import arc_sweep

ARC_PREVIEW_STEP_DEGREES = 5.0


def arc_points(start: ToolpathMove, move: ToolpathMove) -> Tuple[np.ndarray, np.ndarray]:
    """Sample an arc move into XY arrays, start point included."""
    cx, cy = start.x + move.i, start.y + move.j
    radius = math.hypot(move.i, move.j)
    a0 = math.atan2(start.y - cy, start.x - cx)
    sweep = arc_sweep(Point(start.x, start.y), Point(move.x, move.y), (cx, cy), bool(move.clockwise))
    steps = max(2, int(math.ceil(math.degrees(sweep) / ARC_PREVIEW_STEP_DEGREES)) + 1)
    direction = -1.0 if move.clockwise else 1.0
    angles = a0 + direction * np.linspace(0.0, sweep, steps)
    return cx + radius * np.cos(angles), cy + radius * np.sin(angles)


def split_runs(moves: Sequence[ToolpathMove]) -> List[Tuple[MoveKind, np.ndarray, np.ndarray]]:
    """
    Group consecutive moves into drawable polylines.

    Returns:
        (kind, xs, ys) per run; arcs are drawn as part of the cut runs
    """
    runs = []
    kind = None
    xs: List[float] = []
    ys: List[float] = []
    previous = None
    for move in moves:
        move_kind = MoveKind.RAPID if move.kind == MoveKind.RAPID else MoveKind.CUT
        if previous is not None and move_kind != kind:
            if len(xs) > 1:
                runs.append((kind, np.array(xs), np.array(ys)))
            xs, ys = [previous.x], [previous.y]
        kind = move_kind
        if previous is None:
            xs, ys = [move.x], [move.y]
        elif move.kind == MoveKind.ARC and move.i is not None and move.j is not None:
            ax, ay = arc_points(previous, move)
            xs.extend(ax[1:].tolist())
            ys.extend(ay[1:].tolist())
        else:
            xs.append(move.x)
            ys.append(move.y)
        previous = move
    if len(xs) > 1:
        runs.append((kind, np.array(xs), np.array(ys)))
    return runs


def render_preview(
    moves: Sequence[ToolpathMove],
    output_file: Optional[str] = None,
    title: str = "Toolpath Preview",
    dpi: int = 150
) -> bytes:
    """
    Render the toolpath seen from above.

    Cuts are drawn solid, rapids dashed.

    Args:
        moves: Move list
        output_file: Optional path to also write the PNG to
        title: Plot title
        dpi: Resolution

    Returns:
        PNG image bytes
    """
    fig = Figure(figsize=(8, 8), dpi=dpi)
    ax = fig.add_subplot(1, 1, 1)

    cut_labelled = rapid_labelled = False
    for kind, xs, ys in split_runs(moves):
        if kind == MoveKind.RAPID:
            ax.plot(xs, ys, linestyle='--', color='#adb5bd', linewidth=0.8,
                    label=None if rapid_labelled else "Rapid")
            rapid_labelled = True
        else:
            ax.plot(xs, ys, linestyle='-', color='#5a7a8a', linewidth=1.2,
                    label=None if cut_labelled else "Cut")
            cut_labelled = True

    if moves:
        ax.plot(0, 0, 'r+', markersize=10, markeredgewidth=2)

    ax.set_xlabel("X (mm)")
    ax.set_ylabel("Y (mm)")
    ax.set_title(title)
    if cut_labelled or rapid_labelled:
        ax.legend(loc='upper right')
    ax.grid(True, alpha=0.3)
    ax.set_aspect('equal', adjustable='datalim')
    ax.margins(0.1)
    fig.tight_layout()

    buffer = io.BytesIO()
    fig.savefig(buffer, format='png', dpi=dpi)
    data = buffer.getvalue()
    if output_file:
        with open(output_file, 'wb') as f:
            f.write(data)
    return data
