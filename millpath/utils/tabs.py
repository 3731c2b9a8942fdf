"""Holding tabs along closed contour cuts.

Tabs are short bridges where the cut stays shallower so a cut-out part
stays attached to the stock. They are placed evenly by arc length along
the closed path. Each tab ramps up over the first quarter of its width,
stays flat at the tab top for the middle half and ramps back down over the
last quarter, so the Z transitions are never vertical.
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..models import Point
from .geometry import distance

RAMP_FRACTION = 0.25
BOUNDARY_EPS = 1e-9


@dataclass
class TabConfig:
    """Tab ranges along a closed path, by cumulative distance."""
    ranges: List[Tuple[float, float]]
    tab_z: float               # Z of the tab top (negative)
    tab_width: float
    cumulative: List[float]    # distance from the path start to each vertex
    closed_length: float

    @property
    def ramp_length(self) -> float:
        return RAMP_FRACTION * self.tab_width


def build_tab_config(
    path: Sequence[Point],
    interval: float,
    width: float,
    total_depth: float,
    height: float
) -> Optional[TabConfig]:
    """
    Place tabs along a closed path.

    Args:
        path: Closed path (a missing closing segment is counted anyway)
        interval: Target spacing between tab centres (mm)
        width: Tab width along the path (mm)
        total_depth: Full cut depth (mm, positive)
        height: Material left standing at each tab (mm)

    Returns:
        TabConfig, or None when the inputs leave nothing to place
    """
    if len(path) < 2 or interval <= 0 or width <= 0 or height <= 0:
        return None

    cumulative = [0.0]
    for i in range(1, len(path)):
        cumulative.append(cumulative[-1] + distance(path[i - 1], path[i]))
    open_length = cumulative[-1]
    if open_length <= 0:
        return None
    closed_length = open_length + distance(path[-1], path[0])

    count = max(1, round(closed_length / interval))
    spacing = closed_length / count
    half = width / 2
    ranges = []
    for i in range(count):
        center = (i + 0.5) * spacing
        start = max(0.0, center - half)
        end = min(closed_length, center + half)
        if end > start:
            ranges.append((start, end))
    if not ranges:
        return None

    return TabConfig(
        ranges=ranges,
        tab_z=-max(0.0, total_depth - height),
        tab_width=width,
        cumulative=cumulative,
        closed_length=closed_length,
    )


def z_for_tab_profile(s: float, depth_z: float, config: Optional[TabConfig]) -> float:
    """
    Z at distance s along the path for a layer cut at depth_z.

    Layers that do not reach below the tab top are returned unchanged.
    """
    if config is None or depth_z >= config.tab_z - 1e-6:
        return depth_z
    if config.ramp_length <= BOUNDARY_EPS:
        return depth_z
    for start, end in config.ranges:
        if s < start or s > end:
            continue
        ramp = min(config.ramp_length, (end - start) / 2)
        if ramp <= BOUNDARY_EPS:
            return config.tab_z
        if s <= start + ramp:
            t = (s - start) / ramp
            return depth_z + t * (config.tab_z - depth_z)
        if s >= end - ramp:
            t = (s - (end - ramp)) / ramp
            return config.tab_z + t * (depth_z - config.tab_z)
        return config.tab_z
    return depth_z


def tab_boundaries_in_segment(s_start: float, s_end: float,
                              config: Optional[TabConfig]) -> List[float]:
    """
    Distances within [s_start, s_end] where the tab profile changes slope.

    Walking a segment through these points keeps tab flats exactly flat
    and ramps at a constant slope.

    Returns:
        Sorted distances, always including s_start and s_end
    """
    points = [s_start, s_end]
    if config is not None and config.ramp_length > BOUNDARY_EPS:
        for start, end in config.ranges:
            ramp = min(config.ramp_length, (end - start) / 2)
            if ramp <= BOUNDARY_EPS:
                continue
            for bound in (start, start + ramp, end - ramp, end):
                if s_start + BOUNDARY_EPS < bound < s_end - BOUNDARY_EPS:
                    points.append(bound)
    points.sort()
    deduped = [points[0]]
    for s in points[1:]:
        if s - deduped[-1] > BOUNDARY_EPS:
            deduped.append(s)
    return deduped
