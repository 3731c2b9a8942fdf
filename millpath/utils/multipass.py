"""Multi-pass depth calculation utilities."""
import math
from typing import List


def calculate_num_passes(total_depth: float, stepdown: float) -> int:
    """
    Calculate the number of passes needed for a given depth.

    Args:
        total_depth: Total depth to cut (mm)
        stepdown: Maximum depth per pass (mm)

    Returns:
        Number of passes required (at least 1)
    """
    if stepdown <= 0:
        return 1
    return max(1, math.ceil(total_depth / stepdown))


def _round_tenth(value: float) -> float:
    # Magnitude rounds half-up, so -0.25 becomes -0.3
    return math.copysign(math.floor(abs(value) * 10 + 0.5) / 10, value)


def compute_depth_levels(total_depth: float, stepdown: float) -> List[float]:
    """
    Split a total depth into equal layers no deeper than the stepdown.

    Depths are negative Z values (0 = stock top) rounded to 0.1 mm, with the
    last level forced to exactly -total_depth. When rounding would merge
    levels or put one at the surface, the unrounded values are used so the
    levels stay strictly decreasing.

    Args:
        total_depth: Total depth to cut (mm, positive)
        stepdown: Maximum depth per pass (mm, positive)

    Returns:
        Strictly decreasing list of Z levels ending at -total_depth

    Example:
        >>> compute_depth_levels(5, 2.5)
        [-2.5, -5.0]
    """
    num_passes = calculate_num_passes(total_depth, stepdown)
    layer = total_depth / num_passes
    exact = [-(i * layer) for i in range(1, num_passes + 1)]
    exact[-1] = -float(total_depth)

    rounded = [_round_tenth(z) for z in exact[:-1]] + [exact[-1]]
    if rounded[0] < 0 and all(a > b for a, b in zip(rounded, rounded[1:])):
        return rounded
    return exact
