"""Shared utility modules for toolpath generation."""

from .units import inches_to_mm, mm_to_inches, to_mm, from_mm
from .multipass import calculate_num_passes, compute_depth_levels
from .contour_offset import clean_contour, offset_contour
from .arc_utils import calculate_arc_direction, calculate_ij_offsets, fit_arcs
from .gcode_format import (
    format_coordinate,
    generate_header,
    generate_footer,
    generate_rapid_move,
    generate_linear_move,
    generate_arc_move,
    toolpath_to_gcode
)
from .time_estimate import estimate_milling_time, format_estimated_time
from .tabs import TabConfig, build_tab_config, z_for_tab_profile
from .origin import Placement, apply_origin_transform
from .validators import validate_request
