#!/usr/bin/env python3

import argparse
import json
import logging
import os
import sys

from millpath.errors import InvalidInputError, ToolpathError
from millpath.letter_outlines import MatplotlibGlyphProvider
from millpath.models import Letters
from millpath.request_parser import parse_request
from millpath.toolpath_generator import generate_toolpath
from millpath.utils.gcode_format import toolpath_to_gcode
from millpath.utils.time_estimate import estimate_milling_time, format_estimated_time
from millpath.utils.validators import validate_request
from millpath.visualizer import render_preview


def build_parser():
    parser = argparse.ArgumentParser(description="Generate G-code for a parametric milling job")
    parser.add_argument('request', type=str, help="JSON request file")
    parser.add_argument('-o', '--output', type=str, help="G-code output file (default: output/<request>.nc)")
    parser.add_argument('--preview', type=str, metavar='PNG', help="Also save a toolpath preview image")
    parser.add_argument('--font', type=str, help="TrueType font for text shapes")
    parser.add_argument('--fit-arcs', action='store_true', help="Replace circular runs of cuts with G02/G03 arcs")
    parser.add_argument('-v', '--verbose', action='store_true', help="Debug logging")
    return parser


def main(argv=None):
    """Command line entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        with open(args.request) as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        print(f"❌ Could not read request file: {e}")
        return 1

    try:
        request = parse_request(data, fit_arcs=args.fit_arcs)
        errors = validate_request(request)
        if errors:
            raise InvalidInputError(errors)

        glyphs = None
        if isinstance(request.shape, Letters):
            glyphs = MatplotlibGlyphProvider(args.font).outlines(
                request.shape.text, request.shape.font_size, request.shape.orientation
            )
        toolpath = generate_toolpath(request, glyphs)
    except InvalidInputError as e:
        print("❌ Invalid request:")
        for error in e.errors:
            print(f"  - {error}")
        return 1
    except ToolpathError as e:
        print(f"❌ Could not generate toolpath: {e}")
        return 1

    unit = str(data.get('unit') or 'mm').lower()
    gcode = toolpath_to_gcode(toolpath.moves, request.cut.feedrate, request.cut.safe_height, unit)

    output_file = args.output
    if not output_file:
        os.makedirs("output", exist_ok=True)
        base_name = os.path.splitext(os.path.basename(args.request))[0]
        output_file = os.path.join("output", f"{base_name}.nc")
    with open(output_file, 'w') as f:
        f.write(gcode)
    print(f"✅ G-code written: {output_file}")

    if args.preview:
        render_preview(toolpath.moves, output_file=args.preview)
        print(f"Preview saved to: {args.preview}")

    estimate = estimate_milling_time(toolpath.moves, request.cut.feedrate)
    print(f"Layers: {toolpath.layer_count}")
    print(f"Estimated time: {format_estimated_time(estimate.total_minutes)}")
    for warning in toolpath.warnings:
        print(f"⚠️  {warning}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
