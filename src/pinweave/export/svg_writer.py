"""
SVG rendering of string-art paths.
"""

import svgwrite

from pinweave.io.save_artifacts import save_svg
from pinweave.tracer import get_tracer, trace


@trace(label="build_svg")
def build_svg(paths, pins, width, height, stroke_width=0.64, stroke_opacity=0.24, background="white"):
    """
    Create an SVG document with one line per consecutive pin pair.

    Args:
        paths: list of ColorPath objects
        pins: pin positions, y-up
        width: canvas width in pixels
        height: canvas height in pixels
        stroke_width: thread width
        stroke_opacity: thread opacity (independent of the search opacity)
        background: fill of the background rectangle

    Returns:
        svgwrite.Drawing object
    """
    tracer = get_tracer()

    dwg = svgwrite.Drawing(size=(f"{width}px", f"{height}px"))
    dwg.viewbox(0, 0, width, height)
    dwg.add(dwg.rect(insert=(0, 0), size=("100%", "100%"), fill=background))

    line_count = 0
    for idx, path in enumerate(paths):
        if len(path.pins) < 2:
            continue

        group = dwg.g(
            id=f"thread_{idx}", fill="none", stroke=path.hex_color,
            stroke_width=stroke_width, stroke_opacity=stroke_opacity,
        )
        for start, end in path.segments():
            x1, y1 = pins[start]
            x2, y2 = pins[end]
            # SVG is y-down
            group.add(dwg.line(start=(x1, height - y1), end=(x2, height - y2)))
            line_count += 1
        dwg.add(group)

    tracer.event(f"SVG built with {line_count} lines in {len(paths)} threads")

    return dwg


def write_svg(path, paths, pins, width, height, svg_config=None):
    """Build the SVG and save it to path. Raises OSError on failure."""
    kwargs = {}
    if svg_config is not None:
        kwargs = {
            "stroke_width": svg_config.stroke_width,
            "stroke_opacity": svg_config.stroke_opacity,
            "background": svg_config.background,
        }
    dwg = build_svg(paths, pins, width, height, **kwargs)
    save_svg(dwg, path)
    return dwg
