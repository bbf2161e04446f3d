"""
Raster states and the mutations an accepted line applies to them.

Two mutable states exist: the white color canvas that strokes are blended
onto, and the grayscale "remaining darkness" copy that lines lighten.
"""

import numpy as np

MAX_INTENSITY = 255


def white_canvas(width, height):
    """Blank (H, W, 3) uint8 canvas."""
    return np.full((height, width, 3), MAX_INTENSITY, dtype=np.uint8)


def remaining_darkness(source):
    """
    Mutable grayscale working copy of the source.

    Stored as int16 so that lightening can saturate instead of wrapping.
    """
    if source.ndim == 3:
        raise ValueError("Remaining darkness needs a single-channel source")
    return source.astype(np.int16)


def darkness_total(working):
    """Ink not yet accounted for across the whole grid."""
    return int(np.sum(MAX_INTENSITY - working.astype(np.int64)))


def lighten(working, rows, cols, amount, max_value=MAX_INTENSITY):
    """Add amount to every listed pixel, saturating at max_value."""
    if len(rows) == 0:
        return working
    values = working[rows, cols].astype(np.int64) + amount
    working[rows, cols] = np.minimum(values, max_value)
    return working


def blend_colors(pixels, color, opacity):
    """
    Alpha-blend (K, 3) pixels toward color.

    Per channel round(old*(1-opacity) + color*opacity), halves rounded up;
    with inputs in range and opacity in [0, 1] the result stays in range.
    """
    old = pixels.astype(np.float64)
    stroke = np.asarray(color, dtype=np.float64)
    blended = old * (1.0 - opacity) + stroke * opacity
    return np.floor(blended + 0.5).astype(np.uint8)


def blend_stroke(canvas, rows, cols, color, opacity):
    """Blend a stroke of color into the canvas at the listed pixels."""
    if len(rows) == 0:
        return canvas
    canvas[rows, cols] = blend_colors(canvas[rows, cols], color, opacity)
    return canvas


def replay_moves(moves, line_table, colors, opacity):
    """
    Rebuild a color canvas from a move log.

    Moves are applied in the given order; the same order always produces
    the same canvas.
    """
    canvas = white_canvas(line_table.width, line_table.height)
    for move in moves:
        rows, cols = line_table.indices(move.from_pin, move.to_pin)
        blend_stroke(canvas, rows, cols, colors[move.path_index], opacity)
    return canvas
