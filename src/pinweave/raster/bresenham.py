"""
Integer line rasterization between two pins.
"""

import math

import numpy as np


def round_half_away(value):
    """Round to the nearest integer, halves away from zero."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _trace(x0, y0, x1, y1):
    """Bresenham walk from (x0, y0) to (x1, y1), both ends inclusive."""
    dx = abs(x1 - x0)
    dy = abs(y1 - y0)
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1
    err = dx - dy

    x, y = x0, y0
    points = [(x, y)]
    while x != x1 or y != y1:
        e2 = 2 * err
        if e2 > -dy:
            err -= dy
            x += sx
        if e2 < dx:
            err += dx
            y += sy
        points.append((x, y))
    return points


def rasterize_line(start, end):
    """
    Rasterize the segment start -> end into integer pixels.

    Both endpoints are rounded first. The walk always runs from the
    lexicographically smaller endpoint so that (A, B) and (B, A) cover the
    same pixels; the result is reversed when the caller's start is the
    larger one.

    Returns an (K, 2) int array of (x, y) coordinates, endpoints included.
    """
    a = (round_half_away(start[0]), round_half_away(start[1]))
    b = (round_half_away(end[0]), round_half_away(end[1]))

    if a <= b:
        points = _trace(a[0], a[1], b[0], b[1])
    else:
        points = _trace(b[0], b[1], a[0], a[1])
        points.reverse()

    return np.array(points, dtype=np.int64).reshape(-1, 2)
