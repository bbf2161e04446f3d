"""
Scoring policies for candidate lines.

Every scorer receives the (rows, cols) of a line's in-bounds pixels and only
reads the raster state it is given.
"""

import numpy as np

from pinweave.raster.canvas import MAX_INTENSITY, blend_colors


def darkness_score(working, rows, cols):
    """Sum of remaining darkness (255 - intensity) under the line."""
    if len(rows) == 0:
        return 0
    return int(np.sum(MAX_INTENSITY - working[rows, cols].astype(np.int64)))


def squared_distance(a, b):
    """Row-wise squared RGB distance between two (K, 3) arrays."""
    diff = a.astype(np.int64) - b.astype(np.int64)
    return np.sum(diff * diff, axis=-1)


def color_error_score(source, canvas, rows, cols, color, opacity):
    """
    Squared color error removed by drawing the line.

    For each pixel, error before is the distance from source to canvas and
    error after is the distance from source to the canvas blended with the
    stroke. The score is the sum of (before - after); positive means the
    stroke moves the canvas toward the source.
    """
    if len(rows) == 0:
        return 0.0
    target = source[rows, cols]
    current = canvas[rows, cols]
    error_before = squared_distance(target, current)
    error_after = squared_distance(target, blend_colors(current, color, opacity))
    return float(np.sum(error_before - error_after))


def accuracy_counts(working, rows, cols, white=MAX_INTENSITY):
    """
    Classify the pixels under the line.

    Returns (accuracy, error): ink pixels (anything darker than white) still
    waiting to be covered, and blank pixels the line would cross for nothing.
    """
    if len(rows) == 0:
        return 0, 0
    values = working[rows, cols]
    error = int(np.count_nonzero(values >= white))
    return len(values) - error, error


def accuracy_ratio(accuracy, error):
    total = accuracy + error
    if total == 0:
        return 0.0
    return accuracy / total




def accuracy_better(candidate, best):
    """
    Compare two (accuracy, error) counts.

    The candidate wins with strictly more ink, or the same ink and strictly
    fewer blank pixels. Anything beats a missing best.
    """
    if best is None:
        return True
    accuracy, error = candidate
    best_accuracy, best_error = best
    if accuracy != best_accuracy:
        return accuracy > best_accuracy
    return error < best_error
