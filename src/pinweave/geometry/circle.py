"""
Pin placement on a circle.
"""

import math
from dataclasses import dataclass
from typing import List, Tuple


@dataclass(frozen=True)
class Circle:
    """A circle given by center (x, y) and radius."""
    center: Tuple[float, float]
    radius: float


def circle_points(circle, n) -> List[Tuple[float, float]]:
    """
    Place n pins evenly around the circle.

    Pin k sits at angle 2*pi*k/n from the positive x axis. Pin indices are
    stable for identical inputs; paths are encoded against them.

    Raises ValueError for a non-positive pin count or radius.
    """
    if n <= 0:
        raise ValueError(f"Pin count must be positive, got {n}")
    if circle.radius <= 0:
        raise ValueError(f"Circle radius must be positive, got {circle.radius}")

    cx, cy = circle.center
    points = []
    for k in range(n):
        theta = 2.0 * math.pi * k / n
        points.append((cx + circle.radius * math.cos(theta), cy + circle.radius * math.sin(theta)))
    return points
