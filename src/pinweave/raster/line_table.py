"""
Cache of rasterized pin-to-pin lines.

Lines are stored once per unordered pair, addressed by the dense pair index,
together with the array indices of their in-bounds pixels.
"""

import numpy as np

from pinweave.geometry.pairs import pair_count, pair_index
from pinweave.raster.bresenham import rasterize_line
from pinweave.tracer import get_tracer, trace


class LineTable:
    """
    Rasterized lines between every pair of pins.

    Pin coordinates are y-up; array rows are y-down, so a pixel (x, y) lands
    at row height - 1 - y, column x. Pixels outside the canvas are dropped
    from the index arrays, which is how every scorer and mutator skips them.
    """

    def __init__(self, pins, width, height, precompute=False):
        self.pins = list(pins)
        self.width = width
        self.height = height
        self._pixels = [None] * pair_count(len(self.pins))
        self._indices = [None] * pair_count(len(self.pins))
        if precompute:
            self.precompute()

    def __len__(self):
        return len(self._pixels)

    def pixels(self, i, j):
        """Rasterized line for pins i and j, in i -> j order."""
        slot = pair_index(i, j)
        line = self._pixels[slot]
        if line is None:
            lo, hi = (i, j) if i < j else (j, i)
            line = rasterize_line(self.pins[lo], self.pins[hi])
            self._pixels[slot] = line
        if i > j:
            return line[::-1]
        return line

    def indices(self, i, j):
        """(rows, cols) of the in-bounds pixels of the line between i and j."""
        slot = pair_index(i, j)
        entry = self._indices[slot]
        if entry is None:
            entry = self._clip(self.pixels(i, j))
            self._indices[slot] = entry
        return entry

    def _clip(self, line):
        xs = line[:, 0]
        ys = line[:, 1]
        inside = (xs >= 0) & (ys >= 0) & (xs < self.width) & (ys < self.height)
        rows = (self.height - 1 - ys[inside]).astype(np.intp)
        cols = xs[inside].astype(np.intp)
        return rows, cols

    @trace(label="precompute_lines")
    def precompute(self):
        """Fill every slot of the table."""
        n = len(self.pins)
        for j in range(1, n):
            for i in range(j):
                self.indices(i, j)
        get_tracer().event(f"Precomputed {len(self)} lines for {n} pins")
        return self
