"""
Dense indexing of unordered pin pairs.

{i, j} with i < j maps to j*(j-1)/2 + i, so all pairs of n pins fill
0..n*(n-1)/2 - 1 without gaps and both orders share one slot.
"""

import math


def pair_count(n):
    """Number of unordered pairs among n pins."""
    if n < 2:
        return 0
    return n * (n - 1) // 2


def pair_index(i, j):
    """Canonical index of the unordered pair {i, j}."""
    if i < 0 or j < 0:
        raise ValueError(f"Pin indices must be non-negative, got ({i}, {j})")
    if i == j:
        raise ValueError(f"A pair needs two distinct pins, got ({i}, {j})")
    lo, hi = (i, j) if i < j else (j, i)
    return hi * (hi - 1) // 2 + lo


def pair_from_index(index):
    """Inverse of pair_index: returns (lo, hi) with lo < hi."""
    if index < 0:
        raise ValueError(f"Pair index must be non-negative, got {index}")
    # largest hi with hi*(hi-1)/2 <= index
    hi = (1 + math.isqrt(8 * index + 1)) // 2
    lo = index - hi * (hi - 1) // 2
    return lo, hi
