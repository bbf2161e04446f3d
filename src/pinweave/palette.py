"""
Palette extraction for multi-color runs.

K-means over the source pixels; each cluster center becomes one thread color.
"""

import cv2
import numpy as np

from pinweave.tracer import get_tracer, trace

BLACK_PALETTE = [(0, 0, 0)]


@trace(label="extract_palette")
def extract_palette(rgb_img, num_colors, attempts=3, seed=42):
    """
    Representative colors of an RGB image.

    Returns a duplicate-free list of (r, g, b) tuples ordered by how many
    pixels each cluster covers, largest first. A request for one color (or
    fewer) gets the black palette.
    """
    tracer = get_tracer()

    if num_colors <= 1:
        return list(BLACK_PALETTE)
    if rgb_img.ndim != 3 or rgb_img.shape[2] != 3:
        raise ValueError("Palette extraction needs an RGB image")

    pixels = rgb_img.reshape(-1, 3).astype(np.float32)
    k = min(num_colors, len(np.unique(rgb_img.reshape(-1, 3), axis=0)))

    cv2.setRNGSeed(seed)
    criteria = (cv2.TERM_CRITERIA_EPS + cv2.TERM_CRITERIA_MAX_ITER, 20, 1.0)
    _, labels, centers = cv2.kmeans(
        pixels, k, None, criteria, attempts, cv2.KMEANS_PP_CENTERS,
    )

    counts = np.bincount(labels.ravel(), minlength=k)
    order = np.argsort(-counts, kind="stable")

    palette = []
    for idx in order:
        color = tuple(int(c) for c in np.clip(np.rint(centers[idx]), 0, 255))
        if color not in palette:
            palette.append(color)

    tracer.event(f"Extracted {len(palette)} colors", requested=num_colors)

    return palette
