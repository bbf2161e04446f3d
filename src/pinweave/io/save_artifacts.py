"""
Artifact saving utilities for pinweave.

Writes SVG output, debug images and JSON metrics.
"""

import json
import os

import cv2

from pinweave.tracer import get_tracer


def ensure_dir(path):
    """Create directory if it does not exist."""
    if path:
        os.makedirs(path, exist_ok=True)


def save_image(img, path, max_edge=None):
    """
    Save an image to disk.

    Optionally downscales to max_edge while preserving aspect ratio.
    RGB input is converted to BGR for OpenCV.
    """
    tracer = get_tracer()

    if max_edge and max(img.shape[:2]) > max_edge:
        scale = max_edge / max(img.shape[:2])
        new_size = (int(img.shape[1] * scale), int(img.shape[0] * scale))
        img = cv2.resize(img, new_size, interpolation=cv2.INTER_AREA)

    if img.ndim == 3 and img.shape[2] == 3:
        img = cv2.cvtColor(img, cv2.COLOR_RGB2BGR)

    ensure_dir(os.path.dirname(path))
    if not cv2.imwrite(str(path), img):
        raise OSError(f"Failed to write image: {path}")
    tracer.event(f"Saved image: {path}")


def save_json(data, path, indent=2):
    """Save a dictionary to JSON."""
    tracer = get_tracer()

    ensure_dir(os.path.dirname(path))

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent, default=str)

    tracer.event(f"Saved JSON: {path}")


def save_svg(drawing, path):
    """Save an svgwrite drawing to file."""
    tracer = get_tracer()

    ensure_dir(os.path.dirname(path))

    with open(path, "w", encoding="utf-8") as f:
        f.write(drawing.tostring())

    tracer.event(f"Saved SVG: {path}")


class DebugArtifactWriter:
    """
    Writes debug artifacts of a single run into one directory.
    """

    def __init__(self, out_dir, max_edge=1600):
        self.out_dir = out_dir
        self.max_edge = max_edge

    def save_image(self, img, filename):
        """Save an image artifact."""
        save_image(img, os.path.join(self.out_dir, filename), max_edge=self.max_edge)

    def save_json(self, data, filename):
        """Save a JSON artifact."""
        save_json(data, os.path.join(self.out_dir, filename))
