"""
Image loading and preparation for pinweave.

Decodes the source, crops it to a centered square, resizes it to the
working resolution and, for single-color runs, dithers it to black and white.
"""

import os

import cv2
import numpy as np
from PIL import Image

from pinweave.tracer import get_tracer, trace

SUPPORTED_EXTENSIONS = [".png", ".jpg", ".jpeg", ".tiff", ".tif", ".bmp", ".webp"]


@trace(label="load_image")
def load_image(path):
    """
    Load an image from disk.

    Returns a tuple of (image, metadata) where:
    - image: RGB numpy array (H, W, 3)
    - metadata: dict with width, height, source_path

    Raises FileNotFoundError if path does not exist.
    Raises ValueError if image cannot be loaded.
    """
    tracer = get_tracer()

    if not os.path.exists(path):
        raise FileNotFoundError(f"Image not found: {path}")

    # Load with OpenCV (BGR format)
    img_bgr = cv2.imread(str(path), cv2.IMREAD_COLOR)

    if img_bgr is None:
        raise ValueError(f"Failed to load image: {path}")

    img_rgb = cv2.cvtColor(img_bgr, cv2.COLOR_BGR2RGB)

    height, width = img_rgb.shape[:2]

    tracer.event(f"Loaded image: {width}x{height}")

    metadata = {
        "width": width,
        "height": height,
        "source_path": os.path.abspath(path),
    }

    return img_rgb, metadata


def crop_to_square(img):
    """Crop the largest centered square."""
    height, width = img.shape[:2]
    if width == height:
        return img

    side = min(width, height)
    x0 = (width - side) // 2
    y0 = (height - side) // 2
    return img[y0:y0 + side, x0:x0 + side]


def dither_to_bilevel(gray):
    """Floyd-Steinberg dither a grayscale image to 0/255."""
    bilevel = Image.fromarray(np.ascontiguousarray(gray, dtype=np.uint8)).convert("1")
    return np.array(bilevel, dtype=np.uint8) * 255


@trace(label="prepare_image")
def prepare_image(rgb_img, size, colors=1):
    """
    Bring an RGB image to the working resolution.

    Single-color runs get a dithered (H, W) uint8 image with only 0 and 255;
    multi-color runs get the resized (H, W, 3) RGB image.
    """
    tracer = get_tracer()

    if size <= 0:
        raise ValueError(f"Working size must be positive, got {size}")

    square = crop_to_square(rgb_img)
    resized = cv2.resize(square, (size, size), interpolation=cv2.INTER_CUBIC)

    if colors > 1:
        tracer.event(f"Prepared {size}x{size} color image")
        return resized

    gray = cv2.cvtColor(resized, cv2.COLOR_RGB2GRAY)
    bilevel = dither_to_bilevel(gray)

    tracer.event(f"Prepared {size}x{size} dithered image, black_ratio={np.mean(bilevel == 0):.3f}")

    return bilevel


def validate_image_input(path):
    """
    Validate that the input path exists and is a readable image.

    Returns a list of error messages (empty if valid).
    """
    errors = []

    if not os.path.exists(path):
        errors.append(f"File not found: {path}")
        return errors

    ext = os.path.splitext(str(path))[1].lower()
    if ext not in SUPPORTED_EXTENSIONS:
        errors.append(f"Unsupported image format: {path}")
        return errors

    img = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if img is None:
        errors.append(f"Cannot read image: {path}")

    return errors
