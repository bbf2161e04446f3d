"""Pytest fixtures for pinweave tests."""

import os
import tempfile

import cv2
import numpy as np
import pytest


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield tmpdir


@pytest.fixture
def quadrant_image():
    """21x21 grayscale image, black except the top-left quadrant."""
    img = np.zeros((21, 21), dtype=np.uint8)
    img[:10, :10] = 255
    return img


@pytest.fixture
def square_pins():
    """Four pins on a circle of radius 10 centered at (10, 10)."""
    from pinweave.geometry.circle import Circle, circle_points
    return circle_points(Circle(center=(10, 10), radius=10), 4)


@pytest.fixture
def small_pins():
    """24 pins on the circle inscribed in a 40x40 canvas."""
    from pinweave.geometry.circle import Circle, circle_points
    return circle_points(Circle(center=(20, 20), radius=19.5), 24)


@pytest.fixture
def color_source():
    """40x40 RGB image: red left half, blue right half, white border rows."""
    img = np.full((40, 40, 3), 255, dtype=np.uint8)
    img[4:36, :20] = (200, 30, 30)
    img[4:36, 20:] = (30, 30, 200)
    return img


@pytest.fixture
def gray_source():
    """40x40 grayscale image with a dark diagonal band."""
    img = np.full((40, 40), 255, dtype=np.uint8)
    for i in range(40):
        img[i, max(0, i - 3):min(40, i + 4)] = 0
    return img


@pytest.fixture
def default_config():
    """Create default pipeline configuration."""
    from pinweave.config import PipelineConfig
    return PipelineConfig()


@pytest.fixture
def small_config(default_config):
    """Configuration small enough for a quick end-to-end run."""
    default_config.image.size = 48
    default_config.geometry.pins = 24
    default_config.optimizer.max_lines = 30
    return default_config


@pytest.fixture
def synthetic_input_file(temp_dir):
    """A 64x80 RGB image on disk: dark disc on white, with a colored bar."""
    img = np.full((64, 80, 3), 255, dtype=np.uint8)
    cv2.circle(img, (40, 32), 18, (20, 20, 20), -1)
    cv2.rectangle(img, (8, 50), (72, 58), (30, 160, 40), -1)
    path = os.path.join(temp_dir, "test_input.png")
    cv2.imwrite(path, cv2.cvtColor(img, cv2.COLOR_RGB2BGR))
    return path
