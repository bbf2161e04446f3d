"""
Configuration management for pinweave.

Loads YAML configuration with defaults for every stage of a run.
"""

import os
from dataclasses import asdict, dataclass, field, fields

import yaml


@dataclass
class ImageConfig:
    """Configuration for source image preparation."""
    size: int = 720  # working resolution, square
    colors: int = 1  # 1 = black and white mode
    kmeans_attempts: int = 3
    kmeans_seed: int = 42


@dataclass
class GeometryConfig:
    """Configuration for the pin circle."""
    pins: int = 288
    radius: float = None  # None = half the working size


@dataclass
class OptimizerConfig:
    """Configuration for the greedy line search."""
    policy: str = None  # "darkness", "color_error", "accuracy"; None = by color count
    max_lines: int = 4000
    lighten_amount: int = 255
    opacity: float = 0.16
    accuracy_threshold: float = 0.45
    allow_reuse: bool = None  # None = policy default
    workers: int = 1
    precompute_lines: bool = False
    progress_every: int = 100


@dataclass
class SvgConfig:
    """Configuration for SVG rendering."""
    stroke_width: float = 0.64
    stroke_opacity: float = 0.24
    background: str = "white"


@dataclass
class TracingConfig:
    """Configuration for runtime tracing."""
    enabled: bool = False
    level: str = "INFO"
    file_path: str = None
    json_output: bool = False


@dataclass
class PipelineConfig:
    """Complete run configuration."""
    image: ImageConfig = field(default_factory=ImageConfig)
    geometry: GeometryConfig = field(default_factory=GeometryConfig)
    optimizer: OptimizerConfig = field(default_factory=OptimizerConfig)
    svg: SvgConfig = field(default_factory=SvgConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)


def load_config(config_path=None):
    """
    Load configuration from YAML file.

    Falls back to defaults for any missing values.
    """
    config = PipelineConfig()

    if config_path and os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}

        config = _merge_config(config, yaml_data)

    return config


def _merge_config(config, yaml_data):
    """Merge YAML data into config dataclass. Unknown keys are ignored."""
    for section in fields(config):
        values = yaml_data.get(section.name)
        if not isinstance(values, dict):
            continue
        target = getattr(config, section.name)
        for key, value in values.items():
            if hasattr(target, key):
                setattr(target, key, value)

    return config


def validate_config(config):
    """
    Check numeric parameters before any work starts.

    Returns a list of error messages (empty if valid).
    """
    errors = []

    if config.image.size <= 0:
        errors.append(f"image.size must be positive, got {config.image.size}")
    if config.image.colors <= 0:
        errors.append(f"image.colors must be positive, got {config.image.colors}")
    if config.geometry.pins <= 0:
        errors.append(f"geometry.pins must be positive, got {config.geometry.pins}")
    if config.geometry.radius is not None and config.geometry.radius <= 0:
        errors.append(f"geometry.radius must be positive, got {config.geometry.radius}")
    if config.optimizer.max_lines < 0:
        errors.append(f"optimizer.max_lines must not be negative, got {config.optimizer.max_lines}")
    if not 0.0 <= config.optimizer.opacity <= 1.0:
        errors.append(f"optimizer.opacity must be within [0, 1], got {config.optimizer.opacity}")
    if config.optimizer.workers < 1:
        errors.append(f"optimizer.workers must be at least 1, got {config.optimizer.workers}")
    if config.optimizer.lighten_amount <= 0:
        errors.append(f"optimizer.lighten_amount must be positive, got {config.optimizer.lighten_amount}")
    if not 0.0 <= config.optimizer.accuracy_threshold <= 1.0:
        errors.append(
            f"optimizer.accuracy_threshold must be within [0, 1], got {config.optimizer.accuracy_threshold}"
        )
    if config.optimizer.policy not in (None, "darkness", "color_error", "accuracy"):
        errors.append(f"Unknown optimizer.policy: {config.optimizer.policy}")
    elif config.optimizer.policy in ("darkness", "accuracy") and config.image.colors > 1:
        errors.append(
            f"optimizer.policy {config.optimizer.policy} draws a single black thread; "
            f"use color_error or set image.colors to 1 (got {config.image.colors})"
        )

    return errors


def save_default_config(path):
    """Save default configuration to YAML file for reference."""
    yaml_data = asdict(PipelineConfig())

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(yaml_data, f, default_flow_style=False, sort_keys=False)
