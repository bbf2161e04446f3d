"""Tests for configuration loading."""

import os

import yaml


class TestLoadConfig:
    """Tests for YAML configuration."""

    def test_defaults(self):
        """Missing file falls back to defaults."""
        from pinweave.config import load_config

        config = load_config("does_not_exist.yaml")

        assert config.image.size == 720
        assert config.geometry.pins == 288
        assert config.optimizer.max_lines == 4000
        assert config.optimizer.opacity == 0.16
        assert config.optimizer.lighten_amount == 255
        assert config.optimizer.accuracy_threshold == 0.45
        assert config.svg.stroke_width == 0.64
        assert config.svg.stroke_opacity == 0.24

    def test_merge_partial(self, temp_dir):
        """Only the given keys change; unknown keys are ignored."""
        from pinweave.config import load_config

        path = os.path.join(temp_dir, "config.yaml")
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump({
                "geometry": {"pins": 120},
                "optimizer": {"policy": "accuracy", "not_a_key": 1},
                "unknown_section": {"x": 1},
            }, f)

        config = load_config(path)

        assert config.geometry.pins == 120
        assert config.optimizer.policy == "accuracy"
        assert config.optimizer.max_lines == 4000
        assert not hasattr(config.optimizer, "not_a_key")

    def test_save_default_round_trip(self, temp_dir):
        """A saved default config loads back to the defaults."""
        from pinweave.config import PipelineConfig, load_config, save_default_config

        path = os.path.join(temp_dir, "default.yaml")
        save_default_config(path)

        assert load_config(path) == PipelineConfig()


class TestValidateConfig:
    """Tests for parameter validation."""

    def test_defaults_valid(self, default_config):
        """The default configuration has no errors."""
        from pinweave.config import validate_config

        assert validate_config(default_config) == []

    def test_bad_values(self, default_config):
        """Each out-of-range value is reported."""
        from pinweave.config import validate_config

        default_config.geometry.pins = 0
        default_config.geometry.radius = -5
        default_config.optimizer.policy = "brightness"
        default_config.optimizer.lighten_amount = -50
        default_config.optimizer.accuracy_threshold = 7

        errors = validate_config(default_config)

        assert len(errors) == 5
        assert any("lighten_amount" in e for e in errors)
        assert any("accuracy_threshold" in e for e in errors)
        assert any("pins" in e for e in errors)
        assert any("radius" in e for e in errors)
        assert any("policy" in e for e in errors)

    def test_zero_lighten_rejected(self, default_config):
        """A lighten amount of zero would never change the working copy."""
        from pinweave.config import validate_config

        default_config.optimizer.lighten_amount = 0

        assert len(validate_config(default_config)) == 1

    def test_single_thread_policy_with_colors(self, default_config):
        """Darkness and accuracy scoring cannot draw several colors."""
        from pinweave.config import validate_config

        default_config.image.colors = 3
        assert validate_config(default_config) == []

        for policy in ("darkness", "accuracy"):
            default_config.optimizer.policy = policy
            errors = validate_config(default_config)
            assert len(errors) == 1
            assert policy in errors[0]

        default_config.optimizer.policy = "color_error"
        assert validate_config(default_config) == []
