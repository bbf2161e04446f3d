"""Integration tests for the full pipeline and the CLI."""

import json
import os

import pytest


class TestPipeline:
    """End-to-end runs."""

    def test_single_color_run(self, temp_dir, synthetic_input_file, small_config):
        """A black and white run writes an SVG with one black thread."""
        from pinweave.pipeline import run_pipeline

        out_path = os.path.join(temp_dir, "out.svg")
        report = run_pipeline(synthetic_input_file, out_path, config=small_config)

        assert os.path.exists(out_path)
        assert report.output_path == os.path.abspath(out_path)
        assert report.result.policy.value == "darkness"
        assert report.palette == [(0, 0, 0)]
        assert len(report.pins) == 24
        assert 0 < report.result.lines_drawn <= 30

    def test_multi_color_run(self, temp_dir, synthetic_input_file, small_config):
        """A multi-color run uses color error scoring with one path per color."""
        from pinweave.pipeline import run_pipeline

        small_config.image.colors = 3
        report = run_pipeline(synthetic_input_file, os.path.join(temp_dir, "color.svg"), config=small_config)

        assert report.result.policy.value == "color_error"
        assert len(report.result.paths) == len(report.palette)
        assert len(set(report.palette)) == len(report.palette)

    def test_no_output_path(self, synthetic_input_file, small_config):
        """Without an output path the result is returned and nothing is written."""
        from pinweave.pipeline import run_pipeline

        report = run_pipeline(synthetic_input_file, config=small_config)

        assert report.output_path is None
        assert report.result.paths[0].pins[0] == 0

    def test_deterministic(self, synthetic_input_file, small_config):
        """Two runs with the same inputs give the same paths."""
        from pinweave.pipeline import run_pipeline

        small_config.image.colors = 2
        first = run_pipeline(synthetic_input_file, config=small_config)
        second = run_pipeline(synthetic_input_file, config=small_config)

        assert first.result.paths == second.result.paths

    def test_accuracy_policy(self, synthetic_input_file, small_config):
        """The accuracy policy runs on the dithered source."""
        from pinweave.pipeline import run_pipeline

        small_config.optimizer.policy = "accuracy"
        report = run_pipeline(synthetic_input_file, config=small_config)

        assert report.result.policy.value == "accuracy"
        assert all(m.score >= 0.45 for m in report.result.moves)

    def test_debug_artifacts(self, temp_dir, synthetic_input_file, small_config):
        """A debug directory gets the source, the final raster and metrics."""
        from pinweave.pipeline import run_pipeline

        debug_dir = os.path.join(temp_dir, "debug")
        report = run_pipeline(synthetic_input_file, config=small_config, debug_dir=debug_dir)

        assert os.path.exists(os.path.join(debug_dir, "00_source.png"))
        assert os.path.exists(os.path.join(debug_dir, "01_remaining.png"))
        with open(os.path.join(debug_dir, "metrics.json"), encoding="utf-8") as f:
            metrics = json.load(f)
        assert metrics["lines_drawn"] == report.result.lines_drawn

    def test_debug_remaining_image_clipped(self, temp_dir, small_pins):
        """A working copy pushed below zero is written as black, not wrapped."""
        import cv2
        import numpy as np

        from pinweave.models import RunReport
        from pinweave.optimizer import GreedyOptimizer, SearchPolicy
        from pinweave.pipeline import _save_debug

        source = np.zeros((40, 40), dtype=np.uint8)
        policy = SearchPolicy.for_scoring("darkness", lighten_amount=-100)
        optimizer = GreedyOptimizer(source, small_pins, [(0, 0, 0)], policy, max_lines=2)
        result = optimizer.run()
        report = RunReport(source_path="x.png", size=40, pins=small_pins, palette=[(0, 0, 0)], result=result)

        _save_debug(temp_dir, source, optimizer, report)

        assert optimizer.working.min() < 0
        remaining = cv2.imread(os.path.join(temp_dir, "01_remaining.png"), cv2.IMREAD_GRAYSCALE)
        assert remaining.max() == 0

    def test_missing_input(self, temp_dir, small_config):
        """A missing image aborts before any work."""
        from pinweave.pipeline import run_pipeline

        with pytest.raises(FileNotFoundError):
            run_pipeline(os.path.join(temp_dir, "missing.png"), config=small_config)

    def test_invalid_pins(self, synthetic_input_file, small_config):
        """A zero pin count is an input error."""
        from pinweave.pipeline import run_pipeline

        small_config.geometry.pins = 0
        with pytest.raises(ValueError):
            run_pipeline(synthetic_input_file, config=small_config)

    def test_single_thread_policy_with_colors(self, synthetic_input_file, small_config):
        """Asking for several colors with darkness scoring fails before any work."""
        from pinweave.pipeline import run_pipeline

        small_config.image.colors = 3
        small_config.optimizer.policy = "darkness"
        with pytest.raises(ValueError, match="image.colors"):
            run_pipeline(synthetic_input_file, config=small_config)

    def test_write_error_keeps_result(self, temp_dir, synthetic_input_file, small_config):
        """An unwritable output raises OutputWriteError carrying the computed result."""
        from pinweave.pipeline import OutputWriteError, run_pipeline

        blocker = os.path.join(temp_dir, "blocker")
        with open(blocker, "w") as f:
            f.write("x")

        with pytest.raises(OutputWriteError) as excinfo:
            run_pipeline(synthetic_input_file, os.path.join(blocker, "out.svg"), config=small_config)

        assert excinfo.value.report.result.lines_drawn > 0


class TestCli:
    """Tests for the command surface."""

    def test_run_with_output(self, temp_dir, synthetic_input_file, capsys):
        """run writes the SVG and reports the line count."""
        from pinweave.cli import main

        out_path = os.path.join(temp_dir, "cli.svg")
        code = main([
            "run", synthetic_input_file, "-o", out_path,
            "--pins", "16", "--lines", "10", "--size", "40",
        ])

        assert code == 0
        assert os.path.exists(out_path)
        assert "Lines drawn" in capsys.readouterr().out

    def test_run_coords_without_output(self, synthetic_input_file, capsys):
        """Without -o nothing is saved and --coords lists coordinates."""
        from pinweave.cli import main

        code = main([
            "run", synthetic_input_file, "--coords",
            "--pins", "12", "--lines", "5", "--size", "32", "--colors", "2",
        ])

        out = capsys.readouterr().out
        assert code == 0
        assert "Nothing was saved" in out
        assert "Thread #" in out
        assert "0: (" in out

    def test_run_missing_image(self, temp_dir, capsys):
        """Input errors exit with status 1."""
        from pinweave.cli import main

        code = main(["run", os.path.join(temp_dir, "missing.png")])

        assert code == 1
        assert "Error" in capsys.readouterr().err

    def test_init_config(self, temp_dir):
        """init-config writes a loadable default config."""
        from pinweave.cli import main
        from pinweave.config import PipelineConfig, load_config

        path = os.path.join(temp_dir, "pinweave.yaml")

        assert main(["init-config", "-o", path]) == 0
        assert load_config(path) == PipelineConfig()

    def test_trace_file_closed_after_run(self, temp_dir, synthetic_input_file):
        """The trace file is complete and closed once run returns."""
        from pinweave.cli import main
        from pinweave.tracer import configure_tracer, get_tracer

        trace_path = os.path.join(temp_dir, "trace.log")
        try:
            code = main([
                "run", synthetic_input_file, "--trace", "--trace-file", trace_path,
                "--pins", "12", "--lines", "5", "--size", "32",
            ])
            handle = get_tracer().config._file_handle
        finally:
            configure_tracer(enabled=False)

        assert code == 0
        assert handle is None
        with open(trace_path, encoding="utf-8") as f:
            log = f.read()
        assert "cli:cli_run" in log
        assert "greedy_search" in log
