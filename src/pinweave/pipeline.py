"""
Main pipeline orchestrator for pinweave.

Loads and prepares the image, places the pins, picks the palette, runs the
greedy search and writes the SVG.
"""

import os

import numpy as np

from pinweave.config import load_config, validate_config
from pinweave.export.svg_writer import write_svg
from pinweave.geometry.circle import Circle, circle_points
from pinweave.io.load_image import load_image, prepare_image, validate_image_input
from pinweave.io.save_artifacts import DebugArtifactWriter
from pinweave.models import RunReport, ScoringPolicy
from pinweave.optimizer import GreedyOptimizer, SearchPolicy
from pinweave.palette import BLACK_PALETTE, extract_palette
from pinweave.raster.canvas import darkness_total
from pinweave.raster.line_table import LineTable
from pinweave.tracer import get_tracer, trace


class OutputWriteError(OSError):
    """Writing the output failed; the computed report is still attached."""

    def __init__(self, message, report):
        super().__init__(message)
        self.report = report


def resolve_policy(config):
    """Search policy from config; the color count picks the default scoring."""
    opt = config.optimizer
    scoring = opt.policy
    if scoring is None:
        scoring = ScoringPolicy.COLOR_ERROR if config.image.colors > 1 else ScoringPolicy.DARKNESS

    return SearchPolicy.for_scoring(
        scoring,
        allow_reuse=opt.allow_reuse,
        lighten_amount=opt.lighten_amount,
        opacity=opt.opacity,
        accuracy_threshold=opt.accuracy_threshold,
    )


def build_pins(config):
    """Pins on the circle inscribed in the working square."""
    size = config.image.size
    radius = config.geometry.radius if config.geometry.radius is not None else size / 2
    return circle_points(Circle(center=(size / 2, size / 2), radius=radius), config.geometry.pins)


@trace(label="run_pipeline")
def run_pipeline(input_path, output_path=None, config=None, config_path=None, debug_dir=None):
    """
    Run a full image -> string art conversion.

    Args:
        input_path: source image file
        output_path: SVG file to write (optional; nothing is written without it)
        config: PipelineConfig object (optional)
        config_path: path to YAML config file (optional)
        debug_dir: directory for debug artifacts (optional)

    Returns:
        RunReport with the optimization result

    Raises:
        FileNotFoundError / ValueError for bad input, before any search work
        OutputWriteError if the SVG cannot be written
    """
    tracer = get_tracer()

    if config is None:
        config = load_config(config_path)

    errors = validate_config(config) + validate_image_input(input_path)
    if errors:
        for error in errors:
            tracer.event(error, level="ERROR")
        if not os.path.exists(input_path):
            raise FileNotFoundError(f"Image not found: {input_path}")
        raise ValueError(f"Input validation failed: {errors}")

    policy = resolve_policy(config)
    size = config.image.size
    multi_color = policy.uses_canvas and config.image.colors > 1

    with tracer.span("prepare", module="pipeline"):
        rgb_img, _ = load_image(input_path)
        source = prepare_image(rgb_img, size, colors=config.image.colors if multi_color else 1)
        pins = build_pins(config)

    with tracer.span("palette", module="pipeline"):
        if multi_color:
            palette = extract_palette(
                source, config.image.colors,
                attempts=config.image.kmeans_attempts, seed=config.image.kmeans_seed,
            )
        else:
            palette = list(BLACK_PALETTE)
        tracer.event(f"Using colors: {palette}")

    with tracer.span("search", module="pipeline"):
        line_table = LineTable(pins, size, size, precompute=config.optimizer.precompute_lines)

        optimizer = GreedyOptimizer(
            source, pins, palette, policy,
            max_lines=config.optimizer.max_lines,
            workers=config.optimizer.workers,
            line_table=line_table,
            progress_every=config.optimizer.progress_every,
        )
        result = optimizer.run()

    report = RunReport(
        source_path=os.path.abspath(input_path),
        size=size,
        pins=pins,
        palette=palette,
        result=result,
    )

    if debug_dir:
        try:
            _save_debug(debug_dir, source, optimizer, report)
        except OSError as e:
            raise OutputWriteError(f"Failed to write debug artifacts to {debug_dir}: {e}", report) from e

    if output_path:
        with tracer.span("export", module="pipeline"):
            try:
                write_svg(output_path, result.paths, pins, size, size, config.svg)
            except OSError as e:
                tracer.event(f"Failed to write {output_path}: {e}", level="ERROR")
                raise OutputWriteError(f"Failed to write {output_path}: {e}", report) from e
        report.output_path = os.path.abspath(output_path)

    tracer.event(f"Pipeline complete: {result.lines_drawn} lines")

    return report


def _save_debug(debug_dir, source, optimizer, report):
    writer = DebugArtifactWriter(debug_dir)
    writer.save_image(source, "00_source.png")
    if optimizer.canvas is not None:
        writer.save_image(optimizer.canvas, "01_canvas.png")
    else:
        writer.save_image(np.clip(optimizer.working, 0, 255).astype(np.uint8), "01_remaining.png")

    result = report.result
    writer.save_json({
        "policy": result.policy.value,
        "pins": len(report.pins),
        "palette": [list(c) for c in report.palette],
        "lines_drawn": result.lines_drawn,
        "lines_per_thread": [p.line_count for p in result.paths],
        "halted": result.halted,
        "halt_iteration": result.halt_iteration,
        "remaining_darkness": darkness_total(optimizer.working) if optimizer.working is not None else None,
    }, "metrics.json")
