"""
Command-line interface for pinweave.

Provides commands for generating string art and writing a default config.
"""

import argparse
import sys

from pinweave.config import load_config, save_default_config
from pinweave.tracer import close_tracer, configure_tracer, get_tracer


def build_parser():
    parser = argparse.ArgumentParser(
        prog="pinweave",
        description="pinweave: approximate an image with straight threads between pins on a circle",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Run command
    run_parser = subparsers.add_parser("run", help="Generate string art from an image")
    run_parser.add_argument("image", help="Input image file")
    run_parser.add_argument(
        "--output", "-o",
        default=None,
        help="SVG file to write; without it the result is only reported",
    )
    run_parser.add_argument("--pins", "-n", type=int, default=None, help="Number of pins on the circle")
    run_parser.add_argument("--lines", "-l", type=int, default=None, help="Maximum number of lines")
    run_parser.add_argument("--colors", "-k", type=int, default=None, help="Number of thread colors")
    run_parser.add_argument(
        "--policy",
        default=None,
        choices=["darkness", "color_error", "accuracy"],
        help="Scoring policy (default: darkness for one color, color_error otherwise)",
    )
    run_parser.add_argument("--size", type=int, default=None, help="Working resolution in pixels")
    run_parser.add_argument("--workers", type=int, default=None, help="Parallel evaluation threads")
    run_parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to YAML configuration file",
    )
    run_parser.add_argument("--debug-dir", default=None, help="Directory for debug artifacts")
    run_parser.add_argument(
        "--coords",
        action="store_true",
        help="Print the coordinates of every path when no output is given",
    )
    run_parser.add_argument(
        "--trace",
        action="store_true",
        help="Enable runtime tracing",
    )
    run_parser.add_argument(
        "--trace-level",
        default="INFO",
        choices=["ERROR", "WARN", "INFO", "DEBUG"],
        help="Trace log level",
    )
    run_parser.add_argument(
        "--trace-file",
        default=None,
        help="Path to write trace logs",
    )
    run_parser.add_argument(
        "--trace-json",
        action="store_true",
        help="Enable JSON trace output",
    )

    # Init config command
    init_parser = subparsers.add_parser("init-config", help="Create default config file")
    init_parser.add_argument(
        "--out", "-o",
        default="pinweave_config.yaml",
        help="Output path for config file",
    )

    return parser


def main(argv=None):
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "run":
        return handle_run(args)
    elif args.command == "init-config":
        return handle_init_config(args)

    return 0


def apply_overrides(config, args):
    """Command-line values win over the config file."""
    if args.pins is not None:
        config.geometry.pins = args.pins
    if args.lines is not None:
        config.optimizer.max_lines = args.lines
    if args.colors is not None:
        config.image.colors = args.colors
    if args.policy is not None:
        config.optimizer.policy = args.policy
    if args.size is not None:
        config.image.size = args.size
    if args.workers is not None:
        config.optimizer.workers = args.workers
    return config


def handle_run(args):
    """Handle the run command."""
    config = apply_overrides(load_config(args.config), args)

    configure_tracer(
        enabled=args.trace or config.tracing.enabled,
        level=args.trace_level if args.trace else config.tracing.level,
        file_path=args.trace_file or config.tracing.file_path,
        json_output=args.trace_json or config.tracing.json_output,
    )

    try:
        return _run(args, config)
    finally:
        close_tracer()


def _run(args, config):
    tracer = get_tracer()

    from pinweave.pipeline import OutputWriteError, run_pipeline

    try:
        with tracer.span("cli_run", module="cli"):
            report = run_pipeline(
                args.image,
                output_path=args.output,
                config=config,
                debug_dir=args.debug_dir,
            )
    except OutputWriteError as e:
        tracer.event(f"Write failed: {str(e)}", level="ERROR")
        print(f"\nError: {str(e)}", file=sys.stderr)
        print(f"  Lines computed: {e.report.result.lines_drawn}", file=sys.stderr)
        return 1
    except Exception as e:
        tracer.event(f"Run failed: {str(e)}", level="ERROR")
        print(f"\nError: {str(e)}", file=sys.stderr)
        return 1

    result = report.result

    print(f"\nString art completed.")
    print(f"  Policy: {result.policy.value}")
    print(f"  Pins: {len(report.pins)}")
    print(f"  Lines drawn: {result.lines_drawn}")
    if result.halted:
        print(f"  Stopped early at line {result.halt_iteration}: no further improvement")
    for path in result.paths:
        print(f"  Thread {path.hex_color}: {path.line_count} lines")

    if report.output_path:
        print(f"\nSVG saved to: {report.output_path}")
    else:
        print("\nNo output path provided. Nothing was saved.")
        if args.coords:
            print_coordinates(report)

    return 0


def print_coordinates(report):
    """Raw listing of the pin coordinates visited by every path."""
    for path in report.result.paths:
        print(f"\nThread {path.hex_color}:")
        for pin in path.pins:
            x, y = report.pins[pin]
            print(f"  {pin}: ({x:.2f}, {y:.2f})")


def handle_init_config(args):
    """Handle the init-config command."""
    save_default_config(args.out)
    print(f"Default configuration saved to: {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
