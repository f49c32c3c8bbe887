#!/usr/bin/env python3
"""CLI for generating elementary cellular automata diagrams."""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .automaton import generate
from .config import DEFAULT_FORMAT, FORMATS, RunConfig
from .errors import ConusError
from .sinks import BLANK_GLYPH, FILLED_GLYPH, AsciiSink, BitmapSink


def log(message: str, config: RunConfig):
    """Status goes to stderr so stdout stays free for the diagram."""
    if config.verbose:
        print(message, file=sys.stderr)


def open_output(config: RunConfig):
    """Returns (stream, should_close) for the configured destination."""
    binary = config.output_format == "png"
    if config.output is None:
        return (sys.stdout.buffer if binary else sys.stdout), False
    if binary:
        return open(config.output, "wb"), True
    return open(config.output, "w", encoding="utf-8"), True


def make_sink(config: RunConfig, stream):
    if config.output_format == "png":
        return BitmapSink(stream, config.steps)
    return AsciiSink(stream, filled=config.filled, blank=config.blank)


def run(config: RunConfig) -> int:
    """Generate the diagram described by config. Returns the number of rows written."""
    rule = config.rule
    log(f"Rule: {rule.to_string()} (table {rule.to_bits()}, lambda {rule.lambda_parameter():.3f})", config)
    log(f"  Steps: {config.steps}", config)
    log(f"  Size: {config.width}x{config.height}", config)
    log(f"  Format: {config.output_format}", config)
    log(f"  Output: {config.output or 'stdout'}", config)

    try:
        stream, should_close = open_output(config)
    except OSError as e:
        raise ConusError(f"Cannot open output '{config.output}': {e}") from e

    try:
        rows = generate(rule, config.steps, make_sink(config, stream))
    finally:
        if should_close:
            stream.close()

    log(f"Wrote {rows} rows", config)
    return rows


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="conus",
        description="Generates cellular automata diagrams",
    )
    parser.add_argument("rule", type=str, help="Rule number 0-255 (e.g., 30, R30, rule110)")
    parser.add_argument("steps", type=str, help="Number of iterations")
    parser.add_argument("-o", "--output", type=str, default=None, help="Output file (default: stdout)")
    parser.add_argument(
        "-f", "--format", type=str, default=DEFAULT_FORMAT,
        help=f"Output format: {', '.join(FORMATS)} (default: {DEFAULT_FORMAT})",
    )
    parser.add_argument("--filled", type=str, default=FILLED_GLYPH, help="Glyph for live cells in text mode")
    parser.add_argument("--blank", type=str, default=BLANK_GLYPH, help="Glyph for dead cells in text mode")
    parser.add_argument("-v", "--verbose", action="store_true", help="Print progress to stderr")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = RunConfig.from_args(args)
        run(config)
    except ConusError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
