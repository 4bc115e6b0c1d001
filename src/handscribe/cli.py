"""
Module: handscribe.cli

Purpose:
    Command line entry point: render a text file as handwriting.

Usage:
    handscribe notes.txt -o notes.pdf
    handscribe - -o page.png --options style.json --scale 2 --seed 7

    Multi-page PNG/JPEG output is written as name-1.png, name-2.png, ...

Key Functions:
    - main(): Parse arguments, render, write output
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import ExportFormat, Settings, settings_from_mapping, split_known_options
from .controller import Document, render_to_file
from .errors import ConfigParseError, HandscribeError

logger = logging.getLogger(__name__)

_SUFFIX_FORMATS = {
    ".png": ExportFormat.PNG,
    ".jpg": ExportFormat.JPEG,
    ".jpeg": ExportFormat.JPEG,
    ".pdf": ExportFormat.PDF,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="handscribe",
        description="Render text as a handwritten page (PNG, JPEG or PDF)",
    )
    parser.add_argument("text_file", help="Text file to render ('-' reads stdin)")
    parser.add_argument("-o", "--output", type=Path, required=True, help="Output file")
    parser.add_argument("--options", type=Path, help="JSON file of rendering options")
    parser.add_argument(
        "--format",
        choices=[f.value for f in ExportFormat] + ["jpg"],
        help="Export format (default: from output suffix, then options)",
    )
    parser.add_argument("--scale", type=float, help="Export scale multiplier")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible jitter")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def load_settings(options_path: Optional[Path], args: argparse.Namespace) -> Settings:
    """
    Settings from the options file plus command line overrides.

    Raises:
        ConfigParseError: If the options file is unreadable or invalid
    """
    options = {}
    if options_path is not None:
        try:
            options = json.loads(options_path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ConfigParseError(f"Cannot read options file {options_path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigParseError(f"Invalid options JSON in {options_path}: {e}") from e
        if not isinstance(options, dict):
            raise ConfigParseError(f"Options file {options_path} must contain a JSON object")

        _, ignored = split_known_options(options)
        if ignored:
            logger.info(f"Ignoring unknown options: {', '.join(sorted(ignored))}")

    overrides = {}
    if args.scale is not None:
        overrides["export_scale"] = args.scale
    if args.seed is not None:
        overrides["seed"] = args.seed

    return settings_from_mapping({**options, **overrides})


def _read_text(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _output_format(args: argparse.Namespace, settings: Settings) -> ExportFormat:
    if args.format:
        return ExportFormat(args.format)
    suffix_format = _SUFFIX_FORMATS.get(args.output.suffix.lower())
    return suffix_format or settings.export_format


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
    )

    try:
        settings = load_settings(args.options, args)
        text = _read_text(args.text_file)
    except ConfigParseError as e:
        logger.error(f"Invalid options: {e}")
        return 2
    except OSError as e:
        logger.error(f"Cannot read input: {e}")
        return 1

    fmt = _output_format(args, settings)
    try:
        written = render_to_file(Document(text, settings), args.output, fmt)
    except HandscribeError as e:
        logger.error(f"Render failed: {e}")
        return 1
    except OSError as e:
        logger.error(f"Cannot write output: {e}")
        return 1

    for path in written:
        print(path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
