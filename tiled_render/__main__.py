"""
Command line entry point for tiled-render.
Usage: python -m tiled_render MAP -o OUT
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .errors import RenderError
from .maps import MapFormatError, MapLoader
from .render import Renderer
from .settings import ConfigError, OutputFormat, RenderSettings
from .utils.logging_config import setup_logging


def _jpeg_quality(value: str) -> int:
    try:
        quality = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid quality: {value!r}") from None
    if not 1 <= quality <= 100:
        raise argparse.ArgumentTypeError(f"quality must be between 1 and 100, got {quality}")
    return quality


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tiled-render",
        description="Render a Tiled JSON map into a PNG, JPEG or GIF image.",
    )
    parser.add_argument("map", type=Path, help="Tiled JSON map (.tmj/.json)")
    parser.add_argument("-o", "--output", type=Path, required=True, help="Output image")
    parser.add_argument(
        "--format",
        choices=[fmt.value for fmt in OutputFormat],
        help="Output format (default: from extension, then settings)",
    )
    parser.add_argument("--quality", type=_jpeg_quality, help="JPEG quality (1-100)")

    target = parser.add_mutually_exclusive_group()
    target.add_argument("--layer", type=int, metavar="N", help="Render only top-level layer N")
    target.add_argument("--group", type=int, metavar="N", help="Render only top-level group N")
    target.add_argument(
        "--groups", action="store_true", help="Render all visible groups instead of layers"
    )

    parser.add_argument(
        "--legacy-cell-scale",
        action="store_true",
        default=None,
        help="Reproduce the historic per-cell scaling of orthogonal maps",
    )
    parser.add_argument("--settings", type=Path, help="INI file with settings")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _output_format(output: Path, requested: Optional[str], settings: RenderSettings) -> str:
    if requested:
        return requested
    suffix = output.suffix.lstrip(".").lower()
    if suffix in ("png", "gif"):
        return suffix
    if suffix in ("jpg", "jpeg"):
        return OutputFormat.JPEG.value
    return settings.default_format.value


def main(argv: Optional[list[str]] = None) -> int:
    """Main command line entry point."""
    args = build_parser().parse_args(argv)
    logger = logging.getLogger(f"{__name__}.main")

    settings = RenderSettings(path=args.settings)
    setup_logging(settings)

    validation = settings.validate()
    for warning in validation.warnings:
        logger.warning(f"  {warning}")
    if not validation.is_valid:
        for error in validation.errors:
            logger.error(f"  {error}")
        print("Configuration validation failed:", file=sys.stderr)
        print("\n".join(validation.errors), file=sys.stderr)
        return 1

    legacy = settings.legacy_cell_scale if args.legacy_cell_scale is None else True

    try:
        tiled_map = MapLoader().load(args.map)
        renderer = Renderer(tiled_map, legacy_cell_scale=legacy)

        if args.layer is not None:
            renderer.render_layer(args.layer)
        elif args.group is not None:
            renderer.render_group(args.group)
        elif args.groups:
            renderer.render_visible_groups()
        else:
            renderer.render_visible_layers_and_object_groups()

        fmt = _output_format(args.output, args.format, settings)
        args.output.parent.mkdir(parents=True, exist_ok=True)
        if fmt == OutputFormat.JPEG.value:
            quality = args.quality if args.quality is not None else settings.jpeg_quality
            renderer.save(args.output, fmt=fmt, quality=quality)
        else:
            renderer.save(args.output, fmt=fmt)

    except (RenderError, MapFormatError, ConfigError, OSError) as e:
        logger.error(f"Rendering failed: {e}")
        print(f"tiled-render: {e}", file=sys.stderr)
        return 1

    print(f"Rendered {args.map} -> {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
