"""Utility helpers for tiled-render."""

from .logging_config import setup_logging, ColoredFormatter, CSVFormatter

__all__ = ["setup_logging", "ColoredFormatter", "CSVFormatter"]
