"""
Settings package for tiled-render.

This package provides type-safe configuration management using Qt's
QSettings for cross-platform storage.

Usage:
    from tiled_render.settings import RenderSettings

    settings = RenderSettings()
    result = settings.validate()
"""

from .core import RenderSettings
from .logging import LoggingSettings
from .types import ConfigVersion, ConfigError, OutputFormat, ValidationResult

__all__ = [
    "RenderSettings",
    "LoggingSettings",
    "ConfigVersion",
    "ConfigError",
    "OutputFormat",
    "ValidationResult",
]
