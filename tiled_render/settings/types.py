"""
Configuration type definitions and exceptions for tiled-render.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class ConfigVersion(Enum):
    """Configuration version for migration support."""
    V1_0 = "1.0"
    CURRENT = V1_0


class OutputFormat(Enum):
    """Encoders available for the rendered canvas."""
    PNG = "png"
    JPEG = "jpeg"
    GIF = "gif"


class ConfigError(Exception):
    """Raised when configuration is invalid or cannot be accessed."""
    pass


@dataclass
class ValidationResult:
    """Result of configuration validation."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
