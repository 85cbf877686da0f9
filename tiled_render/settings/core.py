"""
Core settings management for tiled-render.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from PySide6.QtCore import QSettings

from .logging import LoggingSettings, VALID_LEVELS
from .types import ConfigError, ConfigVersion, OutputFormat, ValidationResult

logger = logging.getLogger(__name__)


class RenderSettings:
    """
    Configuration management using QSettings.

    Settings live in the platform's native store under
    ``tiled-render/tiled_render/<profile>``, or in an INI file when
    ``path`` is given.
    """

    def __init__(self, profile: str = "default", path: Optional[Union[str, Path]] = None):
        """Initialize settings for a profile.

        Args:
            profile: Settings profile name (default: "default")
            path: Optional INI file to use instead of the native store
        """
        if path is not None:
            self.settings = QSettings(str(path), QSettings.Format.IniFormat)
        else:
            self.settings = QSettings("tiled-render", "tiled_render")
        self.profile = profile

        # Use profile as a group: tiled-render/tiled_render/default/...
        self.settings.beginGroup(profile)

        self._logging = LoggingSettings(self.settings)

        if not self.settings.contains("app/version"):
            self.settings.setValue("app/version", ConfigVersion.CURRENT.value)

        logger.debug(
            f"Settings initialized for profile '{profile}', stored at: {self.settings.fileName()}"
        )

    # === SUBSYSTEM ACCESS ===

    @property
    def logging(self) -> LoggingSettings:
        """Access logging settings subsystem."""
        return self._logging

    @property
    def version(self) -> str:
        return self._get_str("app/version", ConfigVersion.CURRENT.value)

    # === HELPER METHODS ===

    def _get_str(self, key: str, default: str = "") -> str:
        """Type-safe string retrieval from settings."""
        value = self.settings.value(key, default)
        return str(value) if value is not None else default

    def _get_bool(self, key: str, default: bool = False) -> bool:
        """Type-safe boolean retrieval from settings."""
        value = self.settings.value(key, default)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() in ("true", "1", "yes")
        return bool(value) if value is not None else default

    def _get_int(self, key: str, default: int = 0) -> int:
        """Type-safe integer retrieval; unparsable values give the default."""
        value = self.settings.value(key, default)
        try:
            return int(str(value)) if value is not None else default
        except (ValueError, TypeError):
            return default

    def sync(self) -> None:
        """Flush pending changes to storage."""
        self.settings.sync()

    # === RENDER SETTINGS ===

    @property
    def legacy_cell_scale(self) -> bool:
        """Reproduce the historic per-cell scaling of orthogonal maps."""
        return self._get_bool("render/legacy_cell_scale", False)

    @legacy_cell_scale.setter
    def legacy_cell_scale(self, value: bool) -> None:
        self.settings.setValue("render/legacy_cell_scale", value)

    # === OUTPUT SETTINGS ===

    @property
    def default_format(self) -> OutputFormat:
        """Encoder used when the output path has no recognised extension.

        Raises:
            ConfigError: If the stored value names no known format
        """
        value = self._get_str("output/default_format", OutputFormat.PNG.value).lower()
        if value == "jpg":
            value = OutputFormat.JPEG.value
        try:
            return OutputFormat(value)
        except ValueError as e:
            raise ConfigError(f"Unknown output format in settings: {value}") from e

    @default_format.setter
    def default_format(self, value: OutputFormat) -> None:
        self.settings.setValue("output/default_format", value.value)

    @property
    def jpeg_quality(self) -> int:
        return self._get_int("output/jpeg_quality", 90)

    @jpeg_quality.setter
    def jpeg_quality(self, value: int) -> None:
        if 1 <= value <= 100:
            self.settings.setValue("output/jpeg_quality", value)
        else:
            logger.warning(
                f"Invalid JPEG quality: {value}, keeping current: {self.jpeg_quality}"
            )

    # === LOGGING SETTINGS (DELEGATED) ===

    @property
    def console_logging(self) -> bool:
        return self._logging.console_logging

    @property
    def console_log_level(self) -> str:
        return self._logging.console_log_level

    @property
    def console_use_colors(self) -> bool:
        return self._logging.console_use_colors

    @property
    def file_logging(self) -> bool:
        return self._logging.file_logging

    @property
    def log_file_path(self) -> str:
        return self._logging.log_file_path

    # === VALIDATION ===

    def validate(self) -> ValidationResult:
        """Check stored values; unknown formats and out-of-range numbers are errors."""
        errors: list[str] = []
        warnings: list[str] = []

        try:
            self.default_format
        except ConfigError as e:
            errors.append(str(e))

        quality = self._get_int("output/jpeg_quality", 90)
        if not 1 <= quality <= 100:
            errors.append(f"JPEG quality must be between 1 and 100, got {quality}")

        if self.console_log_level.upper() not in VALID_LEVELS:
            warnings.append(
                f"Unknown console log level '{self.console_log_level}', INFO will be used"
            )

        if self.legacy_cell_scale:
            warnings.append("Legacy cell scaling is enabled")

        return ValidationResult(is_valid=not errors, errors=errors, warnings=warnings)
