"""Asset access for tileset images.

Tileset image paths are stored with forward slashes. Without a root they are
opened from the local file system; with a root (any ``importlib.resources``
Traversable such as package data, ``zipfile.Path`` or ``pathlib.Path``) they
are resolved inside it.
"""

import logging
from importlib.resources.abc import Traversable
from pathlib import Path, PurePosixPath
from typing import IO, Optional


class AssetOpener:
    """Opens tileset assets as binary streams."""

    def __init__(self, root: Optional[Traversable] = None):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.root = root

    def open(self, path: str) -> IO[bytes]:
        """Open ``path`` for binary reading.

        Raises:
            OSError: If the asset does not exist or cannot be read
        """
        parts = PurePosixPath(path.replace("\\", "/")).parts
        if self.root is None:
            self.logger.debug(f"Opening asset from file system: {path}")
            return open(Path(*parts), "rb")

        # Traversable roots are always relative
        relative = [part for part in parts if part != "/"]
        self.logger.debug(f"Opening asset from {self.root}: {path}")
        resource = self.root
        for part in relative:
            resource = resource.joinpath(part)
        if not resource.is_file():
            raise FileNotFoundError(f"Asset not found: {path}")
        return resource.open("rb")
