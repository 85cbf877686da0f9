"""Tile image resolution.

Turns a placed ``LayerTile`` into the oriented image to draw. Images are
memoized by absolute GID for the lifetime of the resolver.
"""

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Optional

from PIL import Image

from ..errors import DecodeError, TileNotFoundError
from ..maps.models import LayerTile, Tileset, TilesetImage
from .assets import AssetOpener
from .canvas import decode_image, sub_image
from .geometry import GeometryEngine


class TileResolver:
    """Resolves tile references to images through a GID-keyed cache.

    Two sourcing strategies are used, selected by the tileset:

    - shared image: the whole image is decoded once and every tile of the
      tileset is cached on first touch, not only the requested one;
    - image collection: only the requested tile's own image is decoded and
      cached.
    """

    def __init__(self, geometry: GeometryEngine, opener: Optional[AssetOpener] = None):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.geometry = geometry
        self.opener = opener or AssetOpener()
        self._cache: dict[int, Image.Image] = {}

    @property
    def cache(self) -> Mapping[int, Image.Image]:
        """Read-only view of the GID -> untransformed image cache."""
        return MappingProxyType(self._cache)

    def _decode(self, path: str) -> Image.Image:
        try:
            with self.opener.open(path) as stream:
                return decode_image(stream)
        except (OSError, Image.DecompressionBombError) as e:
            self.logger.error(f"Failed to decode tile image {path}: {e}")
            raise DecodeError(path, e) from e

    def _image_from_tile(self, tileset: Tileset, tile_id: int) -> Image.Image:
        """Decode a tile of an image collection tileset."""
        tileset_tile = tileset.get_tileset_tile(tile_id)
        if tileset_tile.image is None:
            raise TileNotFoundError(tile_id, tileset.name)

        image = self._decode(tileset.get_file_full_path(tileset_tile.image.source))
        self._cache[tileset.first_gid + tile_id] = image
        return image

    def _image_from_tileset(
        self, tileset: Tileset, sheet_source: TilesetImage, tile_id: int
    ) -> Image.Image:
        """Decode a shared tileset image and precache all of its tiles."""
        sheet = self._decode(tileset.get_file_full_path(sheet_source.source))
        for index in range(tileset.tile_count):
            self._cache[tileset.first_gid + index] = sub_image(
                sheet, tileset.get_tile_rect(index)
            )
        self.logger.debug(
            f"Precached {tileset.tile_count} tiles of tileset '{tileset.name}'"
        )

        if not 0 <= tile_id < tileset.tile_count:
            raise TileNotFoundError(tile_id, tileset.name)
        return self._cache[tileset.first_gid + tile_id]

    def get_tile_image(self, tile: LayerTile) -> Image.Image:
        """Return the oriented image for a placed tile.

        Raises:
            DecodeError: If an image cannot be opened or decoded
            TileNotFoundError: If the tile has no image in its tileset
        """
        tileset = tile.tileset
        if tileset is None:
            raise TileNotFoundError(tile.id)

        image = self._cache.get(tile.gid)
        if image is None:
            if tileset.image is None:
                image = self._image_from_tile(tileset, tile.id)
            else:
                image = self._image_from_tileset(tileset, tileset.image, tile.id)

        return self.geometry.orient_tile(tile, image)
