"""
Per-tileset image cache.

Decodes a tileset's shared image once and keeps every sliced tile, keyed by
tileset name. There is no eviction: the cache lives as long as its owner.
"""

import logging
from typing import Optional

from PIL import Image

from ..errors import DecodeError, TileNotFoundError
from ..maps.models import LayerTile, Tileset
from .assets import AssetOpener
from .canvas import decode_image, sub_image


class TilesetCache:
    """Memoizes sliced tileset images.

    Holds a dictionary of ``tileset name -> local tile id -> Image``.
    Failed decodes are not cached, so a later call retries.
    """

    def __init__(self, opener: Optional[AssetOpener] = None):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.opener = opener or AssetOpener()
        self._cache: dict[str, dict[int, Image.Image]] = {}

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, tileset_name: object) -> bool:
        return tileset_name in self._cache

    def clear(self) -> None:
        self._cache.clear()

    def _cache_tileset(self, tileset: Tileset) -> dict[int, Image.Image]:
        """Decode and slice the tileset's shared image."""
        if tileset.image is None:
            raise TileNotFoundError(0, tileset.name)

        path = tileset.get_file_full_path(tileset.image.source)
        try:
            with self.opener.open(path) as stream:
                image = decode_image(stream)
        except (OSError, Image.DecompressionBombError) as e:
            self.logger.error(f"Failed to decode tileset '{tileset.name}' from {path}: {e}")
            raise DecodeError(path, e) from e

        tiles = {
            tile_id: sub_image(image, tileset.get_tile_rect(tile_id))
            for tile_id in range(tileset.tile_count)
        }
        self._cache[tileset.name] = tiles
        self.logger.debug(f"Cached {len(tiles)} tiles of tileset '{tileset.name}'")
        return tiles

    def resolve(self, tileset: Tileset) -> dict[int, Image.Image]:
        """Return all sliced tiles of ``tileset``, decoding on first use.

        Raises:
            DecodeError: If the image cannot be opened or decoded
        """
        cached = self._cache.get(tileset.name)
        if cached is None:
            cached = self._cache_tileset(tileset)
        return cached

    def get_tile_image(self, tile: LayerTile) -> Image.Image:
        """Return the untransformed image of a placed tile.

        Raises:
            DecodeError: If the tileset image cannot be opened or decoded
            TileNotFoundError: If the tile id is outside the tileset
        """
        if tile.tileset is None:
            raise TileNotFoundError(tile.id)

        tiles = self.resolve(tile.tileset)
        image = tiles.get(tile.id)
        if image is None:
            raise TileNotFoundError(tile.id, tile.tileset.name)
        return image
