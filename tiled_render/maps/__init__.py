"""Map models and loading for tiled-render."""

from .models import (
    Orientation,
    TiledMap,
    Tileset,
    TilesetImage,
    TilesetTile,
    LayerTile,
    Layer,
    ObjectGroup,
    TiledObject,
    Group,
    decode_gid,
)
from .loader import MapLoader, MapFormatError

__all__ = [
    "Orientation",
    "TiledMap",
    "Tileset",
    "TilesetImage",
    "TilesetTile",
    "LayerTile",
    "Layer",
    "ObjectGroup",
    "TiledObject",
    "Group",
    "decode_gid",
    "MapLoader",
    "MapFormatError",
]
