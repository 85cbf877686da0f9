"""
tiled-render: Renders Tiled maps into composited raster images.

Resolves tile images from tilesets, applies per-tile flips and object
transforms, and composites layers, groups and object groups onto one canvas.
"""

__version__ = "0.1.0"
__author__ = "tiled-render Contributors"

# Map models and loading
from .maps import (
    Orientation, TiledMap, Tileset, TilesetImage, TilesetTile, LayerTile,
    Layer, ObjectGroup, TiledObject, Group, MapLoader, MapFormatError
)

# Rendering
from .render import Renderer, TileResolver, TilesetCache, AssetOpener
from .errors import (
    RenderError, UnsupportedOrientationError, UnsupportedRenderOrderError,
    IndexOutOfBoundsError, DecodeError, TileNotFoundError
)

# Logging
from .utils.logging_config import setup_logging

__all__ = [
    # Rendering
    'Renderer',
    'TileResolver',
    'TilesetCache',
    'AssetOpener',

    # Errors
    'RenderError',
    'UnsupportedOrientationError',
    'UnsupportedRenderOrderError',
    'IndexOutOfBoundsError',
    'DecodeError',
    'TileNotFoundError',

    # Map models
    'Orientation',
    'TiledMap',
    'Tileset',
    'TilesetImage',
    'TilesetTile',
    'LayerTile',
    'Layer',
    'ObjectGroup',
    'TiledObject',
    'Group',
    'MapLoader',
    'MapFormatError',

    # Logging
    'setup_logging',
]
