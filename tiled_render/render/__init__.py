"""
Rendering package for tiled-render.

Provides the compositor, tile image resolution, per-tileset caching and the
geometry engines used to turn a Tiled map into one raster image.
"""

from .assets import AssetOpener
from .geometry import Affine, GeometryEngine, OrthogonalGeometry, create_geometry
from .renderer import Renderer
from .resolver import TileResolver
from .tileset_cache import TilesetCache

__all__ = [
    # Compositor
    "Renderer",

    # Tile images
    "TileResolver",
    "TilesetCache",
    "AssetOpener",

    # Geometry
    "Affine",
    "GeometryEngine",
    "OrthogonalGeometry",
    "create_geometry",
]
