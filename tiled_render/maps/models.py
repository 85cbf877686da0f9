"""
Data models for Tiled maps.

These are the in-memory structures consumed by the renderer: maps, tilesets,
tile layers, object groups and group layers. The models carry no rendering
or I/O logic beyond GID decoding and tile rectangle arithmetic.
"""

import posixpath
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..errors import TileNotFoundError


# =============================================================================
# Global tile IDs
# =============================================================================

FLIPPED_HORIZONTALLY_FLAG = 0x80000000
FLIPPED_VERTICALLY_FLAG = 0x40000000
FLIPPED_DIAGONALLY_FLAG = 0x20000000
GID_FLAGS_MASK = (
    FLIPPED_HORIZONTALLY_FLAG | FLIPPED_VERTICALLY_FLAG | FLIPPED_DIAGONALLY_FLAG
)


def decode_gid(raw_gid: int) -> tuple[int, bool, bool, bool]:
    """Split a raw GID into ``(gid, horizontal, vertical, diagonal)``."""
    return (
        raw_gid & ~GID_FLAGS_MASK & 0xFFFFFFFF,
        bool(raw_gid & FLIPPED_HORIZONTALLY_FLAG),
        bool(raw_gid & FLIPPED_VERTICALLY_FLAG),
        bool(raw_gid & FLIPPED_DIAGONALLY_FLAG),
    )


class Orientation(str, Enum):
    """Map projection."""

    ORTHOGONAL = "orthogonal"
    ISOMETRIC = "isometric"
    STAGGERED = "staggered"
    HEXAGONAL = "hexagonal"


RENDER_ORDER_RIGHT_DOWN = "right-down"


# =============================================================================
# Tileset Models
# =============================================================================

@dataclass
class TilesetImage:
    """Image referenced by a tileset or a single tileset tile."""
    source: str
    width: int = 0
    height: int = 0


@dataclass
class TilesetTile:
    """Per-tile entry of a tileset (image collections carry an image each)."""
    id: int
    image: Optional[TilesetImage] = None


@dataclass
class Tileset:
    """Named collection of tile images.

    Either ``image`` is set and sliced into a uniform grid, or every tile in
    ``tiles`` carries its own image (an image collection tileset).
    """
    name: str
    first_gid: int
    tile_count: int
    tile_width: int
    tile_height: int
    spacing: int = 0
    margin: int = 0
    columns: int = 0
    image: Optional[TilesetImage] = None
    tiles: dict[int, TilesetTile] = field(default_factory=dict)
    base_dir: str = ""

    def get_tile_rect(self, tile_id: int) -> tuple[int, int, int, int]:
        """Return ``(left, top, right, bottom)`` of a tile in the shared image."""
        columns = self.columns
        if columns == 0 and self.image is not None:
            columns = self.image.width // (self.tile_width + self.spacing)
        columns = max(1, columns)

        col = tile_id % columns
        row = tile_id // columns
        x_offset = col * self.spacing + self.margin
        y_offset = row * self.spacing + self.margin
        return (
            col * self.tile_width + x_offset,
            row * self.tile_height + y_offset,
            (col + 1) * self.tile_width + x_offset,
            (row + 1) * self.tile_height + y_offset,
        )

    def get_tileset_tile(self, tile_id: int) -> TilesetTile:
        """Return the tileset tile entry for a local id.

        Raises:
            TileNotFoundError: If the tileset has no entry for ``tile_id``
        """
        tile = self.tiles.get(tile_id)
        if tile is None:
            raise TileNotFoundError(tile_id, self.name)
        return tile

    def get_file_full_path(self, source: str) -> str:
        """Resolve an image source relative to the tileset's directory."""
        source = source.replace("\\", "/")
        if not self.base_dir:
            return posixpath.normpath(source)
        return posixpath.normpath(posixpath.join(self.base_dir.replace("\\", "/"), source))

    def contains_gid(self, gid: int) -> bool:
        """Whether ``gid`` names a tile of this tileset.

        Image collections can have gaps in their ids, so their tile table
        decides instead of ``tile_count``.
        """
        if self.image is None:
            return gid - self.first_gid in self.tiles
        return self.first_gid <= gid < self.first_gid + self.tile_count


# =============================================================================
# Layer Models
# =============================================================================

@dataclass
class LayerTile:
    """A placed tile reference.

    ``tileset`` is None for an empty cell.
    """
    id: int = 0
    tileset: Optional[Tileset] = None
    horizontal_flip: bool = False
    vertical_flip: bool = False
    diagonal_flip: bool = False

    @property
    def gid(self) -> int:
        """Absolute GID without flip bits (0 for an empty cell)."""
        if self.tileset is None:
            return 0
        return self.tileset.first_gid + self.id

    def is_nil(self) -> bool:
        return self.tileset is None


@dataclass
class Layer:
    """Tile layer; ``tiles`` is row-major and covers the whole map grid."""
    name: str = ""
    visible: bool = True
    opacity: float = 1.0
    tiles: list[LayerTile] = field(default_factory=list)


@dataclass
class TiledObject:
    """Freely positioned object; ``gid`` keeps its flip bits."""
    id: int = 0
    name: str = ""
    gid: int = 0
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    rotation: float = 0.0
    visible: bool = True


@dataclass
class ObjectGroup:
    name: str = ""
    visible: bool = True
    opacity: float = 1.0
    objects: list[TiledObject] = field(default_factory=list)


@dataclass
class Group:
    """Group layer nesting tile layers and object groups.

    Child layers are always rendered before child object groups. Nested
    groups are kept for callers walking the tree themselves.
    """
    name: str = ""
    visible: bool = True
    opacity: float = 1.0
    layers: list[Layer] = field(default_factory=list)
    object_groups: list[ObjectGroup] = field(default_factory=list)
    groups: list["Group"] = field(default_factory=list)


# =============================================================================
# Map Model
# =============================================================================

@dataclass
class TiledMap:
    """Complete map description consumed by the renderer."""
    orientation: Orientation | str = Orientation.ORTHOGONAL
    width: int = 0
    height: int = 0
    tile_width: int = 0
    tile_height: int = 0
    render_order: str = RENDER_ORDER_RIGHT_DOWN
    tilesets: list[Tileset] = field(default_factory=list)
    layers: list[Layer] = field(default_factory=list)
    object_groups: list[ObjectGroup] = field(default_factory=list)
    groups: list[Group] = field(default_factory=list)

    def __post_init__(self):
        if isinstance(self.orientation, str) and not isinstance(
            self.orientation, Orientation
        ):
            try:
                self.orientation = Orientation(self.orientation)
            except ValueError:
                # kept as-is; the renderer rejects it
                pass

    def get_tileset_for_gid(self, gid: int) -> Tileset:
        """Return the tileset owning ``gid`` (flip bits already stripped).

        Raises:
            TileNotFoundError: If no tileset owns the GID
        """
        owner: Optional[Tileset] = None
        for tileset in self.tilesets:
            if tileset.first_gid <= gid and (
                owner is None or tileset.first_gid > owner.first_gid
            ):
                owner = tileset
        if owner is None or not owner.contains_gid(gid):
            raise TileNotFoundError(gid)
        return owner

    def tile_gid_to_tile(self, raw_gid: int) -> LayerTile:
        """Decode a raw GID into a ``LayerTile``; GID 0 is the nil tile."""
        gid, horizontal, vertical, diagonal = decode_gid(raw_gid)
        if gid == 0:
            return LayerTile()

        tileset = self.get_tileset_for_gid(gid)
        return LayerTile(
            id=gid - tileset.first_gid,
            tileset=tileset,
            horizontal_flip=horizontal,
            vertical_flip=vertical,
            diagonal_flip=diagonal,
        )
