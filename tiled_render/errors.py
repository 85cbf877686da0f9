"""
Error types for tiled-render.
"""

from typing import Optional


class RenderError(Exception):
    """Base class for all errors raised while rendering a map."""
    pass


class UnsupportedOrientationError(RenderError):
    """Raised when the map orientation has no geometry engine."""

    def __init__(self, orientation: str):
        super().__init__(f"tiled/render: unsupported orientation '{orientation}'")
        self.orientation = orientation


class UnsupportedRenderOrderError(RenderError):
    """Raised when a layer uses a render order other than right-down."""

    def __init__(self, render_order: str):
        super().__init__(f"tiled/render: unsupported render order '{render_order}'")
        self.render_order = render_order


class IndexOutOfBoundsError(RenderError, IndexError):
    """Raised when a layer, group or object group index is out of range."""

    def __init__(self, kind: str, index: int, length: int):
        super().__init__(
            f"tiled/render: {kind} index {index} out of bounds (length {length})"
        )
        self.kind = kind
        self.index = index
        self.length = length


class DecodeError(RenderError):
    """Raised when an asset cannot be opened or its image cannot be decoded.

    The underlying error is chained as ``__cause__``.
    """

    def __init__(self, path: str, reason: Optional[BaseException] = None):
        message = f"tiled/render: cannot decode image '{path}'"
        if reason is not None:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.path = path


class TileNotFoundError(RenderError, KeyError):
    """Raised when a tile id has no image in its tileset."""

    def __init__(self, tile_id: int, tileset_name: str = ""):
        where = f" in tileset '{tileset_name}'" if tileset_name else ""
        super().__init__(f"tiled/render: tile {tile_id} not found{where}")
        self.tile_id = tile_id
        self.tileset_name = tileset_name

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])
