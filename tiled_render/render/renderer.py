"""Map compositor.

Walks a map's layers, groups and object groups, resolves every tile image
and composites it onto a single RGBA canvas. All render methods draw onto
``Renderer.result`` in place; ``clear()`` starts a fresh canvas so layers
can be rendered into separate images.
"""

import logging
import math
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import IO, Any, Optional, Sequence, TypeVar

from PIL import Image

from ..errors import IndexOutOfBoundsError, UnsupportedRenderOrderError
from ..maps.models import (
    RENDER_ORDER_RIGHT_DOWN,
    Group,
    Layer,
    ObjectGroup,
    TiledMap,
    TiledObject,
)
from .assets import AssetOpener
from .canvas import draw_image, encode_gif, encode_jpeg, encode_png, new_canvas
from .geometry import Affine, GeometryEngine, create_geometry
from .resolver import TileResolver

T = TypeVar("T")

SUPPORTED_RENDER_ORDERS = ("", RENDER_ORDER_RIGHT_DOWN)


def _checked(items: Sequence[T], index: int, kind: str) -> T:
    if not 0 <= index < len(items):
        raise IndexOutOfBoundsError(kind, index, len(items))
    return items[index]


class Renderer:
    """Renders a Tiled map into one composited image.

    Args:
        tiled_map: Map to render
        root: Optional Traversable holding the tileset assets; local files
            are used when omitted
        legacy_cell_scale: Reproduce the historic per-cell scaling

    Raises:
        UnsupportedOrientationError: If the map is not orthogonal
    """

    def __init__(
        self,
        tiled_map: TiledMap,
        root: Optional[Traversable] = None,
        legacy_cell_scale: bool = False,
    ):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.map = tiled_map
        self.engine: GeometryEngine = create_geometry(
            tiled_map, legacy_cell_scale=legacy_cell_scale
        )
        self.resolver = TileResolver(self.engine, AssetOpener(root))
        self.result: Image.Image = new_canvas(*self.engine.final_size())

        self.logger.debug(
            f"Renderer created for {tiled_map.width}x{tiled_map.height} map, "
            f"canvas {self.result.width}x{self.result.height}"
        )

    @property
    def tile_cache(self):
        """GID -> untransformed tile image cache of this render session."""
        return self.resolver.cache

    def clear(self) -> None:
        """Discard the current result and allocate a transparent canvas."""
        self.result = new_canvas(*self.engine.final_size())

    def _draw(self, image: Image.Image, transform: Affine, alpha: float) -> None:
        draw_image(self.result, image, transform, alpha)

    # === TILE LAYERS ===

    def _render_layer(self, layer: Layer) -> None:
        if self.map.render_order not in SUPPORTED_RENDER_ORDERS:
            raise UnsupportedRenderOrderError(self.map.render_order)

        tiles = layer.tiles
        i = 0
        for y in range(self.map.height):
            for x in range(self.map.width):
                if i >= len(tiles):
                    return
                tile = tiles[i]
                i += 1
                if tile.is_nil():
                    continue

                image = self.resolver.get_tile_image(tile)
                self._draw(image, self.engine.cell_transform(x, y), layer.opacity)

    def render_layer(self, layer_id: int) -> None:
        """Render a single top-level layer, visible or not."""
        self._render_layer(_checked(self.map.layers, layer_id, "layer"))

    def render_visible_layers(self) -> None:
        """Render all visible top-level layers in map order."""
        for layer in self.map.layers:
            if not layer.visible:
                continue
            self._render_layer(layer)

    # === OBJECT GROUPS ===

    def _object_transform(self, obj: TiledObject, image: Image.Image) -> Affine:
        """Scale to the object's size, rotate, and move to its anchor.

        Tile objects are anchored at their bottom-left corner and rotate
        around it.
        """
        src_w, src_h = image.size
        dst_w = int(obj.width) or src_w
        dst_h = int(obj.height) or src_h

        transform = Affine()
        if (src_w, src_h) != (dst_w, dst_h):
            transform = transform.scale(dst_w / src_w, dst_h / src_h)
        transform = transform.translate(0.0, -float(dst_h))
        if obj.rotation != 0:
            transform = transform.rotate(obj.rotation * math.pi / 180.0)
        return transform.translate(float(obj.x), float(obj.y))

    def _render_object(self, object_group: ObjectGroup, obj: TiledObject) -> None:
        if not obj.visible:
            return
        if obj.gid == 0:
            # only tile objects are drawn
            return

        tile = self.map.tile_gid_to_tile(obj.gid)
        image = self.resolver.get_tile_image(tile)
        self._draw(image, self._object_transform(obj, image), object_group.opacity)

    def _render_object_group(self, object_group: ObjectGroup) -> None:
        # top to bottom, then left to right; sorted() is stable
        objects = sorted(object_group.objects, key=lambda o: (o.y, o.x))
        for obj in objects:
            self._render_object(object_group, obj)

    def render_object_group(self, object_group_id: int) -> None:
        """Render a single top-level object group."""
        self._render_object_group(
            _checked(self.map.object_groups, object_group_id, "object group")
        )

    def render_visible_object_groups(self) -> None:
        """Render all visible top-level object groups in map order."""
        for object_group in self.map.object_groups:
            if not object_group.visible:
                continue
            self._render_object_group(object_group)

    def render_visible_layers_and_object_groups(self) -> None:
        """Render visible layers first, then visible object groups.

        Content that should interleave layers and objects comes out in the
        wrong order; put it into groups and use ``render_visible_groups``.
        """
        self.render_visible_layers()
        self.render_visible_object_groups()

    # === GROUPS ===

    def _render_group(self, group: Group) -> None:
        for layer in group.layers:
            if not layer.visible:
                continue
            self._render_layer(layer)

        for object_group in group.object_groups:
            if not object_group.visible:
                continue
            self._render_object_group(object_group)

    def render_group(self, group_id: int) -> None:
        """Render the visible children of a single top-level group."""
        self._render_group(_checked(self.map.groups, group_id, "group"))

    def render_visible_groups(self) -> None:
        """Render all visible top-level groups in map order."""
        for group in self.map.groups:
            if not group.visible:
                continue
            self._render_group(group)

    def render_group_layer(self, group_id: int, layer_id: int) -> None:
        """Render one layer of a top-level group."""
        group = _checked(self.map.groups, group_id, "group")
        self._render_layer(_checked(group.layers, layer_id, "group layer"))

    def render_group_object_group(self, group_id: int, object_group_id: int) -> None:
        """Render one object group of a top-level group."""
        group = _checked(self.map.groups, group_id, "group")
        self._render_object_group(
            _checked(group.object_groups, object_group_id, "group object group")
        )

    # === OUTPUT ===

    def save_as_png(self, fp: IO[bytes] | str, **options: Any) -> None:
        encode_png(self.result, fp, **options)

    def save_as_jpeg(self, fp: IO[bytes] | str, quality: int = 75, **options: Any) -> None:
        encode_jpeg(self.result, fp, quality=quality, **options)

    def save_as_gif(self, fp: IO[bytes] | str, **options: Any) -> None:
        encode_gif(self.result, fp, **options)

    def save(self, path: str | Path, fmt: Optional[str] = None, **options: Any) -> None:
        """Write the result to ``path``, picking the encoder by extension.

        Raises:
            ValueError: For an unknown format
        """
        path = Path(path)
        fmt = (fmt or path.suffix.lstrip(".")).lower()
        if fmt == "png":
            self.save_as_png(str(path), **options)
        elif fmt in ("jpg", "jpeg"):
            self.save_as_jpeg(str(path), **options)
        elif fmt == "gif":
            self.save_as_gif(str(path), **options)
        else:
            raise ValueError(f"Unsupported output format: {fmt!r}")
        self.logger.info(f"Saved render to {path}")
