"""Map geometry engines and affine transforms.

A geometry engine knows how big the final canvas is, where each grid cell
lands on it and how a tile's flip flags turn into an oriented image. Only the
orthogonal projection is implemented; other orientations are rejected when
the engine is created.
"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

from PIL import Image

from ..errors import UnsupportedOrientationError

if TYPE_CHECKING:
    from ..maps.models import LayerTile, TiledMap


@dataclass(frozen=True)
class Affine:
    """2D affine transform.

    Maps ``(x, y)`` to ``(a*x + b*y + tx, c*x + d*y + ty)``. The builder
    methods return a new transform that applies the extra operation after
    the existing ones, so ``Affine().translate(4, 0).scale(2, 2)`` moves a
    point by 4 and then doubles it.
    """

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    tx: float = 0.0
    ty: float = 0.0

    def concat(self, other: "Affine") -> "Affine":
        """Return the transform applying ``self`` first, then ``other``."""
        return Affine(
            a=other.a * self.a + other.b * self.c,
            b=other.a * self.b + other.b * self.d,
            c=other.c * self.a + other.d * self.c,
            d=other.c * self.b + other.d * self.d,
            tx=other.a * self.tx + other.b * self.ty + other.tx,
            ty=other.c * self.tx + other.d * self.ty + other.ty,
        )

    def translate(self, tx: float, ty: float) -> "Affine":
        return self.concat(Affine(tx=tx, ty=ty))

    def scale(self, sx: float, sy: float) -> "Affine":
        return self.concat(Affine(a=sx, d=sy))

    def rotate(self, theta: float) -> "Affine":
        """Rotate by ``theta`` radians (clockwise on a y-down canvas)."""
        sin, cos = math.sin(theta), math.cos(theta)
        return self.concat(Affine(a=cos, b=-sin, c=sin, d=cos))

    def apply(self, x: float, y: float) -> tuple[float, float]:
        return (self.a * x + self.b * y + self.tx, self.c * x + self.d * y + self.ty)

    def determinant(self) -> float:
        return self.a * self.d - self.b * self.c

    def invert(self) -> "Affine":
        """Return the inverse transform.

        Raises:
            ValueError: If the transform is singular
        """
        det = self.determinant()
        if det == 0:
            raise ValueError("Affine transform is not invertible")
        a = self.d / det
        b = -self.b / det
        c = -self.c / det
        d = self.a / det
        return Affine(
            a=a,
            b=b,
            c=c,
            d=d,
            tx=-(a * self.tx + b * self.ty),
            ty=-(c * self.tx + d * self.ty),
        )

    def is_translation(self) -> bool:
        """True when the transform only moves points."""
        return self.a == 1.0 and self.b == 0.0 and self.c == 0.0 and self.d == 1.0


class GeometryEngine(ABC):
    """Geometry facts for one map projection."""

    def __init__(self, tiled_map: "TiledMap"):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.map = tiled_map

    @abstractmethod
    def final_size(self) -> tuple[int, int]:
        """Return ``(width, height)`` of the rendered canvas in pixels."""

    @abstractmethod
    def cell_transform(self, x: int, y: int) -> Affine:
        """Return the transform placing the tile of grid cell ``(x, y)``."""

    @abstractmethod
    def orient_tile(self, tile: "LayerTile", image: Image.Image) -> Image.Image:
        """Apply the tile's flip flags to ``image``."""


class OrthogonalGeometry(GeometryEngine):
    """Geometry for orthogonal (top-down grid) maps.

    ``legacy_cell_scale`` reproduces the historic cell transform, which
    scales every cell by ``((x+1)*tile_width, (y+1)*tile_height)`` after the
    translation. It exists only for byte-compatible output with renders made
    by that implementation.
    """

    def __init__(self, tiled_map: "TiledMap", legacy_cell_scale: bool = False):
        super().__init__(tiled_map)
        self.legacy_cell_scale = legacy_cell_scale
        if legacy_cell_scale:
            self.logger.warning(
                "Legacy cell scaling enabled, tiles will be scaled by grid position"
            )

    def final_size(self) -> tuple[int, int]:
        return (
            self.map.width * self.map.tile_width,
            self.map.height * self.map.tile_height,
        )

    def cell_transform(self, x: int, y: int) -> Affine:
        transform = Affine().translate(
            float(x * self.map.tile_width), float(y * self.map.tile_height)
        )
        if self.legacy_cell_scale:
            transform = transform.scale(
                float((x + 1) * self.map.tile_width),
                float((y + 1) * self.map.tile_height),
            )
        return transform

    def orient_tile(self, tile: "LayerTile", image: Image.Image) -> Image.Image:
        """Apply diagonal, horizontal and vertical flips in that order."""
        oriented = image
        if tile.diagonal_flip:
            oriented = oriented.transpose(Image.Transpose.ROTATE_270).transpose(
                Image.Transpose.FLIP_LEFT_RIGHT
            )
        if tile.horizontal_flip:
            oriented = oriented.transpose(Image.Transpose.FLIP_LEFT_RIGHT)
        if tile.vertical_flip:
            oriented = oriented.transpose(Image.Transpose.FLIP_TOP_BOTTOM)
        return oriented


def create_geometry(tiled_map: "TiledMap", legacy_cell_scale: bool = False) -> GeometryEngine:
    """Return the geometry engine for the map's orientation.

    Raises:
        UnsupportedOrientationError: For any orientation but orthogonal
    """
    from ..maps.models import Orientation

    if tiled_map.orientation == Orientation.ORTHOGONAL:
        return OrthogonalGeometry(tiled_map, legacy_cell_scale=legacy_cell_scale)
    orientation = getattr(tiled_map.orientation, "value", tiled_map.orientation)
    raise UnsupportedOrientationError(str(orientation))
