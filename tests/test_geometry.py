"""Tests for affine transforms, geometry engines and canvas blits."""

import math

import pytest
from PIL import Image

from tiled_render.errors import UnsupportedOrientationError
from tiled_render.maps.models import LayerTile, TiledMap
from tiled_render.render.canvas import apply_opacity, draw_image, new_canvas
from tiled_render.render.geometry import Affine, OrthogonalGeometry, create_geometry

from conftest import make_tile


def orient_by_hand(image: Image.Image, d: bool, h: bool, v: bool) -> dict:
    """Apply flips pixel by pixel: transpose, then mirror x, then mirror y."""
    n = image.width
    pixels = {(x, y): image.getpixel((x, y)) for y in range(n) for x in range(n)}
    if d:
        pixels = {(x, y): pixels[(y, x)] for (x, y) in pixels}
    if h:
        pixels = {(x, y): pixels[(n - 1 - x, y)] for (x, y) in pixels}
    if v:
        pixels = {(x, y): pixels[(x, n - 1 - y)] for (x, y) in pixels}
    return pixels


def pixel_map(image: Image.Image) -> dict:
    return {(x, y): image.getpixel((x, y)) for y in range(image.height) for x in range(image.width)}


class TestAffine:
    """Test transform composition."""

    def test_identity(self) -> None:
        """The default transform leaves points alone."""
        assert Affine().apply(3, 4) == (3, 4)
        assert Affine().is_translation()

    def test_operations_apply_in_call_order(self) -> None:
        """Later builder calls apply after earlier ones."""
        moved_then_scaled = Affine().translate(4, 0).scale(2, 2)
        scaled_then_moved = Affine().scale(2, 2).translate(4, 0)

        assert moved_then_scaled.apply(1, 1) == (10, 2)
        assert scaled_then_moved.apply(1, 1) == (6, 2)

    def test_rotation_is_clockwise_on_screen(self) -> None:
        """A quarter turn moves +x onto +y."""
        x, y = Affine().rotate(math.pi / 2).apply(1, 0)
        assert x == pytest.approx(0, abs=1e-9)
        assert y == pytest.approx(1)

    def test_invert(self) -> None:
        """The inverse undoes the transform."""
        transform = Affine().scale(2, 3).rotate(0.3).translate(5, -7)
        x, y = transform.invert().apply(*transform.apply(1.5, -2.0))
        assert x == pytest.approx(1.5)
        assert y == pytest.approx(-2.0)

    def test_singular_invert_raises(self) -> None:
        """Collapsed transforms cannot be inverted."""
        with pytest.raises(ValueError):
            Affine().scale(0, 1).invert()


class TestOrthogonalGeometry:
    """Test the orthogonal geometry engine."""

    def test_final_size(self) -> None:
        """Canvas size is the map size in tiles times the tile size."""
        tiled_map = TiledMap(width=10, height=5, tile_width=32, tile_height=16)
        assert OrthogonalGeometry(tiled_map).final_size() == (320, 80)

    def test_cell_transform_translates(self) -> None:
        """Each cell moves to its pixel origin without scaling."""
        tiled_map = TiledMap(width=4, height=4, tile_width=16, tile_height=8)
        transform = OrthogonalGeometry(tiled_map).cell_transform(2, 3)
        assert transform == Affine(tx=32.0, ty=24.0)

    def test_legacy_cell_scale(self) -> None:
        """The legacy mode scales the translated cell by its grid position."""
        tiled_map = TiledMap(width=4, height=4, tile_width=16, tile_height=8)
        transform = OrthogonalGeometry(tiled_map, legacy_cell_scale=True).cell_transform(1, 0)
        assert transform.apply(0, 0) == (16.0 * 32.0, 0.0)
        assert transform.a == 32.0
        assert transform.d == 8.0

    @pytest.mark.parametrize(
        "flags",
        [
            (False, False, False),
            (True, False, False),
            (False, True, False),
            (False, False, True),
            (True, True, False),
            (True, False, True),
            (False, True, True),
            (True, True, True),
        ],
    )
    def test_orient_tile(self, flags) -> None:
        """Flip flags apply diagonal first, then horizontal, then vertical."""
        d, h, v = flags
        image = make_tile(0)
        tile = LayerTile(id=0, horizontal_flip=h, vertical_flip=v, diagonal_flip=d)

        oriented = OrthogonalGeometry(TiledMap()).orient_tile(tile, image)
        assert pixel_map(oriented) == orient_by_hand(image, d, h, v)

    def test_combined_flip_differs_from_single(self) -> None:
        """Diagonal plus horizontal is a rotation, unlike either flip alone."""
        image = make_tile(0)
        engine = OrthogonalGeometry(TiledMap())

        both = engine.orient_tile(LayerTile(horizontal_flip=True, diagonal_flip=True), image)
        diagonal = engine.orient_tile(LayerTile(diagonal_flip=True), image)
        horizontal = engine.orient_tile(LayerTile(horizontal_flip=True), image)

        assert pixel_map(both) != pixel_map(diagonal)
        assert pixel_map(both) != pixel_map(horizontal)
        # clockwise quarter turn: top-left pixel ends up top-right
        assert both.getpixel((3, 0)) == image.getpixel((0, 0))

    @pytest.mark.parametrize("orientation", ["isometric", "staggered", "hexagonal"])
    def test_other_orientations_rejected(self, orientation: str) -> None:
        """Only orthogonal maps have a geometry engine."""
        with pytest.raises(UnsupportedOrientationError) as excinfo:
            create_geometry(TiledMap(orientation=orientation))
        assert excinfo.value.orientation == orientation


class TestCanvas:
    """Test drawing primitives."""

    def test_opacity_scales_alpha_only(self) -> None:
        """RGB stays, alpha is multiplied."""
        image = Image.new("RGBA", (1, 1), (200, 100, 50, 255))
        assert apply_opacity(image, 0.5).getpixel((0, 0)) == (200, 100, 50, 128)

    def test_translation_blit(self) -> None:
        """Integer translations paste the tile unchanged."""
        canvas = new_canvas(8, 8)
        tile = make_tile(1)
        draw_image(canvas, tile, Affine().translate(4, 4))

        assert canvas.getpixel((4, 4)) == tile.getpixel((0, 0))
        assert canvas.getpixel((7, 7)) == tile.getpixel((3, 3))
        assert canvas.getpixel((0, 0)) == (0, 0, 0, 0)

    def test_scaled_blit(self) -> None:
        """Scaled tiles are resampled with nearest neighbour."""
        canvas = new_canvas(8, 8)
        tile = make_tile(1)
        draw_image(canvas, tile, Affine().scale(2, 2))

        assert canvas.getpixel((0, 0)) == tile.getpixel((0, 0))
        assert canvas.getpixel((1, 1)) == tile.getpixel((0, 0))
        assert canvas.getpixel((7, 7)) == tile.getpixel((3, 3))

    def test_blit_outside_canvas_is_clipped(self) -> None:
        """Drawing fully off the canvas changes nothing."""
        canvas = new_canvas(4, 4)
        draw_image(canvas, make_tile(0), Affine().translate(-10, -10))
        assert canvas.getbbox() is None
