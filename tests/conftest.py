"""Shared fixtures: tiny tilesets written with Pillow into tmp_path."""

import logging
import logging.handlers
from pathlib import Path
from typing import Any, Callable, Iterator

import orjson
import pytest
from PIL import Image

from tiled_render.maps.models import (
    Layer,
    LayerTile,
    TiledMap,
    Tileset,
    TilesetImage,
    TilesetTile,
)

TILE = 4


def make_tile(index: int, size: int = TILE) -> Image.Image:
    """Return an opaque tile whose every pixel is unique within the tile."""
    image = Image.new("RGBA", (size, size))
    for y in range(size):
        for x in range(size):
            image.putpixel((x, y), (x * 60, y * 60, index * 60 + 10, 255))
    return image


@pytest.fixture
def sheet_tileset(tmp_path: Path) -> Tileset:
    """2x2 grid of 4x4 tiles in one shared image, GIDs 1..4."""
    sheet = Image.new("RGBA", (2 * TILE, 2 * TILE))
    for index in range(4):
        sheet.paste(make_tile(index), ((index % 2) * TILE, (index // 2) * TILE))
    sheet.save(tmp_path / "sheet.png")

    return Tileset(
        name="sheet",
        first_gid=1,
        tile_count=4,
        tile_width=TILE,
        tile_height=TILE,
        columns=2,
        image=TilesetImage(source="sheet.png", width=2 * TILE, height=2 * TILE),
        base_dir=tmp_path.as_posix(),
    )


@pytest.fixture
def collection_tileset(tmp_path: Path) -> Tileset:
    """Image collection of three tiles, GIDs 10..12."""
    tiles = {}
    for index in range(3):
        make_tile(index + 4).save(tmp_path / f"tile{index}.png")
        tiles[index] = TilesetTile(
            id=index, image=TilesetImage(source=f"tile{index}.png", width=TILE, height=TILE)
        )

    return Tileset(
        name="collection",
        first_gid=10,
        tile_count=3,
        tile_width=TILE,
        tile_height=TILE,
        tiles=tiles,
        base_dir=tmp_path.as_posix(),
    )


@pytest.fixture
def restore_logging() -> Iterator[None]:
    """Drop the handlers setup_logging() installed on the root logger."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in root.handlers[:]:
        if type(handler) in (logging.StreamHandler, logging.handlers.RotatingFileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


@pytest.fixture
def map_factory(sheet_tileset: Tileset, collection_tileset: Tileset) -> Callable[..., TiledMap]:
    """Build a 2x2 orthogonal map with both tilesets."""

    def factory(**kwargs) -> TiledMap:
        values = dict(
            width=2,
            height=2,
            tile_width=TILE,
            tile_height=TILE,
            tilesets=[sheet_tileset, collection_tileset],
        )
        values.update(kwargs)
        return TiledMap(**values)

    return factory


def sheet_tileset_json(first_gid: int = 1) -> dict[str, Any]:
    """Tiled JSON for the ``sheet_tileset`` fixture, embedded in a map."""
    return {
        "firstgid": first_gid,
        "name": "sheet",
        "image": "sheet.png",
        "imagewidth": 2 * TILE,
        "imageheight": 2 * TILE,
        "tilewidth": TILE,
        "tileheight": TILE,
        "tilecount": 4,
        "columns": 2,
    }


def map_json(**overrides: Any) -> dict[str, Any]:
    """Tiled JSON of a 2x2 map with one layer showing the whole sheet."""
    data: dict[str, Any] = {
        "type": "map",
        "orientation": "orthogonal",
        "renderorder": "right-down",
        "width": 2,
        "height": 2,
        "tilewidth": TILE,
        "tileheight": TILE,
        "infinite": False,
        "tilesets": [sheet_tileset_json()],
        "layers": [
            {"type": "tilelayer", "name": "ground", "data": [1, 2, 3, 4], "opacity": 1}
        ],
    }
    data.update(overrides)
    return data


def write_json(path: Path, data: dict[str, Any]) -> Path:
    path.write_bytes(orjson.dumps(data))
    return path


def layer_from_gids(tiled_map: TiledMap, gids: list[int], **kwargs) -> Layer:
    tiles: list[LayerTile] = [tiled_map.tile_gid_to_tile(gid) for gid in gids]
    return Layer(tiles=tiles, **kwargs)
