"""Loading Tiled maps from JSON files.

Handles deserialization of Tiled JSON maps (``.tmj``/``.json``) and their
external tilesets (``.tsj``/``.json``) into the renderer's map models.
"""

import base64
import gzip
import logging
import struct
import zlib
from importlib.resources.abc import Traversable
from pathlib import Path, PurePosixPath
from typing import Any, Optional, cast

import orjson

from .models import (
    Group,
    Layer,
    LayerTile,
    ObjectGroup,
    TiledMap,
    TiledObject,
    Tileset,
    TilesetImage,
    TilesetTile,
)


class MapFormatError(ValueError):
    """Raised when a map or tileset file does not have the expected structure."""
    pass


class MapLoader:
    """Loads Tiled JSON maps.

    Supports embedded and external tilesets, tile layers with plain array
    or base64 data (uncompressed, zlib or gzip), object groups and nested
    group layers. Infinite (chunked) maps are not supported.

    Args:
        root: Optional Traversable the map paths are relative to; the local
            file system is used when omitted
    """

    def __init__(self, root: Optional[Traversable] = None):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.root = root

    # === FILE ACCESS ===

    def _read_json(self, path: str) -> dict[str, Any]:
        parts = PurePosixPath(path).parts
        if self.root is None:
            raw = Path(*parts).read_bytes()
        else:
            resource = self.root
            for part in parts:
                if part != "/":
                    resource = resource.joinpath(part)
            if not resource.is_file():
                raise FileNotFoundError(f"Map file not found: {path}")
            raw = resource.read_bytes()

        try:
            data = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            raise MapFormatError(f"Failed to parse JSON from {path}: {e}") from e

        if not isinstance(data, dict):
            raise MapFormatError(f"Expected a JSON object in {path}")
        return cast(dict[str, Any], data)

    @staticmethod
    def _require(data: dict[str, Any], key: str, where: str) -> Any:
        if key not in data:
            raise MapFormatError(f"Missing '{key}' in {where}")
        return data[key]

    # === PUBLIC API ===

    def load(self, path: str | Path) -> TiledMap:
        """Load a map and its tilesets.

        Args:
            path: Map file path (relative to ``root`` when one is set)

        Returns:
            Loaded TiledMap instance

        Raises:
            FileNotFoundError: If the map or an external tileset is missing
            MapFormatError: If the JSON is invalid or not a supported map
            TileNotFoundError: If a layer references a GID no tileset owns
        """
        map_path = PurePosixPath(str(path).replace("\\", "/"))
        self.logger.info(f"Loading map from: {map_path}")

        data = self._read_json(str(map_path))
        if data.get("infinite"):
            raise MapFormatError(f"Infinite maps are not supported: {map_path}")

        base_dir = str(map_path.parent)
        tiled_map = TiledMap(
            orientation=str(data.get("orientation", "orthogonal")),
            width=int(self._require(data, "width", str(map_path))),
            height=int(self._require(data, "height", str(map_path))),
            tile_width=int(self._require(data, "tilewidth", str(map_path))),
            tile_height=int(self._require(data, "tileheight", str(map_path))),
            render_order=str(data.get("renderorder", "")),
        )

        for tileset_data in data.get("tilesets", []):
            tiled_map.tilesets.append(self._load_tileset(tileset_data, base_dir))

        for layer_data in data.get("layers", []):
            kind = layer_data.get("type")
            if kind == "tilelayer":
                tiled_map.layers.append(self._build_layer(tiled_map, layer_data))
            elif kind == "objectgroup":
                tiled_map.object_groups.append(self._build_object_group(layer_data))
            elif kind == "group":
                tiled_map.groups.append(self._build_group(tiled_map, layer_data))
            else:
                self.logger.debug(f"Skipping unsupported layer type '{kind}'")

        self.logger.info(
            f"Loaded map {tiled_map.width}x{tiled_map.height} with "
            f"{len(tiled_map.tilesets)} tileset(s), {len(tiled_map.layers)} layer(s), "
            f"{len(tiled_map.object_groups)} object group(s), {len(tiled_map.groups)} group(s)"
        )
        return tiled_map

    # === TILESETS ===

    def _load_tileset(self, data: dict[str, Any], base_dir: str) -> Tileset:
        first_gid = int(self._require(data, "firstgid", "tileset reference"))

        source = data.get("source")
        if source:
            if not str(source).endswith((".tsj", ".json")):
                raise MapFormatError(f"Only JSON tilesets are supported: {source}")
            tileset_path = PurePosixPath(base_dir) / str(source).replace("\\", "/")
            self.logger.debug(f"Loading external tileset: {tileset_path}")
            data = self._read_json(str(tileset_path))
            base_dir = str(tileset_path.parent)

        return self._build_tileset(data, first_gid, base_dir)

    def _build_tileset(self, data: dict[str, Any], first_gid: int, base_dir: str) -> Tileset:
        name = str(data.get("name", ""))
        where = f"tileset '{name}'"

        image = None
        if data.get("image"):
            image = TilesetImage(
                source=str(data["image"]),
                width=int(data.get("imagewidth", 0)),
                height=int(data.get("imageheight", 0)),
            )

        tiles: dict[int, TilesetTile] = {}
        for tile_data in data.get("tiles", []):
            tile_id = int(self._require(tile_data, "id", where))
            tile_image = None
            if tile_data.get("image"):
                tile_image = TilesetImage(
                    source=str(tile_data["image"]),
                    width=int(tile_data.get("imagewidth", 0)),
                    height=int(tile_data.get("imageheight", 0)),
                )
            tiles[tile_id] = TilesetTile(id=tile_id, image=tile_image)

        return Tileset(
            name=name,
            first_gid=first_gid,
            tile_count=int(self._require(data, "tilecount", where)),
            tile_width=int(self._require(data, "tilewidth", where)),
            tile_height=int(self._require(data, "tileheight", where)),
            spacing=int(data.get("spacing", 0)),
            margin=int(data.get("margin", 0)),
            columns=int(data.get("columns", 0)),
            image=image,
            tiles=tiles,
            base_dir="" if base_dir == "." else base_dir,
        )

    # === LAYERS ===

    def _decode_data(self, data: dict[str, Any], where: str) -> list[int]:
        """Return the raw GIDs of a tile layer."""
        if "chunks" in data:
            raise MapFormatError(f"Chunked layer data is not supported in {where}")

        raw = self._require(data, "data", where)
        if data.get("encoding", "csv") != "base64":
            return [int(gid) for gid in raw]

        try:
            payload = base64.b64decode(raw)
        except ValueError as e:
            raise MapFormatError(f"Invalid base64 data in {where}: {e}") from e

        compression = data.get("compression", "")
        try:
            if compression == "zlib":
                payload = zlib.decompress(payload)
            elif compression == "gzip":
                payload = gzip.decompress(payload)
            elif compression:
                raise MapFormatError(f"Unsupported compression '{compression}' in {where}")
        except (zlib.error, OSError) as e:
            raise MapFormatError(f"Cannot decompress data in {where}: {e}") from e

        if len(payload) % 4:
            raise MapFormatError(f"Truncated tile data in {where}")
        return list(struct.unpack(f"<{len(payload) // 4}I", payload))

    def _build_layer(self, tiled_map: TiledMap, data: dict[str, Any]) -> Layer:
        name = str(data.get("name", ""))
        where = f"layer '{name}'"
        gids = self._decode_data(data, where)
        if len(gids) != tiled_map.width * tiled_map.height:
            raise MapFormatError(
                f"{where} has {len(gids)} tiles, expected "
                f"{tiled_map.width * tiled_map.height}"
            )

        tiles: list[LayerTile] = [tiled_map.tile_gid_to_tile(gid) for gid in gids]
        return Layer(
            name=name,
            visible=bool(data.get("visible", True)),
            opacity=float(data.get("opacity", 1.0)),
            tiles=tiles,
        )

    def _build_object_group(self, data: dict[str, Any]) -> ObjectGroup:
        objects = [
            TiledObject(
                id=int(obj.get("id", 0)),
                name=str(obj.get("name", "")),
                gid=int(obj.get("gid", 0)),
                x=float(obj.get("x", 0.0)),
                y=float(obj.get("y", 0.0)),
                width=float(obj.get("width", 0.0)),
                height=float(obj.get("height", 0.0)),
                rotation=float(obj.get("rotation", 0.0)),
                visible=bool(obj.get("visible", True)),
            )
            for obj in data.get("objects", [])
        ]
        return ObjectGroup(
            name=str(data.get("name", "")),
            visible=bool(data.get("visible", True)),
            opacity=float(data.get("opacity", 1.0)),
            objects=objects,
        )

    def _build_group(self, tiled_map: TiledMap, data: dict[str, Any]) -> Group:
        group = Group(
            name=str(data.get("name", "")),
            visible=bool(data.get("visible", True)),
            opacity=float(data.get("opacity", 1.0)),
        )
        for child in data.get("layers", []):
            kind = child.get("type")
            if kind == "tilelayer":
                group.layers.append(self._build_layer(tiled_map, child))
            elif kind == "objectgroup":
                group.object_groups.append(self._build_object_group(child))
            elif kind == "group":
                group.groups.append(self._build_group(tiled_map, child))
            else:
                self.logger.debug(f"Skipping unsupported layer type '{kind}' in group")
        return group
