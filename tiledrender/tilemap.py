"""Tiled map parsing and loading."""

import base64
import gzip
import json
import logging
import struct
import zlib
from pathlib import Path
from typing import Union

import pytmx

from .types import (
    FLIPPED_DIAGONALLY_FLAG,
    FLIPPED_HORIZONTALLY_FLAG,
    FLIPPED_VERTICALLY_FLAG,
    GID_MASK,
    Layer,
    LayerTile,
    Map,
    Tileset,
    TilesetImage,
    TilesetTile,
)

logger = logging.getLogger(__name__)


def load_tilemap(path: Union[str, Path]) -> Map:
    """Load a map saved by Tiled, as JSON (.tmj/.json) or XML (.tmx).

    Tileset and image paths are resolved relative to the map file.
    """
    path = Path(path)

    if path.suffix.lower() == ".tmx":
        return load_tmx(path)

    with open(path, "r") as f:
        data = json.load(f)

    return parse_tilemap(data, base_dir=path.parent)


def load_tmx(path: Union[str, Path]) -> Map:
    """Load a TMX map through pytmx without decoding any images."""
    path = Path(path)
    tmx = pytmx.TiledMap(str(path))

    if _is_true(getattr(tmx, "infinite", False)):
        raise ValueError("Infinite maps are not supported")

    width = int(tmx.width)
    height = int(tmx.height)

    tilesets = []
    for ts in tmx.tilesets:
        image = None
        tile_count = int(getattr(ts, "tilecount", 0) or 0)
        if ts.source:
            image = TilesetImage(
                source=ts.source,
                width=int(ts.width or 0),
                height=int(ts.height or 0),
            )
            if not tile_count and ts.tilewidth and ts.tileheight:
                tile_count = (image.width // int(ts.tilewidth)) * (
                    image.height // int(ts.tileheight)
                )
        tilesets.append(
            Tileset(
                name=ts.name or "",
                first_gid=int(ts.firstgid),
                tile_width=int(ts.tilewidth),
                tile_height=int(ts.tileheight),
                tile_count=tile_count,
                columns=int(getattr(ts, "columns", 0) or 0),
                margin=int(ts.margin or 0),
                spacing=int(ts.spacing or 0),
                image=image,
                source_dir=path.parent,
            )
        )
    tilesets.sort(key=lambda ts: ts.first_gid)

    # pytmx renumbers every (gid, flags) pair; rebuild Tiled's raw GIDs
    raw_gids = {0: 0}
    for (tiled_gid, flags), (gid, _) in tmx.imagemap.items():
        raw_gid = tiled_gid
        if flags.flipped_horizontally:
            raw_gid |= FLIPPED_HORIZONTALLY_FLAG
        if flags.flipped_vertically:
            raw_gid |= FLIPPED_VERTICALLY_FLAG
        if flags.flipped_diagonally:
            raw_gid |= FLIPPED_DIAGONALLY_FLAG
        raw_gids[gid] = raw_gid

    # Image-collection tiles carry their file in the tile properties
    for gid, props in tmx.tile_properties.items():
        source = props.get("source")
        if not source or gid not in tmx.tiledgidmap:
            continue
        tile = _resolve_tile(tmx.tiledgidmap[gid], tilesets)
        if tile.tileset.get_tile(tile.id) is None:
            tile.tileset.tiles.append(TilesetTile(id=tile.id, image=TilesetImage(source)))

    layers = []
    for tmx_layer in tmx.layers:
        if not isinstance(tmx_layer, pytmx.TiledTileLayer):
            continue
        tiles = [LayerTile.empty() for _ in range(width * height)]
        for x, y, gid in tmx_layer:
            tiles[x + y * width] = _resolve_tile(raw_gids.get(gid, 0), tilesets)
        layers.append(
            Layer(
                name=tmx_layer.name or "",
                tiles=tiles,
                opacity=float(getattr(tmx_layer, "opacity", 1.0)),
                visible=_is_true(getattr(tmx_layer, "visible", True)),
            )
        )

    logger.info(
        f"Loaded {width}x{height} TMX map with {len(tilesets)} tilesets "
        f"and {len(layers)} tile layers"
    )

    return Map(
        width=width,
        height=height,
        tile_width=int(tmx.tilewidth),
        tile_height=int(tmx.tileheight),
        orientation=tmx.orientation,
        render_order=getattr(tmx, "renderorder", "") or "",
        tilesets=tilesets,
        layers=layers,
    )


def decode_gid(raw_gid: int) -> tuple[int, bool, bool, bool]:
    """Split a raw GID into (gid, horizontal, vertical, diagonal) flags."""
    return (
        raw_gid & GID_MASK,
        bool(raw_gid & FLIPPED_HORIZONTALLY_FLAG),
        bool(raw_gid & FLIPPED_VERTICALLY_FLAG),
        bool(raw_gid & FLIPPED_DIAGONALLY_FLAG),
    )


def parse_tilemap(data: dict, base_dir: Union[str, Path] = ".") -> Map:
    """Parse a map from Tiled JSON dictionary data."""
    base_dir = Path(base_dir)

    if data.get("infinite"):
        raise ValueError("Infinite maps are not supported")

    try:
        width = data["width"]
        height = data["height"]
        tile_width = data["tilewidth"]
        tile_height = data["tileheight"]
    except KeyError as e:
        raise ValueError(f"Map is missing required attribute {e}")

    tilesets = [_parse_tileset(ts, base_dir) for ts in data.get("tilesets", [])]
    tilesets.sort(key=lambda ts: ts.first_gid)

    layers: list[Layer] = []
    _collect_layers(data.get("layers", []), tilesets, width * height, layers)

    logger.info(
        f"Loaded {width}x{height} map with {len(tilesets)} tilesets "
        f"and {len(layers)} tile layers"
    )

    return Map(
        width=width,
        height=height,
        tile_width=tile_width,
        tile_height=tile_height,
        orientation=data.get("orientation", "orthogonal"),
        render_order=data.get("renderorder", ""),
        tilesets=tilesets,
        layers=layers,
    )


def _parse_tileset(data: dict, base_dir: Path) -> Tileset:
    first_gid = data.get("firstgid", 1)

    # External tilesets keep their own directory for image lookups
    if "source" in data:
        source_path = base_dir / data["source"]
        if source_path.suffix.lower() == ".tsx":
            raise ValueError(f"XML tileset {source_path} is not supported")
        with open(source_path, "r") as f:
            data = json.load(f)
        base_dir = source_path.parent

    image = None
    if "image" in data:
        image = TilesetImage(
            source=data["image"],
            width=data.get("imagewidth", 0),
            height=data.get("imageheight", 0),
        )

    tiles = []
    for entry in data.get("tiles", []):
        tile_image = None
        if "image" in entry:
            tile_image = TilesetImage(
                source=entry["image"],
                width=entry.get("imagewidth", 0),
                height=entry.get("imageheight", 0),
            )
        tiles.append(TilesetTile(id=entry["id"], image=tile_image))

    return Tileset(
        name=data.get("name", ""),
        first_gid=first_gid,
        tile_width=data.get("tilewidth", 0),
        tile_height=data.get("tileheight", 0),
        tile_count=data.get("tilecount", len(tiles)),
        columns=data.get("columns", 0),
        margin=data.get("margin", 0),
        spacing=data.get("spacing", 0),
        image=image,
        tiles=tiles,
        source_dir=base_dir,
    )


def _collect_layers(
    layer_data: list,
    tilesets: list[Tileset],
    tile_count: int,
    layers: list[Layer],
    opacity: float = 1.0,
    visible: bool = True,
):
    """Flatten tile layers, including those nested in groups, in draw order."""
    for data in layer_data:
        layer_type = data.get("type")
        layer_opacity = opacity * data.get("opacity", 1.0)
        layer_visible = visible and data.get("visible", True)

        if layer_type == "group":
            _collect_layers(
                data.get("layers", []),
                tilesets,
                tile_count,
                layers,
                opacity=layer_opacity,
                visible=layer_visible,
            )
        elif layer_type == "tilelayer":
            gids = _decode_layer_data(data)
            if len(gids) != tile_count:
                raise ValueError(
                    f"Layer {data.get('name')!r}: expected {tile_count} tiles, "
                    f"got {len(gids)}"
                )
            layers.append(
                Layer(
                    name=data.get("name", ""),
                    tiles=[_resolve_tile(gid, tilesets) for gid in gids],
                    opacity=layer_opacity,
                    visible=layer_visible,
                )
            )
        else:
            logger.debug(f"Skipping {layer_type} layer {data.get('name')!r}")


def _decode_layer_data(data: dict) -> list[int]:
    """Decode tile layer data into a list of raw GIDs."""
    raw = data.get("data")
    if raw is None:
        raise ValueError(f"Layer {data.get('name')!r} has no tile data")

    if data.get("encoding", "csv") != "base64":
        return list(raw)

    payload = base64.b64decode(raw)
    compression = data.get("compression", "")
    if compression == "zlib":
        payload = zlib.decompress(payload)
    elif compression == "gzip":
        payload = gzip.decompress(payload)
    elif compression:
        raise ValueError(f"Unsupported layer compression: {compression}")

    return list(struct.unpack(f"<{len(payload) // 4}I", payload))


def _resolve_tile(raw_gid: int, tilesets: list[Tileset]) -> LayerTile:
    gid, horizontal, vertical, diagonal = decode_gid(raw_gid)
    if gid == 0:
        return LayerTile.empty()

    owner = None
    for tileset in tilesets:
        if tileset.first_gid <= gid:
            owner = tileset
        else:
            break

    if owner is None:
        raise ValueError(f"No tileset found for GID {gid}")

    return LayerTile(
        id=gid - owner.first_gid,
        tileset=owner,
        horizontal_flip=horizontal,
        vertical_flip=vertical,
        diagonal_flip=diagonal,
    )


def _is_true(value) -> bool:
    """Interpret a TMX boolean attribute, which may still be a string."""
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true")
    return bool(value)
