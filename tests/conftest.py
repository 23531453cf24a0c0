"""Shared test fixtures."""

import json
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from tiledrender.render.renderer import load_image
from tiledrender.types import Layer, LayerTile, Map, Tileset, TilesetImage, TilesetTile

TILE_SIZE = 4

SHEET_COLORS = [
    (255, 0, 0, 255),
    (0, 255, 0, 255),
    (0, 0, 255, 255),
    (255, 255, 0, 255),
]


def marker_array(size: int = TILE_SIZE) -> np.ndarray:
    """RGBA array where every pixel encodes its own (x, y) position."""
    arr = np.zeros((size, size, 4), dtype=np.uint8)
    for y in range(size):
        for x in range(size):
            arr[y, x] = (x * 60, y * 60, 100, 255)
    return arr


class CountingLoader:
    """Image loader that records every path it decodes."""

    def __init__(self):
        self.calls: list[Path] = []

    def __call__(self, path):
        self.calls.append(Path(path))
        return load_image(path)


@pytest.fixture
def counting_loader():
    return CountingLoader()


@pytest.fixture
def sheet_tileset(tmp_path):
    """2x2 sprite sheet of solid red, green, blue and yellow tiles."""
    sheet = Image.new("RGBA", (TILE_SIZE * 2, TILE_SIZE * 2))
    for i, color in enumerate(SHEET_COLORS):
        x = (i % 2) * TILE_SIZE
        y = (i // 2) * TILE_SIZE
        sheet.paste(Image.new("RGBA", (TILE_SIZE, TILE_SIZE), color), (x, y))
    sheet.save(tmp_path / "sheet.png")

    return Tileset(
        name="sheet",
        first_gid=1,
        tile_width=TILE_SIZE,
        tile_height=TILE_SIZE,
        tile_count=4,
        columns=2,
        image=TilesetImage("sheet.png", TILE_SIZE * 2, TILE_SIZE * 2),
        source_dir=tmp_path,
    )


@pytest.fixture
def marker_tileset(tmp_path):
    """Single-tile sheet with a position-encoding pattern, for flip checks."""
    Image.fromarray(marker_array(), "RGBA").save(tmp_path / "marker.png")

    return Tileset(
        name="marker",
        first_gid=10,
        tile_width=TILE_SIZE,
        tile_height=TILE_SIZE,
        tile_count=1,
        columns=1,
        image=TilesetImage("marker.png", TILE_SIZE, TILE_SIZE),
        source_dir=tmp_path,
    )


@pytest.fixture
def collection_tileset(tmp_path):
    """Image-collection tileset with one file per tile."""
    images_dir = tmp_path / "tiles"
    images_dir.mkdir()
    Image.new("RGBA", (TILE_SIZE, TILE_SIZE), (10, 20, 30, 255)).save(
        images_dir / "a.png"
    )
    Image.new("RGBA", (TILE_SIZE, TILE_SIZE), (200, 100, 50, 255)).save(
        images_dir / "b.png"
    )
    # Larger than a map cell
    Image.new("RGBA", (TILE_SIZE * 2, TILE_SIZE * 2), (90, 90, 90, 255)).save(
        images_dir / "big.png"
    )

    return Tileset(
        name="collection",
        first_gid=20,
        tile_width=TILE_SIZE,
        tile_height=TILE_SIZE,
        tile_count=3,
        tiles=[
            TilesetTile(0, TilesetImage("tiles/a.png")),
            TilesetTile(1, TilesetImage("tiles/b.png")),
            TilesetTile(2, TilesetImage("tiles/big.png")),
        ],
        source_dir=tmp_path,
    )


@pytest.fixture
def make_map():
    """Build a map from per-layer grids of tile specs.

    Each cell is None (empty), a (tileset, local_id) pair, or a
    (tileset, local_id, flags) triple where flags is a string of "h", "v", "d".
    """

    def _make(grids, orientation="orthogonal", render_order="right-down", **layer_kw):
        height = len(grids[0])
        width = len(grids[0][0])
        layers = []
        tilesets = []

        for i, grid in enumerate(grids):
            tiles = []
            for row in grid:
                for cell in row:
                    if cell is None:
                        tiles.append(LayerTile.empty())
                        continue
                    tileset, tile_id = cell[0], cell[1]
                    flags = cell[2] if len(cell) > 2 else ""
                    if tileset not in tilesets:
                        tilesets.append(tileset)
                    tiles.append(
                        LayerTile(
                            id=tile_id,
                            tileset=tileset,
                            horizontal_flip="h" in flags,
                            vertical_flip="v" in flags,
                            diagonal_flip="d" in flags,
                        )
                    )
            opts = {k: v[i] for k, v in layer_kw.items()}
            layers.append(Layer(name=f"layer{i}", tiles=tiles, **opts))

        return Map(
            width=width,
            height=height,
            tile_width=TILE_SIZE,
            tile_height=TILE_SIZE,
            orientation=orientation,
            render_order=render_order,
            tilesets=tilesets,
            layers=layers,
        )

    return _make


@pytest.fixture
def tmj_file(tmp_path, sheet_tileset):
    """A 3x2 Tiled JSON map with two tile layers using the sprite sheet."""
    data = {
        "width": 3,
        "height": 2,
        "tilewidth": TILE_SIZE,
        "tileheight": TILE_SIZE,
        "orientation": "orthogonal",
        "renderorder": "right-down",
        "infinite": False,
        "tilesets": [
            {
                "firstgid": 1,
                "name": "sheet",
                "image": "sheet.png",
                "imagewidth": TILE_SIZE * 2,
                "imageheight": TILE_SIZE * 2,
                "tilewidth": TILE_SIZE,
                "tileheight": TILE_SIZE,
                "tilecount": 4,
                "columns": 2,
            }
        ],
        "layers": [
            {"type": "tilelayer", "name": "ground", "data": [1, 1, 1, 2, 2, 2]},
            {"type": "tilelayer", "name": "top", "data": [0, 3, 0, 0, 0, 4]},
            {
                "type": "tilelayer",
                "name": "hidden",
                "visible": False,
                "data": [4, 4, 4, 4, 4, 4],
            },
        ],
    }
    path = tmp_path / "map.tmj"
    path.write_text(json.dumps(data))
    return path
