"""Type definitions for the Tiled map renderer."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

# Tiled stores per-cell transforms in the high bits of each GID
FLIPPED_HORIZONTALLY_FLAG = 0x80000000
FLIPPED_VERTICALLY_FLAG = 0x40000000
FLIPPED_DIAGONALLY_FLAG = 0x20000000
ROTATED_HEXAGONAL_120_FLAG = 0x10000000
GID_MASK = 0x0FFFFFFF

ORIENTATION_ORTHOGONAL = "orthogonal"
RENDER_ORDER_RIGHT_DOWN = "right-down"


@dataclass
class TilesetImage:
    """Reference to a source image file used by a tileset or tile."""

    source: str
    width: int = 0
    height: int = 0


@dataclass
class TilesetTile:
    """A single tile entry of an image-collection tileset."""

    id: int
    image: Optional[TilesetImage] = None


@dataclass
class Tileset:
    """A tileset, either one shared sprite sheet or a collection of images."""

    name: str
    first_gid: int
    tile_width: int
    tile_height: int
    tile_count: int = 0
    columns: int = 0
    margin: int = 0
    spacing: int = 0
    image: Optional[TilesetImage] = None
    tiles: list[TilesetTile] = field(default_factory=list)
    source_dir: Path = field(default_factory=Path)

    def get_file_full_path(self, source: str) -> Path:
        """Resolve an image source relative to the tileset's directory."""
        path = Path(source)
        if path.is_absolute():
            return path
        return Path(self.source_dir) / path

    def get_tile_rect(
        self, tile_id: int, image_width: Optional[int] = None
    ) -> tuple[int, int, int, int]:
        """Get the (left, top, right, bottom) box of a tile in the sheet.

        Args:
            tile_id: Local tile ID
            image_width: Width of the decoded sheet, used when neither
                columns nor the image width are declared
        """
        columns = self.columns
        if columns == 0:
            sheet_width = (self.image.width if self.image else 0) or image_width or 0
            step = self.tile_width + self.spacing
            columns = sheet_width // step if step > 0 else 0
        if columns <= 0:
            raise ValueError(
                f"Tileset {self.name!r}: cannot determine the number of columns"
            )

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

    def get_tile(self, tile_id: int) -> Optional[TilesetTile]:
        """Get the collection entry for a local tile ID, if any."""
        for tile in self.tiles:
            if tile.id == tile_id:
                return tile
        return None


@dataclass
class LayerTile:
    """A map cell: a tile reference plus its transform flags."""

    id: int = 0
    tileset: Optional[Tileset] = None
    horizontal_flip: bool = False
    vertical_flip: bool = False
    diagonal_flip: bool = False
    nil: bool = False

    @classmethod
    def empty(cls) -> "LayerTile":
        return cls(nil=True)

    def is_nil(self) -> bool:
        return self.nil or self.tileset is None

    @property
    def gid(self) -> int:
        """Global tile identifier used as the tile cache key."""
        return self.tileset.first_gid + self.id


@dataclass
class Layer:
    """A tile layer; tiles are stored row-major."""

    name: str
    tiles: list[LayerTile]
    opacity: float = 1.0
    visible: bool = True


@dataclass
class Map:
    """An already-loaded Tiled map."""

    width: int
    height: int
    tile_width: int
    tile_height: int
    orientation: str = ORIENTATION_ORTHOGONAL
    render_order: str = RENDER_ORDER_RIGHT_DOWN
    tilesets: list[Tileset] = field(default_factory=list)
    layers: list[Layer] = field(default_factory=list)

    def __post_init__(self):
        """Validate layer sizes."""
        expected = self.width * self.height
        for i, layer in enumerate(self.layers):
            if len(layer.tiles) != expected:
                raise ValueError(
                    f"Layer {i} ({layer.name}): expected {expected} tiles, "
                    f"got {len(layer.tiles)}"
                )

    def get_tile(self, layer_index: int, x: int, y: int) -> Optional[LayerTile]:
        """Get the cell at a grid position, or None if out of bounds."""
        if 0 <= x < self.width and 0 <= y < self.height:
            return self.layers[layer_index].tiles[x + y * self.width]
        return None
