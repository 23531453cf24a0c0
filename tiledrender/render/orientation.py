"""Orientation engines mapping map grid coordinates to pixels."""

import logging
from abc import ABC, abstractmethod

from PIL import Image

from ..errors import UnsupportedOrientationError
from ..types import ORIENTATION_ORTHOGONAL, LayerTile, Map

logger = logging.getLogger(__name__)


class RendererEngine(ABC):
    """Interface for orientation-specific rendering engines."""

    @abstractmethod
    def init(self, tilemap: Map) -> None:
        """Set up the engine from map metadata. Must run before other calls."""

    @abstractmethod
    def get_final_image_size(self) -> tuple[int, int]:
        """Get the (width, height) in pixels of the fully rendered map."""

    @abstractmethod
    def rotate_tile_image(self, tile: LayerTile, image: Image.Image) -> Image.Image:
        """Apply the tile's flip flags, returning a new image."""

    @abstractmethod
    def get_tile_position(self, x: int, y: int) -> tuple[int, int, int, int]:
        """Get the destination (left, top, right, bottom) box of a grid cell."""


class OrthogonalRendererEngine(RendererEngine):
    """Engine for axis-aligned rectangular grids."""

    def __init__(self):
        self.tilemap = None

    def init(self, tilemap: Map) -> None:
        self.tilemap = tilemap

    def get_final_image_size(self) -> tuple[int, int]:
        return (
            self.tilemap.width * self.tilemap.tile_width,
            self.tilemap.height * self.tilemap.tile_height,
        )

    def rotate_tile_image(self, tile: LayerTile, image: Image.Image) -> Image.Image:
        # Tiled applies the diagonal flip first, then horizontal, then vertical
        result = image
        if tile.diagonal_flip:
            result = result.transpose(Image.Transpose.TRANSPOSE)
        if tile.horizontal_flip:
            result = result.transpose(Image.Transpose.FLIP_LEFT_RIGHT)
        if tile.vertical_flip:
            result = result.transpose(Image.Transpose.FLIP_TOP_BOTTOM)
        return result

    def get_tile_position(self, x: int, y: int) -> tuple[int, int, int, int]:
        x_px = x * self.tilemap.tile_width
        y_px = y * self.tilemap.tile_height
        return (
            x_px,
            y_px,
            x_px + self.tilemap.tile_width,
            y_px + self.tilemap.tile_height,
        )


ENGINES: dict[str, type[RendererEngine]] = {
    ORIENTATION_ORTHOGONAL: OrthogonalRendererEngine,
}


def create_engine(tilemap: Map) -> RendererEngine:
    """Create and initialize the engine for the map's orientation.

    Raises:
        UnsupportedOrientationError: If no engine handles the orientation
    """
    engine_cls = ENGINES.get(tilemap.orientation)
    if engine_cls is None:
        raise UnsupportedOrientationError(tilemap.orientation)

    engine = engine_cls()
    engine.init(tilemap)
    logger.debug(f"Using {engine_cls.__name__} for {tilemap.orientation} map")
    return engine
