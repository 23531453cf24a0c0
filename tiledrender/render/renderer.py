"""Tile map renderer compositing tileset images onto a single canvas."""

import logging
from pathlib import Path
from typing import BinaryIO, Callable, Iterable, Optional, Union

import numpy as np
from PIL import Image

from ..config import GifOptions, JpegOptions
from ..errors import RenderError, UnsupportedRenderOrderError
from ..types import RENDER_ORDER_RIGHT_DOWN, Layer, LayerTile, Map
from .orientation import RendererEngine, create_engine
from .output import save_as_gif, save_as_jpeg, save_as_png

logger = logging.getLogger(__name__)

SUPPORTED_RENDER_ORDERS = ("", RENDER_ORDER_RIGHT_DOWN)

ImageLoader = Callable[[Path], Image.Image]


def load_image(path: Union[str, Path]) -> Image.Image:
    """Decode an image file into an RGBA image.

    Args:
        path: Path to the image file

    Returns:
        Fully loaded RGBA image, detached from the file
    """
    with open(path, "rb") as f:
        image = Image.open(f)
        image.load()
    return image.convert("RGBA")


class Renderer:
    """Renders map layers onto a shared RGBA canvas.

    Decoded tile bitmaps are cached by global tile ID for the lifetime of
    the renderer. Not thread-safe: use one renderer per thread.
    """

    def __init__(self, tilemap: Map, loader: Optional[ImageLoader] = None):
        """Initialize the renderer.

        Args:
            tilemap: The map to render
            loader: Callable decoding an image file path, defaults to load_image

        Raises:
            UnsupportedOrientationError: If the map orientation is not orthogonal
        """
        self.tilemap = tilemap
        self.loader = loader or load_image
        self.tile_cache: dict[int, Image.Image] = {}
        # first_gid of sprite-sheet tilesets already sliced into the cache
        self.primed_tilesets: set[int] = set()
        self.engine: RendererEngine = create_engine(tilemap)
        self.result: Image.Image = None
        self.clear()

        logger.info(
            f"Created renderer for {tilemap.width}x{tilemap.height} "
            f"{tilemap.orientation} map ({self.result.width}x{self.result.height} px)"
        )

    def _prime_tileset(self, tile: LayerTile):
        """Decode a tileset's source and cache the bitmap(s) for the tile."""
        tileset = tile.tileset

        if tileset.image is None:
            entry = tileset.get_tile(tile.id)
            if entry is None or entry.image is None:
                raise RenderError(
                    f"Tileset {tileset.name!r} has no image for tile {tile.id}"
                )
            path = tileset.get_file_full_path(entry.image.source)
            self.tile_cache[tile.gid] = self.loader(path)
            logger.debug(f"Cached tile {tile.gid} from {path}")
            return

        if tileset.first_gid in self.primed_tilesets:
            return

        path = tileset.get_file_full_path(tileset.image.source)
        sheet = self.loader(path)
        for i in range(tileset.tile_count):
            self.tile_cache[tileset.first_gid + i] = sheet.crop(
                tileset.get_tile_rect(i, image_width=sheet.width)
            )
        self.primed_tilesets.add(tileset.first_gid)
        logger.debug(
            f"Cached {tileset.tile_count} tiles of tileset {tileset.name!r} from {path}"
        )

    def get_tile_image(self, tile: LayerTile) -> Image.Image:
        """Get the transformed bitmap for a cell, decoding it on first use."""
        image = self.tile_cache.get(tile.gid)
        if image is None:
            self._prime_tileset(tile)
            image = self.tile_cache.get(tile.gid)
            if image is None:
                raise RenderError(
                    f"Tile {tile.id} is outside tileset {tile.tileset.name!r}"
                )

        return self.engine.rotate_tile_image(tile, image)

    def _get_layer(self, index: int) -> Layer:
        """Get a layer by index, rejecting negative indices."""
        if not 0 <= index < len(self.tilemap.layers):
            raise IndexError(f"Layer index {index} out of range")
        return self.tilemap.layers[index]

    def render_tile(self, layer: Layer, tile: LayerTile, x: int, y: int):
        """Composite one cell onto the canvas at grid position (x, y)."""
        if tile.is_nil():
            return

        image = self.get_tile_image(tile)
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        left, top, right, bottom = self.engine.get_tile_position(x, y)

        # Clip to the destination cell, padding smaller images with transparency
        image = image.crop((0, 0, right - left, bottom - top))

        if layer.opacity < 1:
            mask = int(max(layer.opacity, 0) * 255)
            pixels = np.array(image, dtype=np.uint32)
            pixels[..., 3] = (pixels[..., 3] * mask + 127) // 255
            image = Image.fromarray(pixels.astype(np.uint8), "RGBA")

        self.result.alpha_composite(image, dest=(left, top))

    def render_layer_tiles(self, index: int, positions: Iterable[tuple[int, int]]):
        """Render only the given grid positions of a layer.

        Errors from individual cells are logged and discarded.

        Args:
            index: Layer index
            positions: (x, y) grid coordinates to render
        """
        layer = self._get_layer(index)
        width = self.tilemap.width

        for x, y in positions:
            if not (0 <= x < width and 0 <= y < self.tilemap.height):
                logger.warning(f"Skipping tile ({x}, {y}) outside layer {index}")
                continue
            try:
                self.render_tile(layer, layer.tiles[x + y * width], x, y)
            except Exception as e:
                logger.warning(f"Failed to render tile ({x}, {y}) of layer {index}: {e}")

    def render_layer_rect(self, index: int, x: int, y: int, width: int, height: int):
        """Render a rectangular region of a layer, clamped to the map.

        Args:
            index: Layer index
            x: Left grid coordinate
            y: Top grid coordinate
            width: Region width in tiles
            height: Region height in tiles

        Raises:
            UnsupportedRenderOrderError: If the map render order is not right-down
        """
        if self.tilemap.render_order not in SUPPORTED_RENDER_ORDERS:
            raise UnsupportedRenderOrderError(self.tilemap.render_order)

        layer = self._get_layer(index)

        xs = max(x, 0)
        xe = min(x + width, self.tilemap.width)
        ys = max(y, 0)
        ye = min(y + height, self.tilemap.height)

        for ty in range(ys, ye):
            row = ty * self.tilemap.width
            for tx in range(xs, xe):
                self.render_tile(layer, layer.tiles[row + tx], tx, ty)

    def render_layer(self, index: int):
        """Render a whole layer."""
        self.render_layer_rect(index, 0, 0, self.tilemap.width, self.tilemap.height)
        logger.info(f"Rendered layer {index} ({self.tilemap.layers[index].name})")

    def render_visible_layers(self):
        """Render all visible layers in map order."""
        for i, layer in enumerate(self.tilemap.layers):
            if not layer.visible:
                continue
            self.render_layer(i)

    def clear(self):
        """Replace the canvas with a blank one.

        Lets callers render a layer, copy the result, clear, and repeat for
        each layer of the map.
        """
        self.result = Image.new("RGBA", self.engine.get_final_image_size(), (0, 0, 0, 0))

    def save_as_png(self, fp: Union[str, Path, BinaryIO]):
        """Write the canvas as a PNG image."""
        save_as_png(self.result, fp)

    def save_as_jpeg(
        self, fp: Union[str, Path, BinaryIO], options: Optional[JpegOptions] = None
    ):
        """Write the canvas as a JPEG image."""
        save_as_jpeg(self.result, fp, options)

    def save_as_gif(
        self, fp: Union[str, Path, BinaryIO], options: Optional[GifOptions] = None
    ):
        """Write the canvas as a GIF image."""
        save_as_gif(self.result, fp, options)
