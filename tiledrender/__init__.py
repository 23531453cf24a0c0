"""Render Tiled map layers into raster images."""

from .errors import RenderError, UnsupportedOrientationError, UnsupportedRenderOrderError
from .render import OutputWriter, Renderer
from .tilemap import load_tilemap, parse_tilemap
from .types import Layer, LayerTile, Map, Tileset, TilesetImage, TilesetTile

__all__ = [
    "Layer",
    "LayerTile",
    "Map",
    "OutputWriter",
    "RenderError",
    "Renderer",
    "Tileset",
    "TilesetImage",
    "TilesetTile",
    "UnsupportedOrientationError",
    "UnsupportedRenderOrderError",
    "load_tilemap",
    "parse_tilemap",
]
