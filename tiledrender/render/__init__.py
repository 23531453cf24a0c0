"""Rendering and output modules for Tiled maps."""

from .orientation import OrthogonalRendererEngine, RendererEngine, create_engine
from .output import OutputWriter, save_as_gif, save_as_jpeg, save_as_png
from .renderer import Renderer, load_image

__all__ = [
    "OrthogonalRendererEngine",
    "OutputWriter",
    "Renderer",
    "RendererEngine",
    "create_engine",
    "load_image",
    "save_as_gif",
    "save_as_jpeg",
    "save_as_png",
]
