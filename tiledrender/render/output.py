"""Image encoding and output file writing for rendered maps."""

import logging
from pathlib import Path
from typing import BinaryIO, Optional, Union

from PIL import Image

from ..config import Config, DEFAULT_CONFIG, GifOptions, JpegOptions

logger = logging.getLogger(__name__)


def save_as_png(image: Image.Image, fp: Union[str, Path, BinaryIO]):
    """Encode an image as PNG."""
    image.save(fp, "PNG")


def save_as_jpeg(
    image: Image.Image,
    fp: Union[str, Path, BinaryIO],
    options: Optional[JpegOptions] = None,
):
    """Encode an image as JPEG. Alpha is dropped.

    Args:
        image: Image to encode
        fp: Destination path or binary file object
        options: Encoder options, defaults to JpegOptions()
    """
    options = options or JpegOptions()
    image.convert("RGB").save(fp, "JPEG", quality=options.quality)


def save_as_gif(
    image: Image.Image,
    fp: Union[str, Path, BinaryIO],
    options: Optional[GifOptions] = None,
):
    """Encode an image as a single-frame GIF.

    Args:
        image: Image to encode
        fp: Destination path or binary file object
        options: Encoder options, defaults to GifOptions()
    """
    options = options or GifOptions()
    dither = Image.Dither.FLOYDSTEINBERG if options.dither else Image.Dither.NONE

    if image.mode != "RGBA":
        image = image.convert("RGBA")

    paletted = image.quantize(
        colors=options.num_colors,
        method=Image.Quantize.FASTOCTREE,
        dither=dither,
    )
    paletted.save(fp, "GIF")


class OutputWriter:
    """Handles saving composite and per-layer renders to disk."""

    def __init__(self, output_dir: Optional[str] = None, config: Config = DEFAULT_CONFIG):
        """Initialize the output writer.

        Args:
            output_dir: Directory to save output files, overrides the config
            config: Output and encoder settings
        """
        self.config = config
        self.output_dir = Path(output_dir or config.output.output_dir)

    def save_all(self, renderer, name: str = "map") -> dict[str, Path]:
        """Save the composite image and, if configured, each layer.

        Args:
            renderer: Renderer holding the map to export
            name: Base name for output files

        Returns:
            Dictionary mapping output type to file path
        """
        saved_files: dict[str, Path] = {}

        saved_files["composite"] = self.save_composite(renderer, name)

        if self.config.output.per_layer:
            for i, path in enumerate(self.save_layers(renderer, name)):
                saved_files[f"layer_{i:02d}"] = path

        return saved_files

    def save_composite(self, renderer, name: str = "map") -> Path:
        """Render the map's layers into a fresh canvas and save it.

        Args:
            renderer: Renderer holding the map to export
            name: Base name for the output file

        Returns:
            Path to the saved composite image
        """
        self._ensure_output_dir()

        renderer.clear()
        if self.config.output.visible_only:
            renderer.render_visible_layers()
        else:
            for i in range(len(renderer.tilemap.layers)):
                renderer.render_layer(i)

        composite_path = self.output_dir / f"{name}.{self.config.output.extension}"
        self._save_image(renderer.result, composite_path)

        logger.info(f"Saved composite to {composite_path}")
        return composite_path

    def save_layers(self, renderer, name: str = "map") -> list[Path]:
        """Render and save every layer as a separate image.

        Args:
            renderer: Renderer holding the map to export
            name: Base name for the output files

        Returns:
            Paths of the saved layer images, in layer order
        """
        self._ensure_output_dir()
        paths = []

        for i in range(len(renderer.tilemap.layers)):
            renderer.clear()
            renderer.render_layer(i)

            layer_path = (
                self.output_dir / f"{name}_layer_{i:02d}.{self.config.output.extension}"
            )
            self._save_image(renderer.result, layer_path)
            paths.append(layer_path)

        renderer.clear()
        logger.info(f"Saved {len(paths)} layer images to {self.output_dir}")
        return paths

    def _ensure_output_dir(self):
        """Create output directory if it doesn't exist."""
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _save_image(self, image: Image.Image, path: Path):
        image_format = self.config.output.image_format
        if image_format == "jpeg":
            save_as_jpeg(image, path, self.config.jpeg)
        elif image_format == "gif":
            save_as_gif(image, path, self.config.gif)
        else:
            save_as_png(image, path)
