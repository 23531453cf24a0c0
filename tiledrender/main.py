#!/usr/bin/env python3
"""CLI entry point for the Tiled map renderer."""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from .config import IMAGE_FORMATS, Config, GifOptions, JpegOptions, OutputConfig
from .render.output import OutputWriter
from .render.renderer import Renderer
from .tilemap import load_tilemap

logger = logging.getLogger(__name__)


@click.command()
@click.argument("input_file", type=click.Path(exists=True))
@click.option(
    "--output-dir",
    "-o",
    default="./output",
    help="Output directory for rendered images",
)
@click.option(
    "--format",
    "image_format",
    default="png",
    type=click.Choice(IMAGE_FORMATS, case_sensitive=False),
    help="Output image format (default: png)",
)
@click.option(
    "--quality",
    default=75,
    type=click.IntRange(1, 100),
    help="JPEG quality (default: 75)",
)
@click.option(
    "--colors",
    default=256,
    type=click.IntRange(1, 256),
    help="GIF palette size (default: 256)",
)
@click.option(
    "--per-layer",
    is_flag=True,
    help="Also save every layer as a separate image",
)
@click.option(
    "--all-layers",
    is_flag=True,
    help="Include hidden layers in the composite image",
)
@click.option(
    "--name",
    "-n",
    default=None,
    help="Base name for output files (default: input filename)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable debug logging",
)
def render(
    input_file: str,
    output_dir: str,
    image_format: str,
    quality: int,
    colors: int,
    per_layer: bool,
    all_layers: bool,
    name: Optional[str],
    verbose: bool,
):
    """Render a Tiled map to an image.

    INPUT_FILE is a map saved by Tiled as JSON (.tmj) or XML (.tmx). Only
    orthogonal maps with right-down render order are supported.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Determine output name
    if name is None:
        name = Path(input_file).stem

    click.echo(f"Loading map from: {input_file}")

    try:
        tilemap = load_tilemap(input_file)
        renderer = Renderer(tilemap)
    except Exception as e:
        click.echo(f"Error loading map: {e}", err=True)
        sys.exit(1)

    click.echo(
        f"Loaded {tilemap.width}x{tilemap.height} map with {len(tilemap.layers)} layers"
    )

    config = Config(
        output=OutputConfig(
            output_dir=output_dir,
            image_format=image_format,
            per_layer=per_layer,
            visible_only=not all_layers,
        ),
        jpeg=JpegOptions(quality=quality),
        gif=GifOptions(num_colors=colors),
    )
    output_writer = OutputWriter(config=config)

    click.echo(f"Saving output to: {output_dir}")

    try:
        saved = output_writer.save_all(renderer, name)
    except Exception as e:
        click.echo(f"Error rendering map: {e}", err=True)
        logger.exception("Rendering failed")
        sys.exit(1)

    # Report results
    click.echo("\nRendering complete!")
    click.echo(f"  Composite image: {saved['composite']}")
    layer_count = len(saved) - 1
    if layer_count:
        click.echo(f"  Layer images: {layer_count}")


def main():
    """Main entry point."""
    render()


if __name__ == "__main__":
    main()
