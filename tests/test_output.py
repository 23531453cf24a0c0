"""Tests for output writing and configuration."""

import numpy as np
import pytest
from PIL import Image

from conftest import SHEET_COLORS, TILE_SIZE
from tiledrender.config import Config, GifOptions, JpegOptions, OutputConfig
from tiledrender.render.output import OutputWriter
from tiledrender.render.renderer import Renderer
from tiledrender.tilemap import load_tilemap


@pytest.fixture
def renderer(tmj_file):
    return Renderer(load_tilemap(tmj_file))


class TestConfig:
    """Test configuration validation."""

    def test_defaults(self):
        config = Config()
        assert config.output.image_format == "png"
        assert config.jpeg.quality == 75
        assert config.gif.num_colors == 256

    def test_jpg_alias(self):
        output = OutputConfig(image_format="JPG")
        assert output.image_format == "jpeg"
        assert output.extension == "jpg"

    def test_unknown_format(self):
        with pytest.raises(ValueError, match="format"):
            OutputConfig(image_format="bmp")

    @pytest.mark.parametrize("quality", [0, 101])
    def test_jpeg_quality_range(self, quality):
        with pytest.raises(ValueError):
            JpegOptions(quality=quality)

    @pytest.mark.parametrize("num_colors", [0, 257])
    def test_gif_colors_range(self, num_colors):
        with pytest.raises(ValueError):
            GifOptions(num_colors=num_colors)


class TestOutputWriter:
    """Test writing renders to disk."""

    def test_composite_only(self, renderer, tmp_path):
        writer = OutputWriter(str(tmp_path / "out"))
        saved = writer.save_all(renderer, "level")

        assert list(saved) == ["composite"]
        assert saved["composite"] == tmp_path / "out" / "level.png"
        assert saved["composite"].exists()

    def test_composite_skips_hidden_layers(self, renderer, tmp_path):
        path = OutputWriter(str(tmp_path)).save_composite(renderer, "level")
        pixels = np.array(Image.open(path).convert("RGBA"))

        # Hidden layer is solid yellow everywhere
        assert (pixels[0, 0] == SHEET_COLORS[0]).all()

    def test_composite_with_hidden_layers(self, renderer, tmp_path):
        config = Config(output=OutputConfig(visible_only=False))
        path = OutputWriter(str(tmp_path), config).save_composite(renderer, "level")
        pixels = np.array(Image.open(path).convert("RGBA"))

        assert (pixels == np.array(SHEET_COLORS[3], dtype=np.uint8)).all()

    def test_per_layer(self, renderer, tmp_path):
        config = Config(output=OutputConfig(per_layer=True))
        saved = OutputWriter(str(tmp_path), config).save_all(renderer, "level")

        assert sorted(saved) == ["composite", "layer_00", "layer_01", "layer_02"]
        top = np.array(Image.open(saved["layer_01"]).convert("RGBA"))

        # Only the top layer's two tiles are present
        assert top[0, 0, 3] == 0
        assert (top[0, TILE_SIZE] == SHEET_COLORS[2]).all()
        assert (top[TILE_SIZE, 2 * TILE_SIZE] == SHEET_COLORS[3]).all()

    def test_per_layer_leaves_canvas_clear(self, renderer, tmp_path):
        OutputWriter(str(tmp_path)).save_layers(renderer, "level")
        assert np.array(renderer.result).max() == 0

    @pytest.mark.parametrize(
        "image_format,extension,pil_format",
        [("png", "png", "PNG"), ("jpeg", "jpg", "JPEG"), ("gif", "gif", "GIF")],
    )
    def test_formats(self, renderer, tmp_path, image_format, extension, pil_format):
        config = Config(output=OutputConfig(image_format=image_format))
        path = OutputWriter(str(tmp_path), config).save_composite(renderer, "level")

        assert path.name == f"level.{extension}"
        with Image.open(path) as image:
            assert image.format == pil_format
            assert image.size == (3 * TILE_SIZE, 2 * TILE_SIZE)

    def test_output_dir_from_config(self, renderer, tmp_path):
        config = Config(output=OutputConfig(output_dir=str(tmp_path / "cfg")))
        path = OutputWriter(config=config).save_composite(renderer)
        assert path == tmp_path / "cfg" / "map.png"
