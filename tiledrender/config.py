"""Configuration settings for the Tiled map renderer."""

from dataclasses import dataclass, field

IMAGE_FORMATS = ("png", "jpeg", "gif")

FILE_EXTENSIONS = {
    "png": "png",
    "jpeg": "jpg",
    "gif": "gif",
}


@dataclass
class JpegOptions:
    """Options for JPEG encoding."""

    # Encoder quality, 1 (worst) to 100 (best)
    quality: int = 75

    def __post_init__(self):
        if not 1 <= self.quality <= 100:
            raise ValueError(f"JPEG quality must be in 1..100, got {self.quality}")


@dataclass
class GifOptions:
    """Options for GIF encoding."""

    # Palette size used when quantizing the RGBA canvas
    num_colors: int = 256

    # Floyd-Steinberg dithering while mapping to the palette
    dither: bool = True

    def __post_init__(self):
        if not 1 <= self.num_colors <= 256:
            raise ValueError(
                f"GIF palette size must be in 1..256, got {self.num_colors}"
            )


@dataclass
class OutputConfig:
    """Configuration for writing rendered maps to disk."""

    output_dir: str = "./output"

    # One of IMAGE_FORMATS
    image_format: str = "png"

    # Also export every layer as its own image
    per_layer: bool = False

    # Skip layers whose visible flag is unset in the composite
    visible_only: bool = True

    def __post_init__(self):
        self.image_format = self.image_format.lower()
        if self.image_format == "jpg":
            self.image_format = "jpeg"
        if self.image_format not in IMAGE_FORMATS:
            raise ValueError(f"Unknown image format: {self.image_format}")

    @property
    def extension(self) -> str:
        return FILE_EXTENSIONS[self.image_format]


@dataclass
class Config:
    """Main configuration combining all settings."""

    output: OutputConfig = field(default_factory=OutputConfig)
    jpeg: JpegOptions = field(default_factory=JpegOptions)
    gif: GifOptions = field(default_factory=GifOptions)


# Default configuration instance
DEFAULT_CONFIG = Config()
