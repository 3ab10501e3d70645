from .rgba import Rgba, BLACK, WHITE, GRAYSCALE_FACTOR
from .image import Image, Raster
from .filters import Filter, Convoluted, Median
from .pipeline import Pipeline
from .generator import Generator
from .config import BlurConfig, NoiseConfig, CannyConfig, PipelineConfig
from .helpers import ensure_dir, list_images, load_image_rgba, save_image_rgba, setup_logging

__all__ = [
    "Rgba", "BLACK", "WHITE", "GRAYSCALE_FACTOR",
    "Image", "Raster",
    "Filter", "Convoluted", "Median",
    "Pipeline",
    "Generator",
    "BlurConfig", "NoiseConfig", "CannyConfig", "PipelineConfig",
    "ensure_dir", "list_images", "load_image_rgba", "save_image_rgba", "setup_logging",
]

__version__ = "0.1.0"
