import numpy as np
import pytest

from rasterflow import Image, Rgba


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def random_image(rng) -> Image:
    """7x5 raster with random channels in [0, 1)."""
    return Image(rng.random((5, 7, 4)))


@pytest.fixture
def ramp_image() -> Image:
    """Gray intensity strictly increasing with x + y."""
    return Image.construct(6, 5, lambda x, y: Rgba.gray((x + y) / 10.0))


@pytest.fixture
def uniform_image() -> Image:
    return Image.from_pixel(6, 4, Rgba(0.2, 0.4, 0.6, 0.8))
