from __future__ import annotations
import logging
from typing import Optional

import numpy as np
from scipy.stats import norm

from .filters import Convoluted, Filter
from .image import Raster
from .pipeline import Pipeline
from .rgba import BLACK, Rgba

logger = logging.getLogger(__name__)

# salt-and-pepper fires where the density at the sample exceeds this
IMPULSE_DENSITY_THRESHOLD = 0.6


def _gray_field(values: np.ndarray) -> np.ndarray:
    out = np.empty(values.shape + (4,), dtype=np.float64)
    out[..., :3] = values[..., None]
    out[..., 3] = 1.0
    return out


class Generator:
    """
    Source of noise pipelines and kernel filters, keyed by ``size``.

    ``rng`` is the only random source the noise pipelines draw from; pass a
    seeded ``numpy.random.Generator`` for reproducible output. The spread
    argument of every density is used as the scale of ``scipy.stats.norm``.
    """

    def __init__(self, size: int, rng: Optional[np.random.Generator] = None) -> None:
        self.size = int(size)
        self.rng = rng if rng is not None else np.random.default_rng()

    def _require_odd(self) -> None:
        if self.size <= 0 or self.size % 2 == 0:
            raise ValueError(f"Kernel size must be odd and >= 1, got {self.size}")

    # noise

    def gaussian_noise(self, mean: float, variance: float, intensity: float) -> Pipeline:
        """Per pixel: gray 0.5 +/- pdf(u) * intensity, u ~ U[0, 1), fair-coin sign."""
        rng = self.rng

        def noise(image: Raster) -> Raster:
            shape = (image.height, image.width)
            sample = rng.random(shape)
            res = norm.pdf(sample, loc=mean, scale=variance) * intensity
            sign = np.where(rng.random(shape) < 0.5, 1.0, -1.0)
            return image.with_pixels(_gray_field(0.5 + sign * res))

        logger.debug("gaussian noise: mean=%s variance=%s intensity=%s", mean, variance, intensity)
        return Pipeline().commit(noise)

    def salt_and_pepper_noise(self, variance: float) -> Pipeline:
        """Per pixel: white or black where the density fires, neutral gray elsewhere."""
        rng = self.rng

        def noise(image: Raster) -> Raster:
            shape = (image.height, image.width)
            fires = norm.pdf(rng.random(shape), loc=0.5, scale=variance) > IMPULSE_DENSITY_THRESHOLD
            salt = rng.random(shape) < 0.5
            values = np.where(fires, np.where(salt, 1.0, 0.0), 0.5)
            return image.with_pixels(_gray_field(values))

        logger.debug("salt-and-pepper noise: variance=%s", variance)
        return Pipeline().commit(noise)

    # kernels

    def average_needle(self) -> Filter:
        self._require_odd()
        size = self.size
        pixel = Rgba.gray(1.0 / (size * size))
        return Convoluted(Pipeline().commit(lambda canvas: type(canvas).from_pixel(size, size, pixel)))

    def gaussian_needle(self, variance: float) -> Filter:
        """Radially symmetric kernel: pdf of the distance to the centre cell."""
        self._require_odd()
        size = self.size
        center = size // 2

        def needle(canvas: Raster) -> Raster:
            offsets = np.arange(size) - center
            dist = np.hypot(offsets[None, :], offsets[:, None])
            weights = _gray_field(norm.pdf(dist, loc=0.0, scale=variance))
            return type(canvas).from_pixel(size, size, BLACK).with_pixels(weights)

        return Convoluted(Pipeline().commit(needle))
