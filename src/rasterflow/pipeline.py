from __future__ import annotations
import logging
from functools import reduce
from typing import Callable, Sequence, Tuple, Type

import numpy as np

from . import edges
from .filters import Convoluted, Filter, Median
from .image import Image, Raster
from .rgba import GRAYSCALE_FACTOR, WHITE, Rgba

logger = logging.getLogger(__name__)

Step = Callable[[Raster], Raster]
Combine = Callable[["Pipeline", "Pipeline"], "Pipeline"]

_NEUTRAL_GRAY = Rgba.gray(0.5).as_array()
_NOISE_GAIN = Rgba.gray(2.0).as_array()


class Pipeline:
    """
    Ordered, immutable list of raster -> raster steps.

    Builder calls return a new Pipeline with one more step; nothing is
    computed until ``apply`` or ``generate``:

        edges = Pipeline().grayscale().gradient().apply(image)
    """

    __slots__ = ("_steps", "image_type")

    def __init__(
        self,
        steps: Sequence[Step] = (),
        image_type: Type[Raster] = Image,
    ) -> None:
        self._steps: Tuple[Step, ...] = tuple(steps)
        self.image_type = image_type

    def __len__(self) -> int:
        return len(self._steps)

    def __repr__(self) -> str:
        return f"Pipeline({len(self._steps)} steps)"

    # execution

    def commit(self, step: Step) -> "Pipeline":
        """Append a step; the receiver is left untouched."""
        return Pipeline(self._steps + (step,), self.image_type)

    def apply(self, image: Raster) -> Raster:
        """Run every step in order on a copy of ``image``."""
        logger.debug("Applying %d steps to %dx%d image", len(self._steps), image.width, image.height)
        return reduce(lambda img, step: step(img), self._steps, image.copy())

    def generate(self, width: int, height: int) -> Raster:
        """Apply to a black canvas; for outputs that ignore any real input."""
        return self.apply(self.image_type.black(width, height))

    # primitives

    def offset(self, dx: int, dy: int) -> "Pipeline":
        """out[x, y] = in[x + dx, y + dy], edge pixels replicated past the border."""
        def step(image: Raster) -> Raster:
            if image.width == 0 or image.height == 0:
                return image
            xs = np.clip(np.arange(image.width) + dx, 0, image.width - 1)
            ys = np.clip(np.arange(image.height) + dy, 0, image.height - 1)
            return image.with_pixels(image.pixels[np.ix_(ys, xs)])
        return self.commit(step)

    def dim(self, factor: Rgba) -> "Pipeline":
        f = factor.as_array()
        return self.commit(lambda image: image.with_pixels(image.pixels * f))

    def _combine(self, other: "Pipeline", op: Callable[[np.ndarray, np.ndarray], np.ndarray]) -> "Pipeline":
        # ``other`` sees the same raster this step receives
        def step(image: Raster) -> Raster:
            rhs = other.apply(image)
            return image.with_pixels(op(image.pixels, rhs.pixels))
        return self.commit(step)

    def add(self, other: "Pipeline") -> "Pipeline":
        return self._combine(other, np.add)

    def sub(self, other: "Pipeline") -> "Pipeline":
        """Channel-wise difference; alpha stays the left operand's."""
        def keep_alpha(lhs: np.ndarray, rhs: np.ndarray) -> np.ndarray:
            out = lhs - rhs
            out[..., 3] = lhs[..., 3]
            return out
        return self._combine(other, keep_alpha)

    def minimum(self, other: "Pipeline") -> "Pipeline":
        return self._combine(other, np.minimum)

    def maximum(self, other: "Pipeline") -> "Pipeline":
        return self._combine(other, np.maximum)

    def ennoise(self, noise: "Pipeline") -> "Pipeline":
        """Add a 0.5-centred noise field as a signed perturbation."""
        return self._combine(noise, lambda lhs, rhs: lhs + (rhs - _NEUTRAL_GRAY) * _NOISE_GAIN)

    def invert(self) -> "Pipeline":
        # alpha is inverted too
        return self.commit(lambda image: image.with_pixels(1.0 - image.pixels))

    def grayscale(self) -> "Pipeline":
        # the luminance weights end up applied twice: once here, once in the reduction
        def reduce_gray(image: Raster) -> Raster:
            w = image.pixels * GRAYSCALE_FACTOR.as_array()
            out = np.empty_like(w)
            out[..., :3] = (w[..., :3].sum(axis=-1) / 3.0)[..., None]
            out[..., 3] = w[..., 3]
            return image.with_pixels(out)
        return self.dim(GRAYSCALE_FACTOR).commit(reduce_gray)

    # convolution

    def convolve(
        self,
        kernel_width: int,
        kernel_height: int,
        kernel_value: Callable[[int, int], Rgba],
        combine: Combine,
    ) -> "Pipeline":
        """
        Fold kernel_width * kernel_height shifted, weighted copies of the input.

        Cell (cx, cy) contributes the input offset by (cx - kw // 2, cy - kh // 2)
        and dimmed by kernel_value(cx, cy). ``combine`` folds the copies, e.g.
        ``Pipeline.add`` for a weighted sum or ``Pipeline.minimum`` for erosion.
        """
        if kernel_width <= 0 or kernel_height <= 0:
            raise ValueError(f"Kernel must be non-empty, got {kernel_width}x{kernel_height}")
        weights = [
            (cx, cy, kernel_value(cx, cy))
            for cx in range(kernel_width)
            for cy in range(kernel_height)
        ]
        image_type = self.image_type

        def step(image: Raster) -> Raster:
            frozen = image.copy()
            copies = [
                Pipeline(image_type=image_type)
                .commit(lambda _: frozen)
                .offset(cx - kernel_width // 2, cy - kernel_height // 2)
                .dim(weight)
                for cx, cy, weight in weights
            ]
            return reduce(combine, copies).generate(image.width, image.height)

        return self.commit(step)

    def convolve_by(self, kernel: Raster, combine: Combine) -> "Pipeline":
        return self.convolve(kernel.width, kernel.height, lambda x, y: kernel[x, y], combine)

    def filter(self, needle: Filter) -> "Pipeline":
        if isinstance(needle, Convoluted):
            kernel_pipeline = needle.kernel

            def convoluted(image: Raster) -> Raster:
                kernel = kernel_pipeline.apply(self.image_type.black(0, 0))
                return Pipeline(image_type=self.image_type).convolve_by(kernel, Pipeline.add).apply(image)

            return self.commit(convoluted)

        if isinstance(needle, Median):
            size = needle.size
            white = self.image_type.from_pixel(size, size, WHITE)
            low = Pipeline(image_type=self.image_type).convolve_by(white, Pipeline.minimum)
            high = Pipeline(image_type=self.image_type).convolve_by(white, Pipeline.maximum)

            # not a true median: mean of the neighbourhood min and max
            def median(image: Raster) -> Raster:
                lo = low.apply(image)
                hi = high.apply(image)
                return image.with_pixels((lo.pixels + hi.pixels) / 2.0)

            return self.commit(median)

        raise TypeError(f"Unknown filter: {needle!r}")

    def gaussian_blur(self, size: int = 5, variance: float = 0.6) -> "Pipeline":
        """Fixed 5x5 Gaussian kernel, variance 0.6; ``size`` and ``variance`` are not used."""
        from .generator import Generator

        return self.filter(Generator(5).gaussian_needle(0.6))

    # edge detection

    def gradient(self) -> "Pipeline":
        size = edges.GRADIENT_SIZE
        return self.convolve(size, size, edges.gradient_weight, Pipeline.add).commit(edges.absolute)

    def non_max_suppress(self) -> "Pipeline":
        return self.commit(edges.non_max_suppress)

    def quantize(self, thresholds: Sequence[float]) -> "Pipeline":
        steps = edges.quantize_steps(thresholds)
        return self.commit(lambda image: edges.quantize(image, steps))

    def canny(self, thresholds: Sequence[float]) -> "Pipeline":
        """grayscale -> blur -> gradient -> non-max suppression -> quantize."""
        return (
            self.grayscale()
            .gaussian_blur(5, 0.6)
            .gradient()
            .non_max_suppress()
            .quantize(thresholds)
        )
