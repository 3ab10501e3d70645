"""
Stage kernels of the edge detector:
  1) gradient kernel weights (3x3 directional difference, not Sobel)
  2) non-max suppression along four directions
  3) threshold quantization into gray levels
"""
from __future__ import annotations
from typing import List, Sequence, Tuple

import numpy as np

from .image import Raster
from .rgba import BLACK, ORDER_CHANNELS, WHITE, Rgba

GRADIENT_SIZE = 3


def gradient_weight(x: int, y: int) -> Rgba:
    """
     0 -1  0
    -1  0  1
     0  1  0
    Zero cells are BLACK (alpha 1); -1 cells negate every channel, alpha included.
    """
    if (x, y) in ((0, 0), (1, 1), (2, 2), (0, 2), (2, 0)):
        return BLACK
    if (x, y) in ((1, 0), (0, 1)):
        return -WHITE
    if (x, y) in ((1, 2), (2, 1)):
        return WHITE
    raise ValueError(f"Got invalid index (x = {x}, y = {y})")


def absolute(image: Raster) -> Raster:
    return image.with_pixels(np.abs(image.pixels))


def _lex_less(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    # pixel-wise a < b, same channel order as Rgba.__lt__
    less = np.zeros(a.shape[:-1], dtype=bool)
    equal = np.ones(a.shape[:-1], dtype=bool)
    for c in ORDER_CHANNELS:
        less |= equal & (a[..., c] < b[..., c])
        equal &= a[..., c] == b[..., c]
    return less


def non_max_suppress(image: Raster) -> Raster:
    """Keep pixels that beat both neighbours in at least one direction, else black."""
    w, h = image.width, image.height
    if w == 0 or h == 0:
        return image.copy()
    p = image.pixels

    xs = np.arange(w)
    ys = np.arange(h)
    xp, xn = np.maximum(xs - 1, 0), np.minimum(xs + 1, w - 1)
    yp, yn = np.maximum(ys - 1, 0), np.minimum(ys + 1, h - 1)

    # (prev, next) neighbour lookups for: diagonal, horizontal, vertical, anti-diagonal
    directions: List[Tuple[np.ndarray, np.ndarray]] = [
        (p[np.ix_(yp, xp)], p[np.ix_(yn, xn)]),
        (p[np.ix_(ys, xp)], p[np.ix_(ys, xn)]),
        (p[np.ix_(yp, xs)], p[np.ix_(yn, xs)]),
        (p[np.ix_(yn, xp)], p[np.ix_(yp, xn)]),
    ]

    keep = np.zeros((h, w), dtype=bool)
    for prev, nxt in directions:
        keep |= _lex_less(prev, p) & _lex_less(nxt, p)

    out = np.where(keep[..., None], p, BLACK.as_array())
    return image.with_pixels(out)


def quantize_steps(thresholds: Sequence[float]) -> List[Tuple[float, float]]:
    """(level, threshold) pairs: largest threshold first, 0.0 sentinel last."""
    if len(thresholds) == 0:
        raise ValueError("quantize needs at least one threshold")
    n = len(thresholds)
    ordered = list(reversed([float(t) for t in thresholds])) + [0.0]
    return [(i / n, t) for i, t in enumerate(ordered)]


def quantize(image: Raster, steps: Sequence[Tuple[float, float]]) -> Raster:
    """Map mean(r, g, b) to the level of the first threshold it meets."""
    p = image.pixels
    intensity = p[..., :3].sum(axis=-1) / 3.0

    level = np.full(intensity.shape, np.nan)
    pending = np.ones(intensity.shape, dtype=bool)
    for value, threshold in steps:
        hit = pending & (intensity >= threshold)
        level[hit] = value
        pending &= ~hit

    if pending.any():
        y, x = np.argwhere(pending)[0]
        raise ValueError(
            f"Intensity {intensity[y, x]} at ({x}, {y}) is below every threshold"
        )

    out = np.empty_like(p)
    out[..., :3] = level[..., None]
    out[..., 3] = 1.0
    return image.with_pixels(out)
