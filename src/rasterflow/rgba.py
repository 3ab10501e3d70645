from __future__ import annotations
from dataclasses import dataclass, replace
from functools import total_ordering
from typing import Callable, Iterator, Tuple

import numpy as np

# channel indexes in comparison order: r, b, g, a
ORDER_CHANNELS = (0, 2, 1, 3)


@total_ordering
@dataclass(frozen=True)
class Rgba:
    """
    Four-channel float colour. Channels may leave [0, 1] during arithmetic;
    they are only clamped when packed into bytes.
    Ordering is lexicographic over (r, b, g, a).
    """
    r: float
    g: float
    b: float
    a: float = 1.0

    def _order_key(self) -> Tuple[float, float, float, float]:
        values = self.as_tuple()
        return tuple(values[c] for c in ORDER_CHANNELS)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Rgba):
            return NotImplemented
        return self._order_key() < other._order_key()

    # constructors

    @classmethod
    def gray(cls, value: float) -> "Rgba":
        return cls(value, value, value, 1.0)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Rgba":
        """Unpack 4 bytes (r, g, b, a) as byte / 256 per channel."""
        if len(data) != 4:
            raise ValueError(f"Expected 4 bytes per pixel, got {len(data)}")
        r, g, b, a = (v / 256.0 for v in data)
        return cls(r, g, b, a)

    @classmethod
    def from_array(cls, values: np.ndarray) -> "Rgba":
        r, g, b, a = (float(v) for v in values)
        return cls(r, g, b, a)

    # conversions

    def __iter__(self) -> Iterator[float]:
        return iter((self.r, self.g, self.b, self.a))

    def as_tuple(self) -> Tuple[float, float, float, float]:
        return (self.r, self.g, self.b, self.a)

    def as_array(self) -> np.ndarray:
        return np.array(self.as_tuple(), dtype=np.float64)

    def to_bytes(self) -> bytes:
        # clamp, scale by 256, truncate; 1.0 saturates to 255
        return bytes(min(int(max(0.0, min(1.0, v)) * 256.0), 255) for v in self)

    # channel-wise algebra

    def map(self, f: Callable[[float], float]) -> "Rgba":
        return Rgba(f(self.r), f(self.g), f(self.b), f(self.a))

    def _zip(self, other: "Rgba", f: Callable[[float, float], float]) -> "Rgba":
        return Rgba(*(f(x, y) for x, y in zip(self, other)))

    def __add__(self, other: "Rgba") -> "Rgba":
        return self._zip(other, lambda x, y: x + y)

    def __sub__(self, other: "Rgba") -> "Rgba":
        return self._zip(other, lambda x, y: x - y)

    def __mul__(self, other: "Rgba") -> "Rgba":
        return self._zip(other, lambda x, y: x * y)

    def __truediv__(self, scalar: float) -> "Rgba":
        return self.map(lambda x: x / scalar)

    def __neg__(self) -> "Rgba":
        return self.map(lambda x: -x)

    def min(self, other: "Rgba") -> "Rgba":
        return self._zip(other, min)

    def max(self, other: "Rgba") -> "Rgba":
        return self._zip(other, max)

    def with_alpha(self, alpha: float) -> "Rgba":
        return replace(self, a=alpha)

    @property
    def alpha(self) -> float:
        return self.a

    def grayscale(self) -> "Rgba":
        """Luminance-weight, then average the weighted r, g, b. Alpha is kept."""
        w = self * GRAYSCALE_FACTOR
        return Rgba.gray((w.r + w.g + w.b) / 3.0).with_alpha(w.a)


# Named colours

BLACK = Rgba(0.0, 0.0, 0.0, 1.0)
RED = Rgba(1.0, 0.0, 0.0, 1.0)
VIOLET = Rgba(1.0, 0.0, 1.0, 1.0)
BLUE = Rgba(0.0, 0.0, 1.0, 1.0)
CYAN = Rgba(0.0, 1.0, 1.0, 1.0)
GREEN = Rgba(0.0, 1.0, 0.0, 1.0)
YELLOW = Rgba(1.0, 1.0, 0.0, 1.0)
WHITE = Rgba(1.0, 1.0, 1.0, 1.0)

COLOURS = (BLACK, RED, VIOLET, BLUE, CYAN, GREEN, YELLOW)

# R/G/B luminance weights, alpha untouched
GRAYSCALE_FACTOR = Rgba(0.3, 0.59, 0.11, 1.0)

Rgba.BLACK = BLACK
Rgba.RED = RED
Rgba.VIOLET = VIOLET
Rgba.BLUE = BLUE
Rgba.CYAN = CYAN
Rgba.GREEN = GREEN
Rgba.YELLOW = YELLOW
Rgba.WHITE = WHITE
Rgba.COLOURS = COLOURS
Rgba.GRAYSCALE_FACTOR = GRAYSCALE_FACTOR
