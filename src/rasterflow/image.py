from __future__ import annotations
from typing import Callable, Iterator, Protocol, Tuple, Type, TypeVar, runtime_checkable

import numpy as np

from .rgba import BLACK, Rgba

R = TypeVar("R", bound="Raster")


@runtime_checkable
class Raster(Protocol):
    """
    Everything a pipeline step touches on a raster.

    Steps read ``pixels`` as a (height, width, 4) float array and build their
    result with ``with_pixels``; ``black`` and ``from_pixel`` make canvases and
    kernels of the pipeline's ``image_type``.
    """

    @classmethod
    def black(cls: Type[R], width: int, height: int) -> R: ...

    @classmethod
    def from_pixel(cls: Type[R], width: int, height: int, pixel: Rgba) -> R: ...

    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    @property
    def pixels(self) -> np.ndarray: ...

    def with_pixels(self: R, pixels: np.ndarray) -> R: ...

    def copy(self: R) -> R: ...

    def __getitem__(self, xy: Tuple[int, int]) -> Rgba: ...


class Image:
    """
    Dense RGBA raster with fixed dimensions.

    Pixels live in a float64 array of shape (height, width, 4), row-major,
    channels (r, g, b, a). Indexing is by (x, y) and fails outside the raster.
    Steps never mutate an Image in place; they build a new one.
    """

    __slots__ = ("_pixels",)

    def __init__(self, pixels: np.ndarray) -> None:
        pixels = np.asarray(pixels, dtype=np.float64)
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"Expected pixel array (H, W, 4), got shape {pixels.shape}")
        self._pixels = pixels

    # construction

    @classmethod
    def construct(cls, width: int, height: int, f: Callable[[int, int], Rgba]) -> "Image":
        """Evaluate f(x, y) once per coordinate."""
        pixels = np.empty((height, width, 4), dtype=np.float64)
        for y in range(height):
            for x in range(width):
                pixels[y, x] = f(x, y).as_tuple()
        return cls(pixels)

    @classmethod
    def from_pixel(cls, width: int, height: int, pixel: Rgba) -> "Image":
        pixels = np.empty((height, width, 4), dtype=np.float64)
        pixels[...] = pixel.as_tuple()
        return cls(pixels)

    @classmethod
    def black(cls, width: int, height: int) -> "Image":
        return cls.from_pixel(width, height, BLACK)

    empty = black

    @classmethod
    def from_rgba8(cls, width: int, height: int, data: bytes) -> "Image":
        """Unpack a flat row-major RGBA8 buffer; each channel becomes byte / 256."""
        expected = 4 * width * height
        if len(data) != expected:
            raise ValueError(
                f"Expected {expected} bytes for a {width}x{height} RGBA image, got {len(data)}"
            )
        arr = np.frombuffer(bytes(data), dtype=np.uint8).reshape(height, width, 4)
        return cls(arr.astype(np.float64) / 256.0)

    @classmethod
    def from_array(cls, arr: np.ndarray) -> "Image":
        """uint8 RGBA array (H, W, 4) -> Image."""
        if arr.ndim != 3 or arr.shape[2] != 4:
            raise ValueError(f"Expected RGBA image (H, W, 4), got shape {arr.shape}")
        if arr.dtype != np.uint8:
            raise ValueError(f"Expected uint8 dtype, got {arr.dtype}")
        return cls(arr.astype(np.float64) / 256.0)

    def similar(self, f: Callable[[int, int], Rgba]) -> "Image":
        return type(self).construct(self.width, self.height, f)

    def with_pixels(self, pixels: np.ndarray) -> "Image":
        """New raster of the same dimensions from a (H, W, 4) array."""
        if pixels.shape != self._pixels.shape:
            raise ValueError(f"Shape mismatch: {pixels.shape} != {self._pixels.shape}")
        return type(self)(pixels)

    def copy(self) -> "Image":
        return type(self)(self._pixels.copy())

    # conversion

    def to_array(self) -> np.ndarray:
        """Clamp to [0, 1], scale by 256, truncate into uint8 (H, W, 4)."""
        scaled = np.floor(np.clip(self._pixels, 0.0, 1.0) * 256.0)
        return np.minimum(scaled, 255.0).astype(np.uint8)

    def to_rgba8(self) -> bytes:
        return self.to_array().tobytes()

    # access

    @property
    def pixels(self) -> np.ndarray:
        """Read-only view of the underlying (H, W, 4) array."""
        view = self._pixels.view()
        view.flags.writeable = False
        return view

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def __getitem__(self, xy: Tuple[int, int]) -> Rgba:
        x, y = xy
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} image")
        return Rgba.from_array(self._pixels[y, x])

    def __iter__(self) -> Iterator[Tuple[int, int, Rgba]]:
        for y in range(self.height):
            for x in range(self.width):
                yield x, y, self[x, y]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Image):
            return NotImplemented
        return self._pixels.shape == other._pixels.shape and bool(
            np.array_equal(self._pixels, other._pixels)
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Image({self.width}x{self.height})"
