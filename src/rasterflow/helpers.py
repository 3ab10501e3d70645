from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import List, Tuple

import cv2
import numpy as np

from .image import Image

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS: Tuple[str, ...] = (".png", ".jpg", ".jpeg", ".bmp", ".tif", ".tiff")


# Logging

def setup_logging(level: str | int = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# I/O & filesystem helpers

def ensure_dir(path: str | os.PathLike) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)


def list_images(
    dir_path: str | os.PathLike,
    extensions: Tuple[str, ...] = IMAGE_EXTENSIONS,
) -> List[str]:
    p = Path(dir_path)
    return [
        str(fp) for fp in sorted(p.iterdir())
        if fp.is_file() and fp.suffix.lower() in extensions
    ]


def _to_rgba(arr: np.ndarray) -> np.ndarray:
    # OpenCV hands back gray, BGR or BGRA; 16-bit inputs are reduced to 8 bits
    if arr.dtype == np.uint16:
        arr = (arr >> 8).astype(np.uint8)
    if arr.ndim == 2:
        return cv2.cvtColor(arr, cv2.COLOR_GRAY2RGBA)
    if arr.shape[2] == 3:
        return cv2.cvtColor(arr, cv2.COLOR_BGR2RGBA)
    return cv2.cvtColor(arr, cv2.COLOR_BGRA2RGBA)


def load_image_rgba(path: str | os.PathLike) -> Image:
    """Load an image file as an RGBA raster. Raises on failure."""
    arr = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if arr is None:
        raise FileNotFoundError(f"Could not read image: {path}")
    img = Image.from_array(_to_rgba(arr))
    logger.info("Loaded %s (%dx%d)", path, img.width, img.height)
    return img


def save_image_rgba(image: Image, path: str | os.PathLike) -> None:
    bgra = cv2.cvtColor(image.to_array(), cv2.COLOR_RGBA2BGRA)
    if not cv2.imwrite(str(path), bgra):
        raise OSError(f"Could not write image: {path}")
    logger.info("Saved %s (%dx%d)", path, image.width, image.height)
