from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from .pipeline import Pipeline


@dataclass(frozen=True)
class Convoluted:
    """Convolution by a kernel that is itself a pipeline.

    The kernel pipeline is materialized with ``generate(0, 0)`` when the
    filter runs, so it must build its raster without looking at the canvas.
    """
    kernel: "Pipeline"


@dataclass(frozen=True)
class Median:
    """Min/max approximation of a median over a size x size neighbourhood."""
    size: int


Filter = Union[Convoluted, Median]
