from __future__ import annotations
from typing import Sequence

import matplotlib.pyplot as plt
import numpy as np

from .image import Raster

_CHANNELS = (("r", "tab:red"), ("g", "tab:green"), ("b", "tab:blue"))


def _channel_histograms(ax: plt.Axes, img: Raster, bins: int) -> None:
    arr = np.clip(img.pixels, 0.0, 1.0)
    edges = np.linspace(0.0, 1.0, bins + 1)
    for c, (name, colour) in enumerate(_CHANNELS):
        counts, _ = np.histogram(arr[..., c], bins=edges)
        ax.stairs(counts, edges, color=colour, label=name)
    ax.set_xlim(0.0, 1.0)
    ax.set_xlabel("channel value")


class Visualizer:
    """Before/after figures for --show. Nothing is displayed unless asked."""

    @staticmethod
    def before_after(
        before: Raster,
        after: Raster,
        steps: Sequence[str] = (),
        bins: int = 32,
        show: bool = True,
    ) -> plt.Figure:
        """
        Input and output rasters on top, their r/g/b histograms below.
        The figure title lists the steps that produced ``after``.
        """
        fig, axes = plt.subplots(2, 2, figsize=(10, 8),
                                 gridspec_kw={"height_ratios": (3, 1)})
        panels = ((before, "Input"), (after, "Output"))
        for col, (img, label) in enumerate(panels):
            ax = axes[0, col]
            ax.imshow(np.clip(img.pixels, 0.0, 1.0))
            ax.set_title(f"{label} ({img.width}x{img.height})")
            ax.axis("off")
            _channel_histograms(axes[1, col], img, bins)
        axes[1, 0].set_ylabel("pixels")
        axes[1, 1].legend(loc="upper right", fontsize="small")

        fig.suptitle(" -> ".join(steps) if steps else "no steps")
        fig.tight_layout()
        if show:
            plt.show()
        return fig
