from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Tuple


# Config dataclasses for the front-ends; the core takes plain arguments

@dataclass
class BlurConfig:
    variance_scale: float = 0.1     # gaussian variance = size * scale + offset
    variance_offset: float = 0.1

    def variance_for(self, size: int) -> float:
        return size * self.variance_scale + self.variance_offset


@dataclass
class NoiseConfig:
    mean: float = 0.5               # gaussian noise centre
    intensity: float = 0.7          # gaussian noise gain
    seed: Optional[int] = None      # None => fresh entropy per run


@dataclass
class CannyConfig:
    thresholds: Tuple[float, ...] = (0.0,)


@dataclass
class PipelineConfig:
    blur: BlurConfig = field(default_factory=BlurConfig)
    noise: NoiseConfig = field(default_factory=NoiseConfig)
    canny: CannyConfig = field(default_factory=CannyConfig)
    save_dir: Optional[str] = None
    show: bool = False
    log_level: str = "INFO"
