from __future__ import annotations
import argparse
import logging
import os
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .config import CannyConfig, NoiseConfig, PipelineConfig
from .filters import Median
from .generator import Generator
from .helpers import ensure_dir, list_images, load_image_rgba, save_image_rgba, setup_logging
from .image import Image
from .pipeline import Pipeline
from .viz import Visualizer

logger = logging.getLogger(__name__)

StepSpec = Tuple[str, object]


class _StepAction(argparse.Action):
    """Record (option, value) in the order the options were given."""

    def __call__(self, parser, namespace, values, option_string=None):
        steps = list(getattr(namespace, "steps", None) or [])
        steps.append((self.dest, values))
        namespace.steps = steps


def _positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid size {text!r}")
    if value < 1:
        raise argparse.ArgumentTypeError(f"size must be >= 1, got {value}")
    return value


def _positive_float(text: str) -> float:
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number {text!r}")
    if value <= 0:
        raise argparse.ArgumentTypeError(f"value must be > 0, got {value}")
    return value


def _non_negative_float(text: str) -> float:
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number {text!r}")
    if value < 0:
        raise argparse.ArgumentTypeError(f"value must be >= 0, got {value}")
    return value


def _thresholds(text: str) -> Tuple[float, ...]:
    try:
        values = tuple(float(t) for t in text.split(","))
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid threshold list {text!r}")
    return values


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        description="Apply an ordered chain of raster transforms to an image",
    )
    g_io = p.add_argument_group("I/O")
    g_io.add_argument("src", type=str, help="Source image, or a directory of images")
    g_io.add_argument("dest", type=str, help="Output image, or output folder when src is a directory")
    g_io.add_argument("--show", action="store_true", help="Display input and output")
    g_io.add_argument("--seed", type=int, default=None, help="Seed for the noise generators")
    g_io.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    g_noise = p.add_argument_group("Noise")
    g_noise.add_argument("--noise-intensity", type=_non_negative_float, default=NoiseConfig.intensity,
                         help="Gain of --gaussian-noise (default: %(default)s)")
    g_noise.add_argument("--noise-mean", type=float, default=NoiseConfig.mean,
                         help="Centre of the --gaussian-noise density (default: %(default)s)")

    g_steps = p.add_argument_group("Steps (applied in the order given)")
    g_steps.add_argument("--gaussian-blur", dest="gaussian_blur", metavar="N",
                         type=_positive_int, action=_StepAction)
    g_steps.add_argument("--average-blur", dest="average_blur", metavar="N",
                         type=_positive_int, action=_StepAction)
    g_steps.add_argument("--median", dest="median", metavar="N",
                         type=_positive_int, action=_StepAction)
    g_steps.add_argument("--gaussian-noise", dest="gaussian_noise", metavar="V",
                         type=_positive_float, action=_StepAction)
    g_steps.add_argument("--impulse-noise", dest="impulse_noise", metavar="V",
                         type=_positive_float, action=_StepAction)
    g_steps.add_argument("--canny", dest="canny", metavar="T1,T2,...", nargs="?",
                         const=None, type=_thresholds, action=_StepAction)
    g_steps.add_argument("--quantize", dest="quantize", metavar="T1,T2,...",
                         type=_thresholds, action=_StepAction)
    for flag in ("grayscale", "gradient", "invert", "non-max-suppress"):
        g_steps.add_argument(f"--{flag}", dest=flag.replace("-", "_"), nargs=0,
                             action=_StepAction)
    p.set_defaults(steps=[])
    return p


def step_label(name: str, value: object) -> str:
    """Readable form of one parsed option, e.g. "median 5" or "canny 0.1,0.4"."""
    label = name.replace("_", "-")
    if value is None or value == []:
        return label
    if isinstance(value, tuple):
        return f"{label} {','.join(str(v) for v in value)}"
    return f"{label} {value}"


def build_pipeline(
    steps: Sequence[StepSpec],
    image: Image,
    cfg: Optional[PipelineConfig] = None,
    rng: Optional[np.random.Generator] = None,
) -> Pipeline:
    """Translate parsed options into builder calls. Noise is sized to the image."""
    cfg = cfg or PipelineConfig()
    rng = rng if rng is not None else np.random.default_rng(cfg.noise.seed)
    noise_size = max(image.width, image.height)

    pipeline = Pipeline()
    for name, value in steps:
        if name == "gaussian_blur":
            size = value | 1  # odd, so the kernel has a centre
            pipeline = pipeline.filter(Generator(size).gaussian_needle(cfg.blur.variance_for(size)))
        elif name == "average_blur":
            pipeline = pipeline.filter(Generator(value | 1).average_needle())
        elif name == "median":
            pipeline = pipeline.filter(Median(value))
        elif name == "gaussian_noise":
            noise = Generator(noise_size, rng).gaussian_noise(
                cfg.noise.mean, 1.0 / value, cfg.noise.intensity)
            pipeline = pipeline.ennoise(noise)
        elif name == "impulse_noise":
            pipeline = pipeline.ennoise(Generator(noise_size, rng).salt_and_pepper_noise(value))
        elif name == "canny":
            pipeline = pipeline.canny(value or cfg.canny.thresholds)
        elif name == "quantize":
            pipeline = pipeline.quantize(value)
        elif name == "grayscale":
            pipeline = pipeline.grayscale()
        elif name == "gradient":
            pipeline = pipeline.gradient()
        elif name == "invert":
            pipeline = pipeline.invert()
        elif name == "non_max_suppress":
            pipeline = pipeline.non_max_suppress()
        else:
            raise ValueError(f"Unexpected option {name!r}")
    return pipeline


def _process_one(src: str, dest: str, steps: Sequence[StepSpec], cfg: PipelineConfig,
                 rng: np.random.Generator, viz: Visualizer) -> Image:
    image = load_image_rgba(src)
    pipeline = build_pipeline(steps, image, cfg, rng)

    logger.info("Calculating %d steps for %s", len(pipeline), src)
    out = pipeline.apply(image)
    logger.info("Calculated: %dx%d", out.width, out.height)

    save_image_rgba(out, dest)
    if cfg.show:
        viz.before_after(image, out, steps=[step_label(name, value) for name, value in steps])
    return out


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_argparser()
    args = parser.parse_args(argv)

    cfg = PipelineConfig(
        noise=NoiseConfig(mean=args.noise_mean, intensity=args.noise_intensity, seed=args.seed),
        canny=CannyConfig(),
        show=args.show,
        log_level="DEBUG" if args.verbose else "INFO",
    )
    setup_logging(cfg.log_level)

    steps: List[StepSpec] = list(args.steps)
    if not steps:
        logger.warning("No steps given; the output is a copy of the input")

    rng = np.random.default_rng(cfg.noise.seed)
    viz = Visualizer()

    try:
        if os.path.isdir(args.src):
            cfg.save_dir = args.dest
            ensure_dir(cfg.save_dir)
            for path in list_images(args.src):
                dest = os.path.join(cfg.save_dir, Path(path).stem + ".png")
                _process_one(path, dest, steps, cfg, rng, viz)
        else:
            _process_one(args.src, args.dest, steps, cfg, rng, viz)
    except (FileNotFoundError, ValueError, OSError) as e:
        logger.error("%s", e)
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
