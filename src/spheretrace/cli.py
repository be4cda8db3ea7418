"""Command line entry point for rendering the demo scenes.

Usage:
    spheretrace [options]
    python -m spheretrace.cli [options]

Options:
    --scene {random,simple}  Scene to render (default: random)
    --width WIDTH            Image width in pixels (default: 1200)
    --aspect-ratio RATIO     Width / height, e.g. 1.5 or 3:2 (default: 3:2)
    --samples SAMPLES        Samples per pixel (default: 500)
    --bounces BOUNCES        Bounce limit per path (default: 50)
    --seed SEED              Random seed for the scene and the sampler
    --output OUTPUT          .ppm or .png file, or - for PPM on stdout
    --arch {cpu,gpu}         Taichi backend (default: cpu)
    --quiet                  Suppress progress output
    --verbose                Log render details

Example:
    spheretrace --scene simple --width 400 --samples 50 --output simple.png
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import TYPE_CHECKING, TextIO

import taichi as ti

if TYPE_CHECKING:
    from spheretrace.image.bitmap import Bitmap

logger = logging.getLogger(__name__)

# Clears the current terminal line before rewriting the progress line
CLEAR_LINE = "\x1b[2K\r"


def parse_aspect_ratio(text: str) -> float:
    """Parse an aspect ratio given as "W:H" or as a plain number.

    Raises:
        argparse.ArgumentTypeError: If the text is not a positive ratio.
    """
    try:
        if ":" in text:
            width_text, height_text = text.split(":", 1)
            ratio = float(width_text) / float(height_text)
        else:
            ratio = float(text)
    except (ValueError, ZeroDivisionError) as e:
        raise argparse.ArgumentTypeError(f"invalid aspect ratio: {text!r}") from e
    if ratio <= 0.0:
        raise argparse.ArgumentTypeError(f"aspect ratio must be positive: {text!r}")
    return ratio


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="spheretrace",
        description="Render a sphere scene with Monte Carlo path tracing.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        choices=("random", "simple"),
        default="random",
        help="Scene to render (default: random)",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=1200,
        help="Image width in pixels (default: 1200)",
    )
    parser.add_argument(
        "--aspect-ratio",
        type=parse_aspect_ratio,
        default=3.0 / 2.0,
        help="Image width / height as a number or W:H (default: 3:2)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=500,
        help="Number of samples per pixel (default: 500)",
    )
    parser.add_argument(
        "--bounces",
        type=int,
        default=50,
        help="Maximum bounces per path (default: 50)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for scene generation and sampling",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="-",
        help="Output .ppm or .png path, or - for PPM on stdout (default: -)",
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="cpu",
        help="Taichi backend (default: cpu)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    verbosity.add_argument(
        "--verbose",
        action="store_true",
        help="Log render details",
    )
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)


def render_scene(args: argparse.Namespace, progress: TextIO | None = None) -> Bitmap:
    """Build the requested scene and render it.

    Args:
        args: Parsed command-line arguments.
        progress: Stream for the progress line, or None for no progress.

    Returns:
        The rendered image.
    """
    # Lazy imports to allow Taichi initialization first
    import numpy as np

    from spheretrace.core.renderer import ImageSize, Raytracer
    from spheretrace.scene.random_scene import random_scene, simple_scene

    size = ImageSize.from_aspect_ratio(args.width, args.aspect_ratio)

    if args.scene == "random":
        scene, config = random_scene(
            np.random.default_rng(args.seed),
            samples_per_pixel=args.samples,
            bounce_limit=args.bounces,
        )
    else:
        scene, config = simple_scene(
            samples_per_pixel=args.samples,
            bounce_limit=args.bounces,
        )

    raytracer = Raytracer(scene, config)
    start_time = time.perf_counter()

    def progress_callback(rows_done: int, total_rows: int) -> None:
        if progress is None:
            return
        elapsed = time.perf_counter() - start_time
        percent = 100.0 * rows_done / total_rows
        progress.write(
            f"{CLEAR_LINE}{rows_done}/{total_rows} scanlines done. "
            f"({percent:.0f}%) [{elapsed:.1f}s elapsed]"
        )
        progress.flush()

    bitmap = raytracer.render_bitmap(size, callback=progress_callback)
    if progress is not None:
        progress.write("\n")
    return bitmap


def write_output(bitmap: Bitmap, output: str) -> None:
    """Write the image to a file, or as PPM to stdout when output is "-".

    Raises:
        ValueError: If the file extension is not supported.
        OSError: If the file cannot be written.
    """
    from spheretrace.image.export import save_image, save_ppm

    if output == "-":
        save_ppm(bitmap, sys.stdout)
        sys.stdout.flush()
    else:
        save_image(bitmap, output)


def run(args: argparse.Namespace) -> int:
    """Render and save according to parsed arguments.

    Taichi must already be initialized.

    Returns:
        Process exit code: 0 on success, 1 on error.
    """
    try:
        bitmap = render_scene(args, progress=None if args.quiet else sys.stderr)
        write_output(bitmap, args.output)
    except (OSError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if args.output != "-":
        logger.info("Saved to %s", args.output)
    return 0


def init_taichi(arch: str, seed: int | None) -> None:
    """Initialize Taichi on the requested backend, falling back to CPU."""
    kwargs = {} if seed is None else {"random_seed": seed}
    if arch == "gpu":
        try:
            ti.init(arch=ti.gpu, **kwargs)
            return
        except Exception as e:
            logger.warning("GPU backend unavailable (%s), using CPU", e)
    ti.init(arch=ti.cpu, **kwargs)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    init_taichi(args.arch, args.seed)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
