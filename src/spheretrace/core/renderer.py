"""Host-side render loop with progress reporting.

This module wraps the integrator kernels in a convenient interface:
- ImageSize describing the output resolution
- Raytracer, which renders a scene in batches of rows and reports progress
  through a callback or a generator
- render(), a one-call entry point returning the finished image

Rows are rendered bottom to top. Between batches control returns to Python,
so a caller iterating render_progressive() can report progress or stop
early.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.core.renderer import ImageSize, render
    >>> from spheretrace.scene.random_scene import simple_scene
    >>>
    >>> scene, config = simple_scene(samples_per_pixel=20)
    >>> image = render(scene, config, ImageSize.from_aspect_ratio(200, 2.0))
    >>> image.shape
    (100, 200, 3)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Generator
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from spheretrace.camera.thin_lens import CameraConfig, setup_camera
from spheretrace.core.integrator import (
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    get_image_numpy,
    render_rows,
    setup_render_target,
)
from spheretrace.image.bitmap import Bitmap
from spheretrace.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# Callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]

DEFAULT_ROWS_PER_BATCH = 16


@dataclass(frozen=True)
class ImageSize:
    """Output image resolution in pixels.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image dimensions ({self.width}x{self.height}) must be positive")
        if self.width > MAX_IMAGE_WIDTH or self.height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) exceed maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )

    @property
    def aspect_ratio(self) -> float:
        """Width divided by height."""
        return self.width / self.height

    @classmethod
    def from_aspect_ratio(cls, width: int, aspect_ratio: float) -> ImageSize:
        """Build a size from a width and a width / height ratio.

        The height is rounded down, with a minimum of one pixel.

        Raises:
            ValueError: If the aspect ratio is not positive.
        """
        if aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio = {aspect_ratio} must be positive")
        return cls(width, max(1, int(width / aspect_ratio)))


class Raytracer:
    """Renders a scene through a camera configuration.

    The scene lives in global Taichi fields; the Raytracer keeps a reference
    to the SceneManager that built it along with the camera settings.

    Attributes:
        scene: The scene to render.
        config: Camera and sampling configuration.
        rows_per_batch: Number of rows rendered per kernel launch.
    """

    def __init__(
        self,
        scene: SceneManager,
        config: CameraConfig,
        rows_per_batch: int = DEFAULT_ROWS_PER_BATCH,
    ) -> None:
        """Initialize the raytracer.

        Raises:
            ValueError: If rows_per_batch is not positive or the camera
                configuration is invalid.
        """
        if rows_per_batch < 1:
            raise ValueError(f"rows_per_batch = {rows_per_batch} must be at least 1")
        config.validate()
        self.scene = scene
        self.config = config
        self.rows_per_batch = rows_per_batch

    def render_progressive(self, size: ImageSize) -> Generator[tuple[int, int], None, None]:
        """Render the image, yielding progress after each batch of rows.

        Yields:
            Tuple of (rows_done, total_rows).

        Example:
            >>> for done, total in raytracer.render_progressive(size):
            ...     print(f"{done}/{total} rows")
            >>> image = raytracer.get_image_numpy()
        """
        setup_camera(self.config, size.aspect_ratio)
        setup_render_target(size.width, size.height)

        logger.info(
            "Rendering %dx%d, %d spp, bounce limit %d, %d spheres",
            size.width,
            size.height,
            self.config.samples_per_pixel,
            self.config.bounce_limit,
            self.scene.get_sphere_count(),
        )
        start_time = time.perf_counter()

        rows_done = 0
        while rows_done < size.height:
            batch = min(self.rows_per_batch, size.height - rows_done)
            render_rows(
                rows_done,
                batch,
                self.config.samples_per_pixel,
                self.config.bounce_limit,
            )
            rows_done += batch
            logger.debug("Rendered %d/%d rows", rows_done, size.height)
            yield rows_done, size.height

        logger.info("Render finished in %.2fs", time.perf_counter() - start_time)

    def render(
        self,
        size: ImageSize,
        callback: ProgressCallback | None = None,
    ) -> npt.NDArray[np.float32]:
        """Render the full image.

        Args:
            size: Output resolution.
            callback: Optional function called after each batch with
                (rows_done, total_rows).

        Returns:
            Array of shape (height, width, 3), row 0 at the bottom, with
            gamma-corrected colors.
        """
        for rows_done, total_rows in self.render_progressive(size):
            if callback is not None:
                callback(rows_done, total_rows)
        return self.get_image_numpy()

    def render_bitmap(
        self,
        size: ImageSize,
        callback: ProgressCallback | None = None,
    ) -> Bitmap:
        """Render the full image into a Bitmap."""
        return Bitmap.from_array(self.render(size, callback))

    @staticmethod
    def get_image_numpy() -> npt.NDArray[np.float32]:
        """Get the most recently rendered image (row 0 at the bottom)."""
        return get_image_numpy()

    def __repr__(self) -> str:
        return (
            f"Raytracer(spheres={self.scene.get_sphere_count()}, "
            f"spp={self.config.samples_per_pixel}, "
            f"bounce_limit={self.config.bounce_limit})"
        )


def render(
    scene: SceneManager,
    config: CameraConfig,
    size: ImageSize,
    *,
    callback: ProgressCallback | None = None,
    rows_per_batch: int = DEFAULT_ROWS_PER_BATCH,
) -> npt.NDArray[np.float32]:
    """Render a scene and return the image.

    Args:
        scene: The scene to render.
        config: Camera and sampling configuration.
        size: Output resolution.
        callback: Optional progress callback receiving (rows_done, total_rows).
        rows_per_batch: Number of rows rendered per kernel launch.

    Returns:
        Array of shape (height, width, 3), row 0 at the bottom.

    Raises:
        ValueError: If the configuration is invalid.
    """
    return Raytracer(scene, config, rows_per_batch).render(size, callback)
