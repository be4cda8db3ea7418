"""Thin-lens camera model for primary ray generation with depth of field.

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookto toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The image plane sits at focus_dist in front of the camera. Rays start at a
random point on a lens disk of radius aperture / 2 and pass through the
target point on the image plane, so only geometry near focus_dist is sharp.
An aperture of 0 gives a pinhole camera.

Example:
    >>> import math
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.camera.thin_lens import CameraConfig, setup_camera, get_ray
    >>>
    >>> config = CameraConfig(
    ...     lookfrom=(13.0, 2.0, 3.0),
    ...     lookto=(0.0, 0.0, 0.0),
    ...     vertical_fov=math.radians(20.0),
    ...     aperture=0.1,
    ...     focus_dist=10.0,
    ... )
    >>> setup_camera(config, aspect_ratio=3.0 / 2.0)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0.5, 0.5)  # Ray through image center
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from spheretrace.core.ray import Ray, make_ray, random_in_unit_disk, vec3

logger = logging.getLogger(__name__)

# Tolerance used when checking that vup has unit length
UNIT_LENGTH_TOLERANCE = 1e-3

# =============================================================================
# Camera Configuration
# =============================================================================


@dataclass
class CameraConfig:
    """Configuration for the thin-lens camera and the sampling budget.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookto: Point the camera is looking at in world space (x, y, z).
        vup: Unit up direction for camera orientation.
        vertical_fov: Vertical field of view in radians.
        viewport_scale: Scale of the viewport height relative to tan(fov / 2).
        focus_dist: Distance from the lens to the plane of perfect focus.
        aperture: Lens diameter; 0 disables depth of field.
        samples_per_pixel: Number of jittered samples averaged per pixel.
        bounce_limit: Maximum number of scene intersections per path.
    """

    lookfrom: tuple[float, float, float] = (0.0, 0.0, 0.0)
    lookto: tuple[float, float, float] = (0.0, 0.0, -1.0)
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    vertical_fov: float = math.radians(120.0)
    viewport_scale: float = 2.0
    focus_dist: float = 1.0
    aperture: float = 1.0
    samples_per_pixel: int = 100
    bounce_limit: int = 50

    def validate(self) -> None:
        """Check the configuration for values that cannot produce an image.

        Raises:
            ValueError: If any parameter is out of range or the view basis
                is degenerate.
        """
        lookfrom = np.array(self.lookfrom, dtype=np.float64)
        lookto = np.array(self.lookto, dtype=np.float64)
        vup = np.array(self.vup, dtype=np.float64)

        view = lookfrom - lookto
        view_length = np.linalg.norm(view)
        if view_length == 0.0:
            raise ValueError(f"lookfrom and lookto are the same point: {self.lookfrom}")
        if abs(np.linalg.norm(vup) - 1.0) > UNIT_LENGTH_TOLERANCE:
            raise ValueError(f"vup must be a unit vector, got {self.vup}")
        if np.linalg.norm(np.cross(vup, view / view_length)) < 1e-6:
            raise ValueError(f"vup {self.vup} is parallel to the view direction")
        if not 0.0 < self.vertical_fov < math.pi:
            raise ValueError(
                f"vertical_fov = {self.vertical_fov} must be in (0, pi) radians"
            )
        if self.viewport_scale <= 0.0:
            raise ValueError(f"viewport_scale = {self.viewport_scale} must be positive")
        if self.focus_dist <= 0.0:
            raise ValueError(f"focus_dist = {self.focus_dist} must be positive")
        if self.aperture < 0.0:
            raise ValueError(f"aperture = {self.aperture} must not be negative")
        if self.samples_per_pixel < 1:
            raise ValueError(
                f"samples_per_pixel = {self.samples_per_pixel} must be at least 1"
            )
        if self.bounce_limit < 0:
            raise ValueError(f"bounce_limit = {self.bounce_limit} must not be negative")


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward

# Image plane at focus_dist
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())

_lens_radius = ti.field(dtype=ti.f32, shape=())
_camera_initialized = ti.field(dtype=ti.i32, shape=())


def setup_camera(config: CameraConfig, aspect_ratio: float) -> None:
    """Initialize camera state from configuration.

    Must be called before rendering. Writes the derived basis and image
    plane into Taichi fields read by get_ray().

    Args:
        config: Camera configuration.
        aspect_ratio: Image width divided by height.

    Raises:
        ValueError: If the configuration is invalid or the aspect ratio is
            not positive.
    """
    config.validate()
    if aspect_ratio <= 0.0:
        raise ValueError(f"aspect_ratio = {aspect_ratio} must be positive")

    h = math.tan(config.vertical_fov / 2.0)
    viewport_height = config.viewport_scale * h
    viewport_width = aspect_ratio * viewport_height

    lookfrom = np.array(config.lookfrom, dtype=np.float32)
    lookto = np.array(config.lookto, dtype=np.float32)
    vup = np.array(config.vup, dtype=np.float32)

    w = lookfrom - lookto
    w = w / np.linalg.norm(w)

    u = np.cross(vup, w)
    u = u / np.linalg.norm(u)

    v = np.cross(w, u)

    horizontal = config.focus_dist * viewport_width * u
    vertical = config.focus_dist * viewport_height * v
    lower_left = lookfrom - horizontal / 2.0 - vertical / 2.0 - config.focus_dist * w

    _camera_origin[None] = lookfrom.tolist()
    _camera_u[None] = u.tolist()
    _camera_v[None] = v.tolist()
    _camera_w[None] = w.tolist()
    _viewport_horizontal[None] = horizontal.tolist()
    _viewport_vertical[None] = vertical.tolist()
    _lower_left_corner[None] = lower_left.tolist()
    _lens_radius[None] = config.aperture / 2.0
    _camera_initialized[None] = 1

    logger.debug(
        "Camera at %s: u=%s v=%s w=%s lens_radius=%.4f",
        config.lookfrom,
        u.tolist(),
        v.tolist(),
        w.tolist(),
        config.aperture / 2.0,
    )


def is_camera_initialized() -> bool:
    """Check whether setup_camera() has been called."""
    return bool(_camera_initialized[None])


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_ray(s: ti.f32, t: ti.f32) -> Ray:
    """Generate a ray through normalized image coordinates (s, t).

    - s = 0: left edge, s = 1: right edge
    - t = 0: bottom edge, t = 1: top edge

    The ray origin is offset within the lens disk; the direction is not
    normalized.
    """
    rd = _lens_radius[None] * random_in_unit_disk()
    offset = _camera_u[None] * rd.x + _camera_v[None] * rd.y

    origin = _camera_origin[None] + offset
    direction = (
        _lower_left_corner[None]
        + s * _viewport_horizontal[None]
        + t * _viewport_vertical[None]
        - _camera_origin[None]
        - offset
    )
    return make_ray(origin, direction)


@ti.func
def get_ray_jittered(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32) -> Ray:
    """Generate a ray with a random offset inside pixel (pixel_i, pixel_j).

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
    """
    s = (ti.cast(pixel_i, ti.f32) + ti.random(ti.f32)) / ti.cast(width, ti.f32)
    t = (ti.cast(pixel_j, ti.f32) + ti.random(ti.f32)) / ti.cast(height, ti.f32)
    return get_ray(s, t)


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float] | float]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left
        and lens_radius.
    """

    def _as_tuple(vec) -> tuple[float, float, float]:
        return (float(vec[0]), float(vec[1]), float(vec[2]))

    return {
        "origin": _as_tuple(_camera_origin[None]),
        "u": _as_tuple(_camera_u[None]),
        "v": _as_tuple(_camera_v[None]),
        "w": _as_tuple(_camera_w[None]),
        "horizontal": _as_tuple(_viewport_horizontal[None]),
        "vertical": _as_tuple(_viewport_vertical[None]),
        "lower_left": _as_tuple(_lower_left_corner[None]),
        "lens_radius": float(_lens_radius[None]),
    }
