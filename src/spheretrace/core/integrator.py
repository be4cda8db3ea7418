"""Path tracing integrator for Monte Carlo light transport.

This module implements the rendering kernels. Each camera sample follows a
path through the scene, bouncing off spheres according to their materials,
until it escapes to the sky, is absorbed, or runs out of bounces:

    - Escaped rays pick up the sky gradient scaled by the path throughput
    - Absorbed rays and rays that exhaust the bounce limit are black
    - Each scatter multiplies the throughput by the material attenuation

Per pixel, samples_per_pixel jittered samples are averaged and the mean is
gamma corrected with a square root (gamma 2). Rendering proceeds in row
batches so the host can report progress between kernel launches.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.core.integrator import (
    ...     render_image, setup_render_target, get_image_numpy
    ... )
    >>> from spheretrace.scene.random_scene import simple_scene
    >>> from spheretrace.camera.thin_lens import setup_camera
    >>>
    >>> scene, config = simple_scene()
    >>> setup_camera(config, aspect_ratio=2.0)
    >>> setup_render_target(200, 100)
    >>> render_image(samples_per_pixel=10, bounce_limit=10)
    >>> image = get_image_numpy()
"""

import logging

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from spheretrace.camera.thin_lens import get_ray_jittered, is_camera_initialized
from spheretrace.core.ray import lerp, normalize
from spheretrace.materials.dielectric import (
    get_dielectric_ior,
    scatter_dielectric,
)
from spheretrace.materials.lambertian import (
    get_lambertian_albedo,
    scatter_hemisphere,
    scatter_lambertian,
    scatter_true_lambertian,
)
from spheretrace.materials.metal import (
    get_metal_albedo,
    get_metal_fuzz,
    scatter_metal,
)
from spheretrace.scene.intersection import intersect_scene
from spheretrace.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

logger = logging.getLogger(__name__)

# Type alias for 3D vectors
vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# t_min skips hits caused by floating point error at the ray origin
T_MIN = 0.001
T_MAX = 1e10

# Sky gradient endpoints: white at the horizon, light blue overhead
SKY_WHITE = vec3(1.0, 1.0, 1.0)
SKY_BLUE = vec3(0.5, 0.7, 1.0)

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Tone-mapped pixel colors, indexed [x, y] with y = 0 at the bottom
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target.

    Sets the active image dimensions and clears the buffer. The buffer is
    preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If a dimension is not positive or exceeds the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions ({width}x{height}) must be positive")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the color buffer to black."""
    _color_buffer.fill(0.0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def _check_camera_initialized() -> None:
    if not is_camera_initialized():
        raise RuntimeError("Camera not set up. Call setup_camera() first.")


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Dispatch to the appropriate material scattering function.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction.
        normal: The unit surface normal, facing against the ray.
        front_face: 1 if the outside of the sphere was hit, 0 otherwise.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). Unknown
        material IDs absorb.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        albedo = get_lambertian_albedo(type_index)
        scattered_direction, attenuation, did_scatter = scatter_lambertian(albedo, normal)

    elif mat_type == int(MaterialType.TRUE_LAMBERTIAN):
        albedo = get_lambertian_albedo(type_index)
        scattered_direction, attenuation, did_scatter = scatter_true_lambertian(albedo, normal)

    elif mat_type == int(MaterialType.HEMISPHERE):
        albedo = get_lambertian_albedo(type_index)
        scattered_direction, attenuation, did_scatter = scatter_hemisphere(albedo, normal)

    elif mat_type == int(MaterialType.METAL):
        albedo = get_metal_albedo(type_index)
        fuzz = get_metal_fuzz(type_index)
        scattered_direction, attenuation, did_scatter = scatter_metal(
            albedo, fuzz, incident_direction, normal
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        ior = get_dielectric_ior(type_index)
        scattered_direction, attenuation, did_scatter = scatter_dielectric(
            ior, incident_direction, normal, front_face
        )

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def background(direction: vec3) -> vec3:
    """Sky color seen along a direction.

    Blends white (looking down or level) toward light blue (looking up)
    based on the y component of the unit direction.
    """
    t = 0.5 * (normalize(direction).y + 1.0)
    return lerp(SKY_WHITE, t, SKY_BLUE)


@ti.func
def project(origin: vec3, direction: vec3, bounce_limit: ti.i32):
    """Trace one path and return the light it carries back.

    Each loop iteration performs one scene intersection. A path that is
    still bouncing when the budget runs out contributes black.

    Args:
        origin: The ray origin.
        direction: The ray direction (need not be normalized).
        bounce_limit: Maximum number of intersection tests.

    Returns:
        A tuple of (color, bounces) where bounces is the number of
        intersection tests performed.
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    ray_origin = origin
    ray_direction = direction
    bounces = 0

    # Active flag for path continuation (no break inside ti.func loops)
    active = 1

    for _ in range(bounce_limit):
        if active == 1:
            bounces += 1
            hit_record = intersect_scene(ray_origin, ray_direction, T_MIN, T_MAX)

            if hit_record.hit == 0:
                color = throughput * background(ray_direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = _scatter_material(
                    hit_record.material_id,
                    ray_direction,
                    hit_record.normal,
                    hit_record.front_face,
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    ray_origin = hit_record.point
                    ray_direction = scattered_direction

    return color, bounces


@ti.func
def _sanitize(color: vec3) -> vec3:
    """Replace NaN, infinite and negative components with zero."""
    result = tm.max(color, vec3(0.0, 0.0, 0.0))
    for c in ti.static(range(3)):
        if tm.isnan(color[c]) or tm.isinf(color[c]):
            result[c] = 0.0
    return result


@ti.func
def render_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    bounce_limit: ti.i32,
) -> vec3:
    """Average jittered samples for one pixel and gamma correct the mean."""
    total = vec3(0.0, 0.0, 0.0)
    for _ in range(samples_per_pixel):
        ray = get_ray_jittered(pixel_i, pixel_j, width, height)
        color, _bounces = project(ray.origin, ray.direction, bounce_limit)
        total += _sanitize(color)
    mean = total / ti.cast(samples_per_pixel, ti.f32)
    return ti.sqrt(mean)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(
    row_start: ti.i32,
    row_count: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    bounce_limit: ti.i32,
):
    """Render every pixel of rows [row_start, row_start + row_count)."""
    for i, r in ti.ndrange(width, row_count):
        j = row_start + r
        _color_buffer[i, j] = render_pixel(
            i, j, width, height, samples_per_pixel, bounce_limit
        )


# Single-ray query results
_trace_color = ti.Vector.field(3, dtype=ti.f32, shape=())
_trace_bounces = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _trace_ray_kernel(origin: vec3, direction: vec3, bounce_limit: ti.i32):
    color, bounces = project(origin, direction, bounce_limit)
    _trace_color[None] = color
    _trace_bounces[None] = bounces


@ti.kernel
def _background_kernel(direction: vec3) -> vec3:
    return background(direction)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_rows(
    row_start: int,
    row_count: int,
    samples_per_pixel: int,
    bounce_limit: int,
) -> None:
    """Render a batch of rows into the render target.

    Args:
        row_start: First row to render (0 = bottom).
        row_count: Number of rows to render; clipped to the image height.
        samples_per_pixel: Number of samples averaged per pixel.
        bounce_limit: Maximum number of intersection tests per path.

    Raises:
        RuntimeError: If the render target or camera has not been set up.
        ValueError: If the sampling parameters or row range are invalid.
    """
    _check_render_target_initialized()
    _check_camera_initialized()
    if samples_per_pixel < 1:
        raise ValueError(f"samples_per_pixel = {samples_per_pixel} must be at least 1")
    if bounce_limit < 0:
        raise ValueError(f"bounce_limit = {bounce_limit} must not be negative")

    width, height = get_image_dimensions()
    if row_start < 0 or row_start >= height:
        raise ValueError(f"row_start = {row_start} is outside [0, {height})")
    row_count = min(row_count, height - row_start)
    if row_count <= 0:
        return

    _render_rows(row_start, row_count, width, height, samples_per_pixel, bounce_limit)


def render_image(samples_per_pixel: int = 100, bounce_limit: int = 50) -> None:
    """Render the whole image in one kernel launch.

    Raises:
        RuntimeError: If the render target or camera has not been set up.
        ValueError: If the sampling parameters are invalid.
    """
    _check_render_target_initialized()
    _, height = get_image_dimensions()
    render_rows(0, height, samples_per_pixel, bounce_limit)


def get_image_numpy() -> npt.NDArray[np.float32]:
    """Get the rendered image as a NumPy array.

    The array shape is (height, width, 3) with dtype float32. Row 0 is the
    bottom of the image. Values are tone mapped but not clamped.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    full_image = _color_buffer.to_numpy()
    image = full_image[:width, :height, :]

    # Transpose from (width, height, 3) to (height, width, 3)
    return np.ascontiguousarray(np.transpose(image, (1, 0, 2))).astype(np.float32)


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    bounce_limit: int = 50,
) -> tuple[tuple[float, float, float], int]:
    """Trace a single path from Python scope.

    Returns:
        Tuple of ((R, G, B), bounces) where the color is linear (not gamma
        corrected) and bounces is the number of intersection tests.
    """
    _trace_ray_kernel(
        vec3(origin[0], origin[1], origin[2]),
        vec3(direction[0], direction[1], direction[2]),
        bounce_limit,
    )
    color = _trace_color[None]
    return (float(color[0]), float(color[1]), float(color[2])), int(_trace_bounces[None])


def background_color(direction: tuple[float, float, float]) -> tuple[float, float, float]:
    """Sky color for a direction, evaluated from Python scope."""
    color = _background_kernel(vec3(direction[0], direction[1], direction[2]))
    return (float(color[0]), float(color[1]), float(color[2]))
