"""Diffuse (Lambertian family) material implementations.

Three diffuse variants share one albedo registry and differ only in how they
pick the outgoing direction:

    approximate: normal + random point inside the unit sphere. Cheap and
        close to Lambertian, but not exactly cosine weighted; this is the
        default diffuse model and gives the look the renderer is tuned for.
    true:        exact cosine-weighted hemisphere sampling about the normal.
    hemisphere:  uniform direction on the hemisphere around the normal.

All three always scatter (they never absorb) with attenuation = albedo. When
the sampled direction degenerates to (near) zero the bare normal is used
instead, so the scattered ray always has a usable direction.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.materials.lambertian import scatter_lambertian
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_lambertian(albedo, normal)
"""

import taichi as ti

from spheretrace.core.ray import (
    near_zero,
    random_in_unit_sphere,
    random_on_hemisphere,
    sample_cosine_hemisphere,
    vec3,
)


@ti.dataclass
class LambertianMaterial:
    """Diffuse material properties.

    Attributes:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
    """

    albedo: vec3


@ti.func
def _diffuse_result(albedo: vec3, normal: vec3, direction: vec3):
    """Package a diffuse scatter, replacing a degenerate direction."""
    scattered_direction = direction
    if near_zero(scattered_direction):
        scattered_direction = normal
    return scattered_direction, albedo, 1


@ti.func
def scatter_lambertian(albedo: vec3, normal: vec3):
    """Scatter off the approximate Lambertian surface.

    The direction is normal + a random point inside the unit sphere. If the
    random point nearly cancels the normal, the normal itself is used.

    Args:
        albedo: The diffuse reflectance color.
        normal: The unit surface normal at the hit point.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where
        did_scatter is always 1 and attenuation equals albedo.
    """
    return _diffuse_result(albedo, normal, normal + random_in_unit_sphere())


@ti.func
def scatter_true_lambertian(albedo: vec3, normal: vec3):
    """Scatter with exact cosine-weighted hemisphere sampling.

    With a cosine-weighted PDF the BRDF * cos / pdf weight reduces to the
    albedo, so the attenuation is the same as for the approximate model.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
    """
    return _diffuse_result(albedo, normal, sample_cosine_hemisphere(normal))


@ti.func
def scatter_hemisphere(albedo: vec3, normal: vec3):
    """Scatter uniformly over the hemisphere around the normal.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
    """
    return _diffuse_result(albedo, normal, random_on_hemisphere(normal))


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of diffuse materials in the scene
MAX_LAMBERTIAN_MATERIALS = 1024

lambertian_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_LAMBERTIAN_MATERIALS)
num_lambertian_materials = ti.field(dtype=ti.i32, shape=())


def validate_albedo(albedo: tuple[float, float, float]) -> None:
    """Check that a color is a valid reflectance.

    Raises:
        ValueError: If the color does not have three components or any
            component is outside [0, 1].
    """
    if len(albedo) != 3:
        raise ValueError(f"Albedo must have 3 components, got {len(albedo)}")
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )


def clear_lambertian_materials() -> None:
    """Clear all diffuse materials."""
    num_lambertian_materials[None] = 0


def add_lambertian_material(albedo: tuple[float, float, float]) -> int:
    """Add a diffuse albedo to the material registry.

    The same registry backs all three diffuse variants.

    Args:
        albedo: The diffuse reflectance color as (R, G, B) tuple.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    validate_albedo(albedo)

    idx = num_lambertian_materials[None]
    if idx >= MAX_LAMBERTIAN_MATERIALS:
        raise RuntimeError(
            f"Maximum number of Lambertian materials ({MAX_LAMBERTIAN_MATERIALS}) exceeded"
        )

    lambertian_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    num_lambertian_materials[None] = idx + 1
    return idx


def get_lambertian_material_count() -> int:
    """Get the number of diffuse materials in the registry."""
    return int(num_lambertian_materials[None])


@ti.func
def get_lambertian_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a diffuse material by index."""
    return lambertian_albedos[material_idx]
