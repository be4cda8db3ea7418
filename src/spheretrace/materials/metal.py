"""Metal (specular reflective) material implementation.

A metal reflects the unit incident direction about the normal,

    R = I - 2(I . N)N

and perturbs the result by fuzz * (random point in the unit sphere). A fuzz
of 0 is a perfect mirror. When the perturbed direction does not point out of
the surface (dot with the normal < 0) the ray is absorbed, which models
grazing fuzzy reflections that self-occlude.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.materials.metal import scatter_metal
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_metal(
    >>> #     albedo, fuzz, incident_dir, normal
    >>> # )
"""

import logging

import taichi as ti
import taichi.math as tm

from spheretrace.core.ray import (
    normalize,
    random_in_unit_sphere,
    reflect,
    vec3,
)
from spheretrace.materials.lambertian import validate_albedo

logger = logging.getLogger(__name__)


@ti.dataclass
class MetalMaterial:
    """Metal material properties.

    Attributes:
        albedo: The reflective color (RGB, each component in [0, 1]).
        fuzz: The surface roughness in [0, 1]; 0 = perfect mirror.
    """

    albedo: vec3
    fuzz: ti.f32


@ti.func
def scatter_metal(
    albedo: vec3,
    fuzz: ti.f32,
    incident_direction: vec3,
    normal: vec3,
):
    """Compute the scattered direction for a metal surface.

    Args:
        albedo: The reflective color.
        fuzz: The surface roughness in [0, 1].
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal, facing against the incoming ray.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: reflect(unit(incident), normal) plus the fuzz
          perturbation (not renormalized).
        - attenuation: the albedo.
        - did_scatter: 0 if the direction points into the surface (absorbed),
          1 otherwise.
    """
    reflected = reflect(normalize(incident_direction), normal)
    scattered_direction = reflected + fuzz * random_in_unit_sphere()

    did_scatter = 1
    if tm.dot(scattered_direction, normal) < 0.0:
        did_scatter = 0

    return scattered_direction, albedo, did_scatter


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of metal materials in the scene
MAX_METAL_MATERIALS = 1024

metal_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_METAL_MATERIALS)
metal_fuzzes = ti.field(dtype=ti.f32, shape=MAX_METAL_MATERIALS)
num_metal_materials = ti.field(dtype=ti.i32, shape=())


def clear_metal_materials() -> None:
    """Clear all metal materials."""
    num_metal_materials[None] = 0


def add_metal_material(
    albedo: tuple[float, float, float],
    fuzz: float = 0.0,
) -> int:
    """Add a metal material to the material registry.

    Args:
        albedo: The reflective color as (R, G, B) tuple.
        fuzz: The surface roughness. Values above 1 are clamped to 1.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
        ValueError: If fuzz is negative.
    """
    validate_albedo(albedo)

    if fuzz < 0.0:
        raise ValueError(
            f"Fuzz = {fuzz} is negative. "
            "Fuzz must be between 0 (perfect mirror) and 1 (maximum fuzz)."
        )
    if fuzz > 1.0:
        logger.debug("Clamping metal fuzz %s to 1.0", fuzz)
        fuzz = 1.0

    idx = num_metal_materials[None]
    if idx >= MAX_METAL_MATERIALS:
        raise RuntimeError(
            f"Maximum number of metal materials ({MAX_METAL_MATERIALS}) exceeded"
        )

    metal_albedos[idx] = vec3(albedo[0], albedo[1], albedo[2])
    metal_fuzzes[idx] = fuzz
    num_metal_materials[None] = idx + 1
    return idx


def get_metal_material_count() -> int:
    """Get the number of metal materials in the registry."""
    return int(num_metal_materials[None])


def get_metal_fuzz_python(material_idx: int) -> float:
    """Read back the stored (clamped) fuzz of a metal material."""
    return float(metal_fuzzes[material_idx])


@ti.func
def get_metal_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a metal material by index."""
    return metal_albedos[material_idx]


@ti.func
def get_metal_fuzz(material_idx: ti.i32) -> ti.f32:
    """Get the fuzz for a metal material by index."""
    return metal_fuzzes[material_idx]
