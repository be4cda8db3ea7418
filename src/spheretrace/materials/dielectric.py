"""Dielectric (glass/water) material implementation.

Dielectrics are clear: they never absorb and never tint (attenuation is
white). At each hit the ray either reflects or refracts:

    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Total internal reflection when ratio * sin(theta) > 1
    - Otherwise reflection with probability given by Schlick's
      approximation of the Fresnel reflectance

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.materials.dielectric import scatter_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, attenuation, did_scatter = scatter_dielectric(
    >>> #     ior, incident_dir, normal, front_face
    >>> # )
"""

import taichi as ti
import taichi.math as tm

from spheretrace.core.ray import (
    normalize,
    reflect,
    refract,
    schlick_fresnel,
    vec3,
)


@ti.dataclass
class DielectricMaterial:
    """Dielectric material properties.

    Attributes:
        ior: Index of refraction. Common values:
            - Air: 1.0
            - Water: 1.33
            - Glass: 1.5
            - Diamond: 2.4
    """

    ior: ti.f32


@ti.func
def refraction_ratio_for(ior: ti.f32, front_face: ti.i32) -> ti.f32:
    """Ratio n_incident / n_transmitted for a hit on the given side.

    Entering the medium through the front face gives 1 / ior; leaving it
    from the inside gives ior.
    """
    ratio = 1.0 / ior
    if front_face == 0:
        ratio = ior
    return ratio


@ti.func
def will_reflect(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.i32:
    """Determine if total internal reflection will occur.

    Returns:
        1 if refraction is impossible at this angle, 0 otherwise.
    """
    ratio = refraction_ratio_for(ior, front_face)
    cos_theta = tm.min(tm.dot(-normalize(incident_direction), normal), 1.0)
    sin_theta = ti.sqrt(tm.max(1.0 - cos_theta * cos_theta, 0.0))
    result = 0
    if ratio * sin_theta > 1.0:
        result = 1
    return result


@ti.func
def fresnel_reflectance(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
) -> ti.f32:
    """Compute the Schlick reflectance for a hit on a dielectric.

    Returns:
        The reflection probability in [0, 1].
    """
    ratio = refraction_ratio_for(ior, front_face)
    cos_theta = tm.min(tm.dot(-normalize(incident_direction), normal), 1.0)
    return schlick_fresnel(cos_theta, ratio)


@ti.func
def scatter_dielectric_with_sample(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    xi: ti.f32,
):
    """Dielectric scatter with an explicit uniform sample.

    Reflects under total internal reflection or when the Schlick
    reflectance exceeds xi, and refracts otherwise.

    Args:
        ior: Index of refraction of the material.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal, facing against the incoming ray.
        front_face: 1 if the ray hit the outside of the surface, 0 if it is
            leaving the medium.
        xi: Uniform sample in [0, 1) compared against the reflectance.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where
        attenuation is white and did_scatter is always 1.
    """
    attenuation = vec3(1.0, 1.0, 1.0)
    unit_direction = normalize(incident_direction)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    if (
        will_reflect(ior, unit_direction, normal, front_face) == 1
        or fresnel_reflectance(ior, unit_direction, normal, front_face) > xi
    ):
        scattered_direction = reflect(unit_direction, normal)
    else:
        ratio = refraction_ratio_for(ior, front_face)
        scattered_direction = refract(unit_direction, normal, ratio)

    return scattered_direction, attenuation, 1


@ti.func
def scatter_dielectric(
    ior: ti.f32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Compute the scattered direction for a dielectric surface.

    Draws the reflect-or-refract sample from Taichi's generator; see
    scatter_dielectric_with_sample() for the arguments.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter).
    """
    return scatter_dielectric_with_sample(
        ior, incident_direction, normal, front_face, ti.random(ti.f32)
    )


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of dielectric materials in the scene
MAX_DIELECTRIC_MATERIALS = 1024

dielectric_iors = ti.field(dtype=ti.f32, shape=MAX_DIELECTRIC_MATERIALS)
num_dielectric_materials = ti.field(dtype=ti.i32, shape=())


def clear_dielectric_materials() -> None:
    """Clear all dielectric materials."""
    num_dielectric_materials[None] = 0


def add_dielectric_material(ior: float = 1.5) -> int:
    """Add a dielectric material to the material registry.

    Args:
        ior: Index of refraction. Default is 1.5 (typical glass). Values
            below 1 are accepted (e.g. an air bubble modeled relative to
            water) but must be positive.

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If the IOR is not positive.
    """
    if ior <= 0.0:
        raise ValueError(
            f"Index of refraction = {ior} is not positive. "
            "IOR must be > 0 for a physically meaningful material."
        )

    idx = num_dielectric_materials[None]
    if idx >= MAX_DIELECTRIC_MATERIALS:
        raise RuntimeError(
            f"Maximum number of dielectric materials ({MAX_DIELECTRIC_MATERIALS}) exceeded"
        )

    dielectric_iors[idx] = ior
    num_dielectric_materials[None] = idx + 1
    return idx


def get_dielectric_material_count() -> int:
    """Get the number of dielectric materials in the registry."""
    return int(num_dielectric_materials[None])


@ti.func
def get_dielectric_ior(material_idx: ti.i32) -> ti.f32:
    """Get the IOR for a dielectric material by index."""
    return dielectric_iors[material_idx]
