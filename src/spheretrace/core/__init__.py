"""Core rendering module.

Components:
    ray: Ray data structure, vector helpers and random sampling
    integrator: Path tracing kernels and the render target
    renderer: Host-side render loop with progress reporting
"""

from .ray import (
    Ray,
    build_onb_from_normal,
    cross,
    dot,
    length,
    length_squared,
    lerp,
    make_ray,
    near_zero,
    normalize,
    random_cosine_direction,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_on_hemisphere,
    random_unit_vector,
    random_vec3_range,
    ray_at,
    reflect,
    refract,
    sample_cosine_hemisphere,
    schlick_fresnel,
    vec3,
)

# Note: integrator and renderer are NOT imported here to avoid circular imports.
# Import directly from spheretrace.core.integrator or spheretrace.core.renderer.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "lerp",
    "reflect",
    "refract",
    "schlick_fresnel",
    "near_zero",
    "random_vec3_range",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_on_hemisphere",
    "random_in_unit_disk",
    "random_cosine_direction",
    "build_onb_from_normal",
    "sample_cosine_hemisphere",
]
