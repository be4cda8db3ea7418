"""Ray data structure and vector utilities for the path tracer.

This module provides the Ray dataclass and the vector algebra used by every
other part of the renderer. A single 3-component type (``vec3``) stands in for
points, directions and RGB colors; arithmetic, negation and the component-wise
product come straight from Taichi's vector operators, and the functions below
add the geometric operations (reflection, refraction, interpolation) and the
randomized sampling helpers used for Monte Carlo integration.

Random numbers are drawn from Taichi's per-thread generator, which is seeded
by ``ti.init(random_seed=...)``.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Per-component threshold below which a vector counts as zero
NEAR_ZERO_EPSILON = 1e-8

# Upper bound on rejection-sampling trials; the expected count is below 2
MAX_REJECTION_TRIALS = 100


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not normalized;
            its magnitude carries no meaning for intersection or shading.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    The result is undefined for a zero-length input; callers guard with
    near_zero() where a degenerate vector is possible.
    """
    return v / tm.length(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return tm.cross(a, b)


@ti.func
def lerp(start: vec3, t: ti.f32, end: vec3) -> vec3:
    """Linearly interpolate between two vectors.

    Args:
        start: Value returned at t = 0.
        t: Interpolation parameter, normally in [0, 1].
        end: Value returned at t = 1.

    Returns:
        (1 - t) * start + t * end.
    """
    return (1.0 - t) * start + t * end


@ti.func
def reflect(incident: vec3, normal: vec3) -> vec3:
    """Reflect an incident vector about a normal.

    Computes incident - 2 * dot(incident, normal) * normal. The normal must
    be unit length for a length-preserving reflection.

    Args:
        incident: The incoming direction vector (pointing toward the surface).
        normal: The surface normal (should be normalized).

    Returns:
        The reflected direction vector.
    """
    return incident - 2.0 * tm.dot(incident, normal) * normal


@ti.func
def refract(unit_incident: vec3, normal: vec3, ratio: ti.f32) -> vec3:
    """Refract a unit direction through a surface using Snell's law.

    The refracted ray is split into the components perpendicular and
    parallel to the normal:

        cos_theta = min(dot(-uv, n), 1)
        r_perp    = ratio * (uv + cos_theta * n)
        r_para    = -sqrt(|1 - |r_perp|^2|) * n

    Callers are expected to have ruled out total internal reflection.

    Args:
        unit_incident: The incoming direction (unit length).
        normal: The surface normal, facing against the incoming ray.
        ratio: Ratio of refractive indices (n_incident / n_transmitted).

    Returns:
        The refracted direction (unit length for unit inputs).
    """
    cos_theta = tm.min(tm.dot(-unit_incident, normal), 1.0)
    r_out_perp = ratio * (unit_incident + cos_theta * normal)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - length_squared(r_out_perp))) * normal
    return r_out_perp + r_out_parallel


@ti.func
def schlick_fresnel(cosine: ti.f32, ratio: ti.f32) -> ti.f32:
    """Compute Fresnel reflectance using Schlick's approximation.

    r0 = ((1 - ratio) / (1 + ratio))^2
    reflectance = r0 + (1 - r0) * (1 - cosine)^5

    Args:
        cosine: Cosine of the angle between incident direction and normal.
        ratio: Ratio of refractive indices.

    Returns:
        The approximate Fresnel reflectance coefficient.
    """
    r0 = (1.0 - ratio) / (1.0 + ratio)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Used to detect degenerate scatter directions.

    Returns:
        1 if every component is below NEAR_ZERO_EPSILON in magnitude,
        0 otherwise.
    """
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_vec3_range(low: ti.f32, high: ti.f32) -> vec3:
    """Generate a vector whose components are uniform in [low, high)."""
    span = high - low
    return vec3(
        low + span * ti.random(ti.f32),
        low + span * ti.random(ti.f32),
        low + span * ti.random(ti.f32),
    )


@ti.func
def random_in_unit_sphere() -> vec3:
    """Generate a random point inside the unit sphere.

    Rejection-samples the [-1, 1)^3 cube; about 1.9 trials are needed on
    average and the loop gives up after MAX_REJECTION_TRIALS.

    Returns:
        A random point with length < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_TRIALS):
        if not found:
            p = random_vec3_range(-1.0, 1.0)
            if length_squared(p) < 1.0:
                found = True
    return p


@ti.func
def random_unit_vector() -> vec3:
    """Generate a random unit vector.

    This is the normalized version of random_in_unit_sphere().
    """
    return normalize(random_in_unit_sphere())


@ti.func
def random_on_hemisphere(normal: vec3) -> vec3:
    """Generate a random unit vector in the hemisphere around a normal.

    Args:
        normal: The surface normal defining the hemisphere orientation.

    Returns:
        A random unit vector with non-negative dot product against normal.
    """
    on_sphere = random_unit_vector()
    result = on_sphere
    if tm.dot(on_sphere, normal) < 0.0:
        result = -on_sphere
    return result


@ti.func
def random_in_unit_disk() -> vec3:
    """Generate a random point inside the unit disk in the xy-plane.

    Used for the thin-lens aperture. About 1.27 trials are needed on average.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    for _ in range(MAX_REJECTION_TRIALS):
        if not found:
            p = vec3(
                ti.random(ti.f32) * 2.0 - 1.0,
                ti.random(ti.f32) * 2.0 - 1.0,
                0.0,
            )
            if p.x * p.x + p.y * p.y < 1.0:
                found = True
    return p


@ti.func
def random_cosine_direction() -> vec3:
    """Generate a cosine-weighted direction in the local frame (z-up).

    The distribution has PDF = cos(theta) / pi.
    """
    r1 = ti.random(ti.f32)
    r2 = ti.random(ti.f32)
    phi = 2.0 * tm.pi * r1
    sqrt_r2 = ti.sqrt(r2)
    x = ti.cos(phi) * sqrt_r2
    y = ti.sin(phi) * sqrt_r2
    z = ti.sqrt(1.0 - r2)
    return vec3(x, y, z)


@ti.func
def build_onb_from_normal(normal: vec3):
    """Build an orthonormal basis with the normal as the z-axis.

    Args:
        normal: The surface normal (should be normalized).

    Returns:
        A tuple (tangent, bitangent, normal) forming an orthonormal basis.
    """
    # Choose a helper axis that is not parallel to the normal
    a = vec3(1.0, 0.0, 0.0)
    if ti.abs(normal.x) > 0.9:
        a = vec3(0.0, 1.0, 0.0)
    tangent = normalize(cross(a, normal))
    bitangent = cross(normal, tangent)
    return tangent, bitangent, normal


@ti.func
def sample_cosine_hemisphere(normal: vec3) -> vec3:
    """Sample a world-space direction with cosine weighting about a normal.

    This is the exact Lambertian distribution, in contrast to the in-sphere
    approximation used by the default diffuse material.
    """
    local_dir = random_cosine_direction()
    tangent, bitangent, n = build_onb_from_normal(normal)
    return local_dir.x * tangent + local_dir.y * bitangent + local_dir.z * n
