"""Sphere primitive with ray-sphere intersection.

The intersection solves the half-b form of the ray-sphere quadratic

    a*t^2 + 2*half_b*t + c = 0

with a = |d|^2, half_b = (o - center) . d and c = |o - center|^2 - r^2. The
roots are computed with the cancellation-free formulation from Ray Tracing
Gems (chapter 7). The coefficients are evaluated in float64: for the
radius-1000 ground sphere, |o - center|^2 - r^2 in float32 is quantized to
about 0.06, which lets a grazing ray leaving the surface hit it again from
the inside. The returned record is float32.

A negative radius is allowed: it flips the outward normal, which turns the
sphere into a hollow shell (used for bubbles inside glass).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from spheretrace.core.ray import vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere. Negative values invert the
            outward normal.
    """

    center: vec3
    radius: ti.f32


@ti.dataclass
class HitRecord:
    """Record of a ray-sphere intersection.

    Attributes:
        hit: Whether the ray intersected the sphere (1 if hit, 0 if miss).
        t: The ray parameter of the intersection. Only valid if hit == 1.
        point: The intersection point. Only valid if hit == 1.
        normal: The unit surface normal, always facing against the
            incoming ray. Only valid if hit == 1.
        front_face: 1 if the ray struck the outward-facing side, 0 otherwise.
            Only valid if hit == 1.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32


@ti.func
def _solve_quadratic_robust(h: ti.f64, a: ti.f64, c: ti.f64, sqrt_d: ti.f64):
    """Solve a*t^2 + 2*h*t + c = 0 without catastrophic cancellation.

    Args:
        h: Half of the linear coefficient.
        a: Quadratic coefficient (must be positive).
        c: Constant term.
        sqrt_d: Square root of the discriminant h^2 - a*c.

    Returns:
        Tuple of (t0, t1) with t0 <= t1.
    """
    # q = -(h + sign(h) * sqrt(discriminant))
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = ti.cast(0.0, ti.f64)
    t1 = ti.cast(0.0, ti.f64)

    if ti.abs(q) < 1e-10:
        # Both h and the discriminant vanish; fall back to the plain formula
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def make_hit_record(t: ti.f32, point: vec3, ray_direction: vec3, outward_normal: vec3) -> HitRecord:
    """Build a hit record, orienting the normal against the ray.

    The hit is a front face iff dot(ray_direction, outward_normal) < 0; the
    stored normal is the outward normal on a front face and its negation
    otherwise.
    """
    is_front_face = 1
    hit_normal = outward_normal
    if tm.dot(ray_direction, outward_normal) >= 0.0:
        is_front_face = 0
        hit_normal = -outward_normal
    return HitRecord(hit=1, t=t, point=point, normal=hit_normal, front_face=is_front_face)


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection.

    The smaller root is preferred; if it lies outside [t_min, t_max] the
    larger root is tried, and if neither is in range the ray misses. A zero
    radius or a zero-length direction never hits.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be
            normalized).
        sphere: The sphere to test intersection against.
        t_min: Minimum accepted t (inclusive).
        t_max: Maximum accepted t (inclusive).

    Returns:
        A HitRecord. Check the hit field to determine if intersection
        occurred.
    """
    origin = ti.cast(ray_origin, ti.f64)
    direction = ti.cast(ray_direction, ti.f64)
    center = ti.cast(sphere.center, ti.f64)
    radius = ti.cast(sphere.radius, ti.f64)

    # Subtract after widening so oc is exact
    oc = origin - center

    a = tm.dot(direction, direction)
    h = tm.dot(direction, oc)
    c = tm.dot(oc, oc) - radius * radius

    discriminant = h * h - a * c

    result = HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
    )

    if discriminant >= 0.0 and a > 0.0 and radius != 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = _solve_quadratic_robust(h, a, c, sqrt_d)

        t = t0
        valid = t_min <= t and t <= t_max
        if not valid:
            t = t1
            valid = t_min <= t and t <= t_max

        if valid:
            hit_point = origin + t * direction
            # Sign-aware: a negative radius yields an inward "outward" normal
            outward_normal = (hit_point - center) / radius
            result = make_hit_record(
                ti.cast(t, ti.f32),
                ti.cast(hit_point, ti.f32),
                ray_direction,
                ti.cast(outward_normal, ti.f32),
            )

    return result


@ti.func
def make_sphere(center: vec3, radius: ti.f32) -> Sphere:
    """Create a sphere from center and radius."""
    return Sphere(center=center, radius=radius)
