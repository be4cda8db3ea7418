"""Unit tests for ray-sphere intersection.

Tests cover:
- The nearer root is distance(origin, center) - radius
- Tangent rays meet the sphere at a double root
- Face orientation: the stored normal always opposes the ray
- Negative radius shells and degenerate spheres
- The accepted t range and the far-root fallback
- Grazing rays leaving the radius-1000 ground sphere
"""

import math

import numpy as np
import pytest
import taichi as ti


def _hit(origin, direction, center, radius, t_min=0.001, t_max=1000.0):
    """Run hit_sphere for one ray and return (hit, t, point, normal, front_face)."""
    from spheretrace.geometry.sphere import Sphere, hit_sphere, vec3

    hit = ti.field(dtype=ti.i32, shape=())
    t_val = ti.field(dtype=ti.f32, shape=())
    point = ti.Vector.field(3, dtype=ti.f32, shape=())
    normal = ti.Vector.field(3, dtype=ti.f32, shape=())
    front_face = ti.field(dtype=ti.i32, shape=())

    @ti.kernel
    def test_kernel(
        o: ti.types.vector(3, ti.f32),
        d: ti.types.vector(3, ti.f32),
        c: ti.types.vector(3, ti.f32),
        r: ti.f32,
        lo: ti.f32,
        hi: ti.f32,
    ):
        record = hit_sphere(o, d, Sphere(center=c, radius=r), lo, hi)
        hit[None] = record.hit
        t_val[None] = record.t
        point[None] = record.point
        normal[None] = record.normal
        front_face[None] = record.front_face

    test_kernel(vec3(*origin), vec3(*direction), vec3(*center), radius, t_min, t_max)
    return (
        hit[None],
        t_val[None],
        point[None].to_numpy(),
        normal[None].to_numpy(),
        front_face[None],
    )


def _unit(v):
    v = np.asarray(v, dtype=np.float64)
    return v / np.linalg.norm(v)


class TestNearestRoot:
    """A ray aimed at the center from outside hits at distance - radius."""

    @pytest.mark.parametrize(
        "origin,center,radius",
        [
            ((0.0, 0.0, 5.0), (0.0, 0.0, 0.0), 1.0),
            ((3.0, 4.0, 0.0), (0.0, 0.0, 0.0), 2.0),
            ((1.0, 2.0, 3.0), (-2.0, 6.0, -9.0), 1.5),
            ((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), 0.5),
            ((13.0, 2.0, 3.0), (0.0, -1000.0, 0.0), 1000.0),
        ],
    )
    def test_t_is_distance_minus_radius(self, origin, center, radius):
        """Test t, the hit point and the outward normal for a head-on ray."""
        distance = math.dist(origin, center)
        direction = _unit(np.subtract(center, origin))

        hit, t, point, normal, front = _hit(origin, direction, center, radius, 0.001, 1e6)

        assert hit == 1
        assert front == 1
        assert abs(t - (distance - radius)) < 1e-4 * max(1.0, distance)
        assert abs(np.linalg.norm(point - np.asarray(center)) - radius) < 1e-4 * radius
        # Head-on: the normal points straight back at the origin
        assert np.allclose(normal, -direction, atol=1e-5)

    def test_unnormalized_direction_scales_t(self):
        """Test t is measured in units of the direction's length."""
        hit, t, point, _, _ = _hit((0.0, 0.0, 5.0), (0.0, 0.0, -2.5), (0.0, 0.0, 0.0), 1.0)
        assert hit == 1
        assert abs(t - 4.0 / 2.5) < 1e-5
        assert np.allclose(point, (0.0, 0.0, 1.0), atol=1e-5)

    def test_offset_ray_hits_before_center_distance(self):
        """Test an off-center ray meets the sphere at the smaller root."""
        # Chord at height 0.6 on a unit sphere: entry at z = 0.8
        hit, t, point, normal, front = _hit(
            (0.0, 0.6, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0
        )
        assert hit == 1
        assert front == 1
        assert abs(t - 4.2) < 1e-5
        assert np.allclose(point, (0.0, 0.6, 0.8), atol=1e-5)
        assert np.allclose(normal, (0.0, 0.6, 0.8), atol=1e-5)


class TestTangentRay:
    """A ray grazing the sphere meets it at a double root."""

    def test_tangent_hits_at_double_root(self):
        """Test the tangent point is returned at the single root."""
        hit, t, point, normal, _ = _hit((0.0, 1.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)
        assert hit == 1
        assert abs(t - 5.0) < 1e-5
        assert np.allclose(point, (0.0, 1.0, 0.0), atol=1e-5)
        assert abs(abs(normal[1]) - 1.0) < 1e-5

    def test_tangent_has_no_second_root(self):
        """Test moving t_min past the tangent point leaves nothing to hit."""
        hit, _, _, _, _ = _hit(
            (0.0, 1.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0, 5.001, 1000.0
        )
        assert hit == 0

    def test_tangent_counts_as_back_face(self):
        """Test a ray perpendicular to the normal is not a front face."""
        _, _, _, normal, front = _hit((0.0, 1.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)
        assert front == 0
        assert abs(normal[1] - (-1.0)) < 1e-5

    def test_just_outside_tangent_misses(self):
        """Test a ray passing just above the sphere misses."""
        hit, _, _, _, _ = _hit((0.0, 1.0001, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0)
        assert hit == 0


class TestFaceOrientation:
    """front_face is 1 iff the ray opposes the outward normal."""

    @pytest.mark.parametrize("radius", [1.0, -1.0])
    def test_normal_always_opposes_ray(self, radius):
        """Test random rays from inside and outside the sphere."""
        from spheretrace.geometry.sphere import Sphere, hit_sphere, vec3

        hits = ti.field(dtype=ti.i32, shape=())
        front_hits = ti.field(dtype=ti.i32, shape=())
        back_hits = ti.field(dtype=ti.i32, shape=())
        normal_with_ray = ti.field(dtype=ti.i32, shape=())
        face_mismatch = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel(r: ti.f32):
            sphere = Sphere(center=vec3(0.0, 0.0, 0.0), radius=r)
            for i in range(4000):
                origin = 3.0 * (vec3(ti.random(), ti.random(), ti.random()) - 0.5)
                direction = vec3(ti.random(), ti.random(), ti.random()) - 0.5
                rec = hit_sphere(origin, direction, sphere, 0.001, 1000.0)
                if rec.hit == 1:
                    hits[None] += 1
                    if ti.math.dot(rec.normal, direction) > 0.0:
                        normal_with_ray[None] += 1
                    outward = rec.point / r
                    cos_outward = ti.math.dot(outward, direction)
                    if ti.abs(cos_outward) > 1e-4:
                        expected = ti.select(cos_outward < 0.0, 1, 0)
                        if rec.front_face != expected:
                            face_mismatch[None] += 1
                    if rec.front_face == 1:
                        front_hits[None] += 1
                    else:
                        back_hits[None] += 1

        test_kernel(radius)
        assert hits[None] > 0
        assert front_hits[None] > 0
        assert back_hits[None] > 0
        assert normal_with_ray[None] == 0
        assert face_mismatch[None] == 0

    def test_ray_from_inside_hits_back_face(self):
        """Test a ray starting at the center exits through a back face."""
        hit, t, _, normal, front = _hit((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), 1.0)
        assert hit == 1
        assert abs(t - 1.0) < 1e-5
        assert front == 0
        assert np.allclose(normal, (0.0, 0.0, -1.0), atol=1e-5)


class TestNegativeRadius:
    """A negative radius turns the sphere into a hollow shell."""

    def test_outside_hit_is_back_face(self):
        """Test the outward normal points inward, so an outside hit is a back face."""
        hit, t, _, normal, front = _hit((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), -1.0)
        assert hit == 1
        assert abs(t - 4.0) < 1e-5
        assert front == 0
        # Stored normal still faces the incoming ray
        assert np.allclose(normal, (0.0, 0.0, 1.0), atol=1e-5)

    def test_inside_hit_is_front_face(self):
        """Test a ray leaving a hollow shell sees its inward normal as front."""
        hit, t, _, normal, front = _hit((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 0.0, 0.0), -0.5)
        assert hit == 1
        assert abs(t - 0.5) < 1e-5
        assert front == 1
        assert np.allclose(normal, (-1.0, 0.0, 0.0), atol=1e-5)

    def test_glass_bubble_faces(self):
        """Test a ray through a 0.5 / -0.45 bubble pair enters then meets the shell."""
        center = (0.0, 0.0, -1.0)
        outer = _hit((0.0, 0.0, 1.0), (0.0, 0.0, -1.0), center, 0.5)
        inner = _hit((0.0, 0.0, 1.0), (0.0, 0.0, -1.0), center, -0.45)

        assert outer[0] == 1 and inner[0] == 1
        assert abs(outer[1] - 1.5) < 1e-5
        assert abs(inner[1] - 1.55) < 1e-5
        assert outer[4] == 1
        assert inner[4] == 0


class TestDegenerateSpheres:
    """Zero radius spheres and zero directions never hit."""

    def test_zero_radius_never_hits(self):
        """Test a zero radius sphere is a miss even on a direct hit."""
        hit, _, _, _, _ = _hit((0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 0.0)
        assert hit == 0

    def test_zero_direction_never_hits(self):
        """Test a zero-length direction is a miss."""
        hit, _, _, _, _ = _hit((0.0, 0.0, 5.0), (0.0, 0.0, 0.0), (0.0, 0.0, 0.0), 1.0)
        assert hit == 0

    def test_make_sphere(self):
        """Test make_sphere builds the same sphere as the dataclass."""
        from spheretrace.geometry.sphere import hit_sphere, make_sphere, vec3

        t_val = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            sphere = make_sphere(vec3(1.0, 2.0, -3.0), 0.5)
            t_val[None] = hit_sphere(
                vec3(1.0, 2.0, 0.0), vec3(0.0, 0.0, -1.0), sphere, 0.001, 100.0
            ).t

        test_kernel()
        assert abs(t_val[None] - 2.5) < 1e-5


class TestHitRange:
    """Roots outside [t_min, t_max] are rejected."""

    def test_sphere_behind_ray_misses(self):
        """Test both roots negative is a miss."""
        hit, _, _, _, _ = _hit((0.0, 0.0, 5.0), (0.0, 0.0, 1.0), (0.0, 0.0, 0.0), 1.0)
        assert hit == 0

    def test_t_max_is_inclusive(self):
        """Test a root exactly at t_max is accepted."""
        hit, t, _, _, _ = _hit(
            (0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0, 0.001, 4.0
        )
        assert hit == 1
        assert abs(t - 4.0) < 1e-5

    def test_root_past_t_max_misses(self):
        """Test a sphere beyond t_max is not reported."""
        hit, _, _, _, _ = _hit(
            (0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0, 0.001, 3.9
        )
        assert hit == 0

    def test_far_root_used_when_near_root_below_t_min(self):
        """Test the far root is returned when the near one is before t_min."""
        hit, t, _, normal, front = _hit(
            (0.0, 0.0, 5.0), (0.0, 0.0, -1.0), (0.0, 0.0, 0.0), 1.0, 4.5, 1000.0
        )
        assert hit == 1
        assert abs(t - 6.0) < 1e-5
        assert front == 0
        assert np.allclose(normal, (0.0, 0.0, 1.0), atol=1e-5)


class TestGroundSpherePrecision:
    """Rays leaving the radius-1000 ground sphere must not re-hit it."""

    def test_camera_hits_then_grazing_exit(self):
        """Test hits seen from (13, 2, 3) followed by a shallow outgoing ray."""
        from spheretrace.geometry.sphere import Sphere, hit_sphere, vec3

        first_hits = ti.field(dtype=ti.i32, shape=())
        self_hits = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            ground = Sphere(center=vec3(0.0, -1000.0, 0.0), radius=1000.0)
            eye = vec3(13.0, 2.0, 3.0)
            for i, j in ti.ndrange(20, 20):
                target = vec3(-9.5 + i, 0.0, -9.5 + j)
                first = hit_sphere(eye, target - eye, ground, 0.001, 1e10)
                if first.hit == 1:
                    first_hits[None] += 1
                    for k in range(3):
                        outgoing = vec3(1.0, 0.02 + 0.02 * k, 0.0)
                        again = hit_sphere(first.point, outgoing, ground, 0.001, 1e10)
                        self_hits[None] += again.hit

        test_kernel()
        assert first_hits[None] == 400
        assert self_hits[None] == 0

    @pytest.mark.parametrize("x,z", [(0.0, 0.0), (7.3, -4.1), (-6.2, 8.8), (11.5, 2.25)])
    @pytest.mark.parametrize("direction", [(1.0, 0.02, 0.0), (0.3, 0.05, -1.0)])
    def test_surface_point_grazing_ray_misses(self, x, z, direction):
        """Test a shallow ray from a point on the ground surface."""
        y = math.sqrt(1000.0**2 - x * x - z * z) - 1000.0
        hit, _, _, _, _ = _hit((x, y, z), direction, (0.0, -1000.0, 0.0), 1000.0, 0.001, 1e10)
        assert hit == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
