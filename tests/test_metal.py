"""Unit tests for the metal material module.

Tests cover:
- Perfect reflection (fuzz = 0)
- Fuzzy reflection bounded by the fuzz radius
- Absorption when the scattered ray points into the surface
- Attenuation equals albedo
- Material registry, fuzz clamping and validation
"""

import pytest
import taichi as ti


class TestPerfectReflection:
    """Tests for mirror reflection with zero fuzz."""

    def test_normal_incidence_reflects_back(self):
        """Test a head-on ray reflects straight back."""
        from spheretrace.materials.metal import scatter_metal

        direction = ti.Vector.field(3, dtype=ti.f32, shape=())
        scattered = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            d, _, s = scatter_metal(
                ti.math.vec3(0.9, 0.9, 0.9),
                0.0,
                ti.math.vec3(0.0, -1.0, 0.0),
                ti.math.vec3(0.0, 1.0, 0.0),
            )
            direction[None] = d
            scattered[None] = s

        test_kernel()
        d = direction[None]
        assert abs(d[0]) < 1e-6
        assert abs(d[1] - 1.0) < 1e-6
        assert abs(d[2]) < 1e-6
        assert scattered[None] == 1

    def test_reflection_uses_unit_incident(self):
        """Test an unnormalized incident direction yields a unit reflection."""
        from spheretrace.materials.metal import scatter_metal

        direction = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            d, _, _ = scatter_metal(
                ti.math.vec3(0.9, 0.9, 0.9),
                0.0,
                ti.math.vec3(3.0, -3.0, 0.0),
                ti.math.vec3(0.0, 1.0, 0.0),
            )
            direction[None] = d

        test_kernel()
        d = direction[None]
        expected = 1.0 / (2.0**0.5)
        assert abs(d[0] - expected) < 1e-5
        assert abs(d[1] - expected) < 1e-5
        assert abs(d[2]) < 1e-6

    def test_tangent_reflection_is_not_absorbed(self):
        """Test a mirror reflection lying in the surface plane still scatters."""
        from spheretrace.materials.metal import scatter_metal

        direction = ti.Vector.field(3, dtype=ti.f32, shape=())
        scattered = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            d, _, s = scatter_metal(
                ti.math.vec3(0.9, 0.9, 0.9),
                0.0,
                ti.math.vec3(1.0, 0.0, 0.0),
                ti.math.vec3(0.0, 1.0, 0.0),
            )
            direction[None] = d
            scattered[None] = s

        test_kernel()
        d = direction[None]
        assert d[1] == 0.0
        assert abs(d[0] - 1.0) < 1e-6
        assert scattered[None] == 1

    def test_attenuation_equals_albedo(self):
        """Test the attenuation is the metal's albedo."""
        from spheretrace.materials.metal import scatter_metal

        result = ti.Vector.field(3, dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel():
            _, attenuation, _ = scatter_metal(
                ti.math.vec3(0.7, 0.6, 0.5),
                0.3,
                ti.math.vec3(0.0, -1.0, 0.0),
                ti.math.vec3(0.0, 1.0, 0.0),
            )
            result[None] = attenuation

        test_kernel()
        r = result[None]
        assert abs(r[0] - 0.7) < 1e-6
        assert abs(r[1] - 0.6) < 1e-6
        assert abs(r[2] - 0.5) < 1e-6


class TestFuzzyReflection:
    """Tests for fuzzed reflection."""

    def test_fuzz_offset_bounded_by_fuzz(self):
        """Test the perturbation from the mirror direction is below fuzz."""
        from spheretrace.materials.metal import scatter_metal

        max_offset = ti.field(dtype=ti.f32, shape=())
        max_offset[None] = 0.0
        fuzz = 0.3

        @ti.kernel
        def test_kernel():
            normal = ti.math.vec3(0.0, 1.0, 0.0)
            for i in range(1000):
                d, _attenuation, _did_scatter = scatter_metal(
                    ti.math.vec3(0.9, 0.9, 0.9), fuzz, ti.math.vec3(0.0, -1.0, 0.0), normal
                )
                ti.atomic_max(max_offset[None], (d - normal).norm())

        test_kernel()
        assert max_offset[None] < fuzz + 1e-5
        assert max_offset[None] > 0.0

    def test_grazing_fuzzy_reflection_sometimes_absorbs(self):
        """Test rays perturbed into the surface are reported as absorbed."""
        from spheretrace.materials.metal import scatter_metal

        absorbed = ti.field(dtype=ti.i32, shape=())
        absorbed_into_surface = ti.field(dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel():
            normal = ti.math.vec3(0.0, 1.0, 0.0)
            incident = ti.math.vec3(1.0, -0.01, 0.0)
            for i in range(1000):
                d, _attenuation, s = scatter_metal(
                    ti.math.vec3(0.9, 0.9, 0.9), 1.0, incident, normal
                )
                if s == 0:
                    absorbed[None] += 1
                    if d.dot(normal) < 0.0:
                        absorbed_into_surface[None] += 1

        test_kernel()
        assert absorbed[None] > 0
        assert absorbed_into_surface[None] == absorbed[None]

    def test_scattered_rays_leave_surface(self):
        """Test every scattered (not absorbed) ray points out of the surface."""
        from spheretrace.materials.metal import scatter_metal

        min_dot = ti.field(dtype=ti.f32, shape=())
        min_dot[None] = 10.0

        @ti.kernel
        def test_kernel():
            normal = ti.math.vec3(0.0, 1.0, 0.0)
            incident = ti.math.vec3(1.0, -0.2, 0.0)
            for i in range(1000):
                d, _attenuation, s = scatter_metal(
                    ti.math.vec3(0.9, 0.9, 0.9), 0.8, incident, normal
                )
                if s == 1:
                    ti.atomic_min(min_dot[None], d.dot(normal))

        test_kernel()
        assert min_dot[None] > 0.0


class TestMaterialRegistry:
    """Tests for the metal material registry."""

    def test_add_and_get_material(self):
        """Test adding a material and reading it back in a kernel."""
        from spheretrace.materials.metal import (
            add_metal_material,
            get_metal_albedo,
            get_metal_fuzz,
        )

        idx = add_metal_material((0.8, 0.6, 0.2), fuzz=0.25)
        albedo = ti.Vector.field(3, dtype=ti.f32, shape=())
        fuzz = ti.field(dtype=ti.f32, shape=())

        @ti.kernel
        def test_kernel(mat_idx: ti.i32):
            albedo[None] = get_metal_albedo(mat_idx)
            fuzz[None] = get_metal_fuzz(mat_idx)

        test_kernel(idx)
        assert abs(albedo[None][0] - 0.8) < 1e-6
        assert abs(albedo[None][2] - 0.2) < 1e-6
        assert abs(fuzz[None] - 0.25) < 1e-6

    def test_default_fuzz_is_zero(self):
        """Test metals default to a perfect mirror."""
        from spheretrace.materials.metal import add_metal_material, get_metal_fuzz_python

        idx = add_metal_material((0.5, 0.5, 0.5))
        assert get_metal_fuzz_python(idx) == 0.0

    def test_fuzz_above_one_is_clamped(self):
        """Test fuzz greater than 1 is stored as 1."""
        from spheretrace.materials.metal import add_metal_material, get_metal_fuzz_python

        idx = add_metal_material((0.5, 0.5, 0.5), fuzz=3.0)
        assert get_metal_fuzz_python(idx) == 1.0

    def test_negative_fuzz_rejected(self):
        """Test negative fuzz raises ValueError."""
        from spheretrace.materials.metal import add_metal_material, get_metal_material_count

        with pytest.raises(ValueError, match="Fuzz"):
            add_metal_material((0.5, 0.5, 0.5), fuzz=-0.1)
        assert get_metal_material_count() == 0

    def test_invalid_albedo_rejected(self):
        """Test albedo outside [0, 1] raises ValueError."""
        from spheretrace.materials.metal import add_metal_material

        with pytest.raises(ValueError, match="Albedo"):
            add_metal_material((1.5, 0.5, 0.5))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
