"""Tests for the demo scenes.

Tests cover:
- random_scene(): ground, grid of small spheres, the three feature spheres,
  material mix and camera framing
- Reproducibility from a seeded generator
- simple_scene(): hollow glass bubble and camera
"""

import math

import numpy as np
import pytest


class TestRandomScene:
    """Tests for random_scene."""

    def test_ground_and_feature_spheres(self):
        """Test the first sphere is the ground and the last three are the features."""
        from spheretrace.scene.manager import MaterialType
        from spheretrace.scene.random_scene import random_scene

        scene, _ = random_scene(np.random.default_rng(1))

        ground = scene.spheres[0]
        assert ground.center == (0.0, -1000.0, 0.0)
        assert ground.radius == 1000.0

        glass, brown, steel = scene.spheres[-3:]
        assert glass.center == (0.0, 1.0, 0.0)
        assert brown.center == (-4.0, 1.0, 0.0)
        assert steel.center == (4.0, 1.0, 0.0)
        assert scene.get_material_info(glass.material_id).material_type == MaterialType.DIELECTRIC
        assert scene.get_material_info(brown.material_id).params["albedo"] == (0.4, 0.2, 0.1)
        assert scene.get_material_info(steel.material_id).params == {
            "albedo": (0.7, 0.6, 0.5),
            "fuzz": 0.0,
        }

    def test_small_spheres_on_grid(self):
        """Test small spheres have radius 0.2, sit on y = 0.2 and avoid the metal sphere."""
        from spheretrace.scene.random_scene import random_scene

        scene, _ = random_scene(np.random.default_rng(2))
        small = scene.spheres[1:-3]

        assert 0 < len(small) <= 22 * 22
        for sphere in small:
            x, y, z = sphere.center
            assert sphere.radius == 0.2
            assert y == 0.2
            assert -11.0 <= x < 11.0
            assert -11.0 <= z < 11.0
            assert math.dist(sphere.center, (4.0, 0.2, 0.0)) > 0.9

    def test_small_sphere_materials(self):
        """Test every small sphere's material is within the allowed ranges."""
        from spheretrace.scene.manager import MaterialType
        from spheretrace.scene.random_scene import random_scene

        scene, _ = random_scene(np.random.default_rng(3))
        counts = {MaterialType.LAMBERTIAN: 0, MaterialType.METAL: 0, MaterialType.DIELECTRIC: 0}

        for sphere in scene.spheres[1:-3]:
            info = scene.get_material_info(sphere.material_id)
            counts[info.material_type] += 1
            if info.material_type == MaterialType.METAL:
                assert all(0.5 <= c < 1.0 for c in info.params["albedo"])
                assert 0.0 <= info.params["fuzz"] < 0.5
            elif info.material_type == MaterialType.DIELECTRIC:
                assert info.params["ior"] == 1.5
            else:
                assert all(0.0 <= c < 1.0 for c in info.params["albedo"])

        # Roughly 80% diffuse
        total = sum(counts.values())
        assert 0.65 < counts[MaterialType.LAMBERTIAN] / total < 0.95

    def test_seeded_generator_is_reproducible(self):
        """Test the same seed builds the same scene."""
        from spheretrace.scene.random_scene import random_scene

        first, _ = random_scene(np.random.default_rng(42))
        first_dict = first.to_dict()
        second, _ = random_scene(np.random.default_rng(42))
        assert second.to_dict() == first_dict

    def test_camera_config(self):
        """Test the camera frames the scene with a shallow depth of field."""
        from spheretrace.scene.random_scene import random_scene

        _, config = random_scene(np.random.default_rng(0), samples_per_pixel=7, bounce_limit=3)

        assert config.lookfrom == (13.0, 2.0, 3.0)
        assert config.lookto == (0.0, 0.0, 0.0)
        assert abs(config.vertical_fov - math.radians(20.0)) < 1e-9
        assert config.aperture == 0.1
        assert config.focus_dist == 10.0
        assert config.samples_per_pixel == 7
        assert config.bounce_limit == 3
        config.validate()


class TestSimpleScene:
    """Tests for simple_scene."""

    def test_contents(self):
        """Test four materials and five spheres including the hollow bubble."""
        from spheretrace.scene.random_scene import simple_scene

        scene, _ = simple_scene()
        assert scene.get_material_count() == 4
        assert scene.get_sphere_count() == 5

        outer, inner = scene.spheres[2], scene.spheres[3]
        assert outer.center == inner.center
        assert outer.radius == 0.5
        assert inner.radius == -0.45
        assert outer.material_id == inner.material_id

    def test_camera_is_pinhole(self):
        """Test the simple scene uses a pinhole camera."""
        from spheretrace.scene.random_scene import simple_scene

        _, config = simple_scene(samples_per_pixel=5)
        assert config.aperture == 0.0
        assert config.samples_per_pixel == 5
        config.validate()

    def test_scene_replaces_previous(self):
        """Test building a scene clears the one before it."""
        from spheretrace.scene.intersection import get_sphere_count
        from spheretrace.scene.random_scene import random_scene, simple_scene

        random_scene(np.random.default_rng(5))
        simple_scene()
        assert get_sphere_count() == 5


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
