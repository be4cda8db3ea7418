"""Ready-made demo scenes.

Each factory clears the global scene, fills it through a SceneManager and
returns the manager together with a CameraConfig framing the scene:

- random_scene(): the classic cover scene, a large ground sphere covered in
  a grid of small randomly-chosen diffuse, metal and glass spheres plus
  three large feature spheres.
- simple_scene(): a ground sphere and three spheres side by side, including
  a hollow glass bubble built from a negative-radius inner sphere.

Example:
    >>> import numpy as np
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.scene.random_scene import random_scene
    >>>
    >>> scene, camera_config = random_scene(np.random.default_rng(7))
    >>> scene.get_sphere_count() > 100
    True
"""

import logging
import math

import numpy as np

from spheretrace.camera.thin_lens import CameraConfig
from spheretrace.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# Aspect ratio the demo scenes are framed for
DEFAULT_ASPECT_RATIO = 3.0 / 2.0

# Small spheres are kept clear of the large metal sphere at (4, 1, 0)
_CLEARANCE_POINT = np.array([4.0, 0.2, 0.0])
_CLEARANCE_DISTANCE = 0.9


def random_scene(
    rng: np.random.Generator | None = None,
    samples_per_pixel: int = 100,
    bounce_limit: int = 50,
) -> tuple[SceneManager, CameraConfig]:
    """Create the "many random spheres" scene.

    A ground sphere of radius 1000 sits below a 22 x 22 grid of radius 0.2
    spheres. Each small sphere is diffuse (80%, albedo = rand * rand), metal
    (15%, albedo in [0.5, 1), fuzz in [0, 0.5)) or glass (5%, ior 1.5).
    Three radius 1 spheres (glass, brown diffuse, polished metal) sit in a
    row along the x-axis.

    Args:
        rng: Random generator for sphere placement and materials. A fresh
            unseeded generator is used when omitted.
        samples_per_pixel: Samples per pixel for the returned camera config.
        bounce_limit: Bounce limit for the returned camera config.

    Returns:
        Tuple of (SceneManager, CameraConfig).
    """
    if rng is None:
        rng = np.random.default_rng()

    scene = SceneManager()

    ground = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
    scene.add_sphere((0.0, -1000.0, 0.0), 1000.0, ground)

    for a in range(-11, 11):
        for b in range(-11, 11):
            choose_mat = rng.random()
            center = np.array([a + 0.9 * rng.random(), 0.2, b + 0.9 * rng.random()])

            if np.linalg.norm(center - _CLEARANCE_POINT) <= _CLEARANCE_DISTANCE:
                continue

            if choose_mat < 0.8:
                albedo = rng.random(3) * rng.random(3)
                material_id = scene.add_lambertian_material(albedo=tuple(albedo.tolist()))
            elif choose_mat < 0.95:
                albedo = rng.uniform(0.5, 1.0, size=3)
                fuzz = float(rng.uniform(0.0, 0.5))
                material_id = scene.add_metal_material(albedo=tuple(albedo.tolist()), fuzz=fuzz)
            else:
                material_id = scene.add_dielectric_material(ior=1.5)

            scene.add_sphere(tuple(center.tolist()), 0.2, material_id)

    scene.add_dielectric_sphere(center=(0.0, 1.0, 0.0), radius=1.0, ior=1.5)
    scene.add_lambertian_sphere(center=(-4.0, 1.0, 0.0), radius=1.0, albedo=(0.4, 0.2, 0.1))
    scene.add_metal_sphere(center=(4.0, 1.0, 0.0), radius=1.0, albedo=(0.7, 0.6, 0.5), fuzz=0.0)

    logger.debug(
        "Random scene: %d spheres, %d materials",
        scene.get_sphere_count(),
        scene.get_material_count(),
    )

    camera = CameraConfig(
        lookfrom=(13.0, 2.0, 3.0),
        lookto=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vertical_fov=math.radians(20.0),
        aperture=0.1,
        focus_dist=10.0,
        samples_per_pixel=samples_per_pixel,
        bounce_limit=bounce_limit,
    )
    return scene, camera


def simple_scene(
    samples_per_pixel: int = 100,
    bounce_limit: int = 50,
) -> tuple[SceneManager, CameraConfig]:
    """Create a small scene with one sphere of each material.

    A diffuse sphere sits between a hollow glass bubble on the left and a
    gold metal sphere on the right, all resting on a large yellow-green
    ground sphere. The bubble is a glass sphere with a negative-radius glass
    sphere inside it, so its inner surface has inward-facing normals.

    Returns:
        Tuple of (SceneManager, CameraConfig).
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material(albedo=(0.8, 0.8, 0.0))
    center = scene.add_lambertian_material(albedo=(0.1, 0.2, 0.5))
    glass = scene.add_dielectric_material(ior=1.5)
    gold = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.0)

    scene.add_sphere((0.0, -100.5, -1.0), 100.0, ground)
    scene.add_sphere((0.0, 0.0, -1.0), 0.5, center)
    scene.add_sphere((-1.0, 0.0, -1.0), 0.5, glass)
    scene.add_sphere((-1.0, 0.0, -1.0), -0.45, glass)
    scene.add_sphere((1.0, 0.0, -1.0), 0.5, gold)

    camera = CameraConfig(
        lookfrom=(-2.0, 2.0, 1.0),
        lookto=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vertical_fov=math.radians(40.0),
        aperture=0.0,
        focus_dist=math.sqrt(2.0 * 2.0 + 2.0 * 2.0 + 2.0 * 2.0),
        samples_per_pixel=samples_per_pixel,
        bounce_limit=bounce_limit,
    )
    return scene, camera
