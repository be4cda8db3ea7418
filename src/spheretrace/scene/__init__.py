"""Scene module for sphere storage and scene construction.

Components:
    intersection: Sphere storage in Taichi fields and nearest-hit queries
    manager: Unified scene manager coordinating spheres and materials
    random_scene: Ready-made demo scenes with matching camera settings

Scene data uses a Structure-of-Arrays layout in Taichi fields; materials are
shared by id.
"""

from .intersection import (
    MAX_SPHERES,
    SceneHitRecord,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
    query_hit,
)
from .manager import (
    MAX_MATERIALS,
    HitInfo,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereObject,
    get_material_type,
    get_material_type_index,
)
from .random_scene import random_scene, simple_scene

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    "query_hit",
    "MAX_SPHERES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SphereObject",
    "HitInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Demo scenes
    "random_scene",
    "simple_scene",
]
