"""Unified scene manager for coordinating spheres and materials.

This module provides the scene construction API used by setup code. It
keeps a single material_id space across all material types and maps each id
to (material_type, type_local_index), which is what the path tracer uses to
dispatch to the right scattering function. Materials are created once and
shared by id: any number of spheres may reference the same material, and
nothing is mutated once rendering starts.

The SceneManager maintains:
- A unified material_id space across all material types
- Mapping from material_id to (material_type, type_local_index)
- add_object()/add_sphere() for placing spheres
- Dictionary (JSON-friendly) serialization

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from spheretrace.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> mat_id = scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3))
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material_id=mat_id)
"""

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import taichi as ti

from spheretrace.core.ray import vec3
from spheretrace.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from spheretrace.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from spheretrace.materials.metal import (
    add_metal_material,
    clear_metal_materials,
    get_metal_fuzz_python,
)
from spheretrace.scene.intersection import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
    query_hit,
)

logger = logging.getLogger(__name__)


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the path tracer. The three diffuse kinds
    share the Lambertian albedo registry.
    """

    LAMBERTIAN = 0
    TRUE_LAMBERTIAN = 1
    HEMISPHERE = 2
    METAL = 3
    DIELECTRIC = 4


DIFFUSE_TYPES = (
    MaterialType.LAMBERTIAN,
    MaterialType.TRUE_LAMBERTIAN,
    MaterialType.HEMISPHERE,
)

# Maximum number of materials across all types
MAX_MATERIALS = 1024

# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the index into the type-specific registry
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    """Clear the material tracking fields."""
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    Returns:
        The material type as an integer (see MaterialType), or -1 for an
        invalid material ID.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the type-local registry index for a given material ID.

    Returns:
        The index into the type-specific material arrays, or -1 for an
        invalid material ID.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: The type of material.
        type_index: The index within the type-specific material array.
        params: The material parameters as stored.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass(frozen=True)
class SphereObject:
    """A sphere to place in the scene.

    Attributes:
        center: The center of the sphere.
        radius: The radius of the sphere. A negative radius makes a hollow
            shell whose normals point inward.
        material_id: The shared material the sphere is made of.
    """

    center: tuple[float, float, float]
    radius: float
    material_id: int


@dataclass
class HitInfo:
    """Host-side copy of a scene intersection.

    Attributes:
        t: The ray parameter of the nearest hit.
        point: The intersection point.
        normal: The unit normal facing against the ray.
        front_face: Whether the outward-facing side was hit.
        material_id: The material of the hit sphere.
    """

    t: float
    point: tuple[float, float, float]
    normal: tuple[float, float, float]
    front_face: bool
    material_id: int


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        materials: List of material configurations.
        spheres: List of sphere configurations.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    spheres: list[dict[str, Any]] = field(default_factory=list)


class SceneManager:
    """Unified scene manager coordinating spheres and materials.

    Creating a SceneManager clears the global scene and material storage, so
    only one scene is live at a time.

    Attributes:
        materials: List of MaterialInfo for all registered materials.
        spheres: List of SphereObject for all spheres in the scene.

    Example:
        >>> scene = SceneManager()
        >>> red_diffuse = scene.add_lambertian_material(albedo=(0.8, 0.1, 0.1))
        >>> gold_metal = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)
        >>> glass = scene.add_dielectric_material(ior=1.5)
        >>> scene.add_sphere((0, 0, -1), 0.5, red_diffuse)
        >>> scene.add_sphere((1, 0, -1), 0.5, gold_metal)
        >>> scene.add_object(SphereObject((-1, 0, -1), 0.5, glass))
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: list[MaterialInfo] = []
        self.spheres: list[SphereObject] = []
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        self.materials.clear()
        self.spheres.clear()

    def clear(self) -> None:
        """Clear the entire scene (spheres and materials)."""
        self._clear_all()

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register_material(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
    ) -> int:
        """Assign a unified material ID to a type-local registry entry."""
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                params=params,
            )
        )
        return material_id

    def add_lambertian_material(
        self,
        albedo: tuple[float, float, float],
        variant: MaterialType = MaterialType.LAMBERTIAN,
    ) -> int:
        """Add a diffuse material to the scene.

        Args:
            albedo: The diffuse reflectance color as (R, G, B) tuple.
            variant: Which diffuse model to use: LAMBERTIAN (the in-sphere
                approximation), TRUE_LAMBERTIAN or HEMISPHERE.

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1] or the
                variant is not a diffuse type.
        """
        variant = MaterialType(variant)
        if variant not in DIFFUSE_TYPES:
            raise ValueError(f"{variant.name} is not a diffuse material type")
        type_index = add_lambertian_material(albedo)
        return self._register_material(variant, type_index, {"albedo": tuple(albedo)})

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Add a metal material to the scene.

        Args:
            albedo: The reflective color as (R, G, B) tuple.
            fuzz: The surface roughness; values above 1 are clamped to 1.

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
            ValueError: If fuzz is negative.
        """
        type_index = add_metal_material(albedo, fuzz)
        stored_fuzz = get_metal_fuzz_python(type_index)
        return self._register_material(
            MaterialType.METAL,
            type_index,
            {"albedo": tuple(albedo), "fuzz": stored_fuzz},
        )

    def add_dielectric_material(
        self,
        ior: float = 1.5,
    ) -> int:
        """Add a dielectric (glass/water) material to the scene.

        Args:
            ior: Index of refraction. Default is 1.5 (typical glass).

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If the IOR is not positive.
        """
        type_index = add_dielectric_material(ior)
        return self._register_material(MaterialType.DIELECTRIC, type_index, {"ior": ior})

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID.

        Returns:
            MaterialInfo for the material, or None if not found.
        """
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    # =========================================================================
    # Object Management
    # =========================================================================

    def add_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        material_id: int,
    ) -> int:
        """Add a sphere to the scene.

        Args:
            center: The center point of the sphere as (x, y, z).
            radius: The radius of the sphere; negative for a hollow shell.
            material_id: The unified material ID to assign to the sphere.

        Returns:
            The index of the added sphere.

        Raises:
            RuntimeError: If the maximum number of spheres is exceeded.
            ValueError: If material_id is invalid.
        """
        if material_id < 0 or material_id >= num_materials[None]:
            raise ValueError(f"Invalid material_id: {material_id}")

        center_vec = vec3(center[0], center[1], center[2])
        sphere_index = add_sphere(center_vec, radius, material_id)
        self.spheres.append(
            SphereObject(
                center=(float(center[0]), float(center[1]), float(center[2])),
                radius=float(radius),
                material_id=material_id,
            )
        )
        return sphere_index

    def add_object(self, obj: SphereObject) -> int:
        """Append a scene object.

        Args:
            obj: The object to add. Spheres are the only supported shape.

        Returns:
            The index of the added object.

        Raises:
            TypeError: If the object is not a supported shape.
        """
        if not isinstance(obj, SphereObject):
            raise TypeError(f"Unsupported scene object: {type(obj).__name__}")
        return self.add_sphere(obj.center, obj.radius, obj.material_id)

    def add_lambertian_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Add a sphere with a new approximate-Lambertian material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_lambertian_material(albedo)
        sphere_index = self.add_sphere(center, radius, material_id)
        return sphere_index, material_id

    def add_metal_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> tuple[int, int]:
        """Add a sphere with a new metal material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_metal_material(albedo, fuzz)
        sphere_index = self.add_sphere(center, radius, material_id)
        return sphere_index, material_id

    def add_dielectric_sphere(
        self,
        center: tuple[float, float, float],
        radius: float,
        ior: float = 1.5,
    ) -> tuple[int, int]:
        """Add a sphere with a new dielectric material.

        Returns:
            Tuple of (sphere_index, material_id).
        """
        material_id = self.add_dielectric_material(ior)
        sphere_index = self.add_sphere(center, radius, material_id)
        return sphere_index, material_id

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_sphere_count(self) -> int:
        """Get the number of spheres in the scene."""
        return get_sphere_count()

    def hit(
        self,
        origin: tuple[float, float, float],
        direction: tuple[float, float, float],
        t_min: float = 0.001,
        t_max: float = 1e10,
    ) -> HitInfo | None:
        """Find the nearest sphere along a ray.

        Args:
            origin: The ray origin.
            direction: The ray direction (need not be normalized).
            t_min: Minimum accepted t.
            t_max: Maximum accepted t.

        Returns:
            The nearest hit, or None if the ray misses every sphere.
        """
        record = query_hit(origin, direction, t_min, t_max)
        if record is None:
            return None
        t, point, normal, front_face, material_id = record
        return HitInfo(
            t=t,
            point=point,
            normal=normal,
            front_face=front_face,
            material_id=material_id,
        )

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig()

        for mat in self.materials:
            mat_config: dict[str, Any] = {
                "type": mat.material_type.name.lower(),
                **{k: list(v) if isinstance(v, tuple) else v for k, v in mat.params.items()},
            }
            config.materials.append(mat_config)

        for sphere in self.spheres:
            config.spheres.append(
                {
                    "center": list(sphere.center),
                    "radius": sphere.radius,
                    "material_id": sphere.material_id,
                }
            )

        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Clears the current scene first.

        Raises:
            ValueError: If the configuration contains invalid data.
        """
        self.clear()

        # Materials first so sphere material ids resolve
        for mat_config in config.materials:
            mat_type = str(mat_config.get("type", "")).lower()
            if mat_type in ("lambertian", "true_lambertian", "hemisphere"):
                albedo_list = mat_config.get("albedo", [0.5, 0.5, 0.5])
                albedo: tuple[float, float, float] = (
                    albedo_list[0],
                    albedo_list[1],
                    albedo_list[2],
                )
                self.add_lambertian_material(albedo, MaterialType[mat_type.upper()])
            elif mat_type == "metal":
                albedo_list = mat_config.get("albedo", [0.8, 0.8, 0.8])
                albedo = (albedo_list[0], albedo_list[1], albedo_list[2])
                self.add_metal_material(albedo, mat_config.get("fuzz", 0.0))
            elif mat_type == "dielectric":
                self.add_dielectric_material(mat_config.get("ior", 1.5))
            else:
                raise ValueError(f"Unknown material type: {mat_type}")

        for sphere_config in config.spheres:
            center_list = sphere_config.get("center", [0, 0, 0])
            center: tuple[float, float, float] = (
                center_list[0],
                center_list[1],
                center_list[2],
            )
            self.add_sphere(
                center,
                sphere_config.get("radius", 1.0),
                sphere_config.get("material_id", 0),
            )

        logger.debug(
            "Loaded scene with %d materials and %d spheres",
            len(self.materials),
            len(self.spheres),
        )

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        return {"materials": config.materials, "spheres": config.spheres}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary with 'materials' and 'spheres' keys."""
        config = SceneConfig(
            materials=data.get("materials", []),
            spheres=data.get("spheres", []),
        )
        self.from_config(config)

    @staticmethod
    def get_max_spheres() -> int:
        """Get the maximum number of spheres supported."""
        return MAX_SPHERES

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS
