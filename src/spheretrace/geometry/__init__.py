"""Geometry module for shape primitives.

Components:
    sphere: Sphere primitive with ray-sphere intersection

Intersection routines are Taichi functions (@ti.func) returning a HitRecord
whose normal always faces against the incoming ray.
"""

from .sphere import HitRecord, Sphere, hit_sphere, make_hit_record, make_sphere

__all__ = [
    "Sphere",
    "HitRecord",
    "hit_sphere",
    "make_hit_record",
    "make_sphere",
]
