"""Taichi-based Monte Carlo path tracer for scenes made of spheres.

This package renders sphere scenes offline with:
- Path tracing with a bounded number of bounces per sample
- Diffuse, metal and dielectric material models
- A thin-lens camera with depth of field
- Multi-sample anti-aliasing and gamma-2 tone mapping
- PPM and PNG output

Subpackages:
    core: Ray and vector utilities, the integrator and the render loop
    geometry: The sphere primitive and its intersection test
    materials: Scattering models and material registries
    scene: Scene storage, the SceneManager and ready-made scenes
    camera: Thin-lens camera with ray generation
    image: Bitmap pixel grid and image file sinks
"""

__version__ = "0.1.0"
