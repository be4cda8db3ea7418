"""Camera module for primary ray generation.

Ray generation uses normalized image coordinates:
    s in [0, 1]: left to right across image
    t in [0, 1]: bottom to top across image
"""

from .thin_lens import (
    CameraConfig,
    get_camera_info,
    get_ray,
    get_ray_jittered,
    is_camera_initialized,
    setup_camera,
)

__all__ = [
    "CameraConfig",
    "setup_camera",
    "is_camera_initialized",
    "get_ray",
    "get_ray_jittered",
    "get_camera_info",
]
