# wren/graphics/resources/__init__.py
from wren.graphics.resources.manager import GPUResourceManager
from wren.graphics.resources.mesh import (
    GPUMesh,
    MeshTracker,
    download_geometry,
    upload_geometry,
)

__all__ = [
    "GPUResourceManager",
    "GPUMesh",
    "MeshTracker",
    "upload_geometry",
    "download_geometry",
]
