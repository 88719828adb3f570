# wren/geometry/__init__.py
from wren.geometry.buffer import GeometryBuffer, IndexFormat, VertexChannel

__all__ = [
    "GeometryBuffer",
    "IndexFormat",
    "VertexChannel",
]
