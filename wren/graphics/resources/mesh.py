# wren/graphics/resources/mesh.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

import moderngl
import numpy as np

from wren.geometry.buffer import GeometryBuffer, IndexFormat, VertexChannel
from wren.settings import DEFAULT_SETTINGS, GeometrySettings
from wren.types import BoundingBox3D

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class GPUMesh:
    """
    GPU-side mesh: one vertex buffer per channel plus an optional index buffer.

    Bound to the moderngl context that created it; only touch it on that
    context's thread.
    """

    vbos: Dict[VertexChannel, moderngl.Buffer]
    ibo: Optional[moderngl.Buffer]
    index_format: IndexFormat
    vertex_count: int
    index_count: int
    bounds: BoundingBox3D
    label: str

    def has_channel(self, channel: VertexChannel) -> bool:
        return channel in self.vbos

    def read_channel(self, channel: VertexChannel) -> np.ndarray:
        """Read a vertex stream back from VRAM as (N, k) float32."""
        data = self.vbos[channel].read()
        return np.frombuffer(data, dtype="<f4").reshape(-1, channel.components)

    def read_triangles(self) -> Optional[np.ndarray]:
        if self.ibo is None:
            return None
        data = self.ibo.read()
        return np.frombuffer(data, dtype=self.index_format.dtype).astype(np.int32)

    def release(self) -> None:
        for vbo in self.vbos.values():
            vbo.release()
        self.vbos.clear()

        if self.ibo:
            self.ibo.release()
            self.ibo = None


@dataclass(slots=True)
class MeshTracker:
    """Receives the GPUMesh built from a GeometryBuffer that points at it."""

    mesh: Optional[GPUMesh] = None


def upload_geometry(
    ctx: moderngl.Context,
    geometry: GeometryBuffer,
    settings: GeometrySettings = DEFAULT_SETTINGS,
) -> GPUMesh:
    """
    Build a GPUMesh from the buffer's current contents.

    Must be called on the thread that owns `ctx`. Indices are written as
    32-bit whenever the vertex count reaches settings.wide_index_threshold,
    otherwise in the buffer's requested format. Bounds are copied as stored,
    not recomputed.

    Raises:
        GeometryError: if the buffer breaks its invariants. Nothing is
        allocated in that case.
    """
    geometry.validate()

    index_format = geometry.effective_index_format(settings.wide_index_threshold)

    streams = {}
    if geometry.vertices is not None:
        streams[VertexChannel.POSITION] = geometry.vertices
    streams.update(geometry.channels)

    # moderngl refuses zero-sized buffers; empty streams are left unset
    vbos: Dict[VertexChannel, moderngl.Buffer] = {}
    for channel, data in streams.items():
        arr = np.asarray(data, dtype="<f4").reshape(-1, channel.components)
        if len(arr):
            vbos[channel] = ctx.buffer(arr.tobytes())

    ibo: Optional[moderngl.Buffer] = None
    index_count = 0
    if geometry.triangles is not None:
        indices = np.asarray(geometry.triangles).reshape(-1)
        index_count = len(indices)
        if index_count:
            ibo = ctx.buffer(indices.astype(index_format.dtype).tobytes())

    mesh = GPUMesh(
        vbos=vbos,
        ibo=ibo,
        index_format=index_format,
        vertex_count=geometry.vertex_count,
        index_count=index_count,
        bounds=geometry.bounds,
        label=geometry.name,
    )

    if geometry.tracker is not None:
        geometry.tracker.mesh = mesh

    logger.debug(
        "upload_geometry(%s): %d verts, %d indices as %s, channels=%s",
        geometry.name,
        mesh.vertex_count,
        mesh.index_count,
        index_format.name,
        [c.name for c in vbos],
    )
    return mesh


def download_geometry(mesh: Optional[GPUMesh]) -> GeometryBuffer:
    """
    Copy every stream of a GPUMesh back into a new GeometryBuffer.

    Must be called on the thread that owns the mesh's context.

    Raises:
        ValueError: if mesh is None.
    """
    if mesh is None:
        raise ValueError("download_geometry requires a source mesh")

    vertices = None
    if mesh.has_channel(VertexChannel.POSITION):
        vertices = mesh.read_channel(VertexChannel.POSITION)

    channels = {
        channel: mesh.read_channel(channel)
        for channel in mesh.vbos
        if channel is not VertexChannel.POSITION
    }

    geometry = GeometryBuffer(
        vertices=vertices,
        triangles=mesh.read_triangles(),
        channels=channels,
        bounds=mesh.bounds,
        index_format=mesh.index_format,
        name=mesh.label,
    )

    logger.debug(
        "download_geometry(%s): %d verts, channels=%s",
        mesh.label,
        geometry.vertex_count,
        [c.name for c in channels],
    )
    return geometry
