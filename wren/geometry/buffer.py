# wren/geometry/buffer.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

import numpy as np

from wren.errors import GeometryError
from wren.settings import DEFAULT_SETTINGS
from wren.types import BoundingBox3D, Vector3

if TYPE_CHECKING:
    from wren.graphics.resources.mesh import MeshTracker

logger = logging.getLogger(__name__)


class IndexFormat(str, Enum):
    """Element width of the triangle index buffer."""

    UINT16 = "u2"
    UINT32 = "u4"

    @property
    def element_size(self) -> int:
        return 2 if self is IndexFormat.UINT16 else 4

    @property
    def dtype(self) -> np.dtype:
        return np.dtype("<" + self.value)


class VertexChannel(str, Enum):
    """Per-vertex attribute streams. Values are the shader attribute names."""

    POSITION = "in_pos"
    NORMAL = "in_normal"
    UV0 = "in_uv"
    UV1 = "in_uv1"
    UV2 = "in_uv2"
    COLOR = "in_color"
    TANGENT = "in_tangent"

    @property
    def components(self) -> int:
        return _CHANNEL_COMPONENTS[self]


_CHANNEL_COMPONENTS = {
    VertexChannel.POSITION: 3,
    VertexChannel.NORMAL: 3,
    VertexChannel.UV0: 2,
    VertexChannel.UV1: 2,
    VertexChannel.UV2: 2,
    VertexChannel.COLOR: 4,
    VertexChannel.TANGENT: 4,
}


def _as_channel_array(data: Any, components: int) -> np.ndarray:
    return np.array(data, dtype=np.float32).reshape(-1, components)


@dataclass(slots=True, eq=False)
class GeometryBuffer:
    """
    CPU-side triangle mesh: positions, indices, optional vertex channels,
    cached bounds and a name.

    Holds no GPU resources, so it can be built and mutated on any thread.
    Instances are not synchronized; concurrent writers must coordinate.
    Turning it into a GPUMesh goes through wren.graphics.resources.mesh and
    must happen on the thread owning the moderngl context.
    """

    vertices: Optional[np.ndarray] = None  # (N, 3) float32
    triangles: Optional[np.ndarray] = None  # (3T,) int32
    channels: Dict[VertexChannel, np.ndarray] = field(default_factory=dict)
    bounds: BoundingBox3D = field(default_factory=BoundingBox3D.zero)
    index_format: IndexFormat = IndexFormat.UINT16
    name: str = ""
    tracker: Optional[MeshTracker] = None

    def __post_init__(self) -> None:
        if self.vertices is not None:
            self.vertices = _as_channel_array(self.vertices, 3)
        if self.triangles is not None:
            self.triangles = np.array(self.triangles, dtype=np.int32).reshape(-1)

        channels = dict(self.channels)
        self.channels = {}
        for channel, data in channels.items():
            self.set_channel(channel, data)

    @property
    def vertex_count(self) -> int:
        if self.vertices is None:
            return 0
        return len(self.vertices)

    # -- Channels --
    def has_channel(self, channel: VertexChannel) -> bool:
        return channel in self.channels

    def get_channel(self, channel: VertexChannel) -> Optional[np.ndarray]:
        return self.channels.get(channel)

    def set_channel(self, channel: VertexChannel, data: Any) -> None:
        """Store a per-vertex stream. Its length must equal vertex_count."""
        if channel is VertexChannel.POSITION:
            raise ValueError("Positions are stored in 'vertices', not as a channel")

        arr = _as_channel_array(data, channel.components)
        if len(arr) != self.vertex_count:
            raise ValueError(
                f"Channel {channel.name} has {len(arr)} entries, "
                f"expected {self.vertex_count}"
            )
        self.channels[channel] = arr

    def clear_channel(self, channel: VertexChannel) -> None:
        self.channels.pop(channel, None)

    @property
    def normals(self) -> Optional[np.ndarray]:
        return self.channels.get(VertexChannel.NORMAL)

    @property
    def uv0(self) -> Optional[np.ndarray]:
        return self.channels.get(VertexChannel.UV0)

    @property
    def uv1(self) -> Optional[np.ndarray]:
        return self.channels.get(VertexChannel.UV1)

    @property
    def uv2(self) -> Optional[np.ndarray]:
        return self.channels.get(VertexChannel.UV2)

    @property
    def colors(self) -> Optional[np.ndarray]:
        return self.channels.get(VertexChannel.COLOR)

    @property
    def tangents(self) -> Optional[np.ndarray]:
        return self.channels.get(VertexChannel.TANGENT)

    # -- Derived Data --
    def recalculate_bounds(self) -> None:
        """Recompute bounds from vertices only. No-op without vertices."""
        if self.vertex_count == 0:
            logger.debug("recalculate_bounds(%s): no vertices, skipped", self.name)
            return

        verts = np.asarray(self.vertices).reshape(-1, 3)
        lo = verts.min(axis=0)
        hi = verts.max(axis=0)
        self.bounds = BoundingBox3D(Vector3.of(lo), Vector3.of(hi))

    def recalculate_normals(self) -> None:
        """
        Area-weighted vertex normals from the triangle list.

        Each triangle adds its unnormalized face normal (v1 - v0) x (v2 - v0)
        to its three corners, so larger triangles dominate shared vertices.
        Vertices that only receive zero-area contributions keep a zero normal.
        No-op unless both vertices and triangles are present.

        Raises:
            GeometryError: if the triangle list is malformed or references a
            vertex outside [0, vertex_count). Normals are left untouched.
        """
        if self.vertices is None or self.triangles is None:
            logger.debug("recalculate_normals(%s): missing input, skipped", self.name)
            return

        verts = np.asarray(self.vertices, dtype=np.float64).reshape(-1, 3)
        tris = self._check_triangles(self.triangles, len(verts))

        accum = np.zeros((len(verts), 3), dtype=np.float64)
        if len(tris):
            i0, i1, i2 = tris[:, 0], tris[:, 1], tris[:, 2]
            face = np.cross(verts[i1] - verts[i0], verts[i2] - verts[i0])

            # add.at accumulates repeated indices
            np.add.at(accum, i0, face)
            np.add.at(accum, i1, face)
            np.add.at(accum, i2, face)

        mag = np.linalg.norm(accum, axis=1, keepdims=True)
        np.divide(accum, mag, out=accum, where=mag > 0)

        self.channels[VertexChannel.NORMAL] = accum.astype(np.float32)

    # -- Validation --
    def effective_index_format(
        self, threshold: int = DEFAULT_SETTINGS.wide_index_threshold
    ) -> IndexFormat:
        if self.vertex_count >= threshold:
            return IndexFormat.UINT32
        return self.index_format

    def validate(self) -> None:
        """
        Check structural invariants.

        Raises:
            GeometryError: on the first violated invariant.
        """
        n = self.vertex_count

        if self.triangles is not None:
            self._check_triangles(self.triangles, n)

        for channel, data in self.channels.items():
            if len(data) != n:
                raise GeometryError(
                    f"Channel {channel.name} has {len(data)} entries, expected {n}"
                )

    @staticmethod
    def _check_triangles(triangles: Any, vertex_count: int) -> np.ndarray:
        """Returns the indices as (T, 3) or raises GeometryError."""
        tris = np.asarray(triangles, dtype=np.int64).reshape(-1)
        if len(tris) % 3 != 0:
            raise GeometryError(
                f"Triangle index count {len(tris)} is not a multiple of 3"
            )
        if len(tris):
            lo = int(tris.min())
            hi = int(tris.max())
            if lo < 0 or hi >= vertex_count:
                raise GeometryError(
                    f"Triangle indices span [{lo}, {hi}] "
                    f"but only {vertex_count} vertices exist"
                )
        return tris.reshape(-1, 3)

    def copy(self) -> GeometryBuffer:
        """Deep copy of all arrays. The tracker reference is shared."""
        return GeometryBuffer(
            vertices=None if self.vertices is None else self.vertices.copy(),
            triangles=None if self.triangles is None else self.triangles.copy(),
            channels={c: a.copy() for c, a in self.channels.items()},
            bounds=self.bounds,
            index_format=self.index_format,
            name=self.name,
            tracker=self.tracker,
        )
