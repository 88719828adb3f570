from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from wren.geometry.buffer import GeometryBuffer, VertexChannel
from wren.graphics.resources.manager import GPUResourceManager
from wren.types import MeshId


def _build_strip(n: int) -> GeometryBuffer:
    """Triangle strip of n quads, built the way a worker thread would."""
    verts = []
    for i in range(n + 1):
        verts.append((float(i), 0.0, 0.0))
        verts.append((float(i), 1.0, 0.0))

    tris = []
    for i in range(n):
        a = 2 * i
        tris.extend([a, a + 2, a + 1, a + 1, a + 2, a + 3])

    geo = GeometryBuffer(vertices=verts, triangles=tris, name=f"strip{n}")
    geo.recalculate_bounds()
    geo.recalculate_normals()
    return geo


def test_submit_from_workers_then_sync(ctx):
    manager = GPUResourceManager(ctx)

    def work(n: int) -> None:
        manager.submit(MeshId(f"strip{n}"), _build_strip(n))

    with ThreadPoolExecutor(max_workers=4, thread_name_prefix="GeoWorker") as pool:
        list(pool.map(work, range(1, 9)))

    uploaded = manager.sync()

    assert sorted(uploaded) == sorted(MeshId(f"strip{n}") for n in range(1, 9))
    mesh = manager.get_mesh(MeshId("strip3"))
    assert mesh.vertex_count == 8
    assert mesh.index_count == 18

    assert manager.sync() == []


def test_submit_snapshots_geometry(ctx, triangle):
    manager = GPUResourceManager(ctx)
    manager.submit(MeshId("tri"), triangle)

    triangle.vertices[0] = (9.0, 9.0, 9.0)
    manager.sync()

    mesh = manager.get_mesh(MeshId("tri"))
    positions = mesh.read_channel(VertexChannel.POSITION)
    np.testing.assert_array_equal(positions[0], (0.0, 0.0, 0.0))


def test_resubmit_releases_previous_mesh(ctx, triangle):
    manager = GPUResourceManager(ctx)
    manager.submit(MeshId("tri"), triangle)
    manager.sync()
    first = manager.get_mesh(MeshId("tri"))
    first_buffers = list(ctx.buffers)

    manager.submit(MeshId("tri"), triangle)
    manager.sync()

    assert manager.get_mesh(MeshId("tri")) is not first
    assert all(buf.released for buf in first_buffers)


def test_invalid_geometry_is_skipped(ctx, triangle, caplog):
    broken = triangle.copy()
    broken.triangles = np.array([0, 1, 9])

    manager = GPUResourceManager(ctx)
    manager.submit(MeshId("broken"), broken)
    manager.submit(MeshId("tri"), triangle)

    with caplog.at_level("WARNING"):
        uploaded = manager.sync()

    assert uploaded == [MeshId("tri")]
    assert MeshId("broken") not in manager
    assert "broken" in caplog.text


def test_get_missing_mesh(ctx):
    manager = GPUResourceManager(ctx)
    with pytest.raises(KeyError, match="not found"):
        manager.get_mesh(MeshId("nope"))


def test_release_all(ctx, triangle, quad):
    manager = GPUResourceManager(ctx)
    manager.submit(MeshId("tri"), triangle)
    manager.submit(MeshId("quad"), quad)
    manager.sync()

    manager.release_mesh(MeshId("tri"))
    assert MeshId("tri") not in manager
    assert MeshId("quad") in manager

    manager.release_all()
    assert MeshId("quad") not in manager
    assert all(buf.released for buf in ctx.buffers)
