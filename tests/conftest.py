import numpy as np
import pytest

from wren.geometry.buffer import GeometryBuffer


class FakeBuffer:
    """Stands in for moderngl.Buffer: keeps the uploaded bytes."""

    def __init__(self, data: bytes):
        self.data = data
        self.released = False

    def read(self) -> bytes:
        return self.data

    def release(self) -> None:
        self.released = True


class FakeContext:
    """Records buffers created through the moderngl.Context API."""

    def __init__(self):
        self.buffers = []

    def buffer(self, data: bytes) -> FakeBuffer:
        data = bytes(data)
        if not data:
            raise ValueError("the buffer cannot be empty")
        buf = FakeBuffer(data)
        self.buffers.append(buf)
        return buf


@pytest.fixture
def ctx():
    """Returns a fresh fake GL context for each test."""
    return FakeContext()


@pytest.fixture
def triangle():
    """A single counter-clockwise triangle in the XY plane."""
    return GeometryBuffer(
        vertices=[(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0)],
        triangles=[0, 1, 2],
        name="triangle",
    )


@pytest.fixture
def quad():
    """Unit quad in the XZ plane made of two triangles, facing +Y."""
    return GeometryBuffer(
        vertices=np.array(
            [
                (0.0, 0.0, 0.0),
                (1.0, 0.0, 0.0),
                (1.0, 0.0, 1.0),
                (0.0, 0.0, 1.0),
            ]
        ),
        triangles=[0, 2, 1, 0, 3, 2],
        name="quad",
    )
