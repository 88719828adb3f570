# wren/types.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, NewType, TypeAlias, overload

MeshId = NewType("MeshId", str)

Scalar: TypeAlias = float


@dataclass(frozen=True, slots=True)
class Vector2:
    """2D result of UV mapping and plane projection. Unpacks as (x, y)."""

    x: Scalar
    y: Scalar

    def __iter__(self) -> Iterator[Scalar]:
        yield self.x
        yield self.y

    def __len__(self) -> int:
        return 2


@dataclass(frozen=True, slots=True)
class Vector3:
    x: Scalar
    y: Scalar
    z: Scalar

    @staticmethod
    def zero() -> Vector3:
        return Vector3(0.0, 0.0, 0.0)

    @staticmethod
    def up() -> Vector3:
        return Vector3(0.0, 1.0, 0.0)

    @staticmethod
    def down() -> Vector3:
        return Vector3(0.0, -1.0, 0.0)

    @staticmethod
    def right() -> Vector3:
        return Vector3(1.0, 0.0, 0.0)

    @staticmethod
    def forward() -> Vector3:
        return Vector3(0.0, 0.0, 1.0)

    @staticmethod
    def of(values: Any) -> Vector3:
        """Build from any indexable triple (tuple, list, numpy row)."""
        return Vector3(float(values[0]), float(values[1]), float(values[2]))

    def __iter__(self) -> Iterator[Scalar]:
        yield self.x
        yield self.y
        yield self.z

    def __len__(self) -> int:
        return 3

    def __add__(self, other: Vector3) -> Vector3:
        return Vector3(
            self.x + other.x,
            self.y + other.y,
            self.z + other.z,
        )

    def __sub__(self, other: Vector3) -> Vector3:
        return Vector3(
            self.x - other.x,
            self.y - other.y,
            self.z - other.z,
        )

    def __mul__(self, scalar: float) -> Vector3:
        return Vector3(
            self.x * scalar,
            self.y * scalar,
            self.z * scalar,
        )

    def __truediv__(self, scalar: float) -> Vector3:
        if scalar == 0:
            raise ValueError(scalar)
        return Vector3(self.x / scalar, self.y / scalar, self.z / scalar)

    @overload
    def __getitem__(self, index: int) -> Scalar: ...
    @overload
    def __getitem__(self, index: slice) -> tuple[Scalar, ...]: ...

    def __getitem__(self, index: Any):
        if isinstance(index, int):
            if index == 0:
                return self.x
            if index == 1:
                return self.y
            if index == 2:
                return self.z
            raise IndexError(index)

        if isinstance(index, slice):
            return tuple(self)[index]

        raise TypeError(
            f"indices must be int or slice, not {type(index).__name__}"
        )


@dataclass(frozen=True, slots=True)
class BoundingBox3D:
    """
    Axis-aligned box stored as min/max corners.
    center and size are derived views; size is the full edge length.
    """

    min: Vector3
    max: Vector3

    @staticmethod
    def zero() -> BoundingBox3D:
        return BoundingBox3D(Vector3.zero(), Vector3.zero())

    @property
    def center(self) -> Vector3:
        return (self.min + self.max) * 0.5

    @property
    def size(self) -> Vector3:
        return self.max - self.min

    def contains(self, point: Any) -> bool:
        return (
            self.min.x <= point[0] <= self.max.x
            and self.min.y <= point[1] <= self.max.y
            and self.min.z <= point[2] <= self.max.z
        )
