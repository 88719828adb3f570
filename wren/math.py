# wren/math.py
import math
from typing import Any, Iterable, Union

from wren.settings import DEFAULT_SETTINGS
from wren.types import Scalar, Vector2, Vector3

DEFAULT_TOLERANCE = DEFAULT_SETTINGS.close_tolerance

_RAD_TO_TURNS = 1.0 / (2.0 * math.pi)

_HASH_PRIME = 397
_HASH_MASK = 0xFFFFFFFFFFFFFFFF


# -- Vector Math --
def magnitude_vec(v: Union[Vector2, Vector3]) -> Scalar:
    return math.hypot(*v)


def norm_vec(v: Vector3) -> Vector3:
    mag = magnitude_vec(v)
    if mag == 0:
        return v
    return v / mag


def dot_vec(a: Any, b: Any) -> Scalar:
    return sum(x * y for x, y in zip(a, b))


def cross_vec3(a: Vector3, b: Vector3) -> Vector3:
    return Vector3(
        a.y * b.z - a.z * b.y,
        a.z * b.x - a.x * b.z,
        a.x * b.y - a.y * b.x,
    )


def avg_pos(points: Iterable[Any]) -> Vector3:
    """Arithmetic mean of a collection of 3D points."""
    sx = sy = sz = 0.0
    count = 0
    for p in points:
        sx += p[0]
        sy += p[1]
        sz += p[2]
        count += 1

    if count == 0:
        raise ValueError("avg_pos requires at least one point")

    return Vector3(sx / count, sy / count, sz / count)


# -- Approximate Equality --
def close_equal(a: float, b: float, tolerance: float = DEFAULT_TOLERANCE) -> bool:
    """
    Scale-invariant comparison: |a - b| <= tolerance * max(|a|, |b|).

    Exact matches short-circuit. When both values are computed zeros carrying
    opposite rounding noise the reference magnitude collapses, so the test
    becomes stricter than intended near zero and may return False.
    """
    if a == b:
        return True
    return abs(a - b) <= tolerance * max(abs(a), abs(b))


def close_equal_vec(u: Any, v: Any, tolerance: float = DEFAULT_TOLERANCE) -> bool:
    """
    Per-axis close_equal on x, y and z.

    Each axis is judged against its own magnitude, so this is not a Euclidean
    distance test and is anisotropic when axis magnitudes differ.
    """
    for axis in range(3):
        if not close_equal(u[axis], v[axis], tolerance):
            return False
    return True


def close_hash_vec3(v: Any, tolerance: float) -> int:
    """
    Hash that buckets each axis into cells of width `tolerance`.

    Vectors inside the same cell hash identically. Approximate equality is not
    transitive, so two close vectors straddling a cell boundary can still
    land in adjacent cells and hash differently.

    Raises:
        ValueError: if any component is NaN or infinite. Such values have no
        cell and never compare close, so they cannot be keys.
    """
    cells = []
    for axis in range(3):
        scaled = float(v[axis]) / tolerance
        if not math.isfinite(scaled):
            raise ValueError(f"Cannot hash non-finite vector {tuple(v)}")
        cells.append(int(round(scaled)))
    hx, hy, hz = cells

    h = hx & _HASH_MASK
    h = ((h * _HASH_PRIME) ^ hy) & _HASH_MASK
    h = ((h * _HASH_PRIME) ^ hz) & _HASH_MASK
    return h


# -- Indexing --
def circular_index(i: int, size: int) -> int:
    """Wrap i into [0, size). Negative indices wrap from the end."""
    if size <= 0:
        raise ValueError(f"size must be positive, got {size}")
    return i % size


# -- Spatial Mapping --
def cylindrical_uv(vertex: Any) -> Vector2:
    """
    Map a direction to (longitude, latitude) UVs in [0, 1].

    Longitude is the rotation about +Y. Latitude uses arcsin of the normalized
    y, so rows are spaced by equal angle rather than equal height.
    """
    v = norm_vec(Vector3.of(vertex))

    longitude = math.atan2(v.z, v.x) * _RAD_TO_TURNS + 0.5

    # clamp rounding overshoot out of asin's domain
    y = max(-1.0, min(1.0, v.y))
    latitude = math.asin(y) * _RAD_TO_TURNS * 2.0 + 0.5

    return Vector2(longitude, latitude)


def project_point_onto_plane(
    point: Any, plane_normal: Any, plane_origin: Any
) -> Vector2:
    """
    Express a point in the 2D frame of a plane.

    The plane's X axis is normalize(up x n) and its Y axis is n x X. When n is
    (anti)parallel to world up that cross product degenerates, so world right
    and world forward are used instead.

    Raises:
        ValueError: if plane_normal is the zero vector.
    """
    n = Vector3.of(plane_normal)
    if n == Vector3.zero():
        raise ValueError("Plane normal cannot be zero")

    n = norm_vec(n)

    if close_equal_vec(n, Vector3.up()) or close_equal_vec(n, Vector3.down()):
        x_axis = Vector3.right()
        y_axis = Vector3.forward()
    else:
        x_axis = norm_vec(cross_vec3(Vector3.up(), n))
        y_axis = cross_vec3(n, x_axis)  # unit by construction

    offset = Vector3.of(point) - Vector3.of(plane_origin)
    return Vector2(dot_vec(offset, x_axis), dot_vec(offset, y_axis))
