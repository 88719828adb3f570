# wren/spatial/close_hash.py
from collections import defaultdict
from collections.abc import MutableMapping
from typing import Any, Dict, Generic, Iterator, List, Tuple, TypeVar

from wren.math import close_equal_vec, close_hash_vec3
from wren.settings import DEFAULT_SETTINGS
from wren.types import Vector3

V = TypeVar("V")


class Vector3CloseComparer:
    """
    Equality and hash pair for approximately equal vectors.

    Vectors considered equal must share a hash. That holds within a bucket,
    but not across bucket boundaries (see close_hash_vec3).
    """

    def __init__(self, tolerance: float = DEFAULT_SETTINGS.hash_tolerance):
        if tolerance <= 0:
            raise ValueError(f"tolerance must be positive, got {tolerance}")
        self.tolerance = tolerance

    def equals(self, a: Any, b: Any) -> bool:
        return close_equal_vec(a, b, self.tolerance)

    def hash(self, v: Any) -> int:
        return close_hash_vec3(v, self.tolerance)


class CloseVectorMap(MutableMapping, Generic[V]):
    """
    Mapping keyed by Vector3 where approximately equal keys collide.

    The first key stored for a slot is kept; later close keys overwrite the
    value only. Lookups never probe neighbouring buckets.
    """

    def __init__(self, comparer: Vector3CloseComparer | None = None):
        self.comparer = comparer or Vector3CloseComparer()
        # Map: bucket hash -> [(key, value), ...]
        self._buckets: Dict[int, List[Tuple[Vector3, V]]] = defaultdict(list)
        self._count = 0

    def _find(self, key: Any) -> Tuple[int, int]:
        """Returns (bucket hash, slot index) or (bucket hash, -1)."""
        h = self.comparer.hash(key)
        bucket = self._buckets.get(h)
        if bucket:
            for i, (stored, _) in enumerate(bucket):
                if self.comparer.equals(stored, key):
                    return h, i
        return h, -1

    def __getitem__(self, key: Any) -> V:
        h, i = self._find(key)
        if i < 0:
            raise KeyError(key)
        return self._buckets[h][i][1]

    def __setitem__(self, key: Any, value: V) -> None:
        h, i = self._find(key)
        bucket = self._buckets[h]
        if i < 0:
            bucket.append((Vector3.of(key), value))
            self._count += 1
        else:
            bucket[i] = (bucket[i][0], value)

    def __delitem__(self, key: Any) -> None:
        h, i = self._find(key)
        if i < 0:
            raise KeyError(key)
        bucket = self._buckets[h]
        del bucket[i]
        if not bucket:
            del self._buckets[h]  # Cleanup empty buckets
        self._count -= 1

    def __iter__(self) -> Iterator[Vector3]:
        for bucket in list(self._buckets.values()):
            for key, _ in bucket:
                yield key

    def __len__(self) -> int:
        return self._count

    def clear(self) -> None:
        self._buckets.clear()
        self._count = 0
