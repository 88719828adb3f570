# wren/settings.py
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class GeometrySettings:
    """
    Tolerances and thresholds shared by the geometry core.
    """

    close_tolerance: float = 0.001  # relative, see wren.math.close_equal
    hash_tolerance: float = 0.0001  # bucket width for Vector3CloseComparer
    wide_index_threshold: int = 0xFFFF  # vertex count forcing 32-bit indices


DEFAULT_SETTINGS = GeometrySettings()
