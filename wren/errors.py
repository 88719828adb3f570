# wren/errors.py


class GeometryError(ValueError):
    """Raised when a geometry buffer breaks one of its structural invariants."""
