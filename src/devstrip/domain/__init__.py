"""Domain models for devstrip.

This module contains the core value types: points, editable curves and the
trimmed mesh result. They are designed to be:

- Immutable where possible (frozen dataclasses, read-only buffers)
- Serializable for inter-process communication (parallel processing) and storage
- Independent of any rendering layer

Key classes:
- Point2 / Point3: Coordinate value types
- Curve: Editable 2D path with cached arc-length queries
- TrimmedMesh: Triangle mesh produced by trimming a surface
"""

from devstrip.domain.curve import ArcLengthTable, Curve
from devstrip.domain.mesh import TrimmedMesh
from devstrip.domain.point import Point2, Point3

__all__: list[str] = [
    "ArcLengthTable",
    "Curve",
    "Point2",
    "Point3",
    "TrimmedMesh",
]
