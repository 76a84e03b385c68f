"""Coordinate value types.

- Point2: a point in the 2D plane (curve control points, unfold-plane coordinates)
- Point3: a point in 3D space (folded surface positions)
"""

import math
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Point2:
    """A point in 2D space.

    Immutable and hashable for use in sets/dicts.

    Attributes:
        x: X coordinate
        y: Y coordinate
    """

    x: float
    y: float

    def to_tuple(self) -> tuple[float, float]:
        """Convert to simple (x, y) tuple."""
        return (self.x, self.y)

    def distance_to(self, other: "Point2") -> float:
        """Euclidean distance to another point."""
        return math.hypot(other.x - self.x, other.y - self.y)

    def lerp(self, other: "Point2", t: float) -> "Point2":
        """Linearly interpolate towards another point.

        Args:
            other: Target point (reached at t=1)
            t: Interpolation fraction

        Returns:
            Interpolated point
        """
        return Point2(
            (1.0 - t) * self.x + t * other.x,
            (1.0 - t) * self.y + t * other.y,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary.

        Returns:
            Dictionary with x and y fields
        """
        return {"x": self.x, "y": self.y}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Point2":
        """Deserialize from dictionary.

        Args:
            data: Dictionary with x and y fields

        Returns:
            Point2 instance
        """
        return cls(x=float(data["x"]), y=float(data["y"]))


@dataclass(frozen=True, slots=True)
class Point3:
    """A point in 3D space.

    Attributes:
        x: X coordinate
        y: Y coordinate (surface axis, "up")
        z: Z coordinate
    """

    x: float
    y: float
    z: float

    def to_tuple(self) -> tuple[float, float, float]:
        """Convert to simple (x, y, z) tuple."""
        return (self.x, self.y, self.z)

    def distance_to(self, other: "Point3") -> float:
        """Euclidean distance to another point."""
        return math.sqrt(
            (other.x - self.x) ** 2 + (other.y - self.y) ** 2 + (other.z - self.z) ** 2
        )

    def lerp(self, other: "Point3", t: float) -> "Point3":
        """Linearly interpolate towards another point."""
        return Point3(
            (1.0 - t) * self.x + t * other.x,
            (1.0 - t) * self.y + t * other.y,
            (1.0 - t) * self.z + t * other.z,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {"x": self.x, "y": self.y, "z": self.z}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Point3":
        """Deserialize from dictionary."""
        return cls(x=float(data["x"]), y=float(data["y"]), z=float(data["z"]))
