"""Trimmed triangle mesh produced by the strip trimmer.

The buffers follow the flat layout the rendering layer uploads directly:
three floats per vertex position and normal, two per unfold-plane coordinate,
three indices per triangle. Buffers are made read-only on construction, so a
mesh handed to a consumer cannot be changed under it.
"""

from dataclasses import dataclass
from typing import Any

import numpy as np


def _frozen(array: np.ndarray, dtype: type) -> np.ndarray:
    result = np.array(array, dtype=dtype, copy=True).reshape(-1)
    result.flags.writeable = False
    return result


@dataclass(frozen=True, eq=False)
class TrimmedMesh:
    """Immutable triangle mesh with per-vertex normals.

    Attributes:
        vertices: Flat float32 array of xyz positions
        normals: Flat float32 array of unit normals (zero for isolated or
            fully degenerate vertices)
        indices: Flat uint32 array, three per triangle
        uvs: Flat float32 array of unfold-plane (u, v) per vertex
    """

    vertices: np.ndarray
    normals: np.ndarray
    indices: np.ndarray
    uvs: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "vertices", _frozen(self.vertices, np.float32))
        object.__setattr__(self, "normals", _frozen(self.normals, np.float32))
        object.__setattr__(self, "indices", _frozen(self.indices, np.uint32))
        object.__setattr__(self, "uvs", _frozen(self.uvs, np.float32))

        if self.vertices.size % 3 or self.normals.size != self.vertices.size:
            raise ValueError("vertices and normals must hold 3 floats per vertex")
        if self.indices.size % 3:
            raise ValueError("indices must hold 3 entries per triangle")
        if self.uvs.size != 2 * self.vertex_count:
            raise ValueError("uvs must hold 2 floats per vertex")

    @classmethod
    def empty(cls) -> "TrimmedMesh":
        """A mesh with no vertices and no triangles."""
        return cls(
            vertices=np.zeros(0, dtype=np.float32),
            normals=np.zeros(0, dtype=np.float32),
            indices=np.zeros(0, dtype=np.uint32),
            uvs=np.zeros(0, dtype=np.float32),
        )

    @property
    def vertex_count(self) -> int:
        return self.vertices.size // 3

    @property
    def triangle_count(self) -> int:
        return self.indices.size // 3

    def is_empty(self) -> bool:
        """Check if the mesh has no triangles."""
        return self.indices.size == 0

    def positions(self) -> np.ndarray:
        """Vertex positions as an (N, 3) read-only view."""
        return self.vertices.reshape(-1, 3)

    def triangles(self) -> np.ndarray:
        """Triangles as an (M, 3) read-only view."""
        return self.indices.reshape(-1, 3)

    def bounding_box(self) -> tuple[tuple[float, float, float], tuple[float, float, float]]:
        """Axis-aligned bounding box.

        Returns:
            ((min_x, min_y, min_z), (max_x, max_y, max_z)); all zeros if empty
        """
        if self.vertex_count == 0:
            return ((0.0, 0.0, 0.0), (0.0, 0.0, 0.0))
        pos = self.positions()
        lo = pos.min(axis=0)
        hi = pos.max(axis=0)
        return (
            (float(lo[0]), float(lo[1]), float(lo[2])),
            (float(hi[0]), float(hi[1]), float(hi[2])),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize buffers to plain lists.

        Returns:
            {"vertices", "normals", "indices", "uvs"}
        """
        return {
            "vertices": self.vertices.tolist(),
            "normals": self.normals.tolist(),
            "indices": self.indices.tolist(),
            "uvs": self.uvs.tolist(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TrimmedMesh":
        """Deserialize from dictionary.

        Args:
            data: Dictionary produced by to_dict()

        Returns:
            TrimmedMesh instance
        """
        vertices = np.asarray(data["vertices"], dtype=np.float32)
        uvs = data.get("uvs")
        if uvs is None:
            uvs = np.zeros(2 * (vertices.size // 3), dtype=np.float32)
        return cls(
            vertices=vertices,
            normals=np.asarray(data["normals"], dtype=np.float32),
            indices=np.asarray(data["indices"], dtype=np.uint32),
            uvs=np.asarray(uvs, dtype=np.float32),
        )
