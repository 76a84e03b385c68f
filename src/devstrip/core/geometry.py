"""Geometric operations on unfold-plane polygons and triangle meshes.

This module provides the numerical building blocks of the trimmer:
- Signed area (shoelace formula)
- Point-in-polygon testing (even-odd ray casting), scalar and vectorized
- Nearest-sample lookup for boundary snapping
- Boundary edge extraction for triangle sets
- Area-weighted vertex normals

All functions are pure and stateless. Array arguments are (N, 2) or (N, 3)
float arrays; polygons are given without a repeated closing point.
"""

from collections.abc import Sequence

import numpy as np

from devstrip.domain import Point2

# Rows of the snapping distance matrix computed at once
_SNAP_CHUNK = 2048


def as_array(points: Sequence[Point2]) -> np.ndarray:
    """Convert points to an (N, 2) float64 array."""
    if not points:
        return np.zeros((0, 2), dtype=np.float64)
    return np.array([(p.x, p.y) for p in points], dtype=np.float64)


def open_polygon(samples: np.ndarray) -> np.ndarray:
    """Drop a trailing point that repeats the first one."""
    if len(samples) > 1 and np.allclose(samples[0], samples[-1], rtol=0.0, atol=1e-12):
        return samples[:-1]
    return samples


def signed_area(polygon: np.ndarray) -> float:
    """Calculate signed area of a polygon using the shoelace formula.

    The sign of the area indicates winding direction:
    - Positive area: counter-clockwise winding
    - Negative area: clockwise winding

    Args:
        polygon: (N, 2) vertices, closing edge implied

    Returns:
        Signed area. Returns 0.0 for fewer than 3 vertices.

    Examples:
        >>> square = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])
        >>> signed_area(square)
        1.0
    """
    if len(polygon) < 3:
        return 0.0
    x = polygon[:, 0]
    y = polygon[:, 1]
    return 0.5 * float(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1)))


def point_in_polygon(point: Point2, polygon: Sequence[Point2]) -> bool:
    """Determine if a point is inside a polygon using ray casting algorithm.

    Casts a horizontal ray from the point to the right and counts intersections
    with polygon edges. Odd number of intersections = inside, even = outside.

    Args:
        point: The point to test
        polygon: Points forming the polygon boundary

    Returns:
        True if point is inside polygon, False otherwise
    """
    n = len(polygon)
    if n < 3:
        return False

    inside = False
    x, y = point.x, point.y
    j = n - 1

    for i in range(n):
        xi, yi = polygon[i].x, polygon[i].y
        xj, yj = polygon[j].x, polygon[j].y

        if ((yi > y) != (yj > y)) and (x < (xj - xi) * (y - yi) / (yj - yi) + xi):
            inside = not inside

        j = i

    return inside


def points_in_polygon(points: np.ndarray, polygon: np.ndarray) -> np.ndarray:
    """Vectorized even-odd test of many points against one polygon.

    Same rule as point_in_polygon, evaluated one polygon edge at a time over
    the whole point array.

    Args:
        points: (M, 2) query points
        polygon: (N, 2) polygon vertices, closing edge implied

    Returns:
        Boolean mask of shape (M,)
    """
    inside = np.zeros(len(points), dtype=bool)
    n = len(polygon)
    if n < 3 or len(points) == 0:
        return inside

    px = points[:, 0]
    py = points[:, 1]
    xj, yj = polygon[-1]
    for xi, yi in polygon:
        if yi != yj:
            crosses = (yi > py) != (yj > py)
            x_cross = (xj - xi) * (py - yi) / (yj - yi) + xi
            inside ^= crosses & (px < x_cross)
        xj, yj = xi, yi

    return inside


def nearest_sample_indices(points: np.ndarray, samples: np.ndarray) -> np.ndarray:
    """Index of the closest sample (squared 2D distance) for every point.

    Args:
        points: (M, 2) query points
        samples: (N, 2) candidate points, N >= 1

    Returns:
        Integer array of shape (M,)
    """
    result = np.empty(len(points), dtype=np.int64)
    for start in range(0, len(points), _SNAP_CHUNK):
        block = points[start:start + _SNAP_CHUNK]
        diff = block[:, None, :] - samples[None, :, :]
        dist_sq = np.einsum("ijk,ijk->ij", diff, diff)
        result[start:start + len(block)] = np.argmin(dist_sq, axis=1)
    return result


def boundary_edges(triangles: np.ndarray) -> np.ndarray:
    """Edges used by exactly one triangle.

    Edges are keyed by their unordered vertex pair.

    Args:
        triangles: (T, 3) vertex indices

    Returns:
        (E, 2) array of boundary edges, smaller index first
    """
    if len(triangles) == 0:
        return np.zeros((0, 2), dtype=triangles.dtype)

    edges = np.concatenate(
        [triangles[:, [0, 1]], triangles[:, [1, 2]], triangles[:, [2, 0]]],
        axis=0,
    )
    edges = np.sort(edges, axis=1)
    unique, counts = np.unique(edges, axis=0, return_counts=True)
    return unique[counts == 1]


def vertex_normals(positions: np.ndarray, triangles: np.ndarray) -> np.ndarray:
    """Area-weighted per-vertex normals.

    Each triangle adds its (unnormalized) face normal to its three vertices;
    the sums are then normalized. Vertices whose sum vanishes keep a zero
    normal.

    Args:
        positions: (N, 3) vertex positions
        triangles: (T, 3) vertex indices, counter-clockwise from the front

    Returns:
        (N, 3) float array
    """
    normals = np.zeros_like(positions, dtype=np.float64)
    if len(triangles) == 0:
        return normals

    a = positions[triangles[:, 0]]
    b = positions[triangles[:, 1]]
    c = positions[triangles[:, 2]]
    face = np.cross(b - a, c - a)

    for corner in range(3):
        np.add.at(normals, triangles[:, corner], face)

    lengths = np.linalg.norm(normals, axis=1)
    nonzero = lengths > 1e-12
    normals[nonzero] /= lengths[nonzero, None]
    return normals
