"""Core algorithms for devstrip.

This module contains:

- Geometry helpers (signed area, point-in-polygon, boundary edges, normals)
- Developable surface models (cylinder, cone) and their unfold mappings
- The grid-cull-and-snap strip trimmer
- Strip documents and batch/live processing

Key functions:
- create_surface: Build a surface model from a kind and parameters
- process_strip: Picklable per-strip worker function

Key classes:
- CylindricalSurface / ConicalSurface: Unfold-plane to 3D mappings
- StripTrimmer: Cuts a contour out of a surface's unfold layout
- SurfaceStrip: Surface, parameters and trim contour
- StripProcessor: Parallel trimming of strip documents
- LiveTrimSession: Latest-wins trimming for interactive editing
"""

from devstrip.core.geometry import (
    boundary_edges,
    point_in_polygon,
    points_in_polygon,
    signed_area,
    vertex_normals,
)
from devstrip.core.processor import LiveTrimSession, StripProcessor, process_strip
from devstrip.core.strip import STRIP_TYPE, SurfaceStrip, TrimResult
from devstrip.core.surface import (
    ConicalSurface,
    CylindricalSurface,
    SurfaceKind,
    SurfaceModel,
    SurfaceParams,
    create_surface,
)
from devstrip.core.trimmer import StripTrimmer, build_grid

__all__ = [
    "STRIP_TYPE",
    "ConicalSurface",
    "CylindricalSurface",
    "LiveTrimSession",
    "StripProcessor",
    "StripTrimmer",
    "SurfaceKind",
    "SurfaceModel",
    "SurfaceParams",
    "SurfaceStrip",
    "TrimResult",
    "boundary_edges",
    "build_grid",
    "create_surface",
    "point_in_polygon",
    "points_in_polygon",
    "process_strip",
    "signed_area",
    "vertex_normals",
]
