"""Grid-cull-and-snap trimming of developable surfaces.

Turns a closed trim contour, drawn in unfold-plane coordinates, into a curved
3D triangle mesh of the enclosed part of a surface:

1. Cover the contour's bounding box with a regular triangulated grid.
2. Cull triangles whose centroid lies outside the contour (even-odd rule).
3. Find boundary edges: edges used by exactly one retained triangle.
4. Snap boundary vertices onto the nearest contour sample, removing the
   staircase left by the grid.
5. Map the retained vertices through the surface model, compact the index
   buffer and recompute vertex normals.

Culling and mapping work on pre-sized buffers and may be split into chunks
on a thread pool; each chunk writes only its own slice and compaction is a
single sequential pass, so results do not depend on the thread count.
"""

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from devstrip.config import TrimConfig
from devstrip.core.geometry import (
    as_array,
    boundary_edges,
    nearest_sample_indices,
    open_polygon,
    points_in_polygon,
    signed_area,
    vertex_normals,
)
from devstrip.core.surface import SurfaceModel
from devstrip.domain import Curve, TrimmedMesh
from devstrip.exceptions import DegenerateTrimError, InvalidGeometryError, TrimCancelledError

logger = logging.getLogger(__name__)


def build_grid(
    bounds: tuple[float, float, float, float], resolution: int
) -> tuple[np.ndarray, np.ndarray]:
    """Regular triangulated grid over a bounding box.

    Vertex (i, j) has index j * (resolution + 1) + i. Each quad is split
    into two counter-clockwise triangles along its rising diagonal.

    Args:
        bounds: (min_x, min_y, max_x, max_y)
        resolution: Quads per side

    Returns:
        Tuple of ((V, 2) vertex coordinates, (T, 3) triangle indices)
    """
    min_x, min_y, max_x, max_y = bounds
    xs = np.linspace(min_x, max_x, resolution + 1)
    ys = np.linspace(min_y, max_y, resolution + 1)
    gx, gy = np.meshgrid(xs, ys)
    vertices = np.column_stack([gx.ravel(), gy.ravel()])

    row = resolution + 1
    jj, ii = np.meshgrid(np.arange(resolution), np.arange(resolution), indexing="ij")
    a = (jj * row + ii).ravel()
    b = a + 1
    c = a + row + 1
    d = a + row

    lower = np.column_stack([a, b, c])
    upper = np.column_stack([a, c, d])
    triangles = np.stack([lower, upper], axis=1).reshape(-1, 3)
    return vertices, triangles.astype(np.int64)


class StripTrimmer:
    """Produces trimmed meshes of surface models.

    Example:
        trimmer = StripTrimmer(TrimConfig(grid_resolution=96))
        mesh = trimmer.trim(surface, surface.default_contour())
    """

    def __init__(self, config: TrimConfig | None = None) -> None:
        """Initialize trimmer with configuration.

        Args:
            config: Trim settings (defaults if None)
        """
        self.config = config or TrimConfig()

    def trim(
        self,
        surface: SurfaceModel,
        contour: Curve,
        strict: bool = False,
        should_cancel: Callable[[], bool] | None = None,
    ) -> TrimmedMesh:
        """Trim a surface to the region inside a contour.

        Args:
            surface: Surface model providing the UV to 3D mapping
            contour: Closed trim curve in unfold-plane coordinates
            strict: Raise DegenerateTrimError instead of returning an empty mesh
            should_cancel: Polled between stages; returning True aborts the trim

        Returns:
            A new TrimmedMesh (empty if nothing of the surface is kept)

        Raises:
            InvalidGeometryError: If the contour has fewer than 3 control points
            DegenerateTrimError: If strict and the result is empty
            TrimCancelledError: If should_cancel requested an abort
        """
        if contour.control_point_count < 3:
            raise InvalidGeometryError(
                f"Trim contour needs at least 3 control points, got {contour.control_point_count}"
            )

        cfg = self.config
        samples = open_polygon(as_array(contour.sample_points(cfg.contour_samples)))

        area = abs(signed_area(samples))
        if area <= cfg.min_contour_area:
            return self._empty(strict, f"contour area {area:.3g} is below the minimum")

        bounds = (
            float(samples[:, 0].min()),
            float(samples[:, 1].min()),
            float(samples[:, 0].max()),
            float(samples[:, 1].max()),
        )

        self._check_cancel(should_cancel, "grid")
        uv, triangles = build_grid(bounds, cfg.grid_resolution)

        self._check_cancel(should_cancel, "cull")
        mask = self._cull(uv, triangles, samples)
        retained_count = int(np.count_nonzero(mask))
        logger.debug("Culled grid: kept %d of %d triangles", retained_count, len(triangles))
        if retained_count == 0:
            return self._empty(strict, "no grid triangle lies inside the contour")

        retained = np.empty((retained_count, 3), dtype=triangles.dtype)
        retained[:] = triangles[mask]

        self._check_cancel(should_cancel, "snap")
        uv, retained = self._snap_boundary(uv, retained, samples)
        if len(retained) == 0:
            return self._empty(strict, "all retained triangles collapsed while snapping")

        used = np.unique(retained.ravel())
        remap = np.full(len(uv), -1, dtype=np.int64)
        remap[used] = np.arange(len(used))
        indices = remap[retained]
        uv = uv[used]

        self._check_cancel(should_cancel, "map")
        positions = self._map(surface, uv)
        normals = vertex_normals(positions, indices)

        logger.debug(
            "Trimmed %s surface: %d vertices, %d triangles",
            surface.kind.value,
            len(positions),
            len(indices),
        )
        return TrimmedMesh(vertices=positions, normals=normals, indices=indices, uvs=uv)

    def _empty(self, strict: bool, reason: str) -> TrimmedMesh:
        if strict:
            raise DegenerateTrimError(reason)
        logger.debug("Trim produced an empty mesh: %s", reason)
        return TrimmedMesh.empty()

    @staticmethod
    def _check_cancel(should_cancel: Callable[[], bool] | None, stage: str) -> None:
        if should_cancel is not None and should_cancel():
            raise TrimCancelledError(stage)

    def _cull(self, uv: np.ndarray, triangles: np.ndarray, polygon: np.ndarray) -> np.ndarray:
        """Mask of triangles whose centroid is inside the polygon."""
        centroids = uv[triangles].mean(axis=1)
        mask = np.zeros(len(triangles), dtype=bool)

        def work(start: int, stop: int) -> None:
            mask[start:stop] = points_in_polygon(centroids[start:stop], polygon)

        self._run_chunked(work, len(triangles))
        return mask

    def _snap_boundary(
        self, uv: np.ndarray, triangles: np.ndarray, samples: np.ndarray
    ) -> tuple[np.ndarray, np.ndarray]:
        """Move boundary vertices onto the nearest contour sample.

        With deduplication on, boundary vertices that land on the same sample
        are merged into one and triangles left with a repeated vertex are
        dropped.

        Returns:
            Tuple of (snapped vertex coordinates, surviving triangles)
        """
        edges = boundary_edges(triangles)
        boundary = np.unique(edges.ravel())
        if len(boundary) == 0:
            return uv, triangles

        nearest = nearest_sample_indices(uv[boundary], samples)
        snapped = uv.copy()
        snapped[boundary] = samples[nearest]

        if not self.config.dedupe_snapped_vertices:
            return snapped, triangles

        _, first, inverse = np.unique(nearest, return_index=True, return_inverse=True)
        representative = np.arange(len(uv))
        representative[boundary] = boundary[first][inverse.ravel()]
        merged = representative[triangles]

        keep = (
            (merged[:, 0] != merged[:, 1])
            & (merged[:, 1] != merged[:, 2])
            & (merged[:, 0] != merged[:, 2])
        )
        dropped = len(merged) - int(np.count_nonzero(keep))
        if dropped:
            logger.debug("Dropped %d triangles collapsed by snapping", dropped)
        return snapped, merged[keep]

    def _map(self, surface: SurfaceModel, uv: np.ndarray) -> np.ndarray:
        """Map unfold-plane vertices to 3D positions."""
        positions = np.empty((len(uv), 3), dtype=np.float64)

        def work(start: int, stop: int) -> None:
            positions[start:stop] = surface.map_uv_array(uv[start:stop])

        self._run_chunked(work, len(uv))
        return positions

    def _run_chunked(self, work: Callable[[int, int], None], count: int) -> None:
        """Run work over [0, count), split across threads for large inputs."""
        threads = self.config.max_threads or 1
        if threads <= 1 or count < self.config.parallel_threshold:
            work(0, count)
            return

        bounds = np.linspace(0, count, threads + 1).astype(int)
        with ThreadPoolExecutor(max_workers=threads) as executor:
            futures = [
                executor.submit(work, int(start), int(stop))
                for start, stop in zip(bounds[:-1], bounds[1:])
                if stop > start
            ]
            for future in futures:
                future.result()
