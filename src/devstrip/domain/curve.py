"""Editable 2D curve with arc-length queries.

A Curve is used both as the base profile of a surface and as the trim contour
drawn on the unfold plane. The path runs linearly between consecutive control
points; closed curves also connect the last point back to the first.

Arc-length queries go through a cumulative-distance table that is built on
first use and dropped on every edit.
"""

import math
from bisect import bisect_right
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from devstrip.domain.point import Point2
from devstrip.exceptions import InvalidGeometryError

DEFAULT_ARC_LENGTH_SAMPLES = 200

MIN_POINTS_OPEN = 2
MIN_POINTS_CLOSED = 3


@dataclass(frozen=True)
class ArcLengthTable:
    """Cumulative distances over a dense sampling of a curve.

    Every control point is part of the sampling, so for a polyline the
    table is exact and interpolating inside a bracket stays on the curve.

    Attributes:
        params: Curve parameter t of each sample (increasing, 0 to 1)
        points: Sampled points
        distances: Cumulative distance from the start to each sample
    """

    params: tuple[float, ...]
    points: tuple[Point2, ...]
    distances: tuple[float, ...]

    @property
    def total(self) -> float:
        """Total length covered by the table."""
        return self.distances[-1]


def _as_point(value: Point2 | tuple[float, float]) -> Point2:
    if isinstance(value, Point2):
        return value
    x, y = value
    return Point2(float(x), float(y))


def _distance_to_segment(point: Point2, start: Point2, end: Point2) -> float:
    """Distance from a point to a line segment (projection clamped to the ends)."""
    dx = end.x - start.x
    dy = end.y - start.y
    length_sq = dx * dx + dy * dy
    if length_sq < 1e-20:
        return point.distance_to(start)

    t = ((point.x - start.x) * dx + (point.y - start.y) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    return math.hypot(point.x - (start.x + t * dx), point.y - (start.y + t * dy))


class Curve:
    """An ordered sequence of control points forming an open or closed path.

    Edit the curve only through its methods; they keep the arc-length
    table consistent. Edits that would break the minimum point count or
    address a missing point are ignored.

    Attributes:
        closed: Whether the last point connects back to the first
        samples: Resolution of the arc-length table
    """

    def __init__(
        self,
        control_points: Iterable[Point2 | tuple[float, float]],
        closed: bool = False,
        samples: int = DEFAULT_ARC_LENGTH_SAMPLES,
    ) -> None:
        points = [_as_point(p) for p in control_points]
        minimum = MIN_POINTS_CLOSED if closed else MIN_POINTS_OPEN
        if len(points) < minimum:
            kind = "closed" if closed else "open"
            raise InvalidGeometryError(
                f"A {kind} curve needs at least {minimum} control points, got {len(points)}"
            )
        if samples < 1:
            raise InvalidGeometryError(f"Arc-length sample count must be positive, got {samples}")

        self._points: list[Point2] = points
        self.closed = closed
        self.samples = samples
        self._table: ArcLengthTable | None = None

    def __repr__(self) -> str:
        return f"Curve(control_points={self._points!r}, closed={self.closed})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Curve):
            return NotImplemented
        return self.closed == other.closed and self._points == other._points

    __hash__ = None  # type: ignore[assignment]

    # ------------------------------------------------------------------
    # Control points
    # ------------------------------------------------------------------

    @property
    def control_points(self) -> tuple[Point2, ...]:
        """Snapshot of the control points."""
        return tuple(self._points)

    @property
    def control_point_count(self) -> int:
        return len(self._points)

    @property
    def min_points(self) -> int:
        """Smallest allowed number of control points for this curve."""
        return MIN_POINTS_CLOSED if self.closed else MIN_POINTS_OPEN

    @property
    def segment_count(self) -> int:
        n = len(self._points)
        return n if self.closed else n - 1

    def control_point(self, index: int) -> Point2 | None:
        """Get a control point, or None if the index is out of range."""
        if 0 <= index < len(self._points):
            return self._points[index]
        return None

    def set_control_point(self, index: int, point: Point2 | tuple[float, float]) -> None:
        """Move a control point. Out-of-range indices are ignored."""
        if 0 <= index < len(self._points):
            self._points[index] = _as_point(point)
            self._invalidate()

    def append(self, point: Point2 | tuple[float, float]) -> int:
        """Add a control point after the last one.

        Returns:
            Index of the new point
        """
        self._points.append(_as_point(point))
        self._invalidate()
        return len(self._points) - 1

    def insert_at(self, point: Point2 | tuple[float, float]) -> int:
        """Insert a control point into the segment closest to it.

        Closed curves include the closing segment (last to first point), in
        which case the point is appended.

        Args:
            point: Point to insert

        Returns:
            Index of the new point
        """
        p = _as_point(point)
        n = len(self._points)

        best_segment = 0
        best_distance = math.inf
        for k in range(self.segment_count):
            start = self._points[k]
            end = self._points[(k + 1) % n]
            distance = _distance_to_segment(p, start, end)
            if distance < best_distance:
                best_distance = distance
                best_segment = k

        index = best_segment + 1
        self._points.insert(index, p)
        self._invalidate()
        return index

    def remove(self, index: int) -> bool:
        """Remove a control point.

        Returns:
            True if removed, False if the curve would drop below its minimum
            point count or the index is out of range
        """
        if not 0 <= index < len(self._points):
            return False
        if len(self._points) <= self.min_points:
            return False

        del self._points[index]
        self._invalidate()
        return True

    def clone(self) -> "Curve":
        """Deep copy of the control points; the arc-length table is not shared."""
        return Curve(list(self._points), closed=self.closed, samples=self.samples)

    def _invalidate(self) -> None:
        self._table = None

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def point(self, t: float) -> Point2:
        """Evaluate the curve at parameter t.

        Closed curves wrap t modulo 1, so point(0) and point(1) coincide.
        Open curves clamp: t <= 0 gives the first point, t >= 1 the last.

        Args:
            t: Curve parameter in [0, 1]

        Returns:
            Interpolated point
        """
        points = self._points
        n = len(points)

        if self.closed:
            t = t % 1.0
        else:
            if t <= 0.0:
                return points[0]
            if t >= 1.0:
                return points[-1]

        segments = self.segment_count
        scaled = t * segments
        index = min(int(math.floor(scaled)), segments - 1)
        local = scaled - index
        return points[index].lerp(points[(index + 1) % n], local)

    def sample_points(self, n: int) -> list[Point2]:
        """Sample n+1 points at t = i/n.

        Args:
            n: Number of intervals

        Returns:
            List of n+1 ordered points (empty for n <= 0)
        """
        if n <= 0:
            return []
        return [self.point(i / n) for i in range(n + 1)]

    def arc_length_table(self) -> ArcLengthTable:
        """Get the cumulative arc-length table, building it if needed."""
        if self._table is None:
            self._table = self._build_table()
        return self._table

    def _build_table(self) -> ArcLengthTable:
        points = self._points
        n = len(points)
        segments = self.segment_count
        per_segment = max(1, math.ceil(self.samples / segments))
        total_steps = per_segment * segments

        params: list[float] = []
        samples: list[Point2] = []
        for k in range(segments):
            start = points[k]
            end = points[(k + 1) % n]
            for j in range(per_segment):
                params.append((k * per_segment + j) / total_steps)
                samples.append(start.lerp(end, j / per_segment))
        params.append(1.0)
        samples.append(points[0] if self.closed else points[-1])

        distances = [0.0]
        for a, b in zip(samples, samples[1:]):
            distances.append(distances[-1] + a.distance_to(b))

        return ArcLengthTable(
            params=tuple(params),
            points=tuple(samples),
            distances=tuple(distances),
        )

    def length(self, samples: int | None = None) -> float:
        """Length of the curve.

        Args:
            samples: Sampling resolution. None uses the cached table, which
                includes every control point; an explicit value sums chords
                over sample_points(samples) without caching.

        Returns:
            Curve length (non-negative)
        """
        if samples is None:
            return self.arc_length_table().total

        pts = self.sample_points(samples)
        return sum(a.distance_to(b) for a, b in zip(pts, pts[1:]))

    def point_at_distance(self, distance: float) -> Point2:
        """Find the point at a given arc length from the start.

        Binary-searches the cumulative table for the bracketing samples and
        interpolates between them. Open curves clamp to their ends; closed
        curves wrap the distance around the total length.

        Args:
            distance: Arc length from the start

        Returns:
            Point on the curve
        """
        table = self.arc_length_table()
        total = table.total

        if total <= 0.0:
            return table.points[0]

        if self.closed:
            distance = distance % total
        elif distance <= 0.0:
            return table.points[0]
        elif distance >= total:
            return table.points[-1]

        distances = table.distances
        index = bisect_right(distances, distance) - 1
        index = max(0, min(index, len(distances) - 2))

        span = distances[index + 1] - distances[index]
        fraction = (distance - distances[index]) / span if span > 0.0 else 0.0
        return table.points[index].lerp(table.points[index + 1], fraction)

    def distance_at(self, t: float) -> float:
        """Arc length from the start of the curve up to parameter t."""
        table = self.arc_length_table()

        if self.closed:
            t = t % 1.0
        else:
            t = max(0.0, min(1.0, t))

        params = table.params
        index = bisect_right(params, t) - 1
        index = max(0, min(index, len(params) - 2))

        span = params[index + 1] - params[index]
        fraction = (t - params[index]) / span if span > 0.0 else 0.0
        d0 = table.distances[index]
        return d0 + fraction * (table.distances[index + 1] - d0)

    # ------------------------------------------------------------------
    # Shape helpers
    # ------------------------------------------------------------------

    def bounding_box(self) -> tuple[float, float, float, float]:
        """Bounding box of the control points.

        Returns:
            Tuple of (min_x, min_y, max_x, max_y)
        """
        xs = [p.x for p in self._points]
        ys = [p.y for p in self._points]
        return (min(xs), min(ys), max(xs), max(ys))

    def normalize(self) -> "Curve":
        """Move the curve to the origin and scale its larger side to 1.

        Returns:
            self, for chaining
        """
        min_x, min_y, max_x, max_y = self.bounding_box()
        scale = max(max_x - min_x, max_y - min_y) or 1.0
        self._points = [
            Point2((p.x - min_x) / scale, (p.y - min_y) / scale) for p in self._points
        ]
        self._invalidate()
        return self

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_data(self) -> dict[str, Any]:
        """Serialize control points and the closed flag.

        Returns:
            {"controlPoints": [{"x", "y"}, ...], "closed": bool}
        """
        return {
            "controlPoints": [p.to_dict() for p in self._points],
            "closed": self.closed,
        }

    @classmethod
    def from_data(
        cls, data: dict[str, Any], samples: int = DEFAULT_ARC_LENGTH_SAMPLES
    ) -> "Curve":
        """Deserialize from the stored format.

        Args:
            data: Dictionary produced by to_data()
            samples: Arc-length table resolution for the new curve

        Returns:
            Curve instance

        Raises:
            InvalidGeometryError: If the data is malformed or has too few points
        """
        try:
            points = [Point2.from_dict(p) for p in data["controlPoints"]]
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidGeometryError(f"Malformed curve data: {e}") from e
        return cls(points, closed=bool(data.get("closed", False)), samples=samples)

    @classmethod
    def circle(
        cls,
        radius: float,
        segments: int,
        samples: int = DEFAULT_ARC_LENGTH_SAMPLES,
    ) -> "Curve":
        """Closed regular polygon inscribed in a circle around the origin.

        Points run counter-clockwise starting on the positive X axis.
        """
        if radius <= 0:
            raise InvalidGeometryError(f"Radius must be positive, got {radius}")
        if segments < MIN_POINTS_CLOSED:
            raise InvalidGeometryError(
                f"A circle needs at least {MIN_POINTS_CLOSED} segments, got {segments}"
            )
        points = [
            Point2(
                radius * math.cos(2.0 * math.pi * i / segments),
                radius * math.sin(2.0 * math.pi * i / segments),
            )
            for i in range(segments)
        ]
        return cls(points, closed=True, samples=samples)

    @classmethod
    def rectangle(
        cls,
        min_x: float,
        min_y: float,
        max_x: float,
        max_y: float,
        samples: int = DEFAULT_ARC_LENGTH_SAMPLES,
    ) -> "Curve":
        """Closed counter-clockwise rectangle."""
        points = [
            Point2(min_x, min_y),
            Point2(max_x, min_y),
            Point2(max_x, max_y),
            Point2(min_x, max_y),
        ]
        return cls(points, closed=True, samples=samples)
