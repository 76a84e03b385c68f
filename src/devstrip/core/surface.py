"""Developable surface models.

A surface model maps points of its unfold plane (the flattened sheet) to 3D
points of the folded surface. Two variants exist:

- CylindricalSurface: unfold X is arc length along the base curve, unfold Y
  is height.
- ConicalSurface: the unfold plane is a sector around the apex; polar angle
  selects a generator line, distance from the apex selects the position on it.

Both own a private copy of their base curve; the cached lookup tables (the
curve's arc-length table, the cone's angle table) therefore never leak to
other owners. Points outside the unfold domain clamp to its boundary.
"""

import logging
import math
from abc import ABC, abstractmethod
from bisect import bisect_right
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar

import numpy as np

from devstrip.config import GeometryConfig
from devstrip.domain import Curve, Point2, Point3
from devstrip.exceptions import InvalidGeometryError, UnsupportedSurfaceKindError

logger = logging.getLogger(__name__)

DEFAULT_HEIGHT = 3.0
DEFAULT_RADIAL_SEGMENTS = 32
DEFAULT_CONE_TABLE_SAMPLES = 256

_TWO_PI = 2.0 * math.pi


class SurfaceKind(str, Enum):
    """Supported developable surface types."""

    CYLINDRICAL = "cylindrical"
    CONICAL = "conical"

    @classmethod
    def parse(cls, tag: "str | SurfaceKind") -> "SurfaceKind":
        """Resolve a type tag, accepting the legacy "<kind>-strip" form.

        Raises:
            UnsupportedSurfaceKindError: If the tag names no known kind
        """
        if isinstance(tag, SurfaceKind):
            return tag
        name = str(tag).strip().lower()
        if name.endswith("-strip"):
            name = name[: -len("-strip")]
        try:
            return cls(name)
        except ValueError:
            raise UnsupportedSurfaceKindError(str(tag)) from None


@dataclass
class SurfaceParams:
    """Construction parameters of a surface, in the stored document format.

    Attributes:
        height: Surface height (cylinder) or apex-to-base height (cone)
        radius: Radius of the default circular base curve (None = kind default)
        radial_segments: Segment count of the default base curve; also the
            visual density hint for renderers
        base_curve_data: Serialized custom base curve (overrides radius)
    """

    height: float = DEFAULT_HEIGHT
    radius: float | None = None
    radial_segments: int = DEFAULT_RADIAL_SEGMENTS
    base_curve_data: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the stored camelCase format.

        Returns:
            Dictionary with height, radialSegments and, when set, radius and
            baseCurveData
        """
        data: dict[str, Any] = {
            "height": self.height,
            "radialSegments": self.radial_segments,
        }
        if self.radius is not None:
            data["radius"] = self.radius
        if self.base_curve_data is not None:
            data["baseCurveData"] = self.base_curve_data
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "SurfaceParams":
        """Deserialize from the stored format.

        Snake_case keys are accepted as well as the stored camelCase ones.
        The original editor's cone parameter "radiusBottom" maps to radius.

        Raises:
            InvalidGeometryError: If a numeric parameter is missing or malformed
        """
        data = data or {}
        radius = data.get("radius", data.get("radiusBottom"))
        try:
            return cls(
                height=float(data.get("height", DEFAULT_HEIGHT)),
                radius=None if radius is None else float(radius),
                radial_segments=int(
                    data.get(
                        "radialSegments", data.get("radial_segments", DEFAULT_RADIAL_SEGMENTS)
                    )
                ),
                base_curve_data=data.get("baseCurveData", data.get("base_curve_data")),
            )
        except (TypeError, ValueError) as e:
            raise InvalidGeometryError(f"Malformed surface parameters: {e}") from e


class SurfaceModel(ABC):
    """Common interface of developable surfaces.

    Subclasses implement map_uv_to_3d and unfold_outline; everything else
    (bounds, default contour, batch mapping, serialization) is shared.

    Attributes:
        kind: Surface type tag
        radial_segments: Visual density hint
        radius: Radius the default base curve was built from, if any
    """

    kind: ClassVar[SurfaceKind]
    DEFAULT_RADIUS: ClassVar[float]

    def __init__(
        self,
        height: float,
        base_curve: Curve,
        radial_segments: int = DEFAULT_RADIAL_SEGMENTS,
        radius: float | None = None,
        custom_base_curve: bool = True,
    ) -> None:
        if not height > 0:
            raise InvalidGeometryError(f"Surface height must be positive, got {height}")
        if radial_segments < 3:
            raise InvalidGeometryError(
                f"Radial segments must be at least 3, got {radial_segments}"
            )
        self._height = float(height)
        self._curve = base_curve.clone()
        self.radial_segments = radial_segments
        self.radius = radius
        self._custom_base_curve = custom_base_curve
        self._rebuild()

    @classmethod
    def create(
        cls,
        kind: "str | SurfaceKind",
        params: "dict[str, Any] | SurfaceParams | None" = None,
        geometry: GeometryConfig | None = None,
    ) -> "SurfaceModel":
        """Build a surface model from a type tag and parameters."""
        return create_surface(kind, params, geometry)

    @property
    def height(self) -> float:
        return self._height

    @height.setter
    def height(self, value: float) -> None:
        if not value > 0:
            raise InvalidGeometryError(f"Surface height must be positive, got {value}")
        self._height = float(value)
        self._rebuild()

    @property
    def base_curve(self) -> Curve:
        """Copy of the base curve; edit it and pass it to set_base_curve."""
        return self._curve.clone()

    def set_base_curve(self, curve: Curve) -> None:
        """Replace the base curve, rebuilding the cached tables."""
        previous = self._curve
        self._curve = curve.clone()
        try:
            self._rebuild()
        except InvalidGeometryError:
            self._curve = previous
            self._rebuild()
            raise
        self._custom_base_curve = True

    @abstractmethod
    def _rebuild(self) -> None:
        """Validate the geometry and rebuild cached lookup tables."""

    @abstractmethod
    def map_uv_to_3d(self, u: float, v: float) -> Point3:
        """Map an unfold-plane point to the folded surface."""

    @abstractmethod
    def unfold_outline(self) -> list[Point2]:
        """Boundary of the unfold domain as a closed polyline (last == first)."""

    def map_uv_array(self, uv: np.ndarray) -> np.ndarray:
        """Map an (N, 2) array of unfold-plane points to an (N, 3) array."""
        result = np.empty((len(uv), 3), dtype=np.float64)
        for i, (u, v) in enumerate(uv):
            p = self.map_uv_to_3d(float(u), float(v))
            result[i] = (p.x, p.y, p.z)
        return result

    def unfold_bounds(self) -> tuple[float, float, float, float]:
        """Bounding box of the unfold outline.

        Returns:
            Tuple of (min_x, min_y, max_x, max_y)
        """
        outline = self.unfold_outline()
        xs = [p.x for p in outline]
        ys = [p.y for p in outline]
        return (min(xs), min(ys), max(xs), max(ys))

    def default_contour(self, margin: float = 0.1) -> Curve:
        """Rectangular trim contour inset from the unfold bounds.

        Args:
            margin: Inset on each side as a fraction of the bounds' width/height

        Returns:
            Closed rectangular Curve
        """
        min_x, min_y, max_x, max_y = self.unfold_bounds()
        dx = (max_x - min_x) * margin
        dy = (max_y - min_y) * margin
        return Curve.rectangle(min_x + dx, min_y + dy, max_x - dx, max_y - dy)

    def to_params(self) -> SurfaceParams:
        """Parameters that rebuild this surface through the factory."""
        return SurfaceParams(
            height=self._height,
            radius=self.radius,
            radial_segments=self.radial_segments,
            base_curve_data=self._curve.to_data() if self._custom_base_curve else None,
        )


class CylindricalSurface(SurfaceModel):
    """Generalized cylinder over an arbitrary base curve.

    The base curve lies in the XZ plane; the surface extends along Y from
    -height/2 to +height/2. Unfold X is arc length along the base curve,
    unfold Y is height above the bottom edge.
    """

    kind = SurfaceKind.CYLINDRICAL
    DEFAULT_RADIUS = 1.5

    def _rebuild(self) -> None:
        perimeter = self._curve.length()
        if not perimeter > 0:
            raise InvalidGeometryError("Cylinder base curve has zero perimeter")
        self._perimeter = perimeter

    @property
    def perimeter(self) -> float:
        return self._perimeter

    def map_uv_to_3d(self, u: float, v: float) -> Point3:
        u = min(max(u, 0.0), self._perimeter)
        v = min(max(v, 0.0), self._height)
        base = self._curve.point_at_distance(u)
        return Point3(base.x, v - self._height / 2.0, base.y)

    def unfold_outline(self) -> list[Point2]:
        w = self._perimeter
        h = self._height
        return [Point2(0.0, 0.0), Point2(w, 0.0), Point2(w, h), Point2(0.0, h), Point2(0.0, 0.0)]


@dataclass(frozen=True)
class ConeTable:
    """Inverse map from unfold-plane polar angle to the cone's base curve.

    Attributes:
        angles: Cumulative unfold angle of each base sample (non-decreasing)
        slant_heights: Apex-to-sample distance of each base sample
        base_points: Base samples in 3D (on the plane y = -height/2)
    """

    angles: tuple[float, ...]
    slant_heights: tuple[float, ...]
    base_points: tuple[Point3, ...]

    @property
    def max_angle(self) -> float:
        return self.angles[-1]


class ConicalSurface(SurfaceModel):
    """Generalized cone over an arbitrary base curve.

    The base curve lies in the plane y = -height/2, the apex is the single
    point (0, height/2, 0). The unfold plane places the apex at the origin;
    each base sample lands at distance slant_height from it, at an angle
    accumulated from the apex-sample-sample triangles (law of cosines).
    """

    kind = SurfaceKind.CONICAL
    DEFAULT_RADIUS = 2.0

    def __init__(
        self,
        height: float,
        base_curve: Curve,
        radial_segments: int = DEFAULT_RADIAL_SEGMENTS,
        radius: float | None = None,
        custom_base_curve: bool = True,
        table_samples: int = DEFAULT_CONE_TABLE_SAMPLES,
    ) -> None:
        if table_samples < 1:
            raise InvalidGeometryError(f"Cone table samples must be positive, got {table_samples}")
        self.table_samples = table_samples
        super().__init__(
            height,
            base_curve,
            radial_segments=radial_segments,
            radius=radius,
            custom_base_curve=custom_base_curve,
        )

    @property
    def apex(self) -> Point3:
        return Point3(0.0, self._height / 2.0, 0.0)

    @property
    def table(self) -> ConeTable:
        return self._table

    def _rebuild(self) -> None:
        self._table = self._build_table()
        if not self._table.max_angle > 0:
            raise InvalidGeometryError("Cone base curve has zero perimeter")
        if self._table.max_angle > _TWO_PI:
            # The unfold plane holds one turn; table angles past 2*pi are unreachable
            logger.warning(
                "Cone sector angle %.4f rad exceeds a full turn; the unfolded strip overlaps "
                "itself and only the first turn can be trimmed",
                self._table.max_angle,
            )

    def _build_table(self) -> ConeTable:
        h = self._height
        y_base = -h / 2.0
        samples = self._curve.sample_points(self.table_samples)

        base_points = [Point3(p.x, y_base, p.y) for p in samples]
        slants = [math.sqrt(h * h + p.x * p.x + p.y * p.y) for p in samples]

        angles = [0.0]
        for i in range(1, len(samples)):
            s_a = slants[i - 1]
            s_b = slants[i]
            chord = samples[i - 1].distance_to(samples[i])
            cos_angle = (s_a * s_a + s_b * s_b - chord * chord) / (2.0 * s_a * s_b)
            angles.append(angles[-1] + math.acos(max(-1.0, min(1.0, cos_angle))))

        logger.debug(
            "Built cone table: %d samples, sector angle %.4f rad",
            len(samples),
            angles[-1],
        )
        return ConeTable(
            angles=tuple(angles),
            slant_heights=tuple(slants),
            base_points=tuple(base_points),
        )

    def _clamp_angle(self, angle: float) -> float:
        """Normalize into [0, max_angle]; angles in the gap go to the nearer end.

        Results never exceed 2*pi, so a sector wider than a full turn is only
        reachable up to its first turn.
        """
        max_angle = self._table.max_angle
        angle = angle % _TWO_PI
        if angle <= max_angle:
            return angle
        past_end = angle - max_angle
        before_start = _TWO_PI - angle
        return max_angle if past_end <= before_start else 0.0

    def map_uv_to_3d(self, u: float, v: float) -> Point3:
        apex = self.apex
        distance = math.hypot(u, v)
        if distance == 0.0:
            return apex

        table = self._table
        angle = self._clamp_angle(math.atan2(v, u))

        angles = table.angles
        index = bisect_right(angles, angle) - 1
        index = max(0, min(index, len(angles) - 2))

        span = angles[index + 1] - angles[index]
        fraction = (angle - angles[index]) / span if span > 0.0 else 0.0
        base = table.base_points[index].lerp(table.base_points[index + 1], fraction)
        s0 = table.slant_heights[index]
        slant = s0 + fraction * (table.slant_heights[index + 1] - s0)

        ratio = min(distance / slant, 1.0)
        return apex.lerp(base, ratio)

    def unfold_outline(self) -> list[Point2]:
        table = self._table
        outline = [Point2(0.0, 0.0)]
        for angle, slant in zip(table.angles, table.slant_heights):
            outline.append(Point2(slant * math.cos(angle), slant * math.sin(angle)))
        outline.append(Point2(0.0, 0.0))
        return outline


_SURFACE_TYPES: dict[SurfaceKind, type[SurfaceModel]] = {
    SurfaceKind.CYLINDRICAL: CylindricalSurface,
    SurfaceKind.CONICAL: ConicalSurface,
}


def create_surface(
    kind: str | SurfaceKind,
    params: dict[str, Any] | SurfaceParams | None = None,
    geometry: GeometryConfig | None = None,
) -> SurfaceModel:
    """Build a surface model from a type tag and parameters.

    Args:
        kind: "cylindrical" or "conical" (legacy "-strip" suffix accepted)
        params: SurfaceParams or its stored dictionary form
        geometry: Table resolutions (defaults if None)

    Returns:
        The matching SurfaceModel variant

    Raises:
        UnsupportedSurfaceKindError: If kind is unknown
        InvalidGeometryError: If the parameters describe no valid surface
    """
    surface_kind = SurfaceKind.parse(kind)
    geometry = geometry or GeometryConfig()
    if not isinstance(params, SurfaceParams):
        params = SurfaceParams.from_dict(params)

    surface_cls = _SURFACE_TYPES[surface_kind]

    if params.base_curve_data is not None:
        base_curve = Curve.from_data(params.base_curve_data, samples=geometry.arc_length_samples)
        custom = True
    else:
        radius = params.radius if params.radius is not None else surface_cls.DEFAULT_RADIUS
        if params.radial_segments < 3:
            raise InvalidGeometryError(
                f"Radial segments must be at least 3, got {params.radial_segments}"
            )
        base_curve = Curve.circle(
            radius, params.radial_segments, samples=geometry.arc_length_samples
        )
        custom = False

    if surface_cls is ConicalSurface:
        return ConicalSurface(
            params.height,
            base_curve,
            radial_segments=params.radial_segments,
            radius=params.radius,
            custom_base_curve=custom,
            table_samples=geometry.cone_table_samples,
        )
    return surface_cls(
        params.height,
        base_curve,
        radial_segments=params.radial_segments,
        radius=params.radius,
        custom_base_curve=custom,
    )
