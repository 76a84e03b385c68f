"""Surface strips: a developable surface cut out along a trim contour.

A strip is what the editor stores: the surface type, its parameters and the
trim contour drawn on the unfold plane. Cutting the contour out of the flat
layout and folding it back gives the strip's 3D mesh.
"""

from dataclasses import dataclass
from typing import Any

from devstrip.config import DevStripSettings
from devstrip.core.geometry import point_in_polygon
from devstrip.core.surface import SurfaceKind, SurfaceModel, SurfaceParams, create_surface
from devstrip.core.trimmer import StripTrimmer
from devstrip.domain import Curve, Point2, TrimmedMesh
from devstrip.exceptions import InvalidGeometryError

STRIP_TYPE = "strip"

# Samples used for interactive point-inside-contour queries
CONTOUR_QUERY_SAMPLES = 200


@dataclass(frozen=True, eq=False)
class TrimResult:
    """A trimmed mesh together with the document it was built from.

    Attributes:
        mesh: The trimmed mesh
        source: Strip document (to_dict form) that reproduces the mesh
    """

    mesh: TrimmedMesh
    source: dict[str, Any]


class SurfaceStrip:
    """A surface type, its parameters and a trim contour.

    Example:
        strip = SurfaceStrip("cylindrical", {"height": 3, "radius": 1.5})
        result = strip.create_mesh()
        document = strip.to_dict()
    """

    def __init__(
        self,
        surface_type: str | SurfaceKind,
        surface_params: dict[str, Any] | SurfaceParams | None = None,
        strip_contour: Curve | dict[str, Any] | None = None,
        settings: DevStripSettings | None = None,
    ) -> None:
        """Initialize a strip.

        Args:
            surface_type: "cylindrical" or "conical"
            surface_params: Surface parameters (stored dict form or SurfaceParams)
            strip_contour: Trim contour as Curve or stored curve data; None
                uses the surface's default inset rectangle
            settings: Geometry and trim settings (defaults if None)

        Raises:
            UnsupportedSurfaceKindError: If surface_type is unknown
            InvalidGeometryError: If the surface or contour is invalid
        """
        self.settings = settings or DevStripSettings()
        self.surface_type = SurfaceKind.parse(surface_type)
        if isinstance(surface_params, SurfaceParams):
            self.surface_params = SurfaceParams(**vars(surface_params))
        else:
            self.surface_params = SurfaceParams.from_dict(surface_params)

        self._surface = self._create_surface()
        self.strip_contour = self._resolve_contour(strip_contour)

    def _create_surface(self) -> SurfaceModel:
        return create_surface(self.surface_type, self.surface_params, self.settings.geometry)

    def _resolve_contour(self, contour: Curve | dict[str, Any] | None) -> Curve:
        samples = self.settings.geometry.arc_length_samples
        if isinstance(contour, Curve):
            resolved = contour.clone()
        elif contour:
            resolved = Curve.from_data(contour, samples=samples)
        else:
            return self._surface.default_contour(self.settings.trim.default_margin)

        if not resolved.closed:
            raise InvalidGeometryError("Strip contour must be a closed curve")
        return resolved

    def surface(self) -> SurfaceModel:
        """The strip's surface model."""
        return self._surface

    def get_strip_contour(self) -> Curve:
        """Copy of the trim contour."""
        return self.strip_contour.clone()

    def set_strip_contour(self, contour: Curve | dict[str, Any]) -> None:
        """Replace the trim contour (Curve or stored curve data)."""
        self.strip_contour = self._resolve_contour(contour)

    def get_base_curve(self) -> Curve:
        """Copy of the surface's base curve."""
        return self._surface.base_curve

    def set_base_curve(self, curve: Curve) -> None:
        """Replace the surface's base curve; the contour is kept as is."""
        self._surface.set_base_curve(curve)
        self.surface_params.base_curve_data = curve.to_data()

    def create_mesh(self, trimmer: StripTrimmer | None = None, strict: bool = False) -> TrimResult:
        """Trim the surface to the contour.

        Args:
            trimmer: Trimmer to use (one built from settings if None)
            strict: Raise DegenerateTrimError instead of returning an empty mesh

        Returns:
            TrimResult with the mesh and this strip's document
        """
        trimmer = trimmer or StripTrimmer(self.settings.trim)
        mesh = trimmer.trim(self._surface, self.strip_contour, strict=strict)
        return TrimResult(mesh=mesh, source=self.to_dict())

    def unfold_outline(self) -> list[Point2]:
        """Outline of the whole unfolded surface."""
        return self._surface.unfold_outline()

    def contour_points(self, n: int = 100) -> list[Point2]:
        """Samples of the trim contour for display on the unfold plane."""
        return self.strip_contour.sample_points(n)

    def get_unfold_bounds(self) -> tuple[float, float, float, float]:
        """Bounding box of the unfolded surface as (min_x, min_y, max_x, max_y)."""
        return self._surface.unfold_bounds()

    def is_point_inside_unfold_bounds(self, point: Point2) -> bool:
        min_x, min_y, max_x, max_y = self.get_unfold_bounds()
        return min_x <= point.x <= max_x and min_y <= point.y <= max_y

    def constrain_point_to_unfold_bounds(self, point: Point2, margin: float = 0.05) -> Point2:
        """Clamp a point to the unfold bounds shrunk by a fixed margin.

        Used while dragging contour points so they stay on the sheet.
        """
        min_x, min_y, max_x, max_y = self.get_unfold_bounds()
        return Point2(
            max(min_x + margin, min(point.x, max_x - margin)),
            max(min_y + margin, min(point.y, max_y - margin)),
        )

    def is_point_inside_contour(self, point: Point2) -> bool:
        """Even-odd test of an unfold-plane point against the trim contour."""
        polygon = self.strip_contour.sample_points(CONTOUR_QUERY_SAMPLES)
        return point_in_polygon(point, polygon)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the stored strip document.

        Returns:
            {"type": "strip", "surfaceType", "surfaceParams", "stripContourData"}
        """
        return {
            "type": STRIP_TYPE,
            "surfaceType": self.surface_type.value,
            "surfaceParams": self.surface_params.to_dict(),
            "stripContourData": self.strip_contour.to_data(),
        }

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], settings: DevStripSettings | None = None
    ) -> "SurfaceStrip":
        """Deserialize a stored strip document.

        Args:
            data: Dictionary produced by to_dict()
            settings: Geometry and trim settings (defaults if None)

        Returns:
            SurfaceStrip instance

        Raises:
            InvalidGeometryError: If the document is not a strip
        """
        doc_type = data.get("type", STRIP_TYPE)
        if doc_type != STRIP_TYPE:
            raise InvalidGeometryError(f"Expected a '{STRIP_TYPE}' document, got '{doc_type}'")
        if "surfaceType" not in data:
            raise InvalidGeometryError("Strip document has no surfaceType")
        return cls(
            data["surfaceType"],
            data.get("surfaceParams"),
            data.get("stripContourData"),
            settings=settings,
        )
