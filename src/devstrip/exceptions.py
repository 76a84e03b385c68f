"""Exception hierarchy for Devstrip."""


class DevStripError(Exception):
    """Base exception for all Devstrip errors."""

    pass


class GeometryError(DevStripError):
    """Errors in geometric construction or calculations."""

    pass


class InvalidGeometryError(GeometryError):
    """Geometry that cannot be built (too few points, bad dimensions)."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class DegenerateTrimError(GeometryError):
    """A trim contour left nothing of the surface.

    Only raised when the caller explicitly asks for a non-empty result;
    by default an empty mesh is returned instead.
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Trim produced an empty mesh: {reason}")


class SurfaceError(DevStripError):
    """Errors related to surface model creation."""

    pass


class UnsupportedSurfaceKindError(SurfaceError):
    """Requested surface kind is not known to the factory."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(f"Unknown surface type: '{kind}'")


class StripFileError(DevStripError):
    """Errors related to reading or writing strip documents and meshes."""

    pass


class StripLoadError(StripFileError):
    """Error loading a strip document."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load strip document '{path}': {reason}")


class StripSaveError(StripFileError):
    """Error writing a strip document."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to save strip document '{path}': {reason}")


class MeshSaveError(StripFileError):
    """Error writing a mesh file."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to save mesh '{path}': {reason}")


class TrimCancelledError(DevStripError):
    """A trim was superseded by a newer request before it finished."""

    def __init__(self, stage: str) -> None:
        self.stage = stage
        super().__init__(f"Trim cancelled during {stage}")
