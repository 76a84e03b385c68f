"""Configuration settings for Devstrip."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class MeshFormat(str, Enum):
    """Output format for trimmed meshes."""

    OBJ = "obj"
    JSON = "json"


class GeometryConfig(BaseModel):
    """Sampling resolutions for curve and surface lookup tables."""

    arc_length_samples: int = Field(
        default=200,
        ge=8,
        le=20000,
        description="Samples in a curve's cumulative arc-length table",
    )
    cone_table_samples: int = Field(
        default=256,
        ge=8,
        le=20000,
        description="Base-curve samples in a cone's angle/slant-height table",
    )
    outline_samples: int = Field(
        default=64,
        ge=4,
        le=4096,
        description="Maximum outline points listed by the outline command",
    )


class TrimConfig(BaseModel):
    """Configuration for the grid-cull-and-snap trimmer."""

    grid_resolution: int = Field(
        default=64,
        ge=4,
        le=512,
        description="Quads per side of the trimming grid",
    )
    contour_samples: int = Field(
        default=512,
        ge=100,
        le=20000,
        description="Contour samples used for culling and boundary snapping",
    )
    default_margin: float = Field(
        default=0.1,
        ge=0.0,
        lt=0.5,
        description="Inset of the default contour as a fraction of the unfold bounds",
    )
    dedupe_snapped_vertices: bool = Field(
        default=True,
        description="Merge boundary vertices that snap onto the same contour sample",
    )
    min_contour_area: float = Field(
        default=1e-9,
        ge=0.0,
        description="Contours enclosing less area than this trim to an empty mesh",
    )
    parallel_threshold: int = Field(
        default=32768,
        ge=1,
        description="Triangle count above which culling is split across threads",
    )
    max_threads: int | None = Field(
        default=None,
        description="Max threads for chunked culling/mapping (None = single thread)",
    )


class ProcessingConfig(BaseModel):
    """Configuration for batch processing of strip documents."""

    max_workers: int | None = Field(
        default=None,
        description="Max worker processes (None = auto)",
    )
    mesh_format: MeshFormat = Field(
        default=MeshFormat.OBJ,
        description="Output mesh format",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    log_file: Path | None = Field(
        default=None,
        description="Path to log file",
    )
    log_level: str = Field(
        default="WARNING",
        description="Console log level",
    )
    file_log_level: str = Field(
        default="DEBUG",
        description="File log level (more verbose)",
    )


class DevStripSettings(BaseModel):
    """Main application settings."""

    geometry: GeometryConfig = Field(default_factory=GeometryConfig)
    trim: TrimConfig = Field(default_factory=TrimConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_default_settings() -> DevStripSettings:
    """Get default application settings."""
    return DevStripSettings()
