"""Configuration management for devstrip.

This module provides configuration management using Pydantic models.
Configuration can be provided via CLI arguments or defaults.

Key classes:
- GeometryConfig: Curve and surface table resolutions
- TrimConfig: Grid-cull-and-snap trimmer settings
- ProcessingConfig: Batch processing settings
- LoggingConfig: Logging settings
- DevStripSettings: Main application settings
"""

from devstrip.config.settings import (
    DevStripSettings,
    GeometryConfig,
    LoggingConfig,
    MeshFormat,
    ProcessingConfig,
    TrimConfig,
    get_default_settings,
)

__all__ = [
    "DevStripSettings",
    "GeometryConfig",
    "LoggingConfig",
    "MeshFormat",
    "ProcessingConfig",
    "TrimConfig",
    "get_default_settings",
]
