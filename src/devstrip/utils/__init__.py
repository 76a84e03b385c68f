"""Utility functions for devstrip.

This module provides utility functions including:

- Logging setup and configuration
- Processing statistics and progress reporting helpers
"""

from devstrip.utils.logging import (
    ProcessingLogger,
    ProcessingStats,
    configure_logging,
)

__all__ = [
    "ProcessingLogger",
    "ProcessingStats",
    "configure_logging",
]
