"""Command-line interface for devstrip.

This module provides the CLI using Typer with rich output for
user-friendly feedback and progress reporting.

Key features:
- Creating strip documents with a default contour
- Inspecting unfold bounds and outlines
- Parallel trimming with progress bars
- Verbose/quiet output modes
"""

from devstrip.cli.app import cli, main

__all__ = ["cli", "main"]
