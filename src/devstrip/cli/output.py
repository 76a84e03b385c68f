"""Rich console output helpers for the CLI.

This module provides user-friendly console output using Rich library
with progress bars, tables, and formatted messages.
"""

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table
from rich.text import Text

from devstrip.domain import Point2

console = Console()

# Unicode symbols for consistent visual language
SYM_STEP = "▸"  # Step indicator
SYM_OK = "✓"  # Success
SYM_ERR = "✗"  # Error
SYM_DOT = "·"  # Separator/secondary info


def create_progress() -> Progress:
    """Create a rich progress bar for strip trimming.

    Returns:
        Configured Progress instance with bar and time elapsed.
    """
    return Progress(
        TextColumn("  "),
        BarColumn(bar_width=40, complete_style="green", finished_style="green"),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=False,
    )


def print_header(version: str) -> None:
    """Print application header.

    Args:
        version: Application version string
    """
    console.print(f"\n[bold]Devstrip[/bold] v{version}")
    console.print("─" * 44)


def print_step(message: str) -> None:
    """Print a processing step indicator.

    Args:
        message: Step description message
    """
    console.print(f"\n{SYM_STEP} {message}")


def print_document_info(path: str, strip_count: int) -> None:
    """Print strip document information.

    Args:
        path: Path to the strip document
        strip_count: Number of strips in the document
    """
    # Use Text to safely handle paths with special characters
    line = Text("  ")
    line.append(path)
    plural = "strip" if strip_count == 1 else "strips"
    line.append(f" ({strip_count} {plural})")
    console.print(line)


def print_strip_info(
    name: str,
    surface_type: str,
    bounds: tuple[float, float, float, float],
    contour_points: int,
) -> None:
    """Print a strip's surface type and unfold extent.

    Args:
        name: Strip name
        surface_type: Surface type tag
        bounds: Unfold bounds as (min_x, min_y, max_x, max_y)
        contour_points: Number of control points of the trim contour
    """
    min_x, min_y, max_x, max_y = bounds
    line = Text("  ")
    line.append(name, style="bold")
    line.append(f" ({surface_type})")
    console.print(line)
    console.print(
        f"  unfold {max_x - min_x:.4g} × {max_y - min_y:.4g} {SYM_DOT} "
        f"x [{min_x:.4g}, {max_x:.4g}] {SYM_DOT} y [{min_y:.4g}, {max_y:.4g}] {SYM_DOT} "
        f"{contour_points} contour points"
    )


def print_outline(points: list[Point2]) -> None:
    """Print unfold outline points as a table.

    Args:
        points: Outline points in order
    """
    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("#", justify="right")
    table.add_column("x", justify="right")
    table.add_column("y", justify="right")
    for index, point in enumerate(points):
        table.add_row(str(index), f"{point.x:.6f}", f"{point.y:.6f}")
    console.print(table)


def _format_time(seconds: float) -> str:
    """Format seconds into human-readable time string."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    else:
        mins = int(seconds // 60)
        secs = seconds % 60
        return f"{mins}m {secs:.1f}s"


def print_processing_info(workers: int, is_auto: bool = False) -> None:
    """Print processing configuration.

    Args:
        workers: Number of parallel workers
        is_auto: Whether the count was auto-detected
    """
    auto_suffix = " (auto)" if is_auto else ""
    console.print(f"  {workers} workers{auto_suffix} {SYM_DOT} Ctrl+C to cancel")


def print_success(
    output_dir: str,
    total_time_s: float,
    processed: int,
    triangles: int,
    empty: int,
    errors: int,
    avg_time_ms: float | None = None,
    min_time_ms: float | None = None,
    max_time_ms: float | None = None,
) -> None:
    """Print success message with summary.

    Args:
        output_dir: Directory the meshes were written to
        total_time_s: Total processing time in seconds
        processed: Number of strips trimmed
        triangles: Total triangles generated
        empty: Number of strips that trimmed to an empty mesh
        errors: Number of errors encountered
        avg_time_ms: Average trim time per strip in milliseconds
        min_time_ms: Minimum trim time per strip in milliseconds
        max_time_ms: Maximum trim time per strip in milliseconds
    """
    time_str = _format_time(total_time_s)

    console.print(f"\n[bold green]{SYM_OK} Complete[/bold green] in {time_str}")

    line = Text("  ")
    line.append(output_dir, style="bold")
    console.print(line)

    error_style = "red" if errors > 0 else "green"
    empty_style = "yellow" if empty > 0 else "green"
    console.print(
        f"  {processed} strips {SYM_DOT} {triangles:,} triangles {SYM_DOT} "
        f"[{empty_style}]{empty} empty[/{empty_style}] {SYM_DOT} "
        f"[{error_style}]{errors} errors[/{error_style}]"
    )

    if avg_time_ms is not None:
        timing_str = f"{avg_time_ms:.1f}ms avg"
        if min_time_ms is not None and max_time_ms is not None:
            timing_str += f" ({min_time_ms:.1f}-{max_time_ms:.1f}ms range)"
        console.print(f"  {timing_str}")


def print_errors(errors: list[tuple[str, str]], limit: int = 10) -> None:
    """Print per-strip errors.

    Args:
        errors: (strip name, message) pairs
        limit: Maximum number of errors to list
    """
    for name, message in errors[:limit]:
        line = Text(f"  {SYM_ERR} ", style="red")
        line.append(name, style="bold")
        line.append(f": {message}", style="default")
        console.print(line)
    if len(errors) > limit:
        console.print(f"  {SYM_DOT}{SYM_DOT}{SYM_DOT} (+{len(errors) - limit} more)")


def print_created(path: str, surface_type: str) -> None:
    """Print confirmation of a newly written strip document."""
    line = Text(f"\n{SYM_OK} ", style="bold green")
    line.append("Created ", style="bold green")
    line.append(path, style="bold")
    line.append(f" ({surface_type})", style="default")
    console.print(line)


def print_error(message: str, details: str | None = None) -> None:
    """Print error message.

    Args:
        message: Main error message
        details: Optional detailed error information
    """
    console.print(f"\n[bold red]{SYM_ERR} Error:[/bold red] {message}")
    if details:
        console.print(f"  {details}")


def print_cancellation_notice() -> None:
    """Print cancellation acknowledgment."""
    console.print(f"\n{SYM_DOT} Cancelling... waiting for in-progress strips")


def print_cancellation_summary(processed: int, cancelled: int) -> None:
    """Print cancellation summary.

    Args:
        processed: Number of strips trimmed before cancellation
        cancelled: Number of pending tasks that were cancelled
    """
    console.print(f"\n{SYM_DOT} [bold]Cancelled[/bold]")
    console.print(f"  {processed} strips completed {SYM_DOT} {cancelled} tasks cancelled")
