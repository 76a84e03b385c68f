"""CLI application entry point for devstrip.

This module provides the main CLI interface using Typer.
"""

import os
from pathlib import Path
from typing import Annotated

import typer

from devstrip import __version__
from devstrip.cli.output import (
    console,
    create_progress,
    print_cancellation_notice,
    print_cancellation_summary,
    print_created,
    print_document_info,
    print_error,
    print_errors,
    print_header,
    print_outline,
    print_processing_info,
    print_step,
    print_strip_info,
    print_success,
)
from devstrip.config import (
    DevStripSettings,
    LoggingConfig,
    MeshFormat,
    ProcessingConfig,
    TrimConfig,
    get_default_settings,
)
from devstrip.core import StripProcessor, SurfaceKind, SurfaceParams, SurfaceStrip
from devstrip.exceptions import (
    DevStripError,
    MeshSaveError,
    StripLoadError,
    StripSaveError,
)
from devstrip.io import StripReader, save_strip_document

# Create the Typer app
app = typer.Typer(
    name="devstrip",
    help="Trim developable surface strips (cylinders, cones) along contours drawn on their unfold plane.",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]Devstrip[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    _version: Annotated[  # noqa: ARG001
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Trim developable surface strips and write their meshes."""


@app.command()
def new(
    output: Annotated[
        Path,
        typer.Argument(
            help="Path of the strip document to create (.json)",
            show_default=False,
        ),
    ],
    surface_type: Annotated[
        str,
        typer.Option(
            "--type",
            "-t",
            help="Surface type (cylindrical|conical)",
        ),
    ] = "cylindrical",
    height: Annotated[
        float,
        typer.Option(
            "--height",
            help="Surface height",
            min=0.0,
        ),
    ] = 3.0,
    radius: Annotated[
        float | None,
        typer.Option(
            "--radius",
            "-r",
            help="Base circle radius (default: 1.5 cylinder, 2.0 cone)",
            min=0.0,
        ),
    ] = None,
    segments: Annotated[
        int,
        typer.Option(
            "--segments",
            help="Base circle segments",
            min=3,
        ),
    ] = 32,
    margin: Annotated[
        float,
        typer.Option(
            "--margin",
            help="Default contour inset as a fraction of the unfold bounds",
            min=0.0,
            max=0.49,
        ),
    ] = 0.1,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite an existing document",
        ),
    ] = False,
) -> None:
    """Create a strip document with the default inset-rectangle contour.

    Example:
        devstrip new shade.json --type conical --height 2 --radius 1
    """
    if output.exists() and not force:
        print_error(
            f"Output file already exists: {output}",
            details="Use --force to overwrite it.",
        )
        raise typer.Exit(code=1)

    try:
        kind = SurfaceKind.parse(surface_type)
        settings = DevStripSettings(trim=TrimConfig(default_margin=margin))
        strip = SurfaceStrip(
            kind,
            SurfaceParams(height=height, radius=radius, radial_segments=segments),
            settings=settings,
        )
        save_strip_document(output, [strip.to_dict()])
    except StripSaveError as e:
        print_error(f"Could not save strip document: {e.reason}")
        raise typer.Exit(code=1)
    except DevStripError as e:
        print_error(str(e))
        raise typer.Exit(code=1)

    print_created(str(output), kind.value)


@app.command()
def outline(
    document: Annotated[
        Path,
        typer.Argument(
            help="Strip document (.json)",
            show_default=False,
        ),
    ],
    strip_name: Annotated[
        str | None,
        typer.Option(
            "--strip",
            "-s",
            help="Only show the strip with this name",
        ),
    ] = None,
    points: Annotated[
        bool,
        typer.Option(
            "--points",
            "-p",
            help="List the unfold outline points",
        ),
    ] = False,
) -> None:
    """Show the unfold bounds (and optionally the outline) of each strip.

    Example:
        devstrip outline shade.json --points
    """
    settings = get_default_settings()
    try:
        reader = StripReader(document)
        reader.load()
        print_document_info(str(document), reader.strip_count)

        shown = 0
        for name, strip_dict in reader.iter_strips():
            if strip_name is not None and name != strip_name:
                continue
            strip = SurfaceStrip.from_dict(strip_dict, settings=settings)
            console.print()
            print_strip_info(
                name=name,
                surface_type=strip.surface_type.value,
                bounds=strip.get_unfold_bounds(),
                contour_points=strip.strip_contour.control_point_count,
            )
            if points:
                print_outline(_thin(strip.unfold_outline(), settings.geometry.outline_samples))
            shown += 1

        if strip_name is not None and shown == 0:
            print_error(f"No strip named '{strip_name}' in {document}")
            raise typer.Exit(code=1)

    except FileNotFoundError:
        print_error(f"Input file not found: {document}")
        raise typer.Exit(code=1)
    except StripLoadError as e:
        print_error(f"Could not load strip document: {e.reason}")
        raise typer.Exit(code=1)
    except DevStripError as e:
        print_error(str(e))
        raise typer.Exit(code=1)


@app.command()
def trim(
    documents: Annotated[
        list[Path],
        typer.Argument(
            help="Strip documents (.json) to trim",
            show_default=False,
        ),
    ],
    output_dir: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output directory (default: next to each document)",
        ),
    ] = None,
    resolution: Annotated[
        int,
        typer.Option(
            "--resolution",
            "-g",
            help="Trimming grid quads per side (4-512)",
            min=4,
            max=512,
        ),
    ] = 64,
    samples: Annotated[
        int,
        typer.Option(
            "--samples",
            help="Contour samples used for culling and snapping",
            min=100,
            max=20000,
        ),
    ] = 512,
    mesh_format: Annotated[
        str,
        typer.Option(
            "--format",
            help="Mesh format (obj|json)",
        ),
    ] = "obj",
    workers: Annotated[
        int | None,
        typer.Option(
            "--workers",
            "-j",
            help="Number of parallel workers (default: auto)",
            min=1,
        ),
    ] = None,
    fail_on_empty: Annotated[
        bool,
        typer.Option(
            "--fail-on-empty",
            help="Treat strips that trim to an empty mesh as errors",
        ),
    ] = False,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            help="Write detailed logs to file",
        ),
    ] = None,
    log_level: Annotated[
        str,
        typer.Option(
            "--log-level",
            help="Logging level (DEBUG|INFO|WARNING|ERROR)",
        ),
    ] = "WARNING",
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbose console output",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Minimal console output",
        ),
    ] = False,
) -> None:
    """Trim every strip of the given documents and write one mesh per strip.

    Example:
        devstrip trim shade.json -o meshes --format json

    This writes meshes/shade.json holding the trimmed mesh buffers and the
    strip document they were built from.
    """
    if verbose and quiet:
        print_error("Cannot use --verbose and --quiet together")
        raise typer.Exit(code=1)

    for document in documents:
        if not document.is_file():
            print_error(
                f"Input file not found: {document}",
                details=f"The file '{document}' does not exist or is not a file.",
            )
            raise typer.Exit(code=1)

    try:
        format_pref = MeshFormat(mesh_format.lower())
    except ValueError:
        print_error(
            f"Invalid mesh format: {mesh_format}",
            details="Valid values: obj, json",
        )
        raise typer.Exit(code=1)

    if not quiet:
        print_header(__version__)

    settings = DevStripSettings(
        trim=TrimConfig(grid_resolution=resolution, contour_samples=samples),
        processing=ProcessingConfig(max_workers=workers, mesh_format=format_pref),
        logging=LoggingConfig(
            log_file=log_file,
            log_level=log_level if not quiet else "WARNING",
        ),
    )

    try:
        if not quiet:
            print_step("Loading strips")
            for document in documents:
                reader = StripReader(document)
                reader.load()
                print_document_info(str(document), reader.strip_count)

            actual_workers = workers if workers else os.cpu_count() or 1
            print_step("Trimming")
            print_processing_info(actual_workers, is_auto=(workers is None))

        processor = StripProcessor(settings)
        stats = processor.processing_logger.stats

        try:
            if not quiet:
                with create_progress() as progress:
                    task_id = progress.add_task("Trimming strips", total=None)

                    def update_progress(completed: int, total: int, *_: object) -> None:
                        progress.update(task_id, completed=completed, total=total)

                    processor.process(
                        document_paths=documents,
                        output_dir=output_dir,
                        max_workers=workers,
                        progress_callback=update_progress,
                        strict=fail_on_empty,
                    )
            else:
                processor.process(
                    document_paths=documents,
                    output_dir=output_dir,
                    max_workers=workers,
                    strict=fail_on_empty,
                )
        except KeyboardInterrupt:
            if not quiet:
                print_cancellation_notice()
                print_cancellation_summary(
                    processed=stats.processed_count,
                    cancelled=stats.cancelled_count,
                )
            raise typer.Exit(code=130) from None  # Standard Unix SIGINT exit code

        if not quiet:
            print_success(
                output_dir=str(output_dir) if output_dir else "next to input documents",
                total_time_s=stats.duration_seconds,
                processed=stats.processed_count,
                triangles=stats.triangles_generated,
                empty=stats.empty_count,
                errors=stats.error_count,
                avg_time_ms=stats.avg_strip_time_ms,
                min_time_ms=stats.min_strip_time_ms,
                max_time_ms=stats.max_strip_time_ms,
            )

        if stats.errors:
            if not quiet or verbose:
                print_errors(stats.errors)
            raise typer.Exit(code=1)

    except StripLoadError as e:
        print_error(f"Could not load strip document: {e.reason}")
        raise typer.Exit(code=1)
    except MeshSaveError as e:
        print_error(f"Could not save mesh: {e.reason}")
        raise typer.Exit(code=1)
    except DevStripError as e:
        print_error(str(e))
        raise typer.Exit(code=1)
    except typer.Exit:
        # Re-raise typer.Exit to allow clean exits
        raise
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        raise typer.Exit(code=1)


def _thin(points: list, limit: int) -> list:
    """Evenly pick at most limit points, keeping the first and last."""
    if len(points) <= limit:
        return points
    step = (len(points) - 1) / (limit - 1)
    return [points[round(i * step)] for i in range(limit)]


def cli() -> None:
    """Entry point for the CLI application."""
    app()


def main() -> None:
    """Entry point for the CLI application (alias for cli)."""
    cli()


if __name__ == "__main__":
    cli()
