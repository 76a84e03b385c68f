"""Processing orchestration for strip trimming.

Two ways of driving the trimmer:

- Batch: StripProcessor trims every strip of one or more strip documents in
  parallel worker processes and writes the meshes. process_strip is the
  top-level picklable worker function.
- Live: LiveTrimSession serves an interactive editor. Each submit() supersedes
  the previous request; a superseded trim aborts at its next stage boundary
  and its result never reaches the consumer.
"""

import threading
import time
import traceback
from collections.abc import Callable, Container
from concurrent.futures import Future, ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any

import structlog

from devstrip.config import DevStripSettings, get_default_settings
from devstrip.core.strip import STRIP_TYPE, SurfaceStrip, TrimResult
from devstrip.core.trimmer import StripTrimmer
from devstrip.domain import TrimmedMesh
from devstrip.exceptions import TrimCancelledError
from devstrip.io import MeshWriter, StripReader
from devstrip.utils import ProcessingLogger, ProcessingStats, configure_logging


def process_strip(
    strip_dict: dict[str, Any],
    settings_dict: dict[str, Any],
    strip_name: str = "strip",
    strict: bool = False,
) -> dict[str, Any]:
    """Trim a single strip document.

    Top-level function designed to be picklable for use with ProcessPoolExecutor.
    Deserializes the strip, trims it and returns the result.

    Args:
        strip_dict: Strip document (from SurfaceStrip.to_dict())
        settings_dict: Serialized DevStripSettings
        strip_name: Name used in error reports
        strict: Treat an empty result as an error

    Returns:
        Dictionary containing either:
        - Success: {"mesh": mesh_dict, "source": strip_dict, "vertices": int,
          "triangles": int, "duration_ms": float}
        - Error: {"error": str, "strip_name": str, "traceback": str, "duration_ms": float}
    """
    start_time = time.time()

    try:
        settings = DevStripSettings(**settings_dict)
        strip = SurfaceStrip.from_dict(strip_dict, settings=settings)
        result = strip.create_mesh(strict=strict)
        mesh = result.mesh

        duration_ms = (time.time() - start_time) * 1000
        return {
            "mesh": mesh.to_dict(),
            "source": result.source,
            "vertices": mesh.vertex_count,
            "triangles": mesh.triangle_count,
            "duration_ms": duration_ms,
        }

    except Exception as e:
        duration_ms = (time.time() - start_time) * 1000
        tb = traceback.format_exc()
        return {
            "error": str(e),
            "strip_name": strip_name,
            "traceback": tb,
            "duration_ms": duration_ms,
        }


def _unique_name(name: str, taken: Container[str]) -> str:
    """Return name, or name-2, name-3, ... if it is already taken."""
    if name not in taken:
        return name
    suffix = 2
    while f"{name}-{suffix}" in taken:
        suffix += 1
    return f"{name}-{suffix}"


class StripProcessor:
    """Orchestrates parallel trimming of strip documents.

    Manages the complete workflow:
    1. Load strip documents
    2. Filter entries that are not strips
    3. Trim strips in parallel using worker processes
    4. Write meshes and update statistics

    Example:
        settings = DevStripSettings()
        processor = StripProcessor(settings)
        stats = processor.process(
            document_paths=[Path("shade.json")],
            output_dir=Path("meshes"),
            max_workers=4,
        )
    """

    def __init__(self, config: DevStripSettings) -> None:
        """Initialize strip processor with configuration.

        Args:
            config: Devstrip settings containing trim and processing config
        """
        self.config = config
        self.logger = configure_logging(
            log_file=config.logging.log_file,
            console_level=config.logging.log_level,
            file_level=config.logging.file_log_level,
            quiet=False,
        )
        self.processing_logger = ProcessingLogger(self.logger)

    def process(
        self,
        document_paths: list[Path],
        output_dir: Path | None = None,
        max_workers: int | None = None,
        progress_callback: Callable[[int, int, str, bool], None] | None = None,
        strict: bool = False,
    ) -> ProcessingStats:
        """Trim every strip of the given documents and write the meshes.

        Args:
            document_paths: Strip documents to process
            output_dir: Directory for meshes (defaults to each document's directory)
            max_workers: Maximum worker processes (None = config default / auto)
            progress_callback: Optional callback(completed, total, strip_name, success)
                for progress updates
            strict: Count strips that trim to an empty mesh as errors

        Returns:
            ProcessingStats with counts, timing, and error details

        Raises:
            FileNotFoundError: If a document does not exist
            StripLoadError: If a document cannot be parsed
            KeyboardInterrupt: If processing is cancelled by user
        """
        stats = self.processing_logger.stats
        stats.start_time = time.time()

        if max_workers is None:
            max_workers = self.config.processing.max_workers
        mesh_format = self.config.processing.mesh_format

        self.logger.info(
            "Starting strip processing",
            documents=[str(p) for p in document_paths],
            output_dir=str(output_dir) if output_dir else None,
            max_workers=max_workers,
        )

        tasks: dict[str, tuple[dict[str, Any], Path]] = {}
        output_paths: set[Path] = set()
        for path in document_paths:
            reader = StripReader(path)
            reader.load()
            self.logger.info("Document loaded", path=str(path), strips=reader.strip_count)

            for name, strip_dict in reader.iter_strips():
                if strip_dict.get("type", STRIP_TYPE) != STRIP_TYPE:
                    self.processing_logger.log_strip_skipped(
                        name, f"not a strip ({strip_dict.get('type')})"
                    )
                    continue

                # Names repeat across documents with the same stem and within
                # a document; each strip still gets its own task and mesh file
                label = _unique_name(name, tasks)
                output_path = MeshWriter.get_mesh_path(path, name, mesh_format, output_dir)
                if output_path in output_paths:
                    output_path = MeshWriter.get_mesh_path(path, label, mesh_format, output_dir)
                if label != name:
                    self.logger.warning(
                        "Duplicate strip name",
                        strip_name=name,
                        renamed=label,
                        path=str(path),
                        output=str(output_path),
                    )
                output_paths.add(output_path)
                tasks[label] = (strip_dict, output_path)

        self.logger.info(
            "Collected strips",
            to_process=len(tasks),
            skipped=stats.skipped_count,
        )

        if tasks:
            self._process_parallel(tasks, max_workers, stats, strict, progress_callback)
        else:
            self.logger.info("No strips to process")

        stats.end_time = time.time()

        self.logger.info(
            "Processing complete",
            processed=stats.processed_count,
            skipped=stats.skipped_count,
            empty=stats.empty_count,
            errors=stats.error_count,
            triangles=stats.triangles_generated,
            duration_seconds=round(stats.duration_seconds, 2),
        )

        return stats

    def _process_parallel(
        self,
        tasks: dict[str, tuple[dict[str, Any], Path]],
        max_workers: int | None,
        stats: ProcessingStats,
        strict: bool,
        progress_callback: Callable[[int, int, str, bool], None] | None = None,
    ) -> None:
        """Trim strips in parallel using ProcessPoolExecutor and write the meshes.

        Args:
            tasks: Strip name -> (strip document, mesh output path)
            max_workers: Maximum worker processes
            stats: Statistics object to update
            strict: Count empty meshes as errors
            progress_callback: Optional callback(completed, total, strip_name, success)
        """
        settings_dict = self.config.model_dump()

        self.logger.info(
            "Starting parallel processing",
            strip_count=len(tasks),
            max_workers=max_workers,
        )

        total = len(tasks)
        completed = 0
        pending_futures: dict = {}

        with ProcessPoolExecutor(max_workers=max_workers) as executor:
            for name, (strip_dict, _) in tasks.items():
                self.processing_logger.log_strip_start(name)
                future = executor.submit(process_strip, strip_dict, settings_dict, name, strict)
                pending_futures[future] = name

            try:
                for future in as_completed(pending_futures):
                    strip_name = pending_futures.pop(future)
                    success = False

                    try:
                        result = future.result()

                        if "error" in result:
                            self.processing_logger.log_strip_error(
                                strip_name=result["strip_name"],
                                error=Exception(result["error"]),
                                traceback=result.get("traceback"),
                            )
                        else:
                            mesh = TrimmedMesh.from_dict(result["mesh"])
                            output_path = tasks[strip_name][1]
                            MeshWriter(mesh, output_path).save(source=result["source"])

                            success = True
                            self.processing_logger.log_strip_complete(
                                strip_name=strip_name,
                                vertices=result["vertices"],
                                triangles=result["triangles"],
                                duration_ms=result.get("duration_ms", 0.0),
                            )

                    except Exception as e:
                        # Executor-level or write error
                        tb = traceback.format_exc()
                        self.processing_logger.log_strip_error(
                            strip_name=strip_name,
                            error=e,
                            traceback=tb,
                        )

                    completed += 1
                    if progress_callback is not None:
                        progress_callback(completed, total, strip_name, success)

            except KeyboardInterrupt:
                self.logger.info("Cancellation requested by user")
                for f in pending_futures:
                    f.cancel()

                stats.was_cancelled = True
                stats.cancelled_count = len(pending_futures)

                executor.shutdown(wait=True, cancel_futures=True)
                raise


class LiveTrimSession:
    """Latest-wins trimming for interactive contour editing.

    Requests run one at a time on a background thread. Submitting a new
    request supersedes every earlier one: a superseded trim stops at its next
    stage boundary, its future resolves to None and on_result is not called
    for it. Each request works on its own copy of the strip, so the caller
    may keep editing while a trim runs.

    Example:
        with LiveTrimSession(on_result=viewer.show) as session:
            session.submit(strip)          # superseded
            future = session.submit(strip) # delivered to viewer.show
    """

    def __init__(
        self,
        on_result: Callable[[TrimResult], None] | None = None,
        settings: DevStripSettings | None = None,
        trimmer: StripTrimmer | None = None,
    ) -> None:
        self.settings = settings or get_default_settings()
        self.trimmer = trimmer or StripTrimmer(self.settings.trim)
        self._on_result = on_result
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="devstrip-trim")
        self._lock = threading.RLock()
        self._generation = 0
        self._latest: TrimResult | None = None
        self._logger = structlog.get_logger("devstrip.live")

    @property
    def generation(self) -> int:
        """Number of the most recent request."""
        return self._generation

    @property
    def latest(self) -> TrimResult | None:
        """Most recent delivered result."""
        return self._latest

    def submit(self, strip: SurfaceStrip) -> "Future[TrimResult | None]":
        """Request a trim of the strip's current state.

        Returns:
            Future resolving to the TrimResult, or None if superseded
        """
        document = strip.to_dict()
        with self._lock:
            self._generation += 1
            generation = self._generation
        return self._executor.submit(self._run, generation, document)

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation

    def _run(self, generation: int, document: dict[str, Any]) -> TrimResult | None:
        if self._is_stale(generation):
            self._logger.debug("Trim request superseded before start", generation=generation)
            return None

        strip = SurfaceStrip.from_dict(document, settings=self.settings)
        try:
            mesh = self.trimmer.trim(
                strip.surface(),
                strip.strip_contour,
                should_cancel=lambda: self._is_stale(generation),
            )
        except TrimCancelledError as e:
            self._logger.debug("Trim request superseded", generation=generation, stage=e.stage)
            return None

        result = TrimResult(mesh=mesh, source=document)
        with self._lock:
            if self._is_stale(generation):
                self._logger.debug("Trim result discarded", generation=generation)
                return None
            self._latest = result
            if self._on_result is not None:
                self._on_result(result)

        self._logger.debug(
            "Trim result delivered",
            generation=generation,
            vertices=mesh.vertex_count,
            triangles=mesh.triangle_count,
        )
        return result

    def close(self) -> None:
        """Supersede pending requests and stop the worker thread."""
        with self._lock:
            self._generation += 1
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "LiveTrimSession":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
