"""Logging utilities for Devstrip."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import structlog


@dataclass
class ProcessingStats:
    """Statistics from processing run."""

    processed_count: int = 0
    skipped_count: int = 0
    error_count: int = 0
    empty_count: int = 0
    triangles_generated: int = 0
    errors: list[tuple[str, str]] = field(default_factory=list)
    strip_timings_ms: list[float] = field(default_factory=list)
    start_time: float | None = None
    end_time: float | None = None
    was_cancelled: bool = False
    cancelled_count: int = 0

    @property
    def duration_seconds(self) -> float:
        """Calculate processing duration."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        return 0.0

    @property
    def avg_strip_time_ms(self) -> float | None:
        if not self.strip_timings_ms:
            return None
        return sum(self.strip_timings_ms) / len(self.strip_timings_ms)

    @property
    def min_strip_time_ms(self) -> float | None:
        return min(self.strip_timings_ms) if self.strip_timings_ms else None

    @property
    def max_strip_time_ms(self) -> float | None:
        return max(self.strip_timings_ms) if self.strip_timings_ms else None


def configure_logging(
    log_file: Path | None = None,
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    quiet: bool = False,
) -> structlog.stdlib.BoundLogger:
    """Configure dual-output structured logging.

    Args:
        log_file: Path to log file (no file output if None)
        console_level: Logging level for console output
        file_level: Logging level for file output
        quiet: If True, suppress console output except errors

    Returns:
        Configured structlog logger
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    for handler in list(root_logger.handlers):
        if getattr(handler, "_devstrip", False):
            root_logger.removeHandler(handler)
            handler.close()

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(getattr(logging, file_level.upper()))
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")
        )
        file_handler._devstrip = True  # type: ignore[attr-defined]
        root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.ERROR if quiet else getattr(logging, console_level.upper()))
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    console_handler._devstrip = True  # type: ignore[attr-defined]
    root_logger.addHandler(console_handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logger = structlog.get_logger("devstrip")
    logger.debug(
        "Logging initialized",
        log_file=str(log_file) if log_file else None,
        level=file_level,
    )

    return logger


class ProcessingLogger:
    """Logger for tracking processing progress and statistics."""

    def __init__(self, logger: structlog.stdlib.BoundLogger) -> None:
        self._logger = logger
        self._stats = ProcessingStats()

    def log_strip_start(self, strip_name: str) -> None:
        """Log start of strip processing."""
        self._logger.debug("Processing strip", strip=strip_name)

    def log_strip_complete(
        self,
        strip_name: str,
        vertices: int,
        triangles: int,
        duration_ms: float,
    ) -> None:
        """Log successful strip trim."""
        self._logger.info(
            "Strip trimmed",
            strip=strip_name,
            vertices=vertices,
            triangles=triangles,
            duration_ms=round(duration_ms, 2),
        )
        self._stats.processed_count += 1
        self._stats.triangles_generated += triangles
        self._stats.strip_timings_ms.append(duration_ms)
        if triangles == 0:
            self._stats.empty_count += 1

    def log_strip_skipped(self, strip_name: str, reason: str) -> None:
        """Log skipped strip."""
        self._logger.debug("Strip skipped", strip=strip_name, reason=reason)
        self._stats.skipped_count += 1

    def log_strip_error(
        self,
        strip_name: str,
        error: Exception,
        traceback: str | None = None,
    ) -> None:
        """Log strip processing error."""
        self._logger.error(
            "Strip processing failed",
            strip=strip_name,
            error=str(error),
            error_type=type(error).__name__,
            traceback=traceback,
        )
        self._stats.error_count += 1
        self._stats.errors.append((strip_name, str(error)))

    @property
    def stats(self) -> ProcessingStats:
        """Get current processing statistics."""
        return self._stats
