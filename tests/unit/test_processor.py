"""Tests for batch and live processing orchestration."""

import threading
from concurrent.futures import Future
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from devstrip.config import DevStripSettings, MeshFormat, ProcessingConfig, TrimConfig
from devstrip.core.processor import LiveTrimSession, StripProcessor, process_strip
from devstrip.core.strip import SurfaceStrip, TrimResult
from devstrip.core.trimmer import StripTrimmer
from devstrip.domain import Curve, TrimmedMesh
from devstrip.io import save_strip_document


@pytest.fixture
def settings() -> DevStripSettings:
    """Create test settings with a coarse grid."""
    return DevStripSettings(trim=TrimConfig(grid_resolution=16, contour_samples=128))


@pytest.fixture
def strip_dict(settings: DevStripSettings) -> dict:
    """Stored document of a cylinder strip with the default contour."""
    return SurfaceStrip("cylindrical", {"height": 3.0, "radius": 1.5}, settings=settings).to_dict()


class ImmediateExecutor:
    """Stand-in for ProcessPoolExecutor that runs tasks in the calling thread."""

    def __init__(self, *args: object, **kwargs: object) -> None:
        pass

    def __enter__(self) -> "ImmediateExecutor":
        return self

    def __exit__(self, *args: object) -> None:
        return None

    def submit(self, fn, *args, **kwargs) -> Future:
        future: Future = Future()
        future.set_result(fn(*args, **kwargs))
        return future

    def shutdown(self, wait: bool = True, cancel_futures: bool = False) -> None:
        pass


class TestProcessStrip:
    """Tests for process_strip function."""

    def test_process_strip(self, strip_dict: dict, settings: DevStripSettings):
        """Test trimming a valid strip document."""
        result = process_strip(strip_dict, settings.model_dump(), "band")

        assert "error" not in result
        assert result["vertices"] > 0
        assert result["triangles"] > 0
        assert result["duration_ms"] >= 0

        mesh = TrimmedMesh.from_dict(result["mesh"])
        assert mesh.triangle_count == result["triangles"]
        assert result["source"] == strip_dict

    def test_process_strip_handles_error(self, settings: DevStripSettings):
        """Test that process_strip reports errors instead of raising."""
        result = process_strip({"type": "strip", "surfaceType": "planar"}, settings.model_dump(), "bad")

        assert "error" in result
        assert result["strip_name"] == "bad"
        assert "traceback" in result
        assert "planar" in result["error"]

    def test_process_strip_strict_empty(self, strip_dict: dict, settings: DevStripSettings):
        """Test strict mode turns an empty trim into an error."""
        strip_dict["stripContourData"] = Curve(
            [(0, 0), (1, 1e-10), (2, 0)], closed=True
        ).to_data()

        relaxed = process_strip(strip_dict, settings.model_dump(), "flat")
        assert relaxed["triangles"] == 0

        strict = process_strip(strip_dict, settings.model_dump(), "flat", strict=True)
        assert "error" in strict
        assert "empty" in strict["error"]


@patch("devstrip.core.processor.ProcessPoolExecutor", ImmediateExecutor)
@patch("devstrip.core.processor.configure_logging")
class TestStripProcessor:
    """Tests for StripProcessor class."""

    def test_init(self, mock_logging, settings: DevStripSettings):
        """Test StripProcessor initialization."""
        mock_logging.return_value = Mock()
        processor = StripProcessor(settings)

        assert processor.config == settings
        mock_logging.assert_called_once()

    def test_process_writes_meshes(
        self, mock_logging, tmp_path: Path, settings: DevStripSettings, strip_dict: dict
    ):
        """Test a document is trimmed and its mesh written."""
        mock_logging.return_value = Mock()
        document = tmp_path / "shade.json"
        save_strip_document(document, [strip_dict])

        stats = StripProcessor(settings).process([document], output_dir=tmp_path / "out")

        assert stats.processed_count == 1
        assert stats.error_count == 0
        assert stats.triangles_generated > 0
        assert stats.duration_seconds >= 0
        assert (tmp_path / "out" / "shade.obj").exists()

    def test_process_json_format(
        self, mock_logging, tmp_path: Path, settings: DevStripSettings, strip_dict: dict
    ):
        """Test the configured mesh format selects the output suffix."""
        mock_logging.return_value = Mock()
        settings.processing = ProcessingConfig(mesh_format=MeshFormat.JSON)
        document = tmp_path / "shade.json"
        save_strip_document(document, [dict(strip_dict, name="band")])

        StripProcessor(settings).process([document], output_dir=tmp_path / "out")

        assert (tmp_path / "out" / "band.json").exists()

    def test_documents_with_same_stem(
        self, mock_logging, tmp_path: Path, settings: DevStripSettings, strip_dict: dict
    ):
        """Test same-named documents each get their own mesh in a shared output dir."""
        mock_logging.return_value = Mock()
        documents = []
        for folder in ("a", "b"):
            (tmp_path / folder).mkdir()
            documents.append(tmp_path / folder / "shade.json")
            save_strip_document(documents[-1], [strip_dict])

        out = tmp_path / "out"
        stats = StripProcessor(settings).process(documents, output_dir=out)

        assert stats.processed_count == 2
        assert stats.error_count == 0
        assert (out / "shade.obj").exists()
        assert (out / "shade-2.obj").exists()

    def test_documents_with_same_stem_next_to_input(
        self, mock_logging, tmp_path: Path, settings: DevStripSettings, strip_dict: dict
    ):
        """Test same-named documents in different folders keep their plain names."""
        mock_logging.return_value = Mock()
        documents = []
        for folder in ("a", "b"):
            (tmp_path / folder).mkdir()
            documents.append(tmp_path / folder / "shade.json")
            save_strip_document(documents[-1], [strip_dict])

        stats = StripProcessor(settings).process(documents)

        assert stats.processed_count == 2
        assert (tmp_path / "a" / "shade.obj").exists()
        assert (tmp_path / "b" / "shade.obj").exists()

    def test_repeated_strip_names(
        self, mock_logging, tmp_path: Path, settings: DevStripSettings, strip_dict: dict
    ):
        """Test strips sharing a name inside one document are all trimmed."""
        mock_logging.return_value = Mock()
        document = tmp_path / "doc.json"
        save_strip_document(document, [dict(strip_dict, name="band") for _ in range(3)])

        progress = Mock()
        stats = StripProcessor(settings).process(
            [document], output_dir=tmp_path / "out", progress_callback=progress
        )

        assert stats.processed_count == 3
        assert progress.call_count == 3
        for stem in ("band", "band-2", "band-3"):
            assert (tmp_path / "out" / f"{stem}.obj").exists()

    def test_process_skips_non_strips(
        self, mock_logging, tmp_path: Path, settings: DevStripSettings, strip_dict: dict
    ):
        """Test entries of another type are skipped."""
        mock_logging.return_value = Mock()
        document = tmp_path / "doc.json"
        save_strip_document(document, [strip_dict, {"type": "note", "text": "hello"}])

        stats = StripProcessor(settings).process([document])

        assert stats.processed_count == 1
        assert stats.skipped_count == 1
        assert (tmp_path / "doc-1.obj").exists()

    def test_process_handles_errors(
        self, mock_logging, tmp_path: Path, settings: DevStripSettings, strip_dict: dict
    ):
        """Test that failing strips are counted and the rest still written."""
        mock_logging.return_value = Mock()
        document = tmp_path / "doc.json"
        bad = {"type": "strip", "surfaceType": "spherical", "name": "ball"}
        save_strip_document(document, [dict(strip_dict, name="band"), bad])

        stats = StripProcessor(settings).process([document])

        assert stats.processed_count == 1
        assert stats.error_count == 1
        assert stats.errors[0][0] == "ball"
        assert (tmp_path / "band.obj").exists()

    def test_progress_callback(
        self, mock_logging, tmp_path: Path, settings: DevStripSettings, strip_dict: dict
    ):
        """Test the progress callback sees every strip."""
        mock_logging.return_value = Mock()
        document = tmp_path / "doc.json"
        save_strip_document(document, [dict(strip_dict, name="a"), dict(strip_dict, name="b")])

        calls = []
        StripProcessor(settings).process(
            [document], progress_callback=lambda *args: calls.append(args)
        )

        assert [c[0] for c in calls] == [1, 2]
        assert all(c[1] == 2 and c[3] for c in calls)
        assert {c[2] for c in calls} == {"a", "b"}

    def test_missing_document(self, mock_logging, tmp_path: Path, settings: DevStripSettings):
        """Test a missing document raises FileNotFoundError."""
        mock_logging.return_value = Mock()
        with pytest.raises(FileNotFoundError):
            StripProcessor(settings).process([tmp_path / "missing.json"])


class GatedTrimmer(StripTrimmer):
    """Trimmer whose first call waits until released."""

    def __init__(self, config: TrimConfig) -> None:
        super().__init__(config)
        self.started = threading.Event()
        self.release = threading.Event()
        self.calls = 0

    def trim(self, surface, contour, strict=False, should_cancel=None):
        self.calls += 1
        if self.calls == 1:
            self.started.set()
            self.release.wait(timeout=10)
        return super().trim(surface, contour, strict=strict, should_cancel=should_cancel)


class TestLiveTrimSession:
    """Tests for latest-wins live trimming."""

    def test_single_request(self, settings: DevStripSettings):
        """Test a lone request is delivered."""
        received: list[TrimResult] = []
        strip = SurfaceStrip("cylindrical", settings=settings)

        with LiveTrimSession(on_result=received.append, settings=settings) as session:
            result = session.submit(strip).result(timeout=30)

        assert result is not None
        assert not result.mesh.is_empty()
        assert received == [result]
        assert session.latest is result
        assert session.generation >= 1

    def test_superseded_request_is_not_delivered(self, settings: DevStripSettings):
        """Test a request replaced while running never reaches the consumer."""
        received: list[TrimResult] = []
        trimmer = GatedTrimmer(settings.trim)
        strip = SurfaceStrip("cylindrical", settings=settings)

        with LiveTrimSession(on_result=received.append, settings=settings, trimmer=trimmer) as session:
            first = session.submit(strip)
            assert trimmer.started.wait(timeout=10)

            strip.set_strip_contour(Curve.rectangle(1.0, 0.5, 3.0, 2.5))
            second = session.submit(strip)
            trimmer.release.set()

            assert first.result(timeout=30) is None
            latest = second.result(timeout=30)

        assert latest is not None
        assert received == [latest]
        assert latest.source["stripContourData"] == strip.strip_contour.to_data()

    def test_burst_delivers_latest(self, settings: DevStripSettings):
        """Test the last of many rapid requests is always delivered."""
        received: list[TrimResult] = []
        strip = SurfaceStrip("cylindrical", settings=settings)

        with LiveTrimSession(on_result=received.append, settings=settings) as session:
            futures = []
            for i in range(5):
                strip.set_strip_contour(Curve.rectangle(0.5 + 0.1 * i, 0.5, 4.0, 2.5))
                futures.append(session.submit(strip))
            last = futures[-1].result(timeout=30)

        assert last is not None
        assert received[-1] is last
        assert last.source == strip.to_dict()

    def test_submit_snapshots_strip(self, settings: DevStripSettings):
        """Test edits after submit do not affect the running request."""
        trimmer = GatedTrimmer(settings.trim)
        strip = SurfaceStrip("cylindrical", settings=settings)
        submitted = strip.to_dict()

        with LiveTrimSession(settings=settings, trimmer=trimmer) as session:
            future = session.submit(strip)
            assert trimmer.started.wait(timeout=10)
            strip.set_strip_contour(Curve.rectangle(1.0, 1.0, 2.0, 2.0))
            trimmer.release.set()
            result = future.result(timeout=30)

        assert result is not None
        assert result.source == submitted
