"""Strip document reader.

A strip document is a JSON file holding either a single strip object
({"type": "strip", ...}) or a collection ({"strips": [...]}). Strips in a
collection may carry a "name"; unnamed ones are named after the file.
"""

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from devstrip.exceptions import StripLoadError


class StripReader:
    """Reads strip documents from disk."""

    def __init__(self, path: Path) -> None:
        """Initialize reader with document path.

        Args:
            path: Path to the JSON strip document
        """
        self._path = path
        self._strips: list[dict[str, Any]] | None = None

    def load(self) -> None:
        """Load and validate the document structure.

        Raises:
            FileNotFoundError: If the document does not exist
            StripLoadError: If the file is not valid JSON or holds no strips
        """
        if not self._path.exists():
            raise FileNotFoundError(f"Strip document not found: {self._path}")

        try:
            with open(self._path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StripLoadError(str(self._path), f"invalid JSON ({e})") from e
        except OSError as e:
            raise StripLoadError(str(self._path), str(e)) from e

        if isinstance(data, dict) and "strips" in data:
            strips = data["strips"]
        elif isinstance(data, dict):
            strips = [data]
        elif isinstance(data, list):
            strips = data
        else:
            raise StripLoadError(str(self._path), "expected a JSON object or list")

        if not isinstance(strips, list) or not all(isinstance(s, dict) for s in strips):
            raise StripLoadError(str(self._path), "strips must be JSON objects")

        self._strips = strips

    def _require_loaded(self) -> list[dict[str, Any]]:
        if self._strips is None:
            raise RuntimeError("Document not loaded. Call load() first.")
        return self._strips

    @property
    def path(self) -> Path:
        return self._path

    @property
    def strip_count(self) -> int:
        """Number of strips in the document."""
        return len(self._require_loaded())

    def iter_strips(self) -> Iterator[tuple[str, dict[str, Any]]]:
        """Iterate over (name, strip document) pairs.

        Yields:
            Strip name and its dictionary, without the "name" key
        """
        strips = self._require_loaded()
        multiple = len(strips) > 1
        for index, strip in enumerate(strips):
            data = dict(strip)
            name = data.pop("name", None)
            if not name:
                name = f"{self._path.stem}-{index + 1}" if multiple else self._path.stem
            yield str(name), data
