"""Mesh and strip document writers.

Meshes are written as Wavefront OBJ (positions, texture coordinates taken
from the unfold plane, normals) or as JSON holding the flat buffers.
"""

import json
from pathlib import Path
from typing import Any

from devstrip.config import MeshFormat
from devstrip.domain import TrimmedMesh
from devstrip.exceptions import MeshSaveError, StripSaveError


class MeshWriter:
    """Writes a trimmed mesh to disk."""

    def __init__(self, mesh: TrimmedMesh, output_path: Path) -> None:
        """Initialize writer.

        Args:
            mesh: Mesh to write
            output_path: Destination; the suffix selects the format
        """
        self._mesh = mesh
        self._output_path = output_path

    @property
    def format(self) -> MeshFormat:
        """Output format implied by the path suffix (OBJ unless .json)."""
        if self._output_path.suffix.lower() == ".json":
            return MeshFormat.JSON
        return MeshFormat.OBJ

    def save(self, source: dict[str, Any] | None = None) -> None:
        """Write the mesh.

        Args:
            source: Strip document the mesh was built from; stored alongside
                the buffers in JSON output and as a comment in OBJ output

        Raises:
            MeshSaveError: If the file cannot be written
        """
        try:
            self._output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._output_path, "w", encoding="utf-8") as f:
                if self.format is MeshFormat.JSON:
                    self._write_json(f, source)
                else:
                    self._write_obj(f, source)
        except OSError as e:
            raise MeshSaveError(str(self._output_path), str(e)) from e

    def _write_json(self, f: Any, source: dict[str, Any] | None) -> None:
        data: dict[str, Any] = {"mesh": self._mesh.to_dict()}
        if source is not None:
            data["source"] = source
        json.dump(data, f)

    def _write_obj(self, f: Any, source: dict[str, Any] | None) -> None:
        mesh = self._mesh
        f.write("# devstrip trimmed mesh\n")
        if source is not None:
            f.write(f"# source: {json.dumps(source, separators=(',', ':'))}\n")

        for x, y, z in mesh.positions():
            f.write(f"v {x:.6f} {y:.6f} {z:.6f}\n")
        for u, v in mesh.uvs.reshape(-1, 2):
            f.write(f"vt {u:.6f} {v:.6f}\n")
        for x, y, z in mesh.normals.reshape(-1, 3):
            f.write(f"vn {x:.6f} {y:.6f} {z:.6f}\n")

        # OBJ indices are 1-based
        for a, b, c in mesh.triangles():
            a, b, c = int(a) + 1, int(b) + 1, int(c) + 1
            f.write(f"f {a}/{a}/{a} {b}/{b}/{b} {c}/{c}/{c}\n")

    @staticmethod
    def get_mesh_path(
        input_path: Path,
        strip_name: str | None = None,
        mesh_format: MeshFormat = MeshFormat.OBJ,
        output_dir: Path | None = None,
    ) -> Path:
        """Generate the output path for a strip's mesh.

        Example:
            shade.json -> shade.obj
            shade.json, strip "band" -> band.obj

        Args:
            input_path: Strip document path
            strip_name: Strip name (defaults to the document stem)
            mesh_format: Output format
            output_dir: Output directory (defaults to the document's directory)

        Returns:
            Path for the mesh file
        """
        directory = output_dir if output_dir is not None else input_path.parent
        stem = strip_name or input_path.stem
        return directory / f"{stem}.{mesh_format.value}"


def save_strip_document(path: Path, strips: list[dict[str, Any]]) -> None:
    """Write strip documents as JSON.

    A single strip is written as a bare object, several as {"strips": [...]}.

    Raises:
        StripSaveError: If the file cannot be written
    """
    data: Any = strips[0] if len(strips) == 1 else {"strips": strips}
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
    except OSError as e:
        raise StripSaveError(str(path), str(e)) from e
