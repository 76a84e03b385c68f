"""File I/O layer for devstrip.

This module reads stored strip documents and writes trimmed meshes. It keeps
file formats out of the geometry core.

Key responsibilities:
- Load strip documents (single strip or collections)
- Write meshes as Wavefront OBJ or JSON
- Derive output paths from input documents

Key classes:
- StripReader: Load strip documents
- MeshWriter: Save trimmed meshes
"""

from devstrip.io.reader import StripReader
from devstrip.io.writer import MeshWriter, save_strip_document

__all__ = [
    "MeshWriter",
    "StripReader",
    "save_strip_document",
]
