"""ImporterRequest — everything needed to import one top-level document."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, Mapping

from docimporter.doc.metadata import Metadata


@dataclass
class ImporterRequest:
    """
    A document to import.

    ``source`` is raw bytes, a path to a file, a readable binary stream, or
    None (empty content).  When ``reference`` is omitted a path source uses
    its own path as reference.  ``content_type`` and ``content_encoding`` skip
    detection when given.
    """

    source: bytes | str | Path | BinaryIO | None = None
    reference: str | None = None
    content_type: str | None = None
    content_encoding: str | None = None
    metadata: Metadata | Mapping[str, Any] | None = field(default=None, repr=False)

    @property
    def is_file(self) -> bool:
        return isinstance(self.source, (str, Path))

    def resolve_reference(self) -> str:
        if self.reference:
            return self.reference
        if self.is_file:
            return str(Path(self.source).absolute())
        raise ValueError("'reference' is required unless the source is a file path.")
