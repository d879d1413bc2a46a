"""
DocInfo — identity of a document, tracked independently from metadata.

Metadata can be rewritten at will by handlers; DocInfo holds what the
importer itself relies on: the reference, content type and encoding, and the
trail of parent references (first one is the root document).
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class DocInfo:
    """Reference, content type/encoding and ancestry of a document."""

    reference: str
    content_type: str | None = None
    content_encoding: str | None = None
    parent_references: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.reference is None:
            raise ValueError("'reference' must not be None.")

    @property
    def parent_reference(self) -> str | None:
        """Immediate parent reference, or None for a top-level document."""
        return self.parent_references[-1] if self.parent_references else None

    @property
    def depth(self) -> int:
        return len(self.parent_references)

    def child_of(self, parent: DocInfo) -> None:
        """Set this document's ancestry to *parent*'s ancestry plus *parent*."""
        self.parent_references = [*parent.parent_references, parent.reference]

    def copy(self) -> DocInfo:
        return DocInfo(
            reference=self.reference,
            content_type=self.content_type,
            content_encoding=self.content_encoding,
            parent_references=list(self.parent_references),
        )
