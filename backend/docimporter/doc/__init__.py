"""Document model: identity, metadata and content."""

from docimporter.doc.document import Doc, HandlerDoc
from docimporter.doc.info import DocInfo
from docimporter.doc.metadata import Metadata

__all__ = ["Doc", "DocInfo", "HandlerDoc", "Metadata"]
