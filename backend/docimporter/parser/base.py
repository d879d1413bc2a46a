"""
Abstract interfaces for parsing and content-type detection.

Format-specific parsers (PDF, Office, images, ...) live outside this package
and plug in through these interfaces.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from docimporter.doc.document import Doc
    from docimporter.io.stream import CachedInputStream, CachedOutputStream


class DocumentParser(ABC):
    """Extracts text (and metadata) from a document."""

    @abstractmethod
    def parse_document(self, doc: Doc, output: CachedOutputStream) -> list[Doc] | None:
        """
        Write the extracted UTF-8 text to *output* and update doc.metadata.

        Return embedded documents found while parsing, if any.
        Raise DocumentParserError on failure.
        """
        ...


class ParserFactory(ABC):
    """Chooses the parser for a document."""

    @abstractmethod
    def get_parser(self, reference: str, content_type: str | None) -> DocumentParser | None:
        """Return a parser, or None when the document should not be parsed."""
        ...


class ContentTypeDetector(ABC):
    """Guesses the content type of a document."""

    @abstractmethod
    def detect(self, stream: CachedInputStream, reference: str | None = None) -> str:
        ...
