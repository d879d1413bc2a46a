"""
Default text parser and parser factory.

TextParser decodes text-like content with its declared encoding (falling
back to UTF-8, then Latin-1) and re-emits it as UTF-8.  Every other content
type is left unparsed unless a parser is registered for it.
"""

from __future__ import annotations

import re

from docimporter.core.constants import DocField
from docimporter.core.logging import get_logger
from docimporter.parser.base import DocumentParser, ParserFactory
from docimporter.pipeline.errors import DocumentParserError

logger = get_logger(__name__)

FALLBACK_ENCODINGS = ("utf-8", "latin-1")

DEFAULT_TEXT_TYPES = (
    r"text/.*",
    r"application/json",
    r"application/(.*\+)?xml",
    r"application/x-yaml",
    r"application/javascript",
)


class TextParser(DocumentParser):
    """Pass-through parser for content that already is text."""

    def parse_document(self, doc, output):
        raw = doc.input_stream.read_all()
        declared = doc.doc_info.content_encoding
        text, encoding = self._decode(raw, declared)
        if declared and encoding != declared:
            logger.debug(
                "Declared encoding did not decode content",
                reference=doc.reference,
                declared=declared,
                used=encoding,
            )
        output.write_text(text, "utf-8")
        doc.metadata.set(DocField.CONTENT_ENCODING, "utf-8")
        doc.doc_info.content_encoding = "utf-8"
        return None

    @staticmethod
    def _decode(raw: bytes, declared: str | None) -> tuple[str, str]:
        candidates = [declared] if declared else []
        candidates.extend(e for e in FALLBACK_ENCODINGS if e != declared)
        for encoding in candidates:
            try:
                return raw.decode(encoding), encoding
            except LookupError:
                logger.debug("Unknown encoding", encoding=encoding)
            except UnicodeDecodeError:
                continue
        raise DocumentParserError("Content could not be decoded as text.")


class DefaultParserFactory(ParserFactory):
    """
    Maps content-type patterns to parsers.

    Patterns are full-match regular expressions, tried in registration order.
    Text types map to TextParser unless ``text_types`` is overridden.
    """

    def __init__(
        self,
        parsers: dict[str, DocumentParser] | None = None,
        text_types: tuple[str, ...] = DEFAULT_TEXT_TYPES,
    ) -> None:
        self._parsers: list[tuple[re.Pattern[str], DocumentParser]] = []
        for pattern, parser in (parsers or {}).items():
            self.register(pattern, parser)
        text_parser = TextParser()
        for pattern in text_types:
            self.register(pattern, text_parser)

    def register(self, content_type_pattern: str, parser: DocumentParser) -> None:
        self._parsers.append((re.compile(content_type_pattern, re.IGNORECASE), parser))

    def get_parser(self, reference, content_type):
        if not content_type:
            return None
        ct = content_type.split(";", 1)[0].strip()
        for pattern, parser in self._parsers:
            if pattern.fullmatch(ct):
                return parser
        return None
