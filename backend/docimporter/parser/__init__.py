"""Parser and content-type detection capabilities, with text defaults."""

from docimporter.parser.base import ContentTypeDetector, DocumentParser, ParserFactory
from docimporter.parser.detector import DefaultContentTypeDetector
from docimporter.parser.text import DefaultParserFactory, TextParser

__all__ = [
    "ContentTypeDetector",
    "DefaultContentTypeDetector",
    "DefaultParserFactory",
    "DocumentParser",
    "ParserFactory",
    "TextParser",
]
