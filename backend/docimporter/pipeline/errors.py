"""
Domain-specific exception hierarchy for the importer.

All importer exceptions inherit from ImporterError so callers can
catch broadly or narrowly as needed.  Each exception carries structured
context (document reference, handler, etc.) for logging/debugging.

Rejection by a filter is NOT an exception; it is reported as a status.
"""

from __future__ import annotations

from typing import Any


class ImporterError(Exception):
    """Base exception for all importer errors."""

    def __init__(
        self,
        message: str,
        *,
        reference: str | None = None,
        handler: Any = None,
        details: dict | None = None,
    ) -> None:
        self.reference = reference
        self.handler = handler
        self.details = details or {}
        super().__init__(message)


class HandlerError(ImporterError):
    """A tagger, transformer, filter or splitter failed."""
    pass


class DocumentParserError(ImporterError):
    """The parser could not extract content from a document."""
    pass


class StreamError(ImporterError):
    """Content could not be buffered, spilled to disk, or read back."""
    pass


class ConfigurationError(ImporterError):
    """The importer or one of its handlers is misconfigured."""
    pass
