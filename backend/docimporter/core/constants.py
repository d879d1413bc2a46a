"""Shared constants and enums used across the importer."""

from enum import StrEnum


class ParseState(StrEnum):
    """Whether a handler runs before or after the document is parsed."""

    PRE = "PRE"
    POST = "POST"

    @property
    def is_post(self) -> bool:
        return self is ParseState.POST


class Status(StrEnum):
    """Outcome of importing a single document."""

    SUCCESS = "SUCCESS"
    REJECTED = "REJECTED"
    ERROR = "ERROR"


class OnMatch(StrEnum):
    """What a filter does with a document it matches."""

    INCLUDE = "INCLUDE"
    EXCLUDE = "EXCLUDE"


class HandlerKind(StrEnum):
    """Capability role of an importer handler."""

    TAGGER = "TAGGER"
    TRANSFORMER = "TRANSFORMER"
    FILTER = "FILTER"
    SPLITTER = "SPLITTER"


class EventName(StrEnum):
    """Events fired around handler and parser invocations."""

    HANDLER_BEGIN = "IMPORTER_HANDLER_BEGIN"
    HANDLER_END = "IMPORTER_HANDLER_END"
    HANDLER_ERROR = "IMPORTER_HANDLER_ERROR"
    PARSER_BEGIN = "IMPORTER_PARSER_BEGIN"
    PARSER_END = "IMPORTER_PARSER_END"
    PARSER_ERROR = "IMPORTER_PARSER_ERROR"


class DocField:
    """Canonical metadata field names set by the importer itself."""

    PREFIX = "document."
    REFERENCE = PREFIX + "reference"
    CONTENT_TYPE = PREFIX + "contentType"
    CONTENT_ENCODING = PREFIX + "contentEncoding"
    CONTENT_FAMILY = PREFIX + "contentFamily"

    EMBEDDED_PREFIX = PREFIX + "embedded."
    EMBEDDED_INDEX = EMBEDDED_PREFIX + "index"
    EMBEDDED_REFERENCE = EMBEDDED_PREFIX + "reference"
    EMBEDDED_PARENT_REFERENCE = EMBEDDED_PREFIX + "parent.reference"
    EMBEDDED_PARENT_REFERENCES = EMBEDDED_PREFIX + "parent.references"


DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Content-type prefix or exact match → coarse content family.
CONTENT_FAMILIES: dict[str, str] = {
    "text/html": "html",
    "application/xhtml+xml": "html",
    "application/xml": "xml",
    "text/xml": "xml",
    "application/json": "text",
    "text/": "text",
    "application/pdf": "pdf",
    "image/": "image",
    "audio/": "audio",
    "video/": "video",
    "application/zip": "archive",
    "application/gzip": "archive",
    "application/x-tar": "archive",
    "application/msword": "wordprocessor",
    "application/vnd.openxmlformats-officedocument.wordprocessingml": "wordprocessor",
    "application/vnd.ms-excel": "spreadsheet",
    "application/vnd.openxmlformats-officedocument.spreadsheetml": "spreadsheet",
    "text/csv": "spreadsheet",
}


def content_family(content_type: str | None) -> str | None:
    """Return the coarse family for a content type, or None if unknown."""
    if not content_type:
        return None
    ct = content_type.split(";", 1)[0].strip().lower()
    if ct in CONTENT_FAMILIES:
        return CONTENT_FAMILIES[ct]
    # Longest prefix wins so "text/csv" beats "text/".
    for prefix in sorted(CONTENT_FAMILIES, key=len, reverse=True):
        if ct.startswith(prefix):
            return CONTENT_FAMILIES[prefix]
    return None
