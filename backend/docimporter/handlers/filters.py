"""
Stock filters.

All but RejectFilter are on-match filters: with the default
``on_match=OnMatch.INCLUDE`` a document must match at least one include
filter of its phase; with ``OnMatch.EXCLUDE`` a match rejects it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from docimporter.core.constants import DocField
from docimporter.handlers.conditions import compile_pattern
from docimporter.pipeline.handler import Filter, OnMatchFilter


@dataclass
class RejectFilter(Filter):
    """Rejects every document it applies to.  Combine with restrictions."""

    def accept_document(self, doc, input, parse_state):
        return False


@dataclass
class MetadataFilter(OnMatchFilter):
    """Matches when any value of a metadata field fully matches *pattern*."""

    field_name: str
    pattern: str
    ignore_case: bool = False
    _regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._regex = compile_pattern(self.pattern, self.ignore_case)

    def is_document_matched(self, doc, input, parse_state):
        return any(self._regex.fullmatch(v) for v in doc.metadata.get_strings(self.field_name))


@dataclass
class ReferenceFilter(OnMatchFilter):
    """Matches the document reference."""

    pattern: str
    ignore_case: bool = False
    _regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._regex = compile_pattern(self.pattern, self.ignore_case)

    def is_document_matched(self, doc, input, parse_state):
        return self._regex.fullmatch(doc.reference) is not None


@dataclass
class EmptyMetadataFilter(OnMatchFilter):
    """Matches when at least one of *fields* is missing or blank."""

    fields: list[str] = field(default_factory=list)

    def is_document_matched(self, doc, input, parse_state):
        metadata = doc.metadata
        for name in self.fields:
            if all(not v.strip() for v in metadata.get_strings(name)):
                return True
        return False


@dataclass
class TextFilter(OnMatchFilter):
    """
    Matches when *pattern* is found anywhere in the document text.

    Content is decoded with the document encoding (UTF-8 when unknown),
    so this is mostly useful on parsed (POST) documents.
    """

    pattern: str
    ignore_case: bool = False
    field_name: str | None = None
    _regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._regex = compile_pattern(self.pattern, self.ignore_case)

    def is_document_matched(self, doc, input, parse_state):
        if self.field_name:
            return any(self._regex.search(v) for v in doc.metadata.get_strings(self.field_name))
        return self._regex.search(input.read_text(doc.content_encoding)) is not None


def content_type_filter(pattern: str, **kwargs) -> MetadataFilter:
    """Shortcut for a MetadataFilter on the detected content type."""
    return MetadataFilter(DocField.CONTENT_TYPE, pattern, ignore_case=True, **kwargs)
