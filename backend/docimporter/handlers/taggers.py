"""Stock taggers — metadata-only handlers."""

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field
from enum import StrEnum

from docimporter.handlers.conditions import compile_pattern
from docimporter.pipeline.handler import Tagger


class OnConflict(StrEnum):
    """What to do when the target field already has values."""

    ADD = "ADD"
    REPLACE = "REPLACE"
    KEEP = "KEEP"


def store(metadata, field_name: str, values: list, on_conflict: OnConflict) -> None:
    if field_name in metadata and metadata.get_strings(field_name):
        if on_conflict == OnConflict.KEEP:
            return
        if on_conflict == OnConflict.ADD:
            metadata.add(field_name, *values)
            return
    metadata.set(field_name, *values)


@dataclass
class ConstantTagger(Tagger):
    """Sets a field to fixed values."""

    field_name: str
    values: list[str] = field(default_factory=list)
    on_conflict: OnConflict = OnConflict.ADD

    def tag_document(self, doc, input, parse_state):
        store(doc.metadata, self.field_name, self.values, self.on_conflict)


@dataclass
class DeleteTagger(Tagger):
    """Removes the listed fields, and any field whose name matches *pattern*."""

    fields: list[str] = field(default_factory=list)
    pattern: str | None = None
    ignore_case: bool = False
    _regex: re.Pattern[str] | None = field(init=False, repr=False, compare=False, default=None)

    def __post_init__(self) -> None:
        if self.pattern:
            self._regex = compile_pattern(self.pattern, self.ignore_case)

    def tag_document(self, doc, input, parse_state):
        metadata = doc.metadata
        for name in self.fields:
            metadata.remove(name)
        if self._regex is not None:
            for name in [k for k in metadata if self._regex.fullmatch(k)]:
                metadata.remove(name)


@dataclass
class UUIDTagger(Tagger):
    """Gives the document a random UUID."""

    field_name: str = "document.uuid"
    on_conflict: OnConflict = OnConflict.REPLACE

    def tag_document(self, doc, input, parse_state):
        store(doc.metadata, self.field_name, [str(uuid.uuid4())], self.on_conflict)


@dataclass
class DocumentLengthTagger(Tagger):
    """Stores the content size in bytes."""

    field_name: str = "document.length"
    on_conflict: OnConflict = OnConflict.REPLACE

    def tag_document(self, doc, input, parse_state):
        store(doc.metadata, self.field_name, [input.size], self.on_conflict)
