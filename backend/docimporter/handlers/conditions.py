"""Stock conditions, usable as handler restrictions or in If/IfNot blocks."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from docimporter.core.constants import DocField
from docimporter.doc.metadata import Metadata
from docimporter.pipeline.handler import Condition


def compile_pattern(pattern: str, ignore_case: bool) -> re.Pattern[str]:
    flags = re.DOTALL | (re.IGNORECASE if ignore_case else 0)
    return re.compile(pattern, flags)


@dataclass
class MetadataCondition(Condition):
    """
    Matches when any value of *field_name* fully matches *pattern*.

    A missing field never matches.
    """

    field_name: str
    pattern: str
    ignore_case: bool = False
    _regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._regex = compile_pattern(self.pattern, self.ignore_case)

    def matches(self, metadata: Metadata) -> bool:
        return any(self._regex.fullmatch(v) for v in metadata.get_strings(self.field_name))


@dataclass
class ReferenceCondition(MetadataCondition):
    """Matches the document reference against *pattern*."""

    field_name: str = field(default=DocField.REFERENCE, init=False)
    pattern: str = ".*"


@dataclass
class BlankCondition(Condition):
    """True when the field is missing or all its values are whitespace."""

    field_name: str

    def matches(self, metadata: Metadata) -> bool:
        return all(not v.strip() for v in metadata.get_strings(self.field_name))
