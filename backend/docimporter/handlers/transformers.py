"""Stock transformers working on decoded text."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from docimporter.handlers.conditions import compile_pattern
from docimporter.pipeline.handler import TextTransformer


@dataclass
class ReplaceTransformer(TextTransformer):
    """Regular-expression search and replace over the content."""

    pattern: str
    replacement: str = ""
    ignore_case: bool = False
    _regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._regex = compile_pattern(self.pattern, self.ignore_case)

    def transform_text(self, doc, text, parse_state):
        return self._regex.sub(self.replacement, text)


@dataclass
class StripBetweenTransformer(TextTransformer):
    """
    Removes every span starting with *start* and ending with *end*.

    Spans are matched lazily, so ``<!--`` ... ``-->`` strips each comment
    rather than everything from the first to the last one.  With
    ``inclusive=False`` the delimiters themselves are kept.
    """

    start: str
    end: str
    inclusive: bool = True
    ignore_case: bool = False
    _regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._regex = compile_pattern(
            f"(?P<start>{self.start}).*?(?P<end>{self.end})", self.ignore_case
        )

    def transform_text(self, doc, text, parse_state):
        if self.inclusive:
            return self._regex.sub("", text)
        return self._regex.sub(lambda m: m.group("start") + m.group("end"), text)
