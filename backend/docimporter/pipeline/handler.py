"""
Importer handlers — the four capability roles a pipeline handler can play.

Every handler in a pre-parse or post-parse flow inherits from exactly one of:

    - Tagger        — reads content, changes metadata only
    - Transformer   — rewrites content (and possibly metadata)
    - Filter        — accepts or rejects the document
    - Splitter      — derives child documents from the document

Subclasses only implement the role method.  The HandlerConsumer takes care of
restrictions, events, stream hand-off and error wrapping.

Handlers may be restricted to some documents: when ``restrictions`` is not
empty, the handler only runs if at least one of its conditions matches the
document metadata.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from docimporter.core.constants import HandlerKind, OnMatch, ParseState

if TYPE_CHECKING:
    from docimporter.doc.document import Doc, HandlerDoc
    from docimporter.doc.metadata import Metadata
    from docimporter.io.stream import CachedInputStream, CachedOutputStream


class Condition(ABC):
    """A predicate over document metadata."""

    @abstractmethod
    def matches(self, metadata: Metadata) -> bool:
        ...


@dataclass
class ImporterHandler:
    """Base class for every handler role."""

    kind: ClassVar[HandlerKind]

    restrictions: list[Condition] = field(default_factory=list, kw_only=True)

    @property
    def name(self) -> str:
        return type(self).__name__

    def add_restriction(self, *conditions: Condition) -> None:
        self.restrictions.extend(conditions)

    def is_applicable(self, metadata: Metadata) -> bool:
        """True when unrestricted or when any restriction matches."""
        if not self.restrictions:
            return True
        return any(condition.matches(metadata) for condition in self.restrictions)


class Tagger(ImporterHandler, ABC):
    """Adds, changes or removes metadata.  Never touches content."""

    kind = HandlerKind.TAGGER

    @abstractmethod
    def tag_document(
        self, doc: HandlerDoc, input: CachedInputStream, parse_state: ParseState
    ) -> None:
        ...


class Transformer(ImporterHandler, ABC):
    """
    Rewrites content by writing the new version to *output*.

    Writing nothing leaves the original content in place.
    """

    kind = HandlerKind.TRANSFORMER

    @abstractmethod
    def transform_document(
        self,
        doc: HandlerDoc,
        input: CachedInputStream,
        output: CachedOutputStream,
        parse_state: ParseState,
    ) -> None:
        ...


class TextTransformer(Transformer, ABC):
    """Transformer working on the decoded text of the document."""

    def transform_document(self, doc, input, output, parse_state):
        text = input.read_text(doc.content_encoding)
        result = self.transform_text(doc, text, parse_state)
        if result:
            output.write_text(result, doc.content_encoding or "utf-8")

    @abstractmethod
    def transform_text(self, doc: HandlerDoc, text: str, parse_state: ParseState) -> str:
        ...


class Filter(ImporterHandler, ABC):
    """
    Decides whether a document is kept.

    A plain Filter rejects the document as soon as it returns False.
    """

    kind = HandlerKind.FILTER

    @abstractmethod
    def accept_document(
        self, doc: HandlerDoc, input: CachedInputStream, parse_state: ParseState
    ) -> bool:
        ...


@dataclass
class OnMatchFilter(Filter, ABC):
    """
    Filter whose match either includes or excludes the document.

    INCLUDE filters never reject on their own: a document is rejected only
    when include filters ran in a phase and none of them matched.  EXCLUDE
    filters reject a matching document immediately.
    """

    on_match: OnMatch = field(default=OnMatch.INCLUDE, kw_only=True)

    def accept_document(self, doc, input, parse_state):
        matched = self.is_document_matched(doc, input, parse_state)
        return matched if self.on_match == OnMatch.INCLUDE else not matched

    @abstractmethod
    def is_document_matched(
        self, doc: HandlerDoc, input: CachedInputStream, parse_state: ParseState
    ) -> bool:
        ...


class Splitter(ImporterHandler, ABC):
    """
    Derives child documents.

    Whatever is written to *output* becomes the parent's new content;
    writing nothing keeps the parent unchanged.
    """

    kind = HandlerKind.SPLITTER

    @abstractmethod
    def split_document(
        self,
        doc: HandlerDoc,
        input: CachedInputStream,
        output: CachedOutputStream,
        parse_state: ParseState,
    ) -> list[Doc] | None:
        ...


# Method each role must provide, for handlers not built on the base classes.
ROLE_METHODS: dict[HandlerKind, str] = {
    HandlerKind.TAGGER: "tag_document",
    HandlerKind.TRANSFORMER: "transform_document",
    HandlerKind.FILTER: "accept_document",
    HandlerKind.SPLITTER: "split_document",
}


def resolve_kind(handler: Any) -> HandlerKind | None:
    """Return the capability role of *handler*, or None if it has none."""
    kind = getattr(handler, "kind", None)
    if isinstance(kind, HandlerKind):
        return kind
    found = [
        kind for kind, method in ROLE_METHODS.items()
        if callable(getattr(handler, method, None))
    ]
    return found[0] if len(found) == 1 else None


def is_include_filter(handler: Any) -> bool:
    return getattr(handler, "on_match", None) == OnMatch.INCLUDE
