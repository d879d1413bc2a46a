"""
HandlerContext — mutable state carried through one phase for one document.

Created by the importer at the start of the pre-parse and post-parse phases.
Handlers never see it; the HandlerConsumer reads and updates it between
handler invocations.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from docimporter.core.constants import DocField, EventName, ParseState
from docimporter.doc.document import Doc, HandlerDoc
from docimporter.pipeline.events import EventManager, ImporterEvent
from docimporter.response import ImporterStatus

NO_INCLUDE_MATCH = "None of the filters with on_match being INCLUDE got matched."


@dataclass
class IncludeMatchResolver:
    """Tracks include-mode filters across a phase."""

    has_includes: bool = False
    at_least_one_include_match: bool = False

    def record(self, accepted: bool) -> None:
        self.has_includes = True
        if accepted:
            self.at_least_one_include_match = True

    @property
    def passes(self) -> bool:
        return not self.has_includes or self.at_least_one_include_match


@dataclass
class HandlerContext:
    """State of one document within one phase."""

    doc: Doc
    parse_state: ParseState
    event_manager: EventManager = field(default_factory=EventManager)
    rejected_by: Any = None
    include_resolver: IncludeMatchResolver = field(default_factory=IncludeMatchResolver)
    child_docs: list[Doc] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.handler_doc = HandlerDoc(self.doc)

    @property
    def is_rejected(self) -> bool:
        return self.rejected_by is not None

    def reject(self, filter: Any) -> None:
        self.rejected_by = filter

    def fire(
        self,
        name: EventName,
        subject: Any = None,
        exception: BaseException | None = None,
    ) -> None:
        self.event_manager.fire(
            ImporterEvent(
                name=name,
                reference=self.doc.reference,
                subject=subject,
                parse_state=self.parse_state,
                exception=exception,
            )
        )

    def add_child_docs(self, children: list[Doc]) -> None:
        """Stamp ancestry on *children* and queue them for import."""
        parent = self.doc
        for index, child in enumerate(children):
            child.doc_info.child_of(parent.doc_info)
            meta = child.metadata
            meta.set(DocField.EMBEDDED_INDEX, index)
            meta.set(DocField.EMBEDDED_PARENT_REFERENCE, parent.reference)
            meta.set(DocField.EMBEDDED_PARENT_REFERENCES, *child.doc_info.parent_references)
            self.child_docs.append(child)

    def final_status(self) -> ImporterStatus:
        """Status once every handler of the phase had its chance."""
        if self.is_rejected:
            return ImporterStatus.rejected(self.rejected_by)
        if not self.include_resolver.passes:
            return ImporterStatus.rejected(description=NO_INCLUDE_MATCH)
        return ImporterStatus.success()
