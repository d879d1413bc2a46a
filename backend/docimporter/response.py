"""
Importer responses — the result tree of an import.

One ImporterResponse per document (the imported document plus every child
document split from it, recursively).  Each node carries exactly one status:
SUCCESS (with the resulting Doc), REJECTED (with the rejecting filter) or
ERROR (with the exception).  Only SUCCESS nodes have nested responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

from docimporter.core.constants import Status
from docimporter.doc.document import Doc


@dataclass(frozen=True)
class ImporterStatus:
    """Outcome of importing one document."""

    status: Status = Status.SUCCESS
    rejection_filter: Any = None
    exception: BaseException | None = None
    description: str | None = None

    @classmethod
    def success(cls) -> ImporterStatus:
        return cls(Status.SUCCESS)

    @classmethod
    def rejected(cls, filter: Any = None, description: str | None = None) -> ImporterStatus:
        if description is None and filter is not None:
            description = str(filter)
        return cls(Status.REJECTED, rejection_filter=filter, description=description)

    @classmethod
    def error(cls, exception: BaseException, description: str | None = None) -> ImporterStatus:
        return cls(
            Status.ERROR,
            exception=exception,
            description=description if description is not None else str(exception),
        )

    @property
    def is_success(self) -> bool:
        return self.status is Status.SUCCESS

    @property
    def is_rejected(self) -> bool:
        return self.status is Status.REJECTED

    @property
    def is_error(self) -> bool:
        return self.status is Status.ERROR

    def to_dict(self) -> dict[str, Any]:
        rejection_filter = self.rejection_filter
        exception = self.exception
        return {
            "status": str(self.status),
            "rejection_filter": repr(rejection_filter) if rejection_filter is not None else None,
            "exception": type(exception).__name__ if exception is not None else None,
            "description": self.description,
        }


class ImporterResponse:
    """A node of the import result tree."""

    def __init__(
        self,
        reference: str,
        status: ImporterStatus | None = None,
        doc: Doc | None = None,
    ) -> None:
        status = status or ImporterStatus.success()
        if status.is_success and doc is None:
            raise ValueError("A successful response requires a document.")
        if not status.is_success and doc is not None:
            raise ValueError(f"A {status.status} response cannot carry a document.")
        self.reference = reference
        self.status = status
        self.doc = doc
        self.parent_response: ImporterResponse | None = None
        self._nested: list[ImporterResponse] = []

    @classmethod
    def for_doc(cls, doc: Doc) -> ImporterResponse:
        return cls(doc.reference, ImporterStatus.success(), doc)

    @property
    def is_success(self) -> bool:
        """This document's own status; children are not considered."""
        return self.status.is_success

    @property
    def nested_responses(self) -> list[ImporterResponse]:
        return list(self._nested)

    def add_nested_response(self, response: ImporterResponse) -> None:
        if not self.is_success:
            raise ValueError(
                f"Cannot nest responses under a {self.status.status} response: {self.reference}"
            )
        response.parent_response = self
        self._nested.append(response)

    def remove_nested_response(self, reference: str) -> ImporterResponse | None:
        for nested in self._nested:
            if nested.reference == reference:
                self._nested.remove(nested)
                nested.parent_response = None
                return nested
        return None

    def walk(self) -> Iterator[ImporterResponse]:
        """This response followed by all its descendants, depth-first."""
        yield self
        for nested in self._nested:
            yield from nested.walk()

    def dispose(self) -> None:
        """Release the content of every document in this subtree."""
        for response in self.walk():
            if response.doc is not None:
                response.doc.dispose()

    def to_dict(self) -> dict[str, Any]:
        return {
            "reference": self.reference,
            **self.status.to_dict(),
            "nested_responses": [nested.to_dict() for nested in self._nested],
        }

    def __enter__(self) -> ImporterResponse:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.dispose()

    def __repr__(self) -> str:
        return (
            f"ImporterResponse(reference={self.reference!r}, status={self.status.status}, "
            f"nested={len(self._nested)})"
        )
