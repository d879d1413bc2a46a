"""
Doc — a document being imported: DocInfo + Metadata + content stream.

Only the importer replaces a document's content stream.  Handlers get a
HandlerDoc, which exposes the identity, a mutable metadata handle and the
stream factory (to build child documents) but not the content setter.
"""

from __future__ import annotations

from typing import Any, Mapping

from docimporter.doc.info import DocInfo
from docimporter.doc.metadata import Metadata
from docimporter.io.stream import CachedInputStream, CachedStreamFactory


class Doc:
    """A document flowing through the importer."""

    def __init__(
        self,
        doc_info: DocInfo | str,
        content: CachedInputStream,
        metadata: Metadata | Mapping[str, Any] | None = None,
    ) -> None:
        if doc_info is None:
            raise ValueError("'doc_info' must not be None.")
        if content is None:
            raise ValueError("'content' must not be None.")
        self.doc_info = doc_info if isinstance(doc_info, DocInfo) else DocInfo(doc_info)
        self._content = content
        if metadata is None:
            self.metadata = Metadata()
        elif isinstance(metadata, Metadata):
            self.metadata = metadata
        else:
            self.metadata = Metadata(metadata)

    @property
    def reference(self) -> str:
        return self.doc_info.reference

    @property
    def stream_factory(self) -> CachedStreamFactory:
        return self._content.stream_factory

    @property
    def input_stream(self) -> CachedInputStream:
        """The content, rewound to its first byte."""
        self._content.rewind()
        return self._content

    def set_input_stream(self, content: CachedInputStream | bytes | Any) -> None:
        """
        Replace the content.  The previous stream is disposed.

        Anything other than a CachedInputStream (bytes, binary file object)
        is first cached through this document's stream factory.
        """
        if content is None:
            raise ValueError("'content' must not be None.")
        if content is self._content:
            return
        if not isinstance(content, CachedInputStream):
            content = self.stream_factory.new_input_stream(content)
        previous = self._content
        self._content = content
        previous.dispose()

    def dispose(self) -> None:
        """Release the content stream (memory and temp file)."""
        self._content.dispose()

    @property
    def is_disposed(self) -> bool:
        return self._content.is_disposed

    def __enter__(self) -> Doc:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.dispose()

    def __repr__(self) -> str:
        return f"Doc(reference={self.reference!r}, content_type={self.doc_info.content_type!r})"


class HandlerDoc:
    """What a handler may see and change of a document."""

    def __init__(self, doc: Doc) -> None:
        if doc is None:
            raise ValueError("'doc' must not be None.")
        self._doc = doc

    @property
    def reference(self) -> str:
        return self._doc.reference

    @property
    def doc_info(self) -> DocInfo:
        return self._doc.doc_info

    @property
    def metadata(self) -> Metadata:
        return self._doc.metadata

    @property
    def stream_factory(self) -> CachedStreamFactory:
        return self._doc.stream_factory

    @property
    def content_encoding(self) -> str | None:
        return self._doc.doc_info.content_encoding

    def new_child(
        self,
        reference: str,
        content: Any = None,
        metadata: Metadata | Mapping[str, Any] | None = None,
        content_type: str | None = None,
    ) -> Doc:
        """Build a child document whose content is cached by this doc's factory."""
        info = DocInfo(reference, content_type=content_type)
        info.child_of(self.doc_info)
        return Doc(info, self.stream_factory.new_input_stream(content), metadata)

    def __repr__(self) -> str:
        return f"HandlerDoc(reference={self.reference!r})"
