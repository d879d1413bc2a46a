"""
DefaultContentTypeDetector — guesses a document's content type.

Priority order:
    1. Magic bytes at the start of the content
    2. Reference extension (mimetypes, plus a few overrides)
    3. Content that decodes as UTF-8 → text/plain
    4. Fallback: application/octet-stream
"""

from __future__ import annotations

import mimetypes
import os
from urllib.parse import urlparse

from docimporter.core.constants import DEFAULT_CONTENT_TYPE
from docimporter.parser.base import ContentTypeDetector


SNIFF_SIZE = 4096

MAGIC_SIGNATURES: list[tuple[bytes, str]] = [
    (b"%PDF-", "application/pdf"),
    (b"PK\x03\x04", "application/zip"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"\x1f\x8b", "application/gzip"),
    (b"%!PS", "application/postscript"),
    (b"{\\rtf", "application/rtf"),
]

# Extension → content type, checked before mimetypes.
EXTENSION_MAP: dict[str, str] = {
    ".csv": "text/csv",
    ".md": "text/markdown",
    ".json": "application/json",
    ".yaml": "application/x-yaml",
    ".yml": "application/x-yaml",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


class DefaultContentTypeDetector(ContentTypeDetector):
    """Signature, extension and text-sniffing based detection."""

    def detect(self, stream, reference=None):
        stream.rewind()
        head = stream.read(SNIFF_SIZE)
        stream.rewind()

        by_magic = self._from_magic(head)
        if by_magic:
            # Office formats are zip files; prefer the more specific extension.
            if by_magic == "application/zip":
                return self._from_extension(reference) or by_magic
            return by_magic

        by_extension = self._from_extension(reference)
        if by_extension:
            return by_extension

        if head and self._looks_like_text(head):
            return "text/plain"

        return DEFAULT_CONTENT_TYPE

    @staticmethod
    def _from_magic(head: bytes) -> str | None:
        for signature, content_type in MAGIC_SIGNATURES:
            if head.startswith(signature):
                return content_type
        start = head.lstrip()[:256].lower()
        if start.startswith(b"<!doctype html") or start.startswith(b"<html"):
            return "text/html"
        if start.startswith(b"<?xml"):
            return "application/xml"
        return None

    @staticmethod
    def _from_extension(reference: str | None) -> str | None:
        if not reference:
            return None
        path = urlparse(reference).path if "://" in reference else reference
        ext = os.path.splitext(path)[1].lower()
        if not ext:
            return None
        if ext in EXTENSION_MAP:
            return EXTENSION_MAP[ext]
        guessed, _ = mimetypes.guess_type("file" + ext, strict=False)
        return guessed

    @staticmethod
    def _looks_like_text(head: bytes) -> bool:
        if b"\x00" in head:
            return False
        try:
            head.decode("utf-8")
        except UnicodeDecodeError as exc:
            # A multi-byte character may be cut at the end of the sniffed block.
            return exc.start >= len(head) - 3
        return True
