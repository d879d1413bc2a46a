"""
Stock splitters.

PageSplitter turns a multi-page text document (pages separated by form
feeds, as most PDF text extractors emit them) into one child per page.
CsvSplitter turns every CSV row into a child document.
"""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field

from docimporter.core.constants import DocField
from docimporter.core.logging import get_logger
from docimporter.doc.metadata import Metadata
from docimporter.pipeline.handler import Splitter

logger = get_logger(__name__)


class SplitField:
    PAGE_NUMBER = DocField.PREFIX + "page.number"
    TOTAL_PAGES = DocField.PREFIX + "page.total"
    CSV_ROW = DocField.PREFIX + "csv.row"


@dataclass
class PageSplitter(Splitter):
    """One child per page, referenced ``<parent reference><prefix><N>``."""

    page_delimiter: str = "\f"
    reference_page_prefix: str = "#page"
    skip_blank_pages: bool = False

    def split_document(self, doc, input, output, parse_state):
        metadata = doc.metadata
        if SplitField.PAGE_NUMBER in metadata:
            return None

        text = input.read_text(doc.content_encoding)
        pages = text.split(self.page_delimiter)
        if text.endswith(self.page_delimiter):
            pages.pop()
        if self.skip_blank_pages:
            pages = [p for p in pages if p.strip()]
        if len(pages) <= 1:
            return None

        content_type = doc.doc_info.content_type if not parse_state.is_post else "text/plain"
        encoding = doc.content_encoding or "utf-8"
        children = []
        for number, page in enumerate(pages, start=1):
            reference = f"{doc.reference}{self.reference_page_prefix}{number}"
            child_meta = metadata.copy()
            child_meta.set(DocField.REFERENCE, reference)
            child_meta.set(DocField.EMBEDDED_REFERENCE, f"{self.reference_page_prefix}{number}")
            child_meta.set(SplitField.PAGE_NUMBER, number)
            child_meta.set(SplitField.TOTAL_PAGES, len(pages))
            child = doc.new_child(
                reference,
                content=page.encode(encoding),
                metadata=child_meta,
                content_type=content_type,
            )
            child.doc_info.content_encoding = encoding
            children.append(child)
        return children


@dataclass
class CsvSplitter(Splitter):
    """
    One child per CSV row, columns stored as metadata.

    Column names come from the first row when ``use_first_row_as_fields`` is
    set, otherwise they are ``column1``, ``column2``...  The child reference is
    the parent reference plus ``!`` plus the value of ``reference_column``
    (row number when unset).  Values of ``content_columns`` become the child
    content, separated by a space.
    """

    separator: str = ","
    quote_char: str = '"'
    use_first_row_as_fields: bool = True
    reference_column: str | None = None
    content_columns: list[str] = field(default_factory=list)

    def split_document(self, doc, input, output, parse_state):
        if SplitField.CSV_ROW in doc.metadata:
            return None
        text = input.read_text(doc.content_encoding)
        reader = csv.reader(io.StringIO(text), delimiter=self.separator, quotechar=self.quote_char)

        headers: list[str] = []
        children = []
        row_number = 0
        for row in reader:
            if not any(cell.strip() for cell in row):
                continue
            if self.use_first_row_as_fields and not headers:
                headers = [h.strip() for h in row]
                continue
            row_number += 1
            columns = {
                headers[i] if i < len(headers) and headers[i] else f"column{i + 1}": value
                for i, value in enumerate(row)
            }
            row_ref = columns.get(self.reference_column) if self.reference_column else None
            embedded_ref = row_ref or str(row_number)
            reference = f"{doc.reference}!{embedded_ref}"

            child_meta = Metadata(case_sensitive=doc.metadata.case_sensitive)
            for name, value in columns.items():
                child_meta.add(name, value)
            child_meta.set(DocField.REFERENCE, reference)
            child_meta.set(DocField.EMBEDDED_REFERENCE, embedded_ref)
            child_meta.set(SplitField.CSV_ROW, row_number)

            content = " ".join(columns.get(c, "") for c in self.content_columns).strip()
            children.append(
                doc.new_child(
                    reference,
                    content=content.encode("utf-8") if content else None,
                    metadata=child_meta,
                    content_type="text/plain",
                )
            )

        logger.debug("CSV rows split", reference=doc.reference, rows=len(children))
        return children
