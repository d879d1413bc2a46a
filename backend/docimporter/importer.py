"""
Importer — runs documents through the pre-parse flow, the parser and the
post-parse flow, then imports every child document the same way.

Responsibilities:
    - Cache the incoming content and detect its content type
    - Stamp the identity fields (reference, content type/family/encoding)
    - Run each phase and parse in between
    - Catch failures at the single-document boundary (ERROR response)
    - Import children of successful documents, recursively
    - Run response processors on the top-level response

Usage::

    importer = Importer(ImporterConfig(
        pre_parse_handlers=[MetadataFilter(DocField.CONTENT_TYPE, "image/.*",
                                           on_match=OnMatch.EXCLUDE)],
        post_parse_handlers=[PageSplitter()],
    ))
    with importer.import_document(b"...", reference="doc.txt") as response:
        for node in response.walk():
            print(node.reference, node.status.status)
"""

from __future__ import annotations

import mimetypes
import shutil
import tempfile
import time
import traceback
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, Callable, Mapping

from docimporter.core.config import GB, MB, ImporterSettings
from docimporter.core.constants import (
    DEFAULT_CONTENT_TYPE,
    DocField,
    EventName,
    ParseState,
    content_family,
)
from docimporter.core.logging import get_logger
from docimporter.doc.document import Doc
from docimporter.doc.info import DocInfo
from docimporter.doc.metadata import Metadata
from docimporter.io.stream import CachedStreamFactory
from docimporter.parser.base import ContentTypeDetector, DocumentParser, ParserFactory
from docimporter.parser.detector import DefaultContentTypeDetector
from docimporter.parser.text import DefaultParserFactory
from docimporter.pipeline.context import HandlerContext
from docimporter.pipeline.errors import ConfigurationError, DocumentParserError, ImporterError
from docimporter.pipeline.events import EventManager, ImporterEvent
from docimporter.pipeline.flow import Flow, compile_flow
from docimporter.request import ImporterRequest
from docimporter.response import ImporterResponse, ImporterStatus

logger = get_logger(__name__)

ResponseProcessor = Callable[[ImporterResponse], None]


@dataclass
class ImporterConfig:
    """Everything an Importer is built from."""

    pre_parse_handlers: list[Any] = field(default_factory=list)
    post_parse_handlers: list[Any] = field(default_factory=list)
    parser_factory: ParserFactory = field(default_factory=DefaultParserFactory)
    content_type_detector: ContentTypeDetector = field(default_factory=DefaultContentTypeDetector)
    response_processors: list[ResponseProcessor] = field(default_factory=list)
    temp_dir: Path | None = None
    max_memory_instance: int = 100 * MB
    max_memory_pool: int = 1 * GB
    parse_errors_save_dir: Path | None = None

    @classmethod
    def from_settings(
        cls, settings: ImporterSettings | None = None, **overrides: Any
    ) -> ImporterConfig:
        """Build a config from environment settings; keyword overrides win."""
        settings = settings or ImporterSettings()
        values: dict[str, Any] = {
            "temp_dir": settings.TEMP_DIR,
            "max_memory_instance": settings.MAX_MEMORY_INSTANCE,
            "max_memory_pool": settings.MAX_MEMORY_POOL,
            "parse_errors_save_dir": settings.PARSE_ERRORS_SAVE_DIR,
        }
        values.update(overrides)
        return cls(**values)


class Importer:
    """Imports documents according to an ImporterConfig."""

    def __init__(
        self,
        config: ImporterConfig | None = None,
        event_manager: EventManager | None = None,
    ) -> None:
        self.config = config or ImporterConfig()
        self.event_manager = event_manager or EventManager()

        if self.config.parser_factory is None:
            raise ConfigurationError("'parser_factory' must not be None.")
        if self.config.content_type_detector is None:
            raise ConfigurationError("'content_type_detector' must not be None.")

        self.pre_parse_flow: Flow = compile_flow(self.config.pre_parse_handlers)
        self.post_parse_flow: Flow = compile_flow(self.config.post_parse_handlers)

        temp_dir = Path(self.config.temp_dir or tempfile.gettempdir())
        try:
            temp_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigurationError(f"Cannot create temp directory {temp_dir}: {exc}") from exc
        self.stream_factory = CachedStreamFactory(
            max_memory_instance=self.config.max_memory_instance,
            max_memory_pool=self.config.max_memory_pool,
            temp_dir=temp_dir,
        )

        logger.debug(
            "Importer configured",
            pre_parse_handlers=len(self.pre_parse_flow),
            post_parse_handlers=len(self.post_parse_flow),
            temp_dir=str(temp_dir),
        )

    # ─── Entry points ──────────────────────────────────

    def import_document(
        self,
        source: bytes | str | Path | BinaryIO | None = None,
        *,
        reference: str | None = None,
        content_type: str | None = None,
        content_encoding: str | None = None,
        metadata: Metadata | Mapping[str, Any] | None = None,
    ) -> ImporterResponse:
        """
        Import one document.

        *source* is raw bytes, a file path (str or Path), a readable binary
        stream, or None.  A *reference* is required unless *source* is a path.
        """
        return self.import_request(
            ImporterRequest(
                source=source,
                reference=reference,
                content_type=content_type,
                content_encoding=content_encoding,
                metadata=metadata,
            )
        )

    def import_request(self, request: ImporterRequest) -> ImporterResponse:
        reference = request.resolve_reference()
        try:
            doc = self._new_doc(request, reference)
        except (ImporterError, OSError) as exc:
            logger.error("Could not read document", reference=reference, error=str(exc))
            response = ImporterResponse(
                reference,
                ImporterStatus.error(exc, f"Could not read document \"{reference}\": {exc}"),
            )
            self._process_response(response)
            return response
        return self.import_doc(doc)

    def import_doc(self, doc: Doc) -> ImporterResponse:
        """Import an already built document and all the children it yields."""
        started = time.perf_counter()
        response = self._import_tree(doc)
        self._process_response(response)
        logger.info(
            "Import finished",
            reference=doc.reference,
            status=str(response.status.status),
            documents=sum(1 for _ in response.walk()),
            duration_ms=int((time.perf_counter() - started) * 1000),
        )
        return response

    # ─── Tree assembly ─────────────────────────────────

    def _import_tree(self, doc: Doc) -> ImporterResponse:
        status, children = self._import_single(doc)
        if not status.is_success:
            for child in children:
                child.dispose()
            doc.dispose()
            return ImporterResponse(doc.reference, status)

        response = ImporterResponse.for_doc(doc)
        for child in children:
            response.add_nested_response(self._import_tree(child))
        return response

    def _import_single(self, doc: Doc) -> tuple[ImporterStatus, list[Doc]]:
        log = logger.bind(reference=doc.reference, depth=doc.doc_info.depth)
        children: list[Doc] = []
        try:
            self._prepare(doc)
            status = self._run_phase(self.pre_parse_flow, doc, ParseState.PRE, children)
            if status.is_success:
                self._parse(doc, children)
                status = self._run_phase(self.post_parse_flow, doc, ParseState.POST, children)
        except ImporterError as exc:
            log.error("Document import failed", error=str(exc), error_type=type(exc).__name__)
            status = ImporterStatus.error(exc)
        except OSError as exc:
            log.error("Document import failed", error=str(exc), error_type=type(exc).__name__)
            status = ImporterStatus.error(
                exc, f"I/O failure on document \"{doc.reference}\": {exc}"
            )
        except Exception as exc:
            log.exception("Unexpected error importing document", error=str(exc))
            status = ImporterStatus.error(
                exc, f"Unexpected failure on document \"{doc.reference}\": {exc}"
            )

        if status.is_rejected:
            log.info("Document rejected", description=status.description)
        elif status.is_success:
            log.debug("Document imported", children=len(children))
        return status, children

    # ─── Single document ───────────────────────────────

    def _new_doc(self, request: ImporterRequest, reference: str) -> Doc:
        if request.is_file:
            with Path(request.source).open("rb") as fh:
                content = self.stream_factory.new_input_stream(fh)
        else:
            content = self.stream_factory.new_input_stream(request.source)
        info = DocInfo(
            reference,
            content_type=request.content_type,
            content_encoding=request.content_encoding,
        )
        return Doc(info, content, request.metadata)

    def _prepare(self, doc: Doc) -> None:
        info = doc.doc_info
        if not info.content_type:
            info.content_type = self._detect(doc)

        metadata = doc.metadata
        metadata.set(DocField.REFERENCE, doc.reference)
        metadata.set(DocField.CONTENT_TYPE, info.content_type)
        family = content_family(info.content_type)
        if family:
            metadata.set(DocField.CONTENT_FAMILY, family)
        if info.content_encoding:
            metadata.set(DocField.CONTENT_ENCODING, info.content_encoding)

    def _detect(self, doc: Doc) -> str:
        try:
            detected = self.config.content_type_detector.detect(doc.input_stream, doc.reference)
        except Exception as exc:
            logger.warning(
                "Content type detection failed, using default",
                reference=doc.reference,
                error=str(exc),
            )
            return DEFAULT_CONTENT_TYPE
        return detected or DEFAULT_CONTENT_TYPE

    def _run_phase(
        self, flow: Flow, doc: Doc, parse_state: ParseState, children: list[Doc]
    ) -> ImporterStatus:
        ctx = HandlerContext(doc, parse_state, self.event_manager, child_docs=children)
        return flow.execute(ctx)

    def _parse(self, doc: Doc, children: list[Doc]) -> None:
        if doc.input_stream.is_empty:
            logger.debug("Empty content, not parsed", reference=doc.reference)
            return
        try:
            parser = self.config.parser_factory.get_parser(
                doc.reference, doc.doc_info.content_type
            )
        except Exception as exc:
            raise DocumentParserError(
                f"Could not obtain a parser for document \"{doc.reference}\": {exc}",
                reference=doc.reference,
                handler=self.config.parser_factory,
            ) from exc
        if parser is None:
            logger.debug(
                "No parser for content type",
                reference=doc.reference,
                content_type=doc.doc_info.content_type,
            )
            return

        self._fire(EventName.PARSER_BEGIN, doc, parser)
        embedded: list[Any] = []
        try:
            with doc.stream_factory.new_output_stream() as out:
                embedded = list(parser.parse_document(doc, out) or [])
                for item in embedded:
                    if not isinstance(item, Doc):
                        raise TypeError(
                            f"embedded documents must be Doc instances, got {type(item).__name__}"
                        )
                doc.set_input_stream(out.get_input_stream())
        except Exception as exc:
            for item in embedded:
                if isinstance(item, Doc):
                    item.dispose()
            self._fire(EventName.PARSER_ERROR, doc, parser, exc)
            self._save_parse_error(doc, exc)
            raise DocumentParserError(
                f"Parser {parser!r} failed on document \"{doc.reference}\": {exc}",
                reference=doc.reference,
                handler=parser,
            ) from exc
        self._fire(EventName.PARSER_END, doc, parser)

        if embedded:
            ctx = HandlerContext(doc, ParseState.POST, self.event_manager, child_docs=children)
            ctx.add_child_docs(embedded)

    def _fire(
        self,
        name: EventName,
        doc: Doc,
        parser: DocumentParser,
        exception: BaseException | None = None,
    ) -> None:
        self.event_manager.fire(
            ImporterEvent(name=name, reference=doc.reference, subject=parser, exception=exception)
        )

    def _save_parse_error(self, doc: Doc, exc: BaseException) -> None:
        save_dir = self.config.parse_errors_save_dir
        if not save_dir:
            return
        save_dir = Path(save_dir)
        base = str(uuid.uuid4())
        try:
            save_dir.mkdir(parents=True, exist_ok=True)
            (save_dir / f"{base}-error.txt").write_text(
                f"{doc.reference}\n\n{''.join(traceback.format_exception(exc))}",
                encoding="utf-8",
            )
            (save_dir / f"{base}-meta.txt").write_text(
                "".join(
                    f"{key}={value}\n"
                    for key, values in doc.metadata.items()
                    for value in values
                ),
                encoding="utf-8",
            )
            with (save_dir / f"{base}-content{_extension(doc)}").open("wb") as fh:
                shutil.copyfileobj(doc.input_stream, fh)
        except (OSError, ImporterError) as save_exc:
            logger.error(
                "Could not save parse error files",
                reference=doc.reference,
                save_dir=str(save_dir),
                error=str(save_exc),
            )
            return
        logger.info("Parse error saved", reference=doc.reference, file_prefix=base)

    # ─── Responses ─────────────────────────────────────

    def _process_response(self, response: ImporterResponse) -> None:
        for processor in self.config.response_processors:
            processor(response)


def _extension(doc: Doc) -> str:
    suffix = Path(doc.reference.split("?", 1)[0].split("#", 1)[0]).suffix
    if suffix and len(suffix) <= 6:
        return suffix
    guessed = mimetypes.guess_extension(doc.doc_info.content_type or "")
    return guessed or ".unknown"
