"""
HandlerConsumer — runs one handler against a HandlerContext.

Responsibilities:
    - Skip when the document is already rejected or the handler's
      restrictions do not match
    - Fire begin/end/error events around the invocation
    - Hand a rewound content stream to the handler
    - Swap in new content written by transformers and splitters
    - Apply filter semantics (include aggregation, immediate exclusion)
    - Wrap any handler failure in a HandlerError
"""

from __future__ import annotations

from typing import Any, Callable

from docimporter.core.constants import EventName, HandlerKind
from docimporter.core.logging import get_logger
from docimporter.doc.document import Doc
from docimporter.pipeline.context import HandlerContext
from docimporter.pipeline.errors import ConfigurationError, HandlerError
from docimporter.pipeline.handler import is_include_filter, resolve_kind

logger = get_logger(__name__)


class HandlerConsumer:
    """Wraps a handler whose capability role is resolved up front."""

    def __init__(self, handler: Any) -> None:
        if handler is None:
            raise ConfigurationError("Importer handler must not be None.")
        kind = resolve_kind(handler)
        if kind is None:
            raise ConfigurationError(
                f"Unsupported importer handler: {handler!r}. Expected a "
                "Tagger, Transformer, Filter or Splitter.",
                handler=handler,
            )
        self.handler = handler
        self.kind = kind
        self._dispatch: dict[HandlerKind, Callable[[HandlerContext], None]] = {
            HandlerKind.TAGGER: self._tag,
            HandlerKind.TRANSFORMER: self._transform,
            HandlerKind.FILTER: self._filter,
            HandlerKind.SPLITTER: self._split,
        }

    def accept(self, ctx: HandlerContext) -> None:
        if ctx.is_rejected:
            return
        if not self._is_applicable(ctx):
            logger.debug(
                "Handler does not apply",
                handler=repr(self.handler),
                reference=ctx.doc.reference,
            )
            return

        ctx.fire(EventName.HANDLER_BEGIN, self.handler)
        try:
            self._dispatch[self.kind](ctx)
        except Exception as exc:
            ctx.fire(EventName.HANDLER_ERROR, self.handler, exc)
            raise HandlerError(
                f"Importer failure for handler {self.handler!r} "
                f"on document \"{ctx.doc.reference}\": {exc}",
                reference=ctx.doc.reference,
                handler=self.handler,
            ) from exc
        ctx.fire(EventName.HANDLER_END, self.handler)

    def _is_applicable(self, ctx: HandlerContext) -> bool:
        is_applicable = getattr(self.handler, "is_applicable", None)
        if is_applicable is None:
            return True
        try:
            return bool(is_applicable(ctx.doc.metadata))
        except Exception as exc:
            raise HandlerError(
                f"Could not evaluate restrictions of handler {self.handler!r} "
                f"on document \"{ctx.doc.reference}\": {exc}",
                reference=ctx.doc.reference,
                handler=self.handler,
            ) from exc

    # ─── Capability dispatch ───────────────────────────

    def _tag(self, ctx: HandlerContext) -> None:
        self.handler.tag_document(ctx.handler_doc, ctx.doc.input_stream, ctx.parse_state)

    def _filter(self, ctx: HandlerContext) -> None:
        accepted = bool(
            self.handler.accept_document(
                ctx.handler_doc, ctx.doc.input_stream, ctx.parse_state
            )
        )
        if is_include_filter(self.handler):
            ctx.include_resolver.record(accepted)
            return
        if not accepted:
            ctx.reject(self.handler)
            logger.debug(
                "Document import rejected",
                filter=repr(self.handler),
                reference=ctx.doc.reference,
            )

    def _transform(self, ctx: HandlerContext) -> None:
        doc = ctx.doc
        with doc.stream_factory.new_output_stream() as out:
            self.handler.transform_document(
                ctx.handler_doc, doc.input_stream, out, ctx.parse_state
            )
            if out.is_cache_empty:
                logger.debug(
                    "Transformer returned no content, keeping original",
                    handler=repr(self.handler),
                    reference=doc.reference,
                )
                return
            doc.set_input_stream(out.get_input_stream())

    def _split(self, ctx: HandlerContext) -> None:
        doc = ctx.doc
        children: list[Doc] = []
        try:
            with doc.stream_factory.new_output_stream() as out:
                children = list(
                    self.handler.split_document(
                        ctx.handler_doc, doc.input_stream, out, ctx.parse_state
                    )
                    or []
                )
                if not out.is_cache_empty:
                    doc.set_input_stream(out.get_input_stream())
        except BaseException:
            for child in children:
                child.dispose()
            raise
        ctx.add_child_docs(children)
        logger.debug(
            "Document split",
            splitter=repr(self.handler),
            reference=doc.reference,
            children=len(children),
        )

    def __repr__(self) -> str:
        return f"HandlerConsumer({self.kind}: {self.handler!r})"
