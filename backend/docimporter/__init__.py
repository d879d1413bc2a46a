"""
docimporter — document import pipeline.

Documents go through a pre-parse flow of handlers, a parser, and a
post-parse flow; splitters and parsers may emit child documents that are
imported the same way.  The outcome is a tree of ImporterResponse objects.
"""

from docimporter.core.constants import DocField, EventName, HandlerKind, OnMatch, ParseState, Status
from docimporter.doc import Doc, DocInfo, HandlerDoc, Metadata
from docimporter.importer import Importer, ImporterConfig
from docimporter.io import CachedInputStream, CachedOutputStream, CachedStreamFactory
from docimporter.pipeline.errors import (
    ConfigurationError,
    DocumentParserError,
    HandlerError,
    ImporterError,
    StreamError,
)
from docimporter.pipeline.events import EventManager, ImporterEvent, LoggingEventListener
from docimporter.pipeline.flow import Flow, If, IfNot, compile_flow
from docimporter.pipeline.handler import (
    Condition,
    Filter,
    ImporterHandler,
    OnMatchFilter,
    Splitter,
    Tagger,
    TextTransformer,
    Transformer,
)
from docimporter.request import ImporterRequest
from docimporter.response import ImporterResponse, ImporterStatus

__version__ = "0.1.0"

__all__ = [
    "CachedInputStream",
    "CachedOutputStream",
    "CachedStreamFactory",
    "Condition",
    "ConfigurationError",
    "Doc",
    "DocField",
    "DocInfo",
    "DocumentParserError",
    "EventManager",
    "EventName",
    "Filter",
    "Flow",
    "HandlerDoc",
    "HandlerError",
    "HandlerKind",
    "If",
    "IfNot",
    "Importer",
    "ImporterConfig",
    "ImporterError",
    "ImporterEvent",
    "ImporterHandler",
    "ImporterRequest",
    "ImporterResponse",
    "ImporterStatus",
    "LoggingEventListener",
    "Metadata",
    "OnMatch",
    "OnMatchFilter",
    "ParseState",
    "Splitter",
    "Status",
    "StreamError",
    "Tagger",
    "TextTransformer",
    "Transformer",
    "compile_flow",
]
