"""
Shared pytest fixtures.
"""
from dataclasses import dataclass, field

import pytest

from docimporter.core.constants import ParseState
from docimporter.doc.document import Doc
from docimporter.doc.info import DocInfo
from docimporter.importer import Importer, ImporterConfig
from docimporter.io.stream import CachedStreamFactory
from docimporter.pipeline.context import HandlerContext
from docimporter.pipeline.events import EventManager


@dataclass
class RecordingListener:
    """Keeps every event fired, in order."""

    events: list = field(default_factory=list)

    def __call__(self, event):
        self.events.append(event)

    @property
    def names(self):
        return [str(e.name) for e in self.events]

    def subjects(self, name):
        return [e.subject for e in self.events if e.name == name]


@pytest.fixture
def stream_factory(tmp_path):
    """Factory with generous limits, spilling into the test's temp dir."""
    return CachedStreamFactory(
        max_memory_instance=1024 * 1024,
        max_memory_pool=10 * 1024 * 1024,
        temp_dir=tmp_path / "cache",
    )


@pytest.fixture
def make_doc(stream_factory):
    """Build a Doc from bytes or str content."""
    created = []

    def _make(reference="doc.txt", content=b"", metadata=None, **info):
        doc = Doc(
            DocInfo(reference, **info),
            stream_factory.new_input_stream(content),
            metadata,
        )
        created.append(doc)
        return doc

    yield _make
    for doc in created:
        doc.dispose()


@pytest.fixture
def recorder():
    return RecordingListener()


@pytest.fixture
def event_manager(recorder):
    return EventManager([recorder])


@pytest.fixture
def make_context(event_manager):
    def _make(doc, parse_state=ParseState.PRE):
        return HandlerContext(doc, parse_state, event_manager)

    return _make


@pytest.fixture
def make_importer(tmp_path, event_manager):
    """Build an Importer whose temp files live under tmp_path."""

    def _make(**config):
        config.setdefault("temp_dir", tmp_path / "cache")
        return Importer(ImporterConfig(**config), event_manager=event_manager)

    return _make
