from dataclasses import dataclass

import pytest

from docimporter.core.constants import DocField, EventName, HandlerKind, OnMatch, ParseState
from docimporter.handlers.conditions import MetadataCondition
from docimporter.pipeline.consumer import HandlerConsumer
from docimporter.pipeline.context import NO_INCLUDE_MATCH
from docimporter.pipeline.errors import ConfigurationError, HandlerError
from docimporter.pipeline.flow import If, IfNot, compile_flow
from docimporter.pipeline.handler import (
    Filter,
    OnMatchFilter,
    Splitter,
    Tagger,
    TextTransformer,
    Transformer,
    resolve_kind,
)


@dataclass
class AddTag(Tagger):
    value: str = "yes"

    def tag_document(self, doc, input, parse_state):
        doc.metadata.add("tags", self.value)


@dataclass
class Upper(TextTransformer):
    def transform_text(self, doc, text, parse_state):
        return text.upper()


@dataclass
class WritesNothing(Transformer):
    def transform_document(self, doc, input, output, parse_state):
        input.read()


@dataclass
class Exploding(Transformer):
    def transform_document(self, doc, input, output, parse_state):
        raise RuntimeError("boom")


@dataclass
class Matches(OnMatchFilter):
    matched: bool = True

    def is_document_matched(self, doc, input, parse_state):
        return self.matched


@dataclass
class Accepts(Filter):
    accepted: bool = True

    def accept_document(self, doc, input, parse_state):
        return self.accepted


@dataclass
class TwoChildren(Splitter):
    def split_document(self, doc, input, output, parse_state):
        output.write(b"parent rewritten")
        return [doc.new_child(f"{doc.reference}!{i}", f"child {i}") for i in range(2)]


def run(handlers, ctx):
    return compile_flow(handlers).execute(ctx)


# ─── Roles ────────────────────────────────────────────


def test_resolve_kind_from_base_classes():
    assert resolve_kind(AddTag()) is HandlerKind.TAGGER
    assert resolve_kind(Upper()) is HandlerKind.TRANSFORMER
    assert resolve_kind(Matches()) is HandlerKind.FILTER
    assert resolve_kind(TwoChildren()) is HandlerKind.SPLITTER


def test_resolve_kind_duck_typed():
    class Tags:
        def tag_document(self, doc, input, parse_state):
            pass

    class Ambiguous(Tags):
        def accept_document(self, doc, input, parse_state):
            return True

    assert resolve_kind(Tags()) is HandlerKind.TAGGER
    assert resolve_kind(Ambiguous()) is None
    assert resolve_kind(object()) is None


@pytest.mark.parametrize("handler", [object(), None, "not a handler"])
def test_unsupported_handler_fails_at_compile_time(handler):
    with pytest.raises(ConfigurationError):
        compile_flow([AddTag(), handler])


def test_invalid_condition_fails_at_compile_time():
    with pytest.raises(ConfigurationError):
        compile_flow([If(None, then=[AddTag()])])


# ─── Dispatch ─────────────────────────────────────────


def test_tagger_changes_metadata_and_fires_events(make_doc, make_context, recorder):
    tagger = AddTag()
    ctx = make_context(make_doc(content=b"abc"))
    status = run([tagger], ctx)

    assert status.is_success
    assert ctx.doc.metadata.get_strings("tags") == ["yes"]
    assert recorder.names == ["IMPORTER_HANDLER_BEGIN", "IMPORTER_HANDLER_END"]
    assert recorder.events[0].subject is tagger
    assert recorder.events[0].parse_state is ParseState.PRE
    assert recorder.events[0].reference == "doc.txt"


def test_transformer_replaces_content(make_doc, make_context):
    doc = make_doc(content=b"hello")
    original = doc.input_stream
    run([Upper()], make_context(doc))
    assert doc.input_stream.read() == b"HELLO"
    assert original.is_disposed


def test_transformer_without_output_keeps_content(make_doc, make_context):
    doc = make_doc(content=b"hello")
    original = doc.input_stream
    run([WritesNothing()], make_context(doc))
    assert doc.input_stream is original
    assert doc.input_stream.read() == b"hello"


def test_each_handler_gets_a_rewound_stream(make_doc, make_context):
    doc = make_doc(content=b"hello")
    run([WritesNothing(), Upper()], make_context(doc))
    assert doc.input_stream.read() == b"HELLO"


def test_handler_failure_is_wrapped_and_stops_the_phase(make_doc, make_context, recorder):
    failing = Exploding()
    after = AddTag()
    ctx = make_context(make_doc("report.txt"))

    with pytest.raises(HandlerError) as info:
        run([failing, after], ctx)

    message = str(info.value)
    assert "Exploding" in message
    assert "report.txt" in message
    assert info.value.handler is failing
    assert info.value.reference == "report.txt"
    assert isinstance(info.value.__cause__, RuntimeError)
    assert recorder.names == ["IMPORTER_HANDLER_BEGIN", "IMPORTER_HANDLER_ERROR"]
    assert isinstance(recorder.events[-1].exception, RuntimeError)
    assert "tags" not in ctx.doc.metadata


def test_splitter_children_are_stamped(make_doc, make_context):
    doc = make_doc("root.zip", b"archive")
    ctx = make_context(doc)
    run([TwoChildren()], ctx)

    assert doc.input_stream.read() == b"parent rewritten"
    assert [c.reference for c in ctx.child_docs] == ["root.zip!0", "root.zip!1"]
    for index, child in enumerate(ctx.child_docs):
        assert child.doc_info.parent_references == ["root.zip"]
        assert child.metadata.get(DocField.EMBEDDED_INDEX) == str(index)
        assert child.metadata.get(DocField.EMBEDDED_PARENT_REFERENCE) == "root.zip"
        assert child.metadata.get_strings(DocField.EMBEDDED_PARENT_REFERENCES) == ["root.zip"]
        assert child.input_stream.read() == f"child {index}".encode()
        child.dispose()


# ─── Filters ──────────────────────────────────────────


def test_exclude_filter_rejects_and_short_circuits(make_doc, make_context, recorder):
    exclude = Matches(on_match=OnMatch.EXCLUDE)
    ctx = make_context(make_doc())
    status = run([exclude, AddTag()], ctx)

    assert status.is_rejected
    assert status.rejection_filter is exclude
    assert "Matches" in status.description
    assert "tags" not in ctx.doc.metadata
    assert recorder.subjects(EventName.HANDLER_BEGIN) == [exclude]
    assert recorder.names[-1] == "IMPORTER_HANDLER_END"


def test_exclude_filter_without_match_accepts(make_doc, make_context):
    status = run([Matches(False, on_match=OnMatch.EXCLUDE)], make_context(make_doc()))
    assert status.is_success


def test_plain_filter_rejects_immediately(make_doc, make_context):
    reject = Accepts(False)
    status = run([reject, AddTag()], make_context(make_doc()))
    assert status.is_rejected
    assert status.rejection_filter is reject


def test_include_filters_are_aggregated(make_doc, make_context):
    ctx = make_context(make_doc())
    status = run([Matches(False), AddTag("between"), Matches(True)], ctx)
    assert status.is_success
    assert ctx.doc.metadata.get_strings("tags") == ["between"]


def test_no_matching_include_filter_rejects_after_phase(make_doc, make_context):
    ctx = make_context(make_doc())
    status = run([Matches(False), AddTag("still runs"), Matches(False)], ctx)
    assert status.is_rejected
    assert status.rejection_filter is None
    assert status.description == NO_INCLUDE_MATCH
    assert ctx.doc.metadata.get_strings("tags") == ["still runs"]


def test_phase_without_include_filters_accepts(make_doc, make_context):
    assert run([Accepts(True), AddTag()], make_context(make_doc())).is_success


# ─── Restrictions and conditional blocks ──────────────


def test_restricted_handler_is_skipped_silently(make_doc, make_context, recorder):
    tagger = AddTag(restrictions=[MetadataCondition("lang", "fr")])
    ctx = make_context(make_doc(metadata={"lang": "en"}))
    run([tagger], ctx)
    assert "tags" not in ctx.doc.metadata
    assert recorder.events == []


def test_restrictions_match_any(make_doc, make_context):
    tagger = AddTag()
    tagger.add_restriction(MetadataCondition("lang", "fr"), MetadataCondition("lang", "en"))
    ctx = make_context(make_doc(metadata={"lang": "en"}))
    run([tagger], ctx)
    assert ctx.doc.metadata.get_strings("tags") == ["yes"]


def test_if_block_branches(make_doc, make_context):
    flow = [
        If(MetadataCondition("lang", "en"), then=[AddTag("then")], otherwise=[AddTag("else")]),
        IfNot(MetadataCondition("lang", "en"), then=[AddTag("not")]),
    ]
    english = make_context(make_doc(metadata={"lang": "en"}))
    french = make_context(make_doc(metadata={"lang": "fr"}))
    run(flow, english)
    run(flow, french)
    assert english.doc.metadata.get_strings("tags") == ["then"]
    assert french.doc.metadata.get_strings("tags") == ["else", "not"]


def test_nested_blocks_and_rejection_inside_block(make_doc, make_context):
    reject = Accepts(False)
    flow = compile_flow([
        If(MetadataCondition("a", "1"), then=[
            If(MetadataCondition("b", "2"), then=[reject]),
            AddTag("inside"),
        ]),
        AddTag("outside"),
    ])
    assert list(flow.handlers())[0] is reject

    ctx = make_context(make_doc(metadata={"a": "1", "b": "2"}))
    status = flow.execute(ctx)
    assert status.rejection_filter is reject
    assert "tags" not in ctx.doc.metadata


def test_failing_condition_raises_handler_error(make_doc, make_context):
    class Broken(MetadataCondition):
        def matches(self, metadata):
            raise ValueError("bad condition")

    with pytest.raises(HandlerError, match="doc.txt"):
        run([If(Broken("x", "y"), then=[AddTag()])], make_context(make_doc()))


def test_consumer_skips_rejected_context(make_doc, make_context, recorder):
    ctx = make_context(make_doc())
    ctx.reject("earlier filter")
    HandlerConsumer(AddTag()).accept(ctx)
    assert recorder.events == []
