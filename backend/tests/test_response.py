import pytest

from docimporter.core.constants import Status
from docimporter.response import ImporterResponse, ImporterStatus


def test_status_constructors():
    assert ImporterStatus.success().is_success

    rejected = ImporterStatus.rejected("SomeFilter()")
    assert rejected.is_rejected
    assert rejected.description == "SomeFilter()"

    exc = RuntimeError("failed")
    error = ImporterStatus.error(exc)
    assert error.is_error
    assert error.exception is exc
    assert error.description == "failed"
    assert error.to_dict()["exception"] == "RuntimeError"


class EmptyFilter:
    """A filter that is falsy, like an empty collection."""

    def __len__(self):
        return 0

    def __repr__(self):
        return "EmptyFilter()"


def test_status_to_dict_keeps_falsy_filter():
    status = ImporterStatus.rejected(EmptyFilter())
    assert status.to_dict() == {
        "status": "REJECTED",
        "rejection_filter": "EmptyFilter()",
        "exception": None,
        "description": "EmptyFilter()",
    }


def test_status_is_immutable_and_comparable():
    status = ImporterStatus.rejected(description="no")
    assert status == ImporterStatus(Status.REJECTED, description="no")
    with pytest.raises(AttributeError):
        status.description = "yes"


def test_response_requires_doc_iff_success(make_doc):
    with pytest.raises(ValueError):
        ImporterResponse("a")
    with pytest.raises(ValueError):
        ImporterResponse("a", ImporterStatus.rejected(description="x"), make_doc())


def test_nested_responses_and_back_link(make_doc):
    root = ImporterResponse.for_doc(make_doc("root"))
    child = ImporterResponse.for_doc(make_doc("root!1"))
    failed = ImporterResponse("root!2", ImporterStatus.error(ValueError("bad")))
    root.add_nested_response(child)
    root.add_nested_response(failed)

    assert child.parent_response is root
    assert [r.reference for r in root.walk()] == ["root", "root!1", "root!2"]
    assert root.is_success and not failed.is_success

    removed = root.remove_nested_response("root!1")
    assert removed is child
    assert child.parent_response is None
    assert root.remove_nested_response("unknown") is None
    assert [r.reference for r in root.nested_responses] == ["root!2"]


def test_failed_response_is_a_leaf():
    failed = ImporterResponse("x", ImporterStatus.error(ValueError("bad")))
    with pytest.raises(ValueError):
        failed.add_nested_response(ImporterResponse("y", ImporterStatus.rejected(description="r")))


def test_nested_responses_returns_a_copy(make_doc):
    root = ImporterResponse.for_doc(make_doc("root"))
    root.nested_responses.append("junk")
    assert root.nested_responses == []


def test_dispose_releases_whole_subtree(make_doc):
    root_doc, child_doc = make_doc("root", b"r"), make_doc("root!1", b"c")
    root = ImporterResponse.for_doc(root_doc)
    root.add_nested_response(ImporterResponse.for_doc(child_doc))
    with root:
        pass
    assert root_doc.is_disposed and child_doc.is_disposed
