import pytest
from pydantic import ValidationError

from enhancer.models import AcquiredReference, Document, LogPhase, ReferenceCandidate


def test_computed_fields():
    document = Document(original_title="  Title  ", original_content="word " * 401, original_url="https://a.com")

    assert document.original_title == "Title"
    assert document.word_count.original == 401
    assert document.word_count.updated is None
    assert document.reading_time == 3

    dumped = document.model_dump()
    assert dumped["word_count"] == {"original": 401, "updated": None}
    assert dumped["reading_time"] == 3


def test_empty_body_counts_zero_words():
    document = Document(original_title="Empty", original_content="", updated_content="")

    assert document.word_count.original == 0
    assert document.word_count.updated == 0
    assert document.reading_time == 0


def test_with_log_appends_without_mutating():
    document = Document(original_title="T")

    first = document.with_log("pipeline", LogPhase.STARTED, "go")
    second = first.with_log("discovery", LogPhase.STARTED, "search")

    assert document.processing_log == []
    assert [entry.stage for entry in second.processing_log] == ["pipeline", "discovery"]
    assert second.processing_log[0] is first.processing_log[0]


def test_title_length_limit():
    with pytest.raises(ValidationError):
        Document(original_title="x" * 501)


def test_reference_urls_must_be_http():
    with pytest.raises(ValidationError):
        ReferenceCandidate(title="Bad", url="ftp://example.com/file")
    with pytest.raises(ValidationError):
        AcquiredReference(title="Bad", url="example.com")

    assert ReferenceCandidate(title="Ok", url="https://example.com").snippet == ""
