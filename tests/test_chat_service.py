"""Tests for uploading documents into namespaces and chatting with them."""
from __future__ import annotations

import pytest

from conftest import make_pdf
from quizrag.errors import ExtractionFailed, InvalidArgument, PersistenceFailed
from quizrag.services.chat import display_name_for, namespace_for


def _long_page(topic: str, words: int = 120) -> str:
    return " ".join(f"{topic}{index}" for index in range(words))


def test_namespace_for_sanitises_the_stem() -> None:
    assert namespace_for("Cell Biology (v2).PDF", 1700) == "Cell_Biology__v2__1700"
    assert namespace_for("notes.txt", 5) == "notes_txt_5"


@pytest.mark.parametrize(
    ("namespace", "expected"),
    [
        ("cell_biology_1700", "Cell Biology 1700"),
        ("mixedCase_notes", "MixedCase Notes"),
        ("", "Default"),
    ],
)
def test_display_name_for(namespace: str, expected: str) -> None:
    assert display_name_for(namespace) == expected


def test_upload_indexes_page_chunks(chat_service, vector_store, history) -> None:
    data = make_pdf([_long_page("alpha"), "short page", _long_page("gamma")])

    result = chat_service.upload(data, "Biology.pdf")

    assert result.namespace == "Biology_1700000000000"
    assert result.file_id == "1700000000000-Biology.pdf"
    assert result.pages == 3
    assert result.total_chunks == result.chunks == 2
    assert result.failed == 0
    assert result.url == "/uploads/Biology_1700000000000/Biology.pdf"
    assert vector_store.stats() == {"Biology_1700000000000": 2}

    matches = vector_store.query("Biology_1700000000000", [1.0] * 1024, top_k=5)
    assert {match.id for match in matches} == {
        "1700000000000-Biology.pdf-chunk-0",
        "1700000000000-Biology.pdf-chunk-1",
    }
    by_index = {match.chunk_index: match for match in matches}
    assert by_index[0].page_numbers == [1]
    assert by_index[1].page_numbers == [2, 3]
    assert by_index[1].total_chunks == 2
    assert by_index[1].text.startswith("[Page 2]\nshort page")

    conversation = history.find_by_namespace(result.namespace)
    assert conversation is not None
    assert conversation.filename == "Biology.pdf"
    assert conversation.file_url == result.url


def test_upload_plain_text_uses_length_chunks(chat_service, vector_store) -> None:
    text = ("Photosynthesis happens in chloroplasts. " * 60).encode("utf-8")

    result = chat_service.upload(text, "notes.txt")

    assert result.pages == 0
    assert result.total_chunks > 1
    assert vector_store.stats()[result.namespace] == result.total_chunks


def test_failed_upserts_are_counted(chat_service, vector_store, monkeypatch) -> None:
    calls = {"count": 0}
    original = vector_store.upsert

    def flaky_upsert(namespace, record_id, vector, metadata):
        calls["count"] += 1
        if calls["count"] == 1:
            raise RuntimeError("transient")
        original(namespace, record_id, vector, metadata)

    monkeypatch.setattr(vector_store, "upsert", flaky_upsert)

    result = chat_service.upload(make_pdf([_long_page("alpha"), _long_page("beta")]), "two.pdf")

    assert (result.chunks, result.failed, result.total_chunks) == (1, 1, 2)


def test_upload_rejects_empty_and_unreadable_files(chat_service) -> None:
    with pytest.raises(InvalidArgument):
        chat_service.upload(b"", "empty.pdf")
    with pytest.raises(ExtractionFailed):
        chat_service.upload(b"not a pdf", "fake.pdf")


def test_ask_appends_exchange_to_history(chat_service, scripted_llm, history) -> None:
    upload = chat_service.upload(make_pdf([_long_page("alpha")]), "alpha.pdf")
    scripted_llm.responses = ["Alpha is the first letter."]

    result = chat_service.ask("alpha3 alpha4 meaning?", upload.namespace)

    assert result.answer == "Alpha is the first letter."
    assert result.sources == ["alpha.pdf"]
    conversation = history.find_by_namespace(upload.namespace)
    assert [message.type for message in conversation.messages] == ["user", "bot"]
    assert conversation.messages[1].metadata.confidence == result.confidence
    assert conversation.messages[1].metadata.sources == ["alpha.pdf"]


def test_history_failure_does_not_block_answers(chat_service, history, monkeypatch) -> None:
    def broken(*args, **kwargs):
        raise PersistenceFailed("disk full")

    monkeypatch.setattr(history, "append_messages", broken)

    result = chat_service.ask("anything?", "some_namespace")

    assert result.answer == "A grounded answer."


def test_list_namespaces(chat_service) -> None:
    upload = chat_service.upload(make_pdf([_long_page("alpha")]), "cell_notes.pdf")

    (info,) = chat_service.list_namespaces()

    assert info.name == upload.namespace
    assert info.display_name == "Cell Notes 1700000000000"
    assert info.vector_count == 1


def test_pdf_url_falls_back_to_storage(chat_service, storage) -> None:
    url = storage.store(b"%PDF-1.4", "orphan.pdf", "orphan_ns")

    assert chat_service.pdf_url("orphan_ns") == url
    assert chat_service.pdf_url("unknown") is None
