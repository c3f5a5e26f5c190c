"""Tests for the in-memory namespaced vector store."""
from __future__ import annotations

import pytest

from quizrag.vectorstore import InMemoryVectorStore, chunk_metadata, get_vector_store, reset_vector_store_cache


def _metadata(index: int, pages=()) -> dict:
    return chunk_metadata(
        text=f"chunk {index}",
        filename="notes.pdf",
        chunk_index=index,
        total_chunks=3,
        page_numbers=pages,
    )


def test_query_returns_results_ordered_by_similarity() -> None:
    store = InMemoryVectorStore()
    store.upsert("ns", "doc-1", [1.0, 0.0], _metadata(0))
    store.upsert("ns", "doc-2", [0.0, 1.0], _metadata(1))
    store.upsert("ns", "doc-3", [0.9, 0.1], _metadata(2))

    results = store.query("ns", [1.0, 0.0], top_k=3)

    assert [result.id for result in results] == ["doc-1", "doc-3", "doc-2"]
    assert results[0].score == pytest.approx(1.0)
    assert results[0].filename == "notes.pdf"
    assert results[0].chunk_index == 0


def test_query_limits_number_of_results() -> None:
    store = InMemoryVectorStore()
    store.upsert("ns", "doc-1", [1.0, 0.0], _metadata(0))
    store.upsert("ns", "doc-2", [0.0, 1.0], _metadata(1))

    assert [result.id for result in store.query("ns", [1.0, 0.0], top_k=1)] == ["doc-1"]
    assert store.query("ns", [1.0, 0.0], top_k=0) == []


def test_namespaces_are_isolated() -> None:
    store = InMemoryVectorStore()
    store.upsert("first", "a", [1.0, 0.0], _metadata(0))
    store.upsert("second", "b", [1.0, 0.0], _metadata(1))

    assert [result.id for result in store.query("first", [1.0, 0.0])] == ["a"]
    assert store.query("missing", [1.0, 0.0]) == []
    assert store.stats() == {"first": 1, "second": 1}


def test_upsert_replaces_existing_record() -> None:
    store = InMemoryVectorStore()
    store.upsert("ns", "doc-1", [1.0, 0.0], _metadata(0))
    store.upsert("ns", "doc-1", [0.0, 1.0], _metadata(0, pages=(2, 3)))

    (result,) = store.query("ns", [0.0, 1.0])

    assert store.stats() == {"ns": 1}
    assert result.score == pytest.approx(1.0)
    assert result.page_numbers == [2, 3]


def test_zero_vectors_score_zero() -> None:
    store = InMemoryVectorStore()
    store.upsert("ns", "doc-1", [0.0, 0.0], _metadata(0))

    (result,) = store.query("ns", [1.0, 0.0])

    assert result.score == 0.0


def test_get_vector_store_rejects_unknown_backend(monkeypatch) -> None:
    from quizrag.config import reset_settings_cache

    monkeypatch.setenv("VECTOR_STORE", "pinecone")
    reset_settings_cache()
    reset_vector_store_cache()

    with pytest.raises(ValueError):
        get_vector_store()
