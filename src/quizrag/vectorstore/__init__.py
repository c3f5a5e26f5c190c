"""Vector store helpers backed by pluggable backends."""

from __future__ import annotations

from functools import lru_cache
from typing import Dict, List, Mapping, Protocol, Sequence, runtime_checkable

from quizrag.config import get_settings

from .errors import VectorStoreUnavailableError
from .mock_store import InMemoryVectorStore
from .models import RetrievalMatch, chunk_metadata, decode_page_numbers, encode_page_numbers


@runtime_checkable
class VectorStore(Protocol):
    """Namespaced similarity store consumed by ingestion and retrieval."""

    backend_name: str

    def upsert(
        self,
        namespace: str,
        record_id: str,
        vector: Sequence[float],
        metadata: Mapping[str, object],
    ) -> None:
        ...

    def query(self, namespace: str, vector: Sequence[float], top_k: int = 5) -> List[RetrievalMatch]:
        ...

    def stats(self) -> Dict[str, int]:
        ...


@lru_cache()
def get_vector_store() -> VectorStore:
    """Return a lazily initialised vector store instance based on configuration."""

    settings = get_settings()
    backend = settings.vector_store

    if backend == "mock":
        return InMemoryVectorStore()

    if backend == "chroma":
        from .chroma_store import ChromaStore

        return ChromaStore(settings.chroma_persist_dir)

    raise ValueError(f"Unsupported VECTOR_STORE backend: {backend!r}")


def reset_vector_store_cache() -> None:
    """Clear the cached vector store (primarily for testing)."""

    get_vector_store.cache_clear()  # type: ignore[attr-defined]


__all__ = [
    "InMemoryVectorStore",
    "RetrievalMatch",
    "VectorStore",
    "VectorStoreUnavailableError",
    "chunk_metadata",
    "decode_page_numbers",
    "encode_page_numbers",
    "get_vector_store",
    "reset_vector_store_cache",
]
