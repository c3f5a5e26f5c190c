"""Simple in-memory vector store for development and tests."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Mapping, Sequence

from .models import RetrievalMatch


@dataclass(slots=True)
class _StoredItem:
    """Internal representation of a stored vector."""

    id: str
    embedding: List[float]
    metadata: dict


class InMemoryVectorStore:
    """Namespaced vector store ranking records by cosine similarity."""

    backend_name = "mock"

    def __init__(self) -> None:
        self._namespaces: Dict[str, Dict[str, _StoredItem]] = {}

    def upsert(
        self,
        namespace: str,
        record_id: str,
        vector: Sequence[float],
        metadata: Mapping[str, object],
    ) -> None:
        """Insert or replace a single record in *namespace*."""

        records = self._namespaces.setdefault(namespace, {})
        records[record_id] = _StoredItem(
            id=record_id,
            embedding=[float(value) for value in vector],
            metadata=dict(metadata),
        )

    def query(self, namespace: str, vector: Sequence[float], top_k: int = 5) -> List[RetrievalMatch]:
        """Return the *top_k* records most similar to *vector*, best first."""

        if top_k <= 0:
            return []
        records = self._namespaces.get(namespace)
        if not records:
            return []

        scored = [(_cosine_similarity(vector, item.embedding), item) for item in records.values()]
        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [
            RetrievalMatch.from_record(item.id, score, item.metadata)
            for score, item in scored[:top_k]
        ]

    def stats(self) -> Dict[str, int]:
        return {namespace: len(records) for namespace, records in self._namespaces.items()}


def _cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    if len(vec_a) != len(vec_b):
        raise ValueError("Vectors must be of the same dimension")
    norm_a = math.sqrt(sum(a * a for a in vec_a))
    norm_b = math.sqrt(sum(b * b for b in vec_b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return sum(a * b for a, b in zip(vec_a, vec_b)) / (norm_a * norm_b)


__all__ = ["InMemoryVectorStore"]
