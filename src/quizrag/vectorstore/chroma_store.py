"""Chroma vector store adapter: one collection per namespace."""
from __future__ import annotations

import hashlib
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence

from .errors import VectorStoreUnavailableError
from .models import RetrievalMatch

if TYPE_CHECKING:  # pragma: no cover - import for typing only
    from chromadb.api import ClientAPI
    from chromadb.api.models.Collection import Collection
else:
    ClientAPI = Any
    Collection = Any

COLLECTION_PREFIX = "ns-"
DISTANCE_METRIC = "cosine"
_MAX_NAME_LENGTH = 63
_INVALID_NAME_CHARS = re.compile(r"[^a-zA-Z0-9._-]+")


def collection_name_for(namespace: str) -> str:
    """Map a namespace onto a name Chroma accepts (3-63 safe characters)."""

    cleaned = _INVALID_NAME_CHARS.sub("_", namespace).strip("._-")
    name = f"{COLLECTION_PREFIX}{cleaned}"
    if len(name) > _MAX_NAME_LENGTH or cleaned != namespace:
        digest = hashlib.sha1(namespace.encode("utf-8")).hexdigest()[:10]
        name = f"{name[: _MAX_NAME_LENGTH - len(digest) - 1]}-{digest}"
    return name


class ChromaStore:
    """Adapter around a Chroma database exposing the namespaced store contract."""

    backend_name = "chroma"

    def __init__(
        self,
        persist_dir: str | Path,
        *,
        client: Optional[ClientAPI] = None,
    ) -> None:
        self.persist_dir = Path(persist_dir)
        try:
            if client is not None:
                self._client = client
            else:
                import chromadb

                self.persist_dir.mkdir(parents=True, exist_ok=True)
                self._client = chromadb.PersistentClient(path=str(self.persist_dir))
        except Exception as exc:
            raise VectorStoreUnavailableError(
                "Failed to initialise Chroma persistent client",
                cause=exc,
            ) from exc
        self._collections: Dict[str, Collection] = {}

    def _collection(self, namespace: str) -> Collection:
        collection = self._collections.get(namespace)
        if collection is None:
            collection = self._client.get_or_create_collection(
                name=collection_name_for(namespace),
                metadata={"namespace": namespace, "hnsw:space": DISTANCE_METRIC},
            )
            self._collections[namespace] = collection
        return collection

    def _existing_collection(self, namespace: str) -> Optional[Collection]:
        if namespace in self._collections:
            return self._collections[namespace]
        if collection_name_for(namespace) not in self._collection_names():
            return None
        return self._collection(namespace)

    def _collection_names(self) -> List[str]:
        # Older clients list names, newer ones list collection objects.
        return [item if isinstance(item, str) else item.name for item in self._client.list_collections()]

    def upsert(
        self,
        namespace: str,
        record_id: str,
        vector: Sequence[float],
        metadata: Mapping[str, object],
    ) -> None:
        collection = self._collection(namespace)
        collection.upsert(
            ids=[record_id],
            embeddings=[[float(value) for value in vector]],
            documents=[str(metadata.get("text", ""))],
            metadatas=[dict(metadata)],
        )

    def query(self, namespace: str, vector: Sequence[float], top_k: int = 5) -> List[RetrievalMatch]:
        if top_k <= 0:
            return []

        collection = self._existing_collection(namespace)
        if collection is None:
            return []
        available = collection.count()
        if available == 0:
            return []

        result = collection.query(
            query_embeddings=[[float(value) for value in vector]],
            n_results=min(top_k, available),
            include=["metadatas", "distances"],
        )
        ids = (result.get("ids") or [[]])[0]
        metadatas = (result.get("metadatas") or [[]])[0]
        distances = (result.get("distances") or [[]])[0]

        matches: List[RetrievalMatch] = []
        for record_id, metadata, distance in zip(ids, metadatas, distances):
            # Cosine distance in [0, 2]; report similarity like the hosted index.
            score = 1.0 - float(distance) if distance is not None else 0.0
            matches.append(RetrievalMatch.from_record(record_id, score, metadata or {}))
        return matches

    def stats(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for name in self._collection_names():
            if not name.startswith(COLLECTION_PREFIX):
                continue
            collection = self._client.get_collection(name=name)
            namespace = (collection.metadata or {}).get("namespace") or name[len(COLLECTION_PREFIX) :]
            counts[str(namespace)] = int(collection.count())
        return counts


__all__ = ["ChromaStore", "collection_name_for"]
