"""Embedding strategies used to index chunks and embed queries."""
from __future__ import annotations

import logging
import re
import time
from functools import lru_cache
from typing import Dict, Iterable, List, Protocol, Sequence, runtime_checkable

from quizrag.config import get_settings
from quizrag.telemetry import log_event

LOGGER = logging.getLogger(__name__)

HASH_DIMENSION = 1024
MIN_TOKEN_LENGTH = 3

_INT32_MASK = 0xFFFFFFFF
_ARRAY_INDEX_LIMIT = 2**32 - 1
# Whitespace set of the indexer that produced existing vectors. Unlike
# str.split it excludes \x1c-\x1f and \x85 and includes \ufeff.
_INDEX_WHITESPACE_RE = re.compile(
    "[\t\n\v\f\r \u00a0\u1680\u2000-\u200a\u2028\u2029\u202f\u205f\u3000\ufeff]+"
)


@runtime_checkable
class Embedder(Protocol):
    """Contract shared by every embedding strategy."""

    @property
    def name(self) -> str:
        ...

    @property
    def dimension(self) -> int:
        ...

    def embed(self, text: str) -> List[float]:
        ...

    def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        ...


def _utf16_units(value: str) -> List[int]:
    encoded = value.encode("utf-16-le", errors="surrogatepass")
    return [int.from_bytes(encoded[i : i + 2], "little") for i in range(0, len(encoded), 2)]


def token_hash(token: str) -> int:
    """Polynomial rolling hash ``h = 31*h + unit`` in signed 32-bit space."""

    value = 0
    for unit in _utf16_units(token):
        value = (value * 31 + unit) & _INT32_MASK
    if value >= 2**31:
        value -= 2**32
    return value


def _is_array_index(key: str) -> bool:
    return key.isdigit() and str(int(key)) == key and int(key) < _ARRAY_INDEX_LIMIT


def _key_order(counts: Dict[str, int]) -> Iterable[str]:
    # Object-key enumeration order of the indexer that produced existing
    # vectors: integer-like keys ascending, then insertion order.
    numeric = sorted((key for key in counts if _is_array_index(key)), key=int)
    return numeric + [key for key in counts if not _is_array_index(key)]


class HashEmbedder:
    """Bag-of-words hashing embedder.

    Vectors approximate shared vocabulary, not meaning. Text is split on the
    same whitespace set as the indexer that produced existing vectors, and
    distinct tokens that collide on a bucket overwrite each other (last
    writer wins), so both sides of a query agree with stored records.
    """

    def __init__(self, dimension: int = HASH_DIMENSION) -> None:
        if dimension <= 0:
            raise ValueError("dimension must be a positive integer")
        self._dimension = dimension

    @property
    def name(self) -> str:
        return f"hash-bow-{self._dimension}"

    @property
    def dimension(self) -> int:
        return self._dimension

    def embed(self, text: str) -> List[float]:
        tokens = [
            token
            for token in _INDEX_WHITESPACE_RE.split(text.lower())
            if len(_utf16_units(token)) >= MIN_TOKEN_LENGTH
        ]
        vector = [0.0] * self._dimension
        if not tokens:
            return vector

        counts: Dict[str, int] = {}
        for token in tokens:
            counts[token] = counts.get(token, 0) + 1

        total = len(tokens)
        for token in _key_order(counts):
            position = abs(token_hash(token)) % self._dimension
            vector[position] = counts[token] / total
        return vector

    def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        return [self.embed(text) for text in texts]


class SentenceTransformerEmbedder:
    """Semantic embeddings from a sentence-transformers model."""

    def __init__(self, model_name_or_path: str, *, device: str | None = None) -> None:
        from sentence_transformers import SentenceTransformer

        self._model_name = model_name_or_path
        self._model = SentenceTransformer(model_name_or_path, device=device)
        self._dimension = int(self._model.get_sentence_embedding_dimension())

    @property
    def name(self) -> str:
        return self._model_name

    @property
    def dimension(self) -> int:
        return self._dimension

    def embed(self, text: str) -> List[float]:
        return self.embed_texts([text])[0]

    def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []
        started = time.perf_counter()
        embeddings = self._model.encode(
            list(texts),
            convert_to_numpy=True,
            show_progress_bar=False,
            normalize_embeddings=True,
        )
        log_event(
            LOGGER,
            "embeddings.compute",
            duration_ms=(time.perf_counter() - started) * 1000.0,
            details={"model": self._model_name, "count": len(texts)},
        )
        return embeddings.tolist()


@lru_cache()
def get_embedder() -> Embedder:
    """Return the configured embedder instance."""

    settings = get_settings()
    if settings.embedder == "hash":
        return HashEmbedder()
    if settings.embedder in {"sentence-transformers", "sentence_transformers"}:
        LOGGER.info("Loading sentence-transformers model %s", settings.embedding_model_path)
        return SentenceTransformerEmbedder(settings.embedding_model_path)
    raise ValueError(f"Unsupported EMBEDDER: {settings.embedder!r}")


def reset_embedder_cache() -> None:
    """Clear the cached embedder instance (primarily for testing)."""

    get_embedder.cache_clear()  # type: ignore[attr-defined]


__all__ = [
    "Embedder",
    "HASH_DIMENSION",
    "HashEmbedder",
    "SentenceTransformerEmbedder",
    "get_embedder",
    "reset_embedder_cache",
    "token_hash",
]
