"""Environment driven configuration for the quiz and Q&A service."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

LOGGER = logging.getLogger(__name__)

DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"
DEFAULT_EMBEDDING_MODEL = "sentence-transformers/all-MiniLM-L6-v2"


def _str_from_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _int_from_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        LOGGER.warning("Invalid integer for %s: %s; using default %s", name, value, default)
        return default


def _float_from_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        LOGGER.warning("Invalid float for %s: %s; using default %s", name, value, default)
        return default


@dataclass(slots=True)
class Settings:
    """Runtime settings; every field can be overridden through the environment."""

    batch_size: int = 3
    questions_per_page: float = 2
    inter_batch_delay: float = 2.0
    min_chunk_words: int = 100
    chunk_size: int = 1000
    chunk_overlap: int = 200
    retrieval_top_k: int = 5
    answer_context_chunks: int = 3
    vector_store: str = "mock"
    chroma_persist_dir: str = "chroma_db"
    embedder: str = "hash"
    embedding_model_path: str = DEFAULT_EMBEDDING_MODEL
    llm_provider: str = "mock"
    gemini_api_key: str = ""
    gemini_model: str = DEFAULT_GEMINI_MODEL
    llm_timeout_seconds: float = 120.0
    upload_dir: str = "uploads"
    history_path: str = "data/conversations.json"
    public_base_url: str = ""

    @classmethod
    def from_env(cls) -> "Settings":
        defaults = cls()
        return cls(
            batch_size=_int_from_env("QUIZ_BATCH_SIZE", defaults.batch_size),
            questions_per_page=_float_from_env("QUIZ_QUESTIONS_PER_PAGE", defaults.questions_per_page),
            inter_batch_delay=_float_from_env("QUIZ_INTER_BATCH_DELAY", defaults.inter_batch_delay),
            min_chunk_words=_int_from_env("CHUNK_MIN_WORDS", defaults.min_chunk_words),
            chunk_size=_int_from_env("CHUNK_SIZE", defaults.chunk_size),
            chunk_overlap=_int_from_env("CHUNK_OVERLAP", defaults.chunk_overlap),
            retrieval_top_k=_int_from_env("RETRIEVAL_TOP_K", defaults.retrieval_top_k),
            answer_context_chunks=_int_from_env("ANSWER_CONTEXT_CHUNKS", defaults.answer_context_chunks),
            vector_store=_str_from_env("VECTOR_STORE", defaults.vector_store).lower(),
            chroma_persist_dir=_str_from_env("CHROMA_PERSIST_DIR", defaults.chroma_persist_dir),
            embedder=_str_from_env("EMBEDDER", defaults.embedder).lower(),
            embedding_model_path=_str_from_env("EMBEDDING_MODEL_PATH", defaults.embedding_model_path),
            llm_provider=_str_from_env("LLM_PROVIDER", defaults.llm_provider).lower(),
            gemini_api_key=_str_from_env("GEMINI_API_KEY", defaults.gemini_api_key),
            gemini_model=_str_from_env("GEMINI_MODEL", defaults.gemini_model),
            llm_timeout_seconds=_float_from_env("LLM_TIMEOUT_SECONDS", defaults.llm_timeout_seconds),
            upload_dir=_str_from_env("UPLOAD_DIR", defaults.upload_dir),
            history_path=_str_from_env("HISTORY_PATH", defaults.history_path),
            public_base_url=_str_from_env("PUBLIC_BASE_URL", defaults.public_base_url).rstrip("/"),
        )


@lru_cache()
def get_settings() -> Settings:
    """Return the cached settings instance."""

    return Settings.from_env()


def reset_settings_cache() -> None:
    """Clear the cached settings (primarily for testing)."""

    get_settings.cache_clear()  # type: ignore[attr-defined]


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
