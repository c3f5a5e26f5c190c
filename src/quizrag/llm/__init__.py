"""Generation backends and the factory selecting one from configuration."""

from __future__ import annotations

from functools import lru_cache

from quizrag.config import get_settings

from .base import LLM, LLMError, LLMGenerationError, LLMTimeoutError
from .mock import MockLLM


@lru_cache()
def get_llm() -> LLM:
    """Return the configured generation backend."""

    settings = get_settings()
    provider = settings.llm_provider

    if provider == "mock":
        return MockLLM()
    if provider == "gemini":
        from .gemini import GeminiLLM

        return GeminiLLM(
            settings.gemini_api_key,
            settings.gemini_model,
            timeout_seconds=settings.llm_timeout_seconds,
        )
    raise ValueError(f"Unsupported LLM_PROVIDER: {provider!r}")


def reset_llm_cache() -> None:
    """Clear the cached backend (primarily for testing)."""

    get_llm.cache_clear()  # type: ignore[attr-defined]


__all__ = [
    "LLM",
    "LLMError",
    "LLMGenerationError",
    "LLMTimeoutError",
    "MockLLM",
    "get_llm",
    "reset_llm_cache",
]
