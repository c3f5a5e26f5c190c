"""Generation capability contract and its error types."""
from __future__ import annotations

from abc import ABC, abstractmethod


class LLMError(RuntimeError):
    """Base exception raised for generation backend issues."""


class LLMGenerationError(LLMError):
    """Raised when text generation fails unexpectedly."""


class LLMTimeoutError(LLMGenerationError):
    """Raised when the backend does not answer within the configured timeout."""


class LLM(ABC):
    """Common interface exposed by language model implementations."""

    @abstractmethod
    def generate(self, prompt: str) -> str:
        """Return the model's completion for *prompt*."""

    @property
    def model_name(self) -> str:
        """Human-readable identifier describing the model."""

        return "stub"


__all__ = ["LLM", "LLMError", "LLMGenerationError", "LLMTimeoutError"]
