"""Domain exceptions shared across ingestion, quiz generation and Q&A."""
from __future__ import annotations


class QuizRagError(RuntimeError):
    """Base class for every error raised by the service core."""

    def __init__(self, message: str, *, cause: Exception | None = None) -> None:
        super().__init__(message)
        self.__cause__ = cause


class InvalidArgument(QuizRagError, ValueError):
    """Raised when a caller violates an input contract."""


class ExtractionFailed(QuizRagError):
    """Raised when a document cannot be read or yields no text."""


class GenerationParseFailed(QuizRagError):
    """Raised when model output does not match the expected schema."""


class RetrievalFailed(QuizRagError):
    """Raised when any step of the question answering flow fails."""


class PersistenceFailed(QuizRagError):
    """Raised when conversation history cannot be saved or loaded."""


__all__ = [
    "ExtractionFailed",
    "GenerationParseFailed",
    "InvalidArgument",
    "PersistenceFailed",
    "QuizRagError",
    "RetrievalFailed",
]
