"""Service layer wiring the core components into request-level operations."""

from __future__ import annotations

from functools import lru_cache

from quizrag.config import get_settings
from quizrag.embeddings import get_embedder
from quizrag.history import JsonConversationStore
from quizrag.ingest.pipeline import IngestPipeline, IngestPipelineConfig
from quizrag.llm import get_llm
from quizrag.quiz.generator import QuizGenerator
from quizrag.storage import LocalFileStorage
from quizrag.vectorstore import get_vector_store

from .answer import AnswerResult, AnswerService, confidence_for
from .chat import ChatService, NamespaceInfo, UploadResult, display_name_for, namespace_for
from .quiz import QuizService


def _pipeline() -> IngestPipeline:
    settings = get_settings()
    return IngestPipeline(
        IngestPipelineConfig(
            min_chunk_words=settings.min_chunk_words,
            chunk_size=settings.chunk_size,
            chunk_overlap=settings.chunk_overlap,
        )
    )


@lru_cache()
def get_quiz_service() -> QuizService:
    """FastAPI dependency returning the shared :class:`QuizService` instance."""

    settings = get_settings()
    generator = QuizGenerator(
        get_llm(),
        questions_per_page=settings.questions_per_page,
        inter_batch_delay=settings.inter_batch_delay,
    )
    return QuizService(
        generator=generator,
        pipeline=_pipeline(),
        batch_size=settings.batch_size,
        questions_per_page=settings.questions_per_page,
    )


@lru_cache()
def get_chat_service() -> ChatService:
    """FastAPI dependency returning the shared :class:`ChatService` instance."""

    settings = get_settings()
    embedder = get_embedder()
    vector_store = get_vector_store()
    answer_service = AnswerService(
        embedder=embedder,
        vector_store=vector_store,
        llm=get_llm(),
        top_k=settings.retrieval_top_k,
        context_chunks=settings.answer_context_chunks,
    )
    return ChatService(
        embedder=embedder,
        vector_store=vector_store,
        answer_service=answer_service,
        history=JsonConversationStore(settings.history_path),
        storage=LocalFileStorage(settings.upload_dir, public_base_url=settings.public_base_url),
        pipeline=_pipeline(),
    )


def reset_service_caches() -> None:
    """Clear the cached services (primarily for testing)."""

    get_quiz_service.cache_clear()  # type: ignore[attr-defined]
    get_chat_service.cache_clear()  # type: ignore[attr-defined]


__all__ = [
    "AnswerResult",
    "AnswerService",
    "ChatService",
    "NamespaceInfo",
    "QuizService",
    "UploadResult",
    "confidence_for",
    "display_name_for",
    "get_chat_service",
    "get_quiz_service",
    "namespace_for",
    "reset_service_caches",
]
