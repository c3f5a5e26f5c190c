"""Grounded question answering over one namespace of the vector store."""
from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import List, Literal, Sequence

from quizrag.embeddings import Embedder
from quizrag.errors import InvalidArgument, RetrievalFailed
from quizrag.llm.base import LLM
from quizrag.prompt_builder import build_answer_prompt
from quizrag.telemetry import (
    emit_exception,
    emit_inference_request,
    emit_inference_result,
    emit_prompt_event,
    emit_retriever_event,
)
from quizrag.vectorstore import RetrievalMatch, VectorStore

LOGGER = logging.getLogger(__name__)
AUDIT_LOGGER = logging.getLogger("quizrag.audit")

Confidence = Literal["high", "medium", "low"]

MIN_CONTEXT_CHUNKS = 3
MAX_CONTEXT_CHUNKS = 5
HIGH_CONFIDENCE_SCORE = 0.7
MEDIUM_CONFIDENCE_SCORE = 0.4


def confidence_for(scores: Sequence[float]) -> Confidence:
    """Map the average similarity of the context window to a label."""

    if not scores:
        return "low"
    average = sum(scores) / len(scores)
    if average > HIGH_CONFIDENCE_SCORE:
        return "high"
    if average > MEDIUM_CONFIDENCE_SCORE:
        return "medium"
    return "low"


@dataclass(slots=True)
class AnswerResult:
    """Structured result returned from :meth:`AnswerService.answer`."""

    answer: str
    confidence: Confidence
    sources: List[str]
    matches: List[RetrievalMatch] = field(default_factory=list)


class AnswerService:
    """Embed a query, retrieve context and ask the model for a grounded answer."""

    def __init__(
        self,
        *,
        embedder: Embedder,
        vector_store: VectorStore,
        llm: LLM,
        top_k: int = 5,
        context_chunks: int = MIN_CONTEXT_CHUNKS,
    ) -> None:
        if top_k <= 0:
            raise InvalidArgument("top_k must be a positive integer")
        self._embedder = embedder
        self._vector_store = vector_store
        self._llm = llm
        self._top_k = top_k
        self._context_chunks = min(max(context_chunks, MIN_CONTEXT_CHUNKS), MAX_CONTEXT_CHUNKS)

    @property
    def context_chunks(self) -> int:
        return self._context_chunks

    def answer(self, query: str, namespace: str) -> AnswerResult:
        if not query or not query.strip():
            raise InvalidArgument("Query is required")
        if not namespace or not namespace.strip():
            raise InvalidArgument("Namespace is required")

        req_id = uuid.uuid4().hex
        try:
            matches = self._retrieve(query, namespace)
            window = matches[: self._context_chunks]
            prompt = build_answer_prompt(query, window)
            emit_prompt_event(kind="answer", prompt_len=len(prompt), sources=[match.id for match in window])
            answer_text = self._generate(req_id, prompt, namespace)
        except Exception as error:
            emit_exception(module=__name__, error=error, req_id=req_id, namespace=namespace)
            raise RetrievalFailed(f"Failed to answer query: {error}", cause=error) from error

        confidence = confidence_for([match.score for match in window])
        sources = [match.filename for match in window]
        AUDIT_LOGGER.info(
            {
                "event": "query",
                "namespace": namespace,
                "query": query,
                "confidence": confidence,
                "sources": [match.id for match in window],
            }
        )
        return AnswerResult(answer=answer_text, confidence=confidence, sources=sources, matches=window)

    def _retrieve(self, query: str, namespace: str) -> List[RetrievalMatch]:
        started = time.perf_counter()
        vector = self._embedder.embed(query)
        matches = self._vector_store.query(namespace, vector, self._top_k)
        emit_retriever_event(
            query=query,
            namespace=namespace,
            top_k=self._top_k,
            results=[{"id": match.id, "score": round(match.score, 4)} for match in matches],
            duration_ms=(time.perf_counter() - started) * 1000.0,
        )
        return matches

    def _generate(self, req_id: str, prompt: str, namespace: str) -> str:
        model = self._llm.model_name
        emit_inference_request(
            req_id=req_id,
            model=model,
            prompt_preview=prompt,
            prompt_len=len(prompt),
            namespace=namespace,
        )
        started = time.perf_counter()
        answer_text = self._llm.generate(prompt)
        emit_inference_result(
            req_id=req_id,
            model=model,
            duration_ms=(time.perf_counter() - started) * 1000.0,
            answer_preview=answer_text,
            namespace=namespace,
        )
        return answer_text.strip()


__all__ = ["AnswerResult", "AnswerService", "Confidence", "confidence_for"]
