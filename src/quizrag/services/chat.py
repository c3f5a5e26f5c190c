"""Document chat: indexing uploads into namespaces and answering over them."""
from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from quizrag.embeddings import Embedder
from quizrag.errors import InvalidArgument, PersistenceFailed
from quizrag.history import Conversation, JsonConversationStore, Message, MessageMetadata
from quizrag.ingest.pipeline import IngestPipeline
from quizrag.storage import LocalFileStorage, sanitize_filename
from quizrag.telemetry import emit_exception, emit_ingest_event, emit_vectorstore_event
from quizrag.vectorstore import VectorStore, chunk_metadata

from .answer import AnswerResult, AnswerService

LOGGER = logging.getLogger(__name__)
AUDIT_LOGGER = logging.getLogger("quizrag.audit")

_NAMESPACE_UNSAFE_RE = re.compile(r"[^a-zA-Z0-9-]")
_PDF_SUFFIX_RE = re.compile(r"\.pdf$", re.IGNORECASE)
_WORD_START_RE = re.compile(r"\b\w", re.ASCII)


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def namespace_for(filename: str, timestamp_ms: int) -> str:
    """Build the namespace of an upload: sanitised stem plus upload time."""

    stem = _PDF_SUFFIX_RE.sub("", Path(filename).name)
    return f"{_NAMESPACE_UNSAFE_RE.sub('_', stem)}_{timestamp_ms}"


def display_name_for(namespace: str) -> str:
    """Human readable label for a namespace: underscores to spaces, words capitalised."""

    spaced = namespace.replace("_", " ")
    return _WORD_START_RE.sub(lambda match: match.group(0).upper(), spaced) or "Default"


@dataclass(slots=True)
class UploadResult:
    """Structured result returned from :meth:`ChatService.upload`."""

    chunks: int
    failed: int
    total_chunks: int
    namespace: str
    filename: str
    file_id: str
    url: Optional[str]
    pages: int


@dataclass(slots=True)
class NamespaceInfo:
    name: str
    display_name: str
    vector_count: int


class ChatService:
    """High level orchestration for uploading documents and chatting with them."""

    def __init__(
        self,
        *,
        embedder: Embedder,
        vector_store: VectorStore,
        answer_service: AnswerService,
        history: JsonConversationStore,
        storage: LocalFileStorage,
        pipeline: IngestPipeline | None = None,
        clock: Callable[[], int] = _epoch_ms,
    ) -> None:
        self._embedder = embedder
        self._vector_store = vector_store
        self._answer_service = answer_service
        self.history = history
        self.storage = storage
        self.pipeline = pipeline or IngestPipeline()
        self._clock = clock

    def upload(self, data: bytes, filename: str) -> UploadResult:
        """Chunk, embed and index *data* under a fresh namespace.

        Individual chunk upserts that fail are counted rather than aborting
        the upload. Storing the file and creating the conversation are best
        effort; their failures are logged.
        """

        if not data:
            raise InvalidArgument("No file uploaded")
        display_name = Path(filename or "upload.pdf").name

        started = time.perf_counter()
        timestamp = self._clock()
        namespace = namespace_for(display_name, timestamp)
        file_id = f"{timestamp}-{sanitize_filename(display_name)}"
        emit_ingest_event("ingest.file.start", file_name=display_name, namespace=namespace, size_bytes=len(data))

        output = self.pipeline.ingest(data, display_name)
        chunks = output.chunks
        success = 0
        failed = 0
        for index, chunk in enumerate(chunks):
            metadata = chunk_metadata(
                text=chunk.text,
                filename=display_name,
                chunk_index=index,
                total_chunks=len(chunks),
                page_numbers=chunk.page_numbers,
            )
            try:
                vector = self._embedder.embed(chunk.text)
                self._vector_store.upsert(namespace, f"{file_id}-chunk-{index}", vector, metadata)
            except Exception as error:
                failed += 1
                emit_exception(module=f"{__name__}.upsert", error=error, namespace=namespace)
                continue
            success += 1

        emit_vectorstore_event(
            "vectorstore.upsert",
            backend=self._vector_store.backend_name,
            namespace=namespace,
            count=success,
        )

        url = self._store_file(data, display_name, namespace)
        self._record_conversation(namespace, display_name, url)

        emit_ingest_event(
            "ingest.file.complete",
            file_name=display_name,
            namespace=namespace,
            size_bytes=len(data),
            pages=len(output.pages),
            chunks=success,
            failed=failed,
            duration_ms=(time.perf_counter() - started) * 1000.0,
        )
        AUDIT_LOGGER.info(
            {
                "event": "ingest",
                "namespace": namespace,
                "file_name": display_name,
                "chunk_count": success,
                "failed": failed,
            }
        )
        return UploadResult(
            chunks=success,
            failed=failed,
            total_chunks=len(chunks),
            namespace=namespace,
            filename=display_name,
            file_id=file_id,
            url=url,
            pages=len(output.pages),
        )

    def ask(self, query: str, namespace: str) -> AnswerResult:
        """Answer *query* and append the exchange to the namespace's conversation."""

        result = self._answer_service.answer(query, namespace)
        self._append_exchange(query, namespace, result)
        return result

    def list_namespaces(self) -> List[NamespaceInfo]:
        stats = self._vector_store.stats()
        return [
            NamespaceInfo(name=name, display_name=display_name_for(name), vector_count=count)
            for name, count in stats.items()
        ]

    def pdf_url(self, namespace: str) -> Optional[str]:
        conversation = self.history.find_by_namespace(namespace)
        if conversation is not None and conversation.file_url:
            return conversation.file_url
        return self.storage.url_for(namespace)

    def _store_file(self, data: bytes, filename: str, namespace: str) -> Optional[str]:
        try:
            return self.storage.store(data, filename, namespace)
        except OSError as error:
            LOGGER.warning("Failed to store %s for namespace %s: %s", filename, namespace, error)
            return None

    def _record_conversation(self, namespace: str, filename: str, url: Optional[str]) -> Optional[Conversation]:
        try:
            return self.history.create(namespace=namespace, filename=filename, file_url=url)
        except PersistenceFailed as error:
            emit_exception(module=f"{__name__}.history", error=error, namespace=namespace)
            return None

    def _append_exchange(self, query: str, namespace: str, result: AnswerResult) -> None:
        metadata = MessageMetadata(
            confidence=result.confidence,
            sources=result.sources,
            query=query,
            namespace=namespace,
        )
        messages = [
            Message(type="user", content=query, metadata=MessageMetadata(query=query, namespace=namespace)),
            Message(type="bot", content=result.answer, metadata=metadata),
        ]
        try:
            conversation = self.history.find_or_create(namespace=namespace, filename=namespace)
            self.history.append_messages(conversation.id, messages)
        except PersistenceFailed as error:
            emit_exception(
                module=f"{__name__}.history",
                error=error,
                namespace=namespace,
                suggestion="Check that the history file location is writable",
            )


__all__ = [
    "ChatService",
    "NamespaceInfo",
    "UploadResult",
    "display_name_for",
    "namespace_for",
]
