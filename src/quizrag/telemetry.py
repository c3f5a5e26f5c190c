"""Structured log events emitted by the ingestion, quiz and answer flows."""
from __future__ import annotations

import logging
import time
import traceback
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Optional

LOGGER = logging.getLogger("quizrag.telemetry")

_PREVIEW_CHARS = 120


def _format_exception(error: BaseException) -> str:
    return "".join(traceback.format_exception(error.__class__, error, error.__traceback__))


def log_event(
    logger: Optional[logging.Logger],
    step: str,
    *,
    level: str = "info",
    req_id: str | None = None,
    namespace: str | None = None,
    duration_ms: float | None = None,
    exc: BaseException | str | None = None,
    details: dict[str, Any] | None = None,
    **payload: Any,
) -> None:
    """Emit a structured log event with the agreed-upon schema."""

    logger = logger or LOGGER
    event: dict[str, Any] = {"step": step, "module": logger.name}
    if req_id:
        event["req_id"] = req_id
    if namespace:
        event["namespace"] = namespace
    if duration_ms is not None:
        event["duration_ms"] = round(duration_ms, 3)
    if details is not None:
        event["details"] = details
    event.update(payload)

    exc_info = None
    if exc is not None:
        if isinstance(exc, BaseException):
            event["exc"] = _format_exception(exc)
            exc_info = (exc.__class__, exc, exc.__traceback__)
        else:
            event["exc"] = str(exc)

    log_method = getattr(logger, level.lower(), logger.info)
    log_method(event, exc_info=exc_info)


def emit_ingest_event(
    step: str,
    *,
    file_name: str,
    namespace: str | None = None,
    size_bytes: int | None = None,
    pages: int | None = None,
    chunks: int | None = None,
    failed: int | None = None,
    duration_ms: float | None = None,
) -> None:
    details = {
        "file": file_name,
        "size_bytes": size_bytes,
        "pages": pages,
        "chunks": chunks,
        "failed": failed,
    }
    log_event(LOGGER, step, namespace=namespace, duration_ms=duration_ms, details=details)


def emit_vectorstore_event(
    step: str,
    *,
    backend: str,
    namespace: str | None,
    count: int,
    error: BaseException | None = None,
) -> None:
    details = {"backend": backend, "count": count}
    level = "error" if error else "info"
    log_event(LOGGER, step, level=level, namespace=namespace, details=details, exc=error)


def emit_retriever_event(
    *,
    query: str,
    namespace: str,
    top_k: int,
    results: list[dict[str, Any]],
    duration_ms: float,
) -> None:
    details = {
        "query_preview": query[:_PREVIEW_CHARS],
        "top_k": top_k,
        "results": results,
    }
    log_event(LOGGER, "retriever.search", namespace=namespace, duration_ms=duration_ms, details=details)


def emit_prompt_event(*, kind: str, prompt_len: int, sources: Iterable[str] = ()) -> None:
    details = {"kind": kind, "prompt_len": prompt_len, "sources": list(sources)}
    log_event(LOGGER, "prompt.compose", details=details)


def emit_inference_request(
    *,
    req_id: str,
    model: str,
    prompt_preview: str,
    prompt_len: int,
    namespace: str | None = None,
) -> None:
    details = {
        "model": model,
        "prompt_preview": prompt_preview[:_PREVIEW_CHARS],
        "prompt_len": prompt_len,
    }
    log_event(LOGGER, "inference.request", req_id=req_id, namespace=namespace, details=details)


def emit_inference_result(
    *,
    req_id: str,
    model: str,
    duration_ms: float,
    answer_preview: str,
    namespace: str | None = None,
    error: BaseException | None = None,
) -> None:
    details = {
        "model": model,
        "answer_preview": answer_preview[:_PREVIEW_CHARS],
        "answer_len": len(answer_preview),
    }
    level = "error" if error else "info"
    log_event(
        LOGGER,
        "inference.result",
        level=level,
        req_id=req_id,
        namespace=namespace,
        duration_ms=duration_ms,
        details=details,
        exc=error,
    )


def emit_quiz_batch_event(
    step: str,
    *,
    batch_index: int,
    batch_count: int,
    page_numbers: Iterable[int],
    questions: int | None = None,
    summary_preview: str | None = None,
    error: BaseException | None = None,
) -> None:
    details: dict[str, Any] = {
        "batch": batch_index + 1,
        "batches": batch_count,
        "pages": list(page_numbers),
    }
    if questions is not None:
        details["questions"] = questions
    if summary_preview is not None:
        details["summary_preview"] = summary_preview[:_PREVIEW_CHARS]
    level = "warning" if error else "info"
    log_event(LOGGER, step, level=level, details=details, exc=error)


def emit_exception(
    *,
    module: str,
    error: BaseException,
    req_id: str | None = None,
    namespace: str | None = None,
    suggestion: str | None = None,
) -> None:
    details = {"module": module}
    if suggestion:
        details["suggestion"] = suggestion
    log_event(
        LOGGER,
        "exception",
        level="error",
        req_id=req_id,
        namespace=namespace,
        details=details,
        exc=error,
    )


@contextmanager
def traced_duration(step: str, *, logger: Optional[logging.Logger] = None, **fields: Any) -> Iterator[None]:
    start = time.perf_counter()
    log_event(logger or LOGGER, f"{step}.start", details=fields)
    try:
        yield
    except Exception as error:
        log_event(logger or LOGGER, f"{step}.error", level="error", details=fields, exc=error)
        raise
    finally:
        end = time.perf_counter()
        log_event(
            logger or LOGGER,
            f"{step}.complete",
            duration_ms=(end - start) * 1000.0,
            details=fields,
        )


__all__ = [
    "emit_exception",
    "emit_inference_request",
    "emit_inference_result",
    "emit_ingest_event",
    "emit_prompt_event",
    "emit_quiz_batch_event",
    "emit_retriever_event",
    "emit_vectorstore_event",
    "log_event",
    "traced_duration",
]
