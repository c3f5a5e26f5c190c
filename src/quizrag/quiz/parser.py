"""Parsing of raw model output into validated quiz structures."""
from __future__ import annotations

import json
import logging
from typing import Any, List, Sequence

from pydantic import TypeAdapter, ValidationError

from quizrag.errors import GenerationParseFailed

from .models import BatchQuizResult, QuizQuestion

LOGGER = logging.getLogger(__name__)

_QUESTION_LIST = TypeAdapter(List[QuizQuestion])


def strip_code_fence(text: str) -> str:
    """Remove a leading ```json / ``` fence and a trailing ``` fence."""

    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[len("```json") :]
    elif cleaned.startswith("```"):
        cleaned = cleaned[len("```") :]
    else:
        return cleaned
    cleaned = cleaned.strip()
    if cleaned.endswith("```"):
        cleaned = cleaned[: -len("```")]
    return cleaned.strip()


def _load_json(text: str) -> Any:
    try:
        return json.loads(strip_code_fence(text))
    except json.JSONDecodeError as error:
        raise GenerationParseFailed(f"Model output is not valid JSON: {error.msg}", cause=error) from error


def _fill_page_numbers(payload: Any, page_numbers: Sequence[int]) -> None:
    if not page_numbers or not isinstance(payload, list):
        return
    for item in payload:
        if isinstance(item, dict) and not item.get("pageNumbers") and not item.get("page_numbers"):
            item["pageNumbers"] = list(page_numbers)


def parse_batch_result(text: str, page_numbers: Sequence[int] = ()) -> BatchQuizResult:
    """Validate a batch response; questions without pages inherit the batch pages."""

    payload = _load_json(text)
    if isinstance(payload, dict):
        _fill_page_numbers(payload.get("questions"), page_numbers)
    try:
        return BatchQuizResult.model_validate(payload)
    except ValidationError as error:
        LOGGER.debug("Rejected batch payload: %s", error)
        raise GenerationParseFailed(
            f"Model output does not match the quiz schema ({error.error_count()} errors)",
            cause=error,
        ) from error


def parse_question_list(text: str) -> List[QuizQuestion]:
    """Validate a response holding a bare JSON array of questions."""

    payload = _load_json(text)
    try:
        return _QUESTION_LIST.validate_python(payload)
    except ValidationError as error:
        raise GenerationParseFailed(
            f"Model output does not match the question list schema ({error.error_count()} errors)",
            cause=error,
        ) from error


__all__ = ["parse_batch_result", "parse_question_list", "strip_code_fence"]
