"""Sequential, summary-carrying quiz generation over page batches."""
from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Sequence

from quizrag.errors import GenerationParseFailed, InvalidArgument
from quizrag.ingest.batching import batch_page_numbers, batch_text, group_into_batches
from quizrag.ingest.models import Batch, Page
from quizrag.llm.base import LLM, LLMError
from quizrag.prompt_builder import build_quiz_prompt, build_targeted_prompt
from quizrag.telemetry import (
    emit_exception,
    emit_inference_request,
    emit_inference_result,
    emit_prompt_event,
    emit_quiz_batch_event,
    log_event,
)

from .models import BatchQuizResult, QuestionMix, QuizQuestion
from .parser import parse_batch_result, parse_question_list

LOGGER = logging.getLogger(__name__)

DEFAULT_INTER_BATCH_DELAY = 2.0


def _epoch_ms() -> int:
    return int(time.time() * 1000)


@dataclass(slots=True)
class QuizRunState:
    """Accumulator threaded through the batch fold."""

    questions: List[QuizQuestion] = field(default_factory=list)
    carry_summary: str = ""
    batch_index: int = 0
    failed_batches: List[int] = field(default_factory=list)


@dataclass(slots=True)
class QuizRunResult:
    """Structured result returned from :meth:`QuizGenerator.run`."""

    questions: List[QuizQuestion]
    total_pages: int
    batches_processed: int
    failed_batches: List[int]
    summary: str

    @property
    def breakdown(self) -> Dict[str, int]:
        counts = {"mcq": 0, "saq": 0, "laq": 0}
        for question in self.questions:
            counts[question.type] += 1
        return counts


class QuizGenerator:
    """Drive page batches through the generation backend one at a time.

    Each batch prompt carries the summary returned for the previous
    successful batch. A batch whose call or parse fails is logged and
    skipped; the run always completes with whatever was generated.
    """

    def __init__(
        self,
        llm: LLM,
        *,
        questions_per_page: float = 2,
        inter_batch_delay: float = DEFAULT_INTER_BATCH_DELAY,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], int] = _epoch_ms,
    ) -> None:
        if questions_per_page <= 0:
            raise InvalidArgument("questions_per_page must be positive")
        self._llm = llm
        self._questions_per_page = questions_per_page
        self._inter_batch_delay = inter_batch_delay
        self._sleep = sleep
        self._clock = clock

    def generate_batch(
        self,
        batch: Batch,
        previous_summary: str = "",
        questions_per_page: float | None = None,
    ) -> BatchQuizResult:
        """Generate and validate questions for a single batch, raising on failure."""

        if not batch:
            raise InvalidArgument("batch must hold at least one page")
        page_numbers = batch_page_numbers(batch)
        mix = QuestionMix.for_pages(len(batch), questions_per_page or self._questions_per_page)
        prompt = build_quiz_prompt(batch_text(batch), page_numbers, previous_summary, mix)
        emit_prompt_event(kind="quiz.batch", prompt_len=len(prompt))

        raw = self._call_llm(prompt)
        result = parse_batch_result(raw, page_numbers)

        generated_at = self._clock()
        result.questions = [
            question.model_copy(update={"id": f"q_{page_numbers[0]}_{index}_{generated_at}"})
            for index, question in enumerate(result.questions, start=1)
        ]
        return result

    def step(
        self,
        state: QuizRunState,
        batch: Batch,
        batch_count: int,
        questions_per_page: float | None = None,
    ) -> QuizRunState:
        """Fold one batch into *state*; a failed batch leaves the summary unchanged."""

        page_numbers = batch_page_numbers(batch)
        emit_quiz_batch_event(
            "quiz.batch.start",
            batch_index=state.batch_index,
            batch_count=batch_count,
            page_numbers=page_numbers,
        )
        try:
            result = self.generate_batch(batch, state.carry_summary, questions_per_page)
        except Exception as error:
            emit_quiz_batch_event(
                "quiz.batch.skipped",
                batch_index=state.batch_index,
                batch_count=batch_count,
                page_numbers=page_numbers,
                error=error,
            )
            return QuizRunState(
                questions=state.questions,
                carry_summary=state.carry_summary,
                batch_index=state.batch_index + 1,
                failed_batches=[*state.failed_batches, state.batch_index],
            )

        emit_quiz_batch_event(
            "quiz.batch.complete",
            batch_index=state.batch_index,
            batch_count=batch_count,
            page_numbers=page_numbers,
            questions=len(result.questions),
            summary_preview=result.summary,
        )
        return QuizRunState(
            questions=[*state.questions, *result.questions],
            carry_summary=result.summary,
            batch_index=state.batch_index + 1,
            failed_batches=state.failed_batches,
        )

    def run(
        self,
        pages: Sequence[Page],
        batch_size: int,
        questions_per_page: float | None = None,
    ) -> QuizRunResult:
        if questions_per_page is not None and questions_per_page <= 0:
            raise InvalidArgument("questions_per_page must be positive")
        batches = group_into_batches(pages, batch_size)
        log_event(
            LOGGER,
            "quiz.run.start",
            details={"pages": len(pages), "batches": len(batches), "batch_size": batch_size},
        )
        started = time.perf_counter()

        state = QuizRunState()
        for index, batch in enumerate(batches):
            state = self.step(state, batch, len(batches), questions_per_page)
            if index < len(batches) - 1 and self._inter_batch_delay > 0:
                self._sleep(self._inter_batch_delay)

        result = QuizRunResult(
            questions=state.questions,
            total_pages=len(pages),
            batches_processed=len(batches),
            failed_batches=state.failed_batches,
            summary=state.carry_summary,
        )
        log_event(
            LOGGER,
            "quiz.run.complete",
            duration_ms=(time.perf_counter() - started) * 1000.0,
            details={
                "questions": len(result.questions),
                "failed_batches": [index + 1 for index in result.failed_batches],
                "breakdown": result.breakdown,
            },
        )
        return result

    def generate_targeted(self, context: str, topic: str, count: int = 5) -> List[QuizQuestion]:
        """Generate ``count`` questions about ``topic`` from free-form context."""

        if count <= 0:
            raise InvalidArgument("count must be a positive integer")
        if not topic or not topic.strip():
            raise InvalidArgument("topic is required")

        prompt = build_targeted_prompt(context, topic, count)
        emit_prompt_event(kind="quiz.targeted", prompt_len=len(prompt))
        try:
            raw = self._call_llm(prompt)
        except LLMError as error:
            emit_exception(module=f"{__name__}.targeted", error=error)
            raise GenerationParseFailed("Failed to generate targeted questions", cause=error) from error

        questions = parse_question_list(raw)
        generated_at = self._clock()
        return [
            question.model_copy(update={"id": f"q_targeted_{index}_{generated_at}"})
            for index, question in enumerate(questions, start=1)
        ]

    def _call_llm(self, prompt: str) -> str:
        req_id = uuid.uuid4().hex
        model = self._llm.model_name
        emit_inference_request(req_id=req_id, model=model, prompt_preview=prompt, prompt_len=len(prompt))
        started = time.perf_counter()
        try:
            text = self._llm.generate(prompt)
        except Exception as error:
            emit_inference_result(
                req_id=req_id,
                model=model,
                duration_ms=(time.perf_counter() - started) * 1000.0,
                answer_preview="",
                error=error,
            )
            raise
        emit_inference_result(
            req_id=req_id,
            model=model,
            duration_ms=(time.perf_counter() - started) * 1000.0,
            answer_preview=text,
        )
        return text


__all__ = ["QuizGenerator", "QuizRunResult", "QuizRunState"]
