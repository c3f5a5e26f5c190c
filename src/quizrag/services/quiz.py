"""Quiz generation from an uploaded PDF."""
from __future__ import annotations

import logging

from quizrag.errors import InvalidArgument
from quizrag.ingest.pipeline import IngestPipeline
from quizrag.quiz.generator import QuizGenerator, QuizRunResult
from quizrag.telemetry import traced_duration

LOGGER = logging.getLogger(__name__)
AUDIT_LOGGER = logging.getLogger("quizrag.audit")


class QuizService:
    """Extract pages from a document and run batched quiz generation over them."""

    def __init__(
        self,
        *,
        generator: QuizGenerator,
        pipeline: IngestPipeline | None = None,
        batch_size: int = 3,
        questions_per_page: float = 2,
    ) -> None:
        self.generator = generator
        self.pipeline = pipeline or IngestPipeline()
        self._batch_size = batch_size
        self._questions_per_page = questions_per_page

    def generate(
        self,
        data: bytes,
        filename: str,
        *,
        batch_size: int | None = None,
        questions_per_page: float | None = None,
    ) -> QuizRunResult:
        if not data:
            raise InvalidArgument("No PDF file uploaded")

        effective_batch_size = self._batch_size if batch_size is None else batch_size
        effective_questions = self._questions_per_page if questions_per_page is None else questions_per_page
        LOGGER.info(
            "Starting quiz generation for %s: %s questions/page, batch size %s",
            filename,
            effective_questions,
            effective_batch_size,
        )

        with traced_duration("quiz.extract", logger=LOGGER, file=filename, size_bytes=len(data)):
            pages = self.pipeline.extract_pages(data)

        result = self.generator.run(pages, effective_batch_size, effective_questions)
        AUDIT_LOGGER.info(
            {
                "event": "quiz",
                "file_name": filename,
                "pages": result.total_pages,
                "questions": len(result.questions),
                "failed_batches": len(result.failed_batches),
            }
        )
        return result


__all__ = ["QuizService"]
