"""API router exposing batched quiz generation."""
from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel, ConfigDict, Field
from starlette.concurrency import run_in_threadpool

from quizrag.errors import ExtractionFailed, InvalidArgument
from quizrag.quiz.models import QuizQuestion
from quizrag.services import QuizService, get_quiz_service

router = APIRouter(prefix="/api/quiz", tags=["quiz"])

MAX_UPLOAD_BYTES = 10 * 1024 * 1024


class QuizBreakdown(BaseModel):
    mcq: int
    saq: int
    laq: int


class QuizResponse(BaseModel):
    """Response body returned from the quiz generation endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    total_questions: int = Field(..., alias="totalQuestions")
    total_pages: int = Field(..., alias="totalPages")
    batches_processed: int = Field(..., alias="batchesProcessed")
    questions: list[QuizQuestion]
    breakdown: QuizBreakdown


@router.post("/generate", response_model=QuizResponse)
async def generate_quiz(
    pdf: UploadFile = File(...),
    questions_per_page: float | None = Form(None),
    batch_size: int | None = Form(None),
    quiz_service: QuizService = Depends(get_quiz_service),
) -> QuizResponse:
    """Generate a quiz from an uploaded PDF, one page batch at a time."""

    data = await pdf.read()
    if not data:
        raise HTTPException(status_code=400, detail="No PDF file uploaded")
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="PDF exceeds the 10 MB upload limit")

    try:
        result = await run_in_threadpool(
            quiz_service.generate,
            data,
            pdf.filename or "upload.pdf",
            batch_size=batch_size,
            questions_per_page=questions_per_page,
        )
    except InvalidArgument as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ExtractionFailed as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    return QuizResponse(
        total_questions=len(result.questions),
        total_pages=result.total_pages,
        batches_processed=result.batches_processed,
        questions=result.questions,
        breakdown=QuizBreakdown(**result.breakdown),
    )
