"""Typed schema for quiz questions produced by the generation model."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

QuestionType = Literal["mcq", "saq", "laq"]
Difficulty = Literal["easy", "medium", "hard"]

MCQ_OPTION_COUNT = 4


class QuizQuestion(BaseModel):
    """A single generated question.

    Field names follow Python conventions; the camelCase names used on the
    wire (``correctAnswer``, ``pageNumbers``) are accepted as aliases and used
    when serialising with ``by_alias=True``.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    type: QuestionType
    question: str = Field(..., min_length=1)
    options: Optional[List[str]] = None
    correct_answer: str = Field(..., alias="correctAnswer")
    explanation: str = ""
    page_numbers: List[int] = Field(default_factory=list, alias="pageNumbers")
    difficulty: Difficulty = "medium"
    topic: str = ""

    @field_validator("type", "difficulty", mode="before")
    @classmethod
    def _lowercase(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @model_validator(mode="after")
    def _check_options(self) -> "QuizQuestion":
        if self.type == "mcq":
            if not self.options or len(self.options) != MCQ_OPTION_COUNT:
                raise ValueError(f"multiple choice questions need exactly {MCQ_OPTION_COUNT} options")
        else:
            self.options = None
        return self


class BatchQuizResult(BaseModel):
    """Output of one batch generation call."""

    questions: List[QuizQuestion]
    summary: str = ""
    topics: List[str] = Field(default_factory=list)


@dataclass(frozen=True, slots=True)
class QuestionMix:
    """How many questions of each type one batch should produce."""

    total: int
    mcq: int
    saq: int
    laq: int

    @classmethod
    def for_pages(cls, page_count: int, questions_per_page: float) -> "QuestionMix":
        # Roughly 60% multiple choice, 30% short answer, the rest long answer.
        total = math.ceil(page_count * questions_per_page)
        mcq = math.ceil(total * 0.6)
        saq = math.ceil(total * 0.3)
        laq = max(1, total - mcq - saq)
        return cls(total=total, mcq=mcq, saq=saq, laq=laq)


__all__ = [
    "BatchQuizResult",
    "Difficulty",
    "MCQ_OPTION_COUNT",
    "QuestionMix",
    "QuestionType",
    "QuizQuestion",
]
