"""Quiz schema, model-output parsing and batch generation."""

from .generator import QuizGenerator, QuizRunResult, QuizRunState
from .models import BatchQuizResult, QuestionMix, QuizQuestion
from .parser import parse_batch_result, parse_question_list, strip_code_fence

__all__ = [
    "BatchQuizResult",
    "QuestionMix",
    "QuizGenerator",
    "QuizQuestion",
    "QuizRunResult",
    "QuizRunState",
    "parse_batch_result",
    "parse_question_list",
    "strip_code_fence",
]
