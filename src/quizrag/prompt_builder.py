"""Utilities for constructing prompts for quiz generation and document Q&A."""
from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Sequence

from quizrag.vectorstore.models import RetrievalMatch

if TYPE_CHECKING:  # pragma: no cover - import for typing only
    from quizrag.quiz.models import QuestionMix

_PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"
_QUIZ_BATCH_PATH = _PROMPTS_DIR / "quiz_batch.md"
_TARGETED_PATH = _PROMPTS_DIR / "targeted.md"
_ANSWER_PATH = _PROMPTS_DIR / "answer.md"

NO_CONTEXT_TEXT = "No matching excerpts were found in the document."


def _load_template(path: Path) -> str:
    """Read and trim the contents of a template file."""
    return path.read_text(encoding="utf-8").strip()


_QUIZ_BATCH_TEMPLATE = _load_template(_QUIZ_BATCH_PATH)
_TARGETED_TEMPLATE = _load_template(_TARGETED_PATH)
_ANSWER_TEMPLATE = _load_template(_ANSWER_PATH)


def build_quiz_prompt(
    batch_text: str,
    page_numbers: Sequence[int],
    previous_summary: str,
    mix: QuestionMix,
) -> str:
    """Compose the prompt for one page batch, carrying the previous summary."""

    summary_block = ""
    if previous_summary:
        summary_block = f"Previous context summary:\n{previous_summary}\n\n"

    return _QUIZ_BATCH_TEMPLATE.format(
        summary_block=summary_block,
        page_list=", ".join(str(number) for number in page_numbers),
        batch_text=batch_text,
        total=mix.total,
        mcq=mix.mcq,
        saq=mix.saq,
        laq=mix.laq,
    )


def build_targeted_prompt(context: str, topic: str, count: int) -> str:
    """Compose the prompt asking for ``count`` questions about ``topic``."""

    return _TARGETED_TEMPLATE.format(context=context.strip(), topic=topic.strip(), count=count)


def build_answer_prompt(question: str, matches: Sequence[RetrievalMatch]) -> str:
    """Compose the grounded answer prompt from the selected context window."""

    if question is None:
        raise ValueError("question must not be None")

    sections: list[str] = []
    for match in matches:
        content = match.text.strip()
        if not content:
            continue
        source = match.filename or "document"
        if match.page_numbers:
            pages = ", ".join(str(number) for number in match.page_numbers)
            source = f"{source}, pages {pages}"
        sections.append(f"[{source}]\n{content}")

    context_block = "\n\n".join(sections) if sections else NO_CONTEXT_TEXT
    return _ANSWER_TEMPLATE.format(context_block=context_block, question=question.strip())


__all__ = ["NO_CONTEXT_TEXT", "build_answer_prompt", "build_quiz_prompt", "build_targeted_prompt"]
