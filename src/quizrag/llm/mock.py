"""Mock LLM for offline development.

Quiz prompts get a small, schema-valid JSON reply so the quiz endpoints
produce questions without a hosted model; any other prompt is echoed.
"""
from __future__ import annotations

import json
import re
from typing import Any, Dict, List

from .base import LLM

_BATCH_TOTAL_RE = re.compile(r"Generate (\d+) high-quality quiz questions")
_BATCH_PAGES_RE = re.compile(r"Current content from pages ([\d, ]+):")
_MIX_RE = re.compile(r"- (\d+) (Multiple Choice|Short Answer|Long Answer) Questions")
_TARGETED_RE = re.compile(r'Generate (\d+) quiz questions about "([^"]*)"')

_MIX_TYPES = {"Multiple Choice": "mcq", "Short Answer": "saq", "Long Answer": "laq"}


def _question(kind: str, number: int, topic: str, page_numbers: List[int]) -> Dict[str, Any]:
    question: Dict[str, Any] = {
        "type": kind,
        "question": f"Mock {kind.upper()} question {number} about {topic}?",
        "correctAnswer": "A) Mock answer" if kind == "mcq" else "Mock answer.",
        "explanation": "Generated by the mock backend.",
        "pageNumbers": page_numbers,
        "difficulty": "medium",
        "topic": topic,
    }
    if kind == "mcq":
        question["options"] = ["A) Mock answer", "B) Distractor", "C) Distractor", "D) Distractor"]
    return question


class MockLLM(LLM):
    """Return a deterministic response for any prompt."""

    def generate(self, prompt: str) -> str:
        targeted = _TARGETED_RE.search(prompt)
        if targeted:
            count, topic = int(targeted.group(1)), targeted.group(2)
            return json.dumps([_question("saq", number, topic, []) for number in range(1, count + 1)])

        if _BATCH_TOTAL_RE.search(prompt):
            pages_match = _BATCH_PAGES_RE.search(prompt)
            pages = [int(value) for value in re.findall(r"\d+", pages_match.group(1))] if pages_match else []
            kinds = [
                _MIX_TYPES[label]
                for amount, label in _MIX_RE.findall(prompt)
                for _ in range(int(amount))
            ]
            topic = f"pages {', '.join(str(page) for page in pages)}" if pages else "the document"
            payload = {
                "questions": [_question(kind, number, topic, pages) for number, kind in enumerate(kinds, start=1)],
                "summary": f"Mock summary of {topic}.",
                "topics": [topic],
            }
            return json.dumps(payload)

        return f"MOCK_ANSWER: {prompt[:100]}"

    @property
    def model_name(self) -> str:
        return "mock"
