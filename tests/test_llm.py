"""Tests for generation backends and their factory."""
from __future__ import annotations

import pytest

from quizrag.config import reset_settings_cache
from quizrag.llm import LLMGenerationError, LLMTimeoutError, MockLLM, get_llm, reset_llm_cache
from quizrag.prompt_builder import build_quiz_prompt, build_targeted_prompt
from quizrag.quiz.models import QuestionMix
from quizrag.quiz.parser import parse_batch_result, parse_question_list


def test_mock_llm_echoes_prompt_prefix() -> None:
    llm = MockLLM()

    assert llm.generate("Explain osmosis") == "MOCK_ANSWER: Explain osmosis"
    assert llm.model_name == "mock"


def test_mock_llm_answers_quiz_batches_with_valid_json() -> None:
    prompt = build_quiz_prompt("Cells divide.", [3, 4], "", QuestionMix.for_pages(2, 1))

    result = parse_batch_result(MockLLM().generate(prompt), [3, 4])

    assert [question.type for question in result.questions] == ["mcq", "mcq", "saq", "laq"]
    assert all(question.page_numbers == [3, 4] for question in result.questions)
    assert len(result.questions[0].options) == 4
    assert result.summary


def test_mock_llm_answers_targeted_prompts_with_a_list() -> None:
    prompt = build_targeted_prompt("Enzymes lower activation energy.", "Catalysis", 3)

    questions = parse_question_list(MockLLM().generate(prompt))

    assert len(questions) == 3
    assert {question.topic for question in questions} == {"Catalysis"}


def test_get_llm_defaults_to_mock() -> None:
    assert isinstance(get_llm(), MockLLM)


def test_get_llm_rejects_unknown_provider(monkeypatch) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "openai")
    reset_settings_cache()
    reset_llm_cache()

    with pytest.raises(ValueError):
        get_llm()


class _FakeResponse:
    def __init__(self, text: str) -> None:
        self.text = text


class _FakeModel:
    def __init__(self, name: str, outcome) -> None:
        self.name = name
        self.outcome = outcome
        self.calls = []

    def generate_content(self, prompt, request_options=None):
        self.calls.append((prompt, request_options))
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return _FakeResponse(self.outcome)


@pytest.fixture
def fake_genai(monkeypatch):
    pytest.importorskip("google.generativeai")
    from quizrag.llm import gemini

    state = {"outcome": "generated text", "configured": None, "models": []}

    def configure(api_key):
        state["configured"] = api_key

    def generative_model(name):
        model = _FakeModel(name, state["outcome"])
        state["models"].append(model)
        return model

    monkeypatch.setattr(gemini.genai, "configure", configure)
    monkeypatch.setattr(gemini.genai, "GenerativeModel", generative_model)
    return state


def test_gemini_requires_api_key(fake_genai) -> None:
    from quizrag.llm.gemini import GeminiLLM

    with pytest.raises(ValueError):
        GeminiLLM("", "gemini-2.0-flash")


def test_gemini_passes_timeout_and_returns_text(fake_genai) -> None:
    from quizrag.llm.gemini import GeminiLLM

    llm = GeminiLLM("key", "gemini-2.0-flash", timeout_seconds=30)

    assert llm.generate("prompt") == "generated text"
    assert fake_genai["configured"] == "key"
    assert fake_genai["models"][0].calls == [("prompt", {"timeout": 30})]
    assert llm.model_name == "gemini-2.0-flash"


def test_gemini_deadline_maps_to_timeout(fake_genai) -> None:
    from google.api_core import exceptions as google_exceptions

    from quizrag.llm.gemini import GeminiLLM

    fake_genai["outcome"] = google_exceptions.DeadlineExceeded("too slow")
    llm = GeminiLLM("key", "gemini-2.0-flash")

    with pytest.raises(LLMTimeoutError):
        llm.generate("prompt")


@pytest.mark.parametrize("outcome", [RuntimeError("quota"), "   "])
def test_gemini_failures_map_to_generation_error(fake_genai, outcome) -> None:
    from quizrag.llm.gemini import GeminiLLM

    fake_genai["outcome"] = outcome
    llm = GeminiLLM("key", "gemini-2.0-flash")

    with pytest.raises(LLMGenerationError):
        llm.generate("prompt")
