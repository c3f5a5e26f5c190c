"""Google Gemini generation backend."""
from __future__ import annotations

import logging

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from .base import LLM, LLMGenerationError, LLMTimeoutError

LOGGER = logging.getLogger(__name__)


class GeminiLLM(LLM):
    """Blocking Gemini client with an explicit per-request timeout."""

    def __init__(self, api_key: str, model: str, *, timeout_seconds: float = 120.0) -> None:
        if not api_key:
            raise ValueError("GEMINI_API_KEY must be set to use the Gemini provider")
        genai.configure(api_key=api_key)
        self._model_name = model
        self._timeout_seconds = timeout_seconds
        self._model = genai.GenerativeModel(model)

    @property
    def model_name(self) -> str:
        return self._model_name

    def generate(self, prompt: str) -> str:
        try:
            response = self._model.generate_content(
                prompt,
                request_options={"timeout": self._timeout_seconds},
            )
            text = response.text
        except google_exceptions.DeadlineExceeded as error:
            raise LLMTimeoutError(
                f"Gemini did not answer within {self._timeout_seconds:.0f}s"
            ) from error
        except Exception as error:
            LOGGER.warning("Gemini generation failed: %s: %s", type(error).__name__, error)
            raise LLMGenerationError(f"Gemini generation failed: {error}") from error

        if not text or not text.strip():
            raise LLMGenerationError("Gemini returned an empty response")
        return text
