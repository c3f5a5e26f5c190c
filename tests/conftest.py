"""Shared fixtures: isolated configuration, scripted LLMs and generated PDFs."""
from __future__ import annotations

import json
from typing import Iterable, List, Sequence

import pytest

from quizrag.config import reset_settings_cache
from quizrag.embeddings import HashEmbedder, reset_embedder_cache
from quizrag.history import JsonConversationStore
from quizrag.ingest.models import Page
from quizrag.llm import LLM, reset_llm_cache
from quizrag.services import reset_service_caches
from quizrag.services.answer import AnswerService
from quizrag.services.chat import ChatService
from quizrag.storage import LocalFileStorage
from quizrag.vectorstore import InMemoryVectorStore, reset_vector_store_cache


def _reset_caches() -> None:
    reset_settings_cache()
    reset_embedder_cache()
    reset_vector_store_cache()
    reset_llm_cache()
    reset_service_caches()


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("HISTORY_PATH", str(tmp_path / "data" / "conversations.json"))
    monkeypatch.setenv("VECTOR_STORE", "mock")
    monkeypatch.setenv("EMBEDDER", "hash")
    monkeypatch.setenv("LLM_PROVIDER", "mock")
    monkeypatch.setenv("QUIZ_INTER_BATCH_DELAY", "0")
    _reset_caches()
    yield
    _reset_caches()


class ScriptedLLM(LLM):
    """Replays canned responses in order; exceptions in the script are raised."""

    def __init__(self, responses: Iterable[object] = (), default: str = "A grounded answer.") -> None:
        self.responses: List[object] = list(responses)
        self.default = default
        self.prompts: List[str] = []

    @property
    def model_name(self) -> str:
        return "scripted"

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        item = self.responses.pop(0) if self.responses else self.default
        if isinstance(item, BaseException):
            raise item
        return str(item)


def question_payload(kind: str = "mcq", text: str = "What is covered?") -> dict:
    payload = {
        "type": kind,
        "question": text,
        "correctAnswer": "A) First",
        "explanation": "Because the page says so.",
        "difficulty": "easy",
        "topic": "Basics",
    }
    if kind == "mcq":
        payload["options"] = ["A) First", "B) Second", "C) Third", "D) Fourth"]
    return payload


def batch_response(summary: str, kinds: Sequence[str] = ("mcq", "saq", "laq"), *, fenced: bool = False) -> str:
    body = json.dumps(
        {
            "questions": [question_payload(kind, f"Question {index}?") for index, kind in enumerate(kinds, 1)],
            "summary": summary,
            "topics": ["Basics"],
        },
        indent=2,
    )
    if fenced:
        return f"```json\n{body}\n```"
    return body


def make_pages(word_counts: Sequence[int]) -> List[Page]:
    return [
        Page.from_text(number, " ".join(f"word{number}x{index}" for index in range(count)))
        for number, count in enumerate(word_counts, start=1)
    ]


def _escape_pdf_text(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def make_pdf(page_texts: Sequence[str]) -> bytes:
    """Build a minimal PDF whose pages carry the given text in Helvetica."""

    page_ids = [4 + 2 * index for index in range(len(page_texts))]
    kids = " ".join(f"{page_id} 0 R" for page_id in page_ids)
    objects: List[bytes] = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {len(page_texts)} >>".encode("ascii"),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for page_id, text in zip(page_ids, page_texts):
        objects.append(
            (
                "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Resources << /Font << /F1 3 0 R >> >> /Contents {page_id + 1} 0 R >>"
            ).encode("ascii")
        )
        stream = f"BT /F1 12 Tf 72 720 Td ({_escape_pdf_text(text)}) Tj ET".encode("latin-1")
        objects.append(b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream")

    output = bytearray(b"%PDF-1.4\n")
    offsets: List[int] = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(output))
        output += b"%d 0 obj\n" % number + body + b"\nendobj\n"
    xref_offset = len(output)
    output += b"xref\n0 %d\n" % (len(objects) + 1)
    output += b"0000000000 65535 f \n"
    for offset in offsets:
        output += b"%010d 00000 n \n" % offset
    output += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref_offset)
    return bytes(output)


@pytest.fixture
def scripted_llm() -> ScriptedLLM:
    return ScriptedLLM()


@pytest.fixture
def vector_store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture
def history(tmp_path) -> JsonConversationStore:
    return JsonConversationStore(tmp_path / "history" / "conversations.json")


@pytest.fixture
def storage(tmp_path) -> LocalFileStorage:
    return LocalFileStorage(tmp_path / "files")


@pytest.fixture
def chat_service(scripted_llm, vector_store, history, storage) -> ChatService:
    embedder = HashEmbedder()
    answer_service = AnswerService(embedder=embedder, vector_store=vector_store, llm=scripted_llm)
    clock = iter(range(1_700_000_000_000, 1_700_000_001_000))
    return ChatService(
        embedder=embedder,
        vector_store=vector_store,
        answer_service=answer_service,
        history=history,
        storage=storage,
        clock=lambda: next(clock),
    )
