"""HTTP-level tests for the quiz and chat routers."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import ScriptedLLM, batch_response, make_pdf
from quizrag.main import app
from quizrag.quiz.generator import QuizGenerator
from quizrag.services import QuizService, get_chat_service, get_quiz_service
from quizrag.vectorstore import VectorStoreUnavailableError


@pytest.fixture
def quiz_llm() -> ScriptedLLM:
    return ScriptedLLM()


@pytest.fixture
def client(quiz_llm, chat_service):
    quiz_service = QuizService(generator=QuizGenerator(quiz_llm, inter_batch_delay=0))
    app.dependency_overrides[get_quiz_service] = lambda: quiz_service
    app.dependency_overrides[get_chat_service] = lambda: chat_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _pdf_upload(pages, filename: str = "lecture.pdf"):
    return {"pdf": (filename, make_pdf(pages), "application/pdf")}


def test_health(client) -> None:
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_generate_quiz_returns_questions_and_breakdown(client, quiz_llm) -> None:
    quiz_llm.responses = [batch_response("first part"), RuntimeError("rate limited")]

    response = client.post(
        "/api/quiz/generate",
        files=_pdf_upload(["Page one text.", "Page two text.", "Page three text."]),
        data={"batch_size": "2", "questions_per_page": "1"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert payload["totalPages"] == 3
    assert payload["batchesProcessed"] == 2
    assert payload["totalQuestions"] == 3
    assert payload["breakdown"] == {"mcq": 1, "saq": 1, "laq": 1}
    first = payload["questions"][0]
    assert first["id"].startswith("q_1_1_")
    assert first["correctAnswer"] == "A) First"
    assert first["pageNumbers"] == [1, 2]
    assert len(first["options"]) == 4


def test_generate_quiz_rejects_non_pdf(client) -> None:
    response = client.post(
        "/api/quiz/generate",
        files={"pdf": ("notes.pdf", b"hello", "application/pdf")},
    )

    assert response.status_code == 422


def test_generate_quiz_rejects_bad_batch_size(client) -> None:
    response = client.post(
        "/api/quiz/generate",
        files=_pdf_upload(["Some text."]),
        data={"batch_size": "0"},
    )

    assert response.status_code == 400


def test_upload_then_query(client, scripted_llm) -> None:
    long_page = " ".join(f"enzyme{index}" for index in range(150))
    upload = client.post("/api/chat/upload", files=_pdf_upload([long_page], "Enzymes.pdf"))

    assert upload.status_code == 200
    uploaded = upload.json()
    assert uploaded["namespace"] == "Enzymes_1700000000000"
    assert uploaded["totalChunks"] == 1
    assert uploaded["fileId"] == "1700000000000-Enzymes.pdf"
    assert uploaded["message"] == "Successfully uploaded 1 out of 1 chunks"

    scripted_llm.responses = ["Enzymes speed up reactions."]
    query = client.post(
        "/api/chat/query",
        json={"query": "What do enzyme1 and enzyme2 do?", "namespace": uploaded["namespace"]},
    )

    assert query.status_code == 200
    answer = query.json()
    assert answer == {
        "success": True,
        "query": "What do enzyme1 and enzyme2 do?",
        "namespace": "Enzymes_1700000000000",
        "answer": "Enzymes speed up reactions.",
        "confidence": answer["confidence"],
        "sources": ["Enzymes.pdf"],
    }
    assert answer["confidence"] in {"high", "medium", "low"}

    namespaces = client.get("/api/chat/namespaces").json()["namespaces"]
    assert namespaces == [
        {"name": "Enzymes_1700000000000", "displayName": "Enzymes 1700000000000", "vectorCount": 1}
    ]

    conversation = client.get(f"/api/chat/conversations/{uploaded['namespace']}").json()["conversation"]
    assert [message["type"] for message in conversation["messages"]] == ["user", "bot"]

    pdf = client.get(f"/api/chat/pdf/{uploaded['namespace']}")
    assert pdf.json()["url"] == "/uploads/Enzymes_1700000000000/Enzymes.pdf"


@pytest.mark.parametrize("body", [{"query": "", "namespace": "ns"}, {"query": "hi"}])
def test_query_requires_query_and_namespace(client, body) -> None:
    response = client.post("/api/chat/query", json=body)

    assert response.status_code == 400


def test_query_reports_unavailable_vector_store(client, vector_store, monkeypatch) -> None:
    def unavailable(*args, **kwargs):
        raise VectorStoreUnavailableError("chroma offline")

    monkeypatch.setattr(vector_store, "query", unavailable)

    response = client.post("/api/chat/query", json={"query": "hi", "namespace": "ns"})

    assert response.status_code == 503


def test_query_reports_generation_failure(client, scripted_llm) -> None:
    scripted_llm.responses = [RuntimeError("model offline")]

    response = client.post("/api/chat/query", json={"query": "hi", "namespace": "ns"})

    assert response.status_code == 502
    assert "answer" not in response.json()


def test_conversation_crud(client) -> None:
    created = client.post(
        "/api/chat/conversations",
        json={"namespace": "bio_1", "filename": "bio.pdf", "title": "Biology"},
    )
    assert created.status_code == 200
    conversation = created.json()["conversation"]
    assert conversation["title"] == "Biology"
    assert conversation["isActive"] is True

    listed = client.get("/api/chat/conversations").json()["conversations"]
    assert [item["id"] for item in listed] == [conversation["id"]]

    assert client.delete(f"/api/chat/conversations/{conversation['id']}").json() == {"success": True}
    assert client.delete(f"/api/chat/conversations/{conversation['id']}").status_code == 404
    assert client.get("/api/chat/conversations/bio_1").status_code == 404


def test_pdf_url_unknown_namespace(client) -> None:
    assert client.get("/api/chat/pdf/unknown").status_code == 404


def test_query_succeeds_when_history_file_is_unreadable(tmp_path) -> None:
    history_path = tmp_path / "data" / "conversations.json"
    history_path.parent.mkdir(parents=True, exist_ok=True)
    history_path.write_text("{not json", encoding="utf-8")

    response = TestClient(app).post("/api/chat/query", json={"query": "What?", "namespace": "ns"})

    assert response.status_code == 200
    assert response.json()["confidence"] == "low"


def test_default_mock_backend_generates_questions() -> None:
    response = TestClient(app).post(
        "/api/quiz/generate",
        files=_pdf_upload(["Page one text.", "Page two text."]),
        data={"questions_per_page": "1"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["batchesProcessed"] == 1
    assert payload["totalQuestions"] == 4
    assert payload["breakdown"] == {"mcq": 2, "saq": 1, "laq": 1}
    assert payload["questions"][0]["pageNumbers"] == [1, 2]
