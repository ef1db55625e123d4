import asyncio
import random
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from conftest import FakeLLM, auth_headers, register
from quizcraft.core.document_store import InMemoryDocumentStore
from quizcraft.core.exceptions import PersistenceError, ValidationError
from quizcraft.core.quiz_session import QuizSession
from quizcraft.main import create_app
from quizcraft.routers.quiz import upload_quiz
from quizcraft.schemas import Quiz
from quizcraft.services.generation_service import QuizGenerationService

QUESTIONS = [
    {"question": "2 + 2?", "options": ["3", "4", "5", "22"], "correctAnswer": 1, "explanation": "Sum."},
    {"question": "Capital of France?", "options": ["Paris", "Rome", "Oslo", "Bern"], "correctAnswer": 0},
]


def save_quiz(client, headers, topic="Warmup", questions=QUESTIONS, time_limit=5):
    response = client.post(
        "/api/quiz",
        json={"topic": topic, "questions": questions, "timeLimit": time_limit},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    return response.json()


def record_attempt(client, headers, quiz, answers, score, time_taken=30):
    response = client.post(
        "/api/quiz/attempt",
        json={
            "quizId": quiz["id"],
            "topic": quiz["topic"],
            "answers": answers,
            "score": score,
            "totalQuestions": len(answers),
            "timeTaken": time_taken,
        },
        headers=headers,
    )
    assert response.status_code == 200, response.text
    return response.json()


def test_save_and_list_quizzes(client, headers):
    quiz = save_quiz(client, headers)

    assert quiz["id"]
    assert quiz["timeLimit"] == 5
    assert [q["id"] for q in quiz["questions"]] == ["q1", "q2"]
    assert quiz["questions"][1]["explanation"] == ""

    listed = client.get("/api/quiz", headers=headers).json()
    assert [q["id"] for q in listed] == [quiz["id"]]
    assert client.get(f"/api/quiz/{quiz['id']}", headers=headers).json()["topic"] == "Warmup"


def test_quizzes_are_private(client, headers):
    quiz = save_quiz(client, headers)
    other = auth_headers(register(client, email="bob@example.com", name="Bob")["token"])

    assert client.get("/api/quiz", headers=other).json() == []
    response = client.get(f"/api/quiz/{quiz['id']}", headers=other)
    assert response.status_code == 404
    assert response.json() == {"message": "Quiz not found"}


def test_save_quiz_rejects_malformed_questions(client, headers):
    bad = [{"question": "Q?", "options": ["a", "b"], "correctAnswer": 0}]
    response = client.post(
        "/api/quiz", json={"topic": "Bad", "questions": bad, "timeLimit": 5}, headers=headers
    )
    assert response.status_code == 422


def test_topics_are_public(client):
    response = client.get("/api/quiz/topics")
    assert response.status_code == 200
    assert "Data Structures" in response.json()["topics"]


def test_generate_falls_back_without_llm(client, headers):
    response = client.post(
        "/api/quiz/generate",
        json={"topic": "Operating Systems", "questionCount": 5, "timeLimit": 10, "difficulty": "hard"},
        headers=headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["source"] == "fallback"
    assert body["difficulty"] == "hard"
    assert len(body["questions"]) == 5


def test_generate_rejects_unsupported_count(client, headers):
    response = client.post(
        "/api/quiz/generate",
        json={"topic": "Operating Systems", "questionCount": 7, "timeLimit": 10},
        headers=headers,
    )
    assert response.status_code == 422


def test_generate_uses_llm_when_configured(settings):
    payload = (
        '```json\n{"questions": ['
        + ",".join(
            '{"question": "LLM %d?", "options": ["a","b","c","d"], "correctAnswer": 0}' % i
            for i in range(5)
        )
        + "]}\n```"
    )
    llm = FakeLLM(response=payload)
    app = create_app(settings, store=InMemoryDocumentStore(), llm_client=llm, configure_logging=False)

    with TestClient(app) as client:
        headers = auth_headers(register(client)["token"])
        response = client.post(
            "/api/quiz/generate",
            json={"topic": "Compilers", "questionCount": 5, "timeLimit": 5},
            headers=headers,
        )
        health = client.get("/health").json()

    assert response.json()["source"] == "llm"
    assert response.json()["questions"][4]["question"] == "LLM 4?"
    assert health["llm_configured"] is True


def test_upload_pdf_creates_saved_quiz(client, headers):
    response = client.post(
        "/api/quiz/upload",
        files={"file": ("lecture.pdf", b"%PDF-1.4 fake", "application/pdf")},
        headers=headers,
    )

    assert response.status_code == 200
    quiz = response.json()
    assert quiz["topic"] == "PDF: lecture.pdf"
    assert quiz["timeLimit"] == 30
    assert len(quiz["questions"]) == 10
    assert [q["id"] for q in client.get("/api/quiz", headers=headers).json()] == [quiz["id"]]


def test_upload_rejects_non_pdf(client, headers):
    response = client.post(
        "/api/quiz/upload",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=headers,
    )

    assert response.status_code == 400
    assert response.json() == {"message": "Please select a PDF file"}


def test_upload_rejects_oversized_file(settings):
    generation_service = QuizGenerationService(None, max_upload_bytes=16)
    app = create_app(
        settings, store=InMemoryDocumentStore(), generation_service=generation_service,
        configure_logging=False,
    )

    with TestClient(app) as client:
        headers = auth_headers(register(client)["token"])
        response = client.post(
            "/api/quiz/upload",
            files={"file": ("big.pdf", b"%PDF" + b"x" * 100, "application/pdf")},
            headers=headers,
        )
        listed = client.get("/api/quiz", headers=headers).json()

    assert response.status_code == 400
    assert response.json()["message"].startswith("File size must be less than")
    assert listed == []


def test_upload_reads_at_most_one_byte_past_limit():
    upload = MagicMock(filename="big.pdf", content_type="application/pdf")
    upload.read = AsyncMock(return_value=b"x" * 17)
    generation_service = QuizGenerationService(None, max_upload_bytes=16)

    with pytest.raises(ValidationError):
        asyncio.run(upload_quiz(
            file=upload, user_id="u1", generation_service=generation_service,
            quiz_service=MagicMock(),
        ))

    upload.read.assert_awaited_once_with(17)


def test_attempt_on_another_users_quiz_is_rejected(client, headers):
    quiz = save_quiz(client, headers)
    other = auth_headers(register(client, email="bob@example.com", name="Bob")["token"])

    response = client.post(
        "/api/quiz/attempt",
        json={"quizId": quiz["id"], "topic": "Warmup", "answers": [1, 0], "score": 2,
              "totalQuestions": 2, "timeTaken": 3},
        headers=other,
    )

    assert response.status_code == 404
    assert response.json() == {"message": "Quiz not found"}
    assert client.get("/api/quiz/attempts", headers=other).json() == []


def test_attempt_on_missing_quiz_is_kept(client, headers):
    attempt = record_attempt(client, headers, {"id": "gone", "topic": "Old quiz"}, [0], 1)

    history = client.get("/api/quiz/attempts", headers=headers).json()
    stats = client.get("/api/quiz/stats", headers=headers).json()

    assert [a["id"] for a in history] == [attempt["id"]]
    assert history[0]["quiz"] is None
    assert history[0]["topic"] == "Old quiz"
    assert stats["totalAttempts"] == 1


def test_attempt_rejects_inconsistent_payload(client, headers):
    quiz = save_quiz(client, headers)
    response = client.post(
        "/api/quiz/attempt",
        json={"quizId": quiz["id"], "topic": "Warmup", "answers": [0, 1], "score": 3,
              "totalQuestions": 2, "timeTaken": 3},
        headers=headers,
    )
    assert response.status_code == 422


def test_attempts_listed_newest_first_with_quiz(client, headers):
    first = save_quiz(client, headers, topic="First")
    second = save_quiz(client, headers, topic="Second")
    record_attempt(client, headers, first, [1, 0], 2)
    record_attempt(client, headers, second, [0, 0], 1)

    attempts = client.get("/api/quiz/attempts", headers=headers).json()

    assert [a["topic"] for a in attempts] == ["Second", "First"]
    assert attempts[0]["quiz"]["topic"] == "Second"
    assert len(attempts[1]["quiz"]["questions"]) == 2
    assert attempts[0]["completedAt"] >= attempts[1]["completedAt"]


def test_stats_for_new_user_are_empty(client, headers):
    response = client.get("/api/quiz/stats", headers=headers)

    assert response.status_code == 200
    assert response.json() == {
        "totalAttempts": 0,
        "averageScore": 0,
        "totalQuestions": 0,
        "totalTime": 0,
        "topics": [],
        "recentAttempts": [],
        "averagePercentage": 0.0,
        "bestPercentage": 0.0,
    }


def test_stats_aggregate_attempts(client, headers):
    quiz = save_quiz(client, headers)
    for _ in range(6):
        record_attempt(client, headers, quiz, [1, 1], 1, time_taken=10)

    stats = client.get("/api/quiz/stats", headers=headers).json()

    assert stats["totalAttempts"] == 6
    assert stats["averageScore"] == "1.00"
    assert stats["totalQuestions"] == 12
    assert stats["totalTime"] == 60
    assert stats["topics"] == ["Warmup"]
    assert len(stats["recentAttempts"]) == 5


def test_end_to_end_quiz_flow(client):
    headers = auth_headers(register(client)["token"])

    generated = QuizGenerationService(None, rng=random.Random(0)).generate_fallback(
        "Data Structures", 2, 5
    )
    saved = client.post(
        "/api/quiz",
        json={
            "topic": generated.topic,
            "questions": [q.model_dump() for q in generated.questions],
            "timeLimit": generated.timeLimit,
        },
        headers=headers,
    ).json()

    session = QuizSession(Quiz.model_validate(saved))
    for question in session.quiz.questions:
        session.select_answer(question.correctAnswer)
        session.advance()
    result = session.submit()

    assert result.score == 2
    assert result.totalQuestions == 2
    assert result.autoSubmitted is False

    attempt = client.post(
        "/api/quiz/attempt", json=result.to_attempt().model_dump(mode="json"), headers=headers
    ).json()
    assert attempt["score"] == 2
    assert attempt["totalQuestions"] == 2

    stats = client.get("/api/quiz/stats", headers=headers).json()
    assert stats["totalAttempts"] == 1
    assert stats["averageScore"] == "2.00"


class BrokenQuizStore(InMemoryDocumentStore):
    def insert(self, collection, document, owner=None, unique=None):
        if collection == "quizzes":
            raise PersistenceError("write failed", error="disk full")
        return super().insert(collection, document, owner=owner, unique=unique)


@pytest.fixture
def broken_client(settings):
    app = create_app(settings, store=BrokenQuizStore(), configure_logging=False)
    with TestClient(app) as test_client:
        yield test_client


def test_persistence_failure_is_reported(broken_client):
    headers = auth_headers(register(broken_client)["token"])
    response = broken_client.post(
        "/api/quiz", json={"topic": "X", "questions": QUESTIONS, "timeLimit": 5}, headers=headers
    )

    assert response.status_code == 500
    assert response.json() == {"message": "Failed to save quiz", "error": "disk full"}
