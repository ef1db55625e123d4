from typing import List, Optional

import pytest
from fastapi.testclient import TestClient
from pydantic import SecretStr

from quizcraft.core.config import Settings
from quizcraft.core.document_store import InMemoryDocumentStore
from quizcraft.core.llm import LLMClient
from quizcraft.main import create_app
from quizcraft.schemas import Question, Quiz


def make_question(index: int, correct: int = 0) -> Question:
    return Question(
        id=f"q{index}",
        question=f"Question {index}?",
        options=["A", "B", "C", "D"],
        correctAnswer=correct,
        explanation=f"Because {index}.",
    )


def make_quiz(correct_answers: List[int], time_limit: int = 1, quiz_id: str = "quiz-1") -> Quiz:
    return Quiz(
        id=quiz_id,
        userId="user-1",
        topic="Testing",
        questions=[make_question(i, c) for i, c in enumerate(correct_answers, start=1)],
        timeLimit=time_limit,
    )


class FakeLLM:
    """Stands in for LLMClient; returns a canned completion or raises."""

    def __init__(self, response: Optional[str] = None, error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.calls = []

    @property
    def is_configured(self) -> bool:
        return True

    async def complete(self, messages):
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return self.response

    async def close(self):
        pass


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        JWT_SECRET=SecretStr("test-secret"),
        LLM_API_KEY=None,
        REDIS_ENABLED=False,
        API_BASE_URL="http://testserver/api",
    )


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def app(settings, store):
    return create_app(settings, store=store, llm_client=LLMClient(settings), configure_logging=False)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def register(client, email="ada@example.com", name="Ada", password="secret1"):
    response = client.post(
        "/api/auth/register", json={"name": name, "email": email, "password": password}
    )
    assert response.status_code == 200, response.text
    return response.json()


def auth_headers(token: str):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def token(client):
    return register(client)["token"]


@pytest.fixture
def headers(token):
    return auth_headers(token)
