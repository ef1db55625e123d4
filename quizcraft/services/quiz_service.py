import logging
from typing import List

from quizcraft.core.document_store import DocumentStore
from quizcraft.core.exceptions import NotFoundError, PersistenceError
from quizcraft.schemas.quiz import Question, Quiz, utcnow

logger = logging.getLogger(__name__)

QUIZZES = "quizzes"


class QuizService:
    """Stores quizzes under their owning user."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def save(self, user_id: str, topic: str, questions: List[Question], time_limit: int) -> Quiz:
        numbered = [
            q if q.id else q.model_copy(update={"id": f"q{i}"})
            for i, q in enumerate(questions, start=1)
        ]
        document = {
            "userId": user_id,
            "topic": topic.strip(),
            "questions": [q.model_dump(mode="json") for q in numbered],
            "timeLimit": time_limit,
            "createdAt": utcnow().isoformat(),
        }
        try:
            stored = self.store.insert(QUIZZES, document, owner=user_id)
        except PersistenceError as e:
            raise PersistenceError("Failed to save quiz", error=e.error) from e

        quiz = Quiz.model_validate(stored)
        logger.info("Saved quiz %s (%d questions) for user %s", quiz.id, len(quiz.questions), user_id)
        return quiz

    def list(self, user_id: str) -> List[Quiz]:
        try:
            documents = self.store.find_by_owner(QUIZZES, user_id)
        except PersistenceError as e:
            raise PersistenceError("Failed to fetch quizzes", error=e.error) from e
        return [Quiz.model_validate(doc) for doc in documents]

    def find(self, quiz_id: str) -> Quiz | None:
        """Load a quiz regardless of owner; None when it does not exist."""
        try:
            document = self.store.get(QUIZZES, quiz_id)
        except PersistenceError as e:
            raise PersistenceError("Failed to fetch quiz", error=e.error) from e
        return Quiz.model_validate(document) if document else None

    def get(self, user_id: str, quiz_id: str) -> Quiz:
        quiz = self.find(quiz_id)
        if quiz is None or quiz.userId != user_id:
            raise NotFoundError("Quiz not found")
        return quiz
