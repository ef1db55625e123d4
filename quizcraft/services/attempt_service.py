import logging
from typing import List

from quizcraft.core.document_store import DocumentStore
from quizcraft.core.exceptions import NotFoundError, PersistenceError
from quizcraft.core.statistics import RECENT_ATTEMPTS_LIMIT, compute_user_stats
from quizcraft.schemas.attempt import AttemptCreate, AttemptOut, QuizAttempt, UserStats
from quizcraft.schemas.quiz import QuizSummary, utcnow
from quizcraft.services.quiz_service import QuizService

logger = logging.getLogger(__name__)

ATTEMPTS = "attempts"


class AttemptService:
    """Stores completed attempts and derives per-user statistics."""

    def __init__(
        self,
        store: DocumentStore,
        quiz_service: QuizService,
        recent_limit: int = RECENT_ATTEMPTS_LIMIT,
    ):
        self.store = store
        self.quiz_service = quiz_service
        self.recent_limit = recent_limit

    def record_attempt(self, user_id: str, payload: AttemptCreate) -> QuizAttempt:
        # A missing quiz is fine: the attempt carries its own topic and results
        quiz = self.quiz_service.find(payload.quizId)
        if quiz is not None and quiz.userId != user_id:
            raise NotFoundError("Quiz not found")

        document = payload.model_dump(mode="json")
        document.update({"userId": user_id, "completedAt": utcnow().isoformat()})
        try:
            stored = self.store.insert(ATTEMPTS, document, owner=user_id)
        except PersistenceError as e:
            raise PersistenceError("Failed to save quiz attempt", error=e.error) from e

        attempt = QuizAttempt.model_validate(stored)
        logger.info(
            "Recorded attempt %s on quiz %s: %d/%d",
            attempt.id, attempt.quizId, attempt.score, attempt.totalQuestions,
        )
        return attempt

    def _load(self, user_id: str, message: str) -> List[QuizAttempt]:
        try:
            documents = self.store.find_by_owner(ATTEMPTS, user_id, newest_first=True)
        except PersistenceError as e:
            raise PersistenceError(message, error=e.error) from e
        attempts = [QuizAttempt.model_validate(doc) for doc in documents]
        attempts.sort(key=lambda a: a.completedAt, reverse=True)
        return attempts

    def list_attempts(self, user_id: str) -> List[AttemptOut]:
        """Attempts newest first, each with its quiz populated when still accessible."""
        attempts = self._load(user_id, "Failed to fetch quiz attempts")

        summaries = {}
        results = []
        for attempt in attempts:
            if attempt.quizId not in summaries:
                try:
                    quiz = self.quiz_service.find(attempt.quizId)
                except PersistenceError:
                    logger.warning("Could not populate quiz %s", attempt.quizId)
                    quiz = None
                summaries[attempt.quizId] = (
                    QuizSummary(topic=quiz.topic, questions=quiz.questions)
                    if quiz is not None and quiz.userId == user_id
                    else None
                )
            results.append(AttemptOut(**attempt.model_dump(), quiz=summaries[attempt.quizId]))
        return results

    def compute_stats(self, user_id: str) -> UserStats:
        attempts = self._load(user_id, "Failed to fetch quiz statistics")
        return compute_user_stats(attempts, recent_limit=self.recent_limit)
