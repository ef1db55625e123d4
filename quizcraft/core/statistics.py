"""
Score and per-user statistics aggregation.

Pure functions over already-loaded attempts; nothing here touches storage.
"""

from typing import List, Sequence

from quizcraft.core.constants import UNANSWERED
from quizcraft.schemas.attempt import QuizAttempt, UserStats
from quizcraft.schemas.quiz import Question

RECENT_ATTEMPTS_LIMIT = 5


def compute_score(questions: Sequence[Question], answers: Sequence[int]) -> int:
    """Count answers matching the correct option. Unanswered never matches."""
    return sum(
        1
        for question, answer in zip(questions, answers)
        if answer != UNANSWERED and answer == question.correctAnswer
    )


def compute_user_stats(
    attempts: List[QuizAttempt],
    recent_limit: int = RECENT_ATTEMPTS_LIMIT,
) -> UserStats:
    """
    Aggregate a user's full attempt history.

    ``averageScore`` is the mean of raw scores (not normalised by question
    count), formatted to two decimals; ``averagePercentage`` carries the
    normalised figure.
    """
    if not attempts:
        return UserStats.empty()

    total_attempts = len(attempts)
    percentages = [
        attempt.score / attempt.totalQuestions * 100 if attempt.totalQuestions else 0.0
        for attempt in attempts
    ]

    topics: List[str] = []
    for attempt in attempts:
        if attempt.topic not in topics:
            topics.append(attempt.topic)

    recent = sorted(attempts, key=lambda a: a.completedAt, reverse=True)[:recent_limit]

    return UserStats(
        totalAttempts=total_attempts,
        averageScore=f"{sum(a.score for a in attempts) / total_attempts:.2f}",
        totalQuestions=sum(a.totalQuestions for a in attempts),
        totalTime=sum(a.timeTaken for a in attempts),
        topics=topics,
        recentAttempts=recent,
        averagePercentage=round(sum(percentages) / total_attempts, 2),
        bestPercentage=round(max(percentages), 1),
    )
