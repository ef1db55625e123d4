"""
Attempt, session-result and statistics schemas.
"""

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from quizcraft.core.constants import (
    DEFAULT_DIFFICULTY,
    OPTIONS_PER_QUESTION,
    UNANSWERED,
    Difficulty,
    get_score_message,
    score_percentage,
)
from quizcraft.schemas.quiz import Quiz, QuizSummary, utcnow


class AttemptCreate(BaseModel):
    """Body of ``POST /api/quiz/attempt``."""
    quizId: str = Field(..., min_length=1)
    topic: str = Field(..., min_length=1)
    answers: List[int]
    score: int = Field(..., ge=0)
    totalQuestions: int = Field(..., ge=1)
    timeTaken: int = Field(..., ge=0, description="Seconds spent on the attempt")
    difficulty: Difficulty = Difficulty(DEFAULT_DIFFICULTY)

    @field_validator("answers")
    @classmethod
    def _answers_in_range(cls, answers: List[int]) -> List[int]:
        for answer in answers:
            if not UNANSWERED <= answer < OPTIONS_PER_QUESTION:
                raise ValueError(
                    f"Answers must be between {UNANSWERED} and {OPTIONS_PER_QUESTION - 1}"
                )
        return answers

    @model_validator(mode="after")
    def _consistent_totals(self) -> "AttemptCreate":
        if len(self.answers) != self.totalQuestions:
            raise ValueError("answers must contain one entry per question")
        if self.score > self.totalQuestions:
            raise ValueError("score cannot exceed totalQuestions")
        return self


class QuizAttempt(BaseModel):
    """A completed, persisted attempt."""
    id: str
    userId: str
    quizId: str
    topic: str
    answers: List[int]
    score: int
    totalQuestions: int
    timeTaken: int
    difficulty: Difficulty = Difficulty(DEFAULT_DIFFICULTY)
    completedAt: datetime = Field(default_factory=utcnow)

    @property
    def percentage(self) -> int:
        return score_percentage(self.score, self.totalQuestions)


class AttemptOut(QuizAttempt):
    """Attempt listing entry with the referenced quiz populated when still available."""
    quiz: Optional[QuizSummary] = None


class UserStats(BaseModel):
    totalAttempts: int = 0
    # Mean of raw scores, "%.2f"; plain 0 when there are no attempts.
    averageScore: Union[str, int] = 0
    totalQuestions: int = 0
    totalTime: int = 0
    topics: List[str] = Field(default_factory=list)
    recentAttempts: List[QuizAttempt] = Field(default_factory=list)
    averagePercentage: float = 0.0
    bestPercentage: float = 0.0

    @classmethod
    def empty(cls) -> "UserStats":
        return cls()


class SessionResult(BaseModel):
    """Outcome of a submitted quiz session."""
    quiz: Quiz
    answers: List[int]
    score: int
    totalQuestions: int
    timeTaken: int
    autoSubmitted: bool
    difficulty: Difficulty

    @property
    def percentage(self) -> int:
        return score_percentage(self.score, self.totalQuestions)

    @property
    def score_message(self) -> str:
        return get_score_message(self.percentage)

    def to_attempt(self) -> AttemptCreate:
        return AttemptCreate(
            quizId=self.quiz.id,
            topic=self.quiz.topic,
            answers=list(self.answers),
            score=self.score,
            totalQuestions=self.totalQuestions,
            timeTaken=self.timeTaken,
            difficulty=self.difficulty,
        )
