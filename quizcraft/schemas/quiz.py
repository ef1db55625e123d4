"""
Quiz-related Pydantic schemas.
"""

from datetime import datetime, timezone
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from quizcraft.core.constants import (
    DEFAULT_DIFFICULTY,
    DEFAULT_QUESTION_COUNT,
    DEFAULT_TIME_LIMIT,
    OPTIONS_PER_QUESTION,
    QUESTION_COUNTS,
    TIME_LIMITS_MINUTES,
    Difficulty,
    validate_question_count,
    validate_time_limit,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Question(BaseModel):
    """A multiple-choice question with exactly four options."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    question: str = Field(..., min_length=1)
    options: List[str]
    correctAnswer: int
    explanation: str = ""

    @field_validator("options")
    @classmethod
    def _four_options(cls, options: List[str]) -> List[str]:
        if len(options) != OPTIONS_PER_QUESTION:
            raise ValueError(f"Each question must have exactly {OPTIONS_PER_QUESTION} options")
        if any(not str(option).strip() for option in options):
            raise ValueError("Option text cannot be empty")
        return options

    @model_validator(mode="after")
    def _correct_answer_in_range(self) -> "Question":
        if not 0 <= self.correctAnswer < len(self.options):
            raise ValueError(
                f"correctAnswer must be between 0 and {len(self.options) - 1}"
            )
        return self


class QuizConfig(BaseModel):
    """Parameters for generating a quiz. Only the offered option sets are accepted."""

    model_config = ConfigDict(frozen=True)

    topic: str = Field(..., min_length=1, max_length=200)
    questionCount: int = DEFAULT_QUESTION_COUNT
    timeLimit: int = DEFAULT_TIME_LIMIT
    difficulty: Difficulty = Difficulty(DEFAULT_DIFFICULTY)

    @field_validator("topic")
    @classmethod
    def _strip_topic(cls, topic: str) -> str:
        topic = topic.strip()
        if not topic:
            raise ValueError("Topic must not be empty")
        return topic

    @field_validator("questionCount")
    @classmethod
    def _question_count_in_set(cls, value: int) -> int:
        if not validate_question_count(value):
            raise ValueError(f"questionCount must be one of {list(QUESTION_COUNTS)}")
        return value

    @field_validator("timeLimit")
    @classmethod
    def _time_limit_in_set(cls, value: int) -> int:
        if not validate_time_limit(value):
            raise ValueError(f"timeLimit must be one of {list(TIME_LIMITS_MINUTES)}")
        return value


class QuizCreate(BaseModel):
    """Body of ``POST /api/quiz``."""
    topic: str = Field(..., min_length=1, max_length=200)
    questions: List[Question] = Field(..., min_length=1)
    timeLimit: int = Field(..., gt=0, le=24 * 60, description="Time limit in minutes")


class Quiz(BaseModel):
    """A persisted quiz owned by a single user."""

    model_config = ConfigDict(frozen=True)

    id: str
    userId: str
    topic: str
    questions: List[Question]
    timeLimit: int
    createdAt: datetime = Field(default_factory=utcnow)


class QuizSummary(BaseModel):
    """Quiz fields populated onto attempt listings."""
    topic: str
    questions: List[Question]


class GeneratedQuiz(BaseModel):
    """Quiz produced by the generation service, not yet persisted."""
    topic: str
    questions: List[Question]
    timeLimit: int
    difficulty: Difficulty = Difficulty(DEFAULT_DIFFICULTY)
    source: Literal["llm", "fallback", "upload"] = "fallback"


class TopicsResponse(BaseModel):
    topics: List[str]
