"""Schemas package."""

from .quiz import Question, Quiz, QuizConfig, QuizCreate, QuizSummary, GeneratedQuiz, TopicsResponse
from .attempt import AttemptCreate, QuizAttempt, AttemptOut, UserStats, SessionResult
from .auth import RegisterRequest, LoginRequest, User, UserOut, TokenResponse
from .responses import ErrorResponse, HealthResponse

__all__ = [
    # Quiz
    "Question",
    "Quiz",
    "QuizConfig",
    "QuizCreate",
    "QuizSummary",
    "GeneratedQuiz",
    "TopicsResponse",
    # Attempts
    "AttemptCreate",
    "QuizAttempt",
    "AttemptOut",
    "UserStats",
    "SessionResult",
    # Auth
    "RegisterRequest",
    "LoginRequest",
    "User",
    "UserOut",
    "TokenResponse",
    # Responses
    "ErrorResponse",
    "HealthResponse",
]
