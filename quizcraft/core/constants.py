"""
Centralized constants and enums for QuizCraft.

Single source of truth for the fixed option sets offered by the quiz setup
form, the difficulty phrasing sent to the LLM, and the score banding used by
the results views.
"""

from enum import Enum
from typing import Dict, List, Tuple


# ============================================================================
# Difficulty
# ============================================================================

class Difficulty(str, Enum):
    """Quiz difficulty levels."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


def get_difficulties() -> List[str]:
    """Get all difficulty values."""
    return [level.value for level in Difficulty]


def get_difficulty_instructions() -> Dict[str, str]:
    """Phrasing embedded in the generation prompt for each difficulty."""
    return {
        Difficulty.EASY.value: "simple questions for beginners",
        Difficulty.MEDIUM.value: "moderately tricky questions that need some understanding",
        Difficulty.HARD.value: "concept based questions for confident learners",
    }


# ============================================================================
# Quiz setup option sets
# ============================================================================

QUESTION_COUNTS: Tuple[int, ...] = (5, 10, 15, 20)
TIME_LIMITS_MINUTES: Tuple[int, ...] = (5, 10, 15, 20, 30)
OPTIONS_PER_QUESTION = 4
UNANSWERED = -1

DEFAULT_QUESTION_COUNT = 10
DEFAULT_TIME_LIMIT = 15
DEFAULT_DIFFICULTY = Difficulty.MEDIUM.value

# Document upload quizzes
UPLOAD_QUESTION_COUNT = 10
UPLOAD_TIME_LIMIT = 30
UPLOAD_CONTENT_TYPES: Tuple[str, ...] = ("application/pdf",)


# ============================================================================
# Topic catalogue (suggestions for the setup form)
# ============================================================================

QUIZ_TOPICS: List[str] = [
    # Core Computer Science
    "Operating Systems",
    "Data Structures",
    "Algorithms",
    "Database Management Systems",
    "Computer Networks",
    "Object-Oriented Programming",
    "Software Engineering",
    "Computer Architecture",
    # Programming Languages
    "Java Programming",
    "Python Programming",
    "C++ Programming",
    "JavaScript",
    "React.js",
    "Node.js",
    # Advanced Topics
    "Machine Learning",
    "Artificial Intelligence",
    "Cybersecurity",
    "Cloud Computing",
    "DevOps",
    "System Design",
    # Mathematics & Theory
    "Discrete Mathematics",
    "Theory of Computation",
    "Compiler Design",
    "Digital Logic Design",
    # General Knowledge
    "General Knowledge",
    "Current Affairs",
    "Science",
    "History",
]


# ============================================================================
# Score banding
# ============================================================================

# (minimum percentage, message), checked top-down
SCORE_MESSAGES: List[Tuple[int, str]] = [
    (90, "Excellent! Outstanding performance!"),
    (80, "Great job! Well done!"),
    (70, "Good work! Keep it up!"),
    (60, "Not bad! Room for improvement."),
    (0, "Keep practicing! You can do better!"),
]


def score_percentage(score: int, total_questions: int) -> int:
    """Whole-number percentage, 0 for an empty quiz."""
    if total_questions <= 0:
        return 0
    return round(score / total_questions * 100)


def get_score_message(percentage: float) -> str:
    """Encouragement line shown on the results screen."""
    for threshold, message in SCORE_MESSAGES:
        if percentage >= threshold:
            return message
    return SCORE_MESSAGES[-1][1]


def format_duration(seconds: int) -> str:
    """Format seconds as ``m:ss``."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"


# ============================================================================
# Validation Helpers
# ============================================================================

def validate_question_count(value: int) -> bool:
    return value in QUESTION_COUNTS


def validate_time_limit(value: int) -> bool:
    return value in TIME_LIMITS_MINUTES


def get_all_suggestions() -> Dict[str, list]:
    """Option sets for UI dropdowns."""
    return {
        "questionCount": list(QUESTION_COUNTS),
        "timeLimit": list(TIME_LIMITS_MINUTES),
        "difficulty": get_difficulties(),
        "topics": list(QUIZ_TOPICS),
    }
