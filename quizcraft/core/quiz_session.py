"""
Timed quiz session engine.

One ``QuizSession`` drives a single attempt: navigation between questions,
answer selection, the countdown and the one-way transition to "submitted".
It holds no I/O; the results screen (or API client) persists the
``SessionResult`` it produces.
"""

import logging
import threading
from typing import Callable, List, Optional

from quizcraft.core.constants import UNANSWERED, Difficulty, format_duration
from quizcraft.core.exceptions import SessionError
from quizcraft.core.statistics import compute_score
from quizcraft.schemas.attempt import SessionResult
from quizcraft.schemas.quiz import Question, Quiz

logger = logging.getLogger(__name__)

SubmitCallback = Callable[[SessionResult], None]


class QuizSession:
    """Manages one user's progress through a quiz from start to submission."""

    def __init__(
        self,
        quiz: Quiz,
        difficulty: Difficulty = Difficulty.MEDIUM,
        on_submit: Optional[SubmitCallback] = None,
    ):
        if not quiz.questions:
            raise SessionError("Quiz has no questions")

        self.quiz = quiz
        self.difficulty = Difficulty(difficulty)
        self.on_submit = on_submit

        self.time_limit_seconds: int = quiz.timeLimit * 60
        self.current_index: int = 0
        self.answers: List[int] = [UNANSWERED] * len(quiz.questions)
        self.time_remaining: int = self.time_limit_seconds
        self.result: Optional[SessionResult] = None

        self._submitted = False
        self._submit_lock = threading.Lock()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def submitted(self) -> bool:
        return self._submitted

    @property
    def question_count(self) -> int:
        return len(self.quiz.questions)

    @property
    def current_question(self) -> Question:
        return self.quiz.questions[self.current_index]

    @property
    def is_last_question(self) -> bool:
        return self.current_index == self.question_count - 1

    @property
    def answered_count(self) -> int:
        return sum(1 for answer in self.answers if answer != UNANSWERED)

    @property
    def progress(self) -> float:
        """Position through the quiz as a percentage (current question inclusive)."""
        return (self.current_index + 1) / self.question_count * 100

    @property
    def can_submit(self) -> bool:
        """
        Manual submission is offered on the last question once it is answered,
        or anywhere once every question is answered. Other questions may be
        left unanswered; they score as wrong.
        """
        if self._submitted:
            return False
        if self.is_last_question and self.answers[self.current_index] != UNANSWERED:
            return True
        return self.answered_count == self.question_count

    def question_states(self) -> List[str]:
        """Navigator state per question: current, answered or unanswered."""
        states = []
        for index, answer in enumerate(self.answers):
            if index == self.current_index:
                states.append("current")
            elif answer != UNANSWERED:
                states.append("answered")
            else:
                states.append("unanswered")
        return states

    def format_time(self) -> str:
        return format_duration(self.time_remaining)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def select_answer(self, option_index: int, question_index: Optional[int] = None) -> bool:
        """Record (or overwrite) an answer. Returns False once submitted."""
        if self._submitted:
            return False

        index = self.current_index if question_index is None else question_index
        self._check_index(index)
        option_count = len(self.quiz.questions[index].options)
        if not 0 <= option_index < option_count:
            raise SessionError(f"Option index {option_index} out of range")

        self.answers[index] = option_index
        return True

    def advance(self) -> bool:
        if self._submitted or self.is_last_question:
            return False
        self.current_index += 1
        return True

    def retreat(self) -> bool:
        if self._submitted or self.current_index == 0:
            return False
        self.current_index -= 1
        return True

    def jump_to(self, index: int) -> None:
        """Move straight to any question; out-of-range indices are rejected."""
        self._check_index(index)
        if not self._submitted:
            self.current_index = index

    def tick(self) -> Optional[SessionResult]:
        """
        Advance the countdown by one second.

        Returns the result when this tick expired the timer and triggered the
        automatic submission, None otherwise.
        """
        if self._submitted:
            return None

        self.time_remaining = max(0, self.time_remaining - 1)
        if self.time_remaining == 0:
            logger.info("Time limit reached on quiz %s: auto-submitting", self.quiz.id)
            return self._finalize(auto=True)
        return None

    def submit(self, auto: bool = False) -> SessionResult:
        """
        Submit the session. Idempotent: once submitted, every further call
        returns the original result untouched.
        """
        if self._submitted:
            return self.result
        if not auto and not self.can_submit:
            raise SessionError("Answer the final question before submitting")
        return self._finalize(auto=auto)

    def _finalize(self, auto: bool) -> SessionResult:
        with self._submit_lock:
            if self._submitted:
                return self.result

            self.result = SessionResult(
                quiz=self.quiz,
                answers=list(self.answers),
                score=compute_score(self.quiz.questions, self.answers),
                totalQuestions=self.question_count,
                timeTaken=self.time_limit_seconds - self.time_remaining,
                autoSubmitted=auto,
                difficulty=self.difficulty,
            )
            self._submitted = True

        logger.info(
            "Quiz %s submitted (%s): %d/%d in %ss",
            self.quiz.id,
            "auto" if auto else "manual",
            self.result.score,
            self.result.totalQuestions,
            self.result.timeTaken,
        )
        if self.on_submit is not None:
            self.on_submit(self.result)
        return self.result

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self.question_count:
            raise SessionError(f"Question index {index} out of range")
