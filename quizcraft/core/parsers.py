# parsers.py
"""
Output parser for LLM-generated quizzes.

The model is asked for raw JSON but frequently wraps it in markdown fences or
chatty text; the parser extracts the JSON object, repairs trailing commas and
validates every question into a ``Question``.
"""

import json
import logging
import re
from typing import Any, Dict, List

from langchain_core.output_parsers import BaseOutputParser
from pydantic import ValidationError as PydanticValidationError

from quizcraft.core.exceptions import JSONParseError
from quizcraft.schemas.quiz import Question

logger = logging.getLogger(__name__)


class QuizOutputParser(BaseOutputParser[List[Question]]):
    """
    Parser for quiz generation JSON responses.

    Features:
    - Extracts JSON from markdown code blocks or surrounding prose
    - Fixes trailing commas
    - Skips malformed questions instead of failing the whole quiz
    """

    def parse(self, text: str) -> List[Question]:
        """Parse LLM output into validated questions."""
        if not text or not text.strip():
            raise JSONParseError("Empty LLM output", raw_text=text)

        json_str = self._fix_common_issues(self._extract_json(self._clean_text(text)))
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            logger.debug("Failed JSON: %s", text[:500])
            raise JSONParseError(f"Invalid JSON format: {e}", raw_text=text) from e

        raw_questions = self._questions_list(data)
        questions = []
        for index, item in enumerate(raw_questions, start=1):
            question = self._to_question(item, index, f"q{len(questions) + 1}")
            if question is not None:
                questions.append(question)

        if not questions:
            raise JSONParseError("LLM output contained no valid questions", raw_text=text)

        logger.debug("Parsed %d/%d questions from LLM output", len(questions), len(raw_questions))
        return questions

    def _clean_text(self, text: str) -> str:
        text = text.strip()
        if text.startswith("\ufeff"):
            text = text[1:]
        return text

    def _extract_json(self, text: str) -> str:
        """Extract JSON from markdown or plain text."""
        json_match = re.search(r"```(?:json)?\s*([\[{].*?[\]}])\s*```", text, re.DOTALL)
        if json_match:
            return json_match.group(1)

        # Outermost object or array, whichever opens first
        starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
        if starts:
            start = min(starts)
            end = max(text.rfind("}"), text.rfind("]"))
            if end > start:
                return text[start:end + 1]

        return text

    def _fix_common_issues(self, json_str: str) -> str:
        return re.sub(r",(\s*[}\]])", r"\1", json_str)

    def _questions_list(self, data: Any) -> List[Dict[str, Any]]:
        if isinstance(data, list):
            return data
        if not isinstance(data, dict) or not isinstance(data.get("questions"), list):
            keys = list(data.keys()) if isinstance(data, dict) else type(data).__name__
            raise JSONParseError(f"Missing required field 'questions' (got {keys})")
        return data["questions"]

    def _to_question(self, item: Any, index: int, question_id: str):
        if not isinstance(item, dict):
            logger.debug("Skipping question %d: not an object", index)
            return None
        try:
            return Question(
                id=question_id,
                question=item.get("question", ""),
                options=item.get("options") or [],
                correctAnswer=self._answer_index(item.get("correctAnswer")),
                explanation=item.get("explanation") or "",
            )
        except (PydanticValidationError, TypeError, ValueError) as e:
            logger.debug("Skipping question %d: %s", index, e)
            return None

    @staticmethod
    def _answer_index(value: Any) -> int:
        # Digit strings are common; floats and booleans are not indexes
        if isinstance(value, str) and value.strip().isdigit():
            return int(value)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"correctAnswer must be an integer index, got {value!r}")
        return value

    def get_format_instructions(self) -> str:
        return """Return the response in this exact JSON format:
{
  "questions": [
    {
      "question": "Question text here?",
      "options": ["Option A", "Option B", "Option C", "Option D"],
      "correctAnswer": 0,
      "explanation": "Brief explanation of why this is correct"
    }
  ]
}

Note: correctAnswer should be the index (0-3) of the correct option in the options array."""

    @property
    def _type(self) -> str:
        return "quiz_json"
