import logging
import random
from pathlib import PurePath
from typing import Dict, List, Optional

from quizcraft.core.constants import (
    QUIZ_TOPICS,
    UPLOAD_CONTENT_TYPES,
    UPLOAD_QUESTION_COUNT,
    UPLOAD_TIME_LIMIT,
    Difficulty,
    get_difficulty_instructions,
)
from quizcraft.core.exceptions import GenerationDegradation, ValidationError
from quizcraft.core.llm import LLMClient
from quizcraft.core.parsers import QuizOutputParser
from quizcraft.core.prompt_manager import PromptManager, get_prompt_manager
from quizcraft.schemas.quiz import GeneratedQuiz, Question, QuizConfig
from quizcraft.services.question_bank import get_question_bank

logger = logging.getLogger(__name__)

PLACEHOLDER_OPTIONS = ["Option A", "Option B", "Option C", "Option D"]
UPLOAD_OPTIONS = ["PDF Option A", "PDF Option B", "PDF Option C", "PDF Option D"]


class QuizGenerationService:
    """
    Produces quizzes from a QuizConfig.

    The LLM is tried first; any failure (no key, API error, unparseable or
    short output) degrades silently to the fallback bank, so callers always
    get exactly ``questionCount`` questions.
    """

    def __init__(
        self,
        llm_client: Optional[LLMClient],
        prompt_manager: Optional[PromptManager] = None,
        question_bank: Optional[Dict[str, List[Question]]] = None,
        rng: Optional[random.Random] = None,
        max_upload_bytes: int = 10 * 1024 * 1024,
    ):
        self.llm_client = llm_client
        self.prompts = prompt_manager or get_prompt_manager()
        self.question_bank = question_bank if question_bank is not None else get_question_bank()
        self.rng = rng or random.Random()
        self.max_upload_bytes = max_upload_bytes
        self.parser = QuizOutputParser()

    async def generate_quiz(self, config: QuizConfig) -> GeneratedQuiz:
        if self.llm_client is not None and self.llm_client.is_configured:
            try:
                questions = await self._generate_with_llm(config)
                logger.info(
                    "Generated %d questions on %r with LLM", len(questions), config.topic
                )
                return GeneratedQuiz(
                    topic=config.topic,
                    questions=questions,
                    timeLimit=config.timeLimit,
                    difficulty=config.difficulty,
                    source="llm",
                )
            except GenerationDegradation as e:
                logger.warning("LLM generation failed, using fallback bank: %s", e)

        quiz = self.generate_fallback(config.topic, config.questionCount, config.timeLimit)
        return quiz.model_copy(update={"difficulty": config.difficulty})

    def build_prompt(self, config: QuizConfig) -> str:
        instruction = get_difficulty_instructions()[Difficulty(config.difficulty).value]
        return self.prompts.load_prompt(
            "quiz_generation",
            QUESTION_COUNT=config.questionCount,
            TOPIC=config.topic,
            DIFFICULTY_INSTRUCTION=instruction,
            FORMAT_INSTRUCTIONS=self.parser.get_format_instructions(),
        )

    async def _generate_with_llm(self, config: QuizConfig) -> List[Question]:
        messages = [
            {"role": "system", "content": self.prompts.load_prompt("quiz_system").strip()},
            {"role": "user", "content": self.build_prompt(config)},
        ]
        content = await self.llm_client.complete(messages)
        questions = self.parser.parse(content)

        if len(questions) < config.questionCount:
            raise GenerationDegradation(
                f"LLM returned {len(questions)} valid questions, "
                f"{config.questionCount} requested"
            )
        return questions[: config.questionCount]

    def generate_fallback(self, topic: str, question_count: int, time_limit: int) -> GeneratedQuiz:
        """Serve the bank for ``topic`` when it is large enough, else placeholders."""
        if question_count < 1:
            raise ValidationError("question_count must be at least 1")

        bank = self.question_bank.get(topic, [])
        if len(bank) >= question_count:
            questions = list(bank[:question_count])
        else:
            questions = [
                Question(
                    id=f"q{i}",
                    question=f"Sample question {i} about {topic}?",
                    options=list(PLACEHOLDER_OPTIONS),
                    correctAnswer=self.rng.randrange(len(PLACEHOLDER_OPTIONS)),
                    explanation=f"This is the explanation for question {i} about {topic}.",
                )
                for i in range(1, question_count + 1)
            ]

        return GeneratedQuiz(
            topic=topic,
            questions=questions,
            timeLimit=time_limit,
            source="fallback",
        )

    def generate_from_document(
        self,
        filename: str,
        size: int,
        content_type: Optional[str] = None,
    ) -> GeneratedQuiz:
        """Build a quiz for an uploaded PDF."""
        name = PurePath(filename or "").name
        is_pdf = content_type in UPLOAD_CONTENT_TYPES or name.lower().endswith(".pdf")
        if not name or not is_pdf:
            raise ValidationError("Please select a PDF file")
        if size > self.max_upload_bytes:
            raise ValidationError(
                f"File size must be less than {self.max_upload_bytes // (1024 * 1024)}MB"
            )
        if size == 0:
            raise ValidationError("Uploaded file is empty")

        # TODO: extract the document text and send it through the LLM path
        questions = [
            Question(
                id=f"pdf_q{i}",
                question=f"PDF-based question {i} extracted from {name}?",
                options=list(UPLOAD_OPTIONS),
                correctAnswer=self.rng.randrange(len(UPLOAD_OPTIONS)),
                explanation=f"Explanation extracted from PDF content for question {i}.",
            )
            for i in range(1, UPLOAD_QUESTION_COUNT + 1)
        ]
        return GeneratedQuiz(
            topic=f"PDF: {name}",
            questions=questions,
            timeLimit=UPLOAD_TIME_LIMIT,
            source="upload",
        )

    @staticmethod
    def list_topics() -> List[str]:
        return list(QUIZ_TOPICS)
