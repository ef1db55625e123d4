import logging
from typing import List

from fastapi import APIRouter, Depends, File, UploadFile

from quizcraft.dependencies import (
    get_attempt_service,
    get_current_user_id,
    get_generation_service,
    get_quiz_service,
)
from quizcraft.schemas import (
    AttemptCreate,
    AttemptOut,
    GeneratedQuiz,
    Quiz,
    QuizAttempt,
    QuizConfig,
    QuizCreate,
    TopicsResponse,
    UserStats,
)
from quizcraft.services.attempt_service import AttemptService
from quizcraft.services.generation_service import QuizGenerationService
from quizcraft.services.quiz_service import QuizService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/quiz", tags=["quiz"])


@router.post("", response_model=Quiz)
def save_quiz(
    request: QuizCreate,
    user_id: str = Depends(get_current_user_id),
    quiz_service: QuizService = Depends(get_quiz_service),
):
    """Save a quiz for the logged-in user."""
    return quiz_service.save(user_id, request.topic, request.questions, request.timeLimit)


@router.get("", response_model=List[Quiz])
def list_quizzes(
    user_id: str = Depends(get_current_user_id),
    quiz_service: QuizService = Depends(get_quiz_service),
):
    """All quizzes owned by the logged-in user."""
    return quiz_service.list(user_id)


@router.get("/topics", response_model=TopicsResponse)
def list_topics(generation_service: QuizGenerationService = Depends(get_generation_service)):
    return TopicsResponse(topics=generation_service.list_topics())


@router.post("/generate", response_model=GeneratedQuiz)
async def generate_quiz(
    config: QuizConfig,
    user_id: str = Depends(get_current_user_id),
    generation_service: QuizGenerationService = Depends(get_generation_service),
):
    """
    Generate (but do not save) a quiz for the given configuration.
    Falls back to the built-in bank when the LLM is unavailable.
    """
    logger.info("User %s generating %d questions on %r", user_id, config.questionCount, config.topic)
    return await generation_service.generate_quiz(config)


@router.post("/upload", response_model=Quiz)
async def upload_quiz(
    file: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
    generation_service: QuizGenerationService = Depends(get_generation_service),
    quiz_service: QuizService = Depends(get_quiz_service),
):
    """Build a quiz from an uploaded PDF and save it."""
    # One byte past the limit is enough to reject an oversized file
    content = await file.read(generation_service.max_upload_bytes + 1)
    generated = generation_service.generate_from_document(
        file.filename or "", len(content), file.content_type
    )
    return quiz_service.save(user_id, generated.topic, generated.questions, generated.timeLimit)


@router.post("/attempt", response_model=QuizAttempt)
def record_attempt(
    request: AttemptCreate,
    user_id: str = Depends(get_current_user_id),
    attempt_service: AttemptService = Depends(get_attempt_service),
):
    return attempt_service.record_attempt(user_id, request)


@router.get("/attempts", response_model=List[AttemptOut])
def list_attempts(
    user_id: str = Depends(get_current_user_id),
    attempt_service: AttemptService = Depends(get_attempt_service),
):
    """The caller's attempts, most recent first."""
    return attempt_service.list_attempts(user_id)


@router.get("/stats", response_model=UserStats)
def get_stats(
    user_id: str = Depends(get_current_user_id),
    attempt_service: AttemptService = Depends(get_attempt_service),
):
    return attempt_service.compute_stats(user_id)


# Declared last so the fixed paths above win.
@router.get("/{quiz_id}", response_model=Quiz)
def get_quiz(
    quiz_id: str,
    user_id: str = Depends(get_current_user_id),
    quiz_service: QuizService = Depends(get_quiz_service),
):
    return quiz_service.get(user_id, quiz_id)
