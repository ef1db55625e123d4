"""FastAPI dependencies: service lookup and bearer-token authentication."""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from quizcraft.core.exceptions import MissingTokenError
from quizcraft.services.attempt_service import AttemptService
from quizcraft.services.auth_service import AuthService
from quizcraft.services.generation_service import QuizGenerationService
from quizcraft.services.quiz_service import QuizService

# auto_error=False so a missing header reaches our handler ("No token provided")
bearer_scheme = HTTPBearer(auto_error=False)


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_quiz_service(request: Request) -> QuizService:
    return request.app.state.quiz_service


def get_attempt_service(request: Request) -> AttemptService:
    return request.app.state.attempt_service


def get_generation_service(request: Request) -> QuizGenerationService:
    return request.app.state.generation_service


def get_current_user_id(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> str:
    """Verify the bearer token and return the caller's user id."""
    if creds is None or not creds.credentials:
        raise MissingTokenError()
    return auth_service.verify(creds.credentials)
