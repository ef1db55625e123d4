import logging

from fastapi import APIRouter, Depends

from quizcraft.core.exceptions import InvalidTokenError
from quizcraft.dependencies import get_auth_service, get_current_user_id
from quizcraft.schemas import LoginRequest, RegisterRequest, TokenResponse, UserOut
from quizcraft.services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=TokenResponse)
def register(request: RegisterRequest, auth_service: AuthService = Depends(get_auth_service)):
    """Create an account and return a bearer token for it."""
    token, user = auth_service.register(request.name, request.email, request.password)
    return TokenResponse(token=token, user=user)


@router.post("/login", response_model=TokenResponse)
def login(request: LoginRequest, auth_service: AuthService = Depends(get_auth_service)):
    token, user = auth_service.login(request.email, request.password)
    return TokenResponse(token=token, user=user)


@router.get("/me", response_model=UserOut)
def me(
    user_id: str = Depends(get_current_user_id),
    auth_service: AuthService = Depends(get_auth_service),
):
    """Profile of the token's owner."""
    user = auth_service.get_user(user_id)
    if user is None:
        # Signed token for an account that no longer exists
        raise InvalidTokenError()
    return user
