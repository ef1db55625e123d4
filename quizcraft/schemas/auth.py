"""Authentication schemas."""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from quizcraft.schemas.quiz import utcnow


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class User(BaseModel):
    """Stored user document."""
    id: str
    name: str
    email: str
    passwordHash: str
    createdAt: datetime = Field(default_factory=utcnow)


class UserOut(BaseModel):
    """Public projection of a user."""
    id: str
    name: str
    email: str
    createdAt: datetime

    @classmethod
    def from_user(cls, user: User) -> "UserOut":
        return cls(id=user.id, name=user.name, email=user.email, createdAt=user.createdAt)


class TokenResponse(BaseModel):
    token: str
    user: UserOut
