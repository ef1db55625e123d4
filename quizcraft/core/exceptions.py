"""
Custom exceptions for QuizCraft.

Each exception carries the user-facing message; the HTTP layer maps the
classes to status codes in one place (see ``quizcraft.main``).
"""

from typing import Optional


class QuizCraftException(Exception):
    """Base exception for all QuizCraft errors."""

    status_code: int = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------

class AuthError(QuizCraftException):
    """Raised when the caller's identity is missing or cannot be verified."""
    status_code = 401


class MissingTokenError(AuthError):
    """Raised when a protected route is called without a bearer token."""

    def __init__(self, message: str = "No token provided"):
        super().__init__(message)


class InvalidTokenError(AuthError):
    """Raised when a bearer token is malformed, forged or expired."""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message)


class InvalidCredentialsError(AuthError):
    """Raised when login credentials do not match a registered user."""
    status_code = 400

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class DuplicateUserError(QuizCraftException):
    """Raised when registering an email that is already taken."""
    status_code = 400

    def __init__(self, message: str = "User already exists"):
        super().__init__(message)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class ValidationError(QuizCraftException):
    """Raised when input is well-formed JSON but violates a domain rule."""
    status_code = 400


class SessionError(ValidationError):
    """Raised when a quiz session is driven through an illegal transition."""
    pass


class NotFoundError(QuizCraftException):
    """Raised when a resource does not exist or is not owned by the caller."""
    status_code = 404


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

class PersistenceError(QuizCraftException):
    """Raised when the document store fails to read or write."""

    def __init__(self, message: str, error: Optional[str] = None):
        self.error = error or message
        super().__init__(message)


# ---------------------------------------------------------------------------
# Generation (always recovered inside the generation service)
# ---------------------------------------------------------------------------

class GenerationDegradation(QuizCraftException):
    """Raised when LLM generation fails and the fallback bank must be used."""
    pass


class LLMError(GenerationDegradation):
    """Raised when the completion API is unavailable or errors."""
    pass


class JSONParseError(GenerationDegradation):
    """Raised when LLM output cannot be parsed into quiz questions."""

    def __init__(self, message: str, raw_text: Optional[str] = None):
        self.raw_text = raw_text
        super().__init__(message)


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class ApiError(QuizCraftException):
    """Raised by the API client for non-2xx responses and transport failures."""

    def __init__(self, status: int, message: str):
        self.status = status
        super().__init__(message)

    def __str__(self) -> str:
        return f"[{self.status}] {self.message}"
