import logging
from typing import Tuple

from quizcraft.core.config import Settings
from quizcraft.core.document_store import DocumentStore
from quizcraft.core.exceptions import (
    DuplicateUserError,
    InvalidCredentialsError,
    PersistenceError,
)
from quizcraft.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from quizcraft.schemas.auth import User, UserOut
from quizcraft.schemas.quiz import utcnow

logger = logging.getLogger(__name__)

USERS = "users"


class AuthService:
    """Registers users, checks credentials and issues/verifies bearer tokens."""

    def __init__(self, store: DocumentStore, settings: Settings):
        self.store = store
        self.secret = settings.JWT_SECRET.get_secret_value()
        self.algorithm = settings.JWT_ALGORITHM
        self.expires_hours = settings.ACCESS_TOKEN_EXPIRE_HOURS

    def register(self, name: str, email: str, password: str) -> Tuple[str, UserOut]:
        email = email.strip().lower()
        if self._find_by_email(email) is not None:
            raise DuplicateUserError()

        document = {
            "name": name.strip(),
            "email": email,
            "passwordHash": hash_password(password),
            "createdAt": utcnow().isoformat(),
        }
        try:
            stored = self.store.insert(USERS, document, unique={"email": email})
        except PersistenceError as e:
            if e.error == "duplicate":
                raise DuplicateUserError() from e
            raise PersistenceError("Failed to register user", error=e.error) from e

        user = User.model_validate(stored)
        logger.info("Registered user %s", user.id)
        return self.issue_token(user.id), UserOut.from_user(user)

    def login(self, email: str, password: str) -> Tuple[str, UserOut]:
        user = self._find_by_email(email.strip().lower())
        if user is None or not verify_password(password, user.passwordHash):
            raise InvalidCredentialsError()
        return self.issue_token(user.id), UserOut.from_user(user)

    def get_user(self, user_id: str) -> UserOut | None:
        try:
            document = self.store.get(USERS, user_id)
        except PersistenceError as e:
            raise PersistenceError("Failed to fetch user", error=e.error) from e
        return UserOut.from_user(User.model_validate(document)) if document else None

    def issue_token(self, user_id: str) -> str:
        return create_access_token(
            user_id, self.secret, algorithm=self.algorithm, expires_hours=self.expires_hours
        )

    def verify(self, token: str) -> str:
        """Return the user id for a valid token (``InvalidTokenError`` otherwise)."""
        return decode_access_token(token, self.secret, algorithm=self.algorithm)

    def _find_by_email(self, email: str) -> User | None:
        try:
            document = self.store.find_unique(USERS, "email", email)
        except PersistenceError as e:
            raise PersistenceError("Failed to fetch user", error=e.error) from e
        return User.model_validate(document) if document else None
