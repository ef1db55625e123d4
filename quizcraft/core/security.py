"""
Password hashing and bearer-token helpers.
"""

import datetime
import logging
from typing import Optional

import bcrypt
import jwt

from quizcraft.core.exceptions import InvalidTokenError

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes; newer releases reject longer input.
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


def create_access_token(
    user_id: str,
    secret: str,
    algorithm: str = "HS256",
    expires_hours: int = 24,
    now: Optional[datetime.datetime] = None,
) -> str:
    """Sign a token whose ``id`` claim is the user id."""
    now = now or datetime.datetime.now(datetime.timezone.utc)
    claims = {
        "id": user_id,
        "iat": now,
        "exp": now + datetime.timedelta(hours=expires_hours),
    }
    return jwt.encode(claims, secret, algorithm=algorithm)


def decode_access_token(token: str, secret: str, algorithm: str = "HS256") -> str:
    """Return the user id carried by a valid token."""
    try:
        payload = jwt.decode(token, secret, algorithms=[algorithm])
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired token")
        raise InvalidTokenError()
    except jwt.PyJWTError:
        raise InvalidTokenError()

    user_id = payload.get("id")
    if not user_id or not isinstance(user_id, str):
        raise InvalidTokenError()
    return user_id
