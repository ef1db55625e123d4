"""
HTTP client for the quiz API.

The bearer token lives in an explicit ``SessionContext`` handed to the
client rather than in ambient storage, so several users can be driven from
one process (and tests can swap identities freely).
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from quizcraft.core.config import Settings, get_settings
from quizcraft.core.exceptions import ApiError
from quizcraft.schemas import (
    AttemptCreate,
    AttemptOut,
    GeneratedQuiz,
    Question,
    Quiz,
    QuizAttempt,
    QuizConfig,
    TokenResponse,
    UserOut,
    UserStats,
)

logger = logging.getLogger(__name__)


@dataclass
class SessionContext:
    """Credentials for the signed-in user."""
    token: Optional[str] = None
    user: Optional[UserOut] = None

    @property
    def authenticated(self) -> bool:
        return bool(self.token)

    def clear(self) -> None:
        self.token = None
        self.user = None


class QuizApiClient:
    """Thin synchronous wrapper over the REST endpoints."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        context: Optional[SessionContext] = None,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.Client] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        settings = settings or get_settings()
        self.context = context or SessionContext()
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self._http = http_client or httpx.Client(
            timeout=settings.CLIENT_TIMEOUT, transport=transport
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "QuizApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _headers(self, auth: bool) -> Dict[str, str]:
        if not auth or not self.context.token:
            return {}
        return {"Authorization": f"Bearer {self.context.token}"}

    def _request(self, method: str, path: str, auth: bool = True, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        try:
            response = self._http.request(method, url, headers=self._headers(auth), **kwargs)
        except httpx.HTTPError as e:
            raise ApiError(0, f"Request failed: {e}") from e

        return self._decode(response)

    def _decode(self, response: httpx.Response) -> Any:
        if response.is_error:
            raise ApiError(response.status_code, self._error_message(response))
        try:
            return response.json()
        except ValueError as e:
            # Gateways and proxies answer with HTML pages
            raise ApiError(response.status_code, f"Invalid response body: {e}") from e

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason_phrase
        if isinstance(body, dict):
            if "message" in body:
                return str(body["message"])
            # Request validation errors come back as {"detail": [...]}
            if "detail" in body:
                return str(body["detail"])
        return response.reason_phrase

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def register(self, name: str, email: str, password: str) -> UserOut:
        data = self._request(
            "POST", "/auth/register", auth=False,
            json={"name": name, "email": email, "password": password},
        )
        return self._remember(TokenResponse.model_validate(data))

    def login(self, email: str, password: str) -> UserOut:
        data = self._request(
            "POST", "/auth/login", auth=False, json={"email": email, "password": password}
        )
        return self._remember(TokenResponse.model_validate(data))

    def logout(self) -> None:
        self.context.clear()

    def me(self) -> UserOut:
        return UserOut.model_validate(self._request("GET", "/auth/me"))

    def _remember(self, response: TokenResponse) -> UserOut:
        self.context.token = response.token
        self.context.user = response.user
        return response.user

    # ------------------------------------------------------------------
    # Quizzes
    # ------------------------------------------------------------------

    def list_topics(self) -> List[str]:
        return self._request("GET", "/quiz/topics", auth=False)["topics"]

    def generate_quiz(self, config: QuizConfig) -> GeneratedQuiz:
        data = self._request("POST", "/quiz/generate", json=config.model_dump(mode="json"))
        return GeneratedQuiz.model_validate(data)

    def save_quiz(self, topic: str, questions: List[Question], time_limit: int) -> Quiz:
        payload = {
            "topic": topic,
            "questions": [q.model_dump(mode="json") for q in questions],
            "timeLimit": time_limit,
        }
        return Quiz.model_validate(self._request("POST", "/quiz", json=payload))

    def upload_quiz(self, filename: str, content: bytes, content_type: str = "application/pdf") -> Quiz:
        files = {"file": (filename, content, content_type)}
        return Quiz.model_validate(self._request("POST", "/quiz/upload", files=files))

    def list_quizzes(self) -> List[Quiz]:
        return [Quiz.model_validate(item) for item in self._request("GET", "/quiz")]

    def get_quiz(self, quiz_id: str) -> Quiz:
        return Quiz.model_validate(self._request("GET", f"/quiz/{quiz_id}"))

    # ------------------------------------------------------------------
    # Attempts & statistics
    # ------------------------------------------------------------------

    def record_attempt(self, attempt: AttemptCreate) -> QuizAttempt:
        data = self._request("POST", "/quiz/attempt", json=attempt.model_dump(mode="json"))
        return QuizAttempt.model_validate(data)

    def record_attempt_in_background(self, attempt: AttemptCreate) -> threading.Thread:
        """
        Fire-and-forget save used by the results screen. Failures are logged
        and never reach the caller; the returned thread may be joined.
        """
        def _save():
            try:
                saved = self.record_attempt(attempt)
                logger.info("Saved attempt %s for quiz %s", saved.id, saved.quizId)
            except (ApiError, ValueError) as e:
                logger.warning("Failed to save quiz attempt: %s", e)

        thread = threading.Thread(target=_save, name="attempt-save", daemon=True)
        thread.start()
        return thread

    def list_attempts(self) -> List[AttemptOut]:
        """Attempt history, or an empty list if it cannot be fetched."""
        try:
            data = self._request("GET", "/quiz/attempts")
            return [AttemptOut.model_validate(item) for item in data]
        except (ApiError, TypeError, ValueError) as e:
            logger.warning("Failed to fetch quiz attempts: %s", e)
            return []

    def get_stats(self) -> UserStats:
        """User statistics, or the empty statistics object if they cannot be fetched."""
        try:
            return UserStats.model_validate(self._request("GET", "/quiz/stats"))
        except (ApiError, ValueError) as e:
            logger.warning("Failed to fetch quiz statistics: %s", e)
            return UserStats.empty()

    def health(self) -> Dict[str, Any]:
        # /health is mounted outside the API prefix
        root = self.base_url.rsplit("/api", 1)[0]
        try:
            response = self._http.get(f"{root}/health")
        except httpx.HTTPError as e:
            raise ApiError(0, f"Request failed: {e}") from e
        return self._decode(response)
