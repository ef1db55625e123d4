import logging
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from quizcraft.core.config import Settings, get_settings
from quizcraft.core.document_store import DocumentStore, create_document_store
from quizcraft.core.exceptions import PersistenceError, QuizCraftException
from quizcraft.core.llm import LLMClient
from quizcraft.core.logging_config import request_id_var, setup_logging
from quizcraft.routers import auth, quiz
from quizcraft.schemas import ErrorResponse, HealthResponse
from quizcraft.services.attempt_service import AttemptService
from quizcraft.services.auth_service import AuthService
from quizcraft.services.generation_service import QuizGenerationService
from quizcraft.services.quiz_service import QuizService

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[DocumentStore] = None,
    llm_client: Optional[LLMClient] = None,
    generation_service: Optional[QuizGenerationService] = None,
    configure_logging: bool = True,
) -> FastAPI:
    """
    Build the API application.

    ``store``, ``llm_client`` and ``generation_service`` override the
    defaults derived from settings (tests inject an in-memory store).
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if configure_logging:
            setup_logging(settings.ENVIRONMENT, settings.LOG_LEVEL, settings.LOG_DIR)
        logger.info("Starting %s %s", settings.APP_NAME, settings.APP_VERSION)

        app.state.store = store or create_document_store(settings)
        app.state.llm_client = llm_client or LLMClient(settings)

        quiz_service = QuizService(app.state.store)
        app.state.quiz_service = quiz_service
        app.state.attempt_service = AttemptService(
            app.state.store, quiz_service, recent_limit=settings.RECENT_ATTEMPTS_LIMIT
        )
        app.state.auth_service = AuthService(app.state.store, settings)
        app.state.generation_service = generation_service or QuizGenerationService(
            app.state.llm_client, max_upload_bytes=settings.MAX_UPLOAD_BYTES
        )

        yield

        logger.info("Shutting down %s", settings.APP_NAME)
        await app.state.llm_client.close()
        app.state.store.close()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(QuizCraftException)
    async def quizcraft_exception_handler(request: Request, exc: QuizCraftException):
        body = ErrorResponse(message=exc.message)
        if isinstance(exc, PersistenceError):
            logger.error("%s %s failed: %s (%s)", request.method, request.url.path, exc.message, exc.error)
            body.error = exc.error
        elif exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))

    @app.get("/health", response_model=HealthResponse)
    def health_check(request: Request):
        return HealthResponse(
            version=settings.APP_VERSION,
            store=request.app.state.store.health_check(),
            llm_configured=request.app.state.llm_client.is_configured,
        )

    @app.get("/", include_in_schema=False)
    def root():
        return {"message": "Quiz API is running"}

    app.include_router(auth.router, prefix=settings.API_PREFIX)
    app.include_router(quiz.router, prefix=settings.API_PREFIX)

    return app


app = create_app()
