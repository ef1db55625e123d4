from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Value shipped in the sample .env; treated as "no key configured".
PLACEHOLDER_API_KEY = "your_together_api_key_here"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # App Config
    APP_NAME: str = "QuizCraft API"
    APP_VERSION: str = "0.1.0"
    API_PREFIX: str = "/api"
    ENVIRONMENT: str = "development"  # "development" or "production"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[Path] = None
    CORS_ORIGINS: List[str] = ["*"]

    # Auth
    JWT_SECRET: SecretStr = SecretStr("your-secret-key-here")
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_HOURS: int = 24

    # LLM Config
    LLM_PROVIDER: str = "openai"  # "openai" (any compatible endpoint) or "huggingface"
    LLM_API_KEY: Optional[SecretStr] = None
    LLM_BASE_URL: str = "https://api.together.xyz/v1"
    MODEL_NAME: str = "meta-llama/Llama-3.3-70B-Instruct-Turbo"
    HF_MODEL_ID: str = "meta-llama/Meta-Llama-3-8B-Instruct"
    LLM_TEMPERATURE: float = 0.7
    LLM_MAX_TOKENS: int = 2000
    LLM_TIMEOUT: int = 60

    # Document store
    REDIS_ENABLED: bool = False
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_PASSWORD: Optional[str] = None
    REDIS_MAX_CONNECTIONS: int = 50
    REDIS_SOCKET_TIMEOUT: int = 5
    REDIS_SOCKET_CONNECT_TIMEOUT: int = 5
    REDIS_KEY_PREFIX: str = "quizcraft"

    # Quiz behaviour
    MAX_UPLOAD_BYTES: int = Field(default=10 * 1024 * 1024, gt=0)
    RECENT_ATTEMPTS_LIMIT: int = Field(default=5, ge=1)

    # Client
    API_BASE_URL: str = "http://localhost:8000/api"
    CLIENT_TIMEOUT: float = 30.0

    def get_llm_key(self) -> Optional[str]:
        """Return the configured LLM key, or None when unset or still the placeholder."""
        if self.LLM_API_KEY is None:
            return None
        key = self.LLM_API_KEY.get_secret_value().strip()
        if not key or key == PLACEHOLDER_API_KEY:
            return None
        return key


@lru_cache
def get_settings() -> Settings:
    return Settings()
