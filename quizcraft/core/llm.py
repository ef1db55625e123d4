import logging
from typing import Dict, List, Optional

from huggingface_hub import AsyncInferenceClient
from openai import AsyncOpenAI

from quizcraft.core.config import Settings
from quizcraft.core.exceptions import LLMError

logger = logging.getLogger(__name__)

Message = Dict[str, str]


class LLMClient:
    """
    Chat-completion client for quiz generation.

    Talks to any OpenAI-compatible endpoint (Together, DeepSeek, Ollama...) or
    to the Hugging Face Inference API. Without an API key the client is
    "unconfigured" and every call raises ``LLMError`` so callers fall back.
    """

    def __init__(self, settings: Settings):
        self.provider = settings.LLM_PROVIDER
        self.temperature = settings.LLM_TEMPERATURE
        self.max_tokens = settings.LLM_MAX_TOKENS
        self.client = None
        api_key = settings.get_llm_key()

        if api_key is None:
            logger.warning("No LLM API key configured: quizzes will use the fallback bank")
            return

        if self.provider == "huggingface":
            self.model = settings.HF_MODEL_ID
            self.client = AsyncInferenceClient(
                token=api_key,
                model=settings.HF_MODEL_ID,
                timeout=settings.LLM_TIMEOUT,
            )
        else:
            self.model = settings.MODEL_NAME
            self.client = AsyncOpenAI(
                api_key=api_key,
                base_url=settings.LLM_BASE_URL,
                timeout=settings.LLM_TIMEOUT,
            )
        logger.info("LLM client initialized: %s (%s)", self.provider, self.model)

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    async def complete(self, messages: List[Message]) -> str:
        """Send a message list and return the single text completion."""
        if not self.is_configured:
            raise LLMError("LLM client is not configured")

        try:
            if self.provider == "huggingface":
                content = await self._complete_hf(messages)
            else:
                content = await self._complete_openai(messages)
        except LLMError:
            raise
        except Exception as e:
            logger.error("LLM request failed: %s", e)
            raise LLMError(f"LLM request failed: {e}") from e

        if not content:
            raise LLMError("LLM returned no content")
        return content

    async def _complete_openai(self, messages: List[Message]) -> Optional[str]:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        return response.choices[0].message.content

    async def _complete_hf(self, messages: List[Message]) -> Optional[str]:
        response = await self.client.chat_completion(
            messages=messages,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )
        return response.choices[0].message.content

    async def close(self) -> None:
        if isinstance(self.client, AsyncOpenAI):
            await self.client.close()
