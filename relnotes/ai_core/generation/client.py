"""
Generation Client
Owner: ③ AI Core · Generation · Learning Owner

Responsibilities:
- Build the LangChain chat model for the configured provider
  (SAP gen_ai_hub proxy by default, Vertex AI Gemini as an alternative)
- Send one prompt with fixed sampling parameters
- Enforce a per-call deadline and retry transient failures with backoff
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Sequence

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from relnotes.config import Settings, get_settings

logger = logging.getLogger(__name__)

DEFAULT_BACKOFFS = (1.0, 2.0, 4.0)

# Lowercased fragments of error names/messages that mark a failure as transient
RETRYABLE_ERROR_MARKERS = (
    "rate limit",
    "ratelimit",
    "quota",
    "resource exhausted",
    "resourceexhausted",
    "timeout",
    "timed out",
    "deadline exceeded",
    "deadlineexceeded",
    "unavailable",
    "internal",
    "429",
    "503",
)


# Custom Exceptions


class GenerationError(Exception):
    """
    Raised when the model could not produce usable text: a non-retryable
    error, an empty response, or retries exhausted.
    """

    def __init__(self, message: str, retryable: bool = False, attempts: int = 1):
        super().__init__(message)
        self.retryable = retryable
        self.attempts = attempts


def is_retryable_error(error: BaseException) -> bool:
    """Classify a model-call failure as transient (worth retrying) or not."""
    if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
        return True
    text = f"{type(error).__name__} {error}".lower()
    return any(marker in text for marker in RETRYABLE_ERROR_MARKERS)


def build_chat_model(settings: Optional[Settings] = None) -> BaseChatModel:
    """
    Create the chat model for `settings.llm_provider`.

    Raises:
        ValueError: For an unknown provider
    """
    settings = settings or get_settings()
    provider = settings.llm_provider.lower()

    if provider in ("gen-ai-hub", "gen_ai_hub"):
        from gen_ai_hub.proxy.langchain.openai import ChatOpenAI
        from gen_ai_hub.proxy.core.proxy_clients import get_proxy_client

        logger.info(f"Using gen_ai_hub proxy model {settings.proxy_model}")
        proxy_client = get_proxy_client("gen-ai-hub")
        return ChatOpenAI(
            proxy_model_name=settings.proxy_model,
            proxy_client=proxy_client,
            temperature=settings.temperature,
            top_p=settings.top_p,
            max_tokens=settings.max_output_tokens,
        )

    if provider == "vertexai":
        # Optional dependency: pip install "relnotes[vertexai]"
        from langchain_google_vertexai import ChatVertexAI

        logger.info(
            f"Using Vertex AI model {settings.gemini_model} "
            f"(project={settings.gcp_project_id or 'default'}, location={settings.gcp_location})"
        )
        return ChatVertexAI(
            model_name=settings.gemini_model,
            project=settings.gcp_project_id or None,
            location=settings.gcp_location,
            temperature=settings.temperature,
            top_p=settings.top_p,
            top_k=settings.top_k,
            max_output_tokens=settings.max_output_tokens,
        )

    raise ValueError(f"Unknown llm_provider: {settings.llm_provider}")


def _response_text(response: Any) -> str:
    content = getattr(response, "content", response)
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type") == "text":
                parts.append(part.get("text", ""))
        content = "".join(parts)
    return content if isinstance(content, str) else str(content or "")


class GenerationClient:
    """Sends prompts to the chat model with a deadline and retry."""

    def __init__(
        self,
        llm: Optional[BaseChatModel] = None,
        model_name: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoffs: Sequence[float] = DEFAULT_BACKOFFS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        logger: Optional[logging.Logger] = None,
    ):
        settings = get_settings()
        self.logger = logger or logging.getLogger(__name__)
        self.llm = llm or build_chat_model(settings)
        if model_name is None:
            model_name = (
                settings.gemini_model
                if settings.llm_provider.lower() == "vertexai"
                else settings.proxy_model
            )
        self.model_name = model_name
        self.timeout = timeout if timeout is not None else settings.generation_timeout
        self.max_retries = max(1, max_retries if max_retries is not None else settings.generation_max_retries)
        self.backoffs = list(backoffs)
        self._sleep = sleep

    def _backoff(self, attempt: int) -> float:
        if attempt < len(self.backoffs):
            return self.backoffs[attempt]
        return self.backoffs[-1] if self.backoffs else 0.0

    async def generate(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        """
        Send one prompt and return the model's text.

        Args:
            prompt: User prompt
            system_prompt: Optional system instruction

        Returns:
            Non-empty response text

        Raises:
            GenerationError: On a non-retryable failure, an empty response,
                or when every attempt failed transiently
        """
        messages = []
        if system_prompt:
            messages.append(SystemMessage(content=system_prompt))
        messages.append(HumanMessage(content=prompt))

        last_error: Optional[BaseException] = None
        for attempt in range(self.max_retries):
            try:
                response = await asyncio.wait_for(self.llm.ainvoke(messages), timeout=self.timeout)
            except Exception as e:
                if not is_retryable_error(e):
                    self.logger.error(f"Model call failed with non-retryable error: {e}")
                    raise GenerationError(f"Model call failed: {e}", attempts=attempt + 1) from e

                last_error = e
                self.logger.warning(
                    f"Model call failed (attempt {attempt + 1}/{self.max_retries}): "
                    f"{type(e).__name__}: {e}"
                )
                if attempt < self.max_retries - 1:
                    await self._sleep(self._backoff(attempt))
                continue

            text = _response_text(response).strip()
            if not text:
                raise GenerationError("Model returned an empty response", attempts=attempt + 1)

            self.logger.debug(f"Model returned {len(text)} characters on attempt {attempt + 1}")
            return text

        raise GenerationError(
            f"Model call failed after {self.max_retries} attempts: {last_error}",
            retryable=True,
            attempts=self.max_retries,
        ) from last_error
