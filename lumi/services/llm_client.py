"""
LLM Client
Gemini content provider: persona-prefixed prompts, raw text or lenient JSON
"""
import logging
from typing import Any, Optional

import openai

from lumi.core.config import CoachSettings, DEFAULT_GEMINI_MODEL, GEMINI_OPENAI_BASE_URL
from lumi.prompts.personas import build_persona_prompt
from lumi.utils.json_cleanup import parse_lenient_json

logger = logging.getLogger(__name__)


class LLMClientError(Exception):
    """Base exception for LLM client errors"""
    pass


class LLMTimeoutError(LLMClientError):
    """Raised when LLM request times out"""
    pass


class LLMAPIError(LLMClientError):
    """Raised when LLM API returns an error"""
    pass


# Configuration
DEFAULT_TIMEOUT = 60.0  # seconds
DEFAULT_MAX_RETRIES = 2


class GeminiProvider:
    """
    Content provider backed by Google Gemini

    Gemini is reached through its OpenAI-compatible Chat Completions
    endpoint, so the official openai SDK handles transport, timeouts and
    transient-error retries.
    """

    PROVIDER_NAME = "Gemini"

    def __init__(
        self,
        api_key: str,
        default_model: str = DEFAULT_GEMINI_MODEL,
        base_url: str = GEMINI_OPENAI_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        client: Optional[openai.AsyncOpenAI] = None
    ):
        """
        Initialize Gemini provider

        Args:
            api_key: Gemini API key
            default_model: Model used when a call does not override it
            base_url: OpenAI-compatible endpoint for Gemini
            timeout: Request timeout in seconds
            max_retries: SDK retry budget for transient failures
            client: Optional preconfigured AsyncOpenAI client
        """
        if not api_key and client is None:
            raise LLMClientError("GEMINI_API_KEY is not set")

        self.default_model = default_model
        self.timeout = timeout
        self.client = client or openai.AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
        )

    @classmethod
    def from_settings(cls, settings: CoachSettings) -> "GeminiProvider":
        return cls(
            api_key=settings.gemini_api_key,
            default_model=settings.gemini_model,
            base_url=settings.gemini_base_url,
            timeout=settings.llm_timeout,
            max_retries=settings.llm_max_retries,
        )

    async def _complete(self, full_prompt: str, model: Optional[str]) -> str:
        """
        Send a single-message completion request

        Returns:
            Raw response content string

        Raises:
            LLMTimeoutError: If the request timed out after SDK retries
            LLMAPIError: If the API returned an error or an empty completion
        """
        model_name = model or self.default_model
        logger.info(f"🤖 Generating via {self.PROVIDER_NAME} ({model_name})")

        try:
            response = await self.client.chat.completions.create(
                model=model_name,
                messages=[{"role": "user", "content": full_prompt}],
            )
        except openai.APITimeoutError as e:
            logger.error(f"❌ {self.PROVIDER_NAME} request timed out after {self.timeout}s")
            raise LLMTimeoutError(f"{self.PROVIDER_NAME} request timed out: {e}") from e
        except openai.OpenAIError as e:
            logger.error(f"❌ {self.PROVIDER_NAME} API error: {e}")
            raise LLMAPIError(f"{self.PROVIDER_NAME} API error: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LLMAPIError(f"{self.PROVIDER_NAME} returned an empty response")

        logger.info(f"✅ {self.PROVIDER_NAME} response received ({len(content)} chars)")
        return content

    async def generate_structured_content(
        self,
        prompt: str,
        persona: str,
        model: Optional[str] = None
    ) -> Any:
        """
        Generate JSON content

        The persona preamble and a JSON-only instruction wrap the prompt;
        the reply goes through lenient JSON extraction.

        Raises:
            ParseError: If the reply is not valid JSON after cleanup
        """
        full_prompt = build_persona_prompt(prompt, persona, json_only=True)
        text = await self._complete(full_prompt, model)
        return parse_lenient_json(text, source=self.PROVIDER_NAME)

    async def generate_text(
        self,
        prompt: str,
        persona: str,
        model: Optional[str] = None
    ) -> str:
        """Generate free text with the persona preamble"""
        full_prompt = build_persona_prompt(prompt, persona)
        return await self._complete(full_prompt, model)

    def health_check(self) -> dict:
        """Report configuration status (no network call)"""
        return {
            "provider": self.PROVIDER_NAME.lower(),
            "configured": True,
            "model": self.default_model,
            "status": "ready"
        }
