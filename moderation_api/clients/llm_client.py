# moderation_api/clients/llm_client.py
import asyncio
from typing import Optional, Protocol

import google.generativeai as genai
import openai
from google.api_core import exceptions as google_exceptions

from moderation_api.core.config import Settings
from moderation_api.core.exceptions import LLMServiceException
from moderation_api.core.logger import logger

SYSTEM_PROMPT = "You are a content moderation AI. Analyze text for policy violations and answer in JSON only."


class LLMClient(Protocol):
    """Anything that turns a prompt into model text.

    Implementations raise ``LLMServiceException`` on every backend failure.
    """

    provider: str

    async def generate(self, prompt: str) -> str:
        ...


# --- Gemini ---
class GeminiClient:
    provider = "gemini"

    def __init__(self, api_key: str, model_name: str = "gemini-1.5-flash", timeout: float = 30.0):
        self.api_key = api_key
        self.model_name = model_name
        self.timeout = timeout
        self._model = None

    def _get_model(self):
        # Built on first use so an empty key never fails construction
        if self._model is None:
            genai.configure(api_key=self.api_key)
            self._model = genai.GenerativeModel(self.model_name)
        return self._model

    async def generate(self, prompt: str) -> str:
        if not self.api_key:
            raise LLMServiceException("Gemini API key is not configured", provider=self.provider)

        try:
            model = self._get_model()
            # SDK-side deadline releases the worker thread after an outer timeout
            response = await asyncio.get_event_loop().run_in_executor(
                None,
                lambda: model.generate_content(prompt, request_options={"timeout": self.timeout})
            )
            return response.text
        except google_exceptions.GoogleAPICallError as e:
            status_code = int(e.code) if e.code is not None else None
            raise LLMServiceException(
                f"Gemini API error: {str(e)}",
                provider=self.provider,
                status_code=status_code
            ) from e
        except ValueError as e:
            # response.text raises ValueError when the candidate was blocked
            raise LLMServiceException(
                f"Gemini returned no usable text: {str(e)}",
                provider=self.provider
            ) from e


# --- OpenAI ---
class OpenAIClient:
    provider = "openai"

    def __init__(self, api_key: str, model_name: str = "gpt-4"):
        self.api_key = api_key
        self.model_name = model_name
        self._client: Optional[openai.AsyncOpenAI] = None

    def _get_client(self) -> openai.AsyncOpenAI:
        if self._client is None:
            # Retries are disabled: each classification is a single attempt
            self._client = openai.AsyncOpenAI(api_key=self.api_key, max_retries=0)
        return self._client

    async def generate(self, prompt: str) -> str:
        if not self.api_key:
            raise LLMServiceException("OpenAI API key is not configured", provider=self.provider)

        try:
            response = await self._get_client().chat.completions.create(
                model=self.model_name,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt}
                ],
                temperature=0.1,
                max_tokens=500
            )
            return response.choices[0].message.content or ""
        except openai.APIStatusError as e:
            raise LLMServiceException(
                f"OpenAI API error: {str(e)}",
                provider=self.provider,
                status_code=e.status_code
            ) from e
        except openai.OpenAIError as e:
            raise LLMServiceException(
                f"OpenAI API error: {str(e)}",
                provider=self.provider
            ) from e


def create_llm_client(settings: Settings) -> LLMClient:
    """
    Build the LLM client selected by ``settings.llm_provider``.

    Args:
        settings: Application settings

    Returns:
        A client for the configured provider

    Raises:
        ValueError: If the provider name is unknown
    """
    if settings.llm_provider == "gemini":
        client = GeminiClient(settings.gemini_api_key, settings.gemini_model, timeout=settings.ai_timeout_seconds)
    elif settings.llm_provider == "openai":
        client = OpenAIClient(settings.openai_api_key, settings.openai_model)
    else:
        raise ValueError(f"Unknown LLM provider: {settings.llm_provider}")

    if not client.api_key:
        logger.warning(
            f"No API key configured for {client.provider}; AI classification will fall back to api_error"
        )
    return client
