"""
Tests for the LLM transport clients and provider selection.
"""

import httpx
import openai
import pytest
from unittest.mock import AsyncMock, MagicMock, Mock, patch
from google.api_core import exceptions as google_exceptions

from moderation_api.clients.llm_client import GeminiClient, OpenAIClient, create_llm_client
from moderation_api.core.config import Settings
from moderation_api.core.exceptions import LLMServiceException

OPENAI_URL = "https://api.openai.com/v1/chat/completions"


def openai_status_error(error_cls, status_code):
    request = httpx.Request("POST", OPENAI_URL)
    response = httpx.Response(status_code, request=request)
    return error_cls("backend said no", response=response, body=None)


class TestGeminiClient:
    """Gemini client error translation."""

    def test_empty_key_does_not_fail_construction(self):
        client = GeminiClient("")
        assert client.api_key == ""

    @pytest.mark.asyncio
    async def test_empty_key_fails_on_generate(self):
        with pytest.raises(LLMServiceException) as exc_info:
            await GeminiClient("").generate("prompt")
        assert exc_info.value.status_code is None
        assert exc_info.value.provider == "gemini"

    @pytest.mark.asyncio
    async def test_generate_returns_text(self):
        with patch("moderation_api.clients.llm_client.genai") as mock_genai:
            model = MagicMock()
            model.generate_content.return_value = Mock(text='{"isProblematic": false}')
            mock_genai.GenerativeModel.return_value = model

            text = await GeminiClient("key", "gemini-1.5-flash", timeout=12.0).generate("prompt")

            assert text == '{"isProblematic": false}'
            mock_genai.configure.assert_called_once_with(api_key="key")
            mock_genai.GenerativeModel.assert_called_once_with("gemini-1.5-flash")
            model.generate_content.assert_called_once_with("prompt", request_options={"timeout": 12.0})

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error, status_code", [
        (google_exceptions.ResourceExhausted("quota exceeded"), 429),
        (google_exceptions.Unauthenticated("bad key"), 401),
        (google_exceptions.PermissionDenied("forbidden"), 403),
        (google_exceptions.InternalServerError("boom"), 500),
        (google_exceptions.ServiceUnavailable("overloaded"), 503),
        (google_exceptions.InvalidArgument("API key not valid"), 400),
    ])
    async def test_api_errors_carry_status(self, error, status_code):
        with patch("moderation_api.clients.llm_client.genai") as mock_genai:
            mock_genai.GenerativeModel.return_value.generate_content.side_effect = error

            with pytest.raises(LLMServiceException) as exc_info:
                await GeminiClient("key").generate("prompt")

            assert exc_info.value.status_code == status_code


class TestOpenAIClient:
    """OpenAI client error translation."""

    @pytest.mark.asyncio
    async def test_empty_key_fails_on_generate(self):
        with pytest.raises(LLMServiceException) as exc_info:
            await OpenAIClient("").generate("prompt")
        assert exc_info.value.provider == "openai"

    @pytest.mark.asyncio
    async def test_generate_returns_message_content(self):
        with patch("moderation_api.clients.llm_client.openai.AsyncOpenAI") as mock_cls:
            completion = Mock()
            completion.choices = [Mock(message=Mock(content='{"severity": "low"}'))]
            mock_cls.return_value.chat.completions.create = AsyncMock(return_value=completion)

            text = await OpenAIClient("key").generate("prompt")

            assert text == '{"severity": "low"}'
            mock_cls.assert_called_once_with(api_key="key", max_retries=0)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error_cls, status_code", [
        (openai.RateLimitError, 429),
        (openai.AuthenticationError, 401),
        (openai.PermissionDeniedError, 403),
        (openai.InternalServerError, 500),
    ])
    async def test_status_errors_carry_status(self, error_cls, status_code):
        with patch("moderation_api.clients.llm_client.openai.AsyncOpenAI") as mock_cls:
            mock_cls.return_value.chat.completions.create = AsyncMock(
                side_effect=openai_status_error(error_cls, status_code)
            )

            with pytest.raises(LLMServiceException) as exc_info:
                await OpenAIClient("key").generate("prompt")

            assert exc_info.value.status_code == status_code

    @pytest.mark.asyncio
    async def test_connection_error_has_no_status(self):
        with patch("moderation_api.clients.llm_client.openai.AsyncOpenAI") as mock_cls:
            mock_cls.return_value.chat.completions.create = AsyncMock(
                side_effect=openai.APIConnectionError(request=httpx.Request("POST", OPENAI_URL))
            )

            with pytest.raises(LLMServiceException) as exc_info:
                await OpenAIClient("key").generate("prompt")

            assert exc_info.value.status_code is None


class TestProviderSelection:
    """create_llm_client picks the configured provider."""

    def test_gemini_is_default(self):
        client = create_llm_client(Settings(gemini_api_key="g-key"))
        assert isinstance(client, GeminiClient)
        assert client.api_key == "g-key"

    def test_gemini_uses_configured_timeout(self):
        client = create_llm_client(Settings(gemini_api_key="g-key", ai_timeout_seconds=4.5))
        assert client.timeout == 4.5

    def test_openai_provider(self):
        client = create_llm_client(Settings(llm_provider="openai", openai_api_key="o-key", openai_model="gpt-4o"))
        assert isinstance(client, OpenAIClient)
        assert client.model_name == "gpt-4o"

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            create_llm_client(Settings.model_construct(llm_provider="llama"))
