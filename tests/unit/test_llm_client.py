"""Tests for LLM client."""

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from challenger.core.exceptions import (
    ConfigurationError,
    LLMError,
    LLMRateLimitError,
    LLMTimeoutError,
)
from challenger.llm.client import (
    AnthropicClient,
    LLMResponse,
    OpenAICompatibleClient,
    get_llm_client,
)


def _anthropic(**overrides):
    kwargs = dict(
        model="claude-sonnet-4-6",
        temperature=0.8,
        max_tokens=500,
        timeout=30.0,
        base_url="https://api.anthropic.com/v1",
        api_key="test-key",
    )
    kwargs.update(overrides)
    return AnthropicClient(**kwargs)


def _openai(**overrides):
    kwargs = dict(
        model="gpt-4o-mini",
        temperature=0.8,
        max_tokens=500,
        timeout=30.0,
        base_url="https://api.openai.com/v1/",
        api_key="test-key",
    )
    kwargs.update(overrides)
    return OpenAICompatibleClient(**kwargs)


def _mock_http(MockClient, body=None, side_effect=None):
    mock_client = AsyncMock()
    if side_effect is not None:
        mock_client.post.side_effect = side_effect
    else:
        mock_response_obj = MagicMock()
        mock_response_obj.json.return_value = body
        mock_response_obj.raise_for_status = MagicMock()
        mock_client.post.return_value = mock_response_obj
    MockClient.return_value.__aenter__.return_value = mock_client
    return mock_client


def _status_error(code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://api.example.com")
    response = httpx.Response(code, request=request)
    return httpx.HTTPStatusError(f"HTTP {code}", request=request, response=response)


class TestAnthropicClient:
    """Tests for AnthropicClient."""

    async def test_complete_success(self):
        """complete() returns LLMResponse on success."""
        mock_response = {
            "content": [{"type": "text", "text": "  Where's the return?  "}],
            "model": "claude-sonnet-4-6",
            "usage": {"input_tokens": 10, "output_tokens": 5},
        }

        with patch("httpx.AsyncClient") as MockClient:
            _mock_http(MockClient, mock_response)
            response = await _anthropic().complete("We want to grow")

        assert isinstance(response, LLMResponse)
        assert response.content == "Where's the return?"
        assert response.usage == {"input_tokens": 10, "output_tokens": 5}
        assert response.model == "claude-sonnet-4-6"

    async def test_system_and_history_in_payload(self):
        """System prompt goes in the payload; history precedes the prompt."""
        mock_response = {
            "content": [{"type": "text", "text": "Response"}],
            "usage": {"input_tokens": 20, "output_tokens": 5},
        }
        history = [
            {"role": "user", "content": "We plan to launch"},
            {"role": "assistant", "content": "Why now?"},
        ]

        with patch("httpx.AsyncClient") as MockClient:
            mock_client = _mock_http(MockClient, mock_response)
            await _anthropic().complete("Because Q3", system="You are blunt", history=history)

        call_args = mock_client.post.call_args
        assert call_args.args[0] == "https://api.anthropic.com/v1/messages"
        assert call_args.kwargs["headers"]["x-api-key"] == "test-key"
        payload = call_args.kwargs["json"]
        assert payload["system"] == "You are blunt"
        assert payload["messages"] == history + [{"role": "user", "content": "Because Q3"}]
        assert payload["max_tokens"] == 500


class TestOpenAICompatibleClient:
    async def test_complete_success(self):
        mock_response = {
            "choices": [{"message": {"content": "Show me the math."}}],
            "model": "gpt-4o-mini",
            "usage": {"prompt_tokens": 12, "completion_tokens": 4},
        }

        with patch("httpx.AsyncClient") as MockClient:
            mock_client = _mock_http(MockClient, mock_response)
            response = await _openai().complete("Hello", system="Be sharp")

        assert response.content == "Show me the math."
        assert response.usage == {"input_tokens": 12, "output_tokens": 4}

        call_args = mock_client.post.call_args
        assert call_args.args[0] == "https://api.openai.com/v1/chat/completions"
        assert call_args.kwargs["headers"]["Authorization"] == "Bearer test-key"
        messages = call_args.kwargs["json"]["messages"]
        assert messages[0] == {"role": "system", "content": "Be sharp"}
        assert messages[-1] == {"role": "user", "content": "Hello"}

    async def test_empty_choices_yield_empty_content(self):
        with patch("httpx.AsyncClient") as MockClient:
            _mock_http(MockClient, {"choices": [], "usage": {}})
            response = await _openai().complete("Hello")

        assert response.content == ""
        assert response.usage == {"input_tokens": 0, "output_tokens": 0}


class TestRetries:
    async def test_timeout_retries_then_raises(self):
        with patch("httpx.AsyncClient") as MockClient, patch(
            "challenger.llm.client.asyncio.sleep", new_callable=AsyncMock
        ) as mock_sleep:
            mock_client = _mock_http(
                MockClient, side_effect=httpx.ReadTimeout("slow")
            )
            with pytest.raises(LLMTimeoutError, match="2 attempts"):
                await _openai().complete("Hello")

        assert mock_client.post.call_count == 2
        mock_sleep.assert_awaited_once_with(1.0)

    async def test_timeout_then_success(self):
        ok = MagicMock()
        ok.json.return_value = {
            "choices": [{"message": {"content": "Second time lucky"}}],
            "usage": {},
        }
        ok.raise_for_status = MagicMock()

        with patch("httpx.AsyncClient") as MockClient, patch(
            "challenger.llm.client.asyncio.sleep", new_callable=AsyncMock
        ):
            mock_client = _mock_http(
                MockClient, side_effect=[httpx.ReadTimeout("slow"), ok]
            )
            response = await _openai().complete("Hello")

        assert response.content == "Second time lucky"
        assert mock_client.post.call_count == 2

    async def test_rate_limit_raises_after_retry(self):
        with patch("httpx.AsyncClient") as MockClient, patch(
            "challenger.llm.client.asyncio.sleep", new_callable=AsyncMock
        ):
            mock_client = _mock_http(MockClient, side_effect=_status_error(429))
            with pytest.raises(LLMRateLimitError):
                await _anthropic().complete("Hello")

        assert mock_client.post.call_count == 2

    async def test_server_error_not_retried(self):
        with patch("httpx.AsyncClient") as MockClient:
            mock_client = _mock_http(MockClient, side_effect=_status_error(500))
            with pytest.raises(LLMError, match="HTTP 500"):
                await _anthropic().complete("Hello")

        assert mock_client.post.call_count == 1

    async def test_transport_error_wrapped(self):
        with patch("httpx.AsyncClient") as MockClient:
            _mock_http(MockClient, side_effect=httpx.ConnectError("refused"))
            with pytest.raises(LLMError, match="request failed"):
                await _openai().complete("Hello")


class TestGetLLMClient:
    """Tests for get_llm_client factory."""

    def test_openai_client(self):
        with patch("challenger.llm.client.settings") as mock_settings:
            mock_settings.llm_provider = "openai"
            mock_settings.openai_api_key = "sk-test"
            mock_settings.llm_model = None
            mock_settings.llm_temperature = 0.8
            mock_settings.llm_max_tokens = 500
            mock_settings.llm_timeout = 30.0

            client = get_llm_client()

        assert isinstance(client, OpenAICompatibleClient)
        assert client.model == "gpt-4o-mini"
        assert client.base_url == "https://api.openai.com/v1"

    def test_anthropic_with_model_override(self):
        with patch("challenger.llm.client.settings") as mock_settings:
            mock_settings.anthropic_api_key = "ak-test"
            mock_settings.llm_model = "claude-custom"
            mock_settings.llm_temperature = 0.5
            mock_settings.llm_max_tokens = 300
            mock_settings.llm_timeout = 10.0

            client = get_llm_client("anthropic")

        assert isinstance(client, AnthropicClient)
        assert client.model == "claude-custom"
        assert client.timeout == 10.0

    def test_missing_api_key(self):
        with patch("challenger.llm.client.settings") as mock_settings:
            mock_settings.openai_api_key = None
            with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
                get_llm_client("openai")

    def test_unknown_provider(self):
        with pytest.raises(ConfigurationError, match="Unknown LLM provider"):
            get_llm_client("kimi")
