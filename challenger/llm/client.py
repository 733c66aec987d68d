"""
LLM client abstraction for challenger replies.

Provides async interface for LLM calls with:
- Structured logging of requests/responses
- Timeout handling with one retry (timeouts and 429s)
- Usage tracking (tokens)
- Multi-turn history (recent conversation passed as messages)

Supported providers:
- openai: OpenAI Chat Completions (and any OpenAI-compatible endpoint)
- anthropic: Claude models via the Messages API
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional
import time

import httpx
import structlog

from challenger.core.config import settings
from challenger.core.exceptions import (
    ConfigurationError,
    LLMError,
    LLMRateLimitError,
    LLMTimeoutError,
)

log = structlog.get_logger(__name__)


LLMProvider = Literal["openai", "anthropic"]

# One retry (2 total attempts), exponential backoff from BASE_DELAY_SECONDS
MAX_RETRIES = 1
BASE_DELAY_SECONDS = 1.0


# =============================================================================
# Default configurations per provider
# =============================================================================

PROVIDER_DEFAULTS: Dict[LLMProvider, Dict[str, Any]] = {
    "openai": dict(
        model="gpt-4o-mini",
        base_url="https://api.openai.com/v1",
    ),
    "anthropic": dict(
        model="claude-sonnet-4-6",
        base_url="https://api.anthropic.com/v1",
    ),
}


# =============================================================================
# Response and Base Classes
# =============================================================================


@dataclass
class LLMResponse:
    """Standardized LLM response."""

    content: str
    model: str
    usage: Dict[str, int] = field(default_factory=dict)
    latency_ms: float = 0.0
    raw_response: Optional[Dict[str, Any]] = None


Message = Dict[str, str]


class LLMClient(ABC):
    """Abstract base for LLM providers.

    Subclasses build the provider payload and parse the provider response;
    the retry loop and error mapping are shared.
    """

    provider_name: str = "llm"

    def __init__(
        self,
        model: str,
        temperature: float,
        max_tokens: int,
        timeout: float,
        base_url: str,
        api_key: str,
    ):
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key

        log.info(
            "llm_client_initialized",
            provider=self.provider_name,
            model=self.model,
            timeout=self.timeout,
        )

    async def complete(
        self,
        prompt: str,
        system: Optional[str] = None,
        history: Optional[List[Message]] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> LLMResponse:
        """
        Generate a completion from the LLM.

        Args:
            prompt: Latest user message
            system: Optional system prompt
            history: Earlier messages as {"role": "user"|"assistant", "content"}
            temperature: Sampling temperature (defaults to init value)
            max_tokens: Max tokens (defaults to init value)
            timeout: Timeout override in seconds (defaults to init value)

        Returns:
            LLMResponse with content and usage stats

        Raises:
            LLMTimeoutError: After all retries exhausted on timeout
            LLMRateLimitError: After all retries exhausted on rate limit (429)
            LLMError: On other HTTP or transport errors (no retry)
        """
        temperature = self.temperature if temperature is None else temperature
        max_tokens = self.max_tokens if max_tokens is None else max_tokens
        timeout = self.timeout if timeout is None else timeout

        messages: List[Message] = list(history or [])
        messages.append({"role": "user", "content": prompt})

        url, headers, payload = self._build_request(
            messages, system, temperature, max_tokens
        )

        for attempt in range(MAX_RETRIES + 1):
            start = time.perf_counter()

            log.debug(
                "llm_call_start",
                provider=self.provider_name,
                model=self.model,
                prompt_length=len(prompt),
                history_messages=len(messages) - 1,
                system_length=len(system) if system else 0,
                attempt=attempt + 1,
            )

            try:
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await client.post(url, headers=headers, json=payload)
                    response.raise_for_status()
                    data = response.json()

            except httpx.TimeoutException as e:
                log.warning(
                    "llm_timeout",
                    provider=self.provider_name,
                    attempt=attempt + 1,
                    timeout_seconds=timeout,
                )
                if attempt >= MAX_RETRIES:
                    raise LLMTimeoutError(
                        f"LLM call timed out after {MAX_RETRIES + 1} attempts "
                        f"(timeout={timeout}s)"
                    ) from e
                await self._backoff(attempt, "timeout")
                continue

            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                if status_code != 429:
                    log.error(
                        "llm_http_error",
                        provider=self.provider_name,
                        status_code=status_code,
                    )
                    raise LLMError(
                        f"{self.provider_name} API returned HTTP {status_code}"
                    ) from e

                log.warning(
                    "llm_rate_limit", provider=self.provider_name, attempt=attempt + 1
                )
                if attempt >= MAX_RETRIES:
                    raise LLMRateLimitError(
                        f"Rate limit exceeded after {MAX_RETRIES + 1} attempts"
                    ) from e
                await self._backoff(attempt, "rate_limit")
                continue

            except httpx.HTTPError as e:
                log.error(
                    "llm_transport_error", provider=self.provider_name, error=str(e)
                )
                raise LLMError(f"{self.provider_name} request failed: {e}") from e

            latency_ms = (time.perf_counter() - start) * 1000
            content, usage = self._parse_response(data)

            log.info(
                "llm_call_complete",
                provider=self.provider_name,
                model=self.model,
                latency_ms=round(latency_ms, 2),
                input_tokens=usage["input_tokens"],
                output_tokens=usage["output_tokens"],
                attempt=attempt + 1,
            )

            return LLMResponse(
                content=content,
                model=data.get("model", self.model),
                usage=usage,
                latency_ms=latency_ms,
                raw_response=data,
            )

        # Unreachable: loop either returns LLMResponse or raises an exception
        assert False, "unreachable"

    async def _backoff(self, attempt: int, reason: str) -> None:
        delay = BASE_DELAY_SECONDS * (2**attempt)
        log.info(
            f"llm_retry_after_{reason}", delay_seconds=delay, next_attempt=attempt + 2
        )
        await asyncio.sleep(delay)

    @abstractmethod
    def _build_request(
        self,
        messages: List[Message],
        system: Optional[str],
        temperature: float,
        max_tokens: int,
    ) -> tuple:
        """Return (url, headers, json payload) for one call."""

    @abstractmethod
    def _parse_response(self, data: Dict[str, Any]) -> tuple:
        """Return (content, usage) from a provider response body."""


# =============================================================================
# OpenAI-Compatible Client
# =============================================================================


class OpenAICompatibleClient(LLMClient):
    """Client for APIs following the OpenAI Chat Completions format."""

    provider_name = "openai"

    def _build_request(self, messages, system, temperature, max_tokens):
        chat: List[Message] = []
        if system:
            chat.append({"role": "system", "content": system})
        chat.extend(messages)

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "messages": chat,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        return f"{self.base_url}/chat/completions", headers, payload

    def _parse_response(self, data):
        content = ""
        if data.get("choices"):
            content = data["choices"][0].get("message", {}).get("content") or ""

        usage = {
            "input_tokens": data.get("usage", {}).get("prompt_tokens", 0),
            "output_tokens": data.get("usage", {}).get("completion_tokens", 0),
        }
        return content.strip(), usage


# =============================================================================
# Anthropic Client
# =============================================================================


class AnthropicClient(LLMClient):
    """Anthropic Claude API client (Messages API)."""

    provider_name = "anthropic"

    def _build_request(self, messages, system, temperature, max_tokens):
        headers = {
            "x-api-key": self.api_key,
            "content-type": "application/json",
            "anthropic-version": "2023-06-01",
        }
        payload: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": messages,
            "temperature": temperature,
        }
        if system:
            payload["system"] = system
        return f"{self.base_url}/messages", headers, payload

    def _parse_response(self, data):
        content = ""
        if data.get("content"):
            content = data["content"][0].get("text", "")

        usage = {
            "input_tokens": data.get("usage", {}).get("input_tokens", 0),
            "output_tokens": data.get("usage", {}).get("output_tokens", 0),
        }
        return content.strip(), usage


# =============================================================================
# Client Factory
# =============================================================================


def get_llm_client(provider: Optional[LLMProvider] = None) -> LLMClient:
    """
    Factory for the challenger LLM client.

    Provider, model and sampling parameters come from settings
    (LLM_PROVIDER, LLM_MODEL, ...); the model falls back to the provider
    default in PROVIDER_DEFAULTS.

    Raises:
        ConfigurationError: If the provider is unknown or its API key is missing
    """
    provider = provider or settings.llm_provider
    if provider not in PROVIDER_DEFAULTS:
        raise ConfigurationError(
            f"Unknown LLM provider '{provider}'. "
            f"Supported providers: {', '.join(PROVIDER_DEFAULTS)}"
        )

    defaults = PROVIDER_DEFAULTS[provider]
    api_key = (
        settings.openai_api_key if provider == "openai" else settings.anthropic_api_key
    )
    if not api_key:
        raise ConfigurationError(
            f"{provider.upper()}_API_KEY not configured. Set it in .env."
        )

    client_cls = OpenAICompatibleClient if provider == "openai" else AnthropicClient
    return client_cls(
        model=settings.llm_model or defaults["model"],
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
        timeout=settings.llm_timeout,
        base_url=defaults["base_url"],
        api_key=api_key,
    )
