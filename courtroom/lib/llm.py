"""Unified LLM client for the courtroom.

Supports Anthropic (Claude), OpenAI (GPT), and OpenRouter APIs.
Routes requests based on the model id.
"""

import asyncio
import logging
from typing import Any

import httpx
from anthropic import AsyncAnthropic
from openai import AsyncOpenAI
from pydantic import BaseModel, Field

from courtroom.config import ModelProvider, ModelType, Settings, get_settings
from courtroom.lib.exceptions import (
    LLMAuthenticationError,
    LLMConnectionError,
    LLMContextLengthError,
    LLMRateLimitError,
)

logger = logging.getLogger(__name__)

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"


# =============================================================================
# Response Models
# =============================================================================


class TokenUsage(BaseModel):
    """Token usage tracking."""

    input_tokens: int = Field(default=0)
    output_tokens: int = Field(default=0)
    model: str = Field(default="")

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class LLMResponse(BaseModel):
    """Unified response from LLM."""

    content: str
    token_usage: TokenUsage
    model: str
    finish_reason: str | None = None


def _classify_error(e: Exception) -> Exception:
    """Map a provider SDK exception onto our LLM error types."""
    error_msg = str(e).lower()
    if "rate limit" in error_msg or "429" in error_msg:
        return LLMRateLimitError(str(e))
    if "context length" in error_msg or "too many tokens" in error_msg:
        return LLMContextLengthError(str(e))
    if "authentication" in error_msg or "401" in error_msg:
        return LLMAuthenticationError(str(e))
    return LLMConnectionError(str(e))


# =============================================================================
# LLM Client
# =============================================================================


class LLMClient:
    """
    Unified client for LLM APIs.

    Routes requests to Anthropic, OpenAI, or OpenRouter based on model id.
    Tracks token usage per assignment key for cost monitoring.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._anthropic_client: AsyncAnthropic | None = None
        self._openai_client: AsyncOpenAI | None = None
        self._http_client: httpx.AsyncClient | None = None

        self._token_usage: dict[str, TokenUsage] = {}

    async def __aenter__(self) -> "LLMClient":
        await self._ensure_clients()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _ensure_clients(self) -> None:
        """Initialize clients if needed."""
        if self._anthropic_client is None and self.settings.has_anthropic_key:
            self._anthropic_client = AsyncAnthropic(
                api_key=self.settings.anthropic_api_key,
            )

        if self._openai_client is None and self.settings.has_openai_key:
            self._openai_client = AsyncOpenAI(
                api_key=self.settings.openai_api_key,
            )

        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(120.0, connect=10.0),
            )

    async def close(self) -> None:
        """Close all clients."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    def _track_usage(self, key: str, input_tokens: int, output_tokens: int) -> None:
        if key not in self._token_usage:
            self._token_usage[key] = TokenUsage()
        self._token_usage[key].input_tokens += input_tokens
        self._token_usage[key].output_tokens += output_tokens

    def get_usage_summary(self) -> dict[str, dict[str, int]]:
        """Return token usage by assignment key."""
        return {
            key: {"input": usage.input_tokens, "output": usage.output_tokens}
            for key, usage in self._token_usage.items()
        }

    # =========================================================================
    # Anthropic API
    # =========================================================================

    async def _complete_anthropic(
        self,
        model: str,
        messages: list[dict[str, Any]],
        system: str | None,
        max_tokens: int,
        temperature: float,
    ) -> LLMResponse:
        await self._ensure_clients()

        if not self._anthropic_client:
            raise LLMAuthenticationError("Anthropic API key not configured")

        kwargs: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if system:
            kwargs["system"] = system

        try:
            response = await self._anthropic_client.messages.create(**kwargs)
        except Exception as e:
            raise _classify_error(e)

        content = ""
        for block in response.content:
            if hasattr(block, "text"):
                content += block.text

        return LLMResponse(
            content=content,
            token_usage=TokenUsage(
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
                model=model,
            ),
            model=model,
            finish_reason=response.stop_reason,
        )

    # =========================================================================
    # OpenAI API
    # =========================================================================

    async def _complete_openai(
        self,
        model: str,
        messages: list[dict[str, Any]],
        system: str | None,
        max_tokens: int,
        temperature: float,
    ) -> LLMResponse:
        await self._ensure_clients()

        if not self._openai_client:
            raise LLMAuthenticationError("OpenAI API key not configured")

        all_messages = []
        if system:
            all_messages.append({"role": "system", "content": system})
        all_messages.extend(messages)

        try:
            response = await self._openai_client.chat.completions.create(
                model=model,
                messages=all_messages,
                max_tokens=max_tokens,
                temperature=temperature,
                response_format={"type": "json_object"},
            )
        except Exception as e:
            raise _classify_error(e)

        return LLMResponse(
            content=response.choices[0].message.content or "",
            token_usage=TokenUsage(
                input_tokens=response.usage.prompt_tokens if response.usage else 0,
                output_tokens=response.usage.completion_tokens if response.usage else 0,
                model=model,
            ),
            model=model,
            finish_reason=response.choices[0].finish_reason,
        )

    # =========================================================================
    # OpenRouter API
    # =========================================================================

    async def _complete_openrouter(
        self,
        model: str,
        messages: list[dict[str, Any]],
        system: str | None,
        max_tokens: int,
        temperature: float,
    ) -> LLMResponse:
        await self._ensure_clients()

        if not self.settings.has_openrouter_key:
            raise LLMAuthenticationError("OpenRouter API key not configured")

        all_messages = messages.copy()
        if system:
            all_messages.insert(0, {"role": "system", "content": system})

        payload = {
            "model": model,
            "messages": all_messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "response_format": {"type": "json_object"},
        }

        try:
            assert self._http_client is not None
            response = await self._http_client.post(
                OPENROUTER_URL,
                headers={
                    "Authorization": f"Bearer {self.settings.openrouter_api_key}",
                    "HTTP-Referer": "https://courtroom.local",
                    "X-Title": "Virtual Courtroom",
                    "Content-Type": "application/json",
                },
                json=payload,
            )

            if response.status_code == 429:
                raise LLMRateLimitError("OpenRouter rate limit exceeded")
            if response.status_code == 401:
                raise LLMAuthenticationError("OpenRouter authentication failed")

            response.raise_for_status()
            data = response.json()

        except httpx.HTTPStatusError as e:
            raise LLMConnectionError(f"OpenRouter HTTP error: {e}")
        except httpx.RequestError as e:
            raise LLMConnectionError(f"OpenRouter connection error: {e}")

        usage = data.get("usage", {})
        return LLMResponse(
            content=data["choices"][0]["message"]["content"] or "",
            token_usage=TokenUsage(
                input_tokens=usage.get("prompt_tokens", 0),
                output_tokens=usage.get("completion_tokens", 0),
                model=model,
            ),
            model=model,
            finish_reason=data["choices"][0].get("finish_reason"),
        )

    # =========================================================================
    # Public API
    # =========================================================================

    async def complete(
        self,
        model: str | ModelType,
        messages: list[dict[str, Any]],
        system: str | None = None,
        max_tokens: int = 1024,
        temperature: float = 0.7,
        retries: int = 3,
        retry_delay: float = 1.0,
        usage_key: str | None = None,
    ) -> LLMResponse:
        """
        Complete a chat conversation.

        Args:
            model: Model to use (ModelType enum or string)
            messages: List of message dicts with 'role' and 'content'
            system: Optional system prompt
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            retries: Attempts on transient errors (1 disables retrying)
            retry_delay: Initial delay between retries (exponential backoff)
            usage_key: Key for token tracking

        Returns:
            LLMResponse with content and token usage
        """
        model_str = model.value if isinstance(model, ModelType) else model
        provider = self.settings.get_model_provider(model_str)

        for attempt in range(retries):
            try:
                if provider == ModelProvider.ANTHROPIC:
                    response = await self._complete_anthropic(
                        model_str, messages, system, max_tokens, temperature
                    )
                elif provider == ModelProvider.OPENAI:
                    response = await self._complete_openai(
                        model_str, messages, system, max_tokens, temperature
                    )
                else:
                    response = await self._complete_openrouter(
                        model_str, messages, system, max_tokens, temperature
                    )
            except (LLMRateLimitError, LLMConnectionError) as e:
                if attempt < retries - 1:
                    delay = retry_delay * (2**attempt)
                    logger.warning(f"{type(e).__name__}, retrying in {delay}s...")
                    await asyncio.sleep(delay)
                    continue
                raise

            if usage_key:
                self._track_usage(
                    usage_key,
                    response.token_usage.input_tokens,
                    response.token_usage.output_tokens,
                )
            return response

        raise LLMConnectionError("Max retries exceeded")


# =============================================================================
# Module-level client factory
# =============================================================================


_default_client: LLMClient | None = None


async def get_llm_client() -> LLMClient:
    """Get the default LLM client instance."""
    global _default_client
    if _default_client is None:
        _default_client = LLMClient()
        await _default_client._ensure_clients()
    return _default_client


async def close_llm_client() -> None:
    """Close the default LLM client."""
    global _default_client
    if _default_client:
        logger.info(f"Token usage: {_default_client.get_usage_summary()}")
        await _default_client.close()
        _default_client = None
