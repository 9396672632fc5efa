"""LLM client: thin wrapper over the OpenAI SDK with a typed error taxonomy.

The client is built from an explicit ``LLMConfig`` so callers (and tests)
choose the credential and endpoint; nothing here reads the environment.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass

import httpx
import openai
from openai import AsyncOpenAI

from app.config import Settings
from app.core.exceptions import (
    UpstreamAuthError,
    UpstreamConfigError,
    UpstreamError,
    UpstreamProtocolError,
    UpstreamRateLimitedError,
    UpstreamServerError,
)
from app.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class LLMConfig:
    """Credential, endpoint and model names for the completion API."""

    api_key: str | None
    base_url: str | None = None
    chat_model: str = "gpt-4o-mini"
    vision_model: str = "gpt-4o"
    timeout: float = 60.0

    @classmethod
    def from_settings(cls, settings: Settings) -> LLMConfig:
        return cls(
            api_key=settings.openai_api_key or None,
            base_url=settings.openai_base_url,
            chat_model=settings.llm_chat_model,
            vision_model=settings.llm_vision_model,
            timeout=settings.llm_timeout,
        )


def translate_error(exc: Exception) -> UpstreamError:
    """Map an OpenAI SDK exception onto the upstream error taxonomy."""
    if isinstance(exc, UpstreamError):
        return exc
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return UpstreamAuthError(f"LLM credential rejected: {exc}")
    if isinstance(exc, openai.RateLimitError):
        return UpstreamRateLimitedError(f"LLM rate limited: {exc}")
    if isinstance(exc, openai.APIStatusError):
        if exc.status_code in (401, 403):
            return UpstreamAuthError(f"LLM credential rejected: {exc}")
        if exc.status_code == 429:
            return UpstreamRateLimitedError(f"LLM rate limited: {exc}")
        if exc.status_code >= 500:
            return UpstreamServerError(f"LLM server error {exc.status_code}: {exc}")
        return UpstreamError(f"LLM API error {exc.status_code}: {exc}")
    if isinstance(exc, openai.APITimeoutError):
        return UpstreamServerError(f"LLM request timed out: {exc}")
    return UpstreamError(f"LLM call failed: {exc}")


class LLMClient:
    """Blocking and streaming chat completions."""

    def __init__(self, config: LLMConfig, client: AsyncOpenAI | None = None) -> None:
        self.config = config
        self._client = client

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key) or self._client is not None

    def ensure_configured(self) -> None:
        if not self.is_configured:
            raise UpstreamConfigError("OpenAI API key not configured")

    def _get_client(self) -> AsyncOpenAI:
        self.ensure_configured()
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.config.api_key,
                base_url=self.config.base_url,
                timeout=httpx.Timeout(self.config.timeout, connect=10.0),
                max_retries=0,
            )
        return self._client

    async def complete(
        self,
        messages: list[dict],
        *,
        model: str | None = None,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ) -> str:
        """Single request/response completion. Returns the reply text."""
        client = self._get_client()
        model = model or self.config.chat_model
        try:
            response = await client.chat.completions.create(
                model=model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except openai.OpenAIError as e:
            err = translate_error(e)
            logger.warning("llm_call_failed", model=model, code=err.code, error=str(e))
            raise err from e

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError) as e:
            raise UpstreamProtocolError("LLM response missing choices[0].message.content") from e
        if content is None:
            raise UpstreamProtocolError("LLM response has no completion content")
        return content

    async def stream(
        self,
        messages: list[dict],
        *,
        model: str | None = None,
        max_tokens: int = 500,
        temperature: float = 0.7,
    ) -> AsyncIterator[str]:
        """Yield text fragments as the vendor streams them."""
        client = self._get_client()
        model = model or self.config.chat_model
        try:
            stream = await client.chat.completions.create(
                model=model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
                stream=True,
            )
            async for chunk in stream:
                choice = chunk.choices[0] if chunk.choices else None
                if not choice or not choice.delta:
                    continue
                if choice.delta.content:
                    yield choice.delta.content
        except openai.OpenAIError as e:
            err = translate_error(e)
            logger.warning("llm_stream_failed", model=model, code=err.code, error=str(e))
            raise err from e
