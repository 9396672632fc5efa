"""Tests for the LLM client: configuration guard and error translation."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from app.core.exceptions import (
    UpstreamAuthError,
    UpstreamConfigError,
    UpstreamError,
    UpstreamProtocolError,
    UpstreamRateLimitedError,
    UpstreamServerError,
)
from app.core.llm import LLMClient, LLMConfig, translate_error

URL = "https://api.openai.com/v1/chat/completions"


# ── Helpers ─────────────────────────────────────────────────────


def _status_error(cls, status: int):
    response = httpx.Response(status, request=httpx.Request("POST", URL))
    return cls(f"status {status}", response=response, body=None)


def _mock_client(create: AsyncMock) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = create
    return client


def _chunk(content: str | None):
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


# ── Error translation ───────────────────────────────────────────


class TestTranslateError:
    def test_rate_limit(self):
        err = translate_error(_status_error(openai.RateLimitError, 429))
        assert isinstance(err, UpstreamRateLimitedError)

    def test_authentication(self):
        err = translate_error(_status_error(openai.AuthenticationError, 401))
        assert isinstance(err, UpstreamAuthError)

    def test_permission_denied(self):
        err = translate_error(_status_error(openai.PermissionDeniedError, 403))
        assert isinstance(err, UpstreamAuthError)

    def test_server_error(self):
        err = translate_error(_status_error(openai.InternalServerError, 503))
        assert isinstance(err, UpstreamServerError)

    def test_other_status_is_generic(self):
        err = translate_error(_status_error(openai.BadRequestError, 400))
        assert type(err) is UpstreamError

    def test_timeout_is_server_error(self):
        err = translate_error(openai.APITimeoutError(request=httpx.Request("POST", URL)))
        assert isinstance(err, UpstreamServerError)


# ── Client (mocked SDK) ─────────────────────────────────────────


class TestLLMClient:
    async def test_missing_key_fails_before_network(self):
        with patch("app.core.llm.AsyncOpenAI") as factory:
            llm = LLMClient(LLMConfig(api_key=None))
            with pytest.raises(UpstreamConfigError):
                await llm.complete([{"role": "user", "content": "hi"}])
            factory.assert_not_called()

    async def test_complete_returns_content(self):
        response = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="Hello!"))]
        )
        create = AsyncMock(return_value=response)
        llm = LLMClient(LLMConfig(api_key="sk-test"), client=_mock_client(create))

        text = await llm.complete([{"role": "user", "content": "hi"}], max_tokens=20, temperature=0.3)

        assert text == "Hello!"
        kwargs = create.await_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["max_tokens"] == 20
        assert kwargs["temperature"] == 0.3

    async def test_rate_limit_is_translated(self):
        create = AsyncMock(side_effect=_status_error(openai.RateLimitError, 429))
        llm = LLMClient(LLMConfig(api_key="sk-test"), client=_mock_client(create))

        with pytest.raises(UpstreamRateLimitedError):
            await llm.complete([{"role": "user", "content": "hi"}])

    async def test_missing_content_is_protocol_error(self):
        response = SimpleNamespace(choices=[])
        llm = LLMClient(
            LLMConfig(api_key="sk-test"),
            client=_mock_client(AsyncMock(return_value=response)),
        )
        with pytest.raises(UpstreamProtocolError):
            await llm.complete([{"role": "user", "content": "hi"}])

    async def test_stream_yields_text_fragments(self):
        async def _chunks():
            for content in ["Hel", None, "lo"]:
                yield _chunk(content)

        create = AsyncMock(return_value=_chunks())
        llm = LLMClient(LLMConfig(api_key="sk-test"), client=_mock_client(create))

        fragments = [f async for f in llm.stream([{"role": "user", "content": "hi"}])]

        assert fragments == ["Hel", "lo"]
        assert create.await_args.kwargs["stream"] is True

    async def test_stream_error_is_translated(self):
        create = AsyncMock(side_effect=_status_error(openai.InternalServerError, 500))
        llm = LLMClient(LLMConfig(api_key="sk-test"), client=_mock_client(create))

        with pytest.raises(UpstreamServerError):
            async for _ in llm.stream([{"role": "user", "content": "hi"}]):
                pass
