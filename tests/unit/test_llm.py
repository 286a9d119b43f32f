"""Unit tests for the completion clients.

All tests use mocks -- no real API calls are made.  The Gemini client is
exercised with a mocked ``genai.Client``; the chat-completions client runs
against an ``httpx.MockTransport``.
"""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from google.genai import errors as genai_errors

from invite_ai.config import Settings
from invite_ai.exceptions import (
    InvalidCredentialError,
    MalformedResponseError,
    NetworkError,
    RateLimitedError,
    ServiceError,
)
from invite_ai.llm import (
    MAX_OUTPUT_TOKENS,
    TEMPERATURE,
    ChatCompletionsClient,
    GeminiCompletionClient,
    build_completion_client,
    error_for_status,
)
from invite_ai.prompts import SYSTEM_PROMPT

_EVENT_JSON = '{"title": "Lunch with Sam", "date": "2024-06-11"}'


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run_gemini(generate: AsyncMock, prompt: str = "prompt", key: str = "fake-key") -> tuple[str, MagicMock]:
    """Run ``GeminiCompletionClient.complete`` against a mocked SDK client."""
    with patch("invite_ai.llm.genai.Client") as client_cls:
        client_cls.return_value.aio.models.generate_content = generate
        client = GeminiCompletionClient(model="gemini-test")
        text = asyncio.run(client.complete(prompt, key))
    return text, client_cls


def _gemini_response(text: str | None) -> AsyncMock:
    response = MagicMock()
    response.text = text
    return AsyncMock(return_value=response)


def _api_error(code: int, message: str = "upstream says no") -> genai_errors.APIError:
    return genai_errors.APIError(code, {"error": {"code": code, "message": message, "status": "ERR"}})


def _chat_client(handler) -> ChatCompletionsClient:
    return ChatCompletionsClient(
        model="gpt-test",
        base_url="https://llm.example.com/v1",
        transport=httpx.MockTransport(handler),
    )


def _chat_body(content: str) -> dict:
    return {"choices": [{"index": 0, "message": {"role": "assistant", "content": content}}]}


# ---------------------------------------------------------------------------
# Status mapping
# ---------------------------------------------------------------------------


class TestErrorForStatus:
    """HTTP status -> tagged exception."""

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_statuses(self, status: int) -> None:
        error = error_for_status(status, "nope")

        assert isinstance(error, InvalidCredentialError)
        assert error.status_code == status

    def test_rate_limit(self) -> None:
        assert isinstance(error_for_status(429, "slow down"), RateLimitedError)

    @pytest.mark.parametrize("status", [400, 404, 500, 503])
    def test_other_statuses(self, status: int) -> None:
        error = error_for_status(status, "broken")

        assert isinstance(error, ServiceError)
        assert error.status_code == status
        assert error.upstream_message == "broken"


# ---------------------------------------------------------------------------
# Gemini
# ---------------------------------------------------------------------------


class TestGeminiCompletionClient:
    """Google Gemini via google-genai."""

    def test_returns_trimmed_text(self) -> None:
        text, _ = _run_gemini(_gemini_response(f"\n  {_EVENT_JSON}  \n"))

        assert text == _EVENT_JSON

    def test_request_configuration(self) -> None:
        generate = _gemini_response("none")

        _, client_cls = _run_gemini(generate, prompt="the prompt", key="secret-key")

        client_cls.assert_called_once_with(api_key="secret-key")
        kwargs = generate.call_args.kwargs
        assert kwargs["model"] == "gemini-test"
        assert kwargs["contents"] == "the prompt"
        config = kwargs["config"]
        assert config.system_instruction == SYSTEM_PROMPT
        assert config.temperature == TEMPERATURE
        assert config.max_output_tokens == MAX_OUTPUT_TOKENS
        assert config.candidate_count == 1

    def test_sdk_client_reused_for_same_credential(self) -> None:
        with patch("invite_ai.llm.genai.Client") as client_cls:
            client_cls.return_value.aio.models.generate_content = _gemini_response("none")
            client = GeminiCompletionClient()

            async def _twice() -> None:
                await client.complete("a", "key")
                await client.complete("b", "key")

            asyncio.run(_twice())

        assert client_cls.call_count == 1

    @pytest.mark.parametrize("text", [None, "", "   "])
    def test_empty_text_is_malformed(self, text: str | None) -> None:
        with pytest.raises(MalformedResponseError):
            _run_gemini(_gemini_response(text))

    @pytest.mark.parametrize(
        ("code", "error_type"),
        [
            (401, InvalidCredentialError),
            (403, InvalidCredentialError),
            (429, RateLimitedError),
            (500, ServiceError),
        ],
    )
    def test_api_errors_are_tagged(self, code: int, error_type: type[Exception]) -> None:
        with pytest.raises(error_type):
            _run_gemini(AsyncMock(side_effect=_api_error(code)))

    def test_service_error_carries_status(self) -> None:
        with pytest.raises(ServiceError) as exc_info:
            _run_gemini(AsyncMock(side_effect=_api_error(503)))

        assert exc_info.value.status_code == 503

    def test_transport_error_is_network_failure(self) -> None:
        with pytest.raises(NetworkError, match="Failed to fetch"):
            _run_gemini(AsyncMock(side_effect=httpx.ConnectError("connection refused")))


# ---------------------------------------------------------------------------
# Chat completions
# ---------------------------------------------------------------------------


class TestChatCompletionsClient:
    """OpenAI-compatible HTTP client."""

    def test_returns_message_content(self) -> None:
        client = _chat_client(lambda request: httpx.Response(200, json=_chat_body(f" {_EVENT_JSON} ")))

        assert asyncio.run(client.complete("p", "k")) == _EVENT_JSON

    def test_request_shape(self) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json=_chat_body("none"))

        asyncio.run(_chat_client(handler).complete("the prompt", "secret-key"))

        request = captured[0]
        assert str(request.url) == "https://llm.example.com/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer secret-key"
        body = json.loads(request.content)
        assert body["model"] == "gpt-test"
        assert body["temperature"] == TEMPERATURE
        assert body["max_tokens"] == MAX_OUTPUT_TOKENS
        assert body["messages"] == [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": "the prompt"},
        ]

    def test_full_endpoint_url_is_not_doubled(self) -> None:
        client = ChatCompletionsClient(base_url="https://llm.example.com/v1/chat/completions/")

        assert client._endpoint == "https://llm.example.com/v1/chat/completions"

    @pytest.mark.parametrize(
        ("status", "error_type"),
        [
            (401, InvalidCredentialError),
            (403, InvalidCredentialError),
            (429, RateLimitedError),
            (500, ServiceError),
        ],
    )
    def test_status_errors_are_tagged(self, status: int, error_type: type[Exception]) -> None:
        client = _chat_client(lambda request: httpx.Response(status, json={"error": {"message": "x"}}))

        with pytest.raises(error_type):
            asyncio.run(client.complete("p", "k"))

    def test_service_error_uses_upstream_message(self) -> None:
        body = {"error": {"message": "The server had an error"}}
        client = _chat_client(lambda request: httpx.Response(502, json=body))

        with pytest.raises(ServiceError) as exc_info:
            asyncio.run(client.complete("p", "k"))

        assert exc_info.value.status_code == 502
        assert exc_info.value.upstream_message == "The server had an error"

    def test_service_error_falls_back_to_reason_phrase(self) -> None:
        client = _chat_client(lambda request: httpx.Response(500, text="<html>oops</html>"))

        with pytest.raises(ServiceError) as exc_info:
            asyncio.run(client.complete("p", "k"))

        assert exc_info.value.upstream_message == "Internal Server Error"

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"choices": []},
            {"choices": [{"message": {}}]},
            {"choices": [{"message": {"content": "  "}}]},
        ],
    )
    def test_envelope_without_text_is_malformed(self, body: dict) -> None:
        client = _chat_client(lambda request: httpx.Response(200, json=body))

        with pytest.raises(MalformedResponseError):
            asyncio.run(client.complete("p", "k"))

    def test_non_json_success_is_malformed(self) -> None:
        client = _chat_client(lambda request: httpx.Response(200, text="not json"))

        with pytest.raises(MalformedResponseError):
            asyncio.run(client.complete("p", "k"))

    def test_transport_error_is_network_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(NetworkError):
            asyncio.run(_chat_client(handler).complete("p", "k"))


class TestBuildCompletionClient:
    """Provider selection from settings."""

    def test_gemini_is_default(self) -> None:
        with patch("invite_ai.llm.genai.Client"):
            assert isinstance(build_completion_client(Settings()), GeminiCompletionClient)

    def test_openai_provider(self) -> None:
        settings = Settings(provider="openai", model="gpt-test")

        assert isinstance(build_completion_client(settings), ChatCompletionsClient)
