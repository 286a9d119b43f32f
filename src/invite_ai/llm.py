"""Completion-service clients for event extraction.

A completion client sends one prompt and returns the raw completion text.
It never interprets that text; parsing lives in :mod:`invite_ai.parser`.
Every failure is raised as a tagged :class:`~invite_ai.exceptions.InviteError`
at the point it happens:

- transport failure -> :class:`NetworkError`
- HTTP 401/403 -> :class:`InvalidCredentialError`
- HTTP 429 -> :class:`RateLimitedError`
- any other non-2xx -> :class:`ServiceError`
- 2xx without completion text -> :class:`MalformedResponseError`

Two implementations are provided: :class:`GeminiCompletionClient` on the
``google-genai`` SDK and :class:`ChatCompletionsClient` for any
OpenAI-compatible ``/chat/completions`` endpoint.  Neither retries.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from invite_ai.config import Settings
from invite_ai.exceptions import (
    InviteError,
    InvalidCredentialError,
    MalformedResponseError,
    NetworkError,
    RateLimitedError,
    ServiceError,
)
from invite_ai.prompts import SYSTEM_PROMPT

logger = logging.getLogger(__name__)

TEMPERATURE = 0.2
MAX_OUTPUT_TOKENS = 350


class CompletionClient(Protocol):
    """Capability interface for the completion service."""

    async def complete(self, prompt: str, credential: str) -> str:
        """Send *prompt* and return the raw completion text."""
        ...


def error_for_status(status_code: int, message: str) -> InviteError:
    """Map a non-success HTTP status to the matching tagged exception.

    Args:
        status_code: HTTP status returned by the completion service.
        message: Upstream error message (or reason phrase).

    Returns:
        The exception to raise.
    """
    if status_code in (401, 403):
        return InvalidCredentialError(
            f"Invalid API key ({status_code}): {message}", status_code=status_code
        )
    if status_code == 429:
        return RateLimitedError(f"Rate limit (429): {message}")
    return ServiceError(status_code, message)


# ---------------------------------------------------------------------------
# Gemini
# ---------------------------------------------------------------------------


class GeminiCompletionClient:
    """Completion client backed by Google Gemini.

    Args:
        model: Model identifier to use for generation.  Defaults to
            ``"gemini-2.0-flash"``.
    """

    def __init__(self, model: str = "gemini-2.0-flash") -> None:
        self._model = model
        self._client: genai.Client | None = None
        self._client_key: str | None = None
        self._config = genai_types.GenerateContentConfig(
            system_instruction=SYSTEM_PROMPT,
            temperature=TEMPERATURE,
            max_output_tokens=MAX_OUTPUT_TOKENS,
            candidate_count=1,
        )

    async def complete(self, prompt: str, credential: str) -> str:
        """Call Gemini and return the trimmed completion text.

        Args:
            prompt: The user prompt built by
                :func:`~invite_ai.prompts.build_extraction_prompt`.
            credential: Gemini API key.

        Returns:
            The non-empty completion text.

        Raises:
            NetworkError, InvalidCredentialError, RateLimitedError,
            ServiceError, MalformedResponseError: See module docstring.
        """
        client = self._client_for(credential)
        logger.debug("Prompt sent to Gemini:\n%s", prompt)

        try:
            response = await client.aio.models.generate_content(
                model=self._model,
                contents=prompt,
                config=self._config,
            )
        except genai_errors.APIError as exc:
            logger.error("Gemini API error (HTTP %s): %s", exc.code, exc.message)
            raise error_for_status(exc.code, exc.message or str(exc)) from exc
        except (httpx.TransportError, OSError) as exc:
            logger.error("Gemini transport failure: %s", exc)
            raise NetworkError(f"Failed to fetch: {exc}") from exc

        text = (response.text or "").strip()
        logger.debug("Raw completion:\n%s", text)
        if not text:
            raise MalformedResponseError("No response text from Gemini")
        return text

    def _client_for(self, credential: str) -> genai.Client:
        if self._client is None or self._client_key != credential:
            self._client = genai.Client(api_key=credential)
            self._client_key = credential
        return self._client


# ---------------------------------------------------------------------------
# OpenAI-compatible chat completions
# ---------------------------------------------------------------------------


class ChatCompletionsClient:
    """Completion client for an OpenAI-compatible chat-completions API.

    Args:
        model: Model identifier sent in the request body.
        base_url: API root; ``/chat/completions`` is appended.
        transport: Optional :mod:`httpx` transport (used by tests).
    """

    def __init__(
        self,
        model: str = "gpt-3.5-turbo",
        base_url: str = "https://api.openai.com/v1",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._model = model
        self._endpoint = self._chat_endpoint(base_url)
        self._transport = transport

    @staticmethod
    def _chat_endpoint(base_url: str) -> str:
        base = base_url.rstrip("/")
        if base.endswith("/chat/completions"):
            return base
        return f"{base}/chat/completions"

    def _payload(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self._model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": TEMPERATURE,
            "max_tokens": MAX_OUTPUT_TOKENS,
        }

    async def complete(self, prompt: str, credential: str) -> str:
        """POST the prompt and return the first choice's message content.

        Raises:
            NetworkError, InvalidCredentialError, RateLimitedError,
            ServiceError, MalformedResponseError: See module docstring.
        """
        logger.debug("Prompt sent to %s:\n%s", self._endpoint, prompt)
        headers = {
            "Authorization": f"Bearer {credential}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=None) as client:
                response = await client.post(
                    self._endpoint, headers=headers, json=self._payload(prompt)
                )
        except httpx.TransportError as exc:
            logger.error("Chat completions transport failure: %s", exc)
            raise NetworkError(f"Failed to fetch: {exc}") from exc

        if not response.is_success:
            message = self._error_message(response)
            logger.error("Chat completions API error (HTTP %s): %s", response.status_code, message)
            raise error_for_status(response.status_code, message)

        text = self._completion_text(response)
        logger.debug("Raw completion:\n%s", text)
        return text

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.reason_phrase
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        return response.reason_phrase

    @staticmethod
    def _completion_text(response: httpx.Response) -> str:
        try:
            body = response.json()
            content = body["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise MalformedResponseError(
                "No response from completion API", raw_response=response.text
            ) from exc

        if not isinstance(content, str) or not content.strip():
            raise MalformedResponseError(
                "No response from completion API", raw_response=response.text
            )
        return content.strip()


def build_completion_client(settings: Settings) -> CompletionClient:
    """Create the completion client selected by *settings.provider*."""
    if settings.provider == "openai":
        return ChatCompletionsClient(model=settings.model, base_url=settings.base_url)
    return GeminiCompletionClient(model=settings.model)
