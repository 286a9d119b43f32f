"""Shared fixtures for invite-ai tests."""

from __future__ import annotations

import logging
from collections.abc import Generator

import pytest

_ENV_VARS = (
    "INVITE_AI_PROVIDER",
    "INVITE_AI_MODEL",
    "INVITE_AI_BASE_URL",
    "INVITE_AI_OUTPUT_DIR",
    "LOG_LEVEL",
    "GEMINI_API_KEY",
    "OPENAI_API_KEY",
)


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove all invite-ai-related environment variables.

    Patches ``load_dotenv`` so a real ``.env`` file cannot re-inject values
    that the test explicitly removed.
    """
    monkeypatch.setattr("invite_ai.config.load_dotenv", lambda *_a, **_kw: None)
    for key in _ENV_VARS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def monkeypatch_env(clean_env: None, monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set a Gemini API key on top of a clean environment.

    Returns the dict of variables so tests can inspect or override values.
    """
    env_vars = {"GEMINI_API_KEY": "test-gemini-key-12345"}
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture(autouse=True)
def _reset_root_logger() -> Generator[None, None, None]:
    """Reset the root logger after each test to prevent handler leaks."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
