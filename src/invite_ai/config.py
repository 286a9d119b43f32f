"""Configuration loading for invite-ai.

Reads settings from environment variables (with .env support via python-dotenv)
and validates them.  The completion-service API key is deliberately *not*
part of :class:`Settings`: it is fetched through a secret provider (see
:mod:`invite_ai.credentials`) so it never sits in a long-lived settings object.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


class ConfigError(Exception):
    """Raised when configuration is missing or invalid."""


PROVIDERS = ("gemini", "openai")

_DEFAULT_MODELS = {
    "gemini": "gemini-2.0-flash",
    "openai": "gpt-3.5-turbo",
}

_API_KEY_ENV_VARS = {
    "gemini": "GEMINI_API_KEY",
    "openai": "OPENAI_API_KEY",
}

DEFAULT_BASE_URL = "https://api.openai.com/v1"


@dataclass(frozen=True)
class Settings:
    """Application settings loaded from environment variables.

    Attributes:
        provider: Completion provider, ``"gemini"`` or ``"openai"``.
        model: Model identifier sent to the provider.
        base_url: Base URL of the OpenAI-compatible API (``openai`` only).
        output_dir: Directory where generated ``.ics`` files are written.
        log_level: Logging level (default ``"INFO"``).
    """

    provider: str = "gemini"
    model: str = _DEFAULT_MODELS["gemini"]
    base_url: str = DEFAULT_BASE_URL
    output_dir: Path = Path(tempfile.gettempdir())
    log_level: str = "INFO"

    @property
    def api_key_env(self) -> str:
        """Name of the environment variable holding the provider API key."""
        return _API_KEY_ENV_VARS[self.provider]


def load_settings() -> Settings:
    """Load and validate settings from environment variables.

    Calls :func:`dotenv.load_dotenv` so a ``.env`` file in the project root
    is picked up automatically.  Every variable is optional:

    - ``INVITE_AI_PROVIDER`` -- ``gemini`` (default) or ``openai``.
    - ``INVITE_AI_MODEL`` -- defaults per provider.
    - ``INVITE_AI_BASE_URL`` -- OpenAI-compatible API root.
    - ``INVITE_AI_OUTPUT_DIR`` -- defaults to the system temp directory.
    - ``LOG_LEVEL`` -- defaults to ``INFO``.

    Returns:
        A validated :class:`Settings` instance.

    Raises:
        ConfigError: If the provider or log level is not recognised.
    """
    load_dotenv()

    provider = os.environ.get("INVITE_AI_PROVIDER", "").strip().lower() or "gemini"
    if provider not in PROVIDERS:
        choices = ", ".join(PROVIDERS)
        raise ConfigError(
            f"Invalid INVITE_AI_PROVIDER {provider!r} (expected one of: {choices})"
        )

    log_level = os.environ.get("LOG_LEVEL", "").strip().upper() or "INFO"
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigError(f"Invalid LOG_LEVEL: {log_level!r}")

    values: dict[str, object] = {
        "provider": provider,
        "model": os.environ.get("INVITE_AI_MODEL", "").strip() or _DEFAULT_MODELS[provider],
        "log_level": log_level,
    }

    base_url = os.environ.get("INVITE_AI_BASE_URL", "").strip()
    if base_url:
        values["base_url"] = base_url.rstrip("/")

    output_dir = os.environ.get("INVITE_AI_OUTPUT_DIR", "").strip()
    if output_dir:
        values["output_dir"] = Path(output_dir).expanduser()

    return Settings(**values)  # type: ignore[arg-type]
