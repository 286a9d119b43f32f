"""Tests for invite-ai configuration loading."""

from __future__ import annotations

import dataclasses
import tempfile
from pathlib import Path

import pytest

from invite_ai.config import DEFAULT_BASE_URL, ConfigError, Settings, load_settings


class TestLoadSettingsHappyPath:
    """Tests for successful configuration loading."""

    def test_load_settings_defaults(self, clean_env: None) -> None:
        """No variables set yields the Gemini defaults."""
        settings = load_settings()

        assert settings.provider == "gemini"
        assert settings.model == "gemini-2.0-flash"
        assert settings.base_url == DEFAULT_BASE_URL
        assert settings.output_dir == Path(tempfile.gettempdir())
        assert settings.log_level == "INFO"

    def test_load_settings_openai_provider(
        self, clean_env: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """INVITE_AI_PROVIDER=openai switches the default model."""
        monkeypatch.setenv("INVITE_AI_PROVIDER", " OpenAI ")

        settings = load_settings()

        assert settings.provider == "openai"
        assert settings.model == "gpt-3.5-turbo"
        assert settings.api_key_env == "OPENAI_API_KEY"

    def test_load_settings_custom_model(
        self, clean_env: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """INVITE_AI_MODEL overrides the provider default."""
        monkeypatch.setenv("INVITE_AI_MODEL", "gemini-2.5-pro")

        assert load_settings().model == "gemini-2.5-pro"

    def test_load_settings_base_url_trailing_slash(
        self, clean_env: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A trailing slash on INVITE_AI_BASE_URL is dropped."""
        monkeypatch.setenv("INVITE_AI_BASE_URL", "http://localhost:11434/v1/")

        assert load_settings().base_url == "http://localhost:11434/v1"

    def test_load_settings_output_dir(
        self, clean_env: None, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        """INVITE_AI_OUTPUT_DIR becomes a Path."""
        monkeypatch.setenv("INVITE_AI_OUTPUT_DIR", str(tmp_path))

        assert load_settings().output_dir == tmp_path

    def test_load_settings_custom_log_level(
        self, clean_env: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """LOG_LEVEL=debug is honoured and upper-cased."""
        monkeypatch.setenv("LOG_LEVEL", "debug")

        assert load_settings().log_level == "DEBUG"

    def test_api_key_not_part_of_settings(self, monkeypatch_env: dict[str, str]) -> None:
        """The API key is read by the host bridge, never stored in Settings."""
        settings = load_settings()

        assert monkeypatch_env["GEMINI_API_KEY"] not in repr(settings)
        assert settings.api_key_env == "GEMINI_API_KEY"


class TestLoadSettingsInvalid:
    """Tests for invalid environment variables."""

    def test_unknown_provider(self, clean_env: None, monkeypatch: pytest.MonkeyPatch) -> None:
        """An unknown provider raises ConfigError naming the variable."""
        monkeypatch.setenv("INVITE_AI_PROVIDER", "anthropic")

        with pytest.raises(ConfigError, match="INVITE_AI_PROVIDER"):
            load_settings()

    def test_unknown_log_level(self, clean_env: None, monkeypatch: pytest.MonkeyPatch) -> None:
        """An unknown level raises ConfigError naming the variable."""
        monkeypatch.setenv("LOG_LEVEL", "VERBOSE")

        with pytest.raises(ConfigError, match="LOG_LEVEL"):
            load_settings()

    def test_whitespace_values_use_defaults(
        self, clean_env: None, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Whitespace-only values are treated as unset."""
        monkeypatch.setenv("INVITE_AI_PROVIDER", "   ")
        monkeypatch.setenv("INVITE_AI_MODEL", "   ")
        monkeypatch.setenv("LOG_LEVEL", "  ")

        settings = load_settings()

        assert settings.provider == "gemini"
        assert settings.model == "gemini-2.0-flash"
        assert settings.log_level == "INFO"


class TestSettingsDataclass:
    """Tests for the Settings dataclass behaviour."""

    def test_settings_is_frozen(self) -> None:
        """Mutating a field on a frozen dataclass must raise."""
        settings = Settings()

        with pytest.raises(dataclasses.FrozenInstanceError):
            settings.provider = "openai"  # type: ignore[misc]

    def test_settings_replace(self, tmp_path: Path) -> None:
        """dataclasses.replace produces an updated copy."""
        settings = dataclasses.replace(Settings(), output_dir=tmp_path)

        assert settings.output_dir == tmp_path
        assert settings.provider == "gemini"


class TestConfigError:
    """Tests for the ConfigError exception class."""

    def test_config_error_is_exception(self) -> None:
        """ConfigError must be a subclass of Exception."""
        assert issubclass(ConfigError, Exception)

    def test_config_error_message(self) -> None:
        """ConfigError preserves the message string."""
        err = ConfigError("something went wrong")

        assert str(err) == "something went wrong"
