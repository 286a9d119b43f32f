"""Logging setup for invite-ai.

One stderr handler with pipe-separated fields and ISO 8601 timestamps, so
the CLI keeps *stdout* for its result line.  Every record passing through
that handler is scrubbed of API keys and bearer tokens first: the credential
moves through the completion clients and the host bridge, and a debug log of
a request or an upstream error message must not leak it.
"""

from __future__ import annotations

import logging
import re
import sys

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

_HANDLER_ATTR = "_invite_ai_log_handler"

# Held at WARNING unless the application runs at DEBUG.
_QUIET_LOGGERS = ("httpx", "httpcore", "google_genai")

REDACTED = "[REDACTED]"

_SECRET_PATTERNS = (
    re.compile(r"(?i)(bearer\s+)[A-Za-z0-9._~+/=-]+"),
    re.compile(r"(?i)([?&]key=)[^&\s]+"),
    re.compile(r"()\bsk-[A-Za-z0-9_-]{8,}"),
    re.compile(r"()\bAIza[0-9A-Za-z_-]{20,}"),
)


def redact_secrets(text: str) -> str:
    """Replace API keys and bearer tokens in *text* with ``[REDACTED]``."""
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(lambda match: f"{match.group(1)}{REDACTED}", text)
    return text


class SecretRedactingFilter(logging.Filter):
    """Rewrite each record's message with credentials masked."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_secrets(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger for the application.

    Safe to call repeatedly: the second call only updates the level of the
    handler the first call installed.

    Args:
        level: A standard logging level name, case-insensitive.

    Raises:
        ValueError: If *level* is not a recognised logging level string.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level!r}")

    root = logging.getLogger()
    root.setLevel(numeric_level)

    library_level = logging.DEBUG if numeric_level <= logging.DEBUG else logging.WARNING
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    installed = [h for h in root.handlers if getattr(h, _HANDLER_ATTR, False)]
    if installed:
        for handler in installed:
            handler.setLevel(numeric_level)
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))
    handler.addFilter(SecretRedactingFilter())
    setattr(handler, _HANDLER_ATTR, True)
    root.addHandler(handler)
