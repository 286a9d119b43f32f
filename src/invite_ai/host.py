"""Host-bridge adapters for the secret store and the calendar hand-off.

The host application exposes two request/response messages:

- ``getAPIKey`` -> ``{"success": True, "key": ...}`` or
  ``{"success": False, "error": ...}``
- ``saveICS`` with ``{"ics": <text>}`` -> ``{"success": True, "message": ...}``
  or ``{"success": False, "error": ...}``

:class:`BridgeSecretProvider` and :class:`BridgeCalendarSink` translate those
replies into the pipeline's capability interfaces.  Errors coming back
through the bridge are opaque text, so they are wrapped in the matching
tagged exception with the text kept verbatim.

:class:`LocalHostBridge` answers both messages in-process: the key is read
from the environment and the calendar text is written to a ``.ics`` file.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

from invite_ai.config import Settings
from invite_ai.exceptions import CalendarError, InitializationError

logger = logging.getLogger(__name__)

GET_API_KEY = "getAPIKey"
SAVE_ICS = "saveICS"


class HostBridge(Protocol):
    """Request/response channel to the privileged host process."""

    async def request(self, name: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        """Send message *name* with *payload* and return the reply."""
        ...


class CalendarSink(Protocol):
    """Capability interface for persisting and opening calendar text."""

    async def save_and_open(self, ics: str) -> str:
        """Hand *ics* to the calendar application and return a status message."""
        ...


class BridgeSecretProvider:
    """Secret provider that asks the host bridge for the API key."""

    def __init__(self, bridge: HostBridge) -> None:
        self._bridge = bridge

    async def get_secret(self) -> str | None:
        """Return the key from the host, or ``None`` when the host has none.

        Raises:
            InitializationError: If the bridge itself fails.
        """
        try:
            reply = await self._bridge.request(GET_API_KEY)
        except Exception as exc:
            raise InitializationError(f"Failed to load API key: {exc}") from exc

        if reply.get("success") and reply.get("key"):
            return str(reply["key"])
        logger.warning("Host did not provide an API key: %s", reply.get("error", "no key"))
        return None


class BridgeCalendarSink:
    """Calendar sink that forwards the calendar text to the host bridge."""

    def __init__(self, bridge: HostBridge) -> None:
        self._bridge = bridge

    async def save_and_open(self, ics: str) -> str:
        """Send ``saveICS`` and return the host's success message.

        Raises:
            CalendarError: If the host reports failure or the bridge fails.
        """
        try:
            reply = await self._bridge.request(SAVE_ICS, {"ics": ics})
        except Exception as exc:
            raise CalendarError(f"Calendar error: {exc}") from exc

        if not reply.get("success"):
            raise CalendarError(str(reply.get("error") or "Failed to save ICS file"))
        return str(reply.get("message", ""))


class LocalHostBridge:
    """In-process host bridge for command-line use.

    Args:
        settings: Supplies the API-key environment variable and the output
            directory.
        opener: Optional callable invoked with the path of each written
            file, e.g. to open it in the default calendar application.  It
            returns ``False`` when the file could not be opened.
    """

    def __init__(
        self,
        settings: Settings,
        opener: Callable[[Path], bool] | None = None,
    ) -> None:
        self._settings = settings
        self._opener = opener

    async def request(self, name: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        """Dispatch a host message by *name*."""
        logger.debug("Host bridge received message: %s", name)
        if name == GET_API_KEY:
            return self._get_api_key()
        if name == SAVE_ICS and payload and isinstance(payload.get("ics"), str):
            return await asyncio.to_thread(self._save_ics, payload["ics"])
        return {"success": False, "error": "Invalid message format"}

    def _get_api_key(self) -> dict[str, Any]:
        env_var = self._settings.api_key_env
        key = os.environ.get(env_var, "").strip()
        if not key:
            logger.error("%s not configured", env_var)
            return {
                "success": False,
                "error": f"API key not configured. Please set the {env_var} environment variable.",
            }
        return {"success": True, "name": "apiKeyResponse", "key": key}

    def _save_ics(self, ics: str) -> dict[str, Any]:
        path = self._settings.output_dir / f"event_{int(time.time())}.ics"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(ics, encoding="utf-8", newline="")
            logger.info("Saved ICS file to %s", path)
            if self._opener is not None and not self._opener(path):
                logger.error("Could not open %s in a calendar application", path)
                return {"success": False, "error": "Failed to save or open ICS file"}
        except OSError as exc:
            logger.error("Error saving ICS file: %s", exc)
            return {"success": False, "error": f"Failed to save or open ICS file: {exc}"}

        return {
            "success": True,
            "name": "saveICSResponse",
            "message": f"Event saved to {path}",
            "path": str(path),
        }
