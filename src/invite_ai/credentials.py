"""Session-scoped access to the completion-service credential.

The credential comes from an external :class:`SecretProvider` and is fetched
at most once per session; :class:`CredentialCache` holds it in memory for
every later request.  Concurrent first callers share the same pending fetch.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from invite_ai.exceptions import InitializationError

logger = logging.getLogger(__name__)


class SecretProvider(Protocol):
    """Capability interface for retrieving the API key."""

    async def get_secret(self) -> str | None:
        """Return the secret, or ``None`` when it is not configured."""
        ...


class CredentialCache:
    """Once-initialized holder for the completion-service credential.

    Args:
        provider: Where the credential is fetched from.
    """

    def __init__(self, provider: SecretProvider) -> None:
        self._provider = provider
        self._secret: str | None = None
        self._pending: asyncio.Future[str] | None = None

    @property
    def is_loaded(self) -> bool:
        """Whether the credential has already been fetched."""
        return self._secret is not None

    async def get(self) -> str:
        """Return the credential, fetching it on first use.

        A failed fetch is not cached, so the next request tries again.

        Raises:
            InitializationError: If the provider reports no secret or fails.
        """
        if self._secret is not None:
            return self._secret
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._fetch())
        pending = self._pending
        try:
            return await pending
        finally:
            if self._pending is pending and pending.done():
                self._pending = None

    async def _fetch(self) -> str:
        logger.debug("Fetching completion-service credential")
        try:
            secret = await self._provider.get_secret()
        except InitializationError:
            raise
        except Exception as exc:
            raise InitializationError(f"Failed to load API key: {exc}") from exc

        if not secret:
            raise InitializationError("Failed to load API key: no key available")
        self._secret = secret
        logger.info("Completion-service credential loaded")
        return secret
