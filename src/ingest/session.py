"""Authenticated CMS session with bounded login retries.

The session logs in once per run and hands the authenticated client to
every collection and asset fetch. Failed logins are retried after a
fixed, awaited delay; nothing else is scheduled until login succeeds or
the attempts run out.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from core.config import Credentials
from core.constants import DEFAULT_MAX_RETRIES, DEFAULT_RECONNECT_TIMEOUT_MS
from core.errors import DirectusAuthError
from core.logging_config import get_logger
from ingest.directus_client import CmsClient

_LOGGER = get_logger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


class AuthenticatedSession:
    """Login lifecycle around one CMS client."""

    def __init__(
        self,
        client: CmsClient,
        credentials: Credentials,
        max_retries: int = DEFAULT_MAX_RETRIES,
        reconnect_timeout_ms: int = DEFAULT_RECONNECT_TIMEOUT_MS,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._client = client
        self._credentials = credentials
        self._max_retries = max(1, max_retries)
        self._reconnect_delay = reconnect_timeout_ms / 1000
        self._sleep = sleep
        self.attempts = 0
        self._connected = False

    @property
    def client(self) -> CmsClient:
        """Return the client shared by every fetch in the run."""
        return self._client

    async def connect(self) -> CmsClient:
        """Log in, retrying after a fixed delay on failure.

        Returns:
            The authenticated client.

        Raises:
            DirectusAuthError: After ``max_retries`` consecutive failures.
        """
        if not self._credentials.requires_login:
            _LOGGER.info("login_skipped", reason="no credentials configured")
            self._connected = True
            return self._client
        while True:
            self.attempts += 1
            try:
                await self._login()
            except Exception as error:
                _LOGGER.error(
                    "login_failed",
                    attempt=self.attempts,
                    max_retries=self._max_retries,
                    error=repr(error),
                )
                if self.attempts >= self._max_retries:
                    raise DirectusAuthError(
                        f"Can not login to Directus after {self.attempts} attempts: {error}. "
                        "Check apiUrl and credentials."
                    ) from error
                _LOGGER.info("login_retry_scheduled", delay_seconds=self._reconnect_delay)
                await self._sleep(self._reconnect_delay)
                continue
            self._connected = True
            _LOGGER.info("login_succeeded", attempt=self.attempts)
            return self._client

    async def close(self) -> None:
        """Log out and release the client.

        Logout failures are logged and never replace the run's own outcome.
        """
        try:
            if self._connected and self._credentials.requires_login:
                await self._client.logout()
                _LOGGER.info("logout_succeeded")
        except Exception as error:
            _LOGGER.warning("logout_failed", error=repr(error))
        finally:
            self._connected = False
            await self._client.aclose()

    async def _login(self) -> None:
        if self._credentials.has_password_login:
            await self._client.login(
                str(self._credentials.email), str(self._credentials.password)
            )
        elif self._credentials.static_token:
            self._client.use_static_token(self._credentials.static_token)
        payload = await self._client.read_collections()
        _LOGGER.debug("collections_listed", count=len(payload.get("data") or []))
