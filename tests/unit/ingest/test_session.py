"""Unit tests for the authenticated CMS session."""

from __future__ import annotations

import pytest

from core.config import Credentials
from core.errors import DirectusAuthError
from ingest.session import AuthenticatedSession
from tests.fake_cms import FakeCmsClient, RecordingSleep

_PASSWORD_LOGIN = Credentials(email="editor@example.com", password="secret")


@pytest.mark.asyncio
async def test_connect_retries_after_fixed_delay_until_success() -> None:
    """Two failed logins should be retried and the third should succeed."""
    client = FakeCmsClient(login_failures=2)
    sleep = RecordingSleep()
    session = AuthenticatedSession(
        client, _PASSWORD_LOGIN, max_retries=3, reconnect_timeout_ms=10_000, sleep=sleep
    )

    connected = await session.connect()

    assert connected is client
    assert client.login_calls == 3
    assert session.attempts == 3
    assert sleep.delays == [10.0, 10.0]
    assert client.token == "token-for-editor@example.com"


@pytest.mark.asyncio
async def test_connect_raises_after_max_attempts() -> None:
    """Exhausted login attempts should raise an auth error."""
    client = FakeCmsClient(login_failures=5)
    sleep = RecordingSleep()
    session = AuthenticatedSession(
        client, _PASSWORD_LOGIN, max_retries=2, reconnect_timeout_ms=250, sleep=sleep
    )

    with pytest.raises(DirectusAuthError, match="after 2 attempts"):
        await session.connect()

    assert client.login_calls == 2
    assert sleep.delays == [0.25]


@pytest.mark.asyncio
async def test_connect_uses_static_token_without_password_login() -> None:
    """A static token should authenticate without calling login."""
    client = FakeCmsClient()
    session = AuthenticatedSession(client, Credentials(static_token="static-abc"))

    await session.connect()

    assert client.login_calls == 0
    assert client.token == "static-abc"


@pytest.mark.asyncio
async def test_connect_skips_login_without_credentials() -> None:
    """Public CMS access should not attempt any login."""
    client = FakeCmsClient()
    sleep = RecordingSleep()
    session = AuthenticatedSession(client, Credentials(), sleep=sleep)

    await session.connect()
    await session.close()

    assert session.attempts == 0
    assert client.login_calls == 0
    assert client.logout_calls == 0
    assert client.closed


@pytest.mark.asyncio
async def test_close_logs_out_and_releases_client() -> None:
    """Closing a connected session should log out and close the client."""
    client = FakeCmsClient()
    session = AuthenticatedSession(client, _PASSWORD_LOGIN)

    await session.connect()
    await session.close()

    assert client.logout_calls == 1
    assert client.token is None
    assert client.closed


@pytest.mark.asyncio
async def test_close_after_failed_connect_still_closes_client() -> None:
    """A session that never connected should not log out but must close."""
    client = FakeCmsClient(login_failures=1)
    session = AuthenticatedSession(client, _PASSWORD_LOGIN, max_retries=1, sleep=RecordingSleep())

    with pytest.raises(DirectusAuthError):
        await session.connect()
    await session.close()

    assert client.logout_calls == 0
    assert client.closed
