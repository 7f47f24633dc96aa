"""HTTP client for the Directus REST API.

Provides the handful of project-scoped calls the ingest pipeline needs:
authentication, collection listing, item reads, and file listing.
``CmsClient`` is the protocol the pipeline depends on, so tests and
alternative transports can substitute their own implementation.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol

import httpx

from core.constants import DEFAULT_HTTP_TIMEOUT_SECONDS


class CmsClient(Protocol):
    """CMS calls used by the ingest pipeline."""

    @property
    def token(self) -> str | None:
        """Current access token."""

    async def login(self, email: str, password: str) -> None:
        """Authenticate with email and password."""

    def use_static_token(self, token: str) -> None:
        """Authenticate with a pre-issued token."""

    async def logout(self) -> None:
        """Drop the session token."""

    async def read_collections(self) -> dict[str, Any]:
        """Read the collection listing."""

    async def read_items(self, path_name: str, params: Mapping[str, object]) -> dict[str, Any]:
        """Read items of one collection."""

    async def read_files(self) -> dict[str, Any]:
        """Read the file listing."""

    async def aclose(self) -> None:
        """Release transport resources."""


class DirectusClient:
    """Async HTTP client for a Directus project.

    Example:
        >>> client = DirectusClient("https://cms.example.com", project="site")
        >>> try:
        ...     await client.login("editor@example.com", "secret")
        ...     payload = await client.read_items("articles", {"limit": -1})
        ... finally:
        ...     await client.aclose()
    """

    def __init__(
        self,
        api_url: str,
        project: str = "",
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_url: CMS base URL.
            project: Project name prefixed to every API path.
            timeout: Request timeout in seconds.
            http_client: Optional preconfigured client, mainly for tests.
        """
        self.api_url = api_url.rstrip("/")
        self.project = project.strip("/")
        self.timeout = timeout
        self._client = http_client
        self._token: str | None = None

    @property
    def token(self) -> str | None:
        """Return the current access token."""
        return self._token

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self.api_url, timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def login(self, email: str, password: str) -> None:
        """Authenticate and store the issued token.

        Raises:
            httpx.HTTPStatusError: On rejected credentials.
            ValueError: If the response carries no token.
        """
        payload = await self._request(
            "POST", "auth/authenticate", json={"email": email, "password": password}
        )
        token = (payload.get("data") or {}).get("token")
        if not isinstance(token, str) or not token:
            raise ValueError("Authentication response did not include a token")
        self._token = token

    def use_static_token(self, token: str) -> None:
        """Authenticate subsequent requests with a static token."""
        self._token = token

    async def logout(self) -> None:
        """Drop the session token."""
        self._token = None

    async def read_collections(self) -> dict[str, Any]:
        """Read the collection listing."""
        return await self._request("GET", "collections")

    async def read_items(self, path_name: str, params: Mapping[str, object]) -> dict[str, Any]:
        """Read items of one collection.

        Args:
            path_name: Collection path in the CMS.
            params: Query parameters such as limit, filter, sort, fields.

        Returns:
            Response payload with a ``data`` list.
        """
        return await self._request(
            "GET", f"items/{path_name}", params=encode_query_params(params)
        )

    async def read_files(self) -> dict[str, Any]:
        """Read the file listing."""
        return await self._request("GET", "files", params={"limit": "-1"})

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        client = await self._get_client()
        headers = {"Authorization": f"Bearer {self._token}"} if self._token else None
        response = await client.request(method, self._api_path(path), headers=headers, **kwargs)
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError(f"Expected a JSON object from {path}, got {type(payload).__name__}")
        return payload

    def _api_path(self, path: str) -> str:
        if self.project:
            return f"/{self.project}/{path}"
        return f"/{path}"


def encode_query_params(params: Mapping[str, object]) -> list[tuple[str, str]]:
    """Encode fetch parameters into Directus query pairs.

    Lists become comma-joined values, nested mappings become bracketed keys
    (``filter[status][eq]=published``), booleans are lowercase, and None
    values are skipped.

    Args:
        params: Fetch parameters.

    Returns:
        Ordered query pairs.
    """
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        _encode_param(key, value, pairs)
    return pairs


def _encode_param(key: str, value: object, pairs: list[tuple[str, str]]) -> None:
    if value is None:
        return
    if isinstance(value, Mapping):
        for child_key, child_value in value.items():
            _encode_param(f"{key}[{child_key}]", child_value, pairs)
        return
    if isinstance(value, (list, tuple)):
        pairs.append((key, ",".join(_scalar_text(item) for item in value)))
        return
    pairs.append((key, _scalar_text(value)))


def _scalar_text(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
