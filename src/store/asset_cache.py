"""On-disk asset cache and downloader.

This module ensures each remote asset is stored on disk exactly once.
A file present at its cache path is proof of a prior successful
download, so cached assets never trigger a network request. Downloads
stream into a ``.part`` file that is renamed into place on success.
"""

from __future__ import annotations

import asyncio
import shutil
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import httpx

from core.config import AssetCacheConfig
from core.constants import DEFAULT_HTTP_TIMEOUT_SECONDS, DOWNLOAD_CHUNK_SIZE
from core.errors import DirectusAssetError
from core.logging_config import get_logger

_LOGGER = get_logger(__name__)
_PARTIAL_SUFFIX = ".part"


class AssetDownloader:
    """Cache-aware asset downloader bound to one cache layout."""

    def __init__(
        self,
        cache_config: AssetCacheConfig,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT_SECONDS,
    ) -> None:
        """Create a downloader.

        Args:
            cache_config: Cache directories and transport selection.
            http_client: Optional shared client; created lazily when omitted.
            timeout: Request timeout in seconds for a lazily created client.
        """
        self._config = cache_config
        self._client = http_client
        self._owns_client = http_client is None
        self._timeout = timeout
        self._path_locks: dict[Path, asyncio.Lock] = {}
        self._lock_users: dict[Path, int] = {}

    @property
    def config(self) -> AssetCacheConfig:
        """Return the cache layout this downloader writes to."""
        return self._config

    async def ensure(self, url: str, dest_filename: str, cache_dir: Path) -> Path:
        """Return the local path of an asset, downloading it when absent.

        Args:
            url: Remote asset URL.
            dest_filename: File name inside the cache directory.
            cache_dir: Cache directory for this asset flow.

        Returns:
            Absolute path of the cached file.

        Raises:
            DirectusAssetError: If the name is unsafe or the download fails.
        """
        _validate_filename(dest_filename)
        target_path = cache_dir / dest_filename
        resolved_path = target_path.resolve()
        # Concurrent requests for one file share a single download.
        async with self._path_lock(resolved_path):
            if target_path.exists():
                _LOGGER.debug("asset_cache_hit", filename=dest_filename, path=str(resolved_path))
                return resolved_path
            cache_dir.mkdir(parents=True, exist_ok=True)
            request_url = self._resolve_url(url)
            _LOGGER.info("asset_downloading", filename=dest_filename, url=request_url)
            await self._stream_to_file(request_url, dest_filename, target_path)
        return resolved_path

    def clear_cache(self) -> None:
        """Remove every cached asset while keeping the cache directories.

        Raises:
            DirectusAssetError: If a cache directory cannot be emptied.
        """
        for directory in self._config.cache_dirs():
            try:
                _empty_directory(directory)
            except OSError as error:
                raise DirectusAssetError(
                    f"Failed to clear asset cache at {directory}: {error}. "
                    "Check that the path is a writable directory."
                ) from error
            _LOGGER.info("asset_cache_cleared", directory=str(directory))

    async def aclose(self) -> None:
        """Close the HTTP client when this downloader created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    @asynccontextmanager
    async def _path_lock(self, path: Path) -> AsyncIterator[None]:
        lock = self._path_locks.setdefault(path, asyncio.Lock())
        self._lock_users[path] = self._lock_users.get(path, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[path] -= 1
            # Last user out drops the lock; waiters keep it alive.
            if not self._lock_users[path]:
                del self._lock_users[path]
                del self._path_locks[path]

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
        return self._client

    def _resolve_url(self, url: str) -> str:
        if self._config.protocol is None:
            return url
        return str(httpx.URL(url).copy_with(scheme=self._config.protocol))

    async def _stream_to_file(self, url: str, dest_filename: str, target_path: Path) -> None:
        partial_path = target_path.with_name(target_path.name + _PARTIAL_SUFFIX)
        client = await self._get_client()
        try:
            async with client.stream("GET", url) as response:
                response.raise_for_status()
                with partial_path.open("wb") as handle:
                    async for chunk in response.aiter_bytes(DOWNLOAD_CHUNK_SIZE):
                        handle.write(chunk)
            partial_path.replace(target_path)
        except (httpx.HTTPError, OSError) as error:
            raise DirectusAssetError(
                f"Failed to download asset '{dest_filename}' from {url}: {error}. "
                "Check that the file is reachable and retry."
            ) from error
        finally:
            partial_path.unlink(missing_ok=True)


def _empty_directory(directory: Path) -> None:
    if directory.exists():
        for child in directory.iterdir():
            if child.is_dir() and not child.is_symlink():
                shutil.rmtree(child)
            else:
                child.unlink()
    directory.mkdir(parents=True, exist_ok=True)


def _validate_filename(dest_filename: str) -> None:
    """Reject destination names that would escape the cache directory."""
    if not dest_filename or dest_filename in {".", ".."} or Path(dest_filename).name != dest_filename:
        raise DirectusAssetError(
            f"Invalid asset file name '{dest_filename}': expected a plain file name."
        )
    if "\\" in dest_filename:
        raise DirectusAssetError(
            f"Invalid asset file name '{dest_filename}': path separators are not allowed."
        )
