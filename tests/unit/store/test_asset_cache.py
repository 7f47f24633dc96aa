"""Unit tests for the asset cache downloader."""

from __future__ import annotations

import asyncio
from pathlib import Path

import httpx
import pytest

from core.config import AssetCacheConfig
from core.errors import DirectusAssetError
from store.asset_cache import AssetDownloader
from tests.fake_cms import CountingHandler, make_downloader


class _BrokenStream(httpx.AsyncByteStream):
    """Response body that fails after the first chunk."""

    async def __aiter__(self):
        yield b"partial-bytes"
        raise httpx.ReadError("connection reset by peer")


@pytest.mark.asyncio
async def test_ensure_downloads_once_and_then_hits_cache(tmp_path: Path) -> None:
    """A second ensure for the same file should not issue a request."""
    handler = CountingHandler()
    downloader = make_downloader(tmp_path / "cache", handler)
    cache_dir = tmp_path / "cache" / "img-cache"

    first = await downloader.ensure("https://assets.test/f.png", "f.png", cache_dir)
    second = await downloader.ensure("https://assets.test/f.png", "f.png", cache_dir)

    assert first == second == (cache_dir / "f.png").resolve()
    assert first.read_bytes() == b"asset-bytes:/f.png"
    assert len(handler.requests) == 1


@pytest.mark.asyncio
async def test_ensure_returns_existing_file_without_request(tmp_path: Path) -> None:
    """A file already present on disk should count as a cache hit."""
    handler = CountingHandler()
    downloader = make_downloader(tmp_path / "cache", handler)
    cache_dir = tmp_path / "cache" / "file-cache"
    cache_dir.mkdir(parents=True)
    (cache_dir / "doc.pdf").write_bytes(b"cached")

    path = await downloader.ensure("https://assets.test/doc.pdf", "doc.pdf", cache_dir)

    assert path.read_bytes() == b"cached"
    assert handler.requests == []


@pytest.mark.asyncio
async def test_ensure_creates_nested_cache_directories(tmp_path: Path) -> None:
    """Missing cache directories should be created recursively."""
    downloader = make_downloader(tmp_path / "cache", CountingHandler())
    cache_dir = tmp_path / "deep" / "nested" / "img-cache"

    path = await downloader.ensure("https://assets.test/a.png", "a.png", cache_dir)

    assert path.is_absolute() and path.exists()


@pytest.mark.asyncio
async def test_ensure_removes_partial_file_on_stream_error(tmp_path: Path) -> None:
    """A transport error mid-stream should leave no file behind."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, stream=_BrokenStream())

    downloader = make_downloader(tmp_path / "cache", handler)
    cache_dir = tmp_path / "cache" / "img-cache"

    with pytest.raises(DirectusAssetError):
        await downloader.ensure("https://assets.test/broken.png", "broken.png", cache_dir)

    assert not (cache_dir / "broken.png").exists()
    assert list(cache_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_ensure_raises_for_http_error_status(tmp_path: Path) -> None:
    """Non-success responses should fail without creating the file."""
    handler = CountingHandler(failing_paths=frozenset({"/missing.png"}))
    downloader = make_downloader(tmp_path / "cache", handler)
    cache_dir = tmp_path / "cache" / "img-cache"

    with pytest.raises(DirectusAssetError):
        await downloader.ensure("https://assets.test/missing.png", "missing.png", cache_dir)

    assert not (cache_dir / "missing.png").exists()


@pytest.mark.asyncio
async def test_ensure_rejects_names_escaping_cache_dir(tmp_path: Path) -> None:
    """Destination names with path segments should be refused."""
    handler = CountingHandler()
    downloader = make_downloader(tmp_path / "cache", handler)

    with pytest.raises(DirectusAssetError):
        await downloader.ensure("https://assets.test/x.png", "../x.png", tmp_path / "cache")

    assert handler.requests == []


@pytest.mark.asyncio
async def test_ensure_applies_configured_protocol(tmp_path: Path) -> None:
    """The global protocol option should rewrite the asset URL scheme."""
    handler = CountingHandler()
    downloader = make_downloader(tmp_path / "cache", handler, protocol="http")

    await downloader.ensure("https://assets.test/p.png", "p.png", tmp_path / "cache" / "img-cache")

    assert handler.requests[0].url.scheme == "http"


def test_clear_cache_empties_directories_but_keeps_them(tmp_path: Path) -> None:
    """Full-resync mode should delete cached files and keep the folders."""
    config = AssetCacheConfig.under_root(tmp_path / "cache")
    config.image_dir.mkdir(parents=True)
    (config.image_dir / "old.png").write_bytes(b"old")
    (config.file_dir / "nested").mkdir(parents=True)
    (config.file_dir / "nested" / "old.pdf").write_bytes(b"old")

    AssetDownloader(config).clear_cache()

    for directory in config.cache_dirs():
        assert directory.is_dir()
        assert list(directory.iterdir()) == []


@pytest.mark.asyncio
async def test_clear_cache_forces_redownload(tmp_path: Path) -> None:
    """After clearing, a previously cached asset should be fetched again."""
    handler = CountingHandler()
    downloader = make_downloader(tmp_path / "cache", handler)
    image_dir = downloader.config.image_dir

    await downloader.ensure("https://assets.test/r.png", "r.png", image_dir)
    downloader.clear_cache()
    await downloader.ensure("https://assets.test/r.png", "r.png", image_dir)

    assert len(handler.requests) == 2


@pytest.mark.asyncio
async def test_ensure_releases_path_locks_after_downloads(tmp_path: Path) -> None:
    """Per-file locks should be dropped once every request for the file is done."""
    handler = CountingHandler(failing_paths=frozenset({"/bad.png"}))
    downloader = make_downloader(tmp_path / "cache", handler)
    cache_dir = tmp_path / "cache" / "assets"

    results = await asyncio.gather(
        downloader.ensure("https://assets.test/a.png", "a.png", cache_dir),
        downloader.ensure("https://assets.test/a.png", "a.png", cache_dir),
        downloader.ensure("https://assets.test/bad.png", "bad.png", cache_dir),
        return_exceptions=True,
    )

    assert results[0] == results[1] == (cache_dir / "a.png").resolve()
    assert isinstance(results[2], DirectusAssetError)
    assert len(handler.requests) == 2
    assert downloader._path_locks == {}


def test_clear_cache_wraps_filesystem_errors(tmp_path: Path) -> None:
    """A cache path that is not a directory should raise an asset error."""
    config = AssetCacheConfig.under_root(tmp_path / "cache")
    config.cache_root.mkdir()
    config.image_dir.write_bytes(b"not a directory")

    with pytest.raises(DirectusAssetError, match="clear asset cache"):
        AssetDownloader(config).clear_cache()
