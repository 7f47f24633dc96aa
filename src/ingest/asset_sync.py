"""Bulk post-pass over the CMS file listing.

After all collections are ingested, every file in the CMS is downloaded
into the flat asset directory. Downloads run concurrently and each one
settles into an explicit success or failure result, so a single broken
asset never cancels its siblings.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from core.errors import DirectusAssetError
from core.logging_config import get_logger
from core.types import (
    AssetReference,
    AssetSyncReport,
    DownloadFailure,
    DownloadResult,
    DownloadSuccess,
)
from ingest.directus_client import CmsClient
from store.asset_cache import AssetDownloader

_LOGGER = get_logger(__name__)


async def sync_global_assets(
    client: CmsClient,
    downloader: AssetDownloader,
    asset_dir: Path | None = None,
) -> AssetSyncReport:
    """Download every CMS asset into the flat asset directory.

    Args:
        client: Authenticated CMS client.
        downloader: Cache-aware downloader.
        asset_dir: Destination directory; defaults to the configured one.

    Returns:
        Report with de-duplicated downloaded names and per-asset failures.

    Raises:
        DirectusAssetError: If the asset listing cannot be read.
    """
    target_dir = asset_dir or downloader.config.asset_dir
    references = await _list_assets(client)
    results = await asyncio.gather(
        *(_download_one(downloader, reference, target_dir) for reference in references)
    )
    report = build_sync_report(results)
    _LOGGER.info(
        "asset_sync_completed",
        downloaded=list(report.downloaded),
        downloaded_count=len(report.downloaded),
        failed_count=len(report.failed),
    )
    for failure in report.failed:
        _LOGGER.warning(
            "asset_sync_failed",
            filename=failure.filename,
            url=failure.url,
            error=failure.error,
        )
    return report


def build_sync_report(results: list[DownloadResult]) -> AssetSyncReport:
    """Split settled download results into a report.

    Args:
        results: Settled per-asset results.

    Returns:
        Report with sorted unique successes and ordered failures.
    """
    downloaded = sorted(
        {result.filename for result in results if isinstance(result, DownloadSuccess)}
    )
    failed = tuple(result for result in results if isinstance(result, DownloadFailure))
    return AssetSyncReport(downloaded=tuple(downloaded), failed=failed)


async def _list_assets(client: CmsClient) -> list[AssetReference]:
    try:
        payload = await client.read_files()
        rows = _expect_rows(payload)
    except Exception as error:
        raise DirectusAssetError(
            f"Can not read the Directus file listing: {error}. "
            "Check API permissions for the files endpoint."
        ) from error
    references: list[AssetReference] = []
    for row in rows:
        reference = AssetReference.from_value(row)
        if reference is None:
            _LOGGER.warning("asset_sync_skipped", reason="unrecognized file entry", entry=repr(row)[:200])
            continue
        references.append(reference)
    return references


def _expect_rows(payload: Any) -> list[Any]:
    rows = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(rows, list):
        raise ValueError("file listing response has no 'data' list")
    return rows


async def _download_one(
    downloader: AssetDownloader,
    reference: AssetReference,
    target_dir: Path,
) -> DownloadResult:
    try:
        path = await downloader.ensure(reference.url, reference.filename, target_dir)
    except DirectusAssetError as error:
        return DownloadFailure(filename=reference.filename, url=reference.url, error=str(error))
    return DownloadSuccess(filename=reference.filename, path=path)
