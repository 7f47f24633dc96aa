"""Ingest orchestration for one full resync run.

This module validates the run, opens the authenticated session, ingests
collections strictly in order, runs the optional bulk asset pass, and
always closes the session. Failures propagate as ``DirectusError``
subclasses; deciding the process exit status is left to the caller.
"""

from __future__ import annotations

import asyncio

from core.config import SourceConfig
from core.errors import DirectusConfigError
from core.logging_config import get_logger
from core.types import CollectionReport, IngestReport
from ingest.asset_sync import sync_global_assets
from ingest.collection_ingestor import CollectionIngestor
from ingest.directus_client import CmsClient, DirectusClient
from ingest.session import AuthenticatedSession, SleepFn
from store.asset_cache import AssetDownloader
from store.content_store import ContentSink

_LOGGER = get_logger(__name__)


class SourceRunner:
    """Stateful runner for one ingestion pass."""

    def __init__(
        self,
        config: SourceConfig,
        sink: ContentSink,
        client: CmsClient | None = None,
        downloader: AssetDownloader | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._config = config
        self._sink = sink
        self._client = client or DirectusClient(config.api_url, project=config.project)
        self._downloader = downloader or AssetDownloader(config.cache)
        self._session = AuthenticatedSession(
            self._client,
            config.credentials,
            max_retries=config.max_retries,
            reconnect_timeout_ms=config.reconnect_timeout_ms,
            sleep=sleep,
        )

    async def run(self) -> IngestReport:
        """Execute the run and return its report."""
        try:
            if self._config.cache.clear_on_start:
                self._downloader.clear_cache()
            client = await self._session.connect()
            _LOGGER.info("loading_started", api_url=self._config.api_url)
            collection_reports = await self._ingest_collections(client)
            asset_report = None
            if self._config.cache.sync_assets:
                asset_report = await sync_global_assets(client, self._downloader)
        finally:
            await self._session.close()
            await self._downloader.aclose()
        report = IngestReport(collections=collection_reports, asset_sync=asset_report)
        _LOGGER.info(
            "loading_done",
            collection_count=len(report.collections),
            node_count=report.node_count,
        )
        return report

    async def _ingest_collections(self, client: CmsClient) -> tuple[CollectionReport, ...]:
        ingestor = CollectionIngestor(client, self._sink, self._downloader)
        reports: list[CollectionReport] = []
        for spec in self._config.collections:
            reports.append(await ingestor.ingest(spec))
        return tuple(reports)


async def run_source(
    config: SourceConfig,
    sink: ContentSink,
    client: CmsClient | None = None,
    downloader: AssetDownloader | None = None,
    sleep: SleepFn = asyncio.sleep,
) -> IngestReport:
    """Run one full ingestion pass into a content sink.

    Args:
        config: Validated source config.
        sink: Content sink receiving collections and nodes.
        client: Optional CMS client; built from config when omitted.
        downloader: Optional asset downloader; built from config when omitted.
        sleep: Awaitable delay used between login attempts.

    Returns:
        Run report.

    Raises:
        DirectusConfigError: If no collections are configured.
        DirectusAuthError: If login attempts are exhausted.
        DirectusIngestError: If a collection cannot be loaded.
        DirectusAssetError: If the global asset listing fails.
    """
    validate_collections(config)
    runner = SourceRunner(config, sink, client=client, downloader=downloader, sleep=sleep)
    return await runner.run()


def sync_source(config: SourceConfig, sink: ContentSink) -> IngestReport:
    """Run ``run_source`` on a fresh event loop."""
    return asyncio.run(run_source(config, sink))


def validate_collections(config: SourceConfig) -> None:
    """Reject runs without collections before any network activity.

    Raises:
        DirectusConfigError: If ``collections`` is empty.
    """
    if not config.collections:
        raise DirectusConfigError(
            "No Directus collections specified! Add at least one entry to 'collections'."
        )
