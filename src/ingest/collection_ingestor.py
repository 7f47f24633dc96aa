"""Per-collection ingestion into the content sink.

Each collection is fetched in full, registered with the sink once, and
its records are transformed in fetch order: embedded images, embedded
files, flattening, then sanitizing, before being committed as nodes.
"""

from __future__ import annotations

from typing import Any

from core.constants import FETCH_ALL_LIMIT
from core.errors import DirectusIngestError
from core.logging_config import get_logger
from core.types import CollectionReport, CollectionSpec, Record, SlugifyFn
from ingest.asset_scanner import AssetKind, resolve_embedded_assets
from ingest.directus_client import CmsClient
from store.asset_cache import AssetDownloader
from store.content_store import ContentSink
from transforms.flatten import flatten_record
from transforms.sanitize import sanitize_fields, sanitize_item

_LOGGER = get_logger(__name__)


class CollectionIngestor:
    """Fetch, transform, and commit collections one at a time."""

    def __init__(
        self,
        client: CmsClient,
        sink: ContentSink,
        downloader: AssetDownloader,
    ) -> None:
        self._client = client
        self._sink = sink
        self._downloader = downloader

    async def ingest(self, spec: CollectionSpec) -> CollectionReport:
        """Ingest one collection into the sink.

        Args:
            spec: Collection to ingest.

        Returns:
            Node and asset counts for the collection.

        Raises:
            DirectusIngestError: If the collection cannot be fetched.
        """
        records = await self._fetch_records(spec)
        route = derive_route(spec, self._sink.slugify)
        content_type = self._sink.add_collection(type_name=spec.name, route=route)
        assets_resolved = 0
        assets_failed = 0
        for record in records:
            for kind in _asset_kinds(spec):
                stats = await resolve_embedded_assets(record, kind, self._downloader)
                assets_resolved += stats.resolved
                assets_failed += stats.failed
            content_type.add_node(transform_record(record, spec))
        _LOGGER.info(
            "collection_loaded",
            collection=spec.name,
            source_path=spec.path_name,
            route=route,
            node_count=len(records),
            assets_resolved=assets_resolved,
            assets_failed=assets_failed,
        )
        return CollectionReport(
            name=spec.name,
            route=route,
            node_count=len(records),
            assets_resolved=assets_resolved,
            assets_failed=assets_failed,
        )

    async def _fetch_records(self, spec: CollectionSpec) -> list[Record]:
        params = build_fetch_params(spec)
        try:
            payload = await self._client.read_items(spec.path_name, params)
        except Exception as error:
            raise DirectusIngestError(
                f"Can not load data for collection '{spec.name}' "
                f"(path '{spec.path_name}'): {error}."
            ) from error
        return _expect_records(payload, spec)


def build_fetch_params(spec: CollectionSpec) -> dict[str, object]:
    """Build item-read parameters, defaulting to fetching every record.

    Args:
        spec: Collection spec.

    Returns:
        Fetch parameters with ``limit`` always present.
    """
    params = dict(spec.params)
    if params.get("limit") is None:
        params["limit"] = FETCH_ALL_LIMIT
    return params


def derive_route(spec: CollectionSpec, slugify: SlugifyFn) -> str | None:
    """Derive the page route for a collection.

    Args:
        spec: Collection spec.
        slugify: Sink slug helper.

    Returns:
        Route template, or None for collections without pages.

    Raises:
        DirectusIngestError: If a route function fails or returns a non-string.
    """
    if spec.has_route:
        return f"/{slugify(spec.name)}/:slug"
    if callable(spec.route):
        try:
            route = spec.route(spec.name, spec.raw_options, slugify)
        except Exception as error:
            raise DirectusIngestError(
                f"Route function for collection '{spec.name}' failed: {error}."
            ) from error
        if route is not None and not isinstance(route, str):
            raise DirectusIngestError(
                f"Route function for collection '{spec.name}' returned "
                f"{type(route).__name__}; expected a string."
            )
        return route
    return spec.route


def transform_record(record: Record, spec: CollectionSpec) -> Record:
    """Apply flattening and sanitizing to one record.

    Args:
        record: Fetched record, possibly with resolved assets.
        spec: Collection spec.

    Returns:
        Record ready to commit.
    """
    if spec.flatten:
        record = flatten_record(record)
    if spec.sanitize_id is False:
        return sanitize_fields(record)
    return sanitize_item(record)


def _asset_kinds(spec: CollectionSpec) -> list[AssetKind]:
    kinds: list[AssetKind] = []
    if spec.download_images:
        kinds.append(AssetKind.IMAGE)
    if spec.download_files:
        kinds.append(AssetKind.FILE)
    return kinds


def _expect_records(payload: Any, spec: CollectionSpec) -> list[Record]:
    rows = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
        raise DirectusIngestError(
            f"Can not load data for collection '{spec.name}': "
            "response did not contain a 'data' list of objects."
        )
    return rows
