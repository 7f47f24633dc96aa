"""Public SDK surface for the Directus source.

This module provides a stable import path for site build scripts.
It re-exports the run entry points, the sink, and typed config models.
"""

from __future__ import annotations

from core.config import AssetCacheConfig, Credentials, SourceConfig
from core.errors import (
    DirectusAssetError,
    DirectusAuthError,
    DirectusConfigError,
    DirectusError,
    DirectusIngestError,
)
from core.source_config import load_source_config, parse_source_options
from core.types import AssetSyncReport, CollectionReport, CollectionSpec, IngestReport
from ingest.directus_client import DirectusClient
from ingest.pipeline import run_source, sync_source
from store.asset_cache import AssetDownloader
from store.content_store import ContentSink, ContentStore
from transforms.flatten import flatten_record
from transforms.sanitize import sanitize_fields, sanitize_item

__all__ = [
    "AssetCacheConfig",
    "AssetDownloader",
    "AssetSyncReport",
    "CollectionReport",
    "CollectionSpec",
    "ContentSink",
    "ContentStore",
    "Credentials",
    "DirectusAssetError",
    "DirectusAuthError",
    "DirectusClient",
    "DirectusConfigError",
    "DirectusError",
    "DirectusIngestError",
    "IngestReport",
    "SourceConfig",
    "flatten_record",
    "load_source_config",
    "parse_source_options",
    "run_source",
    "sanitize_fields",
    "sanitize_item",
    "sync_source",
]
