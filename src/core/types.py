"""Shared typed models.

This module defines the immutable models used by config parsing, the
ingest pipeline, and the asset cache to keep interfaces explicit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Mapping, Union

Record = dict[str, Any]
SlugifyFn = Callable[[str], str]
RouteFunction = Callable[[str, Mapping[str, object], SlugifyFn], str]


@dataclass(frozen=True)
class CollectionSpec:
    """One configured collection to ingest.

    Attributes:
        name: Collection name, also used as the sink type name.
        source_path_name: CMS collection path; defaults to ``name``.
        params: Opaque fetch parameters passed to the items endpoint.
        flatten: Flatten nested records into compound keys.
        sanitize_id: Remap ``id`` to ``_directusID`` before sanitizing.
        download_images: Resolve embedded image assets into the image cache.
        download_files: Resolve embedded file assets into the file cache.
        has_route: Derive ``/<slug>/:slug`` as the collection route.
        route: Literal route or a route derivation function.
        raw_options: Raw option mapping handed to route functions.
    """

    name: str
    source_path_name: str | None = None
    params: Mapping[str, object] = field(default_factory=dict)
    flatten: bool = False
    sanitize_id: bool = True
    download_images: bool = False
    download_files: bool = False
    has_route: bool = False
    route: str | RouteFunction | None = None
    raw_options: Mapping[str, object] = field(default_factory=dict)

    @property
    def path_name(self) -> str:
        """Return the CMS path used to fetch this collection."""
        return self.source_path_name or self.name


@dataclass(frozen=True)
class AssetReference:
    """Remote binary resource referenced by a record field.

    Attributes:
        mime_type: MIME type reported by the CMS.
        url: Absolute download URL.
        filename: Destination name, the CMS disk name when present.
    """

    mime_type: str
    url: str
    filename: str

    @classmethod
    def from_value(cls, value: object) -> "AssetReference | None":
        """Parse an asset-shaped mapping, returning None for anything else."""
        if not isinstance(value, Mapping):
            return None
        mime_type = value.get("type")
        data = value.get("data")
        if not mime_type or not isinstance(data, Mapping):
            return None
        url = data.get("full_url")
        filename = value.get("filename_disk") or value.get("filename_download")
        if not isinstance(url, str) or not isinstance(filename, str):
            return None
        return cls(mime_type=str(mime_type), url=url, filename=filename)


@dataclass(frozen=True)
class DownloadSuccess:
    """Asset stored in the cache."""

    filename: str
    path: Path


@dataclass(frozen=True)
class DownloadFailure:
    """Asset that could not be downloaded."""

    filename: str
    url: str
    error: str


DownloadResult = Union[DownloadSuccess, DownloadFailure]


@dataclass(frozen=True)
class AssetSyncReport:
    """Outcome of the bulk asset pass.

    Attributes:
        downloaded: Sorted, de-duplicated filenames present in the cache.
        failed: Per-asset failures, in listing order.
    """

    downloaded: tuple[str, ...]
    failed: tuple[DownloadFailure, ...]


@dataclass(frozen=True)
class CollectionReport:
    """Outcome of ingesting one collection."""

    name: str
    route: str | None
    node_count: int
    assets_resolved: int = 0
    assets_failed: int = 0


@dataclass(frozen=True)
class IngestReport:
    """Outcome of one full ingestion run."""

    collections: tuple[CollectionReport, ...]
    asset_sync: AssetSyncReport | None = None

    @property
    def node_count(self) -> int:
        """Count nodes committed across all collections."""
        return sum(report.node_count for report in self.collections)
