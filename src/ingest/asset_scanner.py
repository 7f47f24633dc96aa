"""Embedded per-record asset resolution.

Records are scanned for asset-shaped values; each match is downloaded
into the cache and its mapping gains a path field: ``local_path`` for
images and ``local_file_path`` for files, so both survive when a record
is scanned for each kind. Nested
objects and list elements are visited, except values under ``owner``,
which point back at CMS user records.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, MutableMapping

from core.config import AssetCacheConfig
from core.constants import (
    IMAGE_MIME_TYPES,
    LOCAL_FILE_PATH_FIELD,
    LOCAL_PATH_FIELD,
    OWNER_FIELD,
)
from core.errors import DirectusAssetError
from core.logging_config import get_logger
from core.types import AssetReference
from store.asset_cache import AssetDownloader
from transforms.record_tree import ArrayNode, AssetNode, ObjectNode, classify

_LOGGER = get_logger(__name__)


class AssetKind(Enum):
    """Embedded asset flavors resolved per record."""

    IMAGE = "image"
    FILE = "file"

    def accepts(self, reference: AssetReference) -> bool:
        """Return whether a reference belongs to this kind."""
        if self is AssetKind.IMAGE:
            return reference.mime_type in IMAGE_MIME_TYPES
        return True

    def cache_dir(self, cache_config: AssetCacheConfig) -> Path:
        """Return the cache directory for this kind."""
        if self is AssetKind.IMAGE:
            return cache_config.image_dir
        return cache_config.file_dir

    @property
    def path_field(self) -> str:
        """Return the field that receives the cached file path."""
        if self is AssetKind.IMAGE:
            return LOCAL_PATH_FIELD
        return LOCAL_FILE_PATH_FIELD


@dataclass
class EmbeddedAssetStats:
    """Counts of embedded assets handled for one record."""

    resolved: int = 0
    failed: int = 0


async def resolve_embedded_assets(
    record: MutableMapping[str, Any],
    kind: AssetKind,
    downloader: AssetDownloader,
) -> EmbeddedAssetStats:
    """Download embedded assets of one kind and annotate them in place.

    A failed download leaves the field unresolved and the record continues.

    Args:
        record: Record to scan; modified in place.
        kind: Asset kind to resolve.
        downloader: Cache-aware downloader.

    Returns:
        Resolved and failed asset counts.
    """
    stats = EmbeddedAssetStats()
    cache_dir = kind.cache_dir(downloader.config)
    await _visit(record, kind, downloader, cache_dir, stats)
    return stats


async def _visit(
    container: MutableMapping[str, Any] | list[Any],
    kind: AssetKind,
    downloader: AssetDownloader,
    cache_dir: Path,
    stats: EmbeddedAssetStats,
) -> None:
    for key, value in _children(container):
        node = classify(value, kind.accepts)
        if isinstance(node, AssetNode):
            await _resolve(node, kind.path_field, downloader, cache_dir, stats)
        elif key == OWNER_FIELD:
            continue
        elif isinstance(node, ObjectNode) and node.fields:
            await _visit(node.fields, kind, downloader, cache_dir, stats)
        elif isinstance(node, ArrayNode) and node.items:
            await _visit(node.items, kind, downloader, cache_dir, stats)


def _children(container: MutableMapping[str, Any] | list[Any]) -> Iterator[tuple[object, Any]]:
    if isinstance(container, list):
        return iter(list(enumerate(container)))
    return iter(list(container.items()))


async def _resolve(
    node: AssetNode,
    path_field: str,
    downloader: AssetDownloader,
    cache_dir: Path,
    stats: EmbeddedAssetStats,
) -> None:
    reference = node.reference
    try:
        local_path = await downloader.ensure(reference.url, reference.filename, cache_dir)
    except DirectusAssetError as error:
        stats.failed += 1
        _LOGGER.warning(
            "embedded_asset_failed",
            filename=reference.filename,
            url=reference.url,
            error=str(error),
        )
        return
    node.fields[path_field] = str(local_path)
    stats.resolved += 1
