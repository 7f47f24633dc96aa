"""Content graph sink.

The pipeline only talks to the static-site generator through the
``ContentSink`` protocol: register a collection, add nodes, slugify.
``ContentStore`` is an in-memory implementation that can export each
collection as JSON for generators that read content from disk.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from slugify import slugify as _slugify

from core.errors import DirectusIngestError
from core.logging_config import get_logger
from core.types import Record

_LOGGER = get_logger(__name__)


class ContentType(Protocol):
    """Registered collection that accepts nodes."""

    def add_node(self, record: Record) -> Any:
        """Commit one node."""


class ContentSink(Protocol):
    """Collection and node registry provided by the site generator."""

    def add_collection(self, type_name: str, route: str | None) -> ContentType:
        """Register a collection and return its content type."""

    def slugify(self, text: str) -> str:
        """Convert text into a URL slug."""


@dataclass
class ContentCollection:
    """In-memory content type."""

    type_name: str
    route: str | None
    nodes: list[Record] = field(default_factory=list)

    def add_node(self, record: Record) -> Record:
        """Store a node and return it."""
        self.nodes.append(record)
        return record


class ContentStore:
    """In-memory content graph with JSON export."""

    def __init__(self) -> None:
        self._collections: dict[str, ContentCollection] = {}

    def add_collection(self, type_name: str, route: str | None) -> ContentCollection:
        """Register a collection.

        Args:
            type_name: Content type name.
            route: Optional page route template.

        Returns:
            Registered content type.

        Raises:
            DirectusIngestError: If the type name is already registered.
        """
        if type_name in self._collections:
            raise DirectusIngestError(
                f"Content type '{type_name}' is already registered. "
                "Use unique collection names."
            )
        collection = ContentCollection(type_name=type_name, route=route)
        self._collections[type_name] = collection
        return collection

    def slugify(self, text: str) -> str:
        """Convert text into a lowercase ASCII slug."""
        return _slugify(text)

    def get_collection(self, type_name: str) -> ContentCollection | None:
        """Return a registered collection by name."""
        return self._collections.get(type_name)

    @property
    def collections(self) -> tuple[ContentCollection, ...]:
        """Return collections in registration order."""
        return tuple(self._collections.values())

    def export_json(self, output_dir: Path) -> list[Path]:
        """Write one JSON document per collection.

        Args:
            output_dir: Destination directory, created when missing.

        Returns:
            Written file paths in registration order.

        Raises:
            DirectusIngestError: If the export cannot be written.
        """
        try:
            written_paths = self._write_collections(output_dir)
        except OSError as error:
            raise DirectusIngestError(
                f"Failed to write content export to {output_dir}: {error}. "
                "Choose a writable output directory."
            ) from error
        _LOGGER.info(
            "content_exported",
            output_dir=str(output_dir),
            collection_count=len(written_paths),
        )
        return written_paths

    def _write_collections(self, output_dir: Path) -> list[Path]:
        output_dir.mkdir(parents=True, exist_ok=True)
        written_paths: list[Path] = []
        for collection in self._collections.values():
            payload = {
                "typeName": collection.type_name,
                "route": collection.route,
                "nodes": collection.nodes,
            }
            output_path = output_dir / f"{collection.type_name}.json"
            output_path.write_text(
                json.dumps(payload, indent=2, sort_keys=True, default=str) + "\n",
                encoding="utf-8",
            )
            written_paths.append(output_path)
        return written_paths
