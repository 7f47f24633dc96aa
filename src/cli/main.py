"""Directus source CLI entry points.

This module exposes the sync and cache commands and maps argparse
commands onto pipeline calls. It is the only place that turns a
``DirectusError`` into a process exit status.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from core.config import SourceConfig
from core.constants import DEFAULT_CACHE_ROOT, DEFAULT_CONTENT_DIR_NAME, ERROR_PREFIX
from core.errors import DirectusError
from core.logging_config import configure_logging, get_logger
from core.source_config import load_source_config
from ingest.pipeline import run_source
from store.asset_cache import AssetDownloader
from store.content_store import ContentStore

_LOGGER = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="directus-source",
        description="Load Directus collections and assets into a static-site content graph",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_sync_command(subparsers)
    _add_clear_cache_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Directus source CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    try:
        if args.command == "sync":
            return _run_sync_command(args)
        if args.command == "clear-cache":
            return _run_clear_cache_command(args)
    except DirectusError as error:
        _LOGGER.error("run_failed", command=args.command, error=str(error))
        print(f"{ERROR_PREFIX}: {error}", file=sys.stderr)
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _run_sync_command(args: argparse.Namespace) -> int:
    """Handle sync command.

    Args:
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    config = _apply_overrides(load_source_config(args.config), args)
    store = ContentStore()
    report = asyncio.run(run_source(config, store))
    store.export_json(Path(args.output_dir))
    for collection in report.collections:
        print(f"{collection.name}\t{collection.node_count}\t{collection.route or '-'}")
    if report.asset_sync is not None:
        print(
            f"assets\t{len(report.asset_sync.downloaded)}\t"
            f"failed={len(report.asset_sync.failed)}"
        )
    return 0


def _run_clear_cache_command(args: argparse.Namespace) -> int:
    """Handle clear-cache command.

    Args:
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    config = load_source_config(args.config)
    downloader = AssetDownloader(config.cache)
    downloader.clear_cache()
    for directory in config.cache.cache_dirs():
        print(directory)
    return 0


def _apply_overrides(config: SourceConfig, args: argparse.Namespace) -> SourceConfig:
    """Apply CLI flags on top of the loaded config."""
    cache = config.cache
    if args.clear_cache:
        cache = replace(cache, clear_on_start=True)
    if args.sync_assets:
        cache = replace(cache, sync_assets=True)
    return replace(config, cache=cache)


def _add_sync_command(subparsers: Any) -> None:
    """Register sync subcommand."""
    parser = subparsers.add_parser("sync", help="Load every configured collection")
    parser.add_argument("--config", required=True, help="Path to YAML source config")
    parser.add_argument(
        "--output-dir",
        default=str(DEFAULT_CACHE_ROOT / DEFAULT_CONTENT_DIR_NAME),
        help="Directory for exported collection JSON files",
    )
    parser.add_argument(
        "--clear-cache",
        action="store_true",
        help="Clear cached assets before downloading (full resync)",
    )
    parser.add_argument(
        "--sync-assets",
        action="store_true",
        help="Download every CMS asset after loading collections",
    )


def _add_clear_cache_command(subparsers: Any) -> None:
    """Register clear-cache subcommand."""
    parser = subparsers.add_parser("clear-cache", help="Remove every cached asset")
    parser.add_argument("--config", required=True, help="Path to YAML source config")
