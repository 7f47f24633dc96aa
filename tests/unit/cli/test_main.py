"""Unit tests for CLI command handling."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

import cli.main as cli_main
from cli.main import main
from core.config import SourceConfig
from core.types import AssetSyncReport, CollectionReport, IngestReport
from store.content_store import ContentStore
from tests.fixture_paths import fixture_path


def _write_config(tmp_path: Path) -> Path:
    config_path = tmp_path / "directus.yaml"
    config_path.write_text(
        "apiUrl: https://cms.example.com\n"
        f"global:\n  cacheDir: {tmp_path / 'cache'}\n"
        "collections:\n  - name: posts\n    hasRoute: true\n",
        encoding="utf-8",
    )
    return config_path


def test_cli_sync_fails_without_collections(capsys) -> None:
    """A config without collections should exit non-zero with a prefixed error."""
    exit_code = main(["sync", "--config", str(fixture_path("config/no_collections.yaml"))])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "DIRECTUS ERROR: No Directus collections specified!" in captured.err
    assert captured.out == ""


def test_cli_sync_fails_for_missing_config(tmp_path, capsys) -> None:
    """A missing config file should be reported as a Directus error."""
    exit_code = main(["sync", "--config", str(tmp_path / "missing.yaml")])

    assert exit_code == 1
    assert "DIRECTUS ERROR" in capsys.readouterr().err


def test_cli_sync_exports_collections_and_prints_summary(
    tmp_path, capsys, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Sync should run the pipeline, export JSON and print one line per collection."""
    seen_configs: list[SourceConfig] = []

    async def fake_run_source(config: SourceConfig, sink: ContentStore) -> IngestReport:
        seen_configs.append(config)
        sink.add_collection(type_name="posts", route="/posts/:slug").add_node({"_directusID": 1})
        return IngestReport(
            collections=(CollectionReport(name="posts", route="/posts/:slug", node_count=1),),
            asset_sync=AssetSyncReport(downloaded=("a.png",), failed=()),
        )

    monkeypatch.setattr(cli_main, "run_source", fake_run_source)
    output_dir = tmp_path / "content"

    exit_code = main(
        [
            "sync",
            "--config",
            str(_write_config(tmp_path)),
            "--output-dir",
            str(output_dir),
            "--clear-cache",
            "--sync-assets",
        ]
    )
    output_lines = capsys.readouterr().out.strip().splitlines()

    assert exit_code == 0
    assert output_lines == ["posts\t1\t/posts/:slug", "assets\t1\tfailed=0"]
    assert seen_configs[0].cache.clear_on_start and seen_configs[0].cache.sync_assets
    payload = json.loads((output_dir / "posts.json").read_text(encoding="utf-8"))
    assert payload["nodes"] == [{"_directusID": 1}]


def test_cli_clear_cache_empties_cache_directories(tmp_path, capsys) -> None:
    """clear-cache should remove cached files and print the cache directories."""
    cached_file = tmp_path / "cache" / "img-cache" / "old.png"
    cached_file.parent.mkdir(parents=True)
    cached_file.write_bytes(b"old")

    exit_code = main(["clear-cache", "--config", str(_write_config(tmp_path))])
    printed = capsys.readouterr().out.strip().splitlines()

    assert exit_code == 0
    assert not cached_file.exists()
    assert str(tmp_path / "cache" / "img-cache") in printed


def test_cli_clear_cache_reports_filesystem_errors(tmp_path, capsys) -> None:
    """An unusable cache directory should exit non-zero without a traceback."""
    blocked_dir = tmp_path / "cache" / "img-cache"
    blocked_dir.parent.mkdir(parents=True)
    blocked_dir.write_bytes(b"not a directory")

    exit_code = main(["clear-cache", "--config", str(_write_config(tmp_path))])

    assert exit_code == 1
    assert "DIRECTUS ERROR: Failed to clear asset cache" in capsys.readouterr().err


def test_cli_sync_reports_unwritable_output_dir(
    tmp_path, capsys, monkeypatch: pytest.MonkeyPatch
) -> None:
    """A failing content export should exit non-zero with a prefixed error."""

    async def fake_run_source(config: SourceConfig, sink: ContentStore) -> IngestReport:
        sink.add_collection(type_name="posts", route=None)
        return IngestReport(collections=())

    monkeypatch.setattr(cli_main, "run_source", fake_run_source)
    output_path = tmp_path / "content"
    output_path.write_text("not a directory", encoding="utf-8")

    exit_code = main(
        ["sync", "--config", str(_write_config(tmp_path)), "--output-dir", str(output_path)]
    )

    assert exit_code == 1
    assert "DIRECTUS ERROR: Failed to write content export" in capsys.readouterr().err
