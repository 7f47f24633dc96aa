"""Unit tests for core config objects and environment fallbacks."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.config import AssetCacheConfig, Credentials, api_url_from_env, credentials_from_env
from core.errors import DirectusConfigError


def test_credentials_from_env_fills_missing_values() -> None:
    """Environment values should fill gaps left by the config file."""
    environ = {
        "DIRECTUS_EMAIL": "env@example.com",
        "DIRECTUS_PASSWORD": "env-secret",
        "DIRECTUS_STATIC_TOKEN": "env-token",
    }

    credentials = credentials_from_env("file@example.com", None, None, environ)

    assert credentials.email == "file@example.com"
    assert credentials.password == "env-secret"
    assert credentials.static_token == "env-token"


def test_credentials_login_modes() -> None:
    """Login requirements should follow the configured credentials."""
    assert Credentials(email="a@b.c", password="x").has_password_login
    assert not Credentials(email="a@b.c").has_password_login
    assert Credentials(static_token="t").requires_login
    assert not Credentials(email="a@b.c").requires_login


def test_api_url_from_env_strips_trailing_slash() -> None:
    """The environment should supply a missing API URL."""
    environ = {"DIRECTUS_API_URL": "https://cms.example.com/"}

    assert api_url_from_env(None, environ) == "https://cms.example.com"


def test_api_url_from_env_raises_when_missing() -> None:
    """A missing API URL should be a configuration error."""
    with pytest.raises(DirectusConfigError, match="apiUrl"):
        api_url_from_env(None, {})


def test_under_root_derives_cache_directories(tmp_path: Path) -> None:
    """Cache subdirectories should sit under the root unless overridden."""
    config = AssetCacheConfig.under_root(tmp_path, image_dir=tmp_path / "static")

    assert config.image_dir == tmp_path / "static"
    assert config.file_dir == tmp_path / "file-cache"
    assert config.asset_dir == tmp_path / "assets"
    assert config.cache_dirs() == (tmp_path / "static", tmp_path / "file-cache", tmp_path / "assets")


def test_under_root_rejects_unknown_protocol(tmp_path: Path) -> None:
    """Only http and https should be accepted as forced protocols."""
    with pytest.raises(DirectusConfigError, match="protocol"):
        AssetCacheConfig.under_root(tmp_path, protocol="ftp")
