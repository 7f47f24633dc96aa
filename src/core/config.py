"""Runtime configuration model for the Directus source.

This module owns the typed config objects and environment fallbacks.
Other modules consume these objects instead of raw option mappings.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from core.constants import (
    ASSET_CACHE_DIR_NAME,
    DEFAULT_CACHE_ROOT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RECONNECT_TIMEOUT_MS,
    FILE_CACHE_DIR_NAME,
    IMAGE_CACHE_DIR_NAME,
    SUPPORTED_PROTOCOLS,
)
from core.errors import DirectusConfigError
from core.types import CollectionSpec


@dataclass(frozen=True)
class Credentials:
    """Login credentials for the CMS.

    Attributes:
        email: Account email for password login.
        password: Account password for password login.
        static_token: Pre-issued API token.
    """

    email: str | None = None
    password: str | None = None
    static_token: str | None = None

    @property
    def has_password_login(self) -> bool:
        """Return whether an email and password pair is configured."""
        return bool(self.email and self.password)

    @property
    def requires_login(self) -> bool:
        """Return whether any authentication should be attempted."""
        return self.has_password_login or bool(self.static_token)


@dataclass(frozen=True)
class AssetCacheConfig:
    """Asset cache layout and transport selection.

    Attributes:
        cache_root: Root directory for every cache tree.
        image_dir: Cache directory for embedded images.
        file_dir: Cache directory for embedded files.
        asset_dir: Flat directory for the bulk asset pass.
        protocol: Optional scheme forced onto asset URLs.
        clear_on_start: Clear cache contents before downloading.
        sync_assets: Run the bulk asset pass after all collections.
    """

    cache_root: Path = DEFAULT_CACHE_ROOT
    image_dir: Path = DEFAULT_CACHE_ROOT / IMAGE_CACHE_DIR_NAME
    file_dir: Path = DEFAULT_CACHE_ROOT / FILE_CACHE_DIR_NAME
    asset_dir: Path = DEFAULT_CACHE_ROOT / ASSET_CACHE_DIR_NAME
    protocol: str | None = None
    clear_on_start: bool = False
    sync_assets: bool = False

    @classmethod
    def under_root(
        cls,
        cache_root: Path,
        image_dir: Path | None = None,
        protocol: str | None = None,
        clear_on_start: bool = False,
        sync_assets: bool = False,
    ) -> "AssetCacheConfig":
        """Build a cache layout rooted at one directory.

        Args:
            cache_root: Root directory for cache trees.
            image_dir: Optional override for the image cache directory.
            protocol: Optional scheme forced onto asset URLs.
            clear_on_start: Clear cache contents before downloading.
            sync_assets: Run the bulk asset pass.

        Returns:
            Cache config with derived subdirectories.

        Raises:
            DirectusConfigError: If protocol is unsupported.
        """
        if protocol is not None and protocol not in SUPPORTED_PROTOCOLS:
            raise DirectusConfigError(
                f"Unsupported global.protocol '{protocol}'. "
                f"Use one of: {', '.join(SUPPORTED_PROTOCOLS)}."
            )
        return cls(
            cache_root=cache_root,
            image_dir=image_dir or cache_root / IMAGE_CACHE_DIR_NAME,
            file_dir=cache_root / FILE_CACHE_DIR_NAME,
            asset_dir=cache_root / ASSET_CACHE_DIR_NAME,
            protocol=protocol,
            clear_on_start=clear_on_start,
            sync_assets=sync_assets,
        )

    def cache_dirs(self) -> tuple[Path, ...]:
        """Return every distinct cache directory in a stable order."""
        unique_dirs: list[Path] = []
        for directory in (self.image_dir, self.file_dir, self.asset_dir):
            if directory not in unique_dirs:
                unique_dirs.append(directory)
        return tuple(unique_dirs)


@dataclass(frozen=True)
class SourceConfig:
    """Validated configuration for one ingestion run.

    Attributes:
        api_url: CMS base URL.
        project: CMS project name used as the API path prefix.
        credentials: Login credentials.
        max_retries: Total login attempts before giving up.
        reconnect_timeout_ms: Fixed delay between login attempts.
        collections: Collections to ingest, in order.
        cache: Asset cache layout.
    """

    api_url: str
    project: str = ""
    credentials: Credentials = field(default_factory=Credentials)
    max_retries: int = DEFAULT_MAX_RETRIES
    reconnect_timeout_ms: int = DEFAULT_RECONNECT_TIMEOUT_MS
    collections: tuple[CollectionSpec, ...] = ()
    cache: AssetCacheConfig = field(default_factory=AssetCacheConfig)


def credentials_from_env(
    email: str | None,
    password: str | None,
    static_token: str | None,
    environ: Mapping[str, str] | None = None,
) -> Credentials:
    """Fill missing credentials from the process environment.

    Args:
        email: Email from the config file.
        password: Password from the config file.
        static_token: Static token from the config file.
        environ: Optional environment mapping, defaults to ``os.environ``.

    Returns:
        Credentials with config values taking precedence.
    """
    env = os.environ if environ is None else environ
    return Credentials(
        email=email or env.get("DIRECTUS_EMAIL") or None,
        password=password or env.get("DIRECTUS_PASSWORD") or None,
        static_token=static_token or env.get("DIRECTUS_STATIC_TOKEN") or None,
    )


def api_url_from_env(api_url: str | None, environ: Mapping[str, str] | None = None) -> str:
    """Resolve the required API URL.

    Args:
        api_url: URL from the config file.
        environ: Optional environment mapping, defaults to ``os.environ``.

    Returns:
        API URL without a trailing slash.

    Raises:
        DirectusConfigError: If no URL is configured.
    """
    env = os.environ if environ is None else environ
    resolved = api_url or env.get("DIRECTUS_API_URL")
    if not resolved:
        raise DirectusConfigError(
            "Missing required option 'apiUrl'. "
            "Set apiUrl in the config file or DIRECTUS_API_URL in the environment."
        )
    return resolved.rstrip("/")
