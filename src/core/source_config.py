"""Typed source-config parsing.

This module loads and validates YAML config files and plain option
mappings into one strict ``SourceConfig``. Option names follow the
Directus source plugin conventions (``apiUrl``, ``collections``,
``global.uploadImagesDir``) so existing site configs carry over.
"""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Sequence, cast

import yaml

from core.config import (
    AssetCacheConfig,
    SourceConfig,
    api_url_from_env,
    credentials_from_env,
)
from core.constants import (
    DEFAULT_CACHE_ROOT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RECONNECT_TIMEOUT_MS,
)
from core.errors import DirectusConfigError
from core.route_loader import load_route_function
from core.types import CollectionSpec, RouteFunction

ROOT_KEYS = frozenset(
    {
        "apiUrl",
        "project",
        "staticToken",
        "email",
        "password",
        "maxRetries",
        "reconnectTimeout",
        "collections",
        "global",
    }
)
GLOBAL_KEYS = frozenset(
    {"protocol", "uploadImagesDir", "cacheDir", "clearCache", "syncAssets"}
)
COLLECTION_OPTION_KEYS = frozenset(
    {
        "name",
        "sourcePathName",
        "directusPathName",
        "flat",
        "flatten",
        "sanitizeID",
        "downloadImages",
        "downloadFiles",
        "hasRoute",
        "route",
        "routeFunction",
    }
)


def load_source_config(
    config_path: str,
    environ: Mapping[str, str] | None = None,
) -> SourceConfig:
    """Load and validate a YAML source config from disk.

    Args:
        config_path: File path to the YAML config.
        environ: Optional environment mapping for credential fallbacks.

    Returns:
        Fully validated source config.

    Raises:
        DirectusConfigError: If the file is missing, unreadable, or invalid.
    """
    config_file = Path(config_path).expanduser().resolve()
    payload = _load_yaml_payload(config_file)
    options = _expect_mapping(payload, "config root")
    return parse_source_options(options, environ=environ, base_dir=config_file.parent)


def parse_source_options(
    options: Mapping[str, object],
    environ: Mapping[str, str] | None = None,
    base_dir: Path | None = None,
) -> SourceConfig:
    """Validate a plugin-style option mapping.

    Args:
        options: Raw option mapping, e.g. from YAML or Python code.
        environ: Optional environment mapping for credential fallbacks.
        base_dir: Directory used to resolve relative ``routeFunction`` files.

    Returns:
        Validated source config.

    Raises:
        DirectusConfigError: If any option is invalid.
    """
    _validate_keys(options, ROOT_KEYS, "config root")
    api_url = api_url_from_env(_optional_string(options, "apiUrl"), environ)
    credentials = credentials_from_env(
        _optional_string(options, "email"),
        _optional_string(options, "password"),
        _optional_string(options, "staticToken"),
        environ,
    )
    max_retries = _parse_max_retries(options.get("maxRetries"))
    reconnect_timeout_ms = _parse_reconnect_timeout(options.get("reconnectTimeout"))
    collections = _parse_collections(options.get("collections"), base_dir)
    cache = _parse_global(options.get("global"))
    return SourceConfig(
        api_url=api_url,
        project=_optional_string(options, "project") or "",
        credentials=credentials,
        max_retries=max_retries,
        reconnect_timeout_ms=reconnect_timeout_ms,
        collections=collections,
        cache=cache,
    )


def _load_yaml_payload(config_file: Path) -> object:
    if not config_file.exists():
        raise DirectusConfigError(
            f"Config file does not exist at {config_file}. Provide a valid YAML file path."
        )
    try:
        payload = cast(object, yaml.safe_load(config_file.read_text(encoding="utf-8")))
    except OSError as error:
        raise DirectusConfigError(
            f"Failed to read config at {config_file}: {error}. Check file permissions and retry."
        ) from error
    except yaml.YAMLError as error:
        raise DirectusConfigError(
            f"Failed to parse YAML config at {config_file}: {error}. Fix YAML syntax and retry."
        ) from error
    if payload is None:
        raise DirectusConfigError(
            f"Config at {config_file} is empty. Define 'apiUrl' and 'collections'."
        )
    return payload


def _expect_mapping(value: object, context: str) -> Mapping[str, object]:
    if isinstance(value, Mapping):
        normalized_mapping = {}
        for key, payload in value.items():
            if not isinstance(key, str):
                raise DirectusConfigError(
                    f"Invalid {context}: expected string keys, got {type(key).__name__}."
                )
            normalized_mapping[key] = payload
        return normalized_mapping
    raise DirectusConfigError(
        f"Invalid {context}: expected object mapping, got {type(value).__name__}."
    )


def _expect_sequence(value: object, context: str) -> Sequence[object]:
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return value
    raise DirectusConfigError(f"Invalid {context}: expected list, got {type(value).__name__}.")


def _parse_max_retries(raw_value: object) -> int:
    if raw_value is None:
        return DEFAULT_MAX_RETRIES
    if isinstance(raw_value, bool) or not isinstance(raw_value, int) or raw_value < 1:
        raise DirectusConfigError(
            f"Option 'maxRetries' must be a positive integer, got {raw_value!r}."
        )
    return raw_value


def _parse_reconnect_timeout(raw_value: object) -> int:
    if raw_value is None:
        return DEFAULT_RECONNECT_TIMEOUT_MS
    if isinstance(raw_value, bool) or not isinstance(raw_value, (int, float)) or raw_value < 0:
        raise DirectusConfigError(
            "Option 'reconnectTimeout' must be a non-negative number of milliseconds, "
            f"got {raw_value!r}."
        )
    return int(raw_value)


def _parse_collections(raw_value: object, base_dir: Path | None) -> tuple[CollectionSpec, ...]:
    if raw_value is None:
        return ()
    rows = _expect_sequence(raw_value, "option 'collections'")
    specs = [_parse_collection(row, index, base_dir) for index, row in enumerate(rows)]
    seen_names: set[str] = set()
    for spec in specs:
        if spec.name in seen_names:
            raise DirectusConfigError(
                f"Collection '{spec.name}' is configured more than once. "
                "Collection names must be unique."
            )
        seen_names.add(spec.name)
    return tuple(specs)


def _parse_collection(value: object, index: int, base_dir: Path | None) -> CollectionSpec:
    context = f"collection #{index + 1}"
    if isinstance(value, str):
        name = value.strip()
        if not name:
            raise DirectusConfigError(f"Invalid {context}: collection name is empty.")
        return CollectionSpec(name=name, params={}, raw_options={"name": name})
    if not isinstance(value, Mapping):
        raise DirectusConfigError(
            f"Invalid {context}: expected a collection name or an options mapping, "
            f"got {type(value).__name__}."
        )
    mapping = _expect_mapping(value, context)
    name = _optional_string(mapping, "name")
    if name is None:
        raise DirectusConfigError(f"Invalid {context}: field 'name' is required.")
    source_path_name = _optional_string(mapping, "sourcePathName") or _optional_string(
        mapping, "directusPathName"
    )
    params = {key: item for key, item in mapping.items() if key not in COLLECTION_OPTION_KEYS}
    return CollectionSpec(
        name=name,
        source_path_name=source_path_name,
        params=params,
        flatten=_optional_bool(mapping, "flat", False) or _optional_bool(mapping, "flatten", False),
        sanitize_id=_optional_bool(mapping, "sanitizeID", True),
        download_images=_optional_bool(mapping, "downloadImages", False),
        download_files=_optional_bool(mapping, "downloadFiles", False),
        has_route=_optional_bool(mapping, "hasRoute", False),
        route=_parse_route(mapping, context, base_dir),
        raw_options=mapping,
    )


def _parse_route(
    mapping: Mapping[str, object],
    context: str,
    base_dir: Path | None,
) -> str | RouteFunction | None:
    route_value = mapping.get("route")
    function_reference = _optional_string(mapping, "routeFunction")
    if route_value is not None and function_reference is not None:
        raise DirectusConfigError(
            f"Invalid {context}: set either 'route' or 'routeFunction', not both."
        )
    if function_reference is not None:
        return load_route_function(function_reference, base_dir)
    if route_value is None or isinstance(route_value, str) or callable(route_value):
        return cast("str | RouteFunction | None", route_value)
    raise DirectusConfigError(
        f"Invalid {context}: field 'route' must be a string or a callable."
    )


def _parse_global(raw_value: object) -> AssetCacheConfig:
    if raw_value is None:
        return AssetCacheConfig()
    mapping = _expect_mapping(raw_value, "option 'global'")
    _validate_keys(mapping, GLOBAL_KEYS, "option 'global'")
    cache_root_value = _optional_string(mapping, "cacheDir")
    image_dir_value = _optional_string(mapping, "uploadImagesDir")
    return AssetCacheConfig.under_root(
        cache_root=Path(cache_root_value) if cache_root_value else DEFAULT_CACHE_ROOT,
        image_dir=Path(image_dir_value) if image_dir_value else None,
        protocol=_optional_string(mapping, "protocol"),
        clear_on_start=_optional_bool(mapping, "clearCache", False),
        sync_assets=_optional_bool(mapping, "syncAssets", False),
    )


def _optional_string(mapping: Mapping[str, object], field_name: str) -> str | None:
    raw_value = mapping.get(field_name)
    if raw_value is None:
        return None
    if isinstance(raw_value, str):
        normalized_value = raw_value.strip()
        return normalized_value if normalized_value else None
    raise DirectusConfigError(f"Option '{field_name}' must be a string when provided.")


def _optional_bool(mapping: Mapping[str, object], field_name: str, default: bool) -> bool:
    raw_value = mapping.get(field_name)
    if raw_value is None:
        return default
    if isinstance(raw_value, bool):
        return raw_value
    raise DirectusConfigError(
        f"Option '{field_name}' must be true or false, got {raw_value!r}."
    )


def _validate_keys(mapping: Mapping[str, object], allowed_keys: frozenset[str], context: str) -> None:
    unknown_keys = sorted(set(mapping) - allowed_keys)
    if unknown_keys:
        raise DirectusConfigError(
            f"Unknown fields in {context}: {', '.join(unknown_keys)}."
        )
