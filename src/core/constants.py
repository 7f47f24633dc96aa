"""Core constants used across Directus source modules.

This module centralizes defaults, cache layout names, and record field
names. Keeping values here avoids magic literals in pipeline logic.
"""

from __future__ import annotations

from pathlib import Path

LOG_SUBSYSTEM = "directus"
ERROR_PREFIX = "DIRECTUS ERROR"
DEFAULT_CACHE_ROOT = Path(".cache-directus")
IMAGE_CACHE_DIR_NAME = "img-cache"
FILE_CACHE_DIR_NAME = "file-cache"
ASSET_CACHE_DIR_NAME = "assets"
DEFAULT_CONTENT_DIR_NAME = "content"
DEFAULT_MAX_RETRIES = 3
DEFAULT_RECONNECT_TIMEOUT_MS = 10_000
DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0
DOWNLOAD_CHUNK_SIZE = 64 * 1024
FETCH_ALL_LIMIT = -1
FLATTEN_KEY_SEPARATOR = "__"
SOURCE_ID_FIELD = "id"
DIRECTUS_ID_FIELD = "_directusID"
OWNER_FIELD = "owner"
LOCAL_PATH_FIELD = "local_path"
LOCAL_FILE_PATH_FIELD = "local_file_path"
SUPPORTED_PROTOCOLS = ("http", "https")
IMAGE_MIME_TYPES = frozenset(
    {
        "image/jpeg",
        "image/jpg",
        "image/png",
        "image/gif",
    }
)
