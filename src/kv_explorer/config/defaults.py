"""Default configuration values - no more magic numbers!

All default values should be defined here, not hardcoded in the code.
"""

from __future__ import annotations

from pathlib import Path


# ================================================================
# HTTP Defaults (in seconds)
# ================================================================

DEFAULT_HTTP_REQUEST_TIMEOUT = 30.0
"""Default timeout for HTTP requests."""

DEFAULT_HTTP_CONNECT_TIMEOUT = 10.0
"""Default timeout for HTTP connections."""


# ================================================================
# Remote KV API Defaults
# ================================================================

DEFAULT_API_BASE = "https://api.cloudflare.com/client/v4"
"""Base URL of the remote KV service."""

DEFAULT_PAGE_SIZE = 1000
"""Keys requested per page (the provider's practical maximum)."""

MAX_PAGE_SIZE = 1000
"""Upper bound accepted by the provider for ``limit``."""

REMOTE_BLOB_REF_PREFIX = "remote-"
"""Prefix of synthesized blob references for remote entries."""


# ================================================================
# Local Emulator Layout
# ================================================================

DEFAULT_KV_RELATIVE_PATH = ".wrangler/state/v3"
"""Path from a project root to the directory holding ``kv/``."""

KV_DIR_NAME = "kv"
"""Name of the emulator's KV state directory."""

INTERNAL_DIR_PREFIX = "miniflare-"
"""Directories with this prefix are emulator internals, not namespaces."""

CATALOG_DIR_NAME = "miniflare-KVNamespaceObject"
"""Directory holding the SQLite catalog."""

CATALOG_SUFFIX = ".sqlite"
"""Extension of the catalog database file."""

CATALOG_TABLE = "_mf_entries"
"""Catalog table listing keys and their blob ids."""

BLOBS_DIR_NAME = "blobs"
"""Per-namespace directory holding blob files."""

TOMBSTONE_SUFFIX = ".deleting"
"""Suffix given to blob files staged for deletion."""

LOCAL_NAMESPACE_PREFIX = "folder-"
"""Marker that starts every local namespace id."""


# ================================================================
# Persistence Defaults
# ================================================================

DEFAULT_DATA_DIR = Path("~/.kv-explorer")
"""Where the settings database lives."""

SETTINGS_DB_FILENAME = "kv_explorer.db"
"""Settings database filename."""

SCHEMA_VERSION = 1
"""Current settings schema version."""


# ================================================================
# Logging Defaults
# ================================================================

DEFAULT_LOG_LEVEL = "WARNING"
"""Default console log level."""

DEFAULT_LOG_MAX_BYTES = 5 * 1024 * 1024
"""Rotate the file log after this many bytes."""

DEFAULT_LOG_BACKUP_COUNT = 3
"""Rotated log files to keep."""


# ================================================================
# Application Constants
# ================================================================

APP_NAME = "kv-explorer"
"""Application name."""
