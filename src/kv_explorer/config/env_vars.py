"""Environment variable names - centralized, type-safe, no magic strings!

All environment variable access should go through this module.
"""

from __future__ import annotations

import logging
import os
from enum import Enum

logger = logging.getLogger(__name__)


class EnvVar(str, Enum):
    """All environment variable names used by KV Explorer."""

    # ================================================================
    # Remote API
    # ================================================================
    API_BASE = "KV_EXPLORER_API_BASE"
    PAGE_SIZE = "KV_EXPLORER_PAGE_SIZE"
    HTTP_TIMEOUT = "KV_EXPLORER_HTTP_TIMEOUT"
    HTTP_CONNECT_TIMEOUT = "KV_EXPLORER_HTTP_CONNECT_TIMEOUT"
    API_TOKEN = "KV_EXPLORER_API_TOKEN"

    # ================================================================
    # Paths and Filesystem
    # ================================================================
    DATA_DIR = "KV_EXPLORER_DATA_DIR"
    KV_PATH = "KV_EXPLORER_KV_PATH"

    # ================================================================
    # Logging
    # ================================================================
    LOG_LEVEL = "KV_EXPLORER_LOG_LEVEL"
    LOG_FILE = "KV_EXPLORER_LOG_FILE"


# ================================================================
# Type-Safe Helper Functions
# ================================================================


def get_env(var: EnvVar, default: str | None = None) -> str | None:
    """Get environment variable value (type-safe).

    Example:
        >>> base = get_env(EnvVar.API_BASE, "https://api.cloudflare.com/client/v4")
    """
    return os.getenv(var.value, default)


def set_env(var: EnvVar, value: str) -> None:
    """Set environment variable (type-safe)."""
    os.environ[var.value] = value


def unset_env(var: EnvVar) -> None:
    """Unset environment variable if it exists."""
    os.environ.pop(var.value, None)


def is_set(var: EnvVar) -> bool:
    """Check if environment variable is set."""
    return var.value in os.environ


def get_env_int(var: EnvVar, default: int | None = None) -> int | None:
    """Get environment variable as integer.

    Invalid values are logged and ``default`` is returned.
    """
    value = get_env(var)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning("Ignoring non-integer %s=%r", var.value, value)
        return default


def get_env_float(var: EnvVar, default: float | None = None) -> float | None:
    """Get environment variable as float.

    Invalid values are logged and ``default`` is returned.
    """
    value = get_env(var)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r", var.value, value)
        return default
