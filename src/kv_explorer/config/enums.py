"""Configuration enums - no magic strings!"""

from __future__ import annotations

from enum import Enum


class TimeoutType(str, Enum):
    """All timeout configuration types - type-safe timeout keys."""

    HTTP_REQUEST = "http_request"
    HTTP_CONNECT = "http_connect"


class LogFormat(str, Enum):
    """Console log formats understood by ``setup_logging``."""

    SIMPLE = "simple"
    DETAILED = "detailed"
    JSON = "json"
