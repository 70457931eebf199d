"""
Configuration management for KV Explorer.

Pydantic-based configuration with environment overrides.
"""

from kv_explorer.config.enums import LogFormat, TimeoutType
from kv_explorer.config.env_vars import EnvVar, get_env
from kv_explorer.config.logging import get_logger, setup_logging
from kv_explorer.config.models import ExplorerConfig, TimeoutConfig

__all__ = [
    "ExplorerConfig",
    "TimeoutConfig",
    "TimeoutType",
    "LogFormat",
    "EnvVar",
    "get_env",
    "get_logger",
    "setup_logging",
]
