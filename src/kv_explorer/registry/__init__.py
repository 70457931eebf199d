"""Registered folders and remote accounts, cached over persistent settings."""

from kv_explorer.registry.persistence import ConnectionStore, FolderStore, SettingsStore
from kv_explorer.registry.registry import ConnectionRegistry

__all__ = [
    "ConnectionRegistry",
    "ConnectionStore",
    "FolderStore",
    "SettingsStore",
]
