"""Filesystem-backed KV access for the local emulator state."""

from kv_explorer.local.catalog import CatalogHandle, CatalogRow, LocalCatalog, NamespaceDir
from kv_explorer.local.store import LocalStore, NamespaceListing

__all__ = [
    "CatalogHandle",
    "CatalogRow",
    "LocalCatalog",
    "LocalStore",
    "NamespaceDir",
    "NamespaceListing",
]
