"""KV Explorer - browse and edit local emulator and remote KV namespaces."""

from kv_explorer.gateway import KVGateway
from kv_explorer.models import Entry, Folder, KeyPage, Namespace, NamespaceKind, RemoteConnection

__version__ = "0.1.0"

__all__ = [
    "Entry",
    "Folder",
    "KVGateway",
    "KeyPage",
    "Namespace",
    "NamespaceKind",
    "RemoteConnection",
    "__version__",
]
