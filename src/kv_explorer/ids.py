"""Typed namespace references and their string form.

Local namespace ids look like ``folder-<folderId>-ns-<rawName>``; anything
else is an opaque provider namespace id. Inside the library namespaces are
handled as :class:`LocalNamespaceRef` or :class:`RemoteNamespaceRef`; the
string form only exists at the edge.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from kv_explorer.config.defaults import LOCAL_NAMESPACE_PREFIX
from kv_explorer.errors import InvalidNamespaceId

_SEPARATOR = "-"
_NS_MARKER = "ns"
_PATH_SEPARATORS = ("/", "\\")
_RESERVED_NAMES = (".", "..")


@dataclass(frozen=True)
class LocalNamespaceRef:
    folder_id: int
    raw_name: str

    def to_id(self) -> str:
        return format_local_namespace_id(self.folder_id, self.raw_name)


@dataclass(frozen=True)
class RemoteNamespaceRef:
    account_id: str
    namespace_id: str

    def to_id(self) -> str:
        return self.namespace_id


NamespaceRef = Union[LocalNamespaceRef, RemoteNamespaceRef]


def format_local_namespace_id(folder_id: int, raw_name: str) -> str:
    """Build the external id of a local namespace."""
    return f"{LOCAL_NAMESPACE_PREFIX}{folder_id}{_SEPARATOR}{_NS_MARKER}{_SEPARATOR}{raw_name}"


def is_local_namespace_id(namespace_id: str) -> bool:
    return namespace_id.startswith(LOCAL_NAMESPACE_PREFIX)


def parse_local_namespace_id(namespace_id: str) -> LocalNamespaceRef:
    """Parse ``folder-<folderId>-ns-<rawName>``.

    The raw name is everything after the third separator, so names that
    contain ``-`` survive the round trip.
    """
    parts = namespace_id.split(_SEPARATOR, 3)
    if len(parts) != 4 or parts[0] + _SEPARATOR != LOCAL_NAMESPACE_PREFIX:
        raise InvalidNamespaceId(namespace_id, "expected folder-<id>-ns-<name>")

    _, folder_part, marker, raw_name = parts
    if marker != _NS_MARKER:
        raise InvalidNamespaceId(namespace_id, "missing 'ns' marker")
    if not (folder_part.isascii() and folder_part.isdecimal()):
        raise InvalidNamespaceId(namespace_id, "folder id is not an integer")
    if not raw_name:
        raise InvalidNamespaceId(namespace_id, "empty namespace name")
    if raw_name in _RESERVED_NAMES or any(sep in raw_name for sep in _PATH_SEPARATORS):
        raise InvalidNamespaceId(namespace_id, "namespace name is not a plain directory name")

    return LocalNamespaceRef(folder_id=int(folder_part), raw_name=raw_name)


def parse_namespace_id(
    namespace_id: str, account_id: str | None = None
) -> NamespaceRef:
    """Resolve an external namespace id into a typed reference.

    Remote ids are opaque and need the caller's account id to be scoped.
    """
    if is_local_namespace_id(namespace_id):
        return parse_local_namespace_id(namespace_id)

    if not namespace_id:
        raise InvalidNamespaceId(namespace_id, "empty namespace id")
    if not account_id:
        raise InvalidNamespaceId(
            namespace_id, "remote namespaces require an account id"
        )
    return RemoteNamespaceRef(account_id=account_id, namespace_id=namespace_id)


__all__ = [
    "LocalNamespaceRef",
    "RemoteNamespaceRef",
    "NamespaceRef",
    "format_local_namespace_id",
    "is_local_namespace_id",
    "parse_local_namespace_id",
    "parse_namespace_id",
]
