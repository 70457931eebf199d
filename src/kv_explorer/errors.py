"""Exception hierarchy for KV Explorer.

Every error raised to callers derives from :class:`KVExplorerError` and
carries a human-readable message. The five category classes let callers
react to a kind of failure without knowing which backend produced it.
"""

from __future__ import annotations

from typing import Any


class KVExplorerError(Exception):
    """Base class for all KV Explorer errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


# ── Categories ───────────────────────────────────────────────────────────────


class NotFoundError(KVExplorerError):
    """A namespace, key, folder, connection or catalog file does not exist."""


class InvalidInputError(KVExplorerError):
    """The caller supplied a malformed namespace id or value."""


class BackendUnavailableError(KVExplorerError):
    """The local catalog or filesystem could not complete an operation."""


class RemoteFailureError(KVExplorerError):
    """The remote KV service or the transport to it failed."""


class PersistenceFailure(KVExplorerError):
    """The settings store could not be written."""


# ── Not found ────────────────────────────────────────────────────────────────


class NotAKvRoot(NotFoundError):
    def __init__(self, kv_dir: Any) -> None:
        super().__init__(f"No Wrangler KV storage found at {kv_dir}")
        self.kv_dir = kv_dir


class CatalogMissing(NotFoundError):
    def __init__(self, catalog_dir: Any) -> None:
        super().__init__(f"SQLite catalog not found in {catalog_dir}")
        self.catalog_dir = catalog_dir


class KeyNotFound(NotFoundError):
    def __init__(self, key: str) -> None:
        super().__init__(f"Key not found: {key}")
        self.key = key


class BlobMissing(NotFoundError):
    def __init__(self, key: str, blob_path: Any) -> None:
        super().__init__(f"Blob file not found for key {key}: {blob_path}")
        self.key = key
        self.blob_path = blob_path


class NamespaceNotFound(NotFoundError):
    def __init__(self, namespace_id: str) -> None:
        super().__init__(f"Namespace not found: {namespace_id}")
        self.namespace_id = namespace_id


class FolderNotFound(NotFoundError):
    def __init__(self, folder_id: int) -> None:
        super().__init__(f"Folder not registered: {folder_id}")
        self.folder_id = folder_id


class ConnectionNotFound(NotFoundError):
    def __init__(self, account_id: str) -> None:
        super().__init__(f"No remote connection for account {account_id}")
        self.account_id = account_id


# ── Invalid input ────────────────────────────────────────────────────────────


class InvalidJson(InvalidInputError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Invalid JSON value: {detail}")
        self.detail = detail


class InvalidNamespaceId(InvalidInputError):
    def __init__(self, namespace_id: str, reason: str) -> None:
        super().__init__(f"Invalid namespace id {namespace_id!r}: {reason}")
        self.namespace_id = namespace_id
        self.reason = reason


# ── Backend unavailable ──────────────────────────────────────────────────────


class CatalogError(BackendUnavailableError):
    """Opening, querying or committing the SQLite catalog failed."""


class BlobDeleteFailed(BackendUnavailableError):
    def __init__(self, key: str, detail: str) -> None:
        super().__init__(f"Failed to delete blob file for key {key}: {detail}")
        self.key = key


class BlobWriteFailed(BackendUnavailableError):
    def __init__(self, key: str, detail: str) -> None:
        super().__init__(f"Failed to write blob file for key {key}: {detail}")
        self.key = key


class BlobReadFailed(BackendUnavailableError):
    def __init__(self, key: str, detail: str) -> None:
        super().__init__(f"Failed to read blob file for key {key}: {detail}")
        self.key = key


# ── Remote ───────────────────────────────────────────────────────────────────


class AuthFailed(RemoteFailureError):
    def __init__(self, status: int) -> None:
        super().__init__(f"API authentication failed with status: {status}")
        self.status = status


class RemoteRequestFailed(RemoteFailureError):
    def __init__(self, status: int, detail: str | None = None) -> None:
        message = f"API request failed with status: {status}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.status = status
        self.detail = detail


class RemoteApiError(RemoteFailureError):
    def __init__(self, errors: str) -> None:
        super().__init__(f"API request failed: {errors}")
        self.errors = errors


class RemoteTransportError(RemoteFailureError):
    """The HTTP request never produced a response."""


__all__ = [
    "KVExplorerError",
    "NotFoundError",
    "InvalidInputError",
    "BackendUnavailableError",
    "RemoteFailureError",
    "PersistenceFailure",
    "NotAKvRoot",
    "CatalogMissing",
    "KeyNotFound",
    "BlobMissing",
    "NamespaceNotFound",
    "FolderNotFound",
    "ConnectionNotFound",
    "InvalidJson",
    "InvalidNamespaceId",
    "CatalogError",
    "BlobDeleteFailed",
    "BlobWriteFailed",
    "BlobReadFailed",
    "AuthFailed",
    "RemoteRequestFailed",
    "RemoteApiError",
    "RemoteTransportError",
]
