"""Pydantic models shared by both KV backends."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NamespaceKind(str, Enum):
    """Which backend a namespace lives in."""

    LOCAL = "local"
    REMOTE = "remote"


class Entry(BaseModel):
    """A single key in a namespace.

    ``value`` is ``None`` when it has not been fetched (remote listings) or
    when the stored blob could not be decoded.
    """

    id: str
    key: str
    blob_ref: str
    expiration: int | None = None
    metadata: str | None = None
    value: Any | None = None


class Namespace(BaseModel):
    """A namespace from either backend.

    ``scope`` is the owning folder id (as text) for local namespaces and the
    account id for remote ones.
    """

    id: str
    name: str
    kind: NamespaceKind
    scope: str
    entry_count: int | None = None
    entries: list[Entry] = Field(default_factory=list)


class KeyPage(BaseModel):
    """One page of a key listing."""

    entries: list[Entry] = Field(default_factory=list)
    cursor: str | None = None
    total_count: int = 0


class Folder(BaseModel):
    """A registered local project folder."""

    id: int
    path: str
    name: str
    last_used_at: datetime = Field(default_factory=_utcnow)


class RemoteConnection(BaseModel):
    """Credentials for one remote account."""

    account_id: str
    api_token: str = Field(repr=False)
    last_used_at: datetime = Field(default_factory=_utcnow)


__all__ = [
    "Entry",
    "Folder",
    "KeyPage",
    "Namespace",
    "NamespaceKind",
    "RemoteConnection",
]
