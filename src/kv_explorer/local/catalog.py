"""Locate and query the emulator's SQLite catalog.

Layout under a project root::

    <root>/.wrangler/state/v3/kv/
        <namespace>/blobs/<blobId>
        miniflare-KVNamespaceObject/<hash>.sqlite   (table _mf_entries)
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path

from kv_explorer.config.defaults import (
    BLOBS_DIR_NAME,
    CATALOG_DIR_NAME,
    CATALOG_SUFFIX,
    CATALOG_TABLE,
    DEFAULT_KV_RELATIVE_PATH,
    INTERNAL_DIR_PREFIX,
    KV_DIR_NAME,
)
from kv_explorer.errors import (
    CatalogError,
    CatalogMissing,
    InvalidNamespaceId,
    KeyNotFound,
    NotAKvRoot,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NamespaceDir:
    raw_name: str
    blobs_dir: Path


@dataclass(frozen=True)
class CatalogRow:
    key: str
    blob_id: str
    expiration: int | None
    metadata: str | None


class CatalogHandle:
    """An open catalog connection.

    The connection runs in autocommit mode so transactions are explicit
    (``begin``/``commit``/``rollback``) and map 1:1 onto SQLite's own.
    """

    def __init__(self, path: Path, connection: sqlite3.Connection) -> None:
        self.path = path
        self.connection = connection

    def begin(self) -> None:
        self._execute("BEGIN")

    def commit(self) -> None:
        self._execute("COMMIT")

    def rollback(self) -> None:
        if self.connection.in_transaction:
            self._execute("ROLLBACK")

    def close(self) -> None:
        self.connection.close()

    def _execute(self, statement: str) -> None:
        try:
            self.connection.execute(statement)
        except sqlite3.Error as exc:
            raise CatalogError(f"{statement} failed on {self.path}: {exc}") from exc

    def __enter__(self) -> CatalogHandle:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class LocalCatalog:
    """Catalog access for one project root."""

    def __init__(self, root: Path | str, kv_relative_path: str = DEFAULT_KV_RELATIVE_PATH):
        self.root = Path(root)
        self.kv_dir = self.root / kv_relative_path / KV_DIR_NAME

    @property
    def catalog_dir(self) -> Path:
        return self.kv_dir / CATALOG_DIR_NAME

    def namespace_dir(self, raw_name: str) -> NamespaceDir:
        if raw_name in (".", "..") or "/" in raw_name or "\\" in raw_name:
            raise InvalidNamespaceId(raw_name, "namespace name is not a plain directory name")
        return NamespaceDir(raw_name, self.kv_dir / raw_name / BLOBS_DIR_NAME)

    def list_namespace_dirs(self) -> list[NamespaceDir]:
        """Return every namespace directory, skipping emulator internals."""
        if not self.kv_dir.is_dir():
            raise NotAKvRoot(self.kv_dir)

        try:
            children = sorted(self.kv_dir.iterdir())
        except OSError as exc:
            raise CatalogError(f"Failed to list {self.kv_dir}: {exc}") from exc

        dirs = []
        for child in children:
            if not child.is_dir() or child.name.startswith(INTERNAL_DIR_PREFIX):
                continue
            dirs.append(NamespaceDir(child.name, child / BLOBS_DIR_NAME))
        return dirs

    def find_catalog_file(self) -> Path | None:
        """First ``*.sqlite`` file in the catalog directory, if any."""
        if not self.catalog_dir.is_dir():
            return None
        for candidate in sorted(self.catalog_dir.iterdir()):
            if candidate.is_file() and candidate.suffix == CATALOG_SUFFIX:
                return candidate
        return None

    def open_catalog(self) -> CatalogHandle:
        path = self.find_catalog_file()
        if path is None:
            raise CatalogMissing(self.catalog_dir)
        try:
            connection = sqlite3.connect(str(path), isolation_level=None)
        except sqlite3.Error as exc:
            raise CatalogError(f"Failed to open SQLite database {path}: {exc}") from exc
        logger.debug("Opened catalog %s", path)
        return CatalogHandle(path, connection)

    @staticmethod
    def query_entries(handle: CatalogHandle) -> list[CatalogRow]:
        """Full scan of the entries table. Row order is not guaranteed."""
        try:
            cursor = handle.connection.execute(
                f"SELECT key, blob_id, expiration, metadata FROM {CATALOG_TABLE}"
            )
            return [CatalogRow(*row) for row in cursor.fetchall()]
        except sqlite3.Error as exc:
            raise CatalogError(f"Failed to read {CATALOG_TABLE}: {exc}") from exc

    @staticmethod
    def get_row(handle: CatalogHandle, key: str) -> CatalogRow:
        try:
            row = handle.connection.execute(
                f"SELECT key, blob_id, expiration, metadata FROM {CATALOG_TABLE} WHERE key = ?",
                (key,),
            ).fetchone()
        except sqlite3.Error as exc:
            raise CatalogError(f"Failed to look up key {key}: {exc}") from exc
        if row is None:
            raise KeyNotFound(key)
        return CatalogRow(*row)

    @classmethod
    def get_blob_id_for_key(cls, handle: CatalogHandle, key: str) -> str:
        return cls.get_row(handle, key).blob_id

    @staticmethod
    def delete_row(handle: CatalogHandle, key: str) -> None:
        try:
            handle.connection.execute(
                f"DELETE FROM {CATALOG_TABLE} WHERE key = ?", (key,)
            )
        except sqlite3.Error as exc:
            raise CatalogError(f"Failed to delete key {key}: {exc}") from exc
