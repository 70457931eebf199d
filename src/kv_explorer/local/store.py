"""Namespace and entry operations against a local emulator folder."""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from kv_explorer.config.defaults import (
    DEFAULT_KV_RELATIVE_PATH,
    INTERNAL_DIR_PREFIX,
    TOMBSTONE_SUFFIX,
)
from kv_explorer.errors import (
    BlobDeleteFailed,
    BlobMissing,
    BlobReadFailed,
    BlobWriteFailed,
    CatalogError,
    InvalidNamespaceId,
    NamespaceNotFound,
    NotAKvRoot,
)
from kv_explorer.ids import (
    LocalNamespaceRef,
    format_local_namespace_id,
    parse_local_namespace_id,
)
from kv_explorer.local import codec
from kv_explorer.local.catalog import CatalogHandle, LocalCatalog, NamespaceDir
from kv_explorer.models import Entry, Namespace, NamespaceKind
from kv_explorer.utils.best_effort import BestEffort, SuppressedError

logger = logging.getLogger(__name__)

FolderResolver = Callable[[int], Path]
"""Maps a registered folder id to its root path."""


@dataclass
class NamespaceListing:
    """Result of scanning a folder: namespaces plus the errors set aside."""

    namespaces: list[Namespace] = field(default_factory=list)
    errors: list[SuppressedError] = field(default_factory=list)


@dataclass
class _StagedBlob:
    original: Path
    tombstone: Path


class LocalStore:
    """Reads and mutates KV data written by the local emulator.

    Every operation is scoped to one registered folder; ``resolve_folder``
    turns the folder id carried in a namespace id back into a root path.
    """

    def __init__(
        self,
        resolve_folder: FolderResolver,
        kv_relative_path: str = DEFAULT_KV_RELATIVE_PATH,
    ) -> None:
        self._resolve_folder = resolve_folder
        self._kv_relative_path = kv_relative_path

    def catalog_for(self, root_path: Path | str) -> LocalCatalog:
        return LocalCatalog(root_path, self._kv_relative_path)

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_namespaces(self, folder_id: int, root_path: Path | str) -> list[Namespace]:
        """Every readable namespace in the folder, with entries inlined."""
        return self.scan_namespaces(folder_id, root_path).namespaces

    def scan_namespaces(self, folder_id: int, root_path: Path | str) -> NamespaceListing:
        """Like :meth:`list_namespaces` but also reports skipped namespaces.

        Raises:
            NotAKvRoot: the folder has no emulator KV directory.
        """
        catalog = self.catalog_for(root_path)
        namespace_dirs = catalog.list_namespace_dirs()

        collected: BestEffort[Namespace] = BestEffort()
        for ns_dir in namespace_dirs:
            collected.attempt(
                ns_dir.raw_name,
                lambda ns_dir=ns_dir: self._load_namespace(catalog, folder_id, ns_dir),
            )

        if collected.errors:
            logger.info(
                "Skipped %d namespace(s) in %s", len(collected.errors), root_path
            )
        return NamespaceListing(namespaces=collected.results, errors=collected.errors)

    def list_entries(self, folder_id: int, namespace_id: str) -> list[Entry]:
        """Entries of a single namespace.

        Unlike folder listing, catalog and filesystem failures propagate.

        Raises:
            NotAKvRoot: the folder has no emulator KV directory.
            NamespaceNotFound: no directory for the namespace under ``kv/``.
        """
        ref = self._resolve_ref(folder_id, namespace_id)
        catalog = self.catalog_for(self._resolve_folder(ref.folder_id))
        ns_dir = catalog.namespace_dir(ref.raw_name)
        if not catalog.kv_dir.is_dir():
            raise NotAKvRoot(catalog.kv_dir)
        namespace_root = ns_dir.blobs_dir.parent
        if ref.raw_name.startswith(INTERNAL_DIR_PREFIX) or not namespace_root.is_dir():
            raise NamespaceNotFound(namespace_id)
        return self._load_namespace(catalog, folder_id, ns_dir).entries

    def _load_namespace(
        self, catalog: LocalCatalog, folder_id: int, ns_dir: NamespaceDir
    ) -> Namespace:
        namespace_id = format_local_namespace_id(folder_id, ns_dir.raw_name)

        with catalog.open_catalog() as handle:
            rows = catalog.query_entries(handle)

        entries = []
        for row in rows:
            blob_file = ns_dir.blobs_dir / row.blob_id
            if not blob_file.is_file():
                continue
            entries.append(
                Entry(
                    id=f"{namespace_id}-{len(entries)}",
                    key=row.key,
                    blob_ref=row.blob_id,
                    expiration=row.expiration,
                    metadata=row.metadata,
                    value=codec.decode(_read_blob(blob_file, row.key)),
                )
            )

        return Namespace(
            id=namespace_id,
            name=ns_dir.raw_name.upper(),
            kind=NamespaceKind.LOCAL,
            scope=str(folder_id),
            entry_count=len(entries),
            entries=entries,
        )

    # ------------------------------------------------------------------
    # Single entry
    # ------------------------------------------------------------------

    def read_entry(self, folder_id: int, namespace_id: str, key: str) -> Entry:
        """Fetch one entry with its decoded value."""
        ref = self._resolve_ref(folder_id, namespace_id)
        catalog = self.catalog_for(self._resolve_folder(ref.folder_id))
        ns_dir = catalog.namespace_dir(ref.raw_name)

        with catalog.open_catalog() as handle:
            row = catalog.get_row(handle, key)

        blob_file = ns_dir.blobs_dir / row.blob_id
        if not blob_file.is_file():
            raise BlobMissing(key, blob_file)

        return Entry(
            id=f"{namespace_id}-{key}",
            key=key,
            blob_ref=row.blob_id,
            expiration=row.expiration,
            metadata=row.metadata,
            value=codec.decode(_read_blob(blob_file, key)),
        )

    def update_entry(
        self, folder_id: int, namespace_id: str, key: str, value_json: str
    ) -> None:
        """Overwrite the blob behind ``key`` with ``value_json``.

        Only the blob file changes; catalog metadata such as expiration is
        left untouched.
        """
        ref = self._resolve_ref(folder_id, namespace_id)
        catalog = self.catalog_for(self._resolve_folder(ref.folder_id))
        ns_dir = catalog.namespace_dir(ref.raw_name)

        with catalog.open_catalog() as handle:
            blob_id = catalog.get_blob_id_for_key(handle, key)

        blob_file = ns_dir.blobs_dir / blob_id
        if not blob_file.is_file():
            raise BlobMissing(key, blob_file)

        payload = codec.encode(value_json)
        _atomic_write(blob_file, payload, key)
        logger.debug("Updated %s in %s", key, namespace_id)

    # ------------------------------------------------------------------
    # Batch delete
    # ------------------------------------------------------------------

    def delete_entries(self, folder_id: int, namespace_id: str, keys: list[str]) -> None:
        """Delete ``keys`` as one unit.

        Catalog rows are deleted inside a single transaction while each blob
        file is moved aside to a tombstone. If any key fails, tombstones are
        moved back and the transaction is rolled back, so catalog and blobs
        stay as they were. Tombstones are unlinked only after ``COMMIT``.
        """
        if not keys:
            return

        ref = self._resolve_ref(folder_id, namespace_id)
        catalog = self.catalog_for(self._resolve_folder(ref.folder_id))
        ns_dir = catalog.namespace_dir(ref.raw_name)

        staged: list[_StagedBlob] = []
        with catalog.open_catalog() as handle:
            handle.begin()
            try:
                for key in keys:
                    self._delete_one(catalog, handle, ns_dir, key, staged)
                handle.commit()
            except Exception:
                _restore(staged)
                _rollback_quietly(handle)
                raise

        for blob in staged:
            try:
                blob.tombstone.unlink()
            except OSError as exc:
                logger.warning("Could not remove %s after delete: %s", blob.tombstone, exc)

        logger.info("Deleted %d key(s) from %s", len(keys), namespace_id)

    @staticmethod
    def _delete_one(
        catalog: LocalCatalog,
        handle: CatalogHandle,
        ns_dir: NamespaceDir,
        key: str,
        staged: list[_StagedBlob],
    ) -> None:
        blob_id = catalog.get_blob_id_for_key(handle, key)
        catalog.delete_row(handle, key)

        blob_file = ns_dir.blobs_dir / blob_id
        if not blob_file.exists():
            return

        tombstone = blob_file.with_name(blob_file.name + TOMBSTONE_SUFFIX)
        try:
            os.replace(blob_file, tombstone)
        except OSError as exc:
            raise BlobDeleteFailed(key, str(exc)) from exc
        staged.append(_StagedBlob(original=blob_file, tombstone=tombstone))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _resolve_ref(folder_id: int, namespace_id: str) -> LocalNamespaceRef:
        ref = parse_local_namespace_id(namespace_id)
        if ref.folder_id != folder_id:
            raise InvalidNamespaceId(
                namespace_id, f"belongs to folder {ref.folder_id}, not {folder_id}"
            )
        return ref


def _restore(staged: list[_StagedBlob]) -> None:
    """Move staged blobs back into place, newest first."""
    for blob in reversed(staged):
        try:
            os.replace(blob.tombstone, blob.original)
        except OSError as exc:
            logger.error("Could not restore %s: %s", blob.original, exc)


def _read_blob(blob_file: Path, key: str) -> bytes:
    try:
        return blob_file.read_bytes()
    except OSError as exc:
        raise BlobReadFailed(key, str(exc)) from exc


def _rollback_quietly(handle: CatalogHandle) -> None:
    try:
        handle.rollback()
    except CatalogError as exc:
        logger.error("Rollback failed on %s: %s", handle.path, exc)


def _atomic_write(target: Path, payload: bytes, key: str) -> None:
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.")
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(payload)
        os.replace(tmp_name, target)
    except OSError as exc:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise BlobWriteFailed(key, str(exc)) from exc


__all__ = ["FolderResolver", "LocalStore", "NamespaceListing"]
