"""Process-lifetime cache of registered folders and remote connections."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from pathlib import Path

from kv_explorer.errors import ConnectionNotFound, FolderNotFound, PersistenceFailure
from kv_explorer.models import Folder, RemoteConnection
from kv_explorer.registry.persistence import ConnectionStore, FolderStore, SettingsStore

logger = logging.getLogger(__name__)


class ConnectionRegistry:
    """Lock-guarded registry of folders and remote accounts.

    Storage is always written first and the in-memory cache only changes
    after the write succeeded, so the two never disagree. Locks are held
    only while the cache is read or copied; no I/O happens under them.
    """

    def __init__(self, folder_store: FolderStore, connection_store: ConnectionStore) -> None:
        self._folder_store = folder_store
        self._connection_store = connection_store
        self._folders_lock = threading.Lock()
        self._connections_lock = threading.Lock()
        self._folders: dict[int, Folder] = {}
        self._connections: list[RemoteConnection] = []

    @classmethod
    def load(cls, store: SettingsStore) -> ConnectionRegistry:
        """Build a registry and warm its caches from ``store``."""
        registry = cls(store, store)
        registry.reload()
        return registry

    def reload(self) -> None:
        folders = self._folder_store.get_folders()
        connections = self._connection_store.get_remote_connections()
        with self._folders_lock:
            self._folders = {f.id: f for f in folders}
        with self._connections_lock:
            self._connections = list(connections)
        logger.debug(
            "Registry loaded %d folder(s), %d connection(s)",
            len(folders),
            len(connections),
        )

    def close(self) -> None:
        stores = [self._folder_store]
        if self._connection_store is not self._folder_store:
            stores.append(self._connection_store)
        for store in stores:
            close = getattr(store, "close", None)
            if close is not None:
                close()

    def __enter__(self) -> ConnectionRegistry:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Folders
    # ------------------------------------------------------------------

    def add_folder(self, path: str | Path, name: str | None = None) -> int:
        """Register a folder (upsert by path) and return its id."""
        path_str = str(Path(path).expanduser())
        folder = self._folder_store.save_folder(path_str, name or Path(path_str).name or path_str)
        with self._folders_lock:
            self._folders[folder.id] = folder
        logger.info("Registered folder %s as %d", path_str, folder.id)
        return folder.id

    def remove_folder(self, folder_id: int) -> None:
        """Forget a folder. The files on disk are not touched."""
        if not self._folder_store.remove_folder(folder_id):
            raise FolderNotFound(folder_id)
        with self._folders_lock:
            self._folders.pop(folder_id, None)

    def list_folders(self) -> list[Folder]:
        """Folders, most recently used first."""
        with self._folders_lock:
            folders = list(self._folders.values())
        return sorted(folders, key=lambda f: (f.last_used_at, f.id), reverse=True)

    def get_folder(self, folder_id: int) -> Folder:
        with self._folders_lock:
            folder = self._folders.get(folder_id)
        if folder is None:
            raise FolderNotFound(folder_id)
        return folder

    def resolve_folder(self, folder_id: int) -> Path:
        return Path(self.get_folder(folder_id).path)

    def touch_folder(self, folder_id: int) -> None:
        """Record a folder load. Storage failures are logged, not raised."""
        try:
            self._folder_store.update_folder_timestamp(folder_id)
        except PersistenceFailure as exc:
            logger.warning("Failed to update folder timestamp: %s", exc)
            return
        now = datetime.now(timezone.utc)
        with self._folders_lock:
            folder = self._folders.get(folder_id)
            if folder is not None:
                self._folders[folder_id] = folder.model_copy(update={"last_used_at": now})

    # ------------------------------------------------------------------
    # Remote connections
    # ------------------------------------------------------------------

    def add_connection(self, account_id: str, api_token: str) -> None:
        """Store credentials the caller has already validated."""
        connection = self._connection_store.save_remote_connection(account_id, api_token)
        with self._connections_lock:
            for index, existing in enumerate(self._connections):
                if existing.account_id == account_id:
                    self._connections[index] = connection
                    break
            else:
                self._connections.append(connection)
        logger.info("Connected account %s", account_id)

    def get_connection(self, account_id: str) -> RemoteConnection:
        with self._connections_lock:
            for connection in self._connections:
                if connection.account_id == account_id:
                    return connection
        raise ConnectionNotFound(account_id)

    def list_connections(self) -> list[RemoteConnection]:
        with self._connections_lock:
            return list(self._connections)

    def touch_connection(self, account_id: str) -> None:
        """Record a remote operation. Storage failures are logged, not raised."""
        try:
            self._connection_store.update_connection_timestamp(account_id)
        except PersistenceFailure as exc:
            logger.warning("Failed to update connection timestamp: %s", exc)
            return
        now = datetime.now(timezone.utc)
        with self._connections_lock:
            for index, connection in enumerate(self._connections):
                if connection.account_id == account_id:
                    self._connections[index] = connection.model_copy(
                        update={"last_used_at": now}
                    )

    def disconnect_all(self) -> None:
        """Remove every stored connection. There is no per-account disconnect."""
        self._connection_store.remove_all_connections()
        with self._connections_lock:
            self._connections.clear()
        logger.info("Disconnected all remote accounts")
