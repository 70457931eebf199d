"""SQLite-backed settings store for folders and remote connections.

Schema::

    app_settings(key TEXT PRIMARY KEY, value TEXT)        -- schema_version marker
    folders(id, path UNIQUE, name, last_used)
    remote_connections(id, account_id UNIQUE, api_token, last_used)

``last_used`` columns hold unix seconds.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from kv_explorer.config.defaults import SCHEMA_VERSION
from kv_explorer.errors import PersistenceFailure
from kv_explorer.models import Folder, RemoteConnection

logger = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS app_settings (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS folders (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        path TEXT NOT NULL UNIQUE,
        name TEXT NOT NULL,
        last_used INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS remote_connections (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        account_id TEXT NOT NULL UNIQUE,
        api_token TEXT NOT NULL,
        last_used INTEGER NOT NULL
    )
    """,
)


class FolderStore(Protocol):  # pragma: no cover - structural typing helper
    def save_folder(self, path: str, name: str) -> Folder: ...
    def get_folders(self) -> list[Folder]: ...
    def update_folder_timestamp(self, folder_id: int) -> None: ...
    def remove_folder(self, folder_id: int) -> bool: ...


class ConnectionStore(Protocol):  # pragma: no cover - structural typing helper
    def save_remote_connection(self, account_id: str, api_token: str) -> RemoteConnection: ...
    def get_remote_connections(self) -> list[RemoteConnection]: ...
    def update_connection_timestamp(self, account_id: str) -> None: ...
    def remove_all_connections(self) -> None: ...


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def _from_epoch(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


class SettingsStore:
    """Implements both ``FolderStore`` and ``ConnectionStore`` on one SQLite file.

    The connection is shared across threads; a private lock serialises every
    statement. Any ``sqlite3.Error`` surfaces as :class:`PersistenceFailure`.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()
        try:
            if str(self.path) != ":memory:":
                self.path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self.path), check_same_thread=False)
            self._initialize()
        except (sqlite3.Error, OSError) as exc:
            raise PersistenceFailure(
                f"Failed to open settings database {self.path}: {exc}"
            ) from exc

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def _initialize(self) -> None:
        with self._conn:
            for statement in _SCHEMA:
                self._conn.execute(statement)
            row = self._conn.execute(
                "SELECT value FROM app_settings WHERE key = 'schema_version'"
            ).fetchone()
            if row is None:
                self._conn.execute(
                    "INSERT INTO app_settings (key, value) VALUES ('schema_version', ?)",
                    (str(SCHEMA_VERSION),),
                )
            elif _parse_version(row[0]) < SCHEMA_VERSION:
                self._conn.execute(
                    "UPDATE app_settings SET value = ? WHERE key = 'schema_version'",
                    (str(SCHEMA_VERSION),),
                )

    def schema_version(self) -> int:
        row = self._fetchone("SELECT value FROM app_settings WHERE key = 'schema_version'")
        return _parse_version(row[0]) if row else 0

    # ------------------------------------------------------------------
    # Folders
    # ------------------------------------------------------------------

    def save_folder(self, path: str, name: str) -> Folder:
        """Insert or update by path; an existing path keeps its id."""
        now = _now()
        self._write(
            """
            INSERT INTO folders (path, name, last_used) VALUES (?, ?, ?)
            ON CONFLICT(path) DO UPDATE SET name = excluded.name,
                                            last_used = excluded.last_used
            """,
            (path, name, int(now.timestamp())),
        )
        row = self._fetchone("SELECT id FROM folders WHERE path = ?", (path,))
        if row is None:
            raise PersistenceFailure(f"Folder {path} vanished after save")
        return Folder(id=row[0], path=path, name=name, last_used_at=now)

    def get_folders(self) -> list[Folder]:
        rows = self._fetchall(
            "SELECT id, path, name, last_used FROM folders ORDER BY last_used DESC, id DESC"
        )
        return [
            Folder(id=r[0], path=r[1], name=r[2], last_used_at=_from_epoch(r[3]))
            for r in rows
        ]

    def update_folder_timestamp(self, folder_id: int) -> None:
        self._write(
            "UPDATE folders SET last_used = ? WHERE id = ?",
            (int(_now().timestamp()), folder_id),
        )

    def remove_folder(self, folder_id: int) -> bool:
        return self._write("DELETE FROM folders WHERE id = ?", (folder_id,)) > 0

    # ------------------------------------------------------------------
    # Remote connections
    # ------------------------------------------------------------------

    def save_remote_connection(self, account_id: str, api_token: str) -> RemoteConnection:
        now = _now()
        self._write(
            """
            INSERT INTO remote_connections (account_id, api_token, last_used)
            VALUES (?, ?, ?)
            ON CONFLICT(account_id) DO UPDATE SET api_token = excluded.api_token,
                                                  last_used = excluded.last_used
            """,
            (account_id, api_token, int(now.timestamp())),
        )
        return RemoteConnection(account_id=account_id, api_token=api_token, last_used_at=now)

    def get_remote_connections(self) -> list[RemoteConnection]:
        rows = self._fetchall(
            "SELECT account_id, api_token, last_used FROM remote_connections "
            "ORDER BY last_used DESC, id DESC"
        )
        return [
            RemoteConnection(account_id=r[0], api_token=r[1], last_used_at=_from_epoch(r[2]))
            for r in rows
        ]

    def update_connection_timestamp(self, account_id: str) -> None:
        self._write(
            "UPDATE remote_connections SET last_used = ? WHERE account_id = ?",
            (int(_now().timestamp()), account_id),
        )

    def remove_all_connections(self) -> None:
        self._write("DELETE FROM remote_connections")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # ------------------------------------------------------------------
    # Statement helpers (private)
    # ------------------------------------------------------------------

    def _write(self, sql: str, params: tuple = ()) -> int:
        with self._lock:
            try:
                with self._conn:
                    return self._conn.execute(sql, params).rowcount
            except sqlite3.Error as exc:
                raise PersistenceFailure(f"Settings write failed: {exc}") from exc

    def _fetchone(self, sql: str, params: tuple = ()):
        with self._lock:
            try:
                return self._conn.execute(sql, params).fetchone()
            except sqlite3.Error as exc:
                raise PersistenceFailure(f"Settings read failed: {exc}") from exc

    def _fetchall(self, sql: str, params: tuple = ()) -> list:
        with self._lock:
            try:
                return self._conn.execute(sql, params).fetchall()
            except sqlite3.Error as exc:
                raise PersistenceFailure(f"Settings read failed: {exc}") from exc


def _parse_version(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        logger.warning("Unreadable schema_version %r; treating as 0", value)
        return 0
