"""Common test fixtures and utilities for KV Explorer tests."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Callable

import pytest

from kv_explorer.config.defaults import CATALOG_DIR_NAME, DEFAULT_KV_RELATIVE_PATH
from kv_explorer.local.store import LocalStore
from kv_explorer.registry.persistence import SettingsStore
from kv_explorer.registry.registry import ConnectionRegistry

FRAMED_PREFIX = b"\x00\x01\x02\x03"


def build_project(
    root: Path,
    namespaces: dict[str, dict[str, tuple[str, bytes | None]]],
    with_catalog: bool = True,
    extra_rows: list[tuple] | None = None,
) -> Path:
    """Create an emulator state tree under ``root``.

    ``namespaces`` maps a namespace directory name to ``{key: (blob_id, content)}``;
    a ``None`` content writes the catalog row without a blob file.
    Returns the path of the ``kv`` directory.
    """
    kv_dir = root / DEFAULT_KV_RELATIVE_PATH / "kv"
    kv_dir.mkdir(parents=True, exist_ok=True)

    rows: list[tuple] = list(extra_rows or [])
    for ns_name, entries in namespaces.items():
        blobs = kv_dir / ns_name / "blobs"
        blobs.mkdir(parents=True, exist_ok=True)
        for key, (blob_id, content) in entries.items():
            rows.append((key, blob_id, None, None))
            if content is not None:
                (blobs / blob_id).write_bytes(content)

    if with_catalog:
        catalog_dir = kv_dir / CATALOG_DIR_NAME
        catalog_dir.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(catalog_dir / "abcdef.sqlite")
        try:
            conn.execute(
                "CREATE TABLE _mf_entries ("
                "key TEXT PRIMARY KEY, blob_id TEXT NOT NULL, "
                "expiration INTEGER, metadata TEXT)"
            )
            conn.executemany("INSERT INTO _mf_entries VALUES (?, ?, ?, ?)", rows)
            conn.commit()
        finally:
            conn.close()

    return kv_dir


def catalog_keys(kv_dir: Path) -> set[str]:
    """Keys currently committed in the project's catalog."""
    path = next((kv_dir / CATALOG_DIR_NAME).glob("*.sqlite"))
    conn = sqlite3.connect(path)
    try:
        return {row[0] for row in conn.execute("SELECT key FROM _mf_entries")}
    finally:
        conn.close()


@pytest.fixture
def project_factory(tmp_path: Path) -> Callable[..., Path]:
    """Build emulator projects inside ``tmp_path``; returns the project root."""

    def _factory(name: str = "proj", **kwargs) -> Path:
        root = tmp_path / name
        build_project(root, **kwargs)
        return root

    return _factory


@pytest.fixture
def settings_store(tmp_path: Path):
    store = SettingsStore(tmp_path / "settings" / "kv_explorer.db")
    yield store
    store.close()


@pytest.fixture
def registry(settings_store: SettingsStore) -> ConnectionRegistry:
    return ConnectionRegistry.load(settings_store)


@pytest.fixture
def local_store(registry: ConnectionRegistry) -> LocalStore:
    return LocalStore(registry.resolve_folder)
