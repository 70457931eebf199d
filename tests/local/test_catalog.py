# tests/local/test_catalog.py
"""Tests for LocalCatalog discovery and queries."""

from pathlib import Path

import pytest

from kv_explorer.errors import (
    CatalogError,
    CatalogMissing,
    InvalidNamespaceId,
    KeyNotFound,
    NotAKvRoot,
)
from kv_explorer.local.catalog import LocalCatalog
from tests.conftest import build_project


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "proj"
    build_project(
        root,
        {
            "abc123": {"k1": ("blob1", b'{"x": 1}')},
            "def456": {"k2": ("blob2", b"[1]")},
        },
    )
    return root


class TestListNamespaceDirs:
    def test_lists_namespace_directories(self, project: Path):
        dirs = LocalCatalog(project).list_namespace_dirs()
        assert [d.raw_name for d in dirs] == ["abc123", "def456"]
        assert dirs[0].blobs_dir.name == "blobs"

    def test_skips_internal_directories(self, project: Path):
        catalog = LocalCatalog(project)
        (catalog.kv_dir / "miniflare-Other").mkdir()
        names = [d.raw_name for d in catalog.list_namespace_dirs()]
        assert "miniflare-KVNamespaceObject" not in names
        assert "miniflare-Other" not in names

    def test_ignores_plain_files(self, project: Path):
        catalog = LocalCatalog(project)
        (catalog.kv_dir / "stray.txt").write_text("x")
        assert len(catalog.list_namespace_dirs()) == 2

    def test_missing_kv_dir_raises(self, tmp_path: Path):
        with pytest.raises(NotAKvRoot):
            LocalCatalog(tmp_path).list_namespace_dirs()

    def test_unreadable_kv_dir_raises_catalog_error(self, project: Path, monkeypatch):
        def denied(self):
            raise PermissionError("denied")

        monkeypatch.setattr(Path, "iterdir", denied)
        with pytest.raises(CatalogError, match="denied"):
            LocalCatalog(project).list_namespace_dirs()


class TestNamespaceDir:
    def test_joins_raw_name(self, project: Path):
        catalog = LocalCatalog(project)
        ns_dir = catalog.namespace_dir("abc123")
        assert ns_dir.blobs_dir == catalog.kv_dir / "abc123" / "blobs"

    @pytest.mark.parametrize("raw_name", ["..", ".", "../..", "a/b", "a\\b"])
    def test_rejects_names_that_leave_kv_dir(self, project: Path, raw_name):
        with pytest.raises(InvalidNamespaceId):
            LocalCatalog(project).namespace_dir(raw_name)


class TestOpenCatalog:
    def test_finds_sqlite_file(self, project: Path):
        with LocalCatalog(project).open_catalog() as handle:
            assert handle.path.suffix == ".sqlite"

    def test_missing_catalog_raises(self, tmp_path: Path):
        root = tmp_path / "nocat"
        build_project(root, {"abc": {}}, with_catalog=False)
        with pytest.raises(CatalogMissing):
            LocalCatalog(root).open_catalog()

    def test_non_sqlite_files_ignored(self, tmp_path: Path):
        root = tmp_path / "other"
        build_project(root, {"abc": {}}, with_catalog=False)
        catalog = LocalCatalog(root)
        catalog.catalog_dir.mkdir(parents=True)
        (catalog.catalog_dir / "notes.txt").write_text("hi")
        assert catalog.find_catalog_file() is None

    def test_custom_relative_path(self, tmp_path: Path):
        root = tmp_path / "custom"
        (root / "state" / "kv" / "ns1").mkdir(parents=True)
        catalog = LocalCatalog(root, "state")
        assert [d.raw_name for d in catalog.list_namespace_dirs()] == ["ns1"]


class TestQueries:
    def test_query_entries_full_scan(self, project: Path):
        catalog = LocalCatalog(project)
        with catalog.open_catalog() as handle:
            rows = catalog.query_entries(handle)
        assert {(r.key, r.blob_id) for r in rows} == {("k1", "blob1"), ("k2", "blob2")}

    def test_get_blob_id_for_key(self, project: Path):
        catalog = LocalCatalog(project)
        with catalog.open_catalog() as handle:
            assert catalog.get_blob_id_for_key(handle, "k2") == "blob2"

    def test_get_blob_id_missing_key(self, project: Path):
        catalog = LocalCatalog(project)
        with catalog.open_catalog() as handle:
            with pytest.raises(KeyNotFound) as exc_info:
                catalog.get_blob_id_for_key(handle, "nope")
        assert exc_info.value.key == "nope"

    def test_corrupt_catalog_raises_catalog_error(self, tmp_path: Path):
        root = tmp_path / "corrupt"
        build_project(root, {"abc": {}}, with_catalog=False)
        catalog = LocalCatalog(root)
        catalog.catalog_dir.mkdir(parents=True)
        (catalog.catalog_dir / "bad.sqlite").write_bytes(b"this is not a database" * 10)
        with pytest.raises(CatalogError):
            with catalog.open_catalog() as handle:
                catalog.query_entries(handle)

    def test_delete_row_error_carries_sqlite_detail(self, project: Path):
        catalog = LocalCatalog(project)
        with catalog.open_catalog() as handle:
            handle.connection.execute("DROP TABLE _mf_entries")
            with pytest.raises(CatalogError, match="no such table") as exc_info:
                catalog.delete_row(handle, "k1")
        assert "k1" in str(exc_info.value)
