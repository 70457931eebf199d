# tests/gateway/test_namespace_ids.py
"""Tests for namespace id formatting and parsing."""

import pytest

from kv_explorer.errors import InvalidNamespaceId
from kv_explorer.ids import (
    LocalNamespaceRef,
    RemoteNamespaceRef,
    format_local_namespace_id,
    is_local_namespace_id,
    parse_local_namespace_id,
    parse_namespace_id,
)


class TestLocalIds:
    def test_format(self):
        assert format_local_namespace_id(3, "abc123") == "folder-3-ns-abc123"

    def test_parse(self):
        assert parse_local_namespace_id("folder-3-ns-abc123") == LocalNamespaceRef(3, "abc123")

    def test_name_with_dashes_round_trips(self):
        ref = LocalNamespaceRef(12, "my-cache-ns-2")
        assert parse_local_namespace_id(ref.to_id()) == ref

    @pytest.mark.parametrize(
        "namespace_id",
        [
            "folder-3",
            "folder-3-xx-abc",
            "folder-x-ns-abc",
            "folder--ns-abc",
            "folder-3-ns-",
            "directory-3-ns-abc",
            "folder-²-ns-abc",
            "folder-٣-ns-abc",
            "folder-3-ns-..",
            "folder-3-ns-.",
            "folder-3-ns-../../etc",
            "folder-3-ns-a\\b",
        ],
    )
    def test_malformed(self, namespace_id):
        with pytest.raises(InvalidNamespaceId):
            parse_local_namespace_id(namespace_id)

    def test_is_local(self):
        assert is_local_namespace_id("folder-1-ns-a")
        assert not is_local_namespace_id("0f2ac74b498b48028cb68387c421e279")


class TestParseNamespaceId:
    def test_local_ignores_account(self):
        ref = parse_namespace_id("folder-1-ns-a", "acct")
        assert isinstance(ref, LocalNamespaceRef)

    def test_remote_needs_account(self):
        with pytest.raises(InvalidNamespaceId):
            parse_namespace_id("0f2ac74b")

    def test_remote(self):
        ref = parse_namespace_id("0f2ac74b", "acct")
        assert ref == RemoteNamespaceRef(account_id="acct", namespace_id="0f2ac74b")
        assert ref.to_id() == "0f2ac74b"

    def test_empty_id(self):
        with pytest.raises(InvalidNamespaceId):
            parse_namespace_id("", "acct")

    def test_malformed_local_is_not_treated_as_remote(self):
        with pytest.raises(InvalidNamespaceId):
            parse_namespace_id("folder-bad", "acct")
