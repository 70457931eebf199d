# tests/remote/test_remote_client.py
"""Tests for RemoteClient against a mocked HTTP transport."""

import json

import httpx
import pytest

from kv_explorer.errors import (
    AuthFailed,
    InvalidJson,
    RemoteApiError,
    RemoteRequestFailed,
    RemoteTransportError,
)
from kv_explorer.models import NamespaceKind
from kv_explorer.remote.client import RemoteClient

BASE = "https://kv.test/client/v4"
ACCOUNT = "acct1"
TOKEN = "secret-token"


def _ok(result=None, result_info=None, status=200):
    body = {"success": True, "errors": [], "messages": [], "result": result}
    if result_info is not None:
        body["result_info"] = result_info
    return httpx.Response(status, json=body)


class Recorder:
    """Mock transport handler that records requests and replays responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        return response(request) if callable(response) else response

    def client(self, page_size: int = 1000) -> RemoteClient:
        return RemoteClient(
            api_base=BASE, page_size=page_size, transport=httpx.MockTransport(self)
        )


class TestValidateToken:
    @pytest.mark.asyncio
    async def test_success_sends_bearer(self):
        rec = Recorder(_ok([]))
        await rec.client().validate_token(ACCOUNT, TOKEN)

        request = rec.requests[0]
        assert request.method == "GET"
        assert str(request.url) == f"{BASE}/accounts/{ACCOUNT}/storage/kv/namespaces"
        assert request.headers["Authorization"] == f"Bearer {TOKEN}"

    @pytest.mark.asyncio
    async def test_rejected_token(self):
        rec = Recorder(httpx.Response(403, json={"success": False}))
        with pytest.raises(AuthFailed) as exc_info:
            await rec.client().validate_token(ACCOUNT, TOKEN)
        assert exc_info.value.status == 403
        assert "403" in str(exc_info.value)


class TestListNamespaces:
    @pytest.mark.asyncio
    async def test_maps_title_to_name(self):
        rec = Recorder(_ok([{"id": "n1", "title": "CACHE"}, {"id": "n2", "title": "USERS"}]))

        namespaces = await rec.client().list_namespaces(ACCOUNT, TOKEN)

        assert [(ns.id, ns.name) for ns in namespaces] == [("n1", "CACHE"), ("n2", "USERS")]
        assert all(ns.kind == NamespaceKind.REMOTE for ns in namespaces)
        assert all(ns.scope == ACCOUNT for ns in namespaces)

    @pytest.mark.asyncio
    async def test_error_envelope(self):
        body = {
            "success": False,
            "errors": [{"code": 10000, "message": "Authentication error"}],
            "result": None,
        }
        rec = Recorder(httpx.Response(200, json=body))

        with pytest.raises(RemoteApiError) as exc_info:
            await rec.client().list_namespaces(ACCOUNT, TOKEN)
        assert "10000: Authentication error" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        rec = Recorder(httpx.Response(500, text="boom"))
        with pytest.raises(RemoteRequestFailed) as exc_info:
            await rec.client().list_namespaces(ACCOUNT, TOKEN)
        assert exc_info.value.status == 500

    @pytest.mark.asyncio
    async def test_unreadable_body(self):
        rec = Recorder(httpx.Response(200, text="<html>"))
        with pytest.raises(RemoteApiError):
            await rec.client().list_namespaces(ACCOUNT, TOKEN)

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        def explode(request):
            raise httpx.ConnectError("unreachable", request=request)

        rec = Recorder(explode)
        with pytest.raises(RemoteTransportError):
            await rec.client().list_namespaces(ACCOUNT, TOKEN)


class TestListKeys:
    @pytest.mark.asyncio
    async def test_pagination(self):
        rec = Recorder(
            _ok([{"name": "a"}, {"name": "b"}], {"count": 2, "cursor": "abc"}),
            _ok([{"name": "c"}], {"count": 1, "cursor": ""}),
        )
        client = rec.client(page_size=2)

        first = await client.list_keys(ACCOUNT, TOKEN, "ns1")
        second = await client.list_keys(ACCOUNT, TOKEN, "ns1", first.cursor)

        assert [e.key for e in first.entries] == ["a", "b"]
        assert first.cursor == "abc"
        assert [e.key for e in second.entries] == ["c"]
        assert second.cursor is None

        assert rec.requests[0].url.params["limit"] == "2"
        assert "cursor" not in rec.requests[0].url.params
        assert rec.requests[1].url.params["cursor"] == "abc"

    @pytest.mark.asyncio
    async def test_entry_fields(self):
        rec = Recorder(
            _ok(
                [{"name": "k", "expiration": 1700000000, "metadata": {"tag": "x"}}],
                {"count": 1, "total_count": 42},
            )
        )

        page = await rec.client().list_keys(ACCOUNT, TOKEN, "ns1")

        entry = page.entries[0]
        assert entry.id == "ns1-0"
        assert entry.blob_ref == "remote-0"
        assert entry.expiration == 1700000000
        assert json.loads(entry.metadata) == {"tag": "x"}
        assert entry.value is None
        assert page.total_count == 42

    @pytest.mark.asyncio
    async def test_total_falls_back_to_length(self):
        rec = Recorder(_ok([{"name": "only"}]))
        page = await rec.client().list_keys(ACCOUNT, TOKEN, "ns1")
        assert page.total_count == 1
        assert page.cursor is None

    @pytest.mark.asyncio
    async def test_iter_keys_follows_cursor(self):
        rec = Recorder(
            _ok([{"name": "a"}], {"cursor": "next"}),
            _ok([{"name": "b"}], {"cursor": None}),
        )
        keys = [entry.key async for entry in rec.client().iter_keys(ACCOUNT, TOKEN, "ns1")]
        assert keys == ["a", "b"]
        assert len(rec.requests) == 2


class TestValues:
    @pytest.mark.asyncio
    async def test_json_value(self):
        rec = Recorder(httpx.Response(200, text='{"x": 1}'))
        value = await rec.client().get_value(ACCOUNT, TOKEN, "ns1", "k")
        assert value == {"x": 1}

    @pytest.mark.asyncio
    async def test_plain_text_value_becomes_string(self):
        rec = Recorder(httpx.Response(200, text="hello"))
        value = await rec.client().get_value(ACCOUNT, TOKEN, "ns1", "k")
        assert value == "hello"

    @pytest.mark.asyncio
    async def test_key_is_percent_encoded(self):
        rec = Recorder(httpx.Response(200, text="1"))
        await rec.client().get_value(ACCOUNT, TOKEN, "ns1", "a/b c")
        assert rec.requests[0].url.raw_path.endswith(b"/values/a%2Fb%20c")

    @pytest.mark.asyncio
    async def test_missing_value(self):
        body = {"success": False, "errors": [{"code": 10009, "message": "key not found"}]}
        rec = Recorder(httpx.Response(404, json=body))
        with pytest.raises(RemoteRequestFailed) as exc_info:
            await rec.client().get_value(ACCOUNT, TOKEN, "ns1", "k")
        assert exc_info.value.status == 404
        assert "key not found" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_put_sends_raw_json_body(self):
        rec = Recorder(_ok())
        await rec.client().put_value(ACCOUNT, TOKEN, "ns1", "k", '{"x": 2}')

        request = rec.requests[0]
        assert request.method == "PUT"
        assert request.url.path.endswith("/storage/kv/namespaces/ns1/values/k")
        assert request.content == b'{"x": 2}'
        assert request.headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_put_invalid_json_sends_nothing(self):
        rec = Recorder()
        with pytest.raises(InvalidJson):
            await rec.client().put_value(ACCOUNT, TOKEN, "ns1", "k", "{nope")
        assert rec.requests == []

    @pytest.mark.asyncio
    async def test_put_rejected_by_envelope(self):
        body = {"success": False, "errors": [{"code": 10001, "message": "bad"}]}
        rec = Recorder(httpx.Response(200, json=body))
        with pytest.raises(RemoteApiError):
            await rec.client().put_value(ACCOUNT, TOKEN, "ns1", "k", "1")


class TestDeleteKeys:
    @pytest.mark.asyncio
    async def test_single_key_uses_delete(self):
        rec = Recorder(_ok())
        await rec.client().delete_keys(ACCOUNT, TOKEN, "ns1", ["k"])

        request = rec.requests[0]
        assert request.method == "DELETE"
        assert request.url.path.endswith("/ns1/values/k")

    @pytest.mark.asyncio
    async def test_many_keys_use_bulk_endpoint(self):
        rec = Recorder(_ok())
        await rec.client().delete_keys(ACCOUNT, TOKEN, "ns1", ["a", "b"])

        request = rec.requests[0]
        assert request.method == "POST"
        assert request.url.path.endswith("/ns1/bulk/delete")
        assert json.loads(request.content) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_empty_list_sends_nothing(self):
        rec = Recorder()
        await rec.client().delete_keys(ACCOUNT, TOKEN, "ns1", [])
        assert rec.requests == []

    @pytest.mark.asyncio
    async def test_failure_status(self):
        rec = Recorder(httpx.Response(500, text="oops"))
        with pytest.raises(RemoteRequestFailed):
            await rec.client().delete_keys(ACCOUNT, TOKEN, "ns1", ["a", "b"])


class TestCountKeys:
    @pytest.mark.asyncio
    async def test_analytics_counts(self):
        rec = Recorder(
            _ok(
                {
                    "data": [
                        {"dimensions": ["n1"], "metrics": [[5]]},
                        {"dimensions": ["n2"], "metrics": [[0]]},
                    ]
                }
            )
        )
        counts = await rec.client().count_keys(ACCOUNT, TOKEN, ["n1", "n2"])
        assert counts == {"n1": 5, "n2": 0}
        assert len(rec.requests) == 1

    @pytest.mark.asyncio
    async def test_falls_back_to_key_listing(self):
        rec = Recorder(
            httpx.Response(403, json={"success": False}),
            _ok([{"name": "x"}], {"count": 1, "total_count": 9}),
            httpx.Response(500, text="down"),
        )
        counts = await rec.client().count_keys(ACCOUNT, TOKEN, ["n1", "n2"])

        assert counts == {"n1": 9}
        assert rec.requests[1].url.params["limit"] == "1"


class TestFromConfig:
    def test_uses_config_values(self):
        from kv_explorer.config.models import ExplorerConfig

        config = ExplorerConfig(api_base="https://example.test/v4/", page_size=50)
        client = RemoteClient.from_config(config)
        assert client.api_base == "https://example.test/v4"
        assert client.page_size == 50
