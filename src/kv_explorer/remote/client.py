# src/kv_explorer/remote/client.py
"""
Async HTTP client for the remote KV API.

The client holds no credentials: every call takes the ``account_id`` and
API token to use, so one instance serves every registered account. A fresh
``httpx.AsyncClient`` is opened per call and closed when the call returns.
"""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from kv_explorer.config.defaults import (
    DEFAULT_API_BASE,
    DEFAULT_PAGE_SIZE,
    REMOTE_BLOB_REF_PREFIX,
)
from kv_explorer.config.models import ExplorerConfig, TimeoutConfig
from kv_explorer.errors import (
    AuthFailed,
    InvalidJson,
    RemoteApiError,
    RemoteFailureError,
    RemoteRequestFailed,
    RemoteTransportError,
)
from kv_explorer.models import Entry, KeyPage, Namespace, NamespaceKind
from kv_explorer.remote.models import ApiEnvelope, ProviderKey, ProviderNamespace

logger = logging.getLogger(__name__)


def _segment(value: str) -> str:
    """Percent-encode one path segment (keys may contain ``/``)."""
    return quote(value, safe="")


class RemoteClient:
    """Stateless client for namespace, key and value operations."""

    def __init__(
        self,
        api_base: str = DEFAULT_API_BASE,
        page_size: int = DEFAULT_PAGE_SIZE,
        timeout: httpx.Timeout | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_base = api_base.rstrip("/")
        self.page_size = page_size
        self._timeout = timeout or TimeoutConfig().to_httpx()
        self._transport = transport

    @classmethod
    def from_config(
        cls,
        config: ExplorerConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> RemoteClient:
        return cls(
            api_base=config.api_base,
            page_size=config.page_size,
            timeout=config.timeouts.to_httpx(),
            transport=transport,
        )

    # ------------------------------------------------------------------ #
    #  URLs                                                               #
    # ------------------------------------------------------------------ #

    def namespaces_url(self, account_id: str) -> str:
        return f"{self.api_base}/accounts/{_segment(account_id)}/storage/kv/namespaces"

    def _namespace_url(self, account_id: str, namespace_id: str) -> str:
        return f"{self.namespaces_url(account_id)}/{_segment(namespace_id)}"

    def _value_url(self, account_id: str, namespace_id: str, key: str) -> str:
        return f"{self._namespace_url(account_id, namespace_id)}/values/{_segment(key)}"

    def _analytics_url(self, account_id: str) -> str:
        return f"{self.api_base}/accounts/{_segment(account_id)}/storage/analytics/stored"

    # ------------------------------------------------------------------ #
    #  Transport                                                          #
    # ------------------------------------------------------------------ #

    async def _request(
        self, method: str, url: str, token: str, **kwargs: Any
    ) -> httpx.Response:
        headers = {"Authorization": f"Bearer {token}"}
        headers.update(kwargs.pop("headers", {}))
        logger.debug("%s %s", method, url)
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                return await client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise RemoteTransportError(f"API request failed: {exc}") from exc

    @staticmethod
    def _envelope(response: httpx.Response) -> ApiEnvelope:
        try:
            return ApiEnvelope.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise RemoteApiError(f"unreadable response body ({exc})") from exc

    @staticmethod
    def _maybe_envelope(response: httpx.Response) -> ApiEnvelope | None:
        """Parse the envelope if the body is one; raw bodies give ``None``."""
        try:
            return ApiEnvelope.model_validate(response.json())
        except (ValueError, ValidationError):
            return None

    @classmethod
    def _check_status(cls, response: httpx.Response) -> None:
        """Raise ``RemoteRequestFailed`` for any non-2xx response."""
        if response.is_success:
            return
        envelope = cls._maybe_envelope(response)
        detail = envelope.error_summary() if envelope else None
        raise RemoteRequestFailed(response.status_code, detail or None)

    @classmethod
    def _check_mutation(cls, response: httpx.Response) -> None:
        """Status check plus envelope check for write endpoints."""
        cls._check_status(response)
        envelope = cls._maybe_envelope(response)
        if envelope is not None and not envelope.success:
            raise RemoteApiError(envelope.error_summary() or "unknown error")

    @classmethod
    def _checked_envelope(cls, response: httpx.Response) -> ApiEnvelope:
        cls._check_status(response)
        envelope = cls._envelope(response)
        if not envelope.success:
            raise RemoteApiError(envelope.error_summary() or "unknown error")
        return envelope

    # ------------------------------------------------------------------ #
    #  Accounts & namespaces                                              #
    # ------------------------------------------------------------------ #

    async def validate_token(self, account_id: str, token: str) -> None:
        """Probe the namespace listing; any 2xx means the token works."""
        response = await self._request("GET", self.namespaces_url(account_id), token)
        if not response.is_success:
            raise AuthFailed(response.status_code)
        logger.info("Validated API token for account %s", account_id)

    async def list_namespaces(self, account_id: str, token: str) -> list[Namespace]:
        response = await self._request("GET", self.namespaces_url(account_id), token)
        envelope = self._checked_envelope(response)

        try:
            records = [ProviderNamespace.model_validate(r) for r in envelope.result or []]
        except ValidationError as exc:
            raise RemoteApiError(f"unexpected namespace record ({exc})") from exc

        return [
            Namespace(
                id=record.id,
                name=record.title,
                kind=NamespaceKind.REMOTE,
                scope=account_id,
            )
            for record in records
        ]

    async def count_keys(
        self, account_id: str, token: str, namespace_ids: list[str]
    ) -> dict[str, int]:
        """Best-effort key counts per namespace.

        Tries the storage analytics endpoint first and falls back to a
        one-key listing per namespace. Namespaces whose count cannot be
        determined are simply absent from the result.
        """
        counts = await self._counts_from_analytics(account_id, token)
        if counts:
            return counts

        for namespace_id in namespace_ids:
            try:
                response = await self._request(
                    "GET",
                    f"{self._namespace_url(account_id, namespace_id)}/keys",
                    token,
                    params={"limit": 1},
                )
                envelope = self._checked_envelope(response)
            except RemoteFailureError as exc:
                logger.debug("No key count for %s: %s", namespace_id, exc)
                continue
            info = envelope.result_info
            if info is not None and info.total_count is not None:
                counts[namespace_id] = info.total_count
        return counts

    async def _counts_from_analytics(self, account_id: str, token: str) -> dict[str, int]:
        try:
            response = await self._request(
                "GET",
                self._analytics_url(account_id),
                token,
                params={"dimensions": "namespaceId", "metrics": "storedKeys"},
            )
            envelope = self._checked_envelope(response)
        except RemoteFailureError as exc:
            logger.debug("Analytics unavailable for %s: %s", account_id, exc)
            return {}

        counts: dict[str, int] = {}
        result = envelope.result if isinstance(envelope.result, dict) else {}
        for item in result.get("data") or []:
            try:
                namespace_id = item["dimensions"][0]
                stored_keys = item["metrics"][0][0]
            except (KeyError, IndexError, TypeError):
                continue
            if isinstance(namespace_id, str) and isinstance(stored_keys, int):
                counts[namespace_id] = stored_keys
        return counts

    # ------------------------------------------------------------------ #
    #  Keys                                                               #
    # ------------------------------------------------------------------ #

    async def list_keys(
        self,
        account_id: str,
        token: str,
        namespace_id: str,
        cursor: str | None = None,
    ) -> KeyPage:
        """Fetch one page of keys. The returned cursor is ``None`` on the last page."""
        params: dict[str, Any] = {"limit": self.page_size}
        if cursor:
            params["cursor"] = cursor

        response = await self._request(
            "GET",
            f"{self._namespace_url(account_id, namespace_id)}/keys",
            token,
            params=params,
        )
        envelope = self._checked_envelope(response)

        try:
            keys = [ProviderKey.model_validate(k) for k in envelope.result or []]
        except ValidationError as exc:
            raise RemoteApiError(f"unexpected key record ({exc})") from exc

        entries = [
            Entry(
                id=f"{namespace_id}-{index}",
                key=key.name,
                blob_ref=f"{REMOTE_BLOB_REF_PREFIX}{index}",
                expiration=key.expiration,
                metadata=json.dumps(key.metadata) if key.metadata is not None else None,
                value=None,
            )
            for index, key in enumerate(keys)
        ]

        info = envelope.result_info
        next_cursor = info.cursor if info and info.cursor else None
        if info and info.total_count is not None:
            total = info.total_count
        elif info and info.count is not None:
            total = info.count
        else:
            total = len(entries)

        return KeyPage(entries=entries, cursor=next_cursor, total_count=total)

    async def iter_keys(
        self, account_id: str, token: str, namespace_id: str
    ) -> AsyncIterator[Entry]:
        """Yield every key in the namespace, following cursors."""
        cursor: str | None = None
        while True:
            page = await self.list_keys(account_id, token, namespace_id, cursor)
            for entry in page.entries:
                yield entry
            if page.cursor is None:
                return
            cursor = page.cursor

    # ------------------------------------------------------------------ #
    #  Values                                                             #
    # ------------------------------------------------------------------ #

    async def get_value(
        self, account_id: str, token: str, namespace_id: str, key: str
    ) -> Any:
        """Fetch a value; bodies that are not JSON come back as JSON strings."""
        response = await self._request(
            "GET", self._value_url(account_id, namespace_id, key), token
        )
        self._check_status(response)

        text = response.text
        try:
            return json.loads(text)
        except ValueError:
            return text

    async def put_value(
        self, account_id: str, token: str, namespace_id: str, key: str, value_json: str
    ) -> None:
        try:
            json.loads(value_json)
        except ValueError as exc:
            raise InvalidJson(str(exc)) from exc

        response = await self._request(
            "PUT",
            self._value_url(account_id, namespace_id, key),
            token,
            content=value_json.encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )
        self._check_mutation(response)
        logger.debug("Stored %s in %s", key, namespace_id)

    async def delete_keys(
        self, account_id: str, token: str, namespace_id: str, keys: list[str]
    ) -> None:
        """Delete one key directly, or several through the bulk endpoint."""
        if not keys:
            return

        if len(keys) == 1:
            response = await self._request(
                "DELETE", self._value_url(account_id, namespace_id, keys[0]), token
            )
        else:
            response = await self._request(
                "POST",
                f"{self._namespace_url(account_id, namespace_id)}/bulk/delete",
                token,
                json=list(keys),
            )
        self._check_mutation(response)
        logger.info("Deleted %d key(s) from %s", len(keys), namespace_id)
