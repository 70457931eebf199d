# src/kv_explorer/gateway.py
"""
Single entry point over both KV backends.

Namespace ids are parsed into typed references; local references are served
by :class:`LocalStore` scoped to their folder, remote references by
:class:`RemoteClient` with the credentials registered for the account.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import httpx

from kv_explorer.config.models import ExplorerConfig
from kv_explorer.ids import (
    LocalNamespaceRef,
    NamespaceRef,
    RemoteNamespaceRef,
    parse_namespace_id,
)
from kv_explorer.local.store import LocalStore, NamespaceListing
from kv_explorer.models import Folder, KeyPage, Namespace
from kv_explorer.registry.persistence import SettingsStore
from kv_explorer.registry.registry import ConnectionRegistry
from kv_explorer.remote.client import RemoteClient

logger = logging.getLogger(__name__)


class KVGateway:
    """Façade dispatching namespace operations to the right backend."""

    def __init__(
        self,
        registry: ConnectionRegistry,
        local: LocalStore,
        remote: RemoteClient,
    ) -> None:
        self.registry = registry
        self.local = local
        self.remote = remote

    @classmethod
    def open(
        cls,
        config: ExplorerConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> KVGateway:
        """Wire a gateway from configuration (settings DB, stores, client)."""
        config = config or ExplorerConfig.from_env()
        registry = ConnectionRegistry.load(SettingsStore(config.settings_path))
        local = LocalStore(registry.resolve_folder, config.kv_relative_path)
        remote = RemoteClient.from_config(config, transport=transport)
        return cls(registry, local, remote)

    def close(self) -> None:
        self.registry.close()

    def __enter__(self) -> KVGateway:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    #  Resolution                                                         #
    # ------------------------------------------------------------------ #

    def resolve(self, namespace_id: str, account_id: str | None = None) -> NamespaceRef:
        """Parse a namespace id and check its scope is registered."""
        ref = parse_namespace_id(namespace_id, account_id)
        if isinstance(ref, LocalNamespaceRef):
            self.registry.get_folder(ref.folder_id)
        else:
            self.registry.get_connection(ref.account_id)
        return ref

    def _token(self, ref: RemoteNamespaceRef) -> str:
        return self.registry.get_connection(ref.account_id).api_token

    # ------------------------------------------------------------------ #
    #  Folders                                                            #
    # ------------------------------------------------------------------ #

    def list_folders(self) -> list[Folder]:
        return self.registry.list_folders()

    async def open_folder(
        self, path: str | Path, name: str | None = None
    ) -> tuple[Folder, list[Namespace]]:
        """Register (or re-register) a folder and load its namespaces."""
        folder_id = self.registry.add_folder(path, name)
        namespaces = await self.load_folder(folder_id)
        return self.registry.get_folder(folder_id), namespaces

    async def load_folder(self, folder_id: int) -> list[Namespace]:
        return (await self.scan_folder(folder_id)).namespaces

    async def scan_folder(self, folder_id: int) -> NamespaceListing:
        """Load a folder and report any namespaces that were skipped."""
        folder = self.registry.get_folder(folder_id)
        self.registry.touch_folder(folder_id)
        return self.local.scan_namespaces(folder.id, folder.path)

    def remove_folder(self, folder_id: int) -> None:
        self.registry.remove_folder(folder_id)

    # ------------------------------------------------------------------ #
    #  Remote accounts                                                    #
    # ------------------------------------------------------------------ #

    async def connect(self, account_id: str, api_token: str) -> None:
        """Validate the token against the API, then remember it."""
        await self.remote.validate_token(account_id, api_token)
        self.registry.add_connection(account_id, api_token)

    def disconnect(self) -> None:
        self.registry.disconnect_all()

    async def list_remote_namespaces(
        self, account_id: str | None = None, include_counts: bool = False
    ) -> list[Namespace]:
        """Namespaces of one account, or of every connected account."""
        if account_id is not None:
            connections = [self.registry.get_connection(account_id)]
        else:
            connections = self.registry.list_connections()

        namespaces: list[Namespace] = []
        for connection in connections:
            found = await self.remote.list_namespaces(
                connection.account_id, connection.api_token
            )
            self.registry.touch_connection(connection.account_id)

            if include_counts and found:
                counts = await self.remote.count_keys(
                    connection.account_id,
                    connection.api_token,
                    [ns.id for ns in found],
                )
                found = [
                    ns.model_copy(update={"entry_count": counts.get(ns.id)})
                    for ns in found
                ]
            namespaces.extend(found)
        return namespaces

    # ------------------------------------------------------------------ #
    #  Keys & values                                                      #
    # ------------------------------------------------------------------ #

    async def list_keys(
        self,
        namespace_id: str,
        account_id: str | None = None,
        cursor: str | None = None,
    ) -> KeyPage:
        """One page of entries. Local namespaces always fit in a single page."""
        ref = self.resolve(namespace_id, account_id)

        if isinstance(ref, LocalNamespaceRef):
            entries = self.local.list_entries(ref.folder_id, namespace_id)
            return KeyPage(entries=entries, cursor=None, total_count=len(entries))

        page = await self.remote.list_keys(
            ref.account_id, self._token(ref), ref.namespace_id, cursor
        )
        self.registry.touch_connection(ref.account_id)
        return page

    async def get_value(
        self, namespace_id: str, key: str, account_id: str | None = None
    ) -> Any:
        ref = self.resolve(namespace_id, account_id)

        if isinstance(ref, LocalNamespaceRef):
            return self.local.read_entry(ref.folder_id, namespace_id, key).value

        value = await self.remote.get_value(
            ref.account_id, self._token(ref), ref.namespace_id, key
        )
        self.registry.touch_connection(ref.account_id)
        return value

    async def update_value(
        self,
        namespace_id: str,
        key: str,
        value_json: str,
        account_id: str | None = None,
    ) -> None:
        ref = self.resolve(namespace_id, account_id)

        if isinstance(ref, LocalNamespaceRef):
            self.local.update_entry(ref.folder_id, namespace_id, key, value_json)
            return

        await self.remote.put_value(
            ref.account_id, self._token(ref), ref.namespace_id, key, value_json
        )
        self.registry.touch_connection(ref.account_id)

    async def delete_keys(
        self,
        namespace_id: str,
        keys: list[str],
        account_id: str | None = None,
    ) -> None:
        ref = self.resolve(namespace_id, account_id)

        if isinstance(ref, LocalNamespaceRef):
            self.local.delete_entries(ref.folder_id, namespace_id, keys)
            return

        await self.remote.delete_keys(
            ref.account_id, self._token(ref), ref.namespace_id, keys
        )
        self.registry.touch_connection(ref.account_id)
