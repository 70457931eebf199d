# src/kv_explorer/main.py
"""Entry-point for the KV Explorer command line."""
from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, List, Optional

import typer
from chuk_term.ui import format_table, output
from dotenv import load_dotenv

from kv_explorer.config.defaults import APP_NAME, DEFAULT_LOG_LEVEL
from kv_explorer.config.env_vars import EnvVar
from kv_explorer.config.logging import setup_logging
from kv_explorer.config.models import ExplorerConfig
from kv_explorer.errors import KVExplorerError
from kv_explorer.gateway import KVGateway
from kv_explorer.models import Entry, Namespace

logger = logging.getLogger(__name__)

app = typer.Typer(name=APP_NAME, add_completion=False, help="Browse and edit Workers KV data.")


# ════════════════════════════════════════════════════════════════════════
# helpers
# ════════════════════════════════════════════════════════════════════════
def _with_gateway(action: Callable[[KVGateway], Any]) -> Any:
    """Open a gateway, run ``action`` (sync or async) and report errors."""
    try:
        with KVGateway.open(ExplorerConfig.from_env()) as gateway:
            result = action(gateway)
            if asyncio.iscoroutine(result):
                result = asyncio.run(result)
            return result
    except KVExplorerError as exc:
        output.error(str(exc))
        logger.debug("Command failed", exc_info=True)
        raise typer.Exit(code=1)


def _preview(value: Any, width: int = 60) -> str:
    if value is None:
        return "-"
    text = json.dumps(value, ensure_ascii=False)
    return text if len(text) <= width else text[: width - 3] + "..."


def _print_namespaces(namespaces: List[Namespace], title: str) -> None:
    if not namespaces:
        output.info("No namespaces found.")
        return
    rows = [
        {
            "ID": ns.id,
            "Name": ns.name,
            "Kind": ns.kind.value,
            "Entries": "-" if ns.entry_count is None else str(ns.entry_count),
        }
        for ns in namespaces
    ]
    output.print_table(format_table(rows, title=title, columns=["ID", "Name", "Kind", "Entries"]))


def _print_entries(entries: List[Entry], title: str) -> None:
    if not entries:
        output.info("No keys found.")
        return
    rows = [
        {
            "Key": e.key,
            "Expiration": "-" if e.expiration is None else str(e.expiration),
            "Value": _preview(e.value),
        }
        for e in entries
    ]
    output.print_table(format_table(rows, title=title, columns=["Key", "Expiration", "Value"]))


# ════════════════════════════════════════════════════════════════════════
# global options
# ════════════════════════════════════════════════════════════════════════
@app.callback()
def main_callback(
    quiet: bool = typer.Option(False, "-q", "--quiet", help="Suppress most log output"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable verbose logging"),
    log_level: str = typer.Option(
        DEFAULT_LOG_LEVEL, "--log-level", envvar=EnvVar.LOG_LEVEL.value, help="Set log level"
    ),
    log_file: Optional[str] = typer.Option(
        None, "--log-file", envvar=EnvVar.LOG_FILE.value, help="Also log to this file"
    ),
) -> None:
    """KV Explorer - local emulator folders and remote KV accounts."""
    setup_logging(
        level=log_level,
        quiet=quiet,
        verbose=verbose,
        log_file=log_file,
    )


# ════════════════════════════════════════════════════════════════════════
# folders
# ════════════════════════════════════════════════════════════════════════
@app.command("folders")
def folders_command() -> None:
    """List registered local folders."""
    folders = _with_gateway(lambda gw: gw.list_folders())
    if not folders:
        output.info("No folders registered.")
        return
    rows = [
        {
            "ID": str(f.id),
            "Name": f.name,
            "Path": f.path,
            "Last used": f.last_used_at.strftime("%Y-%m-%d %H:%M"),
        }
        for f in folders
    ]
    output.print_table(format_table(rows, title="Folders", columns=["ID", "Name", "Path", "Last used"]))


@app.command("add-folder")
def add_folder_command(
    path: str = typer.Argument(..., help="Project folder containing .wrangler state"),
    name: Optional[str] = typer.Option(None, help="Display name (defaults to folder name)"),
) -> None:
    """Register a folder and show its namespaces."""
    folder, namespaces = _with_gateway(lambda gw: gw.open_folder(path, name))
    output.success(f"Folder {folder.name} registered as {folder.id}")
    _print_namespaces(namespaces, title=folder.name)


@app.command("remove-folder")
def remove_folder_command(folder_id: int = typer.Argument(..., help="Folder id")) -> None:
    """Forget a folder (files on disk are left alone)."""
    _with_gateway(lambda gw: gw.remove_folder(folder_id))
    output.success(f"Folder {folder_id} removed")


# ════════════════════════════════════════════════════════════════════════
# namespaces & keys
# ════════════════════════════════════════════════════════════════════════
@app.command("namespaces")
def namespaces_command(
    folder: Optional[int] = typer.Option(None, "--folder", help="Local folder id"),
    account: Optional[str] = typer.Option(None, "--account", help="Remote account id"),
    counts: bool = typer.Option(False, "--counts", help="Fetch remote key counts"),
) -> None:
    """List namespaces of a folder, or of connected remote accounts."""
    if folder is not None:
        namespaces = _with_gateway(lambda gw: gw.load_folder(folder))
        _print_namespaces(namespaces, title=f"Folder {folder}")
        return
    namespaces = _with_gateway(
        lambda gw: gw.list_remote_namespaces(account, include_counts=counts)
    )
    _print_namespaces(namespaces, title="Remote namespaces")


@app.command("keys")
def keys_command(
    namespace_id: str = typer.Argument(..., help="Namespace id"),
    account: Optional[str] = typer.Option(None, "--account", help="Remote account id"),
    cursor: Optional[str] = typer.Option(None, "--cursor", help="Continue from this cursor"),
) -> None:
    """List one page of keys in a namespace."""
    page = _with_gateway(lambda gw: gw.list_keys(namespace_id, account, cursor))
    _print_entries(page.entries, title=f"{namespace_id} ({page.total_count} keys)")
    if page.cursor:
        output.hint(f"More keys available: --cursor {page.cursor}")


@app.command("get")
def get_command(
    namespace_id: str = typer.Argument(..., help="Namespace id"),
    key: str = typer.Argument(..., help="Key name"),
    account: Optional[str] = typer.Option(None, "--account", help="Remote account id"),
) -> None:
    """Print the value stored under a key."""
    value = _with_gateway(lambda gw: gw.get_value(namespace_id, key, account))
    output.print(json.dumps(value, indent=2, ensure_ascii=False))


@app.command("put")
def put_command(
    namespace_id: str = typer.Argument(..., help="Namespace id"),
    key: str = typer.Argument(..., help="Key name"),
    value: str = typer.Argument(..., help="New value as JSON text"),
    account: Optional[str] = typer.Option(None, "--account", help="Remote account id"),
) -> None:
    """Replace the value stored under a key."""
    _with_gateway(lambda gw: gw.update_value(namespace_id, key, value, account))
    output.success(f"Updated {key}")


@app.command("delete")
def delete_command(
    namespace_id: str = typer.Argument(..., help="Namespace id"),
    keys: List[str] = typer.Argument(..., help="Keys to delete"),
    account: Optional[str] = typer.Option(None, "--account", help="Remote account id"),
) -> None:
    """Delete one or more keys as a single operation."""
    _with_gateway(lambda gw: gw.delete_keys(namespace_id, list(keys), account))
    output.success(f"Deleted {len(keys)} key(s)")


# ════════════════════════════════════════════════════════════════════════
# remote accounts
# ════════════════════════════════════════════════════════════════════════
@app.command("connect")
def connect_command(
    account_id: str = typer.Argument(..., help="Remote account id"),
    token: str = typer.Option(
        ...,
        "--token",
        prompt=True,
        hide_input=True,
        envvar=EnvVar.API_TOKEN.value,
        help="API token with KV read/write access",
    ),
) -> None:
    """Validate an API token and remember it."""
    _with_gateway(lambda gw: gw.connect(account_id, token))
    output.success(f"Connected account {account_id}")


@app.command("disconnect")
def disconnect_command() -> None:
    """Forget every remote account."""
    _with_gateway(lambda gw: gw.disconnect())
    output.success("Disconnected all accounts")


def main() -> None:
    """Main entry point."""
    load_dotenv()
    app()


if __name__ == "__main__":
    main()
