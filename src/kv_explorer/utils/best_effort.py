"""Collect-errors-aside helper for best-effort listings.

A folder load must not fail because one namespace is broken. Instead of
scattering ``try/except: continue`` through the listing code, each item is
run through :meth:`BestEffort.attempt`; failures are recorded with a label
and the caller still gets every item that succeeded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Generic, TypeVar

from kv_explorer.errors import KVExplorerError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class SuppressedError:
    """An error that was set aside so the rest of a listing could proceed."""

    label: str
    error: Exception

    @property
    def message(self) -> str:
        return str(self.error)


@dataclass
class BestEffort(Generic[T]):
    """Accumulates successful results and suppressed errors."""

    results: list[T] = field(default_factory=list)
    errors: list[SuppressedError] = field(default_factory=list)

    def attempt(self, label: str, func: Callable[[], T | None]) -> T | None:
        """Run ``func``; keep its result, or record the error under ``label``.

        Only library errors and OS/SQLite-level failures are suppressed;
        programming errors still propagate. A ``None`` result is treated as
        "nothing to add".
        """
        try:
            result = func()
        except (KVExplorerError, OSError, ValueError) as exc:
            logger.debug("Skipping %s: %s", label, exc)
            self.errors.append(SuppressedError(label=label, error=exc))
            return None
        if result is not None:
            self.results.append(result)
        return result

    @property
    def ok(self) -> bool:
        return not self.errors
