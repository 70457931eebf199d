"""Blob encoding for the local emulator store.

Blob files written by the emulator may start with framing bytes before the
JSON document, so decoding starts at the first ``{`` or ``[``.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from kv_explorer.errors import InvalidJson

logger = logging.getLogger(__name__)

_JSON_OPENERS = ("{", "[")


def _json_start(text: str) -> int:
    positions = [pos for pos in (text.find(ch) for ch in _JSON_OPENERS) if pos >= 0]
    return min(positions) if positions else -1


def decode(raw: bytes) -> Any | None:
    """Decode blob bytes into a JSON value, or ``None`` if there is none.

    Never raises: corrupt or foreign blobs must not abort a listing.
    """
    text = raw.decode("utf-8", errors="replace")
    start = _json_start(text)
    if start < 0:
        return None
    try:
        return json.loads(text[start:])
    except ValueError:
        logger.debug("Blob content is not JSON after offset %d", start)
        return None


def encode(json_text: str) -> bytes:
    """Validate ``json_text`` and return the bytes to store.

    Raises:
        InvalidJson: if ``json_text`` does not parse.
    """
    try:
        json.loads(json_text)
    except ValueError as exc:
        raise InvalidJson(str(exc)) from exc
    return json_text.encode("utf-8")


__all__ = ["decode", "encode"]
