"""Boundary normalization for inbound completion notifications.

Ad networks and frontends spell the same fields differently. The receiver
maps every recognized alias onto the canonical names once, so the tracker
only ever sees ``user_id``, ``script_id`` and ``key_index``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Final

FIELD_ALIASES: Final[dict[str, tuple[str, ...]]] = {
    "user_id": ("user_id", "userId", "uid", "user", "subid"),
    "script_id": ("script_id", "scriptId", "sid", "script"),
    "key_index": ("key_index", "keyIndex", "key", "idx"),
}

IDENTIFIER_FIELDS: Final[tuple[str, ...]] = ("user_id", "script_id")

TOKEN_ALIASES: Final[tuple[str, ...]] = ("token", "sig")


def _first_present(params: Mapping[str, Any], aliases: tuple[str, ...]) -> Any:
    for alias in aliases:
        value = params.get(alias)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def normalize_notification(params: Mapping[str, Any]) -> dict[str, Any]:
    """Return the canonical ``{user_id, script_id, key_index}`` mapping.

    The first non-blank alias wins. Fields with no recognized alias map to
    ``None`` and are rejected later by the tracker's validation.
    """
    normalized = {
        field: _first_present(params, aliases)
        for field, aliases in FIELD_ALIASES.items()
    }
    # JSON bodies may carry numeric ids; the tracker only accepts strings.
    for field in IDENTIFIER_FIELDS:
        value = normalized[field]
        if isinstance(value, int) and not isinstance(value, bool):
            normalized[field] = str(value)
    return normalized


def extract_token(params: Mapping[str, Any]) -> str | None:
    """Return the callback token carried by a notification, if any."""
    value = _first_present(params, TOKEN_ALIASES)
    return None if value is None else str(value)
