"""Small naming and URL helpers shared by the admin views."""

from __future__ import annotations

import re
import sys
import unicodedata

from flask import url_for

from infocard.sanitize import sanitize_text

_CAMEL_BOUNDARY_RE = re.compile(r"([a-z])([A-Z])")
_SLUG_INVALID_RE = re.compile(r"[^a-z0-9_\-]+")
_SLUG_DASHES_RE = re.compile(r"-{2,}")


def to_camelcase(field: str) -> str:
    """Convert an ``_`` separated field name to camelCase."""

    titled = "_".join(part[:1].upper() + part[1:] for part in field.split("_"))
    return (titled[:1].lower() + titled[1:]).replace("_", "")


def to_underlines(field: str) -> str:
    """Convert a camelCase field name to ``_`` separated lower case."""

    return _CAMEL_BOUNDARY_RE.sub(r"\1_\2", field).lower()


def get_highest_priority(subtract: int = 0) -> int:
    """Return a priority just below the largest platform integer.

    Args:
        subtract: Amount to subtract from the maximum.  Its absolute value is
            used; ``0`` subtracts one so the result always sorts before the
            absolute maximum.
    """
    highest = sys.maxsize
    subtract = abs(int(subtract))
    if subtract == 0:
        return highest - 1
    return abs(highest - subtract)


def slugify(value: str | None) -> str:
    text = sanitize_text(value or "")
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = text.lower().replace(" ", "-")
    text = _SLUG_INVALID_RE.sub("", text)
    return _SLUG_DASHES_RE.sub("-", text).strip("-")


def get_admin_tab(raw_tab) -> str | None:
    """Return the requested admin tab slug, or ``None`` when absent."""

    if raw_tab and isinstance(raw_tab, str):
        return slugify(raw_tab) or None
    return None


def get_settings_url(tab: str = "", sub_tab: str = "") -> str:
    """Return the URL of the settings screen, optionally scoped to a tab.

    A sub tab is only honoured together with a tab.  Must be called inside an
    application or request context.
    """
    params: dict[str, str] = {}
    if tab:
        params["tab"] = slugify(tab)
        if sub_tab:
            params["subtab"] = slugify(sub_tab)
    return url_for("settings.settings_page", **params)


__all__ = [
    "get_admin_tab",
    "get_highest_priority",
    "get_settings_url",
    "slugify",
    "to_camelcase",
    "to_underlines",
]
