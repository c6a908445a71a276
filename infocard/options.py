"""Canonical settings document and the store that persists it."""

from __future__ import annotations

import copy
import json
import logging
from typing import Any, Mapping

from infocard.db import fetch_settings_row, upsert_settings_row

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
DEFAULT_OPTION_NAME = "infocard_settings"

# Baseline document used to seed new installs and to service resets.
DEFAULT_OPTIONS: dict[str, Any] = {
    "colorscheme": "default",
    "layout": "card",
    "widget": False,
    "ajax": False,
    "enqueue": True,
    "credit": False,
    "cacheExpiration": 720,
    "list": {
        "plugins": "",
        "themes": "",
    },
    "screenshots": {
        "enabled": True,
        "lightbox": True,
        "maxScreenshots": 5,
    },
}


class SupabaseBackend:
    """Stores each settings document as one row of the ``app_settings`` table."""

    def __init__(self, supabase, *, version: int = SCHEMA_VERSION) -> None:
        self.supabase = supabase
        self.version = version

    def load(self, option_name: str) -> tuple[dict | None, str | None]:
        row, error = fetch_settings_row(self.supabase, option_name)
        if error:
            return None, error
        if row is None:
            return None, None

        value = row.get("value")
        if isinstance(value, str):
            # Text columns hand back the serialised document.
            try:
                value = json.loads(value)
            except json.JSONDecodeError as exc:
                return None, f"Stored settings are not valid JSON: {exc}"
        if not isinstance(value, dict):
            return None, "Stored settings value is not a mapping"

        stored_version = row.get("version")
        if isinstance(stored_version, int) and stored_version > self.version:
            logger.warning(
                "Settings '%s' were written by a newer schema (v%s > v%s)",
                option_name,
                stored_version,
                self.version,
            )
        return value, None

    def save(self, option_name: str, document: dict) -> tuple[bool, str | None]:
        _, error = upsert_settings_row(
            self.supabase, option_name, document, version=self.version
        )
        if error:
            return False, error
        return True, None


class OptionsStore:
    """Single source of truth for the settings document.

    ``update_options`` replaces the persisted document wholesale.  Concurrent
    writers are not coordinated: the last successful save wins.
    """

    def __init__(
        self,
        backend,
        option_name: str = DEFAULT_OPTION_NAME,
        defaults: Mapping[str, Any] | None = None,
    ) -> None:
        self.backend = backend
        self.option_name = option_name
        self._defaults = copy.deepcopy(
            dict(defaults) if defaults is not None else DEFAULT_OPTIONS
        )

    def get_defaults(self) -> dict:
        return copy.deepcopy(self._defaults)

    def get_options(self) -> dict:
        """Return the persisted document, or the defaults if none is stored."""

        document, error = self.backend.load(self.option_name)
        if error:
            logger.warning("Falling back to default settings: %s", error)
            return self.get_defaults()
        if document is None:
            return self.get_defaults()
        return document

    def get_option(self, key: str, default: Any = None) -> Any:
        return self.get_options().get(key, default)

    def update_options(self, document: Mapping[str, Any]) -> bool:
        if not isinstance(document, Mapping):
            logger.warning("Refusing to persist non-mapping settings document")
            return False

        saved, error = self.backend.save(self.option_name, copy.deepcopy(dict(document)))
        if error:
            logger.error("Failed to persist settings '%s': %s", self.option_name, error)
            return False
        return saved

    def init(self) -> dict:
        """Load the stored document, seeding the defaults on first use."""

        document, error = self.backend.load(self.option_name)
        if error:
            logger.warning("Unable to load settings during init: %s", error)
            return self.get_defaults()
        if document is not None:
            return document

        defaults = self.get_defaults()
        if self.update_options(defaults):
            logger.info("Seeded default settings for '%s'", self.option_name)
        return defaults


__all__ = [
    "DEFAULT_OPTIONS",
    "DEFAULT_OPTION_NAME",
    "OptionsStore",
    "SCHEMA_VERSION",
    "SupabaseBackend",
]
