"""Naming of the Supabase table that holds the settings rows.

Deployments whose table or columns are named differently set
``SUPABASE_SCHEMA_JSON``, for example::

    {"app_settings": {"name": "site_options", "columns": {"value": "payload"}}}

Columns left out of the override keep their default names.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping

SETTINGS_TABLE_KEY = "app_settings"

ROW_FIELDS = ("id", "option_name", "value", "version", "updated_at")


@dataclass(frozen=True)
class SettingsTable:
    """Table name plus a logical-field to column-name mapping."""

    name: str = SETTINGS_TABLE_KEY
    columns: Mapping[str, str] = field(
        default_factory=lambda: {name: name for name in ROW_FIELDS}
    )

    def column(self, logical: str) -> str:
        return self.columns.get(logical, logical)

    def to_payload(self, row: Mapping[str, Any]) -> Dict[str, Any]:
        """Rename the logical keys of ``row`` to column names for a write."""

        return {self.column(key): value for key, value in row.items()}

    def from_row(self, row: Mapping[str, Any]) -> Dict[str, Any]:
        """Rename the column names of a fetched ``row`` back to logical keys."""

        logical_by_column = {actual: logical for logical, actual in self.columns.items()}
        return {logical_by_column.get(key, key): value for key, value in row.items()}


def load_settings_table(raw: str | None = None) -> SettingsTable:
    """Build the table description, applying ``SUPABASE_SCHEMA_JSON`` if set.

    Malformed overrides are ignored and the defaults are used.
    """
    table = SettingsTable()
    if raw is None:
        raw = os.getenv("SUPABASE_SCHEMA_JSON")
    if not raw:
        return table

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return table

    entry = parsed.get(SETTINGS_TABLE_KEY) if isinstance(parsed, Mapping) else None
    if not isinstance(entry, Mapping):
        return table

    name = entry.get("name")
    if isinstance(name, str) and name:
        table = replace(table, name=name)

    overrides = entry.get("columns")
    if isinstance(overrides, Mapping):
        columns = dict(table.columns)
        columns.update(
            (logical, actual)
            for logical, actual in overrides.items()
            if logical in ROW_FIELDS and isinstance(actual, str) and actual
        )
        table = replace(table, columns=columns)
    return table


SETTINGS_TABLE = load_settings_table()
