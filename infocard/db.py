from datetime import datetime, timezone
from typing import Any, Tuple

from config.supabase_schema import SETTINGS_TABLE


def _ensure_supabase_client(supabase) -> Tuple[Any, str | None]:
    """Return ``supabase`` when it looks usable, otherwise an explanatory error.

    Returns:
        tuple: (client, error). When Supabase is unavailable the client will be
        ``None`` and ``error`` will contain a message explaining the failure.
    """

    if not supabase or not hasattr(supabase, "table"):
        return None, (
            "Supabase client is not configured. Set SUPABASE_URL and SUPABASE_"
            "SERVICE_KEY to enable database-backed settings."
        )
    return supabase, None


def fetch_settings_row(supabase, option_name: str) -> tuple[dict | None, str | None]:
    """Return the persisted settings row identified by ``option_name``.

    The row is returned with logical column names (``option_name``, ``value``,
    ``version``, ``updated_at``).  ``(None, None)`` means no row exists yet.
    """

    if not option_name:
        return None, "Option name is required"

    supabase, error = _ensure_supabase_client(supabase)
    if error:
        return None, error

    try:
        response = (
            supabase.table(SETTINGS_TABLE.name)
            .select("*")
            .eq(SETTINGS_TABLE.column("option_name"), option_name)
            .limit(1)
            .execute()
        )
    except Exception as exc:  # pragma: no cover - network errors
        return None, f"Failed to fetch settings: {exc}"

    rows = response.data or []
    if not rows:
        return None, None
    return SETTINGS_TABLE.from_row(rows[0]), None


def upsert_settings_row(
    supabase,
    option_name: str,
    value: dict,
    *,
    version: int,
) -> tuple[list[dict] | None, str | None]:
    """Create or replace the settings row for ``option_name``."""

    if not option_name:
        return None, "Option name is required"
    if not isinstance(value, dict):
        return None, "Settings value must be a mapping"

    supabase, error = _ensure_supabase_client(supabase)
    if error:
        return None, error

    payload = {
        "option_name": option_name,
        "value": value,
        "version": version,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }
    payload = SETTINGS_TABLE.to_payload(payload)

    try:
        response = (
            supabase.table(SETTINGS_TABLE.name)
            .upsert(
                payload,
                on_conflict=SETTINGS_TABLE.column("option_name"),
            )
            .execute()
        )
        return response.data or [], None
    except Exception as exc:  # pragma: no cover - network errors
        return None, f"Failed to update settings: {exc}"
