# =============================================================================
# core/services/settings_service.py - Business Settings
# =============================================================================
# Read-only access to the business_settings key/value table.
# =============================================================================

import logging
from typing import Any

from lib.supabase_client import SupabaseClient, SupabaseClientError

logger = logging.getLogger(__name__)

INTRO_DURATION_KEY = "intro_offer_duration"
DEFAULT_INTRO_DURATION_DAYS = 14


def get_setting(key: str) -> Any:
    """Return a setting's value, or None if it isn't set."""
    row = SupabaseClient.fetch_one("business_settings", "setting_key", key, columns="setting_value")
    return row.get("setting_value") if row else None


def get_intro_duration() -> dict[str, int]:
    """
    Length of the intro offer in days.

    The stored value is either {"days": n} or a bare number. Falls back to
    14 days when the setting is missing or unreadable.
    """
    try:
        value = get_setting(INTRO_DURATION_KEY)
    except SupabaseClientError as e:
        logger.error(f"Error fetching intro duration: {e}")
        value = None

    if isinstance(value, dict) and value.get("days") is not None:
        days = value["days"]
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        days = value
    elif isinstance(value, str) and value.strip().isdigit():
        days = value.strip()
    else:
        if value is not None:
            logger.warning(f"Unrecognized {INTRO_DURATION_KEY} value: {value!r}")
        days = DEFAULT_INTRO_DURATION_DAYS

    try:
        return {"days": int(days)}
    except (TypeError, ValueError):
        return {"days": DEFAULT_INTRO_DURATION_DAYS}
