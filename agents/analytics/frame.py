# =============================================================================
# agents/analytics/frame.py - Customer DataFrame Loading
# =============================================================================
# Metrics run over the whole customers table held in memory as a pandas
# DataFrame. This module loads the table and normalizes column types so
# metric code can compare dates and sum values without per-row checks.
# =============================================================================

from __future__ import annotations

import logging
from typing import Any

import pandas as pd

from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)

CUSTOMER_COLUMNS = [
    "id",
    "client_name",
    "first_name",
    "last_name",
    "client_email",
    "phone_number",
    "status",
    "source",
    "tags",
    "first_seen",
    "last_seen",
    "first_class_date",
    "last_class_date",
    "intro_start_date",
    "intro_end_date",
    "conversion_date",
    "birthday",
    "total_lifetime_value",
    "marketing_email_opt_in",
    "marketing_text_opt_in",
    "agree_to_liability_waiver",
    "created_at",
    "updated_at",
]

DATE_COLUMNS = [
    "first_seen",
    "last_seen",
    "first_class_date",
    "last_class_date",
    "intro_start_date",
    "intro_end_date",
    "conversion_date",
    "birthday",
    "created_at",
    "updated_at",
]

BOOL_COLUMNS = [
    "marketing_email_opt_in",
    "marketing_text_opt_in",
    "agree_to_liability_waiver",
]

# Columns returned when a metric lists customers
SUMMARY_COLUMNS = [
    "id",
    "first_name",
    "last_name",
    "client_email",
    "status",
    "last_class_date",
    "total_lifetime_value",
]


def fetch_all_customers() -> list[dict[str, Any]]:
    """Load every customers row (paged past the API row limit)."""
    rows = SupabaseClient.fetch_all("customers")
    logger.info(f"Loaded {len(rows)} customers for analytics")
    return rows


def _to_bool(value: Any) -> bool:
    if value is True:
        return True
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return False


def load_customer_frame(rows: list[dict[str, Any]]) -> pd.DataFrame:
    """
    Build a typed customer DataFrame.

    - every CUSTOMER_COLUMNS column exists (missing ones are null)
    - DATE_COLUMNS are UTC timestamps (NaT when empty or unparseable)
    - BOOL_COLUMNS are real booleans (only True / "true" count)
    - total_lifetime_value is float, 0 when missing
    - text columns are strings, "" when missing
    """
    df = pd.DataFrame(rows)
    for col in CUSTOMER_COLUMNS:
        if col not in df.columns:
            df[col] = None

    for col in DATE_COLUMNS:
        df[col] = pd.to_datetime(df[col], errors="coerce", utc=True, format="ISO8601")

    for col in BOOL_COLUMNS:
        df[col] = df[col].map(_to_bool).astype(bool)

    df["total_lifetime_value"] = pd.to_numeric(df["total_lifetime_value"], errors="coerce").fillna(0.0)

    for col in ["first_name", "last_name", "client_email", "phone_number", "status", "source", "tags"]:
        df[col] = df[col].fillna("").astype(str)

    return df


def days_since(series: pd.Series, now: pd.Timestamp) -> pd.Series:
    """Whole days from each timestamp to `now` (NaN where missing)."""
    return (now - series).dt.days


def to_records(df: pd.DataFrame, limit: int | None = None, columns: list[str] | None = None) -> list[dict[str, Any]]:
    """Customer rows as plain dicts (summary columns by default)."""
    subset = df[columns or SUMMARY_COLUMNS]
    if limit is not None:
        subset = subset.head(limit)
    subset = subset.astype(object).where(subset.notna(), None)
    return subset.to_dict(orient="records")
