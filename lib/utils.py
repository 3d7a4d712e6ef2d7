# =============================================================================
# lib/utils.py - Shared Utilities
# =============================================================================
# Common utilities used across the application:
# - email normalization
# - lenient date parsing (pandas) and day arithmetic
# - JSON sanitization for numpy/pandas values
# =============================================================================

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import numpy as np
import pandas as pd


# =============================================================================
# Strings
# =============================================================================

def normalize_email(value: Any) -> str:
    """
    Lowercase and trim an email for comparisons.

    Example:
        normalize_email("  Jane@Example.COM ")  # "jane@example.com"
    """
    if value is None:
        return ""
    return str(value).strip().lower()


# =============================================================================
# Dates
# =============================================================================

def utc_now() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def parse_date(value: Any) -> pd.Timestamp | None:
    """
    Parse a date-like value into a UTC Timestamp.

    Accepts ISO strings, US-style dates ("3/14/2024"), datetimes and
    Timestamps. Naive values are treated as UTC.

    Returns:
        Timestamp, or None for empty / unparseable input
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None

    try:
        parsed = pd.to_datetime(value, errors="coerce", utc=True)
    except (TypeError, ValueError, OverflowError):
        return None

    if parsed is None or pd.isna(parsed):
        return None
    return parsed


def days_between(earlier: Any, later: Any) -> int | None:
    """Whole days from `earlier` to `later`, or None if either is missing."""
    start = parse_date(earlier)
    end = parse_date(later)
    if start is None or end is None:
        return None
    return int((end - start).total_seconds() // 86400)


# =============================================================================
# JSON Sanitization
# =============================================================================

def sanitize_value(value: Any) -> Any:
    """Convert numpy/pandas types to JSON-serializable Python types."""
    if isinstance(value, dict):
        return {str(k): sanitize_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [sanitize_value(v) for v in value]
    if isinstance(value, (np.ndarray, pd.Series)):
        return [sanitize_value(v) for v in value.tolist()]
    if value is None:
        return None
    if isinstance(value, float) and (np.isnan(value) or np.isinf(value)):
        return None
    if value is pd.NaT:
        return None
    if isinstance(value, pd.Timestamp):
        return value.isoformat()
    if isinstance(value, np.bool_):
        return bool(value)
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, np.floating):
        if np.isnan(value) or np.isinf(value):
            return None
        return float(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, "item") and not isinstance(value, (str, bytes)):
        return value.item()
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return value
