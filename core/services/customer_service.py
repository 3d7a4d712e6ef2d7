# =============================================================================
# core/services/customer_service.py - Customer Persistence
# =============================================================================
# Maps a CSV client row (plus its attendance row) onto a customers payload
# and writes it, matching existing customers by normalized client_email.
#
# Usage:
#   payload = build_customer_payload(client_row, attendance_row)
#   customer, created = CustomerService.upsert_customer(payload)
# =============================================================================

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from lib.supabase_client import SupabaseClient
from lib.utils import normalize_email, parse_date, utc_now

logger = logging.getLogger(__name__)

TRUTHY_STRINGS = {"true"}

DEFAULT_STATUS = "prospect"
DEFAULT_SOURCE = "arketa_import"


# =============================================================================
# Field Coercion
# =============================================================================

def coerce_bool(value: Any) -> bool:
    """Only the string "true" (any case) or a real True counts as true."""
    if value is True:
        return True
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_STRINGS
    return False


def coerce_date(value: Any) -> str | None:
    """Parse a date and return it as YYYY-MM-DD, or None."""
    parsed = parse_date(value)
    return parsed.date().isoformat() if parsed is not None else None


def coerce_datetime(value: Any) -> str | None:
    """Parse a date/time and return an ISO-8601 UTC timestamp, or None."""
    parsed = parse_date(value)
    return parsed.isoformat() if parsed is not None else None


def coerce_float(value: Any, default: float = 0.0) -> float:
    """
    Parse a number, tolerating currency symbols and thousands separators.

    Example:
        coerce_float("$1,250.50")  # 1250.5
        coerce_float("")           # 0.0
    """
    if value is None:
        return default
    if isinstance(value, (int, float)):
        return float(value)

    cleaned = str(value).strip().replace("$", "").replace(",", "")
    if not cleaned:
        return default
    try:
        return float(cleaned)
    except ValueError:
        return default


def _blank_to_none(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def build_customer_payload(
    client_row: dict[str, Any],
    attendance_row: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Build a customers row from one client list row.

    Args:
        client_row: Parsed client list row
        attendance_row: Matching attendance row, if any
        now: Timestamp for updated_at (defaults to current UTC time)

    Returns:
        Payload ready for insert/update (no id, no created_at)
    """
    now = now or utc_now()
    attendance_row = attendance_row or {}

    first_name = (client_row.get("first_name") or "").strip()
    last_name = (client_row.get("last_name") or "").strip()

    return {
        "client_name": _blank_to_none(client_row.get("client_name")) or f"{first_name} {last_name}",
        "first_name": first_name,
        "last_name": last_name,
        "client_email": normalize_email(client_row.get("client_email")),
        "phone_number": _blank_to_none(client_row.get("phone_number")),
        "status": _blank_to_none(client_row.get("status")) or DEFAULT_STATUS,
        "source": _blank_to_none(client_row.get("source")) or DEFAULT_SOURCE,
        "first_seen": coerce_datetime(client_row.get("first_seen")),
        "last_seen": coerce_datetime(client_row.get("last_seen")),
        "first_class_date": coerce_date(attendance_row.get("first_class_date")),
        "last_class_date": coerce_date(attendance_row.get("last_class_date")),
        "total_lifetime_value": coerce_float(client_row.get("total_lifetime_value")),
        "intro_start_date": coerce_date(client_row.get("intro_start_date")),
        "intro_end_date": coerce_date(client_row.get("intro_end_date")),
        "conversion_date": coerce_date(client_row.get("conversion_date")),
        "marketing_email_opt_in": coerce_bool(client_row.get("marketing_email_opt_in")),
        "marketing_text_opt_in": coerce_bool(client_row.get("marketing_text_opt_in")),
        "agree_to_liability_waiver": coerce_bool(client_row.get("agree_to_liability_waiver")),
        "updated_at": now.isoformat(),
    }


# =============================================================================
# Service
# =============================================================================

class CustomerService:
    """
    Service for customers table writes.

    Emails are stored and matched lowercased and trimmed, so a change of
    case between exports updates the same customer.
    """

    @staticmethod
    def find_by_email(email: str) -> dict[str, Any] | None:
        """Return the existing customer with this email, or None."""
        return SupabaseClient.fetch_first(
            "customers", "client_email", normalize_email(email), columns="id, client_email"
        )

    @staticmethod
    def insert_customer(payload: dict[str, Any]) -> dict[str, Any]:
        """Insert a new customer; created_at is stamped from updated_at."""
        data = {**payload, "created_at": payload.get("updated_at") or utc_now().isoformat()}
        return SupabaseClient.insert_row("customers", data)

    @staticmethod
    def update_customer(customer_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        """Overwrite an existing customer's imported fields."""
        updated = SupabaseClient.update_row("customers", "id", customer_id, payload)
        return updated or {"id": customer_id, **payload}

    @staticmethod
    def upsert_customer(payload: dict[str, Any]) -> tuple[dict[str, Any], bool]:
        """
        Insert or update a customer keyed on client_email.

        Returns:
            (customer row, created) where created is True for a new customer
        """
        existing = CustomerService.find_by_email(payload["client_email"])
        if existing:
            logger.debug(f"Updating customer {existing['id']} ({payload['client_email']})")
            return CustomerService.update_customer(existing["id"], payload), False

        logger.debug(f"Inserting customer {payload['client_email']}")
        return CustomerService.insert_customer(payload), True
