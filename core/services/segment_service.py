# =============================================================================
# core/services/segment_service.py - Customer Segment Calculation
# =============================================================================
# Classifies one customer into the segment hierarchy
# (prospect < intro_offer < drop_in < membership) and stores the result in
# customer_segments (one row per customer).
#
# The classification itself is pure: build_customer_analytics() summarizes
# the customer's bookings, determine_customer_segment() applies the rules.
# =============================================================================

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from app.exceptions import CustomerNotFoundError, SegmentUpdateError
from core.models.segments import (
    CustomerAnalytics,
    SegmentCalculationResult,
    SegmentType,
)
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import days_between, parse_date, utc_now

logger = logging.getLogger(__name__)

# Customer statuses that mean an intro offer is running
INTRO_STATUSES = {"intro_trial", "intro_offer"}

# Customer statuses that mean an active membership
MEMBERSHIP_STATUSES = {"membership", "member", "active_member"}

# Words in a pricing option name that identify a recurring membership
MEMBERSHIP_PLAN_KEYWORDS = ("member", "unlimited", "monthly", "annual", "autopay")

# Sentinel for "never visited"
NEVER_VISITED_DAYS = 999


# =============================================================================
# Pure Classification
# =============================================================================

def build_customer_analytics(
    customer: dict[str, Any],
    bookings: list[dict[str, Any]],
    now: datetime | None = None,
) -> CustomerAnalytics:
    """
    Summarize a customer's activity.

    Args:
        customer: customers row
        bookings: bookings rows for the customer
        now: Reference time (defaults to the current UTC time)
    """
    now = now or utc_now()

    total_bookings = len(bookings)
    attended = sum(1 for b in bookings if b.get("checked_in_at"))
    no_shows = sum(
        1 for b in bookings
        if b.get("booking_status") == "confirmed"
        and not b.get("checked_in_at")
        and not b.get("cancelled_at")
    )
    cancellations = sum(1 for b in bookings if b.get("cancelled_at"))

    days_since_last = days_between(customer.get("last_seen"), now)
    if days_since_last is None:
        days_since_last = NEVER_VISITED_DAYS

    first_visit = customer.get("first_seen") or customer.get("created_at")
    days_since_first = days_between(first_visit, now) or 0

    months_since_first = max(days_since_first / 30, 1)

    return CustomerAnalytics(
        total_bookings=total_bookings,
        attended_classes=attended,
        no_shows=no_shows,
        cancellations=cancellations,
        days_since_last_visit=days_since_last,
        days_since_first_visit=days_since_first,
        average_monthly_visits=round(attended / months_since_first, 2),
        total_spent=float(customer.get("total_lifetime_value") or 0),
        is_intro_active=_is_intro_active(customer, now),
    )


def _is_intro_active(customer: dict[str, Any], now: datetime) -> bool:
    status = (customer.get("status") or "").strip().lower()
    if status in INTRO_STATUSES:
        return True

    intro_start = parse_date(customer.get("intro_start_date"))
    intro_end = parse_date(customer.get("intro_end_date"))
    if intro_start is None or intro_end is None:
        return False
    return intro_start <= now < intro_end


def is_membership_plan(pricing_plan_name: str | None) -> bool:
    """True when a pricing option name describes a recurring membership."""
    if not pricing_plan_name:
        return False
    name = pricing_plan_name.lower()
    return any(keyword in name for keyword in MEMBERSHIP_PLAN_KEYWORDS)


def determine_customer_segment(
    customer: dict[str, Any],
    analytics: CustomerAnalytics,
    pricing_plan_name: str | None = None,
) -> SegmentType:
    """
    Pick the customer's segment.

    Rules, first match wins:
    1. Running intro offer -> intro_offer
    2. Membership status or membership pricing option -> membership
    3. Any bookings, attendance or spend -> drop_in
    4. Otherwise -> prospect
    """
    if analytics.is_intro_active:
        return SegmentType.INTRO_OFFER

    status = (customer.get("status") or "").strip().lower()
    if status in MEMBERSHIP_STATUSES or is_membership_plan(pricing_plan_name):
        return SegmentType.MEMBERSHIP

    if analytics.total_bookings > 0 or analytics.attended_classes > 0 or analytics.total_spent > 0:
        return SegmentType.DROP_IN

    return SegmentType.PROSPECT


# =============================================================================
# Service
# =============================================================================

class SegmentService:
    """
    Service for customer segment assignment.

    Provides a clean interface between API routes and database.
    """

    @staticmethod
    def calculate_customer_segment(
        customer_id: int,
        pricing_plan_name: str | None = None,
    ) -> SegmentCalculationResult:
        """
        Classify a customer and upsert their customer_segments row.

        Args:
            customer_id: customers.id
            pricing_plan_name: Last pricing option used (from attendance CSV)

        Returns:
            SegmentCalculationResult

        Raises:
            CustomerNotFoundError: If the customer doesn't exist
            SegmentUpdateError: If the segment row cannot be written
        """
        logger.info(f"Analyzing customer {customer_id} for segmentation")

        customer = SupabaseClient.fetch_one("customers", "id", customer_id)
        if not customer:
            raise CustomerNotFoundError(customer_id)

        bookings = SupabaseClient.fetch_many(
            "bookings",
            "customer_id",
            customer_id,
            columns="booking_status, checked_in_at, cancelled_at, booking_date",
        )

        analytics = build_customer_analytics(customer, bookings)
        segment = determine_customer_segment(customer, analytics, pricing_plan_name)

        last_seen = parse_date(customer.get("last_seen"))
        notes = (
            f"Auto-assigned from pricing plan: {pricing_plan_name}"
            if pricing_plan_name
            else "Auto-assigned from customer data"
        )

        try:
            SupabaseClient.upsert_row(
                "customer_segments",
                {
                    "customer_id": customer_id,
                    "segment_type": segment.value,
                    "total_spend": analytics.total_spent,
                    "last_visit_date": last_seen.date().isoformat() if last_seen is not None else None,
                    "manually_assigned": False,
                    "notes": notes,
                },
                on_conflict="customer_id",
            )
        except SupabaseClientError as e:
            logger.error(f"Error updating segment for customer {customer_id}: {e}")
            raise SegmentUpdateError(customer_id, e.message)

        logger.info(f"Customer {customer_id} assigned to segment: {segment.value}")

        return SegmentCalculationResult(
            customer_id=customer_id,
            segment_type=segment,
            total_spend=analytics.total_spent,
            analytics=analytics,
            pricing_plan_used=pricing_plan_name,
        )

    @staticmethod
    def recalculate_all() -> dict[str, int]:
        """
        Recalculate every customer's segment.

        Used by the scheduled worker. Failures are counted, not raised.

        Returns:
            Histogram of assigned segments plus an "errors" count
        """
        customers = SupabaseClient.fetch_all("customers", columns="id")
        breakdown: dict[str, int] = {"errors": 0}

        for customer in customers:
            try:
                result = SegmentService.calculate_customer_segment(customer["id"])
                key = result.segment_type.value
                breakdown[key] = breakdown.get(key, 0) + 1
            except Exception as e:
                logger.error(f"Segment recalculation failed for customer {customer['id']}: {e}")
                breakdown["errors"] += 1

        logger.info(f"Recalculated segments for {len(customers)} customers: {breakdown}")
        return breakdown
