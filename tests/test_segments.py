# =============================================================================
# tests/test_segments.py - Segment Calculation and Snapshot Tests
# =============================================================================
# Tests for:
# - build_customer_analytics / determine_customer_segment (pure rules)
# - SegmentService against the in-memory Supabase
# - SnapshotService create / get
# =============================================================================

from datetime import datetime, timezone

import pytest

from app.exceptions import (
    CustomerNotFoundError,
    SegmentUpdateError,
    SnapshotError,
    SnapshotNotFoundError,
)
from core.models.segments import CustomerAnalytics, SegmentType, segment_rank
from core.services.segment_service import (
    SegmentService,
    build_customer_analytics,
    determine_customer_segment,
    is_membership_plan,
)
from core.services.snapshot_service import (
    SNAPSHOT_TABLE,
    SnapshotService,
    load_current_segments,
)

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


# =============================================================================
# Pure Rules
# =============================================================================

class TestSegmentRank:
    """Tests for the segment hierarchy."""

    def test_order(self):
        assert segment_rank("prospect") < segment_rank("intro_offer")
        assert segment_rank("intro_offer") < segment_rank("drop_in")
        assert segment_rank(SegmentType.DROP_IN) < segment_rank("membership")

    def test_unknown_is_zero(self):
        assert segment_rank("new_customer") == 0
        assert segment_rank(None) == 0


class TestCustomerAnalytics:
    """Tests for build_customer_analytics."""

    def test_counts_bookings(self):
        customer = {"last_seen": "2024-05-22", "first_seen": "2024-03-03", "total_lifetime_value": 80}
        bookings = [
            {"booking_status": "confirmed", "checked_in_at": "2024-05-01T09:00:00Z"},
            {"booking_status": "confirmed", "checked_in_at": None, "cancelled_at": None},
            {"booking_status": "cancelled", "cancelled_at": "2024-05-10T09:00:00Z"},
        ]

        analytics = build_customer_analytics(customer, bookings, now=NOW)

        assert analytics.total_bookings == 3
        assert analytics.attended_classes == 1
        assert analytics.no_shows == 1
        assert analytics.cancellations == 1
        assert analytics.days_since_last_visit == 10
        assert analytics.days_since_first_visit == 90
        assert analytics.average_monthly_visits == round(1 / 3, 2)
        assert analytics.total_spent == 80.0

    def test_never_visited(self):
        analytics = build_customer_analytics({}, [], now=NOW)
        assert analytics.days_since_last_visit == 999
        assert analytics.days_since_first_visit == 0

    def test_intro_window(self):
        customer = {"intro_start_date": "2024-05-25", "intro_end_date": "2024-06-08"}
        assert build_customer_analytics(customer, [], now=NOW).is_intro_active

        customer = {"intro_start_date": "2024-05-01", "intro_end_date": "2024-05-15"}
        assert not build_customer_analytics(customer, [], now=NOW).is_intro_active

    def test_intro_status(self):
        assert build_customer_analytics({"status": "intro_trial"}, [], now=NOW).is_intro_active


class TestDetermineSegment:
    """Tests for determine_customer_segment."""

    def test_intro_wins(self):
        analytics = CustomerAnalytics(is_intro_active=True, total_spent=500)
        segment = determine_customer_segment({"status": "membership"}, analytics, "Unlimited")
        assert segment == SegmentType.INTRO_OFFER

    def test_membership_from_status(self):
        assert determine_customer_segment({"status": "Member"}, CustomerAnalytics()) == SegmentType.MEMBERSHIP

    def test_membership_from_plan(self):
        segment = determine_customer_segment({}, CustomerAnalytics(), "Unlimited Monthly")
        assert segment == SegmentType.MEMBERSHIP

    def test_drop_in_from_spend(self):
        segment = determine_customer_segment({}, CustomerAnalytics(total_spent=25), "10 Class Pack")
        assert segment == SegmentType.DROP_IN

    def test_prospect(self):
        assert determine_customer_segment({"status": "prospect"}, CustomerAnalytics()) == SegmentType.PROSPECT

    def test_membership_plan_keywords(self):
        assert is_membership_plan("Annual Autopay")
        assert not is_membership_plan("Single Class")
        assert not is_membership_plan(None)


# =============================================================================
# SegmentService
# =============================================================================

class TestSegmentService:
    """Tests for SegmentService with the in-memory database."""

    def test_calculate_writes_segment_row(self, fake_db):
        fake_db.add_row("customers", {
            "id": 7, "status": "drop_in", "total_lifetime_value": 60,
            "last_seen": "2024-05-20T10:00:00+00:00",
        })
        fake_db.add_row("bookings", {"customer_id": 7, "booking_status": "confirmed", "checked_in_at": "2024-05-20"})

        result = SegmentService.calculate_customer_segment(7, "Drop-in Single")

        assert result.segment_type == SegmentType.DROP_IN
        assert result.analytics.attended_classes == 1
        assert result.pricing_plan_used == "Drop-in Single"

        rows = fake_db.rows("customer_segments")
        assert len(rows) == 1
        assert rows[0]["segment_type"] == "drop_in"
        assert rows[0]["last_visit_date"] == "2024-05-20"
        assert rows[0]["manually_assigned"] is False
        assert rows[0]["notes"] == "Auto-assigned from pricing plan: Drop-in Single"

    def test_recalculation_replaces_row(self, fake_db):
        fake_db.add_row("customers", {"id": 7, "status": "prospect"})
        SegmentService.calculate_customer_segment(7)

        fake_db.rows("customers")[0]["status"] = "membership"
        SegmentService.calculate_customer_segment(7)

        rows = fake_db.rows("customer_segments")
        assert len(rows) == 1
        assert rows[0]["segment_type"] == "membership"

    def test_missing_customer(self, fake_db):
        with pytest.raises(CustomerNotFoundError) as exc_info:
            SegmentService.calculate_customer_segment(404)
        assert exc_info.value.status_code == 404

    def test_write_failure(self, fake_db):
        fake_db.add_row("customers", {"id": 7, "status": "prospect"})
        fake_db.failing_tables.add("customer_segments")

        with pytest.raises(SegmentUpdateError):
            SegmentService.calculate_customer_segment(7)

    def test_recalculate_all(self, fake_db):
        fake_db.add_row("customers", {"id": 1, "status": "prospect"})
        fake_db.add_row("customers", {"id": 2, "status": "membership"})
        fake_db.add_row("customers", {"id": 3, "status": "membership"})

        breakdown = SegmentService.recalculate_all()

        assert breakdown == {"errors": 0, "prospect": 1, "membership": 2}


# =============================================================================
# Snapshots
# =============================================================================

class TestSnapshots:
    """Tests for SnapshotService."""

    def _seed(self, db):
        db.add_row("customers", {"id": 1, "first_name": "Ana", "total_lifetime_value": 40})
        db.add_row("customers", {"id": 2, "first_name": "Ben", "total_lifetime_value": 300})
        db.add_row("customer_segments", {"customer_id": 2, "segment_type": "membership", "total_spend": 300})
        # Orphan segment row: customer was deleted
        db.add_row("customer_segments", {"customer_id": 99, "segment_type": "drop_in", "total_spend": 5})

    def test_load_current_segments(self, fake_db):
        self._seed(fake_db)

        rows = {row["customer_id"]: row for row in load_current_segments()}

        assert set(rows) == {1, 2}
        assert rows[1]["segment_type"] == "prospect"
        assert rows[1]["total_spend"] == 40.0
        assert rows[2]["segment_type"] == "membership"

    def test_create_and_get(self, fake_db):
        self._seed(fake_db)

        result = SnapshotService.create_daily_snapshot(source="manual_trigger")

        assert result.total_customers == 2
        assert result.segment_breakdown == {"prospect": 1, "membership": 1}

        stored = SnapshotService.get_snapshot(result.snapshot_id)
        assert stored["source"] == "manual_trigger"
        assert len(stored["snapshot_data"]) == 2

    def test_snapshots_are_append_only(self, fake_db):
        self._seed(fake_db)
        first = SnapshotService.create_daily_snapshot()
        second = SnapshotService.create_daily_snapshot()

        assert first.snapshot_id != second.snapshot_id
        assert len(fake_db.rows(SNAPSHOT_TABLE)) == 2

    def test_get_missing(self, fake_db):
        with pytest.raises(SnapshotNotFoundError):
            SnapshotService.get_snapshot("nope")

    def test_write_failure(self, fake_db):
        fake_db.failing_tables.add(SNAPSHOT_TABLE)
        with pytest.raises(SnapshotError) as exc_info:
            SnapshotService.create_daily_snapshot()
        assert exc_info.value.code == "SNAPSHOT_FAILED"
