# =============================================================================
# core/services/snapshot_service.py - Segment Snapshots
# =============================================================================
# A snapshot is an append-only, point-in-time copy of every customer's
# segment assignment. The import pipeline takes one before writing so the
# change detector can diff against it afterwards.
#
# Usage:
#   result = SnapshotService.create_daily_snapshot(source="arketa_csv_import")
#   snapshot = SnapshotService.get_snapshot(result.snapshot_id)
# =============================================================================

from __future__ import annotations

import logging
import uuid
from collections import Counter
from typing import Any

from app.exceptions import SnapshotError, SnapshotNotFoundError
from core.models.segments import SegmentType, SnapshotResult
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import utc_now

logger = logging.getLogger(__name__)

SNAPSHOT_TABLE = "customer_segment_snapshots"

SEGMENT_COLUMNS = "customer_id, segment_type, total_spend, last_visit_date"
CUSTOMER_COLUMNS = "id, first_name, last_name, client_email, status, last_seen, total_lifetime_value"


def load_current_segments() -> list[dict[str, Any]]:
    """
    Current segment assignment of every customer.

    customer_segments rows are joined to their customers row. Customers
    without a segment row are included as prospects, with their lifetime
    value as spend. Segment rows whose customer no longer exists are dropped.

    Returns:
        One dict per customer: customer_id, segment_type, total_spend,
        last_visit_date, first_name, last_name, client_email, status, last_seen
    """
    segments = SupabaseClient.fetch_all("customer_segments", columns=SEGMENT_COLUMNS, order_by="customer_id")
    customers = SupabaseClient.fetch_all("customers", columns=CUSTOMER_COLUMNS)

    segments_by_customer = {row["customer_id"]: row for row in segments}
    rows: list[dict[str, Any]] = []

    for customer in customers:
        segment = segments_by_customer.get(customer["id"])
        if segment:
            segment_type = segment.get("segment_type") or SegmentType.PROSPECT.value
            total_spend = segment.get("total_spend") or 0
            last_visit_date = segment.get("last_visit_date")
        else:
            segment_type = SegmentType.PROSPECT.value
            total_spend = customer.get("total_lifetime_value") or 0
            last_visit_date = None

        rows.append({
            "customer_id": customer["id"],
            "segment_type": segment_type,
            "total_spend": float(total_spend),
            "last_visit_date": last_visit_date,
            "first_name": customer.get("first_name"),
            "last_name": customer.get("last_name"),
            "client_email": customer.get("client_email"),
            "status": customer.get("status"),
            "last_seen": customer.get("last_seen"),
        })

    return rows


def segment_breakdown(rows: list[dict[str, Any]]) -> dict[str, int]:
    """Count customers per segment."""
    return dict(Counter(row.get("segment_type") or SegmentType.PROSPECT.value for row in rows))


class SnapshotService:
    """Service for creating and reading segment snapshots."""

    @staticmethod
    def create_daily_snapshot(source: str = "manual_trigger") -> SnapshotResult:
        """
        Persist the current segment state of every customer.

        Args:
            source: Who asked for it ("manual_trigger", "arketa_csv_import",
                "scheduled")

        Returns:
            SnapshotResult with the new snapshot_id

        Raises:
            SnapshotError: If reading segments or writing the snapshot fails
        """
        snapshot_id = str(uuid.uuid4())
        created_at = utc_now().isoformat()

        logger.info(f"Creating snapshot {snapshot_id} (source: {source})")

        try:
            rows = load_current_segments()
            breakdown = segment_breakdown(rows)

            SupabaseClient.insert_row(SNAPSHOT_TABLE, {
                "snapshot_id": snapshot_id,
                "created_at": created_at,
                "source": source,
                "total_customers": len(rows),
                "segment_breakdown": breakdown,
                "snapshot_data": rows,
            })
        except SupabaseClientError as e:
            logger.error(f"Error creating snapshot: {e}")
            raise SnapshotError(e.message)

        logger.info(
            f"Snapshot {snapshot_id} created: {len(rows)} customers "
            f"across {len(breakdown)} segments"
        )

        return SnapshotResult(
            snapshot_id=snapshot_id,
            total_customers=len(rows),
            segment_breakdown=breakdown,
            created_at=created_at,
            source=source,
        )

    @staticmethod
    def get_snapshot(snapshot_id: str) -> dict[str, Any]:
        """
        Fetch a snapshot row.

        Raises:
            SnapshotNotFoundError: If no snapshot has this id
        """
        snapshot = SupabaseClient.fetch_one(SNAPSHOT_TABLE, "snapshot_id", snapshot_id)
        if not snapshot:
            raise SnapshotNotFoundError(snapshot_id)
        return snapshot
