# =============================================================================
# core/services/change_detection_service.py - Segment Change Detection
# =============================================================================
# Diffs the current segment assignment of every customer against a stored
# snapshot and classifies each movement:
#
#   no_change       same segment (never reported)
#   new_customer    not in the snapshot
#   upgrade         moved up the hierarchy
#   reactivation    upgrade of a customer who had lapsed 60+ days
#   downgrade       moved down the hierarchy
#   segment_change  moved between segments of equal rank
#   customer_removed  in the snapshot but gone now
#
# Changes are computed per request and never stored.
# =============================================================================

from __future__ import annotations

import logging
import time
from collections import Counter
from datetime import datetime
from typing import Any

from app.exceptions import ChangeDetectionError
from core.models.segments import (
    ChangeDetectionResult,
    ChangeType,
    SegmentChange,
    segment_rank,
)
from core.services.snapshot_service import SnapshotService, load_current_segments
from lib.supabase_client import SupabaseClientError
from lib.utils import days_between, parse_date, utc_now

logger = logging.getLogger(__name__)

# Placeholder "old segment" for customers missing from the snapshot
NEW_CUSTOMER_SEGMENT = "new_customer"

# Placeholder "new segment" for customers no longer present
REMOVED_SEGMENT = "removed"

# Days without a visit (as of the snapshot) that make an upgrade a comeback
REACTIVATION_GAP_DAYS = 60


def categorize_change(old_segment: str, new_segment: str) -> ChangeType:
    """
    Classify a segment movement by hierarchy rank.

    Example:
        categorize_change("prospect", "membership")     # UPGRADE
        categorize_change("new_customer", "prospect")   # NEW_CUSTOMER
    """
    if old_segment == new_segment:
        return ChangeType.NO_CHANGE

    old_rank = segment_rank(old_segment)
    new_rank = segment_rank(new_segment)

    if old_rank == 0:
        return ChangeType.NEW_CUSTOMER
    if new_rank > old_rank:
        return ChangeType.UPGRADE
    if new_rank < old_rank:
        return ChangeType.DOWNGRADE
    return ChangeType.SEGMENT_CHANGE


def _was_lapsed(snapshot_row: dict[str, Any], snapshot_created_at: Any) -> bool:
    """True when the customer had not visited for REACTIVATION_GAP_DAYS at snapshot time."""
    if parse_date(snapshot_created_at) is None:
        return False
    gap = days_between(snapshot_row.get("last_visit_date"), snapshot_created_at)
    return gap is not None and gap >= REACTIVATION_GAP_DAYS


def _full_name(row: dict[str, Any]) -> str:
    return f"{row.get('first_name') or ''} {row.get('last_name') or ''}".strip()


def detect_changes(
    snapshot_rows: list[dict[str, Any]],
    current_rows: list[dict[str, Any]],
    now: datetime | None = None,
    snapshot_created_at: Any = None,
) -> list[SegmentChange]:
    """
    Compare current segment rows with snapshot rows.

    Args:
        snapshot_rows: snapshot_data entries
        current_rows: load_current_segments() output
        now: Reference time for days_since_last_visit
        snapshot_created_at: When the snapshot was taken (enables reactivation)

    Returns:
        Changes in current-customer order, then removed customers
    """
    now = now or utc_now()

    snapshot_by_id = {row["customer_id"]: row for row in snapshot_rows}
    current_ids = {row["customer_id"] for row in current_rows}

    changes: list[SegmentChange] = []

    for current in current_rows:
        customer_id = current["customer_id"]
        previous = snapshot_by_id.get(customer_id)

        old_segment = (previous or {}).get("segment_type") or NEW_CUSTOMER_SEGMENT
        new_segment = current["segment_type"]
        change_type = categorize_change(old_segment, new_segment)

        if change_type == ChangeType.NO_CHANGE:
            continue

        if change_type == ChangeType.UPGRADE and _was_lapsed(previous, snapshot_created_at):
            change_type = ChangeType.REACTIVATION

        previous_spend = float((previous or {}).get("total_spend") or 0)
        current_spend = float(current.get("total_spend") or 0)

        changes.append(SegmentChange(
            customer_id=customer_id,
            customer_name=_full_name(current),
            customer_email=current.get("client_email"),
            old_segment=old_segment,
            new_segment=new_segment,
            change_type=change_type,
            previous_spend=previous_spend,
            current_spend=current_spend,
            spend_change=round(current_spend - previous_spend, 2),
            days_since_last_visit=days_between(current.get("last_seen"), now),
        ))

    for previous in snapshot_rows:
        if previous["customer_id"] in current_ids:
            continue
        previous_spend = float(previous.get("total_spend") or 0)
        changes.append(SegmentChange(
            customer_id=previous["customer_id"],
            customer_name=_full_name(previous),
            customer_email=previous.get("client_email"),
            old_segment=previous.get("segment_type") or NEW_CUSTOMER_SEGMENT,
            new_segment=REMOVED_SEGMENT,
            change_type=ChangeType.CUSTOMER_REMOVED,
            previous_spend=previous_spend,
            current_spend=0.0,
            spend_change=-previous_spend,
            days_since_last_visit=None,
        ))

    return changes


def summarize_changes(changes: list[SegmentChange]) -> dict[str, int]:
    """Histogram of changes by change_type."""
    return dict(Counter(change.change_type.value for change in changes))


def detect_segment_changes(snapshot_id: str) -> ChangeDetectionResult:
    """
    Detect segment changes since a stored snapshot.

    Raises:
        SnapshotNotFoundError: If the snapshot doesn't exist
        ChangeDetectionError: If current segments cannot be loaded
    """
    start_time = time.time()
    logger.info(f"Detecting segment changes since snapshot: {snapshot_id}")

    snapshot = SnapshotService.get_snapshot(snapshot_id)
    snapshot_rows = snapshot.get("snapshot_data") or []

    try:
        current_rows = load_current_segments()
    except SupabaseClientError as e:
        logger.error(f"Failed to load current segments: {e}")
        raise ChangeDetectionError(snapshot_id, e.message)

    changes = detect_changes(
        snapshot_rows,
        current_rows,
        snapshot_created_at=snapshot.get("created_at"),
    )
    summary = summarize_changes(changes)

    logger.info(f"Detected {len(changes)} changes against {len(snapshot_rows)} snapshot rows: {summary}")

    return ChangeDetectionResult(
        snapshot_id=snapshot_id,
        total_changes=len(changes),
        changes=changes,
        change_summary=summary,
        processing_time_ms=int((time.time() - start_time) * 1000),
    )
