# =============================================================================
# workers/tasks.py - Celery Task Definitions
# =============================================================================
# Background jobs for segment maintenance.
#
# Tasks:
# - create_daily_snapshot: Snapshot every customer's segment (beat, daily)
# - recalculate_all_segments: Re-run segment calculation for every customer
# =============================================================================

import logging
from typing import Any

from celery import shared_task

from core.services.segment_service import SegmentService
from core.services.snapshot_service import SnapshotService

logger = logging.getLogger(__name__)


@shared_task(bind=True, name="workers.tasks.create_daily_snapshot")
def create_daily_snapshot(self, source: str = "scheduled") -> dict[str, Any]:
    """
    Snapshot every customer's current segment.

    Scheduled daily by beat; may also be queued manually.

    Returns:
        SnapshotResult as a dict
    """
    result = SnapshotService.create_daily_snapshot(source=source)
    logger.info(f"Daily snapshot {result.snapshot_id}: {result.total_customers} customers")
    return result.model_dump(mode="json")


@shared_task(bind=True, name="workers.tasks.recalculate_all_segments")
def recalculate_all_segments(self) -> dict[str, int]:
    """
    Recalculate every customer's segment.

    Returns:
        Count of customers per assigned segment plus an "errors" count
    """
    return SegmentService.recalculate_all()
