# =============================================================================
# app/routers/segments.py - Customer Segment Endpoints
# =============================================================================
# Segment calculation for one customer, snapshots, and change detection.
# All endpoints require authentication.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Depends, Path
from starlette.concurrency import run_in_threadpool

from app.auth import AuthUser, get_current_user
from core.models.segments import (
    CalculateSegmentRequest,
    ChangeDetectionResult,
    CreateSnapshotRequest,
    DetectChangesRequest,
    SegmentCalculationResult,
    SnapshotResult,
)
from core.services.change_detection_service import detect_segment_changes
from core.services.segment_service import SegmentService
from core.services.snapshot_service import SnapshotService

router = APIRouter()


@router.post("/calculate", response_model=SegmentCalculationResult)
async def calculate_segment(
    request: CalculateSegmentRequest,
    user: AuthUser = Depends(get_current_user),
):
    """
    Classify one customer and store the result.

    Returns 404 if the customer doesn't exist.
    """
    return await run_in_threadpool(
        SegmentService.calculate_customer_segment,
        request.customer_id,
        request.pricing_plan_name,
    )


@router.post("/snapshots", response_model=SnapshotResult)
async def create_snapshot(
    request: CreateSnapshotRequest | None = None,
    user: AuthUser = Depends(get_current_user),
):
    """Snapshot every customer's current segment."""
    source = request.source if request else "manual_trigger"
    return await run_in_threadpool(SnapshotService.create_daily_snapshot, source=source)


@router.get("/snapshots/{snapshot_id}")
async def get_snapshot(
    snapshot_id: Annotated[str, Path(description="Snapshot ID")],
    user: AuthUser = Depends(get_current_user),
):
    """Get a stored snapshot, including its per-customer data."""
    return await run_in_threadpool(SnapshotService.get_snapshot, snapshot_id)


@router.post("/changes", response_model=ChangeDetectionResult)
async def detect_changes(
    request: DetectChangesRequest,
    user: AuthUser = Depends(get_current_user),
):
    """
    List every customer whose segment moved since a snapshot.

    Returns 404 if the snapshot doesn't exist.
    """
    return await run_in_threadpool(detect_segment_changes, request.snapshot_id)
