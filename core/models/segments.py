# =============================================================================
# core/models/segments.py - Segment Schemas
# =============================================================================
# Customer lifecycle segments and the models built around them:
# - SegmentType / SEGMENT_HIERARCHY: the fixed ranking
# - SegmentCalculationResult: calculate-customer-segment output
# - SnapshotResult: create-daily-snapshot output
# - SegmentChange / ChangeDetectionResult: detect-segment-changes output
# =============================================================================

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class SegmentType(str, Enum):
    """
    Customer lifecycle segment.

    Ordered: prospect < intro_offer < drop_in < membership
    """
    PROSPECT = "prospect"
    INTRO_OFFER = "intro_offer"
    DROP_IN = "drop_in"
    MEMBERSHIP = "membership"


# Rank of each segment; anything not listed ranks 0
SEGMENT_HIERARCHY: dict[str, int] = {
    SegmentType.PROSPECT.value: 1,
    SegmentType.INTRO_OFFER.value: 2,
    SegmentType.DROP_IN.value: 3,
    SegmentType.MEMBERSHIP.value: 4,
}


class ChangeType(str, Enum):
    """How a customer's segment moved between a snapshot and now."""
    NO_CHANGE = "no_change"
    NEW_CUSTOMER = "new_customer"
    UPGRADE = "upgrade"
    DOWNGRADE = "downgrade"
    REACTIVATION = "reactivation"
    SEGMENT_CHANGE = "segment_change"
    CUSTOMER_REMOVED = "customer_removed"


class CalculateSegmentRequest(BaseModel):
    """Request body for a single segment calculation."""
    customer_id: int = Field(..., description="customers.id")
    pricing_plan_name: str | None = Field(
        default=None,
        description="Last pricing option the customer used, if known",
        examples=["10 Class Pack", "Unlimited Monthly Membership"],
    )


class CustomerAnalytics(BaseModel):
    """Activity figures a segment decision is based on."""
    total_bookings: int = 0
    attended_classes: int = 0
    no_shows: int = 0
    cancellations: int = 0
    days_since_last_visit: int = 999
    days_since_first_visit: int = 0
    average_monthly_visits: float = 0.0
    total_spent: float = 0.0
    is_intro_active: bool = False


class SegmentCalculationResult(BaseModel):
    """Outcome of classifying one customer."""
    success: bool = True
    customer_id: int
    segment_type: SegmentType
    total_spend: float = 0.0
    analytics: CustomerAnalytics
    pricing_plan_used: str | None = None


class CreateSnapshotRequest(BaseModel):
    """Request body for creating a snapshot."""
    source: str = Field(default="manual_trigger", max_length=100)


class SnapshotResult(BaseModel):
    """A freshly created snapshot."""
    success: bool = True
    snapshot_id: str
    total_customers: int
    segment_breakdown: dict[str, int] = Field(default_factory=dict)
    created_at: str
    source: str


class DetectChangesRequest(BaseModel):
    """Request body for change detection."""
    snapshot_id: str = Field(..., min_length=1)


class SegmentChange(BaseModel):
    """
    One customer's segment movement since a snapshot.

    Computed per request and never stored.
    """
    customer_id: int | str
    customer_name: str = ""
    customer_email: str | None = None
    old_segment: str
    new_segment: str
    change_type: ChangeType
    previous_spend: float = 0.0
    current_spend: float = 0.0
    spend_change: float = 0.0
    days_since_last_visit: int | None = None


class ChangeDetectionResult(BaseModel):
    """All changes since a snapshot plus a histogram by change type."""
    success: bool = True
    snapshot_id: str
    total_changes: int = 0
    changes: list[SegmentChange] = Field(default_factory=list)
    change_summary: dict[str, int] = Field(default_factory=dict)
    processing_time_ms: int = 0

    def summary_text(self) -> str:
        """Short human-readable summary, e.g. '3 upgrade, 1 new_customer'."""
        if not self.change_summary:
            return "no changes"
        parts = sorted(self.change_summary.items(), key=lambda kv: (-kv[1], kv[0]))
        return ", ".join(f"{count} {kind}" for kind, count in parts)


def segment_rank(segment: Any) -> int:
    """Rank of a segment in the hierarchy (0 when unknown)."""
    if isinstance(segment, SegmentType):
        segment = segment.value
    return SEGMENT_HIERARCHY.get(segment, 0)
