# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas for data validation:
# - imports.py: CSV validation and import schemas
# - segments.py: segment hierarchy, snapshots and segment changes
# - assistant.py: Fred request/response and metric catalogue schemas
#
# These models define the "contract" between API and clients.
# =============================================================================

# -----------------------------------------------------------------------------
# Segment Models
# -----------------------------------------------------------------------------
from .segments import (
    SEGMENT_HIERARCHY,
    CalculateSegmentRequest,
    ChangeDetectionResult,
    ChangeType,
    CreateSnapshotRequest,
    CustomerAnalytics,
    DetectChangesRequest,
    SegmentCalculationResult,
    SegmentChange,
    SegmentType,
    SnapshotResult,
    segment_rank,
)

# -----------------------------------------------------------------------------
# Import Models
# -----------------------------------------------------------------------------
from .imports import (
    CsvImportRecord,
    ImportResult,
    ImportStatus,
    ValidateCsvRequest,
    ValidationResult,
)

# -----------------------------------------------------------------------------
# Assistant Models
# -----------------------------------------------------------------------------
from .assistant import (
    AskRequest,
    FredAnswer,
    MetricDescriptor,
    MetricParam,
    ToolCallRecord,
)

__all__ = [
    # Segments
    "SEGMENT_HIERARCHY",
    "CalculateSegmentRequest",
    "ChangeDetectionResult",
    "ChangeType",
    "CreateSnapshotRequest",
    "CustomerAnalytics",
    "DetectChangesRequest",
    "SegmentCalculationResult",
    "SegmentChange",
    "SegmentType",
    "SnapshotResult",
    "segment_rank",
    # Imports
    "CsvImportRecord",
    "ImportResult",
    "ImportStatus",
    "ValidateCsvRequest",
    "ValidationResult",
    # Assistant
    "AskRequest",
    "FredAnswer",
    "MetricDescriptor",
    "MetricParam",
    "ToolCallRecord",
]
