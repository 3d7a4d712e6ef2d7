# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .validation_service import validate_csv_format
from .customer_service import CustomerService, build_customer_payload
from .segment_service import SegmentService
from .snapshot_service import SnapshotService
from .change_detection_service import detect_segment_changes
from .import_service import ImportService
from .dashboard_service import get_dashboard_metrics
from .settings_service import get_intro_duration

__all__ = [
    "validate_csv_format",
    "CustomerService",
    "build_customer_payload",
    "SegmentService",
    "SnapshotService",
    "detect_segment_changes",
    "ImportService",
    "get_dashboard_metrics",
    "get_intro_duration",
]
