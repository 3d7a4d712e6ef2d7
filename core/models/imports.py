# =============================================================================
# core/models/imports.py - CSV Import Schemas
# =============================================================================
# These models define the API contract for the Arketa CSV import pipeline:
# - ValidateCsvRequest / ValidationResult: validate-csv-format
# - ImportResult: the aggregate returned by the import orchestrator
# - ImportStatus / CsvImportRecord: the csv_imports audit trail
# =============================================================================

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from .segments import SegmentChange


class ValidateCsvRequest(BaseModel):
    """
    Raw CSV text for both Arketa exports.

    Example:
        {
            "client_list_content": "first_name,last_name,client_email,status\\n...",
            "client_attendance_content": "client_email,first_class_date,last_class_date\\n..."
        }
    """

    client_list_content: str | None = Field(
        default=None,
        description="Text of the client list CSV"
    )
    client_attendance_content: str | None = Field(
        default=None,
        description="Text of the client attendance CSV"
    )


class ValidationResult(BaseModel):
    """
    Outcome of validating the two CSV files.

    `errors` is capped (50 entries plus a truncation notice). The parsed
    rows are returned so the caller does not need to parse again.
    """

    valid: bool = Field(default=True)
    errors: list[str] = Field(default_factory=list)
    client_list_data: list[dict[str, str]] | None = Field(
        default=None,
        description="Parsed client list rows"
    )
    client_attendance_data: list[dict[str, str]] | None = Field(
        default=None,
        description="Parsed attendance rows"
    )


class ImportStatus(str, Enum):
    """Final status recorded in csv_imports."""
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"
    FAILED = "failed"


class ImportResult(BaseModel):
    """
    Aggregate result of one import run.

    Returned on success and, with `success=False`, inside error responses.
    """

    success: bool = False
    total_customers: int = 0
    new_customers: int = 0
    updated_customers: int = 0
    segment_changes: list[SegmentChange] = Field(default_factory=list)
    change_summary: dict[str, int] = Field(default_factory=dict)
    processing_time_ms: int = 0
    snapshot_id: str = ""
    errors: list[str] = Field(default_factory=list)


class CsvImportRecord(BaseModel):
    """A row of the csv_imports audit table."""

    id: int | str | None = None
    filename: str
    status: ImportStatus
    total_records: int = 0
    new_records: int = 0
    updated_records: int = 0
    failed_records: int = 0
    processing_time_ms: int = 0
    completed_at: datetime | None = None
    snapshot_id: str | None = None
    error_details: dict[str, Any] | None = None
    created_at: datetime | None = None
