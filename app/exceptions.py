# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Every error tells the caller HOW to fix the problem, not just WHAT failed.
# =============================================================================

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


class StudioException(Exception):
    """
    Base exception for the Talo Studio API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "STUDIO_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# CSV Validation Exceptions
# =============================================================================

class MissingCsvContentError(StudioException):
    """Raised when one or both CSV payloads are absent."""

    def __init__(self, missing: list[str]):
        super().__init__(
            message="Both client_list_content and client_attendance_content are required",
            code="MISSING_CSV_CONTENT",
            status_code=400,
            suggestion="Send the raw text of both the client list and the attendance export",
            details={"missing": missing},
        )

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["valid"] = False
        result["errors"] = [self.message]
        return result


class CsvParseError(StudioException):
    """Raised when CSV text cannot be parsed into rows."""

    def __init__(self, error: str, source: str | None = None):
        super().__init__(
            message=f"CSV parsing error: {error}",
            code="CSV_PARSE_ERROR",
            status_code=400,
            suggestion="Check that the file is a comma-separated export with a header row",
            details={"source": source} if source else None,
        )

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["valid"] = False
        result["errors"] = [self.message]
        return result


# =============================================================================
# Import Exceptions
# =============================================================================

class ImportFailedError(StudioException):
    """
    Raised when the CSV import pipeline stops early.

    The partial ImportResult travels with the exception so the response
    body keeps the same shape as a successful import.
    """

    def __init__(
        self,
        result: Any,
        message: str,
        code: str = "IMPORT_FAILED",
        status_code: int = 500,
        suggestion: str | None = None,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=status_code,
            suggestion=suggestion,
        )
        self.result = result

    def to_dict(self) -> dict[str, Any]:
        result = self.result.model_dump(mode="json")
        result["detail"] = self.message
        result["code"] = self.code
        if self.suggestion:
            result["suggestion"] = self.suggestion
        return result


class ImportRejectedError(ImportFailedError):
    """Raised when uploaded files are rejected before any writes happen."""

    def __init__(self, result: Any, message: str):
        super().__init__(
            result,
            message=message,
            code="IMPORT_REJECTED",
            status_code=400,
            suggestion="Fix the listed problems in the CSV files and upload them again",
        )


# =============================================================================
# Customer / Segment Exceptions
# =============================================================================

class CustomerNotFoundError(StudioException):
    """Raised when a customer ID doesn't exist."""

    def __init__(self, customer_id: int | str):
        super().__init__(
            message=f"Customer not found: {customer_id}",
            code="CUSTOMER_NOT_FOUND",
            status_code=404,
            suggestion="Check that the customer_id is correct",
            details={"customer_id": customer_id},
        )


class SegmentUpdateError(StudioException):
    """Raised when a customer's segment row cannot be written."""

    def __init__(self, customer_id: int | str, error: str):
        super().__init__(
            message=f"Failed to update customer segment: {error}",
            code="SEGMENT_UPDATE_FAILED",
            status_code=500,
            suggestion="Check that the customer_segments table is reachable and has a unique customer_id",
            details={"customer_id": customer_id},
        )


class SnapshotError(StudioException):
    """Raised when a segment snapshot cannot be created or read."""

    def __init__(self, error: str):
        super().__init__(
            message=f"Snapshot creation failed: {error}",
            code="SNAPSHOT_FAILED",
            status_code=500,
            suggestion="Try again later or check the customer_segment_snapshots table",
        )


class SnapshotNotFoundError(StudioException):
    """Raised when a snapshot ID doesn't exist."""

    def __init__(self, snapshot_id: str):
        super().__init__(
            message=f"Snapshot not found: {snapshot_id}",
            code="SNAPSHOT_NOT_FOUND",
            status_code=404,
            suggestion="Create a snapshot first with POST /segments/snapshots",
            details={"snapshot_id": snapshot_id},
        )


class ChangeDetectionError(StudioException):
    """Raised when current segment data cannot be loaded for comparison."""

    def __init__(self, snapshot_id: str, error: str):
        super().__init__(
            message=f"Segment change detection failed: {error}",
            code="CHANGE_DETECTION_FAILED",
            status_code=500,
            details={"snapshot_id": snapshot_id},
        )


# =============================================================================
# Assistant Exceptions
# =============================================================================

class EmptyQuestionError(StudioException):
    """Raised when Fred is asked an empty question."""

    def __init__(self):
        super().__init__(
            message="Question is required",
            code="EMPTY_QUESTION",
            status_code=400,
            suggestion="Ask something like 'how many customers haven't visited in 30 days?'",
        )


# =============================================================================
# Exception Handlers
# =============================================================================

async def studio_exception_handler(
    request: Request,
    exc: StudioException
) -> JSONResponse:
    """
    Convert StudioException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )
