# =============================================================================
# core/services/import_service.py - Arketa CSV Import Pipeline
# =============================================================================
# Orchestrates a full import of the two Arketa exports:
#
#   1. Reject oversized files
#   2. Validate both CSVs (nothing is written when validation fails)
#   3. Snapshot current segments (fatal on failure)
#   4. For each client row, in order: upsert the customer, then recalculate
#      their segment. A failing row is recorded and the loop moves on.
#   5. Diff segments against the snapshot (non-fatal on failure)
#   6. Write a csv_imports audit row (failure is only logged)
#
# Early exits raise ImportRejectedError (400) or ImportFailedError (500);
# both carry the partial ImportResult for the response body.
# =============================================================================

from __future__ import annotations

import logging
import time
from typing import Any

from app.config import settings
from app.exceptions import (
    CsvParseError,
    ImportFailedError,
    ImportRejectedError,
    MissingCsvContentError,
    SnapshotError,
)
from core.models.imports import CsvImportRecord, ImportResult, ImportStatus
from core.services.change_detection_service import detect_segment_changes
from core.services.customer_service import CustomerService, build_customer_payload
from core.services.segment_service import SegmentService
from core.services.snapshot_service import SnapshotService
from core.services.validation_service import validate_csv_format
from lib.csv_parser import decode_upload
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import normalize_email, utc_now

logger = logging.getLogger(__name__)

IMPORT_SNAPSHOT_SOURCE = "arketa_csv_import"
IMPORTS_TABLE = "csv_imports"

# Errors copied into csv_imports.error_details
MAX_AUDIT_ERRORS = 100


class ImportService:
    """
    Service for running and listing CSV imports.

    Example:
        result = ImportService.run_import(list_bytes, attendance_bytes,
                                          ("clients.csv", "attendance.csv"))
    """

    @staticmethod
    def run_import(
        client_list_content: bytes | str | None,
        client_attendance_content: bytes | str | None,
        filenames: tuple[str, str] = ("client_list.csv", "client_attendance.csv"),
    ) -> ImportResult:
        """
        Run the import pipeline end to end.

        Args:
            client_list_content: Client list CSV (raw upload bytes or text)
            client_attendance_content: Attendance CSV (raw upload bytes or text)
            filenames: Original upload names, recorded in the audit row

        Returns:
            ImportResult with success=True (per-row errors may still be listed)

        Raises:
            ImportRejectedError: Missing/oversized files or validation errors
            ImportFailedError: Snapshot failure or an unexpected error
        """
        start_time = time.time()
        result = ImportResult()

        try:
            ImportService._check_sizes(result, client_list_content, client_attendance_content)

            client_text = _as_text(client_list_content)
            attendance_text = _as_text(client_attendance_content)

            logger.info(f"Starting CSV import pipeline: {filenames[0]}, {filenames[1]}")

            # Step 1: validate
            try:
                validation = validate_csv_format(client_text, attendance_text)
            except (MissingCsvContentError, CsvParseError) as e:
                result.errors.append(f"CSV validation failed: {e.message}")
                raise ImportRejectedError(result, result.errors[-1])

            if not validation.valid:
                result.errors.append(f"CSV validation failed: {', '.join(validation.errors)}")
                raise ImportRejectedError(result, "CSV validation failed")

            client_rows = validation.client_list_data or []
            attendance_rows = validation.client_attendance_data or []
            logger.info(
                f"Validation passed: {len(client_rows)} customers, "
                f"{len(attendance_rows)} attendance records"
            )

            # Step 2: snapshot
            try:
                snapshot = SnapshotService.create_daily_snapshot(source=IMPORT_SNAPSHOT_SOURCE)
            except SnapshotError as e:
                result.errors.append(e.message)
                result.processing_time_ms = _elapsed_ms(start_time)
                raise ImportFailedError(result, e.message, code="SNAPSHOT_FAILED")
            result.snapshot_id = snapshot.snapshot_id

            # Step 3: customers and segments
            ImportService._process_rows(result, client_rows, attendance_rows)
            logger.info(
                f"Processed {result.total_customers} customers "
                f"({result.new_customers} new, {result.updated_customers} updated)"
            )

            # Step 4: change detection
            try:
                changes = detect_segment_changes(result.snapshot_id)
                result.segment_changes = changes.changes
                result.change_summary = changes.change_summary
                logger.info(f"Detected {changes.total_changes} segment changes: {changes.summary_text()}")
            except Exception as e:
                logger.warning(f"Segment change detection failed: {_describe(e)}")
                result.errors.append(f"Segment change detection failed: {_describe(e)}")

            result.processing_time_ms = _elapsed_ms(start_time)
            result.success = True

            # Step 5: audit
            ImportService._record_import(result, filenames)

            logger.info(f"CSV import pipeline completed in {result.processing_time_ms}ms")
            return result

        except ImportFailedError:
            raise

        except Exception as e:
            logger.exception("Critical error in CSV import pipeline")
            result.errors.append(f"Critical pipeline error: {e}")
            result.success = False
            result.processing_time_ms = _elapsed_ms(start_time)
            ImportService._record_failed_import(result)
            raise ImportFailedError(result, f"Critical pipeline error: {e}")

    @staticmethod
    def _check_sizes(result: ImportResult, *contents: Any) -> None:
        labels = ("Client list", "Client attendance")
        max_bytes = settings.max_import_file_size_bytes
        max_mb = settings.MAX_IMPORT_FILE_SIZE_MB

        for label, content in zip(labels, contents):
            if content is None:
                continue
            size = len(content.encode("utf-8")) if isinstance(content, str) else len(content)
            if size > max_bytes:
                result.errors.append(
                    f"{label} file too large: {round(size / 1024 / 1024)}MB (max {max_mb}MB)"
                )

        if result.errors:
            raise ImportRejectedError(result, "Uploaded file too large")

    @staticmethod
    def _process_rows(
        result: ImportResult,
        client_rows: list[dict[str, str]],
        attendance_rows: list[dict[str, str]],
    ) -> None:
        """Upsert each customer and recalculate their segment, one row at a time."""
        attendance_by_email = {
            normalize_email(row.get("client_email")): row for row in attendance_rows
        }
        now = utc_now()

        for index, client_row in enumerate(client_rows):
            email = (client_row.get("client_email") or "").strip()
            try:
                attendance_row = attendance_by_email.get(normalize_email(email))
                payload = build_customer_payload(client_row, attendance_row, now)

                customer, created = CustomerService.upsert_customer(payload)
                if created:
                    result.new_customers += 1
                else:
                    result.updated_customers += 1
                result.total_customers += 1

                pricing_plan = (attendance_row or {}).get("last_pricing_option_used") or None
                SegmentService.calculate_customer_segment(customer["id"], pricing_plan)

            except Exception as e:
                logger.error(f"Error processing customer {email}: {e}")
                result.errors.append(f"Failed to process customer {email}: {_describe(e)}")

            if (index + 1) % 100 == 0:
                logger.info(f"Processed {index + 1}/{len(client_rows)} rows")

    @staticmethod
    def _record_import(result: ImportResult, filenames: tuple[str, str]) -> None:
        status = ImportStatus.COMPLETED_WITH_ERRORS if result.errors else ImportStatus.COMPLETED
        try:
            SupabaseClient.insert_row(IMPORTS_TABLE, {
                "filename": ", ".join(filenames),
                "status": status.value,
                "total_records": result.total_customers,
                "new_records": result.new_customers,
                "updated_records": result.updated_customers,
                "failed_records": len(result.errors),
                "processing_time_ms": result.processing_time_ms,
                "completed_at": utc_now().isoformat(),
                "snapshot_id": result.snapshot_id,
                "error_details": _error_details(result.errors),
            })
        except SupabaseClientError as e:
            logger.error(f"Failed to log import: {e}")

    @staticmethod
    def _record_failed_import(result: ImportResult) -> None:
        try:
            SupabaseClient.insert_row(IMPORTS_TABLE, {
                "filename": "failed_import",
                "status": ImportStatus.FAILED.value,
                "total_records": 0,
                "new_records": 0,
                "updated_records": 0,
                "failed_records": 1,
                "processing_time_ms": result.processing_time_ms,
                "snapshot_id": result.snapshot_id or None,
                "error_details": _error_details(result.errors),
            })
        except Exception as e:
            logger.error(f"Failed to log failed import: {e}")

    @staticmethod
    def list_imports(limit: int = 20) -> list[CsvImportRecord]:
        """Most recent csv_imports rows, newest first."""
        rows = SupabaseClient.fetch_recent(IMPORTS_TABLE, order_by="created_at", limit=limit)
        return [CsvImportRecord.model_validate(row) for row in rows]


def _as_text(content: bytes | str | None) -> str | None:
    if content is None:
        return None
    if isinstance(content, bytes):
        return decode_upload(content)
    return content


def _elapsed_ms(start_time: float) -> int:
    return int((time.time() - start_time) * 1000)


def _describe(error: Exception) -> str:
    return getattr(error, "message", None) or str(error)


def _error_details(errors: list[str]) -> dict[str, Any] | None:
    if not errors:
        return None
    return {"errors": errors[:MAX_AUDIT_ERRORS], "total_errors": len(errors)}
