# =============================================================================
# core/services/validation_service.py - CSV Format Validation
# =============================================================================
# Validates the two Arketa exports before anything is written:
#
#   1. Parse both files (header row + data rows)
#   2. Required columns per file type
#   3. Field checks on the first VALIDATION_SAMPLE_ROWS rows of each file
#      (email format, date parseability, numeric fields)
#   4. Cross-file check: both files should cover the same email set
#   5. Cap the error list at VALIDATION_MAX_ERRORS plus a truncation notice
#
# Pure functions over the input text - no database access.
# =============================================================================

from __future__ import annotations

import logging
import re
from typing import Any

from app.config import settings
from app.exceptions import CsvParseError, MissingCsvContentError
from core.models.imports import ValidationResult
from lib.csv_parser import CsvFormatError, parse_csv
from lib.utils import normalize_email, parse_date

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

REQUIRED_CLIENT_LIST_COLUMNS = [
    "first_name",
    "last_name",
    "client_email",
    "status",
]

REQUIRED_CLIENT_ATTENDANCE_COLUMNS = [
    "client_email",
    "first_class_date",
    "last_class_date",
]

CLIENT_LIST_DATE_FIELDS = [
    ("first_seen", "first_seen date"),
    ("last_seen", "last_seen date"),
    ("intro_start_date", "intro_start_date"),
    ("intro_end_date", "intro_end_date"),
]

ATTENDANCE_DATE_FIELDS = ["first_class_date", "last_class_date"]
ATTENDANCE_INTEGER_FIELDS = ["total_classes_attended", "total_bookings"]

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
INTEGER_PREFIX = re.compile(r"^\s*[-+]?\d")
FLOAT_PREFIX = re.compile(r"^\s*[-+]?(\d+\.?\d*|\.\d+)")

# Addresses listed inline in a cross-validation message
MAX_LISTED_EMAILS = 10

TRUNCATION_NOTICE = "... and more errors. Please fix the above issues first."


# =============================================================================
# Field Checks
# =============================================================================

def validate_email(value: str) -> bool:
    """Check that a value looks like an email address."""
    return bool(EMAIL_PATTERN.match(value or ""))


def validate_date(value: str) -> bool:
    """
    Check that a value is a usable date.

    Empty values are allowed. Non-empty values must parse and be at least
    8 characters long, which rejects bare years and day numbers.
    """
    if not value:
        return True
    return parse_date(value) is not None and len(value) >= 8


def is_numeric(value: str) -> bool:
    """True when the value starts with a number ("12.50", "3 classes")."""
    return bool(FLOAT_PREFIX.match(value or ""))


def is_integer(value: str) -> bool:
    """True when the value starts with an integer."""
    return bool(INTEGER_PREFIX.match(value or ""))


def _missing_columns(rows: list[dict[str, Any]], required: list[str]) -> list[str]:
    headers = set(rows[0].keys()) if rows else set()
    return [col for col in required if col not in headers]


# =============================================================================
# Per-File Validation
# =============================================================================

def validate_client_list_data(
    rows: list[dict[str, str]],
    sample_rows: int | None = None,
) -> list[str]:
    """
    Validate parsed client list rows.

    Row numbers in messages are 1-based file lines (header is line 1).

    Returns:
        List of error messages (empty when the file is clean)
    """
    sample_rows = sample_rows or settings.VALIDATION_SAMPLE_ROWS
    errors: list[str] = []

    if not rows:
        return ["Client list CSV is empty or has no data rows"]

    for col in _missing_columns(rows, REQUIRED_CLIENT_LIST_COLUMNS):
        errors.append(f"Client list missing required column: {col}")

    for index, row in enumerate(rows[:sample_rows]):
        row_num = index + 2

        if not (row.get("first_name") or "").strip():
            errors.append(f"Row {row_num}: first_name is required")
        if not (row.get("last_name") or "").strip():
            errors.append(f"Row {row_num}: last_name is required")

        email = (row.get("client_email") or "").strip()
        if not email:
            errors.append(f"Row {row_num}: client_email is required")
        elif not validate_email(email):
            errors.append(f"Row {row_num}: invalid email format: {email}")

        for field, label in CLIENT_LIST_DATE_FIELDS:
            value = row.get(field) or ""
            if value and not validate_date(value):
                errors.append(f"Row {row_num}: invalid {label}: {value}")

        ltv = row.get("total_lifetime_value") or ""
        if ltv and not is_numeric(ltv):
            errors.append(f"Row {row_num}: total_lifetime_value must be numeric: {ltv}")

    return errors


def validate_attendance_data(
    rows: list[dict[str, str]],
    sample_rows: int | None = None,
) -> list[str]:
    """
    Validate parsed attendance rows.

    Returns:
        List of error messages (empty when the file is clean)
    """
    sample_rows = sample_rows or settings.VALIDATION_SAMPLE_ROWS
    errors: list[str] = []

    if not rows:
        return ["Client attendance CSV is empty or has no data rows"]

    for col in _missing_columns(rows, REQUIRED_CLIENT_ATTENDANCE_COLUMNS):
        errors.append(f"Client attendance missing required column: {col}")

    for index, row in enumerate(rows[:sample_rows]):
        row_num = index + 2

        email = (row.get("client_email") or "").strip()
        if not email:
            errors.append(f"Attendance row {row_num}: client_email is required")
        elif not validate_email(email):
            errors.append(f"Attendance row {row_num}: invalid email format: {email}")

        for field in ATTENDANCE_DATE_FIELDS:
            value = row.get(field) or ""
            if value and not validate_date(value):
                errors.append(f"Attendance row {row_num}: invalid {field}: {value}")

        for field in ATTENDANCE_INTEGER_FIELDS:
            value = row.get(field) or ""
            if value and not is_integer(value):
                errors.append(f"Attendance row {row_num}: {field} must be numeric")

    return errors


def cross_validate_emails(
    client_rows: list[dict[str, str]],
    attendance_rows: list[dict[str, str]],
) -> list[str]:
    """
    Compare the email sets of the two files (case-insensitive, trimmed).

    Reports clients with no attendance record and attendance records for
    unknown clients. Blank emails are ignored here; the per-row checks
    already report them.
    """
    client_emails = {normalize_email(r.get("client_email")) for r in client_rows} - {""}
    attendance_emails = {normalize_email(r.get("client_email")) for r in attendance_rows} - {""}

    missing_in_attendance = sorted(client_emails - attendance_emails)
    extra_in_attendance = sorted(attendance_emails - client_emails)

    errors: list[str] = []
    if missing_in_attendance:
        errors.append(
            f"{len(missing_in_attendance)} client(s) are missing attendance data: "
            f"{_list_emails(missing_in_attendance)}"
        )
    if extra_in_attendance:
        errors.append(
            f"{len(extra_in_attendance)} email(s) in attendance data are not in the client list: "
            f"{_list_emails(extra_in_attendance)}"
        )
    return errors


def _list_emails(emails: list[str]) -> str:
    listed = ", ".join(emails[:MAX_LISTED_EMAILS])
    if len(emails) > MAX_LISTED_EMAILS:
        listed += f" (+{len(emails) - MAX_LISTED_EMAILS} more)"
    return listed


def cap_errors(errors: list[str], max_errors: int | None = None) -> list[str]:
    """Keep the first `max_errors` errors and append a truncation notice."""
    max_errors = max_errors or settings.VALIDATION_MAX_ERRORS
    if len(errors) <= max_errors:
        return errors
    return errors[:max_errors] + [TRUNCATION_NOTICE]


# =============================================================================
# Entry Point
# =============================================================================

def validate_csv_format(
    client_list_content: str | None,
    client_attendance_content: str | None,
) -> ValidationResult:
    """
    Validate both CSV exports and return the parsed rows.

    Args:
        client_list_content: Raw client list CSV text
        client_attendance_content: Raw attendance CSV text

    Returns:
        ValidationResult; `valid` is False whenever any error was found

    Raises:
        MissingCsvContentError: If either text is missing
        CsvParseError: If either text cannot be parsed
    """
    missing = [
        name for name, content in (
            ("client_list_content", client_list_content),
            ("client_attendance_content", client_attendance_content),
        )
        if not content
    ]
    if missing:
        logger.warning(f"Validation request missing CSV content: {missing}")
        raise MissingCsvContentError(missing)

    logger.info(
        f"Validating CSV content: client list {len(client_list_content)} chars, "
        f"attendance {len(client_attendance_content)} chars"
    )

    try:
        client_rows = parse_csv(client_list_content)
    except CsvFormatError as e:
        raise CsvParseError(str(e), source="client_list")
    try:
        attendance_rows = parse_csv(client_attendance_content)
    except CsvFormatError as e:
        raise CsvParseError(str(e), source="client_attendance")

    errors: list[str] = []
    errors.extend(validate_client_list_data(client_rows))
    errors.extend(validate_attendance_data(attendance_rows))

    if client_rows and attendance_rows:
        errors.extend(cross_validate_emails(client_rows, attendance_rows))

    errors = cap_errors(errors)

    result = ValidationResult(
        valid=not errors,
        errors=errors,
        client_list_data=client_rows,
        client_attendance_data=attendance_rows,
    )

    if result.valid:
        logger.info(
            f"Validation passed: {len(client_rows)} clients, "
            f"{len(attendance_rows)} attendance records"
        )
    else:
        logger.info(f"Validation failed with {len(errors)} errors")

    return result
