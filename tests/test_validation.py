# =============================================================================
# tests/test_validation.py - CSV Validation Tests
# =============================================================================
# Tests for validate_csv_format and its per-file checks:
# - required columns and fields
# - email / date / numeric field checks (one error per bad field)
# - cross-file email comparison
# - error list truncation
# =============================================================================

import pytest

from app.exceptions import CsvParseError, MissingCsvContentError
from core.services.validation_service import (
    TRUNCATION_NOTICE,
    cap_errors,
    cross_validate_emails,
    validate_attendance_data,
    validate_client_list_data,
    validate_csv_format,
    validate_date,
    validate_email,
)

CLIENT_HEADER = "first_name,last_name,client_email,status\n"
ATTENDANCE_HEADER = "client_email,first_class_date,last_class_date\n"


# =============================================================================
# Field Checks
# =============================================================================

class TestFieldChecks:
    """Tests for the small field validators."""

    def test_valid_emails(self):
        assert validate_email("jane@example.com")
        assert validate_email("a.b+yoga@studio.co.uk")

    def test_invalid_emails(self):
        assert not validate_email("jane")
        assert not validate_email("jane@example")
        assert not validate_email("jane doe@example.com")
        assert not validate_email("")

    def test_empty_date_is_allowed(self):
        assert validate_date("")

    def test_parseable_dates(self):
        assert validate_date("2024-03-14")
        assert validate_date("3/14/2024")

    def test_short_or_garbage_dates_rejected(self):
        """Bare years parse but are too short to be a real date."""
        assert not validate_date("2024")
        assert not validate_date("not a date")


# =============================================================================
# Per-File Validation
# =============================================================================

class TestClientListValidation:
    """Tests for validate_client_list_data."""

    def test_empty_file(self):
        assert validate_client_list_data([]) == ["Client list CSV is empty or has no data rows"]

    def test_missing_required_column(self):
        rows = [{"first_name": "Ana", "last_name": "Lopez", "client_email": "ana@example.com"}]
        errors = validate_client_list_data(rows)
        assert "Client list missing required column: status" in errors

    def test_invalid_email_reported_once(self):
        """A malformed email yields exactly one error for that row."""
        rows = [{"first_name": "Ana", "last_name": "Lopez", "client_email": "ana-at-example", "status": "prospect"}]
        errors = validate_client_list_data(rows)
        assert errors == ["Row 2: invalid email format: ana-at-example"]

    def test_blank_required_fields(self):
        rows = [{"first_name": "", "last_name": " ", "client_email": "", "status": "prospect"}]
        errors = validate_client_list_data(rows)
        assert errors == [
            "Row 2: first_name is required",
            "Row 2: last_name is required",
            "Row 2: client_email is required",
        ]

    def test_bad_date_and_ltv(self):
        rows = [{
            "first_name": "Ana", "last_name": "Lopez", "client_email": "ana@example.com",
            "status": "prospect", "last_seen": "13/45/2024", "total_lifetime_value": "lots",
        }]
        errors = validate_client_list_data(rows)
        assert "Row 2: invalid last_seen date: 13/45/2024" in errors
        assert "Row 2: total_lifetime_value must be numeric: lots" in errors

    def test_only_sampled_rows_are_checked(self):
        rows = [
            {"first_name": "A", "last_name": "B", "client_email": "bad", "status": "prospect"}
            for _ in range(5)
        ]
        errors = validate_client_list_data(rows, sample_rows=2)
        assert len(errors) == 2


class TestAttendanceValidation:
    """Tests for validate_attendance_data."""

    def test_empty_file(self):
        assert validate_attendance_data([]) == ["Client attendance CSV is empty or has no data rows"]

    def test_row_errors(self):
        rows = [{
            "client_email": "ana@example.com",
            "first_class_date": "2024-01-10",
            "last_class_date": "soon",
            "total_classes_attended": "many",
        }]
        errors = validate_attendance_data(rows)
        assert errors == [
            "Attendance row 2: invalid last_class_date: soon",
            "Attendance row 2: total_classes_attended must be numeric",
        ]


class TestCrossValidation:
    """Tests for cross_validate_emails."""

    def test_matching_sets_case_insensitive(self):
        clients = [{"client_email": "Ana@Example.com "}]
        attendance = [{"client_email": "ana@example.com"}]
        assert cross_validate_emails(clients, attendance) == []

    def test_missing_and_extra(self):
        clients = [{"client_email": "ana@example.com"}, {"client_email": "ben@example.com"}]
        attendance = [{"client_email": "ana@example.com"}, {"client_email": "zed@example.com"}]
        errors = cross_validate_emails(clients, attendance)
        assert errors == [
            "1 client(s) are missing attendance data: ben@example.com",
            "1 email(s) in attendance data are not in the client list: zed@example.com",
        ]

    def test_long_lists_are_abbreviated(self):
        clients = [{"client_email": f"c{i:02d}@example.com"} for i in range(12)]
        errors = cross_validate_emails(clients, [{"client_email": "other@example.com"}])
        assert errors[0].startswith("12 client(s) are missing attendance data: c00@example.com")
        assert errors[0].endswith("(+2 more)")


class TestCapErrors:
    """Tests for cap_errors."""

    def test_under_limit_unchanged(self):
        assert cap_errors(["a", "b"], max_errors=5) == ["a", "b"]

    def test_over_limit_truncated(self):
        capped = cap_errors([str(i) for i in range(10)], max_errors=3)
        assert capped == ["0", "1", "2", TRUNCATION_NOTICE]


# =============================================================================
# Entry Point
# =============================================================================

class TestValidateCsvFormat:
    """Tests for validate_csv_format."""

    def test_valid_files(self, client_list_csv, attendance_csv):
        result = validate_csv_format(client_list_csv, attendance_csv)

        assert result.valid
        assert result.errors == []
        assert len(result.client_list_data) == 3
        assert result.client_list_data[0]["client_email"] == "ana@example.com"
        assert len(result.client_attendance_data) == 3

    def test_missing_content_raises(self, attendance_csv):
        with pytest.raises(MissingCsvContentError) as exc_info:
            validate_csv_format("", attendance_csv)

        assert exc_info.value.status_code == 400
        assert exc_info.value.details["missing"] == ["client_list_content"]

    def test_exports_with_trailing_commas(self):
        clients = CLIENT_HEADER + "Ana,Lopez,ana@example.com,prospect,\nBen,Okafor,ben@example.com,prospect,\n"
        attendance = ATTENDANCE_HEADER + "ana@example.com,2024-05-01,2024-05-20,\nben@example.com,,,\n"

        result = validate_csv_format(clients, attendance)

        assert result.valid, result.errors
        assert result.client_list_data[1]["client_email"] == "ben@example.com"
        assert result.client_attendance_data[0]["last_class_date"] == "2024-05-20"

    def test_unparseable_content_raises(self, attendance_csv):
        broken = 'first_name,last_name\n"Ana,Lopez\n'
        with pytest.raises(CsvParseError):
            validate_csv_format(broken, attendance_csv)

    def test_sixty_bad_emails_are_capped(self):
        """60 invalid rows produce 50 errors plus the truncation notice."""
        clients = CLIENT_HEADER + "".join(f"Ana,Lopez,bad{i},prospect\n" for i in range(60))
        attendance = ATTENDANCE_HEADER + "".join(f"bad{i},,\n" for i in range(60))

        result = validate_csv_format(clients, attendance)

        assert not result.valid
        assert len(result.errors) == 51
        assert result.errors[-1] == TRUNCATION_NOTICE
        assert result.errors[0] == "Row 2: invalid email format: bad0"

    def test_cross_file_mismatch_invalidates(self):
        clients = CLIENT_HEADER + "Ana,Lopez,ana@example.com,prospect\n"
        attendance = ATTENDANCE_HEADER + "ben@example.com,,\n"

        result = validate_csv_format(clients, attendance)

        assert not result.valid
        assert len(result.errors) == 2
