# =============================================================================
# tests/test_models.py - Pydantic Model Tests
# =============================================================================
# Unit tests for the API models to ensure:
# - Valid data is accepted and parsed correctly
# - Invalid data raises ValidationError
# - Models serialize to JSON properly
# - Default values work as expected
#
# Run with: pytest tests/test_models.py -v
# =============================================================================

import pytest
from pydantic import ValidationError

from core.models import (
    AskRequest,
    CalculateSegmentRequest,
    ChangeDetectionResult,
    ChangeType,
    CsvImportRecord,
    DetectChangesRequest,
    FredAnswer,
    ImportResult,
    ImportStatus,
    SegmentChange,
    SegmentType,
    ToolCallRecord,
    ValidationResult,
)


class TestImportModels:
    """Tests for import models."""

    def test_import_result_defaults(self):
        result = ImportResult()

        assert result.success is False
        assert result.total_customers == 0
        assert result.segment_changes == []
        assert result.snapshot_id == ""

    def test_validation_result_serializes(self):
        result = ValidationResult(valid=False, errors=["Row 2: first_name is required"])
        data = result.model_dump()

        assert data["valid"] is False
        assert data["client_list_data"] is None

    def test_import_record_status(self):
        record = CsvImportRecord(filename="a.csv, b.csv", status="completed_with_errors")
        assert record.status == ImportStatus.COMPLETED_WITH_ERRORS

        with pytest.raises(ValidationError):
            CsvImportRecord(filename="a.csv", status="exploded")


class TestSegmentModels:
    """Tests for segment models."""

    def test_segment_values(self):
        assert [s.value for s in SegmentType] == ["prospect", "intro_offer", "drop_in", "membership"]

    def test_calculate_request_requires_customer(self):
        with pytest.raises(ValidationError):
            CalculateSegmentRequest()

    def test_detect_request_rejects_empty_id(self):
        with pytest.raises(ValidationError):
            DetectChangesRequest(snapshot_id="")

    def test_change_serializes_enum_value(self):
        change = SegmentChange(
            customer_id=1,
            old_segment="prospect",
            new_segment="drop_in",
            change_type=ChangeType.UPGRADE,
        )
        assert change.model_dump(mode="json")["change_type"] == "upgrade"

    def test_summary_text(self):
        result = ChangeDetectionResult(
            snapshot_id="s1",
            change_summary={"upgrade": 3, "new_customer": 1, "downgrade": 1},
        )
        assert result.summary_text() == "3 upgrade, 1 downgrade, 1 new_customer"
        assert ChangeDetectionResult(snapshot_id="s2").summary_text() == "no changes"


class TestAssistantModels:
    """Tests for Fred models."""

    def test_question_length_limit(self):
        with pytest.raises(ValidationError):
            AskRequest(question="x" * 2001)

    def test_answer_defaults(self):
        answer = FredAnswer(text="Hi")
        assert answer.tool_calls == []
        assert answer.iterations == 0

    def test_tool_call_record(self):
        record = ToolCallRecord(metric="churn_rate", params={"days": 60})
        assert record.ok is True
        assert record.error is None
