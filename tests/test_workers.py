# =============================================================================
# tests/test_workers.py - Celery Task Tests
# =============================================================================
# Tasks are called directly (synchronously); no broker is needed.
# =============================================================================

from workers.celery_app import celery_app
from workers.config import CeleryConfig
from workers.tasks import create_daily_snapshot, recalculate_all_segments


class TestSchedule:
    """Tests for the beat schedule."""

    def test_daily_snapshot_is_scheduled(self):
        entry = CeleryConfig.beat_schedule["daily-segment-snapshot"]

        assert entry["task"] == "workers.tasks.create_daily_snapshot"
        assert entry["kwargs"] == {"source": "scheduled"}

    def test_tasks_registered(self):
        assert "workers.tasks.create_daily_snapshot" in celery_app.tasks
        assert "workers.tasks.recalculate_all_segments" in celery_app.tasks


class TestTasks:
    """Tests for task bodies."""

    def test_create_daily_snapshot(self, fake_db):
        fake_db.add_row("customers", {"id": 1, "status": "prospect"})

        result = create_daily_snapshot(source="scheduled")

        assert result["total_customers"] == 1
        assert result["source"] == "scheduled"
        assert fake_db.rows("customer_segment_snapshots")[0]["snapshot_id"] == result["snapshot_id"]

    def test_recalculate_all_segments(self, fake_db):
        fake_db.add_row("customers", {"id": 1, "status": "member"})
        fake_db.add_row("customers", {"id": 2, "status": "prospect"})

        assert recalculate_all_segments() == {"errors": 0, "membership": 1, "prospect": 1}
