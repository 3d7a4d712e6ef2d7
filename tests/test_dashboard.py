# =============================================================================
# tests/test_dashboard.py - Dashboard and Settings Service Tests
# =============================================================================

from datetime import datetime, timezone

from agents.analytics import load_customer_frame
from core.services.dashboard_service import (
    build_customer_insights,
    get_dashboard_metrics,
    revenue_change_ratio,
)
from core.services.settings_service import get_intro_duration

NOW = datetime(2024, 6, 1, tzinfo=timezone.utc)


class TestIntroDuration:
    """Tests for get_intro_duration."""

    def _store(self, db, value):
        db.add_row("business_settings", {"setting_key": "intro_offer_duration", "setting_value": value})

    def test_default(self, fake_db):
        assert get_intro_duration() == {"days": 14}

    def test_object_value(self, fake_db):
        self._store(fake_db, {"days": 21})
        assert get_intro_duration() == {"days": 21}

    def test_bare_number(self, fake_db):
        self._store(fake_db, 30)
        assert get_intro_duration() == {"days": 30}

    def test_garbage_value(self, fake_db):
        self._store(fake_db, "two weeks")
        assert get_intro_duration() == {"days": 14}

    def test_database_error(self, fake_db):
        fake_db.failing_tables.add("business_settings")
        assert get_intro_duration() == {"days": 14}


class TestDashboard:
    """Tests for dashboard assembly."""

    def test_revenue_change_ratio(self):
        assert revenue_change_ratio(1080.0, 1000.0) == 0.08
        assert revenue_change_ratio(500.0, 0) is None
        assert revenue_change_ratio(None, None) is None

    def test_customer_insights(self, customer_rows):
        insights = build_customer_insights(load_customer_frame(customer_rows), now=NOW)

        assert insights["active_customers"] == 3
        assert insights["waiver_missing_active_7d"] == 1
        assert insights["engagement_segments"] == {
            "active_7d": 2, "recent_8_30": 0, "lapsed_31_90": 1, "inactive_90_plus": 0,
        }
        kpis = insights["executive_kpis"]
        assert kpis["mrr_estimate"] == 300.0
        assert kpis["churn_risk_about_to_churn"] == 1
        assert kpis["ltv_cac_ratio"] is None

    def test_view_values(self, fake_db):
        fake_db.add_row("dashboard_metrics", {
            "avg_capacity_today": 72.5, "revenue_this_month": 5400, "revenue_last_month": 5000,
        })
        fake_db.add_row("customer_engagement_stats", {"attendance_rate": 0.8})
        fake_db.add_row("customer_engagement_stats", {"attendance_rate": 0.6})

        body = get_dashboard_metrics()

        assert body["class_occupancy_pct"] == 72.5
        assert body["revenue_this_month"] == 5400.0
        assert round(body["revenue_change_pct"], 4) == 0.08
        assert round(body["retention_rate_pct"], 4) == 70.0
        assert body["active_customers"] == 0

    def test_failing_sources_become_null(self, fake_db):
        fake_db.failing_tables.update({"dashboard_metrics", "customer_engagement_stats", "customers"})

        body = get_dashboard_metrics()

        assert body["class_occupancy_pct"] is None
        assert body["retention_rate_pct"] is None
        assert body["marketing_summary"] is None
        assert body["executive_kpis"] is None
