# =============================================================================
# core/services/dashboard_service.py - Dashboard Metrics
# =============================================================================
# Assembles the owner dashboard: headline numbers from the dashboard_metrics
# view plus customer-derived insights computed with the metric registry.
#
# Each source is fetched independently; a failing source is logged and its
# fields come back as null rather than failing the whole dashboard.
# =============================================================================

from __future__ import annotations

import logging
from typing import Any, Callable

import pandas as pd

from agents.analytics import fetch_all_customers, load_customer_frame, run_metric
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now

logger = logging.getLogger(__name__)

DASHBOARD_VIEW_COLUMNS = "avg_capacity_today, revenue_this_month, revenue_last_month"


def _safe(label: str, func: Callable[[], Any]) -> Any:
    try:
        return func()
    except Exception as e:
        logger.error(f"Dashboard {label} failed: {e}")
        return None


def _number(value: Any) -> float | None:
    return float(value) if value is not None else None


def _dashboard_view_row() -> dict[str, Any]:
    rows = SupabaseClient.fetch_all("dashboard_metrics", columns=DASHBOARD_VIEW_COLUMNS, order_by=None)
    return rows[0] if rows else {}


def _retention_rate_pct() -> float | None:
    """Average attendance rate from customer_engagement_stats, as 0-100."""
    rows = SupabaseClient.fetch_all("customer_engagement_stats", columns="attendance_rate", order_by=None)
    values = [float(r["attendance_rate"]) for r in rows if r.get("attendance_rate") is not None]
    if not values:
        return None
    avg = sum(values) / len(values)
    return avg * 100 if avg <= 1 else avg


def revenue_change_ratio(this_month: float | None, last_month: float | None) -> float | None:
    """Month-over-month revenue change as a ratio (0.08 means +8%)."""
    if not last_month:
        return None
    return ((this_month or 0) - last_month) / last_month


def build_customer_insights(df: pd.DataFrame, now=None) -> dict[str, Any]:
    """Customer-derived dashboard sections, from the metric registry."""
    now = now or utc_now()

    def metric(name: str, **params) -> Any:
        return run_metric(name, df, params, now)

    marketing = metric("marketing_opt_in")
    sources = metric("classpass_vs_direct")
    engagement = metric("engagement_segments")
    waiver = metric("waiver_missing_active", days=7)

    return {
        "active_customers": int((df["status"].str.lower() != "prospect").sum()),
        "marketing_summary": marketing,
        "source_breakdown": sources,
        "waiver_missing_active_7d": waiver["count"],
        "engagement_segments": {k: v for k, v in engagement.items() if k != "unknown"},
        "executive_kpis": {
            "mrr_estimate": metric("mrr_estimate")["mrr_estimate"],
            "weekly_growth_rate": metric("weekly_growth")["weekly_growth_rate"],
            "churn_risk_about_to_churn": metric("about_to_churn")["count"],
            "legal_exposure_active_no_waiver": waiver["count"],
            "data_completeness_score": metric("data_completeness")["data_completeness_score"],
            "ltv_cac_ratio": metric("ltv_cac_ratio")["ltv_cac_ratio"],
        },
    }


def get_dashboard_metrics() -> dict[str, Any]:
    """
    Build the dashboard response body.

    Returns:
        Dict with active_customers, class_occupancy_pct, revenue_this_month,
        revenue_change_pct, retention_rate_pct, marketing_summary,
        source_breakdown, waiver_missing_active_7d, engagement_segments
        and executive_kpis (any of which may be null)
    """
    view = _safe("dashboard_metrics view", _dashboard_view_row) or {}
    revenue_this_month = _number(view.get("revenue_this_month"))
    revenue_last_month = _number(view.get("revenue_last_month"))

    body: dict[str, Any] = {
        "active_customers": None,
        "class_occupancy_pct": _number(view.get("avg_capacity_today")),
        "revenue_this_month": revenue_this_month,
        "revenue_change_pct": revenue_change_ratio(revenue_this_month, revenue_last_month),
        "retention_rate_pct": _safe("retention rate", _retention_rate_pct),
        "marketing_summary": None,
        "source_breakdown": None,
        "waiver_missing_active_7d": None,
        "engagement_segments": None,
        "executive_kpis": None,
    }

    customers = _safe("customer load", fetch_all_customers)
    if customers is not None:
        insights = _safe("customer insights", lambda: build_customer_insights(load_customer_frame(customers)))
        if insights:
            body.update(insights)

    return body
