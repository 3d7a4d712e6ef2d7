# =============================================================================
# agents/analytics/lifecycle.py - Customer Lifecycle Metrics
# =============================================================================
# Acquisition, retention and intro-offer conversion, built on first_seen,
# last_seen and the intro_* / conversion_date columns.
# =============================================================================

from __future__ import annotations

import pandas as pd

from agents.analytics.frame import to_records
from agents.analytics.registry import int_param, register_metric
from core.models.assistant import MetricParam

# A cohort member counts as retained when seen within this many days
RETENTION_WINDOW_DAYS = 30


def _month_key(series: pd.Series) -> pd.Series:
    return series.dt.strftime("%Y-%m")


def _recent_months(now: pd.Timestamp, months: int) -> list[str]:
    start = now.tz_convert(None).to_period("M")
    return [str(start - offset) for offset in range(months - 1, -1, -1)]


@register_metric(
    "new_customers",
    "Number of customers first seen in the last N days.",
    category="lifecycle",
    params=[MetricParam(name="days", description="Look-back window in days", default=30)],
)
def new_customers(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    days = int_param(params, "days", 30)
    cutoff = now - pd.Timedelta(days=days)
    return {"days": days, "count": int((df["first_seen"] >= cutoff).sum())}


@register_metric(
    "weekly_growth",
    "New customers this week vs last week and the growth rate.",
    category="lifecycle",
)
def weekly_growth(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    week_ago = now - pd.Timedelta(days=7)
    two_weeks_ago = now - pd.Timedelta(days=14)
    first_seen = df["first_seen"]

    this_week = int((first_seen >= week_ago).sum())
    last_week = int(((first_seen < week_ago) & (first_seen >= two_weeks_ago)).sum())

    return {
        "new_this_week": this_week,
        "new_last_week": last_week,
        "weekly_growth_rate": (this_week - last_week) / last_week if last_week > 0 else None,
    }


@register_metric(
    "monthly_new_customers",
    "New customers per calendar month for the last N months.",
    category="lifecycle",
    params=[MetricParam(name="months", description="Number of months", default=6)],
)
def monthly_new_customers(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    months = int_param(params, "months", 6, maximum=36)
    counts = _month_key(df["first_seen"].dropna()).value_counts()
    return {month: int(counts.get(month, 0)) for month in _recent_months(now, months)}


@register_metric(
    "retention_by_cohort",
    "For each signup month, how many customers were seen in the last 30 days.",
    category="lifecycle",
    params=[MetricParam(name="months", description="Number of cohorts", default=6)],
)
def retention_by_cohort(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    months = int_param(params, "months", 6, maximum=36)
    cohorts = df[df["first_seen"].notna()].copy()
    cohorts["cohort"] = _month_key(cohorts["first_seen"])
    cohorts["retained"] = cohorts["last_seen"] >= now - pd.Timedelta(days=RETENTION_WINDOW_DAYS)

    grouped = cohorts.groupby("cohort")["retained"].agg(["size", "sum"])

    result = []
    for month in _recent_months(now, months):
        size = int(grouped["size"].get(month, 0))
        retained = int(grouped["sum"].get(month, 0))
        result.append({
            "cohort": month,
            "customers": size,
            "retained": retained,
            "retention_rate_pct": round(100 * retained / size, 2) if size else None,
        })
    return result


@register_metric(
    "avg_customer_lifetime",
    "Average days between first and last visit.",
    category="lifecycle",
)
def avg_customer_lifetime(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    lifetimes = (df["last_seen"] - df["first_seen"]).dt.total_seconds() / 86400
    lifetimes = lifetimes.dropna()
    return {
        "customers": len(lifetimes),
        "avg_lifetime_days": round(float(lifetimes.mean()), 1) if len(lifetimes) else None,
    }


def _intro_running(df: pd.DataFrame, now: pd.Timestamp) -> pd.Series:
    return (df["intro_start_date"] <= now) & (df["intro_end_date"] > now)


@register_metric(
    "intro_offer_active",
    "Customers currently inside their intro offer window.",
    category="lifecycle",
    params=[MetricParam(name="limit", description="Max customers to return", default=25)],
)
def intro_offer_active(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    limit = int_param(params, "limit", 25, maximum=200)
    matches = df[_intro_running(df, now)].sort_values("intro_end_date")
    return {"count": len(matches), "customers": to_records(matches, limit)}


@register_metric(
    "intro_ending_soon",
    "Intro offers ending within the next N days.",
    category="lifecycle",
    params=[MetricParam(name="days", description="Days ahead", default=3)],
)
def intro_ending_soon(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    days = int_param(params, "days", 3, maximum=90)
    ends = df["intro_end_date"]
    matches = df[(ends > now) & (ends <= now + pd.Timedelta(days=days))].sort_values("intro_end_date")
    return {
        "days": days,
        "count": len(matches),
        "customers": to_records(matches, 50, columns=["id", "first_name", "last_name", "client_email", "intro_end_date"]),
    }


@register_metric(
    "intro_conversion_rate",
    "Share of intro-offer customers who converted.",
    category="lifecycle",
)
def intro_conversion_rate(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    intro = df[df["intro_start_date"].notna()]
    converted = int(intro["conversion_date"].notna().sum())
    total = len(intro)
    return {
        "intro_customers": total,
        "converted": converted,
        "conversion_rate_pct": round(100 * converted / total, 2) if total else None,
    }


@register_metric(
    "avg_days_to_convert",
    "Average days from intro start to conversion.",
    category="lifecycle",
)
def avg_days_to_convert(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    gaps = (df["conversion_date"] - df["intro_start_date"]).dt.days.dropna()
    gaps = gaps[gaps >= 0]
    return {
        "converted": len(gaps),
        "avg_days_to_convert": round(float(gaps.mean()), 1) if len(gaps) else None,
    }
