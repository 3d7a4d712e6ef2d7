# =============================================================================
# agents/analytics/engagement.py - Engagement Metrics
# =============================================================================
# Recency-based metrics built on customers.last_seen.
# =============================================================================

from __future__ import annotations

import pandas as pd

from agents.analytics.frame import days_since, to_records
from agents.analytics.registry import MetricParamError, int_param, register_metric
from core.models.assistant import MetricParam

# Days-since-last-visit window that flags a customer as about to churn
CHURN_WARNING_WINDOW = (30, 37)


@register_metric(
    "recent_active",
    "Number of customers seen in the last N days.",
    category="engagement",
    params=[MetricParam(name="days", description="Look-back window in days", default=7)],
)
def recent_active(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    days = int_param(params, "days", 7)
    cutoff = now - pd.Timedelta(days=days)
    return {"days": days, "count": int((df["last_seen"] >= cutoff).sum())}


@register_metric(
    "engagement_segments",
    "Customers grouped by days since last visit: 0-7, 8-30, 31-90, 90+.",
    category="engagement",
)
def engagement_segments(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    days = days_since(df["last_seen"], now).dropna()
    return {
        "active_7d": int((days <= 7).sum()),
        "recent_8_30": int(((days > 7) & (days <= 30)).sum()),
        "lapsed_31_90": int(((days > 30) & (days <= 90)).sum()),
        "inactive_90_plus": int((days > 90).sum()),
        "unknown": int(df["last_seen"].isna().sum()),
    }


@register_metric(
    "inactive_bucket",
    "Customers whose last visit was between min_days and max_days ago.",
    category="engagement",
    params=[
        MetricParam(name="min_days", description="Lower bound (inclusive)", default=31),
        MetricParam(name="max_days", description="Upper bound (inclusive)", default=90),
        MetricParam(name="limit", description="Max customers to return", default=25),
    ],
)
def inactive_bucket(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    min_days = int_param(params, "min_days", 31, minimum=0)
    max_days = int_param(params, "max_days", 90, minimum=0)
    limit = int_param(params, "limit", 25, maximum=200)
    if min_days > max_days:
        raise MetricParamError("min_days must not exceed max_days")

    days = days_since(df["last_seen"], now)
    matches = df[(days >= min_days) & (days <= max_days)].sort_values("last_seen")

    return {
        "min_days": min_days,
        "max_days": max_days,
        "count": len(matches),
        "customers": to_records(matches, limit),
    }


@register_metric(
    "about_to_churn",
    "Customers last seen 30-37 days ago (about to lapse).",
    category="engagement",
    params=[MetricParam(name="limit", description="Max customers to return", default=25)],
)
def about_to_churn(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    limit = int_param(params, "limit", 25, maximum=200)
    low, high = CHURN_WARNING_WINDOW
    last_seen = df["last_seen"]
    mask = (last_seen < now - pd.Timedelta(days=low)) & (last_seen >= now - pd.Timedelta(days=high))
    matches = df[mask].sort_values("last_seen")
    return {"count": len(matches), "customers": to_records(matches, limit)}


@register_metric(
    "churn_rate",
    "Share of customers (with a known last visit) not seen in N days.",
    category="engagement",
    params=[MetricParam(name="days", description="Days without a visit that counts as churned", default=90)],
)
def churn_rate(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    days = int_param(params, "days", 90)
    known = df["last_seen"].dropna()
    churned = int((known < now - pd.Timedelta(days=days)).sum())
    total = len(known)
    return {
        "days": days,
        "churned": churned,
        "total": total,
        "churn_rate_pct": round(100 * churned / total, 2) if total else None,
    }


@register_metric(
    "never_attended",
    "Customers with no recorded class attendance.",
    category="engagement",
    params=[MetricParam(name="limit", description="Max customers to return", default=25)],
)
def never_attended(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    limit = int_param(params, "limit", 25, maximum=200)
    matches = df[df["first_class_date"].isna() & df["last_class_date"].isna()]
    return {"count": len(matches), "customers": to_records(matches, limit)}


@register_metric(
    "waiver_missing_active",
    "Customers seen in the last N days without a signed liability waiver.",
    category="engagement",
    params=[MetricParam(name="days", description="Look-back window in days", default=7)],
)
def waiver_missing_active(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    days = int_param(params, "days", 7)
    cutoff = now - pd.Timedelta(days=days)
    matches = df[~df["agree_to_liability_waiver"] & (df["last_seen"] >= cutoff)]
    return {"days": days, "count": len(matches), "customers": to_records(matches, 50)}
