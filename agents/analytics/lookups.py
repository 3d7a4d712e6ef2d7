# =============================================================================
# agents/analytics/lookups.py - Customer Lookups
# =============================================================================
# Metrics that return lists of customers (or simple counts by status).
# =============================================================================

from __future__ import annotations

import pandas as pd

from agents.analytics.frame import to_records
from agents.analytics.registry import int_param, register_metric, str_param
from core.models.assistant import MetricParam

LIMIT_PARAM = MetricParam(name="limit", description="Max customers to return", default=25)


@register_metric(
    "inactive_customers",
    "List customers who have not attended a class in N days (or never).",
    category="lookups",
    params=[
        MetricParam(name="days", description="Days since last class", default=30),
        LIMIT_PARAM,
    ],
)
def inactive_customers(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    days = int_param(params, "days", 30)
    limit = int_param(params, "limit", 25, maximum=200)
    cutoff = (now - pd.Timedelta(days=days)).normalize()

    last_class = df["last_class_date"]
    matches = df[last_class.isna() | (last_class < cutoff)]
    matches = matches.sort_values("last_class_date", ascending=True, na_position="first")

    return {
        "days": days,
        "count": len(matches),
        "customers": to_records(matches, limit),
    }


@register_metric(
    "customers_by_status",
    "List customers with a given status (e.g., prospect, intro_trial, drop_in).",
    category="lookups",
    params=[
        MetricParam(name="status", type="string", description="Customer status"),
        LIMIT_PARAM,
    ],
)
def customers_by_status(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    status = str_param(params, "status", required=True).lower()
    limit = int_param(params, "limit", 25, maximum=200)

    matches = df[df["status"].str.lower() == status]
    matches = matches.sort_values("updated_at", ascending=False, na_position="last")

    return {
        "status": status,
        "count": len(matches),
        "customers": to_records(matches, limit),
    }


@register_metric(
    "top_customers_by_ltv",
    "Top customers by lifetime value.",
    category="lookups",
    params=[LIMIT_PARAM],
)
def top_customers_by_ltv(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    limit = int_param(params, "limit", 25, maximum=200)
    top = df.sort_values("total_lifetime_value", ascending=False)
    return to_records(top, limit)


@register_metric(
    "search_customers",
    "Search customers by name or email (case-insensitive substring).",
    category="lookups",
    params=[
        MetricParam(name="query", type="string", description="Name or email fragment"),
        LIMIT_PARAM,
    ],
)
def search_customers(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    query = str_param(params, "query", required=True).lower()
    limit = int_param(params, "limit", 25, maximum=200)

    mask = (
        df["first_name"].str.lower().str.contains(query, regex=False)
        | df["last_name"].str.lower().str.contains(query, regex=False)
        | df["client_email"].str.lower().str.contains(query, regex=False)
    )
    matches = df[mask].sort_values("updated_at", ascending=False, na_position="last")
    return to_records(matches, limit)


@register_metric(
    "stats_overview",
    "Customer counts by status.",
    category="lookups",
)
def stats_overview(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    statuses = df["status"].replace("", "unknown")
    return statuses.value_counts().to_dict()
