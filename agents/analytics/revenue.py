# =============================================================================
# agents/analytics/revenue.py - Revenue Metrics
# =============================================================================
# Lifetime value figures and the executive revenue estimates. There is no
# billing data, so MRR assumes a flat monthly price per active customer and
# CAC a flat acquisition cost per new customer.
# =============================================================================

from __future__ import annotations

import pandas as pd

from agents.analytics.registry import float_param, int_param, register_metric
from core.models.assistant import MetricParam

DEFAULT_MONTHLY_PRICE = 150.0
DEFAULT_ACQUISITION_COST = 50.0

LTV_BINS = [-float("inf"), 0, 100, 500, 1000, float("inf")]
LTV_LABELS = ["$0", "$1-100", "$101-500", "$501-1000", "$1000+"]

PRICE_PARAM = MetricParam(
    name="monthly_price",
    description="Assumed monthly revenue per active customer",
    default=DEFAULT_MONTHLY_PRICE,
)


def _active_count(df: pd.DataFrame, now: pd.Timestamp, days: int = 30) -> int:
    return int((df["last_seen"] >= now - pd.Timedelta(days=days)).sum())


@register_metric(
    "lifetime_value_summary",
    "Total, average, median and max customer lifetime value.",
    category="revenue",
)
def lifetime_value_summary(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    ltv = df["total_lifetime_value"]
    if ltv.empty:
        return {"customers": 0, "total": 0.0, "average": None, "median": None, "max": None}
    return {
        "customers": len(ltv),
        "total": round(float(ltv.sum()), 2),
        "average": round(float(ltv.mean()), 2),
        "median": round(float(ltv.median()), 2),
        "max": round(float(ltv.max()), 2),
    }


@register_metric(
    "ltv_distribution",
    "Customers bucketed by lifetime value.",
    category="revenue",
)
def ltv_distribution(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    buckets = pd.cut(df["total_lifetime_value"], bins=LTV_BINS, labels=LTV_LABELS)
    counts = buckets.value_counts()
    return {label: int(counts.get(label, 0)) for label in LTV_LABELS}


@register_metric(
    "mrr_estimate",
    "Estimated monthly recurring revenue: customers seen in 30 days x monthly price.",
    category="revenue",
    params=[PRICE_PARAM],
)
def mrr_estimate(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    price = float_param(params, "monthly_price", DEFAULT_MONTHLY_PRICE)
    active = _active_count(df, now)
    return {"active_30d": active, "monthly_price": price, "mrr_estimate": active * price}


@register_metric(
    "ltv_cac_ratio",
    "Estimated MRR divided by the acquisition cost of customers new in the last 30 days.",
    category="revenue",
    params=[
        PRICE_PARAM,
        MetricParam(
            name="acquisition_cost",
            description="Assumed cost to acquire one customer",
            default=DEFAULT_ACQUISITION_COST,
        ),
        MetricParam(name="days", description="Window for new customers", default=30),
    ],
)
def ltv_cac_ratio(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    price = float_param(params, "monthly_price", DEFAULT_MONTHLY_PRICE)
    cost = float_param(params, "acquisition_cost", DEFAULT_ACQUISITION_COST)
    days = int_param(params, "days", 30)

    mrr = _active_count(df, now) * price
    new_count = int((df["first_seen"] >= now - pd.Timedelta(days=days)).sum())
    spend = new_count * cost

    return {
        "mrr_estimate": mrr,
        "new_customers": new_count,
        "acquisition_spend": spend,
        "ltv_cac_ratio": mrr / spend if spend > 0 else None,
    }
