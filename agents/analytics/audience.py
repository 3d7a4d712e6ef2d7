# =============================================================================
# agents/analytics/audience.py - Audience Metrics
# =============================================================================
# Who the customers are: demographics, acquisition source, marketing reach
# and how complete their contact data is.
# =============================================================================

from __future__ import annotations

import pandas as pd

from agents.analytics.frame import to_records
from agents.analytics.registry import register_metric

AGE_BINS = [0, 25, 35, 45, 55, 200]
AGE_LABELS = ["under_25", "25_34", "35_44", "45_54", "55_plus"]

CLASSPASS_TAG = "classpass"


def _pct(part: int, total: int) -> float:
    return round(100 * part / total, 2) if total else 0.0


def _lifetime_days(df: pd.DataFrame) -> pd.Series:
    return (df["last_seen"] - df["first_seen"]).dt.total_seconds() / 86400


def _avg_or_none(series: pd.Series) -> float | None:
    series = series.dropna()
    return round(float(series.mean()), 1) if len(series) else None


@register_metric(
    "total_customers",
    "Total number of customers.",
    category="audience",
)
def total_customers(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    return {"total": len(df)}


@register_metric(
    "age_distribution",
    "Customers by age band (from birthday).",
    category="audience",
)
def age_distribution(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    ages = (now - df["birthday"]).dt.days / 365.25
    bands = pd.cut(ages, bins=AGE_BINS, labels=AGE_LABELS, right=False)
    counts = bands.value_counts()
    result = {label: int(counts.get(label, 0)) for label in AGE_LABELS}
    result["unknown"] = int(bands.isna().sum())
    return result


@register_metric(
    "birthdays_this_month",
    "Customers with a birthday in the current month.",
    category="audience",
)
def birthdays_this_month(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    matches = df[df["birthday"].dt.month == now.month]
    matches = matches.assign(_day=matches["birthday"].dt.day).sort_values("_day")
    return {
        "month": now.strftime("%B"),
        "count": len(matches),
        "customers": to_records(matches, 100, columns=["id", "first_name", "last_name", "client_email", "birthday"]),
    }


@register_metric(
    "marketing_opt_in",
    "Email and SMS marketing opt-in counts and the email opt-in rate.",
    category="audience",
)
def marketing_opt_in(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    total = len(df)
    email = int(df["marketing_email_opt_in"].sum())
    text = int(df["marketing_text_opt_in"].sum())
    return {
        "total": total,
        "email_opt_ins": email,
        "text_opt_ins": text,
        "email_opt_in_rate": _pct(email, total),
    }


@register_metric(
    "source_breakdown",
    "Customers by acquisition source.",
    category="audience",
)
def source_breakdown(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    return df["source"].replace("", "unknown").value_counts().to_dict()


@register_metric(
    "classpass_vs_direct",
    "ClassPass (by tag) vs direct customers and their average lifetime in days.",
    category="audience",
)
def classpass_vs_direct(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    is_classpass = df["tags"].str.lower().str.contains(CLASSPASS_TAG, regex=False)
    lifetimes = _lifetime_days(df)
    return {
        "classpass": int(is_classpass.sum()),
        "direct": int((~is_classpass).sum()),
        "avg_lifetime_days_classpass": _avg_or_none(lifetimes[is_classpass]),
        "avg_lifetime_days_direct": _avg_or_none(lifetimes[~is_classpass]),
    }


@register_metric(
    "data_completeness",
    "Average of phone, birthday and marketing-reachable coverage (0-100).",
    category="audience",
)
def data_completeness(df: pd.DataFrame, params: dict, now: pd.Timestamp):
    total = len(df)
    with_phone = int((df["phone_number"].str.strip() != "").sum())
    with_birthday = int(df["birthday"].notna().sum())
    marketable = int((df["marketing_email_opt_in"] | df["marketing_text_opt_in"]).sum())

    score = 0
    if total:
        score = round((_pct(with_phone, total) + _pct(with_birthday, total) + _pct(marketable, total)) / 3)

    return {
        "total": total,
        "with_phone": with_phone,
        "with_birthday": with_birthday,
        "marketable": marketable,
        "data_completeness_score": score,
    }
