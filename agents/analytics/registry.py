# =============================================================================
# agents/analytics/registry.py - Metric Registry
# =============================================================================
# Registry pattern for named customer metrics. Each metric is a plain
# function over the customer DataFrame; the registry gives Fred (and the
# dashboard) a single dispatch point by name.
#
# Usage:
#   from agents.analytics.registry import register_metric, run_metric
#
#   @register_metric("total_customers", "Number of customers", category="audience")
#   def total_customers(df, params, now):
#       return {"total": len(df)}
#
#   result = run_metric("total_customers", customer_rows)
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

import pandas as pd

from agents.analytics.frame import load_customer_frame
from core.models.assistant import MetricDescriptor, MetricParam
from lib.utils import sanitize_value, utc_now

# Type alias for metric functions
# Takes: customer DataFrame, params dict, reference time
# Returns: anything JSON-like (numpy/pandas values are sanitized afterwards)
MetricFunc = Callable[[pd.DataFrame, dict[str, Any], pd.Timestamp], Any]


class UnknownMetricError(KeyError):
    """Raised when a metric name isn't registered."""

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name
        self.message = f"Unknown metric: {name}"

    def __str__(self) -> str:
        return self.message


class MetricParamError(ValueError):
    """Raised when a metric is called with an unusable parameter."""


@dataclass
class MetricSpec:
    """A registered metric."""
    name: str
    func: MetricFunc
    description: str
    category: str
    params: list[MetricParam] = field(default_factory=list)

    def describe(self) -> MetricDescriptor:
        return MetricDescriptor(
            name=self.name,
            category=self.category,
            description=self.description,
            params=self.params,
        )


# Registry: metric_name -> MetricSpec
METRIC_REGISTRY: dict[str, MetricSpec] = {}


def register_metric(
    name: str,
    description: str,
    category: str = "general",
    params: list[MetricParam] | None = None,
):
    """
    Decorator to register a metric function.

    Args:
        name: Unique metric name (what the model asks for)
        description: One line shown to the model and in the catalogue
        category: Grouping for the catalogue
        params: Accepted parameters

    Example:
        @register_metric(
            "inactive_customers",
            "Customers who haven't attended in N days",
            category="lookups",
            params=[MetricParam(name="days", default=30)],
        )
        def inactive_customers(df, params, now):
            ...
    """
    def decorator(func: MetricFunc) -> MetricFunc:
        METRIC_REGISTRY[name] = MetricSpec(
            name=name,
            func=func,
            description=description,
            category=category,
            params=params or [],
        )
        return func
    return decorator


def get_metric(name: str) -> MetricSpec:
    """
    Get a registered metric by name.

    Raises:
        UnknownMetricError: If no metric has this name
    """
    spec = METRIC_REGISTRY.get(name)
    if spec is None:
        raise UnknownMetricError(name)
    return spec


def list_metrics(category: str | None = None) -> list[MetricDescriptor]:
    """Catalogue of registered metrics, sorted by category then name."""
    specs = [
        spec for spec in METRIC_REGISTRY.values()
        if category is None or spec.category == category
    ]
    return [spec.describe() for spec in sorted(specs, key=lambda s: (s.category, s.name))]


def run_metric(
    name: str,
    customers: pd.DataFrame | list[dict[str, Any]],
    params: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> Any:
    """
    Run a metric and return a JSON-serializable result.

    Args:
        name: Registered metric name
        customers: Customer DataFrame, or raw customers rows
        params: Metric parameters (missing ones take their defaults)
        now: Reference time (defaults to current UTC time)

    Raises:
        UnknownMetricError: If the metric isn't registered
        MetricParamError: If a parameter is unusable
    """
    spec = get_metric(name)

    df = customers if isinstance(customers, pd.DataFrame) else load_customer_frame(customers)
    reference = pd.Timestamp(now or utc_now())
    if reference.tzinfo is None:
        reference = reference.tz_localize("UTC")

    return sanitize_value(spec.func(df, dict(params or {}), reference))


# =============================================================================
# Parameter Helpers
# =============================================================================

def int_param(
    params: dict[str, Any],
    name: str,
    default: int,
    minimum: int = 1,
    maximum: int = 3650,
) -> int:
    """
    Read an integer parameter, clamped to [minimum, maximum].

    Missing, null and unparseable values fall back to the default.
    """
    value = params.get(name)
    try:
        number = int(float(value)) if value is not None and value != "" else default
    except (TypeError, ValueError):
        number = default
    return max(minimum, min(maximum, number))


def float_param(params: dict[str, Any], name: str, default: float) -> float:
    """Read a non-negative float parameter."""
    value = params.get(name)
    try:
        number = float(value) if value is not None and value != "" else default
    except (TypeError, ValueError):
        number = default
    return max(0.0, number)


def str_param(params: dict[str, Any], name: str, required: bool = False) -> str:
    """
    Read a string parameter (trimmed).

    Raises:
        MetricParamError: If required and blank
    """
    value = str(params.get(name) or "").strip()
    if required and not value:
        raise MetricParamError(f"Parameter '{name}' is required")
    return value
