# =============================================================================
# agents/analytics/ - Customer Metrics
# =============================================================================
# Named metrics over the in-memory customers table, dispatched by name.
#
# Metric modules (importing them registers their metrics):
# - lookups.py: customer lists and status counts
# - engagement.py: recency buckets, churn signals
# - lifecycle.py: acquisition, retention, intro conversion
# - revenue.py: lifetime value, MRR / CAC estimates
# - audience.py: demographics, sources, marketing reach
# =============================================================================

from agents.analytics.registry import (
    METRIC_REGISTRY,
    MetricParamError,
    UnknownMetricError,
    get_metric,
    list_metrics,
    register_metric,
    run_metric,
)
from agents.analytics.frame import fetch_all_customers, load_customer_frame

# Import metric modules to register them
from agents.analytics import lookups  # noqa: F401
from agents.analytics import engagement  # noqa: F401
from agents.analytics import lifecycle  # noqa: F401
from agents.analytics import revenue  # noqa: F401
from agents.analytics import audience  # noqa: F401

__all__ = [
    "METRIC_REGISTRY",
    "MetricParamError",
    "UnknownMetricError",
    "get_metric",
    "list_metrics",
    "register_metric",
    "run_metric",
    "fetch_all_customers",
    "load_customer_frame",
]
