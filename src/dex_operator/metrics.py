"""Prometheus metrics for the Dex Operator."""

from prometheus_client import Counter, Histogram

# Reconciliation metrics
reconcile_total = Counter(
    "dex_operator_reconcile_total",
    "Total number of reconciliations",
    ["kind", "result"],
)

reconcile_duration_seconds = Histogram(
    "dex_operator_reconcile_duration_seconds",
    "Duration of reconciliations in seconds",
    ["kind"],
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Downstream object metrics
objects_created_total = Counter(
    "dex_operator_objects_created_total",
    "Total number of downstream objects created",
    ["object_kind"],
)

create_conflicts_total = Counter(
    "dex_operator_create_conflicts_total",
    "Creates that lost a race against a concurrent creator",
    ["object_kind"],
)

# API call metrics
api_call_total = Counter(
    "dex_operator_api_call_total",
    "Total number of API calls",
    ["api_type", "operation", "result"],
)

api_call_duration_seconds = Histogram(
    "dex_operator_api_call_duration_seconds",
    "Duration of API calls in seconds",
    ["api_type", "operation"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

rate_limit_hits_total = Counter(
    "dex_operator_rate_limit_hits_total",
    "Total number of rate limit hits",
    ["api_type"],
)

error_total = Counter(
    "dex_operator_error_total",
    "Total number of reconcile errors",
    ["kind", "error_type"],
)
