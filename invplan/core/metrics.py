"""Prometheus metrics for monitoring."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# Facade operation metrics
planning_operations_total = Counter(
    "planning_operations_total",
    "Total planning operations executed",
    ["operation", "status"],  # status: success, failed
)

planning_operation_duration_seconds = Histogram(
    "planning_operation_duration_seconds",
    "Planning operation duration in seconds",
    ["operation"],
    buckets=[0.001, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 30.0],
)

planning_items_processed_total = Counter(
    "planning_items_processed_total",
    "Total SKUs processed successfully",
    ["operation"],
)

planning_item_errors_total = Counter(
    "planning_item_errors_total",
    "Total SKUs that failed and were reported as item errors",
    ["operation"],
)

# Upstream inventory provider
provider_failures_total = Counter(
    "provider_failures_total",
    "Total inventory provider fetch failures",
    ["operation"],
)

# Latest reorder plan
reorder_plan_units = Gauge(
    "reorder_plan_units",
    "Units allocated in the most recent reorder plan",
)

reorder_plan_cost = Gauge(
    "reorder_plan_cost",
    "Cost allocated in the most recent reorder plan",
)
