"""Prometheus metrics for rule application, policy lookups and overdue calculation"""

from typing import Optional

from prometheus_client import Counter, Histogram

# Rules metrics
rule_application_counter = Counter(
    "circulation_rules_applied_total",
    "Circulation rule applications",
    ["policy_type", "outcome"],  # applied | error
)

# Policy metrics
policy_fetch_failures_counter = Counter(
    "policy_fetch_failures_total",
    "Failed policy storage calls",
    ["policy_type"],
)

# Storage metrics
storage_request_histogram = Histogram(
    "storage_request_duration_seconds",
    "Storage module response time",
    ["path"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

# Overdue metrics
overdue_minutes_histogram = Histogram(
    "overdue_minutes",
    "Billable overdue minutes per calculation",
    buckets=[0, 60, 1440, 10080, 44640, 133920],
)

overdue_not_applicable_counter = Counter(
    "overdue_not_applicable_total",
    "Overdue calculations whose preconditions were not met",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_overdue_calculation(overdue_minutes: Optional[int]) -> None:
    """Record overdue outcome for monitoring fine volumes"""
    if overdue_minutes is None:
        overdue_not_applicable_counter.inc()
    else:
        overdue_minutes_histogram.observe(overdue_minutes)
