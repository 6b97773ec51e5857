# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Metric name constants following Prometheus naming conventions.

All metric names use the `request_balancer_` prefix.

Naming Conventions:
    - Counter metrics end with `_total`
    - Histogram metrics for time end with `_seconds`
    - Gauges use present-tense descriptive names

Label Best Practices:
    Only `rule` is used as a label. Partition keys and item ids are
    unbounded and must never become labels.
"""

METRIC_PREFIX = "request_balancer"
"""Prefix for all Prometheus metrics in this library."""


# =============================================================================
# Item lifecycle counters
# =============================================================================

ITEMS_SUBMITTED_TOTAL = f"{METRIC_PREFIX}_items_submitted_total"
"""Total items submitted, including retry resubmissions."""

ITEMS_DISPATCHED_TOTAL = f"{METRIC_PREFIX}_items_dispatched_total"
"""Total items whose operation was started."""

ITEMS_COMPLETED_TOTAL = f"{METRIC_PREFIX}_items_completed_total"
"""Total items settled with a value."""

ITEMS_FAILED_TOTAL = f"{METRIC_PREFIX}_items_failed_total"
"""Total items settled with an error."""

ITEMS_RETRIED_TOTAL = f"{METRIC_PREFIX}_items_retried_total"
"""Total retry resubmissions scheduled."""

ITEMS_DROPPED_TOTAL = f"{METRIC_PREFIX}_items_dropped_total"
"""Total pending items dropped by clear()."""


# =============================================================================
# Dispatch loop counters
# =============================================================================

DISPATCH_LOOPS_STARTED_TOTAL = f"{METRIC_PREFIX}_dispatch_loops_started_total"
"""Total transitions from idle to pending."""

COOLDOWN_WAITS_TOTAL = f"{METRIC_PREFIX}_cooldown_waits_total"
"""Total selector suspensions waiting for a partition cooldown."""

OVERHEAT_WAITS_TOTAL = f"{METRIC_PREFIX}_overheat_waits_total"
"""Total selector suspensions waiting for the global overheat window."""


# =============================================================================
# Gauges and histograms
# =============================================================================

PENDING_ITEMS = f"{METRIC_PREFIX}_pending_items"
"""Items queued but not yet dispatched."""

IN_FLIGHT_ITEMS = f"{METRIC_PREFIX}_in_flight_items"
"""Items whose operation is currently executing."""

OPERATION_DURATION_SECONDS = f"{METRIC_PREFIX}_operation_duration_seconds"
"""Duration of caller operations."""

LATENCY_BUCKETS = [0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0]
"""Histogram buckets for operation durations."""


__all__ = [
    "COOLDOWN_WAITS_TOTAL",
    "DISPATCH_LOOPS_STARTED_TOTAL",
    "IN_FLIGHT_ITEMS",
    "ITEMS_COMPLETED_TOTAL",
    "ITEMS_DISPATCHED_TOTAL",
    "ITEMS_DROPPED_TOTAL",
    "ITEMS_FAILED_TOTAL",
    "ITEMS_RETRIED_TOTAL",
    "ITEMS_SUBMITTED_TOTAL",
    "LATENCY_BUCKETS",
    "METRIC_PREFIX",
    "OPERATION_DURATION_SECONDS",
    "OVERHEAT_WAITS_TOTAL",
    "PENDING_ITEMS",
]
