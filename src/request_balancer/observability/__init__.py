# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Observability and metrics for the Request Balancer.

Classes:
    MetricsCollector: Per-balancer collector mirroring metrics into Prometheus.
    MetricDefinition: Schema of a predefined metric.

Constants:
    All metric name constants from the constants module.
"""

from .collector import METRIC_DEFINITIONS, MetricDefinition, MetricsCollector
from .constants import (
    COOLDOWN_WAITS_TOTAL,
    DISPATCH_LOOPS_STARTED_TOTAL,
    IN_FLIGHT_ITEMS,
    ITEMS_COMPLETED_TOTAL,
    ITEMS_DISPATCHED_TOTAL,
    ITEMS_DROPPED_TOTAL,
    ITEMS_FAILED_TOTAL,
    ITEMS_RETRIED_TOTAL,
    ITEMS_SUBMITTED_TOTAL,
    LATENCY_BUCKETS,
    METRIC_PREFIX,
    OPERATION_DURATION_SECONDS,
    OVERHEAT_WAITS_TOTAL,
    PENDING_ITEMS,
)

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
    "METRIC_DEFINITIONS",
    "METRIC_PREFIX",
    "OPERATION_DURATION_SECONDS",
    "OVERHEAT_WAITS_TOTAL",
    "PENDING_ITEMS",
    "MetricDefinition",
    "MetricsCollector",
]
