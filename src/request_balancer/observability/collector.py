# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Metrics collector backed by both a dict snapshot and Prometheus metrics.

Each balancer owns its own collector and, by default, its own Prometheus
CollectorRegistry, so several balancers in one process never share or
collide on metric state.

Usage:
    >>> from request_balancer.observability import MetricsCollector
    >>> collector = MetricsCollector()
    >>> collector.inc_counter('request_balancer_items_submitted_total',
    ...                       labels={'rule': 'common'})
    >>> metrics = collector.get_metrics()

Thread Safety:
    All operations are thread-safe. Uses RLock for reentrant locking.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, ClassVar

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

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
    OPERATION_DURATION_SECONDS,
    OVERHEAT_WAITS_TOTAL,
    PENDING_ITEMS,
)

logger = logging.getLogger(__name__)


@dataclass
class MetricDefinition:
    """
    Definition for a metric that can be instantiated.

    This dataclass defines the schema for metrics, including their type,
    description, labels, and histogram buckets.
    """

    name: str
    metric_type: str  # 'counter', 'gauge', 'histogram'
    description: str
    label_names: tuple[str, ...] = ()
    buckets: list[float] | None = None


METRIC_DEFINITIONS: dict[str, MetricDefinition] = {
    ITEMS_SUBMITTED_TOTAL: MetricDefinition(
        ITEMS_SUBMITTED_TOTAL, "counter", "Total items submitted", ("rule",)
    ),
    ITEMS_DISPATCHED_TOTAL: MetricDefinition(
        ITEMS_DISPATCHED_TOTAL, "counter", "Total items dispatched", ("rule",)
    ),
    ITEMS_COMPLETED_TOTAL: MetricDefinition(
        ITEMS_COMPLETED_TOTAL, "counter", "Total items completed successfully", ("rule",)
    ),
    ITEMS_FAILED_TOTAL: MetricDefinition(
        ITEMS_FAILED_TOTAL, "counter", "Total items failed", ("rule",)
    ),
    ITEMS_RETRIED_TOTAL: MetricDefinition(
        ITEMS_RETRIED_TOTAL, "counter", "Total retry resubmissions scheduled", ("rule",)
    ),
    ITEMS_DROPPED_TOTAL: MetricDefinition(
        ITEMS_DROPPED_TOTAL, "counter", "Total pending items dropped by clear", ()
    ),
    DISPATCH_LOOPS_STARTED_TOTAL: MetricDefinition(
        DISPATCH_LOOPS_STARTED_TOTAL, "counter", "Total dispatch loop starts", ()
    ),
    COOLDOWN_WAITS_TOTAL: MetricDefinition(
        COOLDOWN_WAITS_TOTAL, "counter", "Total waits for a partition cooldown", ()
    ),
    OVERHEAT_WAITS_TOTAL: MetricDefinition(
        OVERHEAT_WAITS_TOTAL, "counter", "Total waits for the overheat window", ()
    ),
    PENDING_ITEMS: MetricDefinition(
        PENDING_ITEMS, "gauge", "Items queued but not yet dispatched", ()
    ),
    IN_FLIGHT_ITEMS: MetricDefinition(
        IN_FLIGHT_ITEMS, "gauge", "Items currently executing", ()
    ),
    OPERATION_DURATION_SECONDS: MetricDefinition(
        OPERATION_DURATION_SECONDS,
        "histogram",
        "Duration of caller operations",
        ("rule",),
        buckets=LATENCY_BUCKETS,
    ),
}


class MetricsCollector:
    """
    Metrics collector supporting both dict-based and Prometheus metrics.

    Cardinality Protection:
        To prevent unbounded memory growth, a maximum of MAX_LABEL_COMBINATIONS
        unique label combinations are tracked per metric. Rule names can grow
        through implicit aliasing, so the cap matters here.

    Example:
        >>> collector = MetricsCollector()
        >>> collector.inc_counter(ITEMS_DISPATCHED_TOTAL, labels={'rule': 'common'})
        >>> collector.get_metrics()["counters"]
    """

    MAX_LABEL_COMBINATIONS: ClassVar[int] = 1000

    def __init__(
        self,
        enable_prometheus: bool = True,
        registry: CollectorRegistry | None = None,
    ) -> None:
        """
        Initialize the metrics collector.

        Args:
            enable_prometheus: Whether to mirror metrics into Prometheus
            registry: Prometheus registry to register into. A private
                registry is created when omitted.
        """
        self._enable_prometheus = enable_prometheus
        self._registry = registry if registry is not None else CollectorRegistry()

        self._counters: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
        self._gauges: dict[str, dict[str, float]] = defaultdict(lambda: defaultdict(float))
        self._histograms: dict[str, dict[str, list[float]]] = defaultdict(
            lambda: defaultdict(list)
        )

        self._lock = threading.RLock()
        self._prom_metrics: dict[str, Any] = {}
        self._label_combinations: dict[str, set[str]] = defaultdict(set)
        self._server_running = False

        logger.debug(
            f"MetricsCollector initialized "
            f"(prometheus={'enabled' if self._enable_prometheus else 'disabled'})"
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    @property
    def server_running(self) -> bool:
        return self._server_running

    def _labels_to_key(self, labels: dict[str, str] | None) -> str:
        """Convert labels dict to a stable string key."""
        if not labels:
            return ""
        return ",".join(f"{k}={v}" for k, v in sorted(labels.items()))

    def _check_cardinality(self, name: str, label_key: str) -> bool:
        """
        Check if adding this label combination would exceed cardinality limit.

        Returns:
            True if the label combination is allowed, False otherwise
        """
        if label_key in self._label_combinations[name]:
            return True
        if len(self._label_combinations[name]) >= self.MAX_LABEL_COMBINATIONS:
            logger.warning(
                f"Cardinality limit ({self.MAX_LABEL_COMBINATIONS}) reached "
                f"for metric {name}. Dropping label combination: {label_key}"
            )
            return False
        self._label_combinations[name].add(label_key)
        return True

    def _get_or_create_prom_metric(self, name: str) -> Any | None:
        """Get or create the Prometheus metric registered under ``name``."""
        if not self._enable_prometheus:
            return None

        with self._lock:
            if name in self._prom_metrics:
                return self._prom_metrics[name]

            defn = METRIC_DEFINITIONS.get(name)
            if defn is None:
                logger.debug(f"No definition for metric {name}, skipping Prometheus")
                return None

            try:
                if defn.metric_type == "counter":
                    metric = Counter(
                        name,
                        defn.description,
                        list(defn.label_names),
                        registry=self._registry,
                    )
                elif defn.metric_type == "gauge":
                    metric = Gauge(
                        name,
                        defn.description,
                        list(defn.label_names),
                        registry=self._registry,
                    )
                else:
                    metric = Histogram(
                        name,
                        defn.description,
                        list(defn.label_names),
                        buckets=defn.buckets or LATENCY_BUCKETS,
                        registry=self._registry,
                    )
            except ValueError as e:
                logger.warning(f"Failed to create Prometheus metric {name}: {e}")
                return None

            self._prom_metrics[name] = metric
            return metric

    @staticmethod
    def _bind(metric: Any, labels: dict[str, str] | None) -> Any:
        return metric.labels(**labels) if labels else metric

    # === Counter Operations ===

    def inc_counter(
        self,
        name: str,
        value: int = 1,
        labels: dict[str, str] | None = None,
    ) -> None:
        """
        Increment a counter metric.

        Raises:
            ValueError: If value is negative
        """
        if value < 0:
            raise ValueError("Counter increment must be non-negative")

        label_key = self._labels_to_key(labels)
        with self._lock:
            if not self._check_cardinality(name, label_key):
                return
            self._counters[name][label_key] += value

        metric = self._get_or_create_prom_metric(name)
        if metric is not None:
            self._bind(metric, labels).inc(value)

    # === Gauge Operations ===

    def set_gauge(
        self,
        name: str,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge metric to a specific value."""
        label_key = self._labels_to_key(labels)
        with self._lock:
            if not self._check_cardinality(name, label_key):
                return
            self._gauges[name][label_key] = value

        metric = self._get_or_create_prom_metric(name)
        if metric is not None:
            self._bind(metric, labels).set(value)

    # === Histogram Operations ===

    def observe_histogram(
        self,
        name: str,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        """Record an observation in a histogram."""
        label_key = self._labels_to_key(labels)
        with self._lock:
            if not self._check_cardinality(name, label_key):
                return
            observations = self._histograms[name][label_key]
            observations.append(value)
            # Keep only recent observations
            if len(observations) > 10000:
                self._histograms[name][label_key] = observations[-5000:]

        metric = self._get_or_create_prom_metric(name)
        if metric is not None:
            self._bind(metric, labels).observe(value)

    # === Snapshot Operations ===

    def get_metrics(self) -> dict[str, Any]:
        """
        Get a snapshot of all metrics.

        Returns a dict suitable for JSON serialization with structure:
        {
            "counters": {"metric_name": {"label_key": value, ...}, ...},
            "gauges": {"metric_name": {"label_key": value, ...}, ...},
            "histograms": {"metric_name": {"label_key": {...}, ...}, ...}
        }
        """
        with self._lock:
            counters = {name: dict(values) for name, values in self._counters.items()}
            gauges = {name: dict(values) for name, values in self._gauges.items()}

            histograms: dict[str, dict[str, dict[str, Any]]] = {}
            for name, label_values in self._histograms.items():
                histograms[name] = {}
                for label_key, observations in label_values.items():
                    if observations:
                        histograms[name][label_key] = {
                            "count": len(observations),
                            "sum": sum(observations),
                            "avg": sum(observations) / len(observations),
                            "min": min(observations),
                            "max": max(observations),
                        }

        return {
            "counters": counters,
            "gauges": gauges,
            "histograms": histograms,
        }

    def get_counter(self, name: str, labels: dict[str, str] | None = None) -> int:
        """Current dict-side value of a counter."""
        with self._lock:
            return self._counters.get(name, {}).get(self._labels_to_key(labels), 0)

    def get_gauge(self, name: str, labels: dict[str, str] | None = None) -> float:
        """Current dict-side value of a gauge."""
        with self._lock:
            return self._gauges.get(name, {}).get(self._labels_to_key(labels), 0.0)

    def reset(self) -> None:
        """Clear the dict-side metrics. Prometheus metrics are left untouched."""
        with self._lock:
            self._counters.clear()
            self._gauges.clear()
            self._histograms.clear()
            self._label_combinations.clear()

    # === HTTP Server ===

    def start_http_server(self, host: str = "127.0.0.1", port: int = 9090) -> bool:
        """
        Expose this collector's registry over HTTP for Prometheus scraping.

        Returns:
            True if the server was started, False if already running or
            Prometheus is disabled
        """
        if not self._enable_prometheus or self._server_running:
            return False

        start_http_server(port, addr=host, registry=self._registry)
        self._server_running = True
        logger.info(f"Prometheus metrics server started on {host}:{port}")
        return True


__all__ = [
    "METRIC_DEFINITIONS",
    "MetricDefinition",
    "MetricsCollector",
]
