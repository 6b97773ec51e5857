# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Request Balancer - Priority-aware, rate-limited scheduling for async work.

Callers submit operations tagged with a partition key and a named rule. The
balancer starts at most one item per partition at a time, spaces starts by
each rule's window, serves lower priority numbers first and, optionally,
caps throughput across all partitions combined.

Key Features:
    - Per-key FIFO partitions with lazily created rule bindings
    - Rule windows that gate dispatch starts, not caller latency
    - Priority selection across partitions
    - Optional global overheat window
    - Caller-driven retry with delay
    - Prometheus metrics per balancer instance

Quick Start:
    >>> from request_balancer import Balancer, BalancerConfig, Rule
    >>>
    >>> config = BalancerConfig(rules={"search": Rule(rate=2, limit=1, priority=1)})
    >>> async def fetch(retry):
    ...     response = await client.get("/search")
    ...     if response.status_code == 429:
    ...         retry(5)
    ...     return response
    >>>
    >>> async with Balancer(config) as balancer:
    ...     response = await balancer.request(fetch, key="tenant-a", rule="search")

Main Exports:
    - Balancer, create_balancer: Core scheduling components
    - BalancerConfig, DefaultTarget, Rule: Configuration
    - MetricsCollector: Observability

Version: 1.0.0
"""

__version__ = "1.0.0"

from .exceptions import (
    BalancerClosedError,
    BalancerError,
    ConfigurationError,
    SchedulerInvariantError,
)
from .observability import MetricsCollector
from .protocols import CompletionCallback, Operation, RetrySignal
from .scheduler import (
    Balancer,
    BalancerConfig,
    DefaultTarget,
    create_balancer,
)
from .types import Partition, Rule, WorkItem

__all__ = [
    # Scheduler
    "Balancer",
    "BalancerClosedError",
    # Config
    "BalancerConfig",
    # Exceptions
    "BalancerError",
    # Protocols
    "CompletionCallback",
    "ConfigurationError",
    "DefaultTarget",
    # Observability
    "MetricsCollector",
    "Operation",
    # Types
    "Partition",
    "RetrySignal",
    "Rule",
    "SchedulerInvariantError",
    "WorkItem",
    "create_balancer",
]
