# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Partition and work item types.

This module defines the core data structures the balancer schedules: work
items waiting to run, the per-key FIFO partitions that hold them, and the
result of a selection pass.
"""

import uuid
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .rule import Rule

if TYPE_CHECKING:
    from ..protocols.operation import CompletionCallback, Operation


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class WorkItem:
    """
    A unit of work waiting in a partition.

    Attributes:
        operation: Caller-supplied callable invoked with the retry signal
        callback: Completion sink, called once with ``(error, value)``
        item_id: Unique identifier, kept across retries
        attempts: Number of times the operation has been started
    """

    operation: "Operation"
    callback: "CompletionCallback"
    item_id: str = field(default_factory=_new_id)
    attempts: int = 0


@dataclass
class Partition:
    """
    Independent FIFO of work items sharing one key.

    The rule binding is fixed when the partition is created; later
    submissions for the same key reuse it whatever rule name they carry.

    Attributes:
        key: Partition key supplied by callers
        rule: Rule resolved at creation time (shared by reference)
        rule_name: Name the rule was resolved from
        cooldown_until: Monotonic timestamp at which the partition becomes
            eligible for selection again
        items: Pending work items in submission order
        partition_id: Unique identifier used in log output
    """

    key: str
    rule: Rule
    rule_name: str
    cooldown_until: float = 0.0
    items: deque[WorkItem] = field(default_factory=deque)
    partition_id: str = field(default_factory=_new_id)

    def __len__(self) -> int:
        return len(self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def is_cool(self, now: float) -> bool:
        """Whether the partition's cooldown has elapsed at ``now``."""
        return self.cooldown_until <= now


@dataclass
class Selection:
    """
    Outcome of one priority selection pass.

    Attributes:
        partition: Most eligible non-empty partition, or None
        next_eligible_at: Soonest future cooldown deadline among partitions
            that are still cooling, or None when nothing is cooling
    """

    partition: Partition | None = None
    next_eligible_at: float | None = None


__all__ = [
    "Partition",
    "Selection",
    "WorkItem",
]
