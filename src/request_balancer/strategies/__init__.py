# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Selection strategies used by the dispatch loop."""

from .selection import PrioritySelector, scan_partitions

__all__ = [
    "PrioritySelector",
    "scan_partitions",
]
