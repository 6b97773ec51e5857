# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
In-memory scheduling state owned by a single balancer.

This module provides:
- RuleRegistry: Named rules with implicit aliasing to the default
- PartitionStore: Keyed FIFO partitions
- CooldownTracker: Partition cooldowns and the global overheat window
"""

from .cooldown import CooldownTracker
from .registry import RuleRegistry
from .store import PartitionStore

__all__ = [
    "CooldownTracker",
    "PartitionStore",
    "RuleRegistry",
]
