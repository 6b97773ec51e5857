# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Balancer and its configuration.

This module provides:
- Balancer: The rate-limited dispatch loop and public facade
- BalancerConfig, DefaultTarget: Configuration for balancer behavior
- RuleRegistry, PartitionStore, CooldownTracker: Per-balancer state
"""

from .balancer import Balancer, create_balancer
from .config import (
    DEFAULT_PARTITION_KEY,
    DEFAULT_RETRY_TIME,
    DEFAULT_RULE_NAME,
    BalancerConfig,
    DefaultTarget,
)
from .state import CooldownTracker, PartitionStore, RuleRegistry

__all__ = [
    "DEFAULT_PARTITION_KEY",
    "DEFAULT_RETRY_TIME",
    "DEFAULT_RULE_NAME",
    # Balancer
    "Balancer",
    # Config
    "BalancerConfig",
    # State
    "CooldownTracker",
    "DefaultTarget",
    "PartitionStore",
    "RuleRegistry",
    "create_balancer",
]
