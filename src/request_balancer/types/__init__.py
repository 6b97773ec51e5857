# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Type definitions and constants."""

from .partition import Partition, Selection, WorkItem
from .rule import Rule

__all__ = [
    # Partition types
    "Partition",
    # Rules
    "Rule",
    "Selection",
    "WorkItem",
]
