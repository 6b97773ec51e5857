# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Rule types for rate windows and priorities.

A rule describes how often partitions bound to it may dispatch work and how
urgent they are relative to partitions bound to other rules.
"""

from dataclasses import dataclass

from ..exceptions import ConfigurationError


@dataclass
class Rule:
    """
    Named rate/limit/priority triple.

    ``limit`` dispatches are allowed per ``rate`` window units, which yields a
    cooldown window of ``limit / rate`` seconds between two dispatches of the
    same partition. Lower ``priority`` values are served first.

    Rules are shared by reference: every partition and every alias bound to
    a rule observes in-place updates made through ``update_from``.

    Attributes:
        rate: Dispatches per unit of time (must be positive)
        limit: Size of the unit of time in seconds (must be positive)
        priority: Relative urgency, lower is more urgent
    """

    rate: float
    limit: float
    priority: int = 0

    def __post_init__(self) -> None:
        """Validate the rule after initialization."""
        if self.rate <= 0:
            raise ConfigurationError("rule rate must be positive", field="rate")
        if self.limit <= 0:
            raise ConfigurationError("rule limit must be positive", field="limit")

    @property
    def window(self) -> float:
        """Cooldown window in seconds applied after each dispatch."""
        return self.limit / self.rate

    def update_from(self, other: "Rule") -> None:
        """Copy another rule's values into this instance."""
        self.rate = other.rate
        self.limit = other.limit
        self.priority = other.priority


__all__ = ["Rule"]
