# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Balancer Configuration for Request Balancer

This module provides configuration classes for the balancer, including
named rules, the default rule/key pair, the overall throughput rule and
retry settings.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from ..exceptions import ConfigurationError
from ..types.rule import Rule

DEFAULT_RULE_NAME = "common"
DEFAULT_PARTITION_KEY = "common"
DEFAULT_RETRY_TIME = 300.0


def default_rules() -> dict[str, Rule]:
    """Built-in rules every configuration starts from."""
    return {DEFAULT_RULE_NAME: Rule(rate=30, limit=1, priority=3)}


def default_overall_rule() -> Rule:
    """Built-in rule for the global throughput cap."""
    return Rule(rate=30, limit=1, priority=1)


@dataclass
class DefaultTarget:
    """Rule name and partition key used when a submission omits them."""

    rule: str = DEFAULT_RULE_NAME
    """Rule name applied to submissions without an explicit rule."""

    key: str = DEFAULT_PARTITION_KEY
    """Partition key applied to submissions without an explicit key."""


@dataclass
class BalancerConfig:
    """
    Configuration for the balancer.

    User-supplied rules are merged over the built-in ``common`` rule, so the
    default rule is always resolvable unless ``default.rule`` names a rule
    that was never defined.
    """

    rules: dict[str, Rule] = field(default_factory=default_rules)
    """Named rules. Merged over the built-in rules."""

    default: DefaultTarget = field(default_factory=DefaultTarget)
    """Default rule name and partition key."""

    overall: Rule = field(default_factory=default_overall_rule)
    """Rule whose window spaces dispatches across all partitions combined."""

    retry_time: float = DEFAULT_RETRY_TIME
    """Retry delay in seconds when an operation signals retry without one."""

    ignore_overall_overheat: bool = True
    """Skip global overheat bookkeeping entirely."""

    metrics_enabled: bool = True
    """Enable metrics collection."""

    def __post_init__(self) -> None:
        """Merge rules over the defaults and validate."""
        merged = default_rules()
        for name, rule in self.rules.items():
            if not isinstance(rule, Rule):
                raise ConfigurationError(
                    f"rule {name!r} must be a Rule instance", field="rules"
                )
            merged[name] = rule
        self.rules = merged

        if self.default.rule not in self.rules:
            raise ConfigurationError(
                f"default rule {self.default.rule!r} is not defined",
                field="default",
            )
        if self.retry_time < 0:
            raise ConfigurationError("retry_time must be non-negative", field="retry_time")

    @property
    def overall_window(self) -> float:
        """Global overheat window in seconds."""
        return self.overall.window

    def copy_rules(self) -> dict[str, Rule]:
        """
        Deep copy of ``rules`` for one balancer to own.

        Every Rule is copied, but names that share one Rule object (aliases)
        still share a single copy.
        """
        copies: dict[int, Rule] = {}
        result: dict[str, Rule] = {}
        for name, rule in self.rules.items():
            if id(rule) not in copies:
                copies[id(rule)] = replace(rule)
            result[name] = copies[id(rule)]
        return result

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BalancerConfig":
        """
        Build a configuration from a plain mapping.

        Accepts ``rules``, ``default``, ``overall``, ``retry_time`` (or
        ``retryTime``), ``ignore_overall_overheat`` (or
        ``ignoreOverallOverheat``) and ``metrics_enabled``. Rule values may
        be Rule instances or mappings of Rule fields.

        Raises:
            ConfigurationError: On unknown keys or invalid values
        """
        aliases = {
            "retryTime": "retry_time",
            "ignoreOverallOverheat": "ignore_overall_overheat",
        }
        allowed = {
            "rules",
            "default",
            "overall",
            "retry_time",
            "ignore_overall_overheat",
            "metrics_enabled",
        }

        kwargs: dict[str, Any] = {}
        for raw_key, value in data.items():
            key = aliases.get(raw_key, raw_key)
            if key not in allowed:
                raise ConfigurationError(f"unknown configuration key {raw_key!r}", field=raw_key)
            kwargs[key] = value

        if "rules" in kwargs:
            kwargs["rules"] = {
                name: _coerce_rule(value, f"rules.{name}")
                for name, value in kwargs["rules"].items()
            }
        if "overall" in kwargs:
            kwargs["overall"] = _coerce_rule(kwargs["overall"], "overall")
        if "default" in kwargs and not isinstance(kwargs["default"], DefaultTarget):
            try:
                kwargs["default"] = DefaultTarget(**kwargs["default"])
            except TypeError as e:
                raise ConfigurationError(f"invalid default target: {e}", field="default") from e

        return cls(**kwargs)


def _coerce_rule(value: Rule | Mapping[str, Any], field_name: str) -> Rule:
    if isinstance(value, Rule):
        return value
    try:
        return Rule(**value)
    except TypeError as e:
        raise ConfigurationError(f"invalid rule {field_name}: {e}", field=field_name) from e


__all__ = [
    "DEFAULT_PARTITION_KEY",
    "DEFAULT_RETRY_TIME",
    "DEFAULT_RULE_NAME",
    "BalancerConfig",
    "DefaultTarget",
]
