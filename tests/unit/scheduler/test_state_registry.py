"""
Unit tests for RuleRegistry.
"""

import pytest

from request_balancer.scheduler.state import RuleRegistry
from request_balancer.types.rule import Rule


class TestRuleRegistryResolve:
    """Tests for resolving rules by name."""

    def test_resolves_registered_rule(self, registry, rules):
        assert registry.resolve("urgent") is rules["urgent"]

    def test_unknown_name_aliases_default(self, registry, rules):
        rule = registry.resolve("typo")

        assert rule is rules["common"]
        assert "typo" in registry
        assert rules["typo"] is rules["common"]

    def test_alias_is_permanent(self, registry):
        first = registry.resolve("typo")
        second = registry.resolve("typo")
        assert first is second
        assert registry.names().count("typo") == 1

    def test_get_does_not_alias(self, registry):
        assert registry.get("typo") is None
        assert "typo" not in registry

    def test_missing_default_rejected(self):
        with pytest.raises(KeyError):
            RuleRegistry({"api": Rule(rate=1, limit=1)}, "common")

    def test_default_properties(self, registry, rules):
        assert registry.default_name == "common"
        assert registry.default is rules["common"]
        assert len(registry) == 3


class TestRuleRegistryDefine:
    """Tests for defining and redefining rules."""

    def test_define_new_rule(self, registry):
        rule = Rule(rate=2, limit=1, priority=0)
        assert registry.define("new", rule) is rule
        assert registry.resolve("new") is rule

    def test_redefine_updates_in_place(self, registry, rules):
        original = rules["urgent"]

        result = registry.define("urgent", Rule(rate=1, limit=4, priority=7))

        assert result is original
        assert original.window == pytest.approx(4.0)
        assert original.priority == 7

    def test_redefining_default_reaches_aliases(self, registry):
        alias = registry.resolve("typo")

        registry.define("common", Rule(rate=5, limit=1, priority=2))

        assert alias.rate == 5
        assert alias.priority == 2
