"""Unit tests for the exceptions module.

Tests all exception classes defined in request_balancer.exceptions.
"""

import pytest

from request_balancer.exceptions import (
    BalancerClosedError,
    BalancerError,
    ConfigurationError,
    SchedulerInvariantError,
)


class TestBalancerError:
    """Tests for the base BalancerError exception."""

    def test_can_be_caught_as_exception(self):
        """BalancerError can be caught as a standard Exception."""
        with pytest.raises(Exception):  # noqa: B017
            raise BalancerError("test error")

    def test_message_preserved(self):
        """BalancerError preserves its message."""
        assert str(BalancerError("test message")) == "test message"


class TestConfigurationError:
    """Tests for ConfigurationError."""

    def test_can_be_caught_as_balancer_error(self):
        with pytest.raises(BalancerError):
            raise ConfigurationError("bad config")

    def test_stores_field(self):
        error = ConfigurationError("rate must be positive", field="rate")
        assert error.field == "rate"
        assert str(error) == "rate must be positive"

    def test_field_defaults_to_none(self):
        assert ConfigurationError("bad").field is None


class TestBalancerClosedError:
    """Tests for BalancerClosedError."""

    def test_default_message(self):
        assert str(BalancerClosedError()) == "Balancer is closed"

    def test_can_be_caught_as_balancer_error(self):
        with pytest.raises(BalancerError):
            raise BalancerClosedError()


class TestSchedulerInvariantError:
    """Tests for SchedulerInvariantError."""

    def test_stores_partition_key(self):
        error = SchedulerInvariantError("empty partition", partition_key="users")
        assert error.partition_key == "users"
        assert isinstance(error, BalancerError)

    def test_partition_key_defaults_to_none(self):
        assert SchedulerInvariantError("broken").partition_key is None
