"""Tests for ami_export/config.py"""

from __future__ import annotations

import pytest

from ami_export.config import (
    AccessConfig,
    PollingConfig,
    env_override_warnings,
    load_access_config,
    load_polling_config,
)
from ami_export.constants import DEFAULT_POLL_DELAY_SECONDS, DEFAULT_POLL_MAX_ATTEMPTS
from tests.assertions import assert_equal


def test_polling_defaults():
    """Defaults match the EC2 waiter defaults."""
    polling, errors = load_polling_config(None, environ={})

    assert_equal(errors, [])
    assert_equal(polling.delay_seconds, DEFAULT_POLL_DELAY_SECONDS)
    assert_equal(polling.max_attempts, DEFAULT_POLL_MAX_ATTEMPTS)
    assert polling.max_polls is None


def test_polling_from_mapping():
    """Values from the aws_polling mapping are applied."""
    polling, errors = load_polling_config(
        {"delay_seconds": 5, "max_attempts": "3", "backoff_multiplier": 2, "max_delay_seconds": 60, "max_polls": 10},
        environ={},
    )

    assert_equal(errors, [])
    assert_equal(polling, PollingConfig(delay_seconds=5, max_attempts=3, backoff_multiplier=2.0, max_delay_seconds=60.0, max_polls=10))


def test_environment_overrides_mapping():
    """AWS_POLL_DELAY_SECONDS and AWS_MAX_ATTEMPTS win over the mapping."""
    polling, errors = load_polling_config(
        {"delay_seconds": 5, "max_attempts": 3},
        environ={"AWS_POLL_DELAY_SECONDS": "7", "AWS_MAX_ATTEMPTS": "9"},
    )

    assert_equal(errors, [])
    assert_equal(polling.delay_seconds, 7)
    assert_equal(polling.max_attempts, 9)


@pytest.mark.parametrize("bad_value", [0, -1, "abc", True])
def test_invalid_polling_values_are_reported(bad_value):
    """Non-positive or non-numeric values become field errors."""
    _, errors = load_polling_config({"delay_seconds": bad_value}, environ={})

    assert_equal([error.field for error in errors], ["aws_polling.delay_seconds"])
    assert "positive integer" in errors[0].message


def test_backoff_multiplier_below_one_is_rejected():
    """A shrinking backoff makes no sense and is rejected."""
    _, errors = load_polling_config({"backoff_multiplier": 0.5}, environ={})

    assert_equal([error.field for error in errors], ["aws_polling.backoff_multiplier"])


def test_non_mapping_polling_is_rejected():
    """aws_polling must be a mapping."""
    polling, errors = load_polling_config("fast", environ={})

    assert_equal([error.field for error in errors], ["aws_polling"])
    assert_equal(polling, PollingConfig())


def test_delay_for_fixed_and_exponential():
    """delay_for grows by the multiplier and stops at the cap."""
    fixed = PollingConfig(delay_seconds=10)
    growing = PollingConfig(delay_seconds=10, backoff_multiplier=2.0, max_delay_seconds=50)

    assert_equal([fixed.delay_for(n) for n in range(3)], [10, 10, 10])
    assert_equal([growing.delay_for(n) for n in range(4)], [10, 20, 40, 50])


def test_env_override_warnings():
    """Each active override is described once."""
    warnings = env_override_warnings({"AWS_POLL_DELAY_SECONDS": "30", "AWS_MAX_ATTEMPTS": ""})

    assert_equal(warnings, ["AWS_POLL_DELAY_SECONDS=30 overrides polling delay_seconds"])


def test_load_access_config_and_secrets():
    """Access keys are read and only non-empty credentials count as secrets."""
    access = load_access_config(
        {"access_key": "AKIAEXAMPLE", "secret_key": "s3cr3t", "region": "eu-west-2", "image_id": "ami-1"}
    )

    assert_equal(access.region, "eu-west-2")
    assert access.has_static_credentials
    assert_equal(access.secrets(), ["AKIAEXAMPLE", "s3cr3t"])


def test_access_config_repr_hides_credentials():
    """repr never includes key material."""
    access = AccessConfig(access_key="AKIAEXAMPLE", secret_key="s3cr3t", token="tok", region="us-east-1")

    text = repr(access)

    for secret in ("AKIAEXAMPLE", "s3cr3t", "tok"):
        assert secret not in text


def test_delay_for_stays_at_cap_on_long_waits():
    """A large multiplier over thousands of polls stays at the cap instead of overflowing."""
    polling = PollingConfig(delay_seconds=15, backoff_multiplier=10.0, max_delay_seconds=300)

    assert_equal(polling.delay_for(5000), 300)
    assert_equal([polling.delay_for(n) for n in range(3)], [15, 150, 300])


def test_delay_never_exceeds_cap_when_base_is_larger():
    polling = PollingConfig(delay_seconds=600, backoff_multiplier=2.0, max_delay_seconds=300)

    assert_equal(polling.delay_for(0), 300)


def test_request_timeout_from_mapping():
    polling, errors = load_polling_config({"request_timeout_seconds": "12.5"}, environ={})

    assert_equal(errors, [])
    assert_equal(polling.request_timeout_seconds, 12.5)


@pytest.mark.parametrize("bad_value", [0, -3, "slow"])
def test_invalid_request_timeout_is_reported(bad_value):
    _, errors = load_polling_config({"request_timeout_seconds": bad_value}, environ={})

    assert_equal([error.field for error in errors], ["aws_polling.request_timeout_seconds"])
