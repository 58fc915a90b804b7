"""Tests for the configuration objects."""

import pytest

from hedera_solo import constants
from hedera_solo.config import LeaseConfig, ReadinessConfig, SoloConfig
from hedera_solo.exceptions import InputException, MissingArgumentError


def test_lease_defaults() -> None:
    """Test the default lease timings."""
    config = LeaseConfig()
    assert config.duration_seconds == constants.DEFAULT_LEASE_DURATION
    assert config.renewal_delay == constants.DEFAULT_LEASE_DURATION * 0.5


def test_lease_backoff() -> None:
    """Test the acquisition backoff doubles up to the ceiling."""
    config = LeaseConfig(duration_seconds=5, backoff_base_seconds=1.0)
    assert [config.backoff(attempt) for attempt in range(5)] == [
        1.0,
        2.0,
        4.0,
        5.0,
        5.0,
    ]
    config = LeaseConfig(backoff_base_seconds=0.5, backoff_max_seconds=1.0)
    assert config.backoff(3) == 1.0


def test_lease_from_env() -> None:
    """Test lease overrides from the environment."""
    config = LeaseConfig.from_env(
        {"SOLO_LEASE_DURATION": "30", "SOLO_LEASE_ACQUIRE_ATTEMPTS": "2"}
    )
    assert config.duration_seconds == 30
    assert config.acquire_attempts == 2
    assert config.renewal_delay == 15


def test_invalid_env() -> None:
    """Test an unparsable environment value."""
    with pytest.raises(InputException, match="SOLO_LEASE_DURATION"):
        LeaseConfig.from_env({"SOLO_LEASE_DURATION": "forever"})


def test_readiness_from_env() -> None:
    """Test readiness overrides, with the running delay in milliseconds."""
    config = ReadinessConfig.from_env(
        {
            "PODS_RUNNING_MAX_ATTEMPTS": "10",
            "PODS_RUNNING_DELAY": "250",
            "NETWORK_DESTROY_WAIT_TIMEOUT": "30",
        }
    )
    assert config.pods_running_max_attempts == 10
    assert config.pods_running_delay == 0.25
    assert config.network_destroy_timeout == 30.0


def test_readiness_empty_env() -> None:
    """Test defaults are used when nothing is set."""
    config = ReadinessConfig.from_env({"PODS_RUNNING_DELAY": ""})
    assert config.pods_running_max_attempts == constants.PODS_RUNNING_MAX_ATTEMPTS
    assert config.pods_running_delay == constants.PODS_RUNNING_DELAY


def test_target_namespace() -> None:
    """Test the namespace commands are serialized against."""
    assert SoloConfig(namespace="solo").target_namespace == "solo"
    assert (
        SoloConfig(cluster_setup_namespace="solo-setup").target_namespace
        == "solo-setup"
    )
    assert (
        SoloConfig(namespace="solo", cluster_setup_namespace="setup").target_namespace
        == "solo"
    )
    with pytest.raises(MissingArgumentError):
        SoloConfig().target_namespace


def test_solo_config_from_env() -> None:
    """Test building the top level config."""
    config = SoloConfig.from_env({"SOLO_LEASE_DURATION": "8"}, context="kind-solo")
    assert config.context == "kind-solo"
    assert config.lease.duration_seconds == 8
