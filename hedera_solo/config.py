"""Configuration objects for hedera-solo.

Defaults come from `constants` and a handful of values may be overridden
with environment variables, which is how operators tune timeouts in CI.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
import os

from . import constants
from .exceptions import InputException, MissingArgumentError

__all__ = [
    "LeaseConfig",
    "ReadinessConfig",
    "SoloConfig",
]


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    if (value := env.get(key)) is None or value == "":
        return default
    try:
        return float(value)
    except ValueError as err:
        raise InputException(f"Invalid value for {key}: '{value}'") from err


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    if (value := env.get(key)) is None or value == "":
        return default
    try:
        return int(value)
    except ValueError as err:
        raise InputException(f"Invalid value for {key}: '{value}'") from err


@dataclass
class LeaseConfig:
    """Configuration for namespace leases."""

    duration_seconds: int = constants.DEFAULT_LEASE_DURATION
    """Duration a lease is valid for after it was last renewed."""

    acquire_attempts: int = constants.DEFAULT_LEASE_ACQUIRE_ATTEMPTS
    """Number of acquisition attempts before giving up."""

    backoff_base_seconds: float = 1.0
    """First delay between acquisition attempts, doubled on each retry."""

    backoff_max_seconds: float | None = None
    """Upper bound on the delay between attempts, defaults to the duration."""

    read_retries: int = constants.LEASE_READ_RETRIES
    """Number of retries for reading a lease when the API server returns 500."""

    read_retry_delay: float = constants.LEASE_READ_RETRY_DELAY
    """Delay between lease read retries."""

    @property
    def renewal_delay(self) -> float:
        """Seconds between two lease renewals."""
        return self.duration_seconds * 0.5

    def backoff(self, attempt: int) -> float:
        """Delay before retrying after the given zero based attempt."""
        ceiling = (
            self.backoff_max_seconds
            if self.backoff_max_seconds is not None
            else float(self.duration_seconds)
        )
        return min(self.backoff_base_seconds * (2**attempt), ceiling)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "LeaseConfig":
        """Build the lease configuration with environment overrides."""
        env = os.environ if env is None else env
        return cls(
            duration_seconds=_env_int(
                env, "SOLO_LEASE_DURATION", constants.DEFAULT_LEASE_DURATION
            ),
            acquire_attempts=_env_int(
                env,
                "SOLO_LEASE_ACQUIRE_ATTEMPTS",
                constants.DEFAULT_LEASE_ACQUIRE_ATTEMPTS,
            ),
        )


@dataclass
class ReadinessConfig:
    """Configuration for polling waits and timeouts."""

    pods_running_max_attempts: int = constants.PODS_RUNNING_MAX_ATTEMPTS
    pods_running_delay: float = constants.PODS_RUNNING_DELAY
    pods_ready_max_attempts: int = constants.PODS_READY_MAX_ATTEMPTS
    pods_ready_delay: float = constants.PODS_READY_DELAY

    network_destroy_timeout: float = constants.NETWORK_DESTROY_WAIT_TIMEOUT
    """Seconds a network teardown may run before the compensating action starts."""

    helm_timeout: float = constants.HELM_TIMEOUT
    """Seconds a single helm invocation may run."""

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "ReadinessConfig":
        """Build the readiness configuration with environment overrides."""
        env = os.environ if env is None else env
        return cls(
            pods_running_max_attempts=_env_int(
                env, "PODS_RUNNING_MAX_ATTEMPTS", constants.PODS_RUNNING_MAX_ATTEMPTS
            ),
            # Expressed in milliseconds in the environment
            pods_running_delay=_env_float(
                env, "PODS_RUNNING_DELAY", constants.PODS_RUNNING_DELAY * 1000
            )
            / 1000,
            network_destroy_timeout=_env_float(
                env,
                "NETWORK_DESTROY_WAIT_TIMEOUT",
                constants.NETWORK_DESTROY_WAIT_TIMEOUT,
            ),
        )


@dataclass
class SoloConfig:
    """Top level configuration handed to the managers and commands."""

    namespace: str | None = None
    """Namespace of the deployment a command operates on."""

    cluster_setup_namespace: str | None = None
    """Namespace of the shared cluster setup, used without a deployment namespace."""

    context: str | None = None
    """Kube context of the primary cluster, or the current context when unset."""

    lease: LeaseConfig = field(default_factory=LeaseConfig)
    readiness: ReadinessConfig = field(default_factory=ReadinessConfig)

    @property
    def target_namespace(self) -> str:
        """Namespace commands are serialized against."""
        if namespace := (self.namespace or self.cluster_setup_namespace):
            return namespace
        raise MissingArgumentError("A namespace is required to run this command")

    @classmethod
    def from_env(
        cls,
        env: Mapping[str, str] | None = None,
        **kwargs: str | None,
    ) -> "SoloConfig":
        """Build the configuration from the environment and explicit values."""
        return cls(
            lease=LeaseConfig.from_env(env),
            readiness=ReadinessConfig.from_env(env),
            **kwargs,  # type: ignore[arg-type]
        )
