"""Exceptions related to hedera-solo."""

__all__ = [
    "SoloException",
    "InputException",
    "MissingArgumentError",
    "CommandException",
    "HelmException",
    "KubernetesException",
    "PodReadinessError",
    "LeaseAcquisitionError",
    "LeaseAlreadyHeldError",
    "LeaseLostError",
    "LeaseRelinquishmentError",
    "RemoteConfigError",
    "RemoteConfigNotLoadedError",
    "RemoteConfigExistsError",
    "RemoteConfigConflictError",
    "RemoteConfigValidationError",
    "ComponentExistsError",
    "ComponentNotFoundError",
    "ComponentTypeMismatchError",
    "InvalidNodeStateError",
]


class SoloException(Exception):
    """Generic base exception used for this library."""


class InputException(SoloException):
    """Raised when the input files or values are not formatted as expected."""


class MissingArgumentError(InputException):
    """Raised when a required argument or configuration value is not set."""


class CommandException(SoloException):
    """Raised when there is a failure running a subcommand."""


class HelmException(CommandException):
    """Raised when there is a failure running a helm command."""


class KubernetesException(SoloException):
    """Raised when a call to the Kubernetes API fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PodReadinessError(SoloException):
    """Raised when pods did not reach the expected state in time."""

    def __init__(
        self,
        pod_count: int,
        labels: list[str],
        phases: list[str],
        attempts: int,
        max_attempts: int,
    ) -> None:
        super().__init__(
            f"Expected number of pod ({pod_count}) not found for labels: "
            f"{', '.join(labels)}, phases: {', '.join(phases)} "
            f"[attempts = {attempts}/{max_attempts}]"
        )
        self.pod_count = pod_count
        self.labels = labels
        self.phases = phases
        self.attempts = attempts


class LeaseAcquisitionError(SoloException):
    """Raised when a namespace lease could not be acquired."""


class LeaseAlreadyHeldError(LeaseAcquisitionError):
    """Raised when the lease is held by another live holder."""

    def __init__(self, message: str, holder: str | None = None) -> None:
        super().__init__(message)
        self.holder = holder


class LeaseLostError(LeaseAcquisitionError):
    """Raised when a lease held by this process was taken by another holder."""


class LeaseRelinquishmentError(SoloException):
    """Raised when a lease could not be released."""


class RemoteConfigError(SoloException):
    """Raised when the remote config is used in an invalid way."""


class RemoteConfigNotLoadedError(RemoteConfigError):
    """Raised when the remote config is accessed before it was loaded."""


class RemoteConfigExistsError(RemoteConfigError):
    """Raised when creating a remote config that is already present."""


class RemoteConfigConflictError(RemoteConfigError):
    """Raised when the remote config changed in the cluster since it was loaded."""


class RemoteConfigValidationError(RemoteConfigError):
    """Raised when the remote config document violates its invariants."""


class ComponentExistsError(RemoteConfigError):
    """Raised when adding a component whose name is already registered."""


class ComponentNotFoundError(RemoteConfigError):
    """Raised when a component is not registered."""


class ComponentTypeMismatchError(RemoteConfigError):
    """Raised when a component is registered with a different type."""


class InvalidNodeStateError(RemoteConfigError):
    """Raised when a consensus node is not in an allowed state."""
