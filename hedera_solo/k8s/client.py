"""Interface for the Kubernetes operations used by hedera-solo.

The lease, remote config and pipeline modules only talk to a cluster through
a `K8Client`. A `K8Factory` hands out one client per kube context so that
commands can operate on several clusters.
"""

from abc import ABC, abstractmethod
import dataclasses
import logging

from .resources import ConfigMapRecord, LeaseRecord, PodInfo, utcnow

__all__ = [
    "K8Client",
    "K8Factory",
    "label_selector",
]

_LOGGER = logging.getLogger(__name__)

NOT_FOUND = 404
CONFLICT = 409
INTERNAL_SERVER_ERROR = 500


def label_selector(labels: list[str] | dict[str, str]) -> str:
    """Render labels as a comma separated label selector."""
    if isinstance(labels, dict):
        return ",".join(f"{key}={value}" for key, value in labels.items())
    return ",".join(labels)


class K8Client(ABC):
    """Kubernetes operations against a single cluster context."""

    def __init__(self, context: str | None = None) -> None:
        """Initialize K8Client."""
        self._context = context

    @property
    def context(self) -> str | None:
        """Kube context this client talks to, None for the current context."""
        return self._context

    # Namespaces

    @abstractmethod
    async def has_namespace(self, name: str) -> bool:
        """Return true if the namespace exists."""

    @abstractmethod
    async def create_namespace(self, name: str) -> None:
        """Create a namespace."""

    @abstractmethod
    async def delete_namespace(self, name: str) -> bool:
        """Delete a namespace, returning false if it did not exist."""

    # ConfigMaps

    @abstractmethod
    async def read_config_map(
        self, namespace: str, name: str
    ) -> ConfigMapRecord | None:
        """Read a config map, returning None if it does not exist."""

    @abstractmethod
    async def list_config_maps(
        self, namespace: str, selector: str
    ) -> list[ConfigMapRecord]:
        """List config maps matching a label selector."""

    @abstractmethod
    async def create_config_map(
        self,
        namespace: str,
        name: str,
        labels: dict[str, str],
        data: dict[str, str],
    ) -> ConfigMapRecord:
        """Create a config map, failing with a 409 status if it already exists."""

    @abstractmethod
    async def replace_config_map(
        self,
        namespace: str,
        name: str,
        labels: dict[str, str],
        data: dict[str, str],
        resource_version: str | None = None,
    ) -> ConfigMapRecord:
        """Replace the contents of a config map.

        When `resource_version` is set the write only succeeds if the object
        was not modified since that version was observed, otherwise it fails
        with a 409 status.
        """

    @abstractmethod
    async def delete_config_map(self, namespace: str, name: str) -> bool:
        """Delete a config map, returning false if it did not exist."""

    # Leases

    @abstractmethod
    async def read_lease(self, namespace: str, name: str) -> LeaseRecord | None:
        """Read a lease, returning None if it does not exist."""

    @abstractmethod
    async def create_lease(
        self, namespace: str, name: str, holder_identity: str, duration: int
    ) -> LeaseRecord:
        """Create a lease held by the given identity."""

    @abstractmethod
    async def replace_lease(self, lease: LeaseRecord) -> LeaseRecord:
        """Write the spec of a lease guarded by its resource version."""

    @abstractmethod
    async def delete_lease(self, namespace: str, name: str) -> bool:
        """Delete a lease, returning false if it did not exist."""

    async def renew_lease(self, lease: LeaseRecord) -> LeaseRecord:
        """Extend a lease by moving its renew time to now."""
        _LOGGER.debug("Renewing lease %s/%s", lease.namespace, lease.name)
        return await self.replace_lease(dataclasses.replace(lease, renew_time=utcnow()))

    async def transfer_lease(
        self, lease: LeaseRecord, holder_identity: str, duration: int | None = None
    ) -> LeaseRecord:
        """Hand a lease to a new holder and count the transition."""
        _LOGGER.debug("Transferring lease %s/%s", lease.namespace, lease.name)
        now = utcnow()
        return await self.replace_lease(
            dataclasses.replace(
                lease,
                holder_identity=holder_identity,
                lease_duration_seconds=(
                    duration if duration is not None else lease.lease_duration_seconds
                ),
                acquire_time=now,
                renew_time=now,
                lease_transitions=lease.lease_transitions + 1,
            )
        )

    # Workloads

    @abstractmethod
    async def list_pods(self, namespace: str, selector: str) -> list[PodInfo]:
        """List pods matching a label selector."""

    @abstractmethod
    async def list_pvcs(self, namespace: str, selector: str | None = None) -> list[str]:
        """List the names of persistent volume claims."""

    @abstractmethod
    async def delete_pvc(self, namespace: str, name: str) -> bool:
        """Delete a persistent volume claim."""

    @abstractmethod
    async def list_secrets(
        self, namespace: str, selector: str | None = None
    ) -> list[str]:
        """List the names of secrets."""

    @abstractmethod
    async def delete_secret(self, namespace: str, name: str) -> bool:
        """Delete a secret."""


class K8Factory(ABC):
    """Hands out one `K8Client` per kube context."""

    def __init__(self) -> None:
        """Initialize K8Factory."""
        self._clients: dict[str | None, K8Client] = {}

    @abstractmethod
    def _new_client(self, context: str | None) -> K8Client:
        """Build a client for the given kube context."""

    def get(self, context: str | None = None) -> K8Client:
        """Return the client for a kube context, None for the current context."""
        if (client := self._clients.get(context)) is None:
            client = self._new_client(context)
            self._clients[context] = client
        return client
