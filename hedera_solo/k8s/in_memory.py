"""In-memory implementation of the K8Client interface.

Objects are kept per namespace with a monotonically increasing resource
version, so conditional writes behave like the API server: a stale resource
version fails with a 409 status.
"""

import dataclasses
import logging
from collections.abc import Callable

from hedera_solo.exceptions import KubernetesException

from .client import CONFLICT, NOT_FOUND, K8Client, K8Factory
from .resources import ConfigMapRecord, LeaseRecord, PodInfo, utcnow

__all__ = [
    "InMemoryK8Client",
    "InMemoryK8Factory",
]

_LOGGER = logging.getLogger(__name__)

Key = tuple[str, str]


def _matches(labels: dict[str, str], selector: str | None) -> bool:
    """Return true if the labels satisfy an equality based label selector."""
    if not selector:
        return True
    for term in selector.split(","):
        key, _, value = term.partition("=")
        if labels.get(key.strip()) != value.strip():
            return False
    return True


class InMemoryK8Client(K8Client):
    """Kubernetes client backed by dictionaries."""

    def __init__(self, context: str | None = None) -> None:
        """Initialize the InMemoryK8Client."""
        super().__init__(context)
        self._namespaces: set[str] = set()
        self._config_maps: dict[Key, ConfigMapRecord] = {}
        self._leases: dict[Key, LeaseRecord] = {}
        self._pods: dict[Key, PodInfo] = {}
        self._pvcs: dict[Key, dict[str, str]] = {}
        self._secrets: dict[Key, dict[str, str]] = {}
        self._version = 0
        self._failures: dict[str, list[KubernetesException]] = {}
        self._listeners: list[Callable[[str, str, str], None]] = []
        self.config_map_writes = 0

    def _next_version(self) -> str:
        self._version += 1
        return str(self._version)

    def _check(self, operation: str) -> None:
        """Raise an injected failure for the operation, if any."""
        if failures := self._failures.get(operation):
            raise failures.pop(0)

    def _require_namespace(self, namespace: str) -> None:
        if namespace not in self._namespaces:
            raise KubernetesException(
                f'namespaces "{namespace}" not found', NOT_FOUND
            )

    def _fire(self, operation: str, namespace: str, name: str) -> None:
        for listener in self._listeners:
            listener(operation, namespace, name)

    def add_listener(self, listener: Callable[[str, str, str], None]) -> None:
        """Register a callback invoked with (operation, namespace, name) on writes."""
        self._listeners.append(listener)

    def inject_failure(self, operation: str, error: KubernetesException) -> None:
        """Fail the next call of an operation (e.g. `read_lease`) with `error`."""
        self._failures.setdefault(operation, []).append(error)

    def add_pod(self, pod: PodInfo) -> None:
        """Add or update a pod."""
        self._pods[(pod.namespace, pod.name)] = pod

    def add_pvc(
        self, namespace: str, name: str, labels: dict[str, str] | None = None
    ) -> None:
        """Add a persistent volume claim."""
        self._pvcs[(namespace, name)] = labels or {}

    def add_secret(
        self, namespace: str, name: str, labels: dict[str, str] | None = None
    ) -> None:
        """Add a secret."""
        self._secrets[(namespace, name)] = labels or {}

    def put_lease(self, lease: LeaseRecord) -> LeaseRecord:
        """Store a lease as is, bypassing holder checks."""
        lease = dataclasses.replace(lease, resource_version=self._next_version())
        self._leases[(lease.namespace, lease.name)] = lease
        return lease

    async def has_namespace(self, name: str) -> bool:
        self._check("has_namespace")
        return name in self._namespaces

    async def create_namespace(self, name: str) -> None:
        self._check("create_namespace")
        if name in self._namespaces:
            raise KubernetesException(
                f'namespaces "{name}" already exists', CONFLICT
            )
        self._namespaces.add(name)
        self._fire("create_namespace", name, name)

    async def delete_namespace(self, name: str) -> bool:
        self._check("delete_namespace")
        if name not in self._namespaces:
            return False
        self._namespaces.discard(name)
        for store in (
            self._config_maps,
            self._leases,
            self._pods,
            self._pvcs,
            self._secrets,
        ):
            for key in [key for key in store if key[0] == name]:
                del store[key]
        self._fire("delete_namespace", name, name)
        return True

    async def read_config_map(
        self, namespace: str, name: str
    ) -> ConfigMapRecord | None:
        self._check("read_config_map")
        return self._config_maps.get((namespace, name))

    async def list_config_maps(
        self, namespace: str, selector: str
    ) -> list[ConfigMapRecord]:
        self._check("list_config_maps")
        return [
            cm
            for (ns, _), cm in self._config_maps.items()
            if ns == namespace and _matches(cm.labels, selector)
        ]

    async def create_config_map(
        self,
        namespace: str,
        name: str,
        labels: dict[str, str],
        data: dict[str, str],
    ) -> ConfigMapRecord:
        self._check("create_config_map")
        self._require_namespace(namespace)
        if (namespace, name) in self._config_maps:
            raise KubernetesException(
                f'configmaps "{name}" already exists', CONFLICT
            )
        record = ConfigMapRecord(
            name=name,
            namespace=namespace,
            labels=dict(labels),
            data=dict(data),
            resource_version=self._next_version(),
        )
        self._config_maps[(namespace, name)] = record
        self.config_map_writes += 1
        self._fire("create_config_map", namespace, name)
        return record

    async def replace_config_map(
        self,
        namespace: str,
        name: str,
        labels: dict[str, str],
        data: dict[str, str],
        resource_version: str | None = None,
    ) -> ConfigMapRecord:
        self._check("replace_config_map")
        if (existing := self._config_maps.get((namespace, name))) is None:
            raise KubernetesException(f'configmaps "{name}" not found', NOT_FOUND)
        if (
            resource_version is not None
            and resource_version != existing.resource_version
        ):
            raise KubernetesException(
                f'Operation cannot be fulfilled on configmaps "{name}": '
                "the object has been modified",
                CONFLICT,
            )
        record = dataclasses.replace(
            existing,
            labels=dict(labels),
            data=dict(data),
            resource_version=self._next_version(),
        )
        self._config_maps[(namespace, name)] = record
        self.config_map_writes += 1
        self._fire("replace_config_map", namespace, name)
        return record

    async def delete_config_map(self, namespace: str, name: str) -> bool:
        self._check("delete_config_map")
        if self._config_maps.pop((namespace, name), None) is None:
            return False
        self._fire("delete_config_map", namespace, name)
        return True

    async def read_lease(self, namespace: str, name: str) -> LeaseRecord | None:
        self._check("read_lease")
        return self._leases.get((namespace, name))

    async def create_lease(
        self, namespace: str, name: str, holder_identity: str, duration: int
    ) -> LeaseRecord:
        self._check("create_lease")
        self._require_namespace(namespace)
        if (namespace, name) in self._leases:
            raise KubernetesException(f'leases "{name}" already exists', CONFLICT)
        now = utcnow()
        record = LeaseRecord(
            name=name,
            namespace=namespace,
            holder_identity=holder_identity,
            lease_duration_seconds=duration,
            acquire_time=now,
            renew_time=now,
            lease_transitions=0,
            resource_version=self._next_version(),
        )
        self._leases[(namespace, name)] = record
        self._fire("create_lease", namespace, name)
        return record

    async def replace_lease(self, lease: LeaseRecord) -> LeaseRecord:
        self._check("replace_lease")
        key = (lease.namespace, lease.name)
        if (existing := self._leases.get(key)) is None:
            raise KubernetesException(f'leases "{lease.name}" not found', NOT_FOUND)
        if (
            lease.resource_version is not None
            and lease.resource_version != existing.resource_version
        ):
            raise KubernetesException(
                f'Operation cannot be fulfilled on leases "{lease.name}": '
                "the object has been modified",
                CONFLICT,
            )
        record = dataclasses.replace(lease, resource_version=self._next_version())
        self._leases[key] = record
        self._fire("replace_lease", lease.namespace, lease.name)
        return record

    async def delete_lease(self, namespace: str, name: str) -> bool:
        self._check("delete_lease")
        if self._leases.pop((namespace, name), None) is None:
            return False
        self._fire("delete_lease", namespace, name)
        return True

    async def list_pods(self, namespace: str, selector: str) -> list[PodInfo]:
        self._check("list_pods")
        return [
            pod
            for (ns, _), pod in self._pods.items()
            if ns == namespace and _matches(pod.labels, selector)
        ]

    async def list_pvcs(self, namespace: str, selector: str | None = None) -> list[str]:
        self._check("list_pvcs")
        return [
            name
            for (ns, name), labels in self._pvcs.items()
            if ns == namespace and _matches(labels, selector)
        ]

    async def delete_pvc(self, namespace: str, name: str) -> bool:
        self._check("delete_pvc")
        if self._pvcs.pop((namespace, name), None) is None:
            return False
        self._fire("delete_pvc", namespace, name)
        return True

    async def list_secrets(
        self, namespace: str, selector: str | None = None
    ) -> list[str]:
        self._check("list_secrets")
        return [
            name
            for (ns, name), labels in self._secrets.items()
            if ns == namespace and _matches(labels, selector)
        ]

    async def delete_secret(self, namespace: str, name: str) -> bool:
        self._check("delete_secret")
        if self._secrets.pop((namespace, name), None) is None:
            return False
        self._fire("delete_secret", namespace, name)
        return True


class InMemoryK8Factory(K8Factory):
    """Creates an independent in-memory cluster per kube context."""

    def _new_client(self, context: str | None) -> K8Client:
        return InMemoryK8Client(context)
