"""Typed records for the Kubernetes objects hedera-solo reads and writes.

Records are parsed from the raw object documents returned by the API server
so that the rest of the library never reaches into nested dictionaries.
"""

from dataclasses import dataclass, field
import datetime
from typing import Any, ClassVar

from hedera_solo.constants import POD_CONDITION_READY, POD_CONDITION_STATUS_TRUE
from hedera_solo.exceptions import InputException

__all__ = [
    "LeaseRecord",
    "ConfigMapRecord",
    "PodInfo",
    "ObjectRef",
    "format_micro_time",
    "parse_micro_time",
    "utcnow",
]

LEASE_API_VERSION = "coordination.k8s.io/v1"
LEASE_KIND = "Lease"
CONFIG_MAP_KIND = "ConfigMap"
POD_KIND = "Pod"

_MICRO_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utcnow() -> datetime.datetime:
    """Return the current time in UTC."""
    return datetime.datetime.now(datetime.timezone.utc)


def format_micro_time(value: datetime.datetime) -> str:
    """Format a timestamp as a Kubernetes MicroTime string."""
    return value.astimezone(datetime.timezone.utc).strftime(_MICRO_TIME_FORMAT)


def parse_micro_time(value: str | None) -> datetime.datetime | None:
    """Parse a Kubernetes MicroTime or Time string."""
    if not value:
        return None
    try:
        parsed = datetime.datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as err:
        raise InputException(f"Invalid timestamp '{value}'") from err
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=datetime.timezone.utc)
    return parsed


def _metadata(doc: dict[str, Any], kind: str) -> dict[str, Any]:
    if not (metadata := doc.get("metadata")):
        raise InputException(f"Invalid {kind} missing metadata: {doc}")
    if not metadata.get("name"):
        raise InputException(f"Invalid {kind} missing metadata.name: {doc}")
    return metadata


@dataclass(frozen=True)
class ObjectRef:
    """Identifier for a namespaced kubernetes object."""

    name: str
    namespace: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class LeaseRecord:
    """A coordination.k8s.io Lease used as a namespace lock."""

    kind: ClassVar[str] = LEASE_KIND

    name: str
    """The name of the Lease, equal to the namespace it protects."""

    namespace: str
    """The namespace of the Lease."""

    holder_identity: str | None = None
    """Serialized identity of the current holder."""

    lease_duration_seconds: int = 0
    """Seconds the lease stays valid after the last renewal."""

    acquire_time: datetime.datetime | None = None
    """When the current holder acquired the lease."""

    renew_time: datetime.datetime | None = None
    """When the current holder last renewed the lease."""

    lease_transitions: int = 0
    """Number of times the lease changed holder."""

    resource_version: str | None = None
    """Resource version observed when the lease was read."""

    def is_expired(self, now: datetime.datetime | None = None) -> bool:
        """Return true if the holder stopped renewing the lease."""
        last = self.renew_time or self.acquire_time
        if last is None:
            return True
        now = now or utcnow()
        return (now - last).total_seconds() > self.lease_duration_seconds

    def spec(self) -> dict[str, Any]:
        """Return the Lease spec document."""
        spec: dict[str, Any] = {
            "holderIdentity": self.holder_identity,
            "leaseDurationSeconds": self.lease_duration_seconds,
            "leaseTransitions": self.lease_transitions,
        }
        if self.acquire_time:
            spec["acquireTime"] = format_micro_time(self.acquire_time)
        if self.renew_time:
            spec["renewTime"] = format_micro_time(self.renew_time)
        return spec

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "LeaseRecord":
        """Parse a Lease from a kubernetes resource."""
        metadata = _metadata(doc, cls.kind)
        spec = doc.get("spec") or {}
        return LeaseRecord(
            name=metadata["name"],
            namespace=metadata.get("namespace", ""),
            holder_identity=spec.get("holderIdentity"),
            lease_duration_seconds=int(spec.get("leaseDurationSeconds") or 0),
            acquire_time=parse_micro_time(spec.get("acquireTime")),
            renew_time=parse_micro_time(spec.get("renewTime")),
            lease_transitions=int(spec.get("leaseTransitions") or 0),
            resource_version=metadata.get("resourceVersion"),
        )


@dataclass(frozen=True)
class ConfigMapRecord:
    """A ConfigMap holding string data."""

    kind: ClassVar[str] = CONFIG_MAP_KIND

    name: str
    namespace: str
    labels: dict[str, str] = field(default_factory=dict)
    data: dict[str, str] = field(default_factory=dict)
    resource_version: str | None = None

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "ConfigMapRecord":
        """Parse a config map object from a kubernetes resource."""
        metadata = _metadata(doc, cls.kind)
        return ConfigMapRecord(
            name=metadata["name"],
            namespace=metadata.get("namespace", ""),
            labels=dict(metadata.get("labels") or {}),
            data=dict(doc.get("data") or {}),
            resource_version=metadata.get("resourceVersion"),
        )


@dataclass(frozen=True)
class PodInfo:
    """Status summary of a Pod."""

    kind: ClassVar[str] = POD_KIND

    name: str
    namespace: str
    phase: str = "Unknown"
    labels: dict[str, str] = field(default_factory=dict)
    conditions: dict[str, str] = field(default_factory=dict)
    """Condition type to condition status, e.g. `Ready: "True"`."""

    @property
    def is_ready(self) -> bool:
        """Return true if the Ready condition is true."""
        return self.conditions.get(POD_CONDITION_READY) == POD_CONDITION_STATUS_TRUE

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "PodInfo":
        """Parse a pod status from a kubernetes resource."""
        metadata = _metadata(doc, cls.kind)
        status = doc.get("status") or {}
        return PodInfo(
            name=metadata["name"],
            namespace=metadata.get("namespace", ""),
            phase=status.get("phase", "Unknown"),
            labels=dict(metadata.get("labels") or {}),
            conditions={
                cond["type"]: cond.get("status", "Unknown")
                for cond in status.get("conditions") or []
                if "type" in cond
            },
        )
