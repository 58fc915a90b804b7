"""The remote config document stored in a ConfigMap of each deployment.

```yaml
metadata:
  namespace: solo
  createdAt: '2024-05-01T10:00:00+00:00'
  createdBy: operator@example.com
version: 1.0.0
clusters:
  c1: solo
components:
  consensusNodes:
    node1: {name: node1, cluster: c1, namespace: solo, state: initialized, nodeId: 0}
  envoyProxies: {}
  ...
lastExecutedCommand: network deploy
commandHistory:
  - deployment create
  - network deploy
```
"""

from dataclasses import dataclass, field
import datetime
import logging
from typing import Any

from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig
from mashumaro.exceptions import InvalidFieldValue, MissingField
import yaml

from hedera_solo.constants import (
    REMOTE_CONFIG_MAX_COMMAND_HISTORY,
    REMOTE_CONFIG_VERSION,
)
from hedera_solo.exceptions import RemoteConfigValidationError

from .wrapper import ComponentsDataWrapper

__all__ = [
    "RemoteConfigMetadata",
    "RemoteConfig",
]

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemoteConfigMetadata(DataClassDictMixin):
    """Who created the remote config of which namespace, and when."""

    namespace: str
    """Namespace of the deployment."""

    created_at: datetime.datetime = field(metadata=field_options(alias="createdAt"))
    """When the remote config was created."""

    created_by: str = field(metadata=field_options(alias="createdBy"))
    """Email address of the user that created the remote config."""

    class Config(BaseConfig):
        omit_none = True
        serialize_by_alias = True


@dataclass
class RemoteConfig:
    """Inventory and audit trail of one deployment."""

    metadata: RemoteConfigMetadata
    """Immutable creation details."""

    clusters: dict[str, str] = field(default_factory=dict)
    """Cluster reference to namespace, only ever extended."""

    components: ComponentsDataWrapper = field(default_factory=ComponentsDataWrapper)
    """Deployed components."""

    last_executed_command: str = ""
    """The command currently or most recently executed."""

    command_history: list[str] = field(default_factory=list)
    """Executed commands, oldest first, bounded in length."""

    version: str = REMOTE_CONFIG_VERSION
    """Version of the document schema."""

    def add_command_to_history(
        self, command: str, max_history: int = REMOTE_CONFIG_MAX_COMMAND_HISTORY
    ) -> None:
        """Record a command, evicting the oldest entries past `max_history`."""
        self.last_executed_command = command
        self.command_history.append(command)
        if (overflow := len(self.command_history) - max_history) > 0:
            del self.command_history[:overflow]

    def add_cluster(self, cluster: str, namespace: str) -> None:
        """Record that the deployment spans `cluster`."""
        if (existing := self.clusters.get(cluster)) is not None:
            if existing != namespace:
                raise RemoteConfigValidationError(
                    f"Cluster {cluster} is already mapped to namespace {existing}"
                )
            return
        self.clusters[cluster] = namespace

    def validate(self) -> None:
        """Raise if the document violates its structural invariants."""
        if not self.metadata.namespace:
            raise RemoteConfigValidationError("Remote config metadata has no namespace")
        for cluster, namespace in self.clusters.items():
            if not cluster or not isinstance(namespace, str) or not namespace:
                raise RemoteConfigValidationError(
                    f"Invalid cluster mapping {cluster}: {namespace}"
                )
        self.components.validate()

    def to_dict(self) -> dict[str, Any]:
        """Serialize the document."""
        return {
            "metadata": self.metadata.to_dict(),
            "version": self.version,
            "clusters": dict(self.clusters),
            "components": self.components.to_dict(),
            "lastExecutedCommand": self.last_executed_command,
            "commandHistory": list(self.command_history),
        }

    @classmethod
    def from_dict(cls, doc: dict[str, Any]) -> "RemoteConfig":
        """Parse the document."""
        if not isinstance(doc, dict):
            raise RemoteConfigValidationError(f"Invalid remote config: {doc}")
        if not (metadata := doc.get("metadata")):
            raise RemoteConfigValidationError("Remote config is missing metadata")
        try:
            parsed_metadata = RemoteConfigMetadata.from_dict(metadata)
        except (MissingField, InvalidFieldValue) as err:
            raise RemoteConfigValidationError(
                f"Invalid remote config metadata: {err}"
            ) from err
        return cls(
            metadata=parsed_metadata,
            clusters=dict(doc.get("clusters") or {}),
            components=ComponentsDataWrapper.from_dict(doc.get("components")),
            last_executed_command=doc.get("lastExecutedCommand") or "",
            command_history=list(doc.get("commandHistory") or []),
            version=str(doc.get("version") or REMOTE_CONFIG_VERSION),
        )

    def to_yaml(self) -> str:
        """Serialize the document as YAML."""
        return yaml.dump(self.to_dict(), sort_keys=False)

    @classmethod
    def from_yaml(cls, content: str) -> "RemoteConfig":
        """Parse the document from YAML."""
        try:
            doc = yaml.safe_load(content)
        except yaml.YAMLError as err:
            raise RemoteConfigValidationError(
                f"Unable to parse remote config: {err}"
            ) from err
        return cls.from_dict(doc)
