"""Components tracked in the remote config.

Each kind of deployed component is its own dataclass carrying only the
fields relevant to it. All components share a name, the cluster they were
deployed to and their namespace.
"""

from dataclasses import dataclass, field
from enum import StrEnum
import re
from typing import ClassVar

from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig

from hedera_solo.exceptions import InputException, RemoteConfigValidationError

__all__ = [
    "ComponentType",
    "ConsensusNodeStates",
    "BaseComponent",
    "ConsensusNodeComponent",
    "EnvoyProxyComponent",
    "HaProxyComponent",
    "RelayComponent",
    "MirrorNodeComponent",
    "MirrorNodeExplorerComponent",
    "Component",
    "COMPONENT_CLASSES",
    "node_id_from_alias",
]


class ComponentType(StrEnum):
    """Kind of component, also the key grouping components in the document."""

    CONSENSUS_NODE = "consensusNodes"
    ENVOY_PROXY = "envoyProxies"
    HA_PROXY = "haProxies"
    RELAY = "relays"
    MIRROR_NODE = "mirrorNodes"
    MIRROR_NODE_EXPLORER = "mirrorNodeExplorers"


class ConsensusNodeStates(StrEnum):
    """Lifecycle state of a consensus node."""

    REQUESTED = "requested"
    NON_DEPLOYED = "non-deployed"
    INITIALIZED = "initialized"
    SETUP = "setup"
    STARTED = "started"
    FREEZED = "freezed"
    STOPPED = "stopped"


_NODE_ALIAS_RE = re.compile(r"^node(\d+)$")


def node_id_from_alias(alias: str) -> int:
    """Return the zero based node id of a node alias such as `node1`."""
    if not (match := _NODE_ALIAS_RE.match(alias)):
        raise InputException(f"Invalid node alias '{alias}'")
    return int(match.group(1)) - 1


@dataclass
class BaseComponent(DataClassDictMixin):
    """Fields shared by every component."""

    component_type: ClassVar[ComponentType]

    name: str
    """Unique name of the component within the remote config."""

    cluster: str
    """Cluster reference the component is deployed to."""

    namespace: str
    """Namespace the component is deployed to."""

    def validate(self) -> None:
        """Raise if the component fields are not usable."""
        for attr in ("name", "cluster", "namespace"):
            value = getattr(self, attr)
            if not isinstance(value, str) or not value:
                raise RemoteConfigValidationError(
                    f"Invalid {self.component_type} component {attr}: '{value}'"
                )

    class Config(BaseConfig):
        omit_none = True
        serialize_by_alias = True


@dataclass
class ConsensusNodeComponent(BaseComponent):
    """A consensus node and its lifecycle state."""

    component_type: ClassVar[ComponentType] = ComponentType.CONSENSUS_NODE

    state: ConsensusNodeStates = ConsensusNodeStates.REQUESTED
    """Lifecycle state declared by the last command that changed the node."""

    node_id: int = field(default=0, metadata=field_options(alias="nodeId"))
    """Zero based node id."""

    def validate(self) -> None:
        super().validate()
        if not isinstance(self.state, ConsensusNodeStates):
            raise RemoteConfigValidationError(
                f"Invalid consensus node state: '{self.state}'"
            )
        if self.node_id < 0:
            raise RemoteConfigValidationError(f"Invalid node id: {self.node_id}")


@dataclass
class EnvoyProxyComponent(BaseComponent):
    """An envoy proxy in front of a consensus node."""

    component_type: ClassVar[ComponentType] = ComponentType.ENVOY_PROXY


@dataclass
class HaProxyComponent(BaseComponent):
    """A haproxy in front of a consensus node."""

    component_type: ClassVar[ComponentType] = ComponentType.HA_PROXY


@dataclass
class RelayComponent(BaseComponent):
    """A JSON RPC relay and the consensus nodes it forwards to."""

    component_type: ClassVar[ComponentType] = ComponentType.RELAY

    consensus_node_aliases: list[str] = field(
        default_factory=list, metadata=field_options(alias="consensusNodeAliases")
    )

    def validate(self) -> None:
        super().validate()
        if not all(isinstance(alias, str) for alias in self.consensus_node_aliases):
            raise RemoteConfigValidationError(
                f"Invalid relay consensus node aliases: {self.consensus_node_aliases}"
            )


@dataclass
class MirrorNodeComponent(BaseComponent):
    """A mirror node."""

    component_type: ClassVar[ComponentType] = ComponentType.MIRROR_NODE


@dataclass
class MirrorNodeExplorerComponent(BaseComponent):
    """A mirror node explorer."""

    component_type: ClassVar[ComponentType] = ComponentType.MIRROR_NODE_EXPLORER


Component = (
    ConsensusNodeComponent
    | EnvoyProxyComponent
    | HaProxyComponent
    | RelayComponent
    | MirrorNodeComponent
    | MirrorNodeExplorerComponent
)

COMPONENT_CLASSES: dict[ComponentType, type[BaseComponent]] = {
    cls.component_type: cls
    for cls in (
        ConsensusNodeComponent,
        EnvoyProxyComponent,
        HaProxyComponent,
        RelayComponent,
        MirrorNodeComponent,
        MirrorNodeExplorerComponent,
    )
}
