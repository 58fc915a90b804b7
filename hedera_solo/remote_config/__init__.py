"""The cluster resident record of what is deployed in a namespace."""

from .components import (
    BaseComponent,
    Component,
    ComponentType,
    ConsensusNodeComponent,
    ConsensusNodeStates,
    EnvoyProxyComponent,
    HaProxyComponent,
    MirrorNodeComponent,
    MirrorNodeExplorerComponent,
    RelayComponent,
)
from .manager import RemoteConfigManager
from .model import RemoteConfig, RemoteConfigMetadata
from .validator import RemoteConfigValidator
from .wrapper import ComponentsDataWrapper

__all__ = [
    "BaseComponent",
    "Component",
    "ComponentType",
    "ComponentsDataWrapper",
    "ConsensusNodeComponent",
    "ConsensusNodeStates",
    "EnvoyProxyComponent",
    "HaProxyComponent",
    "MirrorNodeComponent",
    "MirrorNodeExplorerComponent",
    "RelayComponent",
    "RemoteConfig",
    "RemoteConfigManager",
    "RemoteConfigMetadata",
    "RemoteConfigValidator",
]
