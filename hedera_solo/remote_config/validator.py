"""Checks that the components in a remote config exist in their clusters."""

import logging

from hedera_solo import constants
from hedera_solo.exceptions import KubernetesException, RemoteConfigValidationError
from hedera_solo.k8s.client import K8Factory
from hedera_solo.local_config import LocalConfig

from .components import (
    BaseComponent,
    ComponentType,
    ConsensusNodeComponent,
    ConsensusNodeStates,
)
from .wrapper import ComponentsDataWrapper

__all__ = [
    "RemoteConfigValidator",
]

_LOGGER = logging.getLogger(__name__)

# Nodes in these states have no pods yet
_UNDEPLOYED_STATES = {ConsensusNodeStates.REQUESTED, ConsensusNodeStates.NON_DEPLOYED}


def _pod_labels(component: BaseComponent) -> list[str]:
    match component.component_type:
        case ComponentType.CONSENSUS_NODE:
            return [constants.NODE_POD_LABEL_TEMPLATE.format(alias=component.name)]
        case ComponentType.ENVOY_PROXY | ComponentType.HA_PROXY:
            return [constants.PROXY_LABEL_TEMPLATE.format(name=component.name)]
        case ComponentType.RELAY:
            return [constants.RELAY_LABEL]
        case ComponentType.MIRROR_NODE:
            return [constants.MIRROR_NODE_LABEL]
        case ComponentType.MIRROR_NODE_EXPLORER:
            return [constants.EXPLORER_LABEL]
    raise RemoteConfigValidationError(
        f"Unknown component type {component.component_type}"
    )


class RemoteConfigValidator:
    """Verifies each deployed component has pods in its namespace."""

    def __init__(self, factory: K8Factory, local_config: LocalConfig | None) -> None:
        """Initialize RemoteConfigValidator."""
        self._factory = factory
        self._local_config = local_config

    def _context(self, cluster: str) -> str | None:
        if self._local_config is None:
            return None
        return self._local_config.context_for_cluster(cluster)

    async def validate_components(self, components: ComponentsDataWrapper) -> None:
        """Raise if any deployed component is missing from its cluster."""
        for component in components:
            if (
                isinstance(component, ConsensusNodeComponent)
                and component.state in _UNDEPLOYED_STATES
            ):
                continue
            client = self._factory.get(self._context(component.cluster))
            selector = ",".join(_pod_labels(component))
            try:
                pods = await client.list_pods(component.namespace, selector)
            except KubernetesException as err:
                raise RemoteConfigValidationError(
                    f"Unable to verify {component.component_type} component "
                    f"{component.name}: {err}"
                ) from err
            if not pods:
                raise RemoteConfigValidationError(
                    f"{component.component_type} component {component.name} not "
                    f"present in namespace {component.namespace} of cluster "
                    f"{component.cluster}"
                )
            _LOGGER.debug(
                "Validated %s component %s", component.component_type, component.name
            )
