"""Tests for the component registry."""

import pytest

from hedera_solo.exceptions import (
    ComponentExistsError,
    ComponentNotFoundError,
    ComponentTypeMismatchError,
    InputException,
    InvalidNodeStateError,
    RemoteConfigValidationError,
)
from hedera_solo.remote_config import (
    ComponentsDataWrapper,
    ComponentType,
    ConsensusNodeComponent,
    ConsensusNodeStates,
    EnvoyProxyComponent,
    RelayComponent,
)
from hedera_solo.remote_config.components import node_id_from_alias


def node(name: str, state: ConsensusNodeStates) -> ConsensusNodeComponent:
    """Return a consensus node in cluster c1."""
    return ConsensusNodeComponent(
        name=name,
        cluster="c1",
        namespace="solo",
        state=state,
        node_id=node_id_from_alias(name),
    )


def test_node_id_from_alias() -> None:
    """Test deriving node ids from aliases."""
    assert node_id_from_alias("node1") == 0
    assert node_id_from_alias("node12") == 11
    with pytest.raises(InputException, match="Invalid node alias"):
        node_id_from_alias("relay")


def test_add_and_remove() -> None:
    """Test registering and removing a component."""
    components = ComponentsDataWrapper()
    assert components.is_empty

    relay = RelayComponent(
        name="relay", cluster="c1", namespace="solo", consensus_node_aliases=["node1"]
    )
    components.add(relay)
    assert "relay" in components
    assert len(components) == 1
    assert components.get("relay", RelayComponent) == relay
    assert components.of_type(ComponentType.RELAY) == [relay]

    components.remove("relay", ComponentType.RELAY)
    assert "relay" not in components
    assert components.is_empty


def test_duplicate_name() -> None:
    """Test names are unique across component kinds."""
    components = ComponentsDataWrapper(
        [EnvoyProxyComponent(name="proxy", cluster="c1", namespace="solo")]
    )
    with pytest.raises(
        ComponentExistsError, match="Component exists, name: proxy, type: relays"
    ):
        components.add(RelayComponent(name="proxy", cluster="c1", namespace="solo"))
    assert len(components) == 1


def test_remove_missing() -> None:
    """Test removing a component that is not registered."""
    components = ComponentsDataWrapper()
    with pytest.raises(
        ComponentNotFoundError,
        match="Component relay of type relays not found while attempting to remove",
    ):
        components.remove("relay", ComponentType.RELAY)


def test_type_mismatch() -> None:
    """Test operating on a component with the wrong kind."""
    components = ComponentsDataWrapper(
        [EnvoyProxyComponent(name="proxy", cluster="c1", namespace="solo")]
    )
    with pytest.raises(ComponentTypeMismatchError):
        components.remove("proxy", ComponentType.HA_PROXY)
    with pytest.raises(ComponentTypeMismatchError):
        components.edit(RelayComponent(name="proxy", cluster="c1", namespace="solo"))
    with pytest.raises(ComponentTypeMismatchError):
        components.get("proxy", RelayComponent)
    assert "proxy" in components


def test_edit() -> None:
    """Test replacing a component with an updated copy."""
    components = ComponentsDataWrapper([node("node1", ConsensusNodeStates.REQUESTED)])
    components.edit(node("node1", ConsensusNodeStates.STARTED))
    assert (
        components.get("node1", ConsensusNodeComponent).state
        == ConsensusNodeStates.STARTED
    )
    with pytest.raises(
        ComponentNotFoundError, match="Component doesn't exist, name: node2"
    ):
        components.edit(node("node2", ConsensusNodeStates.STARTED))


def test_invalid_component() -> None:
    """Test components with empty fields are rejected."""
    components = ComponentsDataWrapper()
    with pytest.raises(RemoteConfigValidationError, match="cluster"):
        components.add(EnvoyProxyComponent(name="proxy", cluster="", namespace="solo"))
    assert components.is_empty


def test_validate_node_state() -> None:
    """Test checking node states against accepted and excluded states."""
    components = ComponentsDataWrapper(
        [
            node("node1", ConsensusNodeStates.STARTED),
            node("node2", ConsensusNodeStates.REQUESTED),
        ]
    )
    assert (
        components.validate_node_state("node1", [ConsensusNodeStates.STARTED])
        == ConsensusNodeStates.STARTED
    )
    with pytest.raises(
        InvalidNodeStateError,
        match=(
            "node2 has invalid state - accepted states: setup, started, "
            "current state: requested"
        ),
    ):
        components.validate_node_state(
            "node2", [ConsensusNodeStates.SETUP, ConsensusNodeStates.STARTED]
        )
    with pytest.raises(
        InvalidNodeStateError,
        match="excluded states: requested, non-deployed, current state: requested",
    ):
        components.validate_node_state(
            "node2",
            excluded_states=[
                ConsensusNodeStates.REQUESTED,
                ConsensusNodeStates.NON_DEPLOYED,
            ],
        )
    with pytest.raises(InvalidNodeStateError, match="node3 not found in remote config"):
        components.validate_node_state("node3")


def test_serialize_grouped_by_type() -> None:
    """Test the document layout of the registry."""
    components = ComponentsDataWrapper.initialize_with_nodes(["node1"], "c1", "solo")
    components.add(
        EnvoyProxyComponent(name="envoy-proxy-node1", cluster="c1", namespace="solo")
    )
    doc = components.to_dict()
    assert doc["consensusNodes"] == {
        "node1": {
            "name": "node1",
            "cluster": "c1",
            "namespace": "solo",
            "state": "requested",
            "nodeId": 0,
        }
    }
    assert doc["envoyProxies"] == {
        "envoy-proxy-node1": {
            "name": "envoy-proxy-node1",
            "cluster": "c1",
            "namespace": "solo",
        }
    }
    assert doc["relays"] == {}
    assert ComponentsDataWrapper.from_dict(doc) == components


def test_parse_invalid_document() -> None:
    """Test parsing component documents that break the registry rules."""
    with pytest.raises(RemoteConfigValidationError, match="Unknown component type"):
        ComponentsDataWrapper.from_dict({"validators": {}})
    with pytest.raises(RemoteConfigValidationError, match="registered as node1"):
        ComponentsDataWrapper.from_dict(
            {
                "consensusNodes": {
                    "node1": {"name": "node2", "cluster": "c1", "namespace": "solo"}
                }
            }
        )
    with pytest.raises(RemoteConfigValidationError, match="Invalid consensusNodes"):
        ComponentsDataWrapper.from_dict(
            {"consensusNodes": {"node1": {"name": "node1"}}}
        )


def test_clone_is_independent() -> None:
    """Test changes to a copy do not leak into the original."""
    components = ComponentsDataWrapper([node("node1", ConsensusNodeStates.REQUESTED)])
    copy = components.clone()
    copy.clear()
    assert "node1" in components
